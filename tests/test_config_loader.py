"""Tests for config file discovery and loading."""

from pathlib import Path

from tab_icons.config_loader import (
    DEFAULT_CONFIG_PATH,
    load_configuration,
    load_overrides_file,
    read_config_lines,
    resolve_config_path,
)
from tab_icons.errors import ErrorType
from tab_icons.models import DEFAULT_FALLBACK_ICON


class TestResolveConfigPath:
    """Tests for resolve_config_path()."""

    def test_first_env_var_wins(self, write_config):
        first = write_config("icons:\n", name="first.yml")
        second = write_config("icons:\n", name="second.yml")
        env = {"KITTY_ICON_CONFIG": str(first), "WAYBAR_ICON_CONFIG": str(second)}
        assert resolve_config_path(env) == first

    def test_missing_env_file_falls_through(self, write_config, tmp_path):
        second = write_config("icons:\n", name="second.yml")
        env = {"KITTY_ICON_CONFIG": str(tmp_path / "nope.yml"), "WAYBAR_ICON_CONFIG": str(second)}
        assert resolve_config_path(env) == second

    def test_default_path(self):
        assert resolve_config_path({}) == DEFAULT_CONFIG_PATH.expanduser()


class TestReadConfigLines:
    """Tests for read_config_lines()."""

    def test_reads_lines(self, write_config):
        path = write_config("icons:\n  git: G\n")
        result = read_config_lines(path)
        assert result.is_ok()
        assert result.value == ["icons:", "  git: G"]

    def test_missing_file(self, tmp_path):
        result = read_config_lines(tmp_path / "missing.yml")
        assert result.is_err()
        assert result.error.error_type == ErrorType.FILE_NOT_FOUND

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_bytes(b"icons:\n  git: \xff\xfe\n")
        result = read_config_lines(path)
        assert result.error.error_type == ErrorType.PARSE_ERROR

    def test_directory_is_unreachable(self, tmp_path):
        result = read_config_lines(tmp_path)
        assert result.is_err()


class TestLoadConfiguration:
    """Tests for load_configuration()."""

    def test_loads_file(self, write_config):
        path = write_config("""
            icons:
              git: "G"
        """)
        config = load_configuration(config_path=path)
        assert config.icon_map["git"] == "G"
        assert config.source_path == path

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_configuration(config_path=tmp_path / "missing.yml")
        assert config.fallback_icon == DEFAULT_FALLBACK_ICON
        assert config.source_path is None

    def test_missing_file_keeps_overrides(self, tmp_path):
        config = load_configuration(
            config_path=tmp_path / "missing.yml",
            overrides={"hosts": {"db1": "D"}},
        )
        assert config.host_exact_map["db1"] == "D"

    def test_environment_lookup(self, write_config):
        path = write_config("""
            config:
              fallback-icon: "E"
        """)
        config = load_configuration(environ={"WAYBAR_ICON_CONFIG": str(path)})
        assert config.fallback_icon == "E"


class TestLoadOverridesFile:
    """Tests for load_overrides_file()."""

    def test_missing_file_is_empty(self, tmp_path):
        result = load_overrides_file(tmp_path / "overrides.toml")
        assert result.is_ok()
        assert result.value == {}

    def test_reads_sections(self, write_config):
        path = write_config("""
            override_yaml = true

            [icons]
            git = "G"

            [hosts."*.prod"]
            icon = "P"
            ring_color = "#ff0000"
        """, name="overrides.toml")
        result = load_overrides_file(path)
        assert result.is_ok()
        assert result.value["override_yaml"] is True
        assert result.value["hosts"]["*.prod"]["icon"] == "P"

    def test_invalid_toml(self, write_config):
        path = write_config("[icons\ngit = \n", name="overrides.toml")
        result = load_overrides_file(path)
        assert result.is_err()
        assert result.error.error_type == ErrorType.PARSE_ERROR

    def test_overrides_file_feeds_builder(self, write_config):
        config_path = write_config("""
            icons:
              git: "G"
        """)
        overrides_path = write_config("""
            override_yaml = true
            [icons]
            git = "O"
        """, name="overrides.toml")
        overrides = load_overrides_file(overrides_path).value
        config = load_configuration(config_path=config_path, overrides=overrides)
        assert config.icon_map["git"] == "O"
