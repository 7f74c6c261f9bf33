"""Tests for the nerd-tab-icons command line."""

import json

from tab_icons.cli import build_parser, main, observation_from_args
from tab_icons.models import DEFAULT_FALLBACK_ICON

CONFIG = """
    config:
      icon-color: "#cccccc"
    icons:
      git: "G"
    hosts:
      db1: "D"
"""


class TestObservationFromArgs:
    """Tests for observation_from_args()."""

    def test_command_line(self):
        args = build_parser().parse_args(["resolve", "--command", "ssh -p 22 user@db1"])
        observation = observation_from_args(args)
        assert observation.is_active
        assert observation.active_pane.process.argv == ("ssh", "-p", "22", "user@db1")
        assert observation.panes[0].foreground_process_name == "ssh"

    def test_inactive_with_domain(self):
        args = build_parser().parse_args(["resolve", "--inactive", "--domain", "SSH:db1"])
        observation = observation_from_args(args)
        assert not observation.is_active
        assert observation.active_pane.process is None
        assert observation.panes[0].domain_name == "SSH:db1"


class TestResolve:
    """Tests for the resolve subcommand."""

    def test_title(self, write_config, capsys):
        path = write_config(CONFIG)
        assert main(["--config", str(path), "resolve", "--title", "git status"]) == 0
        assert capsys.readouterr().out.strip() == "G"

    def test_ssh_command_json(self, write_config, capsys):
        path = write_config(CONFIG)
        code = main(["--config", str(path), "resolve", "-c", "ssh -p 22 user@db1", "--json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["icon"] == "D"
        assert data["source"] == "host"
        assert data["host"] == "db1"
        assert data["colors"] == {"icon": "#cccccc"}

    def test_overrides_file(self, write_config, capsys):
        path = write_config(CONFIG)
        overrides = write_config("""
            override_yaml = true
            [icons]
            git = "O"
        """, name="overrides.toml")
        code = main(["--config", str(path), "--overrides", str(overrides), "resolve", "-t", "git"])
        assert code == 0
        assert capsys.readouterr().out.strip() == "O"

    def test_invalid_overrides_file(self, write_config, capsys):
        path = write_config(CONFIG)
        overrides = write_config("[icons\n", name="overrides.toml")
        code = main(["--config", str(path), "--overrides", str(overrides), "resolve", "-t", "git"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_config_uses_fallback(self, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "missing.yml"), "resolve", "-t", "git"])
        assert code == 0
        assert capsys.readouterr().out.strip() == DEFAULT_FALLBACK_ICON

    def test_strict_missing_config(self, tmp_path, capsys):
        code = main(["--strict", "--config", str(tmp_path / "missing.yml"), "resolve"])
        assert code == 1
        assert "Config file not found" in capsys.readouterr().err


class TestDump:
    """Tests for the dump subcommand."""

    def test_summary(self, write_config, capsys):
        path = write_config(CONFIG)
        assert main(["--config", str(path), "dump"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["icons"] == 1
        assert summary["hosts_exact"] == 1
        assert summary["icon_color"] == "#cccccc"
        assert summary["source_path"] == str(path)
