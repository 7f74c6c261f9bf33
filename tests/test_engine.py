"""Tests for the lazy-loading engine."""

import threading

import pytest

from tab_icons.config_builder import build_configuration
from tab_icons.engine import TabIconEngine
from tab_icons.models import DEFAULT_FALLBACK_ICON, ActivePane, TabObservation

from conftest import config_lines

CONFIG = """
    config:
      fallback-icon: "F"
      icon-color: "#123456"
    icons:
      git: "G"
"""


class CountingLoader:
    """Loader stand-in that records how often it was called."""

    def __init__(self, text: str = CONFIG):
        self.text = text
        self.calls = []

    def __call__(self, config_path, overrides):
        self.calls.append((config_path, overrides))
        return build_configuration(config_lines(self.text), overrides)


def failing_loader(config_path, overrides):
    raise RuntimeError("boom")


def tab(title: str) -> TabObservation:
    return TabObservation(is_active=True, active_pane=ActivePane(title=title))


class TestLoading:
    """Tests for the unloaded -> loaded transition."""

    def test_lazy(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        assert not engine.is_loaded
        assert loader.calls == []
        assert engine.icon_for_title("git") == "G"
        assert engine.is_loaded

    def test_loads_once(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        engine.icon_for_title("git")
        engine.get_fallback_icon()
        engine.icon_and_colors_for_tab(tab("git"))
        assert len(loader.calls) == 1

    def test_loads_once_across_threads(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        threads = [threading.Thread(target=engine.icon_for_title, args=("git",)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(loader.calls) == 1

    def test_setup_before_load(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        assert engine.setup({"icons": {"vim": "V"}}) is True
        assert engine.icon_for_title("vim") == "V"
        assert loader.calls[0][1] == {"icons": {"vim": "V"}}

    def test_setup_after_load_is_ignored(self):
        engine = TabIconEngine(loader=CountingLoader())
        engine.ensure_loaded()
        assert engine.setup({"icons": {"vim": "V"}}) is False
        assert engine.icon_for_title("vim") == "F"

    def test_reload(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        assert engine.icon_for_title("git") == "G"
        loader.text = "icons:\n  git: \"H\""
        config = engine.reload()
        assert config.icon_map["git"] == "H"
        assert engine.icon_for_title("git") == "H"
        assert len(loader.calls) == 2


class TestFailures:
    """Resolution never raises."""

    def test_failing_loader(self):
        engine = TabIconEngine(loader=failing_loader)
        assert engine.icon_for_title("git") == DEFAULT_FALLBACK_ICON
        assert engine.get_fallback_icon() == DEFAULT_FALLBACK_ICON
        assert engine.get_global_icon_color() is None
        icon, colors = engine.icon_and_colors_for_tab(tab("git"))
        assert icon == DEFAULT_FALLBACK_ICON
        assert colors.as_dict() == {}

    def test_no_observation(self):
        engine = TabIconEngine(loader=CountingLoader())
        icon, colors = engine.icon_and_colors_for_tab(None)
        assert icon == "F"
        assert colors.as_dict() == {}

    def test_malformed_override_colors_keep_file_icons(self):
        loader = CountingLoader()
        engine = TabIconEngine(loader=loader)
        engine.setup({"hosts": {"db1": {"icon": "D", "colors": "red"}}})
        assert engine.icon_for_title("git") == "G"
        assert engine.icon_for_title("git") == "G"
        assert len(loader.calls) == 1

    def test_resolver_error_uses_configured_fallback(self, monkeypatch):
        engine = TabIconEngine(loader=CountingLoader())
        resolver = engine.ensure_loaded()

        def explode(observation):
            raise ValueError("bad observation")

        monkeypatch.setattr(resolver, "explain", explode)
        assert engine.explain(tab("git")).icon == "F"


class TestAccessors:
    """Tests for the auxiliary entry points."""

    def test_global_icon_color(self):
        engine = TabIconEngine(loader=CountingLoader())
        assert engine.get_global_icon_color() == "#123456"

    def test_fallback_icon(self):
        engine = TabIconEngine(loader=CountingLoader())
        assert engine.get_fallback_icon() == "F"

    def test_real_loader_with_missing_file(self, tmp_path):
        engine = TabIconEngine(config_path=tmp_path / "missing.yml")
        assert engine.get_fallback_icon() == DEFAULT_FALLBACK_ICON

    def test_real_loader_reads_file(self, write_config):
        engine = TabIconEngine(config_path=write_config(CONFIG))
        assert engine.icon_for_title("git status") == "G"


@pytest.mark.parametrize("title", ["", None])
def test_empty_title_gives_fallback(title):
    engine = TabIconEngine(loader=CountingLoader())
    assert engine.icon_for_title(title) == "F"
