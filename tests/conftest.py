# Test configuration for pytest
#
# Note: Tests require the package to be installed.
# Run `pip install -e .[test]` from the project root before running tests.

import textwrap

import pytest

from tab_icons.config_builder import build_configuration
from tab_icons.patterns import clear_pattern_cache
from tab_icons.resolver import IconResolver
from tab_icons.text_utils import clear_caches


@pytest.fixture(autouse=True)
def fresh_caches():
    """Memo tables are process-wide; start every test from empty ones."""
    clear_caches()
    clear_pattern_cache()
    yield
    clear_caches()
    clear_pattern_cache()


def config_lines(text: str) -> list[str]:
    return textwrap.dedent(text).strip("\n").splitlines()


@pytest.fixture
def make_resolver():
    """Build an IconResolver from YAML-ish text and optional overrides."""
    def factory(text: str = "", overrides=None) -> IconResolver:
        return IconResolver(build_configuration(config_lines(text), overrides))
    return factory


@pytest.fixture
def write_config(tmp_path):
    """Write a config file under tmp_path and return its path."""
    def factory(text: str, name: str = "config.yml"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path
    return factory
