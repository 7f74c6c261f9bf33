"""Build a ResolvedConfiguration from config lines and programmatic overrides.

Sections of the config file::

    config:
      fallback-icon: ""
      prefer-host-icon: true
      ring-color: "#7aa2f7"
    icons:
      git: ""
      nvim:
        icon: ""
        icon-color: "#57a143"
        title:
          "*.py": ""
    sessions:
      work: ""
    title_icons:
      htop: ""
    hosts:
      "*.example.com": ""
      db1:
        icon: ""
        ring-color: "#f7768e"

Every section is read with the same per-entry extractor; the section only
decides where the extracted values land.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from .block_parser import Entry, find_block, iter_entries, scan_lines
from .models import DEFAULT_FALLBACK_ICON, ColorOverride, ResolvedConfiguration
from .patterns import is_wildcard
from .text_utils import parse_bool

SECTION_CONFIG = "config"
SECTION_ICONS = "icons"
SECTION_SESSIONS = "sessions"
SECTION_TITLE_ICONS = "title_icons"
SECTION_HOSTS = "hosts"

COLOR_KEYS = ("ring-color", "index-color", "icon-color", "alert-color")


# =============================================================================
# Per-Entry Extraction
# =============================================================================


@dataclass(frozen=True)
class EntryValue:
    """What one section entry contributes, whatever its shape."""
    icon: str | None = None
    colors: ColorOverride | None = None
    title_patterns: tuple[tuple[str, str], ...] = ()


def extract_entry(entry: Entry) -> EntryValue:
    """Flat ``key: icon`` or nested ``icon`` / color keys / ``title`` block."""
    if not entry.is_nested:
        return EntryValue(icon=entry.value)

    icon = None
    color_fields: dict[str, str] = {}
    title_patterns: list[tuple[str, str]] = []
    for child in iter_entries(entry.children):
        key = child.folded_key
        if key == "icon" and child.value:
            icon = child.value
        elif key == "title" and child.is_nested:
            for sub in iter_entries(child.children):
                if sub.value:
                    title_patterns.append((sub.key, sub.value))
        elif key in COLOR_KEYS and child.value:
            color_fields[key] = child.value

    return EntryValue(
        icon=icon,
        colors=ColorOverride.from_fields(color_fields),
        title_patterns=tuple(title_patterns),
    )


def extract_section(lines, label: str, on_entry: Callable[[str, EntryValue], None]) -> int:
    """Run ``on_entry(folded_key, value)`` for each entry of a top-level section.

    Returns the number of entries visited (0 when the section is absent).
    """
    block = find_block(lines, label)
    if not block:
        return 0
    count = 0
    for entry in iter_entries(block):
        on_entry(entry.folded_key, extract_entry(entry))
        count += 1
    return count


# =============================================================================
# Mutable Staging Area
# =============================================================================


@dataclass
class _Draft:
    fallback_icon: str = DEFAULT_FALLBACK_ICON
    prefer_host_icon: bool = True
    use_title_as_hostname: bool = False
    ring_color_active: str | None = None
    ring_color_inactive: str | None = None
    icon_color: str | None = None
    alert_color: str | None = None
    icon_map: dict[str, str] = field(default_factory=dict)
    sessions_map: dict[str, str] = field(default_factory=dict)
    title_exact_map: dict[str, str] = field(default_factory=dict)
    title_pattern_map: dict[str, tuple[tuple[str, str], ...]] = field(default_factory=dict)
    host_exact_map: dict[str, str] = field(default_factory=dict)
    host_pattern_list: list[tuple[str, str]] = field(default_factory=list)
    host_color_exact_map: dict[str, ColorOverride] = field(default_factory=dict)
    host_color_pattern_list: list[tuple[str, ColorOverride]] = field(default_factory=list)
    app_color_map: dict[str, ColorOverride] = field(default_factory=dict)
    # Global fields assigned by the config file
    file_globals: set[str] = field(default_factory=set)

    def freeze(self, source_path: Path | None) -> ResolvedConfiguration:
        return ResolvedConfiguration(
            fallback_icon=self.fallback_icon,
            prefer_host_icon=self.prefer_host_icon,
            use_title_as_hostname=self.use_title_as_hostname,
            ring_color_active=self.ring_color_active,
            ring_color_inactive=self.ring_color_inactive,
            icon_color=self.icon_color,
            alert_color=self.alert_color,
            icon_map=MappingProxyType(dict(self.icon_map)),
            sessions_map=MappingProxyType(dict(self.sessions_map)),
            title_exact_map=MappingProxyType(dict(self.title_exact_map)),
            title_pattern_map=MappingProxyType(dict(self.title_pattern_map)),
            host_exact_map=MappingProxyType(dict(self.host_exact_map)),
            host_pattern_list=tuple(self.host_pattern_list),
            host_color_exact_map=MappingProxyType(dict(self.host_color_exact_map)),
            host_color_pattern_list=tuple(self.host_color_pattern_list),
            app_color_map=MappingProxyType(dict(self.app_color_map)),
            source_path=source_path,
        )


# =============================================================================
# File Sections
# =============================================================================


def parse_global_settings(lines, draft: _Draft) -> None:
    """Apply the ``config:`` block. Later keys override earlier ones."""
    block = find_block(lines, SECTION_CONFIG)
    if not block:
        return

    for entry in iter_entries(block):
        key, value = entry.folded_key, entry.value
        if key == "fallback-icon" and value:
            draft.fallback_icon = value
            draft.file_globals.add("fallback_icon")
        elif key == "prefer-host-icon":
            draft.prefer_host_icon = parse_bool(value)
            draft.file_globals.add("prefer_host_icon")
        elif key == "use-title-as-hostname":
            draft.use_title_as_hostname = parse_bool(value)
            draft.file_globals.add("use_title_as_hostname")
        elif key in ("ring-color-active", "index-color-active") and value:
            draft.ring_color_active = value
            draft.file_globals.add("ring_color_active")
        elif key in ("ring-color-inactive", "index-color-inactive") and value:
            draft.ring_color_inactive = value
            draft.file_globals.add("ring_color_inactive")
        elif key in ("ring-color", "index-color") and value:
            if draft.ring_color_active is None:
                draft.ring_color_active = value
                draft.file_globals.add("ring_color_active")
            if draft.ring_color_inactive is None:
                draft.ring_color_inactive = value
                draft.file_globals.add("ring_color_inactive")
        elif key == "icon-color" and value:
            draft.icon_color = value
            draft.file_globals.add("icon_color")
        elif key == "alert-color" and value:
            draft.alert_color = value
            draft.file_globals.add("alert_color")


def _app_entry_handler(draft: _Draft, section: str) -> Callable[[str, EntryValue], None]:
    def on_entry(key: str, value: EntryValue) -> None:
        if value.icon:
            if section == SECTION_ICONS:
                draft.icon_map[key] = value.icon
            elif section == SECTION_SESSIONS:
                draft.sessions_map[key] = value.icon
            else:
                draft.title_exact_map[key] = value.icon
        if value.colors:
            draft.app_color_map.setdefault(key, value.colors)
        if value.title_patterns:
            draft.title_pattern_map.setdefault(key, value.title_patterns)
    return on_entry


def _host_entry_handler(draft: _Draft) -> Callable[[str, EntryValue], None]:
    def on_entry(key: str, value: EntryValue) -> None:
        if not value.icon:
            return
        if is_wildcard(key):
            draft.host_pattern_list.append((key, value.icon))
            if value.colors:
                draft.host_color_pattern_list.append((key, value.colors))
        else:
            draft.host_exact_map[key] = value.icon
            if value.colors:
                draft.host_color_exact_map[key] = value.colors
    return on_entry


def parse_sections(lines, draft: _Draft) -> dict[str, int]:
    """Fill the draft from every section. Returns per-section entry counts."""
    counts = {
        SECTION_ICONS: extract_section(lines, SECTION_ICONS, _app_entry_handler(draft, SECTION_ICONS)),
        SECTION_SESSIONS: extract_section(lines, SECTION_SESSIONS, _app_entry_handler(draft, SECTION_SESSIONS)),
        SECTION_TITLE_ICONS: extract_section(lines, SECTION_TITLE_ICONS, _app_entry_handler(draft, SECTION_TITLE_ICONS)),
        SECTION_HOSTS: extract_section(lines, SECTION_HOSTS, _host_entry_handler(draft)),
    }

    # Icons win over sessions with the same key
    for key, icon in draft.sessions_map.items():
        draft.icon_map.setdefault(key, icon)

    return counts


# =============================================================================
# Programmatic Overrides
# =============================================================================


def _override_entry(value: Any) -> EntryValue | None:
    """Normalize an override value: an icon string or an ``{icon, ...}`` record."""
    if isinstance(value, str):
        return EntryValue(icon=value or None)
    if not isinstance(value, Mapping):
        return None

    icon = value.get("icon")
    nested = value.get("colors")
    color_fields = dict(nested) if isinstance(nested, Mapping) else {}
    color_fields.update({k: v for k, v in value.items() if k != "colors"})
    title = value.get("title")
    patterns = ()
    if isinstance(title, Mapping):
        patterns = tuple(
            (str(p), str(i)) for p, i in title.items() if p and isinstance(i, str) and i
        )
    return EntryValue(
        icon=icon if isinstance(icon, str) and icon else None,
        colors=ColorOverride.from_fields(color_fields),
        title_patterns=patterns,
    )


def _override_items(section: Any) -> Iterable[tuple[str, Any]]:
    if not isinstance(section, Mapping):
        return ()
    return ((k.lower(), v) for k, v in section.items() if isinstance(k, str) and k)


def _apply_global_overrides(draft: _Draft, cfg: Mapping[str, Any], override: bool) -> None:
    def wins(name: str) -> bool:
        return override or name not in draft.file_globals

    def text(*names: str) -> str | None:
        for name in names:
            value = cfg.get(name)
            if isinstance(value, str) and value:
                return value
        return None

    fallback_icon = text("fallback_icon")
    if fallback_icon and wins("fallback_icon"):
        draft.fallback_icon = fallback_icon
    for name in ("prefer_host_icon", "use_title_as_hostname"):
        value = cfg.get(name)
        if value is not None and wins(name):
            setattr(draft, name, parse_bool(value) if isinstance(value, str) else bool(value))

    ring_active = text("ring_color_active", "index_color_active")
    if ring_active and wins("ring_color_active"):
        draft.ring_color_active = ring_active
    ring_inactive = text("ring_color_inactive", "index_color_inactive")
    if ring_inactive and wins("ring_color_inactive"):
        draft.ring_color_inactive = ring_inactive
    # With override_yaml a plain ring color replaces both states, except a
    # state the same override sets explicitly
    ring = text("ring_color", "index_color")
    if ring:
        if draft.ring_color_active is None or (override and not ring_active):
            draft.ring_color_active = ring
        if draft.ring_color_inactive is None or (override and not ring_inactive):
            draft.ring_color_inactive = ring

    for name in ("icon_color", "alert_color"):
        value = text(name)
        if value and wins(name):
            setattr(draft, name, value)


def _apply_host_override(draft: _Draft, key: str, value: EntryValue, override: bool) -> None:
    if not value.icon:
        return
    if is_wildcard(key):
        index = next((i for i, (pat, _) in enumerate(draft.host_pattern_list) if pat == key), None)
        if index is not None and not override:
            return
        colors = [(pat, c) for pat, c in draft.host_color_pattern_list if pat != key]
        if value.colors:
            colors.append((key, value.colors))
        draft.host_color_pattern_list = colors
        if index is None:
            draft.host_pattern_list.append((key, value.icon))
        else:
            draft.host_pattern_list[index] = (key, value.icon)
        return

    if key in draft.host_exact_map and not override:
        return
    draft.host_exact_map[key] = value.icon
    if value.colors:
        draft.host_color_exact_map[key] = value.colors
    else:
        draft.host_color_exact_map.pop(key, None)


def apply_overrides(draft: _Draft, overrides: Mapping[str, Any] | None) -> int:
    """Merge programmatic overrides into the draft.

    With ``override_yaml`` set, an override replaces a colliding key;
    otherwise it only fills keys the config file left absent. Returns the
    number of override entries considered.
    """
    if not overrides:
        return 0
    override = bool(overrides.get("override_yaml"))
    applied = 0

    def wins(mapping: Mapping, key: str) -> bool:
        return override or key not in mapping

    cfg = overrides.get("config")
    if isinstance(cfg, Mapping):
        _apply_global_overrides(draft, cfg, override)
        applied += 1

    for section in (SECTION_ICONS, SECTION_SESSIONS, SECTION_TITLE_ICONS):
        for key, raw in _override_items(overrides.get(section)):
            value = _override_entry(raw)
            if value is None:
                continue
            applied += 1
            if value.icon:
                if section == SECTION_TITLE_ICONS:
                    if wins(draft.title_exact_map, key):
                        draft.title_exact_map[key] = value.icon
                else:
                    if wins(draft.icon_map, key):
                        draft.icon_map[key] = value.icon
                    if section == SECTION_SESSIONS and wins(draft.sessions_map, key):
                        draft.sessions_map[key] = value.icon
            if value.colors and wins(draft.app_color_map, key):
                draft.app_color_map[key] = value.colors
            if value.title_patterns and wins(draft.title_pattern_map, key):
                draft.title_pattern_map[key] = value.title_patterns

    for key, raw in _override_items(overrides.get(SECTION_HOSTS)):
        value = _override_entry(raw)
        if value is None:
            continue
        applied += 1
        _apply_host_override(draft, key, value, override)

    for key, raw in _override_items(overrides.get("app_colors")):
        if not isinstance(raw, Mapping):
            continue
        colors = ColorOverride.from_fields(raw)
        applied += 1
        if colors and wins(draft.app_color_map, key):
            draft.app_color_map[key] = colors

    return applied


# =============================================================================
# Entry Point
# =============================================================================


def build_configuration(
    raw_lines: Iterable[str] | None,
    overrides: Mapping[str, Any] | None = None,
    source_path: Path | None = None,
) -> ResolvedConfiguration:
    """Parse config lines and merge overrides into one immutable snapshot.

    ``raw_lines`` may be ``None`` or empty (no config file); the result then
    holds only defaults and overrides.
    """
    start_time = time.perf_counter()
    draft = _Draft()
    lines = scan_lines(raw_lines or ())
    counts: dict[str, int] = {}

    if lines:
        parse_global_settings(lines, draft)
        counts = parse_sections(lines, draft)

    applied = apply_overrides(draft, overrides)
    config = draft.freeze(source_path)

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Configuration built",
        operation="build_configuration",
        status="success",
        source_path=str(source_path) if source_path else None,
        metrics={
            "significant_lines": len(lines),
            "overrides_applied": applied,
            "duration_ms": duration_ms,
            **{f"{k}_entries": v for k, v in counts.items()},
        }
    )
    return config
