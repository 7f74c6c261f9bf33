"""Value types: resolved configuration, color records and tab observations."""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

# Nerd Font nf-dev-terminal
DEFAULT_FALLBACK_ICON = "\ue795"


def _frozen_map(data: Mapping | None = None) -> Mapping:
    return MappingProxyType(dict(data or {}))


# =============================================================================
# Colors
# =============================================================================


@dataclass(frozen=True)
class ColorOverride:
    """Sparse per-host or per-app color record."""
    ring: str | None = None
    icon: str | None = None
    alert: str | None = None

    def is_empty(self) -> bool:
        return not (self.ring or self.icon or self.alert)

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "ColorOverride | None":
        """Build from config-style keys (``ring-color``/``ring_color``, ...).

        ``index-color`` is accepted as an alias of ``ring-color``. Empty
        strings are treated as absent; returns ``None`` when nothing is set.
        """
        def pick(*names):
            for name in names:
                for variant in (name, name.replace("-", "_")):
                    value = fields.get(variant)
                    if isinstance(value, str) and value:
                        return value
            return None

        override = cls(
            ring=pick("ring-color", "index-color"),
            icon=pick("icon-color"),
            alert=pick("alert-color"),
        )
        return None if override.is_empty() else override


@dataclass
class ColorHint:
    """Colors returned with an icon. Unset fields mean "renderer default"."""
    ring: str | None = None
    ring_active: str | None = None
    ring_inactive: str | None = None
    icon: str | None = None
    alert: str | None = None

    def as_dict(self) -> dict[str, str]:
        """Set fields only, keyed the way tab-title callbacks expect them."""
        names = {
            "ring": self.ring,
            "ringActive": self.ring_active,
            "ringInactive": self.ring_inactive,
            "icon": self.icon,
            "alert": self.alert,
        }
        return {k: v for k, v in names.items() if v}

    def ring_for(self, is_active: bool) -> str | None:
        """Ring color to paint: explicit ``ring`` first, then the state default."""
        if self.ring:
            return self.ring
        return self.ring_active if is_active else self.ring_inactive


# =============================================================================
# Resolved Configuration
# =============================================================================


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Fully merged configuration. Never mutated after build.

    Every mapping key is case-folded. Pattern lists keep declaration order.
    """
    fallback_icon: str = DEFAULT_FALLBACK_ICON
    prefer_host_icon: bool = True
    use_title_as_hostname: bool = False
    ring_color_active: str | None = None
    ring_color_inactive: str | None = None
    icon_color: str | None = None
    alert_color: str | None = None
    icon_map: Mapping[str, str] = field(default_factory=_frozen_map)
    sessions_map: Mapping[str, str] = field(default_factory=_frozen_map)
    title_exact_map: Mapping[str, str] = field(default_factory=_frozen_map)
    title_pattern_map: Mapping[str, tuple[tuple[str, str], ...]] = field(default_factory=_frozen_map)
    host_exact_map: Mapping[str, str] = field(default_factory=_frozen_map)
    host_pattern_list: tuple[tuple[str, str], ...] = ()
    host_color_exact_map: Mapping[str, ColorOverride] = field(default_factory=_frozen_map)
    host_color_pattern_list: tuple[tuple[str, ColorOverride], ...] = ()
    app_color_map: Mapping[str, ColorOverride] = field(default_factory=_frozen_map)
    source_path: Path | None = None

    def summary(self) -> dict[str, Any]:
        """Counts and globals, for logging and ``nerd-tab-icons dump``."""
        return {
            "source_path": str(self.source_path) if self.source_path else None,
            "fallback_icon": self.fallback_icon,
            "prefer_host_icon": self.prefer_host_icon,
            "use_title_as_hostname": self.use_title_as_hostname,
            "ring_color_active": self.ring_color_active,
            "ring_color_inactive": self.ring_color_inactive,
            "icon_color": self.icon_color,
            "alert_color": self.alert_color,
            "icons": len(self.icon_map),
            "sessions": len(self.sessions_map),
            "title_icons": len(self.title_exact_map),
            "title_patterns": sum(len(p) for p in self.title_pattern_map.values()),
            "hosts_exact": len(self.host_exact_map),
            "hosts_patterns": len(self.host_pattern_list),
            "app_colors": len(self.app_color_map),
        }


# =============================================================================
# Tab Observation
# =============================================================================


@dataclass(frozen=True)
class ProcessInfo:
    """Foreground process of a pane."""
    executable: str | None = None
    argv: tuple[str, ...] = ()
    name: str | None = None


@dataclass(frozen=True)
class ActivePane:
    """Live data of the tab's active pane; ``None`` fields mean "no data"."""
    title: str | None = None
    process: ProcessInfo | None = None


@dataclass(frozen=True)
class PaneInfo:
    """Snapshot of one pane of the tab (used when live data is missing)."""
    title: str | None = None
    domain_name: str | None = None
    foreground_process_name: str | None = None
    is_active: bool = False


@dataclass(frozen=True)
class TabObservation:
    """Everything the resolver may look at for one tab render."""
    is_active: bool = False
    active_pane: ActivePane | None = None
    tab_title: str | None = None
    panes: tuple[PaneInfo, ...] = ()

    def fallback_pane(self) -> PaneInfo | None:
        """The active entry of ``panes``, else the first one."""
        for pane in self.panes:
            if pane.is_active:
                return pane
        return self.panes[0] if self.panes else None
