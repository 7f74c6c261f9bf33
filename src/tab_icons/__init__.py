"""Nerd Font icons and color hints for terminal tabs."""

from .engine import (
    TabIconEngine,
    get_fallback_icon,
    get_global_icon_color,
    icon_and_colors_for_tab,
    icon_for_title,
    setup,
)
from .models import (
    ActivePane,
    ColorHint,
    ColorOverride,
    PaneInfo,
    ProcessInfo,
    ResolvedConfiguration,
    TabObservation,
)

__version__ = "1.0.0"

__all__ = [
    "ActivePane",
    "ColorHint",
    "ColorOverride",
    "PaneInfo",
    "ProcessInfo",
    "ResolvedConfiguration",
    "TabIconEngine",
    "TabObservation",
    "get_fallback_icon",
    "get_global_icon_color",
    "icon_and_colors_for_tab",
    "icon_for_title",
    "setup",
]
