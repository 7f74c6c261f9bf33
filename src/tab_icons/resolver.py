"""Icon and color resolution for one tab.

Priority chain (first hit wins):

1. Host icon, when ``prefer_host_icon`` is on and a remote host is detected
   (exact host key, then wildcard keys in declaration order).
2. ``title_icons``: exact title, then any key contained in the title.
3. ``title:`` patterns of icon entries, in declaration order.
4. Icon map: each title token exactly, then any key contained in the title.
5. The fallback icon.

Colors: host or app overrides first, global defaults for whatever is left.
"""

from dataclasses import dataclass, field

from loguru import logger

from .host_detection import (
    extract_at_host,
    extract_host_from_title,
    host_from_argv,
    is_ssh_process,
    looks_like_hostname,
    parse_domain_host,
)
from .models import ColorHint, ColorOverride, PaneInfo, ResolvedConfiguration, TabObservation
from .patterns import match_host, match_title
from .text_utils import cached_lower, extract_proc_name, tokenize_title

SOURCE_HOST = "host"
SOURCE_TITLE_EXACT = "title_exact"
SOURCE_TITLE_PATTERN = "title_pattern"
SOURCE_ICON_MAP = "icon_map"
SOURCE_FALLBACK = "fallback"


@dataclass
class Resolution:
    """Outcome of one resolution, with the evidence used."""
    icon: str
    colors: ColorHint = field(default_factory=ColorHint)
    source: str = SOURCE_FALLBACK
    host: str | None = None
    title: str = ""

    def to_dict(self) -> dict:
        return {
            "icon": self.icon,
            "colors": self.colors.as_dict(),
            "source": self.source,
            "host": self.host,
            "title": self.title,
        }


class IconResolver:
    """Resolution engine bound to one immutable configuration."""

    def __init__(self, config: ResolvedConfiguration):
        self.config = config

    # =========================================================================
    # Title
    # =========================================================================

    @staticmethod
    def acquire_title(observation: TabObservation) -> str:
        """Title used for icon lookup; empty string when nothing is known.

        Active tab: the active pane's live title, else its process name.
        Otherwise the tab's own title, else the fallback pane's title or
        process name.
        """
        pane = observation.active_pane
        if observation.is_active and pane is not None:
            if pane.title:
                return pane.title
            process = pane.process
            if process is not None:
                name = process.name or extract_proc_name(process.executable)
                if name:
                    return name

        if observation.tab_title:
            return observation.tab_title

        info = observation.fallback_pane()
        if info is not None:
            if info.title:
                return info.title
            name = extract_proc_name(info.foreground_process_name)
            if name:
                return name
        return ""

    # =========================================================================
    # Host Detection
    # =========================================================================

    def _host_from_active_pane(self, observation: TabObservation) -> str | None:
        pane = observation.active_pane
        process = pane.process if pane is not None else None
        executable = process.executable if process is not None else None

        if self.config.use_title_as_hostname and pane.title:
            host = extract_host_from_title(pane.title)
            if host:
                return host
            if is_ssh_process(executable) and looks_like_hostname(pane.title):
                return pane.title

        if process is not None:
            host = host_from_argv(executable, process.argv)
            if host:
                return host

        if is_ssh_process(executable):
            return extract_at_host(pane.title)
        return None

    def _host_from_pane_info(self, info: PaneInfo) -> str | None:
        ssh_process = is_ssh_process(info.foreground_process_name)

        if self.config.use_title_as_hostname and info.title:
            host = extract_host_from_title(info.title)
            if host:
                return host
            if ssh_process and looks_like_hostname(info.title):
                return info.title

        host = parse_domain_host(info.domain_name)
        if host:
            return host

        if ssh_process:
            return extract_at_host(info.title)
        return None

    def detect_host(self, observation: TabObservation) -> str | None:
        """Remote host for the tab, or ``None``.

        Active tabs look at the active pane (title rules when
        ``use_title_as_hostname``, then the ssh/mosh argv, then an ``@host``
        fragment of an ssh-family title). Then the fallback pane's title,
        domain name and ``@host`` fragment are tried.
        """
        host = None
        if observation.is_active and observation.active_pane is not None:
            host = self._host_from_active_pane(observation)

        if not host:
            info = observation.fallback_pane()
            if info is not None:
                host = self._host_from_pane_info(info)

        return host or None

    # =========================================================================
    # Lookups
    # =========================================================================

    def match_host_icon(self, host: str | None) -> tuple[str | None, ColorOverride | None]:
        """Icon and colors for a host: exact key first, then wildcard keys."""
        if not host:
            return None, None
        key = cached_lower(host)
        config = self.config

        icon = config.host_exact_map.get(key)
        if icon:
            return icon, config.host_color_exact_map.get(key)

        for pattern, pattern_icon in config.host_pattern_list:
            if match_host(pattern, key):
                colors = None
                for color_pattern, color_override in config.host_color_pattern_list:
                    if match_host(color_pattern, key):
                        colors = color_override
                        break
                return pattern_icon, colors
        return None, None

    def match_title_pattern(self, title: str) -> str | None:
        for patterns in self.config.title_pattern_map.values():
            for pattern, icon in patterns:
                if match_title(pattern, title):
                    return icon
        return None

    def lookup_title(self, title: str | None) -> tuple[str, str]:
        """``(icon, source)`` for a title alone."""
        config = self.config
        if not title:
            return config.fallback_icon, SOURCE_FALLBACK
        title_lc = cached_lower(title)

        icon = config.title_exact_map.get(title_lc)
        if icon:
            return icon, SOURCE_TITLE_EXACT
        for key, key_icon in config.title_exact_map.items():
            if key in title_lc:
                return key_icon, SOURCE_TITLE_EXACT

        icon = self.match_title_pattern(title)
        if icon:
            return icon, SOURCE_TITLE_PATTERN

        if config.icon_map:
            for candidate in tokenize_title(title):
                icon = config.icon_map.get(cached_lower(candidate))
                if icon:
                    return icon, SOURCE_ICON_MAP
            for key, key_icon in config.icon_map.items():
                if key in title_lc:
                    return key_icon, SOURCE_ICON_MAP

        return config.fallback_icon, SOURCE_FALLBACK

    def icon_for_title(self, title: str | None) -> str:
        return self.lookup_title(title)[0]

    def app_colors_for_title(self, title: str | None) -> ColorOverride | None:
        if not title or not self.config.app_color_map:
            return None
        for candidate in tokenize_title(title):
            colors = self.config.app_color_map.get(cached_lower(candidate))
            if colors:
                return colors
        return None

    # =========================================================================
    # Colors
    # =========================================================================

    def assemble_colors(self, override: ColorOverride | None) -> ColorHint:
        """Layer an override over the global defaults; unknown stays unset."""
        config = self.config
        hint = ColorHint()
        if override is not None:
            hint.ring = override.ring
            hint.icon = override.icon
            hint.alert = override.alert
        hint.ring_active = config.ring_color_active
        hint.ring_inactive = config.ring_color_inactive
        hint.icon = hint.icon or config.icon_color
        hint.alert = hint.alert or config.alert_color
        return hint

    # =========================================================================
    # Entry Points
    # =========================================================================

    def explain(self, observation: TabObservation) -> Resolution:
        """Resolve a tab and report which rule produced the icon."""
        title = self.acquire_title(observation)
        host = self.detect_host(observation)

        if self.config.prefer_host_icon and host:
            icon, host_colors = self.match_host_icon(host)
            if icon:
                return Resolution(
                    icon=icon,
                    colors=self.assemble_colors(host_colors),
                    source=SOURCE_HOST,
                    host=host,
                    title=title,
                )

        icon, source = self.lookup_title(title)
        resolution = Resolution(
            icon=icon,
            colors=self.assemble_colors(self.app_colors_for_title(title)),
            source=source,
            host=host,
            title=title,
        )
        logger.trace(
            "Tab resolved",
            operation="explain",
            status=source,
            host=host,
            title=title
        )
        return resolution

    def icon_and_colors_for_tab(self, observation: TabObservation) -> tuple[str, ColorHint]:
        resolution = self.explain(observation)
        return resolution.icon, resolution.colors
