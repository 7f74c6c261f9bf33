"""iTerm2 side of the engine: observations in, tab colors out.

Introspection calls may fail at any time (session gone, API disabled); each
failure is treated as "no data" for that field.
"""

import platform
import re
import shlex

import iterm2
from loguru import logger

from .engine import TabIconEngine
from .models import ActivePane, ColorHint, PaneInfo, ProcessInfo, TabObservation
from .text_utils import cached_lower

INTROSPECTION_ERRORS = (iterm2.RPCException, AttributeError, TypeError)

HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


# =============================================================================
# Pure Helpers
# =============================================================================


def split_command_line(command_line: str | None) -> tuple[str, ...]:
    """argv from iTerm2's ``commandLine`` variable."""
    if not command_line:
        return ()
    try:
        return tuple(shlex.split(command_line))
    except ValueError:
        return tuple(command_line.split())


def is_local_hostname(hostname: str | None) -> bool:
    """True when ``hostname`` names this machine (short or qualified)."""
    if not hostname:
        return True
    local = cached_lower(platform.node())
    remote = cached_lower(hostname)
    return remote in ("localhost", local) or remote.split(".")[0] == local.split(".")[0]


def parse_hex_color(text: str | None) -> tuple[int, int, int] | None:
    """``#rgb`` / ``#rrggbb`` to an RGB triple; anything else is ``None``."""
    if not text:
        return None
    match = HEX_COLOR_RE.match(text.strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))


def observation_from_variables(
    auto_name: str | None,
    job_name: str | None,
    command_line: str | None,
    hostname: str | None = None,
    tab_title: str | None = None,
    is_active: bool = True,
) -> TabObservation:
    """Tab observation from iTerm2 session variables.

    The session's remote ``hostname`` (shell integration) plays the role of
    a domain name; the local machine's own name is ignored.
    """
    argv = split_command_line(command_line)
    process = None
    if job_name or argv:
        process = ProcessInfo(
            executable=argv[0] if argv else job_name,
            argv=argv,
            name=job_name or None,
        )
    domain = None if is_local_hostname(hostname) else hostname
    return TabObservation(
        is_active=is_active,
        active_pane=ActivePane(title=auto_name or None, process=process),
        tab_title=tab_title or None,
        panes=(PaneInfo(
            title=auto_name or None,
            domain_name=domain,
            foreground_process_name=job_name or None,
            is_active=True,
        ),),
    )


# =============================================================================
# Session Introspection
# =============================================================================


async def safe_get_variable(target, name: str):
    """``async_get_variable`` that answers ``None`` instead of raising."""
    try:
        return await target.async_get_variable(name)
    except INTROSPECTION_ERRORS as e:
        logger.debug(
            "Could not query variable",
            operation="safe_get_variable",
            status="no_data",
            variable=name,
            error=str(e),
            error_type=type(e).__name__
        )
        return None


async def observe_session(session, tab=None, is_active: bool = True) -> TabObservation:
    """Collect a TabObservation for one iTerm2 session."""
    auto_name = await safe_get_variable(session, "autoName")
    job_name = await safe_get_variable(session, "jobName")
    command_line = await safe_get_variable(session, "commandLine")
    hostname = await safe_get_variable(session, "hostname")
    tab_title = await safe_get_variable(tab, "titleOverride") if tab is not None else None
    return observation_from_variables(
        auto_name=auto_name,
        job_name=job_name,
        command_line=command_line,
        hostname=hostname,
        tab_title=tab_title,
        is_active=is_active,
    )


# =============================================================================
# Tab Coloring
# =============================================================================


async def apply_tab_color(session, colors: ColorHint, is_active: bool) -> bool:
    """Paint the tab of ``session`` with its ring color. Returns True if set."""
    rgb = parse_hex_color(colors.ring_for(is_active))
    if rgb is None:
        return False

    change = iterm2.LocalWriteOnlyProfile()
    change.set_tab_color(iterm2.Color(*rgb))
    change.set_use_tab_color(True)
    try:
        await session.async_set_profile_properties(change)
    except INTROSPECTION_ERRORS as e:
        logger.warning(
            "Failed to set tab color",
            operation="apply_tab_color",
            status="failed",
            session_id=getattr(session, "session_id", "unknown"),
            error=str(e)
        )
        return False
    return True


async def paint_window_tabs(engine: TabIconEngine, window) -> int:
    """Recolor every tab of ``window``. Returns the number of tabs painted."""
    if window is None:
        return 0
    current = window.current_tab
    current_id = current.tab_id if current is not None else None
    painted = 0

    for tab in window.tabs:
        session = tab.current_session
        if session is None:
            continue
        is_active = tab.tab_id == current_id
        observation = await observe_session(session, tab, is_active=is_active)
        icon, colors = engine.icon_and_colors_for_tab(observation)
        if await apply_tab_color(session, colors, is_active):
            painted += 1
        logger.debug(
            "Tab painted",
            operation="paint_window_tabs",
            tab_id=tab.tab_id,
            icon=icon,
            is_active=is_active,
            colors=colors.as_dict()
        )

    return painted
