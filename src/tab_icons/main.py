"""iTerm2 AutoLaunch daemon.

Registers a session title provider that prefixes the automatic title with
its resolved icon, and repaints tab colors whenever the selected tab
changes.

Installation:
1. ``uv pip install nerd-tab-icons`` into the iTerm2 script environment
2. Symlink ``autolaunch.py`` into
   ``~/Library/Application Support/iTerm2/Scripts/AutoLaunch/``
3. Pick "Nerd Tab Icon" under Profiles > General > Title

Logs:
- Console: stderr (iTerm2 Script Console)
- File: ~/Library/Logs/nerd-tab-icons/tab-icons.jsonl
"""

import asyncio
from uuid import uuid4

import iterm2
from loguru import logger

from .config_loader import load_overrides_file
from .engine import TabIconEngine, default_engine
from .errors import ErrorReport
from .iterm2_adapter import observation_from_variables, paint_window_tabs
from .logging_config import setup_logger, trace_id_var

TITLE_PROVIDER_NAME = "Nerd Tab Icon"
TITLE_PROVIDER_ID = "com.github.nerd-tab-icons.title"


def format_title(icon: str, auto_name: str | None) -> str:
    if not auto_name:
        return icon
    return f"{icon} {auto_name}"


def prepare_engine(engine: TabIconEngine, report: ErrorReport) -> TabIconEngine:
    """Apply the overrides file and load the configuration once."""
    result = load_overrides_file()
    if report.collect_result(result, as_warning=True):
        engine.setup(result.value or None)
    engine.ensure_loaded()
    return engine


async def paint_all_windows(connection, engine: TabIconEngine) -> int:
    app = await iterm2.async_get_app(connection)
    painted = 0
    for window in app.terminal_windows:
        painted += await paint_window_tabs(engine, window)
    return painted


async def main(connection):
    """Register the title provider, paint tabs, then follow focus changes."""
    main_trace_id = str(uuid4())
    trace_id_var.set(main_trace_id)
    report = ErrorReport()
    engine = prepare_engine(default_engine, report)

    logger.info(
        "Tab icon daemon starting",
        operation="main",
        status="started",
        trace_id=main_trace_id,
        metrics=engine.config.summary()
    )

    @iterm2.TitleProviderRPC
    async def nerd_tab_title(
        auto_name=iterm2.Reference("autoName?"),
        job_name=iterm2.Reference("jobName?"),
        command_line=iterm2.Reference("commandLine?"),
        hostname=iterm2.Reference("hostname?"),
    ):
        observation = observation_from_variables(auto_name, job_name, command_line, hostname)
        icon, _colors = engine.icon_and_colors_for_tab(observation)
        return format_title(icon, auto_name)

    await nerd_tab_title.async_register(
        connection,
        display_name=TITLE_PROVIDER_NAME,
        unique_identifier=TITLE_PROVIDER_ID
    )

    painted = await paint_all_windows(connection, engine)
    report.log_summary(main_trace_id)
    logger.info(
        "Tab icon daemon ready",
        operation="main",
        status="ready",
        trace_id=main_trace_id,
        metrics={"tabs_painted": painted}
    )

    try:
        async with iterm2.FocusMonitor(connection) as monitor:
            while True:
                update = await monitor.async_get_next_update()
                if update.selected_tab_changed is None:
                    continue
                app = await iterm2.async_get_app(connection)
                window = app.current_terminal_window
                await paint_window_tabs(engine, window)
    except asyncio.CancelledError:
        logger.info(
            "Tab icon daemon cancelled",
            operation="main",
            status="cancelled",
            trace_id=main_trace_id
        )
        raise


def run():
    """Entry point for the AutoLaunch script."""
    setup_logger()
    iterm2.run_forever(main)
