"""Structured logging setup (JSONL format)."""

import json
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

APP_NAME = "nerd-tab-icons"

# Correlation ID for one daemon/CLI run
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def json_sink(message):
    """JSONL sink - writes to stderr (iTerm2 Script Console)."""
    record = message.record
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status", None),
        "trace_id": record["extra"].get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                   if k not in ("operation", "status", "trace_id", "metrics")},
        "metrics": record["extra"].get("metrics", {}),
        "error": None
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = []
        if exc_tb:
            tb_lines = traceback.format_tb(exc_tb)

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines
        }

    try:
        sys.stderr.write(json.dumps(log_entry, default=str, ensure_ascii=False) + "\n")
    except (OSError, TypeError, ValueError) as e:
        try:
            sys.stderr.write(f"[LOG_ERROR] Failed to write log: {e}\n")
        except OSError:
            pass


def setup_logger(appname: str = APP_NAME, level: str = "INFO", log_to_file: bool = True):
    """Configure Loguru for machine-readable JSONL output.

    Args:
        appname: Directory name used under the platform log dir.
        level: Minimum level for the stderr sink.
        log_to_file: Also write a rotating DEBUG log file.
    """
    logger.remove()

    logger.add(
        json_sink,
        level=level
    )

    if log_to_file:
        # macOS: ~/Library/Logs/nerd-tab-icons/
        # Linux: ~/.local/state/nerd-tab-icons/log/
        log_dir = Path(platformdirs.user_log_dir(
            appname=appname,
            ensure_exists=True
        ))

        logger.add(
            str(log_dir / "tab-icons.jsonl"),
            format="{message}",
            serialize=True,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG"
        )

    return logger
