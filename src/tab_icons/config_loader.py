"""Configuration file discovery and loading.

The config file is read once, best-effort. Any failure degrades to
"defaults only"; nothing here raises to a render callback.
"""

import os
import re
import time
import tomllib
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from .config_builder import build_configuration
from .errors import Error, ErrorType, Result
from .models import ResolvedConfiguration

# =============================================================================
# Paths
# =============================================================================

CONFIG_ENV_VARS = ("KITTY_ICON_CONFIG", "WAYBAR_ICON_CONFIG")
DEFAULT_CONFIG_PATH = Path("~/.config/nerd-icons/config.yml")
OVERRIDES_PATH = Path("~/.config/nerd-icons/overrides.toml")


def resolve_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Config path from the environment, else the default under ``~``.

    An environment variable is only honoured when it names an existing file.
    """
    environ = os.environ if environ is None else environ
    for name in CONFIG_ENV_VARS:
        value = environ.get(name)
        if not value:
            continue
        candidate = Path(value).expanduser()
        if candidate.is_file():
            logger.debug(
                "Config path from environment",
                operation="resolve_config_path",
                status="env",
                variable=name,
                config_path=str(candidate)
            )
            return candidate
    return DEFAULT_CONFIG_PATH.expanduser()


# =============================================================================
# Reading
# =============================================================================


def read_config_lines(config_path: Path) -> Result[list[str]]:
    """Read the config file as UTF-8 lines."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        return Result.err(Error(
            error_type=ErrorType.FILE_NOT_FOUND,
            message=f"Config file not found: {config_path}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))
    except PermissionError as e:
        return Result.err(Error(
            error_type=ErrorType.PERMISSION_ERROR,
            message=f"Config file not readable: {config_path}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))
    except UnicodeDecodeError as e:
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=f"Config file is not valid UTF-8: {config_path}",
            context={"config_path": str(config_path), "byte_offset": e.start},
            original_exception=e
        ))
    except OSError as e:
        return Result.err(Error(
            error_type=ErrorType.FILE_NOT_FOUND,
            message=f"Config file unreachable: {config_path}",
            context={"config_path": str(config_path), "os_error": str(e)},
            original_exception=e
        ))
    return Result.ok(text.splitlines())


def extract_toml_error_context(error: tomllib.TOMLDecodeError, file_path: Path) -> dict:
    """Line number and content for a TOML parse error."""
    error_str = str(error)
    line_number = None
    line_content = None

    line_match = re.search(r"line\s+(\d+)", error_str, re.IGNORECASE)
    if line_match:
        line_number = int(line_match.group(1))

    if line_number:
        try:
            lines = file_path.read_text(encoding="utf-8").splitlines()
            if 0 < line_number <= len(lines):
                line_content = lines[line_number - 1].rstrip()
        except (OSError, UnicodeDecodeError):
            pass

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"TOML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str
    }


def load_overrides_file(overrides_path: Path | None = None) -> Result[dict]:
    """Load programmatic overrides from a TOML file.

    The file mirrors the override dict: ``override_yaml = true``,
    ``[config]``, ``[icons]``, ``[hosts]``, ``[hosts."*.prod"]``, ...
    A missing file is ``Ok({})``.
    """
    path = (overrides_path or OVERRIDES_PATH).expanduser()
    if not path.exists():
        logger.debug(
            "Overrides file does not exist, using none",
            operation="load_overrides_file",
            status="default",
            file=str(path)
        )
        return Result.ok({})

    try:
        with open(path, "rb") as f:
            overrides = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, path)
        logger.error(
            "Invalid TOML syntax in overrides file",
            operation="load_overrides_file",
            status="failed",
            file=str(path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=error_context["formatted_message"],
            context={"overrides_path": str(path), "line_number": error_context["line_number"]},
            original_exception=e
        ))
    except OSError as e:
        return Result.err(Error(
            error_type=ErrorType.PERMISSION_ERROR,
            message=f"Overrides file not readable: {path}",
            context={"overrides_path": str(path), "os_error": str(e)},
            original_exception=e
        ))

    logger.debug(
        "Overrides loaded successfully",
        operation="load_overrides_file",
        status="success",
        file=str(path),
        sections=sorted(k for k in overrides if k != "override_yaml")
    )
    return Result.ok(overrides)


# =============================================================================
# Loading
# =============================================================================


def load_configuration(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ResolvedConfiguration:
    """Read the config file (if any) and build the resolved configuration.

    Args:
        config_path: Explicit file; skips environment/default lookup.
        overrides: Programmatic overrides merged after the file.
        environ: Environment used for path lookup (defaults to os.environ).

    Returns:
        ResolvedConfiguration; defaults plus overrides when the file is
        missing or unreadable.
    """
    start_time = time.perf_counter()
    path = config_path.expanduser() if config_path else resolve_config_path(environ)

    result = read_config_lines(path)
    if result.is_ok():
        lines = result.value
        source_path = path
    else:
        lines = []
        source_path = None
        log = logger.debug if result.error.error_type == ErrorType.FILE_NOT_FOUND else logger.warning
        log(
            "Config file unavailable, using defaults",
            operation="load_configuration",
            status="fallback",
            error_type=result.error.error_type.value,
            error=result.error.message,
            **result.error.context
        )

    config = build_configuration(lines, overrides, source_path=source_path)

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Configuration loaded",
        operation="load_configuration",
        status="success" if source_path else "defaults",
        config_path=str(path),
        metrics={"line_count": len(lines), "duration_ms": duration_ms}
    )
    return config
