"""Command-line diagnostics for the icon configuration.

Examples:
    nerd-tab-icons resolve --title "git status"
    nerd-tab-icons resolve --command "ssh -p 22 user@db1.example.com"
    nerd-tab-icons resolve --domain "SSH:db1" --inactive --json
    nerd-tab-icons dump --config ~/.config/nerd-icons/config.yml
"""

import argparse
import json
import sys
from pathlib import Path

from .config_loader import load_configuration, load_overrides_file, resolve_config_path
from .iterm2_adapter import split_command_line
from .logging_config import setup_logger
from .models import ActivePane, PaneInfo, ProcessInfo, TabObservation
from .resolver import IconResolver


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nerd-tab-icons",
        description="Resolve Nerd Font tab icons and colors",
    )
    parser.add_argument("--config", type=Path, help="Config file (default: env or ~/.config/nerd-icons/config.yml)")
    parser.add_argument("--overrides", type=Path, help="TOML overrides file")
    parser.add_argument("--strict", action="store_true", help="Fail when the config file is missing")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve the icon for a tab")
    resolve.add_argument("--title", "-t", default="", help="Active pane title")
    resolve.add_argument("--command", "-c", default="", help="Foreground command line (argv)")
    resolve.add_argument("--process", "-p", default="", help="Foreground process name")
    resolve.add_argument("--domain", "-d", default="", help="Pane domain name")
    resolve.add_argument("--tab-title", default="", help="Tab title override")
    resolve.add_argument("--inactive", action="store_true", help="Resolve as an inactive tab")
    resolve.add_argument("--json", action="store_true", help="Print the full resolution as JSON")

    sub.add_parser("dump", help="Print a summary of the resolved configuration")
    return parser


def observation_from_args(args: argparse.Namespace) -> TabObservation:
    argv = split_command_line(args.command)
    process = None
    if argv or args.process:
        process = ProcessInfo(
            executable=argv[0] if argv else args.process,
            argv=argv,
            name=args.process or None,
        )
    return TabObservation(
        is_active=not args.inactive,
        active_pane=ActivePane(title=args.title or None, process=process),
        tab_title=args.tab_title or None,
        panes=(PaneInfo(
            title=args.title or None,
            domain_name=args.domain or None,
            foreground_process_name=args.process or (argv[0] if argv else None),
            is_active=True,
        ),),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(level="DEBUG" if args.debug else "WARNING", log_to_file=False)

    config_path = args.config.expanduser() if args.config else resolve_config_path()
    if args.strict and not config_path.is_file():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return 1

    overrides = None
    if args.overrides:
        result = load_overrides_file(args.overrides)
        if result.is_err():
            print(f"Error: {result.error.message}", file=sys.stderr)
            return 1
        overrides = result.value

    config = load_configuration(config_path=config_path, overrides=overrides)

    if args.command == "dump":
        print(json.dumps(config.summary(), ensure_ascii=False, indent=2))
        return 0

    resolution = IconResolver(config).explain(observation_from_args(args))
    if args.json:
        print(json.dumps(resolution.to_dict(), ensure_ascii=False))
    else:
        print(resolution.icon)
    return 0


if __name__ == "__main__":
    sys.exit(main())
