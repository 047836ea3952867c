"""CLI entrypoints for cargo-usage-rules commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Sequence

from .config import ConfigError, UsageRulesConfig, load_config
from .errors import UsageRulesError
from .logging import configure_logging, get_logger
from .orchestrator import (
    DEFAULT_LINK_FOLDER,
    DEFAULT_OUTPUT,
    Orchestrator,
    SyncOptions,
    format_listing,
)

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def _comma_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo-usage-rules",
        description="Aggregate usage-rules.md files from Rust dependencies.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .usage-rules.yml file (defaults to the current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    usage_rules_parser = commands.add_parser(
        "usage-rules",
        help="Aggregate usage rules from dependencies.",
    )
    _add_verbose_option(usage_rules_parser, suppress_default=True)
    subcommands = usage_rules_parser.add_subparsers(dest="subcommand", required=True)

    sync_parser = subcommands.add_parser(
        "sync",
        help="Sync usage rules from dependencies into the output file.",
    )
    _add_verbose_option(sync_parser, suppress_default=True)
    sync_parser.add_argument(
        "--all",
        dest="include_all",
        action="store_true",
        help="Include all dependencies (write the output even when none are selected).",
    )
    sync_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help=f"Output file path (defaults to {DEFAULT_OUTPUT}).",
    )
    sync_parser.add_argument(
        "--linked",
        type=_parse_bool,
        nargs="?",
        const=True,
        default=None,
        metavar="BOOL",
        help="Copy package files into the link folder and link to them (default: true).",
    )
    sync_parser.add_argument(
        "--link-folder",
        type=Path,
        default=None,
        help=f"Folder path for linked mode files (defaults to {DEFAULT_LINK_FOLDER}).",
    )
    sync_parser.add_argument(
        "--inline",
        type=_comma_list,
        action="extend",
        default=None,
        metavar="PACKAGES",
        help="Comma-separated list of package names to inline (even in linked mode).",
    )
    sync_parser.add_argument(
        "--remove",
        type=_comma_list,
        action="extend",
        default=None,
        metavar="PACKAGES",
        help="Comma-separated list of package names to exclude.",
    )

    list_parser = subcommands.add_parser(
        "list",
        help="List all dependencies that have usage-rules.md files.",
    )
    _add_verbose_option(list_parser, suppress_default=True)

    return parser


def _merge_names(*groups: Sequence[str] | None) -> List[str]:
    merged: List[str] = []
    for group in groups:
        for name in group or ():
            if name not in merged:
                merged.append(name)
    return merged


def _resolve_sync_options(args: argparse.Namespace, config: UsageRulesConfig) -> SyncOptions:
    """Combine CLI flags with .usage-rules.yml values; explicit flags win."""
    linked = args.linked
    if linked is None:
        linked = config.linked if config.linked is not None else True
    return SyncOptions(
        output=args.output or config.output or DEFAULT_OUTPUT,
        linked=linked,
        link_folder=args.link_folder or config.link_folder or DEFAULT_LINK_FOLDER,
        include_all=bool(args.include_all),
        remove=_merge_names(config.remove, args.remove),
        inline=_merge_names(config.inline, args.inline),
    )


def main(argv: list[str] | None = None, *, orchestrator: Orchestrator | None = None) -> None:
    """CLI entrypoint for cargo-usage-rules commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(args.config or Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"Error: {exc}\n")
    logger.debug("Using configuration root %s", config.root)

    orchestrator = orchestrator or Orchestrator()

    if args.subcommand == "sync":
        options = _resolve_sync_options(args, config)
        try:
            outcome = orchestrator.run_sync(options)
        except UsageRulesError as exc:
            parser.exit(1, f"Error: {exc}\n")
        if not outcome.written:
            return
        if outcome.link_folder is not None:
            print(
                f"✓ Successfully wrote usage rules to {outcome.output} "
                f"(linked mode: {outcome.link_folder})"
            )
        else:
            print(f"✓ Successfully wrote usage rules to {outcome.output}")
    elif args.subcommand == "list":
        try:
            usage_rules = orchestrator.run_list()
        except UsageRulesError as exc:
            parser.exit(1, f"Error: {exc}\n")
        print(format_listing(usage_rules))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
