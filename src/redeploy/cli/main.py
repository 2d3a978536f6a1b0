"""Main CLI entry point."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from redeploy import __version__


def config_option_parser() -> argparse.ArgumentParser:
    """
    Parent parser adding ``-c/--config`` to a subcommand.

    The default is suppressed so a path given before the subcommand is not
    reset when the subcommand itself does not repeat the option.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "-c", "--config",
        type=Path,
        metavar="PATH",
        default=argparse.SUPPRESS,
        help="Config file (default: ~/.redeploy/config.json)",
    )
    return parent


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="redeploy",
        description="Rebuild and redeploy actions whenever their files change",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  redeploy init                Create a default config
  redeploy watch               Watch actions and redeploy on change
  redeploy watch --local       Same, deploying to the local target
  redeploy deploy -u hello     Build and deploy one action
  redeploy config --json       Show configuration

Config: ~/.redeploy/config.json
Logs:   ~/.redeploy/redeploy.log
""",
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"redeploy {__version__}",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        metavar="PATH",
        help="Config file (default: ~/.redeploy/config.json)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        metavar="<command>",
        title="Commands",
    )

    # Register all command modules
    from redeploy.cli.commands import config, watch

    parents = [config_option_parser()]
    watch.register_commands(subparsers, parents)
    config.register_commands(subparsers, parents)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        if not args.quiet:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
