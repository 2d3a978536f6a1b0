"""Configuration management commands."""

from __future__ import annotations

import argparse

from redeploy.cli.formatters import print_error, print_info, print_json, print_success


def cmd_init(args: argparse.Namespace) -> int:
    """Write a default configuration file."""
    from redeploy.core.config import Config
    from redeploy.utils.paths import get_config_file

    config_file = args.config or get_config_file()

    if config_file.exists() and not args.force:
        print_info(f"Config already exists: {config_file}")
        print_info("Use --force to overwrite")
        return 0

    if config_file.exists():
        config_file.unlink()
    config = Config(config_file).actions_src("actions").actions_dist("dist/actions").save()
    print_success(f"Created config: {config.path}")
    print_info("Edit this file to configure your build and deploy steps.")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show current configuration."""
    from redeploy.core.config import Config
    from redeploy.utils.paths import get_config_file

    config_file = args.config or get_config_file()

    if not config_file.exists():
        print_error(f"Config file not found: {config_file}")
        print_info("Create one with: redeploy init")
        return 1

    if args.json:
        print_json(Config(config_file)._to_dict())
    else:
        print(f"Config file: {config_file}")
        print()
        print(config_file.read_text())

    return 0


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def cmd_config_set(args: argparse.Namespace) -> int:
    """Set a configuration value."""
    from redeploy.core.config import Config

    key = args.key
    value = args.value

    config = Config(args.config)

    if key == "src":
        config.actions_src(value)
    elif key == "dist":
        config.actions_dist(value)
    elif key == "marker":
        config.marker(value)
    elif key == "build_command":
        config.build_command(*value.split())
    elif key == "deploy_command":
        config.deploy_command(*value.split())
    elif key == "deploy_webhook":
        config.deploy_webhook(value, token=config.data.deploy.token)
    elif key == "empty_unit_policy":
        config.empty_unit_policy(value)
    elif key == "log_level":
        config.log_level(value)
    else:
        print_error(f"Unknown config key: {key}")
        print_info(
            "Known keys: src, dist, marker, build_command, deploy_command, "
            "deploy_webhook, empty_unit_policy, log_level"
        )
        return 1

    config.save()
    print_success(f"Set {key} = {value}")
    return 0


def register_commands(
    subparsers: argparse._SubParsersAction,
    parents: list[argparse.ArgumentParser] | None = None,
) -> None:
    """Register configuration commands."""
    # init
    init_parser = subparsers.add_parser(
        "init",
        parents=parents or [],
        help="Create a default configuration",
    )
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config",
    )
    init_parser.set_defaults(func=cmd_init)

    # config command group
    config_parser = subparsers.add_parser(
        "config",
        parents=parents or [],
        help="Show or manage configuration",
    )
    config_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    config_parser.set_defaults(func=cmd_config)

    config_subparsers = config_parser.add_subparsers(
        dest="config_command",
        metavar="<command>",
    )

    # config set
    set_parser = config_subparsers.add_parser(
        "set",
        parents=parents or [],
        help="Set a config value",
    )
    set_parser.add_argument("key", help="Config key to set")
    set_parser.add_argument("value", help="Value to set")
    set_parser.set_defaults(func=cmd_config_set)
