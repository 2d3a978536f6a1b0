"""Watch, build and deploy commands."""

from __future__ import annotations

import argparse
from typing import Optional

from redeploy.cli.formatters import print_error, print_info, print_success


def _load(args: argparse.Namespace):
    """Load the config and set up diagnostic logging."""
    from redeploy.core.config import Config
    from redeploy.utils.logging import setup_logging

    data = Config(args.config).data
    setup_logging(
        log_file=data.logging.file,
        level="DEBUG" if getattr(args, "debug", False) else data.logging.level,
    )
    return data


def _restrict(units: Optional[list[str]]) -> Optional[list[str]]:
    return list(units) if units else None


def cmd_watch(args: argparse.Namespace) -> int:
    """Watch the actions tree and redeploy on change."""
    from redeploy.core.session import WatchOptions, WatchSession
    from redeploy.core.shutdown import ShutdownHandler

    config = _load(args)
    shutdown = ShutdownHandler()

    options = WatchOptions(
        config=config,
        is_local=args.local,
        log=print_info,
        watch_root=args.root,
        on_failure=shutdown.trigger_shutdown,
    )
    session = WatchSession(options)
    shutdown.on_shutdown(session.stop)
    shutdown.install()

    try:
        session.start()
        print_info("Press Ctrl+C to stop.")
        shutdown.wait_for_shutdown()
    finally:
        session.stop()
        shutdown.uninstall()

    if shutdown.failed:
        print_error(f"Auto refresh stopped: {shutdown.error}")
        return 1
    print_info("Stopped watching.")
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    """Build once."""
    from redeploy.steps import get_builder

    config = _load(args)
    config.filter_actions = _restrict(args.unit)
    builder = get_builder(config.build.type, **config.build.options())

    print_info(f"Building {', '.join(config.filter_actions or ['all units'])}...")
    builder.build(config)
    print_success("Build completed")
    return 0


def cmd_deploy(args: argparse.Namespace) -> int:
    """Build and deploy once."""
    from redeploy.steps import get_builder, get_deployer

    config = _load(args)
    config.filter_actions = _restrict(args.unit)
    builder = get_builder(config.build.type, **config.build.options())
    deployer = get_deployer(config.deploy.type, **config.deploy.options())

    label = ", ".join(config.filter_actions or ["all units"])
    print_info(f"Building {label}...")
    builder.build(config)
    print_info(f"Deploying {label}...")
    deployer.deploy(config, args.local, print_info)
    print_success(f"Deployment successful for {label}")
    return 0


def register_commands(
    subparsers: argparse._SubParsersAction,
    parents: list[argparse.ArgumentParser] | None = None,
) -> None:
    """Register watch, build and deploy commands."""
    # watch
    watch_parser = subparsers.add_parser(
        "watch",
        parents=parents or [],
        help="Watch action files and redeploy on change",
    )
    watch_parser.add_argument(
        "--local",
        action="store_true",
        help="Deploy to the local development target",
    )
    watch_parser.add_argument(
        "--root",
        metavar="DIR",
        help="Directory to watch (default: actions.src from config)",
    )
    watch_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    watch_parser.set_defaults(func=cmd_watch)

    # build
    build_parser = subparsers.add_parser(
        "build",
        parents=parents or [],
        help="Build actions once",
    )
    build_parser.add_argument(
        "-u", "--unit",
        action="append",
        metavar="NAME",
        help="Only build this unit (repeatable)",
    )
    build_parser.set_defaults(func=cmd_build)

    # deploy
    deploy_parser = subparsers.add_parser(
        "deploy",
        parents=parents or [],
        help="Build and deploy actions once",
    )
    deploy_parser.add_argument(
        "-u", "--unit",
        action="append",
        metavar="NAME",
        help="Only deploy this unit (repeatable)",
    )
    deploy_parser.add_argument(
        "--local",
        action="store_true",
        help="Deploy to the local development target",
    )
    deploy_parser.set_defaults(func=cmd_deploy)
