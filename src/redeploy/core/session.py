"""Watch session: wires the file watcher into the deployment coordinator."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from redeploy.core.config import DeploymentConfig
from redeploy.core.coordinator import DeploymentCoordinator, LogSink, Spawn
from redeploy.core.watcher import ChangeWatcher
from redeploy.errors import ConfigError
from redeploy.steps.base import Builder, Deployer
from redeploy.steps.registry import get_builder, get_deployer
from redeploy.utils.logging import get_logger

WatcherFactory = Callable[..., Any]


@dataclass
class WatchOptions:
    """Options for a watch session."""

    config: DeploymentConfig
    is_local: bool = False
    log: LogSink = print
    watch_root: Optional[Path] = None
    on_failure: Optional[Callable[[BaseException], None]] = None

    @property
    def root(self) -> Path:
        return Path(self.watch_root or self.config.actions.src)


@dataclass
class SessionHandle:
    """A live session: the watcher plus its teardown callback."""

    watcher: Any
    coordinator: DeploymentCoordinator
    stop: Callable[[], None]


class WatchSession:
    """
    Watches the actions tree and redeploys on every change.

    Example:
        session = WatchSession(WatchOptions(config=config, log=print_info))
        handle = session.start()
        # ... later ...
        handle.stop()
    """

    def __init__(
        self,
        options: WatchOptions,
        builder: Optional[Builder] = None,
        deployer: Optional[Deployer] = None,
        watcher_factory: Optional[WatcherFactory] = None,
        spawn: Optional[Spawn] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            options: Session options.
            builder: Build step; created from ``config.build`` if None.
            deployer: Deploy step; created from ``config.deploy`` if None.
            watcher_factory: Called as ``factory(callback, ignore_patterns=...)``;
                             defaults to ChangeWatcher.
            spawn: Passed to the coordinator.
        """
        config = options.config
        self.options = options
        self.builder = builder or get_builder(config.build.type, **config.build.options())
        self.deployer = deployer or get_deployer(config.deploy.type, **config.deploy.options())
        self._watcher_factory = watcher_factory or ChangeWatcher
        self._spawn = spawn
        self._watcher: Optional[Any] = None
        self._coordinator: Optional[DeploymentCoordinator] = None
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._logger = get_logger("redeploy.session")

    def start(self) -> SessionHandle:
        """
        Start watching. Returns a handle whose ``stop`` tears the session down.

        Raises:
            ConfigError: If the watch root is not an existing directory.
        """
        options = self.options
        root = options.root
        if not root.is_dir():
            raise ConfigError(f"Watch root does not exist or is not a directory: {root}")

        options.log(f"watching action files at {root}...")

        self._coordinator = DeploymentCoordinator(
            options.config,
            self.builder,
            self.deployer,
            is_local=options.is_local,
            log=options.log,
            on_failure=self._handle_failure,
            spawn=self._spawn,
        )
        self._watcher = self._watcher_factory(
            self._coordinator.on_change,
            ignore_patterns=options.config.watch.ignore_patterns,
        )
        self._watcher.watch(root)
        self._watcher.start()
        self._logger.info(f"Watch session started for {root}")

        return SessionHandle(
            watcher=self._watcher,
            coordinator=self._coordinator,
            stop=self.stop,
        )

    def _handle_failure(self, error: BaseException) -> None:
        """Coordinator failure: stop delivering changes, then notify the owner."""
        self.stop()
        if self.options.on_failure:
            self.options.on_failure(error)

    def stop(self) -> None:
        """Stop the watcher. In-flight cycles finish on their own."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self._logger.debug("stopping action watcher...")
        if self._watcher is not None:
            self._watcher.stop()

    @property
    def coordinator(self) -> Optional[DeploymentCoordinator]:
        return self._coordinator

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def __enter__(self) -> SessionHandle:
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def start_watch(options: WatchOptions, **kwargs: Any) -> SessionHandle:
    """Create and start a WatchSession."""
    return WatchSession(options, **kwargs).start()
