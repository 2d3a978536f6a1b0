"""Core watch-and-redeploy functionality."""

from redeploy.core.config import Config, DeploymentConfig, EmptyUnitPolicy
from redeploy.core.resolver import resolve_unit
from redeploy.core.coordinator import CoordinatorPhase, CoordinatorState, DeploymentCoordinator
from redeploy.core.watcher import ChangeWatcher
from redeploy.core.session import SessionHandle, WatchOptions, WatchSession, start_watch
from redeploy.core.shutdown import ShutdownHandler

__all__ = [
    "ChangeWatcher",
    "Config",
    "CoordinatorPhase",
    "CoordinatorState",
    "DeploymentConfig",
    "DeploymentCoordinator",
    "EmptyUnitPolicy",
    "SessionHandle",
    "ShutdownHandler",
    "WatchOptions",
    "WatchSession",
    "resolve_unit",
    "start_watch",
]
