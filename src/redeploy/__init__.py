"""
redeploy - change-driven redeployment for serverless actions

Watches an actions tree and rebuilds + redeploys the unit whose files
changed, running at most one deployment at a time.
"""

__version__ = "1.0.0"

from redeploy.core.config import Config, DeploymentConfig
from redeploy.core.session import WatchOptions, WatchSession, start_watch
from redeploy.errors import BuildError, ConfigError, DeployError, RedeployError

__all__ = [
    "BuildError",
    "Config",
    "ConfigError",
    "DeployError",
    "DeploymentConfig",
    "RedeployError",
    "WatchOptions",
    "WatchSession",
    "start_watch",
    "__version__",
]
