"""Abstract base classes for build and deploy steps."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from redeploy.core.config import DeploymentConfig

LogSink = Callable[[str], None]


class Builder(ABC):
    """
    Abstract base class for build steps.

    A builder builds the units named in ``config.filter_actions``
    (all units when it is None).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the step kind (e.g., 'command')."""
        pass

    @abstractmethod
    def build(self, config: DeploymentConfig) -> None:
        """
        Build the configured units.

        Args:
            config: Deployment configuration, including the unit restriction.

        Raises:
            BuildError: If the build fails.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Deployer(ABC):
    """
    Abstract base class for deploy steps.

    All deployers (command, webhook) implement this interface.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the step kind (e.g., 'command', 'webhook')."""
        pass

    @abstractmethod
    def deploy(self, config: DeploymentConfig, is_local: bool, log: LogSink) -> None:
        """
        Deploy the built units.

        Args:
            config: Deployment configuration, including the unit restriction.
            is_local: Deploy to a local development target.
            log: User-facing log sink for deployment output.

        Raises:
            DeployError: If the deployment fails.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
