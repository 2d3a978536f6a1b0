"""Step registry and factory functions."""

from __future__ import annotations

from typing import Any, Type

from redeploy.errors import ConfigError
from redeploy.steps.base import Builder, Deployer


class StepRegistry:
    """
    Registry for build and deploy steps.

    Allows registering and retrieving step implementations by kind.
    """

    _builders: dict[str, Type[Builder]] = {}
    _deployers: dict[str, Type[Deployer]] = {}

    @classmethod
    def register_builder(cls, kind: str, builder_class: Type[Builder]) -> None:
        """Register a builder class by kind."""
        cls._builders[kind.lower()] = builder_class

    @classmethod
    def register_deployer(cls, kind: str, deployer_class: Type[Deployer]) -> None:
        """Register a deployer class by kind."""
        cls._deployers[kind.lower()] = deployer_class

    @classmethod
    def builder(cls, kind: str, **kwargs: Any) -> Builder:
        """
        Get a builder instance by kind.

        Args:
            kind: Step kind (e.g., 'command').
            **kwargs: Arguments passed to the builder constructor.

        Raises:
            ConfigError: If the kind is not registered.
        """
        kind = kind.lower()
        if kind not in cls._builders:
            raise ConfigError(
                f"Unknown build step: {kind}. "
                f"Available: {', '.join(sorted(cls._builders))}"
            )
        return cls._builders[kind](**kwargs)

    @classmethod
    def deployer(cls, kind: str, **kwargs: Any) -> Deployer:
        """
        Get a deployer instance by kind.

        Args:
            kind: Step kind (e.g., 'command', 'webhook').
            **kwargs: Arguments passed to the deployer constructor.

        Raises:
            ConfigError: If the kind is not registered.
        """
        kind = kind.lower()
        if kind not in cls._deployers:
            raise ConfigError(
                f"Unknown deploy step: {kind}. "
                f"Available: {', '.join(sorted(cls._deployers))}"
            )
        return cls._deployers[kind](**kwargs)

    @classmethod
    def list_steps(cls) -> dict[str, list[str]]:
        """List registered kinds for each step."""
        return {
            "build": sorted(cls._builders),
            "deploy": sorted(cls._deployers),
        }


def _register_default_steps() -> None:
    """Register the built-in steps."""
    from redeploy.steps.command import CommandBuilder, CommandDeployer
    from redeploy.steps.webhook import WebhookDeployer

    StepRegistry.register_builder("command", CommandBuilder)
    StepRegistry.register_deployer("command", CommandDeployer)
    StepRegistry.register_deployer("webhook", WebhookDeployer)


# Auto-register defaults on import
_register_default_steps()


def get_builder(kind: str, **kwargs: Any) -> Builder:
    """Get a builder instance by kind."""
    return StepRegistry.builder(kind, **kwargs)


def get_deployer(kind: str, **kwargs: Any) -> Deployer:
    """Get a deployer instance by kind."""
    return StepRegistry.deployer(kind, **kwargs)


def list_steps() -> dict[str, list[str]]:
    """List all available step kinds."""
    return StepRegistry.list_steps()
