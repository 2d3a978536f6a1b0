"""Exception types raised by redeploy."""

from __future__ import annotations

from typing import Optional


class RedeployError(Exception):
    """
    Base class for all redeploy errors.

    Carries the unit the failing step was restricted to (if any) and the
    underlying exception, so log lines can say what broke and why.
    """

    def __init__(
        self,
        message: str,
        unit: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.unit = unit
        self.cause = cause

    def __str__(self) -> str:
        text = self.message
        if self.unit:
            text = f"{text} (unit: {self.unit})"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class BuildError(RedeployError):
    """Raised by a builder when the build step fails."""


class DeployError(RedeployError):
    """Raised by a deployer when the deploy step fails."""


class ConfigError(RedeployError):
    """Raised for unreadable or invalid configuration."""
