"""Build and deploy steps that run external commands."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Optional, Type

from redeploy.core.config import DeploymentConfig
from redeploy.errors import BuildError, DeployError, RedeployError
from redeploy.steps.base import Builder, Deployer, LogSink
from redeploy.utils.logging import get_logger

UNITS_PLACEHOLDER = "{units}"


def format_command(command: list[str], units: Optional[list[str]]) -> list[str]:
    """
    Substitute the unit restriction into a command.

    Arguments containing ``{units}`` get the comma-joined unit names, or
    are dropped entirely when the build is unrestricted.
    """
    argv = []
    for arg in command:
        if UNITS_PLACEHOLDER in arg:
            if units is None:
                continue
            arg = arg.replace(UNITS_PLACEHOLDER, ",".join(units))
        argv.append(arg)
    return argv


class CommandStep:
    """Runs a configured command with the unit restriction in its environment."""

    error_class: Type[RedeployError] = RedeployError
    step = "step"

    def __init__(self, command: Optional[list[str]] = None, timeout: Optional[float] = None) -> None:
        """
        Initialize the step.

        Args:
            command: argv to run; may contain the ``{units}`` placeholder.
            timeout: Seconds before the command is killed (None = no limit).
        """
        self._command = list(command or [])
        self._timeout = timeout
        self._logger = get_logger(f"redeploy.{self.step}")

    @property
    def name(self) -> str:
        return "command"

    @property
    def command(self) -> list[str]:
        return list(self._command)

    def _get_subprocess_args(self) -> dict:
        """Get platform-specific subprocess arguments."""
        if sys.platform == "win32":
            startupinfo = subprocess.STARTUPINFO()
            startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
            startupinfo.wShowWindow = 0
            return {
                "startupinfo": startupinfo,
                "creationflags": subprocess.CREATE_NO_WINDOW,
            }
        return {}

    def _environment(self, config: DeploymentConfig) -> dict[str, str]:
        env = dict(os.environ)
        env["REDEPLOY_UNITS"] = ",".join(config.filter_actions or [])
        env["REDEPLOY_SRC"] = str(config.actions.src)
        env["REDEPLOY_DIST"] = str(config.actions.dist)
        return env

    def _unit_label(self, config: DeploymentConfig) -> Optional[str]:
        if config.filter_actions is None:
            return None
        return ",".join(config.filter_actions)

    def run(self, config: DeploymentConfig, env: dict[str, str]) -> subprocess.CompletedProcess:
        """Run the command, raising the step's error on any failure."""
        unit = self._unit_label(config)
        if not self._command:
            raise self.error_class(f"No {self.step} command configured", unit=unit)

        cmd = format_command(self._command, config.filter_actions)
        self._logger.info(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                env=env,
                timeout=self._timeout,
                **self._get_subprocess_args(),
            )
        except subprocess.TimeoutExpired as e:
            raise self.error_class(f"{self.step.capitalize()} timed out", unit=unit, cause=e)
        except OSError as e:
            raise self.error_class(f"Cannot run {cmd[0]}", unit=unit, cause=e)

        if result.returncode != 0:
            self._logger.error(f"{self.step.capitalize()} failed: {result.stderr.strip()}")
            raise self.error_class(
                f"{self.step.capitalize()} command exited with status {result.returncode}",
                unit=unit,
            )
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(command={self._command!r})"


class CommandBuilder(CommandStep, Builder):
    """Builds units by running a command."""

    error_class = BuildError
    step = "build"

    def build(self, config: DeploymentConfig) -> None:
        self.run(config, self._environment(config))
        self._logger.info(f"Build completed: {self._unit_label(config) or 'all units'}")


class CommandDeployer(CommandStep, Deployer):
    """Deploys units by running a command, forwarding its output to the log sink."""

    error_class = DeployError
    step = "deploy"

    def deploy(self, config: DeploymentConfig, is_local: bool, log: LogSink) -> None:
        env = self._environment(config)
        env["REDEPLOY_LOCAL"] = "1" if is_local else "0"

        result = self.run(config, env)
        for line in result.stdout.splitlines():
            if line.strip():
                log(line.rstrip())
        self._logger.info(f"Deploy completed: {self._unit_label(config) or 'all units'}")
