"""Configuration management with fluent builder interface."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from redeploy.errors import ConfigError
from redeploy.utils.fluent import FluentBuilder
from redeploy.utils.paths import expand_path, get_config_file, get_log_file

DEFAULT_MARKER = "actions"
DEFAULT_IGNORE = {".git", "node_modules", "__pycache__"}


class EmptyUnitPolicy(Enum):
    """What a cycle does when a changed path maps to no unit."""

    FULL = "full"                # unrestricted rebuild of every unit
    SKIP = "skip"                # no build/deploy for this change
    PASSTHROUGH = "passthrough"  # restrict the build to [""]

    @classmethod
    def parse(cls, value: str | EmptyUnitPolicy) -> EmptyUnitPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ConfigError(f"Invalid empty unit policy {value!r}, expected one of: {choices}")


@dataclass
class ActionsConfig:
    """Where the deployable units live and where builds go."""

    src: Path = field(default_factory=lambda: expand_path("actions"))
    dist: Path = field(default_factory=lambda: expand_path("dist/actions"))
    marker: str = DEFAULT_MARKER


@dataclass
class StepSettings:
    """Settings for a build or deploy step."""

    type: str = "command"
    command: list[str] = field(default_factory=list)
    url: Optional[str] = None
    token: Optional[str] = None
    timeout: Optional[float] = None

    def options(self) -> dict[str, Any]:
        """Keyword arguments for the step registry."""
        opts: dict[str, Any] = {"timeout": self.timeout}
        if self.type == "webhook":
            opts.update(url=self.url, token=self.token)
        else:
            opts["command"] = list(self.command)
        return opts


@dataclass
class WatchSettings:
    """Settings for the file watcher and the coordinator."""

    ignore_patterns: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE))
    empty_unit_policy: EmptyUnitPolicy = EmptyUnitPolicy.FULL


@dataclass
class LoggingConfig:
    """Logging configuration."""

    file: Path = field(default_factory=get_log_file)
    level: str = "INFO"


@dataclass
class DeploymentConfig:
    """
    Complete configuration shared by every cycle of a watch session.

    ``filter_actions`` restricts the next build to the named units;
    None means build everything.
    """

    actions: ActionsConfig = field(default_factory=ActionsConfig)
    build: StepSettings = field(
        default_factory=lambda: StepSettings(command=["npm", "run", "build", "--", "{units}"])
    )
    deploy: StepSettings = field(
        default_factory=lambda: StepSettings(command=["npm", "run", "deploy"])
    )
    watch: WatchSettings = field(default_factory=WatchSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    filter_actions: Optional[list[str]] = None


def _step_from_dict(data: dict[str, Any], default: StepSettings) -> StepSettings:
    return StepSettings(
        type=data.get("type", default.type),
        command=list(data.get("command", default.command)),
        url=data.get("url", default.url),
        token=data.get("token", default.token),
        timeout=data.get("timeout", default.timeout),
    )


def _step_to_dict(step: StepSettings) -> dict[str, Any]:
    return {
        "type": step.type,
        "command": step.command,
        "url": step.url,
        "token": step.token,
        "timeout": step.timeout,
    }


class Config(FluentBuilder["Config"]):
    """
    Fluent configuration builder for redeploy.

    Example:
        config = (
            Config()
            .actions_src("./actions")
            .build_command("npm", "run", "build", "--", "{units}")
            .deploy_webhook("https://deploy.example.com/hooks/app")
            .empty_unit_policy("skip")
            .save()
        )
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        super().__init__()
        self._config_path = Path(config_path) if config_path else get_config_file()
        self._data = DeploymentConfig()
        self._load_existing()

    def _load_existing(self) -> None:
        """Load existing config if present."""
        if not self._config_path.exists():
            return
        try:
            with open(self._config_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {self._config_path}", cause=e)
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self._config_path} must contain a JSON object")
        self._from_dict(data)

    def _from_dict(self, data: dict[str, Any]) -> None:
        """Populate config from dictionary (for loading from JSON)."""
        base = self._config_path.parent

        def resolve(value: str) -> Path:
            path = Path(value).expanduser()
            if not path.is_absolute():
                path = base / path
            return path.resolve()

        if "actions" in data:
            actions = data["actions"]
            if "src" in actions:
                self._data.actions.src = resolve(actions["src"])
            if "dist" in actions:
                self._data.actions.dist = resolve(actions["dist"])
            self._data.actions.marker = actions.get("marker", DEFAULT_MARKER)

        if "build" in data:
            self._data.build = _step_from_dict(data["build"], self._data.build)
        if "deploy" in data:
            self._data.deploy = _step_from_dict(data["deploy"], self._data.deploy)

        if "watch" in data:
            watch = data["watch"]
            if "ignore_patterns" in watch:
                self._data.watch.ignore_patterns = set(watch["ignore_patterns"])
            if "empty_unit_policy" in watch:
                self._data.watch.empty_unit_policy = EmptyUnitPolicy.parse(
                    watch["empty_unit_policy"]
                )

        if "logging" in data:
            log = data["logging"]
            self._data.logging.file = expand_path(log.get("file", str(get_log_file())))
            self._data.logging.level = log.get("level", "INFO")

    def _to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "actions": {
                "src": str(self._data.actions.src),
                "dist": str(self._data.actions.dist),
                "marker": self._data.actions.marker,
            },
            "build": _step_to_dict(self._data.build),
            "deploy": _step_to_dict(self._data.deploy),
            "watch": {
                "ignore_patterns": sorted(self._data.watch.ignore_patterns),
                "empty_unit_policy": self._data.watch.empty_unit_policy.value,
            },
            "logging": {
                "file": str(self._data.logging.file),
                "level": self._data.logging.level,
            },
        }

    # Fluent builder methods

    def actions_src(self, path: str) -> Config:
        """Set the source tree that holds the deployable units."""
        self._check_not_built()
        self._data.actions.src = expand_path(path)
        return self

    def actions_dist(self, path: str) -> Config:
        """Set the build output directory."""
        self._check_not_built()
        self._data.actions.dist = expand_path(path)
        return self

    def marker(self, segment: str) -> Config:
        """Set the path segment that precedes a unit name."""
        self._check_not_built()
        self._data.actions.marker = segment
        return self

    def build_command(self, *argv: str) -> Config:
        """Build units by running a command."""
        self._check_not_built()
        self._data.build = StepSettings(
            type="command", command=list(argv), timeout=self._data.build.timeout
        )
        return self

    def deploy_command(self, *argv: str) -> Config:
        """Deploy units by running a command."""
        self._check_not_built()
        self._data.deploy = StepSettings(
            type="command", command=list(argv), timeout=self._data.deploy.timeout
        )
        return self

    def deploy_webhook(self, url: str, token: Optional[str] = None) -> Config:
        """Deploy units by calling a webhook."""
        self._check_not_built()
        self._data.deploy = StepSettings(
            type="webhook", url=url, token=token, timeout=self._data.deploy.timeout
        )
        return self

    def ignore(self, *patterns: str) -> Config:
        """Add path segments the watcher should ignore."""
        self._check_not_built()
        self._data.watch.ignore_patterns.update(patterns)
        return self

    def empty_unit_policy(self, policy: str | EmptyUnitPolicy) -> Config:
        """Set what happens when a change maps to no unit."""
        self._check_not_built()
        self._data.watch.empty_unit_policy = EmptyUnitPolicy.parse(policy)
        return self

    def log_file(self, path: str) -> Config:
        """Set the log file path."""
        self._check_not_built()
        self._data.logging.file = expand_path(path)
        return self

    def log_level(self, level: str) -> Config:
        """Set the log level."""
        self._check_not_built()
        self._data.logging.level = level.upper()
        return self

    def save(self) -> Config:
        """Save configuration to file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_path, "w") as f:
            json.dump(self._to_dict(), f, indent=2)
        return self

    def build(self) -> DeploymentConfig:
        """Build and return the configuration data."""
        self._mark_built()
        return self._data

    @property
    def data(self) -> DeploymentConfig:
        """Get the configuration data without marking as built."""
        return self._data

    @property
    def path(self) -> Path:
        """Get the config file location."""
        return self._config_path

    def __repr__(self) -> str:
        return f"Config(path={self._config_path}, src={self._data.actions.src})"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file."""
    return Config(config_path)
