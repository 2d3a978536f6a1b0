"""Shared fixtures and test doubles."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

import pytest

from redeploy.core.config import ActionsConfig, DeploymentConfig, LoggingConfig
from redeploy.core.coordinator import DeploymentCoordinator
from redeploy.errors import BuildError, DeployError
from redeploy.steps.base import Builder, Deployer


class FakeBuilder(Builder):
    """Records the unit restriction of every build."""

    def __init__(self) -> None:
        self.calls: list[Optional[list[str]]] = []
        self.fail_on: set[int] = set()
        self.hooks: dict[int, Callable[[], None]] = {}
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "fake"

    def build(self, config: DeploymentConfig) -> None:
        with self._lock:
            index = len(self.calls)
            units = None if config.filter_actions is None else list(config.filter_actions)
            self.calls.append(units)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            hook = self.hooks.get(index)
            if hook:
                hook()
            if index in self.fail_on:
                raise BuildError("build exploded", unit=",".join(units or []))
        finally:
            with self._lock:
                self.active -= 1


class FakeDeployer(Deployer):
    """Records every deploy."""

    def __init__(self) -> None:
        self.calls: list[tuple[Optional[list[str]], bool]] = []
        self.fail_on: set[int] = set()

    @property
    def name(self) -> str:
        return "fake"

    def deploy(self, config: DeploymentConfig, is_local: bool, log) -> None:
        index = len(self.calls)
        units = None if config.filter_actions is None else list(config.filter_actions)
        self.calls.append((units, is_local))
        if index in self.fail_on:
            raise DeployError("deploy exploded")
        log(f"deployed {units}")


class FakeWatcher:
    """Stands in for ChangeWatcher; tests push changes with emit()."""

    def __init__(self, callback, ignore_patterns=None) -> None:
        self.callback = callback
        self.ignore_patterns = ignore_patterns
        self.paths: list[Path] = []
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    def watch(self, path):
        self.paths.append(Path(path))
        return self

    def start(self):
        self.start_calls += 1
        self.running = True
        return self

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    def emit(self, path: str) -> None:
        # A stopped watcher delivers nothing
        if self.running:
            self.callback(path)


def run_inline(target: Callable[[], None]) -> None:
    target()


@pytest.fixture
def config(tmp_path: Path) -> DeploymentConfig:
    src = tmp_path / "app" / "actions"
    src.mkdir(parents=True)
    return DeploymentConfig(
        actions=ActionsConfig(src=src, dist=tmp_path / "dist"),
        logging=LoggingConfig(file=tmp_path / "redeploy.log"),
    )


@pytest.fixture
def builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def deployer() -> FakeDeployer:
    return FakeDeployer()


@pytest.fixture
def log_lines() -> list[str]:
    return []


@pytest.fixture
def failures() -> list[BaseException]:
    return []


@pytest.fixture
def coordinator(config, builder, deployer, log_lines, failures) -> DeploymentCoordinator:
    """Coordinator that runs cycles on the calling thread."""
    return DeploymentCoordinator(
        config,
        builder,
        deployer,
        log=log_lines.append,
        on_failure=failures.append,
        spawn=run_inline,
    )
