"""Serializes change notifications into build+deploy cycles."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from redeploy.core.config import DeploymentConfig, EmptyUnitPolicy
from redeploy.core.resolver import resolve_unit
from redeploy.utils.logging import get_logger

if TYPE_CHECKING:
    from redeploy.steps.base import Builder, Deployer

LogSink = Callable[[str], None]
Spawn = Callable[[Callable[[], None]], None]


class CoordinatorPhase(Enum):
    """Phase of the deployment state machine."""

    IDLE = "idle"
    DEPLOYING = "deploying"
    DEPLOYING_WITH_PENDING = "deploying_with_pending"


@dataclass
class CoordinatorState:
    """Mutable coordinator state, guarded by the coordinator's lock."""

    deployment_in_progress: bool = False
    pending_change: bool = False
    last_unresolved_path: str = ""
    failed: bool = False
    cycles: int = 0

    @property
    def phase(self) -> CoordinatorPhase:
        if not self.deployment_in_progress:
            return CoordinatorPhase.IDLE
        if self.pending_change:
            return CoordinatorPhase.DEPLOYING_WITH_PENDING
        return CoordinatorPhase.DEPLOYING


def spawn_thread(target: Callable[[], None]) -> None:
    """Run a cycle loop on a daemon thread."""
    thread = threading.Thread(target=target, daemon=True, name="redeploy-cycle")
    thread.start()


class DeploymentCoordinator:
    """
    Turns a stream of changed paths into serialized build+deploy cycles.

    At most one cycle runs at a time. Changes that arrive while a cycle is
    running are coalesced: only the latest path is kept, and exactly one
    follow-up cycle runs for it once the current cycle succeeds. A failed
    cycle is terminal; the pending change is dropped and ``on_failure`` is
    called so the owner can stop delivering changes.

    Example:
        coordinator = DeploymentCoordinator(config, builder, deployer, log=print)
        watcher = ChangeWatcher(coordinator.on_change).watch("./actions").start()
    """

    def __init__(
        self,
        config: DeploymentConfig,
        builder: Builder,
        deployer: Deployer,
        *,
        is_local: bool = False,
        log: LogSink = print,
        on_failure: Optional[Callable[[BaseException], None]] = None,
        empty_unit_policy: Optional[EmptyUnitPolicy] = None,
        spawn: Optional[Spawn] = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            config: Configuration shared by every cycle. Its
                    ``filter_actions`` is set right before each build.
            builder: Build step, raises BuildError on failure.
            deployer: Deploy step, raises DeployError on failure.
            is_local: Passed through to the deployer.
            log: User-facing log sink.
            on_failure: Called once with the error that ended the session.
            empty_unit_policy: Overrides ``config.watch.empty_unit_policy``.
            spawn: Runs the cycle loop; defaults to a daemon thread.
        """
        self.config = config
        self.builder = builder
        self.deployer = deployer
        self.is_local = is_local
        self.log = log
        self.on_failure = on_failure
        self.empty_unit_policy = empty_unit_policy or config.watch.empty_unit_policy
        self._spawn = spawn or spawn_thread
        self._state = CoordinatorState()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self.logger = get_logger("redeploy.coordinator")

    # State introspection

    @property
    def state(self) -> CoordinatorState:
        """Snapshot of the current state."""
        with self._lock:
            return dataclasses.replace(self._state)

    @property
    def phase(self) -> CoordinatorPhase:
        with self._lock:
            return self._state.phase

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no cycle is running.

        Returns:
            True if idle, False if the timeout expired first.
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: not self._state.deployment_in_progress, timeout
            )

    # Change handling

    def on_change(self, path: str) -> None:
        """Handle one changed path. Never waits for a running cycle."""
        with self._lock:
            if self._state.failed:
                self.logger.debug(f"{path} has changed, but auto refresh is stopped")
                return

            if self._state.deployment_in_progress:
                self._state.last_unresolved_path = path
                self._state.pending_change = True
                deferred = True
            else:
                self._state.deployment_in_progress = True
                deferred = False

        if deferred:
            self.logger.debug(
                f"{path} has changed. Deploy in progress. This change will be "
                f"deployed after completion of current deployment."
            )
            self.log(f"another deploy is in progress, skipping {self._label(path)} for now")
            return

        self._spawn(lambda: self._run_cycles(path))

    def _label(self, path: str) -> str:
        return resolve_unit(path, self.config.actions.marker) or path

    def _run_cycles(self, path: str) -> None:
        """Run cycles until no coalesced change is left or one fails."""
        notice: Optional[str] = None
        try:
            while True:
                try:
                    if notice:
                        self.log(notice)
                    succeeded = self._run_cycle(path)
                except Exception as e:
                    self._fail(e)
                    succeeded = False

                with self._lock:
                    replay = succeeded and self._state.pending_change and not self._state.failed
                    if replay:
                        # Back to Deploying without passing through an unlocked Idle
                        path = self._state.last_unresolved_path
                    self._state.pending_change = False
                    self._state.last_unresolved_path = ""

                if not replay:
                    return
                self.logger.debug("Code changed during deployment. Triggering deploy again.")
                notice = f"code changed during deployment, triggering deploy again for {self._label(path)}"
        finally:
            with self._lock:
                self._state.deployment_in_progress = False
                self._idle.notify_all()

    def _run_cycle(self, path: str) -> bool:
        """Run one build+deploy cycle for a changed path."""
        unit = resolve_unit(path, self.config.actions.marker)
        self.log(f"action file changed: {path}")

        if not unit:
            if self.empty_unit_policy is EmptyUnitPolicy.SKIP:
                self.logger.info(f"No unit found for {path}, skipping deployment")
                self._count_cycle()
                return True
            if self.empty_unit_policy is EmptyUnitPolicy.FULL:
                self.logger.debug(f"No unit found for {path}, rebuilding all units")
                self.config.filter_actions = None
            else:
                self.config.filter_actions = [unit]
        else:
            self.config.filter_actions = [unit]

        label = unit or ("all units" if self.config.filter_actions is None else '""')
        self.logger.debug(f"{path} has changed. Redeploying actions ({label}).")
        try:
            self.builder.build(self.config)
            self.deployer.deploy(self.config, self.is_local, self.log)
        except Exception as e:
            self._fail(e)
            return False

        self._count_cycle()
        self.logger.debug(f"Deployment successful for {label}.")
        self.log(f"deployment successful for {label}")
        return True

    def _count_cycle(self) -> None:
        with self._lock:
            self._state.cycles += 1

    def _fail(self, error: BaseException) -> None:
        """Terminal failure: stop refreshing and tell the owner."""
        self.logger.error(f"Deployment failed: {error}", exc_info=error)
        try:
            self.log("Error encountered while deploying actions. Stopping auto refresh.")
        except Exception as e:
            self.logger.error(f"Log sink error: {e}")
        with self._lock:
            self._state.failed = True
            self._state.pending_change = False
            self._state.last_unresolved_path = ""

        if self.on_failure:
            try:
                self.on_failure(error)
            except Exception as e:
                self.logger.error(f"Failure callback error: {e}")
