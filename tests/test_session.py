import time
from pathlib import Path

import pytest

from redeploy.core.coordinator import CoordinatorPhase
from redeploy.core.session import WatchOptions, WatchSession, start_watch
from redeploy.errors import BuildError, ConfigError

from conftest import FakeWatcher, run_inline

FOO = "/app/actions/foo/index.js"
BAR = "/app/actions/bar/index.js"


def make_session(config, builder, deployer, log_lines, **options):
    return WatchSession(
        WatchOptions(config=config, log=log_lines.append, **options),
        builder=builder,
        deployer=deployer,
        watcher_factory=FakeWatcher,
        spawn=run_inline,
    )


@pytest.mark.unit
class TestWatchSession:
    def test_start_watches_actions_src(self, config, builder, deployer, log_lines):
        handle = make_session(config, builder, deployer, log_lines).start()

        assert handle.watcher.paths == [config.actions.src]
        assert handle.watcher.running
        assert handle.watcher.ignore_patterns == config.watch.ignore_patterns
        assert log_lines[0] == f"watching action files at {config.actions.src}..."

    def test_watch_root_override(self, config, builder, deployer, log_lines, tmp_path):
        handle = make_session(
            config, builder, deployer, log_lines, watch_root=tmp_path
        ).start()
        assert handle.watcher.paths == [tmp_path]

    def test_missing_root_refuses_to_start(self, config, builder, deployer, log_lines, tmp_path):
        session = make_session(
            config, builder, deployer, log_lines, watch_root=tmp_path / "missing"
        )

        with pytest.raises(ConfigError, match="does not exist"):
            session.start()

        assert session.coordinator is None
        assert log_lines == []

    def test_file_root_refuses_to_start(self, config, builder, deployer, log_lines, tmp_path):
        root = tmp_path / "actions.txt"
        root.write_text("")
        session = make_session(config, builder, deployer, log_lines, watch_root=root)

        with pytest.raises(ConfigError):
            session.start()

    def test_changes_drive_cycles(self, config, builder, deployer, log_lines):
        handle = make_session(config, builder, deployer, log_lines).start()

        handle.watcher.emit(FOO)

        assert builder.calls == [["foo"]]
        assert deployer.calls == [(["foo"], False)]
        assert handle.coordinator.phase is CoordinatorPhase.IDLE

    def test_stop_is_idempotent(self, config, builder, deployer, log_lines):
        session = make_session(config, builder, deployer, log_lines)
        handle = session.start()

        handle.stop()
        handle.stop()

        assert handle.watcher.stop_calls == 1
        assert session.is_stopped

    def test_failure_stops_watcher(self, config, builder, deployer, log_lines):
        seen = []
        builder.fail_on.add(0)
        session = make_session(
            config, builder, deployer, log_lines, on_failure=seen.append
        )
        handle = session.start()

        handle.watcher.emit(FOO)
        handle.watcher.emit(BAR)

        assert not handle.watcher.running
        assert builder.calls == [["foo"]]
        assert deployer.calls == []
        assert isinstance(seen[0], BuildError)

        # stop after an internal stop is harmless
        handle.stop()
        assert handle.watcher.stop_calls == 1

    def test_context_manager_stops(self, config, builder, deployer, log_lines):
        session = make_session(config, builder, deployer, log_lines)
        with session as handle:
            assert handle.watcher.running
        assert not handle.watcher.running

    def test_steps_created_from_config(self, config):
        config.deploy.type = "webhook"
        config.deploy.url = "http://localhost:9999/deploy"
        session = WatchSession(WatchOptions(config=config), watcher_factory=FakeWatcher)

        assert session.builder.name == "command"
        assert session.deployer.name == "webhook"

    def test_start_watch_returns_handle(self, config, builder, deployer, log_lines):
        handle = start_watch(
            WatchOptions(config=config, log=log_lines.append),
            builder=builder,
            deployer=deployer,
            watcher_factory=FakeWatcher,
            spawn=run_inline,
        )
        handle.watcher.emit(FOO)
        handle.stop()

        assert builder.calls == [["foo"]]
        assert not handle.watcher.running


@pytest.mark.integration
def test_real_watcher_triggers_deploy(config, builder, deployer, log_lines):
    unit_dir = Path(config.actions.src) / "hello"
    unit_dir.mkdir()
    source = unit_dir / "index.js"
    source.write_text("exports.main = () => 1\n")

    handle = start_watch(
        WatchOptions(config=config, log=log_lines.append),
        builder=builder,
        deployer=deployer,
    )
    try:
        time.sleep(0.2)
        source.write_text("exports.main = () => 2\n")

        deadline = time.monotonic() + 5
        while not deployer.calls and time.monotonic() < deadline:
            time.sleep(0.05)
        assert handle.coordinator.wait_until_idle(timeout=5)
    finally:
        handle.stop()

    assert deployer.calls
    assert all(units == ["hello"] for units in builder.calls)
