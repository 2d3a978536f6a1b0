import sys

import pytest
import requests

from redeploy.errors import BuildError, ConfigError, DeployError
from redeploy.steps import get_builder, get_deployer, list_steps
from redeploy.steps.command import CommandBuilder, CommandDeployer, format_command
from redeploy.steps.webhook import WebhookDeployer

PY = sys.executable


def python(code, *args):
    return [PY, "-c", code, *args]


@pytest.mark.unit
class TestFormatCommand:
    def test_units_are_joined(self):
        assert format_command(["build", "--only={units}"], ["a", "b"]) == ["build", "--only=a,b"]

    def test_placeholder_dropped_when_unrestricted(self):
        assert format_command(["build", "--", "{units}"], None) == ["build", "--"]

    def test_empty_unit_passes_through(self):
        assert format_command(["build", "{units}"], [""]) == ["build", ""]


@pytest.mark.unit
class TestCommandBuilder:
    def test_runs_with_units_in_env_and_args(self, config, tmp_path):
        out = tmp_path / "out.txt"
        code = (
            "import os, sys; "
            "open(sys.argv[1], 'w').write(os.environ['REDEPLOY_UNITS'] + '|' + sys.argv[2])"
        )
        config.filter_actions = ["foo"]

        CommandBuilder(python(code, str(out), "{units}")).build(config)

        assert out.read_text() == "foo|foo"

    def test_non_zero_exit_raises(self, config):
        config.filter_actions = ["foo"]
        with pytest.raises(BuildError) as exc:
            CommandBuilder(python("import sys; sys.exit(3)")).build(config)
        assert exc.value.unit == "foo"
        assert "status 3" in str(exc.value)

    def test_missing_executable_raises(self, config):
        with pytest.raises(BuildError):
            CommandBuilder(["definitely-not-a-real-binary-xyz"]).build(config)

    def test_timeout_raises(self, config):
        with pytest.raises(BuildError) as exc:
            CommandBuilder(python("import time; time.sleep(5)"), timeout=0.2).build(config)
        assert "timed out" in str(exc.value)

    def test_no_command_raises(self, config):
        with pytest.raises(BuildError):
            CommandBuilder([]).build(config)


@pytest.mark.unit
class TestCommandDeployer:
    def test_output_goes_to_log_sink(self, config):
        code = (
            "import os; "
            "print('deployed', os.environ['REDEPLOY_UNITS']); "
            "print(); "
            "print('local', os.environ['REDEPLOY_LOCAL'])"
        )
        config.filter_actions = ["foo"]
        lines = []

        CommandDeployer(python(code)).deploy(config, True, lines.append)

        assert lines == ["deployed foo", "local 1"]

    def test_failure_raises_deploy_error(self, config):
        with pytest.raises(DeployError):
            CommandDeployer(python("import sys; sys.exit(1)")).deploy(config, False, print)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.mark.unit
class TestWebhookDeployer:
    def test_posts_units_and_logs_result(self, config, monkeypatch):
        sent = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            sent.update(url=url, json=json, headers=headers)
            return FakeResponse(body={"deployed": ["foo -> https://example.com/foo"]})

        monkeypatch.setattr("redeploy.steps.webhook.requests.post", fake_post)
        config.filter_actions = ["foo"]
        lines = []

        WebhookDeployer("https://deploy.example.com", token="secret").deploy(
            config, False, lines.append
        )

        assert sent["json"] == {"units": ["foo"], "local": False}
        assert sent["headers"]["Authorization"] == "Bearer secret"
        assert lines == ["  -> foo -> https://example.com/foo"]

    def test_unrestricted_sends_null_units(self, config, monkeypatch):
        sent = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            sent["json"] = json
            return FakeResponse(text="accepted")

        monkeypatch.setattr("redeploy.steps.webhook.requests.post", fake_post)
        WebhookDeployer("https://deploy.example.com").deploy(config, True, print)

        assert sent["json"] == {"units": None, "local": True}

    def test_http_error_raises(self, config, monkeypatch):
        monkeypatch.setattr(
            "redeploy.steps.webhook.requests.post",
            lambda *a, **kw: FakeResponse(status_code=502, text="bad gateway"),
        )
        with pytest.raises(DeployError) as exc:
            WebhookDeployer("https://deploy.example.com").deploy(config, False, print)
        assert "502" in str(exc.value)

    def test_connection_error_raises(self, config, monkeypatch):
        def refuse(*args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr("redeploy.steps.webhook.requests.post", refuse)
        with pytest.raises(DeployError):
            WebhookDeployer("https://deploy.example.com").deploy(config, False, print)

    def test_missing_url_raises(self, config):
        with pytest.raises(DeployError):
            WebhookDeployer().deploy(config, False, print)


@pytest.mark.unit
class TestRegistry:
    def test_known_kinds(self):
        assert list_steps() == {"build": ["command"], "deploy": ["command", "webhook"]}

    def test_factories(self):
        assert isinstance(get_builder("command", command=["make"]), CommandBuilder)
        assert isinstance(get_deployer("WEBHOOK", url="http://x"), WebhookDeployer)

    def test_unknown_kind_raises(self):
        with pytest.raises(ConfigError):
            get_builder("gradle")
        with pytest.raises(ConfigError):
            get_deployer("ftp")
