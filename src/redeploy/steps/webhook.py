"""Deploy step that triggers a deployment over HTTP."""

from __future__ import annotations

from typing import Optional

import requests

from redeploy.core.config import DeploymentConfig
from redeploy.errors import DeployError
from redeploy.steps.base import Deployer, LogSink
from redeploy.utils.logging import get_logger


class WebhookDeployer(Deployer):
    """
    Deploys by POSTing the unit restriction to a deployment endpoint.

    The request body is ``{"units": [...] or null, "local": bool}``. A JSON
    response may list what was deployed under ``"deployed"``; each entry is
    echoed to the log sink.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout
        self._logger = get_logger("redeploy.deploy")

    @property
    def name(self) -> str:
        return "webhook"

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers for the request."""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def deploy(self, config: DeploymentConfig, is_local: bool, log: LogSink) -> None:
        units = config.filter_actions
        unit = ",".join(units) if units is not None else None
        if not self._url:
            raise DeployError("No deploy webhook URL configured", unit=unit)

        self._logger.info(f"POST {self._url} (units={units}, local={is_local})")
        try:
            resp = requests.post(
                self._url,
                json={"units": units, "local": is_local},
                headers=self._get_headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise DeployError("Deploy webhook request failed", unit=unit, cause=e)

        if not resp.ok:
            raise DeployError(
                f"Deploy webhook returned {resp.status_code}: {resp.text.strip()[:200]}",
                unit=unit,
            )

        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for entry in body.get("deployed", []):
                log(f"  -> {entry}")

    def __repr__(self) -> str:
        return f"WebhookDeployer(url={self._url!r})"
