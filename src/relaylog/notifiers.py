"""
Chat notification transports.

Thin httpx clients for the Slack Web API and the Workplace Graph API. Both
expose ``notify(destination, message)`` and raise NotifyError on failure.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx

from .errors import ConfigError, NotifyError

DEFAULT_TIMEOUT = 10.0


class Notifier(Protocol):
    """Delivers a message to a channel or thread."""

    def notify(self, destination: str, message: str) -> None: ...


class _HTTPNotifier:
    name = "notifier"

    def __init__(self, token: str, *, timeout: float = DEFAULT_TIMEOUT, client: Optional[httpx.Client] = None):
        if not token:
            raise ConfigError(f"{self.name} token cannot be empty")
        self._token = token
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.post(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NotifyError(
                f"{self.name} responded with status {exc.response.status_code}", sink=self.name
            ) from exc
        except httpx.HTTPError as exc:
            raise NotifyError(f"{self.name} request failed: {exc}", sink=self.name) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise NotifyError(f"{self.name} returned a non JSON response", sink=self.name) from exc
        if not isinstance(payload, dict):
            raise NotifyError(f"{self.name} returned an unexpected response", sink=self.name)
        return payload

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class SlackNotifier(_HTTPNotifier):
    """Posts messages to a Slack channel as a bot."""

    name = "slack"
    API_URL = "https://slack.com/api/chat.postMessage"

    def notify(self, destination: str, message: str) -> None:
        payload = self._post(
            self.API_URL,
            headers={"Authorization": f"Bearer {self._token}"},
            json={
                "channel": destination,
                "attachments": [{"pretext": "Logger", "text": message}],
            },
        )
        # Slack reports API level failures with HTTP 200 and ok=false
        if not payload.get("ok", False):
            raise NotifyError(f"slack: {payload.get('error', 'unknown_error')}", sink=self.name)


class WorkplaceNotifier(_HTTPNotifier):
    """Posts messages to a Workplace thread."""

    name = "workplace"
    API_URL = "https://graph.workplace.com/me/messages"

    def notify(self, destination: str, message: str) -> None:
        payload = self._post(
            self.API_URL,
            params={"access_token": self._token},
            json={
                "recipient": {"thread_key": destination},
                "message": {"text": message},
            },
        )
        error = payload.get("error")
        if error:
            detail = error.get("message", error) if isinstance(error, dict) else error
            raise NotifyError(f"workplace: {detail}", sink=self.name)
