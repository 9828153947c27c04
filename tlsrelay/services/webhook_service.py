"""
Automation sinks: the IFTTT Maker webhook and a dry-run logger.
"""

import logging
from typing import Protocol

import requests

from tlsrelay.core.exceptions import SinkError


logger = logging.getLogger(__name__)


class AutomationSink(Protocol):
    def emit(self, event_name: str, value1: str = "", value2: str = "", value3: str = "") -> None:
        ...


class WebhookSink:
    """IFTTT Maker webhook: named events with up to three string values."""

    def __init__(self, key: str, base_url: str = "https://maker.ifttt.com", *,
                 timeout: float = 10.0, session: requests.Session = None):
        if not key:
            raise ValueError("Webhook key is required")
        self.key      = key
        self.base_url = base_url.rstrip("/")
        self.timeout  = timeout
        self.http     = session or requests.Session()

    def url_for(self, event_name: str) -> str:
        return f"{self.base_url}/trigger/{event_name}/with/key/{self.key}"

    def emit(self, event_name: str, value1: str = "", value2: str = "", value3: str = "") -> None:
        body = {"value1": value1, "value2": value2, "value3": value3}
        logger.info(f"Triggering webhook event {event_name} {list(body.values())}")
        try:
            response = self.http.post(self.url_for(event_name), json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise SinkError(f"Webhook event {event_name} not delivered: "
                            f"{type(e).__name__}: {self._redact(str(e))}") from e

        if not response.ok:
            raise SinkError(f"Webhook event {event_name} rejected: HTTP {response.status_code}")
        logger.debug(f"Webhook event {event_name} accepted: {response.text[:200]}")

    def _redact(self, text: str) -> str:
        # the key travels in the URL path, which requests echoes in its errors
        return text.replace(self.key, "<redacted>")

    def close(self):
        self.http.close()


class LoggingSink:
    """Dry-run sink used when no webhook key is configured."""

    def emit(self, event_name: str, value1: str = "", value2: str = "", value3: str = "") -> None:
        logger.info(f"[dry-run] event {event_name} ({value1}, {value2}, {value3})")

    def close(self):
        pass
