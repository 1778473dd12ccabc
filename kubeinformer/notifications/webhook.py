"""Generic JSON webhook notification sink.

Posts the formatted alert line as ``{"content": "<message>"}``, the body
shape accepted by Discord incoming webhooks.  The key is configurable for
endpoints expecting another field name (e.g. ``text`` for Slack).
"""

from __future__ import annotations

import httpx
import structlog

from kubeinformer.notifications.manager import NotificationSink

_log = structlog.get_logger(component="notifications.webhook")


class WebhookSink(NotificationSink):
    """Delivers alerts by POSTing a JSON payload to a configurable URL.

    Args:
        url:         Full endpoint URL.
        timeout:     HTTP request timeout in seconds. Defaults to 10.
        payload_key: JSON field carrying the message. Defaults to ``content``.
        headers:     Optional extra headers (e.g. Authorization).
        transport:   Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        payload_key: str = "content",
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        if not payload_key:
            raise ValueError("Webhook payload_key must not be empty")
        self._url = url
        self._timeout = timeout
        self._payload_key = payload_key
        self._headers = headers or {}
        self._transport = transport

    @property
    def sink_name(self) -> str:
        return "webhook"

    async def send(self, message: str) -> bool:
        """POST *message* to the configured endpoint.

        Returns True on 2xx response, False otherwise.
        """
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._url,
                    json={self._payload_key: message},
                    headers=request_headers,
                )
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", url=self._url)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc))
            return False
