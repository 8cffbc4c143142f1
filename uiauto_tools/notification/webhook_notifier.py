"""
================================================================================
Webhook Notifier
================================================================================

Sends the suite summary to chat-bot webhooks (WeCom, DingTalk).

Features:
    - One fan-out loop over the configured sinks, in order
    - Per-kind payload builders
    - Best-effort delivery: failures are logged, never raised

Protocol:
    POST <endpoint>
    Content-Type: application/json; charset=utf-8
    {"msgtype": "text", "text": {"content": "<title>\\n<body>"}}

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, Optional

import httpx
from loguru import logger

from uiauto_tools.common.exceptions import NotificationDispatchError
from uiauto_tools.common.run_config import NotificationSink, SinkKind
from uiauto_tools.report_tools.result_aggregator import SuiteOutcome, format_summary


DEFAULT_TITLE = "UI Automation Regression Result"
DEFAULT_TIMEOUT = 10.0
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def _text_message(title: str, body: str) -> Dict[str, Any]:
    return {"msgtype": "text", "text": {"content": f"{title}\n{body}"}}


PAYLOAD_BUILDERS: Dict[SinkKind, Callable[[str, str], Dict[str, Any]]] = {
    SinkKind.WECOM: _text_message,
    SinkKind.DINGTALK: _text_message,
}


class WebhookNotifier:
    """
    Dispatches a SuiteOutcome to every configured webhook sink.

    Usage:
        >>> notifier = WebhookNotifier()
        >>> notifier.notify(outcome, config.notification_sinks)
        1
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize notifier.

        Args:
            client: httpx client to reuse (created lazily when None)
            timeout: Request timeout in seconds
        """
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "WebhookNotifier":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def notify(
        self,
        outcome: SuiteOutcome,
        sinks: Iterable[NotificationSink],
        title: str = DEFAULT_TITLE,
    ) -> int:
        """
        Send the formatted summary to each sink.

        Sinks without an endpoint are skipped. A failing sink does not stop
        the remaining ones.

        Returns:
            Number of sinks that answered the POST (any status code)
        """
        body = format_summary(outcome)
        delivered = 0

        for sink in sinks:
            if not sink.is_configured:
                logger.info(f"No {sink.kind.value} webhook configured, skipping notification")
                continue

            try:
                self._dispatch(sink, title, body)
                delivered += 1
            except NotificationDispatchError as e:
                logger.error(str(e))

        return delivered

    def _dispatch(self, sink: NotificationSink, title: str, body: str) -> httpx.Response:
        payload = PAYLOAD_BUILDERS[sink.kind](title, body)
        endpoint = sink.endpoint.strip()

        try:
            response = self.client.post(
                endpoint,
                content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": JSON_CONTENT_TYPE},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotificationDispatchError(endpoint, str(e)) from e

        logger.info(f"{sink.kind.value} notification sent, response status: {response.status_code}")
        return response


__all__ = [
    "WebhookNotifier",
    "DEFAULT_TITLE",
]
