"""
order_relay.sink - Webhook delivery.

One synchronous POST per invocation, bounded by connect/read timeouts.
Transport failures and rejected batches come back as a DeliveryResult
instead of an exception. No retry.
"""

from __future__ import annotations

import requests
from aws_lambda_powertools import Logger

from order_relay.config import RelayConfig
from order_relay.models import DeliveryResult

logger = Logger(service="order-relay")

_HEADERS = {"Content-Type": "application/json"}


class WebhookSink:
    """Posts a serialized batch to a fixed endpoint.

    Redirects are not followed: any status below 400 is a success.
    """

    def __init__(
        self, url: str, *, connect_timeout: float = 5.0, read_timeout: float = 5.0
    ) -> None:
        self.url = url
        self.timeout = (connect_timeout, read_timeout)

    @classmethod
    def from_config(cls, config: RelayConfig) -> WebhookSink:
        return cls(
            config.post_url,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    def deliver(self, body: bytes) -> DeliveryResult:
        try:
            response = requests.post(
                self.url,
                data=body,
                headers=_HEADERS,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            # str(e) carries the endpoint URL, which may embed a token.
            logger.error("Webhook POST did not complete", extra={"error": type(e).__name__})
            return DeliveryResult(ok=False, error=type(e).__name__)

        if response.status_code >= 400:
            return DeliveryResult(
                ok=False,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}",
            )
        return DeliveryResult(ok=True, status_code=response.status_code)
