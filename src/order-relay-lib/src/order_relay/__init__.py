"""
order_relay - Project JSON order batches from blob storage and relay them to a webhook.

Shared by the blob, HTTP and timer trigger Lambdas; each handler only decides
which RecordSource to build and how to report the Outcome.
"""

from order_relay.config import RelayConfig
from order_relay.exceptions import (
    CleanupError,
    DecodeError,
    DeliveryError,
    RelayConfigError,
    RelayError,
    SourceReadError,
)
from order_relay.models import PROJECTED_FIELDS, DeliveryResult, Outcome, OutcomeStatus
from order_relay.pipeline import RecordPipeline
from order_relay.sink import WebhookSink
from order_relay.sources import BytesSource, RecordSource, S3ObjectSource, UrlSource

__all__ = [
    "PROJECTED_FIELDS",
    "BytesSource",
    "CleanupError",
    "DecodeError",
    "DeliveryError",
    "DeliveryResult",
    "Outcome",
    "OutcomeStatus",
    "RecordPipeline",
    "RecordSource",
    "RelayConfig",
    "RelayConfigError",
    "RelayError",
    "S3ObjectSource",
    "SourceReadError",
    "UrlSource",
    "WebhookSink",
]
