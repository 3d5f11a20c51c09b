"""
order_relay.pipeline - Read, project, deliver and clean up one batch.

    Read -> Decode -> Project -> Serialize -> Deliver -> Cleanup

One call to process() is one unit of work: it stops at the first failing
step and no later step runs. Cleanup only happens after a successful
delivery, and a cleanup failure never turns a delivery into a failure.
Delivery is at-least-once: a crash between delivery and cleanup leaves the
source in place and a re-trigger sends the batch again.

The pipeline holds no per-invocation state; concurrent process() calls on
the same instance are independent.
"""

from __future__ import annotations

from aws_lambda_powertools import Logger

from order_relay.config import RelayConfig
from order_relay.exceptions import CleanupError, DecodeError, DeliveryError, SourceReadError
from order_relay.models import Outcome
from order_relay.projection import decode_batch, is_blank_document, project_batch, serialize_batch
from order_relay.sink import WebhookSink
from order_relay.sources import RecordSource

logger = Logger(service="order-relay")


class RecordPipeline:
    """
    Projects a source document to the delivery shape and posts it to a sink.

    skip_blank_documents: also skip whitespace-only documents and empty
    arrays (polling triggers re-read the same object on every tick).
    """

    def __init__(self, sink: WebhookSink, *, skip_blank_documents: bool = False) -> None:
        self.sink = sink
        self.skip_blank_documents = skip_blank_documents

    @classmethod
    def from_config(
        cls, config: RelayConfig, *, skip_blank_documents: bool = False
    ) -> RecordPipeline:
        return cls(WebhookSink.from_config(config), skip_blank_documents=skip_blank_documents)

    def process(self, source: RecordSource) -> Outcome:
        name = source.name

        try:
            raw = source.read_bytes()
        except SourceReadError as e:
            logger.error("Error reading source", extra={"source": name, "error": str(e)})
            return Outcome.failed(name, e)

        if not raw or (self.skip_blank_documents and is_blank_document(raw)):
            logger.info("Blob is empty, execution skipped.", extra={"source": name})
            return Outcome.skipped(name, "empty document")

        logger.info("Transforming JSON...", extra={"source": name, "size_bytes": len(raw)})
        try:
            records = decode_batch(raw)
        except DecodeError as e:
            logger.error("Error decoding document", extra={"source": name, "error": str(e)})
            return Outcome.failed(name, e)

        if self.skip_blank_documents and not records:
            logger.info("Blob is empty, execution skipped.", extra={"source": name})
            return Outcome.skipped(name, "empty document")

        projected = project_batch(records)
        try:
            body = serialize_batch(projected)
        except DecodeError as e:
            logger.error("Error encoding batch", extra={"source": name, "error": str(e)})
            return Outcome.failed(name, e, record_count=len(projected))

        logger.info(
            "Sending data to webhook...",
            extra={"source": name, "record_count": len(projected)},
        )
        result = self.sink.deliver(body)
        if not result.ok:
            error = DeliveryError.from_result(result)
            logger.error(
                "Error delivering batch",
                extra={"source": name, "status_code": result.status_code, "error": str(error)},
            )
            return Outcome.failed(name, error, record_count=len(projected))
        logger.info(
            "Webhook POST completed successfully.", extra={"status_code": result.status_code}
        )

        try:
            self._cleanup(source)
        except CleanupError as e:
            logger.warning("Error deleting blob", extra={"source": name, "error": str(e)})
            return Outcome.delivered(name, len(projected), cleanup_warning=str(e))

        logger.info("Data successfully sent and blob deleted.", extra={"source": name})
        return Outcome.delivered(name, len(projected))

    def _cleanup(self, source: RecordSource) -> None:
        if not source.deletable:
            logger.info("Source is read-only, skipping delete.", extra={"source": source.name})
            return

        logger.info("Deleting blob", extra={"source": source.name})
        if not source.exists():
            logger.warning("Blob not found, skipping delete.", extra={"source": source.name})
            return
        source.delete()
        logger.info("Blob deleted successfully.", extra={"source": source.name})
