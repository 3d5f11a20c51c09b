"""
blob_trigger.handler - Relay Lambda for new objects in the orders bucket.

Triggered by S3 ObjectCreated notifications on BLOB_BUCKET_NAME.
Each notified object is projected, POSTed to POST_URL and deleted on success.
Failures are logged only; there is no caller to report them to.
"""

from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.data_classes import S3Event, event_source
from aws_lambda_powertools.utilities.typing import LambdaContext
from order_relay import Outcome, RecordPipeline, RelayConfig, S3ObjectSource

logger = Logger(service="blob-trigger")
tracer = Tracer()

# ---------------------------------------------------------------------------
# Cold-start state
# ---------------------------------------------------------------------------
_config: RelayConfig | None = None
_pipeline: RecordPipeline | None = None


def get_config() -> RelayConfig:
    global _config
    if _config is None:
        _config = RelayConfig.from_env()
    return _config


def get_pipeline() -> RecordPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = RecordPipeline.from_config(get_config())
    return _pipeline


def process_object(config: RelayConfig, pipeline: RecordPipeline, bucket: str, key: str) -> Outcome:
    source = S3ObjectSource(
        bucket, key, region=config.region, endpoint_url=config.s3_endpoint_url
    )
    return pipeline.process(source)


@logger.inject_lambda_context(clear_state=True)
@tracer.capture_lambda_handler
@event_source(data_class=S3Event)
def handler(event: S3Event, context: LambdaContext) -> dict[str, Any]:
    """Blob trigger Lambda entry point."""
    outcomes: list[dict[str, Any]] = []
    try:
        config = get_config()
        pipeline = get_pipeline()
    except Exception:
        logger.exception("Error loading relay configuration")
        return {"outcomes": outcomes}

    for record in event.records:
        bucket = record.s3.bucket.name
        key = record.s3.get_object.key
        logger.info("Blob trigger received", extra={"bucket": bucket, "key": key})

        if config.bucket and bucket != config.bucket:
            logger.warning(
                "Ignoring object from unexpected bucket",
                extra={"bucket": bucket, "expected_bucket": config.bucket},
            )
            continue

        try:
            outcome = process_object(config, pipeline, bucket, key)
        except Exception as e:
            logger.exception("Error processing blob", extra={"bucket": bucket, "key": key})
            outcome = Outcome.failed(f"s3://{bucket}/{key}", e)
        outcomes.append(outcome.to_dict())

    return {"outcomes": outcomes}
