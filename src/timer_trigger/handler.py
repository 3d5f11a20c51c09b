"""
timer_trigger.handler - Scheduled relay Lambda.

Invoked by an EventBridge schedule (rate(1 minute)). Polls a single object,
s3://TIMER_BLOB_BUCKET_NAME/BLOB_NAME, and relays it when it holds records.
Whitespace-only documents and empty arrays are skipped, since the same key
is re-read on every tick. Failures are logged only.
"""

from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext
from order_relay import Outcome, RecordPipeline, RelayConfig, S3ObjectSource

logger = Logger(service="timer-trigger")
tracer = Tracer()

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
        _pipeline = RecordPipeline.from_config(get_config(), skip_blank_documents=True)
    return _pipeline


@logger.inject_lambda_context(
    clear_state=True, correlation_id_path=correlation_paths.EVENT_BRIDGE
)
@tracer.capture_lambda_handler
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Timer trigger Lambda entry point."""
    logger.info("Timer trigger fired", extra={"scheduled_time": event.get("time")})

    source_name = "unconfigured"
    try:
        config = get_config()
        source = S3ObjectSource(
            config.require("timer_bucket"),
            config.require("object_key"),
            region=config.region,
            endpoint_url=config.s3_endpoint_url,
        )
        source_name = source.name
        outcome = get_pipeline().process(source)
    except Exception as e:
        logger.exception("Error while processing scheduled relay")
        outcome = Outcome.failed(source_name, e)

    return outcome.to_dict()
