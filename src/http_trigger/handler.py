"""
http_trigger.handler - On-demand relay Lambda behind API Gateway.

GET or POST /process runs the relay once and reports the outcome to the
caller: 200 when the batch was delivered (or there was nothing to send),
500 with the error text otherwise.

Source selection, first match wins:
    1. POST with a non-empty body     the body is the document
    2. ?key=<object key>              s3://BLOB_BUCKET_NAME/<key>
    3. SOURCE_URL                     pre-signed download, never deleted
    4. BLOB_NAME                      s3://BLOB_BUCKET_NAME/BLOB_NAME
"""

from __future__ import annotations

import base64
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext
from order_relay import (
    BytesSource,
    OutcomeStatus,
    RecordPipeline,
    RecordSource,
    RelayConfig,
    RelayConfigError,
    S3ObjectSource,
    UrlSource,
)

logger = Logger(service="http-trigger")
tracer = Tracer()

_DELIVERED_MESSAGE = "Blob JSON processed and sent successfully."
_SKIPPED_MESSAGE = "Blob is empty, execution skipped."

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


def text_response(status_code: int, message: str) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/plain; charset=utf-8"},
        "body": message,
    }


def _request_body(event: dict[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def select_source(event: dict[str, Any], config: RelayConfig) -> RecordSource:
    """Pick the document source for this request.

    Raises RelayConfigError when nothing is supplied and nothing is configured.
    """
    if (event.get("httpMethod") or "GET").upper() == "POST":
        body = _request_body(event)
        if body:
            return BytesSource(body, name="request-body")

    params = event.get("queryStringParameters") or {}
    key = params.get("key")
    if key:
        return S3ObjectSource(
            config.require("bucket"),
            key,
            region=config.region,
            endpoint_url=config.s3_endpoint_url,
        )

    if config.source_url:
        return UrlSource(
            config.source_url, timeout=(config.connect_timeout, config.read_timeout)
        )

    if config.object_key:
        return S3ObjectSource(
            config.require("bucket"),
            config.object_key,
            region=config.region,
            endpoint_url=config.s3_endpoint_url,
        )

    raise RelayConfigError(
        "No source supplied: pass ?key=, a request body, or set SOURCE_URL/BLOB_NAME"
    )


@logger.inject_lambda_context(
    clear_state=True, correlation_id_path=correlation_paths.API_GATEWAY_REST
)
@tracer.capture_lambda_handler
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """HTTP trigger Lambda entry point."""
    logger.info("HTTP trigger received a request to process blob JSON.")

    try:
        config = get_config()
        source = select_source(event, config)
        logger.append_keys(source=source.name)
        outcome = get_pipeline().process(source)
    except Exception as e:
        logger.exception("Error while processing request")
        return text_response(500, f"Error while processing: {e}")

    if outcome.status == OutcomeStatus.FAILED:
        return text_response(500, f"Error while processing: {outcome.reason}")
    if outcome.status == OutcomeStatus.SKIPPED:
        return text_response(200, _SKIPPED_MESSAGE)
    return text_response(200, _DELIVERED_MESSAGE)
