from __future__ import annotations

import base64
import json
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import boto3
import pytest
import requests
from moto import mock_aws

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src" / "order-relay-lib" / "src"))

from order_relay import BytesSource, RelayConfig, RelayConfigError, S3ObjectSource, UrlSource
from src.http_trigger import handler as http_handler

REGION = "eu-west-2"
BUCKET = "orders-inbox"
POST_URL = "https://hooks.example.test/orders"
SOURCE_URL = "https://example.blob.test/poc-json-file/sample-trigger-file.json?sig=abc"


class FakeLambdaContext:
    function_name = "http-trigger"
    memory_limit_in_mb = 256
    invoked_function_arn = "arn:aws:lambda:eu-west-2:111111111111:function:http-trigger"
    aws_request_id = "req-456"


@pytest.fixture(autouse=True)
def relay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("POST_URL", POST_URL)
    monkeypatch.setenv("BLOB_BUCKET_NAME", BUCKET)
    monkeypatch.delenv("SOURCE_URL", raising=False)
    monkeypatch.delenv("BLOB_NAME", raising=False)
    monkeypatch.setattr(http_handler, "_config", None)
    monkeypatch.setattr(http_handler, "_pipeline", None)


@pytest.fixture
def s3() -> Any:
    with mock_aws():
        client = boto3.client("s3", region_name=REGION)
        client.create_bucket(
            Bucket=BUCKET, CreateBucketConfiguration={"LocationConstraint": REGION}
        )
        yield client


def _event(
    method: str = "GET",
    *,
    body: str | None = None,
    query: dict[str, str] | None = None,
    base64_body: bool = False,
) -> dict[str, Any]:
    return {
        "resource": "/process",
        "path": "/process",
        "httpMethod": method,
        "headers": {"Content-Type": "application/json"},
        "queryStringParameters": query,
        "body": body,
        "isBase64Encoded": base64_body,
        "requestContext": {"requestId": "api-req-1", "stage": "dev"},
    }


def _response(status_code: int) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    return response


# ---------------------------------------------------------------------------
# Source selection
# ---------------------------------------------------------------------------


def test_select_source_prefers_post_body():
    config = RelayConfig(post_url=POST_URL, bucket=BUCKET, source_url=SOURCE_URL)
    source = http_handler.select_source(_event("POST", body='[{"orderId": 1}]'), config)
    assert isinstance(source, BytesSource)
    assert source.read_bytes() == b'[{"orderId": 1}]'


def test_select_source_decodes_base64_body():
    config = RelayConfig(post_url=POST_URL)
    encoded = base64.b64encode(b'[{"orderId": 1}]').decode()
    source = http_handler.select_source(_event("POST", body=encoded, base64_body=True), config)
    assert source.read_bytes() == b'[{"orderId": 1}]'


def test_select_source_query_key(s3):
    config = RelayConfig(post_url=POST_URL, bucket=BUCKET, source_url=SOURCE_URL)
    source = http_handler.select_source(_event(query={"key": "in/orders.json"}), config)
    assert isinstance(source, S3ObjectSource)
    assert source.name == f"s3://{BUCKET}/in/orders.json"


def test_select_source_url_when_configured():
    config = RelayConfig(post_url=POST_URL, source_url=SOURCE_URL, object_key="x.json")
    source = http_handler.select_source(_event("POST", body=""), config)
    assert isinstance(source, UrlSource)


def test_select_source_object_key_fallback(s3):
    config = RelayConfig(post_url=POST_URL, bucket=BUCKET, object_key="poll/orders.json")
    source = http_handler.select_source(_event(), config)
    assert isinstance(source, S3ObjectSource)
    assert source.key == "poll/orders.json"


def test_select_source_nothing_configured():
    with pytest.raises(RelayConfigError, match="No source supplied"):
        http_handler.select_source(_event(), RelayConfig(post_url=POST_URL))


# ---------------------------------------------------------------------------
# Handler responses
# ---------------------------------------------------------------------------


def test_handler_delivers_s3_object(s3):
    s3.put_object(
        Bucket=BUCKET,
        Key="in/orders.json",
        Body=b'[{"orderId":1,"customerId":2,"totalAmount":9.5,"status":"OPEN","extra":"x"}]',
    )

    with patch("requests.post", return_value=_response(200)) as mock_post:
        response = http_handler.handler(
            _event(query={"key": "in/orders.json"}), FakeLambdaContext()
        )

    assert response["statusCode"] == 200
    assert response["body"] == "Blob JSON processed and sent successfully."
    assert json.loads(mock_post.call_args.kwargs["data"]) == [
        {"orderId": 1, "customerId": 2, "totalAmount": 9.5, "status": "OPEN"}
    ]
    assert s3.list_objects_v2(Bucket=BUCKET).get("KeyCount", 0) == 0


def test_handler_delivers_signed_url_without_deleting(monkeypatch):
    monkeypatch.setenv("SOURCE_URL", SOURCE_URL)
    download = MagicMock(status_code=200, content=b'[{"orderId": 5, "status": "PAID"}]')

    with (
        patch("requests.get", return_value=download) as mock_get,
        patch("requests.post", return_value=_response(200)) as mock_post,
    ):
        response = http_handler.handler(_event(), FakeLambdaContext())

    assert response["statusCode"] == 200
    mock_get.assert_called_once_with(SOURCE_URL, timeout=(5.0, 5.0))
    assert json.loads(mock_post.call_args.kwargs["data"]) == [
        {"orderId": 5, "customerId": None, "totalAmount": None, "status": "PAID"}
    ]


def test_handler_inline_body():
    with patch("requests.post", return_value=_response(202)) as mock_post:
        response = http_handler.handler(
            _event("POST", body='[{"orderId": 9}]'), FakeLambdaContext()
        )

    assert response["statusCode"] == 200
    mock_post.assert_called_once()


def test_handler_empty_document_is_skipped(s3):
    s3.put_object(Bucket=BUCKET, Key="empty.json", Body=b"")

    with patch("requests.post") as mock_post:
        response = http_handler.handler(_event(query={"key": "empty.json"}), FakeLambdaContext())

    assert response["statusCode"] == 200
    assert response["body"] == "Blob is empty, execution skipped."
    mock_post.assert_not_called()


def test_handler_delivery_failure_returns_500(s3):
    s3.put_object(Bucket=BUCKET, Key="in/orders.json", Body=b'[{"orderId": 1}]')

    with patch("requests.post", return_value=_response(503)):
        response = http_handler.handler(
            _event(query={"key": "in/orders.json"}), FakeLambdaContext()
        )

    assert response["statusCode"] == 500
    assert response["body"] == "Error while processing: POST failed with HTTP code: 503"
    assert s3.list_objects_v2(Bucket=BUCKET).get("KeyCount", 0) == 1


def test_handler_decode_failure_returns_500():
    with patch("requests.post") as mock_post:
        response = http_handler.handler(_event("POST", body="not json"), FakeLambdaContext())

    assert response["statusCode"] == 500
    assert "Document is not valid JSON" in response["body"]
    mock_post.assert_not_called()


def test_handler_download_failure_returns_500(monkeypatch):
    monkeypatch.setenv("SOURCE_URL", SOURCE_URL)

    with patch("requests.get", side_effect=requests.ConnectionError("refused")):
        response = http_handler.handler(_event(), FakeLambdaContext())

    assert response["statusCode"] == 500
    assert "ConnectionError" in response["body"]
    assert "sig=abc" not in response["body"]


def test_handler_without_source_returns_500():
    response = http_handler.handler(_event(), FakeLambdaContext())
    assert response["statusCode"] == 500
    assert response["headers"]["Content-Type"].startswith("text/plain")
    assert "No source supplied" in response["body"]


def test_handler_missing_post_url_returns_500(monkeypatch):
    monkeypatch.delenv("POST_URL")
    response = http_handler.handler(_event("POST", body="[]"), FakeLambdaContext())
    assert response["statusCode"] == 500
    assert "POST_URL is not set" in response["body"]


def test_handler_does_not_carry_source_key_between_invocations():
    with patch("requests.post", return_value=_response(200)):
        first = http_handler.handler(_event("POST", body='[{"orderId": 1}]'), FakeLambdaContext())
    assert first["statusCode"] == 200

    second = http_handler.handler(_event(), FakeLambdaContext())

    assert second["statusCode"] == 500
    assert "source" not in http_handler.logger.get_current_keys()
