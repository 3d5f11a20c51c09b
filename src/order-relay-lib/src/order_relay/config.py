"""
order_relay.config - Relay configuration read once from the environment.

Handlers build a RelayConfig at cold start and pass it explicitly to the
pipeline, so tests can inject fake endpoints and buckets.

Environment variables:
    POST_URL                 Webhook endpoint (required)
    BLOB_BUCKET_NAME         Bucket watched by the blob trigger
    TIMER_BLOB_BUCKET_NAME   Bucket polled by the timer trigger (defaults to BLOB_BUCKET_NAME)
    BLOB_NAME                Object key polled by the timer trigger / HTTP fallback
    SOURCE_URL               Pre-signed download URL for the HTTP trigger
    POST_CONNECT_TIMEOUT_MS  Webhook connect timeout (default 5000)
    POST_READ_TIMEOUT_MS     Webhook read timeout (default 5000)
    AWS_REGION               Region for the S3 client
    S3_ENDPOINT_URL          S3 endpoint override for local development
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from order_relay.exceptions import RelayConfigError

DEFAULT_TIMEOUT_MS = 5000

_ENV_NAMES = {
    "post_url": "POST_URL",
    "bucket": "BLOB_BUCKET_NAME",
    "timer_bucket": "TIMER_BLOB_BUCKET_NAME",
    "object_key": "BLOB_NAME",
    "source_url": "SOURCE_URL",
    "connect_timeout_ms": "POST_CONNECT_TIMEOUT_MS",
    "read_timeout_ms": "POST_READ_TIMEOUT_MS",
    "region": "AWS_REGION",
    "s3_endpoint_url": "S3_ENDPOINT_URL",
}


def _optional(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name, "").strip()
    return value or None


def _timeout_ms(environ: Mapping[str, str], name: str) -> int:
    raw = _optional(environ, name)
    if raw is None:
        return DEFAULT_TIMEOUT_MS
    try:
        value = int(raw)
    except ValueError as e:
        raise RelayConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise RelayConfigError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class RelayConfig:
    post_url: str
    bucket: str | None = None
    timer_bucket: str | None = None
    object_key: str | None = None
    source_url: str | None = None
    connect_timeout_ms: int = DEFAULT_TIMEOUT_MS
    read_timeout_ms: int = DEFAULT_TIMEOUT_MS
    region: str | None = None
    s3_endpoint_url: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        """Build the configuration from environment variables.

        Raises RelayConfigError if POST_URL is missing or a timeout is invalid.
        """
        env = os.environ if environ is None else environ

        post_url = _optional(env, "POST_URL")
        if post_url is None:
            raise RelayConfigError("POST_URL is not set")

        bucket = _optional(env, "BLOB_BUCKET_NAME")
        return cls(
            post_url=post_url,
            bucket=bucket,
            timer_bucket=_optional(env, "TIMER_BLOB_BUCKET_NAME") or bucket,
            object_key=_optional(env, "BLOB_NAME"),
            source_url=_optional(env, "SOURCE_URL"),
            connect_timeout_ms=_timeout_ms(env, "POST_CONNECT_TIMEOUT_MS"),
            read_timeout_ms=_timeout_ms(env, "POST_READ_TIMEOUT_MS"),
            region=_optional(env, "AWS_REGION"),
            s3_endpoint_url=_optional(env, "S3_ENDPOINT_URL"),
        )

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000

    @property
    def read_timeout(self) -> float:
        return self.read_timeout_ms / 1000

    def require(self, field: str) -> Any:
        """Return a configured value or raise RelayConfigError naming its env var."""
        value = getattr(self, field)
        if value is None:
            raise RelayConfigError(f"{_ENV_NAMES[field]} is not set")
        return value
