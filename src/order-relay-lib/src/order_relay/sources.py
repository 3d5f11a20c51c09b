"""
order_relay.sources - Where a batch document comes from.

A RecordSource exposes the capability set the pipeline needs:
read the document, probe for its existence, and delete it after delivery.

    S3ObjectSource  bucket + key, read and deleted through boto3
    UrlSource       plain HTTP GET (e.g. a pre-signed URL), read-only
    BytesSource     bytes already in hand; cleanup delegated to an origin
"""

from __future__ import annotations

import os
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

import boto3
import requests
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from order_relay.exceptions import CleanupError, SourceReadError

logger = Logger(service="order-relay")

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@runtime_checkable
class RecordSource(Protocol):
    name: str
    deletable: bool

    def exists(self) -> bool: ...

    def read_bytes(self) -> bytes: ...

    def delete(self) -> None: ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectSource:
    """An object in S3, addressed by bucket and key."""

    deletable = True

    def __init__(
        self,
        bucket: str,
        key: str,
        *,
        s3_client: Any = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.name = f"s3://{bucket}/{key}"
        self._s3: Any = s3_client or boto3.client(
            "s3",
            region_name=region or os.environ.get("AWS_REGION"),
            endpoint_url=endpoint_url,
        )

    def exists(self) -> bool:
        """HEAD the object. Raises CleanupError on anything but a clean 404."""
        try:
            self._s3.head_object(Bucket=self.bucket, Key=self.key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise CleanupError(source=self.name, message=str(e)) from e
        except BotoCoreError as e:
            raise CleanupError(source=self.name, message=str(e)) from e
        return True

    def read_bytes(self) -> bytes:
        logger.info("Reading JSON from S3", extra={"source": self.name})
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=self.key)
            return response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise SourceReadError(source=self.name, message="object not found") from e
            raise SourceReadError(source=self.name, message=str(e)) from e
        except BotoCoreError as e:
            raise SourceReadError(source=self.name, message=str(e)) from e

    def delete(self) -> None:
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=self.key)
        except (ClientError, BotoCoreError) as e:
            raise CleanupError(source=self.name, message=str(e)) from e


class UrlSource:
    """A document downloaded with a plain GET.

    The query string usually carries a signature, so it is left out of name.
    """

    deletable = False

    def __init__(self, url: str, *, timeout: tuple[float, float] = (5.0, 5.0)) -> None:
        self.url = url
        self.timeout = timeout
        parts = urlsplit(url)
        self.name = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

    def exists(self) -> bool:
        return True

    def read_bytes(self) -> bytes:
        logger.info("Downloading JSON", extra={"source": self.name})
        try:
            response = requests.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            # requests puts the full URL, signature included, in its messages
            raise SourceReadError(source=self.name, message=f"{type(e).__name__} on GET") from e
        if response.status_code >= 400:
            raise SourceReadError(
                source=self.name, message=f"GET failed with HTTP code: {response.status_code}"
            )
        return response.content

    def delete(self) -> None:
        raise CleanupError(source=self.name, message="URL sources are read-only")


class BytesSource:
    """Pre-fetched document bytes.

    When an origin source is given, existence checks and deletion act on it;
    otherwise the source is read-only.
    """

    def __init__(
        self, content: bytes, *, name: str = "inline", origin: RecordSource | None = None
    ) -> None:
        self._content = content
        self._origin = origin
        self.name = origin.name if origin is not None else name
        self.deletable = origin is not None and origin.deletable

    def exists(self) -> bool:
        return self._origin.exists() if self._origin is not None else True

    def read_bytes(self) -> bytes:
        return self._content

    def delete(self) -> None:
        if self._origin is None:
            raise CleanupError(source=self.name, message="inline sources are read-only")
        self._origin.delete()
