"""
order_relay.exceptions - Failure taxonomy for the relay pipeline.

Every error raised inside a pipeline step derives from RelayError and is
converted into a terminal Outcome at the pipeline boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from order_relay.models import DeliveryResult


class RelayError(Exception):
    """Base exception for all relay failures."""


class RelayConfigError(RelayError):
    """Raised for missing or invalid environment configuration."""


class SourceReadError(RelayError):
    """
    Raised when the source document cannot be read.

    Attributes:
        source: Human-readable source name (s3://bucket/key, URL without query, ...).
    """

    def __init__(self, *, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Cannot read {source}: {message}")


class DecodeError(RelayError):
    """
    Raised when the document is not UTF-8 encoded JSON array of objects.

    Terminal for the invocation: nothing is delivered and the source is kept.
    """


class DeliveryError(RelayError):
    """
    Raised when the webhook rejects the batch or cannot be reached.

    Attributes:
        status_code: HTTP status returned by the webhook, or None when no
                     response arrived (timeout, connection refused).
    """

    def __init__(self, *, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def from_result(cls, result: DeliveryResult) -> DeliveryError:
        if result.status_code is not None:
            return cls(
                status_code=result.status_code,
                message=f"POST failed with HTTP code: {result.status_code}",
            )
        return cls(status_code=None, message=f"POST failed: {result.error}")


class CleanupError(RelayError):
    """
    Raised when the source object cannot be probed or deleted after delivery.

    Never fails the invocation: the batch has already been delivered.
    """

    def __init__(self, *, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Cannot delete {source}: {message}")
