"""
order_relay.models - Record shapes and invocation outcomes.

RawRecord:       one element of the decoded input array, arbitrary keys.
ProjectedRecord: exactly the PROJECTED_FIELDS keys, in that order.
Outcome:         terminal result of one pipeline invocation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

# Output shape; key order is preserved on serialization.
PROJECTED_FIELDS: tuple[str, ...] = ("orderId", "customerId", "totalAmount", "status")

RawRecord = dict[str, Any]
ProjectedRecord = dict[str, Any]


class OutcomeStatus(StrEnum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a single webhook POST.

    status_code is None when the request never produced a response.
    """

    ok: bool
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class Outcome:
    """Terminal result of RecordPipeline.process().

    error_type names the failing step's error class (DecodeError,
    DeliveryError, SourceReadError) and is only set when status is FAILED.
    status_code is the webhook's HTTP status when a DeliveryError carried
    one. cleanup_warning is set when delivery succeeded but the source could
    not be deleted.
    """

    status: OutcomeStatus
    source: str
    record_count: int = 0
    reason: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    cleanup_warning: str | None = None

    @classmethod
    def delivered(
        cls, source: str, record_count: int, *, cleanup_warning: str | None = None
    ) -> Outcome:
        return cls(
            status=OutcomeStatus.DELIVERED,
            source=source,
            record_count=record_count,
            cleanup_warning=cleanup_warning,
        )

    @classmethod
    def skipped(cls, source: str, reason: str | None = None) -> Outcome:
        return cls(status=OutcomeStatus.SKIPPED, source=source, reason=reason)

    @classmethod
    def failed(cls, source: str, error: Exception, record_count: int = 0) -> Outcome:
        return cls(
            status=OutcomeStatus.FAILED,
            source=source,
            record_count=record_count,
            reason=str(error),
            error_type=type(error).__name__,
            status_code=getattr(error, "status_code", None),
        )

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = str(self.status)
        return data
