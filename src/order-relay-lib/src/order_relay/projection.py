"""
order_relay.projection - Decode, project and serialize record batches.

Projection is a fixed field-subset copy: every RawRecord yields exactly one
ProjectedRecord holding PROJECTED_FIELDS in order. Missing keys become None;
values are never coerced or defaulted.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable
from typing import Any

from order_relay.exceptions import DecodeError
from order_relay.models import PROJECTED_FIELDS, ProjectedRecord, RawRecord


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def decode_batch(raw: bytes) -> list[RawRecord]:
    """Decode UTF-8 bytes into a list of JSON objects.

    Raises DecodeError if the payload is not UTF-8, not valid JSON, not a
    JSON array, or contains an element that is not an object. Numbers that
    overflow a float and nesting deeper than the interpreter can decode are
    rejected too. A leading byte order mark is accepted.
    """
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Document is not valid UTF-8: {e}") from e

    try:
        document = json.loads(
            text, parse_constant=_reject_constant, parse_float=_parse_finite_float
        )
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Document is not valid JSON: {e}") from e

    if not isinstance(document, list):
        raise DecodeError(f"Expected a JSON array, got {type(document).__name__}")

    for index, item in enumerate(document):
        if not isinstance(item, dict):
            raise DecodeError(
                f"Expected a JSON object at index {index}, got {type(item).__name__}"
            )
    return document


def project_record(raw: RawRecord) -> ProjectedRecord:
    return {field: raw.get(field) for field in PROJECTED_FIELDS}


def project_batch(records: Iterable[RawRecord]) -> list[ProjectedRecord]:
    """Project every record; order and count are preserved."""
    return [project_record(record) for record in records]


def serialize_batch(records: list[ProjectedRecord]) -> bytes:
    """Encode a projected batch as UTF-8 JSON.

    Raises DecodeError for values with no UTF-8 JSON form (non-finite
    numbers, unpaired surrogates from \\u escapes).
    """
    try:
        return json.dumps(records, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (ValueError, UnicodeEncodeError) as e:
        raise DecodeError(f"Document cannot be re-encoded as UTF-8 JSON: {e}") from e


def is_blank_document(raw: bytes) -> bool:
    """True for whitespace-only documents and a bare empty array.

    Undecodable bytes are not blank; decode_batch reports them.
    """
    try:
        text = raw.decode("utf-8-sig").strip()
    except UnicodeDecodeError:
        return False
    return text == "" or text == "[]"
