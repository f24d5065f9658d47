"""Encode/decode Python values to/from Firestore REST API 'fields' format."""

import base64
import re
from datetime import datetime
from typing import Any

from gatepass.shared.utils.datetime import ensure_utc

# Firestore returns up to nanosecond precision; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"\.(\d{1,9})")


def _encode_timestamp(v: datetime) -> str:
    return ensure_utc(v).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp as returned by Firestore (Z suffix, 0-9 fractional digits)."""
    text = raw.replace("Z", "+00:00")
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def encode_value(v: Any) -> dict:
    """Encode one Python value as a Firestore Value."""
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": _encode_timestamp(v)}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": encode_fields(v)}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_fields(data: dict[str, Any]) -> dict[str, dict]:
    return {k: encode_value(v) for k, v in data.items()}


def encode_document(data: dict[str, Any]) -> dict:
    """Convert a Python dict to a Firestore REST Document body."""
    return {"fields": encode_fields(data)}


def decode_value(obj: dict) -> Any:
    """Decode one Firestore Value to a Python value."""
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return parse_timestamp(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "referenceValue" in obj:
        return obj["referenceValue"]
    if "arrayValue" in obj:
        return [decode_value(x) for x in obj["arrayValue"].get("values") or []]
    if "mapValue" in obj:
        return decode_fields(obj["mapValue"].get("fields"))
    return None


def decode_fields(fields: dict | None) -> dict:
    """Convert a Firestore 'fields' map to a Python dict."""
    if not fields:
        return {}
    return {k: decode_value(v) for k, v in fields.items()}


def increment_transforms(increments: dict[str, int]) -> list[dict]:
    """Build updateTransforms for atomic server-side integer increments."""
    return [
        {"fieldPath": field, "increment": encode_value(int(amount))}
        for field, amount in increments.items()
    ]
