"""Firestore value encoding and the UTC/period helpers it relies on."""

from datetime import UTC, datetime

from gatepass.infrastructure.firebase._rest_encoding import (
    decode_fields,
    encode_value,
    increment_transforms,
    parse_timestamp,
)
from gatepass.infrastructure.firebase.collections import ledger_doc_id, safe_doc_id
from gatepass.shared.utils.datetime import (
    coerce_datetime,
    isoformat_z,
    month_start,
    period_key,
)


def test_nanosecond_timestamp_truncated_to_microseconds() -> None:
    ts = parse_timestamp("2026-03-15T12:00:00.123456789Z")
    assert ts == datetime(2026, 3, 15, 12, 0, 0, 123456, tzinfo=UTC)


def test_timestamp_without_fraction() -> None:
    assert parse_timestamp("2026-03-15T12:00:00Z") == datetime(2026, 3, 15, 12, tzinfo=UTC)


def test_bool_is_not_encoded_as_integer() -> None:
    assert encode_value(True) == {"booleanValue": True}
    assert encode_value(3) == {"integerValue": "3"}


def test_decode_nested_values() -> None:
    fields = {
        "projects": {
            "arrayValue": {
                "values": [
                    {"mapValue": {"fields": {"projectId": {"stringValue": "proj-1"}}}}
                ]
            }
        },
        "usedThisMonth": {"integerValue": "4"},
        "blockedAt": {"nullValue": None},
        "createdAt": {"timestampValue": "2026-03-01T00:00:00Z"},
    }
    assert decode_fields(fields) == {
        "projects": [{"projectId": "proj-1"}],
        "usedThisMonth": 4,
        "blockedAt": None,
        "createdAt": datetime(2026, 3, 1, tzinfo=UTC),
    }


def test_increment_transforms() -> None:
    assert increment_transforms({"usedThisMonth": 1}) == [
        {"fieldPath": "usedThisMonth", "increment": {"integerValue": "1"}}
    ]


def test_doc_ids_cannot_contain_slashes() -> None:
    assert safe_doc_id("Block A/101") == "Block A_101"
    assert ledger_doc_id("u1", "2026-03") == "u1_2026-03"


class TestDatetimeHelpers:
    def test_coerce_epoch_millis_and_iso(self) -> None:
        assert coerce_datetime(1773576000000) == datetime(2026, 3, 15, 12, tzinfo=UTC)
        assert coerce_datetime("2026-03-15T12:00:00Z") == datetime(2026, 3, 15, 12, tzinfo=UTC)
        assert coerce_datetime(True) is None
        assert coerce_datetime(None) is None

    def test_month_start_utc(self) -> None:
        now = datetime(2026, 12, 31, 23, 59, tzinfo=UTC)
        assert month_start(now) == datetime(2026, 12, 1, tzinfo=UTC)
        assert period_key(month_start(now)) == "2026-12"

    def test_month_start_in_zone_ahead_of_utc(self) -> None:
        """23:30 UTC on the last day is already next month in Kampala (UTC+3)."""
        now = datetime(2026, 3, 31, 23, 30, tzinfo=UTC)
        start = month_start(now, "Africa/Kampala")
        assert start == datetime(2026, 3, 31, 21, 0, tzinfo=UTC)
        assert period_key(start, "Africa/Kampala") == "2026-04"

    def test_isoformat_z_milliseconds(self) -> None:
        dt = datetime(2026, 3, 15, 12, 0, 0, 123999, tzinfo=UTC)
        assert isoformat_z(dt) == "2026-03-15T12:00:00.123Z"
