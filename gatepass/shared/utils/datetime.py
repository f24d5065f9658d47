"""Time helpers. Everything stored or compared is timezone-aware UTC;
local zones appear only when computing quota month boundaries.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from gatepass.core.constants import PERIOD_KEY_FORMAT


def utc_now() -> datetime:
    """Aware UTC now. Services take an IClock instead of calling this directly."""
    return datetime.now(UTC)


class SystemClock:
    """Clock backed by the system time. Swap for a fixed clock in tests."""

    def now(self) -> datetime:
        return utc_now()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize to aware UTC; naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def from_timestamp_ms_utc(timestamp_ms: int) -> datetime:
    """Epoch milliseconds (older pass records store these) to aware UTC."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def to_timestamp_ms(dt: datetime) -> int:
    return int(ensure_utc(dt).timestamp() * 1000)


def coerce_datetime(value: object) -> datetime | None:
    """Return a UTC datetime for a stored timestamp (datetime, epoch ms or ISO string)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        return from_timestamp_ms_utc(int(value))
    if isinstance(value, str) and value:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    return None


def month_start(now: datetime, tz_name: str = "UTC") -> datetime:
    """Return the first instant of the calendar month containing now, in tz_name, as UTC.

    Example: now=2024-03-01T02:00Z with tz 'America/New_York' is still
    February locally, so the result is 2024-02-01T05:00Z.
    """
    local = ensure_utc(now).astimezone(ZoneInfo(tz_name))
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return first.astimezone(UTC)


def period_key(period_start: datetime, tz_name: str = "UTC") -> str:
    """Return the YYYY-MM key of the quota period starting at period_start."""
    return ensure_utc(period_start).astimezone(ZoneInfo(tz_name)).strftime(PERIOD_KEY_FORMAT)


def isoformat_z(dt: datetime) -> str:
    """ISO-8601 in UTC with a trailing Z and millisecond precision (JS toISOString style)."""
    u = ensure_utc(dt)
    return u.strftime("%Y-%m-%dT%H:%M:%S.") + f"{u.microsecond // 1000:03d}Z"
