"""Shared utilities: datetime and generators."""

from gatepass.shared.utils.datetime import (
    SystemClock,
    coerce_datetime,
    ensure_utc,
    from_timestamp_ms_utc,
    isoformat_z,
    month_start,
    period_key,
    utc_now,
)
from gatepass.shared.utils.generators import (
    generate_cuid,
    generate_pass_id,
    generate_verification_token,
)

__all__ = [
    "SystemClock",
    "coerce_datetime",
    "ensure_utc",
    "from_timestamp_ms_utc",
    "generate_cuid",
    "generate_pass_id",
    "generate_verification_token",
    "isoformat_z",
    "month_start",
    "period_key",
    "utc_now",
]
