"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Limits come from settings so they can be
tuned per deployment.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from gatepass.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def _issue_limit() -> str:
    return get_settings().issue_rate_limit


def _redeem_limit() -> str:
    return get_settings().redeem_rate_limit


limit_issue = limiter.limit(_issue_limit)
limit_redeem = limiter.limit(_redeem_limit)
