"""HTTP middleware: request timeout and request ID.

Applied in main app; order matters (last added = outermost).
"""

from gatepass.middleware.request_id import RequestIDMiddleware
from gatepass.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RequestIDMiddleware",
    "TimeoutMiddleware",
]
