"""Exception handlers: every error leaves the API in one envelope.

    {"error": CODE, "message": str, "details": {...}?, "retryable": bool}

Domain exceptions carry their own code; the status comes from
_ERROR_CODE_STATUS. Retryable errors also get a Retry-After header.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from gatepass.core.config import get_settings
from gatepass.domain.exceptions import GatePassException

logger = logging.getLogger(__name__)

_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "STORAGE_PERMISSION_ERROR": 400,
    "NOT_IN_PROJECT": 403,
    "ELIGIBILITY_DENIED": 403,
    "FORBIDDEN": 403,
    "USER_NOT_FOUND": 404,
    "PASS_NOT_FOUND": 404,
    "CONCURRENCY_CONFLICT": 409,
    "STORAGE_UPLOAD_ERROR": 502,
    "STORAGE_DELETE_ERROR": 502,
    "SERVICE_UNAVAILABLE": 503,
}


def _respond(status_code: int, body: dict[str, Any]) -> JSONResponse:
    headers = {"Retry-After": "1"} if body.get("retryable") else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _error_response(
    status_code: int,
    error: str,
    message: Any,
    *,
    details: Any = None,
    retryable: bool = False,
) -> JSONResponse:
    body: dict[str, Any] = {"error": error, "message": message, "retryable": retryable}
    if details is not None:
        body["details"] = details
    return _respond(status_code, body)


def _domain_error(request: Request, exc: GatePassException) -> JSONResponse:
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.warning("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return _respond(status, exc.to_dict())


def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # ctx may hold the raised ValueError itself
    return _error_response(
        422,
        "VALIDATION_ERROR",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, "HTTP_ERROR", exc.detail)


def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error_response(
        429, "RATE_LIMITED", f"Rate limit exceeded: {exc.detail}", retryable=True
    )


def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return _error_response(500, "INTERNAL_ERROR", message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatePassException, _domain_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(RateLimitExceeded, _rate_limited)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled)
