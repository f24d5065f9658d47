"""Errors raised by the guest pass core.

Each carries a stable error_code the API maps to a status, plus a details
mapping with machine-readable context (reason codes, ids). Redemption
outcomes are results, not exceptions, and do not appear here.
"""

from typing import Any


class GatePassException(Exception):
    """Base for every error the API turns into the JSON envelope.

    Attributes:
        message: Shown to the caller as-is.
        error_code: Stable code such as PASS_NOT_FOUND.
        details: Extra context; never holds secrets such as tokens.
        retryable: The same request may succeed if repeated later.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error envelope used by the API."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class ValidationException(GatePassException):
    """Raised when input validation fails (e.g. missing identifier)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class UserNotFoundException(GatePassException):
    """Raised when the user has no record in the system."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            "User not found in the system",
            "USER_NOT_FOUND",
            {"user_id": user_id, "reason": "user_not_found"},
        )


class UserNotInProjectException(GatePassException):
    """Raised when the user has no membership entry for the project."""

    def __init__(self, user_id: str, project_id: str) -> None:
        super().__init__(
            "User does not belong to this project",
            "NOT_IN_PROJECT",
            {"user_id": user_id, "project_id": project_id, "reason": "not_in_project"},
        )


class EligibilityDeniedException(GatePassException):
    """Raised by issuance when the user may not generate a pass right now.

    Carries the original denial message and its reason code.
    """

    def __init__(
        self,
        reason_code: str,
        message: str,
        **details_extra: Any,
    ) -> None:
        """
        Args:
            reason_code: EligibilityReason value (e.g. 'unit_blocked').
            message: Denial message as returned by the eligibility check.
            **details_extra: Optional keys merged into details (e.g. monthly_limit).
        """
        self.reason_code = reason_code
        super().__init__(
            message,
            "ELIGIBILITY_DENIED",
            {"reason": reason_code, **details_extra},
        )


class PassNotFoundException(GatePassException):
    """Raised when an operation targets a guest pass that does not exist."""

    def __init__(self, project_id: str, pass_id: str) -> None:
        super().__init__(
            f"Guest pass not found: {pass_id}",
            "PASS_NOT_FOUND",
            {"project_id": project_id, "pass_id": pass_id},
        )


class ConcurrencyConflictException(GatePassException):
    """Raised when an optimistic write kept losing to concurrent writers."""

    retryable = True

    def __init__(self, resource: str, attempts: int) -> None:
        super().__init__(
            "Too many concurrent requests; retry.",
            "CONCURRENCY_CONFLICT",
            {"resource": resource, "attempts": attempts},
        )


class PolicyAdminRequiredException(GatePassException):
    """Raised when a caller without an admin role tries to change policy."""

    def __init__(self, user_id: str, project_id: str) -> None:
        super().__init__(
            "Only project administrators can change pass policy",
            "FORBIDDEN",
            {"user_id": user_id, "project_id": project_id, "reason": "admin_required"},
        )
