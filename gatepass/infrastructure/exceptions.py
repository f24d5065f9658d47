"""Infrastructure exceptions for the document store and object storage.

These extend GatePassException so presentation can map them to HTTP
responses consistently.
"""

from gatepass.domain.exceptions import GatePassException


class StoreUnavailableError(GatePassException):
    """The document store did not answer in time or failed transiently.

    The outcome of the attempted write is unknown; callers may retry.
    """

    retryable = True

    def __init__(self, kind: str, reason: str = "") -> None:
        super().__init__(
            "Document store is temporarily unavailable",
            "SERVICE_UNAVAILABLE",
            {"kind": kind, "reason": reason},
        )


class StorageException(GatePassException):
    """Base exception for object storage operations."""


class StorageUploadError(StorageException):
    """Credential artifact upload failed."""

    def __init__(self, storage_ref: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {storage_ref}",
            "STORAGE_UPLOAD_ERROR",
            {"storage_ref": storage_ref, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Storage reference escapes the storage root."""

    def __init__(self, storage_ref: str) -> None:
        super().__init__(
            f"Invalid storage reference: {storage_ref}",
            "STORAGE_PERMISSION_ERROR",
            {"storage_ref": storage_ref},
        )


class StorageDeleteError(StorageException):
    """Credential artifact deletion failed."""

    def __init__(self, storage_ref: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {storage_ref}",
            "STORAGE_DELETE_ERROR",
            {"storage_ref": storage_ref, "reason": reason},
        )
