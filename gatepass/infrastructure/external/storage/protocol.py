"""Storage service protocol (DIP). Implementations: LocalStorageService, S3StorageService."""

from typing import Protocol


class StorageProtocol(Protocol):
    """Protocol for credential artifact backends (local, S3-compatible).

    Satisfies the application's IObjectStore port.
    """

    async def put(
        self,
        storage_ref: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store data and return a locator the delivery flow can fetch."""
        ...

    async def delete(self, storage_ref: str) -> bool:
        """Delete artifact. Returns True if deleted, False if not found."""
        ...
