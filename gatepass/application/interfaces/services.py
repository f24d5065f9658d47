"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from gatepass.application.dtos.guest_pass import RenderedCredential


class IClock(Protocol):
    """Source of the current UTC time (injectable for tests)."""

    def now(self) -> datetime:
        ...


class ICredentialRenderer(Protocol):
    """Turns a credential payload into scannable artifact bytes."""

    def render(self, payload: dict[str, Any]) -> RenderedCredential:
        ...


# Object storage interface
class IObjectStore(Protocol):
    """Protocol for credential artifact storage (local, S3, etc.)."""

    async def put(
        self,
        storage_ref: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store data under storage_ref and return a retrievable locator.

        Raises:
            StorageUploadError: upload failed.
            StoragePermissionError: storage_ref escapes the storage root.
        """

    async def delete(self, storage_ref: str) -> bool:
        """Remove a stored artifact. Returns False if it was not there."""
