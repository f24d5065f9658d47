"""Object storage for rendered credentials (local filesystem or S3-compatible)."""

from gatepass.infrastructure.external.storage.factory import create_credential_store
from gatepass.infrastructure.external.storage.protocol import StorageProtocol

__all__ = [
    "StorageProtocol",
    "create_credential_store",
]
