"""Builds the credential store configured by STORAGE_BACKEND."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from gatepass.infrastructure.external.storage.protocol import StorageProtocol

if TYPE_CHECKING:
    from gatepass.core.config import Settings


def _local_store(settings: Settings) -> StorageProtocol:
    from gatepass.infrastructure.external.storage.local_storage import LocalStorageService

    if not settings.storage_root:
        raise ValueError("STORAGE_ROOT is required when STORAGE_BACKEND=local")
    return LocalStorageService(settings.storage_root, base_url=settings.storage_base_url)


def _s3_store(settings: Settings) -> StorageProtocol:
    # boto3 is only imported when the s3 backend is selected
    from gatepass.infrastructure.external.storage.s3_storage import S3StorageService

    if not settings.s3_bucket:
        raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")
    secret = settings.s3_secret_key
    return S3StorageService(
        settings.s3_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.s3_access_key,
        secret_key=secret.get_secret_value() if secret else None,
    )


_BUILDERS: dict[str, Callable[[Settings], StorageProtocol]] = {
    "local": _local_store,
    "s3": _s3_store,
}


def create_credential_store(settings: Settings | None = None) -> StorageProtocol:
    """Return the object store rendered credentials are written to.

    Raises:
        ValueError: unknown backend, or a backend missing its required setting.
    """
    if settings is None:
        from gatepass.core.config import get_settings

        settings = get_settings()
    backend = settings.storage_backend.strip().lower()
    try:
        build = _BUILDERS[backend]
    except KeyError:
        supported = ", ".join(sorted(_BUILDERS))
        raise ValueError(
            f"Unknown storage backend {backend!r} (supported: {supported})"
        ) from None
    return build(settings)
