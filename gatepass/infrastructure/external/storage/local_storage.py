"""Local filesystem credential store.

Artifacts live under storage_root/<storage_ref>, each with a
"<name>.meta.json" sidecar carrying content type and caller metadata.
Writes go to a temp file in the target directory and are renamed into
place, so readers never see a partial credential.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from gatepass.infrastructure.exceptions import (
    StoragePermissionError,
    StorageUploadError,
)
from gatepass.shared.utils.datetime import isoformat_z, utc_now

_FILE_MODE = 0o640
_DIR_MODE = 0o750


def _sidecar(path: Path) -> Path:
    return path.with_name(path.name + ".meta.json")


async def _atomic_write(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=path.suffix)
    os.close(fd)
    try:
        async with aiofiles.open(tmp_name, "wb") as f:
            await f.write(data)
        os.chmod(tmp_name, _FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalStorageService:
    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        """
        Args:
            storage_root: Directory every storage_ref is resolved under.
            base_url: Public URL the root is served at. Locators are absolute
                file paths when unset.
        """
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=_DIR_MODE)

    def _resolve(self, storage_ref: str) -> Path:
        path = (self.storage_root / storage_ref).resolve()
        if not path.is_relative_to(self.storage_root):
            raise StoragePermissionError(storage_ref)
        return path

    async def put(
        self,
        storage_ref: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        path = self._resolve(storage_ref)
        sidecar = {
            "storage_ref": storage_ref,
            "size": len(data),
            "content_type": content_type,
            "uploaded_at": isoformat_z(utc_now()),
            "custom": metadata or {},
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True, mode=_DIR_MODE)
            await _atomic_write(path, data)
            await _atomic_write(_sidecar(path), json.dumps(sidecar, indent=2).encode())
        except OSError as e:
            raise StorageUploadError(storage_ref, str(e)) from e

        if self.base_url:
            return f"{self.base_url}/{storage_ref.lstrip('/')}"
        return str(path)

    async def delete(self, storage_ref: str) -> bool:
        """Remove the artifact and its sidecar. False when it was not stored."""
        path = self._resolve(storage_ref)
        if not path.is_file():
            return False
        await aiofiles.os.remove(path)
        sidecar = _sidecar(path)
        if sidecar.exists():
            await aiofiles.os.remove(sidecar)
        return True
