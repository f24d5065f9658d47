"""S3-compatible object storage (AWS S3, MinIO, etc.)."""

from __future__ import annotations

import asyncio

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from gatepass.infrastructure.exceptions import (
    StorageDeleteError,
    StorageUploadError,
)


class S3StorageService:
    """Credential store on S3 or any S3-compatible endpoint (MinIO, Spaces).

    boto3 is synchronous, so every call runs in a worker thread. Objects are
    written with SSE (AES256).
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client=None,
    ) -> None:
        """
        Args:
            endpoint_url: Non-AWS endpoint; also changes the locator to
                path style (endpoint/bucket/key).
            access_key, secret_key: Static credentials. The default boto3
                chain (env, profile, IAM role) applies when unset.
            client: Pre-built boto3 client, used as-is.
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        if client is not None:
            self._client = client
        else:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            self._client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )

    def _locator(self, storage_ref: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{storage_ref}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{storage_ref}"

    async def put(
        self,
        storage_ref: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload and return the object URL (virtual-hosted style on AWS)."""
        meta = {k.lower().replace("_", "-"): v for k, v in (metadata or {}).items()}

        def _upload() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=storage_ref,
                Body=data,
                ContentType=content_type,
                ServerSideEncryption="AES256",
                Metadata=meta,
            )

        try:
            await asyncio.to_thread(_upload)
        except (BotoCoreError, ClientError) as e:
            raise StorageUploadError(storage_ref, str(e)) from e
        return self._locator(storage_ref)

    async def delete(self, storage_ref: str) -> bool:
        """Remove the object. False when the key does not exist."""
        def _delete() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=storage_ref)
            except ClientError as e:
                if e.response["Error"]["Code"] in ("404", "NoSuchKey"):
                    return False
                raise
            self._client.delete_object(Bucket=self.bucket, Key=storage_ref)
            return True

        try:
            return await asyncio.to_thread(_delete)
        except (BotoCoreError, ClientError) as e:
            raise StorageDeleteError(storage_ref, str(e)) from e
