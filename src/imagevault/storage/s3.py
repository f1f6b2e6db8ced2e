"""Amazon S3 storage backend.

Objects are keyed ``{prefix}full/{timestamp}.{ext}`` and
``{prefix}thumb/{timestamp}.{ext}``, where ``timestamp`` is the upload time
in milliseconds.  Both renderings are encoded and uploaded concurrently.

URLs are either ``{custom_domain}/{key}`` (unsigned; the bucket must allow
public reads) or presigned ``GetObject`` URLs valid for
``url_expiration`` seconds.  Presigned URLs are minted fresh on every call
and are therefore not stable links.

boto3 is synchronous, so every client call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from imagevault.config import S3StorageConfig
from imagevault.errors import ObjectStorageError
from imagevault.image.transform import RenderedImage
from imagevault.models import ImageVariant, StoredImages
from imagevault.observability import get_logger

log = get_logger("imagevault.storage.s3")

_BOTO_CFG = Config(signature_version="s3v4")


class S3StorageBackend:
    """Store renderings as S3 objects.

    Parameters
    ----------
    config:
        A :class:`S3StorageConfig`.
    client:
        Optional pre-built boto3 S3 client.  When omitted, one is created
        from *config*'s region and credentials.  boto3 clients are safe to
        share between concurrent uploads.
    """

    def __init__(self, config: S3StorageConfig, client: Any | None = None) -> None:
        self._config = config
        self._client = client if client is not None else boto3.client(
            "s3",
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            config=_BOTO_CFG,
        )

    def object_keys(self, extension: str, timestamp: int) -> tuple[str, str]:
        """Return the ``(full_key, thumb_key)`` pair for *timestamp*."""
        prefix = self._config.prefix
        return (
            f"{prefix}full/{timestamp}.{extension}",
            f"{prefix}thumb/{timestamp}.{extension}",
        )

    async def store(
        self,
        full: RenderedImage,
        thumbnail: RenderedImage,
        extension: str,
    ) -> StoredImages:
        """Upload both renderings and return their URLs.

        If one upload fails, the object written by the other is deleted
        before the error is raised.

        Raises
        ------
        ObjectStorageError
            If encoding, an upload or URL signing fails.  Nothing is
            written when encoding fails.
        """
        full_key, thumb_key = self.object_keys(extension, int(time.time() * 1000))

        full_buffer, thumb_buffer = await asyncio.gather(
            self._encode(full, full_key),
            self._encode(thumbnail, thumb_key),
        )

        outcomes = await asyncio.gather(
            self._put(full_key, full_buffer, extension),
            self._put(thumb_key, thumb_buffer, extension),
            return_exceptions=True,
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if failures:
            written = [
                key
                for key, outcome in zip((full_key, thumb_key), outcomes)
                if not isinstance(outcome, BaseException)
            ]
            await self._discard(written)
            raise failures[0]

        full_url, thumb_url = await asyncio.gather(
            asyncio.to_thread(self.object_url, full_key),
            asyncio.to_thread(self.object_url, thumb_key),
        )
        return StoredImages(
            full_url=full_url,
            thumb_url=thumb_url,
            file_size=len(full_buffer),
        )

    def object_url(self, key: str) -> str:
        """Return the URL handed back to callers for a freshly stored *key*."""
        if self._config.custom_domain:
            return f"{self._config.custom_domain}/{key}"
        return self.signed_url(key)

    def signed_url(self, key: str) -> str:
        """Mint a presigned ``GetObject`` URL for *key*.

        Raises
        ------
        ObjectStorageError
            If signing fails (e.g. missing credentials).
        """
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._config.bucket, "Key": key},
                ExpiresIn=self._config.url_expiration,
            )
        except (BotoCoreError, ClientError) as exc:
            log.error(
                "Failed to generate signed URL",
                extra={"extra_fields": {"op": "sign", "key": key, "error": str(exc)}},
            )
            raise ObjectStorageError(
                message=f"Failed to generate signed URL for {key}: {exc}",
                context={"bucket": self._config.bucket, "key": key, "operation": "sign"},
                cause=exc,
            ) from exc

    def public_url(self, key: str, variant: ImageVariant | str = ImageVariant.FULL) -> str:
        """Return the unsigned URL of *key*.

        ``{custom_domain}/{key}`` when a custom domain is configured,
        otherwise the virtual-hosted-style S3 URL.  The variant is encoded
        in the key itself.
        """
        if self._config.custom_domain:
            return f"{self._config.custom_domain}/{key}"
        return f"https://{self._config.bucket}.s3.{self._config.region}.amazonaws.com/{key}"

    # -- internals ---------------------------------------------------------

    async def _encode(self, rendering: RenderedImage, key: str) -> bytes:
        try:
            return await asyncio.to_thread(rendering.to_bytes)
        except (OSError, ValueError) as exc:
            log.error(
                "Failed to encode image for S3",
                extra={"extra_fields": {"op": "encode", "key": key, "error": str(exc)}},
            )
            raise ObjectStorageError(
                message=f"Failed to encode {key}: {exc}",
                context={"bucket": self._config.bucket, "key": key, "operation": "encode"},
                cause=exc,
            ) from exc

    async def _put(self, key: str, body: bytes, extension: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._config.bucket,
                Key=key,
                Body=body,
                ContentType=f"image/{extension}",
            )
        except (BotoCoreError, ClientError) as exc:
            log.error(
                "Failed to upload image to S3",
                extra={"extra_fields": {"op": "put", "key": key, "error": str(exc)}},
            )
            raise ObjectStorageError(
                message=f"Failed to upload {key} to bucket {self._config.bucket}: {exc}",
                context={"bucket": self._config.bucket, "key": key, "operation": "put"},
                cause=exc,
            ) from exc

    async def _discard(self, keys: list[str]) -> None:
        for key in keys:
            try:
                await asyncio.to_thread(
                    self._client.delete_object,
                    Bucket=self._config.bucket,
                    Key=key,
                )
            except (BotoCoreError, ClientError) as exc:
                log.warning(
                    "Could not remove orphaned object",
                    extra={"extra_fields": {"op": "cleanup", "key": key, "error": str(exc)}},
                )
