"""Local filesystem storage backend.

Renderings are written as ``{id}.{ext}`` and ``{id}_thumb.{ext}`` under a
base directory, where ``id`` is a fresh UUID per upload, and are served
from ``{public_url}/{filename}``.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

from imagevault.config import LocalStorageConfig
from imagevault.errors import StorageWriteError
from imagevault.image.transform import RenderedImage
from imagevault.models import ImageVariant, StoredImages
from imagevault.observability import get_logger

log = get_logger("imagevault.storage.local")


class LocalStorageBackend:
    """Store renderings on the local filesystem.

    Parameters
    ----------
    config:
        A :class:`LocalStorageConfig`.  Its ``base_path`` is created
        (recursively) here if it does not exist yet.
    """

    def __init__(self, config: LocalStorageConfig) -> None:
        self._config = config
        self._base_path = Path(config.base_path)
        self._public_url = config.public_url.rstrip("/")
        if not self._base_path.exists():
            log.info(
                "Creating base directory",
                extra={"extra_fields": {"op": "init", "path": str(self._base_path)}},
            )
            self._base_path.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def store(
        self,
        full: RenderedImage,
        thumbnail: RenderedImage,
        extension: str,
    ) -> StoredImages:
        """Write the full rendering, then the thumbnail.

        Each rendering is encoded in memory and then written.  If the
        thumbnail fails, the already-written full file is removed before the
        error is raised.

        Raises
        ------
        StorageWriteError
            If either rendering cannot be encoded or written.  The
            ``stage`` context key is ``"encode"`` or ``"write"``.
        """
        file_id = uuid.uuid4().hex
        full_name = f"{file_id}.{extension}"
        thumb_name = f"{file_id}_thumb.{extension}"
        full_path = self._base_path / full_name
        thumb_path = self._base_path / thumb_name

        await self._write(full, full_path, ImageVariant.FULL)
        try:
            await self._write(thumbnail, thumb_path, ImageVariant.THUMB)
        except StorageWriteError:
            await self._discard(full_path)
            raise

        file_size = (await asyncio.to_thread(full_path.stat)).st_size
        log.debug(
            "Stored renderings",
            extra={
                "extra_fields": {
                    "op": "store",
                    "full_path": str(full_path),
                    "thumb_path": str(thumb_path),
                    "file_size": file_size,
                }
            },
        )
        return StoredImages(
            full_url=self.public_url(full_name, ImageVariant.FULL),
            thumb_url=self.public_url(thumb_name, ImageVariant.THUMB),
            file_size=file_size,
        )

    def public_url(self, key: str, variant: ImageVariant | str = ImageVariant.FULL) -> str:
        """Return ``{public_url}/{key}``.

        *key* is the stored filename, which already distinguishes the
        variant, so *variant* does not change the URL.
        """
        return f"{self._public_url}/{key}"

    # -- internals ---------------------------------------------------------

    async def _write(self, rendering: RenderedImage, path: Path, variant: ImageVariant) -> None:
        try:
            data = await asyncio.to_thread(rendering.to_bytes)
        except (OSError, ValueError) as exc:
            raise self._failure("encode", path, variant, exc) from exc
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise self._failure("write", path, variant, exc) from exc

    def _failure(
        self,
        stage: str,
        path: Path,
        variant: ImageVariant,
        exc: Exception,
    ) -> StorageWriteError:
        log.error(
            "Failed to save image",
            extra={
                "extra_fields": {
                    "op": "store",
                    "stage": stage,
                    "path": str(path),
                    "variant": variant.value,
                    "error": str(exc),
                }
            },
        )
        return StorageWriteError(
            message=f"Failed to {stage} {variant.value} image for {path}: {exc}",
            context={"path": str(path), "variant": variant.value, "stage": stage},
            cause=exc,
        )

    async def _discard(self, path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            log.warning(
                "Could not remove orphaned image",
                extra={"extra_fields": {"op": "cleanup", "path": str(path), "error": str(exc)}},
            )
