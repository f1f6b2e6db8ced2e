"""Upload orchestrator.

:class:`ImageUploader` is the single entry point a hosting application
calls.  It sequences option merging, decoding and validation, persistence
through the configured backend, and result assembly.

Usage::

    import asyncio
    from imagevault import (
        DimensionBounds, ImageUploader, LocalStorageBackend,
        LocalStorageConfig, UploadOptions, UploadRequest,
    )

    async def main():
        storage = LocalStorageBackend(
            LocalStorageConfig(base_path="./uploads", public_url="/uploads")
        )
        uploader = ImageUploader(
            storage,
            defaults=UploadOptions(full=DimensionBounds(min_width=100)),
        )
        with open("cat.png", "rb") as fh:
            data = fh.read()
        outcome = await uploader.upload(UploadRequest(data, "cat.png", "image/png", len(data)))
        print(outcome)

    asyncio.run(main())
"""

from __future__ import annotations

import time

from imagevault.config import UploadOptions, merge_options
from imagevault.image.transform import process_image
from imagevault.models import UploadRequest, UploadResult, ValidationRejection
from imagevault.observability import MetricsHook, NoopMetricsHook, get_logger
from imagevault.storage.base import StorageBackend

log = get_logger("imagevault.uploader")


class ImageUploader:
    """Validate, render and persist uploaded images.

    Parameters
    ----------
    storage:
        The backend every upload is persisted through.
    defaults:
        Options applied to every upload; per-call overrides are merged over
        them with :func:`~imagevault.config.merge_options`.
    metrics:
        Optional :class:`MetricsHook`.  Defaults to a no-op hook.
    """

    def __init__(
        self,
        storage: StorageBackend,
        defaults: UploadOptions | None = None,
        *,
        metrics: MetricsHook | None = None,
    ) -> None:
        self._storage = storage
        self._defaults = defaults or UploadOptions()
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    @property
    def defaults(self) -> UploadOptions:
        return self._defaults

    async def upload(
        self,
        file: UploadRequest,
        overrides: UploadOptions | None = None,
    ) -> UploadResult | ValidationRejection:
        """Upload one image.

        Parameters
        ----------
        file:
            The uploaded file.
        overrides:
            Options for this call only, merged field by field over the
            configured defaults.

        Returns
        -------
        UploadResult | ValidationRejection
            The stored result, or the dimension rejection.  On rejection the
            storage backend is never called.

        Raises
        ------
        ImageDecodeError
            If the buffer is not a decodable image.
        StorageError
            If the backend fails to persist the renderings.  Not retried.
        """
        options = merge_options(self._defaults, overrides)

        t0 = time.monotonic()
        outcome = process_image(file.buffer, file.filename, options)
        self._metrics.timing(
            "imagevault.process_duration_ms",
            (time.monotonic() - t0) * 1000,
        )

        if isinstance(outcome, ValidationRejection):
            self._metrics.increment(
                "imagevault.upload_rejected_total",
                tags={"code": outcome.code.value},
            )
            log.info(
                "Image rejected",
                extra={
                    "extra_fields": {
                        "op": "upload",
                        "filename": file.filename,
                        "code": outcome.code.value,
                        "width": outcome.width,
                        "height": outcome.height,
                    }
                },
            )
            return outcome

        t0 = time.monotonic()
        try:
            stored = await self._storage.store(
                outcome.full, outcome.thumbnail, outcome.extension
            )
        except Exception as exc:
            self._metrics.increment(
                "imagevault.upload_failure_total",
                tags={"error": type(exc).__name__},
            )
            log.error(
                "Image upload failed",
                extra={
                    "extra_fields": {
                        "op": "upload",
                        "filename": file.filename,
                        "error": str(exc),
                    }
                },
            )
            raise
        self._metrics.timing(
            "imagevault.store_duration_ms",
            (time.monotonic() - t0) * 1000,
        )
        self._metrics.increment("imagevault.upload_success_total")

        result = UploadResult(
            full_url=stored.full_url,
            thumb_url=stored.thumb_url,
            mime_type=f"image/{outcome.extension}",
            file_size=stored.file_size,
            original_filename=file.filename,
            width=outcome.metadata.width,
            height=outcome.metadata.height,
        )
        log.info(
            "Image uploaded",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "filename": file.filename,
                    "file_size": result.file_size,
                    "width": result.width,
                    "height": result.height,
                }
            },
        )
        return result
