"""imagevault — validated image uploads with thumbnails and pluggable storage.

Public re-exports
-----------------

* **Uploader:** :class:`ImageUploader`
* **Configuration:** :class:`UploadOptions`, :class:`DimensionBounds`,
  backend config dataclasses, :func:`merge_options`
* **Storage backends:** :class:`StorageBackend` and its three implementations
* **Errors:** Every :class:`ImageVaultError` subclass and :class:`ErrorCode`
* **Models:** Request, verdict and result dataclasses and enums

Usage::

    from imagevault import ImageUploader, S3StorageBackend, S3StorageConfig

    storage = S3StorageBackend(S3StorageConfig(
        region="eu-west-1", bucket="media",
        access_key_id="AKIA...", secret_access_key="...",
    ))
    uploader = ImageUploader(storage)
    outcome = await uploader.upload(request)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from imagevault.config import (
    DEFAULT_THUMBNAIL_MAX_WIDTH,
    SUPPORTED_FORMATS,
    CloudflareImagesConfig,
    DimensionBounds,
    LocalStorageConfig,
    S3StorageConfig,
    UploadOptions,
    merge_options,
)

# ── Errors ──────────────────────────────────────────────────────────────
from imagevault.errors import (
    DeliveryServiceError,
    ErrorCode,
    ImageDecodeError,
    ImageVaultError,
    ObjectStorageError,
    StorageError,
    StorageWriteError,
)

# ── Image pipeline ──────────────────────────────────────────────────────
from imagevault.image import ProcessedImage, RenderedImage, process_image, validate_dimensions

# ── Models ──────────────────────────────────────────────────────────────
from imagevault.models import (
    ImageMetadata,
    ImageVariant,
    RejectionCode,
    StoredImages,
    UploadRequest,
    UploadResult,
    ValidationRejection,
)

# ── Storage ─────────────────────────────────────────────────────────────
from imagevault.storage import (
    CloudflareImagesBackend,
    LocalStorageBackend,
    S3StorageBackend,
    StorageBackend,
)

# ── Uploader ────────────────────────────────────────────────────────────
from imagevault.uploader import ImageUploader

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Uploader
    "ImageUploader",
    # Configuration
    "UploadOptions",
    "DimensionBounds",
    "merge_options",
    "LocalStorageConfig",
    "S3StorageConfig",
    "CloudflareImagesConfig",
    "SUPPORTED_FORMATS",
    "DEFAULT_THUMBNAIL_MAX_WIDTH",
    # Image pipeline
    "process_image",
    "validate_dimensions",
    "ProcessedImage",
    "RenderedImage",
    # Storage
    "StorageBackend",
    "LocalStorageBackend",
    "S3StorageBackend",
    "CloudflareImagesBackend",
    # Errors
    "ImageVaultError",
    "ErrorCode",
    "ImageDecodeError",
    "StorageError",
    "StorageWriteError",
    "ObjectStorageError",
    "DeliveryServiceError",
    # Models
    "UploadRequest",
    "UploadResult",
    "ValidationRejection",
    "RejectionCode",
    "ImageMetadata",
    "ImageVariant",
    "StoredImages",
]
