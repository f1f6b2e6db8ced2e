"""Public data models for the imagevault library.

This module contains the request, verdict and result types that cross the
public API surface.  All types are plain dataclasses with no behaviour
beyond structural equality and ``to_dict`` helpers for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from imagevault.config import DimensionBounds


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ImageVariant(str, Enum):
    """The two renderings produced for every accepted upload."""

    FULL = "full"
    """The (optionally resized) full-size image."""

    THUMB = "thumb"
    """The thumbnail."""


class RejectionCode(str, Enum):
    """Machine-readable codes for dimension-validation rejections."""

    DIMENSIONS_TOO_SMALL = "dimensions_too_small"
    """A ``min_width`` or ``min_height`` bound was violated."""

    DIMENSIONS_TOO_LARGE = "dimensions_too_large"
    """A ``max_width`` or ``max_height`` bound was violated."""


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadRequest:
    """A file handed to :meth:`ImageUploader.upload`.

    Attributes
    ----------
    buffer:
        Raw uploaded bytes.
    filename:
        Original client-side filename.  Its extension names the output
        encoding when no ``convert_to`` option is set.
    mime_type:
        MIME type declared by the client.  Informational only; the real
        format is always detected by decoding.
    size:
        Size declared by the client, in bytes.  Informational only.
    """

    buffer: bytes
    filename: str
    mime_type: str = "application/octet-stream"
    size: int = 0


# ---------------------------------------------------------------------------
# Metadata & verdicts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageMetadata:
    """Intrinsic properties read from the decoded source image."""

    width: int
    height: int
    format: str


@dataclass(frozen=True)
class ValidationRejection:
    """A failed dimension check.

    Returned -- never raised -- so that callers can branch on it without
    exception handling.

    Attributes
    ----------
    code:
        :class:`RejectionCode` of the first violated bound.
    message:
        Sentence naming the dimension, observed value and bound.
    width / height:
        Dimensions of the uploaded (not resized) image.
    required:
        The bound pair relevant to *code*: the min pair for
        ``dimensions_too_small``, the max pair for ``dimensions_too_large``.
    """

    code: RejectionCode
    message: str
    width: int
    height: int
    required: DimensionBounds

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "validation_error",
            "code": self.code.value,
            "message": self.message,
            "details": {
                "width": self.width,
                "height": self.height,
                "required": self.required.to_dict(),
            },
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoredImages:
    """What a storage backend reports after persisting both renderings.

    Attributes
    ----------
    full_url / thumb_url:
        Public URLs of the two renderings.
    file_size:
        Size in bytes of the full rendering as stored.
    """

    full_url: str
    thumb_url: str
    file_size: int


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload.

    ``width`` and ``height`` are the dimensions of the image as uploaded,
    read before any resize was applied to the full rendering.
    """

    full_url: str
    thumb_url: str
    mime_type: str
    file_size: int
    original_filename: str
    width: int
    height: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullUrl": self.full_url,
            "thumbUrl": self.thumb_url,
            "mimeType": self.mime_type,
            "fileSize": self.file_size,
            "originalFilename": self.original_filename,
            "width": self.width,
            "height": self.height,
        }
