"""Error hierarchy for the imagevault library.

Every raised error inherits from :class:`ImageVaultError`.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Dimension-validation failures are *not* part of this hierarchy: they are
expected outcomes and are returned as
:class:`~imagevault.models.ValidationRejection` values instead of being
raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the library can raise."""

    IMAGE_DECODE_ERROR = "IMAGE_DECODE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_WRITE_ERROR = "STORAGE_WRITE_ERROR"
    OBJECT_STORAGE_ERROR = "OBJECT_STORAGE_ERROR"
    DELIVERY_SERVICE_ERROR = "DELIVERY_SERVICE_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ImageVaultError(Exception):
    """Base exception for all imagevault errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------

class ImageDecodeError(ImageVaultError):
    """The uploaded buffer could not be decoded as an image.

    Context keys: ``filename``, ``size_bytes``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_DECODE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class StorageError(ImageVaultError):
    """Base class for failures raised by a storage backend while persisting.

    These are never retried by the pipeline; the hosting application is
    expected to translate them into its own error surface.
    """

    def __init__(
        self,
        code: str = ErrorCode.STORAGE_ERROR,
        message: str = "Storage error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class StorageWriteError(StorageError):
    """A rendering could not be encoded or written to the local filesystem.

    Context keys: ``path``, ``variant``, ``stage`` (``"encode"`` or
    ``"write"``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_WRITE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ObjectStorageError(StorageError):
    """Encoding, an S3 ``put_object`` or a URL-signing call failed.

    Context keys: ``bucket``, ``key``, ``operation`` (``"encode"``,
    ``"put"`` or ``"sign"``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.OBJECT_STORAGE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class DeliveryServiceError(StorageError):
    """The managed image-delivery service rejected or garbled an upload.

    Encode failures, network failures, non-2xx responses, and responses
    without an asset id all surface as this error; ``context["reason"]``
    tells them apart (``encode_error``, ``network_error``, ``http_status``,
    ``malformed_response``).

    Context keys: ``reason``, ``status_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DELIVERY_SERVICE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
