"""Shared test fixtures for the imagevault test suite."""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO

import pytest
from PIL import Image

from imagevault.config import LocalStorageConfig
from imagevault.image.transform import RenderedImage
from imagevault.models import ImageVariant, StoredImages, UploadRequest


def encode_image(
    width: int,
    height: int,
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Return an in-memory image of the given size, encoded as *fmt*."""
    color = {"RGB": (200, 30, 30), "RGBA": (200, 30, 30, 128), "CMYK": (0, 170, 170, 40)}
    img = Image.new(mode, (width, height), color.get(mode, 128))
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class RecordingStorage:
    """In-memory backend that records every ``store`` call."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[RenderedImage, RenderedImage, str]] = []
        self.error = error

    async def store(
        self,
        full: RenderedImage,
        thumbnail: RenderedImage,
        extension: str,
    ) -> StoredImages:
        self.calls.append((full, thumbnail, extension))
        if self.error is not None:
            raise self.error
        return StoredImages(
            full_url=self.public_url(f"stored.{extension}", ImageVariant.FULL),
            thumb_url=self.public_url(f"stored.{extension}", ImageVariant.THUMB),
            file_size=len(full.to_bytes()),
        )

    def public_url(self, key: str, variant: ImageVariant | str) -> str:
        return f"memory://{ImageVariant(variant).value}/{key}"


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory for encoded test images: ``make_image(w, h, fmt="PNG")``."""
    return encode_image


@pytest.fixture
def make_request() -> Callable[..., UploadRequest]:
    """Factory for upload requests wrapping a generated image."""

    def _make(
        width: int,
        height: int,
        filename: str = "photo.png",
        fmt: str = "PNG",
        mode: str = "RGB",
    ) -> UploadRequest:
        data = encode_image(width, height, fmt, mode)
        return UploadRequest(
            buffer=data,
            filename=filename,
            mime_type=f"image/{fmt.lower()}",
            size=len(data),
        )

    return _make


@pytest.fixture
def recording_storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def local_config(tmp_path) -> LocalStorageConfig:
    """Local storage config rooted in a not-yet-existing temp directory."""
    return LocalStorageConfig(
        base_path=str(tmp_path / "uploads" / "images"),
        public_url="https://cdn.example.com/uploads",
    )
