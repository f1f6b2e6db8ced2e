"""Tests for ImageUploader: sequencing, option merging and result assembly."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from imagevault.config import DimensionBounds, UploadOptions
from imagevault.errors import ImageDecodeError, ObjectStorageError
from imagevault.models import RejectionCode, UploadRequest, UploadResult, ValidationRejection
from imagevault.storage import LocalStorageBackend
from imagevault.uploader import ImageUploader


# =========================================================================
# End-to-end scenarios
# =========================================================================

class TestScenarios:
    async def test_resize_full_and_thumbnail(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage)
        options = UploadOptions(
            full=DimensionBounds(max_width=500),
            thumbnail=DimensionBounds(max_width=100),
            oversize="resize",
        )

        result = await uploader.upload(make_request(1000, 800), options)

        assert isinstance(result, UploadResult)
        (full, thumb, ext), = recording_storage.calls
        assert full.size == (500, 400)
        assert thumb.size == (100, 80)
        assert ext == "png"
        assert (result.width, result.height) == (1000, 800)

    async def test_too_small_rejected_without_store(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage)
        result = await uploader.upload(
            make_request(50, 50), UploadOptions(full=DimensionBounds(min_width=100))
        )

        assert isinstance(result, ValidationRejection)
        assert result.code == RejectionCode.DIMENSIONS_TOO_SMALL
        assert result.required.min_width == 100
        assert recording_storage.calls == []

    async def test_too_large_rejected_by_default(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage)
        result = await uploader.upload(
            make_request(1200, 300), UploadOptions(full=DimensionBounds(max_width=1000))
        )

        assert isinstance(result, ValidationRejection)
        assert result.code == RejectionCode.DIMENSIONS_TOO_LARGE
        assert result.required.max_width == 1000
        assert recording_storage.calls == []

    async def test_local_backend_end_to_end(self, local_config, make_request):
        uploader = ImageUploader(LocalStorageBackend(local_config))
        result = await uploader.upload(make_request(640, 480, filename="cat.png"))

        assert re.fullmatch(
            r"https://cdn\.example\.com/uploads/([0-9a-f]{32})\.png", result.full_url
        )
        assert result.thumb_url == result.full_url.replace(".png", "_thumb.png")
        assert result.mime_type == "image/png"
        assert result.original_filename == "cat.png"

    async def test_cmyk_jpeg_converted_to_png(self, local_config, make_request):
        backend = LocalStorageBackend(local_config)
        uploader = ImageUploader(backend, UploadOptions(convert_to="png"))
        result = await uploader.upload(make_request(400, 200, "scan.jpg", "JPEG", "CMYK"))

        assert result.mime_type == "image/png"
        assert result.full_url.endswith(".png")
        thumb_path = backend.base_path / result.thumb_url.rsplit("/", 1)[1]
        assert thumb_path.stat().st_size > 0


# =========================================================================
# Sequencing
# =========================================================================

class TestSequencing:
    async def test_exactly_one_store_call(self, make_request):
        storage = MagicMock()
        storage.store = AsyncMock(
            return_value=MagicMock(full_url="f", thumb_url="t", file_size=1)
        )
        uploader = ImageUploader(storage)

        await uploader.upload(make_request(200, 100))

        storage.store.assert_awaited_once()
        full, thumbnail, extension = storage.store.await_args.args
        assert full.source is thumbnail.source
        assert extension == "png"

    async def test_backend_error_propagates(self, recording_storage, make_request):
        error = ObjectStorageError("bucket gone", context={"operation": "put"})
        recording_storage.error = error
        uploader = ImageUploader(recording_storage)

        with pytest.raises(ObjectStorageError) as exc_info:
            await uploader.upload(make_request(200, 100))
        assert exc_info.value is error
        assert len(recording_storage.calls) == 1

    async def test_decode_error_propagates_without_store(self, recording_storage):
        uploader = ImageUploader(recording_storage)
        with pytest.raises(ImageDecodeError):
            await uploader.upload(UploadRequest(b"\x00\x01 not an image", "x.png"))
        assert recording_storage.calls == []

    async def test_failure_is_logged(self, recording_storage, make_request):
        recording_storage.error = ObjectStorageError("boom")
        uploader = ImageUploader(recording_storage)

        with patch("imagevault.uploader.log") as log:
            with pytest.raises(ObjectStorageError):
                await uploader.upload(make_request(200, 100))

        log.error.assert_called_once()
        assert log.error.call_args.args[0] == "Image upload failed"

    async def test_rejection_is_logged_at_info(self, recording_storage, make_request):
        uploader = ImageUploader(
            recording_storage, UploadOptions(full=DimensionBounds(min_height=500))
        )
        with patch("imagevault.uploader.log") as log:
            await uploader.upload(make_request(200, 100))

        log.info.assert_called_once()
        fields = log.info.call_args.kwargs["extra"]["extra_fields"]
        assert fields["code"] == "dimensions_too_small"


# =========================================================================
# Result assembly
# =========================================================================

class TestResult:
    async def test_fields(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage)
        result = await uploader.upload(make_request(400, 200, filename="holiday.png"))

        assert result.full_url == "memory://full/stored.png"
        assert result.thumb_url == "memory://thumb/stored.png"
        assert result.mime_type == "image/png"
        assert result.original_filename == "holiday.png"
        assert result.file_size > 0
        assert (result.width, result.height) == (400, 200)

    async def test_mime_type_follows_conversion(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage, UploadOptions(convert_to="webp"))
        result = await uploader.upload(make_request(40, 40))
        assert result.mime_type == "image/webp"
        assert recording_storage.calls[0][2] == "webp"

    async def test_declared_mime_type_ignored(self, recording_storage, make_image):
        data = make_image(40, 40, "PNG")
        uploader = ImageUploader(recording_storage)
        result = await uploader.upload(
            UploadRequest(data, "scan.png", mime_type="application/pdf", size=1)
        )
        assert result.mime_type == "image/png"
        assert result.file_size != 1

    async def test_to_dict(self, recording_storage, make_request):
        uploader = ImageUploader(recording_storage)
        result = await uploader.upload(make_request(40, 20, filename="a.png"))
        assert result.to_dict() == {
            "fullUrl": "memory://full/stored.png",
            "thumbUrl": "memory://thumb/stored.png",
            "mimeType": "image/png",
            "fileSize": result.file_size,
            "originalFilename": "a.png",
            "width": 40,
            "height": 20,
        }


# =========================================================================
# Option merging
# =========================================================================

class TestOptionMerging:
    async def test_defaults_apply_without_overrides(self, recording_storage, make_request):
        uploader = ImageUploader(
            recording_storage, UploadOptions(full=DimensionBounds(min_width=100))
        )
        result = await uploader.upload(make_request(50, 50))
        assert isinstance(result, ValidationRejection)

    async def test_partial_override_keeps_default_bounds(
        self, recording_storage, make_request
    ):
        uploader = ImageUploader(
            recording_storage, UploadOptions(full=DimensionBounds(min_width=100))
        )
        # Overriding max_width does not drop the default min_width.
        result = await uploader.upload(
            make_request(50, 50), UploadOptions(full=DimensionBounds(max_width=2000))
        )
        assert isinstance(result, ValidationRejection)
        assert result.code == RejectionCode.DIMENSIONS_TOO_SMALL

    async def test_override_replaces_default_bound(self, recording_storage, make_request):
        uploader = ImageUploader(
            recording_storage, UploadOptions(full=DimensionBounds(min_width=100))
        )
        result = await uploader.upload(
            make_request(50, 50), UploadOptions(full=DimensionBounds(min_width=10))
        )
        assert isinstance(result, UploadResult)

    async def test_default_thumbnail_width_used(self, recording_storage, make_request):
        uploader = ImageUploader(
            recording_storage, UploadOptions(thumbnail=DimensionBounds(max_width=64))
        )
        await uploader.upload(make_request(640, 320), UploadOptions(convert_to="jpeg"))
        _, thumb, ext = recording_storage.calls[0]
        assert thumb.size == (64, 32)
        assert ext == "jpeg"

    def test_defaults_property(self, recording_storage):
        defaults = UploadOptions(convert_to="png")
        uploader = ImageUploader(recording_storage, defaults)
        assert uploader.defaults is defaults
        assert uploader.storage is recording_storage
