"""Image decoding and rendering.

The uploaded buffer is decoded exactly once.  Both renderings (full and
thumbnail) keep a reference to that single decoded source and are only
resized and encoded when a storage backend asks for their bytes, so a
backend that ignores the thumbnail never pays for encoding it.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePath

from PIL import Image

from imagevault.config import (
    DEFAULT_THUMBNAIL_MAX_WIDTH,
    DimensionBounds,
    UploadOptions,
)
from imagevault.errors import ImageDecodeError
from imagevault.image.validate import validate_dimensions
from imagevault.models import ImageMetadata, ValidationRejection
from imagevault.observability import get_logger

log = get_logger("imagevault.transform")

# Modes each encoder writes without conversion.  Formats not listed fall
# back to _COMMON_MODES.
_WRITABLE_MODES = {
    "JPEG": frozenset({"RGB", "L", "CMYK"}),
    "PNG": frozenset({"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}),
    "WEBP": frozenset({"RGB", "RGBA"}),
}
_COMMON_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA"})


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def fit_inside(
    width: int,
    height: int,
    max_width: int | None = None,
    max_height: int | None = None,
) -> tuple[int, int]:
    """Return the size of *width* x *height* scaled to fit inside a box.

    The aspect ratio is preserved and the image is never enlarged: the
    most constraining bound is met exactly and the other side scales
    proportionally.  Unset bounds do not constrain.  Each side is at least
    one pixel.
    """
    scale = 1.0
    if max_width is not None:
        scale = min(scale, max_width / width)
    if max_height is not None:
        scale = min(scale, max_height / height)
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


# ---------------------------------------------------------------------------
# Renderings
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class RenderedImage:
    """One lazily-materialised output variant.

    Attributes
    ----------
    source:
        The decoded upload, shared with the sibling rendering.  Never
        mutated.
    size:
        Target ``(width, height)``.  Equal to the source size when no
        resize applies.
    extension:
        Extension used for keys, filenames and the MIME type.
    encode_format:
        Pillow format name the bytes are encoded with (e.g. ``"JPEG"``).
    """

    source: Image.Image
    size: tuple[int, int]
    extension: str
    encode_format: str

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def render(self) -> Image.Image:
        """Return the resized image in a mode the target encoder can write."""
        img = self.source
        if img.size != self.size:
            img = img.resize(self.size, Image.Resampling.LANCZOS)
        return normalise_mode(img, self.encode_format)

    def to_bytes(self) -> bytes:
        """Encode the rendering and return the bytes."""
        buffer = BytesIO()
        self.render().save(buffer, format=self.encode_format)
        return buffer.getvalue()


@dataclass(eq=False)
class ProcessedImage:
    """Successful outcome of :func:`process_image`."""

    full: RenderedImage
    thumbnail: RenderedImage
    extension: str
    metadata: ImageMetadata


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalise_mode(img: Image.Image, encode_format: str) -> Image.Image:
    """Convert *img* to a mode *encode_format* can write.

    Images already in a writable mode are returned unchanged.  Otherwise
    (CMYK into PNG, RGBA into JPEG, YCbCr or LAB into anything) the image is
    converted to ``RGBA`` when it carries transparency and the encoder
    accepts alpha, and to ``RGB`` otherwise.
    """
    writable = _WRITABLE_MODES.get(encode_format, _COMMON_MODES)
    if img.mode in writable:
        return img
    if img.has_transparency_data and "RGBA" in writable:
        return img.convert("RGBA")
    return img.convert("RGB")


def resolve_extension(filename: str, convert_to: str | None = None) -> str:
    """Return *convert_to*, or the extension of *filename* without its dot.

    A filename without an extension yields ``""``.
    """
    if convert_to:
        return convert_to
    return PurePath(filename).suffix[1:]


def resolve_encode_format(extension: str, source_format: str | None) -> str:
    """Map *extension* to a Pillow format name that Pillow can write.

    Falls back to the decoded source format, then to PNG, when the
    extension is empty, unknown, or names a read-only format.
    """
    Image.init()
    by_extension = (
        Image.registered_extensions().get(f".{extension.lower()}") if extension else None
    )
    for fmt in (by_extension, source_format):
        if fmt and fmt in Image.SAVE:
            return fmt
    return "PNG"


def decode_image(buffer: bytes, filename: str = "") -> tuple[Image.Image, ImageMetadata]:
    """Decode *buffer* and read its intrinsic metadata.

    Raises
    ------
    ImageDecodeError
        If Pillow cannot identify or fully decode the buffer, including
        decompression-bomb protection trips.
    """
    try:
        img = Image.open(BytesIO(buffer))
        img.load()
    except (Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise ImageDecodeError(
            message=f"Could not decode uploaded image {filename!r}: {exc}",
            context={
                "filename": filename,
                "size_bytes": len(buffer),
                "reason": type(exc).__name__,
            },
            cause=exc,
        ) from exc

    metadata = ImageMetadata(
        width=img.width,
        height=img.height,
        format=(img.format or "").lower(),
    )
    return img, metadata


def _acceptance_bounds(options: UploadOptions) -> DimensionBounds | None:
    full = options.full
    if full is None or options.oversize != "resize":
        return full
    return DimensionBounds(min_width=full.min_width, min_height=full.min_height)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def process_image(
    buffer: bytes,
    filename: str,
    options: UploadOptions | None = None,
) -> ProcessedImage | ValidationRejection:
    """Decode, validate and derive the full and thumbnail renderings.

    Parameters
    ----------
    buffer:
        Raw uploaded bytes.
    filename:
        Original filename; its extension is used when ``convert_to`` is
        unset.
    options:
        Already-merged upload options.

    Returns
    -------
    ProcessedImage | ValidationRejection
        The renderings, or the rejection produced by validating the
        *original* image dimensions.  On rejection no rendering is built.

    Raises
    ------
    ImageDecodeError
        If *buffer* is not a decodable image.
    """
    options = options or UploadOptions()
    extension = resolve_extension(filename, options.convert_to)
    source, metadata = decode_image(buffer, filename)

    rejection = validate_dimensions(metadata, _acceptance_bounds(options))
    if rejection is not None:
        return rejection

    if not extension:
        log.warning(
            "Upload has no file extension; keys and MIME type will be incomplete",
            extra={
                "extra_fields": {
                    "op": "process_image",
                    "filename": filename,
                    "detected_format": metadata.format,
                }
            },
        )

    encode_format = resolve_encode_format(extension, source.format)

    full_bounds = options.full
    if full_bounds is not None and (
        full_bounds.max_width is not None or full_bounds.max_height is not None
    ):
        full_size = fit_inside(
            metadata.width, metadata.height, full_bounds.max_width, full_bounds.max_height
        )
    else:
        full_size = (metadata.width, metadata.height)

    thumb_bounds = options.thumbnail or DimensionBounds()
    thumb_size = fit_inside(
        metadata.width,
        metadata.height,
        thumb_bounds.max_width or DEFAULT_THUMBNAIL_MAX_WIDTH,
        thumb_bounds.max_height,
    )

    return ProcessedImage(
        full=RenderedImage(source, full_size, extension, encode_format),
        thumbnail=RenderedImage(source, thumb_size, extension, encode_format),
        extension=extension,
        metadata=metadata,
    )
