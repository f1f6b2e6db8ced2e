"""Image pipeline: decoding, dimension validation and rendering.

Exports
-------
process_image
    Decode once, validate, and derive the full and thumbnail renderings.
validate_dimensions
    Check intrinsic dimensions against full-image bounds.
fit_inside
    Aspect-preserving, never-enlarging target size computation.
RenderedImage / ProcessedImage
    Lazy rendering and the success outcome of ``process_image``.
"""

from .transform import (
    ProcessedImage,
    RenderedImage,
    decode_image,
    fit_inside,
    normalise_mode,
    process_image,
    resolve_encode_format,
    resolve_extension,
)
from .validate import validate_dimensions

__all__ = [
    "ProcessedImage",
    "RenderedImage",
    "decode_image",
    "fit_inside",
    "normalise_mode",
    "process_image",
    "resolve_encode_format",
    "resolve_extension",
    "validate_dimensions",
]
