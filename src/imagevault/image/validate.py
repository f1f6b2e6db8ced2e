"""Dimension validation.

Checks the decoded image's intrinsic size against the full-image bounds
before any rendering happens.  Only the first violated bound is reported,
in the fixed order min width, min height, max width, max height.
"""

from __future__ import annotations

from imagevault.config import DimensionBounds
from imagevault.models import ImageMetadata, RejectionCode, ValidationRejection


def validate_dimensions(
    metadata: ImageMetadata,
    bounds: DimensionBounds | None = None,
) -> ValidationRejection | None:
    """Validate *metadata* against *bounds*.

    Parameters
    ----------
    metadata:
        Metadata of the original, un-resized image.
    bounds:
        Full-image bounds.  ``None`` or empty bounds accept every image.

    Returns
    -------
    ValidationRejection | None
        The rejection for the first violated bound, or ``None`` when the
        image is acceptable.
    """
    if bounds is None or bounds.is_empty:
        return None

    width, height = metadata.width, metadata.height
    min_pair = DimensionBounds(min_width=bounds.min_width, min_height=bounds.min_height)
    max_pair = DimensionBounds(max_width=bounds.max_width, max_height=bounds.max_height)

    if bounds.min_width is not None and width < bounds.min_width:
        return ValidationRejection(
            code=RejectionCode.DIMENSIONS_TOO_SMALL,
            message=(
                f"Image width ({width}px) is smaller than minimum required "
                f"width ({bounds.min_width}px)"
            ),
            width=width,
            height=height,
            required=min_pair,
        )

    if bounds.min_height is not None and height < bounds.min_height:
        return ValidationRejection(
            code=RejectionCode.DIMENSIONS_TOO_SMALL,
            message=(
                f"Image height ({height}px) is smaller than minimum required "
                f"height ({bounds.min_height}px)"
            ),
            width=width,
            height=height,
            required=min_pair,
        )

    if bounds.max_width is not None and width > bounds.max_width:
        return ValidationRejection(
            code=RejectionCode.DIMENSIONS_TOO_LARGE,
            message=(
                f"Image width ({width}px) is larger than maximum allowed "
                f"width ({bounds.max_width}px)"
            ),
            width=width,
            height=height,
            required=max_pair,
        )

    if bounds.max_height is not None and height > bounds.max_height:
        return ValidationRejection(
            code=RejectionCode.DIMENSIONS_TOO_LARGE,
            message=(
                f"Image height ({height}px) is larger than maximum allowed "
                f"height ({bounds.max_height}px)"
            ),
            width=width,
            height=height,
            required=max_pair,
        )

    return None
