"""Property-based tests for imagevault using Hypothesis.

These tests verify invariants of the resize geometry, the dimension
validator and option merging over a wide range of generated inputs.  They
complement the example-based unit tests.
"""

from __future__ import annotations

from io import BytesIO

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from PIL import Image

from imagevault.config import (
    DEFAULT_THUMBNAIL_MAX_WIDTH,
    DimensionBounds,
    UploadOptions,
    merge_options,
)
from imagevault.image.transform import ProcessedImage, fit_inside, process_image
from imagevault.image.validate import validate_dimensions
from imagevault.models import ImageMetadata, RejectionCode

# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

_side = st.integers(min_value=1, max_value=20_000)
_bound = st.one_of(st.none(), st.integers(min_value=1, max_value=20_000))


@st.composite
def _bounds(draw) -> DimensionBounds:
    """Consistent bounds: on each axis, min never exceeds max."""
    values = {}
    for axis in ("width", "height"):
        lo, hi = draw(_bound), draw(_bound)
        if lo is not None and hi is not None and lo > hi:
            lo, hi = hi, lo
        values[f"min_{axis}"] = lo
        values[f"max_{axis}"] = hi
    return DimensionBounds(**values)


def _png(width: int, height: int) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), (10, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


def _within(width: int, height: int, bounds: DimensionBounds) -> bool:
    return (
        (bounds.min_width is None or width >= bounds.min_width)
        and (bounds.min_height is None or height >= bounds.min_height)
        and (bounds.max_width is None or width <= bounds.max_width)
        and (bounds.max_height is None or height <= bounds.max_height)
    )


# ---------------------------------------------------------------------------
# fit_inside
# ---------------------------------------------------------------------------


class TestFitInsideProperties:
    @given(w=_side, h=_side, max_w=_bound, max_h=_bound)
    def test_never_upscales(self, w, h, max_w, max_h):
        out_w, out_h = fit_inside(w, h, max_w, max_h)
        assert 1 <= out_w <= w
        assert 1 <= out_h <= h

    @given(w=_side, h=_side, max_w=_bound, max_h=_bound)
    def test_respects_bounds(self, w, h, max_w, max_h):
        out_w, out_h = fit_inside(w, h, max_w, max_h)
        if max_w is not None:
            assert out_w <= max_w
        if max_h is not None:
            assert out_h <= max_h

    @given(w=_side, h=_side, max_w=_bound, max_h=_bound)
    def test_preserves_aspect_ratio(self, w, h, max_w, max_h):
        out_w, out_h = fit_inside(w, h, max_w, max_h)
        # Rounding moves each side by at most one pixel.
        assert abs(out_w * h - out_h * w) <= w + h

    @given(w=_side, h=_side, max_w=_bound, max_h=_bound)
    def test_limiting_bound_met_exactly(self, w, h, max_w, max_h):
        out = fit_inside(w, h, max_w, max_h)
        if out != (w, h):
            assert out[0] == max_w or out[1] == max_h

    @given(w=_side, h=_side)
    def test_unbounded_is_identity(self, w, h):
        assert fit_inside(w, h) == (w, h)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class TestValidatorProperties:
    @given(w=_side, h=_side, bounds=_bounds())
    def test_accepts_iff_within_bounds(self, w, h, bounds):
        rejection = validate_dimensions(ImageMetadata(w, h, "png"), bounds)
        assert (rejection is None) == _within(w, h, bounds)

    @given(w=_side, h=_side, bounds=_bounds())
    def test_required_pair_matches_code(self, w, h, bounds):
        rejection = validate_dimensions(ImageMetadata(w, h, "png"), bounds)
        if rejection is None:
            return
        assert (rejection.width, rejection.height) == (w, h)
        if rejection.code == RejectionCode.DIMENSIONS_TOO_SMALL:
            assert rejection.required == DimensionBounds(
                min_width=bounds.min_width, min_height=bounds.min_height
            )
        else:
            assert rejection.required == DimensionBounds(
                max_width=bounds.max_width, max_height=bounds.max_height
            )

    @given(w=_side, h=_side, bounds=_bounds())
    def test_min_violation_reported_first(self, w, h, bounds):
        too_small = (bounds.min_width is not None and w < bounds.min_width) or (
            bounds.min_height is not None and h < bounds.min_height
        )
        rejection = validate_dimensions(ImageMetadata(w, h, "png"), bounds)
        if too_small:
            assert rejection.code == RejectionCode.DIMENSIONS_TOO_SMALL


# ---------------------------------------------------------------------------
# Option merging
# ---------------------------------------------------------------------------


class TestMergeProperties:
    @given(defaults=_bounds())
    def test_empty_override_is_identity(self, defaults):
        base = UploadOptions(full=defaults)
        assert merge_options(base, UploadOptions()) == base

    @given(overrides=_bounds())
    def test_override_onto_empty_defaults(self, overrides):
        opts = UploadOptions(thumbnail=overrides)
        assert merge_options(UploadOptions(), opts).thumbnail == overrides


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestThumbnailProperties:
    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    @given(
        w=st.integers(min_value=1, max_value=900),
        h=st.integers(min_value=1, max_value=900),
    )
    def test_thumbnail_within_default_width(self, w, h):
        result = process_image(_png(w, h), "p.png")
        assert isinstance(result, ProcessedImage)
        thumb_w, thumb_h = result.thumbnail.size
        assert thumb_w <= min(w, DEFAULT_THUMBNAIL_MAX_WIDTH)
        assert thumb_h <= h
        assert result.full.size == (w, h)
