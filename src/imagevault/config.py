"""Configuration for imagevault.

Pipeline options
----------------
:class:`DimensionBounds` and :class:`UploadOptions` describe how an upload
is validated and rendered.  An :class:`~imagevault.uploader.ImageUploader`
holds one ``UploadOptions`` as its defaults; callers may pass another per
upload, and :func:`merge_options` combines the two field by field.

Backend configuration
---------------------
:class:`LocalStorageConfig`, :class:`S3StorageConfig` and
:class:`CloudflareImagesConfig` carry the settings for each storage
backend.  Credentials are masked in ``repr`` so that configs can be logged.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUPPORTED_FORMATS: tuple[str, ...] = ("jpeg", "png", "webp")
"""Encodings accepted for :attr:`UploadOptions.convert_to`."""

DEFAULT_THUMBNAIL_MAX_WIDTH = 300
"""Thumbnail width used when the options leave ``thumbnail.max_width`` unset."""

DEFAULT_URL_EXPIRATION = 3600

# SigV4 presigned URLs cannot outlive seven days.
MAX_URL_EXPIRATION = 7 * 24 * 3600

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


def _mask(value: str) -> str:
    return f"...{value[-4:]}" if len(value) >= 4 else "****"


def _require_https(name: str, url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme == "http" and parsed.hostname not in _LOCAL_HOSTS:
        raise ValueError(
            f"{name} uses insecure HTTP for non-local host '{parsed.hostname}'. "
            "Use HTTPS to protect your API token, or target localhost for testing."
        )
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"{name} must be an http(s) URL, got {url!r}")


# ---------------------------------------------------------------------------
# Pipeline options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DimensionBounds:
    """Pixel bounds for one rendering.

    For the full image the min/max pairs are acceptance criteria *and* the
    max pair is the resize box.  For the thumbnail only the max pair is
    used, and only as a resize box.  ``None`` means "unset".
    """

    min_width: int | None = None
    min_height: int | None = None
    max_width: int | None = None
    max_height: int | None = None

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an int, got {value!r}")
            if value <= 0:
                raise ValueError(f"{f.name} must be > 0, got {value}")
        if (
            self.min_width is not None
            and self.max_width is not None
            and self.min_width > self.max_width
        ):
            raise ValueError(
                f"min_width ({self.min_width}) exceeds max_width ({self.max_width})"
            )
        if (
            self.min_height is not None
            and self.max_height is not None
            and self.min_height > self.max_height
        ):
            raise ValueError(
                f"min_height ({self.min_height}) exceeds max_height ({self.max_height})"
            )

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in dataclasses.fields(self))

    def to_dict(self) -> dict[str, int]:
        """Return the set bounds with camelCase keys, omitting unset ones."""
        names = {
            "min_width": "minWidth",
            "min_height": "minHeight",
            "max_width": "maxWidth",
            "max_height": "maxHeight",
        }
        return {
            names[f.name]: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class UploadOptions:
    """Per-upload processing options.

    Every field defaults to ``None`` ("unset") so that :func:`merge_options`
    can tell an explicit override apart from an inherited default.

    Parameters
    ----------
    convert_to:
        Target encoding, one of :data:`SUPPORTED_FORMATS`.  When unset the
        extension of the uploaded filename is kept.
    full:
        Bounds for the full rendering.  The min/max pairs gate acceptance;
        the max pair is also the fit-inside resize box.
    thumbnail:
        Resize box for the thumbnail.  Never validated.  Width defaults to
        :data:`DEFAULT_THUMBNAIL_MAX_WIDTH`, height to unconstrained.
    oversize:
        What to do with an image larger than ``full``'s max pair.

        * ``"reject"`` -- return ``dimensions_too_large`` (default).
        * ``"resize"`` -- accept it and shrink the full rendering into the
          max box; only the min pair gates acceptance.
    """

    convert_to: Literal["jpeg", "png", "webp"] | None = None

    full: DimensionBounds | None = None

    thumbnail: DimensionBounds | None = None

    oversize: Literal["reject", "resize"] | None = None

    def __post_init__(self) -> None:
        if self.convert_to is not None and self.convert_to not in SUPPORTED_FORMATS:
            raise ValueError(
                f"convert_to must be one of {SUPPORTED_FORMATS}, got {self.convert_to!r}"
            )
        if self.oversize is not None and self.oversize not in ("reject", "resize"):
            raise ValueError(
                f"oversize must be 'reject' or 'resize', got {self.oversize!r}"
            )


def _merge_bounds(
    base: DimensionBounds | None,
    override: DimensionBounds | None,
) -> DimensionBounds | None:
    if override is None:
        return base
    if base is None:
        return override
    merged = {
        f.name: (
            getattr(override, f.name)
            if getattr(override, f.name) is not None
            else getattr(base, f.name)
        )
        for f in dataclasses.fields(DimensionBounds)
    }
    return DimensionBounds(**merged)


def merge_options(
    defaults: UploadOptions | None,
    overrides: UploadOptions | None,
) -> UploadOptions:
    """Combine configured defaults with per-call overrides.

    The merge is field-level at both levels:

    * A top-level field set in *overrides* replaces the default.
    * Inside ``full`` and ``thumbnail``, each bound set in *overrides*
      replaces the same bound in *defaults*; bounds the override leaves
      unset are inherited.  A partial override block therefore never drops
      default bounds it does not mention.

    Raises
    ------
    ValueError
        If the merged bounds are contradictory (e.g. an override
        ``max_width`` smaller than an inherited ``min_width``).
    """
    base = defaults or UploadOptions()
    if overrides is None:
        return base
    return UploadOptions(
        convert_to=(
            overrides.convert_to if overrides.convert_to is not None else base.convert_to
        ),
        full=_merge_bounds(base.full, overrides.full),
        thumbnail=_merge_bounds(base.thumbnail, overrides.thumbnail),
        oversize=overrides.oversize if overrides.oversize is not None else base.oversize,
    )


# ---------------------------------------------------------------------------
# Backend configuration
# ---------------------------------------------------------------------------

@dataclass
class LocalStorageConfig:
    """Settings for :class:`~imagevault.storage.local.LocalStorageBackend`.

    Parameters
    ----------
    base_path:
        Directory the renderings are written to.  Created recursively if
        missing.
    public_url:
        URL prefix under which *base_path* is served, e.g.
        ``"https://cdn.example.com/uploads"``.
    """

    base_path: str

    public_url: str

    def __post_init__(self) -> None:
        if not self.base_path:
            raise ValueError("base_path must not be empty")
        if not self.public_url:
            raise ValueError("public_url must not be empty")


@dataclass
class S3StorageConfig:
    """Settings for :class:`~imagevault.storage.s3.S3StorageBackend`.

    Parameters
    ----------
    region:
        AWS region of the bucket.
    bucket:
        Bucket name.
    access_key_id / secret_access_key:
        Credentials.  Never logged.
    prefix:
        Prepended verbatim to every object key (include the trailing ``/``).
    custom_domain:
        If set, URLs are ``{custom_domain}/{key}`` and unsigned; the bucket
        policy must allow public reads.
    url_expiration:
        Lifetime in seconds of presigned URLs when no custom domain is set.
    """

    region: str

    bucket: str

    access_key_id: str

    secret_access_key: str

    prefix: str = ""

    custom_domain: str | None = None

    url_expiration: int = DEFAULT_URL_EXPIRATION

    def __post_init__(self) -> None:
        if not self.region:
            raise ValueError("region must not be empty")
        if not self.bucket:
            raise ValueError("bucket must not be empty")
        if not 0 < self.url_expiration <= MAX_URL_EXPIRATION:
            raise ValueError(
                f"url_expiration must be in (0, {MAX_URL_EXPIRATION}], "
                f"got {self.url_expiration}"
            )
        if self.custom_domain is not None:
            self.custom_domain = self.custom_domain.rstrip("/")

    def __repr__(self) -> str:
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name in ("access_key_id", "secret_access_key"):
                parts.append(f"{f.name}='{_mask(val)}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"S3StorageConfig({', '.join(parts)})"


@dataclass
class CloudflareImagesConfig:
    """Settings for :class:`~imagevault.storage.cloudflare.CloudflareImagesBackend`.

    Parameters
    ----------
    account_id:
        Cloudflare account identifier.
    api_token:
        API token with Images write permission.  Never logged.
    variant_full / variant_thumb:
        Names of the delivery variants used for the full and thumbnail
        URLs.  The variants themselves are configured in Cloudflare.
    api_base_url:
        API root URL.  Override for proxy or testing environments.
    delivery_base_url:
        Root of delivery URLs.  Include the account hash here when your
        delivery URLs require it.
    timeout_seconds:
        HTTP request timeout in seconds.
    """

    account_id: str

    api_token: str

    variant_full: str = "public"

    variant_thumb: str = "thumbnail"

    api_base_url: str = "https://api.cloudflare.com/client/v4"

    delivery_base_url: str = "https://imagedelivery.net"

    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.account_id:
            raise ValueError("account_id must not be empty")
        _require_https("api_base_url", self.api_base_url)
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        self.api_base_url = self.api_base_url.rstrip("/")
        self.delivery_base_url = self.delivery_base_url.rstrip("/")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "api_token":
                parts.append(f"api_token='{_mask(val)}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"CloudflareImagesConfig({', '.join(parts)})"
