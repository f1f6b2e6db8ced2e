"""Storage backends.

Exports
-------
StorageBackend
    Protocol every backend satisfies (``store`` + ``public_url``).
LocalStorageBackend
    Files under a local directory, served from a URL prefix.
S3StorageBackend
    Amazon S3 objects with presigned or custom-domain URLs.
CloudflareImagesBackend
    Cloudflare Images assets addressed by named delivery variants.
"""

from .base import StorageBackend
from .cloudflare import CloudflareImagesBackend
from .local import LocalStorageBackend
from .s3 import S3StorageBackend

__all__ = [
    "CloudflareImagesBackend",
    "LocalStorageBackend",
    "S3StorageBackend",
    "StorageBackend",
]
