"""Storage backend protocol.

A backend persists the two renderings of an accepted upload and reports
where they can be fetched.  Backends satisfy :class:`StorageBackend`
structurally; the uploader holds one instance chosen at construction time
and never inspects which kind it is.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from imagevault.image.transform import RenderedImage
from imagevault.models import ImageVariant, StoredImages


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol every storage backend implements."""

    async def store(
        self,
        full: RenderedImage,
        thumbnail: RenderedImage,
        extension: str,
    ) -> StoredImages:
        """Persist both renderings and return their URLs and stored size.

        Called at most once per upload, and only for uploads that passed
        validation.  Failures are raised as
        :class:`~imagevault.errors.StorageError` subclasses and are not
        retried.
        """
        ...

    def public_url(self, key: str, variant: ImageVariant | str) -> str:
        """Return the public URL of *key* for *variant*.

        Pure: no I/O, so it can be used to precompute expected URLs.
        """
        ...
