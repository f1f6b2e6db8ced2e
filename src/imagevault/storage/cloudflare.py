"""Cloudflare Images storage backend.

Only the full rendering is uploaded.  Cloudflare serves smaller versions
through its own named *variants*, so the thumbnail URL points at the same
asset with a different variant name and the locally-built thumbnail is
never encoded.

Upload lifecycle:

1. ``POST {api_base_url}/accounts/{account_id}/images/v1`` with the
   encoded full rendering as the multipart ``file`` field.
2. On ``2xx`` -- read ``result.id`` (required) and ``result.size``.
3. On anything else -- raise :class:`DeliveryServiceError`.  Nothing is
   retried.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from imagevault.config import CloudflareImagesConfig
from imagevault.errors import DeliveryServiceError
from imagevault.image.transform import RenderedImage
from imagevault.models import ImageVariant, StoredImages
from imagevault.observability import get_logger

log = get_logger("imagevault.storage.cloudflare")


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


class CloudflareImagesBackend:
    """Store the full rendering in Cloudflare Images.

    Parameters
    ----------
    config:
        A :class:`CloudflareImagesConfig`.
    client:
        Optional ``httpx.AsyncClient``.  When omitted the backend creates
        and owns one; close it with :meth:`aclose` or ``async with``.
    """

    def __init__(
        self,
        config: CloudflareImagesConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    @property
    def upload_endpoint(self) -> str:
        return f"{self._config.api_base_url}/accounts/{self._config.account_id}/images/v1"

    async def store(
        self,
        full: RenderedImage,
        thumbnail: RenderedImage,
        extension: str,
    ) -> StoredImages:
        """Upload the full rendering and derive both variant URLs.

        Raises
        ------
        DeliveryServiceError
            When the full rendering cannot be encoded, on transport
            failure, a non-2xx response, or a response without an asset id.
        """
        try:
            buffer = await asyncio.to_thread(full.to_bytes)
        except (OSError, ValueError) as exc:
            log.error(
                "Failed to encode image for Cloudflare",
                extra={"extra_fields": {"op": "encode", "error": str(exc)}},
            )
            raise DeliveryServiceError(
                message=f"Failed to encode image for Cloudflare Images: {exc}",
                context={"reason": "encode_error"},
                cause=exc,
            ) from exc
        url = self.upload_endpoint

        try:
            response = await self._client.post(
                url,
                headers={"Authorization": f"Bearer {self._config.api_token}"},
                files={"file": (f"image.{extension}", buffer, f"image/{extension}")},
            )
        except httpx.HTTPError as exc:
            log.error(
                "Failed to upload to Cloudflare",
                extra={"extra_fields": {"op": "store", "url": url, "error": str(exc)}},
            )
            raise DeliveryServiceError(
                message=f"Network error uploading to Cloudflare Images: {exc}",
                context={"reason": "network_error", "url": url},
                cause=exc,
            ) from exc

        body = _response_body(response)
        if not 200 <= response.status_code < 300:
            log.error(
                "Cloudflare rejected image upload",
                extra={
                    "extra_fields": {
                        "op": "store",
                        "status_code": response.status_code,
                        "body": body,
                    }
                },
            )
            raise DeliveryServiceError(
                message=f"Cloudflare Images returned HTTP {response.status_code}",
                context={
                    "reason": "http_status",
                    "status_code": response.status_code,
                    "body": body,
                },
            )

        result = body.get("result") if isinstance(body, dict) else None
        image_id = result.get("id") if isinstance(result, dict) else None
        if not image_id or body.get("success") is False:
            log.error(
                "Failed to upload image to Cloudflare",
                extra={"extra_fields": {"op": "store", "body": body}},
            )
            raise DeliveryServiceError(
                message="Cloudflare Images response did not contain an image id",
                context={
                    "reason": "malformed_response",
                    "status_code": response.status_code,
                    "body": body,
                },
            )

        reported_size = result.get("size")
        file_size = reported_size if isinstance(reported_size, int) else len(buffer)

        return StoredImages(
            full_url=self.public_url(image_id, ImageVariant.FULL),
            thumb_url=self.public_url(image_id, ImageVariant.THUMB),
            file_size=file_size,
        )

    def public_url(self, key: str, variant: ImageVariant | str) -> str:
        """Return ``{delivery_base_url}/{key}/{variant_name}``."""
        variant_name = (
            self._config.variant_thumb
            if ImageVariant(variant) is ImageVariant.THUMB
            else self._config.variant_full
        )
        return f"{self._config.delivery_base_url}/{key}/{variant_name}"

    async def aclose(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> CloudflareImagesBackend:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
