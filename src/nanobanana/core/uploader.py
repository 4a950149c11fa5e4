"""Upload relay: re-host a generated image on a public file host.

The upstream generation service returns a URL on its own storage, which
expires and checks the referer.  This module downloads those bytes and
uploads them to ``uguu.se`` (or whatever ``config.upload_url`` points at) as
multipart form data, returning the public URL the host hands back.

The file host is expected to answer with::

    {"success": true, "files": [{"url": "https://..."}]}
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from nanobanana.core.config import RelayConfig
from nanobanana.core.errors import DownloadError, UploadError

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "files[]"
UPLOAD_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class UploadedAsset:
    """Public location of a re-hosted image."""

    url: str


def derive_filename(image_url: str, now: float | None = None) -> str:
    """Pick the upload filename for *image_url*.

    The last path segment is kept when it has an extension; otherwise a
    ``generated_image_<unix-ms>.jpg`` name is synthesised.

    Args:
        image_url: Source URL of the generated image.
        now: Unix time in seconds used for the synthesised name (defaults to
            the current time).

    Returns:
        Filename to send with the multipart upload.
    """
    segment = urlsplit(image_url).path.rsplit("/", 1)[-1]
    if segment and "." in segment:
        return segment
    timestamp = time.time() if now is None else now
    return f"generated_image_{int(timestamp * 1000)}.jpg"


class UploadRelay:
    """Downloads generated images and re-uploads them to the file host."""

    def __init__(self, config: RelayConfig, http: httpx.AsyncClient) -> None:
        self._config = config
        self._http = http

    async def download_image(self, image_url: str) -> bytes:
        """Fetch the generated image bytes.

        Raises:
            DownloadError: On transport failure or non-2xx status (carrying
                that status).
        """
        logger.info("Downloading image from: %s", image_url)
        try:
            response = await self._http.get(
                image_url,
                headers={"Referer": self._config.download_referer},
            )
        except httpx.HTTPError as exc:
            raise DownloadError(f"Failed to download image: {exc}") from exc

        if not response.is_success:
            raise DownloadError(
                f"Failed to download image: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def upload_image(self, data: bytes, filename: str) -> UploadedAsset:
        """Upload *data* as ``files[]`` and return the hosted asset.

        Raises:
            UploadError: On transport failure, non-2xx status (carrying that
                status), a response without ``success`` or a ``files`` list,
                or an empty list or first file entry without a URL.
        """
        logger.info("Uploading image to %s as %s", self._config.upload_url, filename)
        try:
            response = await self._http.post(
                self._config.upload_url,
                files={UPLOAD_FIELD: (filename, data, UPLOAD_CONTENT_TYPE)},
            )
        except httpx.HTTPError as exc:
            raise UploadError(f"Upload request failed: {exc}") from exc

        if not response.is_success:
            raise UploadError(
                f"Upload failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UploadError("Unexpected upload response: invalid JSON") from exc

        files = payload.get("files") if isinstance(payload, dict) else None
        if not isinstance(payload, dict) or not payload.get("success") or not isinstance(files, list):
            raise UploadError(f"Unexpected upload response: {json.dumps(payload)}")

        first = files[0] if files else None
        url = first.get("url") if isinstance(first, dict) else None
        if not url:
            raise UploadError("No URL returned from upload")

        logger.info("Upload successful: %s", url)
        return UploadedAsset(url=url)

    async def relay_image(self, image_url: str) -> UploadedAsset:
        """Download *image_url* and re-upload it under a derived filename."""
        data = await self.download_image(image_url)
        filename = derive_filename(image_url)
        return await self.upload_image(data, filename)
