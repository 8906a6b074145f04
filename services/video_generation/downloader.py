"""
Authenticated download of generated videos.

AI Studio links take the API key as a ``key`` query parameter; Vertex AI
links take the access token as a bearer header and never in the URL.
"""

import logging
from typing import Optional

import httpx

from core.cancellation import CancelToken
from core.errors import DownloadFailedError

from .credentials import Credential, DelegatedCredential
from .models import VideoAsset

logger = logging.getLogger(__name__)


def with_api_key(locator: str, api_key: str) -> str:
    """Attach ``key=<api_key>`` to a result URI."""
    try:
        return str(httpx.URL(locator).copy_merge_params({"key": api_key}))
    except httpx.InvalidURL:
        separator = "&" if "?" in locator else "?"
        return f"{locator}{separator}key={api_key}"


class VideoDownloader:
    """
    Fetches the binary video behind a result locator.

    Usage:
        downloader = VideoDownloader()
        asset = await downloader.download(uri, credential, token)
    """

    def __init__(
        self,
        timeout: float = 600.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _build_request(self, locator: str, credential: Credential) -> tuple[str, dict]:
        if isinstance(credential, DelegatedCredential):
            return locator, {"Authorization": f"Bearer {credential.access_token}"}
        return with_api_key(locator, credential.api_key), {}

    async def _fetch(self, url: str, headers: dict) -> httpx.Response:
        # Fresh client per download: no cookie jar carried between requests
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            return await client.get(url, headers=headers)

    async def download(
        self,
        locator: str,
        credential: Credential,
        token: Optional[CancelToken] = None,
    ) -> VideoAsset:
        url, headers = self._build_request(locator, credential)

        try:
            if token is not None:
                response = await token.guard(self._fetch(url, headers))
            else:
                response = await self._fetch(url, headers)
        except httpx.HTTPError as e:
            raise DownloadFailedError(f"Video download error: {e}") from e

        if not response.is_success:
            reason = response.reason_phrase or str(response.status_code)
            logger.error(f"Video download failed: {response.status_code} {reason}")
            raise DownloadFailedError(f"Download failed: {reason}")

        asset = VideoAsset(
            data=response.content,
            content_type=response.headers.get("content-type", "video/mp4"),
            source_uri=locator,
        )
        logger.info(f"Video downloaded ({asset.size_mb:.1f} MB)")
        return asset
