"""
Pinata storage provider for the Fileverse Agents SDK.

Uploads go through the Pinata v3 files API and downloads through the
configured dedicated gateway.
"""

import asyncio
import functools
import logging
from typing import Any, Dict, Optional, Union

import httpx

from fileverse_agents.config import get_config_value
from fileverse_agents.constants import DEFAULT_DOWNLOAD_TIMEOUT
from fileverse_agents.errors import (
    ConfigurationError,
    StorageError,
    StorageTimeoutError,
    UnpinError,
)
from fileverse_agents.models import DownloadResult
from fileverse_agents.storage import StorageProvider
from fileverse_agents.utils import decode_text, strip_protocol
from fileverse_agents.validation import validate_reference

logger = logging.getLogger(__name__)

PINATA_API_URL = "https://api.pinata.cloud"
PINATA_UPLOAD_URL = "https://uploads.pinata.cloud/v3/files"
IPFS_PROTOCOL = "ipfs://"


def retry_on_error(retries: int = 2, backoff: float = 1.0):
    """
    Decorator to retry Pinata requests on 5xx errors.

    Args:
        retries: Number of retry attempts (default: 2)
        backoff: Seconds to wait between retries (default: 1.0)
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except httpx.HTTPStatusError as e:
                    last_exception = e

                    # Don't retry on authentication errors (401, 403)
                    if e.response.status_code in (401, 403):
                        raise ConfigurationError(
                            f"Pinata authentication failed: HTTP {e.response.status_code}"
                        )

                    # Client errors won't succeed on retry
                    if e.response.status_code < 500 or attempt == retries:
                        break

                    logger.warning(
                        "Pinata request failed (attempt %d/%d): %s; retrying in %ss",
                        attempt + 1,
                        retries + 1,
                        e,
                        backoff,
                    )
                    await asyncio.sleep(backoff)

            raise last_exception

        return wrapper

    return decorator


class PinataStorageProvider(StorageProvider):
    """Storage provider backed by Pinata's IPFS pinning service."""

    def __init__(
        self,
        pinata_jwt: Optional[str] = None,
        pinata_gateway: Optional[str] = None,
        download_timeout: Optional[float] = None,
    ):
        """
        Initialize the Pinata storage provider.

        Args:
            pinata_jwt: Pinata API JWT (from config if None)
            pinata_gateway: Dedicated gateway host or URL (from config if None)
            download_timeout: Seconds before a download fails with StorageTimeoutError
        """
        if pinata_jwt is None:
            pinata_jwt = get_config_value("storage", "pinata_jwt")
        if pinata_gateway is None:
            pinata_gateway = get_config_value("storage", "pinata_gateway")
        if download_timeout is None:
            download_timeout = get_config_value(
                "storage", "download_timeout", DEFAULT_DOWNLOAD_TIMEOUT
            )

        if not pinata_jwt or not pinata_gateway:
            raise ConfigurationError("Pinata JWT and gateway are required")

        self._pinata_jwt = pinata_jwt
        self.pinata_gateway = pinata_gateway
        self.download_timeout = float(download_timeout)

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=10.0),
            follow_redirects=True,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    @property
    def gateway_url(self) -> str:
        gateway = self.pinata_gateway.rstrip("/")
        if gateway.startswith("http"):
            return gateway
        return f"https://{gateway}"

    def _get_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._pinata_jwt}"}

    async def protocol(self) -> str:
        return IPFS_PROTOCOL

    @retry_on_error()
    async def _post_file(self, file_name: str, data: bytes) -> Dict[str, Any]:
        response = await self._client.post(
            PINATA_UPLOAD_URL,
            headers=self._get_headers(),
            files={"file": (file_name, data, "text/plain")},
            data={"network": "public", "name": file_name},
        )
        response.raise_for_status()
        return response.json()

    async def upload(self, file_name: str, content: Union[str, bytes]) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content

        try:
            result = await self._post_file(file_name, data)
        except httpx.HTTPError as e:
            raise StorageError(f"Upload to Pinata failed: {e}", operation="upload")

        cid = (result.get("data") or {}).get("cid")
        if not cid:
            raise StorageError("Pinata upload response did not include a CID")

        logger.debug("Uploaded %s (%d bytes) as %s", file_name, len(data), cid)
        return f"{IPFS_PROTOCOL}{cid}"

    async def _gateway_get(self, reference: str, headers: Optional[Dict] = None):
        cid = strip_protocol(validate_reference(reference), IPFS_PROTOCOL)
        if not cid:
            raise StorageError("Invalid reference after protocol stripping")

        url = f"{self.gateway_url}/ipfs/{cid}"
        try:
            response = await self._client.get(
                url, headers=headers, timeout=self.download_timeout
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            raise StorageTimeoutError(
                f"Download timed out after {self.download_timeout}s",
                reference=reference,
            )
        except httpx.HTTPError as e:
            raise StorageError(
                f"Failed to download from IPFS gateway: {e}", reference=reference
            )
        return response

    async def download(self, reference: str) -> DownloadResult:
        response = await self._gateway_get(reference)
        return DownloadResult(
            data=decode_text(response.content),
            content_type=response.headers.get("content-type"),
        )

    async def download_bytes(self, reference: str) -> bytes:
        response = await self._gateway_get(
            reference, headers={"Accept": "application/octet-stream"}
        )
        if not response.content:
            raise StorageError("Empty response from IPFS gateway", reference=reference)

        logger.debug("Downloaded %d bytes from %s", len(response.content), reference)
        return response.content

    async def unpin(self, reference: str) -> str:
        cid = strip_protocol(validate_reference(reference), IPFS_PROTOCOL)
        if not cid:
            raise UnpinError("Invalid reference after protocol stripping")

        try:
            response = await self._client.get(
                f"{PINATA_API_URL}/v3/files/public",
                headers=self._get_headers(),
                params={"cid": cid},
            )
            response.raise_for_status()
            files = (response.json().get("data") or {}).get("files") or []

            if not files or not files[0].get("id"):
                raise UnpinError(f"File not found with CID: {cid}", reference=reference)

            file_id = files[0]["id"]
            response = await self._client.delete(
                f"{PINATA_API_URL}/v3/files/public/{file_id}",
                headers=self._get_headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UnpinError(f"Failed to unpin {cid}: {e}", reference=reference)

        logger.info("Unpinned %s (Pinata id %s)", cid, file_id)
        return f"{IPFS_PROTOCOL}{cid}"

    async def is_connected(self) -> bool:
        try:
            response = await self._client.get(
                f"{PINATA_API_URL}/data/testAuthentication",
                headers=self._get_headers(),
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Pinata authentication check failed: %s", e)
            return False
