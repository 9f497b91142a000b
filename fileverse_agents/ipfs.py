"""
Storage provider backed by a self-hosted IPFS node.
"""

import logging
from typing import Optional, Union

import httpx

from fileverse_agents.config import get_config_value
from fileverse_agents.constants import DEFAULT_DOWNLOAD_TIMEOUT
from fileverse_agents.errors import StorageError, StorageTimeoutError, UnpinError
from fileverse_agents.ipfs_core import AsyncIPFSClient
from fileverse_agents.models import DownloadResult
from fileverse_agents.storage import StorageProvider
from fileverse_agents.utils import decode_text, strip_protocol
from fileverse_agents.validation import validate_reference

# Set up logger for this module
logger = logging.getLogger(__name__)

IPFS_PROTOCOL = "ipfs://"


class IPFSStorageProvider(StorageProvider):
    """Pins content on an IPFS node reachable over its HTTP RPC API."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        download_timeout: Optional[float] = None,
    ):
        """
        Initialize the IPFS storage provider.

        Args:
            api_url: IPFS RPC API URL (from config if None)
            download_timeout: Seconds before a download fails with StorageTimeoutError
        """
        if api_url is None:
            api_url = get_config_value("storage", "ipfs_api_url", "http://localhost:5001")
        if download_timeout is None:
            download_timeout = get_config_value(
                "storage", "download_timeout", DEFAULT_DOWNLOAD_TIMEOUT
            )

        self.download_timeout = float(download_timeout)
        self.client = AsyncIPFSClient(api_url=api_url)

    async def close(self):
        await self.client.close()

    async def protocol(self) -> str:
        return IPFS_PROTOCOL

    async def upload(self, file_name: str, content: Union[str, bytes]) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        try:
            result = await self.client.add_bytes(data, file_name)
        except httpx.HTTPError as e:
            raise StorageError(f"Upload to IPFS failed: {e}", operation="upload")

        cid = result.get("Hash")
        if not cid:
            raise StorageError("IPFS add response did not include a CID")

        logger.debug("Added %s to IPFS as %s", file_name, cid)
        return f"{IPFS_PROTOCOL}{cid}"

    async def download_bytes(self, reference: str) -> bytes:
        cid = strip_protocol(validate_reference(reference), IPFS_PROTOCOL)
        try:
            return await self.client.cat(cid, timeout=self.download_timeout)
        except httpx.TimeoutException:
            raise StorageTimeoutError(
                f"Download timed out after {self.download_timeout}s",
                reference=reference,
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to download from IPFS: {e}", reference=reference)

    async def download(self, reference: str) -> DownloadResult:
        content = await self.download_bytes(reference)
        return DownloadResult(data=decode_text(content))

    async def unpin(self, reference: str) -> str:
        cid = strip_protocol(validate_reference(reference), IPFS_PROTOCOL)
        try:
            await self.client.unpin(cid)
        except httpx.HTTPError as e:
            # Kubo answers 500 "not pinned or pinned indirectly" for unknown CIDs
            raise UnpinError(f"Failed to unpin {cid}: {e}", reference=reference)

        logger.info("Unpinned %s", cid)
        return f"{IPFS_PROTOCOL}{cid}"

    async def is_connected(self) -> bool:
        try:
            await self.client.id()
            return True
        except httpx.HTTPError as e:
            logger.warning("IPFS node not reachable: %s", e)
            return False
