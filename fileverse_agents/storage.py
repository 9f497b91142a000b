"""
Storage provider contract for the Fileverse Agents SDK.

Any content-addressed storage backend used by FileverseAgent implements
StorageProvider. References returned by upload are protocol-prefixed
(e.g. ``ipfs://<cid>``).
"""

from abc import ABC, abstractmethod
from typing import Union

from fileverse_agents.models import DownloadResult


class StorageProvider(ABC):
    """Abstract base class for content-addressed storage backends."""

    @abstractmethod
    async def upload(self, file_name: str, content: Union[str, bytes]) -> str:
        """
        Upload content and pin it.

        Args:
            file_name: Name recorded alongside the blob
            content: Text or binary content

        Returns:
            str: Protocol-prefixed reference to the uploaded blob
        """

    @abstractmethod
    async def download(self, reference: str) -> DownloadResult:
        """Download a blob, decoding it to text when it is text."""

    @abstractmethod
    async def download_bytes(self, reference: str) -> bytes:
        """Download a blob as raw bytes."""

    @abstractmethod
    async def unpin(self, reference: str) -> str:
        """
        Stop pinning a blob.

        Raises:
            UnpinError: If the blob is not pinned or the request fails
        """

    @abstractmethod
    async def protocol(self) -> str:
        """Return the reference prefix, e.g. ``ipfs://``."""

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check connectivity/authentication. Never raises."""

    async def close(self):
        """Release network resources held by the provider."""
