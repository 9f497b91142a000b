from typing import Any, Dict, Optional

import httpx


class AsyncIPFSClient:
    """
    Asynchronous client for a Kubo (go-ipfs) node's HTTP RPC API using httpx.
    """

    def __init__(
        self,
        api_url: str = "http://localhost:5001",
        timeout: float = 300,
    ):
        # Handle multiaddr format
        if api_url and api_url.startswith("/"):
            parts = api_url.split("/")
            # Handle /ip4/127.0.0.1/tcp/5001
            if len(parts) >= 5 and parts[1] in ["ip4", "ip6", "dns", "dns4"]:
                api_url = f"http://{parts[2]}:{parts[4]}"
            else:
                raise ValueError(f"Unsupported multiaddr format: {api_url}")

        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def close(self):
        """Close the httpx client."""
        await self.client.aclose()

    async def add_bytes(self, data: bytes, filename: str = "file") -> Dict[str, Any]:
        """
        Add bytes to IPFS.

        Args:
            data: Bytes to add
            filename: Name to give the file (default: "file")

        Returns:
            Dict containing the CID and other information
        """
        # Specify file with name and content type to ensure consistent handling
        files = {"file": (filename, data, "application/octet-stream")}
        # Explicitly set wrap-with-directory=false to prevent wrapping in directory
        response = await self.client.post(
            f"{self.api_url}/api/v0/add?wrap-with-directory=false&pin=true",
            files=files,
        )
        response.raise_for_status()
        return response.json()

    async def cat(self, cid: str, timeout: Optional[float] = None) -> bytes:
        """
        Retrieve content from IPFS by its CID.

        Args:
            cid: Content Identifier to retrieve
            timeout: Optional per-request timeout in seconds

        Returns:
            Content as bytes
        """
        kwargs = {"timeout": timeout} if timeout is not None else {}
        response = await self.client.post(
            f"{self.api_url}/api/v0/cat?arg={cid}", **kwargs
        )
        response.raise_for_status()
        return response.content

    async def unpin(self, cid: str) -> Dict[str, Any]:
        """
        Unpin content by CID.

        Args:
            cid: Content Identifier to unpin

        Returns:
            Response from the IPFS node
        """
        response = await self.client.post(f"{self.api_url}/api/v0/pin/rm?arg={cid}")
        response.raise_for_status()
        return response.json()

    async def id(self) -> Dict[str, Any]:
        """Return the node's identity; used as a connectivity probe."""
        response = await self.client.post(f"{self.api_url}/api/v0/id")
        response.raise_for_status()
        return response.json()
