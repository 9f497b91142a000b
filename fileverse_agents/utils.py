"""
Utility functions for the Fileverse Agents SDK.

This module provides common utility functions used across the SDK.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")


def format_size(size_bytes: int) -> str:
    """
    Format a size in bytes to a human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        str: Human-readable size string (e.g., '1.23 MB', '456.78 KB')
    """
    if size_bytes >= 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"
    elif size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.2f} KB"
    else:
        return f"{size_bytes} bytes"


def strip_protocol(reference: str, protocol: str) -> str:
    """
    Remove a storage protocol prefix (e.g. ``ipfs://``) from a reference.

    Args:
        reference: Protocol-prefixed or bare reference
        protocol: The protocol prefix to strip

    Returns:
        str: The bare reference
    """
    if protocol and reference.startswith(protocol):
        return reference[len(protocol):]
    return reference


def content_to_bytes(content: Union[str, bytes, dict, list]) -> bytes:
    """
    Convert file content into bytes for encryption or upload.

    Strings are UTF-8 encoded, structured content is serialized as JSON.
    """
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if isinstance(content, str):
        return content.encode("utf-8")
    return json.dumps(content).encode("utf-8")


def content_to_upload(content: Union[str, bytes, dict, list]) -> Union[str, bytes]:
    """Like content_to_bytes, but leaves text and bytes untouched."""
    if isinstance(content, (str, bytes)):
        return content
    if isinstance(content, bytearray):
        return bytes(content)
    return json.dumps(content)


def decode_text(data: bytes) -> Union[str, bytes]:
    """Decode bytes as UTF-8 text, returning the original bytes if they are binary."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


class AsyncOnce(Generic[T]):
    """
    Run an async factory at most once.

    Concurrent callers await the same in-flight task instead of starting a
    second run. A failed run is forgotten so the next call retries.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]):
        self._factory = factory
        self._task: Optional[asyncio.Future] = None
        self._done = False
        self._result: Any = None

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> T:
        if self._done:
            return self._result

        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        task = self._task

        try:
            result = await asyncio.shield(task)
        except BaseException:
            if task.done() and self._task is task:
                self._task = None
            raise

        if self._task is task:
            self._result = result
            self._done = True
            self._task = None
        return result

    def reset(self) -> None:
        self._task = None
        self._done = False
        self._result = None
