"""
Network and contract constants for the Fileverse Agents SDK.
"""

from enum import IntEnum


class FileType(IntEnum):
    """File types understood by the FileversePortal contract."""

    PUBLIC = 0
    PRIVATE = 1
    GATED = 2
    MEMBER_PRIVATE = 3


SUPPORTED_CHAINS = {
    "gnosis": {
        "chain_id": 100,
        "rpc_url": "https://rpc.gnosischain.com",
        "portal_registry": "0x945690a516519daEE95834C05218839c8deEC88D",
    },
    "sepolia": {
        "chain_id": 11155111,
        "rpc_url": "https://ethereum-sepolia-rpc.publicnode.com",
        "portal_registry": "0x8D9E28AC21D823ddE63fbf20FAD8EdD4F4a0cCfD",
    },
}

# Sentinel written over both hashes when a file is deleted
DELETED_HASH = "deleted"

# Versioned reads are not supported; every write uses version 0
FILE_VERSION = 0

PUBLIC_CONTENT_FILENAME = "output.md"
ENCRYPTED_CONTENT_FILENAME = "encrypted_content.bin"
METADATA_FILENAME = "metadata.json"

DEFAULT_DOWNLOAD_TIMEOUT = 30.0
