"""
Result and record models for the Fileverse Agents SDK.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FileTransaction(BaseModel):
    """Result of create, update and delete."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    file_id: int
    hash: str
    portal_address: str
    encrypted: Optional[bool] = None
    access_condition: Any = None

    @property
    def transaction_hash(self) -> str:
        return self.hash


class FileInfo(BaseModel):
    """On-chain references plus parsed metadata for a file."""

    portal_address: str
    namespace: Optional[str] = None
    metadata_ipfs_hash: str
    content_ipfs_hash: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    encrypted: bool = False
    deleted: bool = False


class FileContent(FileInfo):
    """FileInfo with the (decrypted) content attached."""

    content: Union[str, bytes]
    decrypted: bool = False


class DownloadResult(BaseModel):
    """Content returned by StorageProvider.download."""

    data: Union[str, bytes]
    content_type: Optional[str] = None


class TransactionReceipt(BaseModel):
    """Confirmed transaction with its logs and decoded events."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    transaction_hash: str
    status: int = 1
    block_number: Optional[int] = None
    logs: List[Any] = Field(default_factory=list)
    events: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)

    def event_args(self, event_name: str) -> List[Dict[str, Any]]:
        return self.events.get(event_name, [])


class PortalKeys(BaseModel):
    """Key material generated when a portal is minted."""

    model_config = ConfigDict(populate_by_name=True)

    view_did: str = Field(alias="viewDID")
    edit_did: str = Field(alias="editDID")
    view_secret: str = Field(alias="viewSecret")
    edit_secret: str = Field(alias="editSecret")
    portal_encryption_key: str = Field(alias="portalEncryptionKey")
    portal_decryption_key: str = Field(alias="portalDecryptionKey")
    member_encryption_key: str = Field(alias="memberEncryptionKey")
    member_decryption_key: str = Field(alias="memberDecryptionKey")


class PortalKeyVerifiers(BaseModel):
    """Digests of the portal keys registered on-chain."""

    model_config = ConfigDict(populate_by_name=True)

    portal_encryption_key_verifier: str = Field(alias="portalEncryptionKeyVerifier")
    portal_decryption_key_verifier: str = Field(alias="portalDecryptionKeyVerifier")
    member_encryption_key_verifier: str = Field(alias="memberEncryptionKeyVerifier")
    member_decryption_key_verifier: str = Field(alias="memberDecryptionKeyVerifier")


class PortalCredentials(BaseModel):
    """Locally persisted record of a provisioned portal."""

    model_config = ConfigDict(populate_by_name=True)

    portal_address: str = Field(alias="portalAddress")
    owner: str
    namespace: str
    metadata_ipfs_hash: str = Field(alias="metadataRef")
    keys: Dict[str, Any] = Field(default_factory=dict)
    verifiers: Dict[str, Any] = Field(default_factory=dict)
