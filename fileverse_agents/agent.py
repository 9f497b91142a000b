"""
FileverseAgent: create, read, update and delete files on a Fileverse portal.

File bytes live in content-addressed storage, the references are registered
on the portal contract, and content can be encrypted under an access
condition through a DataAccessProvider.
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple, Union

from fileverse_agents.abi import PORTAL_ABI, PORTAL_REGISTRY_ABI
from fileverse_agents.chain import ChainClient, Web3ChainClient
from fileverse_agents.config import get_config_value
from fileverse_agents.constants import (
    DELETED_HASH,
    ENCRYPTED_CONTENT_FILENAME,
    FILE_VERSION,
    METADATA_FILENAME,
    PUBLIC_CONTENT_FILENAME,
    SUPPORTED_CHAINS,
    FileType,
)
from fileverse_agents.credentials import CredentialStore
from fileverse_agents.data_access import DataAccessProvider
from fileverse_agents.errors import (
    ConfigurationError,
    NotSetupError,
    ProviderRequiredError,
    RegistrationError,
    StorageError,
    ValidationError,
)
from fileverse_agents.keys import generate_portal_keys, get_portal_key_verifiers
from fileverse_agents.models import FileContent, FileInfo, FileTransaction, PortalCredentials
from fileverse_agents.storage import StorageProvider
from fileverse_agents.utils import AsyncOnce, content_to_upload, decode_text
from fileverse_agents.validation import (
    validate_agent_config,
    validate_create_options,
    validate_file_content,
    validate_file_id,
)

logger = logging.getLogger(__name__)

ACCESS_PROVIDER_METHODS = ("encrypt", "decrypt", "validate_config", "get_metadata_config")

# Gate references are not used; the portal expects an empty string
EMPTY_GATE = ""


class FileverseAgent:
    """
    Agent that manages files on a Fileverse portal.

    Each operation runs its steps one after another (encrypt, upload,
    register). Concurrent mutations of the same file id are not serialized
    here: callers must serialize update/delete calls per file id themselves.
    A create or update that fails part way is not rolled back; blobs already
    uploaded stay pinned.
    """

    def __init__(
        self,
        chain: Any,
        account: Any,
        storage_provider: StorageProvider,
        chain_client: Optional[ChainClient] = None,
        access_provider: Optional[DataAccessProvider] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        """
        Initialize the agent.

        Args:
            chain: ``"gnosis"`` or ``"sepolia"`` (or an object with a ``name``)
            account: Signing account exposing ``address`` (eth_account LocalAccount)
            storage_provider: Content-addressed storage backend
            chain_client: On-chain collaborator (Web3ChainClient if None)
            access_provider: Encryption backend for access-gated files
            credential_store: Where provisioned portals are cached

        Raises:
            ConfigurationError: If any parameter is missing or invalid
        """
        self.chain = validate_agent_config(chain, account, storage_provider)

        if access_provider is not None:
            for method in ACCESS_PROVIDER_METHODS:
                if not callable(getattr(access_provider, method, None)):
                    raise ConfigurationError(f"Access provider must implement {method}")

        chain_info = SUPPORTED_CHAINS[self.chain]
        self.account = account
        self.owner = account.address
        self.portal_registry = chain_info["portal_registry"]
        self.storage_provider = storage_provider
        self.access_provider = access_provider

        if chain_client is None:
            rpc_url = chain_info["rpc_url"]
            if get_config_value("chain", "name") == self.chain:
                rpc_url = get_config_value("chain", "rpc_url") or rpc_url
            chain_client = Web3ChainClient(rpc_url, account)
        self.chain_client = chain_client

        self.credential_store = credential_store or CredentialStore()
        self.namespace: Optional[str] = None
        self.portal: Optional[PortalCredentials] = None
        self._provider_check = AsyncOnce(self._validate_access_provider)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the storage provider's network clients."""
        close = getattr(self.storage_provider, "close", None)
        if close is not None:
            await close()

    async def setup_storage(self, namespace: str) -> str:
        """
        Provision (or load) the portal for a namespace.

        Args:
            namespace: Caller namespace; stored as ``<namespace>-<chain>``

        Returns:
            str: The portal address
        """
        if not namespace:
            raise ValidationError("Namespace is required")

        self.namespace = f"{namespace}-{self.chain}"

        stored = self.credential_store.load(self.namespace)
        if stored is not None and stored.namespace == self.namespace:
            logger.debug("Storage already exists for namespace: %s", namespace)
            self.portal = stored
            return stored.portal_address

        metadata_ref = await self.storage_provider.upload(
            METADATA_FILENAME,
            json.dumps({"namespace": self.namespace, "source": "FileverseAgent"}),
        )

        keys = generate_portal_keys()
        verifiers = get_portal_key_verifiers(keys)

        tx_hash = await self.chain_client.submit_call(
            self.portal_registry,
            PORTAL_REGISTRY_ABI,
            "mint",
            [
                metadata_ref,
                keys.view_did,
                keys.edit_did,
                verifiers.portal_encryption_key_verifier,
                verifiers.portal_decryption_key_verifier,
                verifiers.member_encryption_key_verifier,
                verifiers.member_decryption_key_verifier,
            ],
        )
        receipt = await self.chain_client.wait_for_receipt(tx_hash, PORTAL_REGISTRY_ABI)

        mints = receipt.event_args("Mint")
        portal_address = mints[0].get("portal") if mints else None
        if not portal_address:
            raise RegistrationError(
                "Portal not found in Mint event", operation="setup_storage", tx_hash=tx_hash
            )

        self.portal = PortalCredentials(
            portal_address=portal_address,
            owner=self.owner,
            namespace=self.namespace,
            metadata_ipfs_hash=metadata_ref,
            keys=keys.model_dump(by_alias=True),
            verifiers=verifiers.model_dump(by_alias=True),
        )
        self.credential_store.save(self.portal)

        logger.info("Portal %s minted for namespace %s", portal_address, self.namespace)
        return portal_address

    def get_portal(self) -> Optional[PortalCredentials]:
        return self.portal

    def prechecks(self) -> PortalCredentials:
        """
        Ensure a portal has been provisioned.

        Raises:
            NotSetupError: If setup_storage has not completed
        """
        if self.portal is None or not self.portal.portal_address:
            raise NotSetupError("Storage not set up yet; call setup_storage first")
        return self.portal

    def _require_access_provider(self, operation: str, file_id: Optional[int] = None):
        if self.access_provider is None:
            raise ProviderRequiredError(
                "Access condition provided but no access provider is configured",
                operation=operation,
                file_id=file_id,
            )
        if not self.access_provider.supports_encryption():
            raise ProviderRequiredError(
                f"Access provider {self.access_provider.get_provider_type()} "
                "does not support encryption",
                operation=operation,
                file_id=file_id,
            )

    async def _tombstone(self) -> str:
        protocol = await self.storage_provider.protocol()
        return f"{protocol}{DELETED_HASH}"

    async def _validate_access_provider(self) -> bool:
        if not await self.access_provider.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.access_provider.get_provider_type()}"
            )
        return True

    async def _prepare_content(
        self, content: Any, options: Dict[str, Any]
    ) -> Tuple[Union[str, bytes], str, FileType, bool]:
        """Encrypt or pass content through; returns (payload, filename, filetype, encrypted)."""
        if "access_condition" not in options:
            return content_to_upload(content), PUBLIC_CONTENT_FILENAME, FileType.PUBLIC, False

        await self._provider_check.run()
        logger.debug("Encrypting content with %s", self.access_provider.get_provider_type())
        ciphertext = await self.access_provider.encrypt(content, options["access_condition"])
        return ciphertext, ENCRYPTED_CONTENT_FILENAME, FileType.PRIVATE, True

    async def _upload_file(
        self,
        portal: PortalCredentials,
        payload: Union[str, bytes],
        filename: str,
        encrypted: bool,
        description: str,
    ) -> Tuple[str, str]:
        """Upload content then its metadata; returns (metadata_ref, content_ref)."""
        content_ref = await self.storage_provider.upload(filename, payload)
        logger.debug("Uploaded content as %s", content_ref)

        output_name = "encrypted_output.md" if encrypted else PUBLIC_CONTENT_FILENAME
        metadata = {
            "name": f"{portal.portal_address}/{self.namespace}/{output_name}",
            "description": description,
            "encrypted": encrypted,
        }
        if encrypted:
            metadata["dataAccessConfig"] = self.access_provider.get_metadata_config()

        metadata_ref = await self.storage_provider.upload(METADATA_FILENAME, json.dumps(metadata))
        logger.debug("Uploaded metadata as %s", metadata_ref)
        return metadata_ref, content_ref

    async def create(
        self, content: Any, options: Optional[Dict[str, Any]] = None
    ) -> FileTransaction:
        """
        Create a file.

        Args:
            content: Text, bytes, or JSON-serializable dict/list
            options: ``{"access_condition": condition}`` to encrypt the file

        Returns:
            FileTransaction: file id, transaction hash, portal address and
            encryption details
        """
        validate_file_content(content)
        options = validate_create_options(options)
        if "access_condition" in options:
            self._require_access_provider("create")
        portal = self.prechecks()

        payload, filename, file_type, encrypted = await self._prepare_content(content, options)
        description = (
            "Encrypted Markdown file created by FileverseAgent"
            if encrypted
            else "Markdown file created by FileverseAgent"
        )
        metadata_ref, content_ref = await self._upload_file(
            portal, payload, filename, encrypted, description
        )

        tx_hash = await self.chain_client.submit_call(
            portal.portal_address,
            PORTAL_ABI,
            "addFile",
            [metadata_ref, content_ref, EMPTY_GATE, int(file_type), FILE_VERSION],
        )
        receipt = await self.chain_client.wait_for_receipt(tx_hash, PORTAL_ABI)

        added = receipt.event_args("AddedFile")
        if not added or added[0].get("fileId") is None:
            raise RegistrationError(
                "AddedFile event not found", operation="create", tx_hash=tx_hash
            )

        file_id = int(added[0]["fileId"])
        logger.info("Created file %s (encrypted=%s) in %s", file_id, encrypted, tx_hash)

        return FileTransaction(
            file_id=file_id,
            hash=tx_hash,
            portal_address=portal.portal_address,
            encrypted=encrypted,
            access_condition=options.get("access_condition") if encrypted else None,
        )

    async def _load_metadata(self, reference: str, file_id: int) -> Dict[str, Any]:
        try:
            result = await self.storage_provider.download(reference)
        except StorageError as e:
            logger.warning("Could not download metadata for file %s: %s", file_id, e)
            return {}

        try:
            metadata = json.loads(result.data)
        except ValueError as e:
            logger.warning("Could not parse metadata as JSON for file %s: %s", file_id, e)
            return {}

        if not isinstance(metadata, dict):
            logger.warning("Metadata for file %s is not a JSON object", file_id)
            return {}
        return metadata

    async def get_file(self, file_id: Any) -> FileInfo:
        """
        Read a file's on-chain record and metadata.

        Metadata that cannot be downloaded or parsed degrades to ``{}`` with
        a warning.
        Tombstoned files come back with ``deleted=True`` and no metadata.
        """
        file_id = validate_file_id(file_id)
        portal = self.prechecks()

        record = await self.chain_client.read_state(
            portal.portal_address, PORTAL_ABI, "files", [file_id]
        )
        metadata_ref, content_ref = record[0], record[1]
        if not metadata_ref and not content_ref:
            raise RegistrationError("File not found", operation="get_file", file_id=file_id)

        info = FileInfo(
            portal_address=portal.portal_address,
            namespace=self.namespace,
            metadata_ipfs_hash=metadata_ref,
            content_ipfs_hash=content_ref,
        )

        tombstone = await self._tombstone()
        if metadata_ref == tombstone and content_ref == tombstone:
            info.deleted = True
            return info

        info.metadata = await self._load_metadata(metadata_ref, file_id)
        info.encrypted = info.metadata.get("encrypted") is True
        return info

    async def get_file_content(self, file_id: Any, condition_context: Any = None) -> FileContent:
        """
        Read a file and its content, decrypting it when the metadata says so.

        Args:
            file_id: The file id
            condition_context: Auth context for decryption (derived from the
                ciphertext when None)
        """
        info = await self.get_file(file_id)
        if info.deleted:
            raise RegistrationError(
                "File has been deleted", operation="get_file_content", file_id=file_id
            )

        if info.encrypted:
            if self.access_provider is None:
                raise ProviderRequiredError(
                    "File is encrypted but no access provider is configured",
                    operation="get_file_content",
                    file_id=file_id,
                )
            await self._provider_check.run()

            ciphertext = await self.storage_provider.download_bytes(info.content_ipfs_hash)
            plaintext = await self.access_provider.decrypt(ciphertext, condition_context)
            return FileContent(
                **info.model_dump(), content=decode_text(plaintext), decrypted=True
            )

        result = await self.storage_provider.download(info.content_ipfs_hash)
        content = result.data
        if isinstance(content, bytes):
            content = decode_text(content)
        return FileContent(**info.model_dump(), content=content, decrypted=False)

    async def _unpin_previous(self, previous: FileInfo, file_id: int) -> None:
        tombstone = await self._tombstone()
        for reference in (previous.metadata_ipfs_hash, previous.content_ipfs_hash):
            if not reference or reference == tombstone:
                continue
            try:
                await self.storage_provider.unpin(reference)
            except Exception as e:
                # Unpinning is garbage collection; the edit already succeeded
                logger.error(
                    "Error unpinning %s for file %s from storage: %s", reference, file_id, e
                )

    async def update(
        self, file_id: Any, content: Any, options: Optional[Dict[str, Any]] = None
    ) -> FileTransaction:
        """
        Replace a file's content and unpin the previous blobs.

        Updating without an access condition writes the file as PUBLIC, even
        if the previous version was encrypted.
        """
        file_id = validate_file_id(file_id)
        validate_file_content(content)
        options = validate_create_options(options)
        if "access_condition" in options:
            self._require_access_provider("update", file_id)
        portal = self.prechecks()

        previous = await self.get_file(file_id)
        if previous.encrypted and "access_condition" not in options:
            logger.warning(
                "File %s was encrypted; updating it without an access condition makes it public",
                file_id,
            )

        payload, filename, file_type, encrypted = await self._prepare_content(content, options)
        metadata_ref, content_ref = await self._upload_file(
            portal, payload, filename, encrypted, "Updated Markdown file by FileverseAgent"
        )

        tx_hash = await self.chain_client.submit_call(
            portal.portal_address,
            PORTAL_ABI,
            "editFile",
            [file_id, metadata_ref, content_ref, EMPTY_GATE, int(file_type), FILE_VERSION],
        )
        await self.chain_client.wait_for_receipt(tx_hash, PORTAL_ABI)
        logger.info("Updated file %s in %s", file_id, tx_hash)

        await self._unpin_previous(previous, file_id)

        return FileTransaction(
            file_id=file_id,
            hash=tx_hash,
            portal_address=portal.portal_address,
            encrypted=encrypted,
            access_condition=options.get("access_condition") if encrypted else None,
        )

    async def delete(self, file_id: Any) -> FileTransaction:
        """Tombstone a file on-chain and unpin its blobs."""
        file_id = validate_file_id(file_id)
        portal = self.prechecks()

        previous = await self.get_file(file_id)
        tombstone = await self._tombstone()

        tx_hash = await self.chain_client.submit_call(
            portal.portal_address,
            PORTAL_ABI,
            "editFile",
            [file_id, tombstone, tombstone, EMPTY_GATE, int(FileType.PUBLIC), FILE_VERSION],
        )
        await self.chain_client.wait_for_receipt(tx_hash, PORTAL_ABI)
        logger.info("Deleted file %s in %s", file_id, tx_hash)

        await self._unpin_previous(previous, file_id)

        return FileTransaction(
            file_id=file_id,
            hash=tx_hash,
            portal_address=portal.portal_address,
            encrypted=False,
        )
