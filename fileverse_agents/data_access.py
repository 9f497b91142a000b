"""
Data access providers for the Fileverse Agents SDK.

FileverseAgent depends only on DataAccessProvider; TacoProvider is the
threshold-encryption implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from web3 import AsyncHTTPProvider, AsyncWeb3

from fileverse_agents.config import get_config_value
from fileverse_agents.errors import ConfigurationError
from fileverse_agents.taco import TacoClient
from fileverse_agents.taco_config import DEFAULT_DOMAIN, default_rpc_url

logger = logging.getLogger(__name__)


class DataAccessProvider(ABC):
    """Abstract base class for access-control encryption backends."""

    @abstractmethod
    def get_provider_type(self) -> str:
        """Stable identifier stored in file metadata."""

    def supports_encryption(self) -> bool:
        return True

    @abstractmethod
    async def validate_config(self) -> bool:
        """
        Validate provider configuration. Idempotent.

        Raises:
            ConfigurationError: Describing what is missing or invalid
        """

    @abstractmethod
    async def encrypt(self, content: Union[str, bytes], access_condition: Any) -> bytes:
        """Encrypt content under an access condition (EncryptionError on failure)."""

    @abstractmethod
    async def decrypt(self, ciphertext: bytes, condition_context: Any = None) -> bytes:
        """Decrypt content (AccessDeniedError if the condition is not met)."""

    @abstractmethod
    def get_config(self) -> Dict[str, Any]:
        """Provider configuration without secrets."""

    @abstractmethod
    def get_metadata_config(self) -> Dict[str, Any]:
        """Minimal fields written to file metadata as ``dataAccessConfig``."""


class TacoProvider(DataAccessProvider):
    """DataAccessProvider backed by a TACo threshold network."""

    PROVIDER_TYPE = "TacoProvider"

    def __init__(self, taco_client: Optional[TacoClient] = None, **taco_config: Any):
        """
        Initialize the provider.

        Args:
            taco_client: Preconfigured client; otherwise one is built from
                ``domain``, ``ritual_id``, ``client``, ``signer``, ``rpc_url``
                and ``backend`` keyword arguments
        """
        if taco_client is None:
            taco_client = TacoClient(**taco_config)
        elif taco_config:
            raise ConfigurationError("Pass either taco_client or TACo settings, not both")

        self.taco = taco_client

    @classmethod
    def from_config(cls, signer: Any, client: Any = None, backend: Any = None) -> "TacoProvider":
        """Build a provider from the ``taco`` config section."""
        domain = get_config_value("taco", "domain", DEFAULT_DOMAIN)
        ritual_id = get_config_value("taco", "ritual_id")
        rpc_url = get_config_value("taco", "rpc_url")

        if client is None:
            rpc_url = rpc_url or default_rpc_url(domain)
            client = AsyncWeb3(AsyncHTTPProvider(rpc_url))

        return cls(
            domain=domain,
            ritual_id=ritual_id,
            client=client,
            signer=signer,
            rpc_url=rpc_url,
            backend=backend,
        )

    def get_provider_type(self) -> str:
        return self.PROVIDER_TYPE

    async def validate_config(self) -> bool:
        return await self.taco.validate_config()

    async def encrypt(self, content: Union[str, bytes], access_condition: Any) -> bytes:
        return await self.taco.encrypt(content, access_condition)

    async def decrypt(self, ciphertext: bytes, condition_context: Any = None) -> bytes:
        if condition_context is None:
            logger.debug("No condition context supplied; deriving it from the message kit")
            return await self.taco.decrypt_with_auto_context(ciphertext)
        return await self.taco.decrypt(ciphertext, condition_context)

    def get_config(self) -> Dict[str, Any]:
        config = self.taco.get_config()
        config["provider_type"] = self.PROVIDER_TYPE
        return config

    def get_metadata_config(self) -> Dict[str, Any]:
        return {
            "providerType": self.PROVIDER_TYPE,
            "domain": self.taco.domain,
            "ritualId": self.taco.ritual_id,
        }
