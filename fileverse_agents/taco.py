"""
TACo threshold-encryption adapter.

TacoClient wraps a threshold backend (the network SDK bindings) behind the
encrypt/decrypt operations FileverseAgent needs. The backend is resolved and
initialized once per process by BackendModules; the per-client network
handshake runs once per TacoClient and is shared by concurrent callers.
"""

import copy
import importlib
import inspect
import logging
import re
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Tuple, Union, runtime_checkable

from fileverse_agents.config import get_config_value
from fileverse_agents.errors import (
    AccessDeniedError,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
)
from fileverse_agents.taco_config import (
    TacoConfig,
    condition_chains,
    default_chain_id,
    open_rituals,
)
from fileverse_agents.utils import AsyncOnce, content_to_bytes

logger = logging.getLogger(__name__)

# Context parameter resolved from the decrypting wallet
USER_ADDRESS_PARAM = ":userAddress"

# Backend messages meaning the cohort refused to release decryption shares
ACCESS_DENIED_PATTERN = re.compile(
    r"threshold of responses not met|condition not satisfied|"
    r"decryption conditions not satisfied|not authorized",
    re.IGNORECASE,
)


@runtime_checkable
class ThresholdBackend(Protocol):
    """Operations a threshold-encryption SDK binding must provide."""

    async def initialize(self) -> None: ...

    async def encrypt(
        self,
        client: Any,
        domain: str,
        message: bytes,
        condition: Any,
        ritual_id: int,
        signer: Any,
    ) -> Any: ...

    async def decrypt(
        self, client: Any, domain: str, message_kit: Any, context: Any
    ) -> bytes: ...

    def message_kit_from_bytes(self, data: bytes) -> Any: ...

    def condition_context_from_message_kit(self, message_kit: Any) -> Any: ...

    def create_auth_provider(self, client: Any, signer: Any) -> Any: ...


def load_backend(path: str) -> Any:
    """
    Import a backend from a ``package.module:attribute`` path.

    Classes are instantiated without arguments.
    """
    module_name, _, attribute = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        backend = getattr(module, attribute) if attribute else module
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Failed to import TACo backend '{path}': {e}")

    if inspect.isclass(backend):
        backend = backend()
    return backend


class BackendModules:
    """Process-wide registry of threshold backends and their one-time setup."""

    _default: Any = None
    _initializers: Dict[int, Tuple[Any, AsyncOnce]] = {}

    @classmethod
    def get(cls, backend: Any = None) -> Any:
        if backend is not None:
            return backend

        if cls._default is None:
            path = get_config_value("taco", "backend")
            if not path:
                raise ConfigurationError(
                    "No TACo backend configured. Pass backend= or set taco.backend"
                )
            cls._default = load_backend(path)
        return cls._default

    @classmethod
    async def initialize(cls, backend: Any) -> Any:
        """Run ``backend.initialize()`` once; failed runs are retried on the next call."""
        entry = cls._initializers.get(id(backend))
        if entry is None or entry[0] is not backend:
            entry = (backend, AsyncOnce(backend.initialize))
            cls._initializers[id(backend)] = entry

        await entry[1].run()
        return backend

    @classmethod
    def reset(cls) -> None:
        cls._default = None
        cls._initializers = {}


class TacoClient:
    """
    Client for TACo encryption under a single domain and ritual.

    The constructor validates its configuration synchronously and raises
    ConfigurationError; network work is deferred to the first operation.
    """

    class State(str, Enum):
        UNINITIALIZED = "uninitialized"
        INITIALIZING = "initializing"
        READY = "ready"
        FAILED = "failed"

    def __init__(
        self,
        config: Union[TacoConfig, Dict[str, Any], None] = None,
        *,
        domain: Optional[str] = None,
        ritual_id: Optional[int] = None,
        client: Any = None,
        signer: Any = None,
        rpc_url: Optional[str] = None,
        backend: Any = None,
    ):
        if config is None:
            config = TacoConfig.build(
                domain=domain,
                ritual_id=ritual_id,
                client=client,
                signer=signer,
                rpc_url=rpc_url,
            )
        elif isinstance(config, dict):
            config = TacoConfig.build(**config)
        elif not isinstance(config, TacoConfig):
            raise ConfigurationError("TACo config must be a TacoConfig or dict")

        self.config = config
        self.state = self.State.UNINITIALIZED
        self._backend = backend
        self._handshake = AsyncOnce(self._initialize)

    @property
    def domain(self) -> str:
        return self.config.domain

    @property
    def ritual_id(self) -> int:
        return self.config.ritual_id

    async def _get_chain_id(self) -> int:
        client = self.config.client
        get_chain_id = getattr(client, "get_chain_id", None)
        if callable(get_chain_id):
            chain_id = get_chain_id()
        elif getattr(client, "eth", None) is not None:
            chain_id = client.eth.chain_id
        else:
            raise ConfigurationError("Chain client does not support chain ID retrieval")

        if inspect.isawaitable(chain_id):
            chain_id = await chain_id
        return int(chain_id)

    async def _initialize(self) -> Any:
        self.state = self.State.INITIALIZING
        try:
            backend = await BackendModules.initialize(BackendModules.get(self._backend))

            chain_id = await self._get_chain_id()
            if chain_id not in condition_chains(self.domain):
                raise ConfigurationError(
                    f"Network {chain_id} is not supported by TACo domain {self.domain}",
                    domain=self.domain,
                )

            if self.ritual_id not in open_rituals(self.domain):
                logger.info(
                    "Ritual %s is not an open ritual on %s; the encryptor must be allow-listed",
                    self.ritual_id,
                    self.domain,
                )
        except ConfigurationError:
            self.state = self.State.FAILED
            raise
        except Exception as e:
            self.state = self.State.FAILED
            raise ConfigurationError(
                f"TACo initialization failed: {e}",
                domain=self.domain,
                ritual_id=self.ritual_id,
            ) from e

        self.state = self.State.READY
        logger.info(
            "TACo ready on network %s with ritual %s (%s)",
            chain_id,
            self.ritual_id,
            self.domain,
        )
        return backend

    async def _ensure_ready(self) -> Any:
        return await self._handshake.run()

    async def validate_config(self) -> bool:
        """
        Check the backend and network. Safe to call repeatedly.

        Raises:
            ConfigurationError: Describing what is missing or invalid
        """
        await self._ensure_ready()
        return True

    def with_default_chain(self, condition: Any) -> Any:
        """Return a copy of ``condition`` with missing chain ids set to the domain default."""
        chain_id = default_chain_id(self.domain)

        if isinstance(condition, dict):
            updated = dict(condition)
            if isinstance(updated.get("operands"), list):
                updated["operands"] = [
                    self.with_default_chain(operand) for operand in updated["operands"]
                ]
            elif updated.get("chain") is None:
                updated["chain"] = chain_id
            return updated

        if hasattr(condition, "chain") and condition.chain is None:
            updated = copy.copy(condition)
            updated.chain = chain_id
            return updated

        return condition

    async def encrypt(self, content: Union[str, bytes, dict, list], condition: Any) -> bytes:
        """
        Encrypt content under an access condition.

        Returns:
            bytes: Serialized message kit

        Raises:
            EncryptionError: If the condition is missing or the backend fails
        """
        if condition is None:
            raise EncryptionError("Access condition is required for encryption")

        try:
            backend = await self._ensure_ready()
        except ConfigurationError as e:
            raise EncryptionError(
                f"TACo is not ready: {e.message}",
                operation="encrypt",
                domain=self.domain,
                ritual_id=self.ritual_id,
            ) from e

        message = content_to_bytes(content)
        logger.debug("Encrypting %d bytes with ritual %s", len(message), self.ritual_id)

        try:
            message_kit = await backend.encrypt(
                self.config.client,
                self.domain,
                message,
                self.with_default_chain(condition),
                self.ritual_id,
                self.config.signer,
            )
            return bytes(message_kit.to_bytes())
        except Exception as e:
            raise EncryptionError(
                f"TACo encryption failed: {e}",
                operation="encrypt",
                domain=self.domain,
                ritual_id=self.ritual_id,
            ) from e

    async def _ready_for_decrypt(self) -> Any:
        try:
            return await self._ensure_ready()
        except ConfigurationError as e:
            raise DecryptionError(
                f"TACo is not ready: {e.message}",
                operation="decrypt",
                domain=self.domain,
                ritual_id=self.ritual_id,
            ) from e

    def _parse_message_kit(self, backend: Any, ciphertext: bytes) -> Any:
        if not isinstance(ciphertext, (bytes, bytearray)) or not ciphertext:
            raise DecryptionError("Ciphertext must be non-empty bytes", operation="decrypt")
        try:
            return backend.message_kit_from_bytes(bytes(ciphertext))
        except Exception as e:
            raise DecryptionError(
                f"Malformed message kit: {e}", operation="decrypt", domain=self.domain
            ) from e

    async def _decrypt_message_kit(self, backend: Any, message_kit: Any, context: Any) -> bytes:
        try:
            plaintext = await backend.decrypt(
                self.config.client, self.domain, message_kit, context
            )
        except AccessDeniedError:
            raise
        except Exception as e:
            if ACCESS_DENIED_PATTERN.search(str(e)):
                raise AccessDeniedError(
                    "Access condition not satisfied by requester",
                    operation="decrypt",
                    domain=self.domain,
                    ritual_id=self.ritual_id,
                ) from e
            raise DecryptionError(
                f"TACo decryption failed: {e}",
                operation="decrypt",
                domain=self.domain,
                ritual_id=self.ritual_id,
            ) from e

        return bytes(plaintext)

    async def decrypt(self, ciphertext: bytes, condition_context: Any = None) -> bytes:
        """
        Decrypt a serialized message kit.

        Raises:
            AccessDeniedError: If the requester does not satisfy the condition
            DecryptionError: For malformed input or backend failures
        """
        backend = await self._ready_for_decrypt()
        message_kit = self._parse_message_kit(backend, ciphertext)
        return await self._decrypt_message_kit(backend, message_kit, condition_context)

    async def decrypt_with_auto_context(self, ciphertext: bytes, signer: Any = None) -> bytes:
        """
        Decrypt, deriving the condition context from the message kit.

        An auth provider built from ``signer`` (default: the configured signer)
        is attached when the condition asks for ``:userAddress``.
        """
        backend = await self._ready_for_decrypt()
        message_kit = self._parse_message_kit(backend, ciphertext)

        try:
            context = backend.condition_context_from_message_kit(message_kit)
            requested = getattr(context, "requested_context_parameters", None) or ()
            if USER_ADDRESS_PARAM in requested:
                auth_provider = backend.create_auth_provider(
                    self.config.client, signer or self.config.signer
                )
                context.add_auth_provider(USER_ADDRESS_PARAM, auth_provider)
        except Exception as e:
            raise DecryptionError(
                f"Could not derive condition context: {e}",
                operation="decrypt",
                domain=self.domain,
            ) from e

        return await self._decrypt_message_kit(backend, message_kit, context)

    def get_config(self) -> Dict[str, Any]:
        config = self.config.public_dict()
        config["state"] = self.state.value
        return config
