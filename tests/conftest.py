"""
Pytest configuration and fixtures for Fileverse Agents SDK tests.

Storage, chain and the threshold backend are replaced by in-memory fakes
that count their calls, so tests can assert that nothing happened.
"""

import asyncio
import base64
import json
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from eth_account import Account

from fileverse_agents import config
from fileverse_agents.agent import FileverseAgent
from fileverse_agents.chain import ChainClient
from fileverse_agents.credentials import CredentialStore
from fileverse_agents.data_access import TacoProvider
from fileverse_agents.errors import StorageError, UnpinError
from fileverse_agents.models import DownloadResult, TransactionReceipt
from fileverse_agents.storage import StorageProvider
from fileverse_agents.taco import USER_ADDRESS_PARAM, BackendModules, TacoClient
from fileverse_agents.utils import decode_text, strip_protocol

TEST_PRIVATE_KEY = "0x" + "11" * 32
PORTAL_ADDRESS = "0x00000000000000000000000000000000000000aa"


class FakeStorage(StorageProvider):
    """In-memory pinning service."""

    PROTOCOL = "ipfs://"

    def __init__(self):
        self.pins: Dict[str, Any] = {}
        self.uploads: List[str] = []
        self.downloads = 0
        self.unpinned: List[str] = []
        self.fail_unpin = False

    async def upload(self, file_name, content):
        cid = f"bafkfake{len(self.uploads)}"
        self.pins[cid] = content
        self.uploads.append(file_name)
        return f"{self.PROTOCOL}{cid}"

    def _get(self, reference):
        cid = strip_protocol(reference, self.PROTOCOL)
        if cid not in self.pins:
            raise StorageError("Not found", reference=reference)
        self.downloads += 1
        return self.pins[cid]

    async def download(self, reference):
        data = self._get(reference)
        if isinstance(data, bytes):
            data = decode_text(data)
        return DownloadResult(data=data)

    async def download_bytes(self, reference):
        data = self._get(reference)
        return data.encode("utf-8") if isinstance(data, str) else data

    async def unpin(self, reference):
        if self.fail_unpin:
            raise UnpinError("Pinning service unavailable", reference=reference)
        cid = strip_protocol(reference, self.PROTOCOL)
        if cid not in self.pins:
            raise UnpinError("Not pinned", reference=reference)
        del self.pins[cid]
        self.unpinned.append(reference)
        return reference

    async def protocol(self):
        return self.PROTOCOL

    async def is_connected(self):
        return True


class FakeChain(ChainClient):
    """Simulates the portal registry and a single portal contract."""

    def __init__(self, chain_id: int = 80002):
        self.chain_id = chain_id
        self.calls: List[tuple] = []
        self.reads = 0
        self.files: List[list] = []
        self.emit_events = True
        self._events: Dict[str, Dict[str, List[dict]]] = {}

    async def submit_call(self, target, abi, function_name, args):
        self.calls.append((target, function_name, list(args)))
        tx_hash = "0x%064x" % len(self.calls)
        events: Dict[str, List[dict]] = {}

        if function_name == "mint":
            events["Mint"] = [{"account": "0xowner", "portal": PORTAL_ADDRESS}]
        elif function_name == "addFile":
            metadata_ref, content_ref, gate_ref, file_type, version = args
            self.files.append([metadata_ref, content_ref, gate_ref, file_type, version])
            events["AddedFile"] = [{"fileId": len(self.files) - 1}]
        elif function_name == "editFile":
            file_id = args[0]
            self.files[file_id] = list(args[1:])
            events["EditedFile"] = [{"fileId": file_id}]

        self._events[tx_hash] = events if self.emit_events else {}
        return tx_hash

    async def wait_for_receipt(self, tx_hash, abi=None):
        return TransactionReceipt(transaction_hash=tx_hash, events=self._events[tx_hash])

    async def read_state(self, target, abi, function_name, args):
        self.reads += 1
        file_id = args[0]
        if file_id >= len(self.files):
            return ("", "", "", 0, 0)
        return tuple(self.files[file_id])

    async def get_chain_id(self):
        return self.chain_id

    def calls_to(self, function_name):
        return [call for call in self.calls if call[1] == function_name]


class FakeMessageKit:
    def __init__(self, message: bytes, condition: Any):
        self.message = message
        self.condition = condition

    def to_bytes(self) -> bytes:
        payload = {
            "condition": self.condition,
            "message": base64.b64encode(self.message).decode("utf-8"),
        }
        return b"KIT:" + json.dumps(payload).encode("utf-8")


class FakeAuthProvider:
    def __init__(self, address: str):
        self.address = address


class FakeConditionContext:
    def __init__(self, requested=()):
        self.requested_context_parameters = list(requested)
        self.auth_providers: Dict[str, FakeAuthProvider] = {}

    def add_auth_provider(self, param, provider):
        self.auth_providers[param] = provider


class FakeThresholdBackend:
    """Threshold backend that evaluates balance conditions against a fake ledger."""

    def __init__(self, default_balance: int = 10**18):
        self.default_balance = default_balance
        self.balances: Dict[str, int] = {}
        self.initialize_calls = 0
        self.initialize_failures = 0
        self.initialize_delay = 0.0
        self.encrypted_conditions: List[Any] = []
        self.encrypt_error: Optional[Exception] = None

    async def initialize(self):
        self.initialize_calls += 1
        if self.initialize_delay:
            await asyncio.sleep(self.initialize_delay)
        if self.initialize_failures:
            self.initialize_failures -= 1
            raise RuntimeError("Failed to load TACo modules")

    async def encrypt(self, client, domain, message, condition, ritual_id, signer):
        if self.encrypt_error is not None:
            raise self.encrypt_error
        self.encrypted_conditions.append(condition)
        return FakeMessageKit(message, condition)

    def message_kit_from_bytes(self, data):
        if not data.startswith(b"KIT:"):
            raise ValueError("Invalid message kit header")
        payload = json.loads(data[4:])
        return FakeMessageKit(base64.b64decode(payload["message"]), payload["condition"])

    def condition_context_from_message_kit(self, message_kit):
        requested = [USER_ADDRESS_PARAM] if USER_ADDRESS_PARAM in json.dumps(message_kit.condition) else []
        return FakeConditionContext(requested)

    def create_auth_provider(self, client, signer):
        return FakeAuthProvider(signer.address)

    def _satisfied(self, condition, context) -> bool:
        if condition.get("conditionType") == "compound":
            results = [self._satisfied(op, context) for op in condition["operands"]]
            if condition["operator"] == "and":
                return all(results)
            if condition["operator"] == "or":
                return any(results)
            return not results[0]

        if condition.get("method") == "eth_getBalance":
            provider = context.auth_providers.get(USER_ADDRESS_PARAM) if context else None
            if provider is None:
                raise RuntimeError("Missing auth provider for :userAddress")
            balance = self.balances.get(provider.address, self.default_balance)
            return balance >= condition["returnValueTest"]["value"]

        return True

    async def decrypt(self, client, domain, message_kit, context):
        if not self._satisfied(message_kit.condition, context):
            raise RuntimeError("Threshold of responses not met; decryption conditions not satisfied")
        return message_kit.message


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temporary directory and reset backend state."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(config, "CONFIG_FILE", str(config_dir / "config.json"))
    BackendModules.reset()
    yield config_dir
    BackendModules.reset()


@pytest.fixture
def account():
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def backend():
    return FakeThresholdBackend()


@pytest.fixture
def taco_client(chain, account, backend):
    return TacoClient(
        domain="TESTNET", ritual_id=6, client=chain, signer=account, backend=backend
    )


@pytest.fixture
def access_provider(taco_client):
    return TacoProvider(taco_client)


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(directory=str(tmp_path / "creds"))


@pytest_asyncio.fixture
async def agent(account, storage, chain, access_provider, credential_store):
    """Agent with a provisioned portal and a TACo provider."""
    agent = FileverseAgent(
        "sepolia",
        account,
        storage,
        chain_client=chain,
        access_provider=access_provider,
        credential_store=credential_store,
    )
    await agent.setup_storage("test")
    return agent


@pytest_asyncio.fixture
async def public_agent(account, storage, chain, credential_store):
    """Agent with a provisioned portal and no access provider."""
    agent = FileverseAgent(
        "sepolia",
        account,
        storage,
        chain_client=chain,
        credential_store=credential_store,
    )
    await agent.setup_storage("test")
    return agent
