"""
Tests for the web3-backed chain client.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from fileverse_agents.abi import PORTAL_ABI, PORTAL_REGISTRY_ABI
from fileverse_agents.chain import RECEIPT_WAIT_WINDOW, Web3ChainClient
from fileverse_agents.errors import ChainError, ConfigurationError

from tests.conftest import TEST_PRIVATE_KEY

OWNER = Account.from_key(TEST_PRIVATE_KEY).address
PORTAL = "0x00000000000000000000000000000000000000AA"
REGISTRY = "0x8D9E28AC21D823ddE63fbf20FAD8EdD4F4a0cCfD"
TX_HASH = "0x" + "ab" * 32


class AwaitableValue:
    """Stands in for awaitable web3 properties such as ``eth.chain_id``."""

    def __init__(self, value):
        self.value = value

    def __await__(self):
        return self._get().__await__()

    async def _get(self):
        return self.value


def address_topic(address):
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def mint_receipt(status=1):
    log = {
        "address": REGISTRY,
        "topics": [
            Web3.keccak(text="Mint(address,address)"),
            address_topic(OWNER),
            address_topic(PORTAL),
        ],
        "data": b"",
        "logIndex": 0,
        "transactionIndex": 0,
        "transactionHash": bytes.fromhex(TX_HASH[2:]),
        "blockHash": b"\xcd" * 32,
        "blockNumber": 42,
    }
    return {"status": status, "blockNumber": 42, "logs": [log], "transactionHash": bytes.fromhex(TX_HASH[2:])}


@pytest.fixture
def client():
    return Web3ChainClient("http://localhost:8545", TEST_PRIVATE_KEY)


def test_key_string_becomes_local_account(client):
    assert isinstance(client.account, LocalAccount)
    assert client.account.address == OWNER


@pytest.mark.parametrize("rpc_url,account", [("", TEST_PRIVATE_KEY), ("http://localhost:8545", None)])
def test_requires_rpc_url_and_account(rpc_url, account):
    with pytest.raises(ConfigurationError):
        Web3ChainClient(rpc_url, account)


@pytest.mark.asyncio
async def test_submit_call_signs_and_sends(client):
    contract = MagicMock()
    contract.functions.addFile.return_value.build_transaction = AsyncMock(
        return_value={"to": PORTAL, "data": "0x"}
    )
    client.account = MagicMock(address=OWNER)
    client.account.sign_transaction.return_value = SimpleNamespace(raw_transaction=b"\x02raw")
    client.w3 = MagicMock()
    client.w3.eth.get_transaction_count = AsyncMock(return_value=7)
    client.w3.eth.chain_id = AwaitableValue(11155111)
    client.w3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex(TX_HASH[2:]))

    with patch.object(client, "_contract", return_value=contract):
        tx_hash = await client.submit_call(PORTAL, PORTAL_ABI, "addFile", ["a", "b", "", 0, 0])

    assert tx_hash == TX_HASH
    contract.functions.addFile.assert_called_once_with("a", "b", "", 0, 0)
    contract.functions.addFile.return_value.build_transaction.assert_awaited_once_with(
        {"from": OWNER, "nonce": 7, "chainId": 11155111}
    )
    client.w3.eth.get_transaction_count.assert_awaited_once_with(OWNER, "pending")
    client.w3.eth.send_raw_transaction.assert_awaited_once_with(b"\x02raw")


@pytest.mark.asyncio
async def test_submit_call_failure(client):
    contract = MagicMock()
    contract.functions.mint.return_value.build_transaction = AsyncMock(
        side_effect=ValueError("execution reverted")
    )
    client.w3 = MagicMock()
    client.w3.eth.get_transaction_count = AsyncMock(return_value=0)
    client.w3.eth.chain_id = AwaitableValue(11155111)

    with patch.object(client, "_contract", return_value=contract):
        with pytest.raises(ChainError):
            await client.submit_call(REGISTRY, PORTAL_REGISTRY_ABI, "mint", [])


@pytest.mark.asyncio
async def test_wait_for_receipt_decodes_events(client):
    with patch.object(
        client.w3.eth, "wait_for_transaction_receipt", AsyncMock(return_value=mint_receipt())
    ):
        receipt = await client.wait_for_receipt(TX_HASH, PORTAL_REGISTRY_ABI)

    assert receipt.block_number == 42
    assert receipt.event_args("Mint") == [{"account": OWNER, "portal": Web3.to_checksum_address(PORTAL)}]
    assert receipt.event_args("AddedFile") == []


@pytest.mark.asyncio
async def test_wait_for_receipt_ignores_foreign_events(client):
    with patch.object(
        client.w3.eth, "wait_for_transaction_receipt", AsyncMock(return_value=mint_receipt())
    ):
        receipt = await client.wait_for_receipt(TX_HASH, PORTAL_ABI)

    assert receipt.events == {}
    assert len(receipt.logs) == 1


@pytest.mark.asyncio
async def test_reverted_transaction(client):
    with patch.object(
        client.w3.eth, "wait_for_transaction_receipt", AsyncMock(return_value=mint_receipt(status=0))
    ):
        with pytest.raises(ChainError):
            await client.wait_for_receipt(TX_HASH, PORTAL_REGISTRY_ABI)


@pytest.mark.asyncio
async def test_receipt_timeout_is_passed(client):
    client.receipt_timeout = 30
    wait = AsyncMock(side_effect=TimeoutError("not mined"))

    with patch.object(client.w3.eth, "wait_for_transaction_receipt", wait):
        with pytest.raises(ChainError):
            await client.wait_for_receipt(TX_HASH)

    wait.assert_awaited_once_with(TX_HASH, timeout=30)


@pytest.mark.asyncio
async def test_configured_receipt_timeout_is_enforced(client):
    client.receipt_timeout = 30
    wait = AsyncMock(side_effect=TimeExhausted("not mined"))

    with patch.object(client.w3.eth, "wait_for_transaction_receipt", wait):
        with pytest.raises(ChainError):
            await client.wait_for_receipt(TX_HASH)

    assert wait.await_count == 1


@pytest.mark.asyncio
async def test_receipt_wait_is_unbounded_without_timeout(client):
    assert client.receipt_timeout is None
    wait = AsyncMock(
        side_effect=[TimeExhausted("not mined"), TimeExhausted("not mined"), mint_receipt()]
    )

    with patch.object(client.w3.eth, "wait_for_transaction_receipt", wait):
        receipt = await client.wait_for_receipt(TX_HASH, PORTAL_REGISTRY_ABI)

    assert receipt.block_number == 42
    assert wait.await_count == 3
    for call in wait.await_args_list:
        assert call.kwargs["timeout"] == RECEIPT_WAIT_WINDOW


@pytest.mark.asyncio
async def test_read_state_returns_tuple(client):
    contract = MagicMock()
    contract.functions.files.return_value.call = AsyncMock(
        return_value=["ipfs://meta", "ipfs://content", "", 0, 0]
    )

    with patch.object(client, "_contract", return_value=contract):
        record = await client.read_state(PORTAL, PORTAL_ABI, "files", [3])

    assert record == ("ipfs://meta", "ipfs://content", "", 0, 0)
    contract.functions.files.assert_called_once_with(3)


@pytest.mark.asyncio
async def test_read_state_failure(client):
    contract = MagicMock()
    contract.functions.files.return_value.call = AsyncMock(side_effect=ConnectionError("down"))

    with patch.object(client, "_contract", return_value=contract):
        with pytest.raises(ChainError):
            await client.read_state(PORTAL, PORTAL_ABI, "files", [0])


@pytest.mark.asyncio
async def test_get_chain_id(client):
    client.w3 = MagicMock()
    client.w3.eth.chain_id = AwaitableValue(100)

    assert await client.get_chain_id() == 100
