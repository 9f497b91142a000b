"""
On-chain access for the Fileverse Agents SDK.

ChainClient is the narrow contract FileverseAgent needs from a blockchain
client: submit a contract call, wait for its receipt with decoded events, and
read contract state. Web3ChainClient implements it with web3.py, signing
transactions locally with an eth_account key.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted
from web3.logs import DISCARD

from fileverse_agents.errors import ChainError, ConfigurationError
from fileverse_agents.models import TransactionReceipt

logger = logging.getLogger(__name__)

# Seconds per web3 receipt wait when no overall receipt timeout is set
RECEIPT_WAIT_WINDOW = 120


class ChainClient(ABC):
    """Abstract base class for the on-chain collaborator."""

    @abstractmethod
    async def submit_call(
        self, target: str, abi: List[Dict], function_name: str, args: Sequence[Any]
    ) -> str:
        """
        Submit a state-changing contract call.

        Returns:
            str: The transaction hash
        """

    @abstractmethod
    async def wait_for_receipt(
        self, tx_hash: str, abi: Optional[List[Dict]] = None
    ) -> TransactionReceipt:
        """Wait for confirmation and decode the events described by ``abi``."""

    @abstractmethod
    async def read_state(
        self, target: str, abi: List[Dict], function_name: str, args: Sequence[Any]
    ) -> tuple:
        """Call a view function and return its outputs as a tuple."""

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Return the id of the connected chain."""


class Web3ChainClient(ChainClient):
    """ChainClient backed by an AsyncWeb3 HTTP connection."""

    def __init__(
        self,
        rpc_url: str,
        account: Union[LocalAccount, str],
        receipt_timeout: Optional[float] = None,
    ):
        """
        Initialize the web3 chain client.

        Args:
            rpc_url: JSON-RPC endpoint of the chain
            account: Local signing account or hex private key
            receipt_timeout: Optional limit for receipt waits (wait indefinitely if None)
        """
        if not rpc_url:
            raise ConfigurationError("RPC URL is required for the chain client")
        if not account:
            raise ConfigurationError("Signing account is required for the chain client")

        if isinstance(account, str):
            account = Account.from_key(account)

        self.rpc_url = rpc_url
        self.account = account
        self.receipt_timeout = receipt_timeout
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))

    def _contract(self, abi: List[Dict], target: Optional[str] = None):
        if target is None:
            return self.w3.eth.contract(abi=abi)
        return self.w3.eth.contract(address=Web3.to_checksum_address(target), abi=abi)

    async def get_chain_id(self) -> int:
        try:
            return await self.w3.eth.chain_id
        except Exception as e:
            raise ChainError(f"Could not read chain id from {self.rpc_url}: {e}") from e

    async def submit_call(
        self, target: str, abi: List[Dict], function_name: str, args: Sequence[Any]
    ) -> str:
        contract = self._contract(abi, target)
        call = getattr(contract.functions, function_name)(*args)

        try:
            tx = await call.build_transaction(
                {
                    "from": self.account.address,
                    "nonce": await self.w3.eth.get_transaction_count(
                        self.account.address, "pending"
                    ),
                    "chainId": await self.w3.eth.chain_id,
                }
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ChainError(
                f"Failed to submit {function_name}: {e}",
                operation=function_name,
                target=target,
            ) from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.debug("Submitted %s to %s: %s", function_name, target, tx_hash_hex)
        return tx_hash_hex

    async def _await_receipt(self, tx_hash: str):
        """
        Wait for a transaction receipt.

        Without a receipt_timeout the wait is unbounded: each web3 wait covers
        one window and is resumed when it runs out.
        """
        timeout = RECEIPT_WAIT_WINDOW if self.receipt_timeout is None else self.receipt_timeout
        while True:
            try:
                return await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
            except TimeExhausted as e:
                if self.receipt_timeout is not None:
                    raise ChainError(
                        f"Receipt not available after {self.receipt_timeout}s", tx_hash=tx_hash
                    ) from e
                logger.info("Still waiting for receipt of %s", tx_hash)
            except Exception as e:
                raise ChainError(f"Failed waiting for receipt: {e}", tx_hash=tx_hash) from e

    async def wait_for_receipt(
        self, tx_hash: str, abi: Optional[List[Dict]] = None
    ) -> TransactionReceipt:
        receipt = await self._await_receipt(tx_hash)

        if receipt["status"] != 1:
            raise ChainError("Transaction reverted", tx_hash=tx_hash)

        events: Dict[str, List[Dict[str, Any]]] = {}
        if abi:
            contract = self._contract(abi)
            for entry in abi:
                if entry.get("type") != "event":
                    continue
                name = entry["name"]
                decoded = getattr(contract.events, name)().process_receipt(
                    receipt, errors=DISCARD
                )
                if decoded:
                    events[name] = [dict(event["args"]) for event in decoded]

        return TransactionReceipt(
            transaction_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
            logs=list(receipt.get("logs", [])),
            events=events,
        )

    async def read_state(
        self, target: str, abi: List[Dict], function_name: str, args: Sequence[Any]
    ) -> tuple:
        contract = self._contract(abi, target)
        try:
            result = await getattr(contract.functions, function_name)(*args).call()
        except Exception as e:
            raise ChainError(
                f"Failed to read {function_name}: {e}",
                operation=function_name,
                target=target,
            ) from e

        if isinstance(result, (list, tuple)):
            return tuple(result)
        return (result,)
