"""Wallet handles: the send-and-wait capability the signer adapter drives.

Wallets here can only sign and broadcast in one step. Web3Wallet is the
concrete implementation over an eth_account local account and web3's
AsyncWeb3.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_hex
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted

from bridgeroute.config import Settings, get_settings
from bridgeroute.errors import (
    TransactionFailedError,
    TransactionRejectedError,
    TransactionTimeoutError,
    WalletNotConnectedError,
)

logger = logging.getLogger(__name__)

# Extra gas on top of the node's estimate
GAS_BUFFER_PERCENT = 20

# EIP-1193 "user rejected request"
USER_REJECTED_CODE = 4001


@dataclass(frozen=True)
class FeeData:
    """Current fee market snapshot, in wei."""

    gas_price: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int


@dataclass(frozen=True)
class UnsignedTransaction:
    """A transaction the protocol wants submitted, with a label for the user."""

    transaction: dict[str, Any]
    description: str


class WalletHandle(ABC):
    """Connected wallet account on one chain."""

    @property
    @abstractmethod
    def address(self) -> Optional[str]:
        """Connected account address, None when disconnected."""

    @property
    @abstractmethod
    def chain_id(self) -> Optional[int]:
        """EVM chain id the wallet is connected to, None when disconnected."""

    @property
    def is_connected(self) -> bool:
        return self.address is not None and self.chain_id is not None

    @abstractmethod
    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        """Sign and broadcast a transaction, returning its hash.

        Raises:
            TransactionRejectedError: If the account owner declined to sign
        """

    @abstractmethod
    async def wait_for_transaction(self, txid: str, timeout: Optional[float] = None) -> dict:
        """Wait until a broadcast transaction is mined.

        Raises:
            TransactionFailedError: If the transaction reverted
            TransactionTimeoutError: If it is not mined within timeout
        """

    @abstractmethod
    async def get_fee_data(self) -> FeeData:
        """Current gas price and EIP-1559 fee suggestion."""


def is_user_rejection(error: Exception) -> bool:
    """Check whether an exception means the user declined to sign."""
    code = getattr(error, "code", None)
    if code is None and error.args and isinstance(error.args[0], dict):
        code = error.args[0].get("code")
    if code == USER_REJECTED_CODE:
        return True

    message = str(error).lower()
    return "user rejected" in message or "user denied" in message


class Web3Wallet(WalletHandle):
    """Wallet backed by a local private key and an async JSON-RPC endpoint."""

    def __init__(
        self,
        account: LocalAccount,
        w3: AsyncWeb3,
        chain_id: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self.account = account
        self.w3 = w3
        self._chain_id = chain_id
        self.settings = settings or get_settings()

    @classmethod
    def from_key(
        cls,
        private_key: str,
        rpc_url: str,
        chain_id: Optional[int] = None,
        settings: Optional[Settings] = None,
    ) -> "Web3Wallet":
        """Create a wallet for a private key against an RPC URL."""
        settings = settings or get_settings()
        w3 = AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": settings.http_timeout})
        )
        return cls(Account.from_key(private_key), w3, chain_id=chain_id, settings=settings)

    @property
    def address(self) -> Optional[str]:
        return self.account.address

    @property
    def chain_id(self) -> Optional[int]:
        return self._chain_id

    async def connect(self) -> int:
        """Read the chain id from the node; the wallet is connected afterwards."""
        self._chain_id = await self.w3.eth.chain_id
        logger.info(f"Wallet {self.address} connected to chain {self._chain_id}")
        return self._chain_id

    async def get_fee_data(self) -> FeeData:
        block = await self.w3.eth.get_block("latest")
        gas_price = await self.w3.eth.gas_price

        base_fee = block.get("baseFeePerGas") or gas_price
        priority_fee = gas_price // 10
        max_fee = base_fee * 2 + priority_fee

        logger.debug(
            f"Fee data: gasPrice={gas_price} baseFee={base_fee} "
            f"maxFee={max_fee} priority={priority_fee}"
        )
        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def _fill_transaction(self, transaction: dict[str, Any]) -> dict[str, Any]:
        tx = dict(transaction)
        tx.setdefault("from", self.account.address)

        if "nonce" not in tx:
            tx["nonce"] = await self.w3.eth.get_transaction_count(self.account.address, "pending")

        if "chainId" not in tx:
            tx["chainId"] = self._chain_id or await self.w3.eth.chain_id

        if "gas" not in tx:
            estimate = await self.w3.eth.estimate_gas(tx)
            tx["gas"] = estimate * (100 + GAS_BUFFER_PERCENT) // 100

        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            fees = await self.get_fee_data()
            tx["maxFeePerGas"] = fees.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = fees.max_priority_fee_per_gas

        return tx

    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        if not self.is_connected:
            raise WalletNotConnectedError()

        tx = await self._fill_transaction(transaction)
        signed = self.account.sign_transaction(tx)
        # eth-account renamed rawTransaction to raw_transaction
        raw_tx = getattr(signed, "raw_transaction", None) or signed.rawTransaction

        try:
            tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            if is_user_rejection(e):
                raise TransactionRejectedError() from e
            raise

        txid = to_hex(tx_hash)
        logger.info(f"Broadcast {txid} from {self.account.address} (nonce {tx['nonce']})")
        return txid

    async def wait_for_transaction(self, txid: str, timeout: Optional[float] = None) -> dict:
        timeout = timeout or self.settings.tx_confirmation_timeout

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                txid, timeout=timeout, poll_latency=self.settings.tx_poll_interval
            )
        except TimeExhausted as e:
            raise TransactionTimeoutError(txid, timeout) from e

        if receipt["status"] == 0:
            raise TransactionFailedError(txid, "reverted")

        logger.debug(f"Transaction {txid} mined in block {receipt['blockNumber']}")
        return dict(receipt)
