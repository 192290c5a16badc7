"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any, Optional

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"
os.environ["PROTOCOL_BACKEND"] = "simulated"
os.environ["NETWORK"] = "Mainnet"

from bridgeroute.chains import CHAINS
from bridgeroute.config import Settings
from bridgeroute.errors import (
    TransactionFailedError,
    TransactionRejectedError,
    TransactionTimeoutError,
)
from bridgeroute.protocol.simulated import SimulatedProtocol
from bridgeroute.routing.resolver import RouteResolver
from bridgeroute.signing.adapter import create_signer
from bridgeroute.signing.wallet import FeeData, WalletHandle
from bridgeroute.utils.locks import clear_signer_locks

SENDER = "0x1111111111111111111111111111111111111111"
RECEIVER = "0x2222222222222222222222222222222222222222"
USDC_ETHEREUM = CHAINS["Ethereum"].usdc_address
USDC_BSC = CHAINS["BSC"].usdc_address


class FakeWallet(WalletHandle):
    """In-memory wallet that records what it is asked to send.

    Args:
        chain_id: EVM chain id the wallet reports
        reject_at: Index of the send the user declines
        revert_at: Index of the send that reverts on-chain
        timeout_at: Index of the send that is broadcast but never confirmed
    """

    def __init__(
        self,
        chain_id: Optional[int] = 1,
        address: Optional[str] = SENDER,
        reject_at: Optional[int] = None,
        revert_at: Optional[int] = None,
        timeout_at: Optional[int] = None,
    ):
        self._chain_id = chain_id
        self._address = address
        self.reject_at = reject_at
        self.revert_at = revert_at
        self.timeout_at = timeout_at
        self.sent: list[dict[str, Any]] = []
        self.events: list[tuple[str, str]] = []

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def chain_id(self) -> Optional[int]:
        return self._chain_id

    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        await asyncio.sleep(0)
        if self.reject_at == len(self.sent):
            raise TransactionRejectedError()
        self.sent.append(transaction)
        txid = f"0x{len(self.sent):064x}"
        self.events.append(("send", txid))
        return txid

    async def wait_for_transaction(self, txid: str, timeout: Optional[float] = None) -> dict:
        await asyncio.sleep(0)
        if self.revert_at is not None and txid == f"0x{self.revert_at + 1:064x}":
            raise TransactionFailedError(txid, "reverted")
        if self.timeout_at is not None and txid == f"0x{self.timeout_at + 1:064x}":
            raise TransactionTimeoutError(txid, timeout)
        self.events.append(("wait", txid))
        return {"transactionHash": txid, "status": 1, "blockNumber": 1}

    async def get_fee_data(self) -> FeeData:
        return FeeData(gas_price=10, max_fee_per_gas=22, max_priority_fee_per_gas=1)


@pytest.fixture(autouse=True)
def reset_locks():
    """Start every test with an empty signer lock registry."""
    clear_signer_locks()
    yield
    clear_signer_locks()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, signer_lock_timeout=1.0)


@pytest.fixture
def protocol() -> SimulatedProtocol:
    return SimulatedProtocol()


@pytest.fixture
def wallet() -> FakeWallet:
    """Wallet connected to Ethereum."""
    return FakeWallet(chain_id=CHAINS["Ethereum"].chain_id)


@pytest.fixture
def signer(wallet, protocol, settings):
    return create_signer(wallet, protocol, "Ethereum", settings)


@pytest_asyncio.fixture
async def usdc_routes(protocol):
    """USDC Ethereum -> Base: served by the two CCTP routes."""
    return await RouteResolver(protocol).resolve(
        "Ethereum", "Base", USDC_ETHEREUM, SENDER, RECEIVER
    )


@pytest_asyncio.fixture
async def native_routes(protocol):
    """ETH Ethereum -> Base: served by the two token bridge routes."""
    return await RouteResolver(protocol).resolve("Ethereum", "Base", "native", SENDER, RECEIVER)
