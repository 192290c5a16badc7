"""Tests for the web3-backed wallet, against a fake eth module."""

from dataclasses import fields
from types import SimpleNamespace

import pytest
from eth_account import Account
from web3.exceptions import TimeExhausted

from bridgeroute.errors import (
    TransactionFailedError,
    TransactionRejectedError,
    TransactionTimeoutError,
    WalletNotConnectedError,
)
from bridgeroute.signing.wallet import UnsignedTransaction, Web3Wallet, is_user_rejection

from conftest import RECEIVER

PRIVATE_KEY = "0x" + "4c" * 32
TX_HASH = b"\x12" * 32


async def _value(value):
    return value


class FakeEth:
    """Subset of AsyncWeb3.eth used by the wallet."""

    def __init__(self, send_error=None, receipt_status=1, timeout=False):
        self.send_error = send_error
        self.receipt_status = receipt_status
        self.timeout = timeout
        self.raw_sent = []
        self.estimated = []

    @property
    def chain_id(self):
        return _value(8453)

    @property
    def gas_price(self):
        return _value(50)

    async def get_block(self, block):
        return {"baseFeePerGas": 100}

    async def get_transaction_count(self, address, block):
        return 7

    async def estimate_gas(self, tx):
        self.estimated.append(tx)
        return 100_000

    async def send_raw_transaction(self, raw):
        if self.send_error:
            raise self.send_error
        self.raw_sent.append(raw)
        return TX_HASH

    async def wait_for_transaction_receipt(self, txid, timeout=None, poll_latency=None):
        if self.timeout:
            raise TimeExhausted(f"{txid} not mined")
        return {"transactionHash": txid, "status": self.receipt_status, "blockNumber": 12}


def make_wallet(settings, chain_id=8453, **kwargs):
    eth = FakeEth(**kwargs)
    wallet = Web3Wallet(
        Account.from_key(PRIVATE_KEY), SimpleNamespace(eth=eth), chain_id=chain_id, settings=settings
    )
    return wallet, eth


class TestSend:
    @pytest.mark.asyncio
    async def test_fills_and_broadcasts(self, settings):
        wallet, eth = make_wallet(settings)

        tx = await wallet._fill_transaction({"to": RECEIVER, "value": 1, "data": "0x"})
        txid = await wallet.send_transaction({"to": RECEIVER, "value": 1, "data": "0x"})

        assert tx["nonce"] == 7
        assert tx["chainId"] == 8453
        assert tx["gas"] == 120_000
        assert tx["maxFeePerGas"] == 205
        assert tx["maxPriorityFeePerGas"] == 5
        assert tx["from"] == wallet.address
        assert txid == "0x" + "12" * 32
        assert len(eth.raw_sent) == 1

    @pytest.mark.asyncio
    async def test_explicit_gas_is_kept(self, settings):
        wallet, eth = make_wallet(settings)

        tx = await wallet._fill_transaction({"to": RECEIVER, "gas": 21_000, "gasPrice": 9})

        assert tx["gas"] == 21_000
        assert "maxFeePerGas" not in tx
        assert eth.estimated == []

    @pytest.mark.asyncio
    async def test_user_rejection_mapped(self, settings):
        wallet, _ = make_wallet(
            settings, send_error=ValueError({"code": 4001, "message": "User rejected the request."})
        )

        with pytest.raises(TransactionRejectedError):
            await wallet.send_transaction({"to": RECEIVER, "value": 1})

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, settings):
        wallet, _ = make_wallet(settings, send_error=ValueError("nonce too low"))

        with pytest.raises(ValueError, match="nonce too low"):
            await wallet.send_transaction({"to": RECEIVER, "value": 1})

    @pytest.mark.asyncio
    async def test_not_connected(self, settings):
        wallet, eth = make_wallet(settings, chain_id=None)

        with pytest.raises(WalletNotConnectedError):
            await wallet.send_transaction({"to": RECEIVER, "value": 1})
        assert eth.raw_sent == []

    @pytest.mark.asyncio
    async def test_connect_reads_chain_id(self, settings):
        wallet, _ = make_wallet(settings, chain_id=None)

        assert await wallet.connect() == 8453
        assert wallet.is_connected


class TestWait:
    @pytest.mark.asyncio
    async def test_mined(self, settings):
        wallet, _ = make_wallet(settings)

        receipt = await wallet.wait_for_transaction("0xabc")

        assert receipt["blockNumber"] == 12

    @pytest.mark.asyncio
    async def test_reverted(self, settings):
        wallet, _ = make_wallet(settings, receipt_status=0)

        with pytest.raises(TransactionFailedError, match="reverted"):
            await wallet.wait_for_transaction("0xabc")

    @pytest.mark.asyncio
    async def test_timeout(self, settings):
        wallet, _ = make_wallet(settings, timeout=True)

        with pytest.raises(TransactionTimeoutError) as exc_info:
            await wallet.wait_for_transaction("0xabc", timeout=5)

        assert exc_info.value.is_retryable


@pytest.mark.parametrize(
    "error,expected",
    [
        (ValueError({"code": 4001, "message": "denied"}), True),
        (RuntimeError("MetaMask Tx Signature: User denied transaction signature."), True),
        (ValueError({"code": -32000, "message": "insufficient funds"}), False),
        (RuntimeError("execution reverted"), False),
    ],
)
def test_is_user_rejection(error, expected):
    assert is_user_rejection(error) is expected


def test_unsigned_transaction_carries_only_payload_and_label():
    txn = UnsignedTransaction(transaction={"to": RECEIVER}, description="Transfer")

    assert [f.name for f in fields(txn)] == ["transaction", "description"]
