"""Tests for the chain registry."""

import pytest

from bridgeroute.chains import (
    NATIVE_TOKEN_ADDRESS,
    get_chain,
    get_chain_by_id,
    get_supported_chains,
    is_native_token,
)
from bridgeroute.errors import ChainNotFoundError


def test_lookup_by_name_and_id():
    assert get_chain("base").chain_id == 8453
    assert get_chain_by_id(42161).name == "Arbitrum"


def test_unknown_chain():
    with pytest.raises(ChainNotFoundError):
        get_chain("Solana")
    with pytest.raises(ChainNotFoundError):
        get_chain_by_id(999)


def test_cctp_support():
    assert get_chain("Ethereum").supports_cctp
    assert not get_chain("BSC").supports_cctp


def test_protocol_chain_ids_are_unique():
    ids = [get_chain(name).protocol_chain_id for name in get_supported_chains()]
    assert len(set(ids)) == len(ids)
    assert get_chain("Ethereum").protocol_chain_id == 2


def test_native_token_sentinels():
    assert is_native_token("native")
    assert is_native_token(NATIVE_TOKEN_ADDRESS.lower())
    assert not is_native_token(get_chain("Ethereum").usdc_address)


def test_tx_url():
    assert get_chain("Polygon").tx_url("0x1") == "https://polygonscan.com/tx/0x1"
