"""Chain registry for the EVM networks reachable through the bridge.

Names are the protocol chain names (Ethereum, Base, ...); chain ids are the
EVM chain ids a wallet reports.
"""

from dataclasses import dataclass
from typing import Optional

from bridgeroute.errors import ChainNotFoundError

# Special address used by wallets and token lists for the chain's native currency
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NATIVE_TOKEN_ALIAS = "native"


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a blockchain."""

    name: str
    chain_id: int
    native_symbol: str
    explorer_url: str
    usdc_address: Optional[str] = None
    protocol_chain_id: int = 0  # Chain id inside cross-chain messages
    cctp_domain: Optional[int] = None  # Circle CCTP domain, None if CCTP unavailable
    native_decimals: int = 18

    @property
    def supports_cctp(self) -> bool:
        return self.cctp_domain is not None and self.usdc_address is not None

    def tx_url(self, txid: str) -> str:
        """Block explorer URL for a transaction on this chain."""
        return f"{self.explorer_url}/tx/{txid}"


# ======================
# Chain Configurations
# ======================

CHAINS: dict[str, ChainConfig] = {
    "Ethereum": ChainConfig(
        name="Ethereum",
        chain_id=1,
        protocol_chain_id=2,
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
        usdc_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        cctp_domain=0,
    ),
    "Optimism": ChainConfig(
        name="Optimism",
        chain_id=10,
        protocol_chain_id=24,
        native_symbol="ETH",
        explorer_url="https://optimistic.etherscan.io",
        usdc_address="0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
        cctp_domain=2,
    ),
    "BSC": ChainConfig(
        name="BSC",
        chain_id=56,
        protocol_chain_id=4,
        native_symbol="BNB",
        explorer_url="https://bscscan.com",
        # Binance-peg USDC, not native Circle USDC: token bridge only
        usdc_address="0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d",
        cctp_domain=None,
    ),
    "Polygon": ChainConfig(
        name="Polygon",
        chain_id=137,
        protocol_chain_id=5,
        native_symbol="MATIC",
        explorer_url="https://polygonscan.com",
        usdc_address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
        cctp_domain=7,
    ),
    "Base": ChainConfig(
        name="Base",
        chain_id=8453,
        protocol_chain_id=30,
        native_symbol="ETH",
        explorer_url="https://basescan.org",
        usdc_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        cctp_domain=6,
    ),
    "Arbitrum": ChainConfig(
        name="Arbitrum",
        chain_id=42161,
        protocol_chain_id=23,
        native_symbol="ETH",
        explorer_url="https://arbiscan.io",
        usdc_address="0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        cctp_domain=3,
    ),
    "Avalanche": ChainConfig(
        name="Avalanche",
        chain_id=43114,
        protocol_chain_id=6,
        native_symbol="AVAX",
        explorer_url="https://snowtrace.io",
        usdc_address="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        cctp_domain=1,
    ),
}

_BY_CHAIN_ID: dict[int, ChainConfig] = {c.chain_id: c for c in CHAINS.values()}


def get_chain(name: str) -> ChainConfig:
    """Look up a chain by protocol name (case-insensitive)."""
    for chain_name, config in CHAINS.items():
        if chain_name.lower() == name.lower():
            return config
    raise ChainNotFoundError(name)


def get_chain_by_id(chain_id: int) -> ChainConfig:
    """Look up a chain by EVM chain id."""
    config = _BY_CHAIN_ID.get(chain_id)
    if config is None:
        raise ChainNotFoundError(chain_id)
    return config


def is_native_token(token: str) -> bool:
    """Check whether a token identifier is the native-currency sentinel."""
    return token.lower() in (NATIVE_TOKEN_ADDRESS.lower(), NATIVE_TOKEN_ALIAS)


def get_supported_chains() -> list[str]:
    """Get list of supported chain names."""
    return list(CHAINS.keys())
