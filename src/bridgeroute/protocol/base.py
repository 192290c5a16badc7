"""Interfaces of the bridging protocol the core talks to.

The protocol is an opaque, possibly rate-limited network service. The core
only relies on the handful of operations below: chain lookup, destination
token discovery, route discovery, and the per-route validate/quote/initiate
calls defined on routing.base.Route.

Lifecycle: a ProtocolHandle is constructed explicitly (see protocol.factory)
once per process or per session by the caller, and may be reused across
quoting sessions. Handles carry no per-session state.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Sequence

from eth_utils import is_address, is_checksum_address, to_checksum_address

from bridgeroute.chains import NATIVE_TOKEN_ALIAS, ChainConfig, is_native_token
from bridgeroute.errors import InvalidAddressError, TokenNotFoundError
from bridgeroute.utils.units import from_base_units

if TYPE_CHECKING:  # pragma: no cover
    from bridgeroute.routing.base import Route, RouteKind, TransferRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenId:
    """A token on a specific chain; address is "native" for the native currency."""

    chain: str
    address: str

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_TOKEN_ALIAS

    def __str__(self) -> str:
        return f"{self.chain}:{self.address}"


@dataclass(frozen=True)
class Token:
    """Token metadata as known to the protocol registry."""

    id: TokenId
    symbol: str
    decimals: int


@dataclass(frozen=True)
class TokenAmount:
    """An integer base-unit amount of a token."""

    token: Token
    amount: int

    @property
    def decimal(self) -> Decimal:
        return from_base_units(self.amount, self.token.decimals)

    def __str__(self) -> str:
        return f"{self.decimal} {self.token.symbol}"


@dataclass(frozen=True)
class ProtocolAddress:
    """An account address in the protocol's own encoding.

    EVM addresses are stored checksummed; to_universal() gives the 32-byte
    left-padded form used in cross-chain messages.
    """

    chain: str
    address: str

    def to_universal(self) -> str:
        return "0x" + self.address[2:].lower().rjust(64, "0")

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class ChainAddress:
    """Destination reference: a chain name paired with a parsed address."""

    chain: str
    address: ProtocolAddress


def parse_address(chain: str, address: str) -> ProtocolAddress:
    """Parse a user-supplied address for a chain.

    Raises:
        InvalidAddressError: If the address is not valid for the chain
    """
    if not address or not isinstance(address, str):
        raise InvalidAddressError(str(address), chain, "address is required")

    candidate = address.strip()
    if not is_address(candidate):
        raise InvalidAddressError(address, chain)

    # Mixed case carries an EIP-55 checksum; all-lower/all-upper does not
    body = candidate[2:]
    if body != body.lower() and body != body.upper() and not is_checksum_address(candidate):
        raise InvalidAddressError(address, chain, "bad checksum")

    return ProtocolAddress(chain=chain, address=to_checksum_address(candidate))


@dataclass
class ChainContext:
    """Registry view of one chain: its configuration and the tokens it knows."""

    chain: str
    config: ChainConfig
    tokens: dict[str, Token] = field(default_factory=dict)  # lowercase address -> Token

    def token_id(self, address: str) -> TokenId:
        """Build a TokenId, mapping the native sentinel to "native"."""
        if is_native_token(address):
            return TokenId(self.chain, NATIVE_TOKEN_ALIAS)
        return TokenId(self.chain, to_checksum_address(address) if is_address(address) else address)

    def get_token(self, token: TokenId) -> Token:
        """Resolve a token id to known metadata.

        Raises:
            TokenNotFoundError: If the chain does not know the token
        """
        found = self.tokens.get(token.address.lower())
        if found is None:
            raise TokenNotFoundError(token.address, self.chain)
        return found


class Resolver(ABC):
    """Route discovery over a fixed set of route kinds."""

    @abstractmethod
    async def supported_destination_tokens(
        self,
        token: TokenId,
        source: ChainContext,
        destination: ChainContext,
    ) -> list[TokenId]:
        """Tokens on the destination chain reachable from token via any route kind."""

    @abstractmethod
    async def find_routes(self, request: "TransferRequest") -> list["Route"]:
        """Route instances able to serve the request, one per supporting kind."""


class ProtocolHandle(ABC):
    """Entry point into the bridging protocol."""

    def __init__(self, network: str):
        self.network = network

    @abstractmethod
    def get_chain(self, name: str) -> ChainContext:
        """Get chain context by protocol chain name.

        Raises:
            ChainNotFoundError: If the chain is not registered
        """

    @abstractmethod
    def resolver(self, kinds: Sequence["RouteKind"]) -> Resolver:
        """Create a resolver restricted to the given route kinds."""

    def parse_address(self, chain: str, address: str) -> ProtocolAddress:
        return parse_address(chain, address)

    async def close(self) -> None:
        """Release network resources held by the handle."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(network={self.network})"


def describe_token(token: Optional[Token]) -> str:
    """Short token label for log lines."""
    if token is None:
        return "?"
    return f"{token.symbol}@{token.id.chain}"
