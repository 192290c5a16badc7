"""Route, request and quote types shared by the routing components."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from bridgeroute.protocol.base import ChainAddress, ProtocolAddress, Token, TokenAmount, TokenId

if TYPE_CHECKING:  # pragma: no cover
    from bridgeroute.signing.adapter import ProtocolSigner

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_TTL_SECONDS = 60


class RouteKind(str, Enum):
    """Closed set of bridging paths.

    Values are the protocol's route identifiers.
    """

    AUTOMATIC_FAST = "AutomaticCCTPRoute"        # CCTP with relayer, fee, ~15 min
    MANUAL_FAST = "CCTPRoute"                    # CCTP, manual claim, free, ~15 min
    AUTOMATIC_GENERIC = "AutomaticTokenBridgeRoute"  # Token Bridge with relayer
    MANUAL_GENERIC = "TokenBridgeRoute"          # Token Bridge, manual claim, free, days

    @property
    def is_automatic(self) -> bool:
        """Whether a relayer completes delivery on the destination chain."""
        return self in (RouteKind.AUTOMATIC_FAST, RouteKind.AUTOMATIC_GENERIC)

    @property
    def requires_manual_claim(self) -> bool:
        return not self.is_automatic


@dataclass(frozen=True)
class TransferRequest:
    """Immutable description of what is being moved.

    Sender and receiver are parsed into the protocol's address encoding when
    the request is created, before any route sees it.
    """

    source_token: Token
    destination_token: Token
    sender: ProtocolAddress
    receiver: ProtocolAddress

    @property
    def source(self) -> TokenId:
        return self.source_token.id

    @property
    def destination(self) -> TokenId:
        return self.destination_token.id

    @property
    def source_chain(self) -> str:
        return self.source_token.id.chain

    @property
    def destination_chain(self) -> str:
        return self.destination_token.id.chain

    def __str__(self) -> str:
        return (
            f"{self.source_token.symbol} {self.source_chain} -> "
            f"{self.destination_token.symbol} {self.destination_chain}"
        )


@dataclass(frozen=True)
class TransferParams:
    """Caller-supplied transfer parameters, before validation.

    Attributes:
        amount: Human-readable amount (e.g. "10.5")
        native_gas: Fraction of the amount to deliver as destination gas (0-1)
    """

    amount: str
    native_gas: float = 0.0


@dataclass(frozen=True)
class ValidatedParams:
    """Parameters a route accepted, with the amount in base units."""

    amount: int
    native_gas: float = 0.0


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of Route.validate; invalid is a normal result, not an exception."""

    valid: bool
    params: Optional[ValidatedParams] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, params: ValidatedParams) -> "ValidationResult":
        return cls(valid=True, params=params)

    @classmethod
    def invalid(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


@dataclass(frozen=True)
class Quote:
    """Priced, time-bounded outcome of quoting a route.

    A failed quote keeps its slot in aggregated results with success=False,
    the failing step ("validate" or "quote") and an error description.
    """

    route_kind: RouteKind
    success: bool
    source_amount: Optional[TokenAmount] = None
    destination_amount: Optional[TokenAmount] = None
    relay_fee: Optional[TokenAmount] = None
    eta_ms: Optional[int] = None
    params: Optional[ValidatedParams] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None
    issued_at: float = field(default_factory=time.time)
    ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS

    @classmethod
    def failure(cls, route_kind: RouteKind, error: str, step: str) -> "Quote":
        return cls(route_kind=route_kind, success=False, error=error, failed_step=step)

    @property
    def destination_token(self) -> Optional[TokenId]:
        if self.destination_amount is None:
            return None
        return self.destination_amount.token.id

    @property
    def has_relay_fee(self) -> bool:
        return self.relay_fee is not None

    @property
    def age_seconds(self) -> float:
        return time.time() - self.issued_at

    @property
    def is_expired(self) -> bool:
        """Check if quote has outlived its validity window."""
        return self.age_seconds > self.ttl_seconds

    @property
    def seconds_until_expiry(self) -> float:
        """Get seconds until quote expires (negative if expired)."""
        return (self.issued_at + self.ttl_seconds) - time.time()


@dataclass(frozen=True)
class TransactionRef:
    """A submitted transaction on a given chain."""

    txid: str
    chain: str


@dataclass(frozen=True)
class InitiateResult:
    """What a route reports after driving its on-chain transactions.

    origin_txs is ordered: earlier entries are approvals, the last one is the
    transaction that defines the transfer. Some routes only report txid.
    """

    route_kind: RouteKind
    origin_txs: tuple[TransactionRef, ...] = ()
    txid: Optional[str] = None


class Route(ABC):
    """One concrete bridging path bound to a transfer request shape."""

    kind: RouteKind

    def __init__(self, request: TransferRequest):
        self.request = request

    @property
    def is_automatic(self) -> bool:
        return self.kind.is_automatic

    @abstractmethod
    async def validate(self, request: TransferRequest, params: TransferParams) -> ValidationResult:
        """Check amount/options against protocol constraints."""

    @abstractmethod
    async def quote(self, request: TransferRequest, params: ValidatedParams) -> Quote:
        """Price validated parameters."""

    @abstractmethod
    async def initiate(
        self,
        request: TransferRequest,
        signer: "ProtocolSigner",
        quote: Quote,
        to: ChainAddress,
    ) -> InitiateResult:
        """Submit the transfer's origin-chain transactions through signer."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, request={self.request})"
