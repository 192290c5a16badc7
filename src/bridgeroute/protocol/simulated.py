"""Simulated protocol backend for dry-run mode and tests.

A deterministic stand-in for the bridging network. Every chain in the
registry knows its native currency and USDC; token bridge transfers deliver a
wrapped token on the destination chain (at most 8 decimals, as the token
bridge normalizes amounts), CCTP transfers deliver native USDC between chains
with a CCTP domain.

Nothing here talks to a network. Transactions are built with real calldata and
handed to the signer, so the signer adapter and wallet are exercised exactly
as they would be against a live backend.
"""

import logging
from abc import abstractmethod
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address, to_hex

from bridgeroute.chains import CHAINS, NATIVE_TOKEN_ALIAS, ChainConfig
from bridgeroute.errors import ChainNotFoundError, QuoteFailedError, RouteValidationError
from bridgeroute.protocol.base import (
    ChainAddress,
    ChainContext,
    ProtocolHandle,
    Resolver,
    Token,
    TokenAmount,
    TokenId,
)
from bridgeroute.routing.base import (
    InitiateResult,
    Quote,
    Route,
    RouteKind,
    TransactionRef,
    TransferParams,
    TransferRequest,
    ValidatedParams,
    ValidationResult,
)
from bridgeroute.routing.catalog import ROUTE_METADATA, route_name
from bridgeroute.signing.wallet import UnsignedTransaction
from bridgeroute.utils.units import to_base_units

logger = logging.getLogger(__name__)

# Token bridge caps wrapped token precision
MAX_WRAPPED_DECIMALS = 8

# Relay fees charged by automatic routes, in the source token
SIMULATED_RELAY_FEES: dict[str, Decimal] = {
    "USDC": Decimal("0.50"),
    "ETH": Decimal("0.0002"),
    "BNB": Decimal("0.001"),
    "MATIC": Decimal("1.0"),
    "AVAX": Decimal("0.02"),
}
DEFAULT_RELAY_FEE = Decimal("0.01")

APPROVE = "approve(address,uint256)"


def derive_address(*parts: str) -> str:
    """Deterministic checksummed address from a label."""
    digest = keccak(text=":".join(parts))
    return to_checksum_address(to_hex(digest[-20:]))


def encode_call(signature: str, *args: Any) -> str:
    """ABI-encode a contract call from its function signature."""
    types = signature[signature.index("(") + 1 : -1]
    encoded = encode(types.split(","), list(args)) if types else b""
    return to_hex(function_signature_to_4byte_selector(signature) + encoded)


def rescale(amount: int, from_decimals: int, to_decimals: int) -> int:
    """Convert base units between precisions, truncating dust."""
    if to_decimals >= from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return amount // 10 ** (from_decimals - to_decimals)


class SimulatedRoute(Route):
    """Shared validate/quote/initiate logic of the simulated route kinds."""

    def __init__(self, request: TransferRequest, protocol: "SimulatedProtocol"):
        super().__init__(request)
        self.protocol = protocol

    @classmethod
    @abstractmethod
    def destination_token(
        cls,
        protocol: "SimulatedProtocol",
        token: TokenId,
        source: ChainContext,
        destination: ChainContext,
    ) -> Optional[TokenId]:
        """Token this kind delivers on destination for token, None if unsupported."""

    @classmethod
    def supports(cls, protocol: "SimulatedProtocol", request: TransferRequest) -> bool:
        source = protocol.get_chain(request.source_chain)
        destination = protocol.get_chain(request.destination_chain)
        delivered = cls.destination_token(protocol, request.source, source, destination)
        return delivered == request.destination

    def relay_fee(self, request: TransferRequest) -> Optional[int]:
        if not self.is_automatic:
            return None
        return self.protocol.relay_fee(request.source_token)

    def split(self, request: TransferRequest, params: ValidatedParams) -> tuple[int, int, int]:
        """Split an amount into (relay fee, native gas share, bridged remainder)."""
        fee = self.relay_fee(request) or 0
        net = params.amount - fee
        gas_share = 0
        if self.is_automatic and params.native_gas:
            gas_share = int(Decimal(net) * Decimal(str(params.native_gas)))
        return fee, gas_share, net - gas_share

    async def validate(self, request: TransferRequest, params: TransferParams) -> ValidationResult:
        if self.kind in self.protocol.invalid_kinds:
            return ValidationResult.invalid(f"{route_name(self.kind)} is not available")

        try:
            amount = to_base_units(params.amount, request.source_token.decimals)
        except ValueError as e:
            return ValidationResult.invalid(str(e))

        if amount <= 0:
            return ValidationResult.invalid("Amount must be greater than zero")
        if not 0 <= params.native_gas <= 1:
            return ValidationResult.invalid("Native gas must be between 0 and 1")

        fee = self.relay_fee(request)
        if fee is not None and amount <= fee:
            return ValidationResult.invalid(
                f"Amount must exceed the relay fee of {TokenAmount(request.source_token, fee)}"
            )

        return ValidationResult.ok(ValidatedParams(amount=amount, native_gas=params.native_gas))

    async def quote(self, request: TransferRequest, params: ValidatedParams) -> Quote:
        if self.kind in self.protocol.failing_kinds:
            raise QuoteFailedError(f"Simulated quote failure for {self.kind.value}")

        fee, _, bridged = self.split(request, params)
        delivered = rescale(
            bridged, request.source_token.decimals, request.destination_token.decimals
        )

        return Quote(
            route_kind=self.kind,
            success=True,
            source_amount=TokenAmount(request.source_token, params.amount),
            destination_amount=TokenAmount(request.destination_token, delivered),
            relay_fee=TokenAmount(request.source_token, fee) if self.is_automatic else None,
            eta_ms=ROUTE_METADATA[self.kind].average_eta_ms,
            params=params,
        )

    @abstractmethod
    def transfer_transaction(
        self,
        request: TransferRequest,
        params: ValidatedParams,
        destination: ChainConfig,
        recipient: bytes,
        contract: str,
    ) -> dict[str, Any]:
        """The lock/burn transaction for this kind."""

    async def initiate(
        self,
        request: TransferRequest,
        signer,
        quote: Quote,
        to: ChainAddress,
    ) -> InitiateResult:
        if signer.chain() != request.source_chain:
            raise RouteValidationError(
                f"Signer is bound to {signer.chain()}, transfer starts on {request.source_chain}",
                route_kind=self.kind.value,
            )
        if quote.params is None:
            raise RouteValidationError(
                "Quote carries no validated parameters", route_kind=self.kind.value
            )

        params = quote.params
        contract = self.protocol.contract_address(request.source_chain, self.kind)
        destination = self.protocol.get_chain(to.chain).config
        recipient = bytes.fromhex(to.address.to_universal()[2:])
        sent = TokenAmount(request.source_token, params.amount)

        txns = []
        if not request.source.is_native:
            txns.append(
                UnsignedTransaction(
                    transaction={
                        "to": request.source.address,
                        "data": encode_call(APPROVE, contract, params.amount),
                        "value": 0,
                    },
                    description=f"Approve {sent} for {route_name(self.kind)}",
                )
            )
        txns.append(
            UnsignedTransaction(
                transaction=self.transfer_transaction(
                    request, params, destination, recipient, contract
                ),
                description=f"{route_name(self.kind)}: {sent} to {to.chain}",
            )
        )

        txids = await signer.sign_and_send(txns)
        return InitiateResult(
            route_kind=self.kind,
            origin_txs=tuple(TransactionRef(txid, request.source_chain) for txid in txids),
        )


class CCTPMixin:
    """USDC burn-and-mint between chains with a CCTP domain."""

    @classmethod
    def destination_token(cls, protocol, token, source, destination):
        if not (source.config.supports_cctp and destination.config.supports_cctp):
            return None
        if token.address.lower() != source.config.usdc_address.lower():
            return None
        return TokenId(destination.chain, to_checksum_address(destination.config.usdc_address))


class TokenBridgeMixin:
    """Lock-and-mint of any registered token as a wrapped token."""

    @classmethod
    def destination_token(cls, protocol, token, source, destination):
        return protocol.bridged_token(token, destination.chain)


class SimulatedAutomaticCCTPRoute(CCTPMixin, SimulatedRoute):
    kind = RouteKind.AUTOMATIC_FAST

    def transfer_transaction(self, request, params, destination, recipient, contract):
        _, gas_share, _ = self.split(request, params)
        return {
            "to": contract,
            "data": encode_call(
                "transferTokensWithRelay(address,uint256,uint256,uint16,bytes32)",
                request.source.address,
                params.amount,
                gas_share,
                destination.protocol_chain_id,
                recipient,
            ),
            "value": 0,
        }


class SimulatedCCTPRoute(CCTPMixin, SimulatedRoute):
    kind = RouteKind.MANUAL_FAST

    def transfer_transaction(self, request, params, destination, recipient, contract):
        return {
            "to": contract,
            "data": encode_call(
                "depositForBurn(uint256,uint32,bytes32,address)",
                params.amount,
                destination.cctp_domain,
                recipient,
                request.source.address,
            ),
            "value": 0,
        }


class SimulatedAutomaticTokenBridgeRoute(TokenBridgeMixin, SimulatedRoute):
    kind = RouteKind.AUTOMATIC_GENERIC

    def transfer_transaction(self, request, params, destination, recipient, contract):
        _, gas_share, _ = self.split(request, params)
        if request.source.is_native:
            return {
                "to": contract,
                "data": encode_call(
                    "wrapAndTransferEthWithRelay(uint256,uint16,bytes32,uint32)",
                    gas_share,
                    destination.protocol_chain_id,
                    recipient,
                    0,
                ),
                "value": params.amount,
            }
        return {
            "to": contract,
            "data": encode_call(
                "transferTokensWithRelay(address,uint256,uint256,uint16,bytes32,uint32)",
                request.source.address,
                params.amount,
                gas_share,
                destination.protocol_chain_id,
                recipient,
                0,
            ),
            "value": 0,
        }


class SimulatedTokenBridgeRoute(TokenBridgeMixin, SimulatedRoute):
    kind = RouteKind.MANUAL_GENERIC

    def transfer_transaction(self, request, params, destination, recipient, contract):
        if request.source.is_native:
            return {
                "to": contract,
                "data": encode_call(
                    "wrapAndTransferETH(uint16,bytes32,uint256,uint32)",
                    destination.protocol_chain_id,
                    recipient,
                    0,
                    0,
                ),
                "value": params.amount,
            }
        return {
            "to": contract,
            "data": encode_call(
                "transferTokens(address,uint256,uint16,bytes32,uint256,uint32)",
                request.source.address,
                params.amount,
                destination.protocol_chain_id,
                recipient,
                0,
                0,
            ),
            "value": 0,
        }


SIMULATED_ROUTES: dict[RouteKind, type[SimulatedRoute]] = {
    route.kind: route
    for route in (
        SimulatedAutomaticCCTPRoute,
        SimulatedCCTPRoute,
        SimulatedAutomaticTokenBridgeRoute,
        SimulatedTokenBridgeRoute,
    )
}


class SimulatedResolver(Resolver):
    """Resolver over the simulated route kinds."""

    def __init__(self, protocol: "SimulatedProtocol", kinds: Sequence[RouteKind]):
        self.protocol = protocol
        self.kinds = tuple(kinds)

    def _route_classes(self) -> list[type[SimulatedRoute]]:
        return [SIMULATED_ROUTES[kind] for kind in self.kinds if kind in SIMULATED_ROUTES]

    async def supported_destination_tokens(
        self,
        token: TokenId,
        source: ChainContext,
        destination: ChainContext,
    ) -> list[TokenId]:
        if source.chain == destination.chain:
            return []

        found: list[TokenId] = []
        for route_cls in self._route_classes():
            delivered = route_cls.destination_token(self.protocol, token, source, destination)
            if delivered is not None and delivered not in found:
                found.append(delivered)
        return found

    async def find_routes(self, request: TransferRequest) -> list[Route]:
        return [
            route_cls(request, self.protocol)
            for route_cls in self._route_classes()
            if route_cls.supports(self.protocol, request)
        ]


class SimulatedProtocol(ProtocolHandle):
    """
    Dry-run protocol handle.

    Args:
        network: Bridging network name
        failing_kinds: Route kinds whose quote() raises
        invalid_kinds: Route kinds whose validate() rejects every amount
        relay_fees: Relay fee overrides by token symbol
    """

    def __init__(
        self,
        network: str = "Mainnet",
        failing_kinds: Iterable[RouteKind] = (),
        invalid_kinds: Iterable[RouteKind] = (),
        relay_fees: Optional[dict[str, Decimal]] = None,
    ):
        super().__init__(network)
        self.failing_kinds = frozenset(failing_kinds)
        self.invalid_kinds = frozenset(invalid_kinds)
        self.relay_fees = {**SIMULATED_RELAY_FEES, **(relay_fees or {})}

        self._chains = {config.name: self._build_chain(config) for config in CHAINS.values()}
        self._origins: dict[TokenId, TokenId] = {}
        self._wrapped: dict[tuple[TokenId, str], TokenId] = {}

        originals = [token for ctx in self._chains.values() for token in ctx.tokens.values()]
        for token in originals:
            for ctx in self._chains.values():
                if ctx.chain != token.id.chain:
                    self._register_wrapped(token, ctx)

    @staticmethod
    def _build_chain(config: ChainConfig) -> ChainContext:
        native = Token(TokenId(config.name, NATIVE_TOKEN_ALIAS), config.native_symbol, config.native_decimals)
        tokens = {NATIVE_TOKEN_ALIAS: native}
        if config.usdc_address:
            usdc = Token(TokenId(config.name, to_checksum_address(config.usdc_address)), "USDC", 6)
            tokens[config.usdc_address.lower()] = usdc
        return ChainContext(chain=config.name, config=config, tokens=tokens)

    def _register_wrapped(self, original: Token, ctx: ChainContext) -> None:
        address = derive_address("wrapped", original.id.chain, original.id.address, ctx.chain)
        wrapped = Token(
            TokenId(ctx.chain, address),
            original.symbol,
            min(original.decimals, MAX_WRAPPED_DECIMALS),
        )
        ctx.tokens[address.lower()] = wrapped
        self._origins[wrapped.id] = original.id
        self._wrapped[(original.id, ctx.chain)] = wrapped.id

    def get_chain(self, name: str) -> ChainContext:
        for chain_name, ctx in self._chains.items():
            if chain_name.lower() == name.lower():
                return ctx
        raise ChainNotFoundError(name)

    def resolver(self, kinds: Sequence[RouteKind]) -> SimulatedResolver:
        return SimulatedResolver(self, kinds)

    def bridged_token(self, token: TokenId, destination_chain: str) -> Optional[TokenId]:
        """Token the token bridge delivers: the original when going home, else its wrapper."""
        origin = self._origins.get(token, token)
        if origin.chain == destination_chain:
            return origin
        return self._wrapped.get((origin, destination_chain))

    def relay_fee(self, token: Token) -> int:
        fee = self.relay_fees.get(token.symbol, DEFAULT_RELAY_FEE)
        return to_base_units(fee, token.decimals)

    def contract_address(self, chain: str, kind: RouteKind) -> str:
        return derive_address("contract", chain, kind.value)

    def __repr__(self) -> str:
        return f"SimulatedProtocol(network={self.network}, chains={len(self._chains)})"
