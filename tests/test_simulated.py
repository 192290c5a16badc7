"""Tests for the simulated protocol backend."""

from decimal import Decimal

import pytest
from eth_utils import is_checksum_address

from bridgeroute.chains import CHAINS
from bridgeroute.errors import ChainNotFoundError, QuoteFailedError, RouteValidationError
from bridgeroute.protocol.base import ChainAddress, TokenId
from bridgeroute.protocol.simulated import (
    MAX_WRAPPED_DECIMALS,
    SimulatedProtocol,
    SimulatedRoute,
    derive_address,
    encode_call,
    rescale,
)
from bridgeroute.routing.base import Quote, RouteKind, TransferParams
from bridgeroute.routing.resolver import RouteResolver

from conftest import RECEIVER, SENDER, USDC_BSC


def test_derive_address_is_deterministic():
    address = derive_address("contract", "Base", "CCTPRoute")

    assert address == derive_address("contract", "Base", "CCTPRoute")
    assert address != derive_address("contract", "Ethereum", "CCTPRoute")
    assert is_checksum_address(address)


def test_encode_call():
    data = encode_call("approve(address,uint256)", RECEIVER, 5)

    assert data.startswith("0x095ea7b3")
    assert len(data) == 2 + 8 + 2 * 64
    assert data.endswith("5")


def test_rescale():
    assert rescale(10**18, 18, 8) == 10**8
    assert rescale(123, 18, 8) == 0
    assert rescale(1, 6, 8) == 100


class TestRegistry:
    def test_chain_lookup(self, protocol):
        assert protocol.get_chain("base").chain == "Base"
        with pytest.raises(ChainNotFoundError):
            protocol.get_chain("Solana")

    def test_wrapped_tokens_capped_at_eight_decimals(self, protocol):
        wrapped = protocol.bridged_token(TokenId("Ethereum", "native"), "Base")
        token = protocol.get_chain("Base").get_token(wrapped)

        assert token.symbol == "ETH"
        assert token.decimals == MAX_WRAPPED_DECIMALS

    def test_wrapped_usdc_keeps_six_decimals(self, protocol):
        bsc_usdc = protocol.get_chain("BSC").token_id(USDC_BSC)
        wrapped = protocol.bridged_token(bsc_usdc, "Ethereum")

        assert protocol.get_chain("Ethereum").get_token(wrapped).decimals == 6

    def test_wrapped_token_goes_home_as_original(self, protocol):
        native = TokenId("Ethereum", "native")
        wrapped = protocol.bridged_token(native, "Base")

        assert protocol.bridged_token(wrapped, "Ethereum") == native
        assert protocol.bridged_token(wrapped, "Arbitrum") == protocol.bridged_token(
            native, "Arbitrum"
        )

    def test_relay_fee_overrides(self):
        protocol = SimulatedProtocol(relay_fees={"USDC": Decimal("2")})
        usdc = protocol.get_chain("Ethereum").get_token(
            TokenId("Ethereum", CHAINS["Ethereum"].usdc_address)
        )

        assert protocol.relay_fee(usdc) == 2_000_000

    @pytest.mark.asyncio
    async def test_route_base_needs_kind_hooks(self, protocol, usdc_routes):
        with pytest.raises(TypeError):
            SimulatedRoute(usdc_routes.request, protocol)

        # Kinds fill the hooks through their mixin and own transfer_transaction
        assert all(isinstance(route, SimulatedRoute) for route in usdc_routes.routes)


class TestValidate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "amount,native_gas,error",
        [
            ("abc", 0.0, "Invalid amount"),
            ("-1", 0.0, "non-negative"),
            ("0", 0.0, "greater than zero"),
            ("1.0000001", 0.0, "decimal places"),
            ("10", 1.5, "Native gas"),
            ("0.5", 0.0, "relay fee"),
        ],
    )
    async def test_rejections(self, usdc_routes, amount, native_gas, error):
        automatic = usdc_routes.routes[0]

        result = await automatic.validate(
            usdc_routes.request, TransferParams(amount=amount, native_gas=native_gas)
        )

        assert not result.valid
        assert error in result.error

    @pytest.mark.asyncio
    async def test_manual_route_has_no_fee_floor(self, usdc_routes):
        manual = usdc_routes.routes[1]

        result = await manual.validate(usdc_routes.request, TransferParams(amount="0.5"))

        assert result.valid
        assert result.params.amount == 500_000

    @pytest.mark.asyncio
    async def test_invalid_kinds(self):
        protocol = SimulatedProtocol(invalid_kinds=[RouteKind.MANUAL_FAST])
        resolved = await RouteResolver(protocol).resolve(
            "Ethereum", "Base", CHAINS["Ethereum"].usdc_address, SENDER, RECEIVER
        )

        result = await resolved.routes[1].validate(resolved.request, TransferParams(amount="5"))

        assert not result.valid
        assert "not available" in result.error


class TestQuote:
    @pytest.mark.asyncio
    async def test_automatic_deducts_fee_and_gas(self, usdc_routes):
        route = usdc_routes.routes[0]
        validation = await route.validate(
            usdc_routes.request, TransferParams(amount="10", native_gas=0.1)
        )

        quote = await route.quote(usdc_routes.request, validation.params)

        assert quote.success
        assert quote.relay_fee.amount == 500_000
        assert quote.destination_amount.amount == 8_550_000
        assert quote.destination_token.chain == "Base"
        assert quote.eta_ms == 15 * 60 * 1000

    @pytest.mark.asyncio
    async def test_manual_native_rescales_to_wrapped_decimals(self, native_routes):
        route = native_routes.routes[1]
        validation = await route.validate(native_routes.request, TransferParams(amount="1"))

        quote = await route.quote(native_routes.request, validation.params)

        assert quote.relay_fee is None
        assert quote.destination_amount.amount == 10**8

    @pytest.mark.asyncio
    async def test_failing_kinds(self):
        protocol = SimulatedProtocol(failing_kinds=[RouteKind.AUTOMATIC_GENERIC])
        resolved = await RouteResolver(protocol).resolve("Ethereum", "Base", "native", SENDER, RECEIVER)
        route = resolved.routes[0]
        validation = await route.validate(resolved.request, TransferParams(amount="1"))

        with pytest.raises(QuoteFailedError):
            await route.quote(resolved.request, validation.params)


class TestInitiate:
    @pytest.mark.asyncio
    async def test_quote_without_params(self, usdc_routes, signer):
        route = usdc_routes.routes[1]
        to = ChainAddress("Base", usdc_routes.request.receiver)

        with pytest.raises(RouteValidationError):
            await route.initiate(
                usdc_routes.request, signer, Quote(route_kind=route.kind, success=True), to
            )

    @pytest.mark.asyncio
    async def test_automatic_native_single_transaction(self, native_routes, signer, wallet):
        route = native_routes.routes[0]
        validation = await route.validate(native_routes.request, TransferParams(amount="0.1"))
        quote = await route.quote(native_routes.request, validation.params)

        result = await route.initiate(
            native_routes.request, signer, quote, ChainAddress("Base", native_routes.request.receiver)
        )

        assert len(result.origin_txs) == 1
        assert result.origin_txs[0].chain == "Ethereum"
        assert wallet.sent[0]["value"] == 10**17
        # Recipient travels as a 32-byte left-padded address
        assert RECEIVER[2:].lower() in wallet.sent[0]["data"]
