"""Tests for the route presenter."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from bridgeroute.protocol.base import Token, TokenAmount, TokenId
from bridgeroute.routing.base import Quote, RouteKind
from bridgeroute.routing.catalog import GENERIC_DESCRIPTION, route_description, route_name
from bridgeroute.routing.presenter import (
    RouteOption,
    by_fee,
    by_speed,
    format_eta,
    format_fee,
    present,
    present_route,
)

USDC = Token(TokenId("Ethereum", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"), "USDC", 6)

MINUTE = 60 * 1000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def make_option(index: int, fee: str = "0", eta_ms=15 * MINUTE) -> RouteOption:
    return RouteOption(
        route_index=index,
        kind=RouteKind.MANUAL_FAST.value,
        name=f"route {index}",
        description="",
        fee="Free" if fee == "0" else f"{fee} USDC",
        fee_amount=Decimal(fee),
        estimated_time=format_eta(eta_ms),
        eta_ms=eta_ms,
        is_automatic=False,
        requires_manual_claim=True,
    )


def make_quote(kind: RouteKind, fee=None, eta_ms=15 * MINUTE) -> Quote:
    return Quote(
        route_kind=kind,
        success=True,
        source_amount=TokenAmount(USDC, 10_000_000),
        destination_amount=TokenAmount(USDC, 10_000_000),
        relay_fee=TokenAmount(USDC, fee) if fee is not None else None,
        eta_ms=eta_ms,
    )


class TestFormatEta:
    """Only the largest whole unit is shown."""

    @pytest.mark.parametrize(
        "milliseconds,expected",
        [
            (90_000, "1 minute"),
            (60_000, "1 minute"),
            (59_999, "59 seconds"),
            (1_000, "1 second"),
            (0, "0 seconds"),
            (None, "0 seconds"),
            (15 * MINUTE, "15 minutes"),
            (HOUR, "1 hour"),
            (2 * HOUR + 59 * MINUTE, "2 hours"),
            (DAY, "1 day"),
            (2 * DAY, "2 days"),
            (12 * DAY, "12 days"),
        ],
    )
    def test_format(self, milliseconds, expected):
        assert format_eta(milliseconds) == expected


class TestFormatFee:
    def test_no_relay_fee_is_free(self):
        """A zero fee with no relay fee is exactly "Free"."""
        fee, amount = format_fee(make_quote(RouteKind.MANUAL_FAST))

        assert fee == "Free"
        assert amount == 0

    def test_relay_fee(self):
        fee, amount = format_fee(make_quote(RouteKind.AUTOMATIC_FAST, fee=500_000))

        assert fee == "0.500000 USDC"
        assert amount == Decimal("0.5")

    def test_zero_relay_fee_still_shown(self):
        """A relay fee that happens to be zero is still a relay fee."""
        fee, amount = format_fee(make_quote(RouteKind.AUTOMATIC_FAST, fee=0))

        assert fee == "0.000000 USDC"
        assert amount == 0

    def test_missing_symbol(self):
        token = Token(USDC.id, "", 6)
        quote = Quote(
            route_kind=RouteKind.AUTOMATIC_FAST,
            success=True,
            relay_fee=TokenAmount(token, 1_000_000),
        )

        assert format_fee(quote)[0] == "1.000000 tokens"


class TestPresent:
    @pytest.mark.asyncio
    async def test_happy_path_flags(self, usdc_routes):
        """Automatic-fast is automatic with a fee, manual-fast is manual and free."""
        quotes = [
            make_quote(RouteKind.AUTOMATIC_FAST, fee=500_000),
            make_quote(RouteKind.MANUAL_FAST),
        ]

        automatic, manual = present(usdc_routes.routes, quotes)

        assert automatic.name == "Fast CCTP (Automatic)"
        assert automatic.is_automatic and not automatic.requires_manual_claim
        assert automatic.fee == "0.500000 USDC"
        assert automatic.estimated_time == "15 minutes"
        assert manual.name == "Fast CCTP (Manual)"
        assert not manual.is_automatic and manual.requires_manual_claim
        assert manual.fee == "Free"
        assert manual.estimated_time == automatic.estimated_time
        assert [automatic.route_index, manual.route_index] == [0, 1]

    @pytest.mark.asyncio
    async def test_idempotent(self, usdc_routes):
        quotes = [
            make_quote(RouteKind.AUTOMATIC_FAST, fee=500_000),
            make_quote(RouteKind.MANUAL_FAST),
        ]

        assert present(usdc_routes.routes, quotes) == present(usdc_routes.routes, quotes)

    def test_options_are_frozen(self):
        option = make_option(0)

        with pytest.raises(ValidationError):
            option.fee = "1 USDC"

    def test_metadata_per_kind(self):
        for kind in RouteKind:
            option = present_route(0, kind, make_quote(kind))
            assert option.kind == kind.value
            assert option.name == route_name(kind)
            assert option.is_automatic == ("Automatic" in kind.value)

    def test_unknown_kind_falls_back(self):
        assert route_name("ExperimentalRoute") == "ExperimentalRoute"
        assert route_description("ExperimentalRoute") == GENERIC_DESCRIPTION


class TestSorting:
    def test_by_fee(self):
        """Fees [0, 5, 2] sort to indices [0, 2, 1]."""
        options = [make_option(0, "0"), make_option(1, "5"), make_option(2, "2")]

        assert [o.route_index for o in by_fee(options)] == [0, 2, 1]

    def test_by_fee_is_stable(self):
        options = [make_option(0, "1"), make_option(1, "0"), make_option(2, "1")]

        assert [o.route_index for o in by_fee(options)] == [1, 0, 2]

    def test_by_speed(self):
        options = [
            make_option(0, eta_ms=HOUR),
            make_option(1, eta_ms=15 * MINUTE),
            make_option(2, eta_ms=15 * MINUTE),
        ]

        assert [o.route_index for o in by_speed(options)] == [1, 2, 0]

    def test_by_speed_uses_numeric_eta(self):
        """ETAs that format identically still sort by their real value."""
        options = [make_option(0, eta_ms=89_000), make_option(1, eta_ms=61_000)]
        assert options[0].estimated_time == options[1].estimated_time

        assert [o.route_index for o in by_speed(options)] == [1, 0]

    def test_by_speed_missing_eta_last(self):
        options = [make_option(0, eta_ms=None), make_option(1, eta_ms=DAY)]

        assert [o.route_index for o in by_speed(options)] == [1, 0]

    def test_sorting_does_not_mutate(self):
        options = [make_option(0, "5"), make_option(1, "0")]
        by_fee(options)

        assert [o.route_index for o in options] == [0, 1]
