"""Route presenter: display-ready route options and their orderings."""

import math
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from bridgeroute.routing.base import Quote, Route, RouteKind
from bridgeroute.routing.catalog import route_description, route_name

MS_PER_SECOND = 1000
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * 60 * 60


class RouteOption(BaseModel):
    """A quoted route, shaped for display and selection."""

    model_config = ConfigDict(frozen=True)

    route_index: int = Field(..., description="Position of the route in the session")
    kind: str = Field(..., description="Route kind identifier")
    name: str = Field(..., description="Human-readable route name")
    description: str = Field(..., description="One-line route description")
    fee: str = Field(..., description="Formatted relay fee, or 'Free'")
    fee_amount: Decimal = Field(default=Decimal(0), description="Relay fee magnitude")
    estimated_time: str = Field(..., description="Formatted ETA")
    eta_ms: Optional[int] = Field(None, description="ETA in milliseconds")
    is_automatic: bool = Field(..., description="Delivered by a relayer")
    requires_manual_claim: bool = Field(..., description="Receiver must claim on destination")


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def format_eta(milliseconds: Optional[int]) -> str:
    """Format an ETA using only its largest whole unit.

    >>> format_eta(90_000)
    '1 minute'
    >>> format_eta(2 * 24 * 3600 * 1000)
    '2 days'
    """
    seconds = max(int(milliseconds or 0), 0) // MS_PER_SECOND

    if seconds >= SECONDS_PER_DAY:
        return _plural(seconds // SECONDS_PER_DAY, "day")
    if seconds >= SECONDS_PER_HOUR:
        return _plural(seconds // SECONDS_PER_HOUR, "hour")
    if seconds >= SECONDS_PER_MINUTE:
        return _plural(seconds // SECONDS_PER_MINUTE, "minute")
    return _plural(seconds, "second")


def format_fee(quote: Optional[Quote]) -> tuple[str, Decimal]:
    """Fee display string and numeric magnitude for a quote."""
    if quote is None or quote.relay_fee is None:
        return "Free", Decimal(0)

    amount = quote.relay_fee.decimal
    symbol = quote.relay_fee.token.symbol or "tokens"
    return f"{amount:.6f} {symbol}", amount


def present_route(index: int, kind: RouteKind, quote: Optional[Quote]) -> RouteOption:
    fee, fee_amount = format_fee(quote)
    eta_ms = quote.eta_ms if quote is not None else None

    return RouteOption(
        route_index=index,
        kind=kind.value,
        name=route_name(kind),
        description=route_description(kind),
        fee=fee,
        fee_amount=fee_amount,
        estimated_time=format_eta(eta_ms),
        eta_ms=eta_ms,
        is_automatic=kind.is_automatic,
        requires_manual_claim=kind.requires_manual_claim,
    )


def present(routes: Sequence[Route], quotes: Sequence[Quote]) -> list[RouteOption]:
    """Zip routes with their quotes, index for index, into route options."""
    return [
        present_route(index, route.kind, quote)
        for index, (route, quote) in enumerate(zip(routes, quotes))
    ]


def by_fee(options: Sequence[RouteOption]) -> list[RouteOption]:
    """Cheapest first; equal fees keep their original order."""
    return sorted(options, key=lambda option: option.fee_amount)


def by_speed(options: Sequence[RouteOption]) -> list[RouteOption]:
    """Fastest first by numeric ETA; options without an ETA go last."""
    return sorted(
        options,
        key=lambda option: option.eta_ms if option.eta_ms is not None else math.inf,
    )
