"""Route discovery, quoting and presentation.

Route kinds, in default priority order:
- AutomaticCCTPRoute: CCTP with a relayer (relay fee, ~15 min)
- CCTPRoute: CCTP with manual claim (free, ~15 min)
- AutomaticTokenBridgeRoute: Token Bridge with a relayer
- TokenBridgeRoute: Token Bridge with manual claim (free, ~12 days)
"""

from bridgeroute.routing.aggregator import QuoteAggregator, successful
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
from bridgeroute.routing.catalog import (
    CHEAPEST_ROUTE_PRIORITY,
    DEFAULT_ROUTE_PRIORITY,
    FASTEST_ROUTE_PRIORITY,
    ROUTE_METADATA,
    RouteCatalog,
)
from bridgeroute.routing.presenter import RouteOption, by_fee, by_speed, format_eta, present
from bridgeroute.routing.resolver import ResolvedRoutes, RouteResolver

__all__ = [
    # Types
    "RouteKind",
    "Route",
    "TransferRequest",
    "TransferParams",
    "ValidatedParams",
    "ValidationResult",
    "Quote",
    "TransactionRef",
    "InitiateResult",
    # Catalog
    "RouteCatalog",
    "ROUTE_METADATA",
    "DEFAULT_ROUTE_PRIORITY",
    "CHEAPEST_ROUTE_PRIORITY",
    "FASTEST_ROUTE_PRIORITY",
    # Components
    "RouteResolver",
    "ResolvedRoutes",
    "QuoteAggregator",
    "successful",
    "RouteOption",
    "present",
    "by_fee",
    "by_speed",
    "format_eta",
]
