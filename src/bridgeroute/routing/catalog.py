"""Route catalog: the known route kinds, their priority and display metadata."""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeVar

from bridgeroute.routing.base import RouteKind

GENERIC_DESCRIPTION = "Standard bridge route"


@dataclass(frozen=True)
class RouteMetadata:
    """Static description of a route kind."""

    name: str
    description: str
    average_eta_ms: int
    reliability: str
    supported_symbols: tuple[str, ...] = ("*",)


ROUTE_METADATA: dict[RouteKind, RouteMetadata] = {
    RouteKind.AUTOMATIC_FAST: RouteMetadata(
        name="Fast CCTP (Automatic)",
        description="Fastest delivery with automatic relayer - includes relay fee",
        average_eta_ms=15 * 60 * 1000,
        reliability="high",
        supported_symbols=("USDC",),
    ),
    RouteKind.MANUAL_FAST: RouteMetadata(
        name="Fast CCTP (Manual)",
        description="Fast delivery - requires manual claim on destination chain",
        average_eta_ms=15 * 60 * 1000,
        reliability="high",
        supported_symbols=("USDC",),
    ),
    RouteKind.AUTOMATIC_GENERIC: RouteMetadata(
        name="Token Bridge (Automatic)",
        description="Automatic delivery via Token Bridge - may take longer",
        average_eta_ms=60 * 60 * 1000,
        reliability="medium",
    ),
    RouteKind.MANUAL_GENERIC: RouteMetadata(
        name="Token Bridge (Manual)",
        description="Cheapest option - requires manual claim and takes ~12+ days",
        average_eta_ms=12 * 24 * 60 * 60 * 1000,
        reliability="medium",
    ),
}

# Fastest/cheapest-for-stablecoins first, most general/slowest last
DEFAULT_ROUTE_PRIORITY: tuple[RouteKind, ...] = (
    RouteKind.AUTOMATIC_FAST,
    RouteKind.MANUAL_FAST,
    RouteKind.AUTOMATIC_GENERIC,
    RouteKind.MANUAL_GENERIC,
)

CHEAPEST_ROUTE_PRIORITY: tuple[RouteKind, ...] = (
    RouteKind.MANUAL_FAST,
    RouteKind.MANUAL_GENERIC,
    RouteKind.AUTOMATIC_FAST,
    RouteKind.AUTOMATIC_GENERIC,
)

FASTEST_ROUTE_PRIORITY: tuple[RouteKind, ...] = DEFAULT_ROUTE_PRIORITY

T = TypeVar("T")


def get_route_metadata(kind: RouteKind | str) -> Optional[RouteMetadata]:
    """Look up metadata by kind or raw route identifier."""
    try:
        return ROUTE_METADATA[RouteKind(kind)]
    except ValueError:
        return None


def route_name(kind: RouteKind | str) -> str:
    metadata = get_route_metadata(kind)
    if metadata is None:
        return kind.value if isinstance(kind, RouteKind) else str(kind)
    return metadata.name


def route_description(kind: RouteKind | str) -> str:
    metadata = get_route_metadata(kind)
    return metadata.description if metadata else GENERIC_DESCRIPTION


class RouteCatalog:
    """Priority-ordered list of the route kinds registered with a resolver."""

    def __init__(self, kinds: Optional[Sequence[RouteKind]] = None):
        kinds = tuple(kinds) if kinds is not None else DEFAULT_ROUTE_PRIORITY
        if len(set(kinds)) != len(kinds):
            raise ValueError("Route kinds must not repeat")
        if not kinds:
            raise ValueError("At least one route kind is required")
        self.kinds: tuple[RouteKind, ...] = kinds

    @classmethod
    def cheapest(cls) -> "RouteCatalog":
        return cls(CHEAPEST_ROUTE_PRIORITY)

    @classmethod
    def fastest(cls) -> "RouteCatalog":
        return cls(FASTEST_ROUTE_PRIORITY)

    def __contains__(self, kind: object) -> bool:
        return kind in self.kinds

    def __iter__(self):
        return iter(self.kinds)

    def __len__(self) -> int:
        return len(self.kinds)

    def priority(self, kind: RouteKind) -> int:
        """Position of a kind; unregistered kinds sort last."""
        try:
            return self.kinds.index(kind)
        except ValueError:
            return len(self.kinds)

    def order(self, items: Iterable[T], key=lambda item: item.kind) -> list[T]:
        """Sort items into registration priority, dropping unregistered kinds."""
        registered = [item for item in items if key(item) in self.kinds]
        return sorted(registered, key=lambda item: self.priority(key(item)))

    def __repr__(self) -> str:
        return f"RouteCatalog({', '.join(k.value for k in self.kinds)})"
