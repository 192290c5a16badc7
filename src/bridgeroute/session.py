"""Immutable quoting session.

A QuoteSession holds everything one quoting flow knows: the request, the
resolved routes, their quotes and the display options derived from them, and
which option is selected. Every transition returns a new session, so the
options can never drift out of alignment with the routes and quotes they
were built from.
"""

import dataclasses
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from bridgeroute.routing.base import DEFAULT_QUOTE_TTL_SECONDS, Quote, Route, TransferRequest
from bridgeroute.routing.presenter import RouteOption, by_fee, by_speed, present_route


@dataclass(frozen=True)
class QuoteSession:
    """
    Attributes:
        request: Transfer request shared by all routes
        routes: Resolved routes in priority order
        quotes: One quote per route (empty until quoted)
        options: Options for the successfully quoted routes; route_index
            points back into routes
        selected_index: Index into options, None when nothing is selected
    """

    request: TransferRequest
    routes: tuple[Route, ...]
    quotes: tuple[Quote, ...] = ()
    options: tuple[RouteOption, ...] = ()
    selected_index: Optional[int] = None
    amount: Optional[str] = None
    native_gas: float = 0.0
    quoted_at: Optional[float] = None
    ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS

    @property
    def has_quotes(self) -> bool:
        return bool(self.quotes)

    @property
    def failed_quotes(self) -> list[Quote]:
        return [q for q in self.quotes if not q.success]

    @property
    def selected_option(self) -> Optional[RouteOption]:
        if self.selected_index is None:
            return None
        return self.options[self.selected_index]

    @property
    def selected_route(self) -> Optional[Route]:
        option = self.selected_option
        return self.routes[option.route_index] if option else None

    @property
    def selected_quote(self) -> Optional[Quote]:
        option = self.selected_option
        return self.quotes[option.route_index] if option else None

    def is_stale(self, now: Optional[float] = None) -> bool:
        """Whether the quotes are missing or older than the validity window."""
        if self.quoted_at is None:
            return True
        now = time.time() if now is None else now
        return now - self.quoted_at > self.ttl_seconds

    def with_quotes(
        self,
        quotes: Sequence[Quote],
        amount: str,
        native_gas: float = 0.0,
        quoted_at: Optional[float] = None,
    ) -> "QuoteSession":
        """New session for a fresh set of quotes, one per route.

        The selection stays on the same route when it is still quotable,
        otherwise it moves to the first option.
        """
        if len(quotes) != len(self.routes):
            raise ValueError(f"Got {len(quotes)} quotes for {len(self.routes)} routes")

        options = tuple(
            present_route(index, route.kind, quote)
            for index, (route, quote) in enumerate(zip(self.routes, quotes))
            if quote.success
        )

        previous = self.selected_option
        selected = _index_of_route(options, previous.route_index) if previous else None
        if selected is None and options:
            selected = 0

        return dataclasses.replace(
            self,
            quotes=tuple(quotes),
            options=options,
            selected_index=selected,
            amount=amount,
            native_gas=native_gas,
            quoted_at=time.time() if quoted_at is None else quoted_at,
        )

    def select(self, index: int) -> "QuoteSession":
        """New session with the option at index selected."""
        if not 0 <= index < len(self.options):
            raise IndexError(f"Option {index} out of range (0-{len(self.options) - 1})")
        return dataclasses.replace(self, selected_index=index)

    def sorted_by_fee(self) -> "QuoteSession":
        return self._reordered(by_fee)

    def sorted_by_speed(self) -> "QuoteSession":
        return self._reordered(by_speed)

    def _reordered(
        self, sort: Callable[[Sequence[RouteOption]], list[RouteOption]]
    ) -> "QuoteSession":
        options = tuple(sort(self.options))
        previous = self.selected_option
        selected = _index_of_route(options, previous.route_index) if previous else None
        return dataclasses.replace(self, options=options, selected_index=selected)


def _index_of_route(options: Sequence[RouteOption], route_index: int) -> Optional[int]:
    for position, option in enumerate(options):
        if option.route_index == route_index:
            return position
    return None
