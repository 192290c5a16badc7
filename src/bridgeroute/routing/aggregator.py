"""Quote aggregator: validate and quote every route concurrently."""

import asyncio
import dataclasses
import logging
from typing import Optional, Sequence

from bridgeroute.config import Settings, get_settings
from bridgeroute.routing.base import Quote, Route, TransferParams, TransferRequest

logger = logging.getLogger(__name__)


class QuoteAggregator:
    """Collects one quote per route with per-route fault isolation."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def quote_all(
        self,
        routes: Sequence[Route],
        request: TransferRequest,
        amount: str,
        native_gas: Optional[float] = None,
    ) -> list[Quote]:
        """
        Quote every route concurrently.

        Returns one Quote per route, positionally aligned with routes. Routes
        that fail validation or quoting get a failed Quote in their slot.
        """
        if native_gas is None:
            native_gas = self.settings.default_native_gas
        params = TransferParams(amount=str(amount), native_gas=native_gas)

        logger.debug(f"Quoting {len(routes)} route(s) for {amount} {request}")
        quotes = await asyncio.gather(
            *(self._quote_route(route, request, params) for route in routes)
        )

        ok = sum(1 for q in quotes if q.success)
        logger.info(f"Got {ok}/{len(quotes)} quote(s) for {amount} {request}")
        return list(quotes)

    async def quote_viable(
        self,
        routes: Sequence[Route],
        request: TransferRequest,
        amount: str,
        native_gas: Optional[float] = None,
    ) -> tuple[list[Route], list[Quote]]:
        """Quote every route and keep only the successful (route, quote) pairs."""
        quotes = await self.quote_all(routes, request, amount, native_gas)
        return successful(routes, quotes)

    async def _quote_route(
        self, route: Route, request: TransferRequest, params: TransferParams
    ) -> Quote:
        kind = route.kind

        try:
            validation = await route.validate(request, params)
        except Exception as e:
            logger.warning(f"{kind.value} validate failed: {type(e).__name__}: {e}")
            return self._stamp(Quote.failure(kind, f"{type(e).__name__}: {e}", "validate"))

        if not validation.valid or validation.params is None:
            logger.debug(f"{kind.value} rejected {params.amount}: {validation.error}")
            return self._stamp(
                Quote.failure(kind, validation.error or "Invalid transfer parameters", "validate")
            )

        try:
            quote = await route.quote(request, validation.params)
        except Exception as e:
            logger.warning(f"{kind.value} quote failed: {type(e).__name__}: {e}")
            return self._stamp(Quote.failure(kind, f"{type(e).__name__}: {e}", "quote"))

        if not quote.success:
            logger.warning(f"{kind.value} quote unsuccessful: {quote.error}")
            quote = dataclasses.replace(quote, failed_step=quote.failed_step or "quote")
        return self._stamp(quote)

    def _stamp(self, quote: Quote) -> Quote:
        return dataclasses.replace(quote, ttl_seconds=self.settings.quote_ttl_seconds)


def successful(
    routes: Sequence[Route], quotes: Sequence[Quote]
) -> tuple[list[Route], list[Quote]]:
    """Filter aligned routes/quotes down to the successfully quoted pairs."""
    if len(routes) != len(quotes):
        raise ValueError(f"Got {len(quotes)} quotes for {len(routes)} routes")

    kept = [(r, q) for r, q in zip(routes, quotes) if q.success]
    return [r for r, _ in kept], [q for _, q in kept]
