"""Bridge service: resolve -> quote -> present -> select -> execute -> track.

The service holds no per-session state; every step takes a QuoteSession and
returns a new one (or a receipt). The protocol handle is injected and stays
owned by the caller.
"""

import logging
import time
from typing import Optional

from bridgeroute.config import Settings, get_settings
from bridgeroute.errors import NoRoutesFoundError, QuoteExpiredError, TransferFailedError
from bridgeroute.protocol.base import ProtocolHandle
from bridgeroute.routing.aggregator import QuoteAggregator
from bridgeroute.routing.catalog import RouteCatalog
from bridgeroute.routing.resolver import RouteResolver
from bridgeroute.session import QuoteSession
from bridgeroute.signing.adapter import ProtocolSigner, create_signer
from bridgeroute.signing.wallet import WalletHandle
from bridgeroute.transfer.executor import TransferExecutor, TransferReceipt
from bridgeroute.transfer.tracking import ScanClient, TransferProgress

logger = logging.getLogger(__name__)


class BridgeService:
    """Facade over the resolver, aggregator, executor and tracker."""

    def __init__(
        self,
        protocol: ProtocolHandle,
        settings: Optional[Settings] = None,
        catalog: Optional[RouteCatalog] = None,
        executor: Optional[TransferExecutor] = None,
        scan_client: Optional[ScanClient] = None,
    ):
        self.protocol = protocol
        self.settings = settings or get_settings()
        self.catalog = catalog or RouteCatalog()
        self.resolver = RouteResolver(protocol, self.catalog)
        self.aggregator = QuoteAggregator(self.settings)
        self.executor = executor or TransferExecutor(protocol.network, self.settings)
        self.scan_client = scan_client

    async def open_session(
        self,
        source_chain: str,
        destination_chain: str,
        token: str,
        sender: str,
        receiver: str,
    ) -> QuoteSession:
        """Resolve routes for a transfer; the session has no quotes yet."""
        resolved = await self.resolver.resolve(
            source_chain, destination_chain, token, sender, receiver
        )
        return QuoteSession(
            request=resolved.request,
            routes=resolved.routes,
            ttl_seconds=self.settings.quote_ttl_seconds,
        )

    async def refresh_quotes(
        self,
        session: QuoteSession,
        amount: str,
        native_gas: Optional[float] = None,
    ) -> QuoteSession:
        """
        Quote every route of the session for amount.

        Raises:
            NoRoutesFoundError: If no route produced a usable quote
        """
        if native_gas is None:
            native_gas = self.settings.default_native_gas

        quotes = await self.aggregator.quote_all(
            session.routes, session.request, amount, native_gas
        )
        updated = session.with_quotes(quotes, str(amount), native_gas)

        if not updated.options:
            errors = {q.route_kind.value: q.error for q in quotes}
            raise NoRoutesFoundError(
                f"No route can carry {amount} {session.request.source_token.symbol}",
                {"errors": errors},
            )

        logger.info(
            f"{len(updated.options)}/{len(quotes)} route(s) available for {amount} "
            f"{session.request}"
        )
        return updated

    def create_signer(self, wallet: WalletHandle, session: QuoteSession) -> ProtocolSigner:
        """Signer for the session's source chain."""
        return create_signer(wallet, self.protocol, session.request.source_chain, self.settings)

    async def execute(
        self,
        session: QuoteSession,
        signer: ProtocolSigner,
        require_fresh: bool = False,
    ) -> TransferReceipt:
        """
        Execute the selected route.

        The executor always re-validates and re-quotes before submitting.
        With require_fresh, a session whose quotes have expired is refused
        outright instead.

        Raises:
            TransferFailedError: If nothing is selected, or submission fails
            QuoteExpiredError: If require_fresh and the quotes have expired
        """
        route = session.selected_route
        if route is None or session.amount is None:
            raise TransferFailedError("no route selected", step="select")

        if session.is_stale():
            age = time.time() - session.quoted_at if session.quoted_at else 0.0
            if require_fresh:
                raise QuoteExpiredError(age, session.ttl_seconds)
            logger.debug(f"Session quotes are {age:.0f}s old; executor re-quotes")

        return await self.executor.initiate_transfer(
            route,
            session.request,
            signer,
            session.amount,
            native_gas=session.native_gas,
        )

    async def track(self, receipt: TransferReceipt) -> TransferProgress:
        """Current progress of a submitted transfer."""
        if self.scan_client is not None:
            return await self.scan_client.get_progress(receipt)

        async with ScanClient(self.settings) as client:
            return await client.get_progress(receipt)
