"""Route resolver: enumerate the routes able to serve a transfer."""

import logging
from dataclasses import dataclass
from typing import Optional

from bridgeroute.errors import NoDestinationTokenError, NoRoutesFoundError, error_context
from bridgeroute.protocol.base import ProtocolHandle, describe_token
from bridgeroute.routing.base import Route, TransferRequest
from bridgeroute.routing.catalog import RouteCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRoutes:
    """Routes for one quoting session, in catalog priority order."""

    routes: tuple[Route, ...]
    request: TransferRequest

    def __len__(self) -> int:
        return len(self.routes)


class RouteResolver:
    """Discovers the concrete routes for a transfer request.

    The protocol handle is owned by the caller and may be shared across
    resolvers and sessions.
    """

    def __init__(self, protocol: ProtocolHandle, catalog: Optional[RouteCatalog] = None):
        self.protocol = protocol
        self.catalog = catalog or RouteCatalog()

    async def resolve(
        self,
        source_chain: str,
        destination_chain: str,
        token: str,
        sender: str,
        receiver: str,
    ) -> ResolvedRoutes:
        """
        Resolve every route able to move token from source_chain to destination_chain.

        Args:
            source_chain: Protocol chain name of the origin chain
            destination_chain: Protocol chain name of the destination chain
            token: Token address on the source chain, or the native sentinel
            sender: Sender address on the source chain
            receiver: Receiver address on the destination chain

        Raises:
            ChainNotFoundError: If either chain is unknown to the protocol
            TokenNotFoundError: If the token is unknown on the source chain
            NoDestinationTokenError: If no destination token is reachable
            InvalidAddressError: If sender or receiver cannot be parsed
            NoRoutesFoundError: If no registered route kind serves the request
        """
        with error_context("resolve_routes"):
            source = self.protocol.get_chain(source_chain)
            destination = self.protocol.get_chain(destination_chain)

            token_id = source.token_id(token)
            source_token = source.get_token(token_id)
            resolver = self.protocol.resolver(self.catalog.kinds)

            destination_tokens = await resolver.supported_destination_tokens(
                token_id, source, destination
            )
            if not destination_tokens:
                raise NoDestinationTokenError(
                    source_token.symbol, source.chain, destination.chain
                )
            destination_token = destination.get_token(destination_tokens[0])

            request = TransferRequest(
                source_token=source_token,
                destination_token=destination_token,
                sender=self.protocol.parse_address(source.chain, sender),
                receiver=self.protocol.parse_address(destination.chain, receiver),
            )

            found = await resolver.find_routes(request)
            routes = self.catalog.order(found)
            if not routes:
                raise NoRoutesFoundError(details={"request": str(request)})

        logger.info(
            f"Resolved {len(routes)} route(s) for {describe_token(source_token)} -> "
            f"{describe_token(destination_token)}: {', '.join(r.kind.value for r in routes)}"
        )
        return ResolvedRoutes(routes=tuple(routes), request=request)
