"""Transfer executor: drive a chosen route's on-chain transactions.

Steps:
1. Re-validate the amount against the chosen route
2. Re-quote for a fresh price/ETA snapshot
3. Build the destination reference from the quote's destination token
4. Initiate through the signer adapter (approve, then lock/burn)
5. Report the last origin transaction as the transfer's id

Partial submissions are not rolled back; TransferFailedError carries the
ids that were already submitted so the caller can resume.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from bridgeroute.chains import get_chain
from bridgeroute.config import Settings, get_settings
from bridgeroute.errors import (
    BridgeError,
    ChainNotFoundError,
    QuoteFailedError,
    SignAndSendError,
    TransferFailedError,
)
from bridgeroute.protocol.base import ChainAddress, ProtocolAddress
from bridgeroute.routing.base import (
    InitiateResult,
    Quote,
    Route,
    RouteKind,
    TransactionRef,
    TransferParams,
    TransferRequest,
)
from bridgeroute.signing.adapter import ProtocolSigner
from bridgeroute.transfer.tracking import build_tracking_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferReceipt:
    """Record of a submitted transfer."""

    txid: str
    origin_txs: tuple[TransactionRef, ...]
    route_kind: RouteKind
    source_chain: str
    destination_chain: str
    network: str
    quote: Quote
    tracking_url: str
    explorer_url: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    @property
    def txids(self) -> list[str]:
        return [tx.txid for tx in self.origin_txs] or [self.txid]

    @property
    def is_automatic(self) -> bool:
        return self.route_kind.is_automatic


def defining_txid(result: InitiateResult) -> Optional[str]:
    """The transfer-defining transaction id: last origin tx, else the bare txid."""
    if result.origin_txs:
        return result.origin_txs[-1].txid
    return result.txid


class TransferExecutor:
    """Executes transfers for a network."""

    def __init__(self, network: str, settings: Optional[Settings] = None):
        self.network = network
        self.settings = settings or get_settings()

    async def initiate_transfer(
        self,
        route: Route,
        request: TransferRequest,
        signer: ProtocolSigner,
        amount: str,
        native_gas: Optional[float] = None,
        receiver: Optional[ProtocolAddress] = None,
    ) -> TransferReceipt:
        """
        Execute a transfer along route.

        Args:
            route: Route from the same resolution as request
            request: Transfer request
            signer: Signer bound to the request's source chain
            amount: Human-readable amount
            native_gas: Destination gas fraction (defaults to settings)
            receiver: Parsed receiver address (defaults to request.receiver)

        Raises:
            TransferFailedError: Validation or submission failed
            QuoteFailedError: The pre-submission re-quote failed
        """
        kind = route.kind.value
        if native_gas is None:
            native_gas = self.settings.default_native_gas
        params = TransferParams(amount=str(amount), native_gas=native_gas)

        if signer.chain() != request.source_chain:
            raise TransferFailedError(
                f"signer is bound to {signer.chain()}, transfer starts on {request.source_chain}",
                step="validate",
                route_kind=kind,
            )

        logger.info(f"Initiating {kind} transfer of {amount} {request}")

        # 1. Re-validate
        try:
            validation = await route.validate(request, params)
        except Exception as e:
            raise TransferFailedError(
                f"{type(e).__name__}: {e}", step="validate", route_kind=kind
            ) from e
        if not validation.valid or validation.params is None:
            raise TransferFailedError(
                validation.error or "invalid transfer parameters", step="validate", route_kind=kind
            )

        # 2. Re-quote
        try:
            quote = await route.quote(request, validation.params)
        except Exception as e:
            raise QuoteFailedError(
                f"Re-quote failed: {type(e).__name__}: {e}",
                operation="initiate_transfer",
                route_kind=kind,
            ) from e
        if not quote.success:
            raise QuoteFailedError(
                f"Re-quote failed: {quote.error}", operation="initiate_transfer", route_kind=kind
            )

        # 3. Destination chain comes from the quote, not the original request
        destination_chain = (
            quote.destination_token.chain if quote.destination_token else request.destination_chain
        )
        to = ChainAddress(chain=destination_chain, address=receiver or request.receiver)

        # 4. Initiate
        try:
            result = await route.initiate(request, signer, quote, to)
        except SignAndSendError as e:
            logger.error(f"{kind} transfer aborted after {e.completed}/{e.total} transaction(s)")
            raise TransferFailedError(
                e.message,
                step="initiate",
                completed_txids=e.txids,
                details={
                    "completed": e.completed,
                    "total": e.total,
                    "rejected": e.rejected,
                    "pending_txid": e.pending_txid,
                },
                route_kind=kind,
                code=e.code,
            ) from e
        except Exception as e:
            logger.error(f"{kind} transfer failed: {e}")
            raise TransferFailedError(
                f"{type(e).__name__}: {e}",
                step="initiate",
                route_kind=kind,
                code=e.code if isinstance(e, BridgeError) else None,
            ) from e

        # 5. Last origin tx defines the transfer
        txid = defining_txid(result)
        if txid is None:
            raise TransferFailedError(
                "route reported no transaction", step="initiate", route_kind=kind
            )

        try:
            explorer_url = get_chain(request.source_chain).tx_url(txid)
        except ChainNotFoundError:
            explorer_url = None

        receipt = TransferReceipt(
            txid=txid,
            origin_txs=result.origin_txs,
            route_kind=route.kind,
            source_chain=request.source_chain,
            destination_chain=destination_chain,
            network=self.network,
            quote=quote,
            tracking_url=build_tracking_url(txid, self.network, self.settings),
            explorer_url=explorer_url,
        )
        logger.info(f"{kind} transfer submitted: {txid} ({len(result.origin_txs)} origin tx)")
        return receipt
