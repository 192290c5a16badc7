"""Transfer tracking through the bridge scanner API.

The scanner indexes transfers by their origin transaction hash. A transfer
moves through: origin tx seen -> signed message (VAA) -> delivered on the
destination chain, by a relayer on automatic routes or by the receiver's
claim on manual routes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import httpx

from bridgeroute.config import Settings, get_settings
from bridgeroute.errors import NetworkError

if TYPE_CHECKING:  # pragma: no cover
    from bridgeroute.transfer.executor import TransferReceipt

logger = logging.getLogger(__name__)


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVING = "approving"
    TRANSFERRING = "transferring"
    ATTESTING = "attesting"
    RELAYING = "relaying"
    CLAIMING = "claiming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.FAILED)


STATUS_PROGRESS: dict[TransferStatus, tuple[int, str]] = {
    TransferStatus.PENDING: (10, "Waiting for the origin transaction to be indexed"),
    TransferStatus.APPROVING: (15, "Approving token spend"),
    TransferStatus.TRANSFERRING: (25, "Submitting transfer"),
    TransferStatus.ATTESTING: (40, "Waiting for guardian signatures"),
    TransferStatus.RELAYING: (70, "Relayer is delivering the transfer"),
    TransferStatus.CLAIMING: (80, "Ready to claim on the destination chain"),
    TransferStatus.COMPLETED: (100, "Transfer completed"),
    TransferStatus.FAILED: (0, "Transfer failed"),
}


@dataclass(frozen=True)
class TransferProgress:
    status: TransferStatus
    message: str
    txid: str
    percentage: int
    destination_txid: Optional[str] = None

    @classmethod
    def of(
        cls, status: TransferStatus, txid: str, destination_txid: Optional[str] = None
    ) -> "TransferProgress":
        percentage, message = STATUS_PROGRESS[status]
        return cls(status, message, txid, percentage, destination_txid)


def build_tracking_url(txid: str, network: str, settings: Optional[Settings] = None) -> str:
    """Scanner web page for a transfer."""
    settings = settings or get_settings()
    return f"{settings.scan_ui_url.rstrip('/')}/#/tx/{txid}?network={network}"


def status_from_operation(operation: Optional[dict[str, Any]], automatic: bool) -> TransferStatus:
    """Map a scanner operation record to a transfer status."""
    if not operation:
        return TransferStatus.PENDING

    source = operation.get("sourceChain") or {}
    if str(source.get("status", "")).lower() == "failed":
        return TransferStatus.FAILED

    target = operation.get("targetChain") or {}
    if str(target.get("status", "")).lower() == "completed":
        return TransferStatus.COMPLETED

    if not operation.get("vaa"):
        return TransferStatus.ATTESTING

    return TransferStatus.RELAYING if automatic else TransferStatus.CLAIMING


class ScanClient:
    """Async client for the scanner API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.api_url = self.settings.scan_api_url.rstrip("/")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ScanClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def get_operation(self, txid: str) -> Optional[dict[str, Any]]:
        """Fetch the scanner operation for an origin transaction, None if not indexed yet."""
        try:
            response = await self._get_client().get(
                f"{self.api_url}/api/v1/operations",
                params={"txHash": txid},
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Scanner lookup for {txid} failed: {type(e).__name__}: {e}")
            raise NetworkError(
                f"Scanner request failed: {type(e).__name__}: {e}",
                {"txid": txid},
                operation="track_transfer",
            ) from e

        operations = data.get("operations") or []
        return operations[0] if operations else None

    async def get_progress(self, receipt: "TransferReceipt") -> TransferProgress:
        """Current progress of a submitted transfer."""
        operation = await self.get_operation(receipt.txid)
        status = status_from_operation(operation, receipt.is_automatic)

        destination_txid = None
        if operation:
            transaction = (operation.get("targetChain") or {}).get("transaction") or {}
            destination_txid = transaction.get("txHash")

        logger.debug(f"Transfer {receipt.txid}: {status.value}")
        return TransferProgress.of(status, receipt.txid, destination_txid)
