"""Transfer execution and tracking."""

from bridgeroute.transfer.executor import TransferExecutor, TransferReceipt, defining_txid
from bridgeroute.transfer.tracking import (
    ScanClient,
    TransferProgress,
    TransferStatus,
    build_tracking_url,
)

__all__ = [
    "TransferExecutor",
    "TransferReceipt",
    "defining_txid",
    "ScanClient",
    "TransferProgress",
    "TransferStatus",
    "build_tracking_url",
]
