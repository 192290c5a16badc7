"""Exception types for route resolution, quoting and transfer execution.

Every failure that leaves a public operation is a BridgeError subclass. Protocol
and wallet exceptions are wrapped once, at the boundary of the operation that
called them, by error_context().
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error classification."""

    INVALID_CONFIG = "INVALID_CONFIG"
    NETWORK_NOT_SUPPORTED = "NETWORK_NOT_SUPPORTED"
    CHAIN_NOT_FOUND = "CHAIN_NOT_FOUND"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    NO_DESTINATION_TOKEN = "NO_DESTINATION_TOKEN"
    NO_ROUTES_FOUND = "NO_ROUTES_FOUND"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    ROUTE_VALIDATION_FAILED = "ROUTE_VALIDATION_FAILED"
    QUOTE_FAILED = "QUOTE_FAILED"
    QUOTE_EXPIRED = "QUOTE_EXPIRED"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    TX_REJECTED = "TX_REJECTED"
    TX_TIMEOUT = "TX_TIMEOUT"
    TX_FAILED = "TX_FAILED"
    WALLET_NOT_CONNECTED = "WALLET_NOT_CONNECTED"
    WALLET_WRONG_NETWORK = "WALLET_WRONG_NETWORK"
    SIGNER_MISUSE = "SIGNER_MISUSE"
    NETWORK_ERROR = "NETWORK_ERROR"


# Codes the caller may retry without changing its input
RETRYABLE_CODES = {ErrorCode.NETWORK_ERROR, ErrorCode.TX_TIMEOUT, ErrorCode.QUOTE_EXPIRED}

# Codes meaning "this transfer cannot be offered" rather than "it broke"
UNSUPPORTED_CODES = {
    ErrorCode.NO_DESTINATION_TOKEN,
    ErrorCode.NO_ROUTES_FOUND,
    ErrorCode.TOKEN_NOT_FOUND,
    ErrorCode.CHAIN_NOT_FOUND,
}


class BridgeError(Exception):
    """Base class for all bridge errors.

    Attributes:
        code: Error classification
        details: Extra structured context
        operation: Public operation that failed (resolve_routes, quote, initiate...)
        route_kind: Route involved, when the failure is route specific
        timestamp: Unix time the error was raised
    """

    code: ErrorCode = ErrorCode.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        operation: Optional[str] = None,
        route_kind: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.operation = operation
        self.route_kind = route_kind
        self.timestamp = time.time()

    @property
    def is_retryable(self) -> bool:
        """Whether retrying the same call may succeed."""
        return self.code in RETRYABLE_CODES

    @property
    def is_unsupported(self) -> bool:
        """Whether the error means the transfer is simply not offered."""
        return self.code in UNSUPPORTED_CODES

    @property
    def user_message(self) -> str:
        """Short human-readable summary for display layers."""
        if self.is_unsupported:
            return f"Transfer not supported: {self.message}"
        return f"Something went wrong: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "operation": self.operation,
            "route_kind": self.route_kind,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        parts = []
        if self.operation:
            parts.append(self.operation)
        if self.route_kind:
            parts.append(self.route_kind)
        if parts:
            return f"[{'/'.join(parts)}] {self.message}"
        return self.message


# ======================
# Configuration
# ======================


class ConfigurationError(BridgeError):
    """Protocol initialization or registry lookup failed."""

    code = ErrorCode.INVALID_CONFIG


class NetworkNotSupportedError(ConfigurationError):
    code = ErrorCode.NETWORK_NOT_SUPPORTED

    def __init__(self, network: str, details: Optional[dict] = None):
        super().__init__(f"Network '{network}' is not supported", details)
        self.network = network


class ChainNotFoundError(ConfigurationError):
    code = ErrorCode.CHAIN_NOT_FOUND

    def __init__(self, chain: Any, details: Optional[dict] = None):
        super().__init__(f"Chain '{chain}' not found", details)
        self.chain = chain


class TokenNotFoundError(ConfigurationError):
    code = ErrorCode.TOKEN_NOT_FOUND

    def __init__(self, token: str, chain: str, details: Optional[dict] = None):
        super().__init__(f"Token '{token}' not found on {chain}", details)
        self.token = token
        self.chain = chain


# ======================
# Route discovery
# ======================


class NoDestinationTokenError(BridgeError):
    """No destination token is reachable from the source token."""

    code = ErrorCode.NO_DESTINATION_TOKEN

    def __init__(self, token: str, source_chain: str, destination_chain: str):
        super().__init__(
            f"No supported destination tokens for {token} from {source_chain} to {destination_chain}",
            {"token": token, "source_chain": source_chain, "destination_chain": destination_chain},
        )


class NoRoutesFoundError(BridgeError):
    code = ErrorCode.NO_ROUTES_FOUND

    def __init__(self, message: str = "No routes found for this transfer", details: Optional[dict] = None):
        super().__init__(message, details)


class InvalidAddressError(BridgeError):
    code = ErrorCode.INVALID_ADDRESS

    def __init__(self, address: str, chain: str, reason: str = "malformed address"):
        super().__init__(
            f"Invalid address for {chain}: {address!r} ({reason})",
            {"address": address, "chain": chain},
        )
        self.address = address
        self.chain = chain


# ======================
# Validation / Quotes
# ======================


class RouteValidationError(BridgeError):
    """A route rejected the proposed amount or options."""

    code = ErrorCode.ROUTE_VALIDATION_FAILED


class QuoteFailedError(BridgeError):
    code = ErrorCode.QUOTE_FAILED


class QuoteExpiredError(BridgeError):
    code = ErrorCode.QUOTE_EXPIRED

    def __init__(self, age_seconds: float, ttl_seconds: int):
        super().__init__(
            f"Quote is {age_seconds:.0f}s old (valid for {ttl_seconds}s), please fetch a new quote",
            {"age_seconds": age_seconds, "ttl_seconds": ttl_seconds},
        )


# ======================
# Transfers / Transactions
# ======================


class TransferFailedError(BridgeError):
    """A transfer attempt aborted.

    Attributes:
        step: Executor step that failed (validate, quote, initiate)
        completed_txids: Transactions that were already submitted before the failure
        code: Classification of the underlying cause, when known
    """

    code = ErrorCode.TRANSFER_FAILED

    def __init__(
        self,
        reason: str,
        step: str,
        completed_txids: Optional[list[str]] = None,
        details: Optional[dict] = None,
        route_kind: Optional[str] = None,
        code: Optional[ErrorCode] = None,
    ):
        super().__init__(
            f"Transfer failed during {step}: {reason}",
            details,
            operation="initiate_transfer",
            route_kind=route_kind,
        )
        self.reason = reason
        self.step = step
        self.completed_txids = list(completed_txids or [])
        if code is not None:
            self.code = code


class TransactionRejectedError(BridgeError):
    code = ErrorCode.TX_REJECTED

    def __init__(self, message: str = "Transaction was rejected by user", details: Optional[dict] = None):
        super().__init__(message, details)


class TransactionFailedError(BridgeError):
    code = ErrorCode.TX_FAILED

    def __init__(self, txid: str, reason: Optional[str] = None):
        message = f"Transaction {txid} failed: {reason}" if reason else f"Transaction {txid} failed"
        super().__init__(message, {"txid": txid})
        self.txid = txid


class TransactionTimeoutError(BridgeError):
    code = ErrorCode.TX_TIMEOUT

    def __init__(self, txid: Optional[str] = None, timeout: Optional[float] = None):
        message = f"Transaction {txid} timed out" if txid else "Transaction timed out"
        if timeout is not None:
            message = f"{message} after {timeout:.0f}s"
        super().__init__(message, {"txid": txid})
        self.txid = txid


class SignAndSendError(BridgeError):
    """A transaction in a sign-and-send sequence failed.

    Attributes:
        completed: Number of transactions submitted before the failure
        total: Number of transactions in the sequence
        txids: Identifiers of the completed transactions
        description: Description of the transaction that failed
        rejected: True when the wallet owner declined to sign
        pending_txid: Id of the failing transaction when it was broadcast but
            not confirmed mined (it may still land on-chain)
    """

    def __init__(
        self,
        completed: int,
        total: int,
        description: str,
        txids: list[str],
        cause: Exception,
        pending_txid: Optional[str] = None,
    ):
        super().__init__(
            f"'{description}' failed after {completed} of {total} transactions completed: {cause}",
            {
                "completed": completed,
                "total": total,
                "txids": list(txids),
                "pending_txid": pending_txid,
            },
            operation="sign_and_send",
        )
        self.completed = completed
        self.total = total
        self.description = description
        self.txids = list(txids)
        self.pending_txid = pending_txid
        self.rejected = isinstance(cause, TransactionRejectedError)
        self.code = cause.code if isinstance(cause, BridgeError) else ErrorCode.TX_FAILED


class WalletNotConnectedError(BridgeError):
    code = ErrorCode.WALLET_NOT_CONNECTED

    def __init__(self, message: str = "Wallet is not connected"):
        super().__init__(message)


class WalletWrongNetworkError(BridgeError):
    code = ErrorCode.WALLET_WRONG_NETWORK

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Wallet is on wrong network. Expected: {expected}, Actual: {actual}",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class DetachedSignatureError(BridgeError):
    """Raised when something asks the signer for a detached signature.

    The wallets we drive can only sign and broadcast in one step, so this is
    always a programming error.
    """

    code = ErrorCode.SIGNER_MISUSE


class NetworkError(BridgeError):
    """Generic, retryable failure talking to the protocol or a wallet."""

    code = ErrorCode.NETWORK_ERROR


@contextmanager
def error_context(operation: str, route_kind: Optional[str] = None) -> Iterator[None]:
    """Wrap everything raised inside the block into a typed BridgeError.

    BridgeErrors keep their type and get the operation/route filled in when
    missing. Anything else becomes a NetworkError chained to the original.
    """
    try:
        yield
    except BridgeError as e:
        if e.operation is None:
            e.operation = operation
        if e.route_kind is None:
            e.route_kind = route_kind
        raise
    except Exception as e:
        logger.debug(f"{operation} failed ({route_kind or '-'}): {type(e).__name__}: {e}")
        raise NetworkError(
            f"{type(e).__name__}: {e}",
            operation=operation,
            route_kind=route_kind,
        ) from e
