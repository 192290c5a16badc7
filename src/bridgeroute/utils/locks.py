"""Per-signer locking.

A wallet connection is owned by one logical flow at a time: two sign-and-send
sequences against the same account would race for nonces and confuse the
wallet's confirmation prompts.
"""

import asyncio
import logging
from typing import Optional

from bridgeroute.errors import NetworkError

logger = logging.getLogger(__name__)

# Global lock registry: "chain:address" -> asyncio.Lock
_signer_locks: dict[str, asyncio.Lock] = {}
_registry_lock = asyncio.Lock()


def signer_key(chain: str, address: str) -> str:
    """Registry key for a signer bound to an account on a chain."""
    return f"{chain.lower()}:{address.lower()}"


async def get_signer_lock(key: str) -> asyncio.Lock:
    """Get or create the lock for a signer key."""
    async with _registry_lock:
        if key not in _signer_locks:
            _signer_locks[key] = asyncio.Lock()
        return _signer_locks[key]


class LockTimeoutError(NetworkError):
    """Raised when a signer stays busy longer than the allowed wait."""


class SignerLock:
    """Context manager granting exclusive use of a signer.

    Example:
        async with SignerLock(signer_key("Base", address), operation="sign_and_send"):
            ...
    """

    def __init__(
        self,
        key: str,
        timeout: Optional[float] = 30.0,
        operation: str = "sign_and_send",
    ):
        self.key = key
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "SignerLock":
        self._lock = await get_signer_lock(self.key)

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
            self._acquired = True
            logger.debug(f"Signer lock acquired for {self.key}: {self.operation}")
            return self

        except asyncio.TimeoutError:
            logger.warning(f"Signer {self.key} busy for {self.timeout}s: {self.operation}")
            raise LockTimeoutError(
                f"Signer {self.key} is busy with another transaction sequence",
                operation=self.operation,
            )

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Signer lock released for {self.key}: {self.operation}")
        return False


def clear_signer_locks() -> None:
    """Clear all signer locks (useful for testing)."""
    _signer_locks.clear()
