"""Signer adapter: expose a send-and-wait wallet as a sign-and-send signer.

The protocol's routes hand the signer a list of unsigned transactions (an
approval followed by the transfer, for example). Each one is broadcast by the
wallet and mined before the next is submitted, because later transactions
spend what earlier ones approved.
"""

import logging
from typing import Optional, Sequence

from bridgeroute.chains import get_chain_by_id
from bridgeroute.config import Settings, get_settings
from bridgeroute.errors import (
    BridgeError,
    DetachedSignatureError,
    SignAndSendError,
    WalletNotConnectedError,
    WalletWrongNetworkError,
)
from bridgeroute.protocol.base import ProtocolHandle
from bridgeroute.signing.wallet import UnsignedTransaction, WalletHandle
from bridgeroute.utils.locks import SignerLock, signer_key

logger = logging.getLogger(__name__)


class ProtocolSigner:
    """Sign-and-send signer bound to one account on one chain."""

    def __init__(
        self,
        chain_name: str,
        address: str,
        wallet: WalletHandle,
        settings: Optional[Settings] = None,
    ):
        self._chain = chain_name
        self._address = address
        self.wallet = wallet
        self.settings = settings or get_settings()

    def chain(self) -> str:
        return self._chain

    def address(self) -> str:
        return self._address

    async def sign_and_send(self, txns: Sequence[UnsignedTransaction]) -> list[str]:
        """
        Submit transactions in order, waiting for each to be mined.

        Returns:
            Transaction ids, one per submitted transaction

        Raises:
            SignAndSendError: If any transaction is rejected or fails; carries
                how many transactions completed before it, and the id of a
                transaction that was broadcast but not confirmed
        """
        txids: list[str] = []
        total = len(txns)

        async with SignerLock(
            signer_key(self._chain, self._address),
            timeout=self.settings.signer_lock_timeout,
        ):
            for index, txn in enumerate(txns):
                logger.info(f"[{self._chain}] Sending {index + 1}/{total}: {txn.description}")
                try:
                    txid = await self.wallet.send_transaction(txn.transaction)
                except Exception as e:
                    logger.error(
                        f"[{self._chain}] '{txn.description}' not sent after "
                        f"{index}/{total} transaction(s): {type(e).__name__}: {e}"
                    )
                    raise SignAndSendError(index, total, txn.description, txids, e) from e

                try:
                    await self.wallet.wait_for_transaction(
                        txid, timeout=self.settings.tx_confirmation_timeout
                    )
                except Exception as e:
                    # Already broadcast: reported as pending, not completed
                    logger.error(
                        f"[{self._chain}] '{txn.description}' ({txid}) failed after "
                        f"{index}/{total} transaction(s): {type(e).__name__}: {e}"
                    )
                    raise SignAndSendError(
                        index, total, txn.description, txids, e, pending_txid=txid
                    ) from e
                txids.append(txid)

        return txids

    async def sign(self, txns: Sequence[UnsignedTransaction]) -> list[bytes]:
        """Detached signing is not available through a broadcasting wallet."""
        logger.error(f"Detached signature requested for {len(txns)} transaction(s)")
        raise DetachedSignatureError(
            "sign() is not supported: this signer can only sign and broadcast via sign_and_send()",
            operation="sign",
        )

    def __repr__(self) -> str:
        return f"ProtocolSigner(chain={self._chain}, address={self._address})"


def create_signer(
    wallet: WalletHandle,
    protocol: ProtocolHandle,
    chain_name: str,
    settings: Optional[Settings] = None,
) -> ProtocolSigner:
    """
    Bind a connected wallet to a protocol chain.

    Raises:
        WalletNotConnectedError: If the wallet has no account or chain
        ChainNotFoundError: If the protocol does not know chain_name
        WalletWrongNetworkError: If the wallet is connected to another chain
    """
    if not wallet.is_connected:
        raise WalletNotConnectedError()

    context = protocol.get_chain(chain_name)
    if wallet.chain_id != context.config.chain_id:
        try:
            actual = get_chain_by_id(wallet.chain_id).name
        except BridgeError:
            actual = f"chain id {wallet.chain_id}"
        raise WalletWrongNetworkError(context.chain, actual)

    signer = ProtocolSigner(context.chain, wallet.address, wallet, settings)
    logger.debug(f"Created {signer}")
    return signer
