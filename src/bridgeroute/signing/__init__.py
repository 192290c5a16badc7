"""Wallet handles and the protocol signer adapter."""

from bridgeroute.signing.adapter import ProtocolSigner, create_signer
from bridgeroute.signing.wallet import (
    FeeData,
    UnsignedTransaction,
    WalletHandle,
    Web3Wallet,
)

__all__ = [
    "ProtocolSigner",
    "create_signer",
    "FeeData",
    "UnsignedTransaction",
    "WalletHandle",
    "Web3Wallet",
]
