"""Utility modules for bridgeroute."""

from bridgeroute.utils.locks import SignerLock, get_signer_lock, signer_key
from bridgeroute.utils.units import from_base_units, to_base_units

__all__ = ["SignerLock", "get_signer_lock", "signer_key", "from_base_units", "to_base_units"]
