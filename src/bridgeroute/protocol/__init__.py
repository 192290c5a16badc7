"""Bridging protocol collaborators.

Backends (protocol.simulated, or one registered through
protocol.factory.register_backend) are imported on demand by
protocol.factory.initialize().
"""

from bridgeroute.protocol.base import (
    ChainAddress,
    ChainContext,
    ProtocolAddress,
    ProtocolHandle,
    Resolver,
    Token,
    TokenAmount,
    TokenId,
    parse_address,
)

__all__ = [
    "ChainAddress",
    "ChainContext",
    "ProtocolAddress",
    "ProtocolHandle",
    "Resolver",
    "Token",
    "TokenAmount",
    "TokenId",
    "parse_address",
]
