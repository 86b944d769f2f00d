"""
Network module for bulb communication.

Provides the transport abstraction and the TCP transport.
"""

from yeectl.network.transport import (
    DEFAULT_PORT,
    Transport,
    TransportState,
    TransportConfig,
    TransportStats,
    TCPTransport,
    parse_address,
)

__all__ = [
    "DEFAULT_PORT",
    "Transport",
    "TransportState",
    "TransportConfig",
    "TransportStats",
    "TCPTransport",
    "parse_address",
]
