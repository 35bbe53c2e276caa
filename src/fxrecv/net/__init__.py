"""
fxrecv.net

Networking helpers for fxrecv.

Kept apart from the packet codec and the reassembly store so the receive
loop can be driven from any datagram source.
"""

from __future__ import annotations

from .transport import ReceiverConfig, UDPEndpoint, iter_datagrams, parse_addr

__all__ = [
    "ReceiverConfig",
    "UDPEndpoint",
    "iter_datagrams",
    "parse_addr",
]
