"""
fxrecv.net.transport

UDP endpoint for the receiver side of a transfer.

The receiver binds a local port, connects to the sender, announces itself
with a single "ready" datagram and then reads one packet per datagram.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

__all__ = ["ReceiverConfig", "UDPEndpoint", "iter_datagrams", "parse_addr"]

logger = logging.getLogger(__name__)


def parse_addr(addr: str) -> Tuple[str, int]:
    host, port = addr.rsplit(":", 1)
    return host, int(port)


@dataclass
class ReceiverConfig:
    bind_host: str = "0.0.0.0"
    bind_port: int = 7077
    peer_host: str = "127.0.0.1"
    peer_port: int = 6014
    max_datagram: int = 1028  # recv buffer; larger datagrams are truncated by the OS
    ready_size: int = 1028  # zero bytes sent to the peer before receiving
    timeout: Optional[float] = None  # None blocks forever

    @property
    def bind_addr(self) -> Tuple[str, int]:
        return self.bind_host, int(self.bind_port)

    @property
    def peer_addr(self) -> Tuple[str, int]:
        return self.peer_host, int(self.peer_port)


class UDPEndpoint:
    """
    Connected UDP socket yielding raw datagrams.

    Usage
    -----
    with UDPEndpoint(ReceiverConfig()) as ep:
        ep.send_ready()
        datagram = ep.recv()
    """

    def __init__(self, config: ReceiverConfig, *, sock: Optional[socket.socket] = None) -> None:
        self.config = config
        self.sock = sock
        self.counters = {
            "datagrams": 0,
            "bytes": 0,
        }

    def open(self) -> "UDPEndpoint":
        if self.sock is None:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                self.sock.bind(self.config.bind_addr)
                self.sock.connect(self.config.peer_addr)
            except OSError:
                self.sock.close()
                self.sock = None
                raise
        self.sock.settimeout(self.config.timeout)
        logger.info("listening on %s:%d, peer %s:%d", *self.sockname, *self.config.peer_addr)
        return self

    @property
    def sockname(self) -> Tuple[str, int]:
        if self.sock is None:
            raise RuntimeError("endpoint is not open")
        host, port = self.sock.getsockname()[:2]
        return host, int(port)

    def send_ready(self) -> None:
        if self.sock is None:
            raise RuntimeError("endpoint is not open")
        self.sock.send(bytes(int(self.config.ready_size)))
        logger.info("sent ready signal (%d bytes)", int(self.config.ready_size))

    def recv(self) -> bytes:
        """
        Block until one datagram arrives and return its bytes.
        """
        if self.sock is None:
            raise RuntimeError("endpoint is not open")
        data = self.sock.recv(int(self.config.max_datagram))
        self.counters["datagrams"] += 1
        self.counters["bytes"] += len(data)
        return data

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> "UDPEndpoint":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


def iter_datagrams(endpoint: UDPEndpoint) -> Iterator[bytes]:
    while True:
        yield endpoint.recv()
