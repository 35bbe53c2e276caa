"""
fxrecv.errors

Exception hierarchy shared by the decoder, the reassembly store, the writer
and the receive session.
"""

from __future__ import annotations

__all__ = [
    "ReceiverError",
    "DecodeError",
    "TooShort",
    "TooShortData",
    "InvalidEncoding",
    "BufferLimitExceeded",
    "MissingNameError",
    "IncompleteTransfer",
]


class ReceiverError(Exception):
    """Base class for every fatal condition raised by fxrecv."""


class DecodeError(ReceiverError, ValueError):
    """
    A datagram could not be parsed into a packet.

    `length` is the size of the offending datagram in bytes.
    """

    def __init__(self, message: str, *, length: int) -> None:
        super().__init__(f"{message} ({int(length)} bytes)")
        self.length = int(length)


class TooShort(DecodeError):
    pass


class TooShortData(DecodeError):
    pass


class InvalidEncoding(DecodeError):
    pass


class BufferLimitExceeded(ReceiverError):
    pass


class MissingNameError(ReceiverError, RuntimeError):
    """A file group reached the writer without a name."""


class IncompleteTransfer(ReceiverError):
    """The datagram source ran dry before every expected file was complete."""
