"""
fxrecv

Receiver for a minimal datagram file-transfer protocol.

The package keeps a hard separation between:
- the wire format (fxrecv.packet)
- reassembly state and completion (fxrecv.store)
- flushing files to storage (fxrecv.writer)
- the UDP endpoint and receive loop (fxrecv.net, fxrecv.session)
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "Header",
    "Data",
    "Packet",
    "decode_packet",
    "encode_header",
    "encode_data",
    "iter_file_datagrams",
    "FileGroup",
    "ReassemblyStore",
    "is_done",
    "FileWriter",
    "write_all_files",
    "ReceiverConfig",
    "UDPEndpoint",
    "receive_files",
    "run_receiver",
    "ReceiverError",
    "DecodeError",
    "TooShort",
    "TooShortData",
    "InvalidEncoding",
    "BufferLimitExceeded",
    "MissingNameError",
    "IncompleteTransfer",
]

__version__ = "0.1.0"


from .errors import (  # noqa: E402
    BufferLimitExceeded,
    DecodeError,
    IncompleteTransfer,
    InvalidEncoding,
    MissingNameError,
    ReceiverError,
    TooShort,
    TooShortData,
)
from .packet import Data, Header, Packet, decode_packet, encode_data, encode_header, iter_file_datagrams  # noqa: E402
from .store import FileGroup, ReassemblyStore, is_done  # noqa: E402
from .writer import FileWriter, write_all_files  # noqa: E402
from .net.transport import ReceiverConfig, UDPEndpoint  # noqa: E402
from .session import receive_files, run_receiver  # noqa: E402
