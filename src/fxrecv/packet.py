"""
fxrecv.packet

Wire format for the file transfer datagrams.

Every datagram is exactly one packet. The first byte is a status byte whose
two low bits carry all the meaning; the second byte names the file.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Iterable, Union

from .errors import InvalidEncoding, TooShort, TooShortData

__all__ = [
    "STATUS_HEADER",
    "STATUS_DATA",
    "STATUS_LAST",
    "DATA_HEADER_SIZE",
    "Header",
    "Data",
    "Packet",
    "decode_packet",
    "encode_header",
    "encode_data",
    "iter_file_datagrams",
]

STATUS_HEADER = 0
STATUS_DATA = 1
STATUS_LAST = 3

# Header layout:
#   status[u8], file_id[u8], file_name[utf-8, rest of datagram]
# Data layout:
#   status[u8], file_id[u8], chunk_index[u16], payload[rest of datagram]
_PREFIX = struct.Struct(">BB")
_DATA_HDR = struct.Struct(">BBH")
DATA_HEADER_SIZE = _DATA_HDR.size

MAX_FILE_ID = 0xFF
MAX_CHUNK_INDEX = 0xFFFF


@dataclass(frozen=True)
class Header:
    file_id: int
    file_name: str


@dataclass(frozen=True)
class Data:
    file_id: int
    chunk_index: int
    is_last: bool
    payload: bytes


Packet = Union[Header, Data]


def decode_packet(data: bytes) -> Packet:
    """
    Decode one datagram into a `Header` or `Data` packet.

    Raises `TooShort` for datagrams under two bytes, `TooShortData` for data
    datagrams without a full chunk index and `InvalidEncoding` when a header
    name is not valid UTF-8.
    """
    data = bytes(data)
    if len(data) < _PREFIX.size:
        raise TooShort("packet too short", length=len(data))

    status, file_id = _PREFIX.unpack_from(data, 0)
    if status % 2 == 0:
        try:
            name = data[_PREFIX.size:].decode("utf-8", errors="strict")
        except UnicodeDecodeError as exc:
            raise InvalidEncoding("file name is not valid UTF-8", length=len(data)) from exc
        return Header(file_id=int(file_id), file_name=name)

    if len(data) < _DATA_HDR.size:
        raise TooShortData("data packet too short", length=len(data))
    _status, _fid, chunk_index = _DATA_HDR.unpack_from(data, 0)
    return Data(
        file_id=int(file_id),
        chunk_index=int(chunk_index),
        is_last=status % 4 == STATUS_LAST,
        payload=data[_DATA_HDR.size:],
    )


def _check_file_id(file_id: int) -> int:
    fid = int(file_id)
    if not 0 <= fid <= MAX_FILE_ID:
        raise ValueError(f"file_id must fit in one byte, got {fid}")
    return fid


def encode_header(file_id: int, file_name: str) -> bytes:
    return _PREFIX.pack(STATUS_HEADER, _check_file_id(file_id)) + file_name.encode("utf-8")


def encode_data(file_id: int, chunk_index: int, payload: bytes, *, is_last: bool = False) -> bytes:
    idx = int(chunk_index)
    if not 0 <= idx <= MAX_CHUNK_INDEX:
        raise ValueError(f"chunk_index must fit in 16 bits, got {idx}")
    status = STATUS_LAST if is_last else STATUS_DATA
    return _DATA_HDR.pack(status, _check_file_id(file_id), idx) + bytes(payload)


def iter_file_datagrams(
    file_id: int,
    file_name: str,
    content: bytes,
    *,
    max_payload: int = 1028,
) -> Iterable[bytes]:
    """
    Yield the datagrams a sender emits for one file.

    Parameters
    ----------
    file_id : int
        Logical file identifier (0..255).
    file_name : str
        Destination name carried by the header datagram.
    content : bytes
        File content to split into chunks.
    max_payload : int, optional
        Maximum datagram size in bytes, data header included. Defaults to
        1028, the receive buffer size of the reference receiver.
    """
    header = encode_header(file_id, file_name)
    if len(header) > max_payload:
        raise ValueError("file name does not fit in one datagram")
    chunk_size = int(max_payload) - DATA_HEADER_SIZE
    if chunk_size <= 0:
        raise ValueError("max_payload too small to hold data header")

    content = bytes(content)
    total = max(1, int(math.ceil(len(content) / float(chunk_size))))
    if total - 1 > MAX_CHUNK_INDEX:
        raise ValueError("content needs more chunks than a 16-bit index allows")

    yield header
    for idx in range(total):
        chunk = content[idx * chunk_size:(idx + 1) * chunk_size]
        yield encode_data(file_id, idx, chunk, is_last=idx == total - 1)
