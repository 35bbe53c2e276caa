"""
fxrecv.store

In-memory reassembly state for every file of a transfer.

The store is a pure accumulator: packets only ever add or overwrite names,
chunk counts and chunk payloads. Nothing is removed until the process ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional

from .errors import BufferLimitExceeded
from .packet import Data, Header, Packet

__all__ = ["FileGroup", "ReassemblyStore", "is_done"]


@dataclass
class FileGroup:
    """
    Accumulated state for one file_id.

    `expected_count` is only known once the chunk flagged as last arrives.
    """

    file_id: int
    name: Optional[str] = None
    expected_count: Optional[int] = None
    chunks: Dict[int, bytes] = field(default_factory=dict)

    def is_complete(self) -> bool:
        return (
            self.name is not None
            and self.expected_count is not None
            and len(self.chunks) == self.expected_count
        )

    def missing_chunks(self) -> List[int]:
        """
        Chunk indices below `expected_count` not seen yet.

        Empty while the last chunk has not arrived.
        """
        if self.expected_count is None:
            return []
        return [i for i in range(self.expected_count) if i not in self.chunks]

    def buffered_bytes(self) -> int:
        return sum(len(p) for p in self.chunks.values())

    def assemble(self) -> bytes:
        return b"".join(self.chunks[idx] for idx in sorted(self.chunks))


class ReassemblyStore:
    """
    Collect packets for many files at once.

    Usage
    -----
    store = ReassemblyStore()
    store.apply(decode_packet(datagram))
    if store.is_done(3):
        write_all_files(store)
    """

    def __init__(self, *, max_buffered_bytes: Optional[int] = None) -> None:
        self._groups: Dict[int, FileGroup] = {}
        self._buffered = 0
        if max_buffered_bytes is not None and int(max_buffered_bytes) < 0:
            raise ValueError("max_buffered_bytes must be >= 0")
        self.max_buffered_bytes = int(max_buffered_bytes) if max_buffered_bytes is not None else None
        self.counters = {
            "packets": 0,
            "headers": 0,
            "data": 0,
            "overwrites": 0,
        }

    @property
    def groups(self) -> Mapping[int, FileGroup]:
        return self._groups

    @property
    def buffered_bytes(self) -> int:
        return self._buffered

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._groups

    def __getitem__(self, file_id: int) -> FileGroup:
        return self._groups[file_id]

    def __iter__(self) -> Iterator[FileGroup]:
        return iter(self._groups.values())

    def _group(self, file_id: int) -> FileGroup:
        group = self._groups.get(file_id)
        if group is None:
            group = FileGroup(file_id=file_id)
            self._groups[file_id] = group
        return group

    def apply(self, packet: Packet) -> FileGroup:
        """
        Fold one packet into the store and return the group it touched.
        """
        if isinstance(packet, Header):
            group = self._group(int(packet.file_id))
            group.name = packet.file_name
            self.counters["headers"] += 1
        elif isinstance(packet, Data):
            idx = int(packet.chunk_index)
            payload = bytes(packet.payload)
            existing = self._groups.get(int(packet.file_id))
            previous = existing.chunks.get(idx) if existing is not None else None
            grown = self._buffered + len(payload) - (len(previous) if previous is not None else 0)
            if self.max_buffered_bytes is not None and grown > self.max_buffered_bytes:
                raise BufferLimitExceeded(
                    f"buffering chunk {idx} of file {int(packet.file_id)} needs {grown} bytes, "
                    f"limit is {self.max_buffered_bytes}"
                )
            group = self._group(int(packet.file_id))
            if previous is not None:
                self.counters["overwrites"] += 1
            group.chunks[idx] = payload
            self._buffered = grown
            if packet.is_last:
                group.expected_count = idx + 1
            self.counters["data"] += 1
        else:
            raise TypeError(f"unsupported packet type: {type(packet).__name__}")
        self.counters["packets"] += 1
        return group

    def is_done(self, expected_file_count: int) -> bool:
        return is_done(self, expected_file_count)

    def describe_missing(self) -> str:
        """
        One line per incomplete group, for error messages.
        """
        lines = []
        for fid in sorted(self._groups):
            group = self._groups[fid]
            if group.is_complete():
                continue
            parts = []
            if group.name is None:
                parts.append("no header")
            if group.expected_count is None:
                parts.append(f"no last chunk ({len(group.chunks)} chunks buffered)")
            else:
                missing = group.missing_chunks()
                if missing:
                    parts.append(f"missing chunks {missing[:8]}{'...' if len(missing) > 8 else ''}")
                else:
                    parts.append("chunks beyond the last index")
            lines.append(f"file {fid}: " + ", ".join(parts))
        return "\n".join(lines)


def is_done(store: ReassemblyStore, expected_file_count: int) -> bool:
    """
    True once exactly `expected_file_count` files are known and all complete.
    """
    if len(store) != int(expected_file_count):
        return False
    return all(group.is_complete() for group in store)
