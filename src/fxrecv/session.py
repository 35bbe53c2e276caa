"""
fxrecv.session

Blocking receive loop: decode, apply, check completion, then flush.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from .errors import IncompleteTransfer
from .net.transport import ReceiverConfig, UDPEndpoint, iter_datagrams
from .packet import Packet, decode_packet
from .store import ReassemblyStore
from .writer import FileWriter, Sink

__all__ = ["DEFAULT_EXPECTED_FILES", "receive_files", "run_receiver"]

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_FILES = 3


def receive_files(
    datagrams: Iterable[bytes],
    *,
    expected_files: int = DEFAULT_EXPECTED_FILES,
    store: Optional[ReassemblyStore] = None,
    max_buffered_bytes: Optional[int] = None,
    on_packet: Optional[Callable[[Packet], None]] = None,
) -> ReassemblyStore:
    """
    Consume datagrams until `expected_files` files are complete.

    Decode errors propagate unchanged; one malformed datagram ends the
    session. Raises `IncompleteTransfer` when `datagrams` is exhausted first.
    """
    if int(expected_files) < 1:
        raise ValueError("expected_files must be >= 1")
    if store is None:
        store = ReassemblyStore(max_buffered_bytes=max_buffered_bytes)
    elif max_buffered_bytes is not None:
        raise ValueError("pass max_buffered_bytes to the ReassemblyStore, not alongside store=")

    for datagram in datagrams:
        packet = decode_packet(datagram)
        was_complete = packet.file_id in store and store[packet.file_id].is_complete()
        group = store.apply(packet)
        logger.debug("applied %s for file %d", type(packet).__name__, packet.file_id)
        if on_packet is not None:
            on_packet(packet)
        if group.is_complete() and not was_complete:
            logger.info("file %d (%s) complete, %d chunks", group.file_id, group.name, len(group.chunks))
        if store.is_done(expected_files):
            logger.info(
                "all %d files complete after %d packets", int(expected_files), store.counters["packets"]
            )
            return store

    missing = store.describe_missing()
    raise IncompleteTransfer(
        f"datagram source ended with {len(store)}/{int(expected_files)} files known"
        + (f"\n{missing}" if missing else "")
    )


def run_receiver(
    config: Optional[ReceiverConfig] = None,
    *,
    expected_files: int = DEFAULT_EXPECTED_FILES,
    out_dir: str = ".",
    max_buffered_bytes: Optional[int] = None,
    on_packet: Optional[Callable[[Packet], None]] = None,
    sink: Optional[Sink] = None,
    endpoint: Optional[UDPEndpoint] = None,
) -> List[str]:
    """
    Receive a whole transfer over UDP and write the files under `out_dir`.

    Returns the written paths. The output directory is prepared before the
    first datagram is read.
    """
    writer = FileWriter(out_dir, sink=sink)
    if endpoint is None:
        endpoint = UDPEndpoint(config or ReceiverConfig())
    with endpoint:
        endpoint.send_ready()
        store = receive_files(
            iter_datagrams(endpoint),
            expected_files=expected_files,
            max_buffered_bytes=max_buffered_bytes,
            on_packet=on_packet,
        )
    return writer.write_all(store)
