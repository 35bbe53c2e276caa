"""
fxrecv.__main__

CLI entry point.

This file is intentionally small:
- parse args
- dispatch to the public API in fxrecv
It must not contain decoding, reassembly or socket logic.
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

import fxrecv
from fxrecv.net.transport import ReceiverConfig, parse_addr
from fxrecv.packet import Data, Packet
from fxrecv.session import DEFAULT_EXPECTED_FILES

_COMMANDS = {"recv", "decode", "assemble", "datagrams"}


def _parse_hex_bytes(value: str) -> bytes:
    if value is None:
        raise ValueError("missing hex value")
    cleaned = value.strip()
    if cleaned.startswith(("0x", "0X")):
        cleaned = cleaned[2:]
    return bytes.fromhex(cleaned)


def _encode_bytes(data: bytes, fmt: str) -> str:
    if fmt == "hex":
        return data.hex()
    if fmt == "base64":
        return base64.b64encode(data).decode("ascii")
    raise ValueError(f"unsupported format: {fmt}")


def _read_input_bytes(*, hex_str: Optional[str], b64_str: Optional[str], path: Optional[str]) -> bytes:
    provided = [hex_str is not None, b64_str is not None, path is not None]
    if sum(provided) != 1:
        raise ValueError("provide exactly one of --data-hex, --data-base64, or --input")
    if path is not None:
        return Path(path).read_bytes()
    if hex_str is not None:
        return _parse_hex_bytes(hex_str)
    return base64.b64decode(b64_str.encode("ascii"))


def _iter_encoded_lines(path: Optional[str], fmt: str) -> Iterable[bytes]:
    text = Path(path).read_text(encoding="ascii") if path else sys.stdin.read()
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if fmt == "hex":
            yield _parse_hex_bytes(line)
        elif fmt == "base64":
            yield base64.b64decode(line.encode("ascii"))
        else:
            raise ValueError(f"unsupported line format: {fmt}")


def _packet_to_json(packet: Packet) -> dict:
    if isinstance(packet, Data):
        return {
            "type": "data",
            "file_id": packet.file_id,
            "chunk_index": packet.chunk_index,
            "is_last": packet.is_last,
            "payload_len": len(packet.payload),
            "payload_hex": packet.payload.hex(),
        }
    return {"type": "header", "file_id": packet.file_id, "file_name": packet.file_name}


def _progress_dot(_packet: Packet) -> None:
    sys.stdout.write(".")
    sys.stdout.flush()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m fxrecv",
        description="Receive files sent as header/data datagrams and write them to disk.",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity on stderr (default: WARNING).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_recv = sub.add_parser("recv", help="Receive a transfer over UDP (default command).")
    p_recv.add_argument("--bind", default="0.0.0.0:7077", help="local ip:port to bind")
    p_recv.add_argument("--peer", default="127.0.0.1:6014", help="sender ip:port")
    p_recv.add_argument("--files", type=int, default=DEFAULT_EXPECTED_FILES,
                        help="Number of files in the transfer.")
    p_recv.add_argument("--out-dir", default=".", help="Directory file names are relative to.")
    p_recv.add_argument("--max-datagram", type=int, default=1028)
    p_recv.add_argument("--ready-size", type=int, default=1028, help="Size of the ready datagram.")
    p_recv.add_argument("--timeout", type=float, default=None, help="Seconds to wait per datagram (default: forever).")
    p_recv.add_argument("--max-buffered-bytes", type=int, default=None,
                        help="Abort when buffered chunk bytes exceed this (default: unbounded).")
    p_recv.add_argument("--no-progress", action="store_true", help="Do not print one dot per packet.")

    p_dec = sub.add_parser("decode", help="Decode one datagram and print it as JSON.")
    p_dec_group = p_dec.add_mutually_exclusive_group(required=True)
    p_dec_group.add_argument("--data-hex", default=None)
    p_dec_group.add_argument("--data-base64", default=None)
    p_dec_group.add_argument("--input", default=None, help="Read raw datagram bytes from file.")

    p_asm = sub.add_parser("assemble", help="Reassemble files from encoded datagram lines.")
    p_asm.add_argument("--input", default=None, help="Read encoded datagram lines from file (default: stdin).")
    p_asm.add_argument("--format", choices=["hex", "base64"], default="hex")
    p_asm.add_argument("--files", type=int, default=DEFAULT_EXPECTED_FILES)
    p_asm.add_argument("--out-dir", default=".")
    p_asm.add_argument("--max-buffered-bytes", type=int, default=None)

    p_dg = sub.add_parser("datagrams", help="Split a file into encoded datagram lines.")
    p_dg.add_argument("path", help="File to split.")
    p_dg.add_argument("--file-id", type=int, required=True)
    p_dg.add_argument("--name", default=None, help="Destination name (default: basename of path).")
    p_dg.add_argument("--max-payload", type=int, default=1028)
    p_dg.add_argument("--format", choices=["hex", "base64"], default="hex")
    p_dg.add_argument("--out", default=None, help="Write lines to this file (default: stdout).")

    return p.parse_args(argv)


def _run(args: argparse.Namespace) -> int:
    if args.cmd == "recv":
        bind_host, bind_port = parse_addr(args.bind)
        peer_host, peer_port = parse_addr(args.peer)
        config = ReceiverConfig(
            bind_host=bind_host,
            bind_port=bind_port,
            peer_host=peer_host,
            peer_port=peer_port,
            max_datagram=int(args.max_datagram),
            ready_size=int(args.ready_size),
            timeout=args.timeout,
        )
        try:
            paths = fxrecv.run_receiver(
                config,
                expected_files=int(args.files),
                out_dir=args.out_dir,
                max_buffered_bytes=args.max_buffered_bytes,
                on_packet=None if args.no_progress else _progress_dot,
            )
        finally:
            if not args.no_progress:
                print()
        for path in paths:
            print(path)
        return 0

    if args.cmd == "decode":
        data = _read_input_bytes(hex_str=args.data_hex, b64_str=args.data_base64, path=args.input)
        print(json.dumps(_packet_to_json(fxrecv.decode_packet(data))))
        return 0

    if args.cmd == "assemble":
        store = fxrecv.receive_files(
            _iter_encoded_lines(args.input, args.format),
            expected_files=int(args.files),
            max_buffered_bytes=args.max_buffered_bytes,
        )
        for path in fxrecv.write_all_files(store, root=args.out_dir):
            print(path)
        return 0

    if args.cmd == "datagrams":
        content = Path(args.path).read_bytes()
        name = args.name or os.path.basename(args.path)
        lines = [
            _encode_bytes(dg, args.format)
            for dg in fxrecv.iter_file_datagrams(int(args.file_id), name, content, max_payload=int(args.max_payload))
        ]
        text = "\n".join(lines) + ("\n" if lines else "")
        if args.out:
            Path(args.out).write_text(text, encoding="ascii")
        else:
            sys.stdout.write(text)
        return 0

    raise SystemExit(f"unknown command: {args.cmd}")


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    # Bare invocation (or recv options only) means "recv".
    split = 0
    if argv[:1] == ["--log-level"]:
        split = 2
    elif argv and argv[0].startswith("--log-level="):
        split = 1
    rest = argv[split:]
    if not rest or rest[0] not in _COMMANDS | {"-h", "--help"}:
        argv = argv[:split] + ["recv"] + rest

    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        return _run(args)
    except (fxrecv.ReceiverError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
