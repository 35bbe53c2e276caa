"""
Simple UDP sender for fxrecv: wait for the receiver's ready datagram, then
send each file as one header and its data datagrams.

Usage:
  python3 -m fxrecv --files 2 --out-dir received &
  python3 src/examples/loopback_sender.py --bind 127.0.0.1:6014 a.txt b.jpg
"""

import argparse
import random
import socket
from pathlib import Path

from fxrecv.packet import iter_file_datagrams


def main() -> None:
    ap = argparse.ArgumentParser(description="Send files to an fxrecv receiver (no retransmit).")
    ap.add_argument("files", nargs="+", help="Paths of files to send; file ids follow argument order.")
    ap.add_argument("--bind", default="127.0.0.1:6014", help="local ip:port the receiver is connected to")
    ap.add_argument("--payload", type=int, default=1028, help="max datagram size")
    ap.add_argument("--shuffle", action="store_true", help="send datagrams in random order")
    args = ap.parse_args()

    host, port = args.bind.split(":")
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind((host, int(port)))

    _ready, receiver = sock.recvfrom(65536)
    print(f"receiver ready at {receiver[0]}:{receiver[1]}")

    datagrams = []
    for file_id, path in enumerate(args.files):
        data = Path(path).read_bytes()
        datagrams.extend(iter_file_datagrams(file_id, Path(path).name, data, max_payload=args.payload))
    if args.shuffle:
        random.shuffle(datagrams)

    for dg in datagrams:
        sock.sendto(dg, receiver)
    print(f"sent {len(datagrams)} datagrams for {len(args.files)} files")


if __name__ == "__main__":
    main()
