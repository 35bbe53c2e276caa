from __future__ import annotations

import json
import socket
import tempfile
import threading
from pathlib import Path

from fxrecv.__main__ import main
from fxrecv.packet import encode_data, encode_header, iter_file_datagrams


def _udp_sock() -> socket.socket:
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    except PermissionError as exc:
        import unittest

        raise unittest.SkipTest(f"UDP socket not permitted: {exc}") from exc
    s.bind(("127.0.0.1", 0))
    return s


def _serve_once(sock: socket.socket, datagrams: list[bytes]) -> threading.Thread:
    def run() -> None:
        _ready, receiver = sock.recvfrom(4096)
        for dg in datagrams:
            sock.sendto(dg, receiver)

    t = threading.Thread(target=run, daemon=True)
    t.start()
    return t


def test_decode_header_hex(capsys) -> None:
    rc = main(["decode", "--data-hex", "0007" + b"foo.txt".hex()])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"type": "header", "file_id": 7, "file_name": "foo.txt"}


def test_decode_data_hex(capsys) -> None:
    rc = main(["decode", "--data-hex", "030500010909"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["type"] == "data"
    assert out["chunk_index"] == 1
    assert out["is_last"] is True
    assert out["payload_hex"] == "0909"


def test_decode_error_exit_status(capsys) -> None:
    rc = main(["decode", "--data-hex", "01"])
    assert rc == 1
    assert "too short" in capsys.readouterr().err


def test_datagrams_then_assemble(capsys) -> None:
    with tempfile.TemporaryDirectory() as td:
        tmp = Path(td)
        src_a = tmp / "a.bin"
        src_b = tmp / "b.txt"
        src_a.write_bytes(bytes(range(200)) * 3)
        src_b.write_bytes(b"hello world\n")
        lines_a = tmp / "a.lines"
        lines_b = tmp / "b.lines"

        assert main(["datagrams", str(src_a), "--file-id", "1", "--max-payload", "50", "--out", str(lines_a)]) == 0
        assert main(["datagrams", str(src_b), "--file-id", "2", "--name", "renamed.txt", "--out", str(lines_b)]) == 0

        # Interleave the two captures, data before headers.
        a = lines_a.read_text(encoding="ascii").splitlines()
        b = lines_b.read_text(encoding="ascii").splitlines()
        mixed = tmp / "mixed.lines"
        mixed.write_text("\n".join(list(reversed(a)) + b[::-1]) + "\n", encoding="ascii")

        out_dir = tmp / "out"
        capsys.readouterr()
        rc = main(["assemble", "--input", str(mixed), "--files", "2", "--out-dir", str(out_dir)])
        assert rc == 0
        printed = capsys.readouterr().out.split()
        assert len(printed) == 2
        assert (out_dir / "a.bin").read_bytes() == src_a.read_bytes()
        assert (out_dir / "renamed.txt").read_bytes() == b"hello world\n"


def test_assemble_incomplete_exit_status(capsys) -> None:
    with tempfile.TemporaryDirectory() as td:
        lines = Path(td) / "one.lines"
        dgs = list(iter_file_datagrams(0, "x", b"abc"))
        lines.write_text(dgs[0].hex() + "\n", encoding="ascii")
        rc = main(["assemble", "--input", str(lines), "--files", "1", "--out-dir", td])
        assert rc == 1
        assert "file 0: no last chunk" in capsys.readouterr().err


def test_recv_into_missing_out_dir(capsys) -> None:
    sender = _udp_sock()
    sender.settimeout(5.0)
    host, port = sender.getsockname()[:2]
    datagrams = list(iter_file_datagrams(0, "a.txt", b"payload " * 300))
    worker = _serve_once(sender, datagrams)
    try:
        with tempfile.TemporaryDirectory() as td:
            out_dir = Path(td, "new_dir")
            rc = main([
                "recv",
                "--bind", "127.0.0.1:0",
                "--peer", f"{host}:{port}",
                "--files", "1",
                "--out-dir", str(out_dir),
                "--timeout", "5",
            ])
            out = capsys.readouterr().out
            assert rc == 0
            assert (out_dir / "a.txt").read_bytes() == b"payload " * 300
            assert out.count(".") >= len(datagrams)
            assert str(out_dir / "a.txt") in out
    finally:
        worker.join(timeout=5.0)
        sender.close()


def test_recv_nul_in_name_fails_cleanly(capsys) -> None:
    sender = _udp_sock()
    sender.settimeout(5.0)
    host, port = sender.getsockname()[:2]
    worker = _serve_once(sender, [encode_header(0, "a\x00b"), encode_data(0, 0, b"x", is_last=True)])
    try:
        with tempfile.TemporaryDirectory() as td:
            rc = main([
                "recv",
                "--bind", "127.0.0.1:0",
                "--peer", f"{host}:{port}",
                "--files", "1",
                "--out-dir", td,
                "--timeout", "5",
                "--no-progress",
            ])
            assert rc == 1
            assert "error:" in capsys.readouterr().err
    finally:
        worker.join(timeout=5.0)
        sender.close()


def test_bad_user_input_exit_status(capsys) -> None:
    assert main(["decode", "--data-hex", "zz"]) == 1
    assert capsys.readouterr().err.startswith("error:")

    assert main(["recv", "--bind", "nohostport", "--no-progress"]) == 1
    assert capsys.readouterr().err.startswith("error:")

    with tempfile.TemporaryDirectory() as td:
        lines = Path(td) / "x.lines"
        lines.write_text(encode_header(0, "x").hex() + "\n", encoding="ascii")
        assert main(["assemble", "--input", str(lines), "--files", "0", "--out-dir", td]) == 1
        assert "expected_files" in capsys.readouterr().err
