"""End-to-end sessions: run ``python -m spike`` on a pty and drive it with keys."""
from __future__ import annotations

import fcntl
import os
import pty
import select
import signal
import struct
import sys
import tempfile
import termios
import time
import unittest
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SPIKE = [sys.executable, "-m", "spike"]

KEY_BYTES: dict[str, bytes] = {
    "ENTER": b"\r",
    "ESC": b"\x1b",
    "BACKSPACE": b"\x7f",
    "UP": b"\x1b[A",
    "DOWN": b"\x1b[B",
    "RIGHT": b"\x1b[C",
    "LEFT": b"\x1b[D",
    "HOME": b"\x1b[H",
    "END": b"\x1b[F",
    "DEL": b"\x1b[3~",
}


def ctrl(letter: str) -> bytes:
    return bytes([ord(letter.upper()) & 0x1F])


@dataclass(slots=True)
class SessionResult:
    status: int | None
    timed_out: bool
    transcript: bytes

    @property
    def exit_code(self) -> int | None:
        if self.status is None or not os.WIFEXITED(self.status):
            return None
        return os.WEXITSTATUS(self.status)


def read_ready(fd: int, sink: bytearray, duration_s: float) -> None:
    end = time.time() + duration_s
    while time.time() < end:
        readable, _, _ = select.select([fd], [], [], 0.02)
        if fd not in readable:
            continue
        try:
            data = os.read(fd, 65536)
        except OSError:
            break
        if not data:
            break
        sink.extend(data)


def wait_for(fd: int, sink: bytearray, marker: bytes, timeout_s: float) -> None:
    deadline = time.time() + timeout_s
    while marker not in sink and time.time() < deadline:
        read_ready(fd, sink, 0.05)


def run_session(args: list[str], keys: list[bytes], timeout_s: float = 5.0) -> SessionResult:
    pid, fd = pty.fork()
    if pid == 0:
        fcntl.ioctl(0, termios.TIOCSWINSZ, struct.pack("HHHH", 24, 80, 0, 0))
        env = dict(os.environ, PYTHONPATH=str(ROOT / "src"))
        os.execvpe(SPIKE[0], SPIKE + args, env)

    transcript = bytearray()
    status: int | None = None
    timed_out = False
    try:
        wait_for(fd, transcript, b"\x1b[?25h", timeout_s)
        for key in keys:
            os.write(fd, key)
            time.sleep(0.06)
            read_ready(fd, transcript, 0.1)

        deadline = time.time() + timeout_s
        while time.time() < deadline:
            read_ready(fd, transcript, 0.05)
            wpid, wstatus = os.waitpid(pid, os.WNOHANG)
            if wpid == pid:
                status = wstatus
                break

        if status is None:
            timed_out = True
            os.kill(pid, signal.SIGKILL)
            _, status = os.waitpid(pid, 0)
    finally:
        try:
            os.close(fd)
        except OSError:
            pass
    return SessionResult(status=status, timed_out=timed_out, transcript=bytes(transcript))


class PtySessionTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)

    def test_edit_save_and_quit(self) -> None:
        path = self.dir / "doc.txt"
        path.write_bytes(b"hello\nworld\n")
        keys = [KEY_BYTES["END"], b"!", KEY_BYTES["DOWN"], KEY_BYTES["HOME"], b"> ", ctrl("s"), ctrl("q")]
        result = run_session([str(path)], keys)
        self.assertFalse(result.timed_out)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(path.read_bytes(), b"hello!\n> world\n")
        self.assertIn(b"bytes written to disk", result.transcript)

    def test_dirty_quit_needs_confirmation(self) -> None:
        path = self.dir / "doc.txt"
        path.write_bytes(b"x\n")
        result = run_session([str(path)], [b"y", ctrl("q"), ctrl("q"), ctrl("q")])
        self.assertFalse(result.timed_out)
        self.assertEqual(result.exit_code, 0)
        self.assertIn(b"more times to quit", result.transcript)
        self.assertEqual(path.read_bytes(), b"x\n")

    def test_missing_file_is_fatal(self) -> None:
        result = run_session([str(self.dir / "nope" / "missing.txt")], [])
        self.assertFalse(result.timed_out)
        self.assertEqual(result.exit_code, 1)
        self.assertIn(b"spike: open:", result.transcript)


if __name__ == "__main__":
    unittest.main()
