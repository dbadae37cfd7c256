from __future__ import annotations

import atexit
import errno
import fcntl
import logging
import os
import re
import struct
import termios
from contextlib import AbstractContextManager
from typing import Callable

from .constants import (
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    DEL_KEY,
    END_KEY,
    ESC,
    HOME_KEY,
    PAGE_DOWN,
    PAGE_UP,
)

logger = logging.getLogger(__name__)

# Escape decoder states. START is entered after the ESC byte itself.
ESC_START = 0
ESC_CSI = 1
ESC_SS3 = 2
ESC_TILDE = 3

ESC_PREFIX_STATES = {
    ord("["): ESC_CSI,
    ord("O"): ESC_SS3,
}
CSI_FINAL_MAP = {
    ord("A"): ARROW_UP,
    ord("B"): ARROW_DOWN,
    ord("C"): ARROW_RIGHT,
    ord("D"): ARROW_LEFT,
    ord("H"): HOME_KEY,
    ord("F"): END_KEY,
}
SS3_FINAL_MAP = {
    ord("H"): HOME_KEY,
    ord("F"): END_KEY,
}
# Home and End each have two encodings depending on the terminal emulator.
CSI_TILDE_MAP = {
    ord("1"): HOME_KEY,
    ord("3"): DEL_KEY,
    ord("4"): END_KEY,
    ord("5"): PAGE_UP,
    ord("6"): PAGE_DOWN,
    ord("7"): HOME_KEY,
    ord("8"): END_KEY,
}
FINAL_MAPS = {
    ESC_CSI: CSI_FINAL_MAP,
    ESC_SS3: SS3_FINAL_MAP,
}

CURSOR_REPORT_RE = re.compile(rb"\x1b\[(\d+);(\d+)R")


def _read_byte_once(fd: int) -> int | None:
    try:
        data = os.read(fd, 1)
    except (BlockingIOError, InterruptedError):
        return None
    if not data:
        return None
    return data[0]


def _read_byte_blocking(fd: int) -> int:
    while True:
        c = _read_byte_once(fd)
        if c is not None:
            return c


def decode_escape(next_byte: Callable[[], int | None]) -> int:
    """Decode the bytes following an ESC into a key code.

    ``next_byte`` returns ``None`` when the read timed out, which means the
    user pressed a bare Escape. Anything unrecognised also decodes to ESC.
    """
    state = ESC_START
    seen: list[int] = []
    while True:
        b = next_byte()
        if b is None:
            return ESC
        seen.append(b)

        if state == ESC_START:
            state = ESC_PREFIX_STATES.get(b, -1)
            if state == -1:
                break
        elif state == ESC_TILDE:
            if b == ord("~"):
                key = CSI_TILDE_MAP.get(seen[-2])
                if key is not None:
                    return key
            break
        elif state == ESC_CSI and ord("0") <= b <= ord("9"):
            state = ESC_TILDE
        else:
            key = FINAL_MAPS[state].get(b)
            if key is not None:
                return key
            break

    logger.debug("unknown escape sequence %r", bytes(seen))
    return ESC


def read_key(fd: int) -> int:
    c = _read_byte_blocking(fd)
    if c != ESC:
        return c
    return decode_escape(lambda: _read_byte_once(fd))


def parse_cursor_report(buf: bytes) -> tuple[int, int]:
    match = CURSOR_REPORT_RE.match(buf)
    if not match:
        raise OSError(errno.EIO, "invalid cursor position response")
    return int(match.group(1)), int(match.group(2))


def get_cursor_position(ifd: int, ofd: int) -> tuple[int, int]:
    if os.write(ofd, b"\x1b[6n") != 4:
        raise OSError(errno.EIO, "cursor query write failed")

    buf = bytearray()
    while len(buf) < 31:
        c = _read_byte_once(ifd)
        if c is None:
            break
        buf.append(c)
        if c == ord("R"):
            break
    return parse_cursor_report(bytes(buf))


def get_window_size(ifd: int, ofd: int) -> tuple[int, int]:
    try:
        packed = fcntl.ioctl(ofd, termios.TIOCGWINSZ, struct.pack("HHHH", 0, 0, 0, 0))
        rows, cols, _, _ = struct.unpack("HHHH", packed)
        if cols:
            return rows, cols
    except OSError:
        logger.debug("TIOCGWINSZ failed, falling back to cursor query")

    if os.write(ofd, b"\x1b[999C\x1b[999B") != 12:
        raise OSError(errno.EIO, "window query write failed")
    return get_cursor_position(ifd, ofd)


class RawMode(AbstractContextManager["RawMode"]):
    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._orig: list | None = None

    def __enter__(self) -> "RawMode":
        if not os.isatty(self.fd):
            raise OSError(errno.ENOTTY, "stdin is not a tty")

        try:
            self._orig = termios.tcgetattr(self.fd)
            raw = termios.tcgetattr(self.fd)
        except termios.error as exc:
            raise OSError(exc.args[0], "tcgetattr") from exc
        atexit.register(self.restore)

        raw[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
        raw[1] &= ~termios.OPOST
        raw[2] |= termios.CS8
        raw[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        raw[6][termios.VMIN] = 0
        raw[6][termios.VTIME] = 1
        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, raw)
        except termios.error as exc:
            raise OSError(exc.args[0], "tcsetattr") from exc
        return self

    def restore(self) -> None:
        if self._orig is None:
            return
        orig, self._orig = self._orig, None
        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, orig)
        except termios.error as exc:
            raise OSError(exc.args[0], "tcsetattr") from exc

    def __exit__(self, exc_type, exc, tb) -> None:
        atexit.unregister(self.restore)
        self.restore()
