from __future__ import annotations

import errno
import os


def read_lines(path: str) -> list[bytes]:
    lines: list[bytes] = []
    with open(path, "rb") as f:
        for line in f:
            if line.endswith(b"\n"):
                line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
            lines.append(line)
    return lines


def write_all(path: str, data: bytes) -> int:
    fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
    try:
        os.ftruncate(fd, len(data))
        written = 0
        while written < len(data):
            n = os.write(fd, data[written:])
            if n <= 0:
                raise OSError(errno.EIO, "short write")
            written += n
    finally:
        os.close(fd)
    return written
