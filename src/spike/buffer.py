"""Line buffer: the rows of the document and every edit applied to them.

Rows hold one ``str`` code point per file byte (latin-1), so positions are
byte offsets. ``render`` and ``hl`` are always rebuilt from ``chars`` by
:func:`update_row`; nothing else writes them, apart from the search engine's
temporary match highlight.
"""
from __future__ import annotations

from typing import Iterable

from .constants import TAB_STOP
from .models import Row
from .syntax import update_syntax


def update_row(row: Row) -> None:
    out: list[str] = []
    idx = 0
    for ch in row.chars:
        if ch == "\t":
            out.append(" ")
            idx += 1
            while idx % TAB_STOP != 0:
                out.append(" ")
                idx += 1
        else:
            out.append(ch)
            idx += 1
    row.render = "".join(out)
    update_syntax(row)


def cx_to_rx(row: Row, cx: int) -> int:
    rx = 0
    for ch in row.chars[:cx]:
        if ch == "\t":
            rx += (TAB_STOP - 1) - (rx % TAB_STOP)
        rx += 1
    return rx


def rx_to_cx(row: Row, rx: int) -> int:
    cur_rx = 0
    for cx, ch in enumerate(row.chars):
        if ch == "\t":
            cur_rx += (TAB_STOP - 1) - (cur_rx % TAB_STOP)
        cur_rx += 1
        if cur_rx > rx:
            return cx
    return row.size


class LineBuffer:
    def __init__(self) -> None:
        self.rows: list[Row] = []
        self.dirty = 0

    @property
    def numrows(self) -> int:
        return len(self.rows)

    def row_at(self, y: int) -> Row | None:
        if 0 <= y < self.numrows:
            return self.rows[y]
        return None

    def load(self, lines: Iterable[bytes]) -> None:
        self.rows = []
        for line in lines:
            self.insert_row(self.numrows, line.decode("latin-1"))
        self.dirty = 0

    def insert_row(self, at: int, s: str) -> None:
        if at < 0 or at > self.numrows:
            return
        row = Row(chars=s)
        update_row(row)
        self.rows.insert(at, row)
        self.dirty += 1

    def del_row(self, at: int) -> None:
        if at < 0 or at >= self.numrows:
            return
        del self.rows[at]
        self.dirty += 1

    def rows_to_bytes(self) -> bytes:
        return "".join(f"{row.chars}\n" for row in self.rows).encode("latin-1")

    def row_insert_char(self, row: Row, at: int, c: str) -> None:
        if at < 0 or at > row.size:
            at = row.size
        row.chars = row.chars[:at] + c + row.chars[at:]
        update_row(row)
        self.dirty += 1

    def row_append_string(self, row: Row, s: str) -> None:
        row.chars += s
        update_row(row)
        self.dirty += 1

    def row_del_char(self, row: Row, at: int) -> None:
        if at < 0 or at >= row.size:
            return
        row.chars = row.chars[:at] + row.chars[at + 1 :]
        update_row(row)
        self.dirty += 1

    def insert_char(self, cy: int, cx: int, c: str) -> tuple[int, int]:
        if cy == self.numrows:
            self.insert_row(self.numrows, "")
        row = self.rows[cy]
        cx = min(cx, row.size)
        self.row_insert_char(row, cx, c)
        return cy, cx + 1

    def insert_newline(self, cy: int, cx: int) -> tuple[int, int]:
        row = self.row_at(cy)
        if cx == 0 or row is None:
            self.insert_row(cy, "")
        else:
            cx = min(cx, row.size)
            self.insert_row(cy + 1, row.chars[cx:])
            row.chars = row.chars[:cx]
            update_row(row)
        return cy + 1, 0

    def del_char(self, cy: int, cx: int) -> tuple[int, int]:
        row = self.row_at(cy)
        if row is None or (cx == 0 and cy == 0):
            return cy, cx

        if cx > 0:
            self.row_del_char(row, cx - 1)
            return cy, cx - 1

        prev = self.rows[cy - 1]
        newcx = prev.size
        self.row_append_string(prev, row.chars)
        self.del_row(cy)
        return cy - 1, newcx
