from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .buffer import rx_to_cx
from .constants import (
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    ENTER,
    ESC,
    HL_MATCH,
)
from .models import SearchSnapshot
from .prompt import prompt

if TYPE_CHECKING:
    from .editor import Editor

logger = logging.getLogger(__name__)


class SearchSession:
    """Incremental search, driven one keystroke at a time by the prompt."""

    def __init__(self, editor: Editor) -> None:
        self.editor = editor
        self.last_match = -1
        self.direction = 1
        self.saved_hl_line = -1
        self.saved_hl: list[int] | None = None

        cfg = editor.cfg
        self.saved = SearchSnapshot(cfg.cx, cfg.cy, cfg.coloff, cfg.rowoff)

    def restore_highlight(self) -> None:
        row = self.editor.buf.row_at(self.saved_hl_line)
        if self.saved_hl is not None and row is not None:
            row.hl = self.saved_hl
        self.saved_hl = None
        self.saved_hl_line = -1

    def restore_cursor(self) -> None:
        cfg = self.editor.cfg
        cfg.cx = self.saved.cx
        cfg.cy = self.saved.cy
        cfg.coloff = self.saved.coloff
        cfg.rowoff = self.saved.rowoff

    def next_match(self, query: str) -> tuple[int, int] | None:
        rows = self.editor.buf.rows
        current = self.last_match
        for _ in range(len(rows)):
            current = (current + self.direction) % len(rows)
            offset = rows[current].render.find(query)
            if offset != -1:
                return current, offset
        return None

    def __call__(self, query: str, key: int) -> None:
        self.restore_highlight()

        if key in (ENTER, ESC):
            self.last_match = -1
            self.direction = 1
            return
        if key in (ARROW_RIGHT, ARROW_DOWN):
            self.direction = 1
        elif key in (ARROW_LEFT, ARROW_UP):
            self.direction = -1
        else:
            self.last_match = -1
            self.direction = 1

        if self.last_match == -1:
            self.direction = 1
        if not query:
            return
        match = self.next_match(query)
        if match is None:
            return

        filerow, offset = match
        logger.debug("search %r matched row %d at %d", query, filerow, offset)
        buf = self.editor.buf
        cfg = self.editor.cfg
        row = buf.rows[filerow]
        self.last_match = filerow
        cfg.cy = filerow
        cfg.cx = rx_to_cx(row, offset)
        # Pushed past the end so the next scroll puts the match on the top line.
        cfg.rowoff = buf.numrows

        self.saved_hl_line = filerow
        self.saved_hl = row.hl.copy()
        for i in range(offset, min(offset + len(query), row.rsize)):
            row.hl[i] = HL_MATCH


def find(editor: Editor) -> None:
    session = SearchSession(editor)
    query = prompt(editor, "Search: {} (Use ESC/Arrows/Enter)", session)
    if query is None:
        session.restore_cursor()
