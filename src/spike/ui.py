from __future__ import annotations

import os
import time
from typing import TYPE_CHECKING

from .constants import (
    ANSI_CLEAR_LINE,
    ANSI_CURSOR_HOME,
    ANSI_DEFAULT_FG,
    ANSI_HIDE_CURSOR,
    ANSI_INVERT_ON,
    ANSI_RESET,
    ANSI_SHOW_CURSOR,
    HL_NORMAL,
    SPIKE_VERSION,
    STATUS_MSG_TIMEOUT,
)
from .models import Row
from .syntax import syntax_to_color
from .viewport import scroll

if TYPE_CHECKING:
    from .editor import Editor


def draw_welcome(ab: list[str], screencols: int) -> None:
    welcome = f"Spike editor -- version {SPIKE_VERSION}"
    if len(welcome) > screencols:
        welcome = welcome[:screencols]
    padding = (screencols - len(welcome)) // 2
    if padding:
        ab.append("~")
        padding -= 1
    if padding > 0:
        ab.append(" " * padding)
    ab.append(welcome)


def draw_row(ab: list[str], row: Row, coloff: int, screencols: int) -> None:
    chars = row.render[coloff : coloff + screencols]
    hl = row.hl[coloff : coloff + screencols]
    current_color = -1
    for ch, h in zip(chars, hl):
        code = ord(ch)
        if code < 32 or code == 127:
            sym = chr(ord("@") + code) if code <= 26 else "?"
            ab.append(ANSI_INVERT_ON)
            ab.append(sym)
            ab.append(ANSI_RESET)
            if current_color != -1:
                ab.append(f"\x1b[{current_color}m")
        elif h == HL_NORMAL:
            if current_color != -1:
                ab.append(ANSI_DEFAULT_FG)
                current_color = -1
            ab.append(ch)
        else:
            color = syntax_to_color(h)
            if color != current_color:
                ab.append(f"\x1b[{color}m")
                current_color = color
            ab.append(ch)
    ab.append(ANSI_DEFAULT_FG)


def draw_rows(ab: list[str], editor: Editor) -> None:
    cfg = editor.cfg
    buf = editor.buf
    for y in range(cfg.screenrows):
        filerow = cfg.rowoff + y
        if filerow < buf.numrows:
            draw_row(ab, buf.rows[filerow], cfg.coloff, cfg.screencols)
        elif buf.numrows == 0 and y == cfg.screenrows // 3:
            draw_welcome(ab, cfg.screencols)
        else:
            ab.append("~")
        ab.append(ANSI_CLEAR_LINE)
        ab.append("\r\n")


def status_right(editor: Editor) -> str:
    cfg = editor.cfg
    numrows = editor.buf.numrows
    rstatus = f"{cfg.cy + 1}/{numrows}"
    if numrows > cfg.screenrows:
        pct = min(cfg.cy + 1, numrows) * 100 // numrows
        rstatus += f" {pct}%"
    return rstatus


def draw_status_bar(ab: list[str], editor: Editor) -> None:
    cfg = editor.cfg
    filename = cfg.filename if cfg.filename else "[No Name]"
    modified = "(modified)" if editor.buf.dirty else ""
    status = f"{filename:.20} - {editor.buf.numrows} lines {modified}"
    rstatus = status_right(editor)
    if len(status) > cfg.screencols:
        status = status[: cfg.screencols]
    ab.append(ANSI_INVERT_ON)
    ab.append(status)
    fill = len(status)
    while fill < cfg.screencols:
        if cfg.screencols - fill == len(rstatus):
            ab.append(rstatus)
            break
        ab.append(" ")
        fill += 1
    ab.append(ANSI_RESET)
    ab.append("\r\n")


def draw_message_bar(ab: list[str], editor: Editor) -> None:
    cfg = editor.cfg
    ab.append(ANSI_CLEAR_LINE)
    if cfg.statusmsg and time.time() - cfg.statusmsg_time < STATUS_MSG_TIMEOUT:
        ab.append(cfg.statusmsg[: cfg.screencols])


def build_frame(editor: Editor) -> bytes:
    cfg = editor.cfg
    scroll(cfg, editor.buf)

    ab: list[str] = [ANSI_HIDE_CURSOR, ANSI_CURSOR_HOME]
    draw_rows(ab, editor)
    draw_status_bar(ab, editor)
    draw_message_bar(ab, editor)
    ab.append(f"\x1b[{cfg.cy - cfg.rowoff + 1};{cfg.rx - cfg.coloff + 1}H")
    ab.append(ANSI_SHOW_CURSOR)
    return "".join(ab).encode("latin-1", errors="replace")


def refresh_screen(editor: Editor) -> None:
    os.write(editor.stdout_fd, build_frame(editor))
