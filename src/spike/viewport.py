from __future__ import annotations

from .buffer import LineBuffer, cx_to_rx
from .models import EditorConfig


def scroll(cfg: EditorConfig, buf: LineBuffer) -> None:
    cfg.rx = 0
    row = buf.row_at(cfg.cy)
    if row is not None:
        cfg.rx = cx_to_rx(row, cfg.cx)

    if cfg.cy < cfg.rowoff:
        cfg.rowoff = cfg.cy
    if cfg.cy >= cfg.rowoff + cfg.screenrows:
        cfg.rowoff = cfg.cy - cfg.screenrows + 1
    if cfg.rx < cfg.coloff:
        cfg.coloff = cfg.rx
    if cfg.rx >= cfg.coloff + cfg.screencols:
        cfg.coloff = cfg.rx - cfg.screencols + 1
