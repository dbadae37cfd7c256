from __future__ import annotations

import errno
import logging
import os
import signal
import sys
import time
from typing import Callable, Final

from .buffer import LineBuffer
from .constants import (
    ANSI_CLEAR_SCREEN,
    ANSI_CURSOR_HOME,
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    BACKSPACE,
    CTRL_F,
    CTRL_H,
    CTRL_L,
    CTRL_Q,
    CTRL_S,
    DEL_KEY,
    END_KEY,
    ENTER,
    ESC,
    HOME_KEY,
    PAGE_DOWN,
    PAGE_UP,
    QUIT_TIMES,
    TAB,
)
from .fileio import read_lines, write_all
from .log import configure_logging
from .models import EditorConfig
from .prompt import prompt
from .search import find
from .terminal import RawMode, get_window_size, read_key
from .ui import refresh_screen

logger = logging.getLogger(__name__)

STDIN_FD: Final[int] = 0
STDOUT_FD: Final[int] = 1


class Editor:
    def __init__(self, stdin_fd: int = STDIN_FD, stdout_fd: int = STDOUT_FD) -> None:
        self.cfg = EditorConfig()
        self.buf = LineBuffer()
        self.quit_times = QUIT_TIMES
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.key_handlers: dict[int, Callable[[], None]] = {
            CTRL_S: self.save,
            CTRL_F: self.find,
            CTRL_H: self.del_char,
            BACKSPACE: self.del_char,
            DEL_KEY: self.del_forward,
            ENTER: self.insert_newline,
            HOME_KEY: self.move_home,
            END_KEY: self.move_end,
            PAGE_UP: self.page_up,
            PAGE_DOWN: self.page_down,
            ARROW_UP: lambda: self.move_cursor(ARROW_UP),
            ARROW_DOWN: lambda: self.move_cursor(ARROW_DOWN),
            ARROW_LEFT: lambda: self.move_cursor(ARROW_LEFT),
            ARROW_RIGHT: lambda: self.move_cursor(ARROW_RIGHT),
            CTRL_L: self._noop,
            ESC: self._noop,
        }

    def update_window_size(self) -> None:
        try:
            rows, cols = get_window_size(self.stdin_fd, self.stdout_fd)
        except OSError as exc:
            raise OSError(exc.errno or errno.EIO, "Unable to query screen size") from exc
        self.cfg.screenrows = max(1, rows - 2)
        self.cfg.screencols = max(1, cols)
        logger.debug("window size %dx%d", cols, rows)

    def handle_sigwinch(self, _signum: int, _frame) -> None:
        self.update_window_size()
        self.refresh_screen()

    def set_status_message(self, msg: str) -> None:
        self.cfg.statusmsg = msg
        self.cfg.statusmsg_time = time.time()

    def read_key(self) -> int:
        return read_key(self.stdin_fd)

    def refresh_screen(self) -> None:
        refresh_screen(self)

    def open_file(self, filename: str) -> None:
        self.cfg.filename = filename
        self.buf.load(read_lines(filename))
        logger.info("opened %s (%d lines)", filename, self.buf.numrows)

    def save(self) -> None:
        if not self.cfg.filename:
            filename = prompt(self, "Save as: {} (ESC to cancel)")
            if filename is None:
                self.set_status_message("Save aborted")
                return
            self.cfg.filename = filename

        data = self.buf.rows_to_bytes()
        try:
            written = write_all(self.cfg.filename, data)
        except OSError as exc:
            logger.warning("saving %s failed: %s", self.cfg.filename, exc)
            self.set_status_message(f"Can't save! I/O error: {os.strerror(exc.errno or errno.EIO)}")
            return
        self.buf.dirty = 0
        logger.info("wrote %d bytes to %s", written, self.cfg.filename)
        self.set_status_message(f"{written} bytes written to disk")

    def find(self) -> None:
        find(self)

    def insert_char(self, c: int) -> None:
        self.cfg.cy, self.cfg.cx = self.buf.insert_char(self.cfg.cy, self.cfg.cx, chr(c & 0xFF))

    def insert_newline(self) -> None:
        self.cfg.cy, self.cfg.cx = self.buf.insert_newline(self.cfg.cy, self.cfg.cx)

    def del_char(self) -> None:
        self.cfg.cy, self.cfg.cx = self.buf.del_char(self.cfg.cy, self.cfg.cx)

    def del_forward(self) -> None:
        self.move_cursor(ARROW_RIGHT)
        self.del_char()

    def move_cursor(self, key: int) -> None:
        cfg = self.cfg
        row = self.buf.row_at(cfg.cy)

        if key == ARROW_LEFT:
            if cfg.cx != 0:
                cfg.cx -= 1
            elif cfg.cy > 0:
                cfg.cy -= 1
                cfg.cx = self.buf.rows[cfg.cy].size
        elif key == ARROW_RIGHT:
            if row is not None and cfg.cx < row.size:
                cfg.cx += 1
            elif row is not None and cfg.cx == row.size:
                cfg.cy += 1
                cfg.cx = 0
        elif key == ARROW_UP:
            if cfg.cy != 0:
                cfg.cy -= 1
        elif key == ARROW_DOWN:
            if cfg.cy < self.buf.numrows:
                cfg.cy += 1

        row = self.buf.row_at(cfg.cy)
        rowlen = row.size if row is not None else 0
        if cfg.cx > rowlen:
            cfg.cx = rowlen

    def move_home(self) -> None:
        self.cfg.cx = 0

    def move_end(self) -> None:
        row = self.buf.row_at(self.cfg.cy)
        if row is not None:
            self.cfg.cx = row.size

    def page_up(self) -> None:
        self.cfg.cy = self.cfg.rowoff
        for _ in range(self.cfg.screenrows):
            self.move_cursor(ARROW_UP)

    def page_down(self) -> None:
        cfg = self.cfg
        cfg.cy = min(cfg.rowoff + cfg.screenrows - 1, self.buf.numrows)
        for _ in range(cfg.screenrows):
            self.move_cursor(ARROW_DOWN)

    def _noop(self) -> None:
        return

    def quit(self) -> None:
        if self.buf.dirty and self.quit_times > 1:
            self.quit_times -= 1
            self.set_status_message(
                f"WARNING!!! File has unsaved changes. Press Ctrl-Q {self.quit_times} more times to quit."
            )
            return
        os.write(self.stdout_fd, (ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME).encode())
        raise SystemExit(0)

    def process_keypress(self) -> None:
        c = self.read_key()
        if c == CTRL_Q:
            self.quit()
            return

        handler = self.key_handlers.get(c)
        if handler is not None:
            handler()
        elif c == TAB or 32 <= c < 256:
            self.insert_char(c)

        self.quit_times = QUIT_TIMES


def die(context: str, exc: Exception) -> int:
    try:
        os.write(STDOUT_FD, (ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME).encode())
    except OSError:
        logger.debug("could not clear the screen")
    logger.error("%s: %s", context, exc, exc_info=exc)
    reason = getattr(exc, "strerror", None) or str(exc) or type(exc).__name__
    filename = getattr(exc, "filename", None)
    if filename:
        reason = f"{filename}: {reason}"
    print(f"spike: {context}: {reason}", file=sys.stderr)
    return 1


def run(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) > 1:
        print("Usage: spike [filename]", file=sys.stderr)
        return 1
    if not os.isatty(STDIN_FD) or not os.isatty(STDOUT_FD):
        print("spike: stdin/stdout must be a tty", file=sys.stderr)
        return 1

    configure_logging()
    editor = Editor()
    context = "terminal setup"
    try:
        with RawMode(STDIN_FD):
            context = "getWindowSize"
            editor.update_window_size()
            if args:
                context = "open"
                editor.open_file(args[0])
            signal.signal(signal.SIGWINCH, editor.handle_sigwinch)

            context = "read"
            editor.set_status_message("HELP: Ctrl-S = save | Ctrl-Q = quit | Ctrl-F = find")
            while True:
                editor.refresh_screen()
                editor.process_keypress()
    except SystemExit as exc:
        logger.info("exiting")
        if isinstance(exc.code, int):
            return exc.code
        return 0
    except Exception as exc:
        return die(context, exc)
