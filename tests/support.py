from __future__ import annotations

import os
import unittest
from typing import Iterable

from spike.editor import Editor


class EditorTestCase(unittest.TestCase):
    def make_editor(
        self,
        lines: Iterable[str] = (),
        screenrows: int = 10,
        screencols: int = 40,
    ) -> Editor:
        out = os.open(os.devnull, os.O_WRONLY)
        self.addCleanup(os.close, out)
        editor = Editor(stdin_fd=-1, stdout_fd=out)
        editor.cfg.screenrows = screenrows
        editor.cfg.screencols = screencols
        editor.buf.load(line.encode("latin-1") for line in lines)
        return editor


def byte_source(data: bytes):
    it = iter(data)
    return lambda: next(it, None)
