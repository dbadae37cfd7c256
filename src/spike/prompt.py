from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .constants import BACKSPACE, CTRL_H, DEL_KEY, ENTER, ESC, QUERY_LEN

if TYPE_CHECKING:
    from .editor import Editor


class PromptCallback(Protocol):
    """Called after every keystroke read by :func:`prompt`."""

    def __call__(self, query: str, key: int) -> None: ...


def prompt(editor: Editor, template: str, callback: PromptCallback | None = None) -> str | None:
    """Read a line of input in the message bar.

    ``template`` is formatted with the input typed so far. Returns ``None``
    when the user presses Escape. Enter is ignored until something was typed.
    """
    text = ""
    while True:
        editor.set_status_message(template.format(text))
        editor.refresh_screen()

        c = editor.read_key()
        if c in (DEL_KEY, CTRL_H, BACKSPACE):
            text = text[:-1]
        elif c == ESC:
            editor.set_status_message("")
            if callback is not None:
                callback(text, c)
            return None
        elif c == ENTER:
            if text:
                editor.set_status_message("")
                if callback is not None:
                    callback(text, c)
                return text
        elif 32 <= c < 127 and len(text) < QUERY_LEN:
            text += chr(c)

        if callback is not None:
            callback(text, c)
