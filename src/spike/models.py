from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Row:
    chars: str
    render: str = ""
    hl: list[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.chars)

    @property
    def rsize(self) -> int:
        return len(self.render)


@dataclass(slots=True)
class EditorConfig:
    cx: int = 0
    cy: int = 0
    rx: int = 0
    rowoff: int = 0
    coloff: int = 0
    screenrows: int = 0
    screencols: int = 0
    filename: str | None = None
    statusmsg: str = ""
    statusmsg_time: float = 0.0


@dataclass(slots=True)
class SearchSnapshot:
    cx: int
    cy: int
    coloff: int
    rowoff: int
