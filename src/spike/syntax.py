from __future__ import annotations

from .constants import HL_MATCH, HL_NORMAL, HL_NUMBER
from .models import Row

HL_COLORS = {
    HL_NUMBER: 31,
    HL_MATCH: 34,
}


def syntax_to_color(hl: int) -> int:
    return HL_COLORS.get(hl, 37)


def update_syntax(row: Row) -> None:
    row.hl = [HL_NUMBER if "0" <= ch <= "9" else HL_NORMAL for ch in row.render]
