"""Offset to line/column mapping over precomputed line starts."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence

from iamc_nav.index.models import Position


def compute_line_starts(text: str) -> tuple[int, ...]:
    """Return offsets where each line begins; always starts with 0."""
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return tuple(starts)


def offset_to_position(line_starts: Sequence[int], offset: int) -> Position:
    """Map a flat character offset to a 0-based line/character position.

    Offsets at or beyond end-of-text clamp to the last line.
    """
    if offset < 0:
        raise ValueError("offset must be >= 0.")
    line = max(0, bisect_right(line_starts, offset) - 1)
    return Position(line=line, character=offset - line_starts[line])


def position_to_offset(line_starts: Sequence[int], position: Position) -> int:
    """Map a 0-based line/character position back to a flat offset."""
    if position.line < 0 or position.character < 0:
        raise ValueError("position line and character must be >= 0.")
    if position.line >= len(line_starts):
        raise ValueError(f"line {position.line} is past the last line.")
    return line_starts[position.line] + position.character
