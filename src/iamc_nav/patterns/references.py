"""Recognise alias/method references under a cursor."""

from __future__ import annotations

import re
from dataclasses import dataclass

from iamc_nav.patterns.bindings import local_names_before

_EXPLICIT_CALL_RE = re.compile(r"([A-Za-z0-9_]\w*)_\(\s*([A-Za-z0-9_]\w*)\s*\)", re.ASCII)
_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_]\w*", re.ASCII)


@dataclass(slots=True, frozen=True)
class ReferenceMatch:
    """Alias/method pair recognised at a cursor, with its origin columns."""

    alias: str
    method: str
    prefer_current_file: bool
    origin_start: int
    origin_end: int


def explicit_call_at(line_text: str, character: int) -> ReferenceMatch | None:
    """Match `Alias_(method)` spans that contain the cursor column."""
    for match in _EXPLICIT_CALL_RE.finditer(line_text):
        if character < match.start() or character > match.end():
            continue
        return ReferenceMatch(
            alias=match.group(1),
            method=match.group(2),
            prefer_current_file=True,
            origin_start=match.start(2),
            origin_end=match.end(2),
        )
    return None


def identifier_at(line_text: str, character: int) -> tuple[str, int, int] | None:
    """Return the identifier touching the cursor column and its span."""
    for match in _IDENTIFIER_RE.finditer(line_text):
        if match.start() <= character <= match.end():
            return match.group(0), match.start(), match.end()
        if match.start() > character:
            break
    return None


def bound_local_at(
    text: str, line_start: int, line_text: str, character: int
) -> ReferenceMatch | None:
    """Match `Local_method` where `Local` was bound earlier by IAMC_USE_CLASS."""
    found = identifier_at(line_text, character)
    if found is None:
        return None
    word, start, end = found
    bound = local_names_before(text, line_start + start)
    if not bound:
        return None
    split = word.rfind("_")
    while split > 0:
        local = word[:split]
        method = word[split + 1 :]
        if method and local in bound:
            return ReferenceMatch(
                alias=local,
                method=method,
                prefer_current_file=False,
                origin_start=start,
                origin_end=end,
            )
        split = word.rfind("_", 0, split)
    return None


def reference_at(
    text: str, line_starts: tuple[int, ...], line: int, character: int
) -> ReferenceMatch | None:
    """Recognise the reference at a cursor; explicit calls take precedence."""
    if line < 0 or line >= len(line_starts) or character < 0:
        return None
    line_start = line_starts[line]
    line_end = line_starts[line + 1] - 1 if line + 1 < len(line_starts) else len(text)
    line_text = text[line_start:line_end].rstrip("\r")

    explicit = explicit_call_at(line_text, character)
    if explicit is not None:
        return explicit
    return bound_local_at(text, line_start, line_text, character)
