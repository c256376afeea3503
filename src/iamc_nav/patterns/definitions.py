"""Definition-versus-declaration matching for `Alias_(method)(...)` shapes."""

from __future__ import annotations

import re

DEFAULT_LOOKAHEAD_CHARS = 4000


def definition_pattern(alias: str, method: str) -> re.Pattern[str]:
    """Compile the literal call shape `Alias_(method)(` for one alias/method."""
    return re.compile(rf"\b{re.escape(alias)}_\(\s*{re.escape(method)}\s*\)\s*\(")


def looks_like_definition(
    text: str, match_start: int, lookahead: int = DEFAULT_LOOKAHEAD_CHARS
) -> bool:
    """Return True when `{` appears before any `;` in the bounded window.

    No brace at all inside the window means not a definition, so a signature
    longer than the window is missed.
    """
    window = text[match_start : match_start + lookahead]
    brace = window.find("{")
    if brace == -1:
        return False
    semi = window.find(";")
    return semi == -1 or brace < semi


def find_definition(
    text: str,
    alias: str,
    method: str,
    lookahead: int = DEFAULT_LOOKAHEAD_CHARS,
) -> tuple[int, int] | None:
    """Return the `(start, end)` offsets of the first definition occurrence."""
    if not alias or not method:
        return None
    for match in definition_pattern(alias, method).finditer(text):
        if looks_like_definition(text, match.start(), lookahead):
            return match.start(), match.end()
    return None
