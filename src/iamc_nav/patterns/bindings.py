"""Scanners for alias-introducing directives."""

from __future__ import annotations

import re
from dataclasses import dataclass

# #define Kernel_(fn) iam_Kernel_##fn
# #define Shape_(fn)  iam_geometry_Shape##_##fn
_ALIAS_DEFINE_RE = re.compile(
    r"^[ \t]*#[ \t]*define[ \t]+([A-Za-z0-9_]\w*)_[ \t]*\([ \t]*fn[ \t]*\)"
    r"(?:[ \t]+|[ \t]*\\\r?\n[ \t]*)([A-Za-z0-9_]\w*)",
    re.MULTILINE | re.ASCII,
)
_USE_CLASS_RE = re.compile(
    r"\bIAMC_USE_CLASS\s*\(\s*([A-Za-z0-9_]\w*)\s*,\s*([A-Za-z0-9_]\w*)\s*\)",
    re.ASCII,
)


@dataclass(slots=True, frozen=True)
class LocalBinding:
    """`IAMC_USE_CLASS(global, Local)` directive inside one document."""

    local: str
    global_prefix: str
    offset: int


def scan_alias_bindings(text: str) -> list[tuple[str, str]]:
    """Return `(alias, global_prefix)` pairs in encounter order.

    The prefix is the first expansion token without the underscores that
    precede `##`, so `iam_Kernel_##fn` yields `iam_Kernel`.
    """
    return [
        (match.group(1), match.group(2).rstrip("_") or match.group(2))
        for match in _ALIAS_DEFINE_RE.finditer(text)
    ]


def scan_local_bindings(text: str) -> list[LocalBinding]:
    """Return local class bindings in encounter order."""
    return [
        LocalBinding(local=match.group(2), global_prefix=match.group(1), offset=match.start())
        for match in _USE_CLASS_RE.finditer(text)
    ]


def local_names_before(text: str, offset: int) -> set[str]:
    """Return the local names bound by directives that start before `offset`."""
    return {binding.local for binding in scan_local_bindings(text) if binding.offset < offset}
