"""Convention-pattern scanners for the macro class idiom."""

from .bindings import LocalBinding, local_names_before, scan_alias_bindings, scan_local_bindings
from .definitions import (
    DEFAULT_LOOKAHEAD_CHARS,
    definition_pattern,
    find_definition,
    looks_like_definition,
)
from .references import ReferenceMatch, bound_local_at, explicit_call_at, reference_at

__all__ = [
    "DEFAULT_LOOKAHEAD_CHARS",
    "LocalBinding",
    "ReferenceMatch",
    "bound_local_at",
    "definition_pattern",
    "explicit_call_at",
    "find_definition",
    "local_names_before",
    "looks_like_definition",
    "reference_at",
    "scan_alias_bindings",
    "scan_local_bindings",
]
