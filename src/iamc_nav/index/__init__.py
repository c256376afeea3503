"""File text caching, workspace discovery and the macro index."""

from .cache import FileTextCache, SnapshotUnavailableError, TextReader, read_text_async
from .discovery import DiscoveryResult, compile_globs, discover_files, expand_braces, matches_glob
from .lines import compute_line_starts, offset_to_position, position_to_offset
from .manager import MacroIndex
from .models import (
    AliasBinding,
    FileSnapshot,
    IndexStatus,
    Position,
    ResolvedLocation,
    TextRange,
)

__all__ = [
    "AliasBinding",
    "DiscoveryResult",
    "FileSnapshot",
    "FileTextCache",
    "IndexStatus",
    "MacroIndex",
    "Position",
    "ResolvedLocation",
    "SnapshotUnavailableError",
    "TextRange",
    "TextReader",
    "compile_globs",
    "compute_line_starts",
    "discover_files",
    "expand_braces",
    "matches_glob",
    "offset_to_position",
    "position_to_offset",
    "read_text_async",
]
