"""Typed models for cached text and the macro index."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Position:
    """0-based line and character inside a document."""

    line: int
    character: int


@dataclass(slots=True, frozen=True)
class TextRange:
    """Half-open range between two positions."""

    start: Position
    end: Position


@dataclass(slots=True, frozen=True)
class FileSnapshot:
    """Immutable text of one file as read for one generation."""

    path: str
    text: str
    line_starts: tuple[int, ...]
    generation: int


@dataclass(slots=True, frozen=True)
class AliasBinding:
    """Alias introduced by a `#define Alias_(fn) prefix...` directive."""

    alias: str
    global_prefix: str
    source_file: str


@dataclass(slots=True, frozen=True)
class ResolvedLocation:
    """Definition occurrence found in one file, as flat offsets."""

    file: str
    start_offset: int
    end_offset: int


@dataclass(slots=True, frozen=True)
class IndexStatus:
    """Current macro index status snapshot."""

    index_status: str
    generation: int
    indexed_file_count: int
    skipped_file_count: int
    alias_count: int
    binding_count: int
