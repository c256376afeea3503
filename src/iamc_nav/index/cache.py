"""Generation-tagged file text cache shared by the index and the resolver."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from iamc_nav.index.lines import compute_line_starts
from iamc_nav.index.models import FileSnapshot

TextReader = Callable[[Path], Awaitable[str]]


@dataclass(slots=True, frozen=True)
class SnapshotUnavailableError(Exception):
    """Raised when a file cannot be read into a snapshot."""

    path: str
    reason: str


async def read_text_async(path: Path) -> str:
    """Read a file as UTF-8 text without blocking the event loop."""
    raw = await asyncio.to_thread(path.read_bytes)
    return raw.decode("utf-8", errors="replace")


class FileTextCache:
    """Caches one snapshot per document identity until the generation moves.

    The generation is coarse and global: it is bumped when any watched file
    is saved, and every entry then refreshes lazily on its next access.
    Unsaved editor buffers are never seen here.
    """

    def __init__(self, workspace_root: Path, reader: TextReader | None = None) -> None:
        self._root = workspace_root.resolve()
        self._reader = reader or read_text_async
        self._entries: dict[str, FileSnapshot] = {}
        self._generation = 1

    @property
    def generation(self) -> int:
        """Return the current shared generation."""
        return self._generation

    def bump_generation(self) -> int:
        """Mark every cached snapshot stale and return the new generation."""
        self._generation += 1
        return self._generation

    def peek(self, path: str) -> FileSnapshot | None:
        """Return the stored entry for a path without refreshing it."""
        return self._entries.get(path)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_snapshot(self, path: str) -> FileSnapshot:
        """Return the snapshot for a workspace-relative path, reading when stale."""
        generation = self._generation
        cached = self._entries.get(path)
        if cached is not None and cached.generation == generation:
            return cached

        try:
            text = await self._reader(self._root / path)
        except OSError as error:
            self._entries.pop(path, None)
            raise SnapshotUnavailableError(
                path=path,
                reason=error.strerror or type(error).__name__,
            ) from error

        snapshot = FileSnapshot(
            path=path,
            text=text,
            line_starts=compute_line_starts(text),
            generation=generation,
        )
        self._entries[path] = snapshot
        return snapshot
