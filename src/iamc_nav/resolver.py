"""Two-stage alias/method resolution to definition occurrences."""

from __future__ import annotations

from dataclasses import dataclass

from iamc_nav.index import (
    FileSnapshot,
    MacroIndex,
    ResolvedLocation,
    SnapshotUnavailableError,
    TextRange,
    offset_to_position,
)
from iamc_nav.patterns import DEFAULT_LOOKAHEAD_CHARS, find_definition


@dataclass(slots=True, frozen=True)
class LocatedDefinition:
    """Resolved location projected through the file's current snapshot."""

    location: ResolvedLocation
    range: TextRange

    def to_dict(self) -> dict[str, object]:
        """Return wire representation with 0-based lines and characters."""
        return {
            "path": self.location.file,
            "start": {"line": self.range.start.line, "character": self.range.start.character},
            "end": {"line": self.range.end.line, "character": self.range.end.character},
            "start_offset": self.location.start_offset,
            "end_offset": self.location.end_offset,
        }


class AliasMethodResolver:
    """Finds where `Alias_(method)(...) {` is written.

    The preferred file is searched first; otherwise every file that defined
    the alias is tried in index order and the first hit wins.
    """

    def __init__(self, index: MacroIndex, lookahead: int = DEFAULT_LOOKAHEAD_CHARS) -> None:
        self._index = index
        self._lookahead = lookahead

    async def resolve(
        self, alias: str, method: str, preferred_file: str | None = None
    ) -> ResolvedLocation | None:
        """Return the first definition occurrence, or None when there is none."""
        if preferred_file is not None:
            hit = await self._search_file(preferred_file, alias, method)
            if hit is not None:
                return hit

        await self._index.build()
        for binding in self._index.lookup(alias):
            if binding.source_file == preferred_file:
                continue
            hit = await self._search_file(binding.source_file, alias, method)
            if hit is not None:
                return hit
        return None

    async def locate(
        self, alias: str, method: str, preferred_file: str | None = None
    ) -> LocatedDefinition | None:
        """Resolve and project the hit into line/character positions."""
        location = await self.resolve(alias, method, preferred_file)
        if location is None:
            return None
        try:
            snapshot = await self._index.cache.get_snapshot(location.file)
        except SnapshotUnavailableError:
            return None
        return LocatedDefinition(location=location, range=project_range(snapshot, location))

    async def _search_file(self, path: str, alias: str, method: str) -> ResolvedLocation | None:
        try:
            snapshot = await self._index.cache.get_snapshot(path)
        except SnapshotUnavailableError:
            return None
        hit = find_definition(snapshot.text, alias, method, self._lookahead)
        if hit is None:
            return None
        start, end = hit
        return ResolvedLocation(file=path, start_offset=start, end_offset=end)


def project_range(snapshot: FileSnapshot, location: ResolvedLocation) -> TextRange:
    """Map a location's offsets to positions using one snapshot."""
    return TextRange(
        start=offset_to_position(snapshot.line_starts, location.start_offset),
        end=offset_to_position(snapshot.line_starts, location.end_offset),
    )
