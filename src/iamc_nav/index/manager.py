"""Workspace-wide alias index with lazy, single-flight rebuilds."""

from __future__ import annotations

import asyncio
from pathlib import Path

from iamc_nav.config import IndexConfig
from iamc_nav.index.cache import FileTextCache, SnapshotUnavailableError
from iamc_nav.index.discovery import discover_files
from iamc_nav.index.models import AliasBinding, IndexStatus
from iamc_nav.patterns.bindings import scan_alias_bindings


class MacroIndex:
    """Maps aliases to the files whose `#define Alias_(fn)` introduced them.

    `build` is memoized per generation and at most one build runs at a time;
    `invalidate` only marks state stale, the next `build` does the work.
    """

    def __init__(
        self, workspace_root: Path, index_config: IndexConfig, cache: FileTextCache
    ) -> None:
        self._root = workspace_root.resolve()
        self._index_config = index_config
        self._cache = cache
        self._bindings: dict[str, tuple[AliasBinding, ...]] = {}
        self._built = False
        self._inflight: asyncio.Task[None] | None = None
        self._indexed_file_count = 0
        self._skipped_file_count = 0
        self._last_saved_path: str | None = None

    @property
    def cache(self) -> FileTextCache:
        """Return the shared file text cache."""
        return self._cache

    @property
    def generation(self) -> int:
        """Return the shared generation the index is tracking."""
        return self._cache.generation

    @property
    def is_built(self) -> bool:
        """Return True when bindings reflect the current generation."""
        return self._built

    @property
    def last_saved_path(self) -> str | None:
        """Return the path passed to the latest `invalidate` call, if any."""
        return self._last_saved_path

    async def build(self) -> None:
        """Ensure bindings are built for the current generation."""
        while not self._built:
            task = self._inflight
            if task is None:
                task = asyncio.ensure_future(self._scan_workspace(self._cache.generation))
                task.add_done_callback(_retrieve_outcome)
                self._inflight = task
            try:
                # A cancelled caller must not cancel the build other callers share.
                await asyncio.shield(task)
            finally:
                if self._inflight is task and task.done():
                    self._inflight = None

    def invalidate(self, path: str | None = None) -> int:
        """Mark the index and every cached snapshot stale; returns the new generation."""
        self._built = False
        self._inflight = None
        self._last_saved_path = path
        return self._cache.bump_generation()

    def lookup(self, alias: str) -> tuple[AliasBinding, ...]:
        """Return bindings for an alias in discovery order."""
        return self._bindings.get(alias, ())

    def bindings(self) -> dict[str, tuple[AliasBinding, ...]]:
        """Return a copy of every alias binding."""
        return dict(self._bindings)

    def status(self) -> IndexStatus:
        """Return a status snapshot."""
        if self._built:
            state = "ready"
        elif self._inflight is not None:
            state = "building"
        else:
            state = "not_built"
        return IndexStatus(
            index_status=state,
            generation=self._cache.generation,
            indexed_file_count=self._indexed_file_count,
            skipped_file_count=self._skipped_file_count,
            alias_count=len(self._bindings),
            binding_count=sum(len(items) for items in self._bindings.values()),
        )

    async def _scan_workspace(self, generation: int) -> None:
        discovery = await asyncio.to_thread(discover_files, self._root, self._index_config)
        collected: dict[str, list[AliasBinding]] = {}
        indexed = 0
        skipped = 0
        for path in discovery.paths:
            try:
                snapshot = await self._cache.get_snapshot(path)
            except SnapshotUnavailableError:
                skipped += 1
                continue
            indexed += 1
            for alias, global_prefix in scan_alias_bindings(snapshot.text):
                collected.setdefault(alias, []).append(
                    AliasBinding(alias=alias, global_prefix=global_prefix, source_file=path)
                )

        if generation != self._cache.generation:
            return
        self._bindings = {alias: tuple(items) for alias, items in collected.items()}
        self._indexed_file_count = indexed
        self._skipped_file_count = skipped
        self._built = True


def _retrieve_outcome(task: asyncio.Task[None]) -> None:
    # Marks the outcome retrieved for builds nobody awaits any more.
    if not task.cancelled():
        task.exception()
