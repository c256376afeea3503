"""Deterministic workspace file enumeration from include/exclude globs."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path

from iamc_nav.config import IndexConfig


@dataclass(slots=True, frozen=True)
class DiscoveryResult:
    """Matched files plus deterministic scan counters."""

    paths: tuple[str, ...]
    total_candidates: int
    excluded_by_glob: int
    not_included: int


def expand_braces(pattern: str) -> tuple[str, ...]:
    """Expand `{a,b}` alternatives, which fnmatch does not understand."""
    start = pattern.find("{")
    if start == -1:
        return (pattern,)
    depth = 0
    splits: list[int] = []
    end = -1
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
        elif char == "," and depth == 1:
            splits.append(index)
    if end == -1:
        return (pattern,)

    head = pattern[:start]
    tail = pattern[end + 1 :]
    bounds = [start, *splits, end]
    output: list[str] = []
    for left, right in zip(bounds, bounds[1:], strict=False):
        option = pattern[left + 1 : right]
        output.extend(expand_braces(f"{head}{option}{tail}"))
    return tuple(dict.fromkeys(output))


def compile_globs(globs: tuple[str, ...]) -> tuple[str, ...]:
    """Brace-expand every glob, keeping first-seen order."""
    expanded: list[str] = []
    for glob in globs:
        expanded.extend(expand_braces(glob))
    return tuple(dict.fromkeys(expanded))


def matches_glob(relative_path: str, patterns: tuple[str, ...]) -> bool:
    """Return True when a path matches any already-expanded glob."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in patterns
    )


def discover_files(workspace_root: Path, config: IndexConfig) -> DiscoveryResult:
    """Enumerate workspace-relative files in sorted order."""
    root = workspace_root.resolve()
    include = compile_globs(config.include_globs)
    exclude = compile_globs(config.exclude_globs)
    excluded_dir_names = _excluded_dir_names(exclude)

    paths: list[str] = []
    total_candidates = 0
    excluded_by_glob = 0
    not_included = 0
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and matches_glob(f"{relative}/", exclude):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            total_candidates += 1
            if matches_glob(relative, exclude):
                excluded_by_glob += 1
                continue
            if not matches_glob(relative, include):
                not_included += 1
                continue
            paths.append(relative)

    paths.sort()
    return DiscoveryResult(
        paths=tuple(paths),
        total_candidates=total_candidates,
        excluded_by_glob=excluded_by_glob,
        not_included=not_included,
    )


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}/"):
            continue
        output.add(name)
    return output
