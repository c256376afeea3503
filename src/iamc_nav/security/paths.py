"""Document identity resolution scoped to the workspace root."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")
FILE_URI_PREFIX: Final[str] = "file://"


class PathBlockedError(Exception):
    """Raised when a requested path falls outside the workspace."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def _normalize_input(candidate: str) -> tuple[str, bool]:
    """Normalize separators and URI prefixes; detect absolute-style inputs."""
    normalized = candidate.strip()
    if normalized.startswith(FILE_URI_PREFIX):
        normalized = normalized[len(FILE_URI_PREFIX) :]
    normalized = normalized.replace("\\", "/")
    if normalized.startswith("/"):
        if WINDOWS_ABSOLUTE_PATTERN.match(normalized[1:]):
            normalized = normalized[1:]
        return normalized, True
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def resolve_document_id(workspace_root: Path, candidate: str) -> str:
    """Return the workspace-relative POSIX identity for a document path."""
    root = workspace_root.resolve()
    normalized, is_absolute_style = _normalize_input(candidate)

    if not normalized:
        raise PathBlockedError(
            reason="Path is empty.",
            hint="Provide a workspace-relative path such as 'src/Kernel.c'.",
        )

    if is_absolute_style:
        resolved_absolute = Path(normalized).resolve(strict=False)
        if not resolved_absolute.is_relative_to(root):
            raise PathBlockedError(
                reason="Absolute path is outside workspace_root.",
                hint="Use a path located under the configured workspace root.",
            )
        if resolved_absolute == root:
            raise PathBlockedError(
                reason="Path does not name a file.",
                hint="Provide a path to a source file under the workspace root.",
            )
        return resolved_absolute.relative_to(root).as_posix()

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        raise PathBlockedError(
            reason="Path traversal is blocked.",
            hint="Remove '..' segments and use a workspace-relative path.",
        )
    if not parts:
        raise PathBlockedError(
            reason="Path does not name a file.",
            hint="Provide a workspace-relative path such as 'src/Kernel.c'.",
        )

    resolved = (root / Path(*parts)).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            reason="Resolved path escapes workspace_root.",
            hint="Use a path located under the configured workspace root.",
        )
    return resolved.relative_to(root).as_posix()
