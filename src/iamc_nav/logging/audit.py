"""Per-request audit trail written as JSON lines under the data directory."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

# Identifiers and cursor coordinates are logged as-is; anything else is
# summarized so document text never reaches the log.
_VERBATIM_FIELDS: dict[str, type] = {
    "path": str,
    "alias": str,
    "method": str,
    "name": str,
    "since": str,
    "tool": str,
    "line": int,
    "character": int,
    "limit": int,
}


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One handled request."""

    timestamp: str
    request_id: str
    tool: str
    ok: bool
    blocked: bool
    error_code: str | None
    duration_ms: float
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _summarize(key: str, value: object) -> dict[str, object]:
    if isinstance(value, bool) or isinstance(value, (int, float)) or value is None:
        return {key: value}
    if isinstance(value, str):
        return {f"{key}_present": True, f"{key}_length": len(value)}
    if isinstance(value, list):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    if isinstance(value, dict):
        return {f"{key}_type": "dict", f"{key}_keys": sorted(str(item) for item in value)}
    return {f"{key}_type": type(value).__name__}


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Keep identifiers and positions; reduce free text to its size."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        value = arguments[key]
        expected = _VERBATIM_FIELDS.get(key)
        if expected is not None and isinstance(value, expected) and not isinstance(value, bool):
            sanitized[key] = value
        else:
            sanitized.update(_summarize(key, value))
    return sanitized


class JsonlAuditLogger:
    """Appends audit events to a JSONL file and reads back the tail."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self, since: str | None = None, limit: int = 50, tool: str | None = None
    ) -> list[dict[str, object]]:
        """Return up to `limit` most recent events, oldest first.

        `since` is an inclusive ISO-8601 lower bound compared as text, which
        holds because every timestamp is written in the same UTC format.
        Unparseable lines are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        tail: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if not isinstance(record, dict):
                    continue
                if since is not None:
                    timestamp = record.get("timestamp")
                    if not isinstance(timestamp, str) or timestamp < since:
                        continue
                if tool is not None and record.get("tool") != tool:
                    continue
                tail.append(record)
        return list(tail)
