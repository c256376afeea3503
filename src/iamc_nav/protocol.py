"""JSON-lines request parsing and response envelopes."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class Request:
    """A request reduced to the tool it targets and that tool's arguments."""

    request_id: str
    tool: str
    arguments: dict[str, object]


@dataclass(slots=True, frozen=True)
class RequestError(Exception):
    """A request rejected before any tool runs."""

    request_id: str
    code: str
    message: str


@dataclass(slots=True, frozen=True)
class Envelope:
    """Wire response: `{request_id, ok, result, warnings, blocked[, error]}`."""

    request_id: str
    ok: bool
    result: dict[str, object] = field(default_factory=dict)
    blocked: bool = False
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def success(cls, request_id: str, result: dict[str, object]) -> Envelope:
        return cls(request_id=request_id, ok=True, result=result)

    @classmethod
    def failure(cls, request_id: str, code: str, message: str) -> Envelope:
        return cls(request_id=request_id, ok=False, error_code=code, error_message=message)

    @classmethod
    def path_blocked(cls, request_id: str, reason: str, hint: str) -> Envelope:
        return cls(
            request_id=request_id,
            ok=False,
            result={"reason": reason, "hint": hint},
            blocked=True,
            error_code="PATH_BLOCKED",
            error_message=reason,
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "request_id": self.request_id,
            "ok": self.ok,
            "result": self.result,
            "warnings": [],
            "blocked": self.blocked,
        }
        if self.error_code is not None:
            payload["error"] = {"code": self.error_code, "message": self.error_message}
        return payload


class RequestIds:
    """Issues `req-NNNNNN` ids for requests that arrive without a usable one."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def fallback(self) -> str:
        return f"req-{next(self._counter):06d}"

    def pick(self, value: object) -> str:
        if isinstance(value, str) and value:
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return self.fallback()


def parse_request(payload: object, ids: RequestIds) -> Request:
    """Normalize a decoded payload; `tools/call` unwraps to the named tool.

    Raises RequestError for anything that cannot be routed.
    """
    if not isinstance(payload, dict):
        raise RequestError(ids.fallback(), "INVALID_REQUEST", "Request must be an object.")

    request_id = ids.pick(payload.get("id"))
    method = payload.get("method")
    params = payload.get("params", {})
    if not isinstance(method, str) or not method:
        raise RequestError(
            request_id, "INVALID_REQUEST", "Request method must be a non-empty string."
        )
    if not isinstance(params, dict):
        raise RequestError(request_id, "INVALID_PARAMS", "Request params must be an object.")
    if method != "tools/call":
        return Request(request_id=request_id, tool=method, arguments=params)

    name = params.get("name")
    arguments = params.get("arguments", {})
    if not isinstance(name, str) or not name:
        raise RequestError(
            request_id, "INVALID_PARAMS", "tools/call params.name must be a non-empty string."
        )
    if not isinstance(arguments, dict):
        raise RequestError(
            request_id, "INVALID_PARAMS", "tools/call params.arguments must be an object."
        )
    return Request(request_id=request_id, tool=name, arguments=arguments)
