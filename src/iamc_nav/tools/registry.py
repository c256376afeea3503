"""Navigation tool catalog and argument-checked dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

ToolHandler = Callable[[dict[str, object]], dict[str, object]]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Tool failure reported to the caller as an error envelope."""

    code: str
    message: str


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """One registered tool: its handler and the argument names it accepts."""

    name: str
    handler: ToolHandler
    summary: str = ""
    params: tuple[str, ...] = ()

    def describe(self) -> dict[str, object]:
        return {"name": self.name, "summary": self.summary, "params": list(self.params)}


@dataclass(slots=True)
class ToolRegistry:
    """Tools keyed by name, listed in registration order."""

    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(
        self,
        name: str,
        handler: ToolHandler,
        summary: str = "",
        params: tuple[str, ...] = (),
    ) -> None:
        """Register a tool; re-registering a name replaces it in place."""
        self._tools[name] = ToolSpec(name=name, handler=handler, summary=summary, params=params)

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def describe(self) -> list[dict[str, object]]:
        """Return the tool catalog served by `tools/list`."""
        return [spec.describe() for spec in self._tools.values()]

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Run a tool after rejecting argument names it does not declare."""
        spec = self.get(name)
        if spec is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        unexpected = sorted(key for key in arguments if key not in spec.params)
        if unexpected:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=f"{name} does not accept argument(s): {', '.join(unexpected)}.",
            )
        return spec.handler(arguments)
