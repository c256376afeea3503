"""Built-in navigation tools."""

from __future__ import annotations

from collections.abc import Callable

from iamc_nav.config import NavConfig
from iamc_nav.index import IndexStatus
from iamc_nav.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry

MAX_AUDIT_LIMIT = 200


def register_builtin_tools(
    registry: ToolRegistry,
    config: NavConfig,
    read_index_status: Callable[[], IndexStatus],
    find_definition: Callable[[str, str | None, int, int], dict[str, object]],
    resolve_alias: Callable[[str, str, str | None], dict[str, object]],
    notify_saved: Callable[[str], dict[str, object]],
    list_bindings: Callable[[str | None], dict[str, object]],
    rebuild_index: Callable[[], IndexStatus],
    read_audit_entries: Callable[[str | None, int, str | None], list[dict[str, object]]],
) -> None:
    """Register the navigation tool set in the order `tools/list` reports it."""
    registry.register(
        "nav.status",
        _status_handler(config, read_index_status),
        summary="Index state, generation and effective configuration.",
    )
    registry.register(
        "nav.definition",
        _definition_handler(find_definition),
        summary="Definition of the alias/method reference under a cursor.",
        params=("path", "line", "character", "text"),
    )
    registry.register(
        "nav.resolve",
        _resolve_handler(resolve_alias),
        summary="Definition of Alias_(method), optionally searching one file first.",
        params=("alias", "method", "path"),
    )
    registry.register(
        "nav.did_save",
        _did_save_handler(notify_saved),
        summary="Report a saved document; C-family saves invalidate the index.",
        params=("path",),
    )
    registry.register(
        "nav.bindings",
        _bindings_handler(list_bindings),
        summary="Alias bindings recorded by the index.",
        params=("alias",),
    )
    registry.register(
        "nav.rebuild_index",
        _rebuild_handler(rebuild_index),
        summary="Invalidate and rebuild the index now.",
    )
    registry.register(
        "nav.audit_log",
        _audit_log_handler(read_audit_entries),
        summary="Recent sanitized request records.",
        params=("since", "limit", "tool"),
    )


def _status_payload(status: IndexStatus) -> dict[str, object]:
    return {
        "index_status": status.index_status,
        "generation": status.generation,
        "indexed_file_count": status.indexed_file_count,
        "skipped_file_count": status.skipped_file_count,
        "alias_count": status.alias_count,
        "binding_count": status.binding_count,
    }


def _status_handler(
    config: NavConfig, read_index_status: Callable[[], IndexStatus]
) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        payload = _status_payload(read_index_status())
        payload["workspace_root"] = str(config.workspace_root)
        payload["effective_config"] = config.to_public_dict()
        return payload

    return handler


def _definition_handler(
    find_definition: Callable[[str, str | None, int, int], dict[str, object]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = _required_string(arguments, "path", "nav.definition")
        line = _non_negative_int(arguments, "line", "nav.definition")
        character = _non_negative_int(arguments, "character", "nav.definition")
        text = arguments.get("text")
        if text is not None and not isinstance(text, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.definition text must be a string when provided.",
            )
        return find_definition(path, text, line, character)

    return handler


def _resolve_handler(
    resolve_alias: Callable[[str, str, str | None], dict[str, object]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        alias = _required_string(arguments, "alias", "nav.resolve")
        method = _required_string(arguments, "method", "nav.resolve")
        path = arguments.get("path")
        if path is not None and (not isinstance(path, str) or not path):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.resolve path must be a non-empty string when provided.",
            )
        return resolve_alias(alias, method, path)

    return handler


def _did_save_handler(notify_saved: Callable[[str], dict[str, object]]) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        return notify_saved(_required_string(arguments, "path", "nav.did_save"))

    return handler


def _bindings_handler(list_bindings: Callable[[str | None], dict[str, object]]) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        alias = arguments.get("alias")
        if alias is not None and (not isinstance(alias, str) or not alias):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.bindings alias must be a non-empty string when provided.",
            )
        return list_bindings(alias)

    return handler


def _rebuild_handler(rebuild_index: Callable[[], IndexStatus]) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return _status_payload(rebuild_index())

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int, str | None], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since = arguments.get("since")
        if since is not None and not isinstance(since, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.audit_log since must be an ISO-8601 string when provided.",
            )
        limit_value = arguments.get("limit", 50)
        if isinstance(limit_value, bool) or not isinstance(limit_value, int) or limit_value < 1:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.audit_log limit must be a positive integer.",
            )
        tool = arguments.get("tool")
        if tool is not None and (not isinstance(tool, str) or not tool):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="nav.audit_log tool must be a non-empty string when provided.",
            )
        entries = read_audit_entries(since, min(limit_value, MAX_AUDIT_LIMIT), tool)
        return {"entries": entries}

    return handler


def _required_string(arguments: dict[str, object], key: str, tool: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be a non-empty string.",
        )
    return value.strip()


def _non_negative_int(arguments: dict[str, object], key: str, tool: str) -> int:
    value = arguments.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be a non-negative integer.",
        )
    return value
