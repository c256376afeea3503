"""STDIO JSON-lines navigation server entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from collections.abc import Coroutine
from dataclasses import replace
from pathlib import Path
from typing import Any, TextIO, TypeVar

from iamc_nav.config import CliOverrides, NavConfig, load_effective_config
from iamc_nav.index import FileTextCache, IndexStatus, MacroIndex, SnapshotUnavailableError
from iamc_nav.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from iamc_nav.protocol import Envelope, Request, RequestError, RequestIds, parse_request
from iamc_nav.provider import DefinitionProvider
from iamc_nav.resolver import AliasMethodResolver
from iamc_nav.security import PathBlockedError, resolve_document_id
from iamc_nav.tools.builtin import register_builtin_tools
from iamc_nav.tools.registry import ToolDispatchError, ToolRegistry

T = TypeVar("T")

TOOLS_LIST = "tools/list"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iamc-nav",
        description="Serve alias/method go-to-definition over JSON lines on stdin/stdout.",
    )
    parser.add_argument("--workspace-root", default=".")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--include", action="append", default=None, metavar="GLOB")
    parser.add_argument("--exclude", action="append", default=None, metavar="GLOB")
    parser.add_argument("--lookahead-chars", type=int, default=None)
    parser.add_argument("--warm-index", action=argparse.BooleanOptionalAction, default=True)
    return parser


class StdioServer:
    """JSON-lines server answering go-to-definition requests for one workspace.

    All coroutines run on a single event loop owned by the server, so the
    macro index's in-flight build is shared by every request.
    """

    def __init__(self, config: NavConfig) -> None:
        self._config = config
        self._workspace_root = config.workspace_root
        self._runner = asyncio.Runner()
        self._cache = FileTextCache(self._workspace_root)
        self._index = MacroIndex(
            workspace_root=self._workspace_root,
            index_config=config.index,
            cache=self._cache,
        )
        self._resolver = AliasMethodResolver(
            self._index, lookahead=config.resolver.lookahead_chars
        )
        self._provider = DefinitionProvider(self._resolver, self._index)
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._ids = RequestIds()
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            config=config,
            read_index_status=self._index.status,
            find_definition=self._find_definition,
            resolve_alias=self._resolve_alias,
            notify_saved=self._notify_saved,
            list_bindings=self._list_bindings,
            rebuild_index=self._rebuild_index,
            read_audit_entries=self._audit_logger.read,
        )

    @property
    def index(self) -> MacroIndex:
        return self._index

    def warm_index(self) -> IndexStatus:
        """Build the macro index ahead of the first request."""
        self._run(self._index.build())
        return self._index.status()

    def close(self) -> None:
        self._runner.close()

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer each non-blank input line with exactly one output line."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(json.dumps(response, sort_keys=True) + "\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            envelope = Envelope.failure(
                self._ids.fallback(), "INVALID_JSON", "Request must be valid JSON."
            )
            self._audit("invalid_json", {"raw_line_length": len(raw_line)}, envelope, 0.0)
            return envelope.to_dict()
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Route one decoded request and audit the outcome."""
        started = time.perf_counter()
        try:
            request = parse_request(payload, self._ids)
        except RequestError as error:
            envelope = Envelope.failure(error.request_id, error.code, error.message)
            self._audit("invalid_request", {}, envelope, _elapsed_ms(started))
            return envelope.to_dict()

        envelope = self._execute(request)
        arguments = {} if request.tool == TOOLS_LIST else request.arguments
        self._audit(request.tool, arguments, envelope, _elapsed_ms(started))
        return envelope.to_dict()

    def _execute(self, request: Request) -> Envelope:
        if request.tool == TOOLS_LIST:
            return Envelope.success(request.request_id, {"tools": self._registry.describe()})
        try:
            result = self._registry.dispatch(name=request.tool, arguments=request.arguments)
        except PathBlockedError as error:
            return Envelope.path_blocked(request.request_id, error.reason, error.hint)
        except ToolDispatchError as error:
            return Envelope.failure(request.request_id, error.code, error.message)
        except Exception:
            return Envelope.failure(
                request.request_id,
                "INTERNAL_ERROR",
                "Unhandled server error while executing tool.",
            )
        return Envelope.success(request.request_id, result)

    def _audit(
        self,
        tool: str,
        arguments: dict[str, object],
        envelope: Envelope,
        duration_ms: float,
    ) -> None:
        self._audit_logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                request_id=envelope.request_id,
                tool=tool,
                ok=envelope.ok,
                blocked=envelope.blocked,
                error_code=envelope.error_code,
                duration_ms=duration_ms,
                metadata=sanitize_arguments(arguments),
            )
        )

    def _run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        return self._runner.run(coroutine)

    def _document_id(self, path: str) -> str:
        return resolve_document_id(workspace_root=self._workspace_root, candidate=path)

    def _find_definition(
        self, path: str, text: str | None, line: int, character: int
    ) -> dict[str, object]:
        document = self._document_id(path)
        not_found: dict[str, object] = {"found": False, "reference": None, "location": None}
        if not self._provider.supports_path(document):
            return not_found
        if text is None:
            try:
                text = self._run(self._cache.get_snapshot(document)).text
            except SnapshotUnavailableError as error:
                raise ToolDispatchError(
                    code="INVALID_PARAMS",
                    message=f"nav.definition path is not a readable file: {error.path}",
                ) from error
        result = self._run(self._provider.provide_definition(document, text, line, character))
        if result is None:
            return not_found
        return result.to_dict()

    def _resolve_alias(self, alias: str, method: str, path: str | None) -> dict[str, object]:
        preferred = self._document_id(path) if path is not None else None
        located = self._run(self._resolver.locate(alias, method, preferred))
        return {
            "alias": alias,
            "method": method,
            "found": located is not None,
            "location": located.to_dict() if located is not None else None,
        }

    def _notify_saved(self, path: str) -> dict[str, object]:
        document = self._document_id(path)
        invalidated = self._provider.did_save(document)
        return {
            "path": document,
            "invalidated": invalidated,
            "generation": self._index.generation,
        }

    def _list_bindings(self, alias: str | None) -> dict[str, object]:
        self._run(self._index.build())
        bindings = self._index.bindings()
        names = [alias] if alias is not None else sorted(bindings)
        return {
            "aliases": {
                name: [
                    {"global_prefix": binding.global_prefix, "path": binding.source_file}
                    for binding in self._index.lookup(name)
                ]
                for name in names
            }
        }

    def _rebuild_index(self) -> IndexStatus:
        self._index.invalidate()
        self._run(self._index.build())
        return self._index.status()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def create_server(
    workspace_root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = replace(overrides, data_dir=Path(data_dir).resolve())
    config = load_effective_config(Path(workspace_root).resolve(), overrides=overrides)
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the navigation server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        include_globs=tuple(args.include) if args.include else None,
        exclude_globs=tuple(args.exclude) if args.exclude else None,
        lookahead_chars=args.lookahead_chars,
    )
    server = create_server(workspace_root=args.workspace_root, cli_overrides=overrides)
    try:
        if args.warm_index:
            server.warm_index()
        server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
