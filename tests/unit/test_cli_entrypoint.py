from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from iamc_nav.server import build_arg_parser, main


def test_arg_parser_collects_repeatable_globs() -> None:
    args = build_arg_parser().parse_args(
        [
            "--workspace-root",
            "/work",
            "--include",
            "src/**/*.c",
            "--include",
            "include/**/*.h",
            "--lookahead-chars",
            "800",
            "--no-warm-index",
        ]
    )

    assert args.workspace_root == "/work"
    assert args.include == ["src/**/*.c", "include/**/*.h"]
    assert args.exclude is None
    assert args.lookahead_chars == 800
    assert args.warm_index is False


def test_main_serves_requests_from_stdin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "Kernel.c").write_text(
        "#define Kernel_(fn) iam_Kernel_##fn\nKernel_(init)(void) {\n}\n", encoding="utf-8"
    )
    request = {"id": "req-cli", "method": "nav.status", "params": {}}
    out_stream = io.StringIO()
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(request) + "\n"))
    monkeypatch.setattr(sys, "stdout", out_stream)

    exit_code = main(["--workspace-root", str(tmp_path)])

    response = json.loads(out_stream.getvalue().splitlines()[0])
    assert exit_code == 0
    assert response["request_id"] == "req-cli"
    assert response["result"]["index_status"] == "ready"
    assert response["result"]["alias_count"] == 1
