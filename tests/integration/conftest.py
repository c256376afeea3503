from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from iamc_nav.server import StdioServer, create_server

KERNEL_SOURCE = "\n".join(
    [
        '#include "Kernel.h"',
        "#define Kernel_(fn) iam_Kernel_##fn",
        "",
        "Kernel_(init)(void) {",
        "    return;",
        "}",
        "",
        "Kernel_(shutdown)(int code)",
        "{",
        "    (void)code;",
        "}",
        "",
    ]
)
VIEW_HEADER = "#define View_(fn) \\\n    ui_View_##fn\n\nView_(draw)(void);\n"
MAIN_SOURCE = "\n".join(
    [
        '#include "Kernel.h"',
        "IAMC_USE_CLASS(iam_Kernel, Kernel)",
        "",
        "int main(void) {",
        "    Kernel_(init)();",
        "    Kernel_shutdown(0);",
        "    return 0;",
        "}",
        "",
    ]
)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "include").mkdir()
    (tmp_path / "build").mkdir()
    (tmp_path / "src" / "Kernel.c").write_text(KERNEL_SOURCE, encoding="utf-8")
    (tmp_path / "src" / "main.c").write_text(MAIN_SOURCE, encoding="utf-8")
    (tmp_path / "include" / "View.h").write_text(VIEW_HEADER, encoding="utf-8")
    (tmp_path / "build" / "Kernel_gen.c").write_text(
        "#define Kernel_(fn) gen_Kernel_##fn\n", encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def server(workspace: Path) -> Iterator[StdioServer]:
    instance = create_server(workspace_root=str(workspace))
    yield instance
    instance.close()
