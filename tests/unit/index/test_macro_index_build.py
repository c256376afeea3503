from __future__ import annotations

import asyncio
import gc
from pathlib import Path

import pytest

from iamc_nav.config import DEFAULT_EXCLUDE_GLOBS, DEFAULT_INCLUDE_GLOBS, IndexConfig
from iamc_nav.index import FileTextCache, MacroIndex

KERNEL_SOURCE = "#define Kernel_(fn) iam_Kernel_##fn\n\nKernel_(init)(void) {\n}\n"


def _write(root: Path, relative: str, text: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")


def _index(root: Path, reader=None) -> MacroIndex:
    cache = FileTextCache(root, reader=reader)
    config = IndexConfig(include_globs=DEFAULT_INCLUDE_GLOBS, exclude_globs=DEFAULT_EXCLUDE_GLOBS)
    return MacroIndex(root, config, cache)


@pytest.mark.asyncio
async def test_build_collects_bindings_in_discovery_order(tmp_path: Path) -> None:
    _write(tmp_path, "b/Kernel.c", KERNEL_SOURCE)
    _write(tmp_path, "a/Kernel_compat.h", "#define Kernel_(fn) legacy_Kernel_##fn\n")
    _write(tmp_path, "a/Shape.c", "#define Shape_(fn) iam_geometry_Shape##_##fn\n")
    _write(tmp_path, "build/Kernel.c", KERNEL_SOURCE)
    index = _index(tmp_path)

    assert index.status().index_status == "not_built"
    await index.build()

    kernel = index.lookup("Kernel")
    assert [(item.source_file, item.global_prefix) for item in kernel] == [
        ("a/Kernel_compat.h", "legacy_Kernel"),
        ("b/Kernel.c", "iam_Kernel"),
    ]
    assert index.lookup("Shape")[0].global_prefix == "iam_geometry_Shape"
    assert index.lookup("Missing") == ()

    status = index.status()
    assert status.index_status == "ready"
    assert status.indexed_file_count == 3
    assert status.alias_count == 2
    assert status.binding_count == 3


@pytest.mark.asyncio
async def test_concurrent_builds_share_one_scan(tmp_path: Path) -> None:
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)
    _write(tmp_path, "Shape.c", "#define Shape_(fn) iam_Shape_##fn\n")
    calls: list[str] = []

    async def reader(path: Path) -> str:
        calls.append(path.name)
        await asyncio.sleep(0)
        return path.read_text(encoding="utf-8")

    index = _index(tmp_path, reader=reader)

    await asyncio.gather(index.build(), index.build(), index.build())
    await index.build()

    assert sorted(calls) == ["Kernel.c", "Shape.c"]
    assert index.is_built


@pytest.mark.asyncio
async def test_build_is_memoized_until_invalidated(tmp_path: Path) -> None:
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)
    index = _index(tmp_path)
    await index.build()
    generation = index.generation

    _write(tmp_path, "Kernel.c", "#define Core_(fn) iam_Core_##fn\n")
    await index.build()
    assert [item.alias for item in index.lookup("Kernel")] == ["Kernel"]

    new_generation = index.invalidate("Kernel.c")
    assert new_generation == generation + 1
    assert not index.is_built
    assert index.last_saved_path == "Kernel.c"

    await index.build()
    assert index.lookup("Kernel") == ()
    assert index.lookup("Core")[0].global_prefix == "iam_Core"


@pytest.mark.asyncio
async def test_invalidate_during_build_never_exposes_partial_index(tmp_path: Path) -> None:
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)
    started = asyncio.Event()
    release = asyncio.Event()

    async def reader(path: Path) -> str:
        started.set()
        await release.wait()
        return path.read_text(encoding="utf-8")

    index = _index(tmp_path, reader=reader)
    first = asyncio.create_task(index.build())
    await started.wait()
    assert index.status().index_status == "building"

    _write(tmp_path, "Kernel.c", "#define Core_(fn) iam_Core_##fn\n")
    index.invalidate("Kernel.c")
    second = asyncio.create_task(index.build())
    await asyncio.sleep(0)
    assert index.lookup("Kernel") == ()
    assert index.lookup("Core") == ()

    release.set()
    await asyncio.gather(first, second)

    assert index.is_built
    assert index.lookup("Kernel") == ()
    assert index.lookup("Core")[0].source_file == "Kernel.c"


@pytest.mark.asyncio
async def test_unreadable_files_are_skipped(tmp_path: Path) -> None:
    _write(tmp_path, "Broken.c", "#define Broken_(fn) iam_Broken_##fn\n")
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)

    async def reader(path: Path) -> str:
        if path.name == "Broken.c":
            raise PermissionError(13, "Permission denied")
        return path.read_text(encoding="utf-8")

    index = _index(tmp_path, reader=reader)
    await index.build()

    assert index.lookup("Broken") == ()
    assert index.lookup("Kernel")[0].source_file == "Kernel.c"
    status = index.status()
    assert status.indexed_file_count == 1
    assert status.skipped_file_count == 1


@pytest.mark.asyncio
async def test_cancelled_caller_leaves_shared_build_running(tmp_path: Path) -> None:
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)
    started = asyncio.Event()
    release = asyncio.Event()

    async def reader(path: Path) -> str:
        started.set()
        await release.wait()
        return path.read_text(encoding="utf-8")

    index = _index(tmp_path, reader=reader)
    first = asyncio.create_task(index.build())
    second = asyncio.create_task(index.build())
    await started.wait()

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first
    release.set()
    await second

    assert index.is_built
    assert index.lookup("Kernel")[0].source_file == "Kernel.c"


@pytest.mark.asyncio
async def test_abandoned_stale_build_failure_is_not_reported(tmp_path: Path) -> None:
    _write(tmp_path, "Kernel.c", KERNEL_SOURCE)
    started = asyncio.Event()
    release = asyncio.Event()
    failing = [True]

    async def reader(path: Path) -> str:
        if failing[0]:
            started.set()
            await release.wait()
            raise RuntimeError("device went away")
        return path.read_text(encoding="utf-8")

    reported: list[dict[str, object]] = []
    asyncio.get_running_loop().set_exception_handler(
        lambda _loop, context: reported.append(context)
    )
    index = _index(tmp_path, reader=reader)
    caller = asyncio.create_task(index.build())
    await started.wait()
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    stale = {
        task
        for task in asyncio.all_tasks()
        if task.get_coro().__name__ == "_scan_workspace"
    }
    assert len(stale) == 1
    index.invalidate("Kernel.c")
    release.set()
    await asyncio.wait(stale)
    failing[0] = False
    del stale
    gc.collect()

    await index.build()

    assert index.is_built
    assert index.lookup("Kernel")[0].global_prefix == "iam_Kernel"
    assert reported == []
