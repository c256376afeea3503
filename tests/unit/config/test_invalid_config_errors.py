from __future__ import annotations

from pathlib import Path

import pytest

from iamc_nav.config import CliOverrides, load_effective_config
from iamc_nav.server import create_server


def test_invalid_lookahead_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "iamc_nav.toml").write_text(
        "\n".join(
            [
                "[resolver]",
                'lookahead_chars = "lots"',
            ]
        ),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="resolver.lookahead_chars"):
        create_server(workspace_root=str(tmp_path))


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "iamc_nav.toml").write_text('index = "not-a-table"\n', encoding="utf-8")

    with pytest.raises(ValueError, match="section 'index'"):
        create_server(workspace_root=str(tmp_path))


def test_empty_glob_entry_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "iamc_nav.toml").write_text('[index]\nexclude = ["", "**/out/**"]\n', encoding="utf-8")

    with pytest.raises(ValueError, match="index.exclude"):
        load_effective_config(tmp_path)


@pytest.mark.parametrize("value", [0, -5, True, 2 * 1024 * 1024])
def test_out_of_range_lookahead_override_is_rejected(tmp_path: Path, value: int) -> None:
    with pytest.raises(ValueError, match="overrides.lookahead_chars"):
        load_effective_config(tmp_path, overrides=CliOverrides(lookahead_chars=value))
