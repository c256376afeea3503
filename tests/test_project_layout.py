from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/iamc_nav/server.py",
        "src/iamc_nav/provider.py",
        "src/iamc_nav/resolver.py",
        "src/iamc_nav/config.py",
        "src/iamc_nav/tools/__init__.py",
        "src/iamc_nav/index/__init__.py",
        "src/iamc_nav/patterns/__init__.py",
        "src/iamc_nav/security/__init__.py",
        "src/iamc_nav/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
