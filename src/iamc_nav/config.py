"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "iamc_nav.toml"
DATA_DIR_NAME = ".iamc_nav"

DEFAULT_INCLUDE_GLOBS = ("**/*.{c,cc,cpp,cxx,m,mm,h,hh,hpp,hxx}",)
DEFAULT_EXCLUDE_GLOBS = ("**/{.git,node_modules,dist,build,out,target}/**",)
DEFAULT_LOOKAHEAD_CHARS = 4000
MAX_LOOKAHEAD_CHARS = 1024 * 1024


@dataclass(slots=True, frozen=True)
class IndexConfig:
    """File enumeration settings for the macro index."""

    include_globs: tuple[str, ...]
    exclude_globs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ResolverConfig:
    """Definition matching settings."""

    lookahead_chars: int


@dataclass(slots=True, frozen=True)
class NavConfig:
    """Fully merged navigation service configuration."""

    workspace_root: Path
    data_dir: Path
    index: IndexConfig
    resolver: ResolverConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "workspace_root": str(self.workspace_root),
            "data_dir": str(self.data_dir),
            "index": {
                "include_globs": list(self.index.include_globs),
                "exclude_globs": list(self.index.exclude_globs),
            },
            "resolver": {
                "lookahead_chars": self.resolver.lookahead_chars,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    include_globs: tuple[str, ...] | None = None
    exclude_globs: tuple[str, ...] | None = None
    lookahead_chars: int | None = None


def default_config(workspace_root: Path) -> NavConfig:
    """Build default config for a given workspace root."""
    resolved_root = workspace_root.resolve()
    return NavConfig(
        workspace_root=resolved_root,
        data_dir=resolved_root / DATA_DIR_NAME,
        index=IndexConfig(
            include_globs=DEFAULT_INCLUDE_GLOBS,
            exclude_globs=DEFAULT_EXCLUDE_GLOBS,
        ),
        resolver=ResolverConfig(lookahead_chars=DEFAULT_LOOKAHEAD_CHARS),
    )


def load_workspace_config_file(workspace_root: Path) -> dict[str, object]:
    """Load optional iamc_nav.toml from the workspace root."""
    config_path = workspace_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _globs(value: object, section: str, field: str) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a string or list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"Config field '{section}.{field}' must contain non-empty strings.")
        output.append(item.strip())
    return tuple(output)


def merge_config(base: NavConfig, payload: dict[str, object], overrides: CliOverrides) -> NavConfig:
    """Merge defaults, workspace config, then CLI/startup overrides."""
    index_payload = _get_table(payload, "index")
    resolver_payload = _get_table(payload, "resolver")

    include_globs = base.index.include_globs
    if "include" in index_payload:
        include_globs = _globs(index_payload["include"], "index", "include")
    exclude_globs = base.index.exclude_globs
    if "exclude" in index_payload:
        exclude_globs = _globs(index_payload["exclude"], "index", "exclude")

    lookahead_chars = _optional_positive_int_with_cap(
        resolver_payload.get("lookahead_chars"),
        "resolver.lookahead_chars",
        base.resolver.lookahead_chars,
        MAX_LOOKAHEAD_CHARS,
    )

    merged = NavConfig(
        workspace_root=base.workspace_root,
        data_dir=base.data_dir,
        index=IndexConfig(include_globs=include_globs, exclude_globs=exclude_globs),
        resolver=ResolverConfig(lookahead_chars=lookahead_chars),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: NavConfig, overrides: CliOverrides) -> NavConfig:
    """Apply startup overrides at highest precedence."""
    include_globs = config.index.include_globs
    if overrides.include_globs is not None:
        include_globs = _globs(list(overrides.include_globs), "overrides", "include_globs")
    exclude_globs = config.index.exclude_globs
    if overrides.exclude_globs is not None:
        exclude_globs = _globs(list(overrides.exclude_globs), "overrides", "exclude_globs")
    lookahead_chars = _optional_positive_int_with_cap(
        overrides.lookahead_chars,
        "overrides.lookahead_chars",
        config.resolver.lookahead_chars,
        MAX_LOOKAHEAD_CHARS,
    )
    data_dir = overrides.data_dir or config.data_dir
    return NavConfig(
        workspace_root=config.workspace_root,
        data_dir=data_dir.resolve(),
        index=IndexConfig(include_globs=include_globs, exclude_globs=exclude_globs),
        resolver=ResolverConfig(lookahead_chars=lookahead_chars),
    )


def load_effective_config(
    workspace_root: Path, overrides: CliOverrides | None = None
) -> NavConfig:
    """Load effective config using merge order defaults -> workspace config -> overrides."""
    resolved_root = workspace_root.resolve()
    base = default_config(resolved_root)
    payload = load_workspace_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
