"""Locate and layer the TOML configuration files."""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "NUDGE_CONFIG_DIR"
ENV_VAR = "NUDGE_ENV"
DEFAULT_ENV = "development"

# Parent directories searched for config/ above the working directory
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Directory holding default.toml and the per-environment overlays.

    NUDGE_CONFIG_DIR wins when set and must exist. Otherwise the nearest
    `config/` at or above the working directory is used.
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} points at a missing directory: {explicit}")
        return path

    here = Path.cwd()
    for directory in [here, *here.parents][:_SEARCH_DEPTH]:
        candidate = directory / "config"
        if candidate.exists():
            return candidate
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENV_VAR, DEFAULT_ENV)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file is absent
        tomllib.TOMLDecodeError: On a syntax error
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return `base` overlaid with `override`; nested tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """default.toml overlaid with `{NUDGE_ENV}.toml` when that file exists."""
    config_dir = get_config_dir()

    base = config_dir / "default.toml"
    if not base.exists():
        raise FileNotFoundError(
            f"No default.toml in {config_dir}; add one or set {CONFIG_DIR_VAR}."
        )

    overlay = config_dir / f"{get_environment()}.toml"
    config = load_toml(base)
    if overlay.exists():
        config = deep_merge(config, load_toml(overlay))
    return config
