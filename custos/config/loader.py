"""TOML configuration files for Custos.

Two layers are read from the config directory: `default.toml`, which must
exist, and `{CUSTOS_ENV}.toml`, which may. The environment layer is merged
over the default one table by table, so an environment file only needs the
keys it changes (for example a single `[audit.entities."x.y"]` entry).
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CUSTOS_CONFIG_DIR"
ENVIRONMENT_ENV = "CUSTOS_ENV"
DEFAULT_ENVIRONMENT = "development"

_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the config directory.

    CUSTOS_CONFIG_DIR wins when set and must point at an existing directory.
    Otherwise the nearest `config/` found walking up from the working
    directory is used.

    Raises:
        FileNotFoundError: CUSTOS_CONFIG_DIR names a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Tables present on both sides merge recursively; anything else in
    override replaces the base value. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Read and merge the default and environment layers.

    Raises:
        FileNotFoundError: `default.toml` is missing
    """
    config_dir = get_config_dir()
    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            f"Create config/default.toml or set {CONFIG_DIR_ENV}."
        )

    config = load_toml(default_path)
    env_path = config_dir / f"{get_environment()}.toml"
    if env_path.is_file():
        config = deep_merge(config, load_toml(env_path))
    return config
