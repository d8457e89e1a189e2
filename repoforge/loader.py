"""Loading and writing the configuration file."""

from __future__ import annotations

from pathlib import Path

from repoforge.config_paths import ConfigPaths, default_config_toml
from repoforge.errors import ConfigError
from repoforge.schema import AppConfig
from repoforge.validate import validate


def load_config(path: str | Path) -> AppConfig:
    """Load and validate a config file; a missing file yields validated defaults."""
    path = Path(path)
    if not path.exists():
        cfg = AppConfig()
        validate(cfg)
        return cfg
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"reading config from {path}: {exc}") from exc
    try:
        cfg = AppConfig.from_toml(raw)
    except ConfigError as exc:
        raise ConfigError(f"parsing config from {path}: {exc.detail}") from exc
    try:
        validate(cfg)
    except ConfigError as exc:
        raise ConfigError(f"validating config at {path}: {exc.detail}") from exc
    return cfg


def load_default() -> AppConfig:
    """Load the config from the canonical XDG location."""
    return load_config(ConfigPaths.discover().config_toml())


def write_default(path: str | Path) -> bool:
    """Write the default config to ``path``; return ``False`` if it already exists."""
    path = Path(path)
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"creating {path.parent}: {exc}") from exc
    try:
        path.write_text(default_config_toml(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"writing default config to {path}: {exc}") from exc
    return True