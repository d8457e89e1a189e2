"""XDG path resolution for configuration, state and cache directories."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from repoforge.errors import ConfigError

APP_DIR = "rfo"

_XDG_VARS = {
    "config": "XDG_CONFIG_HOME",
    "state": "XDG_STATE_HOME",
    "cache": "XDG_CACHE_HOME",
}
_HOME_RELATIVE = {
    "config": ".config",
    "state": ".local/state",
    "cache": ".cache",
}


def _home() -> Path | None:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def _absolute_env(var: str) -> Path | None:
    value = os.environ.get(var)
    if value:
        path = Path(value)
        if path.is_absolute():
            return path
    return None


def _local_app_data() -> Path | None:
    value = os.environ.get("LOCALAPPDATA")
    return Path(value) if value else None


def _platform_base(kind: str) -> Path | None:
    """Return the platform's base directory of ``kind``, or ``None`` if it has none."""
    if sys.platform == "win32":
        if kind == "state":
            return None
        value = os.environ.get("APPDATA" if kind == "config" else "LOCALAPPDATA")
        return Path(value) if value else None
    home = _home()
    if sys.platform == "darwin":
        if home is None:
            return None
        return {
            "config": home / "Library" / "Application Support",
            "cache": home / "Library" / "Caches",
        }.get(kind)
    env = _absolute_env(_XDG_VARS[kind])
    if env is not None:
        return env
    return None if home is None else home / _HOME_RELATIVE[kind]


def _xdg_subdir(kind: str) -> Path:
    env_var = _XDG_VARS[kind]
    env = _absolute_env(env_var)
    if env is not None:
        return env / APP_DIR
    base = _platform_base(kind)
    if base is not None:
        return base / APP_DIR
    if sys.platform == "win32":
        local = _local_app_data()
        if local is not None:
            return local / APP_DIR
    home = _home()
    if home is None:
        raise ConfigError(f"cannot resolve home directory for {env_var}")
    return home / _HOME_RELATIVE[kind] / APP_DIR


@dataclass(frozen=True)
class ConfigPaths:
    """Resolved configuration, state and cache directories."""

    config_dir: Path
    state_dir: Path
    cache_dir: Path

    @classmethod
    def discover(cls) -> ConfigPaths:
        """Resolve all directories from the environment, using XDG defaults."""
        return cls(
            config_dir=_xdg_subdir("config"),
            state_dir=_xdg_subdir("state"),
            cache_dir=_xdg_subdir("cache"),
        )

    def config_toml(self) -> Path:
        return self.config_dir / "config.toml"

    def repos_list(self) -> Path:
        return self.config_dir / "repos.list"

    def policies_yaml(self) -> Path:
        return self.config_dir / "policies.yaml"

    def state_db(self) -> Path:
        return self.state_dir / "state.db"

    def run_log_dir(self, run_id: str) -> Path:
        """Return the per-run log directory ``state_dir/logs/<run_id>``."""
        return self.state_dir / "logs" / run_id

    def ensure_all(self) -> None:
        """Create the config, state and cache directories if missing."""
        for directory in (self.config_dir, self.state_dir, self.cache_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigError(f"creating {directory}: {exc}") from exc


def config_dir() -> Path | None:
    """Return the platform config directory for the application, if any."""
    base = _platform_base("config")
    return None if base is None else base / APP_DIR


def state_dir() -> Path | None:
    """Return the platform state directory for the application, if any."""
    base = _platform_base("state")
    if base is None and sys.platform == "win32":
        base = _local_app_data()
    return None if base is None else base / APP_DIR


def cache_dir() -> Path | None:
    """Return the platform cache directory for the application, if any."""
    base = _platform_base("cache")
    return None if base is None else base / APP_DIR


def expand_tilde(text: str) -> Path:
    """Expand a leading ``~``, ``~/`` or ``~\\`` to the home directory."""
    for prefix in ("~/", "~\\"):
        if text.startswith(prefix):
            home = _home()
            if home is not None:
                return home / text[len(prefix) :]
            break
    if text == "~":
        home = _home()
        if home is not None:
            return home
    return Path(text)


def default_config_toml() -> str:
    """Return the default ``config.toml`` contents written by ``init``."""
    return _DEFAULT_CONFIG_TOML


_DEFAULT_CONFIG_TOML = """\
# rfo configuration file.
# Edit by hand, or run `rfo config edit`.
# See `rfo config show --json` for the resolved configuration.

[core]
projects_dir = "~/projects"
layout = "flat"            # flat | nested
parallel = 8
timeout_secs = 30

[github]
host = "github.com"
auth = "auto"              # env | gh | config-token | auto

[git]
update_strategy = "ff-only" # ff-only | rebase | merge
autostash = false
terminal_prompt = false

[jobs]
enabled = true
max_attempts = 3
retry_backoff = "exponential" # fixed | exponential
default_timeout_secs = 1800

[mcp]
enabled = true
stdio = true
sse = false
sse_port = 7300

[review]
provider = "claude"        # claude | codex
quality_gates = "auto"     # auto | on | off

[providers.claude]
bin = "claude"
default_args = ["-p", "--output-format", "stream-json"]

[providers.codex]
bin = "codex"
default_args = ["exec"]

[safety]
secret_scan = "block"      # off | warn | block
require_plan_for_ai_apply = true
max_auto_apply_risk = "low" # low | medium | high
"""