"""Configuration schema with the defaults shipped by ``init``."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Self

import tomli_w

from repoforge.errors import ConfigError

_U32_MAX = 2**32 - 1
_U16_MAX = 2**16 - 1


def _str(default: str) -> Any:
    return field(default=default, metadata={"kind": "str"})


def _bool(default: bool) -> Any:
    return field(default=default, metadata={"kind": "bool"})


def _uint(default: int, maximum: int) -> Any:
    return field(default=default, metadata={"kind": "uint", "max": maximum})


def _strlist() -> Any:
    return field(default_factory=list, metadata={"kind": "strlist"})


def _section(section_cls: type) -> Any:
    return field(default_factory=section_cls, metadata={"kind": "section", "cls": section_cls})


def _convert(value: Any, meta: Mapping[str, Any], where: str) -> Any:
    kind = meta["kind"]
    if kind == "str":
        if not isinstance(value, str):
            raise ConfigError(f"{where}: expected a string")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise ConfigError(f"{where}: expected a boolean")
        return value
    if kind == "uint":
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError(f"{where}: expected an integer")
        if not 0 <= value <= meta["max"]:
            raise ConfigError(f"{where}: {value} is out of range 0..={meta['max']}")
        return value
    if kind == "strlist":
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{where}: expected a list of strings")
        return list(value)
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where}: expected a table")
    return meta["cls"]._from_mapping(value, f"{where}.")


class _Section:
    """Builds a dataclass section from a mapping, keeping defaults for absent keys."""

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any], prefix: str = "") -> Self:
        values = {
            f.name: _convert(data[f.name], f.metadata, f"{prefix}{f.name}")
            for f in fields(cls)  # type: ignore[arg-type]
            if f.name in data
        }
        return cls(**values)


@dataclass
class CoreConfig(_Section):
    """``[core]``: global runtime knobs."""

    projects_dir: str = _str("~/projects")
    layout: str = _str("flat")
    parallel: int = _uint(8, _U32_MAX)
    timeout_secs: int = _uint(30, _U32_MAX)


@dataclass
class GitHubConfig(_Section):
    """``[github]``: GitHub host and auth strategy."""

    host: str = _str("github.com")
    auth: str = _str("auto")


@dataclass
class GitConfig(_Section):
    """``[git]``: git command behaviour."""

    update_strategy: str = _str("ff-only")
    autostash: bool = _bool(False)
    terminal_prompt: bool = _bool(False)


@dataclass
class JobsConfig(_Section):
    """``[jobs]``: durable job execution."""

    enabled: bool = _bool(True)
    max_attempts: int = _uint(3, _U32_MAX)
    retry_backoff: str = _str("exponential")
    default_timeout_secs: int = _uint(1800, _U32_MAX)


@dataclass
class McpConfig(_Section):
    """``[mcp]``: MCP server configuration."""

    enabled: bool = _bool(True)
    stdio: bool = _bool(True)
    sse: bool = _bool(False)
    sse_port: int = _uint(7300, _U16_MAX)


@dataclass
class ReviewConfig(_Section):
    """``[review]``: review and sweep defaults."""

    provider: str = _str("claude")
    quality_gates: str = _str("auto")


@dataclass
class ProviderConfig(_Section):
    """A single AI provider: binary and default arguments."""

    bin: str = _str("")
    default_args: list[str] = _strlist()


@dataclass
class ProvidersConfig(_Section):
    """``[providers]``: AI provider configuration."""

    claude: ProviderConfig = _section(ProviderConfig)
    codex: ProviderConfig = _section(ProviderConfig)


@dataclass
class SafetyConfig(_Section):
    """``[safety]``: secret scanning and AI auto-apply guards."""

    secret_scan: str = _str("block")
    require_plan_for_ai_apply: bool = _bool(True)
    max_auto_apply_risk: str = _str("low")


@dataclass
class AppConfig(_Section):
    """Top-level application configuration."""

    core: CoreConfig = _section(CoreConfig)
    github: GitHubConfig = _section(GitHubConfig)
    git: GitConfig = _section(GitConfig)
    jobs: JobsConfig = _section(JobsConfig)
    mcp: McpConfig = _section(McpConfig)
    review: ReviewConfig = _section(ReviewConfig)
    providers: ProvidersConfig = _section(ProvidersConfig)
    safety: SafetyConfig = _section(SafetyConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        """Build a config from a mapping; unknown keys are ignored."""
        if not isinstance(data, Mapping):
            raise ConfigError("expected a table at the top level")
        return cls._from_mapping(data)

    def to_dict(self) -> dict[str, Any]:
        """Return the config as nested dictionaries."""
        return asdict(self)

    @classmethod
    def from_toml(cls, text: str) -> AppConfig:
        """Parse a config from TOML text."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML: {exc}") from exc
        return cls.from_dict(data)

    def to_toml(self) -> str:
        """Serialize the config as TOML text."""
        return tomli_w.dumps(self.to_dict())