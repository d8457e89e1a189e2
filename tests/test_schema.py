import pytest

from repoforge.errors import ConfigError
from repoforge.schema import AppConfig, ProviderConfig


def test_defaults_match_plan_example():
    cfg = AppConfig()
    assert cfg.core.layout == "flat"
    assert cfg.core.parallel == 8
    assert cfg.core.timeout_secs == 30
    assert cfg.github.host == "github.com"
    assert cfg.github.auth == "auto"
    assert cfg.git.update_strategy == "ff-only"
    assert cfg.jobs.enabled is True
    assert cfg.jobs.max_attempts == 3
    assert cfg.jobs.retry_backoff == "exponential"
    assert cfg.jobs.default_timeout_secs == 1800
    assert cfg.mcp.enabled is True
    assert cfg.mcp.stdio is True
    assert cfg.mcp.sse is False
    assert cfg.mcp.sse_port == 7300
    assert cfg.review.provider == "claude"
    assert cfg.review.quality_gates == "auto"
    assert cfg.safety.secret_scan == "block"
    assert cfg.safety.require_plan_for_ai_apply is True
    assert cfg.safety.max_auto_apply_risk == "low"


def test_round_trip_through_toml():
    cfg = AppConfig()
    cfg.providers.claude = ProviderConfig(bin="claude", default_args=["-p", "x"])
    parsed = AppConfig.from_toml(cfg.to_toml())
    assert parsed.core.layout == cfg.core.layout
    assert parsed.jobs.max_attempts == cfg.jobs.max_attempts
    assert parsed.providers.claude.default_args == cfg.providers.claude.default_args
    assert parsed == cfg


def test_partial_toml_keeps_defaults():
    cfg = AppConfig.from_toml('[core]\nlayout = "nested"\n[mcp]\nsse = true\n')
    assert cfg.core.layout == "nested"
    assert cfg.core.parallel == 8
    assert cfg.mcp.sse is True
    assert cfg.mcp.sse_port == 7300


def test_provider_defaults_are_empty():
    cfg = AppConfig()
    assert cfg.providers.claude.bin == ""
    assert cfg.providers.codex.default_args == []


def test_unknown_keys_ignored():
    cfg = AppConfig.from_dict({"core": {"parallel": 4, "mystery": 1}, "other": {}})
    assert cfg.core.parallel == 4


def test_to_dict_is_nested():
    data = AppConfig().to_dict()
    assert data["core"]["layout"] == "flat"
    assert data["providers"]["codex"] == {"bin": "", "default_args": []}


@pytest.mark.parametrize(
    "data",
    [
        {"core": {"parallel": "eight"}},
        {"core": {"parallel": -1}},
        {"core": {"layout": 3}},
        {"mcp": {"sse_port": 70000}},
        {"git": {"autostash": "yes"}},
        {"providers": {"claude": {"default_args": [1]}}},
        {"core": "flat"},
    ],
)
def test_bad_types_rejected(data):
    with pytest.raises(ConfigError):
        AppConfig.from_dict(data)


def test_invalid_toml_rejected():
    with pytest.raises(ConfigError, match="invalid TOML"):
        AppConfig.from_toml("[core\n")