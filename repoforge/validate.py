"""Validation of enum-like and numeric configuration fields."""

from __future__ import annotations

from repoforge.errors import ConfigError
from repoforge.schema import AppConfig


def _choice(name: str, value: str, allowed: tuple[str, ...], label: str = "not valid") -> None:
    if value not in allowed:
        raise ConfigError(f"{name}: '{value}' is {label} (expected: {' | '.join(allowed)})")


def _at_least_one(name: str, value: int) -> None:
    if value == 0:
        raise ConfigError(f"{name}: must be >= 1")


def validate(cfg: AppConfig) -> None:
    """Raise :class:`ConfigError` describing the first invalid field of ``cfg``."""
    _choice("core.layout", cfg.core.layout, ("flat", "nested"), "not a valid layout")
    _at_least_one("core.parallel", cfg.core.parallel)
    _at_least_one("core.timeout_secs", cfg.core.timeout_secs)
    _choice("github.auth", cfg.github.auth, ("env", "gh", "config-token", "auto"))
    _choice("git.update_strategy", cfg.git.update_strategy, ("ff-only", "rebase", "merge"))
    _choice("jobs.retry_backoff", cfg.jobs.retry_backoff, ("fixed", "exponential"))
    _at_least_one("jobs.max_attempts", cfg.jobs.max_attempts)
    _choice("review.provider", cfg.review.provider, ("claude", "codex"))
    _choice("review.quality_gates", cfg.review.quality_gates, ("auto", "on", "off"))
    _choice("safety.secret_scan", cfg.safety.secret_scan, ("off", "warn", "block"))
    _choice(
        "safety.max_auto_apply_risk", cfg.safety.max_auto_apply_risk, ("low", "medium", "high")
    )