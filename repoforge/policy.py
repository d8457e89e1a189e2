"""Repository policy documents and checks against them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repoforge.errors import ConfigError

_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    if key not in data:
        return []
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"parsing policy YAML: {key}: expected a list of strings")
    return list(value)


@dataclass(frozen=True)
class FileViolation:
    """A single file-level policy violation."""

    path: str
    message: str


@dataclass
class PolicyReport:
    """The outcome of checking a repository against a policy."""

    file_violations: list[FileViolation] = field(default_factory=list)
    missing_labels: list[str] = field(default_factory=list)

    def is_clean(self) -> bool:
        """Return ``True`` if nothing was violated."""
        return not self.file_violations and not self.missing_labels

    def total_violations(self) -> int:
        """Return the number of file violations plus missing labels."""
        return len(self.file_violations) + len(self.missing_labels)


@dataclass
class Policy:
    """A policy document: required files, GitHub labels and extra rules."""

    required_files: list[str] = field(default_factory=list)
    github_labels: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str | Path) -> Policy:
        """Load a policy from a YAML file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"reading policy file: {path}: {exc}") from exc
        return cls.from_yaml(text)

    @classmethod
    def from_yaml(cls, text: str) -> Policy:
        """Parse a policy from YAML text; an empty document is an empty policy."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"parsing policy YAML: {exc}") from exc
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("parsing policy YAML: expected a mapping at the top level")
        if not all(isinstance(key, str) for key in data):
            raise ConfigError("parsing policy YAML: keys must be strings")
        extra = {
            key: value
            for key, value in data.items()
            if key not in ("required_files", "github_labels")
        }
        return cls(
            required_files=_string_list(data, "required_files"),
            github_labels=_string_list(data, "github_labels"),
            extra=extra,
        )

    @classmethod
    def default_policy(cls) -> Policy:
        """Return a policy enforcing common best practices."""
        return cls(
            required_files=["README.md", "LICENSE"],
            github_labels=["bug", "enhancement", "good first issue"],
        )

    def check_files(self, repo_path: str | Path) -> list[FileViolation]:
        """Return a violation for each required file missing under ``repo_path``."""
        root = Path(repo_path)
        return [
            FileViolation(path=required, message=f"required file missing: {required}")
            for required in self.required_files
            if not (root / required).exists()
        ]

    def check_labels(self, existing: Iterable[str]) -> list[str]:
        """Return the required labels absent from ``existing``, ignoring ASCII case."""
        present = {_ascii_lower(label) for label in existing}
        return [label for label in self.github_labels if _ascii_lower(label) not in present]

    def is_empty(self) -> bool:
        """Return ``True`` if the policy has no rules."""
        return not self.required_files and not self.github_labels and not self.extra


def check_policy(
    policy: Policy, repo_path: str | Path, existing_labels: Iterable[str]
) -> PolicyReport:
    """Check a repository path and its existing labels against ``policy``."""
    return PolicyReport(
        file_violations=policy.check_files(repo_path),
        missing_labels=policy.check_labels(existing_labels),
    )