"""Context packs and an in-memory context cache."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any


class ContextCache:
    """In-memory cache of JSON-like context data keyed by string."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key`` or ``None``."""
        return self._entries.get(key)

    def insert(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self._entries[key] = value

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


@dataclass
class ContextPack:
    """Structured repository information for AI agents."""

    repo_id: str
    owner: str
    name: str
    branch: str = "main"
    health: dict[str, Any] = field(default_factory=dict)
    open_issues: list[Any] = field(default_factory=list)
    open_prs: list[Any] = field(default_factory=list)
    recent_commits: list[Any] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """Return the pack as a JSON-compatible dictionary."""
        return copy.deepcopy(asdict(self))