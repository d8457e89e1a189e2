"""Repository status values and ahead/behind counts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class StatusKind(Enum):
    CURRENT = "current"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"
    CONFLICT = "conflict"
    DIRTY = "dirty"
    MISSING = "missing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RepoStatus:
    """Repository status.

    ``BEHIND`` and ``AHEAD`` carry a commit count ``n``; ``DIVERGED`` carries
    both ``ahead`` and ``behind``. Other kinds carry no counts.
    """

    kind: StatusKind
    n: int | None = None
    ahead: int | None = None
    behind: int | None = None

    def __post_init__(self) -> None:
        counted = self.kind in (StatusKind.BEHIND, StatusKind.AHEAD)
        diverged = self.kind is StatusKind.DIVERGED
        if counted != (self.n is not None):
            raise ValueError(f"{self.kind.value} status {'requires' if counted else 'takes no'} n")
        if diverged != (self.ahead is not None and self.behind is not None) or (
            not diverged and (self.ahead is not None or self.behind is not None)
        ):
            raise ValueError(
                f"{self.kind.value} status {'requires' if diverged else 'takes no'} ahead/behind"
            )

    def __str__(self) -> str:
        match self.kind:
            case StatusKind.BEHIND:
                return f"Behind by {self.n}"
            case StatusKind.AHEAD:
                return f"Ahead by {self.n}"
            case StatusKind.DIVERGED:
                return f"Diverged ({self.ahead} ahead, {self.behind} behind)"
            case _:
                return self.kind.value.capitalize()

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary tagged by ``kind``."""
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.n is not None:
            data["n"] = self.n
        if self.kind is StatusKind.DIVERGED:
            data["ahead"] = self.ahead
            data["behind"] = self.behind
        return data


@dataclass(frozen=True)
class AheadBehind:
    """Ahead/behind counts relative to a reference, typically upstream."""

    ahead: int
    behind: int

    ZERO: ClassVar[AheadBehind]

    def to_status(self) -> RepoStatus:
        """Convert the counts into a :class:`RepoStatus`."""
        match (self.ahead, self.behind):
            case (0, 0):
                return RepoStatus(StatusKind.CURRENT)
            case (a, 0):
                return RepoStatus(StatusKind.AHEAD, n=a)
            case (0, b):
                return RepoStatus(StatusKind.BEHIND, n=b)
            case (a, b):
                return RepoStatus(StatusKind.DIVERGED, ahead=a, behind=b)


AheadBehind.ZERO = AheadBehind(ahead=0, behind=0)