"""Error types shared across the package."""

from __future__ import annotations


class CoreError(Exception):
    """Base class for every error raised by this package."""


class InvalidRepoSpecError(CoreError, ValueError):
    """A repository spec string could not be parsed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"invalid repo spec: {detail}")


class ConfigError(CoreError):
    """Configuration could not be read, parsed or validated."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"config error: {detail}")


class GitError(CoreError):
    """A git command failed or a git repository could not be used."""