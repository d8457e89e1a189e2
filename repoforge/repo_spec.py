"""GitHub repository spec parser."""

from __future__ import annotations

from dataclasses import dataclass

from repoforge.errors import InvalidRepoSpecError

_REJECTED_PREFIXES = (
    "gitlab:",
    "gitea://",
    "forgejo://",
    "bitbucket:",
    "https://gitlab.com",
    "https://gitea.com",
)


def _strip_git_suffix(text: str) -> str:
    return text.removesuffix(".git")


@dataclass(frozen=True)
class RepoSpec:
    """Parsed GitHub repository specification."""

    host: str
    owner: str
    name: str
    branch: str | None
    alias: str | None
    clone_url: str

    def canonical(self) -> str:
        """Return ``owner/name``."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, text: str) -> RepoSpec:
        """Parse a repo spec.

        Accepts ``owner/repo``, ``github.com/owner/repo``, HTTPS URLs with or
        without ``.git``, SSH ``git@host:owner/repo.git``, a ``#branch`` suffix
        and an ``as alias`` suffix. Known non-GitHub hosts are rejected.
        """
        text = text.strip()
        if not text:
            raise InvalidRepoSpecError("empty input")

        lower = text.lower()
        if lower.startswith(_REJECTED_PREFIXES):
            raise InvalidRepoSpecError(f"non-GitHub host not supported: {text}")

        spec_part, sep, alias_part = text.partition(" as ")
        alias = alias_part.strip() if sep else None
        if sep:
            spec_part = spec_part.strip()

        branch = None
        idx = spec_part.rfind("#")
        if idx != -1:
            branch = spec_part[idx + 1 :].strip()
            spec_part = spec_part[:idx].strip()

        if spec_part.startswith("git@"):
            rest = spec_part[len("git@") :]
            host, colon, path = rest.partition(":")
            if colon:
                return cls._from_host_path(host, _strip_git_suffix(path), branch, alias)

        if spec_part.startswith("https://"):
            rest = _strip_git_suffix(spec_part[len("https://") :])
            host, slash, path = rest.partition("/")
            if slash:
                return cls._from_host_path(host, path, branch, alias)

        if spec_part.startswith("github.com/"):
            rest = _strip_git_suffix(spec_part[len("github.com/") :])
            return cls._from_host_path("github.com", rest, branch, alias)

        return cls._from_host_path("github.com", spec_part, branch, alias)

    @classmethod
    def _from_host_path(
        cls, host: str, path: str, branch: str | None, alias: str | None
    ) -> RepoSpec:
        owner, slash, name = path.partition("/")
        if not slash:
            raise InvalidRepoSpecError(f"expected owner/repo, got: {path}")
        if not owner or not name:
            raise InvalidRepoSpecError(f"owner and name must be non-empty: {path}")
        return cls(
            host=host,
            owner=owner,
            name=name,
            branch=branch,
            alias=alias,
            clone_url=f"https://{host}/{owner}/{name}.git",
        )