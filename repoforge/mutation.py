"""Git commands that change a repository, run through the ``git`` binary."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from repoforge.errors import GitError

_GIT_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "Never",
    "LC_ALL": "C",
    "GIT_PAGER": "cat",
    "PAGER": "cat",
}


@dataclass(frozen=True)
class GitCommandResult:
    """The arguments, exit status and captured output of one git command."""

    args: list[str]
    status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        """Whether the command exited with status zero."""
        return self.status == 0


class GitErrorKind(Enum):
    """Classification of a failed git command."""

    AUTH = "auth"
    NETWORK = "network"
    CONFLICT = "conflict"
    DIRTY = "dirty"
    NON_FAST_FORWARD = "non_fast_forward"
    GIT_MISSING = "git_missing"
    OTHER = "other"

    @classmethod
    def classify(cls, stderr: str) -> GitErrorKind:
        """Classify a failure from the command's standard error."""
        s = stderr.lower()
        if any(
            needle in s
            for needle in (
                "could not read username",
                "authentication failed",
                "permission denied",
                "403 forbidden",
                "401 unauthorized",
            )
        ):
            return cls.AUTH
        if any(
            needle in s
            for needle in (
                "could not resolve host",
                "connection refused",
                "operation timed out",
                "ssl certificate problem",
            )
        ):
            return cls.NETWORK
        if "conflict" in s:
            return cls.CONFLICT
        if any(
            needle in s
            for needle in ("uncommitted changes", "would be overwritten", "local changes")
        ):
            return cls.DIRTY
        if "non-fast-forward" in s or "rejected" in s:
            return cls.NON_FAST_FORWARD
        return cls.OTHER


@dataclass
class FetchOpts:
    """Options for :func:`fetch`."""

    remote: str | None = None
    prune: bool = False
    tags: bool = False
    depth: int | None = None


class PullStrategy(Enum):
    """How :func:`pull` integrates upstream changes."""

    FAST_FORWARD_ONLY = "fast-forward-only"
    MERGE = "merge"
    REBASE = "rebase"


_PULL_FLAGS = {
    PullStrategy.FAST_FORWARD_ONLY: "--ff-only",
    PullStrategy.MERGE: "--no-rebase",
    PullStrategy.REBASE: "--rebase",
}


@dataclass
class PullOpts:
    """Options for :func:`pull`; the strategy defaults to fast-forward only."""

    remote: str | None = None
    branch: str | None = None
    strategy: PullStrategy = PullStrategy.FAST_FORWARD_ONLY


@dataclass(frozen=True)
class PullOutcome:
    """Result of a pull with conflict and up-to-date flags."""

    result: GitCommandResult
    conflict: bool
    already_up_to_date: bool


@dataclass
class CloneOpts:
    """Options for :func:`clone`."""

    depth: int | None = None
    branch: str | None = None
    recurse_submodules: bool = False


@dataclass(frozen=True)
class CloneOutcome:
    """Result of a clone and where it was written."""

    dest: Path
    result: GitCommandResult


@dataclass
class PushOpts:
    """Options for :func:`push`."""

    remote: str | None = None
    branch: str | None = None
    force_with_lease: bool = False
    set_upstream: bool = False
    tags: bool = False


def _run_in(cwd: Path | None, args: Sequence[str]) -> GitCommandResult:
    argv = [str(arg) for arg in args]
    try:
        proc = subprocess.run(
            ["git", "--no-pager", *argv],
            cwd=cwd,
            env={**os.environ, **_GIT_ENV},
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise GitError(f"spawning git {' '.join(argv)}: {exc}") from exc
    return GitCommandResult(
        args=argv,
        status=proc.returncode if proc.returncode >= 0 else -1,
        stdout=proc.stdout.decode("utf-8", errors="replace"),
        stderr=proc.stderr.decode("utf-8", errors="replace"),
    )


def run(repo: str | Path, args: Sequence[str]) -> GitCommandResult:
    """Run an arbitrary git subcommand inside ``repo``."""
    return _run_in(Path(repo), args)


def fetch(repo: str | Path, opts: FetchOpts | None = None) -> GitCommandResult:
    """Fetch refs from a remote."""
    opts = opts or FetchOpts()
    args = ["fetch"]
    if opts.prune:
        args.append("--prune")
    if opts.tags:
        args.append("--tags")
    if opts.depth is not None:
        args.append(f"--depth={opts.depth}")
    if opts.remote is not None:
        args.append(opts.remote)
    return run(repo, args)


def fetch_remote(repo: str | Path, remote: str) -> None:
    """Fetch from the named remote."""
    fetch(repo, FetchOpts(remote=remote))


def pull(repo: str | Path, opts: PullOpts | None = None) -> PullOutcome:
    """Pull from a remote using the configured strategy."""
    opts = opts or PullOpts()
    args = ["pull", _PULL_FLAGS[opts.strategy]]
    if opts.remote is not None:
        args.append(opts.remote)
    if opts.branch is not None:
        args.append(opts.branch)
    result = run(repo, args)
    return PullOutcome(
        result=result,
        conflict="conflict" in result.stderr or "CONFLICT" in result.stdout,
        already_up_to_date="Already up to date" in result.stdout,
    )


def clone(url: str, dest: str | Path, opts: CloneOpts | None = None) -> CloneOutcome:
    """Clone ``url`` into ``dest``."""
    opts = opts or CloneOpts()
    dest = Path(dest)
    args = ["clone"]
    if opts.depth is not None:
        args.append(f"--depth={opts.depth}")
    if opts.branch is not None:
        args += ["--branch", opts.branch]
    if opts.recurse_submodules:
        args.append("--recurse-submodules")
    args += [url, str(dest)]
    return CloneOutcome(dest=dest, result=_run_in(None, args))


def commit(repo: str | Path, files: Sequence[str | Path], message: str) -> str:
    """Stage exactly ``files``, commit them and return the new commit id."""
    if not files:
        raise GitError("commit requires at least one file")
    add = run(repo, ["add", "--", *(str(f) for f in files)])
    if not add.ok:
        raise GitError(f"git add failed: {add.stderr.strip()}")
    result = run(repo, ["commit", "--no-gpg-sign", "-m", message])
    if not result.ok:
        raise GitError(f"git commit failed: {result.stderr.strip()}")
    head = run(repo, ["rev-parse", "HEAD"])
    if not head.ok:
        raise GitError(f"git rev-parse HEAD failed: {head.stderr.strip()}")
    return head.stdout.strip()


def push(repo: str | Path, opts: PushOpts | None = None) -> GitCommandResult:
    """Push to a remote."""
    opts = opts or PushOpts()
    args = ["push"]
    if opts.set_upstream:
        args.append("--set-upstream")
    if opts.force_with_lease:
        args.append("--force-with-lease")
    if opts.tags:
        args.append("--tags")
    if opts.remote is not None:
        args.append(opts.remote)
    if opts.branch is not None:
        args.append(opts.branch)
    return run(repo, args)


def reset_hard(repo: str | Path, oid: str) -> GitCommandResult:
    """Hard-reset the working tree to ``oid``. Destructive."""
    if not oid:
        raise GitError("reset_hard requires an oid")
    return run(repo, ["reset", "--hard", oid])