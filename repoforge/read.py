"""Read-only queries against a git repository."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from repoforge.errors import GitError
from repoforge.status import AheadBehind, RepoStatus, StatusKind

_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}


def _git(repo_path: Path, *args: str) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(
        ["git", *args],
        cwd=repo_path,
        env={**os.environ, **_GIT_ENV},
        capture_output=True,
        check=False,
    )


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _open_repo(repo_path: Path) -> None:
    """Raise :class:`GitError` unless ``repo_path`` is a worktree or a git dir."""
    if (repo_path / ".git").exists():
        return
    if (repo_path / "HEAD").is_file() and (repo_path / "objects").is_dir():
        return
    raise GitError(f"opening git repo at {repo_path}: not a git repository")


def discover(path: str | Path) -> Path:
    """Find the git directory for ``path``, searching upward."""
    path = Path(path)
    try:
        out = _git(path, "rev-parse", "--absolute-git-dir")
    except OSError as exc:
        raise GitError(f"discovering git repo at {path}: {exc}") from exc
    if out.returncode != 0:
        raise GitError(f"discovering git repo at {path}: {_decode(out.stderr).strip()}")
    return Path(_decode(out.stdout).strip())


def head_oid(repo_path: str | Path) -> str | None:
    """Return the HEAD commit id in hex, or ``None`` if there are no commits."""
    repo_path = Path(repo_path)
    _open_repo(repo_path)
    try:
        out = _git(repo_path, "rev-parse", "--verify", "-q", "HEAD^{commit}")
    except OSError as exc:
        raise GitError(f"opening git repo at {repo_path}: {exc}") from exc
    if out.returncode != 0:
        return None
    oid = _decode(out.stdout).strip()
    return oid or None


def current_branch(repo_path: str | Path) -> str | None:
    """Return the current branch name, or ``None`` on a detached HEAD."""
    repo_path = Path(repo_path)
    _open_repo(repo_path)
    try:
        out = _git(repo_path, "symbolic-ref", "--short", "-q", "HEAD")
    except OSError as exc:
        raise GitError(f"opening git repo at {repo_path}: {exc}") from exc
    if out.returncode != 0:
        return None
    name = _decode(out.stdout).strip()
    return name or None


def is_dirty(repo_path: str | Path) -> bool:
    """Return ``True`` if the worktree has uncommitted changes."""
    repo_path = Path(repo_path)
    try:
        out = _git(repo_path, "status", "--porcelain")
    except OSError as exc:
        raise GitError(f"running git status in {repo_path}: {exc}") from exc
    if out.returncode != 0:
        raise GitError(f"git status failed: {_decode(out.stderr)}")
    return bool(out.stdout)


def status(repo_path: str | Path) -> RepoStatus:
    """Return a coarse status: missing, dirty or current."""
    repo_path = Path(repo_path)
    if not repo_path.exists():
        return RepoStatus(StatusKind.MISSING)
    try:
        _open_repo(repo_path)
    except GitError:
        return RepoStatus(StatusKind.MISSING)
    if is_dirty(repo_path):
        return RepoStatus(StatusKind.DIRTY)
    return RepoStatus(StatusKind.CURRENT)


def ahead_behind(repo_path: str | Path, upstream: str) -> AheadBehind:
    """Count commits of HEAD ahead of and behind ``upstream``; zero if unknown."""
    repo_path = Path(repo_path)
    try:
        out = _git(repo_path, "rev-list", "--left-right", "--count", f"{upstream}...HEAD")
    except OSError as exc:
        raise GitError(f"running git rev-list in {repo_path}: {exc}") from exc
    if out.returncode != 0:
        return AheadBehind.ZERO
    counts = []
    for token in _decode(out.stdout).split()[:2]:
        try:
            counts.append(int(token))
        except ValueError:
            counts.append(0)
    counts += [0] * (2 - len(counts))
    behind, ahead = counts
    return AheadBehind(ahead=ahead, behind=behind)


def has_remote(repo_path: str | Path, remote: str) -> bool:
    """Return ``True`` if the repository has a remote named ``remote``."""
    try:
        out = _git(Path(repo_path), "remote")
    except OSError:
        return False
    if out.returncode != 0:
        return False
    return any(line.strip() == remote for line in _decode(out.stdout).splitlines())


def merged_branches(repo_path: str | Path) -> list[str]:
    """List local branches merged into HEAD, excluding the current, main and master."""
    repo_path = Path(repo_path)
    try:
        out = _git(repo_path, "branch", "--merged", "--format=%(refname:short)")
    except OSError:
        return []
    if out.returncode != 0:
        return []
    try:
        current = current_branch(repo_path)
    except GitError:
        current = None
    names = (line.strip() for line in _decode(out.stdout).splitlines())
    return [
        name
        for name in names
        if name and name != current and name not in ("main", "master")
    ]