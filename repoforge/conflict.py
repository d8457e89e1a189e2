"""Detection, explanation and abort of in-progress git operations with conflicts."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from repoforge.errors import GitError
from repoforge.read import discover

_log = logging.getLogger(__name__)

_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}


class ConflictOp(Enum):
    """The kind of in-progress operation that caused conflicts."""

    MERGE = "merge"
    REBASE = "rebase"
    CHERRY_PICK = "cherry-pick"
    REVERT = "revert"

    def __str__(self) -> str:
        return self.value


_OP_HEAD_FILES = {
    ConflictOp.MERGE: "MERGE_HEAD",
    ConflictOp.REBASE: "REBASE_HEAD",
    ConflictOp.CHERRY_PICK: "CHERRY_PICK_HEAD",
    ConflictOp.REVERT: "REVERT_HEAD",
}


@dataclass
class ConflictedFile:
    """A conflicted file, relative to the repository root."""

    path: str
    has_markers: bool
    stages: list[int] = field(default_factory=list)


@dataclass
class ConflictState:
    """The conflict state of a repository."""

    op: ConflictOp
    head_ref: str | None
    files: list[ConflictedFile] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Return ``True`` if no files are conflicted."""
        return not self.files

    def __len__(self) -> int:
        return len(self.files)


class MarkResolvedError(GitError):
    """A repository is not yet resolved."""


class NotARepoError(MarkResolvedError):
    """The path is not a git repository."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(str(cause))


class IndexQueryFailedError(MarkResolvedError):
    """Querying the git index failed."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"querying git index failed: {cause}")


class OperationStillInProgressError(MarkResolvedError):
    """A merge, rebase, cherry-pick or revert is still in progress."""

    def __init__(self, op: ConflictOp) -> None:
        self.op = op
        super().__init__(
            f"{op} still in progress — run `git {op} --continue` or `rfo conflict abort <repo>`"
        )


class UnmergedEntriesError(MarkResolvedError):
    """The index still has unmerged entries."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        suffix = "y" if len(paths) == 1 else "ies"
        super().__init__(
            f"{len(paths)} unmerged index entr{suffix} remaining: {', '.join(paths)}"
        )


class ConflictMarkersRemainError(MarkResolvedError):
    """Tracked files still contain conflict markers."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        super().__init__(f"conflict markers (`<<<<<<<`) still present in: {', '.join(paths)}")


def _git(repo_path: Path, *args: str) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(
        ["git", *args],
        cwd=repo_path,
        env={**os.environ, **_GIT_ENV},
        capture_output=True,
        check=False,
    )


def _find_git_dir(repo_path: Path) -> Path:
    try:
        return discover(repo_path)
    except (GitError, OSError) as exc:
        raise GitError(f"not a git repo: {repo_path}") from exc


def _detect_op(git_dir: Path) -> ConflictOp | None:
    for op, name in _OP_HEAD_FILES.items():
        if (git_dir / name).exists():
            return op
    return None


def _read_head_ref(git_dir: Path, op: ConflictOp) -> str | None:
    try:
        return (git_dir / _OP_HEAD_FILES[op]).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return None


def _lines(text: str) -> Iterator[str]:
    for line in text.split("\n"):
        yield line.removesuffix("\r")


def _file_has_conflict_markers(path: Path) -> bool:
    try:
        data = path.read_bytes()
    except OSError:
        return False
    if 0 in data[:512]:
        return False
    saw_start = False
    saw_sep_after_start = False
    for line in _lines(data.decode("utf-8", errors="replace")):
        if line.startswith("<<<<<<<"):
            saw_start = True
            saw_sep_after_start = False
        elif saw_start and line.startswith("======="):
            saw_sep_after_start = True
        elif saw_sep_after_start and line.startswith(">>>>>>>"):
            return True
    return False


def _list_conflicted_files(repo_path: Path) -> list[ConflictedFile]:
    try:
        out = _git(repo_path, "diff", "--name-only", "--diff-filter=U")
    except OSError as exc:
        raise GitError(f"running git diff --name-only --diff-filter=U: {exc}") from exc
    if out.returncode != 0:
        return []
    names = (line.strip() for line in out.stdout.decode("utf-8", errors="replace").splitlines())
    return [
        ConflictedFile(path=name, has_markers=_file_has_conflict_markers(repo_path / name))
        for name in names
        if name
    ]


def _files_with_conflict_markers(repo_path: Path) -> list[str]:
    try:
        out = _git(repo_path, "ls-files", "-z")
    except OSError as exc:
        raise GitError(f"running git ls-files: {exc}") from exc
    if out.returncode != 0:
        return []
    names = (
        raw.decode("utf-8", errors="replace") for raw in out.stdout.split(b"\0") if raw
    )
    return [name for name in names if _file_has_conflict_markers(repo_path / name)]


def detect(repo_path: str | Path) -> ConflictState | None:
    """Return the conflict state of ``repo_path``, or ``None`` if nothing is in progress.

    Raises :class:`GitError` if the path is not a git repository.
    """
    repo_path = Path(repo_path)
    git_dir = _find_git_dir(repo_path)
    op = _detect_op(git_dir)
    if op is None:
        return None
    return ConflictState(
        op=op,
        head_ref=_read_head_ref(git_dir, op),
        files=_list_conflicted_files(repo_path),
    )


def list_conflicts(repos: Iterable[str | Path]) -> list[tuple[Path, ConflictState]]:
    """Return the repositories among ``repos`` that have an active conflict."""
    found = []
    for repo in repos:
        path = Path(repo)
        try:
            state = detect(path)
        except GitError:
            continue
        if state is not None:
            found.append((path, state))
    return found


def explain(state: ConflictState) -> str:
    """Return a human-readable summary of a conflict with safe options."""
    lines = [f"Conflict from in-progress {state.op} ({len(state.files)} file(s))"]
    if state.head_ref is not None:
        lines.append(f"  HEAD: {state.head_ref}")
    lines.append("  Conflicted files:")
    for f in state.files:
        hint = " [has conflict markers]" if f.has_markers else ""
        lines.append(f"    - {f.path}{hint}")
    lines.append("  Safe options:")
    lines.append(f"    1. Resolve manually, then `git add` + `git {state.op} --continue`")
    lines.append(f"    2. Abort: `rfo conflict abort <repo>` (runs `git {state.op} --abort`)")
    return "\n".join(lines) + "\n"


def abort(repo_path: str | Path) -> None:
    """Abort the in-progress operation with ``git <op> --abort``."""
    repo_path = Path(repo_path)
    op = _detect_op(_find_git_dir(repo_path))
    if op is None:
        raise GitError("no in-progress operation to abort")
    try:
        out = _git(repo_path, str(op), "--abort")
    except OSError as exc:
        raise GitError(f"running git {op} --abort in {repo_path}: {exc}") from exc
    if out.returncode != 0:
        raise GitError(
            f"git {op} --abort failed: {out.stderr.decode('utf-8', errors='replace')}"
        )
    if detect(repo_path) is not None:
        _log.warning(
            "git %s --abort completed but conflict state still detected in %s", op, repo_path
        )


def verify_resolved(repo_path: str | Path) -> None:
    """Raise a :class:`MarkResolvedError` unless the repository is fully resolved."""
    repo_path = Path(repo_path)
    try:
        git_dir = _find_git_dir(repo_path)
    except GitError as exc:
        raise NotARepoError(exc) from exc
    op = _detect_op(git_dir)
    if op is not None:
        raise OperationStillInProgressError(op)
    try:
        unmerged = _list_conflicted_files(repo_path)
    except GitError as exc:
        raise IndexQueryFailedError(exc) from exc
    if unmerged:
        raise UnmergedEntriesError([f.path for f in unmerged])
    try:
        with_markers = _files_with_conflict_markers(repo_path)
    except GitError as exc:
        raise IndexQueryFailedError(exc) from exc
    if with_markers:
        raise ConflictMarkersRemainError(with_markers)