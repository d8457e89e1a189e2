"""Dependency updates: detect ecosystems, find outdated packages, update, test and commit."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from repoforge.errors import CoreError, GitError

_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}
_CARGO_ENV = {"CARGO_TERM_PROGRESS_WIDTH": "80"}

_UPDATE_COMMANDS: dict[str, tuple[list[str], Mapping[str, str], str]] = {
    "cargo": (["cargo", "update"], _CARGO_ENV, "cargo update"),
    "npm": (["npm", "install"], {}, "npm install"),
    "go": (["go", "get"], {}, "go get"),
    "pip": (["pip", "install", "--upgrade"], {}, "pip install --upgrade"),
}

_TEST_COMMANDS: dict[str, tuple[list[str], str]] = {
    "cargo": (["cargo", "test", "--no-fail-fast", "--color=never"], "cargo test"),
    "npm": (["npm", "test"], "npm test"),
    "go": (["go", "test", "./..."], "go test ./..."),
}


@dataclass
class DetectedDeps:
    """Outdated packages found for one ecosystem."""

    ecosystem: str
    out_of_date: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateResult:
    """The outcome of updating a single package."""

    package: str
    status: str
    oid: str


def _spawn(
    argv: Sequence[str], cwd: Path, env: Mapping[str, str] | None = None
) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(
        list(argv),
        cwd=cwd,
        env={**os.environ, **(env or {})},
        capture_output=True,
        check=False,
    )


def _run(
    argv: Sequence[str], cwd: Path, context: str, env: Mapping[str, str] | None = None
) -> subprocess.CompletedProcess[bytes]:
    """Run a command, raising :class:`CoreError` if it cannot be started."""
    try:
        return _spawn(argv, cwd, env)
    except OSError as exc:
        raise CoreError(f"{context}: {exc}") from exc


def _git(cwd: Path, *args: str) -> subprocess.CompletedProcess[bytes]:
    try:
        return _spawn(["git", *args], cwd, _GIT_ENV)
    except OSError as exc:
        raise GitError(f"git {' '.join(args)}: {exc}") from exc


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def detect_package_managers(repo_path: str | Path) -> list[str]:
    """Return the ecosystems present in ``repo_path``, in a fixed order."""
    root = Path(repo_path)
    managers = []
    if (root / "Cargo.toml").exists():
        managers.append("cargo")
    if (root / "package.json").exists():
        managers.append("npm")
    if (root / "go.mod").exists():
        managers.append("go")
    if any((root / name).exists() for name in ("pyproject.toml", "requirements.txt", "setup.py")):
        managers.append("pip")
    return managers


def _cargo_outdated(root: Path) -> list[str]:
    out = _run(
        ["cargo", "update", "--dry-run", "--color=never"],
        root,
        "cargo update --dry-run",
        _CARGO_ENV,
    )
    outdated: list[str] = []
    for line in _decode(out.stderr).splitlines():
        if "Upgrading" in line or "Fetching" in line:
            continue
        if " " in line:
            words = line.split()
            pkg = words[0] if words else ""
            if pkg and pkg not in outdated:
                outdated.append(pkg)
    return outdated


def _npm_outdated(root: Path) -> list[str]:
    try:
        out = _spawn(["npm", "outdated", "--parseable", "--json"], root)
    except OSError:
        return []
    if out.returncode != 0:
        return []
    try:
        data = json.loads(out.stdout)
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    return sorted(name for name in data if not name.startswith("@"))


def _go_outdated(root: Path) -> list[str]:
    out = _run(["go", "list", "-m", "-u", "all"], root, "go list -m -u all")
    outdated = []
    for line in _decode(out.stdout).splitlines():
        parts = line.split()
        if len(parts) >= 2 and "upgrade" in parts[1]:
            outdated.append(parts[0])
    return outdated


def _pip_outdated(root: Path) -> list[str]:
    try:
        out = _spawn(["pip", "list", "--outdated", "--format=json"], root)
    except OSError:
        return []
    if out.returncode != 0:
        return []
    try:
        pkgs = json.loads(out.stdout)
    except ValueError:
        return []
    if not isinstance(pkgs, list):
        return []
    return [
        pkg["name"]
        for pkg in pkgs
        if isinstance(pkg, dict) and isinstance(pkg.get("name"), str)
    ]


_OUTDATED_CHECKS = {
    "cargo": _cargo_outdated,
    "npm": _npm_outdated,
    "go": _go_outdated,
    "pip": _pip_outdated,
}


def check_outdated(repo_path: str | Path, ecosystem: str) -> list[str]:
    """Return the outdated packages of ``ecosystem`` in ``repo_path``."""
    check = _OUTDATED_CHECKS.get(ecosystem)
    if check is None:
        return []
    return check(Path(repo_path))


def update_single(repo_path: str | Path, ecosystem: str, package: str) -> bool:
    """Update one package; return whether the package manager succeeded."""
    spec = _UPDATE_COMMANDS.get(ecosystem)
    if spec is None:
        return False
    argv, env, context = spec
    out = _run([*argv, package], Path(repo_path), context, env)
    return out.returncode == 0


def run_tests(repo_path: str | Path, ecosystem: str) -> bool:
    """Run the ecosystem's test suite; ecosystems without one count as passing."""
    spec = _TEST_COMMANDS.get(ecosystem)
    if spec is None:
        return True
    argv, context = spec
    return _run(argv, Path(repo_path), context).returncode == 0


def detect_test_command(repo_path: str | Path, ecosystem: str) -> str | None:
    """Return the test command for ``ecosystem``, if there is one."""
    match ecosystem:
        case "cargo":
            return "cargo test"
        case "npm":
            return "npm test" if (Path(repo_path) / "package.json").is_file() else None
        case "go":
            return "go test ./..."
        case _:
            return None


def _current_branch(root: Path) -> str | None:
    out = _git(root, "branch", "--show-current")
    if out.returncode != 0:
        return None
    return _decode(out.stdout).strip() or None


def commit_update(repo_path: str | Path, package: str, ecosystem: str) -> str:
    """Stage everything, commit the update of ``package`` and push the current branch.

    Returns ``"committed <oid>"``, with ``" (push failed)"`` appended if the
    push was rejected, or ``"nothing to commit"``.
    """
    root = Path(repo_path)
    branch = _current_branch(root)
    if _git(root, "add", ".").returncode != 0:
        raise GitError("git add failed")

    result = _git(root, "commit", "-m", f"chore(deps): update {package}")
    if result.returncode != 0:
        stderr = _decode(result.stderr)
        if "nothing to commit" in stderr:
            return "nothing to commit"
        raise GitError(f"git commit failed: {stderr}")

    lines = _decode(result.stdout).splitlines()
    oid = lines[0][:8] if lines else ""

    if branch is not None:
        try:
            push = _spawn(["git", "push", "origin", branch], root, _GIT_ENV)
        except OSError:
            push = None
        if push is not None and push.returncode != 0:
            return f"committed {oid} (push failed)"
    return f"committed {oid}"


def _reset_worktree(root: Path) -> bool:
    try:
        out = _spawn(["git", "checkout", "--", "."], root, _GIT_ENV)
    except OSError:
        return False
    return out.returncode == 0


def update_and_test(
    repo_path: str | Path, ecosystem: str, package: str, max_retries: int
) -> UpdateResult:
    """Update ``package``, run the tests and commit on success, retrying up to ``max_retries``."""
    root = Path(repo_path)

    def outcome(status: str, oid: str = "") -> UpdateResult:
        return UpdateResult(package=package, status=status, oid=oid)

    for attempt in range(1, max_retries + 1):
        if not update_single(root, ecosystem, package):
            return outcome("update failed")
        if run_tests(root, ecosystem):
            return outcome("ok", commit_update(root, package, ecosystem))
        if attempt >= max_retries:
            return outcome("tests failed after max retries")
        if not _reset_worktree(root):
            return outcome("test failed and reset failed")
    return outcome("max retries")