import subprocess

import pytest

from repoforge.errors import GitError
from repoforge.read import (
    ahead_behind,
    current_branch,
    discover,
    has_remote,
    head_oid,
    is_dirty,
    merged_branches,
    status,
)
from repoforge.status import AheadBehind, RepoStatus, StatusKind


def run_git(path, *args):
    result = subprocess.run(
        ["git", *args], cwd=path, capture_output=True, text=True, check=False
    )
    assert result.returncode == 0, f"git {args} failed: {result.stderr}"
    return result.stdout


@pytest.fixture
def repo(tmp_path):
    path = tmp_path / "repo"
    path.mkdir()
    run_git(path, "init", "-q", "-b", "main")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "user.name", "Test")
    run_git(path, "config", "commit.gpgSign", "false")
    return path


def commit(path, name, content):
    (path / name).write_text(content)
    run_git(path, "add", ".")
    run_git(path, "commit", "-q", "-m", f"add {name}")


def test_discover_finds_git_dir(repo):
    root = discover(repo)
    assert root.name == ".git"


def test_head_oid_empty_repo(repo):
    assert head_oid(repo) is None


def test_head_oid_after_commit(repo):
    commit(repo, "a.txt", "hello")
    oid = head_oid(repo)
    assert len(oid) == 40
    assert oid == run_git(repo, "rev-parse", "HEAD").strip()


def test_current_branch_after_commit(repo):
    commit(repo, "a.txt", "hello")
    assert current_branch(repo) == "main"


def test_current_branch_detached(repo):
    commit(repo, "a.txt", "hello")
    run_git(repo, "checkout", "-q", "--detach")
    assert current_branch(repo) is None


def test_is_dirty_clean_repo(repo):
    commit(repo, "a.txt", "hello")
    assert is_dirty(repo) is False


def test_is_dirty_with_changes(repo):
    commit(repo, "a.txt", "hello")
    (repo / "a.txt").write_text("changed")
    assert is_dirty(repo) is True


def test_status_clean_repo(repo):
    commit(repo, "a.txt", "hello")
    assert status(repo) == RepoStatus(StatusKind.CURRENT)


def test_status_dirty_repo(repo):
    commit(repo, "a.txt", "hello")
    (repo / "a.txt").write_text("changed")
    assert status(repo) == RepoStatus(StatusKind.DIRTY)


def test_status_missing(tmp_path):
    assert status(tmp_path / "does-not-exist") == RepoStatus(StatusKind.MISSING)


def test_status_not_a_repo(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    assert status(plain) == RepoStatus(StatusKind.MISSING)


def test_head_oid_not_a_repo(tmp_path):
    with pytest.raises(GitError, match="opening git repo"):
        head_oid(tmp_path)


def test_ahead_behind_unknown_upstream_is_zero(repo):
    commit(repo, "a.txt", "hello")
    assert ahead_behind(repo, "origin/main") == AheadBehind.ZERO


def test_ahead_behind_counts(repo):
    commit(repo, "a.txt", "base")
    run_git(repo, "branch", "base")
    commit(repo, "b.txt", "one")
    commit(repo, "c.txt", "two")
    assert ahead_behind(repo, "base") == AheadBehind(ahead=2, behind=0)


def test_has_remote(repo):
    assert has_remote(repo, "origin") is False
    run_git(repo, "remote", "add", "origin", "https://example.com/owner/repo.git")
    assert has_remote(repo, "origin") is True
    assert has_remote(repo, "upstream") is False


def test_merged_branches_excludes_current_and_main(repo):
    commit(repo, "a.txt", "hello")
    run_git(repo, "branch", "feature")
    run_git(repo, "branch", "master")
    assert merged_branches(repo) == ["feature"]


def test_merged_branches_not_a_repo(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    (plain / ".git").write_text("gitdir: /nonexistent/path")
    assert merged_branches(plain) == []