import pytest

from repoforge.lock import LOCK_FILE_NAME, LockTimeoutError, RepoLock


def test_lock_acquire_and_release(tmp_path):
    lock = RepoLock.acquire(tmp_path)
    path = lock.lock_path
    assert path == tmp_path / LOCK_FILE_NAME
    assert path.exists()
    lock.release()
    assert not path.exists()
    assert lock.locked is False


def test_lock_is_exclusive(tmp_path):
    with RepoLock.acquire(tmp_path):
        with pytest.raises(LockTimeoutError) as info:
            RepoLock.acquire(tmp_path, 1)
    assert "timed out" in str(info.value)


def test_lock_releases_on_exit(tmp_path):
    with RepoLock.acquire(tmp_path) as lock:
        assert lock.locked is True
    second = RepoLock.acquire(tmp_path, 1)
    assert second.locked is True
    second.release()


def test_release_is_idempotent(tmp_path):
    lock = RepoLock.acquire(tmp_path)
    lock.release()
    lock.release()
    assert not lock.lock_path.exists()


def test_acquire_creates_missing_directory(tmp_path):
    target = tmp_path / "nested" / "repo"
    with RepoLock.acquire(target, 1) as lock:
        assert target.is_dir()
        assert lock.lock_path.parent == target