"""Exclusive per-repository file locks."""

from __future__ import annotations

import errno
import os
import sys
import time
from pathlib import Path
from types import TracebackType

from repoforge.errors import GitError

DEFAULT_LOCK_TIMEOUT_SECS = 30
LOCK_FILE_NAME = ".rfo.lock"
_POLL_INTERVAL_SECS = 0.2

if sys.platform == "win32":
    import msvcrt

    def _try_lock(fd: int) -> bool:
        os.lseek(fd, 0, os.SEEK_SET)
        try:
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        except OSError as exc:
            if exc.errno in (errno.EACCES, errno.EDEADLK):
                return False
            raise
        return True

    def _unlock(fd: int) -> None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _try_lock(fd: int) -> bool:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            if exc.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.EACCES):
                return False
            raise
        return True

    def _unlock(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_UN)


class LockTimeoutError(GitError):
    """The repository lock could not be acquired in time."""

    def __init__(self, repo_path: Path, timeout_secs: float) -> None:
        self.repo_path = repo_path
        self.timeout_secs = timeout_secs
        super().__init__(
            f"timed out after {timeout_secs}s waiting for repo lock at {repo_path}. "
            "Another rfo process may be operating on this repo."
        )


class RepoLock:
    """An exclusive lock on a repository, held through ``<repo>/.rfo.lock``.

    Use it as a context manager or call :meth:`release`; releasing also
    removes the lock file.
    """

    def __init__(self, fd: int, lock_path: Path) -> None:
        self._fd: int | None = fd
        self.lock_path = lock_path

    @classmethod
    def acquire(
        cls, repo_path: str | Path, timeout_secs: float = DEFAULT_LOCK_TIMEOUT_SECS
    ) -> RepoLock:
        """Acquire the lock, waiting up to ``timeout_secs`` seconds."""
        repo_path = Path(repo_path)
        try:
            repo_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GitError(f"creating lock parent dir {repo_path}: {exc}") from exc
        lock_path = repo_path / LOCK_FILE_NAME
        try:
            fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as exc:
            raise GitError(f"opening lock file {lock_path}: {exc}") from exc

        deadline = time.monotonic() + timeout_secs
        while True:
            try:
                locked = _try_lock(fd)
            except OSError as exc:
                os.close(fd)
                raise GitError(f"acquiring exclusive lock on {lock_path}: {exc}") from exc
            if locked:
                return cls(fd, lock_path)
            if time.monotonic() >= deadline:
                os.close(fd)
                raise LockTimeoutError(repo_path, timeout_secs)
            time.sleep(_POLL_INTERVAL_SECS)

    @property
    def locked(self) -> bool:
        """Whether the lock is still held."""
        return self._fd is not None

    def release(self) -> None:
        """Release the lock and remove the lock file; safe to call twice."""
        fd, self._fd = self._fd, None
        if fd is None:
            return
        try:
            _unlock(fd)
        except OSError:
            pass
        os.close(fd)
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError:
            pass

    def __enter__(self) -> RepoLock:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __del__(self) -> None:
        if getattr(self, "_fd", None) is not None:
            self.release()