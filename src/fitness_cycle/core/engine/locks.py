"""
Per-user locking.

Cycle transitions and completion read-modify-write sequences run under the
lock of the user they touch. A user's lock is identified by the data
directory and the username, so every store and engine in the process that
points at the same directory shares it. It has two layers:

    thread lock   process-wide threading.RLock
    file lock     <data_dir>/.locks/<username>.lock, held across processes

Both layers are re-entrant within a thread, so a locked operation can call
another locked operation for the same user.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

LOCK_DIR = ".locks"

_guard = threading.Lock()
_thread_locks: dict[tuple[str, str], threading.RLock] = {}
_file_locks: dict[tuple[str, str], FileLock] = {}


class UserLocks:
    """
    Locks for the users of one data directory.

    Instances created for the same directory hand out the same locks.

    Args:
        root: Data directory holding the user directories
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _key(self, username: str) -> tuple[str, str]:
        return (str(self.root.expanduser().resolve()), username)

    def _locks_for(self, username: str) -> tuple[threading.RLock, FileLock]:
        key = self._key(username)
        with _guard:
            thread_lock = _thread_locks.get(key)
            if thread_lock is None:
                thread_lock = threading.RLock()
                _thread_locks[key] = thread_lock
            file_lock = _file_locks.get(key)
            if file_lock is None:
                file_lock = FileLock(str(Path(key[0]) / LOCK_DIR / f"{username}.lock"))
                _file_locks[key] = file_lock
        return thread_lock, file_lock

    @contextmanager
    def for_user(self, username: str) -> Iterator[None]:
        """Hold the user's thread and file locks for the duration of the block."""
        thread_lock, file_lock = self._locks_for(username)
        with thread_lock:
            Path(file_lock.lock_file).parent.mkdir(parents=True, exist_ok=True)
            with file_lock:
                yield
