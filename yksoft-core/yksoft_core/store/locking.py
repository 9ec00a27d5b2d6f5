"""
Record Locking
==============
Exclusive advisory file locks scoped to a single token record.

The lock is held on a dot-prefixed sidecar file so it survives the
write-then-replace cycle of the record file itself.
"""

import os
from pathlib import Path
from typing import Optional

import structlog

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = structlog.get_logger(__name__)


def _lock_fd(fd: int) -> None:
    if os.name == "nt":
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_EX)


def _unlock_fd(fd: int) -> None:
    if os.name == "nt":
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_UN)


class RecordLock:
    """
    Blocking exclusive lock on a lock file.

    Separate instances exclude each other across processes and across
    threads of one process. A single instance is not re-entrant.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fd: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        if self._fd is not None:
            raise RuntimeError(f"Lock already held: {self.path.name}")
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            _lock_fd(fd)
        except BaseException:
            os.close(fd)
            raise
        self._fd = fd
        logger.debug("Record lock acquired", lock=self.path.name)

    def release(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            _unlock_fd(fd)
        finally:
            os.close(fd)
        logger.debug("Record lock released", lock=self.path.name)

    def __enter__(self) -> "RecordLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
