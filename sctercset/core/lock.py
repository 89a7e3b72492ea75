"""Exclusive locking of the drive registry.

Two runs appending to the same registry could register a drive twice, so
``sctercset run`` holds a lock file next to the registry while it works.
"""
import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sctercset.core.errors import SctercsetError
from sctercset.core.logger import get_logger

logger = get_logger(__name__)


class LockError(SctercsetError):
    """Raised when unable to acquire lock."""
    pass


def lock_path_for(registry_path: Path) -> Path:
    """``scterc_conf.csv`` -> ``scterc_conf.csv.lock``"""
    registry_path = Path(registry_path)
    return registry_path.with_name(registry_path.name + ".lock")


class RegistryLock:
    """File-based lock preventing concurrent runs against one registry."""

    def __init__(self, lock_file: Path):
        self.lock_file = Path(lock_file)
        self.lock_fd = None

    def acquire(self) -> bool:
        """Acquire the lock without waiting.

        Raises:
            LockError: If another process holds the lock
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            self.lock_fd = open(self.lock_file, 'a+')
        except OSError as e:
            raise LockError(f"Cannot create lock file {self.lock_file}: {e}") from e

        try:
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            lock_info = self._read_lock_info()
            self.lock_fd.close()
            self.lock_fd = None
            raise LockError(
                f"Another sctercset run is using this registry.\n"
                f"Lock held by PID {lock_info['pid']} since {lock_info['time']}\n"
                "Wait for it to finish and try again."
            )

        self.lock_fd.seek(0)
        self.lock_fd.truncate()
        self.lock_fd.write(f"{os.getpid()}\n")
        self.lock_fd.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')}\n")
        self.lock_fd.flush()

        logger.debug(f"Acquired lock: {self.lock_file}")
        return True

    def release(self):
        """Release the lock.

        The lock file stays in place; only the flock on it marks the registry
        as busy, and the kernel drops that when the holder exits.
        """
        if self.lock_fd is None:
            return

        try:
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_UN)
            self.lock_fd.close()
            logger.debug(f"Released lock: {self.lock_file}")
        except OSError as e:
            logger.warning(f"Error releasing lock: {e}")
        finally:
            self.lock_fd = None

    def _read_lock_info(self) -> dict:
        """Read info from lock file about who holds it."""
        try:
            with open(self.lock_file) as f:
                lines = f.readlines()
                if len(lines) >= 2:
                    return {
                        'pid': lines[0].strip(),
                        'time': lines[1].strip()
                    }
        except OSError:
            pass

        return {'pid': 'unknown', 'time': 'unknown'}

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


@contextmanager
def registry_lock(registry_path: Path):
    """Hold the lock for ``registry_path`` for the duration of the block.

    Raises:
        LockError: If unable to acquire lock
    """
    lock = RegistryLock(lock_path_for(registry_path))
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()
