"""Vault-wide lock file that keeps two syncs from running at once."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class SyncLock:
    """Exclusive lock backed by a file holding the owner's pid.

    The file is created with O_EXCL, so only one holder can exist per vault
    across processes. A lock left behind by a process that no longer exists
    is taken over.
    """

    def __init__(self, lock_file: Path):
        self.lock_file = lock_file
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if the lock is now held by us, False if someone else has it
        """
        if self._held:
            return False

        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(2):
            try:
                fd = os.open(self.lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                if not self._clear_stale():
                    return False
                continue
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(os.getpid()))
            self._held = True
            return True
        return False

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        self.lock_file.unlink(missing_ok=True)

    def _clear_stale(self) -> bool:
        """Remove the lock file if its owner process is gone."""
        try:
            pid = int(self.lock_file.read_text(encoding="utf-8").strip())
        except FileNotFoundError:
            # Released between our open and read
            return True
        except (OSError, ValueError):
            return False

        if not _process_gone(pid):
            return False

        logger.warning(f"Removing stale sync lock {self.lock_file} left by process {pid}")
        self.lock_file.unlink(missing_ok=True)
        return True

    def __enter__(self) -> "SyncLock":
        if not self.acquire():
            raise RuntimeError(f"Lock already held: {self.lock_file}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def _process_gone(pid: int) -> bool:
    # Signal 0 probing only exists on POSIX; elsewhere assume the owner is alive
    if os.name != "posix" or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    except PermissionError:
        return False
    return False
