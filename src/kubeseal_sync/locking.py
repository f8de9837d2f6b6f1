"""Single-writer lock for a sealed-secrets tree.

Reading a prior SealedSecret, merging and writing it back is not
transactional, so only one reconciliation batch may run against a
manifest tree at a time.
"""

import contextlib
import os
from pathlib import Path

from kubeseal_sync.exceptions import LockError

LOCK_FILE_NAME = ".kubeseal-sync.lock"


class WriterLock:
    """Exclusive lock file created with ``O_CREAT | O_EXCL``.

    Attributes:
        path: Location of the lock file.

    """

    def __init__(self, directory: Path) -> None:
        self.path: Path = directory / LOCK_FILE_NAME
        self._held = False

    def __repr__(self) -> str:
        return f"WriterLock(path={str(self.path)!r}, held={self._held})"

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            LockError: If the lock file already exists.

        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as err:
            holder = ""
            with contextlib.suppress(OSError):
                holder = self.path.read_text().strip()
            by = f" by process {holder}" if holder else ""
            raise LockError(
                f"Another reconciliation is running{by}; remove {self.path} if it is stale"
            ) from err

        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self._held = True

    def release(self) -> None:
        if not self._held:
            return
        with contextlib.suppress(OSError):
            self.path.unlink(missing_ok=True)
        self._held = False

    def __enter__(self) -> "WriterLock":
        self.acquire()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.release()
