"""
Baseline storage for the account audit.

The baseline is the account list seen at the end of the previous audit. It is
owned by the drift detector: loaded once per run and overwritten at the end of
every run.
"""

import contextlib
import fcntl
import logging
import os
from collections.abc import Iterator, Sequence
from pathlib import Path

from hostaudit.accounts.models import AccountRecord, parse_records
from hostaudit.exceptions import BaselineStoreError
from hostaudit.utils.fileio import atomic_write_text

logger = logging.getLogger(__name__)

BASELINE_MODE = 0o600


class BaselineStore:
    """Interface for baseline persistence."""

    def load(self) -> list[AccountRecord] | None:
        """Return the stored snapshot, or None if no baseline exists yet."""
        raise NotImplementedError("Subclasses must implement load()")

    def bootstrap(self, current: Sequence[AccountRecord]) -> None:
        """Create the first baseline. Only valid while load() returns None."""
        raise NotImplementedError("Subclasses must implement bootstrap()")

    def commit(self, current: Sequence[AccountRecord]) -> None:
        """Replace the stored snapshot unconditionally."""
        raise NotImplementedError("Subclasses must implement commit()")

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        """Hold exclusive access for a load-then-commit sequence."""
        yield


class MemoryBaselineStore(BaselineStore):
    """Process-local store, used in tests and dry runs."""

    def __init__(self, records: Sequence[AccountRecord] | None = None):
        self._records = list(records) if records is not None else None
        self.commits = 0

    def load(self) -> list[AccountRecord] | None:
        return list(self._records) if self._records is not None else None

    def bootstrap(self, current: Sequence[AccountRecord]) -> None:
        if self._records is not None:
            raise BaselineStoreError("Baseline already exists")
        self._records = list(current)

    def commit(self, current: Sequence[AccountRecord]) -> None:
        self._records = list(current)
        self.commits += 1


class FileBaselineStore(BaselineStore):
    """
    Baseline kept as a plain copy of the account database.

    Writes are atomic (temporary file + rename) and the file is readable by
    its owner only. lock() takes an flock on a sibling ``.lock`` file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def load(self) -> list[AccountRecord] | None:
        try:
            with open(self.path) as f:
                return parse_records(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BaselineStoreError(f"Cannot read baseline {self.path}: {e}") from e

    def bootstrap(self, current: Sequence[AccountRecord]) -> None:
        if self.path.exists():
            raise BaselineStoreError(f"Baseline already exists: {self.path}")
        logger.info("Creating initial baseline copy at %s", self.path)
        self._write(current)

    def commit(self, current: Sequence[AccountRecord]) -> None:
        logger.debug("Committing %d account lines to %s", len(current), self.path)
        self._write(current)

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, BASELINE_MODE)
        except OSError as e:
            raise BaselineStoreError(f"Cannot open baseline lock {self.lock_path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def _write(self, records: Sequence[AccountRecord]) -> None:
        text = "".join(f"{record.raw}\n" for record in records)
        try:
            atomic_write_text(self.path, text, mode=BASELINE_MODE)
        except OSError as e:
            raise BaselineStoreError(f"Cannot write baseline {self.path}: {e}") from e
