"""
Permission scanner.

Walks audited directories and reports regular files whose mode matches a weak
permission pattern, plus setuid files owned by the privileged account.
Unreadable entries are logged and skipped; a missing audited directory stops
the whole scan.
"""

import logging
import os
import stat
from collections.abc import Iterator, Sequence
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from hostaudit.exceptions import MissingDirectoryError
from hostaudit.permissions.config import ELEVATED_PRIVILEGE_LABEL, SETUID_FLAG
from hostaudit.permissions.patterns import PermissionPattern
from hostaudit.permissions.report import (
    DirectorySection,
    PermissionFinding,
    PermissionReport,
    long_listing,
)

if TYPE_CHECKING:
    from hostaudit.progress import CancelToken

logger = logging.getLogger(__name__)


class MissingDirectoryPolicy(Enum):
    """When audited directories are checked for existence."""

    UPFRONT = "upfront"  # check all first, report every missing one together
    STRICT = "strict"  # check each as it is reached, stop at the first missing one


class PermissionScanner:
    """
    Scanner for weak permissions and privileged setuid files.

    Args:
        patterns: Weak-permission patterns, evaluated in this order.
        privileged_uid: Owner whose setuid files are reported.
        skip_paths: Subtrees never descended into (unless audited directly).
    """

    def __init__(
        self,
        patterns: Sequence[PermissionPattern],
        privileged_uid: int = 0,
        skip_paths: Sequence[str] = (),
    ):
        self.patterns = list(patterns)
        self.privileged_uid = privileged_uid
        self.skip_paths = {os.path.normpath(p) for p in skip_paths}
        self.skipped: list[str] = []

    def validate(self, directories: Sequence[str]) -> None:
        """Raise MissingDirectoryError naming every directory that does not exist."""
        missing = [d for d in directories if not os.path.isdir(d)]
        if missing:
            raise MissingDirectoryError(missing)

    def scan(
        self,
        directories: Sequence[str],
        policy: MissingDirectoryPolicy = MissingDirectoryPolicy.UPFRONT,
        cancel: "CancelToken | None" = None,
    ) -> PermissionReport:
        """
        Scan directories in the order given.

        Repeated directories are scanned again. With either policy a missing
        directory raises before any report is returned, so no partial report
        ever escapes.

        Raises:
            MissingDirectoryError: If an audited directory does not exist.
            OperationCancelled: If ``cancel`` is set mid-walk.
        """
        if policy is MissingDirectoryPolicy.UPFRONT:
            self.validate(directories)

        report = PermissionReport(timestamp=datetime.now().astimezone())
        for directory in directories:
            if policy is MissingDirectoryPolicy.STRICT and not os.path.isdir(directory):
                raise MissingDirectoryError([directory])
            logger.info("Checking permissions in %s", directory)
            report.sections.append(self.scan_directory(directory, cancel=cancel))
        return report

    def scan_directory(self, directory: str, cancel: "CancelToken | None" = None) -> DirectorySection:
        start = len(self.skipped)
        files = list(self._iter_regular_files(directory, cancel))
        section = DirectorySection(directory=directory, skipped=self.skipped[start:])

        for pattern in self.patterns:
            matches = [
                PermissionFinding(path, pattern.name, long_listing(path, st))
                for path, st in files
                if pattern.matches(st.st_mode)
            ]
            section.weak.append((pattern.name, matches))

        section.elevated = [
            PermissionFinding(path, ELEVATED_PRIVILEGE_LABEL, long_listing(path, st))
            for path, st in files
            if self._is_elevated(st)
        ]
        return section

    def _is_elevated(self, st: os.stat_result) -> bool:
        return st.st_uid == self.privileged_uid and bool(st.st_mode & SETUID_FLAG)

    def _on_walk_error(self, error: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", error.filename, error.strerror)
        self.skipped.append(str(error.filename))

    def _iter_regular_files(
        self, directory: str, cancel: "CancelToken | None"
    ) -> Iterator[tuple[str, os.stat_result]]:
        for root, dirs, files in os.walk(directory, onerror=self._on_walk_error):
            if cancel is not None:
                cancel.raise_if_cancelled()

            dirs[:] = sorted(
                d for d in dirs if os.path.normpath(os.path.join(root, d)) not in self.skip_paths
            )
            for name in sorted(files):
                path = os.path.join(root, name)
                try:
                    st = os.lstat(path)
                except OSError as e:
                    logger.warning("Skipping unreadable file %s: %s", path, e.strerror)
                    self.skipped.append(path)
                    continue
                if stat.S_ISREG(st.st_mode):
                    yield path, st
