"""
File integrity verification with AIDE.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from hostaudit.branding import ha_print
from hostaudit.config import IntegrityConfig
from hostaudit.exceptions import CommandError
from hostaudit.packages import PackageManager
from hostaudit.utils.commands import run_command

if TYPE_CHECKING:
    from hostaudit.progress import CancelToken

logger = logging.getLogger(__name__)

# AIDE exit codes 1-7 are a bitmask of added/removed/changed files.
AIDE_OK_CODES = range(0, 8)


@dataclass
class IntegrityResult:
    returncode: int
    report_path: Path

    @property
    def changes_detected(self) -> bool:
        return self.returncode != 0


class IntegrityChecker:
    """Interface for file-integrity tools."""

    def is_installed(self) -> bool:
        raise NotImplementedError("Subclasses must implement is_installed()")

    def ensure_installed(self) -> None:
        raise NotImplementedError("Subclasses must implement ensure_installed()")

    def database_exists(self) -> bool:
        raise NotImplementedError("Subclasses must implement database_exists()")

    def initialize(self, cancel: "CancelToken | None" = None) -> Path:
        raise NotImplementedError("Subclasses must implement initialize()")

    def check(self, cancel: "CancelToken | None" = None) -> IntegrityResult:
        raise NotImplementedError("Subclasses must implement check()")

    def update_snapshot(self, cancel: "CancelToken | None" = None) -> IntegrityResult:
        raise NotImplementedError("Subclasses must implement update_snapshot()")


class AideIntegrityChecker(IntegrityChecker):
    """
    AIDE backend.

    Args:
        config: Database locations and report file names.
        package_manager: Used to install AIDE when it is missing.
        report_dir: Directory receiving the AIDE reports.
    """

    def __init__(self, config: IntegrityConfig, package_manager: PackageManager, report_dir: str = "."):
        self.config = config
        self.package_manager = package_manager
        self.report_dir = Path(report_dir)

    def is_installed(self) -> bool:
        return shutil.which("aide") is not None

    def ensure_installed(self) -> None:
        if self.is_installed():
            return
        ha_print("AIDE could not be found. Installing...", "warning")
        self.package_manager.install("aide")
        if not self.is_installed():
            raise CommandError(["aide"])

    def database_exists(self) -> bool:
        return Path(self.config.database).exists()

    def _promote_new_database(self) -> None:
        new_db = Path(self.config.new_database)
        if new_db.exists():
            os.replace(new_db, self.config.database)
            logger.info("Installed new AIDE database at %s", self.config.database)

    def initialize(self, cancel: "CancelToken | None" = None) -> Path:
        """Build the initial database; output goes to the init report."""
        report = self.report_dir / self.config.init_report
        cmd = ["aideinit"] if shutil.which("aideinit") else ["aide", "--init"]
        run_command(cmd, output_file=report, check=True, cancel=cancel)
        self._promote_new_database()
        return report

    def check(self, cancel: "CancelToken | None" = None) -> IntegrityResult:
        report = self.report_dir / self.config.check_report
        result = run_command(
            ["aide", "--check"], output_file=report, check=True, ok_codes=AIDE_OK_CODES, cancel=cancel
        )
        return IntegrityResult(returncode=result.returncode, report_path=report)

    def update_snapshot(self, cancel: "CancelToken | None" = None) -> IntegrityResult:
        """Record the current state as the new trusted snapshot."""
        report = self.report_dir / self.config.update_report
        result = run_command(
            ["aide", "--update"], output_file=report, check=True, ok_codes=AIDE_OK_CODES, cancel=cancel
        )
        self._promote_new_database()
        return IntegrityResult(returncode=result.returncode, report_path=report)
