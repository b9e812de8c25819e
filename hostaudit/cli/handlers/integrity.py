"""File integrity command handler."""

import argparse

from hostaudit.branding import ha_header, ha_print
from hostaudit.config import AuditConfig
from hostaudit.integrity import AideIntegrityChecker
from hostaudit.packages import detect_package_manager
from hostaudit.progress import run_with_progress


class IntegrityHandler:
    """Handler for the AIDE file integrity check."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose

    def run(self, args: argparse.Namespace | None = None) -> int:
        ha_header("File Integrity Check")
        ha_print("Checking file integrity...")

        checker = AideIntegrityChecker(
            self.config.integrity, detect_package_manager(), self.config.reports.directory
        )
        checker.ensure_installed()

        delay = self.config.progress_delay
        if not checker.database_exists():
            ha_print("No AIDE database found, initializing one first. This can take a while.")
            init_report = run_with_progress(checker.initialize, "Initializing AIDE database", delay=delay)
            ha_print(f"AIDE database initialized, output saved to {init_report}", "success")

        result = run_with_progress(checker.check, "Checking file integrity", delay=delay)
        if result.changes_detected:
            ha_print(
                f"AIDE found differences (exit code {result.returncode}). "
                f"Report saved to {result.report_path}",
                "warning",
            )
        else:
            ha_print(f"No differences found. Report saved to {result.report_path}", "success")
        return 0


def add_integrity_parser(subparsers) -> argparse.ArgumentParser:
    """Add integrity parser to subparsers."""
    return subparsers.add_parser("integrity", help="Verify file integrity with AIDE")
