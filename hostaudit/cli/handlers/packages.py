"""Package maintenance command handler."""

import argparse

from rich.prompt import Confirm

from hostaudit.branding import ha_header, ha_print
from hostaudit.config import AuditConfig
from hostaudit.integrity import AideIntegrityChecker
from hostaudit.packages import detect_package_manager
from hostaudit.progress import run_with_progress


class PackageHandler:
    """Handler for the package maintenance command."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose

    def run(self, args: argparse.Namespace | None = None) -> int:
        ha_header("Package Maintenance")
        ha_print("Checking for software updates...")

        manager = detect_package_manager()
        manager.run_maintenance()

        checker = AideIntegrityChecker(self.config.integrity, manager, self.config.reports.directory)
        if not checker.is_installed():
            ha_print(
                "AIDE is not installed; no snapshot to refresh. "
                "Run File Integrity Check first to install AIDE.",
                "info",
            )
        elif self._wants_snapshot(args):
            ha_print("Updating AIDE database to create a new snapshot...")
            result = run_with_progress(
                checker.update_snapshot, "Updating AIDE database", delay=self.config.progress_delay
            )
            ha_print(f"AIDE snapshot updated, output saved to {result.report_path}", "success")

        ha_print("Package maintenance complete.", "success")
        return 0

    def _wants_snapshot(self, args: argparse.Namespace | None) -> bool:
        choice = getattr(args, "aide_snapshot", None)
        if choice is not None:
            return choice
        return Confirm.ask("Do you want to create a new snapshot for AIDE?", default=False)


def add_packages_parser(subparsers) -> argparse.ArgumentParser:
    """Add packages parser to subparsers."""
    parser = subparsers.add_parser("packages", help="Update, upgrade and clean system packages")
    snapshot = parser.add_mutually_exclusive_group()
    snapshot.add_argument(
        "--aide-snapshot",
        dest="aide_snapshot",
        action="store_true",
        default=None,
        help="Refresh the AIDE database afterwards without asking",
    )
    snapshot.add_argument(
        "--no-aide-snapshot",
        dest="aide_snapshot",
        action="store_false",
        help="Do not refresh the AIDE database",
    )
    return parser
