"""User account audit command handler."""

import argparse

from rich.panel import Panel
from rich.text import Text

from hostaudit.accounts.audit import audit_users
from hostaudit.branding import console, ha_header, ha_print
from hostaudit.config import AuditConfig


class UserHandler:
    """Handler for the user account audit."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose

    def run(self, args: argparse.Namespace | None = None) -> int:
        ha_header("User Account Audit")
        ha_print("Checking for users without passwords and new accounts...")

        report = audit_users(self.config)

        if report.bootstrapped:
            ha_print("Created initial baseline copy of the account database.", "info")

        if report.has_findings:
            ha_print(
                f"Security issues detected! {report.finding_count} finding(s). Report:", "warning"
            )
            console.print(Panel(Text(report.render()), border_style="red", expand=False))
        else:
            ha_print("No new issues detected since last check.", "success")

        reports = self.config.reports
        ha_print(f"Scan complete, {reports.path_for(reports.user_report)} created.", "success")
        return 0


def add_users_parser(subparsers) -> argparse.ArgumentParser:
    """Add users parser to subparsers."""
    return subparsers.add_parser(
        "users", help="Report accounts without passwords and accounts added since the last run"
    )
