"""Permission audit command handler."""

import argparse

from prompt_toolkit import prompt
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, PathCompleter
from prompt_toolkit.document import Document
from prompt_toolkit.history import InMemoryHistory
from rich.table import Table
from rich.text import Text

from hostaudit.branding import console, ha_header, ha_print
from hostaudit.config import AuditConfig
from hostaudit.exceptions import InvalidInputError
from hostaudit.permissions.audit import audit_permissions
from hostaudit.permissions.config import ELEVATED_PRIVILEGE_LABEL
from hostaudit.permissions.report import PermissionReport
from hostaudit.permissions.scanner import MissingDirectoryPolicy
from hostaudit.progress import run_with_progress


class LastWordPathCompleter(Completer):
    """Complete the directory currently being typed in a space separated list."""

    def __init__(self):
        self._paths = PathCompleter(only_directories=True, expanduser=True)

    def get_completions(self, document, complete_event):
        word = document.text_before_cursor.split(" ")[-1]
        yield from self._paths.get_completions(Document(word, len(word)), complete_event)


class PermissionHandler:
    """Handler for the permission audit."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self._history = InMemoryHistory()

    def ask_directories(self) -> list[str]:
        text = prompt(
            "Enter directory paths (separated by space): ",
            completer=LastWordPathCompleter(),
            history=self._history,
            auto_suggest=AutoSuggestFromHistory(),
        )
        directories = text.split()
        if not directories:
            raise InvalidInputError("No directories entered")
        return directories

    def run(self, args: argparse.Namespace | None = None) -> int:
        ha_header("Permission Audit")

        directories = list(getattr(args, "directories", None) or []) or self.ask_directories()
        policy = MissingDirectoryPolicy.STRICT if getattr(args, "strict", False) else None

        report = run_with_progress(
            audit_permissions,
            "Scanning permissions",
            self.config,
            directories,
            policy=policy,
            delay=self.config.progress_delay,
        )

        console.print(Text(report.render()))
        console.print(self._summary_table(report))
        if report.skipped:
            ha_print(f"{len(report.skipped)} unreadable path(s) were skipped; see the report", "warning")

        reports = self.config.reports
        ha_print(f"Report saved to {reports.path_for(reports.permissions_report)}", "success")
        return 0

    def _summary_table(self, report: PermissionReport) -> Table:
        predicates = [name for name, _ in report.sections[0].weak] if report.sections else []
        predicates.append(ELEVATED_PRIVILEGE_LABEL)

        table = Table(title="Findings", show_header=True, header_style="bold cyan")
        table.add_column("Directory")
        for predicate in predicates:
            table.add_column(predicate, justify="right")
        for section in report.sections:
            table.add_row(section.directory, *(str(len(section.matches_for(p))) for p in predicates))
        return table


def add_permissions_parser(subparsers) -> argparse.ArgumentParser:
    """Add permissions parser to subparsers."""
    parser = subparsers.add_parser("permissions", help="Report weak and elevated file permissions")
    parser.add_argument("directories", nargs="*", help="Directories to scan")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first missing directory instead of checking all of them first",
    )
    return parser
