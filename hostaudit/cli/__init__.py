"""hostaudit CLI - Main package.

This module provides the AuditorCLI facade used by both the interactive menu
and the subcommands. Each audit task lives in its own handler.
"""

import argparse
import logging
from collections.abc import Callable

from rich.prompt import Prompt
from rich.table import Table

from hostaudit.branding import VERSION, console, ha_print, show_banner
from hostaudit.cli.handlers import (
    FirewallHandler,
    IntegrityHandler,
    PackageHandler,
    PermissionHandler,
    UserHandler,
)
from hostaudit.config import AuditConfig
from hostaudit.exceptions import InvalidInputError, OperationCancelled, OperationFatalError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130

# (key, label, command); a command of None exits the menu
MENU_OPTIONS = [
    ("1", "Run Package Maintenance", "packages"),
    ("2", "Check File Integrity", "integrity"),
    ("3", "Audit Permissions", "permissions"),
    ("4", "Audit User Accounts", "users"),
    ("5", "Secure Firewall", "firewall"),
    ("6", "Exit", None),
]


class AuditorCLI:
    """Facade for the hostaudit CLI - delegates to one handler per task."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self._package_handler = PackageHandler(config, verbose=verbose)
        self._integrity_handler = IntegrityHandler(config, verbose=verbose)
        self._permission_handler = PermissionHandler(config, verbose=verbose)
        self._user_handler = UserHandler(config, verbose=verbose)
        self._firewall_handler = FirewallHandler(config, verbose=verbose)

    # Delegate methods to handlers

    def packages(self, args: argparse.Namespace | None = None) -> int:
        """Handle packages command."""
        return self._run_operation(self._package_handler.run, args)

    def integrity(self, args: argparse.Namespace | None = None) -> int:
        """Handle integrity command."""
        return self._run_operation(self._integrity_handler.run, args)

    def permissions(self, args: argparse.Namespace | None = None) -> int:
        """Handle permissions command."""
        return self._run_operation(self._permission_handler.run, args)

    def users(self, args: argparse.Namespace | None = None) -> int:
        """Handle users command."""
        return self._run_operation(self._user_handler.run, args)

    def firewall(self, args: argparse.Namespace | None = None) -> int:
        """Handle firewall command."""
        return self._run_operation(self._firewall_handler.run, args)

    def _run_operation(
        self, operation: Callable[[argparse.Namespace | None], int], args: argparse.Namespace | None
    ) -> int:
        """Run one task, turning operation-level failures into an exit code.

        Environment-level failures propagate to the caller and end the program.
        """
        try:
            return operation(args)
        except (OperationCancelled, KeyboardInterrupt) as e:
            ha_print(str(e) or "Operation cancelled", "warning")
            return EXIT_CANCELLED
        except InvalidInputError as e:
            ha_print(f"Error: {e}", "error")
            return EXIT_USAGE
        except OperationFatalError as e:
            ha_print(f"Error: {e}", "error")
            logger.debug("Operation failed", exc_info=True)
            return EXIT_FAILURE

    def dispatch(self, args: argparse.Namespace) -> int:
        """Dispatch a subcommand to its handler; without one, run the menu.

        Returns exit code (0 for success).
        """
        command = getattr(args, "command", None)
        if command is None:
            return self.run_menu()

        command_handlers = {
            "packages": self.packages,
            "integrity": self.integrity,
            "permissions": self.permissions,
            "users": self.users,
            "firewall": self.firewall,
        }
        return command_handlers[command](args)

    def _render_menu(self) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="bold cyan", justify="right")
        table.add_column()
        for key, label, _ in MENU_OPTIONS:
            table.add_row(key, label)
        console.print(table)

    def run_menu(self, pause: bool = True) -> int:
        """Show the main menu until the operator chooses to exit."""
        commands = {key: command for key, _, command in MENU_OPTIONS}
        while True:
            show_banner()
            self._render_menu()
            choice = Prompt.ask("Select an option", choices=list(commands), show_choices=False)

            command = commands[choice]
            if command is None:
                ha_print("Exiting...")
                return EXIT_OK

            getattr(self, command)()
            if pause:
                console.input("\n[dim]Press Enter to return to the main menu...[/dim]")


def build_parser() -> argparse.ArgumentParser:
    from hostaudit.cli.handlers import (
        add_firewall_parser,
        add_integrity_parser,
        add_packages_parser,
        add_permissions_parser,
        add_users_parser,
    )

    parser = argparse.ArgumentParser(
        prog="hostaudit",
        description="Interactive host security auditor. Runs the menu when no command is given.",
    )
    parser.add_argument("--version", "-V", action="version", version=f"hostaudit {VERSION}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", "-c", metavar="PATH", help="Configuration file")

    subparsers = parser.add_subparsers(dest="command")
    add_packages_parser(subparsers)
    add_integrity_parser(subparsers)
    add_permissions_parser(subparsers)
    add_users_parser(subparsers)
    add_firewall_parser(subparsers)
    return parser
