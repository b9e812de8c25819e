"""Firewall setup command handler."""

import argparse

from rich.prompt import Confirm, Prompt

from hostaudit.branding import console, ha_header, ha_print
from hostaudit.config import AuditConfig
from hostaudit.exceptions import InvalidInputError
from hostaudit.firewall import UfwFirewallManager, parse_ports, validate_logging_level
from hostaudit.packages import detect_package_manager


class FirewallHandler:
    """Handler for the ufw firewall setup."""

    def __init__(self, config: AuditConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose

    def run(self, args: argparse.Namespace | None = None) -> int:
        ha_header("Firewall Setup")
        firewall_config = self.config.firewall
        firewall = UfwFirewallManager()

        if firewall.is_installed():
            ha_print("UFW is installed.", "info")
            if self._wants_reset(args):
                ha_print("Resetting firewall rules...")
                firewall.reset()
        else:
            firewall.package_manager = detect_package_manager()
            firewall.install()

        firewall.enable()
        firewall.set_default_policies(firewall_config.default_incoming, firewall_config.default_outgoing)

        ports = self._ports(args)
        if ports is None:
            ha_print("No ports opened.", "info")
        else:
            firewall.open_ports(ports, rate_limit=self._wants_rate_limit(args))
            ha_print(f"Opened ports: {', '.join(str(p) for p in ports)}", "success")

        firewall.set_logging(self._logging_level(args))

        console.print(firewall.status())
        firewall.reload()
        ha_print("Firewall initiated.", "success")
        return 0

    def _wants_reset(self, args: argparse.Namespace | None) -> bool:
        choice = getattr(args, "reset", None)
        if choice is not None:
            return choice
        return Confirm.ask("Reset all existing firewall rules?", default=False)

    def _wants_rate_limit(self, args: argparse.Namespace | None) -> bool:
        choice = getattr(args, "rate_limit", None)
        if choice is not None:
            return choice
        return Confirm.ask("Do you want to rate limit the ports?", default=False)

    def _ports(self, args: argparse.Namespace | None) -> list[int] | None:
        given = getattr(args, "ports", None)
        if given:
            return parse_ports(" ".join(given))

        while True:
            text = Prompt.ask("Enter the ports you want to open, separated by space, or 'none' to cancel")
            try:
                return parse_ports(text)
            except InvalidInputError as e:
                ha_print(f"{e}. Please enter valid ports or type 'none' to cancel.", "error")

    def _logging_level(self, args: argparse.Namespace | None) -> str:
        levels = self.config.firewall.logging_levels
        given = getattr(args, "logging", None)
        if given:
            return validate_logging_level(given, levels)
        default = "low" if "low" in levels else levels[0]
        return Prompt.ask("Choose the logging level", choices=levels, default=default)


def add_firewall_parser(subparsers) -> argparse.ArgumentParser:
    """Add firewall parser to subparsers."""
    parser = subparsers.add_parser("firewall", help="Install, reset and configure ufw")
    parser.add_argument("--ports", nargs="+", metavar="PORT", help="Ports to open, or 'none'")
    parser.add_argument(
        "--rate-limit",
        dest="rate_limit",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use 'ufw limit' instead of 'ufw allow' for the opened ports",
    )
    parser.add_argument(
        "--reset",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reset existing rules before configuring",
    )
    parser.add_argument("--logging", metavar="LEVEL", help="ufw logging level")
    return parser
