"""
Firewall configuration backends.
"""

import logging
import shutil

from hostaudit.branding import ha_print
from hostaudit.exceptions import CommandError, InvalidInputError
from hostaudit.packages import PackageManager
from hostaudit.utils.commands import CommandResult, run_command

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535
CANCEL_WORD = "none"


def parse_ports(text: str) -> list[int] | None:
    """
    Parse a space separated list of ports.

    Returns:
        The ports in input order without repeats, or None when the operator
        typed ``none`` to cancel.

    Raises:
        InvalidInputError: On an empty list or any port outside 1-65535.
    """
    text = text.strip()
    if text.lower() == CANCEL_WORD:
        return None

    tokens = text.split()
    if not tokens:
        raise InvalidInputError("No ports entered")

    ports: list[int] = []
    for token in tokens:
        if not token.isdigit() or not MIN_PORT <= int(token) <= MAX_PORT:
            raise InvalidInputError(f"Invalid port: {token}")
        if int(token) not in ports:
            ports.append(int(token))
    return ports


def validate_logging_level(level: str, allowed: list[str]) -> str:
    level = level.strip().lower()
    if level not in allowed:
        raise InvalidInputError(f"Invalid logging level: {level or '(empty)'}")
    return level


class FirewallManager:
    """Interface for host firewall backends."""

    def is_installed(self) -> bool:
        raise NotImplementedError("Subclasses must implement is_installed()")

    def install(self) -> None:
        raise NotImplementedError("Subclasses must implement install()")

    def reset(self) -> None:
        raise NotImplementedError("Subclasses must implement reset()")

    def enable(self) -> None:
        raise NotImplementedError("Subclasses must implement enable()")

    def set_default_policies(self, incoming: str, outgoing: str) -> None:
        raise NotImplementedError("Subclasses must implement set_default_policies()")

    def open_ports(self, ports: list[int], rate_limit: bool = False) -> None:
        raise NotImplementedError("Subclasses must implement open_ports()")

    def set_logging(self, level: str) -> None:
        raise NotImplementedError("Subclasses must implement set_logging()")

    def status(self) -> str:
        raise NotImplementedError("Subclasses must implement status()")

    def reload(self) -> None:
        raise NotImplementedError("Subclasses must implement reload()")


class UfwFirewallManager(FirewallManager):
    """Uncomplicated Firewall backend."""

    def __init__(self, package_manager: PackageManager | None = None):
        self.package_manager = package_manager

    def _ufw(self, *args: str, capture: bool = False) -> CommandResult:
        return run_command(["ufw", *args], capture=capture, check=True)

    def is_installed(self) -> bool:
        return shutil.which("ufw") is not None

    def install(self) -> None:
        if self.package_manager is None:
            raise CommandError(["ufw"])
        ha_print("UFW is not installed. Installing...", "warning")
        self.package_manager.install("ufw")
        if not self.is_installed():
            raise CommandError(["ufw"])

    def reset(self) -> None:
        self._ufw("--force", "reset")

    def enable(self) -> None:
        self._ufw("--force", "enable")

    def set_default_policies(self, incoming: str = "deny", outgoing: str = "allow") -> None:
        self._ufw("default", incoming, "incoming")
        self._ufw("default", outgoing, "outgoing")

    def open_ports(self, ports: list[int], rate_limit: bool = False) -> None:
        action = "limit" if rate_limit else "allow"
        for port in ports:
            logger.info("ufw %s %d", action, port)
            self._ufw(action, str(port))

    def set_logging(self, level: str) -> None:
        self._ufw("logging", level)

    def status(self) -> str:
        return self._ufw("status", "verbose", capture=True).stdout

    def reload(self) -> None:
        self._ufw("reload")
