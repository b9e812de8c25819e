"""
Package maintenance backends.

Each backend wraps one distribution package manager. The first backend whose
executable is on PATH is used.
"""

import logging
import re
import shutil
from dataclasses import dataclass

from hostaudit.branding import ha_print
from hostaudit.exceptions import CommandError, EnvironmentFatalError, InvalidInputError
from hostaudit.utils.commands import CommandResult, run_command

logger = logging.getLogger(__name__)

PACKAGE_NAME_RE = re.compile(r"^[a-zA-Z0-9.+\-_]+$")


@dataclass
class MaintenanceStep:
    """One command in a maintenance run. Optional steps may fail without stopping the run."""

    description: str
    command: list[str]
    optional: bool = False


class PackageManager:
    """Base class for package manager backends."""

    name = ""
    binary = ""

    @classmethod
    def is_available(cls) -> bool:
        return shutil.which(cls.binary) is not None

    def maintenance_steps(self) -> list[MaintenanceStep]:
        raise NotImplementedError("Subclasses must implement maintenance_steps()")

    def install_command(self, package: str) -> list[str]:
        raise NotImplementedError("Subclasses must implement install_command()")

    def _validate_package_name(self, package: str) -> None:
        if not PACKAGE_NAME_RE.match(package):
            raise InvalidInputError(f"Invalid package name: {package}")

    def install(self, package: str) -> CommandResult:
        """Install one package, sharing the terminal so the tool can prompt."""
        self._validate_package_name(package)
        cmd = self.install_command(package)
        ha_print(f"Installing {package}: {' '.join(cmd)}", "info")
        return run_command(cmd, capture=False, check=True)

    def run_maintenance(self) -> list[CommandResult]:
        """Run every maintenance step in order."""
        results = []
        for step in self.maintenance_steps():
            ha_print(step.description, "info")
            try:
                results.append(run_command(step.command, capture=False, check=not step.optional))
            except CommandError as e:
                if not step.optional:
                    raise
                logger.warning("Optional step skipped: %s", e)
        return results


class AptPackageManager(PackageManager):
    """Debian and Ubuntu."""

    name = "apt"
    binary = "apt-get"

    def maintenance_steps(self) -> list[MaintenanceStep]:
        steps = [
            MaintenanceStep("Updating package lists", ["apt-get", "update"]),
            MaintenanceStep("Upgrading packages", ["apt-get", "upgrade", "-y"]),
            MaintenanceStep("Removing unneeded packages", ["apt-get", "autoremove", "-y"]),
            MaintenanceStep("Cleaning package cache", ["apt-get", "clean"]),
            MaintenanceStep("Checking for broken dependencies", ["apt-get", "check"]),
        ]
        if shutil.which("do-release-upgrade"):
            steps.append(
                MaintenanceStep("Checking for a distribution upgrade", ["do-release-upgrade"], optional=True)
            )
        return steps

    def install_command(self, package: str) -> list[str]:
        return ["apt-get", "install", "-y", package]


class PacmanPackageManager(PackageManager):
    """Arch Linux. AIDE is only packaged in the AUR, installed through yay."""

    name = "pacman"
    binary = "pacman"

    AUR_PACKAGES = {"aide": "aide-selinux"}

    def orphaned_packages(self) -> list[str]:
        # pacman -Qdtq exits 1 when there is nothing to list
        result = run_command(["pacman", "-Qdtq"], check=True, ok_codes=(0, 1))
        return result.stdout.split()

    def maintenance_steps(self) -> list[MaintenanceStep]:
        steps = [MaintenanceStep("Updating and upgrading packages", ["pacman", "-Syu"])]
        orphans = self.orphaned_packages()
        if orphans:
            steps.append(MaintenanceStep("Removing orphaned packages", ["pacman", "-Rns", *orphans]))
        else:
            logger.info("No orphaned packages to remove")
        steps.append(MaintenanceStep("Cleaning package cache", ["pacman", "-Scc"]))
        return steps

    def install_command(self, package: str) -> list[str]:
        if package in self.AUR_PACKAGES:
            return ["yay", "-S", self.AUR_PACKAGES[package]]
        return ["pacman", "-S", package]


PACKAGE_MANAGERS: list[type[PackageManager]] = [AptPackageManager, PacmanPackageManager]


def detect_package_manager() -> PackageManager:
    """Return the first available backend.

    Raises:
        EnvironmentFatalError: If no supported package manager is installed.
    """
    for backend in PACKAGE_MANAGERS:
        if backend.is_available():
            logger.debug("Using %s package manager", backend.name)
            return backend()
    raise EnvironmentFatalError("Unable to detect OS: no supported package manager found.")
