"""
Startup checks run before the menu is shown.
"""

import logging
import os
import shutil
import subprocess

from hostaudit.branding import ha_print
from hostaudit.exceptions import EnvironmentFatalError

logger = logging.getLogger(__name__)

PING_TIMEOUT = 10


def require_root() -> None:
    if os.geteuid() != 0:
        raise EnvironmentFatalError("Please run as root.")


def require_command(name: str) -> None:
    if shutil.which(name) is None:
        raise EnvironmentFatalError(f"The {name} command is not available. Please install it.")


def check_connectivity(host: str) -> bool:
    """Send a single ping to ``host``; True when it answered."""
    try:
        result = subprocess.run(
            ["ping", "-c", "1", host],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=PING_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("Connectivity check failed: %s", e)
        return False
    return result.returncode == 0


def preflight(connectivity_host: str) -> bool:
    """
    Verify the host can run audits.

    Returns:
        Whether the network is reachable; audits still run offline.

    Raises:
        EnvironmentFatalError: When not root or ping is missing.
    """
    require_root()
    require_command("ping")

    online = check_connectivity(connectivity_host)
    if not online:
        ha_print("Internet connection is down, some features will be unavailable.", "warning")
    return online
