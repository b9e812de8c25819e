"""hostaudit CLI handlers.

One handler per audit task.
"""

from hostaudit.cli.handlers.firewall import FirewallHandler, add_firewall_parser
from hostaudit.cli.handlers.integrity import IntegrityHandler, add_integrity_parser
from hostaudit.cli.handlers.packages import PackageHandler, add_packages_parser
from hostaudit.cli.handlers.permissions import PermissionHandler, add_permissions_parser
from hostaudit.cli.handlers.users import UserHandler, add_users_parser

__all__ = [
    "FirewallHandler",
    "IntegrityHandler",
    "PackageHandler",
    "PermissionHandler",
    "UserHandler",
    "add_firewall_parser",
    "add_integrity_parser",
    "add_packages_parser",
    "add_permissions_parser",
    "add_users_parser",
]
