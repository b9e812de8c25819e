"""
The permission audit operation.
"""

import logging
import pwd
from collections.abc import Sequence
from typing import TYPE_CHECKING

from hostaudit.config import AuditConfig
from hostaudit.exceptions import OperationFatalError
from hostaudit.permissions.patterns import load_patterns
from hostaudit.permissions.report import PermissionReport
from hostaudit.permissions.scanner import MissingDirectoryPolicy, PermissionScanner
from hostaudit.reports import write_report

if TYPE_CHECKING:
    from hostaudit.progress import CancelToken

logger = logging.getLogger(__name__)


def resolve_uid(user: str) -> int:
    """Numeric uid for a user name (or a numeric string)."""
    if user.isdigit():
        return int(user)
    try:
        return pwd.getpwnam(user).pw_uid
    except KeyError:
        raise OperationFatalError(f"Unknown privileged user: {user}") from None


def build_scanner(config: AuditConfig) -> PermissionScanner:
    perms = config.permissions
    return PermissionScanner(
        load_patterns(perms.weak_patterns),
        privileged_uid=resolve_uid(perms.privileged_user),
        skip_paths=perms.skip_paths,
    )


def audit_permissions(
    config: AuditConfig,
    directories: Sequence[str],
    policy: MissingDirectoryPolicy | None = None,
    cancel: "CancelToken | None" = None,
) -> PermissionReport:
    """
    Scan ``directories`` and write the permissions report.

    The report file is only written after every directory was scanned; a
    missing directory leaves the previous report untouched.
    """
    if not directories:
        raise OperationFatalError("No directories given to audit")
    if policy is None:
        policy = MissingDirectoryPolicy(config.permissions.missing_directory_policy)

    report = build_scanner(config).scan(directories, policy=policy, cancel=cancel)

    reports = config.reports
    path = write_report(
        reports.path_for(reports.permissions_report),
        report.render(),
        archive_dir=reports.archive_dir,
    )
    logger.info("Permissions report written to %s", path)
    return report
