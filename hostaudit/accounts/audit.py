"""
The user-account audit operation.
"""

import logging

from hostaudit.accounts.baseline import BaselineStore, FileBaselineStore
from hostaudit.accounts.detector import DriftDetector, read_records
from hostaudit.accounts.models import DriftReport
from hostaudit.config import AuditConfig
from hostaudit.reports import write_report

logger = logging.getLogger(__name__)

# The report lists account lines, so it stays private to its owner.
USER_REPORT_MODE = 0o600


def audit_users(config: AuditConfig, store: BaselineStore | None = None) -> DriftReport:
    """
    Audit local accounts against the stored baseline and write the user report.

    Both databases are read before the baseline is touched, so an unreadable
    source leaves the baseline as it was. The report is written before the
    baseline is committed; a failed write leaves the findings pending.
    """
    accounts = config.accounts
    if store is None:
        store = FileBaselineStore(accounts.baseline_path)

    current = read_records(accounts.passwd_file)
    credentials = read_records(accounts.shadow_file)

    reports = config.reports

    def publish(report: DriftReport) -> None:
        path = write_report(
            reports.path_for(reports.user_report),
            report.render(),
            archive_dir=reports.archive_dir,
            mode=USER_REPORT_MODE,
        )
        logger.info("User report written to %s", path)

    return DriftDetector(store).detect(current, credentials, publish=publish)
