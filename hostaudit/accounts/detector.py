"""
User-account drift detection.

Two checks run on every audit:

- accounts whose credential field is empty (no password), read from the
  credential database;
- account lines present now but absent from the stored baseline.

The second check compares whole lines, so any edit to an existing account
(shell, home, GECOS) reports that account as new. Removed accounts are not
reported.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path

from hostaudit.accounts.baseline import BaselineStore
from hostaudit.accounts.models import AccountRecord, DriftReport, parse_records
from hostaudit.exceptions import AccountSourceError

logger = logging.getLogger(__name__)


def read_records(path: str | Path) -> list[AccountRecord]:
    """Read an account database file.

    Raises:
        AccountSourceError: If the file cannot be read.
    """
    try:
        with open(path) as f:
            return parse_records(f)
    except OSError as e:
        raise AccountSourceError(f"Cannot read {path}: {e.strerror or e}") from e


def find_passwordless(credentials: Iterable[AccountRecord]) -> list[str]:
    """Login names whose credential field is the empty string, deduplicated."""
    logins: list[str] = []
    for record in credentials:
        if record.credential is None:
            logger.debug("Skipping malformed credential line for %r", record.login)
            continue
        if record.credential == "" and record.login not in logins:
            logins.append(record.login)
    return logins


def diff_new(current: Iterable[AccountRecord], baseline: Iterable[AccountRecord]) -> list[AccountRecord]:
    """Lines in ``current`` that are not in ``baseline``, in current order, without repeats."""
    known = set(baseline)
    new: list[AccountRecord] = []
    seen: set[AccountRecord] = set()
    for record in current:
        if record in known or record in seen:
            continue
        seen.add(record)
        new.append(record)
    return new


class DriftDetector:
    """
    Compares the live account list with the stored baseline.

    Example:
        >>> detector = DriftDetector(MemoryBaselineStore())
        >>> report = detector.detect(current, credentials)
        >>> report.bootstrapped
        True
    """

    def __init__(self, store: BaselineStore):
        self.store = store

    def detect(
        self,
        current: Sequence[AccountRecord],
        credentials: Sequence[AccountRecord] = (),
        publish: Callable[[DriftReport], None] | None = None,
    ) -> DriftReport:
        """
        Run one detection cycle and commit ``current`` as the new baseline.

        Args:
            current: Live account database lines.
            credentials: Live credential database lines.
            publish: Called with the report before the baseline is committed.
                If it raises, the baseline is left as it was, so the same
                findings are reported again on the next run.

        Returns:
            DriftReport for this run. On the first run the baseline is created
            and no new accounts are reported.
        """
        report = DriftReport(
            timestamp=datetime.now().astimezone(),
            no_password=find_passwordless(credentials),
        )

        with self.store.lock():
            previous = self.store.load()
            if previous is None:
                self.store.bootstrap(current)
                report.bootstrapped = True
            else:
                report.new_accounts = diff_new(current, previous)
            if publish is not None:
                publish(report)
            self.store.commit(current)

        logger.info(
            "Account audit: %d without password, %d new",
            len(report.no_password),
            len(report.new_accounts),
        )
        return report
