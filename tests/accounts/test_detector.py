"""
Tests for account drift detection.
"""

import pytest

from hostaudit.accounts.baseline import FileBaselineStore, MemoryBaselineStore
from hostaudit.accounts.detector import DriftDetector, diff_new, find_passwordless, read_records
from hostaudit.accounts.models import parse_records
from hostaudit.exceptions import AccountSourceError


def records(*lines):
    return parse_records(lines)


ROOT = "root:x:0:0:root:/root:/bin/bash"
ALICE = "alice:x:1000:1000:Alice:/home/alice:/bin/bash"
EVE = "eve:x:1001:1001::/home/eve:/bin/sh"


class TestFindPasswordless:
    def test_reports_empty_credentials(self):
        credentials = records("alice:$6$x$y:1:::::", "bob::1:::::", "carol:!:1:::::")
        assert find_passwordless(credentials) == ["bob"]

    def test_locked_and_starred_are_not_passwordless(self):
        assert find_passwordless(records("a:!:1::", "b:*:1::", "c:!!:1::")) == []

    def test_deduplicates(self):
        assert find_passwordless(records("bob::1::", "bob::1::")) == ["bob"]

    def test_malformed_lines_are_skipped(self):
        assert find_passwordless(records("nocolon", "bob::1::")) == ["bob"]


class TestDiffNew:
    def test_added_lines(self):
        assert diff_new(records(ROOT, ALICE, EVE), records(ROOT, ALICE)) == records(EVE)

    def test_removed_lines_are_not_reported(self):
        assert diff_new(records(ROOT), records(ROOT, ALICE)) == []

    def test_modified_line_counts_as_new(self):
        changed = ALICE.replace("/bin/bash", "/bin/zsh")
        assert diff_new(records(ROOT, changed), records(ROOT, ALICE)) == records(changed)

    def test_keeps_current_order_without_repeats(self):
        assert diff_new(records(EVE, ALICE, EVE), records(ROOT)) == records(EVE, ALICE)


class TestDriftDetector:
    def test_first_run_bootstraps(self):
        store = MemoryBaselineStore()
        report = DriftDetector(store).detect(records(ROOT, ALICE))
        assert report.bootstrapped is True
        assert report.new_accounts == []
        assert store.load() == records(ROOT, ALICE)

    def test_second_run_reports_new_accounts(self):
        store = MemoryBaselineStore(records(ROOT, ALICE))
        report = DriftDetector(store).detect(records(ROOT, ALICE, EVE))
        assert report.bootstrapped is False
        assert report.new_accounts == records(EVE)

    def test_baseline_committed_every_run(self):
        store = MemoryBaselineStore()
        detector = DriftDetector(store)
        detector.detect(records(ROOT))
        detector.detect(records(ROOT, EVE))
        assert store.commits == 2
        assert store.load() == records(ROOT, EVE)

    def test_findings_reported_once(self):
        store = MemoryBaselineStore(records(ROOT))
        detector = DriftDetector(store)
        assert detector.detect(records(ROOT, EVE)).new_accounts == records(EVE)
        assert detector.detect(records(ROOT, EVE)).new_accounts == []

    def test_passwordless_reported_every_run(self):
        store = MemoryBaselineStore(records(ROOT))
        detector = DriftDetector(store)
        shadow = records("bob::1::")
        assert detector.detect(records(ROOT), shadow).no_password == ["bob"]
        assert detector.detect(records(ROOT), shadow).no_password == ["bob"]

    def test_bootstrap_then_commit_leaves_exact_copy(self, tmp_path, account_files):
        passwd, _ = account_files
        path = tmp_path / "baseline"
        DriftDetector(FileBaselineStore(path)).detect(read_records(passwd))
        assert path.read_bytes() == passwd.read_bytes()

    def test_bootstrap_is_idempotent(self):
        store = MemoryBaselineStore()
        detector = DriftDetector(store)

        first = detector.detect(records(ROOT, ALICE))
        second = detector.detect(records(ROOT, ALICE))

        assert not first.has_findings
        assert not second.has_findings
        assert first.bootstrapped is True
        assert second.bootstrapped is False

    def test_failed_publish_leaves_baseline_uncommitted(self):
        store = MemoryBaselineStore(records(ROOT))
        detector = DriftDetector(store)

        def publish(report):
            raise OSError("disk full")

        with pytest.raises(OSError):
            detector.detect(records(ROOT, EVE), publish=publish)
        assert store.commits == 0
        assert store.load() == records(ROOT)

        published = []
        report = detector.detect(records(ROOT, EVE), publish=published.append)
        assert report.new_accounts == records(EVE)
        assert published == [report]
        assert store.load() == records(ROOT, EVE)


def test_read_records_missing_file(tmp_path):
    with pytest.raises(AccountSourceError):
        read_records(tmp_path / "missing")


def test_read_records(account_files):
    passwd, _ = account_files
    assert [r.login for r in read_records(passwd)] == ["root", "daemon", "alice"]

