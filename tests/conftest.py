"""Pytest configuration for the `tests/` suite.

Shared fixtures build an AuditConfig whose every path lives under the test's
tmp_path, so no test touches the real account databases or report locations.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hostaudit.config import AccountsConfig, AuditConfig, ReportsConfig

PASSWD_LINES = [
    "root:x:0:0:root:/root:/bin/bash",
    "daemon:x:1:1:daemon:/usr/sbin:/usr/sbin/nologin",
    "alice:x:1000:1000:Alice:/home/alice:/bin/bash",
]

SHADOW_LINES = [
    "root:$6$abc$hash:19000:0:99999:7:::",
    "daemon:*:19000:0:99999:7:::",
    "alice:$6$def$hash:19000:0:99999:7:::",
]


def write_lines(path: Path, lines: list[str]) -> Path:
    path.write_text("".join(f"{line}\n" for line in lines))
    return path


@pytest.fixture
def account_files(tmp_path):
    """passwd and shadow files with three ordinary accounts."""
    passwd = write_lines(tmp_path / "passwd", PASSWD_LINES)
    shadow = write_lines(tmp_path / "shadow", SHADOW_LINES)
    return passwd, shadow


@pytest.fixture
def audit_config(tmp_path, account_files):
    """An AuditConfig confined to tmp_path."""
    passwd, shadow = account_files
    reports_dir = tmp_path / "reports"
    return AuditConfig(
        accounts=AccountsConfig(
            passwd_file=str(passwd),
            shadow_file=str(shadow),
            baseline_path=str(tmp_path / "state" / "passwd.baseline"),
        ),
        reports=ReportsConfig(directory=str(reports_dir)),
        progress_delay=0.0,
    )
