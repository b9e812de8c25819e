"""
Permission audit findings and their text rendering.
"""

import grp
import os
import pwd
import stat
import time
from dataclasses import dataclass, field
from datetime import datetime

from hostaudit.permissions.config import ELEVATED_PRIVILEGE_LABEL

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Z %Y"
SIX_MONTHS = 182 * 24 * 3600


def _user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def long_listing(path: str, st: os.stat_result) -> str:
    """Format ``st`` the way ``ls -l`` prints one file."""
    if abs(time.time() - st.st_mtime) < SIX_MONTHS:
        when = time.strftime("%b %d %H:%M", time.localtime(st.st_mtime))
    else:
        when = time.strftime("%b %d  %Y", time.localtime(st.st_mtime))
    return (
        f"{stat.filemode(st.st_mode)} {st.st_nlink} {_user_name(st.st_uid)} "
        f"{_group_name(st.st_gid)} {st.st_size} {when} {path}"
    )


@dataclass(frozen=True)
class PermissionFinding:
    """A file that matched one predicate."""

    path: str
    predicate: str
    listing: str


@dataclass
class DirectorySection:
    """Findings for one audited directory, grouped by predicate in pattern order."""

    directory: str
    weak: list[tuple[str, list[PermissionFinding]]] = field(default_factory=list)
    elevated: list[PermissionFinding] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def findings(self) -> list[PermissionFinding]:
        ordered = [finding for _, matches in self.weak for finding in matches]
        return ordered + list(self.elevated)

    def matches_for(self, predicate: str) -> list[PermissionFinding]:
        if predicate == ELEVATED_PRIVILEGE_LABEL:
            return list(self.elevated)
        return [finding for name, matches in self.weak if name == predicate for finding in matches]


@dataclass
class PermissionReport:
    """Result of one permission audit, covering every requested directory."""

    timestamp: datetime
    sections: list[DirectorySection] = field(default_factory=list)

    @property
    def findings(self) -> list[PermissionFinding]:
        return [finding for section in self.sections for finding in section.findings]

    @property
    def has_findings(self) -> bool:
        return any(section.findings for section in self.sections)

    @property
    def skipped(self) -> list[str]:
        return [path for section in self.sections for path in section.skipped]

    def render(self) -> str:
        lines = [f"Audit conducted on {self.timestamp.strftime(TIMESTAMP_FORMAT)}"]
        for section in self.sections:
            lines.append(f"Report for directory: {section.directory}")
            lines.append("Weak permissions found:")
            for name, matches in section.weak:
                lines.append(f"[{name}]")
                lines.extend(finding.listing for finding in matches)
            lines.append("Files with SUID permissions:")
            lines.extend(finding.listing for finding in section.elevated)
            if section.skipped:
                lines.append("Skipped (unreadable):")
                lines.extend(section.skipped)
        return "\n".join(lines) + "\n"
