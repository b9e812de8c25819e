"""
Data types for the user-account audit.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Z %Y"


@dataclass(frozen=True)
class AccountRecord:
    """One line of an account database. Two records are equal when their raw lines are."""

    raw: str

    @classmethod
    def from_line(cls, line: str) -> "AccountRecord":
        return cls(line.rstrip("\r\n"))

    @property
    def fields(self) -> list[str]:
        return self.raw.split(":")

    @property
    def login(self) -> str:
        return self.fields[0]

    @property
    def credential(self) -> str | None:
        """The second field, or None when the line has no separator."""
        fields = self.fields
        return fields[1] if len(fields) > 1 else None


def parse_records(lines: Iterable[str]) -> list[AccountRecord]:
    """Turn database lines into records, skipping blank lines."""
    return [AccountRecord.from_line(line) for line in lines if line.strip()]


@dataclass
class DriftReport:
    """Result of one account audit run."""

    timestamp: datetime
    no_password: list[str] = field(default_factory=list)
    new_accounts: list[AccountRecord] = field(default_factory=list)
    bootstrapped: bool = False

    @property
    def has_findings(self) -> bool:
        return bool(self.no_password or self.new_accounts)

    @property
    def finding_count(self) -> int:
        return len(self.no_password) + len(self.new_accounts)

    def render(self) -> str:
        lines = [f"Audit conducted on {self.timestamp.strftime(TIMESTAMP_FORMAT)}"]
        lines.append("Users without passwords:")
        lines.extend(self.no_password)
        lines.append("New users since last check:")
        if self.bootstrapped:
            lines.append("(initial baseline created; no previous snapshot to compare)")
        lines.extend(record.raw for record in self.new_accounts)
        return "\n".join(lines) + "\n"
