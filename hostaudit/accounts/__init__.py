"""
User-account audit: baseline storage and drift detection.
"""

from .baseline import BaselineStore, FileBaselineStore, MemoryBaselineStore
from .detector import DriftDetector, diff_new, find_passwordless, read_records
from .models import AccountRecord, DriftReport, parse_records

__all__ = [
    "AccountRecord",
    "BaselineStore",
    "DriftDetector",
    "DriftReport",
    "FileBaselineStore",
    "MemoryBaselineStore",
    "diff_new",
    "find_passwordless",
    "parse_records",
    "read_records",
]
