"""
Permission audit: weak-permission patterns and the directory scanner.
"""

from .patterns import MatchKind, PermExpression, PermissionPattern, load_patterns
from .report import DirectorySection, PermissionFinding, PermissionReport, long_listing
from .scanner import MissingDirectoryPolicy, PermissionScanner

__all__ = [
    "DirectorySection",
    "MatchKind",
    "MissingDirectoryPolicy",
    "PermExpression",
    "PermissionFinding",
    "PermissionPattern",
    "PermissionReport",
    "PermissionScanner",
    "load_patterns",
    "long_listing",
]
