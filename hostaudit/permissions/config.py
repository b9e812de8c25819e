"""
Permission audit constants.
"""

import stat

SETUID_FLAG = stat.S_ISUID

# Expressions use find(1) -perm syntax: MODE exact, -MODE all bits, /MODE any bit.
# group-writable excludes world-writable files; those already have their own category.
DEFAULT_WEAK_PATTERNS = [
    {"name": "world-writable", "perm": "-o+w"},
    {"name": "group-writable", "perm": "-g+w", "exclude": "-o+w"},
    {"name": "777", "perm": "777"},
]

ELEVATED_PRIVILEGE_LABEL = "elevated-privilege"

# Pseudo filesystems are never descended into unless audited directly.
DEFAULT_SKIP_PATHS = ["/proc", "/sys", "/dev", "/run"]
