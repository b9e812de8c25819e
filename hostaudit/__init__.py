"""hostaudit - interactive security auditing for a single Linux host."""

from hostaudit.branding import VERSION

__version__ = VERSION
