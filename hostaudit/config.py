"""
Configuration loading for hostaudit.

Settings come from a YAML file merged over built-in defaults. The file is
looked up in this order:

    1. the path given with ``--config``
    2. ``$HOSTAUDIT_CONFIG``
    3. ``~/.hostaudit/config.yaml``
    4. ``/etc/hostaudit/config.yaml``

Example::

    accounts:
      baseline_path: /var/lib/hostaudit/passwd.baseline
    permissions:
      missing_directory_policy: strict
      weak_patterns:
        - name: world-writable
          perm: "-o+w"
        - "777"
    reports:
      archive_dir: /var/log/hostaudit
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from hostaudit.exceptions import ConfigError
from hostaudit.permissions.config import DEFAULT_SKIP_PATHS, DEFAULT_WEAK_PATTERNS
from hostaudit.permissions.patterns import load_patterns

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HOSTAUDIT_CONFIG"
DEFAULT_CONFIG_PATHS = [
    Path.home() / ".hostaudit" / "config.yaml",
    Path("/etc/hostaudit/config.yaml"),
]

MISSING_DIRECTORY_POLICIES = ("upfront", "strict")
FIREWALL_LOGGING_LEVELS = ["off", "low", "medium", "high", "full"]
FIREWALL_POLICIES = ("allow", "deny", "reject")


@dataclass
class AccountsConfig:
    passwd_file: str = "/etc/passwd"
    shadow_file: str = "/etc/shadow"
    baseline_path: str = "/var/log/secure_passwd_copy"


@dataclass
class PermissionsConfig:
    weak_patterns: list = field(default_factory=lambda: list(DEFAULT_WEAK_PATTERNS))
    privileged_user: str = "root"
    missing_directory_policy: str = "upfront"
    skip_paths: list = field(default_factory=lambda: list(DEFAULT_SKIP_PATHS))


@dataclass
class ReportsConfig:
    directory: str = "."
    archive_dir: str | None = None
    permissions_report: str = "permissions_report.txt"
    user_report: str = "user_report.txt"

    def path_for(self, name: str) -> Path:
        return Path(self.directory) / name


@dataclass
class IntegrityConfig:
    database: str = "/var/lib/aide/aide.db.gz"
    new_database: str = "/var/lib/aide/aide.db.new.gz"
    check_report: str = "aidecheck_report.txt"
    init_report: str = "aideinit_report.txt"
    update_report: str = "aideupdate_report.txt"


@dataclass
class FirewallConfig:
    logging_levels: list = field(default_factory=lambda: list(FIREWALL_LOGGING_LEVELS))
    default_incoming: str = "deny"
    default_outgoing: str = "allow"


@dataclass
class AuditConfig:
    accounts: AccountsConfig = field(default_factory=AccountsConfig)
    permissions: PermissionsConfig = field(default_factory=PermissionsConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    integrity: IntegrityConfig = field(default_factory=IntegrityConfig)
    firewall: FirewallConfig = field(default_factory=FirewallConfig)
    log_file: str | None = None
    connectivity_host: str = "google.com"
    progress_delay: float = 3.0
    source: str | None = None


_SECTIONS = {
    "accounts": AccountsConfig,
    "permissions": PermissionsConfig,
    "reports": ReportsConfig,
    "integrity": IntegrityConfig,
    "firewall": FirewallConfig,
}
_TOP_LEVEL_KEYS = {"log_file", "connectivity_host", "progress_delay"}


def find_config_file(explicit: str | None = None) -> Path | None:
    """Return the first configuration file that applies, or None for defaults."""
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        return path

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        return path

    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | None = None) -> AuditConfig:
    """Load and validate the configuration.

    Args:
        path: Explicit configuration file, overriding the search order.

    Returns:
        The merged AuditConfig.

    Raises:
        ConfigError: If the file cannot be read or contains invalid values.
    """
    config_file = find_config_file(path)
    if config_file is None:
        logger.debug("No configuration file found, using defaults")
        return AuditConfig()

    try:
        with open(config_file) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    config = config_from_dict(data or {})
    config.source = str(config_file)
    logger.debug("Loaded configuration from %s", config_file)
    return config


def config_from_dict(data: dict[str, Any]) -> AuditConfig:
    """Build an AuditConfig from a parsed mapping."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    config = AuditConfig()
    for key, value in data.items():
        if key in _SECTIONS:
            setattr(config, key, _build_section(key, _SECTIONS[key], value))
        elif key in _TOP_LEVEL_KEYS:
            setattr(config, key, value)
        else:
            raise ConfigError(f"Unknown configuration key: {key}")

    _validate(config)
    return config


def _build_section(name: str, section_cls: type, values: Any):
    if values is None:
        return section_cls()
    if not isinstance(values, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(sorted(unknown))}")
    return section_cls(**values)


def _validate(config: AuditConfig) -> None:
    perms = config.permissions
    if perms.missing_directory_policy not in MISSING_DIRECTORY_POLICIES:
        raise ConfigError(
            f"permissions.missing_directory_policy must be one of "
            f"{', '.join(MISSING_DIRECTORY_POLICIES)}"
        )
    if not isinstance(perms.weak_patterns, list):
        raise ConfigError("permissions.weak_patterns must be a list")
    try:
        load_patterns(perms.weak_patterns)
    except ValueError as e:
        raise ConfigError(f"permissions.weak_patterns: {e}") from e

    if not isinstance(perms.skip_paths, list):
        raise ConfigError("permissions.skip_paths must be a list")

    levels = config.firewall.logging_levels
    if not isinstance(levels, list) or not levels:
        raise ConfigError("firewall.logging_levels must be a non-empty list")
    unknown_levels = [level for level in levels if level not in FIREWALL_LOGGING_LEVELS]
    if unknown_levels:
        raise ConfigError(
            f"firewall.logging_levels: unknown level(s) {', '.join(map(str, unknown_levels))}; "
            f"choose from {', '.join(FIREWALL_LOGGING_LEVELS)}"
        )

    for direction in ("default_incoming", "default_outgoing"):
        if getattr(config.firewall, direction) not in FIREWALL_POLICIES:
            raise ConfigError(f"firewall.{direction} must be one of {', '.join(FIREWALL_POLICIES)}")

    try:
        config.progress_delay = float(config.progress_delay)
    except (TypeError, ValueError) as e:
        raise ConfigError("progress_delay must be a number") from e
    if config.progress_delay < 0:
        raise ConfigError("progress_delay cannot be negative")
