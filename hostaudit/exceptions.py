"""
Custom exceptions for hostaudit.

Errors fall into three tiers: environment fatal (the program stops),
operation fatal (the current audit stops, the menu continues) and
invalid input (the operator is asked again).
"""


class AuditError(Exception):
    """Base exception for all hostaudit errors."""
    pass


class ConfigError(AuditError):
    """Raised when the configuration file is malformed."""
    pass


class EnvironmentFatalError(AuditError):
    """Raised when the host cannot run hostaudit at all."""
    pass


class OperationFatalError(AuditError):
    """Raised when the current audit operation must stop."""
    pass


class MissingDirectoryError(OperationFatalError):
    """Raised when one or more audited directories do not exist."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        if len(self.missing) == 1:
            message = f"Directory '{self.missing[0]}' does not exist."
        else:
            joined = ", ".join(f"'{path}'" for path in self.missing)
            message = f"Directories {joined} do not exist."
        super().__init__(message)


class BaselineStoreError(OperationFatalError):
    """Raised when the baseline cannot be read or written."""
    pass


class AccountSourceError(OperationFatalError):
    """Raised when the account or credential database cannot be read."""
    pass


class ReportWriteError(OperationFatalError):
    """Raised when a report file cannot be written."""
    pass


class CommandError(OperationFatalError):
    """Raised when a required external command is absent or fails."""

    def __init__(self, command: list[str] | str, returncode: int | None = None, stderr: str = ""):
        self.command = command if isinstance(command, str) else " ".join(command)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"Command not available: {self.command}"
        else:
            message = f"Command failed with exit code {returncode}: {self.command}"
        super().__init__(message)


class OperationCancelled(AuditError):
    """Raised when the operator interrupts a running operation."""
    pass


class InvalidInputError(AuditError):
    """Raised when operator input cannot be used; the caller re-prompts."""
    pass
