"""Custom exceptions used across xlguard."""


class XLGuardError(Exception):
    """Base error for the application."""


class ConfigError(XLGuardError):
    """Configuration related error."""


class ExportError(XLGuardError):
    """Raised when a guarded export fails."""
