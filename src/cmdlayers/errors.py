"""Custom exception hierarchy for cmdlayers."""


class AppError(Exception):
    """Base exception for app-specific failures."""


class UsageError(ValueError, AppError):
    """Command usage or user-input errors."""


class ValidationError(ValueError, AppError):
    """Domain validation errors."""


class ConfigError(ValueError, AppError):
    """Profile or command table configuration errors."""


class TransportError(AppError):
    """Byte-stream transport failures."""
