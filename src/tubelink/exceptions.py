"""Custom exceptions for tubelink."""


class TubelinkError(Exception):
    """Base exception for all tubelink errors."""

    pass


class ValidationError(TubelinkError):
    """Raised when validation fails."""

    pass


class InvalidInstanceError(ValidationError):
    """Raised when a custom instance is rejected at the registry boundary."""

    pass


class ConfigError(TubelinkError):
    """Raised when the settings file cannot be read or written."""

    pass


class ApiError(TubelinkError):
    """Raised when a call to the instance API fails."""

    pass


class AuthError(ApiError):
    """Raised when an operation needs a session that is missing or rejected."""

    pass


class TransferError(TubelinkError):
    """Raised when a subscription import or export fails."""

    pass


class ParseError(TubelinkError):
    """Raised when input parsing fails."""

    pass


class SubscriptionFormatError(ParseError):
    """Raised when a subscription list cannot be decoded."""

    pass
