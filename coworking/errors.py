"""Exceptions raised by the identity and booking layers."""
from __future__ import annotations


class BookingServiceError(Exception):
    """Base class for every error reported by the booking service."""


class InvalidInput(BookingServiceError, ValueError):
    """Raised when a request carries malformed or missing values."""


class DuplicateEmail(BookingServiceError, ValueError):
    """Raised when registering an email address that is already in use."""


class NotFound(BookingServiceError, LookupError):
    """Raised when a referenced user does not exist."""


class InvalidCredentials(BookingServiceError):
    """Raised when a password does not match the stored hash."""


class InvalidToken(BookingServiceError):
    """Raised when a session token is malformed, expired or badly signed."""


class Forbidden(BookingServiceError, PermissionError):
    """Raised when an authenticated user acts on another user's records."""


class InvalidSpace(BookingServiceError, ValueError):
    """Raised when a space type/sub-type pair is not in the catalog."""


class InvalidDateRange(BookingServiceError, ValueError):
    """Raised when a booking does not end strictly after it starts."""


class StoreError(BookingServiceError, RuntimeError):
    """Raised when the persistent store fails or is not open."""


class ConfigurationError(RuntimeError):
    """Raised when the service settings are incomplete or invalid."""


__all__ = [
    "BookingServiceError",
    "ConfigurationError",
    "DuplicateEmail",
    "Forbidden",
    "InvalidCredentials",
    "InvalidDateRange",
    "InvalidInput",
    "InvalidSpace",
    "InvalidToken",
    "NotFound",
    "StoreError",
]
