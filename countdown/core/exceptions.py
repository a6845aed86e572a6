"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class CountdownError(Exception):
    """Base exception for countdown."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(CountdownError):
    """Resource not found."""

    pass


class ValidationError(CountdownError):
    """Malformed input (e.g. an import payload of the wrong shape)."""

    pass


class InfrastructureError(CountdownError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class ConnectivityError(InfrastructureError):
    """The remote store rejected or failed a subscription or write."""

    pass


class MigrationError(CountdownError):
    """One-shot local-to-remote migration failed. Logged, never surfaced."""

    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, details={"succeeded": succeeded, "failed": failed})
        self.succeeded = succeeded
        self.failed = failed
