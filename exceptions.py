# exceptions.py
"""
Custom exceptions for the Rotation Scheduler.

This module defines domain-specific exceptions for better error handling
and debugging throughout the application.
"""


class SchedulerAppError(Exception):
    """Base exception for all application errors."""

    pass


class DatabaseError(SchedulerAppError):
    """Raised when a database operation fails."""

    pass


class SessionError(SchedulerAppError):
    """Raised when a session operation fails."""

    pass


class ValidationError(SchedulerAppError):
    """Raised when a schedule cannot be generated for the given roster/config."""

    pass


class InvalidOperationError(SchedulerAppError):
    """Raised when a swap, score entry or roster edit is not allowed."""

    pass
