"""Custom exceptions for the IDE login library.

This module provides structured error handling with specific exception types
for the different failure scenarios of a login session. All exceptions
inherit from LoginError.
"""
from typing import Optional


class LoginError(Exception):
    """Base exception for all ide-login errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotLoggedInError(LoginError, RuntimeError):
    """Raised when a logged-in-only operation is called while logged out.

    This is a caller bug, not a recoverable condition.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} requires a signed-in user")


class TokenRequestError(LoginError):
    """Raised when the token endpoint rejects a grant or cannot be reached.

    Attributes:
        grant_type: The OAuth2 grant that failed.
    """

    def __init__(self, message: str, grant_type: Optional[str] = None) -> None:
        self.grant_type = grant_type
        super().__init__(message)


class UserInfoError(LoginError):
    """Raised when the signed-in user's profile cannot be fetched."""
    pass


def format_error(action: str, error: Exception) -> str:
    """Format an error message consistently.

    Args:
        action: The action that failed (e.g., "Sign in", "Token refresh").
        error: The exception that occurred.

    Returns:
        Formatted error string.
    """
    if isinstance(error, LoginError):
        return f"{action} failed: {error.message}"
    return f"{action} failed: {str(error)}"
