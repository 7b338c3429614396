"""Shared utilities for ide-login."""

from .errors import (
    LoginError,
    NotLoggedInError,
    TokenRequestError,
    UserInfoError,
    format_error,
)

__all__ = [
    "LoginError",
    "NotLoggedInError",
    "TokenRequestError",
    "UserInfoError",
    "format_error",
]
