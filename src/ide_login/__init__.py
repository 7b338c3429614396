"""ide-login - Google OAuth 2.0 login state for IDE plugins.

This package signs a user into Google, keeps their credentials across
restarts and tells the rest of the plugin when they log in or out.
"""
from .auth import GoogleLoginState, OAuthData, JsonFileOAuthDataStore
from .utils.errors import LoginError, NotLoggedInError, TokenRequestError

__version__ = "0.1.0"
__all__ = [
    "GoogleLoginState",
    "OAuthData",
    "JsonFileOAuthDataStore",
    "LoginError",
    "NotLoggedInError",
    "TokenRequestError",
]
