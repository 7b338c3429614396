"""
OAuth 2.0 login package for ide-login.

This package provides:
- GoogleLoginState, the login/logout state of a single Google user
- Credential persistence behind the OAuthDataStore interface
- The UiFacade / LoggerFacade / LoginListener platform contracts
- A console UiFacade with a local redirect listener
"""

from .oauth_data import OAuthData, VerificationCodeHolder
from .credential_store import OAuthDataStore, JsonFileOAuthDataStore, SCOPE_DELIMITER
from .facades import UiFacade, LoggerFacade, LoginListener, LoggingLoggerFacade
from .oauth_client import GoogleOAuthClient, TokenResponse, OOB_REDIRECT_URI
from .login_state import GoogleLoginState, LoggedIn, LoggedOut
from .local_redirect import LocalRedirectReceiver
from .console_ui import ConsoleUiFacade
from .scopes import SCOPES, get_scopes

__all__ = [
    # Records
    "OAuthData",
    "VerificationCodeHolder",
    # Credential Store
    "OAuthDataStore",
    "JsonFileOAuthDataStore",
    "SCOPE_DELIMITER",
    # Facades
    "UiFacade",
    "LoggerFacade",
    "LoginListener",
    "LoggingLoggerFacade",
    # OAuth client
    "GoogleOAuthClient",
    "TokenResponse",
    "OOB_REDIRECT_URI",
    # Login state
    "GoogleLoginState",
    "LoggedIn",
    "LoggedOut",
    # Console UI
    "LocalRedirectReceiver",
    "ConsoleUiFacade",
    # Scopes
    "SCOPES",
    "get_scopes",
]
