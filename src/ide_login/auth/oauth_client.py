"""
Google OAuth provider client for ide-login.

Every network call the login state makes goes through GoogleOAuthClient, so
the transport can be replaced wholesale in tests.
"""

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional

import requests
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import AuthorizedSession, Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from ..utils.errors import TokenRequestError, UserInfoError

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Google shows the code to the user instead of redirecting anywhere
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


@dataclass(frozen=True)
class TokenResponse:
    """The parts of a token endpoint response the login state keeps."""

    access_token: str
    refresh_token: Optional[str]
    expires_in_seconds: int


def _normalize_expiry_to_naive_utc(expiry: Optional[datetime]) -> Optional[datetime]:
    """Convert an expiry to the timezone-naive UTC form google-auth uses."""
    if expiry is None:
        return None
    if expiry.tzinfo is not None:
        return expiry.astimezone(timezone.utc).replace(tzinfo=None)
    return expiry


class GoogleOAuthClient:
    """
    Authorization-code and refresh-token grants against Google's endpoints.

    Uses google-auth-oauthlib for the authorization URL and code exchange,
    google-auth for refreshes, and the userinfo API for the user's email.
    """

    def __init__(
        self, client_id: str, client_secret: str, clock: Callable[[], float] = time.time
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self._clock = clock

        # Google may grant more scopes than were asked for (e.g. openid)
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

    def _client_config(self) -> Dict[str, Any]:
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
            }
        }

    def _create_flow(self, redirect_uri: str, scopes: Iterable[str]) -> Flow:
        # No PKCE: the URL and the exchange are built by separate flows.
        return Flow.from_client_config(
            self._client_config(),
            scopes=sorted(scopes),
            redirect_uri=redirect_uri,
            autogenerate_code_verifier=False,
        )

    def authorization_url(self, redirect_uri: str, scopes: Iterable[str]) -> str:
        """
        Build the URL the user visits to grant ``scopes``.

        Args:
            redirect_uri: Where Google sends the code afterwards.
            scopes: Requested OAuth scopes.

        Returns:
            The authorization URL, requesting offline access.
        """
        flow = self._create_flow(redirect_uri, scopes)
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        return auth_url

    def exchange_code(
        self, code: str, redirect_uri: str, scopes: Iterable[str]
    ) -> TokenResponse:
        """
        Exchange a verification code for tokens.

        Raises:
            TokenRequestError: If Google rejects the code or is unreachable.
        """
        flow = self._create_flow(redirect_uri, scopes)
        try:
            token = flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException) as e:
            raise TokenRequestError(str(e), grant_type="authorization_code") from e

        logger.info("Successfully exchanged authorization code for tokens")
        return TokenResponse(
            access_token=token["access_token"],
            refresh_token=token.get("refresh_token"),
            expires_in_seconds=int(token.get("expires_in", 0)),
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """
        Get a new access token for ``refresh_token``.

        Raises:
            TokenRequestError: If Google rejects the refresh token or is
                unreachable.
        """
        credentials = self.make_credentials(None, refresh_token)
        try:
            credentials.refresh(Request())
        except (RefreshError, TransportError) as e:
            raise TokenRequestError(str(e), grant_type="refresh_token") from e

        expires_in = 0
        expiry = _normalize_expiry_to_naive_utc(credentials.expiry)
        if expiry is not None:
            expiry_epoch = expiry.replace(tzinfo=timezone.utc).timestamp()
            expires_in = max(int(expiry_epoch - self._clock()), 0)

        logger.debug("Access token refreshed")
        return TokenResponse(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token or refresh_token,
            expires_in_seconds=expires_in,
        )

    def fetch_user_email(self, credentials: Credentials) -> Optional[str]:
        """
        Look up the email address of the user ``credentials`` belong to.

        Returns:
            The email, or None if the profile has no email.

        Raises:
            UserInfoError: If the profile cannot be fetched.
        """
        try:
            service = build("oauth2", "v2", credentials=credentials, cache_discovery=False)
            user_info = service.userinfo().get().execute()
        except HttpError as e:
            raise UserInfoError(f"HttpError fetching user info: {e.status_code}") from e
        except Exception as e:
            raise UserInfoError(f"Error fetching user info: {e}") from e

        return user_info.get("email")

    def make_credentials(
        self, access_token: Optional[str], refresh_token: Optional[str]
    ) -> Credentials:
        """Build google-auth credentials for this client from raw tokens."""
        return Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )

    def authorized_session(self, credentials: Credentials) -> AuthorizedSession:
        """A requests session that signs every request with ``credentials``."""
        return AuthorizedSession(credentials)
