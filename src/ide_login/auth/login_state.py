"""
Login state for Google services.

GoogleLoginState signs a user into and out of Google via OAuth 2.0 and hands
out credentials while the user is signed in. It is platform independent: a
platform supplies an OAuthDataStore to persist credentials, a UiFacade for
user interaction and a LoggerFacade for its log.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Union

from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

from ..core.config import LoginConfig, get_login_config
from ..utils.errors import LoginError, NotLoggedInError, TokenRequestError, UserInfoError
from .credential_store import JsonFileOAuthDataStore, OAuthDataStore
from .facades import LoggerFacade, LoggingLoggerFacade, LoginListener, UiFacade
from .oauth_client import OOB_REDIRECT_URI, GoogleOAuthClient, TokenResponse
from .oauth_data import OAuthData
from .scopes import get_scopes

logger = logging.getLogger(__name__)

ListenerType = Union[LoginListener, Callable[[bool], None]]


@dataclass(frozen=True)
class LoggedOut:
    """No user is signed in."""


@dataclass(frozen=True)
class LoggedIn:
    """A signed-in user's live tokens.

    ``email`` is None when it could not be looked up after sign-in.
    """

    access_token: Optional[str]
    refresh_token: Optional[str]
    access_token_expiry_time: int
    email: Optional[str]


Session = Union[LoggedOut, LoggedIn]

LOGGED_OUT = LoggedOut()


class GoogleLoginState:
    """
    Signs a user into and out of Google services.

    Construction restores a previous session from the data store when its
    scopes still match ``oauth_scopes``; otherwise the stored data is
    discarded and the state starts logged out. No network call is made
    until a token is actually needed.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        oauth_scopes: Iterable[str],
        data_store: OAuthDataStore,
        ui_facade: UiFacade,
        logger_facade: LoggerFacade,
        oauth_client: Optional[GoogleOAuthClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            client_id: OAuth client ID of the application.
            client_secret: OAuth client secret of the application.
            oauth_scopes: Scopes the application requires.
            data_store: Persists credentials across restarts.
            ui_facade: Platform user interaction.
            logger_facade: Platform logging sink.
            oauth_client: Token endpoint client. Defaults to a
                GoogleOAuthClient for ``client_id`` sharing ``clock``.
            clock: Returns the current time in epoch seconds.
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.oauth_scopes = frozenset(oauth_scopes)
        self._data_store = data_store
        self._ui_facade = ui_facade
        self._logger_facade = logger_facade
        self._oauth_client = oauth_client or GoogleOAuthClient(client_id, client_secret, clock)
        self._clock = clock

        self._session: Session = LOGGED_OUT
        self._credential: Optional[Credentials] = None

        self._listeners: List[ListenerType] = []
        self._listeners_lock = threading.RLock()

        self._retrieve_saved_credentials()

    @classmethod
    def from_config(
        cls,
        ui_facade: UiFacade,
        oauth_scopes: Optional[Iterable[str]] = None,
        preference_path: str = "default",
        config: Optional[LoginConfig] = None,
        logger_facade: Optional[LoggerFacade] = None,
    ) -> "GoogleLoginState":
        """
        Create a login state from the environment configuration.

        Credentials are stored in the configured credentials directory and
        problems are written to the standard logging module.

        Raises:
            LoginError: If no OAuth client ID and secret are configured.
        """
        config = config or get_login_config()
        if not config.is_configured():
            raise LoginError(
                "OAuth client credentials not found. Set IDE_LOGIN_CLIENT_ID "
                "and IDE_LOGIN_CLIENT_SECRET."
            )

        logger_facade = logger_facade or LoggingLoggerFacade()
        data_store = JsonFileOAuthDataStore(
            preference_path, logger_facade, base_dir=config.credentials_dir
        )
        return cls(
            config.client_id,
            config.client_secret,
            oauth_scopes if oauth_scopes is not None else get_scopes(),
            data_store,
            ui_facade,
            logger_facade,
        )

    # Listeners

    def add_login_listener(self, listener: ListenerType) -> None:
        """Register ``listener`` to be notified of login state changes."""
        with self._listeners_lock:
            self._listeners.append(listener)

    def _notify_login_status_change(self, login: bool) -> None:
        with self._listeners_lock:
            for listener in list(self._listeners):
                if isinstance(listener, LoginListener):
                    listener.status_changed(login)
                else:
                    listener(login)

    # State

    @property
    def is_logged_in(self) -> bool:
        return isinstance(self._session, LoggedIn)

    @property
    def email(self) -> Optional[str]:
        """
        The user's email address.

        Empty string when logged out, None if the email could not be
        retrieved at sign-in.
        """
        if isinstance(self._session, LoggedIn):
            return self._session.email
        return ""

    def _require_logged_in(self, operation: str) -> LoggedIn:
        session = self._session
        if not isinstance(session, LoggedIn):
            raise NotLoggedInError(operation)
        return session

    def _now(self) -> int:
        return int(self._clock())

    def _set_session(self, session: Session) -> None:
        self._session = session
        self._credential = None

    # Tokens and credentials

    def fetch_oauth2_client_id(self) -> str:
        return self.client_id

    def fetch_oauth2_client_secret(self) -> str:
        return self.client_secret

    def fetch_oauth2_refresh_token(self) -> Optional[str]:
        return self._require_logged_in("fetch_oauth2_refresh_token").refresh_token

    def fetch_access_token(self) -> str:
        """
        Return the access token, refreshing it first if it has expired.

        Raises:
            NotLoggedInError: If no user is signed in.
            TokenRequestError: If the refresh fails.
        """
        session = self._require_logged_in("fetch_access_token")

        expiry_time = session.access_token_expiry_time
        if expiry_time == 0 or self._now() >= expiry_time:
            return self.fetch_oauth2_token()
        return session.access_token

    def fetch_oauth2_token(self) -> str:
        """
        Get a new short-lived access token from the refresh token.

        Raises:
            NotLoggedInError: If no user is signed in.
            TokenRequestError: If the refresh fails. It is not retried.
        """
        session = self._require_logged_in("fetch_oauth2_token")

        try:
            response = self._oauth_client.refresh_access_token(session.refresh_token)
        except TokenRequestError as e:
            self._logger_facade.log_error("Could not obtain an OAuth2 access token.", e)
            raise

        refreshed = replace(
            session,
            access_token=response.access_token,
            refresh_token=response.refresh_token or session.refresh_token,
            access_token_expiry_time=self._now() + response.expires_in_seconds,
        )
        self._persist_credentials(refreshed)
        self._set_session(refreshed)
        return response.access_token

    def make_credential(self) -> Credentials:
        """Build credentials from the current tokens (None when logged out)."""
        session = self._session
        if isinstance(session, LoggedIn):
            return self._oauth_client.make_credentials(
                session.access_token, session.refresh_token
            )
        return self._oauth_client.make_credentials(None, None)

    def get_credential(self) -> Credentials:
        if self._credential is None:
            self._credential = self.make_credential()
        return self._credential

    def create_authorized_session(self) -> AuthorizedSession:
        """
        A requests session signed with the user's credentials.

        Requests made after the access token was revoked or expired fail
        with 401 Unauthorized.

        Raises:
            NotLoggedInError: If no user is signed in.
        """
        self._require_logged_in("create_authorized_session")
        return self._oauth_client.authorized_session(self.get_credential())

    # Log in / log out

    def log_in(self, title: Optional[str] = None) -> bool:
        """
        Let the user sign in, unless already signed in.

        The user visits an authorization URL and pastes back the
        verification code shown by Google.

        Args:
            title: Shown at the top of the interaction when the platform
                supports it, e.g. "Importing a project requires signing in."

        Returns:
            True if the user is now signed in, False otherwise.
        """
        if self.is_logged_in:
            return True

        authorization_url = self._oauth_client.authorization_url(
            OOB_REDIRECT_URI, self.oauth_scopes
        )
        verification_code = self._ui_facade.obtain_verification_code_from_user_interaction(
            title, authorization_url
        )
        if verification_code is None:
            return False

        return self._complete_log_in(
            verification_code,
            OOB_REDIRECT_URI,
            ". See the error log for more details.",
            "Could not sign in. Make sure that you entered the correct verification code.",
        )

    def log_in_with_local_server(self, title: Optional[str] = None) -> bool:
        """
        Let the user sign in through a redirect to a local server.

        The UI facade runs the listener and returns the code together with
        the redirect URL it was issued for.

        Returns:
            True if the user is now signed in, False otherwise.
        """
        if self.is_logged_in:
            return True

        code_holder = self._ui_facade.obtain_verification_code_from_external_user_interaction(
            title
        )
        if code_holder is None:
            return False

        return self._complete_log_in(
            code_holder.verification_code,
            code_holder.redirect_url,
            "",
            "Could not sign in",
        )

    def _complete_log_in(
        self, code: str, redirect_uri: str, dialog_suffix: str, log_message: str
    ) -> bool:
        try:
            response = self._oauth_client.exchange_code(code, redirect_uri, self.oauth_scopes)
        except TokenRequestError as e:
            self._ui_facade.show_error_dialog(
                "Error while signing in",
                f"An error occurred while trying to sign in: {e.message}{dialog_suffix}",
            )
            self._logger_facade.log_error(log_message, e)
            return False

        self._update_login_state(response)
        return True

    def _update_login_state(self, response: TokenResponse) -> None:
        session = LoggedIn(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            access_token_expiry_time=self._now() + response.expires_in_seconds,
            email=None,
        )
        session = replace(session, email=self._query_email(session))

        # Stays logged out if the credentials cannot be stored
        self._persist_credentials(session)
        self._set_session(session)
        logger.info("Signed in")

        self._ui_facade.notify_status_indicator()
        self._notify_login_status_change(True)

    def _query_email(self, session: LoggedIn) -> Optional[str]:
        credentials = self._oauth_client.make_credentials(
            session.access_token, session.refresh_token
        )
        try:
            email = self._oauth_client.fetch_user_email(credentials)
        except UserInfoError as e:
            self._logger_facade.log_error(
                "Could not parse email after Google service sign-in", e
            )
            return None

        if email is None:
            self._logger_facade.log_warning(
                "Could not parse email after Google service sign-in"
            )
        return email

    def log_out(self, show_prompt: bool = True) -> bool:
        """
        Sign the user out.

        Args:
            show_prompt: Ask the user to confirm first.

        Returns:
            True if the user was signed out or already was, False if the
            user chose not to sign out.
        """
        if not self.is_logged_in:
            return True

        if show_prompt:
            if not self._ui_facade.ask_yes_or_no(
                "Sign out?", "Are you sure you want to sign out?"
            ):
                return False

        self._set_session(LOGGED_OUT)
        logger.info("Signed out")

        self._data_store.clear_stored_oauth_data()

        self._notify_login_status_change(False)
        self._ui_facade.notify_status_indicator()
        return True

    def simulate_login_status_change(self, login: bool) -> None:
        """
        Fire the listeners and UI updates of a log in or log out without
        talking to an OAuth server.

        A simulated log in reloads the stored credentials, with the same
        validation as at construction. For use in tests.
        """
        if login:
            self._set_session(LOGGED_OUT)
            self._retrieve_saved_credentials()
        self._notify_login_status_change(login)
        self._ui_facade.notify_status_indicator()

    # Persistence

    def _retrieve_saved_credentials(self) -> None:
        saved = self._data_store.load_oauth_data()

        if saved.refresh_token is None or not saved.stored_scopes:
            self._data_store.clear_stored_oauth_data()
            return

        if saved.stored_scopes != self.oauth_scopes:
            self._logger_facade.log_warning(
                "OAuth scope set for stored credentials no longer valid, logging out. "
                f"{sorted(self.oauth_scopes)} vs. {sorted(saved.stored_scopes)}"
            )
            self._data_store.clear_stored_oauth_data()
            return

        self._set_session(
            LoggedIn(
                access_token=saved.access_token,
                refresh_token=saved.refresh_token,
                access_token_expiry_time=saved.access_token_expiry_time,
                email=saved.stored_email,
            )
        )
        logger.debug("Restored stored credentials")

    def _persist_credentials(self, session: LoggedIn) -> None:
        self._data_store.save_oauth_data(
            OAuthData(
                access_token=session.access_token,
                refresh_token=session.refresh_token,
                stored_email=session.email,
                stored_scopes=self.oauth_scopes,
                access_token_expiry_time=session.access_token_expiry_time,
            )
        )
