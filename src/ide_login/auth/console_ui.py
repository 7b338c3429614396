"""
Console UiFacade for ide-login.

A reference UiFacade for terminal applications: opens the browser for
consent and talks to the user on stdin/stderr.
"""

import logging
import sys
import webbrowser
from typing import Callable, Iterable, Optional

from ..core.config import get_login_config
from .facades import UiFacade
from .local_redirect import LocalRedirectReceiver
from .oauth_client import GoogleOAuthClient
from .oauth_data import VerificationCodeHolder

logger = logging.getLogger(__name__)


class ConsoleUiFacade(UiFacade):
    """UiFacade that uses the browser, stdin and stderr."""

    def __init__(
        self,
        oauth_client: GoogleOAuthClient,
        oauth_scopes: Iterable[str],
        receiver_factory: Optional[Callable[[], LocalRedirectReceiver]] = None,
        timeout: Optional[float] = None,
        input_func: Callable[[str], str] = input,
    ) -> None:
        if receiver_factory is None or timeout is None:
            config = get_login_config()
            if receiver_factory is None:
                receiver_factory = lambda: LocalRedirectReceiver(  # noqa: E731
                    config.callback_host, config.callback_port
                )
            if timeout is None:
                timeout = config.callback_timeout

        self._oauth_client = oauth_client
        self._oauth_scopes = frozenset(oauth_scopes)
        self._receiver_factory = receiver_factory
        self._timeout = timeout
        self._input = input_func

    def _print(self, message: str) -> None:
        sys.stderr.write(message + "\n")

    def _open_browser(self, title: Optional[str], url: str) -> None:
        if title:
            self._print(f"**{title}**")
        self._print("Open this URL in your browser to sign in:")
        self._print(url)
        webbrowser.open(url)

    def obtain_verification_code_from_user_interaction(
        self, title: Optional[str], authorization_url: str
    ) -> Optional[str]:
        self._open_browser(title, authorization_url)
        try:
            code = self._input("Enter the verification code: ").strip()
        except (EOFError, KeyboardInterrupt):
            return None
        return code or None

    def obtain_verification_code_from_external_user_interaction(
        self, title: Optional[str]
    ) -> Optional[VerificationCodeHolder]:
        with self._receiver_factory() as receiver:
            success, error_msg = receiver.start()
            if not success:
                self.show_error_dialog("Error while signing in", error_msg)
                return None

            redirect_uri = receiver.redirect_uri
            self._open_browser(
                title, self._oauth_client.authorization_url(redirect_uri, self._oauth_scopes)
            )
            code = receiver.wait_for_code(self._timeout)

        if code is None:
            return None
        return VerificationCodeHolder(code, redirect_uri)

    def ask_yes_or_no(self, title: str, message: str) -> bool:
        try:
            answer = self._input(f"{title} {message} [y/N] ")
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in ("y", "yes")

    def show_error_dialog(self, title: str, message: str) -> None:
        self._print(f"{title}: {message}")

    def notify_status_indicator(self) -> None:
        logger.debug("Login status changed")
