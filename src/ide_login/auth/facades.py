"""
Platform facades consumed by the login state.

A platform plugs into GoogleLoginState by implementing UiFacade (user
interaction) and LoggerFacade (its logging sink), and observes login
transitions through LoginListener.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .oauth_data import VerificationCodeHolder

logger = logging.getLogger(__name__)


class UiFacade(ABC):
    """User interactions the login state needs from the platform UI."""

    @abstractmethod
    def obtain_verification_code_from_user_interaction(
        self, title: Optional[str], authorization_url: str
    ) -> Optional[str]:
        """
        Let the user visit ``authorization_url`` and paste back the code.

        Returns:
            The verification code, or None if the user cancelled.
        """
        pass

    @abstractmethod
    def obtain_verification_code_from_external_user_interaction(
        self, title: Optional[str]
    ) -> Optional[VerificationCodeHolder]:
        """
        Obtain a code through a flow that redirects to a local listener.

        Returns:
            The code and the redirect URL it was issued for, or None if the
            user cancelled.
        """
        pass

    @abstractmethod
    def ask_yes_or_no(self, title: str, message: str) -> bool:
        """Ask the user a yes/no question."""
        pass

    @abstractmethod
    def show_error_dialog(self, title: str, message: str) -> None:
        """Show an error to the user."""
        pass

    @abstractmethod
    def notify_status_indicator(self) -> None:
        """Tell the UI the login status indicator needs refreshing."""
        pass


class LoggerFacade(ABC):
    """The platform's logging sink."""

    @abstractmethod
    def log_warning(self, message: str) -> None:
        pass

    @abstractmethod
    def log_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        pass


class LoginListener(ABC):
    """Observer of login and logout transitions."""

    @abstractmethod
    def status_changed(self, login: bool) -> None:
        """Called synchronously with the new logged-in state."""
        pass


class LoggingLoggerFacade(LoggerFacade):
    """LoggerFacade that forwards to the standard logging module."""

    def __init__(self, target: Optional[logging.Logger] = None) -> None:
        self._logger = target or logger

    def log_warning(self, message: str) -> None:
        self._logger.warning(message)

    def log_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        if exc is None:
            self._logger.error(message)
        else:
            self._logger.error(f"{message}: {exc}", exc_info=exc)
