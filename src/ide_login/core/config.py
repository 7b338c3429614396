"""
Configuration management for ide-login.

This module centralizes configuration values read from the environment
(optionally seeded from a .env file) so nothing else hardcodes them.
"""

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_DIR = "~/.config/ide-login"
DEFAULT_CALLBACK_HOST = "localhost"
DEFAULT_CALLBACK_TIMEOUT = 300.0


class LoginConfig:
    """
    Centralized login configuration.

    Provides a single source of truth for the OAuth client identity, the
    credentials directory and the local redirect listener settings.
    """

    def __init__(self) -> None:
        # OAuth client configuration
        self.client_id = os.getenv("IDE_LOGIN_CLIENT_ID")
        self.client_secret = os.getenv("IDE_LOGIN_CLIENT_SECRET")

        # Credentials directory
        self.credentials_dir = os.path.expanduser(
            os.getenv("IDE_LOGIN_CREDENTIALS_DIR", DEFAULT_CREDENTIALS_DIR)
        )

        # Local redirect listener; port 0 lets the OS pick a free port
        self.callback_host = os.getenv("IDE_LOGIN_CALLBACK_HOST", DEFAULT_CALLBACK_HOST)
        self.callback_port = int(os.getenv("IDE_LOGIN_CALLBACK_PORT", "0"))
        self.callback_timeout = float(
            os.getenv("IDE_LOGIN_CALLBACK_TIMEOUT", str(DEFAULT_CALLBACK_TIMEOUT))
        )

    def is_configured(self) -> bool:
        """Check if the OAuth client identity is available."""
        return bool(self.client_id and self.client_secret)

    def get_environment_summary(self) -> Dict[str, Any]:
        """Get a summary of the current configuration (excluding secrets)."""
        return {
            "client_configured": self.is_configured(),
            "credentials_dir": self.credentials_dir,
            "callback_host": self.callback_host,
            "callback_port": self.callback_port,
            "callback_timeout": self.callback_timeout,
        }


# Global configuration instance
_login_config: Optional[LoginConfig] = None


def get_login_config() -> LoginConfig:
    """Get the global login configuration instance."""
    global _login_config
    if _login_config is None:
        load_dotenv()
        _login_config = LoginConfig()
        logger.debug("Loaded login configuration: %s", _login_config.get_environment_summary())
    return _login_config


def reload_login_config() -> LoginConfig:
    """Reload the login configuration from environment variables."""
    global _login_config
    load_dotenv(override=True)
    _login_config = LoginConfig()
    return _login_config
