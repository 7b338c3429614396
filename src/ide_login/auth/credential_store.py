"""
Credential Store for ide-login.

This module provides the interface the login state uses to persist a single
user's OAuthData, and a reference implementation backed by a local JSON file.
"""

import base64
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..core.config import get_login_config
from .facades import LoggerFacade
from .oauth_data import OAuthData

logger = logging.getLogger(__name__)

KEY_ACCESS_TOKEN = "access_token"
KEY_REFRESH_TOKEN = "refresh_token"
KEY_EMAIL = "email"
KEY_ACCESS_TOKEN_EXPIRY_TIME = "access_token_expiry_time"
KEY_OAUTH_SCOPES = "oauth_scopes"

SCOPE_DELIMITER = " "


class OAuthDataStore(ABC):
    """Abstract base class for OAuthData persistence."""

    @abstractmethod
    def load_oauth_data(self) -> OAuthData:
        """Load the stored data. Returns an empty OAuthData if nothing is stored."""
        pass

    @abstractmethod
    def save_oauth_data(self, oauth_data: OAuthData) -> None:
        """Persist ``oauth_data``, replacing whatever was stored."""
        pass

    @abstractmethod
    def clear_stored_oauth_data(self) -> None:
        """Remove any stored data."""
        pass


def _empty_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _none_to_empty(value: Optional[str]) -> str:
    return value if value is not None else ""


class JsonFileOAuthDataStore(OAuthDataStore):
    """OAuthData store that keeps one JSON key/value file per preference path.

    Strings are written as "" when absent and read back as None, so this
    store cannot tell an empty string from a missing value. Scopes are joined
    with a single space; a scope containing a space is rejected.
    """

    def __init__(
        self,
        preference_path: str,
        logger_facade: LoggerFacade,
        base_dir: Optional[str] = None,
    ) -> None:
        """
        Initialize the JSON file store.

        Args:
            preference_path: Identifies the stored record (e.g. a workspace
                     or application name).
            logger_facade: Sink for write failures.
            base_dir: Directory for the record files. If None, uses the
                     configured credentials directory.
        """
        if base_dir is None:
            base_dir = get_login_config().credentials_dir

        self.preference_path = preference_path
        self.base_dir = base_dir
        self._logger_facade = logger_facade
        logger.debug(f"JsonFileOAuthDataStore initialized: {self.file_path}")

    @property
    def file_path(self) -> str:
        """
        The record's file path.

        The preference path is URL-safe base64 encoded so any path string
        (including separators) maps to a single flat file name.
        """
        encoded = base64.urlsafe_b64encode(self.preference_path.encode("utf-8")).decode("ascii")
        return os.path.join(self.base_dir, f"{encoded.rstrip('=')}.json")

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.file_path):
            return {}

        try:
            with open(self.file_path, "r") as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read stored OAuth data from {self.file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Invalid OAuth data file format in {self.file_path}, ignoring")
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            with open(self.file_path, "w") as f:
                json.dump(data, f, indent=2)
        except (IOError, OSError) as e:
            self._logger_facade.log_warning(f"Could not flush preferences: {e}")

    def load_oauth_data(self) -> OAuthData:
        data = self._read()

        try:
            expiry_time = int(data.get(KEY_ACCESS_TOKEN_EXPIRY_TIME, 0))
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed access token expiry time")
            expiry_time = 0

        scopes_string = data.get(KEY_OAUTH_SCOPES) or ""
        if not isinstance(scopes_string, str):
            logger.warning("Ignoring malformed OAuth scopes")
            scopes_string = ""
        scopes = [scope for scope in scopes_string.split(SCOPE_DELIMITER) if scope]

        return OAuthData(
            access_token=_empty_to_none(data.get(KEY_ACCESS_TOKEN)),
            refresh_token=_empty_to_none(data.get(KEY_REFRESH_TOKEN)),
            stored_email=_empty_to_none(data.get(KEY_EMAIL)),
            stored_scopes=frozenset(scopes),
            access_token_expiry_time=expiry_time,
        )

    def save_oauth_data(self, oauth_data: OAuthData) -> None:
        for scope in oauth_data.stored_scopes:
            if SCOPE_DELIMITER in scope:
                raise ValueError("Scopes must not have a delimiter character.")

        self._write(
            {
                KEY_ACCESS_TOKEN: _none_to_empty(oauth_data.access_token),
                KEY_REFRESH_TOKEN: _none_to_empty(oauth_data.refresh_token),
                KEY_EMAIL: _none_to_empty(oauth_data.stored_email),
                KEY_ACCESS_TOKEN_EXPIRY_TIME: oauth_data.access_token_expiry_time,
                KEY_OAUTH_SCOPES: SCOPE_DELIMITER.join(sorted(oauth_data.stored_scopes)),
            }
        )
        logger.debug(f"Stored OAuth data for {self.preference_path}")

    def clear_stored_oauth_data(self) -> None:
        try:
            if os.path.exists(self.file_path):
                os.remove(self.file_path)
                logger.debug(f"Cleared OAuth data for {self.preference_path}")
        except OSError as e:
            self._logger_facade.log_warning(f"Could not flush preferences: {e}")
