"""Unit tests for the JSON file credential store."""

import sys
import os
import json
import shutil
import tempfile
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from ide_login.auth.credential_store import SCOPE_DELIMITER, JsonFileOAuthDataStore
from ide_login.auth.facades import LoggerFacade
from ide_login.auth.oauth_data import OAuthData

SCOPES = frozenset({"my-scope1", "my-scope2"})


class TestJsonFileOAuthDataStore:
    """Tests for JsonFileOAuthDataStore."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.logger_facade = Mock(spec=LoggerFacade)
        self.store = JsonFileOAuthDataStore(
            "some preference node", self.logger_facade, base_dir=self.temp_dir
        )

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def assert_empty(self, loaded):
        assert loaded.access_token is None
        assert loaded.refresh_token is None
        assert loaded.stored_email is None
        assert loaded.stored_scopes == frozenset()
        assert loaded.access_token_expiry_time == 0

    def test_load_returns_empty_data(self):
        self.assert_empty(self.store.load_oauth_data())

    def test_save_load(self):
        data = OAuthData("my-access-token", "my-refresh-token", "my-email", SCOPES, 12345)

        self.store.save_oauth_data(data)

        assert self.store.load_oauth_data() == data

    def test_save_load_none_values(self):
        self.store.save_oauth_data(OAuthData(None, None, None, None, 0))

        self.assert_empty(self.store.load_oauth_data())

    def test_save_load_empty_values(self):
        self.store.save_oauth_data(OAuthData("", "", "", None, 0))

        self.assert_empty(self.store.load_oauth_data())

    def test_save_clear_load_returns_empty_data(self):
        self.store.save_oauth_data(
            OAuthData("my-access-token", "my-refresh-token", "my-email", SCOPES, 12345)
        )

        self.store.clear_stored_oauth_data()

        self.assert_empty(self.store.load_oauth_data())

    def test_clear_when_nothing_stored(self):
        self.store.clear_stored_oauth_data()
        self.store.clear_stored_oauth_data()

        self.assert_empty(self.store.load_oauth_data())
        self.logger_facade.log_warning.assert_not_called()

    def test_save_load_none_scope_set(self):
        self.store.save_oauth_data(
            OAuthData("my-access-token", "my-refresh-token", "my-email", None, 12345)
        )

        loaded = self.store.load_oauth_data()
        assert loaded.access_token == "my-access-token"
        assert loaded.refresh_token == "my-refresh-token"
        assert loaded.stored_email == "my-email"
        assert loaded.stored_scopes == frozenset()
        assert loaded.access_token_expiry_time == 12345

    def test_save_load_empty_scope_set(self):
        self.store.save_oauth_data(
            OAuthData("my-access-token", "my-refresh-token", "my-email", set(), 12345)
        )

        assert self.store.load_oauth_data().stored_scopes == frozenset()

    def test_scope_with_delimiter_is_rejected(self):
        previous = OAuthData("at", "rt", "e", SCOPES, 1)
        self.store.save_oauth_data(previous)
        scopes = {SCOPE_DELIMITER, "head" + SCOPE_DELIMITER + "tail"}

        with pytest.raises(ValueError):
            self.store.save_oauth_data(OAuthData(None, None, None, scopes, 0))

        assert self.store.load_oauth_data() == previous

    def test_stored_layout(self):
        self.store.save_oauth_data(OAuthData("at", None, "e", SCOPES, 7))

        with open(self.store.file_path) as f:
            stored = json.load(f)

        assert stored == {
            "access_token": "at",
            "refresh_token": "",
            "email": "e",
            "access_token_expiry_time": 7,
            "oauth_scopes": "my-scope1 my-scope2",
        }

    def test_load_omits_empty_scope_tokens(self):
        with open(self.store.file_path, "w") as f:
            json.dump({"refresh_token": "rt", "oauth_scopes": " a  b "}, f)

        loaded = self.store.load_oauth_data()
        assert loaded.stored_scopes == frozenset({"a", "b"})
        assert loaded.refresh_token == "rt"

    def test_preference_paths_are_isolated(self):
        other = JsonFileOAuthDataStore("other/node", self.logger_facade, base_dir=self.temp_dir)
        self.store.save_oauth_data(OAuthData("at", "rt", "e", SCOPES, 1))

        self.assert_empty(other.load_oauth_data())
        assert os.path.dirname(other.file_path) == self.temp_dir

    def test_corrupt_file_loads_empty(self):
        with open(self.store.file_path, "w") as f:
            f.write("{not json")

        self.assert_empty(self.store.load_oauth_data())

    def test_malformed_expiry_loads_as_zero(self):
        with open(self.store.file_path, "w") as f:
            json.dump({"refresh_token": "rt", "access_token_expiry_time": "soon"}, f)

        assert self.store.load_oauth_data().access_token_expiry_time == 0

    def test_malformed_scopes_load_as_empty(self):
        with open(self.store.file_path, "w") as f:
            json.dump({"refresh_token": "rt", "oauth_scopes": ["a", "b"]}, f)

        data = self.store.load_oauth_data()
        assert data.refresh_token == "rt"
        assert data.stored_scopes == frozenset()

    def test_write_failure_is_logged(self):
        blocker = os.path.join(self.temp_dir, "blocker")
        with open(blocker, "w") as f:
            f.write("")
        store = JsonFileOAuthDataStore("node", self.logger_facade, base_dir=blocker)

        store.save_oauth_data(OAuthData("at", "rt", "e", SCOPES, 1))

        self.logger_facade.log_warning.assert_called_once()
        assert "Could not flush preferences" in self.logger_facade.log_warning.call_args[0][0]
