"""
Tests for OAuth credential resolution.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from approval_resender.config import CredentialSettings, env_value
from approval_resender.core.exceptions import ConfigurationError, CredentialError
from approval_resender.infrastructure.credentials import (
    CredentialStore,
    describe_scopes,
    read_token_file,
    resolve_credential,
)


ENV_NAMES = ("TEST_CLIENT_ID", "TEST_CLIENT_SECRET", "TEST_REFRESH_TOKEN")


@pytest.fixture
def config():
    return CredentialSettings(
        label="doc",
        token_file="token_doc.json",
        env_client_id="TEST_CLIENT_ID",
        env_client_secret="TEST_CLIENT_SECRET",
        env_refresh_token="TEST_REFRESH_TOKEN",
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def write_token(directory, data, name="token_doc.json"):
    path = directory / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestEnvValue:
    """Tests for env_value."""

    def test_unset_returns_default(self):
        assert env_value("TEST_CLIENT_ID", "fallback") == "fallback"

    @pytest.mark.parametrize("raw", [
        "abc",
        "  abc  ",
        '"abc"',
        "'abc'",
        "TEST_CLIENT_ID=abc",
        '"TEST_CLIENT_ID=abc"',
    ])
    def test_unwraps_paste_mistakes(self, monkeypatch, raw):
        monkeypatch.setenv("TEST_CLIENT_ID", raw)

        assert env_value("TEST_CLIENT_ID") == "abc"


class TestResolveCredential:
    """Tests for resolve_credential."""

    def test_token_file_wins(self, tmp_path, config, monkeypatch):
        monkeypatch.setenv("TEST_CLIENT_ID", "env-client")
        path = write_token(tmp_path, {
            "client_id": "file-client",
            "client_secret": "file-secret",
            "refresh_token": "file-refresh",
        })

        resolved = resolve_credential(config, [path])

        assert resolved.label == "doc"
        assert resolved.credentials.client_id == "file-client"
        assert resolved.credentials.refresh_token == "file-refresh"
        assert resolved.meta.source == f"file:{path}"
        assert resolved.meta.token_file_found is True
        assert resolved.meta.has_refresh_token is True

    def test_env_fills_missing_file_fields(self, tmp_path, config, monkeypatch):
        monkeypatch.setenv("TEST_REFRESH_TOKEN", '"env-refresh"')
        path = write_token(tmp_path, {
            "client_id": "file-client",
            "client_secret": "file-secret",
        })

        resolved = resolve_credential(config, [path])

        assert resolved.credentials.refresh_token == "env-refresh"
        assert resolved.meta.source == f"file:{path}"

    def test_env_only(self, tmp_path, config, monkeypatch):
        monkeypatch.setenv("TEST_CLIENT_ID", "env-client")
        monkeypatch.setenv("TEST_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("TEST_REFRESH_TOKEN", "TEST_REFRESH_TOKEN=env-refresh")

        resolved = resolve_credential(config, [tmp_path / "token_doc.json"])

        assert resolved.credentials.client_id == "env-client"
        assert resolved.credentials.refresh_token == "env-refresh"
        assert resolved.meta.source == "env:TEST_REFRESH_TOKEN"
        assert resolved.meta.token_file_found is False

    def test_unparseable_file_falls_back_to_env(self, tmp_path, config, monkeypatch):
        for name in ENV_NAMES:
            monkeypatch.setenv(name, f"{name.lower()}-value")
        path = write_token(tmp_path, "{not json")

        resolved = resolve_credential(config, [path])

        assert resolved.meta.source == "env:TEST_REFRESH_TOKEN"
        assert resolved.meta.token_file_found is True

    def test_incomplete_credential_raises(self, tmp_path, config, monkeypatch):
        monkeypatch.setenv("TEST_CLIENT_ID", "env-client")

        with pytest.raises(CredentialError) as exc_info:
            resolve_credential(config, [tmp_path / "token_doc.json"])

        assert exc_info.value.label == "doc"
        assert "Kredensial DOC tidak lengkap" in str(exc_info.value)

    def test_token_uri_from_file(self, tmp_path, config):
        path = write_token(tmp_path, {
            "client_id": "c",
            "client_secret": "s",
            "refresh_token": "r",
            "token_uri": "https://example.test/token",
        })

        resolved = resolve_credential(config, [path])

        assert resolved.credentials.token_uri == "https://example.test/token"


class TestReadTokenFile:
    """Tests for read_token_file."""

    def test_first_existing_path_wins(self, tmp_path):
        first = tmp_path / "a"
        second = tmp_path / "b"
        first.mkdir()
        second.mkdir()
        write_token(second, {"refresh_token": "second"})

        data, path = read_token_file(
            "token_doc.json", [first / "token_doc.json", second / "token_doc.json"],
        )

        assert data == {"refresh_token": "second"}
        assert path == second / "token_doc.json"

    def test_non_object_json(self, tmp_path):
        path = write_token(tmp_path, ["not", "an", "object"])

        assert read_token_file("token_doc.json", [path]) == (None, path)

    def test_missing_file(self, tmp_path):
        assert read_token_file("token_doc.json", [tmp_path / "nope.json"]) == (None, None)


class TestCredentialStore:
    """Tests for CredentialStore."""

    def test_from_settings_searches_directories(self, tmp_path, config):
        write_token(tmp_path, {"client_id": "c", "client_secret": "s", "refresh_token": "r"})

        store = CredentialStore.from_settings([config], search_dirs=[tmp_path])

        assert store.labels == ["doc"]
        assert store.get("doc").meta.token_file_found is True

    def test_unknown_label(self, make_credential):
        store = CredentialStore({"doc": make_credential("doc")})

        with pytest.raises(ConfigurationError) as exc_info:
            store.get("sparta")

        assert "sparta" in str(exc_info.value)


class TestDescribeScopes:
    """Tests for describe_scopes."""

    @pytest.fixture
    def refreshed(self, monkeypatch):
        """Stub Credentials.refresh; records which objects were refreshed."""
        calls = []

        def fake_refresh(creds, request):
            calls.append(creds)
            creds.token = "ya29.access"

        monkeypatch.setattr(Credentials, "refresh", fake_refresh)
        return calls

    def test_reports_scopes(self, make_credential, refreshed):
        session = MagicMock()
        session.get.return_value.json.return_value = {
            "scope": "https://www.googleapis.com/auth/drive https://www.googleapis.com/auth/gmail.send",
        }

        info = describe_scopes(make_credential("doc"), session=session)

        assert info == {
            "ok": True,
            "message": "OK",
            "scopes": [
                "https://www.googleapis.com/auth/drive",
                "https://www.googleapis.com/auth/gmail.send",
            ],
        }
        assert len(refreshed) == 1
        session.get.assert_called_once()
        assert session.get.call_args.kwargs["params"] == {"access_token": "ya29.access"}

    def test_shared_credentials_not_refreshed(self, make_credential, refreshed):
        credential = make_credential("doc")

        describe_scopes(credential, session=MagicMock())

        assert refreshed[0] is not credential.credentials
        assert refreshed[0].refresh_token == credential.credentials.refresh_token
        assert refreshed[0].client_id == credential.credentials.client_id
        assert credential.credentials.token is None

    def test_owned_session_is_closed(self, make_credential, refreshed, monkeypatch):
        session = MagicMock()
        session.__enter__.return_value = session
        session.get.return_value.json.return_value = {"scopes": ["s1"]}
        monkeypatch.setattr(requests, "Session", lambda: session)

        info = describe_scopes(make_credential("doc"))

        assert info["scopes"] == ["s1"]
        session.__exit__.assert_called_once()

    def test_refresh_failure_is_reported(self, make_credential, monkeypatch):
        def failing_refresh(creds, request):
            raise RefreshError("invalid_grant")

        monkeypatch.setattr(Credentials, "refresh", failing_refresh)

        info = describe_scopes(make_credential("doc"), session=MagicMock())

        assert info["ok"] is False
        assert "invalid_grant" in info["message"]
        assert info["scopes"] == []

    def test_tokeninfo_failure_is_reported(self, make_credential, refreshed):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("unreachable")

        info = describe_scopes(make_credential("doc"), session=session)

        assert info == {"ok": False, "message": "unreachable", "scopes": []}

    def test_missing_access_token(self, make_credential, monkeypatch):
        monkeypatch.setattr(Credentials, "refresh", lambda creds, request: None)

        info = describe_scopes(make_credential("doc"), session=MagicMock())

        assert info["ok"] is False
        assert info["scopes"] == []
