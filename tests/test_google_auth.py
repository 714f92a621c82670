"""Tests for Google OAuth handling."""

from unittest.mock import MagicMock, patch

import pytest

from gdrive_sync.auth.google_auth import SCOPES, GoogleDriveAuth


@pytest.fixture
def auth(tmp_path):
    return GoogleDriveAuth(tmp_path / "client_secret.json", tmp_path / "token.json")


def fake_credentials(valid=True, expired=False, refresh_token="r"):
    creds = MagicMock()
    creds.valid = valid
    creds.expired = expired
    creds.refresh_token = refresh_token
    creds.to_json.return_value = '{"token": "t"}'
    return creds


class TestGoogleDriveAuth:
    """Test GoogleDriveAuth token handling."""

    def test_uses_valid_cached_token(self, auth):
        auth.token_file.write_text("{}")
        creds = fake_credentials()

        with patch('gdrive_sync.auth.google_auth.Credentials.from_authorized_user_file',
                   return_value=creds) as load:
            assert auth.authenticate() is creds

        load.assert_called_once_with(str(auth.token_file), SCOPES)
        creds.refresh.assert_not_called()

    def test_refreshes_expired_token(self, auth):
        auth.token_file.write_text("{}")
        creds = fake_credentials(valid=False, expired=True)

        with patch('gdrive_sync.auth.google_auth.Credentials.from_authorized_user_file',
                   return_value=creds):
            assert auth.authenticate(interactive=False) is creds

        creds.refresh.assert_called_once()
        assert auth.token_file.read_text() == '{"token": "t"}'

    def test_non_interactive_without_token_fails(self, auth):
        with pytest.raises(RuntimeError, match="login"):
            auth.authenticate(interactive=False)

    def test_interactive_requires_client_secret(self, auth):
        with pytest.raises(FileNotFoundError):
            auth.authenticate(interactive=True)

    def test_runs_consent_flow(self, auth):
        auth.client_secret_file.write_text("{}")
        creds = fake_credentials()
        flow = MagicMock()
        flow.run_local_server.return_value = creds

        with patch('gdrive_sync.auth.google_auth.InstalledAppFlow.from_client_secrets_file',
                   return_value=flow):
            assert auth.authenticate() is creds

        flow.run_local_server.assert_called_once_with(port=0)
        assert auth.token_file.exists()

    def test_get_session_wraps_credentials(self, auth):
        creds = fake_credentials()
        with patch.object(auth, 'authenticate', return_value=creds), \
                patch('gdrive_sync.auth.google_auth.AuthorizedSession') as session_cls:
            session = auth.get_session()

        session_cls.assert_called_once_with(creds)
        assert session is session_cls.return_value
