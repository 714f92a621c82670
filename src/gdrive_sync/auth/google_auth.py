"""Google OAuth handling for the Drive API."""

import logging
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import AuthorizedSession, Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive"]


class GoogleDriveAuth:
    """Obtain and cache user credentials for Google Drive."""

    def __init__(self, client_secret_file: Path, token_file: Path):
        """Initialize Google Drive authentication.

        Args:
            client_secret_file: OAuth client secret downloaded from the Cloud console
            token_file: Where the authorized user token is cached
        """
        self.client_secret_file = Path(client_secret_file)
        self.token_file = Path(token_file)
        self._credentials: Optional[Credentials] = None

    def _load_token(self) -> Optional[Credentials]:
        if not self.token_file.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self.token_file), SCOPES)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable token file {self.token_file}: {e}")
            return None

    def _save_token(self, credentials: Credentials):
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        self.token_file.write_text(credentials.to_json(), encoding='utf-8')
        logger.info(f"Token stored to {self.token_file}")

    def authenticate(self, interactive: bool = True) -> Credentials:
        """Return valid credentials, refreshing or prompting as needed.

        Args:
            interactive: Allow the browser consent flow when no usable token exists

        Raises:
            RuntimeError: If no valid token exists and interactive login is disabled
            FileNotFoundError: If the client secret file is missing
        """
        credentials = self._credentials or self._load_token()

        if credentials and credentials.valid:
            self._credentials = credentials
            return credentials

        if credentials and credentials.expired and credentials.refresh_token:
            logger.info("Refreshing expired access token")
            credentials.refresh(Request())
        else:
            if not interactive:
                raise RuntimeError(f"No valid token in {self.token_file}; run the login command first")
            if not self.client_secret_file.exists():
                raise FileNotFoundError(f"Client secret file not found: {self.client_secret_file}")
            flow = InstalledAppFlow.from_client_secrets_file(str(self.client_secret_file), SCOPES)
            credentials = flow.run_local_server(port=0)

        self._save_token(credentials)
        self._credentials = credentials
        return credentials

    def get_session(self, interactive: bool = True) -> AuthorizedSession:
        """Get a ``requests`` session that signs and refreshes on its own."""
        return AuthorizedSession(self.authenticate(interactive=interactive))
