"""Interactive OAuth consent for Google Drive.

Runs the installed-app flow from google-auth-oauthlib once, converts the
resulting credentials into an OAuthToken and stores it. Refreshing is the
job of TokenManager, not of this module.

Environment Variables:
    GOOGLE_OAUTH_CLIENT_ID: Google OAuth client ID (required)
    GOOGLE_OAUTH_CLIENT_SECRET: Google OAuth client secret (required)
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from drive_organizer_mcp.auth.models import OAuthToken, StoredToken, TokenMetadata, TokenStatus
from drive_organizer_mcp.auth.token_storage import SERVICE_NAME, TokenStorage
from drive_organizer_mcp.config import GOOGLE_TOKEN_URI

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"


class OAuthManager:
    """Obtain and inspect the stored Drive credential.

    Attributes:
        storage: Token storage instance for persisting credentials.

    Example:
        ```python
        manager = OAuthManager()
        token = await manager.authenticate(client_id="...", client_secret="...")
        status, stored = manager.get_status()
        ```
    """

    def __init__(self, storage: TokenStorage | None = None) -> None:
        self.storage = storage or TokenStorage()
        self._service_name = SERVICE_NAME

    @property
    def token_path(self) -> Path:
        return self.storage.token_path

    def has_valid_tokens(self) -> bool:
        return self.storage.get_status(self._service_name) == TokenStatus.VALID

    def _credentials_to_token(self, credentials: Credentials, scopes: list[str]) -> OAuthToken:
        """Convert google-auth Credentials to an OAuthToken.

        google-auth reports ``expiry`` as a naive UTC datetime.
        """
        if credentials.expiry:
            expires_at = credentials.expiry
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token or "",
            refresh_token=credentials.refresh_token,
            expires_at=expires_at,
            scopes=list(credentials.scopes or scopes),
            token_type="Bearer",
        )

    async def authenticate(
        self,
        client_id: str | None,
        client_secret: str | None,
        scopes: list[str] | None = None,
    ) -> OAuthToken:
        """Run the consent flow in a browser and store the resulting token.

        Raises:
            ValueError: If client ID or secret is missing.
        """
        if scopes is None:
            scopes = DRIVE_SCOPES

        if not client_id or not client_secret:
            raise ValueError(
                "Client ID and secret required. "
                "Pass as arguments or set GOOGLE_OAUTH_CLIENT_ID and "
                "GOOGLE_OAUTH_CLIENT_SECRET environment variables."
            )

        client_config = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": ["http://localhost"],
            }
        }

        # The flow blocks on a local callback server.
        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(None, self._run_oauth_flow, client_config, scopes)

        token = self._credentials_to_token(credentials, scopes)
        metadata = TokenMetadata(service_name=self._service_name, provider="google")
        self.storage.store(self._service_name, token, metadata)
        logger.info(f"Stored Drive credentials at {self.storage.token_path}")

        return token

    def _run_oauth_flow(self, client_config: dict, scopes: list[str]) -> Credentials:
        flow = InstalledAppFlow.from_client_config(client_config, scopes=scopes)
        return flow.run_local_server(
            port=0,
            access_type="offline",
            prompt="consent",
            authorization_prompt_message="Opening browser for Google authorization...\n"
            "If browser doesn't open, visit: {url}",
            success_message="Authentication successful. You can close this window.",
        )

    def get_status(self) -> tuple[TokenStatus, StoredToken | None]:
        """Return the stored token status and the token itself, if any."""
        status = self.storage.get_status(self._service_name)
        stored = (
            self.storage.retrieve(self._service_name) if status != TokenStatus.MISSING else None
        )
        return (status, stored)
