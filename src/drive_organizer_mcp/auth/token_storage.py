"""JSON token persistence for drive-organizer-mcp.

Storage Location: ./.drive-organizer-mcp/tokens.json, unless overridden by
DRIVE_ORGANIZER_TOKEN_PATH or an explicit path.

The file maps a service key to a versioned StoredToken envelope. The
directory is created 0700 and the file is rewritten 0600 on every save.
Tokens are not encrypted.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from drive_organizer_mcp.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "drive-organizer-mcp"
CREDENTIALS_DIR_NAME = ".drive-organizer-mcp"
TOKEN_FILE_NAME = "tokens.json"
TOKEN_PATH_ENV = "DRIVE_ORGANIZER_TOKEN_PATH"


def get_token_path() -> Path:
    """Resolve the token file, honoring DRIVE_ORGANIZER_TOKEN_PATH.

    Evaluated on each call so the working directory at use time wins.
    """
    override = os.environ.get(TOKEN_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / CREDENTIALS_DIR_NAME / TOKEN_FILE_NAME


class TokenStorage:
    """Read and write OAuth tokens keyed by service name.

    Attributes:
        token_path: Path to the tokens.json file.

    Example:
        ```python
        storage = TokenStorage()
        storage.store(
            SERVICE_NAME,
            OAuthToken(access_token="ya29.abc", refresh_token="1//xyz"),
            TokenMetadata(service_name=SERVICE_NAME),
        )
        stored = storage.retrieve(SERVICE_NAME)
        ```
    """

    def __init__(self, token_path: Path | None = None) -> None:
        self.token_path = token_path or get_token_path()
        self.credentials_dir = self.token_path.parent

    def _ensure_credentials_dir(self) -> None:
        if not self.credentials_dir.exists():
            self.credentials_dir.mkdir(parents=True, mode=0o700)
        else:
            self.credentials_dir.chmod(0o700)

    def _load_tokens(self) -> dict[str, dict]:
        if not self.token_path.exists():
            return {}

        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read token file {self.token_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save_tokens(self, tokens: dict[str, dict]) -> None:
        self._ensure_credentials_dir()

        with open(self.token_path, "w") as f:
            json.dump(tokens, f, indent=2, default=str)

        self.token_path.chmod(0o600)

    def store(
        self,
        service_name: str,
        token: OAuthToken,
        metadata: TokenMetadata,
    ) -> None:
        """Create or replace the token stored under ``service_name``."""
        stored_token = StoredToken(version=1, metadata=metadata, token=token)

        tokens = self._load_tokens()
        tokens[service_name] = json.loads(stored_token.model_dump_json())
        self._save_tokens(tokens)
        logger.debug(f"Stored token for {service_name} at {self.token_path}")

    def update_token(self, service_name: str, token: OAuthToken) -> None:
        """Persist a refreshed token, keeping existing metadata.

        Args:
            service_name: Service key.
            token: The token returned by a successful refresh.
        """
        existing = self.retrieve(service_name)
        metadata = (
            existing.metadata
            if existing
            else TokenMetadata(service_name=service_name)
        )
        metadata = metadata.model_copy(update={"last_refreshed": datetime.now(timezone.utc)})
        self.store(service_name, token, metadata)

    def retrieve(self, service_name: str) -> StoredToken | None:
        """Return the stored token, or None if absent or unparseable."""
        tokens = self._load_tokens()

        if service_name not in tokens:
            return None

        try:
            return StoredToken.model_validate(tokens[service_name])
        except (ValueError, KeyError):
            return None

    def delete(self, service_name: str) -> bool:
        """Delete a stored token. Returns False if there was none."""
        tokens = self._load_tokens()

        if service_name not in tokens:
            return False

        del tokens[service_name]
        self._save_tokens(tokens)
        return True

    def get_status(self, service_name: str) -> TokenStatus:
        """Classify the stored token as valid, expired, missing or invalid.

        A token with a refresh token but an unknown expiry reports EXPIRED;
        the client will refresh it before the first request.
        """
        stored = self.retrieve(service_name)

        if stored is None:
            if service_name in self._load_tokens():
                return TokenStatus.INVALID
            return TokenStatus.MISSING

        if stored.token.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID
