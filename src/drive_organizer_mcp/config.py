"""Runtime settings for drive-organizer-mcp.

Environment Variables:
    GOOGLE_OAUTH_CLIENT_ID: Google OAuth client ID (needed for refresh and setup)
    GOOGLE_OAUTH_CLIENT_SECRET: Google OAuth client secret
    DRIVE_ORGANIZER_TOKEN_PATH: Token file (default: ./.drive-organizer-mcp/tokens.json)
    DRIVE_ORGANIZER_LOG_LEVEL: Logging level (default: INFO)
    DRIVE_API_BASE: Drive REST base URL (default: https://www.googleapis.com/drive/v3)
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105 - public endpoint


class DriveSettings(BaseModel):
    """Settings shared by the CLI and the MCP server."""

    client_id: str | None = Field(default=None, description="OAuth client ID")
    client_secret: str | None = Field(default=None, description="OAuth client secret")
    token_path: Path | None = Field(default=None, description="Token storage override")
    log_level: str = Field(default="INFO", description="Logging level name")
    api_base: str = Field(default=DEFAULT_DRIVE_API_BASE, description="Drive REST base URL")

    @classmethod
    def from_env(cls) -> "DriveSettings":
        """Build settings from environment variables."""
        token_path = os.environ.get("DRIVE_ORGANIZER_TOKEN_PATH")
        return cls(
            client_id=os.environ.get("GOOGLE_OAUTH_CLIENT_ID") or None,
            client_secret=os.environ.get("GOOGLE_OAUTH_CLIENT_SECRET") or None,
            token_path=Path(token_path) if token_path else None,
            log_level=os.environ.get("DRIVE_ORGANIZER_LOG_LEVEL", "INFO").upper(),
            api_base=os.environ.get("DRIVE_API_BASE", DEFAULT_DRIVE_API_BASE).rstrip("/"),
        )

    @property
    def has_client_credentials(self) -> bool:
        """True when both client ID and secret are configured."""
        return bool(self.client_id and self.client_secret)
