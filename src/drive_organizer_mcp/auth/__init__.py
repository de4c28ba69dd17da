"""OAuth credentials for drive-organizer-mcp.

Quick Start:
    ```python
    from drive_organizer_mcp.auth import OAuthManager, TokenManager

    manager = OAuthManager()
    token = await manager.authenticate(
        client_id="your-client-id",
        client_secret="your-client-secret"  # pragma: allowlist secret
    )

    tokens = TokenManager(token, client_id="...", client_secret="...")
    ```
"""

from drive_organizer_mcp.auth.models import (
    CredentialState,
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from drive_organizer_mcp.auth.oauth_manager import DRIVE_SCOPES, OAuthManager
from drive_organizer_mcp.auth.token_manager import REFRESH_THRESHOLD_SECONDS, TokenManager
from drive_organizer_mcp.auth.token_storage import SERVICE_NAME, TokenStorage, get_token_path

__all__ = [
    "CredentialState",
    "DRIVE_SCOPES",
    "OAuthManager",
    "OAuthToken",
    "REFRESH_THRESHOLD_SECONDS",
    "SERVICE_NAME",
    "StoredToken",
    "TokenManager",
    "TokenMetadata",
    "TokenStatus",
    "TokenStorage",
    "get_token_path",
]
