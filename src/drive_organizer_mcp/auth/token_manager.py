"""Bearer credential lifecycle for the Drive request client.

The credential is modeled as an explicit state (see CredentialState) and
``refresh()`` is the only transition that mutates it:

    VALID --(expiry within 5 minutes)--> STALE --refresh()--> VALID
                                               \\--(no refresh token or
                                                  client credentials)--> UNREFRESHABLE
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx

from drive_organizer_mcp.auth.models import CredentialState, OAuthToken
from drive_organizer_mcp.config import GOOGLE_TOKEN_URI
from drive_organizer_mcp.errors import CredentialsUnavailableError, TokenRefreshError

logger = logging.getLogger(__name__)

# Refresh proactively when the token expires within this window.
REFRESH_THRESHOLD_SECONDS = 5 * 60

# Google omits expires_in only in unusual responses; assume one hour.
DEFAULT_EXPIRES_IN_SECONDS = 3600


class TokenManager:
    """Own the bearer credential of a single client instance.

    Attributes:
        refresh_count: Number of successful refreshes performed.

    Example:
        ```python
        manager = TokenManager(
            OAuthToken(access_token="", refresh_token="1//abc"),
            client_id="id",
            client_secret="secret",  # pragma: allowlist secret
        )
        async with httpx.AsyncClient() as http:
            token = await manager.ensure_valid(http)  # refreshes once
        ```
    """

    def __init__(
        self,
        token: OAuthToken,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_uri: str = GOOGLE_TOKEN_URI,
        on_refresh: Callable[[OAuthToken], None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the token manager.

        Args:
            token: Current credential (the access token may be empty).
            client_id: OAuth client ID used for refresh.
            client_secret: OAuth client secret used for refresh.
            token_uri: Token endpoint.
            on_refresh: Called with the new token after each successful refresh.
            clock: Source of "now"; defaults to UTC wall clock.
        """
        self._token = token
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_uri = token_uri
        self._on_refresh = on_refresh
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._unrefreshable = False
        self.refresh_count = 0

    @property
    def token(self) -> OAuthToken:
        return self._token

    @property
    def has_refresh_token(self) -> bool:
        return bool(self._token.refresh_token)

    @property
    def can_refresh(self) -> bool:
        """True when a refresh token and both client credentials are present."""
        return bool(self._token.refresh_token and self._client_id and self._client_secret)

    @property
    def state(self) -> CredentialState:
        """Current credential state, evaluated against the clock."""
        if self._unrefreshable:
            return CredentialState.UNREFRESHABLE
        if self._token.is_expired(buffer_seconds=REFRESH_THRESHOLD_SECONDS, now=self._clock()):
            return CredentialState.STALE
        return CredentialState.VALID

    async def ensure_valid(self, http: httpx.AsyncClient) -> str:
        """Return a usable access token, refreshing first if it is stale.

        Raises:
            CredentialsUnavailableError: If the credential is unrefreshable.
            TokenRefreshError: If the token endpoint rejects the refresh.
        """
        state = self.state
        if state is CredentialState.UNREFRESHABLE:
            raise CredentialsUnavailableError(
                "Cannot refresh token: missing refresh token or client credentials"
            )
        if state is CredentialState.STALE:
            logger.info("Access token missing or expiring soon, refreshing...")
            await self.refresh(http)
        return self._token.access_token

    async def refresh(self, http: httpx.AsyncClient) -> OAuthToken:
        """Exchange the refresh token for a new access token.

        Returns:
            The new token, which also becomes the current credential.

        Raises:
            CredentialsUnavailableError: If refresh inputs are missing. The
                manager then stays UNREFRESHABLE.
            TokenRefreshError: On transport failure or a non-2xx response.
        """
        if self._unrefreshable or not self.can_refresh:
            self._unrefreshable = True
            raise CredentialsUnavailableError(
                "Cannot refresh token: missing refresh token or client credentials",
                details={
                    "has_refresh_token": self.has_refresh_token,
                    "has_client_id": bool(self._client_id),
                    "has_client_secret": bool(self._client_secret),
                },
            )

        try:
            response = await http.post(
                self._token_uri,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "refresh_token": self._token.refresh_token,
                    "grant_type": "refresh_token",
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"Failed to refresh token: {e}", cause=e) from e

        if not response.is_success:
            raise TokenRefreshError(
                f"Failed to refresh token: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        payload = response.json()
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenRefreshError(
                "Failed to refresh token: response did not include an access_token",
                status_code=response.status_code,
                body=response.text,
            )

        expires_in = payload.get("expires_in") or DEFAULT_EXPIRES_IN_SECONDS
        self._token = self._token.model_copy(
            update={
                "access_token": access_token,
                "expires_at": self._clock() + timedelta(seconds=int(expires_in)),
                # Google may rotate the refresh token; keep the old one otherwise.
                "refresh_token": payload.get("refresh_token") or self._token.refresh_token,
            }
        )
        self.refresh_count += 1
        logger.info(f"Token refreshed successfully, expires at: {self._token.expires_at}")

        if self._on_refresh:
            self._on_refresh(self._token)
        return self._token
