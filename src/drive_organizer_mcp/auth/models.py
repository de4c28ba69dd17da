"""Pydantic models for OAuth tokens and credential state."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field


class TokenStatus(str, Enum):
    """Status of the token persisted in TokenStorage."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class CredentialState(str, Enum):
    """Lifecycle of the bearer credential held by a client instance.

    VALID: expiry known and beyond the refresh threshold.
    STALE: expiry unknown, token empty, or expiring within the threshold.
    UNREFRESHABLE: a refresh was needed but no refresh token or client
        credentials exist. Terminal.
    """

    VALID = "valid"
    STALE = "stale"
    UNREFRESHABLE = "unrefreshable"


class OAuthToken(BaseModel):
    """OAuth bearer token with optional refresh token.

    Attributes:
        access_token: Bearer token sent with each request (may be empty).
        refresh_token: Long-lived token used to mint new access tokens.
        expires_at: Expiry instant, or None when unknown.
        scopes: Granted scopes.
        token_type: Always "Bearer" for Google.
    """

    access_token: str = Field(default="", description="Bearer access token")
    refresh_token: str | None = Field(default=None, description="Refresh token")
    expires_at: datetime | None = Field(default=None, description="Expiry (UTC)")
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")
    token_type: str = Field(default="Bearer", description="Token type")

    def is_expired(self, buffer_seconds: int = 60, now: datetime | None = None) -> bool:
        """Check whether the token is expired or expires within ``buffer_seconds``.

        Tokens with an unknown expiry or an empty access token count as expired.
        """
        if not self.access_token.strip() or self.expires_at is None:
            return True
        current = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= current + timedelta(seconds=buffer_seconds)


class TokenMetadata(BaseModel):
    """Bookkeeping stored alongside a token."""

    service_name: str = Field(..., description="Service key in the token file")
    provider: str = Field(default="google", description="OAuth provider")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_refreshed: datetime | None = Field(default=None)


class StoredToken(BaseModel):
    """Versioned envelope persisted by TokenStorage."""

    version: int = Field(default=1)
    metadata: TokenMetadata
    token: OAuthToken
