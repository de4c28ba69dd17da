"""Unit tests for DriveApiClient.

The HTTP client is a mock; requests are inspected through its call list.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import httpx
import pytest

from drive_organizer_mcp.auth.models import OAuthToken
from drive_organizer_mcp.auth.token_manager import TokenManager
from drive_organizer_mcp.drive.client import DriveApiClient
from drive_organizer_mcp.errors import (
    AuthenticationError,
    CredentialsUnavailableError,
    DriveApiError,
    DriveNetworkError,
)

API = "https://drive.example.test/drive/v3"


def _client(
    http: MagicMock,
    *,
    access_token: str = "good-token",
    refresh_token: str | None = "1//refresh",
    expires_in: timedelta = timedelta(hours=1),
) -> DriveApiClient:
    tokens = TokenManager(
        OAuthToken(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=datetime.now(timezone.utc) + expires_in,
        ),
        client_id="client-id",
        client_secret="client-secret",  # pragma: allowlist secret
    )
    return DriveApiClient(tokens, http_client=http, api_base=API + "/")


def _auth_header(call) -> str:
    return call.kwargs["headers"]["Authorization"]


@pytest.mark.unit
class TestDriveApiClientRequests:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_should_send_bearer_token(self, mock_http: MagicMock, make_response) -> None:
        """Verify the access token is sent as a bearer header."""
        mock_http.request.return_value = make_response({"files": []})

        await _client(mock_http).files_list(q="trashed = false", page_size=10)

        call = mock_http.request.call_args
        assert _auth_header(call) == "Bearer good-token"
        assert call.kwargs["method"] == "GET"
        assert call.kwargs["url"] == f"{API}/files"
        assert call.kwargs["params"]["q"] == "trashed = false"
        assert call.kwargs["params"]["pageSize"] == 10
        assert "pageToken" not in call.kwargs["params"]

    @pytest.mark.asyncio
    async def test_should_join_parent_lists_on_update(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify addParents/removeParents are comma-joined in one PATCH."""
        mock_http.request.return_value = make_response({"id": "f1"})

        await _client(mock_http).files_update(
            "f1", add_parents=["new"], remove_parents=["old1", "old2"]
        )

        call = mock_http.request.call_args
        assert call.kwargs["method"] == "PATCH"
        assert call.kwargs["params"]["addParents"] == "new"
        assert call.kwargs["params"]["removeParents"] == "old1,old2"
        assert call.kwargs["json"] == {}

    @pytest.mark.asyncio
    async def test_should_return_raw_bytes_for_media(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify downloads and exports return the body bytes."""
        mock_http.request.return_value = make_response(content=b"\x00\x01binary")
        client = _client(mock_http)

        assert await client.files_download("f1") == b"\x00\x01binary"
        assert mock_http.request.call_args.kwargs["params"] == {"alt": "media"}

        assert await client.files_export("doc", "text/plain") == b"\x00\x01binary"
        assert mock_http.request.call_args.kwargs["url"] == f"{API}/files/doc/export"

    @pytest.mark.asyncio
    async def test_should_return_empty_dict_for_empty_body(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify 204-style responses decode to an empty dict."""
        mock_http.request.return_value = make_response(status_code=204)

        assert await _client(mock_http).files_get("f1") == {}


@pytest.mark.unit
class TestDriveApiClientErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_should_raise_api_error_with_status_and_body(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify non-2xx responses raise DriveApiError naming the action."""
        mock_http.request.return_value = make_response(status_code=404, text="File not found")

        with pytest.raises(DriveApiError) as exc_info:
            await _client(mock_http).files_get("missing")

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Failed to get file: 404 File not found"

    @pytest.mark.asyncio
    async def test_should_wrap_transport_errors(self, mock_http: MagicMock) -> None:
        """Verify httpx errors become DriveNetworkError."""
        mock_http.request.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(DriveNetworkError) as exc_info:
            await _client(mock_http).files_list()

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.cause, httpx.ReadTimeout)


@pytest.mark.unit
class TestDriveApiClientAuthentication:
    """Tests for the refresh-and-retry behaviour."""

    @pytest.mark.asyncio
    async def test_should_refresh_and_retry_once_on_401(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify a 401 triggers one refresh and one retry with the new token."""
        mock_http.request.side_effect = [
            make_response(status_code=401, text="Invalid Credentials"),
            make_response({"id": "f1", "name": "x"}),
        ]
        mock_http.post.return_value = make_response({"access_token": "fresh", "expires_in": 3600})
        client = _client(mock_http)

        result = await client.files_get("f1")

        assert result["id"] == "f1"
        calls = mock_http.request.call_args_list
        assert [_auth_header(c) for c in calls] == ["Bearer good-token", "Bearer fresh"]
        assert client.tokens.refresh_count == 1

    @pytest.mark.asyncio
    async def test_should_not_retry_twice(self, mock_http: MagicMock, make_response) -> None:
        """Verify a second 401 is surfaced instead of looping."""
        mock_http.request.side_effect = [
            make_response(status_code=401, text="Invalid Credentials"),
            make_response(status_code=401, text="Invalid Credentials"),
        ]
        mock_http.post.return_value = make_response({"access_token": "fresh"})

        with pytest.raises(DriveApiError) as exc_info:
            await _client(mock_http).files_get("f1")

        assert exc_info.value.status_code == 401
        assert mock_http.request.call_count == 2
        assert mock_http.post.call_count == 1

    @pytest.mark.asyncio
    async def test_should_surface_401_without_refresh_token(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify no refresh is attempted when there is no refresh token."""
        mock_http.request.return_value = make_response(status_code=401, text="Unauthorized")

        with pytest.raises(DriveApiError) as exc_info:
            await _client(mock_http, refresh_token=None).files_list()

        assert exc_info.value.status_code == 401
        mock_http.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_should_refresh_proactively_before_expiry(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify a token expiring within five minutes is refreshed before the call."""
        mock_http.post.return_value = make_response({"access_token": "fresh"})
        mock_http.request.return_value = make_response({"files": []})

        await _client(mock_http, expires_in=timedelta(minutes=1)).files_list()

        mock_http.post.assert_called_once()
        assert _auth_header(mock_http.request.call_args) == "Bearer fresh"

    @pytest.mark.asyncio
    async def test_should_refresh_empty_access_token_before_first_call(
        self, mock_http: MagicMock, make_response
    ) -> None:
        """Verify a refresh-only credential is usable."""
        mock_http.post.return_value = make_response({"access_token": "minted"})
        mock_http.request.return_value = make_response({"files": []})

        await _client(mock_http, access_token="").files_list()

        assert _auth_header(mock_http.request.call_args) == "Bearer minted"

    @pytest.mark.asyncio
    async def test_should_fail_without_request_when_unrefreshable(
        self, mock_http: MagicMock
    ) -> None:
        """Verify an expired token with no refresh token never reaches Drive."""
        client = _client(mock_http, refresh_token=None, expires_in=timedelta(seconds=-5))

        with pytest.raises(CredentialsUnavailableError) as exc_info:
            await client.files_list()

        assert isinstance(exc_info.value, AuthenticationError)
        mock_http.request.assert_not_called()


@pytest.mark.unit
class TestDriveApiClientLifecycle:
    """Tests for HTTP client ownership."""

    @pytest.mark.asyncio
    async def test_should_not_close_injected_client(self, mock_http: MagicMock) -> None:
        """Verify a caller-supplied HTTP client stays open."""
        mock_http.aclose = MagicMock()
        await _client(mock_http).aclose()

        mock_http.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_should_create_and_close_own_client(self) -> None:
        """Verify the lazily created client is closed by aclose()."""
        client = DriveApiClient(TokenManager(OAuthToken()))

        http = await client._get_http_client()
        assert isinstance(http, httpx.AsyncClient)
        assert await client._get_http_client() is http

        await client.aclose()
        assert http.is_closed
