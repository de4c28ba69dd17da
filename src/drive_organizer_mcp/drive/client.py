"""Authenticated async client for the Drive v3 REST API.

A thin façade: each method maps to one Drive endpoint and returns the
decoded JSON (or raw bytes for media). The bearer credential is delegated
to a TokenManager, which is consulted before every request. A 401 response
triggers exactly one refresh-and-retry when a refresh token exists.
"""

import logging
from typing import Any

import httpx

from drive_organizer_mcp.auth.token_manager import TokenManager
from drive_organizer_mcp.config import DEFAULT_DRIVE_API_BASE
from drive_organizer_mcp.errors import DriveApiError, DriveNetworkError

logger = logging.getLogger(__name__)

FILE_FIELDS = (
    "id,name,mimeType,size,createdTime,modifiedTime,parents,"
    "trashed,shared,ownedByMe,permissions(type,role)"
)
LIST_FIELDS = f"nextPageToken,files({FILE_FIELDS})"


class DriveApiClient:
    """Drive REST calls sharing one pooled ``httpx.AsyncClient``.

    Attributes:
        tokens: TokenManager owning the bearer credential.
        api_base: Base URL of the Drive v3 API.

    Example:
        ```python
        client = DriveApiClient(TokenManager(token, client_id=..., client_secret=...))
        page = await client.files_list(q="'root' in parents and trashed = false")
        await client.aclose()
        ```
    """

    def __init__(
        self,
        tokens: TokenManager,
        *,
        http_client: httpx.AsyncClient | None = None,
        api_base: str = DEFAULT_DRIVE_API_BASE,
    ) -> None:
        """Initialize the client.

        Args:
            tokens: Credential owner.
            http_client: Optional pre-built HTTP client. When given, the
                caller keeps ownership and ``aclose()`` leaves it open.
            api_base: Drive REST base URL.
        """
        self.tokens = tokens
        self.api_base = api_base.rstrip("/")
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client with connection pooling."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _send(
        self,
        http: httpx.AsyncClient,
        method: str,
        url: str,
        action: str,
        access_token: str,
        params: dict[str, Any] | None,
        json_data: dict[str, Any] | None,
    ) -> httpx.Response:
        try:
            return await http.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise DriveNetworkError(action, e) from e

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue an authenticated request.

        Raises:
            AuthenticationError: If no usable credential can be obtained.
            DriveApiError: On a non-2xx response (after the single retry).
            DriveNetworkError: If the request never got a response.
        """
        http = await self._get_http_client()
        url = f"{self.api_base}{path}"

        access_token = await self.tokens.ensure_valid(http)
        response = await self._send(http, method, url, action, access_token, params, json_data)

        if response.status_code == 401 and self.tokens.has_refresh_token:
            logger.info(f"Drive returned 401 for {action}, refreshing token and retrying once")
            token = await self.tokens.refresh(http)
            response = await self._send(
                http, method, url, action, token.access_token, params, json_data
            )

        if not response.is_success:
            raise DriveApiError(action, response.status_code, response.text)
        return response

    async def _request_json(
        self,
        method: str,
        path: str,
        action: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self._request(method, path, action, params=params, json_data=json_data)
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def files_list(
        self,
        q: str = "",
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        fields: str = LIST_FIELDS,
        order_by: str | None = None,
    ) -> dict[str, Any]:
        """List files matching a query.

        Returns:
            ``{"files": [...], "nextPageToken": ...}`` as returned by Drive.
        """
        params: dict[str, Any] = {"fields": fields}
        if q:
            params["q"] = q
        if page_size is not None:
            params["pageSize"] = page_size
        if page_token:
            params["pageToken"] = page_token
        if order_by:
            params["orderBy"] = order_by
        return await self._request_json("GET", "/files", "list files", params=params)

    async def files_get(self, file_id: str, *, fields: str = FILE_FIELDS) -> dict[str, Any]:
        return await self._request_json(
            "GET", f"/files/{file_id}", "get file", params={"fields": fields}
        )

    async def files_update(
        self,
        file_id: str,
        *,
        metadata: dict[str, Any] | None = None,
        add_parents: list[str] | None = None,
        remove_parents: list[str] | None = None,
        fields: str = FILE_FIELDS,
    ) -> dict[str, Any]:
        """Patch metadata and/or re-parent a file in a single call."""
        params: dict[str, Any] = {"fields": fields}
        if add_parents:
            params["addParents"] = ",".join(add_parents)
        if remove_parents:
            params["removeParents"] = ",".join(remove_parents)
        return await self._request_json(
            "PATCH", f"/files/{file_id}", "update file", params=params, json_data=metadata or {}
        )

    async def files_create(
        self, metadata: dict[str, Any], *, fields: str = FILE_FIELDS
    ) -> dict[str, Any]:
        """Create a metadata-only file (folders, shortcuts)."""
        return await self._request_json(
            "POST", "/files", "create file", params={"fields": fields}, json_data=metadata
        )

    async def files_delete(self, file_id: str) -> None:
        await self._request("DELETE", f"/files/{file_id}", "delete file")

    async def files_download(self, file_id: str) -> bytes:
        """Download the raw bytes of a non-Workspace file."""
        response = await self._request(
            "GET", f"/files/{file_id}", "download file", params={"alt": "media"}
        )
        return response.content

    async def files_export(self, file_id: str, mime_type: str) -> bytes:
        """Export a Workspace-native document to ``mime_type``."""
        response = await self._request(
            "GET", f"/files/{file_id}/export", "export file", params={"mimeType": mime_type}
        )
        return response.content
