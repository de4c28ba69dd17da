"""Shared pytest fixtures for drive-organizer-mcp tests.

This module provides reusable fixtures for token handling, mocked HTTP
responses and an in-memory Drive that understands the subset of the
``q`` query language the adapter emits.
"""

import itertools
import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from drive_organizer_mcp.auth.models import OAuthToken, StoredToken, TokenMetadata
from drive_organizer_mcp.auth.token_manager import TokenManager
from drive_organizer_mcp.drive.adapter import GoogleDriveAdapter
from drive_organizer_mcp.drive.client import DriveApiClient
from drive_organizer_mcp.drive.mime import FOLDER_MIME
from drive_organizer_mcp.errors import DriveApiError

# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def token_metadata() -> TokenMetadata:
    """Create token metadata for testing."""
    return TokenMetadata(
        service_name="drive-organizer-mcp",
        provider="google",
        created_at=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest.fixture
def stored_token(valid_token: OAuthToken, token_metadata: TokenMetadata) -> StoredToken:
    """Create a complete stored token for testing."""
    return StoredToken(version=1, metadata=token_metadata, token=valid_token)


# =============================================================================
# Token Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for token storage tests."""
    token_dir = tmp_path / ".drive-organizer-mcp"
    token_dir.mkdir(parents=True, mode=0o700)
    return token_dir


@pytest.fixture
def temp_token_path(temp_token_dir: Path) -> Path:
    """Get the path for a temporary tokens.json file."""
    return temp_token_dir / "tokens.json"


@pytest.fixture
def token_storage(temp_token_path: Path):
    """Create a TokenStorage instance with temporary storage."""
    from drive_organizer_mcp.auth.token_storage import TokenStorage

    return TokenStorage(token_path=temp_token_path)


@pytest.fixture
def oauth_manager(token_storage):
    """Create an OAuthManager with temporary storage."""
    from drive_organizer_mcp.auth.oauth_manager import OAuthManager

    return OAuthManager(storage=token_storage)


@pytest.fixture
def mock_google_credentials() -> MagicMock:
    """Create a mock google-auth Credentials object."""
    mock_creds = MagicMock()
    mock_creds.token = "mock_access_token"
    mock_creds.refresh_token = "mock_refresh_token"
    mock_creds.expiry = datetime.now(timezone.utc) + timedelta(hours=1)
    mock_creds.expired = False
    mock_creds.valid = True
    mock_creds.scopes = ["https://www.googleapis.com/auth/drive"]
    return mock_creds


# =============================================================================
# Mock HTTP Responses
# =============================================================================


def create_mock_response(
    json_data: dict[str, Any] | None = None,
    status_code: int = 200,
    content: bytes | None = None,
    text: str = "",
) -> MagicMock:
    """Create a mock httpx Response object."""
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.is_success = 200 <= status_code < 300
    mock_response.json.return_value = json_data or {}
    if content is None:
        content = json.dumps(json_data).encode() if json_data is not None else b""
    mock_response.content = content
    mock_response.text = text or content.decode("utf-8", errors="replace")
    return mock_response


@pytest.fixture
def make_response():
    """Factory for mock httpx responses (see create_mock_response)."""
    return create_mock_response


@pytest.fixture
def mock_http() -> MagicMock:
    """HTTP client double; set ``request.side_effect`` / ``post.return_value``."""
    http = MagicMock(spec=httpx.AsyncClient)
    http.request = AsyncMock()
    http.post = AsyncMock()
    return http


# =============================================================================
# In-memory Drive
# =============================================================================

ROOT_REAL_ID = "0AROOTFOLDER"


def _split_top_level(query: str, keyword: str) -> list[str]:
    """Split on `` and `` / `` or `` outside quotes and parentheses."""
    separator = f" {keyword} "
    parts: list[str] = []
    depth = 0
    in_quote = False
    start = 0
    i = 0
    while i < len(query):
        char = query[i]
        if in_quote:
            if char == "\\":
                i += 2
                continue
            if char == "'":
                in_quote = False
        elif char == "'":
            in_quote = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and query.startswith(separator, i):
            parts.append(query[start:i])
            i += len(separator)
            start = i
            continue
        i += 1
    parts.append(query[start:])
    return [part.strip() for part in parts if part.strip()]


def _unescape(literal: str) -> str:
    return re.sub(r"\\(.)", r"\1", literal)


_IN_PARENTS = re.compile(r"^'((?:[^'\\]|\\.)*)' in parents$")
_FIELD_MATCH = re.compile(r"^(name|fullText|mimeType) (=|contains) '((?:[^'\\]|\\.)*)'$")
_FLAG = re.compile(r"^(trashed|sharedWithMe) = (true|false)$")


class DriveApiStub(DriveApiClient):
    """DriveApiClient backed by a dict instead of HTTP.

    Items are stored as Drive-shaped dicts plus a private ``_content``
    byte string. Top-level items carry the real root ID as parent, as
    Drive does; ``root`` is accepted as an alias.

    Attributes:
        calls: ``(method, kwargs)`` for every API call made.
        list_failures: Folder IDs whose listing raises a 500.
        get_failures: IDs whose ``files_get`` raises a 500.
    """

    def __init__(self) -> None:
        tokens = TokenManager(
            OAuthToken(
                access_token="stub-token",
                expires_at=datetime.now(timezone.utc) + timedelta(days=1),
            )
        )
        super().__init__(tokens)
        self.files: dict[str, dict[str, Any]] = {
            ROOT_REAL_ID: {"id": ROOT_REAL_ID, "name": "My Drive", "mimeType": FOLDER_MIME}
        }
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.list_failures: set[str] = set()
        self.get_failures: set[str] = set()
        self._ids = itertools.count(1)

    # -------------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------------

    def _real_id(self, file_id: str) -> str:
        return ROOT_REAL_ID if file_id == "root" else file_id

    def add(
        self,
        name: str,
        parent: str = "root",
        *,
        folder: bool = False,
        mime_type: str = "text/plain",
        content: bytes = b"",
        file_id: str | None = None,
        **extra: Any,
    ) -> str:
        """Add an item and return its ID."""
        file_id = file_id or f"id{next(self._ids)}"
        self.files[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": FOLDER_MIME if folder else mime_type,
            "parents": [self._real_id(parent)],
            "trashed": False,
            "size": None if folder else str(len(content)),
            "modifiedTime": f"2024-01-{len(self.files):02d}T00:00:00Z",
            "_content": content,
            **extra,
        }
        return file_id

    def folder(self, name: str, parent: str = "root", **extra: Any) -> str:
        return self.add(name, parent, folder=True, **extra)

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    # -------------------------------------------------------------------------
    # Query evaluation
    # -------------------------------------------------------------------------

    def _matches(self, item: dict[str, Any], query: str) -> bool:
        for term in _split_top_level(query, "and"):
            if term.startswith("(") and term.endswith(")"):
                alternatives = _split_top_level(term[1:-1], "or")
                if not any(self._matches(item, alt) for alt in alternatives):
                    return False
            elif not self._matches_term(item, term):
                return False
        return True

    def _matches_term(self, item: dict[str, Any], term: str) -> bool:
        if match := _IN_PARENTS.match(term):
            return self._real_id(_unescape(match.group(1))) in item.get("parents", [])
        if match := _FIELD_MATCH.match(term):
            field, operator, literal = match.group(1), match.group(2), _unescape(match.group(3))
            if field == "fullText":
                haystack = item.get("_content", b"").decode("utf-8", errors="ignore")
                return literal.lower() in haystack.lower()
            value = item.get(field, "")
            if operator == "=":
                return value == literal
            return literal.lower() in value.lower()
        if match := _FLAG.match(term):
            expected = match.group(2) == "true"
            if match.group(1) == "trashed":
                return bool(item.get("trashed", False)) == expected
            return (not item.get("ownedByMe", True)) == expected
        raise AssertionError(f"Unsupported query term: {term!r}")

    def _public(self, item: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in item.items() if not k.startswith("_") and v is not None}

    # -------------------------------------------------------------------------
    # DriveApiClient surface
    # -------------------------------------------------------------------------

    async def files_list(
        self,
        q: str = "",
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        fields: str = "",
        order_by: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            (
                "files_list",
                {
                    "q": q,
                    "page_size": page_size,
                    "page_token": page_token,
                    "fields": fields,
                    "order_by": order_by,
                },
            )
        )
        for folder_id in self.list_failures:
            if f"'{folder_id}' in parents" in q:
                raise DriveApiError("list files", 500, "Backend Error")

        items = [
            item
            for item in self.files.values()
            if item["id"] != ROOT_REAL_ID and (not q or self._matches(item, q))
        ]
        if order_by == "folder,name":
            items.sort(key=lambda f: (f["mimeType"] != FOLDER_MIME, f["name"]))
        elif order_by == "modifiedTime desc":
            items.sort(key=lambda f: f.get("modifiedTime", ""), reverse=True)

        start = int(page_token or 0)
        size = page_size or 100
        page = items[start : start + size]
        response: dict[str, Any] = {"files": [self._public(item) for item in page]}
        if start + size < len(items):
            response["nextPageToken"] = str(start + size)
        return response

    async def files_get(self, file_id: str, *, fields: str = "") -> dict[str, Any]:
        self.calls.append(("files_get", {"file_id": file_id, "fields": fields}))
        real_id = self._real_id(file_id)
        if real_id in self.get_failures:
            raise DriveApiError("get file", 500, "Backend Error")
        if real_id not in self.files:
            raise DriveApiError("get file", 404, "File not found")
        return self._public(self.files[real_id])

    async def files_update(
        self,
        file_id: str,
        *,
        metadata: dict[str, Any] | None = None,
        add_parents: list[str] | None = None,
        remove_parents: list[str] | None = None,
        fields: str = "",
    ) -> dict[str, Any]:
        self.calls.append(
            (
                "files_update",
                {
                    "file_id": file_id,
                    "metadata": metadata,
                    "add_parents": add_parents,
                    "remove_parents": remove_parents,
                },
            )
        )
        if file_id not in self.files:
            raise DriveApiError("update file", 404, "File not found")
        item = self.files[file_id]
        if metadata:
            item.update(metadata)
        parents = [p for p in item.get("parents", []) if p not in (remove_parents or [])]
        parents.extend(self._real_id(p) for p in add_parents or [])
        item["parents"] = parents
        return self._public(item)

    async def files_create(self, metadata: dict[str, Any], *, fields: str = "") -> dict[str, Any]:
        self.calls.append(("files_create", {"metadata": metadata}))
        parents = metadata.get("parents") or ["root"]
        file_id = self.add(
            metadata["name"],
            parents[0],
            folder=metadata.get("mimeType") == FOLDER_MIME,
            mime_type=metadata.get("mimeType", "application/octet-stream"),
        )
        return self._public(self.files[file_id])

    async def files_delete(self, file_id: str) -> None:
        self.calls.append(("files_delete", {"file_id": file_id}))
        self.files.pop(file_id, None)

    async def files_download(self, file_id: str) -> bytes:
        self.calls.append(("files_download", {"file_id": file_id}))
        return self.files[file_id]["_content"]

    async def files_export(self, file_id: str, mime_type: str) -> bytes:
        self.calls.append(("files_export", {"file_id": file_id, "mime_type": mime_type}))
        return self.files[file_id]["_content"]


@pytest.fixture
def drive() -> DriveApiStub:
    """Empty in-memory Drive."""
    return DriveApiStub()


@pytest.fixture
def adapter(drive: DriveApiStub) -> GoogleDriveAdapter:
    """Adapter over the in-memory Drive with a cold cache."""
    return GoogleDriveAdapter(drive)


@pytest.fixture
def populated_drive(drive: DriveApiStub) -> DriveApiStub:
    """A small tree::

        /Documents/
            Reports/
                q1.txt
                q2.pdf
            notes.txt
            Plan (doc)
        /Photos/
            beach.png
        /readme.md
    """
    documents = drive.folder("Documents", file_id="docs")
    reports = drive.folder("Reports", documents, file_id="reports")
    drive.add("q1.txt", reports, content=b"first quarter", file_id="q1")
    drive.add("q2.pdf", reports, mime_type="application/pdf", content=b"%PDF", file_id="q2")
    drive.add("notes.txt", documents, content=b"meeting notes", file_id="notes")
    drive.add(
        "Plan",
        documents,
        mime_type="application/vnd.google-apps.document",
        content=b"exported plan text",
        file_id="plan",
    )
    photos = drive.folder("Photos", file_id="photos")
    drive.add("beach.png", photos, mime_type="image/png", content=b"\x89PNG\r\n", file_id="beach")
    drive.add("readme.md", content=b"# Readme", mime_type="text/markdown", file_id="readme")
    return drive


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
