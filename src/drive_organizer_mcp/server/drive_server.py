"""Drive organizer MCP server.

Exposes path-oriented Google Drive tools over stdio: listing, reading,
searching, tree views, folder creation, and move/rename in bulk.

Credentials come from the project-level TokenStorage written by
``drive-organizer setup``. Refreshed tokens are written back to it.
"""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from drive_organizer_mcp.auth import SERVICE_NAME, OAuthToken, TokenManager, TokenStorage
from drive_organizer_mcp.config import DriveSettings
from drive_organizer_mcp.drive import DriveApiClient, GoogleDriveAdapter
from drive_organizer_mcp.drive.adapter import (
    DEFAULT_MAX_READ_SIZE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SEARCH_RESULTS,
)
from drive_organizer_mcp.errors import CredentialsUnavailableError, InvalidOperationError
from drive_organizer_mcp.operations import (
    BulkExecutor,
    BulkMovePlan,
    MoveRequest,
    create_folders,
    move_files,
)
from drive_organizer_mcp.server.formatting import format_directory_tree, format_file_tree

logger = logging.getLogger(__name__)

SERVER_NAME = "drive-organizer-mcp"

OPERATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "type": {
            "type": "string",
            "enum": ["move_file", "move_folder", "create_folder", "rename_file", "rename_folder"],
        },
        "sourceId": {"type": "string", "description": "ID of the item to move or rename"},
        "sourcePath": {"type": "string", "description": "Current path (informational)"},
        "destinationParentId": {
            "type": "string",
            "description": "Target folder ID for moves and folder creation",
        },
        "destinationPath": {"type": "string", "description": "Target path (informational)"},
        "newName": {"type": "string", "description": "New name for renames and new folders"},
        "reason": {"type": "string", "description": "Why this step is part of the plan"},
    },
    "required": ["type", "sourcePath", "destinationPath", "reason"],
}


def _tools() -> list[Tool]:
    return [
        Tool(
            name="list_directory",
            description="Lists files and folders in a specified Google Drive directory",
            inputSchema={
                "type": "object",
                "properties": {
                    "folderPath": {
                        "type": "string",
                        "description": "Absolute folder path, e.g. '/Documents/Reports'",
                    },
                    "folderId": {
                        "type": "string",
                        "description": "Folder ID used when folderPath is absent (default root)",
                    },
                    "query": {
                        "type": "string",
                        "description": "Raw Drive query; folder and trashed constraints are added",
                    },
                    "includeShared": {
                        "type": "boolean",
                        "description": "Include items shared with you (default true)",
                    },
                    "onlyDirectories": {
                        "type": "boolean",
                        "description": "Only return folders (default false)",
                    },
                    "pageSize": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 1000,
                        "description": f"Items per page (default {DEFAULT_PAGE_SIZE})",
                    },
                    "pageToken": {
                        "type": "string",
                        "description": "nextPageToken from a previous call",
                    },
                },
                "required": [],
            },
        ),
        Tool(
            name="read_file",
            description=(
                "Reads file content from Google Drive with optional byte range. "
                "Google Docs, Sheets and Slides are exported to text or CSV."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "fileId": {"type": "string", "description": "File ID"},
                    "maxSize": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 10 * 1024 * 1024,
                        "description": f"Maximum bytes to return (default {DEFAULT_MAX_READ_SIZE})",
                    },
                    "startOffset": {"type": "integer", "minimum": 0},
                    "endOffset": {"type": "integer", "minimum": 0},
                },
                "required": ["fileId"],
            },
        ),
        Tool(
            name="search_files",
            description=(
                "Search for files by name or content across Google Drive or within a folder. "
                "Optionally filter names with a case-insensitive regular expression."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Text to find in names or content"},
                    "folderId": {"type": "string", "description": "Limit to a folder ID"},
                    "mimeType": {"type": "string", "description": "Filter by MIME type"},
                    "namePattern": {
                        "type": "string",
                        "description": "Regular expression matched against names, e.g. '\\.pdf$'",
                    },
                    "maxResults": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 1000,
                        "description": f"Maximum results (default {DEFAULT_SEARCH_RESULTS})",
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="show_directory_tree",
            description="Shows a tree of all directory paths starting from a given root path",
            inputSchema={
                "type": "object",
                "properties": {
                    "rootPath": {"type": "string", "description": "Start path (default '/')"},
                    "maxDepth": {"type": "integer", "minimum": 1, "maximum": 5, "default": 3},
                },
                "required": [],
            },
        ),
        Tool(
            name="show_file_tree",
            description="Shows a tree of all file paths starting from a given root path",
            inputSchema={
                "type": "object",
                "properties": {
                    "rootPath": {"type": "string", "description": "Start path (default '/')"},
                    "maxDepth": {"type": "integer", "minimum": 1, "maximum": 20, "default": 10},
                    "maxFiles": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 500},
                },
                "required": [],
            },
        ),
        Tool(
            name="create_folders",
            description=(
                "Creates folders from a list of absolute paths. Missing parent folders "
                "are created automatically."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "minItems": 1,
                        "description": "Folder paths, e.g. ['/Projects/2024/Q1']",
                    },
                    "skipExisting": {
                        "type": "boolean",
                        "description": "Treat existing folders as success (default true)",
                    },
                },
                "required": ["paths"],
            },
        ),
        Tool(
            name="move_files",
            description=(
                "Moves or renames files and folders using path-based operations. "
                "Each operation specifies a from and to path."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "operations": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "properties": {
                                "from": {"type": "string"},
                                "to": {"type": "string"},
                            },
                            "required": ["from", "to"],
                        },
                    },
                },
                "required": ["operations"],
            },
        ),
        Tool(
            name="bulk_move",
            description="Executes a pre-defined organization plan synchronously",
            inputSchema={
                "type": "object",
                "properties": {
                    "planName": {"type": "string"},
                    "planDescription": {"type": "string"},
                    "operations": {"type": "array", "items": OPERATION_SCHEMA},
                },
                "required": ["planName", "planDescription", "operations"],
            },
        ),
    ]


def build_adapter(settings: DriveSettings, storage: TokenStorage) -> GoogleDriveAdapter:
    """Create an adapter from the stored token, persisting refreshes back.

    Raises:
        CredentialsUnavailableError: If no token has been stored.
    """
    stored = storage.retrieve(SERVICE_NAME)
    if stored is None:
        raise CredentialsUnavailableError(
            f"No OAuth token found at {storage.token_path}. "
            "Please authenticate first using: drive-organizer setup"
        )

    def persist(token: OAuthToken) -> None:
        storage.update_token(SERVICE_NAME, token)

    tokens = TokenManager(
        stored.token,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        on_refresh=persist,
    )
    return GoogleDriveAdapter(DriveApiClient(tokens, api_base=settings.api_base))


class DriveOrganizerServer:
    """MCP server for path-oriented Google Drive organization.

    Attributes:
        server: MCP Server instance.
        settings: Runtime settings.
        storage: TokenStorage holding the Drive credential.
    """

    def __init__(
        self,
        settings: DriveSettings | None = None,
        storage: TokenStorage | None = None,
        adapter: GoogleDriveAdapter | None = None,
    ) -> None:
        """Initialize the server.

        Args:
            settings: Settings; read from the environment when omitted.
            storage: Token storage; defaults to the configured token path.
            adapter: Pre-built adapter, bypassing stored credentials.
        """
        self.server = Server(SERVER_NAME)
        self.settings = settings or DriveSettings.from_env()
        self.storage = storage or TokenStorage(self.settings.token_path)
        self._adapter = adapter
        self._client: DriveApiClient | None = None
        self._setup_handlers()

    def _get_adapter(self) -> GoogleDriveAdapter:
        """Get or create the adapter from stored credentials."""
        if self._adapter is None:
            self._adapter = build_adapter(self.settings, self.storage)
            self._client = self._adapter.client
        return self._adapter

    async def close(self) -> None:
        """Close the Drive client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return _tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            return await self.handle_tool(name, arguments)

    async def handle_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Run a tool and wrap its result (or error) as text content."""
        try:
            result = await self._dispatch_tool(name, arguments or {})
            text = result if isinstance(result, str) else json.dumps(result, indent=2)
            return [TextContent(type="text", text=text)]
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return [TextContent(type="text", text=json.dumps({"error": str(e)}, indent=2))]

    async def _dispatch_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any] | str:
        """Dispatch a tool call to its handler.

        Raises:
            ValueError: If the tool name is not recognized.
        """
        handlers = {
            "list_directory": self._list_directory,
            "read_file": self._read_file,
            "search_files": self._search_files,
            "show_directory_tree": self._show_directory_tree,
            "show_file_tree": self._show_file_tree,
            "create_folders": self._create_folders,
            "move_files": self._move_files,
            "bulk_move": self._bulk_move,
        }
        handler = handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")
        logger.info(f"Calling tool {name}")
        return await handler(arguments)

    async def _list_directory(self, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._get_adapter().list_directory(
            folder_path=arguments.get("folderPath"),
            folder_id=arguments.get("folderId"),
            query=arguments.get("query"),
            include_shared=arguments.get("includeShared", True),
            only_directories=arguments.get("onlyDirectories", False),
            page_size=arguments.get("pageSize") or DEFAULT_PAGE_SIZE,
            page_token=arguments.get("pageToken"),
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    async def _read_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments.get("fileId")
        if not file_id:
            raise InvalidOperationError("fileId is required")
        result = await self._get_adapter().read_file(
            file_id,
            max_size=arguments.get("maxSize") or DEFAULT_MAX_READ_SIZE,
            start_offset=arguments.get("startOffset", 0),
            end_offset=arguments.get("endOffset"),
        )
        return result.model_dump(by_alias=True)

    async def _search_files(self, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._get_adapter().search_files(
            arguments.get("query", ""),
            folder_id=arguments.get("folderId"),
            mime_type=arguments.get("mimeType"),
            name_pattern=arguments.get("namePattern"),
            max_results=arguments.get("maxResults") or DEFAULT_SEARCH_RESULTS,
        )
        files = [
            file.model_dump(
                by_alias=True,
                include={
                    "id",
                    "name",
                    "path",
                    "mime_type",
                    "size",
                    "modified_time",
                    "is_folder",
                    "is_shared",
                },
            )
            for file in result.files
        ]
        return {
            "files": files,
            "totalResults": len(files),
            "patternFilter": result.pattern_filter.model_dump(by_alias=True, exclude_none=True),
        }

    async def _show_directory_tree(self, arguments: dict[str, Any]) -> str:
        max_depth = min(max(int(arguments.get("maxDepth", 3)), 1), 5)
        tree = await self._get_adapter().build_directory_tree(
            arguments.get("rootPath") or "/", max_depth
        )
        return format_directory_tree(tree)

    async def _show_file_tree(self, arguments: dict[str, Any]) -> str:
        max_depth = min(max(int(arguments.get("maxDepth", 10)), 1), 20)
        max_files = min(max(int(arguments.get("maxFiles", 500)), 1), 1000)
        tree = await self._get_adapter().build_file_tree(
            arguments.get("rootPath") or "/", max_depth
        )
        return format_file_tree(tree, max_files=max_files)

    async def _create_folders(self, arguments: dict[str, Any]) -> dict[str, Any]:
        skip_existing = arguments.get("skipExisting")
        result = await create_folders(
            self._get_adapter(),
            list(arguments.get("paths") or []),
            skip_existing=True if skip_existing is None else bool(skip_existing),
        )
        return result.to_dict()

    async def _move_files(self, arguments: dict[str, Any]) -> dict[str, Any]:
        requests = [MoveRequest.model_validate(op) for op in arguments.get("operations") or []]
        result = await move_files(self._get_adapter(), requests)
        return result.to_dict()

    async def _bulk_move(self, arguments: dict[str, Any]) -> dict[str, Any]:
        plan = BulkMovePlan.model_validate(arguments)
        result = await BulkExecutor(self._get_adapter()).execute(plan)
        return result.to_dict()

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main() -> None:
    """Entry point for the drive organizer MCP server."""
    settings = DriveSettings.from_env()
    logging.basicConfig(level=settings.log_level)
    server = DriveOrganizerServer(settings=settings)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
