"""MCP server for path-oriented Google Drive organization.

Tools:
- list_directory, read_file, search_files
- show_directory_tree, show_file_tree
- create_folders, move_files, bulk_move

Transport: Stdio
Authentication: OAuth 2.0 with automatic token refresh
"""

from drive_organizer_mcp.server.drive_server import DriveOrganizerServer, main


def create_server() -> DriveOrganizerServer:
    """Create a server configured from the environment.

    Example:
        >>> server = create_server()
        >>> asyncio.run(server.run())
    """
    return DriveOrganizerServer()


__all__ = ["create_server", "DriveOrganizerServer", "main"]
