"""Google Drive access: query building, request client, path resolution and adapter."""

from drive_organizer_mcp.drive.adapter import GoogleDriveAdapter
from drive_organizer_mcp.drive.client import DriveApiClient
from drive_organizer_mcp.drive.models import (
    DriveFile,
    DriveFileResource,
    ListDirectoryResult,
    PatternFilterOutcome,
    ReadFileResult,
    SearchFilesResult,
    TraversalFailure,
    TreeTraversal,
)
from drive_organizer_mcp.drive.query import DriveQueryBuilder, escape_literal
from drive_organizer_mcp.drive.resolver import PathCache, PathResolver

__all__ = [
    "DriveApiClient",
    "DriveFile",
    "DriveFileResource",
    "DriveQueryBuilder",
    "GoogleDriveAdapter",
    "ListDirectoryResult",
    "PathCache",
    "PathResolver",
    "PatternFilterOutcome",
    "ReadFileResult",
    "SearchFilesResult",
    "TraversalFailure",
    "TreeTraversal",
    "escape_literal",
]
