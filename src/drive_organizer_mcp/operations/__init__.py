"""Multi-step Drive operations: bulk plans, path-based moves and folder creation."""

from drive_organizer_mcp.operations.create_folders import create_folders
from drive_organizer_mcp.operations.executor import BulkExecutor, load_plan, validate_operation
from drive_organizer_mcp.operations.models import (
    BulkMovePlan,
    BulkResult,
    CreateFoldersResult,
    MoveFilesResult,
    MoveRequest,
    Operation,
)
from drive_organizer_mcp.operations.move_files import move_files

__all__ = [
    "BulkExecutor",
    "BulkMovePlan",
    "BulkResult",
    "CreateFoldersResult",
    "MoveFilesResult",
    "MoveRequest",
    "Operation",
    "create_folders",
    "load_plan",
    "move_files",
    "validate_operation",
]
