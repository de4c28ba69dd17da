"""Path-based move and rename.

Each request is ``{"from": "/A/x.txt", "to": "/B/y.txt"}``. When both
paths share a directory the request is a pure rename; otherwise it is a
move into the destination directory, followed by a rename if the final
name differs.
"""

import logging
import time
from collections.abc import Callable

from drive_organizer_mcp.drive.adapter import GoogleDriveAdapter
from drive_organizer_mcp.drive.models import DriveFile
from drive_organizer_mcp.drive.paths import is_root, name_from_path, normalize_path, parent_path
from drive_organizer_mcp.errors import (
    DestinationNotFoundError,
    InvalidOperationError,
    PathNotFoundError,
    SourceNotFoundError,
)
from drive_organizer_mcp.operations.models import (
    MoveFilesResult,
    MoveFilesSummary,
    MoveItemResult,
    MoveRequest,
)

logger = logging.getLogger(__name__)

LOOKUP_PAGE_SIZE = 100


def is_rename(request: MoveRequest) -> bool:
    """True when ``from`` and ``to`` live in the same directory."""
    return parent_path(request.from_path) == parent_path(request.to_path)


async def _find_in_directory(
    adapter: GoogleDriveAdapter, folder_id: str, file_id: str
) -> DriveFile | None:
    page_token: str | None = None
    while True:
        listing = await adapter.list_directory(
            folder_id=folder_id, page_size=LOOKUP_PAGE_SIZE, page_token=page_token
        )
        for item in listing.files:
            if item.id == file_id:
                return item
        page_token = listing.next_page_token
        if not page_token:
            return None


async def _rename(adapter: GoogleDriveAdapter, source: DriveFile, new_name: str) -> None:
    if source.is_folder:
        await adapter.rename_folder(source.id, new_name)
    else:
        await adapter.rename_file(source.id, new_name)


async def move_one(adapter: GoogleDriveAdapter, request: MoveRequest) -> None:
    """Apply a single move/rename request.

    Raises:
        SourceNotFoundError: If ``from`` does not resolve.
        DestinationNotFoundError: If the directory of ``to`` does not resolve.
        InvalidOperationError: For moves of the root or onto the root.
    """
    from_path = normalize_path(request.from_path)
    to_path = normalize_path(request.to_path)
    if is_root(from_path) or is_root(to_path):
        raise InvalidOperationError("Cannot move or rename the root folder")

    from_dir = parent_path(from_path)
    to_dir = parent_path(to_path)
    new_name = name_from_path(to_path)

    try:
        source_id = await adapter.resolve_path_to_id(from_path)
    except PathNotFoundError as e:
        raise SourceNotFoundError(from_path) from e

    destination_id: str | None = None
    if from_dir != to_dir:
        try:
            destination_id = await adapter.resolve_path_to_id(to_dir)
        except PathNotFoundError as e:
            raise DestinationNotFoundError(to_dir) from e

    # Listing the parent tells us whether the source is a folder.
    source_dir_id = await adapter.resolve_path_to_id(from_dir)
    source = await _find_in_directory(adapter, source_dir_id, source_id)
    if source is None:
        raise SourceNotFoundError(from_path)

    if destination_id is None:
        logger.info(f"Renaming {from_path} -> {new_name}")
        await _rename(adapter, source, new_name)
        return

    logger.info(f"Moving {from_path} -> {to_dir}")
    if source.is_folder:
        await adapter.move_folder(source.id, destination_id)
    else:
        await adapter.move_file(source.id, destination_id)

    if new_name != source.name:
        logger.info(f"Renaming moved item {source.name} -> {new_name}")
        await _rename(adapter, source, new_name)


async def move_files(
    adapter: GoogleDriveAdapter,
    requests: list[MoveRequest],
    clock: Callable[[], float] = time.monotonic,
) -> MoveFilesResult:
    """Apply requests in order, isolating each one's failure.

    Raises:
        InvalidOperationError: If ``requests`` is empty.
    """
    if not requests:
        raise InvalidOperationError("At least one move operation is required")

    started = clock()
    results: list[MoveItemResult] = []
    for request in requests:
        try:
            await move_one(adapter, request)
        except Exception as e:
            logger.warning(f"Move {request.from_path} -> {request.to_path} failed: {e}")
            results.append(MoveItemResult(operation=request, success=False, error=str(e)))
        else:
            results.append(MoveItemResult(operation=request, success=True))

    total = len(requests)
    succeeded = sum(1 for r in results if r.success)
    failed = total - succeeded
    if failed:
        message = f"Completed with {failed} failures out of {total} operations"
    else:
        message = f"Successfully moved/renamed {succeeded} items"

    return MoveFilesResult(
        success=failed == 0,
        message=message,
        summary=MoveFilesSummary(
            total_operations=total,
            successful_operations=succeeded,
            failed_operations=failed,
            duration_seconds=round(clock() - started, 3),
        ),
        results=results,
    )
