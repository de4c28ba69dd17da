"""Create folder hierarchies from absolute paths.

Missing ancestors are created on the way down but only the requested
folder counts as "created" in the summary.
"""

import logging

from drive_organizer_mcp.drive.adapter import GoogleDriveAdapter
from drive_organizer_mcp.drive.paths import (
    ROOT_ID,
    ROOT_PATH,
    join_path,
    name_from_path,
    normalize_path,
    split_path,
)
from drive_organizer_mcp.errors import InvalidOperationError, PathNotFoundError
from drive_organizer_mcp.operations.models import (
    CreateFolderResult,
    CreateFoldersResult,
    CreateFoldersSummary,
)

logger = logging.getLogger(__name__)


async def _existing_id(adapter: GoogleDriveAdapter, path: str) -> str | None:
    try:
        return await adapter.resolve_path_to_id(path)
    except PathNotFoundError:
        return None


async def ensure_parents(adapter: GoogleDriveAdapter, path: str) -> str:
    """Create every missing ancestor of ``path``.

    Returns:
        ID of the immediate parent of ``path``.
    """
    parent_id = ROOT_ID
    current = ROOT_PATH
    for segment in split_path(path)[:-1]:
        current = join_path(current, segment)
        existing = await _existing_id(adapter, current)
        if existing is None:
            existing = await adapter.create_folder(segment, parent_id)
            logger.info(f"Created parent directory: {current}")
        parent_id = existing
    return parent_id


async def create_folders(
    adapter: GoogleDriveAdapter,
    paths: list[str],
    skip_existing: bool = True,
) -> CreateFoldersResult:
    """Create each path, isolating per-path failures.

    Args:
        adapter: Drive adapter.
        paths: Absolute folder paths (a missing leading ``/`` is added).
        skip_existing: Report existing folders as success (True) or as a
            "Folder already exists" failure (False).

    Raises:
        InvalidOperationError: If ``paths`` is empty.
    """
    if not paths:
        raise InvalidOperationError("At least one folder path is required")

    results: list[CreateFolderResult] = []
    created = existed = failures = 0

    for raw_path in paths:
        path = normalize_path(raw_path)
        try:
            existing_id = await _existing_id(adapter, path)
            if existing_id is not None:
                if skip_existing:
                    logger.info(f"Folder already exists: {path}")
                    results.append(
                        CreateFolderResult(path=path, success=True, created=False, id=existing_id)
                    )
                    existed += 1
                else:
                    results.append(
                        CreateFolderResult(
                            path=path, success=False, created=False, error="Folder already exists"
                        )
                    )
                    failures += 1
                continue

            parent_id = await ensure_parents(adapter, path)
            folder_id = await adapter.create_folder(name_from_path(path), parent_id)
            logger.info(f"Created folder: {path} ({folder_id})")
            results.append(CreateFolderResult(path=path, success=True, created=True, id=folder_id))
            created += 1
        except Exception as e:
            logger.warning(f"Failed to create {path}: {e}")
            results.append(
                CreateFolderResult(path=path, success=False, created=False, error=str(e))
            )
            failures += 1

    total = len(paths)
    if failures:
        message = f"Completed with {failures} failures out of {total} paths"
    else:
        message = (
            f"Successfully processed all {total} paths "
            f"({created} created, {existed} already existed)"
        )

    return CreateFoldersResult(
        success=failures == 0,
        message=message,
        summary=CreateFoldersSummary(
            total_paths=total,
            folders_created=created,
            folders_existed=existed,
            failures=failures,
        ),
        results=results,
    )
