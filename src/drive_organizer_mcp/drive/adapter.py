"""Path-oriented Drive operations.

GoogleDriveAdapter composes the request client, the path resolver and the
query builder into the operations the tool layer exposes: listing,
searching, reading, moving, renaming, creating folders and walking trees.
"""

import asyncio
import base64
import logging
import re
from collections import deque
from typing import Any

from drive_organizer_mcp.drive.client import DriveApiClient
from drive_organizer_mcp.drive.mime import (
    FOLDER_MIME,
    export_format_for,
    is_folder,
    is_text_mime_type,
    is_workspace_document,
)
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
from drive_organizer_mcp.drive.paths import ROOT_ID, join_path, normalize_path
from drive_organizer_mcp.drive.query import DriveQueryBuilder, escape_literal
from drive_organizer_mcp.drive.resolver import PathResolver
from drive_organizer_mcp.errors import DriveError, InvalidOperationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
DEFAULT_SEARCH_RESULTS = 50
DEFAULT_MAX_READ_SIZE = 1024 * 1024
TREE_BATCH_SIZE = 5
TREE_PAGE_SIZE = 100

LIST_ITEM_FIELDS = (
    "nextPageToken,files(id,name,mimeType,size,createdTime,modifiedTime,parents,shared,permissions)"
)
SEARCH_ITEM_FIELDS = (
    "files(id,name,mimeType,size,createdTime,modifiedTime,parents,shared,permissions)"
)
MUTATION_FIELDS = "id,name,mimeType,parents"


class GoogleDriveAdapter:
    """Caller-facing Drive operations addressed by path or ID.

    Each adapter owns its own PathResolver; the cache is never shared
    between instances and starts cold.

    Attributes:
        client: Authenticated Drive REST client.
        resolver: Path <-> ID resolver and cache.

    Example:
        ```python
        adapter = GoogleDriveAdapter(client)
        listing = await adapter.list_directory(folder_path="/Documents")
        folder_id = await adapter.create_folder("Reports", listing.files[0].id)
        ```
    """

    def __init__(self, client: DriveApiClient, resolver: PathResolver | None = None) -> None:
        self.client = client
        self.resolver = resolver or PathResolver(client)

    async def resolve_path_to_id(self, path: str) -> str:
        return await self.resolver.resolve_path_to_id(path)

    async def resolve_id_to_path(self, file_id: str) -> str:
        return await self.resolver.resolve_id_to_path(file_id)

    async def _to_drive_file(self, raw: dict[str, Any]) -> DriveFile:
        resource = DriveFileResource.model_validate(raw)
        path = await self.resolver.file_path(resource.id, resource.name, resource.first_parent)
        return DriveFile.from_resource(resource, path)

    async def _to_drive_files(self, items: list[dict[str, Any]]) -> list[DriveFile]:
        return list(await asyncio.gather(*(self._to_drive_file(item) for item in items)))

    # =========================================================================
    # Listing and search
    # =========================================================================

    async def list_directory(
        self,
        folder_path: str | None = None,
        folder_id: str | None = None,
        query: str | None = None,
        include_shared: bool = True,
        only_directories: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_token: str | None = None,
    ) -> ListDirectoryResult:
        """List one page of a folder's children.

        Args:
            folder_path: Folder to list; takes precedence over ``folder_id``.
            folder_id: Folder to list when no path is given (default root).
            query: Raw Drive query. The folder and trashed constraints are
                added only when the query does not already mention them.
            include_shared: When False, exclude items shared with me.
            only_directories: Only return folders.
            page_size: Page size passed to Drive.
            page_token: Continuation token from a previous page.
        """
        target_id = folder_id or ROOT_ID
        if folder_path:
            target_id = await self.resolve_path_to_id(folder_path)

        if query:
            extra: list[str] = []
            if "trashed" not in query:
                extra.append("trashed = false")
            if not include_shared and "sharedWithMe" not in query:
                extra.append("sharedWithMe = false")
            if only_directories and "mimeType" not in query:
                extra.append(f"mimeType = '{FOLDER_MIME}'")

            # The caller's query is always grouped so its "or" clauses stay inside.
            if "in parents" not in query:
                q = f"'{escape_literal(target_id)}' in parents and ({query})"
            elif extra:
                q = f"({query})"
            else:
                q = query
            q = " and ".join([q, *extra])
        else:
            builder = DriveQueryBuilder.create().in_parents(target_id).not_trashed()
            if not include_shared:
                builder.custom("sharedWithMe = false")
            if only_directories:
                builder.mime_type_equals(FOLDER_MIME)
            q = builder.build()

        response = await self.client.files_list(
            q=q,
            page_size=page_size,
            page_token=page_token,
            fields=LIST_ITEM_FIELDS,
            order_by="folder,name",
        )
        files = await self._to_drive_files(response.get("files", []))
        return ListDirectoryResult(files=files, next_page_token=response.get("nextPageToken"))

    async def search_files(
        self,
        query: str,
        folder_id: str | None = None,
        mime_type: str | None = None,
        name_pattern: str | None = None,
        max_results: int = DEFAULT_SEARCH_RESULTS,
    ) -> SearchFilesResult:
        """Search by name or content, newest first.

        ``name_pattern`` is a case-insensitive regular expression applied to
        the returned names. An invalid pattern leaves results unfiltered and
        is reported as ``skipped`` in ``pattern_filter``.
        """
        builder = DriveQueryBuilder.create()
        if query:
            builder.name_or_full_text_contains(query)
        if folder_id:
            builder.in_parents(folder_id)
        if mime_type:
            builder.mime_type_equals(mime_type)
        builder.not_trashed()

        response = await self.client.files_list(
            q=builder.build(),
            page_size=max_results,
            fields=SEARCH_ITEM_FIELDS,
            order_by="modifiedTime desc",
        )
        items = response.get("files", [])

        outcome = PatternFilterOutcome()
        if name_pattern:
            try:
                regex = re.compile(name_pattern, re.IGNORECASE)
            except re.error as e:
                logger.info(f"Ignoring invalid name pattern {name_pattern!r}: {e}")
                outcome = PatternFilterOutcome(
                    status="skipped", pattern=name_pattern, reason=str(e)
                )
            else:
                items = [item for item in items if regex.search(item.get("name", ""))]
                outcome = PatternFilterOutcome(status="applied", pattern=name_pattern)

        files = await self._to_drive_files(items)
        return SearchFilesResult(files=files, pattern_filter=outcome)

    # =========================================================================
    # Reading
    # =========================================================================

    async def read_file(
        self,
        file_id: str,
        max_size: int = DEFAULT_MAX_READ_SIZE,
        start_offset: int = 0,
        end_offset: int | None = None,
    ) -> ReadFileResult:
        """Read file content as text or base64.

        Workspace-native documents are exported (see ``mime.EXPORT_FORMATS``).
        Byte ranges are sliced locally after a full download.

        Raises:
            InvalidOperationError: For folders or an inverted byte range.
        """
        if start_offset < 0 or (end_offset is not None and end_offset < start_offset):
            raise InvalidOperationError(
                f"Invalid byte range: start={start_offset}, end={end_offset}"
            )

        resource = DriveFileResource.model_validate(
            await self.client.files_get(file_id, fields="id,name,mimeType,size")
        )
        if resource.is_folder:
            raise InvalidOperationError(f"Cannot read folder contents: {resource.name}")

        if is_workspace_document(resource.mime_type):
            export_mime = export_format_for(resource.mime_type)
            data = await self.client.files_export(file_id, export_mime)
            return self._encode(data[:max_size], export_mime, full_size=len(data))

        data = await self.client.files_download(file_id)
        full_size = resource.size if resource.size is not None else len(data)

        if start_offset > 0 or end_offset is not None:
            end = end_offset if end_offset is not None else start_offset + max_size
            chunk = data[start_offset:end][:max_size]
        else:
            chunk = data[:max_size]
        return self._encode(chunk, resource.mime_type, full_size=full_size)

    @staticmethod
    def _encode(chunk: bytes, mime_type: str, full_size: int) -> ReadFileResult:
        if is_text_mime_type(mime_type):
            content = chunk.decode("utf-8", errors="replace")
            encoding = "utf-8"
        else:
            content = base64.b64encode(chunk).decode("ascii")
            encoding = "base64"
        return ReadFileResult(
            content=content,
            mime_type=mime_type,
            size=len(chunk),
            truncated=len(chunk) < full_size,
            encoding=encoding,
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    async def move_file(self, file_id: str, new_parent_id: str) -> None:
        """Re-parent an object under ``new_parent_id``, dropping all other parents.

        No update is issued if the object is already a child of the target.
        """
        current = await self.client.files_get(file_id, fields="id,parents")
        current_parents: list[str] = current.get("parents") or []

        if new_parent_id in current_parents:
            logger.debug(f"{file_id} already in {new_parent_id}, skipping move")
            return

        await self.client.files_update(
            file_id,
            add_parents=[new_parent_id],
            remove_parents=current_parents,
            fields=MUTATION_FIELDS,
        )
        self.resolver.forget(file_id)

    async def move_folder(self, folder_id: str, new_parent_id: str) -> None:
        resource = await self.client.files_get(folder_id, fields="id,mimeType")
        if not is_folder(resource.get("mimeType", "")):
            raise InvalidOperationError(f"Item with ID {folder_id} is not a folder")
        await self.move_file(folder_id, new_parent_id)

    async def rename_file(self, file_id: str, new_name: str) -> None:
        await self.client.files_update(
            file_id, metadata={"name": new_name}, fields=MUTATION_FIELDS
        )
        self.resolver.forget(file_id)

    async def rename_folder(self, folder_id: str, new_name: str) -> None:
        # Drive makes no structural distinction between the two.
        await self.rename_file(folder_id, new_name)

    async def create_folder(self, name: str, parent_id: str) -> str:
        """Create a folder without checking for a same-named sibling.

        Returns:
            The new folder's ID.
        """
        created = await self.client.files_create(
            {"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]},
            fields="id,name,parents",
        )
        folder_id: str = created["id"]

        parent_path = self.resolver.cache.get_path(parent_id)
        if parent_path is not None:
            self.resolver.record(join_path(parent_path, name), folder_id)
        return folder_id

    # =========================================================================
    # Trees
    # =========================================================================

    async def build_directory_tree(
        self, root_path: str = "/", max_depth: int = 10
    ) -> TreeTraversal:
        """All folder paths under ``root_path`` (inclusive), up to ``max_depth``."""
        return await self._traverse(root_path, max_depth, folders_only=True)

    async def build_file_tree(self, root_path: str = "/", max_depth: int = 10) -> TreeTraversal:
        """All non-folder paths under ``root_path``, up to ``max_depth``."""
        return await self._traverse(root_path, max_depth, folders_only=False)

    async def _list_children(self, folder_id: str, folders_only: bool) -> list[dict[str, Any]]:
        builder = DriveQueryBuilder.create().in_parents(folder_id)
        if folders_only:
            builder.mime_type_equals(FOLDER_MIME)
        q = builder.not_trashed().build()

        children: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            response = await self.client.files_list(
                q=q,
                page_size=TREE_PAGE_SIZE,
                page_token=page_token,
                fields="nextPageToken,files(id,name,mimeType)",
            )
            children.extend(response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return children

    async def _traverse(
        self, root_path: str, max_depth: int, *, folders_only: bool
    ) -> TreeTraversal:
        """Breadth-first walk, listing up to TREE_BATCH_SIZE folders concurrently.

        A folder whose listing fails is recorded as a TraversalFailure and
        the walk continues with the rest of the frontier.
        """
        root = normalize_path(root_path)
        root_id = await self.resolve_path_to_id(root)

        found: list[str] = []
        failures: list[TraversalFailure] = []
        queue: deque[tuple[str, str, int]] = deque([(root_id, root, 0)])

        async def visit(folder_id: str, path: str, depth: int) -> None:
            if folders_only:
                found.append(path)
            if depth >= max_depth:
                return
            try:
                children = await self._list_children(folder_id, folders_only)
            except DriveError as e:
                logger.warning(f"Skipping {path} during tree walk: {e}")
                failures.append(TraversalFailure(path=path, folder_id=folder_id, reason=str(e)))
                return

            for child in children:
                child_path = join_path(path, child.get("name", ""))
                self.resolver.record(child_path, child["id"])
                if is_folder(child.get("mimeType", "")):
                    queue.append((child["id"], child_path, depth + 1))
                elif not folders_only:
                    found.append(child_path)

        while queue:
            batch = [queue.popleft() for _ in range(min(TREE_BATCH_SIZE, len(queue)))]
            await asyncio.gather(*(visit(*item) for item in batch))

        return TreeTraversal(
            paths=sorted(found),
            failures=sorted(failures, key=lambda f: f.path),
        )
