"""Path <-> ID resolution over Drive's parent graph.

Drive addresses objects by ID and lets an object sit in several parents.
Callers want single absolute paths. The resolver bridges the two with a
demand-populated, two-way cache seeded with ``/`` <-> ``root``.

Multi-parent objects are collapsed to a tree by following only the first
listed parent when reconstructing a path.
"""

import logging

from drive_organizer_mcp.drive.client import DriveApiClient
from drive_organizer_mcp.drive.paths import (
    ROOT_ID,
    ROOT_PATH,
    join_path,
    normalize_path,
    split_path,
)
from drive_organizer_mcp.drive.query import DriveQueryBuilder
from drive_organizer_mcp.errors import DriveApiError, PathNotFoundError

logger = logging.getLogger(__name__)


class PathCache:
    """Bidirectional ``path -> id`` / ``id -> path`` map.

    ``record`` keeps the two maps mutual inverses: re-pointing a path or an
    ID drops the stale entry on the other side.
    """

    def __init__(self) -> None:
        self._path_to_id: dict[str, str] = {}
        self._id_to_path: dict[str, str] = {}
        self.clear()

    def __len__(self) -> int:
        return len(self._path_to_id)

    def clear(self) -> None:
        self._path_to_id = {ROOT_PATH: ROOT_ID}
        self._id_to_path = {ROOT_ID: ROOT_PATH}

    def get_id(self, path: str) -> str | None:
        return self._path_to_id.get(path)

    def get_path(self, file_id: str) -> str | None:
        return self._id_to_path.get(file_id)

    def record(self, path: str, file_id: str) -> None:
        old_id = self._path_to_id.get(path)
        if old_id is not None and old_id != file_id:
            self._id_to_path.pop(old_id, None)
        old_path = self._id_to_path.get(file_id)
        if old_path is not None and old_path != path:
            self._path_to_id.pop(old_path, None)
        self._path_to_id[path] = file_id
        self._id_to_path[file_id] = path

    def forget(self, file_id: str) -> None:
        """Drop an ID, its path, and every cached path beneath it."""
        path = self._id_to_path.get(file_id)
        if path is None or path == ROOT_PATH:
            return
        prefix = path + "/"
        for cached_path in [p for p in self._path_to_id if p == path or p.startswith(prefix)]:
            cached_id = self._path_to_id.pop(cached_path)
            self._id_to_path.pop(cached_id, None)
        self._id_to_path.pop(file_id, None)


class PathResolver:
    """Translate between absolute paths and Drive IDs.

    Attributes:
        cache: The two-way cache, owned by this resolver.
    """

    def __init__(self, client: DriveApiClient) -> None:
        self.client = client
        self.cache = PathCache()
        # Drive reports the real ID of "My Drive" in parent lists, never the alias.
        self._root_real_id: str | None = None

    def clear(self) -> None:
        """Reset the cache to the pre-seeded root entry."""
        self.cache.clear()
        self._root_real_id = None

    def record(self, path: str, file_id: str) -> None:
        self.cache.record(normalize_path(path), file_id)

    def forget(self, file_id: str) -> None:
        self.cache.forget(file_id)

    async def resolve_path_to_id(self, path: str) -> str:
        """Resolve an absolute path to an ID, walking uncached segments.

        Raises:
            PathNotFoundError: Naming the first sub-path with no match.
        """
        normalized = normalize_path(path)
        cached = self.cache.get_id(normalized)
        if cached is not None:
            return cached

        current_id = ROOT_ID
        current_path = ROOT_PATH
        for segment in split_path(normalized):
            current_path = join_path(current_path, segment)

            cached = self.cache.get_id(current_path)
            if cached is not None:
                current_id = cached
                continue

            logger.debug(f"Path cache miss: {current_path}")
            query = (
                DriveQueryBuilder.create()
                .in_parents(current_id)
                .name_equals(segment)
                .not_trashed()
                .build()
            )
            response = await self.client.files_list(q=query, page_size=1, fields="files(id,name)")
            files = response.get("files", [])
            if not files:
                raise PathNotFoundError(current_path)

            current_id = files[0]["id"]
            self.cache.record(current_path, current_id)

        return current_id

    async def resolve_id_to_path(self, file_id: str) -> str:
        """Reconstruct the path of ``file_id`` through its first parents.

        The real ID of My Drive resolves to ``/`` without being cached, so
        the bidirectional map keeps ``/`` paired with the ``root`` alias.
        """
        cached = self.cache.get_path(file_id)
        if cached is not None:
            return cached
        if file_id == self._root_real_id:
            return ROOT_PATH

        logger.debug(f"ID cache miss: {file_id}")
        resource = await self.client.files_get(file_id, fields="id,name,parents")
        parents = resource.get("parents") or []
        if not parents and await self._is_root(file_id):
            return ROOT_PATH
        return await self.file_path(
            file_id, resource.get("name", ""), parents[0] if parents else None
        )

    async def file_path(self, file_id: str, name: str, parent_id: str | None) -> str:
        """Path for an object whose name and first parent are already known.

        If any ancestor cannot be fetched, returns the placeholder
        ``/<PARENT_ID>/name``. Nothing on the degraded chain is cached.
        """
        try:
            return await self._build_path(file_id, name, parent_id)
        except DriveApiError as e:
            logger.debug(f"Could not reconstruct path through parent {parent_id}: {e}")
            return f"/<{parent_id}>/{name}"

    async def _build_path(self, file_id: str, name: str, parent_id: str | None) -> str:
        # Raises DriveApiError from any ancestor lookup; paths are recorded
        # only after the whole chain above them has resolved.
        cached = self.cache.get_path(file_id)
        if cached is not None:
            return cached

        if parent_id is None or parent_id in (ROOT_ID, self._root_real_id):
            parent_path = ROOT_PATH
        else:
            parent_path = self.cache.get_path(parent_id)
            if parent_path is None:
                parent_path = await self._parent_path(parent_id)

        path = join_path(parent_path, name)
        self.cache.record(path, file_id)
        return path

    async def _parent_path(self, parent_id: str) -> str:
        parent = await self.client.files_get(parent_id, fields="id,name,parents")
        grandparents = parent.get("parents") or []
        if not grandparents and await self._is_root(parent_id):
            return ROOT_PATH
        return await self._build_path(
            parent_id, parent.get("name", ""), grandparents[0] if grandparents else None
        )

    async def _is_root(self, file_id: str) -> bool:
        if self._root_real_id is None:
            root = await self.client.files_get(ROOT_ID, fields="id")
            self._root_real_id = root.get("id", ROOT_ID)
        return file_id == self._root_real_id
