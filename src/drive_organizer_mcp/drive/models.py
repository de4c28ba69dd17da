"""Pydantic models for Drive resources and adapter results.

Models serialize with camelCase aliases (``model_dump(by_alias=True)``) so
tool output matches Drive's own field naming.
"""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from drive_organizer_mcp.drive.mime import is_folder
from drive_organizer_mcp.drive.paths import folder_depth

SharingStatus = Literal["private", "shared", "public"]

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class Permission(BaseModel):
    """One entry of a file's ``permissions`` list."""

    model_config = _CAMEL

    type: str = ""
    role: str = ""


class DriveFileResource(BaseModel):
    """A Drive ``files`` resource as returned by the API.

    Drive reports ``size`` as a decimal string; it is coerced to int.
    """

    model_config = _CAMEL

    id: str
    name: str = ""
    mime_type: str = ""
    size: int | None = None
    created_time: str | None = None
    modified_time: str | None = None
    parents: list[str] = Field(default_factory=list)
    trashed: bool = False
    shared: bool = False
    owned_by_me: bool = True
    permissions: list[Permission] = Field(default_factory=list)

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    @property
    def is_folder(self) -> bool:
        return is_folder(self.mime_type)

    @property
    def is_public(self) -> bool:
        """Anyone-with-link, or domain-wide with a non-owner role."""
        return any(
            p.type == "anyone" or (p.type == "domain" and p.role != "owner")
            for p in self.permissions
        )

    @property
    def sharing_status(self) -> SharingStatus:
        if self.is_public:
            return "public"
        if self.shared:
            return "shared"
        return "private"


class DriveFile(BaseModel):
    """Caller-facing projection of a Drive object, including its path."""

    model_config = _CAMEL

    id: str
    name: str
    mime_type: str
    size: int | None = None
    created_time: str = ""
    modified_time: str = ""
    parents: list[str] = Field(default_factory=list)
    path: str
    is_folder: bool
    is_shared: bool
    sharing_status: SharingStatus
    folder_depth: int

    @classmethod
    def from_resource(cls, resource: DriveFileResource, path: str) -> "DriveFile":
        return cls(
            id=resource.id,
            name=resource.name,
            mime_type=resource.mime_type,
            size=resource.size,
            created_time=resource.created_time or "",
            modified_time=resource.modified_time or "",
            parents=list(resource.parents),
            path=path,
            is_folder=resource.is_folder,
            is_shared=resource.shared,
            sharing_status=resource.sharing_status,
            folder_depth=folder_depth(path),
        )


class ListDirectoryResult(BaseModel):
    model_config = _CAMEL

    files: list[DriveFile] = Field(default_factory=list)
    next_page_token: str | None = None


class PatternFilterOutcome(BaseModel):
    """What happened to the optional client-side name pattern.

    ``skipped`` means the pattern was not a valid regular expression and
    results were returned unfiltered; ``reason`` carries the compile error.
    """

    model_config = _CAMEL

    status: Literal["applied", "skipped", "not_requested"] = "not_requested"
    pattern: str | None = None
    reason: str | None = None


class SearchFilesResult(BaseModel):
    model_config = _CAMEL

    files: list[DriveFile] = Field(default_factory=list)
    pattern_filter: PatternFilterOutcome = Field(default_factory=PatternFilterOutcome)


class ReadFileResult(BaseModel):
    """Content of a file, possibly a slice and possibly truncated.

    Attributes:
        content: UTF-8 text, or base64 when ``encoding`` is "base64".
        mime_type: Declared type of ``content`` (the export type for
            Workspace documents).
        size: Number of bytes represented by ``content``.
        truncated: True when fewer bytes were returned than the file holds.
    """

    model_config = _CAMEL

    content: str
    mime_type: str
    size: int
    truncated: bool
    encoding: Literal["utf-8", "base64"]


class TraversalFailure(BaseModel):
    """A folder whose children could not be listed during a tree walk."""

    model_config = _CAMEL

    path: str
    folder_id: str
    reason: str


class TreeTraversal(BaseModel):
    """Sorted paths found by a best-effort tree walk plus per-branch failures."""

    model_config = _CAMEL

    paths: list[str] = Field(default_factory=list)
    failures: list[TraversalFailure] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures
