"""Data models for bulk plans, move requests and folder creation.

Plans can be supplied as tool arguments (camelCase JSON) or as YAML
files; both validate through the same models.
"""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

OperationType = Literal["move_file", "move_folder", "create_folder", "rename_file", "rename_folder"]

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class Operation(BaseModel):
    """One step of a bulk plan.

    Which optional fields are required depends on ``type``; that check is
    made by the executor so a malformed step fails on its own without
    rejecting the whole plan.

    Attributes:
        type: Operation variant.
        source_id: Object to move or rename.
        source_path: Informational path of the source.
        destination_parent_id: Target folder for moves and folder creation.
        destination_path: Informational path of the destination.
        new_name: New name for renames and folder creation.
        reason: Why the step is part of the plan.
    """

    model_config = _CAMEL

    type: OperationType = Field(..., description="Operation type")
    source_id: str | None = Field(default=None, description="Source object ID")
    source_path: str = Field(default="", description="Source path")
    destination_parent_id: str | None = Field(default=None, description="Destination folder ID")
    destination_path: str = Field(default="", description="Destination path")
    new_name: str | None = Field(default=None, description="New name")
    reason: str = Field(default="", description="Reason for the operation")


class BulkMovePlan(BaseModel):
    """A named, ordered list of operations."""

    model_config = _CAMEL

    plan_name: str = Field(..., description="Plan name")
    plan_description: str = Field(default="", description="Plan description")
    operations: list[Operation] = Field(default_factory=list)


class BulkSummary(BaseModel):
    model_config = _CAMEL

    total: int
    succeeded: int
    failed: int
    skipped: int = 0
    duration_seconds: float


class OperationFailure(BaseModel):
    model_config = _CAMEL

    operation: Operation
    error: str


class BulkResult(BaseModel):
    """Outcome of a bulk plan.

    ``failures`` is None when every operation succeeded.
    """

    model_config = _CAMEL

    success: bool
    message: str
    summary: BulkSummary
    failures: list[OperationFailure] | None = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class MoveRequest(BaseModel):
    """A path-based move and/or rename, ``{"from": ..., "to": ...}``."""

    from_path: str = Field(..., alias="from", min_length=1, description="Current path")
    to_path: str = Field(..., alias="to", min_length=1, description="Target path")

    model_config = {"populate_by_name": True}


class MoveItemResult(BaseModel):
    model_config = _CAMEL

    operation: MoveRequest
    success: bool
    error: str | None = None


class MoveFilesSummary(BaseModel):
    model_config = _CAMEL

    total_operations: int
    successful_operations: int
    failed_operations: int
    duration_seconds: float


class MoveFilesResult(BaseModel):
    model_config = _CAMEL

    success: bool
    message: str
    summary: MoveFilesSummary
    results: list[MoveItemResult] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateFolderResult(BaseModel):
    model_config = _CAMEL

    path: str
    success: bool
    created: bool
    id: str | None = None
    error: str | None = None


class CreateFoldersSummary(BaseModel):
    model_config = _CAMEL

    total_paths: int
    folders_created: int
    folders_existed: int
    failures: int


class CreateFoldersResult(BaseModel):
    model_config = _CAMEL

    success: bool
    message: str
    summary: CreateFoldersSummary
    results: list[CreateFolderResult] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
