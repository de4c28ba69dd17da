"""Sequential bulk plan execution with per-operation isolation.

Operations run strictly in input order; a later step may depend on an
earlier one (for example creating a parent folder first). A failing step
is recorded and the run continues with the next one.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path

import yaml
from pydantic.alias_generators import to_camel

from drive_organizer_mcp.drive.adapter import GoogleDriveAdapter
from drive_organizer_mcp.errors import InvalidOperationError
from drive_organizer_mcp.operations.models import (
    BulkMovePlan,
    BulkResult,
    BulkSummary,
    Operation,
    OperationFailure,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "move_file": ("source_id", "destination_parent_id"),
    "move_folder": ("source_id", "destination_parent_id"),
    "create_folder": ("new_name", "destination_parent_id"),
    "rename_file": ("source_id", "new_name"),
    "rename_folder": ("source_id", "new_name"),
}


def validate_operation(operation: Operation) -> None:
    """Check that the fields ``operation.type`` needs are present.

    Raises:
        InvalidOperationError: e.g. "move_file requires sourceId and destinationParentId".
    """
    required = REQUIRED_FIELDS[operation.type]
    if any(not getattr(operation, field) for field in required):
        names = " and ".join(to_camel(field) for field in required)
        raise InvalidOperationError(f"{operation.type} requires {names}")


def load_plan(path: Path) -> BulkMovePlan:
    """Load a bulk plan from a YAML file.

    The file uses the same camelCase keys as the ``bulk_move`` tool
    (``planName``, ``operations[].sourceId``...); snake_case keys are
    accepted too.

    Raises:
        InvalidOperationError: If the file is not valid YAML or not a plan.
    """
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise InvalidOperationError(f"Failed to read plan {path}: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise InvalidOperationError(f"Plan {path} must be a mapping with planName and operations")

    try:
        return BulkMovePlan.model_validate(data)
    except ValueError as e:
        raise InvalidOperationError(f"Invalid plan {path}: {e}", cause=e) from e


class BulkExecutor:
    """Apply a BulkMovePlan against a GoogleDriveAdapter.

    Example:
        ```python
        executor = BulkExecutor(adapter)
        result = await executor.execute(plan)
        print(result.summary.failed)
        ```
    """

    def __init__(
        self,
        adapter: GoogleDriveAdapter,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.adapter = adapter
        self._clock = clock
        self._on_progress: Callable[[str], None] | None = None

    def set_progress_callback(self, callback: Callable[[str], None] | None) -> None:
        """Set a callback receiving one line per processed operation."""
        self._on_progress = callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self._on_progress:
            self._on_progress(message)

    async def _dispatch(self, operation: Operation) -> None:
        validate_operation(operation)
        source_id = operation.source_id or ""
        parent_id = operation.destination_parent_id or ""
        new_name = operation.new_name or ""

        if operation.type == "move_file":
            await self.adapter.move_file(source_id, parent_id)
        elif operation.type == "move_folder":
            await self.adapter.move_folder(source_id, parent_id)
        elif operation.type == "create_folder":
            await self.adapter.create_folder(new_name, parent_id)
        elif operation.type == "rename_file":
            await self.adapter.rename_file(source_id, new_name)
        elif operation.type == "rename_folder":
            await self.adapter.rename_folder(source_id, new_name)
        else:
            raise InvalidOperationError(f"Unknown operation type: {operation.type}")

    async def execute(self, plan: BulkMovePlan) -> BulkResult:
        """Run every operation of ``plan`` and summarize.

        Raises:
            InvalidOperationError: If the plan has no operations.
        """
        if not plan.operations:
            raise InvalidOperationError("Plan must contain at least one operation")

        total = len(plan.operations)
        self._log(f"Executing plan: {plan.plan_name} ({total} operations)")
        started = self._clock()
        failures: list[OperationFailure] = []
        succeeded = 0

        for i, operation in enumerate(plan.operations, 1):
            label = operation.source_path or operation.source_id or operation.new_name or ""
            try:
                await self._dispatch(operation)
            except Exception as e:
                # One failing step must not abort the plan.
                self._log(f"  [FAILED] {i}/{total} {operation.type} {label}: {e}")
                failures.append(OperationFailure(operation=operation, error=str(e)))
            else:
                succeeded += 1
                self._log(f"  [OK] {i}/{total} {operation.type} {label}")

        duration = round(self._clock() - started, 3)
        if failures:
            message = f"Completed plan with {len(failures)} failures: {plan.plan_name}"
        else:
            message = f"Successfully executed plan: {plan.plan_name}"

        return BulkResult(
            success=not failures,
            message=message,
            summary=BulkSummary(
                total=total,
                succeeded=succeeded,
                failed=len(failures),
                skipped=0,
                duration_seconds=duration,
            ),
            failures=failures or None,
        )
