"""Collision and missing-target policy applied at execution time.

Resolution always looks at the live workspace, so an operation sees the
effects of earlier operations in the same batch.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from fileops.operations.paths import split_extension
from fileops.operations.schema import FileOperation, OperationKind

if TYPE_CHECKING:
    from fileops.execution.capabilities import WorkspaceMutator

logger = logging.getLogger(__name__)

NOT_FOUND = "not found"


class OperationOutcome(str, Enum):
    """How an operation was (or was not) applied."""

    CREATED = "created"
    RENAMED = "renamed"
    EDITED = "edited"
    DEGRADED_TO_CREATE = "degraded_to_create"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class Resolution:
    """Result of reconciling one operation with the workspace.

    Attributes:
        operation: Operation to apply (may differ from the requested one)
        outcome: Outcome the apply step will report on success
        detail: Human-readable note for renames and degrades
        failure: Reason the operation cannot be applied, if any
    """

    operation: FileOperation
    outcome: OperationOutcome
    detail: str | None = None
    failure: str | None = None


def unique_path(path: str, exists: Callable[[str], bool]) -> str:
    """Find the first free path by inserting ``_1``, ``_2``, ... before the extension.

    Example:
        >>> unique_path("a.txt", {"a.txt", "a_1.txt"}.__contains__)
        'a_2.txt'
    """
    if not exists(path):
        return path
    stem, ext = split_extension(path)
    counter = 1
    while True:
        candidate = f"{stem}_{counter}{ext}"
        if not exists(candidate):
            return candidate
        counter += 1


def resolve(operation: FileOperation, workspace: "WorkspaceMutator") -> Resolution:
    """Apply the collision and missing-target policy to one operation.

    - create on an existing path is renamed to the first free ``stem_N.ext``
    - edit on a missing path degrades to a create on the same path
    - delete on a missing path fails with "not found"
    """
    exists = workspace.exists(operation.path)

    if operation.kind is OperationKind.CREATE:
        if not exists:
            return Resolution(operation=operation, outcome=OperationOutcome.CREATED)
        new_path = unique_path(operation.path, workspace.exists)
        logger.info(f"Create target {operation.path} exists, renaming to {new_path}")
        return Resolution(
            operation=operation.model_copy(update={"path": new_path}),
            outcome=OperationOutcome.RENAMED,
            detail=f"{operation.path} already exists, created {new_path} instead",
        )

    if operation.kind is OperationKind.EDIT:
        if exists:
            return Resolution(operation=operation, outcome=OperationOutcome.EDITED)
        logger.info(f"Edit target {operation.path} missing, creating it instead")
        return Resolution(
            operation=operation.model_copy(update={"kind": OperationKind.CREATE}),
            outcome=OperationOutcome.DEGRADED_TO_CREATE,
            detail=f"{operation.path} did not exist, created it instead of editing",
        )

    if exists:
        return Resolution(operation=operation, outcome=OperationOutcome.DELETED)
    return Resolution(operation=operation, outcome=OperationOutcome.FAILED, failure=NOT_FOUND)
