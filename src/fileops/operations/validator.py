"""Structural and security validation for operation batches.

Validation is all-or-nothing: a single bad operation rejects the batch, so a
batch is never partially applied because of a parse-stage problem.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from fileops.config.constants import DEFAULT_MAX_CONTENT_BYTES
from fileops.exceptions import OperationValidationError, UnsafePathError
from fileops.operations.paths import normalize_workspace_path, path_issues
from fileops.operations.schema import PAYLOAD_KINDS, FileOperation, OperationKind

logger = logging.getLogger(__name__)

_VALID_KINDS = {kind.value for kind in OperationKind}


def _coerce(candidate: Any, index: int, issues: list[str]) -> FileOperation | None:
    """Turn a candidate into a FileOperation, recording problems."""
    if isinstance(candidate, FileOperation):
        return candidate
    if not isinstance(candidate, Mapping):
        issues.append(f"operation {index}: expected an operation, got {type(candidate).__name__}")
        return None

    data = dict(candidate)
    raw_kind = data.pop("operation", None) if "operation" in data else data.pop("kind", None)
    if isinstance(raw_kind, OperationKind):
        kind = raw_kind
    elif isinstance(raw_kind, str) and raw_kind in PAYLOAD_KINDS:
        kind = PAYLOAD_KINDS[raw_kind]
    elif isinstance(raw_kind, str) and raw_kind in _VALID_KINDS:
        kind = OperationKind(raw_kind)
    else:
        issues.append(f"operation {index}: unrecognized kind {raw_kind!r}")
        return None

    path = data.get("path")
    content = data.get("content")
    if not isinstance(path, str):
        issues.append(f"operation {index}: path must be a string")
        return None
    if content is not None and not isinstance(content, str):
        issues.append(f"operation {index} ({path}): content must be a string")
        return None
    try:
        return FileOperation(kind=kind, path=path, content=content)
    except ValidationError as e:
        issues.append(f"operation {index} ({path}): {e.errors()[0]['msg']}")
        return None


def operation_issues(
    operation: FileOperation, max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES
) -> list[str]:
    """List the structural problems of one operation (empty when valid)."""
    issues = list(path_issues(operation.path))
    if operation.kind is not OperationKind.DELETE:
        if operation.content is None:
            issues.append(f"{operation.kind.value} requires content")
        elif len(operation.content.encode("utf-8")) > max_content_bytes:
            issues.append(f"content exceeds {max_content_bytes} bytes")
    return issues


def validate_operations(
    operations: Iterable[FileOperation | Mapping[str, Any]],
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES,
) -> list[FileOperation]:
    """Validate a whole batch.

    Accepts FileOperation instances or raw mappings shaped like structured
    payload entries (``operation``/``kind``, ``path``, ``content``).

    Args:
        operations: Candidate operations
        max_content_bytes: Maximum UTF-8 size of create/edit content

    Returns:
        The batch as FileOperation instances, in the given order, with paths
        normalized to the workspace form (no leading ``./``, no empty segments)

    Raises:
        OperationValidationError: If any operation is invalid

    Example:
        >>> validate_operations([{"operation": "delete_file", "path": "../x.txt"}])
        Traceback (most recent call last):
        ...
        fileops.exceptions.OperationValidationError: Operation batch rejected: ...
    """
    issues: list[str] = []
    validated: list[FileOperation] = []

    for index, candidate in enumerate(operations):
        operation = _coerce(candidate, index, issues)
        if operation is None:
            continue
        operation_problems = operation_issues(operation, max_content_bytes)
        if not operation_problems:
            try:
                path = normalize_workspace_path(operation.path)
            except UnsafePathError as e:
                operation_problems.append(str(e))
            else:
                if path != operation.path:
                    operation = operation.model_copy(update={"path": path})
        for issue in operation_problems:
            issues.append(f"operation {index} ({operation.path}): {issue}")
        validated.append(operation)

    if issues:
        logger.warning(f"Rejected operation batch with {len(issues)} issues")
        raise OperationValidationError(issues)
    return validated
