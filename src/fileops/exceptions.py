"""Custom exceptions for fileops errors.

This module provides a hierarchy of exception classes for the extraction,
validation and execution pipeline. Per-operation problems during execution are
never raised to the caller; they are collected into the batch result instead.
"""


class FileOpsError(Exception):
    """Base exception for all fileops errors.

    This is the root of the exception hierarchy. All custom fileops exceptions
    should inherit from this class.
    """

    pass


class OperationValidationError(FileOpsError):
    """A batch of operations failed structural validation.

    Raised when any operation in a batch is malformed or unsafe. The whole
    batch is rejected; no operation from it may be applied.

    Attributes:
        issues: Human-readable problems, one per offending operation field
    """

    def __init__(self, issues: list[str]):
        """Initialize OperationValidationError.

        Args:
            issues: Human-readable problems found in the batch
        """
        self.issues = list(issues)
        summary = "; ".join(self.issues) if self.issues else "invalid operation batch"
        super().__init__(f"Operation batch rejected: {summary}")


class WorkspaceError(FileOpsError):
    """Workspace mutation error.

    Raised by the workspace store when a mutation cannot be applied, such as
    creating a path that already exists or updating a missing file.

    Attributes:
        path: Workspace path involved in the failed mutation
    """

    def __init__(self, path: str, message: str):
        """Initialize WorkspaceError.

        Args:
            path: Workspace path involved in the failed mutation
            message: Error message
        """
        self.path = path
        super().__init__(message)


class UnsafePathError(WorkspaceError):
    """Path violates the workspace naming rule.

    Workspace paths use forward slashes, never start with a separator and
    never contain a parent-directory segment.
    """

    pass


class UndoError(FileOpsError):
    """Undo could not be completed.

    Raised when there is no backup to restore or the backup fails integrity
    checks. The live workspace is left as-is when this is raised.
    """

    pass


class BatchInProgressError(FileOpsError):
    """A batch was submitted while another batch is still executing."""

    pass
