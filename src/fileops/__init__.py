"""fileops - Extract, validate and apply file operations from AI model responses."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("fileops")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from fileops.execution.orchestrator import BatchReport, BatchState, ExecutionOrchestrator
from fileops.operations.parser import parse_operations
from fileops.operations.schema import FileOperation, OperationKind
from fileops.workspace.store import Workspace, WorkspaceFile

__all__ = [
    "BatchReport",
    "BatchState",
    "ExecutionOrchestrator",
    "FileOperation",
    "OperationKind",
    "Workspace",
    "WorkspaceFile",
    "parse_operations",
    "__version__",
]
