"""File operation schema, parsing, validation and conflict resolution."""

from fileops.operations.conflicts import OperationOutcome, Resolution, resolve, unique_path
from fileops.operations.parser import ParseResult, parse_operations, parse_response
from fileops.operations.schema import FileOperation, OperationKind, OperationsPayload
from fileops.operations.validator import validate_operations

__all__ = [
    "FileOperation",
    "OperationKind",
    "OperationOutcome",
    "OperationsPayload",
    "ParseResult",
    "Resolution",
    "parse_operations",
    "parse_response",
    "resolve",
    "unique_path",
    "validate_operations",
]
