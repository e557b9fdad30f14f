"""Typed shape of a file operation and its structured payload encoding.

Two surface encodings exist for operations: the structured payload produced
by models that support response schemas, and the free-text convention parsed
by ``fileops.operations.parser``. Both decode to ``FileOperation``.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OperationKind(str, Enum):
    """Kind of file operation."""

    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


# Structured payload enum values mapped to operation kinds
PAYLOAD_KINDS: dict[str, OperationKind] = {
    "create_file": OperationKind.CREATE,
    "edit_file": OperationKind.EDIT,
    "delete_file": OperationKind.DELETE,
}


class FileOperation(BaseModel):
    """A single requested file operation.

    Content is required (empty string allowed) for create and edit, and
    ignored for delete. Instances are immutable so that a parsed batch cannot
    be altered between validation and execution.

    Example:
        >>> op = FileOperation(kind=OperationKind.CREATE, path="src/app.py", content="")
        >>> op.is_destructive_kind
        False
    """

    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    path: str
    content: str | None = None

    @property
    def is_destructive_kind(self) -> bool:
        """True for deletes; edits are destructive only when their target exists."""
        return self.kind is OperationKind.DELETE

    def describe(self) -> str:
        """Short human-readable label, e.g. ``create src/app.py``."""
        return f"{self.kind.value} {self.path}"


class PayloadOperation(BaseModel):
    """One entry of the structured operations payload."""

    operation: Literal["create_file", "edit_file", "delete_file"]
    path: str
    content: str | None = None

    def to_operation(self) -> FileOperation:
        """Convert payload entry to a FileOperation."""
        kind = PAYLOAD_KINDS[self.operation]
        content = None if kind is OperationKind.DELETE else self.content
        return FileOperation(kind=kind, path=self.path, content=content)


class OperationsPayload(BaseModel):
    """Structured payload: ``{"operations": [{operation, path, content?}]}``."""

    operations: list[PayloadOperation] = Field(default_factory=list)

    @classmethod
    def json_schema_for_model(cls) -> dict:
        """JSON schema to hand to models that support structured output."""
        return cls.model_json_schema()
