"""Batch results and the notifications built from them."""

from dataclasses import dataclass, field

from fileops.execution.capabilities import Notification, NotificationAction, NotificationLevel
from fileops.operations.conflicts import OperationOutcome
from fileops.operations.schema import FileOperation, OperationKind

UNDO_ACTION = NotificationAction(label="Undo", name="undo")


@dataclass(frozen=True)
class AppliedOperation:
    """An operation that was applied.

    Attributes:
        operation: Operation as requested
        outcome: How it was applied
        path: Path actually written or removed
        detail: Note for renames and degrades
    """

    operation: FileOperation
    outcome: OperationOutcome
    path: str
    detail: str | None = None

    @property
    def effective_kind(self) -> OperationKind:
        """Kind actually performed (a degraded edit is a create)."""
        if self.outcome is OperationOutcome.DEGRADED_TO_CREATE:
            return OperationKind.CREATE
        return self.operation.kind


@dataclass(frozen=True)
class OperationFailure:
    """An operation that could not be applied."""

    operation: FileOperation
    reason: str

    def describe(self) -> str:
        return f"{self.operation.describe()}: {self.reason}"


@dataclass
class ExecutionResult:
    """Outcome of one batch; superseded by the next batch."""

    executed: list[AppliedOperation] = field(default_factory=list)
    failed: list[OperationFailure] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        """Executed operations counted by effective kind."""
        counts = {kind.value: 0 for kind in OperationKind}
        for applied in self.executed:
            counts[applied.effective_kind.value] += 1
        return counts

    def touched_paths(self) -> list[str]:
        """Paths written or removed, in execution order."""
        return [applied.path for applied in self.executed]

    @property
    def adjustments(self) -> list[AppliedOperation]:
        """Renamed creates and degraded edits."""
        return [
            applied
            for applied in self.executed
            if applied.outcome in (OperationOutcome.RENAMED, OperationOutcome.DEGRADED_TO_CREATE)
        ]


def summarize_counts(result: ExecutionResult) -> str:
    """E.g. ``2 created, 1 edited, 1 deleted``."""
    counts = result.counts()
    labels = (("create", "created"), ("edit", "edited"), ("delete", "deleted"))
    parts = [f"{counts[kind]} {label}" for kind, label in labels if counts[kind]]
    return ", ".join(parts) if parts else "no changes"


def completion_notification(result: ExecutionResult, undo_available: bool) -> Notification:
    """Summary notification for a completed batch.

    Per-operation failures and adjustments are attached as detail lines.
    """
    details = [applied.detail for applied in result.adjustments if applied.detail]
    details.extend(failure.describe() for failure in result.failed)
    actions = (UNDO_ACTION,) if undo_available and result.executed else ()

    summary = summarize_counts(result)
    if result.failed:
        return Notification(
            level=NotificationLevel.WARNING if result.executed else NotificationLevel.ERROR,
            message=f"File operations finished with {len(result.failed)} failure(s): {summary}",
            details=tuple(details),
            actions=actions,
        )
    return Notification(
        level=NotificationLevel.SUCCESS,
        message=f"File operations applied: {summary}",
        details=tuple(details),
        actions=actions,
    )
