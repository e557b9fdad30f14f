"""Execution orchestrator for file operation batches.

One batch moves through these states (terminal states in parentheses):

    parsed -> validated (failed) -> confirmation_pending -> approved (cancelled)
           -> backed_up -> executing -> completed

A response with no recoverable operations ends in ``empty`` without any
notification. Operations are applied strictly in order; each outcome is
recorded independently, so one failure never stops the rest of the batch.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from fileops.config.schema import FileOpsSettings
from fileops.exceptions import BatchInProgressError, OperationValidationError, UndoError
from fileops.execution.capabilities import (
    ConfirmationProvider,
    EditorSync,
    Notification,
    NotificationLevel,
    Notifier,
    NullEditorSync,
    NullNotifier,
)
from fileops.execution.gate import ConfirmationGate, destructive_operations
from fileops.execution.report import (
    AppliedOperation,
    ExecutionResult,
    OperationFailure,
    completion_notification,
)
from fileops.operations.conflicts import resolve
from fileops.operations.parser import parse_response
from fileops.operations.schema import FileOperation, OperationKind
from fileops.operations.validator import validate_operations
from fileops.workspace.backup import BackupManager
from fileops.workspace.store import Workspace

logger = logging.getLogger(__name__)


class BatchState(str, Enum):
    """Lifecycle state of a batch."""

    PARSED = "parsed"
    VALIDATED = "validated"
    CONFIRMATION_PENDING = "confirmation_pending"
    APPROVED = "approved"
    BACKED_UP = "backed_up"
    EXECUTING = "executing"
    COMPLETED = "completed"
    EMPTY = "empty"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {BatchState.COMPLETED, BatchState.EMPTY, BatchState.FAILED, BatchState.CANCELLED}
)


@dataclass
class BatchReport:
    """Everything a caller needs to know about one batch.

    Attributes:
        state: Terminal state reached
        operations: Operations recovered from the response
        strategy: Parser strategy that recovered them (None when executed directly)
        result: Per-operation results (only for completed batches)
        error: Batch-level failure message
        issues: Validation issues for failed batches
        undo_available: True when the batch can be undone
    """

    state: BatchState
    operations: list[FileOperation] = field(default_factory=list)
    strategy: str | None = None
    result: ExecutionResult | None = None
    error: str | None = None
    issues: list[str] = field(default_factory=list)
    undo_available: bool = False


class ExecutionOrchestrator:
    """Runs parse, validation, confirmation, backup and apply for one batch at a time.

    Example:
        >>> orchestrator = ExecutionOrchestrator(workspace, confirmation=provider)
        >>> report = await orchestrator.run(response_text)
        >>> report.state
        <BatchState.COMPLETED: 'completed'>
        >>> orchestrator.undo()
        True
    """

    def __init__(
        self,
        workspace: Workspace,
        confirmation: ConfirmationProvider,
        notifier: Notifier | None = None,
        editor: EditorSync | None = None,
        settings: FileOpsSettings | None = None,
        backups: BackupManager | None = None,
        on_state: Callable[[BatchState], None] | None = None,
    ):
        """Initialize orchestrator.

        Args:
            workspace: Workspace the batches mutate
            confirmation: Capability asked to approve destructive operations
            notifier: Receives batch summaries and refresh requests
            editor: Keeps open editor views in sync
            settings: Parser and execution settings (defaults when omitted)
            backups: Backup manager (a private one is created when omitted)
            on_state: Called with every state transition
        """
        self.workspace = workspace
        self.gate = ConfirmationGate(confirmation)
        self.notifier: Notifier = notifier or NullNotifier()
        self.editor: EditorSync = editor or NullEditorSync()
        self.settings = settings or FileOpsSettings()
        self.backups = backups or BackupManager()
        self.on_state = on_state
        self.last_result: ExecutionResult | None = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a batch is executing."""
        return self._lock.locked()

    def _transition(self, state: BatchState) -> None:
        logger.debug(f"Batch state: {state.value}")
        if self.on_state is not None:
            self.on_state(state)

    async def run(self, response_text: str) -> BatchReport:
        """Parse a model response and execute the operations it contains."""
        parsed = parse_response(response_text, self.settings.parser)
        if not parsed:
            self._transition(BatchState.EMPTY)
            return BatchReport(state=BatchState.EMPTY)
        return await self.execute(list(parsed.operations), strategy=parsed.strategy)

    async def execute(
        self, operations: Iterable[FileOperation], strategy: str | None = None
    ) -> BatchReport:
        """Validate, confirm, back up and apply a batch.

        Raises:
            BatchInProgressError: If another batch is still executing
        """
        if self._lock.locked():
            raise BatchInProgressError("A file operation batch is already in progress")

        async with self._lock:
            candidates = list(operations)
            if not candidates:
                self._transition(BatchState.EMPTY)
                return BatchReport(state=BatchState.EMPTY, strategy=strategy)
            self._transition(BatchState.PARSED)

            try:
                batch = validate_operations(
                    candidates, max_content_bytes=self.settings.execution.max_content_bytes
                )
            except OperationValidationError as e:
                self._transition(BatchState.FAILED)
                self.notifier.notify(
                    Notification(
                        level=NotificationLevel.ERROR,
                        message="File operations rejected: the batch contains invalid operations",
                        details=tuple(e.issues),
                    )
                )
                return BatchReport(
                    state=BatchState.FAILED,
                    operations=[c for c in candidates if isinstance(c, FileOperation)],
                    strategy=strategy,
                    error=str(e),
                    issues=e.issues,
                    undo_available=self.backups.has_backup,
                )
            self._transition(BatchState.VALIDATED)

            self._transition(BatchState.CONFIRMATION_PENDING)
            destructive = destructive_operations(batch, self.workspace)
            if not await self.gate.request_approval(destructive):
                self._transition(BatchState.CANCELLED)
                logger.info("File operation batch cancelled by user")
                self.notifier.notify(
                    Notification(
                        level=NotificationLevel.INFO,
                        message="File operations cancelled; no changes were made",
                    )
                )
                return BatchReport(
                    state=BatchState.CANCELLED,
                    operations=batch,
                    strategy=strategy,
                    undo_available=self.backups.has_backup,
                )
            self._transition(BatchState.APPROVED)

            self.backups.snapshot(self.workspace)
            self._transition(BatchState.BACKED_UP)

            self._transition(BatchState.EXECUTING)
            result = ExecutionResult()
            for operation in batch:
                self._apply(operation, result)
            self.last_result = result

            self._transition(BatchState.COMPLETED)
            self._finish(result)
            return BatchReport(
                state=BatchState.COMPLETED,
                operations=batch,
                strategy=strategy,
                result=result,
                undo_available=self.backups.has_backup,
            )

    def _apply(self, operation: FileOperation, result: ExecutionResult) -> None:
        """Apply one operation, recording its outcome."""
        try:
            resolution = resolve(operation, self.workspace)
            if resolution.failure is not None:
                logger.warning(f"Cannot {operation.describe()}: {resolution.failure}")
                result.failed.append(OperationFailure(operation, resolution.failure))
                return

            target = resolution.operation
            if target.kind is OperationKind.CREATE:
                self.workspace.create(target.path, target.content or "")
            elif target.kind is OperationKind.EDIT:
                self.workspace.update(target.path, target.content or "")
            else:
                self.workspace.delete(target.path)
        except Exception as e:
            logger.warning(f"Failed to {operation.describe()}: {e}")
            result.failed.append(OperationFailure(operation, str(e) or type(e).__name__))
            return

        logger.debug(f"{operation.describe()} -> {resolution.outcome.value} {target.path}")
        result.executed.append(
            AppliedOperation(
                operation=operation,
                outcome=resolution.outcome,
                path=target.path,
                detail=resolution.detail,
            )
        )

    def _finish(self, result: ExecutionResult) -> None:
        """Report a completed batch and resync collaborators."""
        self.workspace.invalidate_tree()
        for applied in result.executed:
            if not self.editor.is_open(applied.path):
                continue
            if applied.effective_kind is OperationKind.DELETE:
                self.editor.close(applied.path)
            else:
                self.editor.reload(applied.path)

        self.notifier.notify(completion_notification(result, self.backups.has_backup))
        self.notifier.refresh()
        logger.info(
            f"Batch completed: {len(result.executed)} executed, {len(result.failed)} failed"
        )

    def undo(self) -> bool:
        """Restore the workspace to its state before the last batch.

        The backup is single use. On failure the live workspace is left as-is
        and an error notification is emitted.

        Returns:
            True when the workspace was restored

        Raises:
            BatchInProgressError: If a batch is executing
        """
        if self._lock.locked():
            raise BatchInProgressError("Cannot undo while a batch is in progress")

        before = set(self.workspace.paths())
        try:
            snapshot = self.backups.restore(self.workspace)
        except UndoError as e:
            logger.error(f"Undo failed: {e}")
            self.notifier.notify(
                Notification(level=NotificationLevel.ERROR, message=f"Undo failed: {e}")
            )
            return False

        touched = before | set(snapshot.paths)
        if self.last_result is not None:
            touched.update(self.last_result.touched_paths())
        for path in sorted(touched):
            if not self.editor.is_open(path):
                continue
            if self.workspace.exists(path):
                self.editor.reload(path)
            else:
                self.editor.close(path)

        self.last_result = None
        self.notifier.notify(
            Notification(level=NotificationLevel.SUCCESS, message="Last file operations undone")
        )
        self.notifier.refresh()
        return True
