"""Confirmation gate for destructive operations.

A batch that deletes files or overwrites existing ones must be approved as a
whole before any backup or mutation happens. There is no partial approval
and no timeout.
"""

import asyncio
import logging
from collections.abc import Iterable

from fileops.execution.capabilities import (
    ConfirmationProvider,
    ConfirmationRequest,
    ConfirmationType,
    WorkspaceMutator,
)
from fileops.operations.schema import FileOperation, OperationKind

logger = logging.getLogger(__name__)


def destructive_operations(
    operations: Iterable[FileOperation], workspace: WorkspaceMutator
) -> list[FileOperation]:
    """Deletes, plus edits whose target already exists."""
    return [
        op
        for op in operations
        if op.kind is OperationKind.DELETE
        or (op.kind is OperationKind.EDIT and workspace.exists(op.path))
    ]


def build_request(destructive: list[FileOperation]) -> ConfirmationRequest:
    """Describe the destructive subset for the user."""
    deletes = [op.path for op in destructive if op.kind is OperationKind.DELETE]
    edits = [op.path for op in destructive if op.kind is OperationKind.EDIT]

    lines: list[str] = []
    if deletes:
        lines.append(f"Delete {len(deletes)} file(s): {', '.join(deletes)}")
    if edits:
        lines.append(f"Overwrite {len(edits)} file(s): {', '.join(edits)}")

    return ConfirmationRequest(
        title="Confirm file changes",
        message="\n".join(lines),
        type=ConfirmationType.DANGER if deletes else ConfirmationType.WARNING,
        paths=tuple(op.path for op in destructive),
    )


class ConfirmationGate:
    """Awaits user approval for the destructive part of a batch.

    Example:
        >>> gate = ConfirmationGate(provider)
        >>> approved = await gate.request_approval(destructive_operations(ops, workspace))
    """

    def __init__(self, provider: ConfirmationProvider):
        """Initialize gate.

        Args:
            provider: Confirmation capability asked when approval is needed
        """
        self.provider = provider

    async def request_approval(self, destructive: list[FileOperation]) -> bool:
        """Ask for approval of the destructive operations.

        Approval is implicit when there is nothing destructive. A denial, a
        prompt cancelled by the provider, or a failing provider all count as
        "no". Cancellation of the task awaiting approval propagates.
        """
        if not destructive:
            return True

        request = build_request(destructive)
        logger.debug(f"Requesting approval for {len(destructive)} destructive operations")
        try:
            approved = await self.provider.confirm(request)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            logger.info("Confirmation prompt cancelled")
            return False
        except Exception as e:
            logger.warning(f"Confirmation provider failed, treating as denial: {e}")
            return False
        return bool(approved)
