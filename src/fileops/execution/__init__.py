"""Confirmation gate, batch reports and the execution orchestrator."""

from fileops.execution.capabilities import (
    ConfirmationProvider,
    ConfirmationRequest,
    ConfirmationType,
    EditorSync,
    Notification,
    NotificationLevel,
    Notifier,
)
from fileops.execution.gate import ConfirmationGate, destructive_operations
from fileops.execution.orchestrator import BatchReport, BatchState, ExecutionOrchestrator
from fileops.execution.report import AppliedOperation, ExecutionResult, OperationFailure

__all__ = [
    "AppliedOperation",
    "BatchReport",
    "BatchState",
    "ConfirmationGate",
    "ConfirmationProvider",
    "ConfirmationRequest",
    "ConfirmationType",
    "EditorSync",
    "ExecutionOrchestrator",
    "ExecutionResult",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "OperationFailure",
    "destructive_operations",
]
