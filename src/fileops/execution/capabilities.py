"""Capability interfaces consumed by the execution pipeline.

The orchestrator depends only on these protocols, never on concrete UI
classes. Terminal implementations live in ``fileops.cli.console``; tests use
in-memory fakes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from fileops.workspace.store import WorkspaceFile


class NotificationLevel(str, Enum):
    """Severity of a user notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ConfirmationType(str, Enum):
    """Visual weight of a confirmation prompt."""

    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class ConfirmationRequest:
    """What the user is asked to approve."""

    title: str
    message: str
    type: ConfirmationType = ConfirmationType.WARNING
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class NotificationAction:
    """An action offered alongside a notification (e.g. undo)."""

    label: str
    name: str


@dataclass(frozen=True)
class Notification:
    """A message for the user.

    Attributes:
        level: Severity
        message: One-line summary
        details: Expandable detail lines (e.g. per-operation failures)
        actions: Actions offered to the user
    """

    level: NotificationLevel
    message: str
    details: tuple[str, ...] = ()
    actions: tuple[NotificationAction, ...] = field(default_factory=tuple)


@runtime_checkable
class WorkspaceMutator(Protocol):
    """Mutation surface of the workspace used by the orchestrator."""

    def get_by_path(self, path: str) -> WorkspaceFile | None: ...

    def exists(self, path: str) -> bool: ...

    def create(self, path: str, content: str) -> WorkspaceFile: ...

    def update(self, path: str, content: str) -> WorkspaceFile: ...

    def delete(self, path: str) -> WorkspaceFile: ...

    def invalidate_tree(self) -> None: ...


class ConfirmationProvider(Protocol):
    """Asks the user to approve destructive operations.

    Returning False, or raising ``asyncio.CancelledError``, means denial.
    """

    async def confirm(self, request: ConfirmationRequest) -> bool: ...


class Notifier(Protocol):
    """Delivers notifications and refresh requests to the UI."""

    def notify(self, notification: Notification) -> None: ...

    def refresh(self) -> None: ...


class EditorSync(Protocol):
    """Keeps open editor views in step with workspace changes."""

    def is_open(self, path: str) -> bool: ...

    def reload(self, path: str) -> None: ...

    def close(self, path: str) -> None: ...


class NullNotifier:
    """Notifier that discards everything."""

    def notify(self, notification: Notification) -> None:
        pass

    def refresh(self) -> None:
        pass


class NullEditorSync:
    """Editor sync for headless use: no views are ever open."""

    def is_open(self, path: str) -> bool:
        return False

    def reload(self, path: str) -> None:
        pass

    def close(self, path: str) -> None:
        pass

