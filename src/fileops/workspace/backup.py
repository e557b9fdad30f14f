"""Single-slot backup and undo for workspace batches.

A snapshot is taken right before a batch mutates the workspace. Only the most
recent batch is reversible: a new snapshot silently replaces an unconsumed
one, and a restore consumes it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fileops.exceptions import UndoError

if TYPE_CHECKING:
    from fileops.workspace.store import Workspace

logger = logging.getLogger(__name__)


@dataclass
class BackupSnapshot:
    """Point-in-time copy of workspace state.

    Attributes:
        name: Workspace name
        files: Serialized file records (independent of the live workspace)
        tree: Serialized folder tree, or None for an empty workspace
        timestamp: Seconds since the epoch when the snapshot was taken
    """

    name: str | None
    files: list[dict[str, Any]] = field(default_factory=list)
    tree: dict[str, Any] | None = None
    timestamp: float = 0.0

    @property
    def paths(self) -> list[str]:
        """Paths recorded in the snapshot."""
        return [record.get("path", "") for record in self.files if isinstance(record, dict)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON persistence."""
        return {
            "name": self.name,
            "files": self.files,
            "tree": self.tree,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupSnapshot":
        """Deserialize from JSON data.

        Raises:
            ValueError: If the data is not shaped like a snapshot
        """
        if not isinstance(data, dict) or not isinstance(data.get("files"), list):
            raise ValueError("Snapshot data must be an object with a 'files' list")
        return cls(
            name=data.get("name"),
            files=data["files"],
            tree=data.get("tree"),
            timestamp=float(data.get("timestamp", 0.0)),
        )


class BackupManager:
    """Holds at most one pending snapshot for undo.

    Example:
        >>> backups = BackupManager()
        >>> backups.snapshot(workspace)
        >>> # ... apply a batch ...
        >>> backups.restore(workspace)
        >>> backups.has_backup
        False
    """

    def __init__(self) -> None:
        self._pending: BackupSnapshot | None = None

    @property
    def has_backup(self) -> bool:
        """True when an undo is available."""
        return self._pending is not None

    @property
    def pending(self) -> BackupSnapshot | None:
        """The pending snapshot, if any."""
        return self._pending

    def snapshot(self, workspace: "Workspace") -> BackupSnapshot:
        """Capture the workspace, replacing any unconsumed snapshot."""
        if self._pending is not None:
            logger.debug("Discarding unconsumed backup in favour of a new snapshot")
        self._pending = workspace.snapshot()
        logger.debug(
            f"Backup taken at {datetime.fromtimestamp(self._pending.timestamp).isoformat()} "
            f"with {len(self._pending.files)} files"
        )
        return self._pending

    def adopt(self, snapshot: BackupSnapshot) -> None:
        """Install a snapshot loaded from storage as the pending backup."""
        self._pending = snapshot

    def restore(self, workspace: "Workspace") -> BackupSnapshot:
        """Restore the pending snapshot and consume it.

        Raises:
            UndoError: If no backup is pending or the snapshot is corrupted.
                A corrupted snapshot is discarded; the workspace is untouched.
        """
        snapshot = self._pending
        if snapshot is None:
            raise UndoError("No backup available to restore")
        # Single use, whether or not the restore succeeds
        self._pending = None
        workspace.restore(snapshot)
        logger.info(f"Undo restored {len(snapshot.files)} files")
        return snapshot

    def clear(self) -> None:
        """Drop the pending snapshot."""
        self._pending = None
