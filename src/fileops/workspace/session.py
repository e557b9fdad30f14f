"""Workspace session persistence.

Saves and loads workspace snapshots as JSON so that a workspace (or the
pending undo backup) survives between invocations.
"""

import json
import logging
import time
from pathlib import Path

from fileops.config.constants import DEFAULT_SESSION_MAX_AGE_DAYS
from fileops.workspace.backup import BackupSnapshot

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class WorkspaceSessionStore:
    """Manage one persisted workspace snapshot.

    Sessions older than ``max_age_days`` are discarded on load. Unreadable
    session files are removed and treated as absent.

    Example:
        >>> store = WorkspaceSessionStore(Path("~/.fileops/session.json").expanduser())
        >>> store.save(workspace.snapshot())
        >>> snapshot = store.load()
    """

    def __init__(self, path: Path, max_age_days: int = DEFAULT_SESSION_MAX_AGE_DAYS):
        """Initialize session store.

        Args:
            path: JSON file holding the session
            max_age_days: Sessions older than this are discarded on load
        """
        self.path = Path(path)
        self.max_age_days = max_age_days

    def save(self, snapshot: BackupSnapshot, keep_empty: bool = False) -> None:
        """Persist a snapshot; an empty snapshot removes the session instead.

        Args:
            snapshot: Snapshot to persist
            keep_empty: Persist even a snapshot with no files (undo backups)

        Raises:
            OSError: If the session file cannot be written
        """
        if not snapshot.files and not keep_empty:
            self.clear()
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save workspace session: {e}")
            raise
        logger.debug(f"Saved workspace session with {len(snapshot.files)} files to {self.path}")

    def load(self) -> BackupSnapshot | None:
        """Load the persisted snapshot.

        Returns:
            Snapshot, or None when absent, expired or unreadable
        """
        if not self.path.exists():
            logger.debug(f"No saved workspace session at {self.path}")
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                snapshot = BackupSnapshot.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load workspace session, discarding it: {e}")
            self.clear()
            return None

        max_age = self.max_age_days * SECONDS_PER_DAY
        if snapshot.timestamp < time.time() - max_age:
            logger.info("Workspace session too old, removing")
            self.clear()
            return None

        return snapshot

    def clear(self) -> None:
        """Remove the persisted session, if any."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove workspace session {self.path}: {e}")
