"""Unit tests for fileops.workspace.backup module."""

import pytest

from fileops.exceptions import UndoError
from fileops.workspace.backup import BackupManager, BackupSnapshot
from tests.helpers.builders import workspace_texts


@pytest.mark.unit
@pytest.mark.workspace
class TestBackupSnapshot:
    """Tests for snapshot serialization."""

    def test_dict_round_trip(self, workspace):
        """Test a snapshot survives to_dict/from_dict."""
        snapshot = workspace.snapshot()
        restored = BackupSnapshot.from_dict(snapshot.to_dict())
        assert restored == snapshot

    @pytest.mark.parametrize("data", [[], {"name": "x"}, {"files": "nope"}])
    def test_from_dict_rejects_bad_shape(self, data):
        """Test data without a files list is rejected."""
        with pytest.raises(ValueError):
            BackupSnapshot.from_dict(data)


@pytest.mark.unit
@pytest.mark.workspace
class TestBackupManager:
    """Tests for the single-slot backup manager."""

    def test_no_backup(self, workspace):
        """Test restoring without a snapshot raises UndoError."""
        backups = BackupManager()
        assert not backups.has_backup
        with pytest.raises(UndoError, match="No backup"):
            backups.restore(workspace)

    def test_restore_consumes(self, workspace):
        """Test a snapshot can be restored exactly once."""
        original = workspace_texts(workspace)
        backups = BackupManager()
        backups.snapshot(workspace)
        workspace.delete("README.md")

        backups.restore(workspace)
        assert workspace_texts(workspace) == original
        assert not backups.has_backup
        with pytest.raises(UndoError):
            backups.restore(workspace)

    def test_new_snapshot_replaces_old(self, workspace):
        """Test only the most recent snapshot is kept."""
        backups = BackupManager()
        backups.snapshot(workspace)
        workspace.create("first.txt", "1")
        after_first = workspace_texts(workspace)

        backups.snapshot(workspace)
        workspace.create("second.txt", "2")
        backups.restore(workspace)

        assert workspace_texts(workspace) == after_first

    def test_corrupted_snapshot_is_discarded(self, workspace):
        """Test a corrupted snapshot raises, is consumed and changes nothing."""
        before = workspace_texts(workspace)
        backups = BackupManager()
        backups.adopt(BackupSnapshot(name=None, files=[{"path": "/abs.txt", "name": "abs.txt"}]))

        with pytest.raises(UndoError):
            backups.restore(workspace)
        assert not backups.has_backup
        assert workspace_texts(workspace) == before

    def test_clear(self, workspace):
        """Test clear drops the pending snapshot."""
        backups = BackupManager()
        backups.snapshot(workspace)
        backups.clear()
        assert backups.pending is None
