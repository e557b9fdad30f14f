"""Workspace store, derived tree, backups and session persistence."""

from fileops.workspace.backup import BackupManager, BackupSnapshot
from fileops.workspace.session import WorkspaceSessionStore
from fileops.workspace.store import Workspace, WorkspaceFile
from fileops.workspace.tree import TreeNode

__all__ = [
    "BackupManager",
    "BackupSnapshot",
    "TreeNode",
    "Workspace",
    "WorkspaceFile",
    "WorkspaceSessionStore",
]
