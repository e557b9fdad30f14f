"""In-memory workspace store.

The workspace owns every WorkspaceFile record. It keeps an ordered file list
and a path index in sync, and derives a folder tree on demand. All mutations
go through ``create``, ``update``, ``delete`` or ``restore``.
"""

import copy
import logging
import posixpath
import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from fileops.exceptions import UndoError, UnsafePathError, WorkspaceError
from fileops.operations.paths import normalize_workspace_path, path_issues
from fileops.utils.tokens import estimate_tokens
from fileops.workspace.backup import BackupSnapshot
from fileops.workspace.tree import (
    TreeNode,
    build_tree,
    deserialize_tree,
    expanded_paths,
    find_node,
    flatten_tree,
    serialize_tree,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceFile:
    """A file held in the workspace.

    Attributes:
        path: Unique posix-style key, no leading slash
        name: Final path segment
        is_dir: True for directory entries
        size: UTF-8 byte length of text
        text: File content (None when not loaded)
        selected: Included in model context
        estimated_tokens: Token estimate for text
    """

    path: str
    name: str
    is_dir: bool = False
    size: int = 0
    text: str | None = None
    selected: bool = True
    estimated_tokens: int = 0

    @classmethod
    def from_text(cls, path: str, text: str, selected: bool = True) -> "WorkspaceFile":
        """Create a file record with size and token estimate derived from text."""
        wf = cls(path=path, name=posixpath.basename(path), selected=selected)
        wf.set_text(text)
        return wf

    @classmethod
    def placeholder(cls, path: str, size: int = 0) -> "WorkspaceFile":
        """Record a file that exists but whose content was not loaded.

        Placeholders take part in collision checks but are never written,
        edited or deleted, and are excluded from model context.
        """
        return cls(path=path, name=posixpath.basename(path), size=size, selected=False)

    @property
    def loaded(self) -> bool:
        """True when the record holds file content."""
        return self.is_dir or self.text is not None

    def set_text(self, text: str) -> None:
        """Replace content and recompute derived fields."""
        self.text = text
        self.size = len(text.encode("utf-8"))
        self.estimated_tokens = estimate_tokens(text)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkspaceFile":
        """Deserialize from a plain dict.

        Raises:
            KeyError: If ``path`` is missing
        """
        path = data["path"]
        return cls(
            path=path,
            name=data.get("name") or posixpath.basename(path),
            is_dir=bool(data.get("is_dir", False)),
            size=int(data.get("size", 0)),
            text=data.get("text"),
            selected=bool(data.get("selected", True)),
            estimated_tokens=int(data.get("estimated_tokens", 0)),
        )


class Workspace:
    """Path-keyed in-memory workspace.

    Example:
        >>> ws = Workspace()
        >>> _ = ws.create("src/app.py", "print('hi')")
        >>> ws.exists("src/app.py")
        True
        >>> [node.path for node in ws.visible_nodes()]
        ['src']
    """

    def __init__(self, name: str | None = None, files: Iterable[WorkspaceFile] = ()):
        """Initialize workspace.

        Args:
            name: Optional workspace (root folder) name
            files: Initial file records; paths must be unique
        """
        self.name = name
        self._files: list[WorkspaceFile] = []
        self._by_path: dict[str, WorkspaceFile] = {}
        self._tree: TreeNode | None = None
        self._tree_dirty = True
        self._expanded: set[str] = set()
        self.replace_files(files)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def files(self) -> list[WorkspaceFile]:
        """Files in workspace order (a copy of the list, records are shared)."""
        return list(self._files)

    def paths(self) -> list[str]:
        """Paths in workspace order."""
        return [wf.path for wf in self._files]

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.exists(path)

    @staticmethod
    def _key(path: str) -> str | None:
        try:
            return normalize_workspace_path(path)
        except UnsafePathError:
            return None

    def get_by_path(self, path: str) -> WorkspaceFile | None:
        """Look up a file by path (``./a.txt`` finds ``a.txt``)."""
        key = self._key(path)
        return self._by_path.get(key) if key is not None else None

    def exists(self, path: str) -> bool:
        """Return True when a file with this path exists."""
        key = self._key(path)
        return key is not None and key in self._by_path

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, path: str, content: str) -> WorkspaceFile:
        """Add a new file.

        Raises:
            UnsafePathError: If the path violates the naming rule
            WorkspaceError: If the path already exists
        """
        path = normalize_workspace_path(path)
        if path in self._by_path:
            raise WorkspaceError(path, f"File already exists: {path}")
        wf = WorkspaceFile.from_text(path, content)
        self._files.append(wf)
        self._by_path[path] = wf
        self.invalidate_tree()
        logger.debug(f"Created {path} ({wf.size} bytes)")
        return wf

    def update(self, path: str, content: str) -> WorkspaceFile:
        """Replace the content of an existing file.

        Raises:
            UnsafePathError: If the path violates the naming rule
            WorkspaceError: If the path does not exist or its content was not loaded
        """
        path = normalize_workspace_path(path)
        wf = self._loaded_file(path)
        wf.set_text(content)
        self.invalidate_tree()
        logger.debug(f"Updated {path} ({wf.size} bytes)")
        return wf

    def delete(self, path: str) -> WorkspaceFile:
        """Remove a file.

        Raises:
            UnsafePathError: If the path violates the naming rule
            WorkspaceError: If the path does not exist or its content was not loaded
        """
        path = normalize_workspace_path(path)
        wf = self._loaded_file(path)
        del self._by_path[path]
        self._files.remove(wf)
        self.invalidate_tree()
        logger.debug(f"Deleted {path}")
        return wf

    def _loaded_file(self, path: str) -> WorkspaceFile:
        wf = self._by_path.get(path)
        if wf is None:
            raise WorkspaceError(path, f"File not found: {path}")
        if not wf.loaded:
            raise WorkspaceError(path, f"File content not loaded, refusing to modify: {path}")
        return wf

    def replace_files(self, files: Iterable[WorkspaceFile], name: str | None = None) -> None:
        """Replace all content, e.g. when a folder is imported.

        Files are sorted by path. Paths are normalized to the workspace rule.

        Raises:
            UnsafePathError: If any path violates the naming rule
            WorkspaceError: If two files share a path
        """
        entries: list[WorkspaceFile] = []
        seen: set[str] = set()
        for wf in files:
            normalized = normalize_workspace_path(wf.path)
            if normalized in seen:
                raise WorkspaceError(normalized, f"Duplicate path in workspace: {normalized}")
            seen.add(normalized)
            if normalized != wf.path:
                wf.path = normalized
                wf.name = posixpath.basename(normalized)
            entries.append(wf)
        entries.sort(key=lambda wf: wf.path)

        if name is not None:
            self.name = name
        self._files = entries
        self._by_path = {wf.path: wf for wf in entries}
        self.invalidate_tree()
        if entries:
            logger.info(f"Workspace populated with {len(entries)} files")

    def load_texts(self, texts: dict[str, str], name: str | None = None) -> None:
        """Replace all content from a mapping of path to text."""
        self.replace_files(
            (WorkspaceFile.from_text(path, text) for path, text in texts.items()), name=name
        )

    # ------------------------------------------------------------------
    # Derived tree
    # ------------------------------------------------------------------

    def invalidate_tree(self) -> None:
        """Mark the derived tree stale; it is rebuilt on next read."""
        if self._tree is not None:
            self._expanded = expanded_paths(self._tree)
        self._tree = None
        self._tree_dirty = True

    @property
    def tree_is_stale(self) -> bool:
        """True when the next tree read will rebuild."""
        return self._tree_dirty

    @property
    def tree(self) -> TreeNode | None:
        """Folder tree, rebuilt lazily after mutations."""
        if self._tree_dirty:
            self._tree = build_tree(self._files, self._expanded)
            self._tree_dirty = False
        return self._tree

    def toggle_folder(self, path: str) -> bool:
        """Toggle a folder's expansion state.

        Returns:
            New expansion state, or False when the path is not a folder
        """
        root = self.tree
        node = find_node(root, path) if root is not None else None
        if node is None or not node.is_dir or node.level < 0:
            return False
        node.expanded = not node.expanded
        return node.expanded

    def visible_nodes(self) -> list[TreeNode]:
        """Tree nodes visible with the current expansion state."""
        root = self.tree
        return flatten_tree(root) if root is not None else []

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> BackupSnapshot:
        """Take a deep copy of the workspace state."""
        root = self.tree
        return BackupSnapshot(
            name=self.name,
            files=[copy.deepcopy(wf.to_dict()) for wf in self._files],
            tree=serialize_tree(root) if root is not None else None,
            timestamp=time.time(),
        )

    def restore(self, snapshot: BackupSnapshot) -> None:
        """Replace live content with a snapshot.

        The snapshot is checked completely before anything is replaced, so a
        corrupted snapshot leaves the workspace untouched.

        Raises:
            UndoError: If the snapshot fails integrity checks
        """
        files: list[WorkspaceFile] = []
        seen: set[str] = set()
        try:
            for record in snapshot.files:
                if not isinstance(record, dict):
                    raise UndoError(f"Snapshot record is not a mapping: {record!r}")
                wf = WorkspaceFile.from_dict(copy.deepcopy(record))
                issues = path_issues(wf.path)
                if issues:
                    raise UndoError(f"Snapshot contains an unsafe path: {'; '.join(issues)}")
                if wf.path in seen:
                    raise UndoError(f"Snapshot contains duplicate path: {wf.path}")
                if wf.name != posixpath.basename(wf.path):
                    raise UndoError(f"Snapshot name does not match path: {wf.path}")
                seen.add(wf.path)
                files.append(wf)
            expanded = (
                expanded_paths(deserialize_tree(snapshot.tree)) if snapshot.tree else set()
            )
        except UndoError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise UndoError(f"Snapshot is corrupted: {e}") from e

        self.name = snapshot.name
        self._files = files
        self._by_path = {wf.path: wf for wf in files}
        self._tree = None
        self._tree_dirty = True
        self._expanded = expanded
        logger.info(f"Workspace restored to snapshot with {len(files)} files")

    # ------------------------------------------------------------------
    # Context selection
    # ------------------------------------------------------------------

    def apply_selection_limits(
        self, max_files: int, max_context_tokens: int, max_tokens_per_file: int
    ) -> list[str]:
        """Deselect files beyond the file cap and the token budget.

        Selected files are kept in workspace order up to ``max_files``; the
        remainder are then kept while the running total, charging each file
        ``min(estimated_tokens, max_tokens_per_file)``, fits the budget.

        Returns:
            Paths still selected
        """
        selected = [wf for wf in self._files if wf.selected]
        for wf in selected[max_files:]:
            wf.selected = False

        used = 0
        for wf in selected[:max_files]:
            cost = min(wf.estimated_tokens, max_tokens_per_file)
            if used + cost <= max_context_tokens:
                used += cost
            else:
                wf.selected = False

        return [wf.path for wf in self._files if wf.selected]

    def selection_summary(
        self, max_files: int, max_context_tokens: int, max_tokens_per_file: int
    ) -> dict[str, Any]:
        """Summarize the current context selection against the limits."""
        selected = [wf for wf in self._files if wf.selected]
        tokens = sum(min(wf.estimated_tokens, max_tokens_per_file) for wf in selected)
        return {
            "selected": len(selected),
            "total": len(self._files),
            "tokens": tokens,
            "exceeds_file_limit": len(selected) > max_files,
            "exceeds_token_budget": tokens > max_context_tokens,
        }
