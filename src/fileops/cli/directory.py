"""Bridge between an on-disk directory and the in-memory workspace.

The engine itself never touches the filesystem. The CLI loads a directory
into a Workspace, lets a batch run against it, then writes the result back.
"""

import logging
from pathlib import Path

from fileops.config.constants import BACKUP_FILENAME
from fileops.config.schema import FileOpsSettings
from fileops.exceptions import UnsafePathError, WorkspaceError
from fileops.workspace.session import WorkspaceSessionStore
from fileops.workspace.store import Workspace, WorkspaceFile

logger = logging.getLogger(__name__)

SKIPPED_DIRS = frozenset(
    {".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv", ".mypy_cache"}
)


def _is_skipped(relative: Path) -> bool:
    return any(part in SKIPPED_DIRS or part.startswith(".") for part in relative.parts[:-1])


def load_directory(root: Path, max_file_bytes: int) -> Workspace:
    """Load every readable text file under ``root`` into a workspace.

    Hidden and tool directories are skipped. Files larger than
    ``max_file_bytes``, files that are not valid UTF-8 and symlinks are
    registered as placeholders without content, so operations see them as
    existing but can never overwrite, edit or delete them.

    Raises:
        WorkspaceError: If root is not a directory
    """
    root = root.resolve()
    if not root.is_dir():
        raise WorkspaceError(str(root), f"Workspace root is not a directory: {root}")

    files: list[WorkspaceFile] = []
    for path in sorted(root.rglob("*")):
        relative = path.relative_to(root)
        if _is_skipped(relative):
            continue
        if path.is_symlink():
            logger.debug(f"Not loading symlink {relative}")
            files.append(WorkspaceFile.placeholder(relative.as_posix()))
            continue
        if not path.is_file():
            continue
        size = path.stat().st_size
        if size > max_file_bytes:
            logger.debug(f"Not loading large file {relative}")
            files.append(WorkspaceFile.placeholder(relative.as_posix(), size))
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as e:
            logger.debug(f"Not loading unreadable file {relative}: {e}")
            files.append(WorkspaceFile.placeholder(relative.as_posix(), size))
            continue
        files.append(WorkspaceFile.from_text(relative.as_posix(), text))

    logger.info(f"Loaded {len(files)} files from {root}")
    return Workspace(name=str(root), files=files)


def _target(root: Path, relative_path: str) -> Path:
    """Resolve a workspace path under root, refusing anything outside it."""
    target = (root / relative_path).resolve()
    if not target.is_relative_to(root):
        raise UnsafePathError(relative_path, f"Path resolves outside workspace: {relative_path}")
    return target


def write_directory(root: Path, workspace: Workspace, previous_paths: set[str]) -> list[str]:
    """Write workspace content back to disk.

    Files whose content changed are rewritten, files in ``previous_paths`` that
    are no longer in the workspace are removed, along with any directories
    left empty by the removal. Every target is checked before anything is
    written.

    Returns:
        Paths written or removed

    Raises:
        UnsafePathError: If a path resolves outside root
        WorkspaceError: If a new file would replace something on disk that was
            never loaded (e.g. a file inside a skipped directory)
    """
    root = root.resolve()
    writes: list[tuple[str, Path, bytes]] = []

    for wf in workspace.files:
        if not wf.loaded or wf.is_dir:
            continue
        target = _target(root, wf.path)
        data = wf.text.encode("utf-8")
        if target.is_file() and target.read_bytes() == data:
            continue
        if wf.path not in previous_paths and target.exists():
            raise WorkspaceError(
                wf.path, f"Refusing to replace {wf.path}: it exists on disk but was not loaded"
            )
        writes.append((wf.path, target, data))

    changed: list[str] = []
    for path, target, data in writes:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug(f"Wrote {path}")
        changed.append(path)

    for path in sorted(previous_paths - set(workspace.paths())):
        target = _target(root, path)
        if target.is_file():
            target.unlink()
            logger.debug(f"Removed {path}")
            changed.append(path)
        _prune_empty_dirs(target.parent, root)

    return changed


def _prune_empty_dirs(directory: Path, root: Path) -> None:
    while directory != root and directory.is_relative_to(root):
        if not directory.is_dir() or any(directory.iterdir()):
            return
        directory.rmdir()
        directory = directory.parent


def backup_store(settings: FileOpsSettings) -> WorkspaceSessionStore:
    """Store holding the pending undo backup between invocations."""
    data_dir = Path(settings.session.data_dir)
    return WorkspaceSessionStore(
        data_dir / BACKUP_FILENAME, max_age_days=settings.session.max_age_days
    )
