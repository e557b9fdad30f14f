"""Workspace path rules.

All workspace paths use forward slashes, never begin with a separator and
never contain a parent-directory segment. The same rules apply to imported
files and to files created by operations.
"""

import logging
import posixpath

from fileops.exceptions import UnsafePathError

logger = logging.getLogger(__name__)

# Characters stripped from both ends of an extracted path candidate
_WRAPPING_CHARS = " \t\r\n\"'`*<>"
_TRAILING_PUNCTUATION = ".,:;!?)"


def path_issues(path: object) -> list[str]:
    """List the reasons a path violates the workspace naming rule.

    Args:
        path: Candidate path (any type; non-strings are reported)

    Returns:
        Empty list when the path is acceptable

    Example:
        >>> path_issues("src/app.py")
        []
        >>> path_issues("../etc/passwd")
        ["path contains a parent-directory segment: '../etc/passwd'"]
    """
    if not isinstance(path, str):
        return [f"path must be a string, got {type(path).__name__}"]
    if not path.strip():
        return ["path is empty"]

    issues: list[str] = []
    if "\\" in path:
        issues.append(f"path contains a backslash: {path!r}")
    if path.startswith("/"):
        issues.append(f"path is absolute: {path!r}")
    if ".." in path.replace("\\", "/").split("/"):
        issues.append(f"path contains a parent-directory segment: {path!r}")
    return issues


def is_safe_path(path: object) -> bool:
    """Return True when the path satisfies the workspace naming rule."""
    return not path_issues(path)


def has_extension(path: str) -> bool:
    """Return True when the final path segment carries a dot-extension.

    Example:
        >>> has_extension("src/app.py")
        True
        >>> has_extension("Makefile")
        False
    """
    name = posixpath.basename(path)
    _, dot, ext = name.rpartition(".")
    return bool(dot) and bool(ext)


def split_extension(path: str) -> tuple[str, str]:
    """Split a path into stem and extension (extension includes the dot).

    Dotfiles such as ``.env`` have no stem split: the whole name is the stem.
    """
    directory, name = posixpath.split(path)
    stem, ext = posixpath.splitext(name)
    return posixpath.join(directory, stem) if directory else stem, ext


def clean_candidate_path(raw: str) -> str:
    """Strip quoting, markdown emphasis and trailing punctuation from a path.

    Example:
        >>> clean_candidate_path(' "`./src/app.py`". ')
        'src/app.py'
    """
    path = raw.strip(_WRAPPING_CHARS)
    while path and path[-1] in _TRAILING_PUNCTUATION:
        path = path[:-1].rstrip(_WRAPPING_CHARS)
    path = path.strip(_WRAPPING_CHARS)
    while path.startswith("./"):
        path = path[2:]
    return path


def accept_candidate_path(raw: str) -> str | None:
    """Clean an extracted path and decide whether the parser may keep it.

    Candidates that are empty after cleanup, unsafe, or lack an extension are
    rejected. Rejection is silent for callers; it is only logged at debug
    level.

    Returns:
        Cleaned path, or None when the candidate is rejected
    """
    path = clean_candidate_path(raw)
    if not path:
        logger.debug(f"Rejected empty path candidate: {raw!r}")
        return None
    if path_issues(path):
        logger.debug(f"Rejected unsafe path candidate: {raw!r}")
        return None
    if not has_extension(path):
        logger.debug(f"Rejected path candidate without extension: {raw!r}")
        return None
    return path


def normalize_workspace_path(path: str) -> str:
    """Normalize a path for storage in the workspace.

    Removes leading ``./`` segments and redundant slashes, then enforces the
    workspace naming rule.

    Raises:
        UnsafePathError: If the path is empty, absolute, uses backslashes or
            contains a parent-directory segment
    """
    issues = path_issues(path)
    if issues:
        raise UnsafePathError(str(path), "; ".join(issues))
    parts = [part for part in path.strip().split("/") if part not in ("", ".")]
    if not parts:
        raise UnsafePathError(path, f"path is empty: {path!r}")
    return "/".join(parts)
