"""Hierarchical view over the flat workspace file list.

The tree is derived data: the workspace rebuilds it from its path index on
the first read after a mutation. Only folder expansion state is carried
across rebuilds and through serialization.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fileops.workspace.store import WorkspaceFile

ROOT_LEVEL = -1


@dataclass
class TreeNode:
    """Node in the workspace tree.

    Attributes:
        name: Final path segment ("root" for the root node)
        path: Full workspace path ("" for the root node)
        is_dir: True for folders
        file: Backing workspace file for leaf nodes
        children: Child nodes keyed by name
        expanded: Folder expansion state
        level: Depth, -1 for the root
    """

    name: str
    path: str
    is_dir: bool
    file: "WorkspaceFile | None" = None
    children: dict[str, "TreeNode"] = field(default_factory=dict)
    expanded: bool = False
    level: int = ROOT_LEVEL


def build_tree(
    files: "list[WorkspaceFile]", expanded: set[str] | None = None
) -> TreeNode | None:
    """Build a tree from workspace files.

    Args:
        files: Workspace files in display order
        expanded: Folder paths that should start expanded

    Returns:
        Root node, or None when there are no files
    """
    if not files:
        return None

    expanded = expanded or set()
    root = TreeNode(name="root", path="", is_dir=True, expanded=True, level=ROOT_LEVEL)

    for wf in files:
        parts = [part for part in wf.path.split("/") if part]
        node = root
        current = ""
        for index, part in enumerate(parts):
            current = f"{current}/{part}" if current else part
            is_last = index == len(parts) - 1
            is_dir = wf.is_dir or not is_last
            child = node.children.get(part)
            if child is None:
                child = TreeNode(
                    name=part,
                    path=current,
                    is_dir=is_dir,
                    expanded=current in expanded,
                    level=index,
                )
                node.children[part] = child
            if is_last and not wf.is_dir:
                child.file = wf
            node = child

    return root


def _sort_key(node: TreeNode) -> tuple[bool, str]:
    # Directories first, then case-insensitive name order
    return (not node.is_dir, node.name.lower())


def flatten_tree(root: TreeNode) -> list[TreeNode]:
    """Flatten the visible part of a tree for display.

    The root itself is skipped; children of collapsed folders are hidden.
    """
    result: list[TreeNode] = []

    def visit(node: TreeNode) -> None:
        if node.level >= 0:
            result.append(node)
        if node.expanded or node.level < 0:
            for child in sorted(node.children.values(), key=_sort_key):
                visit(child)

    visit(root)
    return result


def find_node(root: TreeNode, path: str) -> TreeNode | None:
    """Find the node with the given path."""
    if root.path == path:
        return root
    for child in root.children.values():
        found = find_node(child, path)
        if found is not None:
            return found
    return None


def expanded_paths(root: TreeNode | None) -> set[str]:
    """Collect paths of expanded folders (the root is excluded)."""
    if root is None:
        return set()
    paths: set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_dir and node.expanded and node.level >= 0:
            paths.add(node.path)
        stack.extend(node.children.values())
    return paths


def serialize_tree(node: TreeNode) -> dict[str, Any]:
    """Serialize a tree to plain dicts (file references are dropped)."""
    return {
        "name": node.name,
        "path": node.path,
        "is_dir": node.is_dir,
        "expanded": node.expanded,
        "level": node.level,
        "children": [serialize_tree(child) for child in node.children.values()],
    }


def deserialize_tree(data: dict[str, Any]) -> TreeNode:
    """Rebuild a tree from its serialized form.

    Raises:
        KeyError: If a node is missing a required field
    """
    node = TreeNode(
        name=data["name"],
        path=data["path"],
        is_dir=bool(data["is_dir"]),
        expanded=bool(data.get("expanded", False)),
        level=int(data.get("level", ROOT_LEVEL)),
    )
    for child in data.get("children", []):
        child_node = deserialize_tree(child)
        node.children[child_node.name] = child_node
    return node
