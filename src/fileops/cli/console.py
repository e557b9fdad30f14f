"""Terminal implementations of the execution capabilities, built on Rich."""

import asyncio
import logging
import os
import platform
import sys

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table
from rich.tree import Tree

from fileops.cli.constants import NOTIFICATION_STYLES
from fileops.execution.capabilities import (
    ConfirmationRequest,
    ConfirmationType,
    Notification,
)
from fileops.operations.schema import FileOperation, OperationKind
from fileops.workspace.store import Workspace
from fileops.workspace.tree import TreeNode

logger = logging.getLogger(__name__)

# Visual symbols
SYMBOL_FOLDER = "▸"
SYMBOL_FOLDER_OPEN = "▾"
SYMBOL_DETAIL = "→"

KIND_STYLES = {
    OperationKind.CREATE: "green",
    OperationKind.EDIT: "yellow",
    OperationKind.DELETE: "red",
}


def get_console() -> Console:
    """Create Rich console with proper encoding for Windows.

    On Windows in non-interactive mode (subprocess, pipe, etc.), the default
    encoding is often CP1252 which cannot handle Unicode characters. This
    function forces UTF-8 in that case.

    Returns:
        Console: Configured Rich console instance
    """
    if platform.system() == "Windows" and not sys.stdout.isatty():
        try:
            import locale

            encoding = locale.getpreferredencoding() or ""
            if "utf" not in encoding.lower():
                os.environ["PYTHONIOENCODING"] = "utf-8"
                return Console(force_terminal=True, legacy_windows=False)
            return Console()
        except Exception:
            return Console(legacy_windows=True, safe_box=True)
    return Console()


class RichNotifier:
    """Prints notifications to the console."""

    def __init__(self, console: Console):
        self.console = console

    def notify(self, notification: Notification) -> None:
        style = NOTIFICATION_STYLES.get(notification.level.value, "white")
        self.console.print(f"[{style}]{notification.message}[/{style}]")
        for detail in notification.details:
            self.console.print(f"  [dim]{SYMBOL_DETAIL} {detail}[/dim]")
        if notification.actions:
            labels = ", ".join(action.label for action in notification.actions)
            self.console.print(f"  [dim]Available: {labels} (fileops undo)[/dim]")

    def refresh(self) -> None:
        # Output is printed as it happens; nothing to redraw
        pass


class RichConfirmationProvider:
    """Asks for approval with a yes/no prompt."""

    def __init__(self, console: Console):
        self.console = console

    async def confirm(self, request: ConfirmationRequest) -> bool:
        style = "red" if request.type is ConfirmationType.DANGER else "yellow"
        self.console.print(f"\n[bold {style}]{request.title}[/bold {style}]")
        for line in request.message.splitlines():
            self.console.print(f"  {line}")
        return await asyncio.to_thread(
            Confirm.ask, "Apply these changes?", console=self.console, default=False
        )


class AutoApprove:
    """Approves every request (``--yes``)."""

    async def confirm(self, request: ConfirmationRequest) -> bool:
        logger.info(f"Auto-approving: {request.message}")
        return True


def operations_table(operations: list[FileOperation], title: str | None = None) -> Table:
    """Render operations as a table of kind, path and size."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Operation")
    table.add_column("Path")
    table.add_column("Lines", justify="right")

    for index, op in enumerate(operations, start=1):
        style = KIND_STYLES[op.kind]
        lines = "" if op.content is None else str(len(op.content.splitlines()))
        table.add_row(str(index), f"[{style}]{op.kind.value}[/{style}]", op.path, lines)
    return table


def workspace_tree(workspace: Workspace, expand_all: bool = True) -> Tree:
    """Render the workspace folder tree.

    Args:
        workspace: Workspace to render
        expand_all: Show every folder's children regardless of expansion state
    """
    label = workspace.name or "workspace"
    tree = Tree(f"[bold]{label}[/bold]")
    root = workspace.tree
    if root is not None:
        _add_children(tree, root, expand_all)
    return tree


def _add_children(parent: Tree, node: TreeNode, expand_all: bool) -> None:
    children = sorted(node.children.values(), key=lambda n: (not n.is_dir, n.name.lower()))
    for child in children:
        if child.is_dir:
            is_open = expand_all or child.expanded
            symbol = SYMBOL_FOLDER_OPEN if is_open else SYMBOL_FOLDER
            branch = parent.add(f"[bold blue]{symbol} {child.name}/[/bold blue]")
            if is_open:
                _add_children(branch, child, expand_all)
        else:
            if child.file is not None and not child.file.loaded:
                parent.add(f"{child.name} [dim](not loaded)[/dim]")
                continue
            tokens = child.file.estimated_tokens if child.file is not None else 0
            parent.add(f"{child.name} [dim]~{tokens} tokens[/dim]")
