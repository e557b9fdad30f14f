"""CLI entry point for fileops."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer

from fileops import __version__
from fileops.cli.constants import ExitCodes
from fileops.cli.console import (
    AutoApprove,
    RichConfirmationProvider,
    RichNotifier,
    get_console,
    operations_table,
    workspace_tree,
)
from fileops.cli.directory import backup_store, load_directory, write_directory
from fileops.config import (
    ConfigurationError,
    FileOpsSettings,
    get_config_path,
    load_config,
    save_config,
)
from fileops.exceptions import OperationValidationError, WorkspaceError
from fileops.execution.gate import destructive_operations
from fileops.execution.orchestrator import BatchState, ExecutionOrchestrator
from fileops.operations.parser import parse_response
from fileops.operations.schema import OperationsPayload
from fileops.operations.validator import validate_operations
from fileops.workspace.store import Workspace

app = typer.Typer(help="fileops - Apply file operations from AI model responses")

console = get_console()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: FileOpsSettings, verbose: bool = False) -> Path:
    """Send log records to a file under the data directory.

    Args:
        settings: Loaded settings (log level and data directory)
        verbose: Force DEBUG level

    Returns:
        Path to the log file
    """
    log_dir = Path(settings.session.data_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "fileops.log"

    level_name = "DEBUG" if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        filename=str(log_file),
        filemode="a",
        force=True,
    )
    return log_file


def _settings(ctx: typer.Context) -> FileOpsSettings:
    if isinstance(ctx.obj, FileOpsSettings):
        return ctx.obj
    return FileOpsSettings()


def _read_response(response_file: Path) -> str:
    """Read a response from a file, or from stdin when the path is ``-``."""
    if str(response_file) == "-":
        return sys.stdin.read()
    try:
        return response_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read response file {response_file}:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


def _load_workspace(root: Path, settings: FileOpsSettings) -> Workspace:
    try:
        return load_directory(root, settings.execution.max_content_bytes)
    except WorkspaceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", help="Write debug logs"),
) -> None:
    """fileops - extract, validate and apply file operations from AI responses.

    \b
    Examples:
        fileops parse response.md                    # Show operations found in a response
        fileops parse response.md --json             # Same, as JSON
        fileops apply response.md -w ./project       # Apply with confirmation
        fileops apply response.md -w . --dry-run     # Validate without writing
        fileops undo -w ./project                    # Revert the last applied batch
        fileops tree -w ./project                    # Show workspace and context selection
    """
    if version_flag:
        console.print(f"fileops version {__version__}")
        raise typer.Exit()

    try:
        settings = load_config()
    except ConfigurationError as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    log_file = setup_logging(settings, verbose=verbose)
    logger.debug(f"fileops {__version__} logging to {log_file}")
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def parse(
    ctx: typer.Context,
    response_file: Path = typer.Argument(..., help="Response text file, or - for stdin"),
    json_output: bool = typer.Option(False, "--json", help="Print operations as JSON"),
) -> None:
    """Show the file operations recovered from a response."""
    settings = _settings(ctx)
    result = parse_response(_read_response(response_file), settings.parser)

    if json_output:
        payload = {
            "strategy": result.strategy,
            "operations": [op.model_dump(mode="json") for op in result.operations],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    if not result:
        console.print("[yellow]No file operations found[/yellow]")
        return
    console.print(
        operations_table(
            list(result.operations),
            title=f"{len(result.operations)} operation(s) via {result.strategy}",
        )
    )


@app.command()
def apply(
    ctx: typer.Context,
    response_file: Path = typer.Argument(..., help="Response text file, or - for stdin"),
    workspace: Path = typer.Option(
        Path("."), "--workspace", "-w", file_okay=False, help="Directory to apply changes to"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Approve destructive changes"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without writing"),
) -> None:
    """Apply the file operations in a response to a directory."""
    settings = _settings(ctx)
    text = _read_response(response_file)
    ws = _load_workspace(workspace, settings)

    if dry_run:
        _dry_run(text, ws, settings)
        return

    before = set(ws.paths())
    confirmation = AutoApprove() if yes else RichConfirmationProvider(console)
    orchestrator = ExecutionOrchestrator(
        ws, confirmation=confirmation, notifier=RichNotifier(console), settings=settings
    )
    try:
        report = asyncio.run(orchestrator.run(text))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted; no changes were made[/yellow]")
        raise typer.Exit(ExitCodes.INTERRUPTED)

    if report.state is BatchState.EMPTY:
        console.print("[yellow]No file operations found in response[/yellow]")
        return
    if report.state is BatchState.FAILED:
        raise typer.Exit(ExitCodes.REJECTED)
    if report.state is BatchState.CANCELLED:
        raise typer.Exit(ExitCodes.CANCELLED)

    snapshot = orchestrator.backups.pending
    if snapshot is not None:
        try:
            backup_store(settings).save(snapshot, keep_empty=True)
        except OSError as e:
            console.print(f"[yellow]Could not save undo backup:[/yellow] {e}")

    try:
        changed = write_directory(workspace, ws, before)
    except (OSError, WorkspaceError) as e:
        logger.error(f"Failed writing workspace: {e}")
        console.print(f"[red]Failed writing changes to {workspace}:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    logger.info(f"Wrote {len(changed)} path(s) to {workspace}")

    if report.result is not None and report.result.failed:
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


def _dry_run(text: str, ws: Workspace, settings: FileOpsSettings) -> None:
    result = parse_response(text, settings.parser)
    if not result:
        console.print("[yellow]No file operations found in response[/yellow]")
        return

    console.print(
        operations_table(list(result.operations), title=f"Dry run via {result.strategy}")
    )
    try:
        batch = validate_operations(
            result.operations, max_content_bytes=settings.execution.max_content_bytes
        )
    except OperationValidationError as e:
        console.print("[red]Batch would be rejected:[/red]")
        for issue in e.issues:
            console.print(f"  • {issue}")
        raise typer.Exit(ExitCodes.REJECTED)

    destructive = destructive_operations(batch, ws)
    if destructive:
        console.print("[yellow]Confirmation required for:[/yellow]")
        for op in destructive:
            console.print(f"  • {op.describe()}")
    console.print("[green]Batch is valid; no changes written[/green]")


@app.command()
def undo(
    ctx: typer.Context,
    workspace: Path = typer.Option(
        Path("."), "--workspace", "-w", file_okay=False, help="Directory to restore"
    ),
) -> None:
    """Revert the last batch applied to a directory."""
    settings = _settings(ctx)
    root = workspace.resolve()
    store = backup_store(settings)
    snapshot = store.load()
    if snapshot is None or snapshot.name != str(root):
        console.print(f"[yellow]No backup available for {root}[/yellow]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    ws = _load_workspace(root, settings)
    before = set(ws.paths())
    orchestrator = ExecutionOrchestrator(
        ws, confirmation=AutoApprove(), notifier=RichNotifier(console), settings=settings
    )
    orchestrator.backups.adopt(snapshot)
    restored = orchestrator.undo()
    store.clear()
    if not restored:
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    try:
        write_directory(root, ws, before)
    except (OSError, WorkspaceError) as e:
        console.print(f"[red]Failed writing restored files to {root}:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


@app.command()
def tree(
    ctx: typer.Context,
    workspace: Path = typer.Option(
        Path("."), "--workspace", "-w", file_okay=False, help="Directory to show"
    ),
) -> None:
    """Show the workspace tree and which files fit the context limits."""
    settings = _settings(ctx)
    ws = _load_workspace(workspace, settings)
    limits = settings.context
    ws.apply_selection_limits(
        limits.max_files, limits.max_context_tokens, limits.max_tokens_per_file
    )
    summary = ws.selection_summary(
        limits.max_files, limits.max_context_tokens, limits.max_tokens_per_file
    )

    console.print(workspace_tree(ws))
    console.print(
        f"\n[bold]Context:[/bold] {summary['selected']}/{summary['total']} files, "
        f"~{summary['tokens']} tokens (limit {limits.max_context_tokens})"
    )
    skipped = [wf.path for wf in ws.files if not wf.selected]
    if skipped:
        console.print(f"[dim]Excluded by limits: {', '.join(skipped)}[/dim]")


@app.command()
def schema() -> None:
    """Print the JSON schema of the structured operations payload."""
    typer.echo(json.dumps(OperationsPayload.json_schema_for_model(), indent=2))


config_app = typer.Typer(help="Manage fileops configuration")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show effective configuration."""
    settings = _settings(ctx)
    console.print(f"[bold]Config file:[/bold] {get_config_path()}")
    typer.echo(settings.model_dump_json_pretty())


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    path = get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {path}[/yellow]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    try:
        save_config(FileOpsSettings(), path)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    console.print(f"[green]Wrote default configuration to {path}[/green]")


if __name__ == "__main__":
    app()
