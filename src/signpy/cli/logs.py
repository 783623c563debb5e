"""
Command group of logs-related commands for the signpy CLI
"""

import typer
import shutil
import time
from rich.console import Console
from typing_extensions import Annotated


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="View and manage logs",
)


@app.command()
def show(
    ctx: typer.Context,
    lines: Annotated[int, typer.Option("--lines", "-n", help="Number of lines to show")] = 50,
):
    """Show recent log entries from the refresh service"""

    log_file = ctx.obj.get("logs_dir") / "signpy.log"

    if not log_file.exists():
        console.print("[yellow]No log file found[/]")
        return

    try:
        with open(log_file, "r", encoding="utf-8") as f:
            last_lines = f.readlines()[-lines:]

        console.print(f"[bold]Last {lines} lines:[/]")
        for line in last_lines:
            console.print(line.rstrip(), markup=False)

    except Exception as e:
        console.print(f"[red]Error reading log file:[/] {str(e)}")


@app.command()
def clear(
    ctx: typer.Context
):
    """Clear the log file, keeping a backup"""

    logs_dir = ctx.obj.get("logs_dir")
    log_file = logs_dir / "signpy.log"

    if not log_file.exists():
        console.print("[yellow]No log file found[/]")
        return

    try:
        # Create backup of current log
        backup_file = logs_dir / f"signpy.log.{int(time.time())}.bak"
        shutil.copy2(log_file, backup_file)

        # Clear the log file
        with open(log_file, "w") as f:
            f.write("")

        console.print("[green]Log file cleared successfully[/]")
        console.print(f"[dim]Backup created at: {backup_file}[/]")

    except Exception as e:
        console.print(f"[red]Error clearing log file:[/] {str(e)}")


@app.callback()
def callback(
    ctx: typer.Context
):
    """View and manage logs"""
