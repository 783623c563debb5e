"""
Main application entry point for the signpy CLI
"""

import typer
from pathlib import Path
from rich.console import Console
from typing_extensions import Annotated

from signpy.cli import catalog, config, logs
from signpy.cli.utils import get_app_state


console = Console()

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Main command groups
app.add_typer(catalog.app, name="catalog", help="Inspect the events and specials catalog", rich_help_panel="📋 Main Commands")
app.add_typer(config.app, name="config", help="Manage signpy configuration", rich_help_panel="📋 Main Commands")
app.add_typer(logs.app, name="logs", help="View and manage logs", rich_help_panel="📋 Main Commands")


# aliases for commonly used subcommands
@app.command(
        name="occurrences",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]signpy catalog occurrences[/]"
)
def alias_occurrences(
    ctx: typer.Context,
    catalog_path: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
    days: int = typer.Option(None, "--days", "-d", help="Days ahead to expand (defaults to the configured window)", show_default=False),
):
    """Lists event occurrences from venue midnight today onwards"""

    catalog.occurrences(ctx, catalog_path, days)


@app.command(
        name="playlist",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]signpy catalog playlist[/]"
)
def alias_playlist(
    ctx: typer.Context,
    catalog_path: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
    as_json: bool = typer.Option(False, "--json", "-j", help="Print the playlist as JSON"),
):
    """Builds the signage playlist as it would be shown right now"""

    catalog.playlist(ctx, catalog_path, as_json)


@app.command(
        name="validate",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]signpy catalog validate[/]"
)
def alias_validate(
    ctx: typer.Context,
    catalog_path: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
):
    """Checks a catalog and the configured custom slides for problems"""

    catalog.validate(ctx, catalog_path)


@app.callback(invoke_without_command=True)
def main(
    help: bool = typer.Option(False, "--help", "-h", help="Show this help message"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version information"),
    ctx: typer.Context = typer.Context
    ):

    if version:
        from importlib.metadata import version
        console.print(f"signpy v{version('signpy')}")
        raise typer.Exit()

    if help:
        console.print(ctx.get_help())
        raise typer.Exit()

    # Initialize the application state
    state = get_app_state(verbose=verbose)
    ctx.obj = state


if __name__ == "__main__":
    app()
