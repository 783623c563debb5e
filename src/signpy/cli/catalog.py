"""
Command group of catalog-related commands for the signpy CLI
"""

import json
import typer
from pathlib import Path
from datetime import timedelta
from rich.console import Console
from rich.table import Table
from rich.box import ROUNDED
from typing_extensions import Annotated

from signpy.cli.utils import load_catalog_or_exit
from signpy.content import format_event_date, format_event_time
from signpy.patterns import extract_event_pattern


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Inspect the events and specials catalog",
)


def _resolve_catalog(ctx: typer.Context, catalog: Path) -> Path:
    """The given catalog path, or the one configured in the global config"""
    if catalog is not None:
        return catalog

    configured = ctx.obj.get("config_manager").get_catalog_path()
    if configured is None:
        console.print("🚫 No catalog given and none configured")
        console.print("\n✨ Set [turquoise4]catalog.path[/] in the config or pass a catalog file")
        raise typer.Exit(code=1)
    return configured


@app.command(
    rich_help_panel="📋 View"
)
def occurrences(
    ctx: typer.Context,
    catalog: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
    days: int = typer.Option(None, "--days", "-d", help="Days ahead to expand (defaults to the configured window)", show_default=False),
):
    """Lists event occurrences from venue midnight today onwards"""

    content_manager = ctx.obj.get("content_manager")
    clock = content_manager.clock
    data = load_catalog_or_exit(ctx, _resolve_catalog(ctx, catalog))

    now = clock.now()
    window_start = clock.midnight(now)
    window_end = now + timedelta(days=days if days is not None else content_manager.config.window_days)

    titles = {event.id: event for event in data.events}
    rows = []
    for event in data.events:
        if not event.is_recurring:
            if window_start <= event.start <= window_end:
                rows.append((event.start, event.end, event, False))
            continue
        for occurrence in content_manager.engine.expand(event, window_start, window_end):
            rows.append((occurrence.start, occurrence.end, titles[occurrence.source_event_id], True))
    rows.sort(key=lambda row: (row[0], row[2].id))

    if not rows:
        console.print("⚠️ No events in the window")
        return

    table = Table(
        header_style="bold",
        box=ROUNDED,
        border_style="dim",
        title=f"🗓️ Occurrences in {clock.timezone_name}",
    )
    table.add_column("Date", style="cyan")
    table.add_column("Time", style="green")
    table.add_column("Event", style="yellow")
    table.add_column("Repeats", style="dim")

    for start, end, event, recurring in rows:
        pattern = extract_event_pattern(clock.to_civil(event.start), event.recurrence_rule) if recurring else None
        repeats = pattern.get("frequency", "") if pattern else ("🔁" if recurring else "")
        table.add_row(format_event_date(start, clock), format_event_time(start, end, clock), event.title, repeats)

    console.print(table)


@app.command(
    rich_help_panel="📋 View"
)
def playlist(
    ctx: typer.Context,
    catalog: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
    as_json: bool = typer.Option(False, "--json", "-j", help="Print the playlist as JSON"),
):
    """Builds the signage playlist as it would be shown right now"""

    config_manager = ctx.obj.get("config_manager")
    content_manager = ctx.obj.get("content_manager")
    data = load_catalog_or_exit(ctx, _resolve_catalog(ctx, catalog))

    slides = content_manager.build_playlist(
        data,
        venue=config_manager.get_venue(),
        happy_hour=config_manager.get_happy_hour(),
    )

    if as_json:
        typer.echo(json.dumps([slide.to_dict() for slide in slides], indent=2, ensure_ascii=False))
        return

    table = Table(
        header_style="bold",
        box=ROUNDED,
        border_style="dim",
        title="📺 Playlist",
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Id", style="cyan")
    table.add_column("Label", style="yellow")
    table.add_column("Title")
    table.add_column("Items", justify="right")
    table.add_column("Accent", style="magenta")

    for slide in slides:
        table.add_row(
            str(slide.sequence),
            slide.id,
            slide.label,
            slide.title,
            str(len(slide.items)) if slide.items else "-",
            slide.accent.value,
        )

    console.print(table)
    signage = content_manager.config
    console.print(f"\n⏱️ [dim]{signage.slide_duration_seconds:g}s per slide, {signage.fade_duration_seconds:g}s fade[/]")


@app.command(
    rich_help_panel="🔍 Check"
)
def validate(
    ctx: typer.Context,
    catalog: Annotated[Path, typer.Argument(help="Catalog file", show_default=False, metavar="[CATALOG]")] = None,
):
    """Checks a catalog and the configured custom slides for problems"""

    config_manager = ctx.obj.get("config_manager")
    validator = ctx.obj.get("validator")
    catalog_path = _resolve_catalog(ctx, catalog)
    data = load_catalog_or_exit(ctx, catalog_path)

    validation = validator.validate(data, config_manager.config.get("custom_slides", []))

    console.print(f"🔍 Validating [yellow]{catalog_path.name}[/] [dim]({data})[/]\n")
    for key, messages in validation.errors.items():
        for message in messages:
            console.print(f"  ❗ [red]{key.upper()}:[/] {message}")
    for key, messages in validation.warnings.items():
        for message in messages:
            console.print(f"  ⚠️ [yellow]{key.upper()}:[/] {message}")

    if validation.failed:
        console.print("\n❌ Catalog has errors")
        raise typer.Exit(code=1)
    if validation.warnings:
        console.print("\n✅ Catalog is usable, with warnings")
    else:
        console.print("✅ Catalog is valid")


@app.callback()
def callback(
    ctx: typer.Context
):
    """Inspect the events and specials catalog"""
