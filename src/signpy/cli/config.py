"""
Command group of config-related commands for the signpy CLI
"""

import os
import shlex
import subprocess
import typer
from typing import List
from rich.console import Console
from rich.table import Table
from rich.box import ROUNDED


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Manage signpy configuration",
)


@app.command(
    rich_help_panel="📋 View & Edit"
)
def show(
    ctx: typer.Context
):
    """Prints the global config in a human-readable format"""

    config_manager = ctx.obj.get("config_manager")
    venue = config_manager.get_venue()
    signage = config_manager.get_signage_config()
    clock = config_manager.get_clock()

    # Venue section
    console.print("\n[bold cyan]Venue[/]\n", style="bold cyan")
    console.print(f"  🍺 Name: [yellow]{venue.name}[/]")
    if venue.tagline:
        console.print(f"  ✨ Tagline: [yellow]{venue.tagline}[/]")
    console.print(f"  🕒 Timezone: [green]{venue.timezone}[/]")
    offsets = ", ".join(f"{o:+g}" for o in clock.offsets_for(clock.now().year))
    source = "configured" if venue.utc_offsets else "derived"
    console.print(f"  🧭 UTC offsets: [green]{offsets}[/] [dim]({source})[/]")

    # Signage section
    console.print("\n[bold cyan]Signage[/]\n", style="bold cyan")
    table = Table(
        header_style="bold",
        box=ROUNDED,
        show_header=False,
        border_style="dim"
    )
    table.add_column("Property", style="cyan", justify="left")
    table.add_column("Value", style="yellow", justify="left")

    table.add_row("👋 Welcome", "on" if signage.include_welcome else "off")
    table.add_row("🍻 Happy hour", "on" if signage.include_happy_hour else "off")
    table.add_row("🍸 Drink specials", "on" if signage.include_drink_specials else "off")
    table.add_row("🍔 Food specials", "on" if signage.include_food_specials else "off")
    table.add_row("🎉 Events", "on" if signage.include_events else "off")
    table.add_row("🔢 Event tiles", str(signage.upcoming_events_tile_count))
    table.add_row("🗓️ Window", f"{signage.window_days} days")
    table.add_row("⏱️ Slide duration", f"{signage.slide_duration_seconds:g}s")
    table.add_row("🌫️ Fade duration", f"{signage.fade_duration_seconds:g}s")
    console.print(table)

    # Custom slides section
    console.print("\n[bold cyan]Custom Slides[/]\n", style="bold cyan")
    if signage.custom_slides:
        for custom in sorted(signage.custom_slides, key=lambda s: s.position or 0):
            state = "" if custom.is_enabled else " [dim](disabled)[/]"
            console.print(f"  🖼️ [yellow]{custom.title}[/] [cyan italic]{custom.id}[/]{state}")
    else:
        console.print("  ⚠️ No custom slides configured")

    # Catalog section
    console.print("\n[bold cyan]Catalog[/]\n", style="bold cyan")
    catalog_path = config_manager.get_catalog_path()
    if catalog_path:
        marker = "" if catalog_path.exists() else " [red](missing)[/]"
        console.print(f"  📂 [dim]{catalog_path}[/]{marker}")
    else:
        console.print("  ⚠️ No catalog configured")

    # Validate and show any issues
    validation = config_manager.validate_config()
    if validation.failed or validation.warnings:
        console.print("\n[bold yellow]Configuration Issues:[/]")
        for key, result in validation.errors.items():
            for item in result:
                console.print(f"  ❗ [red]{key.upper()}:[/] {item}")
        for key, result in validation.warnings.items():
            for item in result:
                console.print(f"  ⚠️ [yellow]{key.upper()}:[/] {item}")


@app.command(
    rich_help_panel="📋 View & Edit"
)
def path(
    ctx: typer.Context
):
    """Prints the location of the global config file"""

    config_manager = ctx.obj.get("config_manager")
    typer.echo(str(config_manager.config_file_path))


@app.command(
    rich_help_panel="📋 View & Edit"
)
def edit(
    ctx: typer.Context
):
    """Opens the global config in editor"""

    config_manager = ctx.obj.get("config_manager")

    # Get the config file path
    config_file = config_manager.config_file_path
    if not config_file.exists():
        console.print(f"🚫 Config file not found at {config_file}")
        return

    # Print warning about direct editing
    console.print("[yellow]⚠️ Warning:[/] Editing the config file directly can lead to invalid configurations.")
    console.print("            Run [turquoise4]signpy config show[/] afterwards to check for issues.\n")

    try:
        editor = _editor_command()
        if editor:
            subprocess.run([*editor, str(config_file)], check=True)
        else:
            typer.launch(str(config_file))
        console.print(f"📂 [dim]{config_file}[/]")
    except (OSError, subprocess.CalledProcessError) as e:
        console.print(f"🚫 Error opening config file: {e}")
        raise typer.Exit(code=1)


def _editor_command() -> List[str]:
    """$VISUAL or $EDITOR split into argv, empty when neither is set"""
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or ""
    return shlex.split(editor)


@app.callback()
def callback(
    ctx: typer.Context
):
    """Manage signpy configuration"""
