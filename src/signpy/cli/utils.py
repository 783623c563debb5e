"""
Utility functions for the CLI.
"""

import sys
import logging
from pathlib import Path
from rich.console import Console
from platformdirs import user_data_path

from signpy.config import ConfigManager
from signpy.content import ContentManager
from signpy.models import Catalog
from signpy.validate import CatalogValidator


def get_app_state(verbose: bool) -> dict:
    """
    Get the current state of the application
    """

    console = Console()

    logger = logging.getLogger("signpy")
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(
        level=log_level,
        format="(%(name)s) %(message)s",
    )

    # Initialize configuration
    try:
        config_manager = ConfigManager()
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(1)

    # Initialize content manager with the venue's clock and signage settings
    try:
        clock = config_manager.get_clock()
        content_manager = ContentManager(clock=clock, config=config_manager.get_signage_config())
    except Exception as e:
        console.print(f"[red]Error initializing content manager:[/] {str(e)}")
        sys.exit(1)

    data_dir = user_data_path(appname="signpy", appauthor=False, ensure_exists=True)

    return {
        "console": console,
        "logger": logger,
        "config_manager": config_manager,
        "content_manager": content_manager,
        "validator": CatalogValidator(clock),
        "data_dir": data_dir,
        "logs_dir": data_dir / "logs",
    }


def load_catalog_or_exit(ctx, catalog_path: Path) -> Catalog:
    """Loads a catalog for a command, printing the error and exiting on failure"""

    console = ctx.obj.get("console")
    content_manager = ctx.obj.get("content_manager")

    try:
        return content_manager.load_catalog(catalog_path)
    except ValueError as e:
        console.print(f"[red]Error loading catalog:[/] {str(e)}")
        sys.exit(1)
