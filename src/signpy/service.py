import json
import logging
from datetime import datetime
from platformdirs import user_data_path

from signpy.config import ConfigManager
from signpy.content import ContentManager
from signpy.models import Catalog
from signpy.timezone import UTC


def write_playlist(slides, output_path, generated_at: datetime) -> None:
    """Write the slide list where the rotation component picks it up"""
    snapshot = {
        "generated_at": generated_at.isoformat(),
        "slides": [slide.to_dict() for slide in sorted(slides, key=lambda s: s.sequence)],
    }
    tmp_path = output_path.with_suffix(".json.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2, ensure_ascii=False)
    tmp_path.replace(output_path)


def main():
    # Setup logging
    data_dir = user_data_path(appname="signpy", appauthor=False, ensure_exists=True)
    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_dir / "signpy.log",
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger("Signpy")

    try:
        # Initialize components
        config_manager = ConfigManager()
        content_manager = ContentManager(
            clock=config_manager.get_clock(),
            config=config_manager.get_signage_config(),
        )

        # Load the catalog; without one the display still gets the fallback slide
        catalog = Catalog()
        catalog_path = config_manager.get_catalog_path()
        if not catalog_path:
            logger.error("No catalog path configured")
        else:
            logger.info(f"Catalog path: {catalog_path}")
            try:
                catalog = content_manager.load_catalog(catalog_path)
            except ValueError as e:
                logger.error(f"Could not load catalog: {e}")

        now = datetime.now(UTC)
        slides = content_manager.build_playlist(
            catalog,
            now=now,
            venue=config_manager.get_venue(),
            happy_hour=config_manager.get_happy_hour(),
        )

        output_path = data_dir / "playlist.json"
        write_playlist(slides, output_path, now)
        logger.info(f"Wrote {len(slides)} slides to: {output_path}")

    except Exception as e:
        logger.error(f"Error refreshing playlist: {str(e)}", exc_info=True)

if __name__ == '__main__':
    main()
