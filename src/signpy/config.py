# config.py

import sys
import json
import shutil
import logging
import tomli, tomli_w
from pathlib import Path
from importlib.resources import files
from platformdirs import user_config_path
from typing import Dict, List, Optional, Any

from signpy.models import SignageConfig, CustomSlide, HappyHour, VenueProfile, ValidationResult
from signpy.playlist import normalize_accent
from signpy.timezone import VenueClock

# Defaults
DEFAULT_SIGNAGE = SignageConfig()

TILE_COUNT_RANGE = (1, 12)
SLIDE_DURATION_RANGE = (4, 60)
FADE_DURATION_RANGE = (0.3, 5)


def clamp(value, low, high):
    return min(max(value, low), high)


def _pick(data: dict, *keys, default=None):
    """First present key wins; lets camelCase and snake_case configs coexist"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _number(value, default):
    """Numeric value or `default`; zero and junk both mean 'not set'"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number else default


def _flag(value, default: bool) -> bool:
    if value is None:
        return default
    return bool(value)


def sanitize_custom_slides(raw: Any) -> List[CustomSlide]:
    """Operator slide definitions from raw config data; anything but a list is empty"""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    slides = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            continue
        position = _pick(entry, "position")
        slides.append(CustomSlide(
            id=str(_pick(entry, "id", default=f"custom-{index}")),
            label=_pick(entry, "label", default="Custom"),
            title=_pick(entry, "title", default="Custom Slide"),
            subtitle=_pick(entry, "subtitle"),
            body=_pick(entry, "body"),
            footer=_pick(entry, "footer"),
            accent=normalize_accent(_pick(entry, "accent")).value,
            position=position if isinstance(position, int) and not isinstance(position, bool) else index + 1,
            is_enabled=_pick(entry, "is_enabled", "isEnabled", default=True) is not False,
            slide_type=_pick(entry, "slide_type", "slideType"),
            image_storage_key=_pick(entry, "image_storage_key", "imageStorageKey"),
            image_url=_pick(entry, "image_url", "imageUrl"),
        ))
    return slides


def sanitize_signage_config(raw: Any) -> SignageConfig:
    """Build a SignageConfig from raw settings data without ever raising.

    Accepts a dict or a JSON string, camelCase or snake_case keys, and the
    legacy aliases older settings were saved with. Unusable input yields
    the defaults.
    """
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(data, dict):
            return SignageConfig()

        tile_count = _number(
            _pick(data, "upcoming_events_tile_count", "upcomingEventsTileCount", "eventsTileCount", "daysAhead"),
            DEFAULT_SIGNAGE.upcoming_events_tile_count,
        )
        slide_duration = _number(
            _pick(data, "slide_duration_seconds", "slideDurationSeconds", "slideDurationSec"),
            DEFAULT_SIGNAGE.slide_duration_seconds,
        )
        fade_duration = _number(
            _pick(data, "fade_duration_seconds", "fadeDurationSeconds", "fadeDurationSec"),
            DEFAULT_SIGNAGE.fade_duration_seconds,
        )
        window_days = _number(_pick(data, "window_days", "windowDays"), DEFAULT_SIGNAGE.window_days)

        return SignageConfig(
            include_welcome=_flag(_pick(data, "include_welcome", "includeWelcome"), DEFAULT_SIGNAGE.include_welcome),
            include_food_specials=_flag(_pick(data, "include_food_specials", "includeFoodSpecials"), DEFAULT_SIGNAGE.include_food_specials),
            include_drink_specials=_flag(_pick(data, "include_drink_specials", "includeDrinkSpecials"), DEFAULT_SIGNAGE.include_drink_specials),
            include_happy_hour=_flag(_pick(data, "include_happy_hour", "includeHappyHour"), DEFAULT_SIGNAGE.include_happy_hour),
            include_events=_flag(_pick(data, "include_events", "includeEvents"), DEFAULT_SIGNAGE.include_events),
            upcoming_events_tile_count=int(clamp(tile_count, *TILE_COUNT_RANGE)),
            slide_duration_seconds=clamp(slide_duration, *SLIDE_DURATION_RANGE),
            fade_duration_seconds=clamp(fade_duration, *FADE_DURATION_RANGE),
            window_days=max(1, int(window_days)),
            custom_slides=sanitize_custom_slides(_pick(data, "custom_slides", "customSlides")),
        )
    except Exception:
        return SignageConfig()


class ConfigManager:
    """Manages the signage configuration file"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.logger = logging.getLogger("signpy.config")
        self.logger.debug("🔧 Initializing ConfigManager")

        # Get directories and paths
        if config_dir is None:
            config_dir = user_config_path(appname="signpy", appauthor=False, ensure_exists=True)
        self.config_dir = Path(config_dir)
        self.config_file_path = self.config_dir / "config.toml"
        self.data_dir = files("signpy.data")

        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Loads the global configuration file"""

        self.logger.debug("🔁 Loading configuration")

        # Create a default config file if it doesn't exist or is empty
        if not self.config_file_path.exists():
            self.logger.debug("⚠️ Config file not found, creating default")
            self._create_default_config()
        elif self.config_file_path.stat().st_size == 0:
            self.logger.debug("⚠️ Config file is empty, creating default")
            self._create_default_config()

        try:
            with open(self.config_file_path, "rb") as f:
                config = tomli.load(f)

                # Cache the config for later use
                self.config = config
                return config

        except Exception as e:
            self.logger.error(f"💀 Error loading configuration: {str(e)}")
            sys.exit(1)

    def _create_default_config(self) -> None:
        """Copies the packaged default configuration into place"""

        default_config_path = self.data_dir / "config.toml"

        self.logger.debug("🔁 Copying default config")

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with default_config_path.open("rb") as src, open(self.config_file_path, "wb") as dest:
                shutil.copyfileobj(src, dest)
            self.logger.debug("✅ Default configuration created")
        except Exception as e:
            self.logger.error(f"💀 Error copying default config: {str(e)}")

    def get_signage_config(self) -> SignageConfig:
        """Signage toggles and custom slides, sanitized"""
        signage = dict(self.config.get("signage", {}))
        signage["custom_slides"] = self.config.get("custom_slides", signage.get("custom_slides", []))
        return sanitize_signage_config(signage)

    def get_venue(self) -> VenueProfile:
        """Venue identity and timezone from the config"""
        venue = self.config.get("venue", {})
        offsets = venue.get("utc_offsets")
        return VenueProfile(
            name=venue.get("name", "Our Venue"),
            tagline=venue.get("tagline"),
            body=venue.get("body"),
            footer=venue.get("footer"),
            hero_image=venue.get("hero_image"),
            timezone=venue.get("timezone", "America/Denver"),
            utc_offsets=tuple(float(o) for o in offsets) if offsets else None,
        )

    def get_clock(self) -> VenueClock:
        venue = self.get_venue()
        return VenueClock(venue.timezone, venue.utc_offsets)

    def get_happy_hour(self) -> Optional[HappyHour]:
        if "happy_hour" not in self.config:
            return None
        data = self.config["happy_hour"]
        return HappyHour(
            title=data.get("title"),
            description=data.get("description"),
            times=data.get("times"),
        )

    def get_catalog_path(self) -> Optional[Path]:
        """Path of the catalog file; relative paths resolve against the config dir"""
        raw = self.config.get("catalog", {}).get("path")
        if not raw:
            return None
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def validate_config(self) -> ValidationResult:
        """Checks values that would otherwise be silently replaced by defaults"""
        return validate_config_data(self.config)

    def set_value(self, section: str, key: str, value: Any) -> bool:
        """Sets a single value in the config and saves it"""

        self.logger.debug(f"🔁 Setting {section}.{key}")

        self.load_config()
        self.config.setdefault(section, {})[key] = value
        return self._save_config(self.config)

    def _save_config(self, config: dict) -> bool:
        """Saves the configuration to the global config file"""

        self.logger.debug("🔁 Saving configuration")

        # Validate the config before saving
        validation = validate_config_data(config)
        if validation.failed:
            self.logger.error("💀 Configuration validation failed")
            for key, result in validation.errors.items():
                self.logger.error(f"    ❗ {key.upper()}: {result}")
            return False

        # Log any warnings
        for key, result in validation.warnings.items():
            self.logger.warning(f"    ⚠️ {key.upper()}: {result}")

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file_path, "wb") as f:
                tomli_w.dump(config, f)

            # Verify the file can be read back
            try:
                with open(self.config_file_path, "rb") as f:
                    tomli.load(f)
            except Exception as e:
                self.logger.error(f"💀 Config file verification failed: {str(e)}")
                return False

            self.config = config
            self.logger.debug("✅ Configuration saved")
            return True

        except Exception as e:
            self.logger.error(f"💀 Error saving configuration: {str(e)}")
            return False


def validate_config_data(config: dict) -> ValidationResult:
    """Config checks shared by `config show` and saving"""
    result = ValidationResult()

    venue = config.get("venue", {})
    timezone_name = venue.get("timezone", "America/Denver")
    try:
        VenueClock(timezone_name)
    except Exception:
        result.add("venue_timezone", "error", f"Unknown timezone '{timezone_name}'")

    offsets = venue.get("utc_offsets")
    if offsets is not None:
        if not isinstance(offsets, list) or not all(isinstance(o, (int, float)) and not isinstance(o, bool) for o in offsets):
            result.add("venue_offsets", "error", "utc_offsets must be a list of hour offsets, e.g. [-6, -7]")
        elif any(not -14 <= o <= 14 for o in offsets):
            result.add("venue_offsets", "error", "utc_offsets must lie between -14 and 14 hours")

    signage = config.get("signage", {})
    ranges = {
        "upcoming_events_tile_count": TILE_COUNT_RANGE,
        "slide_duration_seconds": SLIDE_DURATION_RANGE,
        "fade_duration_seconds": FADE_DURATION_RANGE,
    }
    for key, (low, high) in ranges.items():
        value = signage.get(key)
        if value is None:
            continue
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            result.add("signage_values", "warning", f"{key} is not a number; the default is used")
        elif not low <= value <= high:
            result.add("signage_values", "warning", f"{key}={value} is outside {low}-{high} and will be clamped")

    return result
