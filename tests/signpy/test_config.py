import json
import pytest
import tomli

from signpy.config import ConfigManager, sanitize_signage_config, validate_config_data
from signpy.models import SignageConfig, HappyHour


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(config_dir=tmp_path)


class TestConfigManager:
    def test_default_config_is_created(self, config_manager, tmp_path):
        """A missing config file is replaced by the packaged default."""
        assert (tmp_path / "config.toml").exists()
        assert isinstance(config_manager.config, dict)
        assert "signage" in config_manager.config

    def test_empty_config_is_replaced(self, tmp_path):
        (tmp_path / "config.toml").write_text("")
        config_manager = ConfigManager(config_dir=tmp_path)
        assert "venue" in config_manager.config

    def test_default_venue(self, config_manager):
        venue = config_manager.get_venue()
        assert venue.name == "Monaghan's"
        assert venue.timezone == "America/Denver"
        assert venue.utc_offsets is None
        assert venue.hero_image == "/pics/hero.png"

    def test_default_happy_hour(self, config_manager):
        assert config_manager.get_happy_hour() == HappyHour(
            title="Buy One Get One",
            description="BOGO on Wine, Well & Drafts",
            times="10am-12pm & 4pm-7pm",
        )

    def test_default_signage(self, config_manager):
        assert config_manager.get_signage_config() == SignageConfig()

    def test_catalog_path_resolves_against_config_dir(self, config_manager, tmp_path):
        assert config_manager.get_catalog_path() == tmp_path / "catalog.toml"

    def test_clock_uses_configured_offsets(self, tmp_path):
        (tmp_path / "config.toml").write_text('[venue]\ntimezone = "America/Denver"\nutc_offsets = [-7, -6]\n')
        clock = ConfigManager(config_dir=tmp_path).get_clock()
        assert clock.offsets_for(2026) == (-7.0, -6.0)

    def test_custom_slides_from_config(self, tmp_path):
        (tmp_path / "config.toml").write_text(
            '[[custom_slides]]\ntitle = "Trivia"\naccent = "neon"\n\n'
            '[[custom_slides]]\nid = "patio"\ntitle = "Patio"\nposition = 5\nis_enabled = false\n'
        )
        slides = ConfigManager(config_dir=tmp_path).get_signage_config().custom_slides
        assert [(s.id, s.position, s.accent, s.is_enabled) for s in slides] == [
            ("custom-0", 1, "accent", True),
            ("patio", 5, "accent", False),
        ]

    def test_set_value_saves_and_reads_back(self, config_manager, tmp_path):
        assert config_manager.set_value("signage", "include_welcome", True)

        with open(tmp_path / "config.toml", "rb") as f:
            saved = tomli.load(f)
        assert saved["signage"]["include_welcome"] is True
        assert ConfigManager(config_dir=tmp_path).get_signage_config().include_welcome is True

    def test_save_rejects_unknown_timezone(self, config_manager, tmp_path):
        before = (tmp_path / "config.toml").read_text()
        assert not config_manager.set_value("venue", "timezone", "Mars/Olympus_Mons")
        assert (tmp_path / "config.toml").read_text() == before

    def test_unreadable_config_exits(self, tmp_path):
        (tmp_path / "config.toml").write_text("[venue\nname = ")
        with pytest.raises(SystemExit):
            ConfigManager(config_dir=tmp_path)


class TestSanitizeSignageConfig:
    def test_defaults(self):
        assert sanitize_signage_config({}) == SignageConfig()

    @pytest.mark.parametrize("raw", [None, 42, "not json", "[1, 2]", ["a"]])
    def test_unusable_input_gives_defaults(self, raw):
        assert sanitize_signage_config(raw) == SignageConfig()

    def test_camel_case_and_json_string(self):
        raw = json.dumps({"includeWelcome": True, "includeEvents": False, "slideDurationSeconds": 15})
        config = sanitize_signage_config(raw)
        assert config.include_welcome is True
        assert config.include_events is False
        assert config.slide_duration_seconds == 15

    def test_legacy_aliases(self):
        config = sanitize_signage_config({"slideDurationSec": 20, "fadeDurationSec": 1.5, "daysAhead": 3})
        assert config.slide_duration_seconds == 20
        assert config.fade_duration_seconds == 1.5
        assert config.upcoming_events_tile_count == 3

    def test_values_are_clamped(self):
        config = sanitize_signage_config({
            "upcoming_events_tile_count": 40,
            "slide_duration_seconds": 1,
            "fade_duration_seconds": 9,
        })
        assert config.upcoming_events_tile_count == 12
        assert config.slide_duration_seconds == 4
        assert config.fade_duration_seconds == 5

    def test_junk_numbers_fall_back(self):
        config = sanitize_signage_config({"slide_duration_seconds": "soon", "upcoming_events_tile_count": 0})
        assert config.slide_duration_seconds == 10
        assert config.upcoming_events_tile_count == 6

    def test_non_list_custom_slides_become_empty(self):
        assert sanitize_signage_config({"customSlides": {"title": "x"}}).custom_slides == []

    def test_custom_slides_as_json_string(self):
        raw = {"customSlides": json.dumps([{"title": "Trivia", "imageUrl": "uploads/trivia.png", "isEnabled": False}])}
        slides = sanitize_signage_config(raw).custom_slides
        assert len(slides) == 1
        assert slides[0].image_url == "uploads/trivia.png"
        assert slides[0].is_enabled is False


class TestValidateConfigData:
    def test_default_is_clean(self, config_manager):
        validation = config_manager.validate_config()
        assert validation.passed
        assert not validation.warnings

    def test_bad_offsets(self):
        validation = validate_config_data({"venue": {"utc_offsets": [-6, "x"]}})
        assert "venue_offsets" in validation.errors

    def test_out_of_range_signage_warns(self):
        validation = validate_config_data({"signage": {"slide_duration_seconds": 90}})
        assert validation.passed
        assert "signage_values" in validation.warnings
