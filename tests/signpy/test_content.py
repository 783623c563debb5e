import pytest
from datetime import datetime, date, timedelta

from signpy.models import CalendarEvent, Special, SpecialType, SignageConfig, HappyHour, SlideSource, Catalog
from signpy.content import ContentManager, is_special_active_today, format_event_time, format_event_date
from signpy.timezone import VenueClock, UTC

CATALOG_TOML = '''
[[events]]
id = "trivia"
title = "Trivia Night"
description = "Teams of up to six"
start = 2026-10-17T19:00:00
end = 2026-10-17T21:00:00
recurrence_rule = "FREQ=WEEKLY;BYDAY=SA"
exceptions = '["2026-11-07"]'

[[events]]
id = "karaoke"
title = "Karaoke"
start = 2026-10-01T20:00:00
recurrence_rule = "FREQ=WEEKLY;BYDAY=TH"
exceptions = [2026-10-29]

[[events]]
id = "band"
title = "Live Band"
start = "2026-10-21T02:00:00Z"
end = "2026-10-21T05:00:00Z"

[[events]]
id = "old"
title = "Last Week"
start = 2026-10-10T19:00:00-06:00

[[specials]]
id = "wings"
title = "Wings"
type = "food"
price_notes = "$8"
image = "/pics/wings.jpg"
applies_on = ["Saturday"]

[[specials]]
id = "pint"
title = "Pint of the Day"
type = "drink"
price_notes = "$4"
description = "Rotating local tap"

[[specials]]
id = "soup"
title = "Soup"
start_date = 2026-10-01
end_date = 2026-10-10

[[specials]]
id = "retired"
title = "Retired Special"
is_active = false
'''

NOW = datetime(2026, 10, 17, 20, 0, tzinfo=UTC)  # 2pm Saturday at the venue

@pytest.fixture
def clock():
    return VenueClock("America/Denver")

@pytest.fixture
def manager(clock):
    return ContentManager(clock=clock, config=SignageConfig())

@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.toml"
    path.write_text(CATALOG_TOML, encoding="utf-8")
    return path


class TestCatalogLoading:
    def test_load_catalog(self, manager, catalog_file, clock):
        catalog = manager.load_catalog(catalog_file)

        assert [e.id for e in catalog.events] == ["trivia", "karaoke", "band", "old"]
        assert [s.id for s in catalog.specials] == ["wings", "pint", "soup", "retired"]

        trivia = catalog.events[0]
        assert trivia.start == datetime(2026, 10, 18, 1, 0, tzinfo=UTC)  # naive means venue time
        assert trivia.end - trivia.start == timedelta(hours=2)
        assert trivia.exceptions == frozenset({"2026-11-07"})
        assert catalog.events[1].exceptions == frozenset({"2026-10-29"})
        assert catalog.events[2].start == datetime(2026, 10, 21, 2, 0, tzinfo=UTC)
        assert catalog.events[3].start == datetime(2026, 10, 11, 1, 0, tzinfo=UTC)

        assert catalog.specials[0].type == SpecialType.FOOD
        assert catalog.specials[2].type is None
        assert catalog.specials[2].start_date == date(2026, 10, 1)
        assert catalog.specials[3].is_active is False

    def test_missing_file_raises(self, manager, tmp_path):
        with pytest.raises(ValueError):
            manager.load_catalog(tmp_path / "nope.toml")

    def test_invalid_toml_raises(self, manager, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[[events]\nid = ", encoding="utf-8")
        with pytest.raises(ValueError):
            manager.load_catalog(path)

    def test_missing_required_event_field_raises(self, manager):
        with pytest.raises(ValueError):
            manager.parse_catalog({"events": [{"id": "x", "title": "No start"}]})

    def test_unknown_special_type_raises(self, manager):
        with pytest.raises(ValueError):
            manager.parse_catalog({"specials": [{"id": "x", "title": "Mystery", "type": "dessert"}]})

    def test_bad_exceptions_raise(self, manager):
        with pytest.raises(ValueError):
            manager.parse_catalog({"events": [{"id": "x", "title": "T", "start": "2026-10-17T19:00:00", "exceptions": "oct 24"}]})


class TestSpecials:
    def test_weekday_special(self):
        special = Special(id="w", title="Wings", applies_on=[" saturday "])
        assert is_special_active_today(special, date(2026, 10, 17), "Saturday")
        assert not is_special_active_today(special, date(2026, 10, 18), "Sunday")

    def test_weekday_special_inside_date_range(self):
        special = Special(id="w", title="Wings", applies_on=["Saturday"], start_date=date(2026, 10, 20))
        assert not is_special_active_today(special, date(2026, 10, 17), "Saturday")
        assert is_special_active_today(special, date(2026, 10, 24), "Saturday")

    def test_date_range_special(self):
        special = Special(id="s", title="Soup", start_date=date(2026, 10, 1), end_date=date(2026, 10, 10))
        assert is_special_active_today(special, date(2026, 10, 10), "Saturday")
        assert not is_special_active_today(special, date(2026, 10, 11), "Sunday")

    def test_single_day_special(self):
        special = Special(id="s", title="Chili", start_date=date(2026, 10, 17))
        assert is_special_active_today(special, date(2026, 10, 17), "Saturday")
        assert not is_special_active_today(special, date(2026, 10, 18), "Sunday")

    def test_undated_special_is_always_on_unless_inactive(self):
        assert is_special_active_today(Special(id="p", title="Pint"), date(2026, 10, 17), "Saturday")
        assert not is_special_active_today(Special(id="p", title="Pint", is_active=False), date(2026, 10, 17), "Saturday")

    def test_food_and_drink_split(self, manager):
        specials = [
            Special(id="a", title="Wings", type=SpecialType.FOOD, image="/pics/wings.jpg"),
            Special(id="b", title="Nachos"),
            Special(id="c", title="Pint", type=SpecialType.DRINK, image="/pics/pint.jpg"),
        ]
        food = manager.food_items(specials)
        drink = manager.drink_items(specials)

        assert [i.title for i in food] == ["Wings", "Nachos"]
        assert food[0].image == "/pics/wings.jpg"
        assert [i.title for i in drink] == ["Pint"]
        assert drink[0].image is None

    def test_todays_specials_use_venue_day(self, manager, catalog_file):
        catalog = manager.load_catalog(catalog_file)
        # 1am Sunday UTC is still Saturday evening at the venue
        specials = manager.todays_specials(catalog.specials, datetime(2026, 10, 18, 1, 0, tzinfo=UTC))

        assert [s.id for s in specials] == ["wings", "pint"]


class TestUpcomingEvents:
    def test_window_selection(self, manager, catalog_file, clock):
        catalog = manager.load_catalog(catalog_file)
        upcoming = manager.upcoming_events(catalog.events, NOW)

        assert [(o.source_event_id, clock.civil_date_string(o.start)) for o in upcoming] == [
            ("trivia", "2026-10-17"),
            ("band", "2026-10-20"),
            ("karaoke", "2026-10-22"),
            ("trivia", "2026-10-24"),
            ("trivia", "2026-10-31"),
            ("karaoke", "2026-11-05"),
        ]

    def test_tile_count_limits_result(self, clock, catalog_file):
        manager = ContentManager(clock=clock, config=SignageConfig(upcoming_events_tile_count=2))
        catalog = manager.load_catalog(catalog_file)

        assert len(manager.upcoming_events(catalog.events, NOW)) == 2

    def test_event_earlier_today_is_still_shown(self, manager, clock):
        morning = CalendarEvent(id="brunch", title="Brunch", start=clock.to_instant(2026, 10, 17, 9, 0))
        upcoming = manager.upcoming_events([morning], NOW)

        assert [o.source_event_id for o in upcoming] == ["brunch"]

    def test_event_past_window_is_left_out(self, clock):
        manager = ContentManager(clock=clock, config=SignageConfig(window_days=60))
        far = CalendarEvent(id="far", title="New Year's Eve", start=clock.to_instant(2027, 12, 31, 20, 0))

        assert manager.upcoming_events([far], NOW) == []

    def test_event_at_window_end_is_kept(self, clock):
        manager = ContentManager(clock=clock, config=SignageConfig(window_days=60))
        edge = CalendarEvent(id="edge", title="Edge", start=NOW + timedelta(days=60))

        assert [o.source_event_id for o in manager.upcoming_events([edge], NOW)] == ["edge"]

    def test_cancelled_first_night_is_not_advertised(self, manager, clock):
        """An exception on the base start removes it like any other occurrence."""
        event = CalendarEvent(
            id="tuesday",
            title="Open Mic",
            start=clock.to_instant(2026, 10, 20, 19, 0),
            recurrence_rule="FREQ=WEEKLY;BYDAY=TU",
            exceptions=frozenset({"2026-10-20"}),
        )
        dates = [clock.civil_date_string(o.start) for o in manager.upcoming_events([event], NOW)]

        assert "2026-10-20" not in dates
        assert dates[0] == "2026-10-27"

    def test_event_items_are_formatted_in_venue_time(self, manager, catalog_file):
        catalog = manager.load_catalog(catalog_file)
        items = manager.event_items(catalog.events, manager.upcoming_events(catalog.events, NOW))

        assert items[0].title == "Trivia Night"
        assert items[0].note == "Saturday, October 17"
        assert items[0].time == "7:00 PM - 9:00 PM"
        assert items[0].detail == "Teams of up to six"
        assert items[1].time == "8:00 PM - 11:00 PM"
        assert items[2].time == "8:00 PM"


class TestFormatting:
    def test_format_event_time(self, clock):
        start = datetime(2026, 10, 17, 18, 5, tzinfo=UTC)  # 12:05pm MDT
        assert format_event_time(start, None, clock) == "12:05 PM"
        assert format_event_time(start, start + timedelta(hours=12), clock) == "12:05 PM - 12:05 AM"

    def test_format_event_date(self, clock):
        assert format_event_date(datetime(2026, 11, 1, 5, 0, tzinfo=UTC), clock) == "Saturday, October 31"


class TestBuildPlaylist:
    def test_end_to_end(self, manager, catalog_file):
        catalog = manager.load_catalog(catalog_file)
        slides = manager.build_playlist(catalog, now=NOW, happy_hour=HappyHour(title="Buy One Get One", times="4pm-7pm"))

        assert [s.source for s in slides] == [SlideSource.HAPPY_HOUR, SlideSource.FOOD, SlideSource.EVENTS]
        assert [i.title for i in slides[0].items] == ["Pint of the Day"]
        assert [i.title for i in slides[1].items] == ["Wings"]
        assert len(slides[2].items) == 6

    def test_drink_slide_is_labelled_with_weekday(self, clock, catalog_file):
        manager = ContentManager(clock=clock, config=SignageConfig(include_happy_hour=False))
        catalog = manager.load_catalog(catalog_file)
        slides = manager.build_playlist(catalog, now=NOW)

        assert slides[0].source == SlideSource.DRINK
        assert slides[0].subtitle == "Saturday"

    def test_empty_catalog_still_shows_happy_hour(self, manager):
        slides = manager.build_playlist(Catalog(), now=NOW)

        # Happy hour is on by default and always has a slide
        assert [s.source for s in slides] == [SlideSource.HAPPY_HOUR]

    def test_everything_off_gets_fallback(self, clock):
        config = SignageConfig(include_happy_hour=False, include_food_specials=False,
                               include_drink_specials=False, include_events=False)
        manager = ContentManager(clock=clock, config=config)

        slides = manager.build_playlist(Catalog(), now=NOW)
        assert [s.id for s in slides] == ["fallback"]
