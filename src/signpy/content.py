# content.py
import json
import logging
import tomli
from pathlib import Path
from datetime import datetime, date, timedelta
from typing import Optional, List, Union, Any

from signpy.models import (
    CalendarEvent, Occurrence, Special, SpecialType, SlideItem, Slide, Catalog,
    SignageConfig, HappyHour, VenueProfile
)
from signpy.playlist import PlaylistBuilder, PlaylistInput
from signpy.recurrence import OccurrenceEngine
from signpy.timezone import VenueClock, UTC, WEEKDAY_NAMES

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def is_special_active_today(special: Special, today: date, today_name: str) -> bool:
    """Whether a special should be shown on the given civil day.

    Weekday specials run on their listed days, limited by an optional date
    range. Date specials run from start to end date, or on the start date
    alone. A special with neither runs every day.
    """
    if not special.is_active:
        return False

    applies_on = [day.strip().lower() for day in (special.applies_on or []) if day and day.strip()]
    if applies_on:
        if today_name.strip().lower() not in applies_on:
            return False
        if special.start_date and today < special.start_date:
            return False
        if special.end_date and today > special.end_date:
            return False
        return True

    if special.start_date:
        if special.end_date:
            return special.start_date <= today <= special.end_date
        return today == special.start_date

    return True


def format_event_time(start: datetime, end: Optional[datetime], clock: VenueClock) -> str:
    """'7:00 PM' or '7:00 PM - 9:00 PM' in venue time"""
    def _clock_face(instant: datetime) -> str:
        civil = clock.to_civil(instant)
        hour = civil.hour % 12 or 12
        return f"{hour}:{civil.minute:02d} {'AM' if civil.hour < 12 else 'PM'}"

    if end is None:
        return _clock_face(start)
    return f"{_clock_face(start)} - {_clock_face(end)}"


def format_event_date(start: datetime, clock: VenueClock) -> str:
    """'Saturday, October 17' in venue time"""
    civil = clock.to_civil(start)
    return f"{WEEKDAY_NAMES[civil.weekday()]}, {MONTH_NAMES[civil.month - 1]} {civil.day}"


class ContentManager:
    """Loads the venue catalog and turns it into playlist content.

    Holds the venue clock so that every civil-time decision (today's
    specials, the event window, display formatting) uses the venue's zone.
    """

    def __init__(self, clock: Optional[VenueClock] = None, config: Optional[SignageConfig] = None):
        self.logger = logging.getLogger(__name__)
        self.clock = clock or VenueClock()
        self.config = config or SignageConfig()
        self.engine = OccurrenceEngine(self.clock)

    # Catalog loading
    def load_catalog(self, path: Union[str, Path]) -> Catalog:
        """Load a catalog file; raises ValueError when it cannot be used"""
        path = Path(path)
        if not path.exists():
            self.logger.error(f"Catalog file not found: {path}")
            raise ValueError(f"Catalog file not found: {path}")
        return self._parse_file(path)

    def _parse_file(self, path: Path) -> Catalog:
        """Parse a catalog file into a Catalog object"""
        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
            self.logger.debug(f"Loaded catalog file from {path}")
        except Exception as e:
            self.logger.error(f"Failed to load catalog file from {path}: {e}")
            raise ValueError(f"Failed to load catalog file: {e}")

        return self.parse_catalog(data)

    def parse_catalog(self, data: dict) -> Catalog:
        events = [self._parse_event(entry, index) for index, entry in enumerate(data.get("events", []))]
        specials = [self._parse_special(entry, index) for index, entry in enumerate(data.get("specials", []))]

        catalog = Catalog(events=events, specials=specials)
        self.logger.debug(f"Catalog parsed successfully: {catalog}")
        return catalog

    def _parse_event(self, data: dict, index: int) -> CalendarEvent:
        """Parse a single [[events]] entry"""
        try:
            event_id = str(data["id"])
            title = data["title"]
            start = self._parse_instant(data["start"])
        except KeyError as e:
            self.logger.error(f"Missing field {e} in event #{index + 1}")
            raise ValueError(f"Missing field {e} in event #{index + 1}")

        end = self._parse_instant(data["end"]) if data.get("end") else None

        return CalendarEvent(
            id=event_id,
            title=title,
            start=start,
            end=end,
            description=data.get("description"),
            recurrence_rule=data.get("recurrence_rule") or None,
            exceptions=frozenset(self._parse_exceptions(data.get("exceptions"))),
        )

    def _parse_special(self, data: dict, index: int) -> Special:
        """Parse a single [[specials]] entry"""
        try:
            special_id = str(data["id"])
            title = data["title"]
        except KeyError as e:
            self.logger.error(f"Missing field {e} in special #{index + 1}")
            raise ValueError(f"Missing field {e} in special #{index + 1}")

        special_type = None
        if data.get("type"):
            try:
                special_type = SpecialType(str(data["type"]).lower())
            except ValueError:
                self.logger.error(f"Unknown special type '{data['type']}' for special '{special_id}'")
                raise ValueError(f"Unknown special type '{data['type']}' for special '{special_id}'")

        return Special(
            id=special_id,
            title=title,
            type=special_type,
            description=data.get("description"),
            price_notes=data.get("price_notes"),
            time_window=data.get("time_window"),
            image=data.get("image"),
            applies_on=list(data.get("applies_on", [])),
            start_date=self._parse_date(data.get("start_date")),
            end_date=self._parse_date(data.get("end_date")),
            is_active=data.get("is_active", True),
        )

    def _parse_instant(self, value: Any) -> datetime:
        """TOML datetime or ISO string to an aware UTC instant; naive means venue time"""
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                raise ValueError(f"Invalid datetime: '{value}'")
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)

        if not isinstance(value, datetime):
            raise ValueError(f"Invalid datetime: {value!r}")

        if value.tzinfo is None:
            return self.clock.to_instant(value.year, value.month, value.day, value.hour, value.minute, value.second)
        return value.astimezone(UTC)

    def _parse_date(self, value: Any) -> Optional[date]:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return self.clock.civil_date(value) if value.tzinfo else value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValueError(f"Invalid date: '{value}'")

    def _parse_exceptions(self, value: Any) -> List[str]:
        """Exception dates as a list, or the JSON-encoded list older catalogs store"""
        if not value:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ValueError(f"Exceptions must be a list of dates: '{value}'")
        if not isinstance(value, list):
            raise ValueError(f"Exceptions must be a list of dates: {value!r}")
        return [entry.isoformat() if isinstance(entry, date) else str(entry).strip() for entry in value]

    # Specials
    def todays_specials(self, specials: List[Special], now: datetime) -> List[Special]:
        today = self.clock.civil_date(now)
        today_name = self.clock.weekday_name(now)
        return [s for s in specials if is_special_active_today(s, today, today_name)]

    def food_items(self, specials: List[Special]) -> List[SlideItem]:
        return [
            SlideItem(
                title=s.title,
                note=s.price_notes,
                time=s.time_window,
                detail=s.description,
                image=s.image,
            )
            for s in specials if s.is_food
        ]

    def drink_items(self, specials: List[Special]) -> List[SlideItem]:
        return [
            SlideItem(
                title=s.title,
                note=s.price_notes,
                time=s.time_window,
                detail=s.description,
            )
            for s in specials if s.is_drink
        ]

    # Events
    def upcoming_events(self, events: List[CalendarEvent], now: datetime) -> List[Occurrence]:
        """Events starting between venue midnight today and `window_days` ahead.

        One-time events and recurring base events are taken as stored, and
        recurring events are expanded across the window. The result is
        de-duplicated, start-ordered and limited to the tile count.
        """
        window_start = self.clock.midnight(now)
        window_end = now.astimezone(UTC) + timedelta(days=self.config.window_days)

        candidates = []
        for event in events:
            cancelled = event.is_recurring and self.clock.civil_date_string(event.start) in event.exceptions
            if window_start <= event.start <= window_end and not cancelled:
                candidates.append(Occurrence(
                    source_event_id=event.id,
                    start=event.start,
                    end=event.end,
                    is_recurring_occurrence=False,
                ))
            if event.is_recurring:
                candidates.extend(self.engine.expand(event, window_start, window_end))

        seen = set()
        unique = []
        for occurrence in sorted(candidates, key=lambda o: o.start):
            key = (occurrence.source_event_id, occurrence.start)
            if key in seen:
                continue
            seen.add(key)
            unique.append(occurrence)

        self.logger.debug(f"{len(unique)} upcoming event occurrences in window")
        return unique[:self.config.upcoming_events_tile_count]

    def event_items(self, events: List[CalendarEvent], occurrences: List[Occurrence]) -> List[SlideItem]:
        by_id = {event.id: event for event in events}
        items = []
        for occurrence in occurrences:
            event = by_id.get(occurrence.source_event_id)
            if event is None:
                continue
            items.append(SlideItem(
                title=event.title,
                note=format_event_date(occurrence.start, self.clock),
                time=format_event_time(occurrence.start, occurrence.end, self.clock),
                detail=event.description,
            ))
        return items

    # Playlist
    def build_playlist(self, catalog: Catalog, now: Optional[datetime] = None,
                       venue: Optional[VenueProfile] = None,
                       happy_hour: Optional[HappyHour] = None) -> List[Slide]:
        """Build the slide list for the catalog as it stands at `now`"""
        now = now or self.clock.now()

        specials = self.todays_specials(catalog.specials, now)
        occurrences = self.upcoming_events(catalog.events, now)

        playlist_input = PlaylistInput(
            now_label=self.clock.weekday_name(now),
            food=self.food_items(specials),
            drink=self.drink_items(specials),
            events=self.event_items(catalog.events, occurrences),
            config=self.config,
            happy_hour=happy_hour,
            venue=venue,
        )
        slides = PlaylistBuilder().build(playlist_input)
        self.logger.info(f"Built playlist with {len(slides)} slides")
        return slides
