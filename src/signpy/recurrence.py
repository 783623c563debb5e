# recurrence.py
import logging
from datetime import datetime, date, time, timedelta
from typing import Iterable, List, Optional

from dateutil.rrule import rrulestr

from signpy.models import CalendarEvent, Occurrence
from signpy.patterns import RulePattern, parse_rule, strip_rule_prefix, localize_until
from signpy.timezone import VenueClock, UTC

# BYMONTHDAY anchors sit at civil noon so no offset can push them across a day boundary
MONTHDAY_ANCHOR_TIME = time(12, 0)

# How many months to look ahead for a month that has the requested day (e.g. the 31st)
MONTHDAY_SEARCH_MONTHS = 12


def _as_utc(instant: datetime) -> datetime:
    """Normalize an instant to aware UTC; naive values are taken as UTC"""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def _next_listed_weekday(day: date, weekdays: List[int]) -> date:
    """The first date at or after `day` whose weekday is listed"""
    for ahead in range(7):
        candidate = day + timedelta(days=ahead)
        if candidate.weekday() in weekdays:
            return candidate
    return day


class OccurrenceEngine:
    """Expands recurring events into concrete occurrences in a time window.

    Rules are evaluated in the venue's civil time so that an event created for
    7pm stays at 7pm on both sides of a daylight-saving transition. Each civil
    occurrence date is then re-anchored to the event's original wall-clock time
    and resolved back to an absolute instant through the venue clock.
    """

    def __init__(self, clock: Optional[VenueClock] = None):
        self.clock = clock or VenueClock()
        self.logger = logging.getLogger(__name__)

    def expand(self, event: CalendarEvent, window_start: datetime, window_end: datetime) -> List[Occurrence]:
        """Occurrences of `event` starting inside [window_start, window_end].

        Never raises: a rule that cannot be anchored falls back to plain
        evaluation from the original start, and a rule that cannot be
        evaluated at all yields no occurrences.
        """
        if not event.recurrence_rule:
            return []

        window_start = _as_utc(window_start)
        window_end = _as_utc(window_end)
        if window_end < window_start:
            return []

        try:
            return self._expand_civil(event, window_start, window_end)
        except Exception as e:
            self.logger.warning(f"Using fallback expansion for event '{event.id}' ({event.recurrence_rule}): {e}")
            return self._expand_fallback(event, window_start, window_end)

    def expand_all(self, events: Iterable[CalendarEvent], window_start: datetime, window_end: datetime) -> List[Occurrence]:
        """Flattened, start-ordered occurrences of every recurring event"""
        occurrences = []
        for event in events:
            occurrences.extend(self.expand(event, window_start, window_end))
        return sorted(occurrences, key=lambda o: (o.start, o.source_event_id))

    def _expand_civil(self, event: CalendarEvent, window_start: datetime, window_end: datetime) -> List[Occurrence]:
        pattern = parse_rule(event.recurrence_rule)
        start = _as_utc(event.start)
        duration = self._duration(event)

        # Wall-clock time every occurrence keeps
        civil_start = self.clock.to_civil(start)
        wall_time = civil_start.time()

        anchor = self._resolve_anchor(pattern, civil_start)
        rule_text = localize_until(strip_rule_prefix(event.recurrence_rule), self.clock.to_civil)
        rule = rrulestr(rule_text, dtstart=anchor)

        # Search a day wider on both ends: candidates are re-anchored before the
        # real window test, and noon anchors can sit either side of it.
        search_start = self.clock.to_civil(max(start, window_start)) - timedelta(days=1)
        search_end = self.clock.to_civil(window_end) + timedelta(days=1)

        seen = set()
        occurrences = []
        for candidate in rule.between(search_start, search_end, inc=True):
            civil_day = candidate.date()
            if civil_day.isoformat() in event.exceptions:
                continue

            occurrence_start = self.clock.combine(civil_day, wall_time)
            if occurrence_start < start or not window_start <= occurrence_start <= window_end:
                continue
            if occurrence_start in seen:
                continue
            seen.add(occurrence_start)

            occurrences.append(Occurrence(
                source_event_id=event.id,
                start=occurrence_start,
                end=occurrence_start + duration if duration is not None else None,
            ))

        self.logger.debug(f"Expanded '{event.id}' into {len(occurrences)} occurrences")
        return sorted(occurrences, key=lambda o: o.start)

    def _resolve_anchor(self, pattern: RulePattern, civil_start: datetime) -> datetime:
        """Civil dtstart for the rule, corrected for the rule's shape"""
        if pattern.by_month_day and pattern.by_month_day[0] > 0:
            return self._month_day_anchor(civil_start.date(), pattern.by_month_day[0])

        if pattern.is_weekly and pattern.weekdays:
            anchor_day = _next_listed_weekday(civil_start.date(), pattern.weekdays)
            return datetime.combine(anchor_day, civil_start.time())

        # nth-weekday and everything else evaluate straight from the civil start
        return civil_start

    def _month_day_anchor(self, start_day: date, month_day: int) -> datetime:
        """Civil noon on `month_day` in the first month, from the start's month on, that has it"""
        year, month = start_day.year, start_day.month
        for _ in range(MONTHDAY_SEARCH_MONTHS):
            try:
                return datetime.combine(date(year, month, month_day), MONTHDAY_ANCHOR_TIME)
            except ValueError:
                month += 1
                if month > 12:
                    year, month = year + 1, 1
        raise ValueError(f"No month has day {month_day}")

    def _duration(self, event: CalendarEvent) -> Optional[timedelta]:
        if event.end is None:
            return None
        return _as_utc(event.end) - _as_utc(event.start)

    def _expand_fallback(self, event: CalendarEvent, window_start: datetime, window_end: datetime) -> List[Occurrence]:
        """Evaluate the rule unmodified from the absolute start and clip to the window"""
        try:
            start = _as_utc(event.start)
            duration = self._duration(event)
            rule = rrulestr(strip_rule_prefix(event.recurrence_rule), dtstart=start)

            occurrences = []
            for candidate in rule.between(max(start, window_start), window_end, inc=True):
                candidate = _as_utc(candidate)
                if self.clock.civil_date_string(candidate) in event.exceptions:
                    continue
                occurrences.append(Occurrence(
                    source_event_id=event.id,
                    start=candidate,
                    end=candidate + duration if duration is not None else None,
                ))
            return occurrences
        except Exception as e:
            self.logger.warning(f"Could not evaluate rule for event '{event.id}' ({event.recurrence_rule}): {e}")
            return []
