# patterns.py
"""
Helpers for reading the parts of an iCalendar recurrence rule that the
occurrence engine and the catalog validator care about.
"""

import re
from datetime import datetime, date
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

# Constants
WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")  # index == date.weekday()

WEEKDAY_LABELS = {
    "MO": "Monday",
    "TU": "Tuesday",
    "WE": "Wednesday",
    "TH": "Thursday",
    "FR": "Friday",
    "SA": "Saturday",
    "SU": "Sunday",
}

FREQUENCIES = {"YEARLY", "MONTHLY", "WEEKLY", "DAILY", "HOURLY", "MINUTELY", "SECONDLY"}

BYDAY_REGEX = re.compile(
    r"^(?P<nth>[+-]?\d{1,2})?"     # Optional ordinal (2MO, -1FR)
    r"(?P<day>MO|TU|WE|TH|FR|SA|SU)$"
)

UNTIL_REGEX = re.compile(r"UNTIL=(?P<value>\d{8}(?:T\d{6}Z?)?)", re.IGNORECASE)


@dataclass(frozen=True)
class WeekdaySpec:
    """A BYDAY entry, e.g. MO or 2MO"""
    weekday: int  # 0 = Monday
    nth: Optional[int] = None

    @property
    def code(self) -> str:
        return WEEKDAY_CODES[self.weekday]


@dataclass
class RulePattern:
    """The structured parts of a recurrence rule"""
    freq: str
    by_day: List[WeekdaySpec] = field(default_factory=list)
    by_month_day: List[int] = field(default_factory=list)
    parts: Dict[str, str] = field(default_factory=dict)

    @property
    def is_weekly(self) -> bool:
        return self.freq == "WEEKLY"

    @property
    def is_monthly(self) -> bool:
        return self.freq == "MONTHLY"

    @property
    def weekdays(self) -> List[int]:
        """Plain weekdays listed in BYDAY, sorted Monday-first"""
        return sorted({spec.weekday for spec in self.by_day if spec.nth is None})

    @property
    def is_nth_weekday(self) -> bool:
        return any(spec.nth is not None for spec in self.by_day)


def strip_rule_prefix(rule: str) -> str:
    """Drop an optional 'RRULE:' prefix, surrounding whitespace and empty parts"""
    rule = rule.strip()
    if rule.upper().startswith("RRULE:"):
        rule = rule[len("RRULE:"):]
    return ";".join(part.strip() for part in rule.split(";") if part.strip())


def parse_rule(rule: str) -> RulePattern:
    """Parse a rule string into a RulePattern.

    Raises ValueError when the rule has no usable FREQ or a malformed part.
    """
    if not rule or not rule.strip():
        raise ValueError("Empty recurrence rule")

    parts = {}
    for chunk in strip_rule_prefix(rule).split(";"):
        if not chunk.strip():
            continue
        if "=" not in chunk:
            raise ValueError(f"Malformed rule part: '{chunk}'")
        key, value = chunk.split("=", 1)
        parts[key.strip().upper()] = value.strip()

    freq = parts.get("FREQ", "").upper()
    if freq not in FREQUENCIES:
        raise ValueError(f"Unknown or missing FREQ in rule: '{rule}'")

    by_day = []
    if "BYDAY" in parts:
        for token in parts["BYDAY"].split(","):
            match = BYDAY_REGEX.fullmatch(token.strip().upper())
            if not match:
                raise ValueError(f"Invalid BYDAY entry: '{token}'")
            nth = int(match.group("nth")) if match.group("nth") else None
            by_day.append(WeekdaySpec(weekday=WEEKDAY_CODES.index(match.group("day")), nth=nth))

    by_month_day = []
    if "BYMONTHDAY" in parts:
        for token in parts["BYMONTHDAY"].split(","):
            try:
                value = int(token)
            except ValueError:
                raise ValueError(f"Invalid BYMONTHDAY entry: '{token}'")
            if value == 0 or not -31 <= value <= 31:
                raise ValueError(f"BYMONTHDAY out of range: {value}")
            by_month_day.append(value)

    return RulePattern(freq=freq, by_day=by_day, by_month_day=by_month_day, parts=parts)


def localize_until(rule: str, to_civil) -> str:
    """Rewrite a UTC 'UNTIL=...Z' value as venue civil time.

    The rule is evaluated against a naive civil anchor, and dateutil refuses
    to mix a naive anchor with an aware UNTIL.
    """
    match = UNTIL_REGEX.search(rule)
    if not match or not match.group("value").upper().endswith("Z"):
        return rule

    until_utc = datetime.strptime(match.group("value").upper(), "%Y%m%dT%H%M%SZ")
    civil = to_civil(until_utc)
    return rule[:match.start("value")] + civil.strftime("%Y%m%dT%H%M%S") + rule[match.end("value"):]


def get_week_of_month(day: date) -> int:
    """Week of month (1-4) for a date, or 5 when it is the last such weekday"""
    week = (day.day - 1) // 7 + 1
    # A date within the final seven days is the "last" weekday of its month
    next_week = day.toordinal() + 7
    if date.fromordinal(next_week).month != day.month:
        return 5
    return week


def extract_event_pattern(start: datetime, rule: Optional[str]) -> Optional[Dict[str, Any]]:
    """Describe the pattern of a recurring event for display and duplication.

    Returns None for one-time events or rules that carry no usable pattern.
    """
    if not rule:
        return None

    try:
        pattern = parse_rule(rule)
    except ValueError:
        return None

    result = {}
    if pattern.is_weekly and pattern.by_day:
        result["frequency"] = "weekly"
        result["days"] = [WEEKDAY_LABELS[spec.code] for spec in pattern.by_day]
        # The start's weekday is the primary day when several are selected
        result["day_of_week"] = start.weekday()
    elif pattern.is_monthly:
        result["frequency"] = "monthly"
        if pattern.by_month_day:
            result["month_day"] = pattern.by_month_day[0]
        elif pattern.by_day:
            spec = pattern.by_day[0]
            result["day_of_week"] = spec.weekday
            if spec.nth is not None:
                result["week_of_month"] = 5 if spec.nth == -1 else spec.nth
        else:
            return None

    return result or None
