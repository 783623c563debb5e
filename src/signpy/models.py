# src/signpy/models.py
from datetime import datetime, date
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, FrozenSet
from collections import defaultdict


# Calendar data structures
@dataclass(frozen=True)
class CalendarEvent:
    """A scheduled happening, one-time or recurring.

    Instants are timezone-aware and compared in UTC; their meaning is
    anchored to the venue's civil timezone.
    """
    id: str
    title: str
    start: datetime
    end: Optional[datetime] = None
    description: Optional[str] = None
    recurrence_rule: Optional[str] = None
    exceptions: FrozenSet[str] = frozenset()  # civil dates, YYYY-MM-DD

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)

    @property
    def duration(self):
        """Fixed length of every occurrence, or None for open-ended events"""
        if self.end is None:
            return None
        return self.end - self.start

    def __str__(self) -> str:
        rule = f" [{self.recurrence_rule}]" if self.recurrence_rule else ""
        return f"{self.title} @ {self.start.isoformat()}{rule}"


@dataclass(frozen=True)
class Occurrence:
    """One concrete realization of a recurring event"""
    source_event_id: str
    start: datetime
    end: Optional[datetime] = None
    is_recurring_occurrence: bool = True


# Specials
class SpecialType(Enum):
    """Menu category of a special"""
    FOOD = "food"
    DRINK = "drink"


@dataclass
class Special:
    """A food or drink special as supplied by the back office"""
    id: str
    title: str
    type: Optional[SpecialType] = None
    description: Optional[str] = None
    price_notes: Optional[str] = None
    time_window: Optional[str] = None
    image: Optional[str] = None
    applies_on: List[str] = field(default_factory=list)  # weekday names
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    @property
    def is_food(self) -> bool:
        # Untyped specials have always been shown with the food
        return self.type is None or self.type == SpecialType.FOOD

    @property
    def is_drink(self) -> bool:
        return self.type == SpecialType.DRINK


# Slide data structures
class SlideSource(Enum):
    """Category a slide was produced from"""
    WELCOME = "welcome"
    HAPPY_HOUR = "happyHour"
    FOOD = "food"
    DRINK = "drink"
    EVENTS = "events"
    CUSTOM = "custom"
    FALLBACK = "fallback"


class Accent(Enum):
    """Color palette a slide can be rendered with"""
    ACCENT = "accent"
    GOLD = "gold"
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"
    TEAL = "teal"
    PINK = "pink"
    CYAN = "cyan"


DEFAULT_ACCENT = Accent.ACCENT


@dataclass(frozen=True)
class SlideItem:
    """A single line of content on a slide"""
    title: str
    note: Optional[str] = None
    time: Optional[str] = None
    detail: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class Slide:
    """One page of content in the display rotation"""
    id: str
    label: str
    title: str
    source: SlideSource
    accent: Accent = DEFAULT_ACCENT
    subtitle: Optional[str] = None
    body: Optional[str] = None
    footer: Optional[str] = None
    items: Optional[Tuple[SlideItem, ...]] = None
    slide_type: Optional[str] = None  # "image" for picture-only slides
    sequence: int = 0

    def to_dict(self) -> dict:
        """Serializable form handed to the rotation component"""
        data = {
            "id": self.id,
            "label": self.label,
            "title": self.title,
            "source": self.source.value,
            "accent": self.accent.value,
            "sequence": self.sequence,
        }
        for key in ("subtitle", "body", "footer"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.slide_type:
            data["slideType"] = self.slide_type
        if self.items is not None:
            data["items"] = [item.to_dict() for item in self.items]
        return data

    def __str__(self) -> str:
        count = len(self.items) if self.items else 0
        return f"#{self.sequence} {self.id} ({self.source.value}, {count} items)"


# Configuration data structures
@dataclass
class HappyHour:
    """Happy hour copy shown on its own slide"""
    title: Optional[str] = None
    description: Optional[str] = None
    times: Optional[str] = None


@dataclass
class CustomSlide:
    """An operator-authored slide, text-based or image-based"""
    id: str
    title: Optional[str] = None
    label: str = "Custom"
    subtitle: Optional[str] = None
    body: Optional[str] = None
    footer: Optional[str] = None
    accent: str = DEFAULT_ACCENT.value
    position: Optional[int] = None
    is_enabled: bool = True
    slide_type: Optional[str] = None  # "image" or "text"
    image_storage_key: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def image_key(self) -> Optional[str]:
        return self.image_storage_key or self.image_url


@dataclass
class VenueProfile:
    """Venue identity and civil timezone"""
    name: str = "Our Venue"
    tagline: Optional[str] = None
    body: Optional[str] = None
    footer: Optional[str] = None
    hero_image: Optional[str] = None
    timezone: str = "America/Denver"
    utc_offsets: Optional[Tuple[float, ...]] = None  # probe order, hours


@dataclass
class SignageConfig:
    """Operator toggles for the signage playlist"""
    include_welcome: bool = False
    include_food_specials: bool = True
    include_drink_specials: bool = True
    include_happy_hour: bool = True
    include_events: bool = True
    upcoming_events_tile_count: int = 6
    slide_duration_seconds: float = 10
    fade_duration_seconds: float = 0.8
    window_days: int = 60
    custom_slides: List[CustomSlide] = field(default_factory=list)


@dataclass
class Catalog:
    """Snapshot of events and specials supplied to the core"""
    events: List[CalendarEvent] = field(default_factory=list)
    specials: List[Special] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{len(self.events)} events, {len(self.specials)} specials"


class ValidationResult:
    def __init__(self):
        self.messages = []

    def add(self, check: str, level: str, message: str):
        """
        Add a message to the result.
        :param check: Identifier for the check (e.g., "event_rule").
        :param level: The level of the message (error or warning).
        :param message: The message to display.
        """

        self.messages.append({
            "check": check,
            "level": level,
            "message": message
        })

    def merge(self, other: 'ValidationResult'):
        """
        Merge another ValidationResult into this one.
        :param other: The other ValidationResult to merge.
        """

        self.messages.extend(other.messages)

    @property
    def errors(self) -> dict:
        errors = defaultdict(list)
        for msg in self.messages:
            if msg["level"] == "error":
                errors[msg["check"]].append(msg["message"])

        return errors

    @property
    def warnings(self) -> dict:
        warnings = defaultdict(list)
        for msg in self.messages:
            if msg["level"] == "warning":
                warnings[msg["check"]].append(msg["message"])

        return warnings

    @property
    def passed(self) -> bool:
        """Validation is considered passed if there are no errors"""
        return len(self.errors) == 0

    @property
    def failed(self) -> bool:
        """Validation is considered failed if there are any errors"""
        return not self.passed
