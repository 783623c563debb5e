# playlist.py
import re
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, List, Iterable, Sequence

from signpy.models import (
    Slide, SlideItem, SlideSource, Accent, DEFAULT_ACCENT,
    HappyHour, CustomSlide, SignageConfig, VenueProfile
)

# Constants
MAX_ITEMS_PER_SLIDE = 6
EVENTS_MAX_ITEMS_PER_SLIDE = 6

# Layout guidance only; text longer than these is kept whole
TEXT_LIMITS = {
    "title": 40,
    "subtitle": 60,
    "body": 140,
    "footer": 60,
    "item_title": 40,
    "item_meta": 60,
    "item_detail": 120,
}

# Placeholder keys the upload form stores when no image was chosen
MISSING_IMAGE_KEYS = {"NO IMAGE KEY", "NO IMAGE URL"}

CATEGORY_ORDER = (
    SlideSource.WELCOME,
    SlideSource.HAPPY_HOUR,
    SlideSource.DRINK,
    SlideSource.FOOD,
    SlideSource.EVENTS,
    SlideSource.CUSTOM,
    SlideSource.FALLBACK,
)

TAG_REGEX = re.compile(r"<[^>]*>")
WHITESPACE_REGEX = re.compile(r"\s+")
TRAILING_SPACE_REGEX = re.compile(r"\s+$")


def clean_text(value: Optional[str], limit: int, preserve_newlines: bool = False) -> Optional[str]:
    """Strip markup and normalize whitespace; empty results become None.

    `limit` is the layout budget for the field. It is reported when exceeded
    but the text is never cut.
    """
    if not value:
        return None
    sanitized = TAG_REGEX.sub(" ", str(value))

    if preserve_newlines:
        lines = sanitized.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        normalized = "\n".join(TRAILING_SPACE_REGEX.sub("", line) for line in lines).strip()
        return normalized or None

    normalized = WHITESPACE_REGEX.sub(" ", sanitized).strip()
    if not normalized:
        return None
    if len(normalized) > limit:
        logging.getLogger(__name__).debug(f"Text over {limit} chars kept whole: '{normalized[:24]}...'")
    return normalized


def clean_item(item: SlideItem) -> Optional[SlideItem]:
    """Sanitized copy of an item, or None when it has no title"""
    title = clean_text(item.title, TEXT_LIMITS["item_title"])
    if not title:
        return None
    return SlideItem(
        title=title,
        note=clean_text(item.note, TEXT_LIMITS["item_meta"]),
        time=clean_text(item.time, TEXT_LIMITS["item_meta"]),
        detail=clean_text(item.detail, TEXT_LIMITS["item_detail"]),
        image=item.image or None,
    )


def clean_items(items: Optional[Iterable[SlideItem]]) -> List[SlideItem]:
    cleaned = (clean_item(item) for item in (items or []))
    return [item for item in cleaned if item is not None]


def normalize_accent(value) -> Accent:
    """Map any value onto the palette; unknown values get the default accent"""
    if isinstance(value, Accent):
        return value
    try:
        return Accent(value)
    except ValueError:
        return DEFAULT_ACCENT


def chunk_items(items: Sequence[SlideItem], base: Slide, max_per_slide: int = MAX_ITEMS_PER_SLIDE) -> List[Slide]:
    """Split items across copies of `base`, at most `max_per_slide` each.

    Pages after the first get ids `<base>-2`, `<base>-3`, ...
    """
    slides = []
    for page, offset in enumerate(range(0, len(items), max_per_slide), start=1):
        slides.append(replace(
            base,
            id=base.id if page == 1 else f"{base.id}-{page}",
            items=tuple(items[offset:offset + max_per_slide]),
        ))
    return slides


@dataclass
class PlaylistInput:
    """Everything one playlist build needs, as a single snapshot"""
    now_label: str
    food: List[SlideItem] = field(default_factory=list)
    drink: List[SlideItem] = field(default_factory=list)
    events: List[SlideItem] = field(default_factory=list)
    config: SignageConfig = field(default_factory=SignageConfig)
    happy_hour: Optional[HappyHour] = None
    venue: Optional[VenueProfile] = None


class PlaylistBuilder:
    """Assembles the ordered slide list shown on the signage display.

    Categories are emitted in a fixed order: welcome, happy hour (carrying the
    drink specials), standalone drinks (only without happy hour), food, events,
    custom slides, and a fallback when nothing else produced a slide.
    Sequence numbers are assigned in one pass after all categories are joined.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._category_builders = {
            SlideSource.WELCOME: self._welcome_slides,
            SlideSource.HAPPY_HOUR: self._happy_hour_slides,
            SlideSource.DRINK: self._drink_slides,
            SlideSource.FOOD: self._food_slides,
            SlideSource.EVENTS: self._event_slides,
            SlideSource.CUSTOM: self._custom_slides,
            SlideSource.FALLBACK: self._fallback_slides,
        }
        missing = set(SlideSource) - set(self._category_builders)
        if missing:
            raise RuntimeError(f"No slide builder for: {sorted(s.value for s in missing)}")

    def build(self, playlist_input: PlaylistInput) -> List[Slide]:
        """Build the slide list for one display refresh"""
        slides = []
        for source in CATEGORY_ORDER:
            batch = self._category_builders[source](playlist_input, len(slides))
            self.logger.debug(f"{source.value}: {len(batch)} slides")
            slides.extend(batch)

        sequenced = [replace(slide, sequence=index) for index, slide in enumerate(slides, start=1)]
        return sorted(sequenced, key=lambda s: s.sequence)

    def _welcome_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        if not data.config.include_welcome:
            return []

        venue = data.venue or VenueProfile()
        items = None
        slide_type = None
        if venue.hero_image:
            items = (SlideItem(title="", image=venue.hero_image),)
            slide_type = "image"

        return [Slide(
            id="welcome",
            label="Welcome",
            title=clean_text(f"Welcome to {venue.name}", TEXT_LIMITS["title"]),
            subtitle=clean_text(venue.tagline, TEXT_LIMITS["subtitle"]),
            body=clean_text(venue.body, TEXT_LIMITS["body"], preserve_newlines=True),
            footer=clean_text(venue.footer, TEXT_LIMITS["footer"]),
            accent=Accent.GOLD,
            source=SlideSource.WELCOME,
            slide_type=slide_type,
            items=items,
        )]

    def _happy_hour_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        config = data.config
        if not config.include_happy_hour:
            return []

        happy_hour = data.happy_hour or HappyHour()
        base = Slide(
            id="happy-hour",
            label="Happy Hour",
            title=clean_text(happy_hour.title or "Happy Hour", TEXT_LIMITS["title"]) or "Happy Hour",
            subtitle=clean_text(happy_hour.times, TEXT_LIMITS["subtitle"]),
            body=clean_text(happy_hour.description, TEXT_LIMITS["body"]),
            footer="Ask about our food specials",
            accent=Accent.GOLD,
            source=SlideSource.HAPPY_HOUR,
        )

        drinks = clean_items(data.drink) if config.include_drink_specials else []
        if drinks:
            return chunk_items(drinks, base)
        # Shown even when there are no drink specials
        return [base]

    def _drink_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        config = data.config
        # With happy hour on, drinks ride on the happy hour slide instead
        if not config.include_drink_specials or config.include_happy_hour:
            return []

        drinks = clean_items(data.drink)
        if not drinks:
            return []

        base = Slide(
            id="drink-specials",
            label="Drink Specials",
            title="Today's Drinks",
            subtitle=clean_text(data.now_label, TEXT_LIMITS["subtitle"]),
            footer="Ask about our food specials",
            accent=Accent.GOLD,
            source=SlideSource.DRINK,
        )
        return chunk_items(drinks, base)

    def _food_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        if not data.config.include_food_specials:
            return []

        food = clean_items(data.food)
        if not food:
            return []

        base = Slide(
            id="food-specials",
            label="Food Specials",
            title="",
            footer="Ask about our drink specials",
            accent=Accent.ACCENT,
            source=SlideSource.FOOD,
        )
        return chunk_items(food, base)

    def _event_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        if not data.config.include_events:
            return []

        events = clean_items(data.events)
        if not events:
            return []

        base = Slide(
            id="events",
            label="Upcoming Events",
            title="",
            accent=Accent.GREEN,
            source=SlideSource.EVENTS,
        )
        return chunk_items(events, base, EVENTS_MAX_ITEMS_PER_SLIDE)

    def _custom_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        custom_slides = data.config.custom_slides
        if not isinstance(custom_slides, (list, tuple)):
            return []

        enabled = []
        for index, custom in enumerate(custom_slides):
            if not isinstance(custom, CustomSlide) or custom.is_enabled is False:
                continue
            position = custom.position if isinstance(custom.position, int) else index + 1
            enabled.append((position, index, custom))
        # Stable on ties: equal positions keep their configured order
        enabled.sort(key=lambda entry: (entry[0], entry[1]))

        slides = []
        for _, _, custom in enabled:
            title = clean_text(custom.title, TEXT_LIMITS["title"])
            if not title:
                continue

            slide_id = str(custom.id or f"custom-{emitted + len(slides) + 1}")
            label = clean_text(custom.label or "Custom", TEXT_LIMITS["subtitle"]) or "Custom"
            accent = normalize_accent(custom.accent)
            image_key = self._usable_image_key(custom)

            if image_key:
                # Picture-only slide; the title stays for the operator's benefit
                slides.append(Slide(
                    id=slide_id,
                    label=label,
                    title=title,
                    accent=accent,
                    source=SlideSource.CUSTOM,
                    slide_type="image",
                    items=(SlideItem(title="", image=image_key),),
                ))
            else:
                slides.append(Slide(
                    id=slide_id,
                    label=label,
                    title=title,
                    subtitle=clean_text(custom.subtitle, TEXT_LIMITS["subtitle"]),
                    body=clean_text(custom.body, TEXT_LIMITS["body"], preserve_newlines=True),
                    footer=clean_text(custom.footer, TEXT_LIMITS["footer"]),
                    accent=accent,
                    source=SlideSource.CUSTOM,
                ))
        return slides

    def _usable_image_key(self, custom: CustomSlide) -> Optional[str]:
        slide_type = custom.slide_type or ("image" if custom.image_key else "text")
        key = custom.image_key
        if slide_type != "image" or not isinstance(key, str):
            return None
        key = key.strip()
        if not key or key in MISSING_IMAGE_KEYS:
            return None
        return key

    def _fallback_slides(self, data: PlaylistInput, emitted: int) -> List[Slide]:
        if emitted:
            return []
        return [Slide(
            id="fallback",
            label="Today’s Specials",
            title="Ask your bartender",
            body="If you are seeing this, CMS data is unavailable. We will refresh automatically.",
            footer="Content refreshes in real time",
            accent=Accent.ACCENT,
            source=SlideSource.FALLBACK,
        )]
