from datetime import datetime, timedelta, timezone

from signpy.models import (
    CalendarEvent, Special, SpecialType, Slide, SlideItem, SlideSource, Accent,
    CustomSlide, Catalog, ValidationResult
)


def test_calendar_event_properties():
    """Test recurrence flag and duration of an event."""
    start = datetime(2026, 10, 18, 1, 0, tzinfo=timezone.utc)
    event = CalendarEvent(id="e", title="Trivia", start=start, end=start + timedelta(hours=2), recurrence_rule="FREQ=DAILY")
    assert event.is_recurring
    assert event.duration == timedelta(hours=2)
    assert "Trivia" in str(event)

    once = CalendarEvent(id="o", title="Band", start=start)
    assert not once.is_recurring
    assert once.duration is None

def test_special_categories():
    """Untyped specials count as food."""
    assert Special(id="a", title="Nachos").is_food
    assert Special(id="b", title="Wings", type=SpecialType.FOOD).is_food
    drink = Special(id="c", title="Pint", type=SpecialType.DRINK)
    assert drink.is_drink and not drink.is_food

def test_slide_to_dict():
    """Test the serialized slide shape."""
    slide = Slide(
        id="img",
        label="Custom",
        title="Patio",
        source=SlideSource.CUSTOM,
        accent=Accent.TEAL,
        slide_type="image",
        items=(SlideItem(title="", image="uploads/patio.jpg"),),
        sequence=3,
    )
    assert slide.to_dict() == {
        "id": "img",
        "label": "Custom",
        "title": "Patio",
        "source": "custom",
        "accent": "teal",
        "sequence": 3,
        "slideType": "image",
        "items": [{"title": "", "image": "uploads/patio.jpg"}],
    }
    assert str(slide) == "#3 img (custom, 1 items)"

def test_happy_hour_source_value():
    assert SlideSource.HAPPY_HOUR.value == "happyHour"

def test_custom_slide_image_key():
    assert CustomSlide(id="a", image_storage_key="k", image_url="u").image_key == "k"
    assert CustomSlide(id="b", image_url="u").image_key == "u"
    assert CustomSlide(id="c").image_key is None

def test_catalog_str():
    assert str(Catalog()) == "0 events, 0 specials"

def test_validation_result():
    """Test errors and warnings grouping."""
    result = ValidationResult()
    result.add("event_rule", "warning", "first")
    result.add("event_rule", "warning", "second")
    assert result.passed
    assert result.warnings["event_rule"] == ["first", "second"]

    other = ValidationResult()
    other.add("event_times", "error", "ends before it starts")
    result.merge(other)
    assert result.failed
    assert result.errors == {"event_times": ["ends before it starts"]}
