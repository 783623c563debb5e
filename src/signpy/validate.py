# validate.py
import re
import logging
from typing import List, Optional, Dict, Any

from signpy.models import Catalog, CalendarEvent, Accent, ValidationResult
from signpy.patterns import parse_rule, WEEKDAY_LABELS, WEEKDAY_CODES
from signpy.playlist import MISSING_IMAGE_KEYS
from signpy.timezone import VenueClock

EXCEPTION_DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ACCENT_VALUES = {accent.value for accent in Accent}


class CatalogValidator:
    """Lints a catalog and the custom slide definitions.

    Nothing here blocks a playlist from being built; errors mark data the
    display will drop or misread, warnings mark data it will quietly fix up.
    """

    def __init__(self, clock: Optional[VenueClock] = None):
        self.clock = clock or VenueClock()
        self.logger = logging.getLogger(__name__)

    def validate(self, catalog: Catalog, custom_slides: Optional[List[Dict[str, Any]]] = None) -> ValidationResult:
        """Main validation entry point"""
        result = ValidationResult()

        for event in catalog.events:
            self._validate_event(event, result)

        if custom_slides:
            result.merge(self.validate_custom_slides(custom_slides))

        self.logger.debug(f"Validation finished with {len(result.errors)} error checks and {len(result.warnings)} warning checks")
        return result

    def _validate_event(self, event: CalendarEvent, result: ValidationResult) -> None:
        if event.end is not None and event.end < event.start:
            result.add("event_times", "error", f"Event '{event.id}' ends before it starts")

        for exception in sorted(event.exceptions):
            if not EXCEPTION_DATE_REGEX.match(exception):
                result.add("event_exceptions", "error", f"Event '{event.id}' has exception '{exception}', expected YYYY-MM-DD")

        if not event.recurrence_rule:
            return

        try:
            pattern = parse_rule(event.recurrence_rule)
        except ValueError as e:
            result.add("event_rule", "warning", f"Event '{event.id}': {e}; occurrences may be incomplete")
            return

        # The engine moves a weekly anchor onto the first listed weekday
        if pattern.is_weekly and pattern.weekdays:
            start_weekday = self.clock.civil_date(event.start).weekday()
            if start_weekday not in pattern.weekdays:
                listed = ", ".join(WEEKDAY_LABELS[WEEKDAY_CODES[day]] for day in pattern.weekdays)
                result.add(
                    "event_anchor", "warning",
                    f"Event '{event.id}' starts on a {WEEKDAY_LABELS[WEEKDAY_CODES[start_weekday]]} "
                    f"but repeats on {listed}; the first occurrence moves to the next listed day"
                )

    def validate_custom_slides(self, custom_slides: List[Dict[str, Any]]) -> ValidationResult:
        """Checks raw custom slide entries as they appear in the config"""
        result = ValidationResult()

        for index, entry in enumerate(custom_slides):
            if not isinstance(entry, dict):
                continue
            name = entry.get("id") or f"#{index + 1}"

            title = entry.get("title")
            if not isinstance(title, str) or not title.strip():
                result.add("custom_title", "warning", f"Custom slide '{name}' has no title and will be skipped")

            accent = entry.get("accent")
            if accent is not None and accent not in ACCENT_VALUES:
                result.add("custom_accent", "warning", f"Custom slide '{name}' accent '{accent}' is not in the palette; 'accent' is used")

            image_key = entry.get("image_storage_key") or entry.get("imageStorageKey") or entry.get("image_url") or entry.get("imageUrl")
            slide_type = entry.get("slide_type") or entry.get("slideType")
            if slide_type == "image":
                if not isinstance(image_key, str) or not image_key.strip() or image_key.strip() in MISSING_IMAGE_KEYS:
                    result.add("custom_image", "warning", f"Custom slide '{name}' is an image slide without a usable image; it is shown as text")

        return result
