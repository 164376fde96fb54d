"""Event processor for normalizing calendar feed events."""
import logging
from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from icalendar import Event

from processor.errors import MissingDateRange, MissingIdentifier, PerEventError
from processor.models import DateBound, SourceEvent

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor turning ICS VEVENT components into SourceEvent records."""

    def __init__(self, default_timezone: Optional[tzinfo] = None):
        """
        Initialize the event processor.

        Args:
            default_timezone: Zone applied to floating date-times
                (default: UTC)
        """
        self.default_timezone = default_timezone or ZoneInfo("UTC")

    def process_events(self, components: Iterable[Event]) -> List[SourceEvent]:
        """
        Normalize feed components, skipping the ones that cannot be synced.

        Args:
            components: VEVENT components in feed order

        Returns:
            List of SourceEvent objects, in feed order
        """
        processed_events = []
        total = 0

        for component in components:
            total += 1
            try:
                processed_events.append(self.process_event(component))
            except PerEventError as e:
                logger.warning(
                    f"Skipping event '{component.get('SUMMARY', '')}': {e}"
                )
                continue

        logger.info(
            f"Processed {len(processed_events)} valid events out of "
            f"{total} total events"
        )
        return processed_events

    def process_event(self, component: Event) -> SourceEvent:
        """
        Normalize a single VEVENT.

        Args:
            component: VEVENT component

        Returns:
            SourceEvent

        Raises:
            MissingIdentifier: If the event has no UID
            MissingDateRange: If the start or the end cannot be determined
        """
        identifier = str(component.get("UID", "")).strip()
        if not identifier:
            raise MissingIdentifier("Event has no UID")

        title = str(component.get("SUMMARY", ""))
        start, end = self._date_range(component, identifier)

        location = str(component.get("LOCATION", "")).strip() or None

        return SourceEvent(
            identifier=identifier,
            title=title,
            start=start,
            end=end,
            location=location,
        )

    def _date_range(self, component: Event, identifier: str) -> tuple[DateBound, DateBound]:
        start = self._read_bound(component, "DTSTART", identifier)
        if start is None:
            raise MissingDateRange(f"Event {identifier} has no DTSTART")

        end = self._read_bound(component, "DTEND", identifier)
        if end is not None:
            return start, end

        # RFC 5545 allows DURATION in place of DTEND
        if "DURATION" in component:
            try:
                return start, start + component.decoded("DURATION")
            except (ValueError, TypeError, AttributeError) as e:
                raise MissingDateRange(f"Event {identifier} has an unreadable DURATION: {e}") from e

        raise MissingDateRange(f"Event {identifier} has no DTEND or DURATION")

    def _read_bound(self, component: Event, name: str, identifier: str) -> Optional[DateBound]:
        """
        Read a date property, or None when it is absent.

        Raises:
            MissingDateRange: If the property is present but unparsable
        """
        prop = component.get(name)
        if prop is None:
            return None
        try:
            value = prop.dt
        except (ValueError, AttributeError) as e:
            # broken values surface on access, e.g. icalendar's BrokenCalendarProperty
            raise MissingDateRange(f"Event {identifier} has an unreadable {name}: {e}") from e
        return self._localize(value)

    def _localize(self, value: DateBound) -> DateBound:
        """Attach the default timezone to floating date-times."""
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=self.default_timezone)
            return value
        if isinstance(value, date):
            return value
        raise MissingDateRange(f"Unsupported date value: {value!r}")
