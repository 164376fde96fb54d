"""Translate source events into destination property values."""
from datetime import datetime, timedelta, timezone

from processor.errors import InvalidDateRange
from processor.models import (
    CanonicalFields,
    DateBound,
    DateRange,
    DateValue,
    PropertyNames,
    RichTextValue,
    SourceEvent,
    TitleValue,
)


def convert_date_range(start: DateBound, end: DateBound) -> DateRange:
    """
    Convert a feed range (exclusive end) to a destination range (inclusive end).

    All-day ranges lose one day at the end, and a single-day range has no
    end at all. Timed ranges are converted to UTC and always keep their end.

    Args:
        start: Range start, date or timezone-aware datetime
        end: Exclusive range end, same type as start

    Returns:
        DateRange suitable for the destination

    Raises:
        InvalidDateRange: If the bounds mix dates and date-times, or if an
            all-day range is empty or cannot be shifted back one day
    """
    start_is_datetime = isinstance(start, datetime)
    end_is_datetime = isinstance(end, datetime)

    if not start_is_datetime and not end_is_datetime:
        try:
            inclusive_end = end - timedelta(days=1)
        except OverflowError as e:
            raise InvalidDateRange(f"Cannot compute inclusive end of {end}") from e
        if inclusive_end < start:
            raise InvalidDateRange(f"All-day range ends before it starts: {start} - {end}")
        return DateRange(
            start=start,
            end=inclusive_end if inclusive_end != start else None,
        )

    if start_is_datetime and end_is_datetime:
        if start.tzinfo is None or end.tzinfo is None:
            raise InvalidDateRange(f"Date-times without timezone: {start} - {end}")
        return DateRange(
            start=start.astimezone(timezone.utc),
            end=end.astimezone(timezone.utc),
        )

    raise InvalidDateRange(f"Range mixes dates and date-times: {start} - {end}")


class FieldTranslator:
    """Builds the managed destination properties for a source event."""

    def __init__(self, names: PropertyNames):
        self.names = names

    def translate(self, event: SourceEvent) -> CanonicalFields:
        """
        Build the properties to write for an event.

        Args:
            event: Normalized source event

        Returns:
            Mapping of property name to value to write

        Raises:
            InvalidDateRange: If the event range cannot be converted
        """
        properties: CanonicalFields = {}

        # Never overwrite an existing title with an empty one
        if event.title:
            properties[self.names.title] = TitleValue.from_text(event.title)

        properties[self.names.identifier] = RichTextValue.from_text(event.identifier)
        properties[self.names.date] = DateValue(
            date=convert_date_range(event.start, event.end)
        )

        if event.location and self.names.location:
            properties[self.names.location] = RichTextValue.from_text(event.location)

        return properties
