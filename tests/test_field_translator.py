"""Unit tests for the field translator."""
from datetime import date, datetime, timedelta, timezone

import pytest

from processor.errors import InvalidDateRange
from processor.field_translator import FieldTranslator, convert_date_range
from processor.models import (
    DateRange,
    DateValue,
    PropertyNames,
    RichTextValue,
    SourceEvent,
    TitleValue,
)


@pytest.fixture
def names():
    return PropertyNames(title='Name', identifier='UID', date='Date', location='Where')


class TestConvertDateRange:
    """Test cases for exclusive to inclusive range conversion."""

    def test_multi_day_all_day_range(self):
        """Test that the exclusive end moves back one day."""
        result = convert_date_range(date(2024, 1, 1), date(2024, 1, 3))

        assert result == DateRange(start=date(2024, 1, 1), end=date(2024, 1, 2))

    def test_single_day_range_has_no_end(self):
        """Test that a single-day range omits its end."""
        result = convert_date_range(date(2024, 1, 1), date(2024, 1, 2))

        assert result == DateRange(start=date(2024, 1, 1), end=None)

    def test_timed_range_converted_to_utc(self):
        """Test that date-times are converted to UTC and keep their end."""
        plus_two = timezone(timedelta(hours=2))
        result = convert_date_range(
            datetime(2024, 1, 5, 9, 0, tzinfo=plus_two),
            datetime(2024, 1, 5, 9, 0, tzinfo=plus_two),
        )

        assert result.start == datetime(2024, 1, 5, 7, 0, tzinfo=timezone.utc)
        assert result.start.tzinfo == timezone.utc
        assert result.end == datetime(2024, 1, 5, 7, 0, tzinfo=timezone.utc)

    def test_mixed_range_is_invalid(self):
        """Test that mixing dates and date-times fails."""
        with pytest.raises(InvalidDateRange):
            convert_date_range(
                date(2024, 1, 1),
                datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc),
            )

    def test_underflow_is_invalid(self):
        """Test that an end which cannot move back one day fails."""
        with pytest.raises(InvalidDateRange):
            convert_date_range(date.min, date.min)

    def test_empty_all_day_range_is_invalid(self):
        """Test that an all-day range ending on its start fails."""
        with pytest.raises(InvalidDateRange):
            convert_date_range(date(2024, 1, 2), date(2024, 1, 2))


class TestFieldTranslator:
    """Test cases for FieldTranslator class."""

    def test_translate_full_event(self, names):
        """Test translating an event with every field."""
        translator = FieldTranslator(names)
        event = SourceEvent(
            identifier='event-1',
            title='Team Offsite',
            start=date(2024, 1, 1),
            end=date(2024, 1, 3),
            location='Lisbon'
        )

        properties = translator.translate(event)

        assert properties == {
            'Name': TitleValue.from_text('Team Offsite'),
            'UID': RichTextValue.from_text('event-1'),
            'Date': DateValue(date=DateRange(start=date(2024, 1, 1), end=date(2024, 1, 2))),
            'Where': RichTextValue.from_text('Lisbon'),
        }

    def test_translate_empty_title_is_omitted(self, names):
        """Test that an empty title is never written."""
        translator = FieldTranslator(names)
        event = SourceEvent(
            identifier='event-1',
            title='',
            start=date(2024, 1, 1),
            end=date(2024, 1, 2)
        )

        properties = translator.translate(event)

        assert 'Name' not in properties
        assert 'UID' in properties
        assert 'Date' in properties

    def test_translate_location_without_property(self):
        """Test that location is omitted when no property is configured."""
        translator = FieldTranslator(PropertyNames(title='Name', identifier='UID', date='Date'))
        event = SourceEvent(
            identifier='event-1',
            title='Team Offsite',
            start=date(2024, 1, 1),
            end=date(2024, 1, 2),
            location='Lisbon'
        )

        properties = translator.translate(event)

        assert set(properties) == {'Name', 'UID', 'Date'}

    def test_translate_without_location(self, names):
        """Test that a missing location is omitted, not cleared."""
        translator = FieldTranslator(names)
        event = SourceEvent(
            identifier='event-1',
            title='Team Offsite',
            start=date(2024, 1, 1),
            end=date(2024, 1, 2)
        )

        properties = translator.translate(event)

        assert 'Where' not in properties

    def test_translate_invalid_range(self, names):
        """Test that an invalid range propagates InvalidDateRange."""
        translator = FieldTranslator(names)
        event = SourceEvent(
            identifier='event-1',
            title='Broken',
            start=date(2024, 1, 1),
            end=datetime(2024, 1, 2, tzinfo=timezone.utc)
        )

        with pytest.raises(InvalidDateRange):
            translator.translate(event)
