"""Unit tests for the Notion property codec."""
from datetime import date, datetime, timezone

import pytest

from processor.models import (
    CheckboxValue,
    DateRange,
    DateValue,
    MultiSelectValue,
    NumberValue,
    PeopleValue,
    RelationValue,
    RichText,
    RichTextValue,
    SelectValue,
    TitleValue,
    UnsupportedValue,
)
from storage.notion_codec import (
    decode_property,
    decode_record,
    encode_properties,
    encode_property,
    parse_date_bound,
)


def text_item(content, href=None):
    return {
        'type': 'text',
        'text': {'content': content, 'link': None},
        'annotations': {'bold': True},
        'plain_text': content,
        'href': href,
    }


class TestParseDateBound:
    """Test cases for Notion date parsing."""

    def test_date(self):
        assert parse_date_bound('2024-01-01') == date(2024, 1, 1)

    def test_datetime_with_offset(self):
        value = parse_date_bound('2024-01-05T10:00:00.000+01:00')

        assert value == datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc)

    def test_datetime_with_z_suffix(self):
        assert parse_date_bound('2024-01-05T09:00:00Z') == datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc)

    def test_empty(self):
        assert parse_date_bound(None) is None


class TestDecodeProperty:
    """Test cases for decoding Notion properties."""

    def test_title(self):
        """Test that title runs keep their plain text and link."""
        value = decode_property({
            'id': 'title',
            'type': 'title',
            'title': [text_item('Team '), text_item('Offsite', href='https://example.com')],
        })

        assert isinstance(value, TitleValue)
        assert value.property_id == 'title'
        assert value.title == (RichText('Team '), RichText('Offsite', 'https://example.com'))

    def test_rich_text(self):
        value = decode_property({'id': 'a%3Db', 'type': 'rich_text', 'rich_text': [text_item('abc')]})

        assert value == RichTextValue.from_text('abc')

    def test_date(self):
        value = decode_property({
            'id': 'd',
            'type': 'date',
            'date': {'start': '2024-01-01', 'end': '2024-01-02', 'time_zone': None},
        })

        assert value == DateValue(date=DateRange(start=date(2024, 1, 1), end=date(2024, 1, 2)))

    def test_empty_date(self):
        value = decode_property({'id': 'd', 'type': 'date', 'date': None})

        assert value == DateValue(date=None)

    def test_scalar_and_list_types(self):
        """Test decoding of the remaining writable types."""
        assert decode_property({'type': 'number', 'number': 2}) == NumberValue(2)
        assert decode_property({'type': 'checkbox', 'checkbox': True}) == CheckboxValue(True)
        assert decode_property({'type': 'select', 'select': None}) == SelectValue(None)
        assert decode_property({
            'type': 'multi_select',
            'multi_select': [{'id': '1', 'name': 'a'}, {'id': '2', 'name': 'b'}],
        }) == MultiSelectValue(('a', 'b'))
        assert decode_property({
            'type': 'relation', 'relation': [{'id': 'page-1'}],
        }) == RelationValue(('page-1',))
        assert decode_property({
            'type': 'people', 'people': [{'object': 'user', 'id': 'user-1'}],
        }) == PeopleValue(('user-1',))

    def test_unknown_type(self):
        value = decode_property({'id': 'f', 'type': 'formula', 'formula': {'type': 'number', 'number': 1}})

        assert isinstance(value, UnsupportedValue)
        assert value.kind == 'formula'


class TestEncodeProperty:
    """Test cases for encoding write values."""

    def test_title(self):
        assert encode_property(TitleValue.from_text('Standup')) == {
            'title': [{'type': 'text', 'text': {'content': 'Standup', 'link': None}}]
        }

    def test_all_day_date_without_end(self):
        value = DateValue(date=DateRange(start=date(2024, 1, 1)))

        assert encode_property(value) == {'date': {'start': '2024-01-01', 'end': None}}

    def test_timed_date(self):
        value = DateValue(date=DateRange(
            start=datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc),
            end=datetime(2024, 1, 5, 9, 15, tzinfo=timezone.utc)
        ))

        assert encode_property(value) == {
            'date': {
                'start': '2024-01-05T09:00:00+00:00',
                'end': '2024-01-05T09:15:00+00:00',
            }
        }

    def test_unsupported_value_cannot_be_written(self):
        with pytest.raises(ValueError):
            encode_property(UnsupportedValue(kind='rollup'))

    def test_encode_properties(self):
        encoded = encode_properties({
            'UID': RichTextValue.from_text('event-1'),
            'Done': CheckboxValue(False),
        })

        assert encoded == {
            'UID': {'rich_text': [{'type': 'text', 'text': {'content': 'event-1', 'link': None}}]},
            'Done': {'checkbox': False},
        }


def test_decode_record():
    """Test decoding a full page object."""
    page = {
        'object': 'page',
        'id': 'page-1',
        'properties': {
            'Name': {'id': 'title', 'type': 'title', 'title': [text_item('Standup')]},
            'UID': {'id': 'uid', 'type': 'rich_text', 'rich_text': [text_item('event-1')]},
        },
    }

    record = decode_record(page)

    assert record.record_id == 'page-1'
    assert record.properties['Name'] == TitleValue.from_text('Standup')
    assert record.properties['UID'] == RichTextValue.from_text('event-1')


def test_round_trip_through_notion_shape_is_stable():
    """Test that a written date reads back equal, so reruns stay idle."""
    written = DateValue(date=DateRange(
        start=datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc),
        end=datetime(2024, 1, 5, 9, 15, tzinfo=timezone.utc)
    ))
    # Notion echoes date-times with milliseconds
    stored = decode_property({
        'id': 'd',
        'type': 'date',
        'date': {
            'start': '2024-01-05T09:00:00.000+00:00',
            'end': '2024-01-05T09:15:00.000+00:00',
            'time_zone': None,
        },
    })

    assert stored.date.normalized() == written.date.normalized()
