"""Conversion between Notion property JSON and property values."""
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from processor.models import (
    CheckboxValue,
    DateBound,
    DateRange,
    DateValue,
    DestinationRecord,
    EmailValue,
    FilesValue,
    MultiSelectValue,
    NumberValue,
    PeopleValue,
    PhoneNumberValue,
    PropertyValue,
    RelationValue,
    RichText,
    RichTextValue,
    SelectValue,
    TitleValue,
    UnsupportedValue,
    UrlValue,
    WriteValue,
)


def parse_date_bound(text: Optional[str]) -> Optional[DateBound]:
    """
    Parse a Notion date string.

    Args:
        text: "YYYY-MM-DD" or an ISO 8601 date-time, possibly ending in "Z"

    Returns:
        date, timezone-aware datetime (UTC when no offset is given) or None
    """
    if not text:
        return None
    if "T" not in text:
        return date.fromisoformat(text)
    value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def format_date_bound(bound: Optional[DateBound]) -> Optional[str]:
    if bound is None:
        return None
    return bound.isoformat()


def _rich_text(items: Optional[list]) -> tuple:
    return tuple(
        RichText(plain_text=item.get("plain_text", ""), href=item.get("href"))
        for item in items or []
    )


def decode_property(data: Dict[str, Any]) -> PropertyValue:
    """
    Convert a Notion page property object to a property value.

    Args:
        data: Property object as returned by the Notion API

    Returns:
        Matching property value; types the sync never writes become
        UnsupportedValue
    """
    kind = data.get("type", "")
    property_id = data.get("id", "")

    if kind == "title":
        return TitleValue(title=_rich_text(data.get("title")), property_id=property_id)
    if kind == "rich_text":
        return RichTextValue(rich_text=_rich_text(data.get("rich_text")), property_id=property_id)
    if kind == "number":
        return NumberValue(number=data.get("number"), property_id=property_id)
    if kind == "date":
        raw = data.get("date")
        value = None
        if raw and raw.get("start"):
            value = DateRange(
                start=parse_date_bound(raw["start"]),
                end=parse_date_bound(raw.get("end")),
            )
        return DateValue(date=value, property_id=property_id)
    if kind == "checkbox":
        return CheckboxValue(checkbox=bool(data.get("checkbox")), property_id=property_id)
    if kind == "url":
        return UrlValue(url=data.get("url"), property_id=property_id)
    if kind == "email":
        return EmailValue(email=data.get("email"), property_id=property_id)
    if kind == "phone_number":
        return PhoneNumberValue(phone_number=data.get("phone_number"), property_id=property_id)
    if kind == "select":
        select = data.get("select") or {}
        return SelectValue(name=select.get("name"), property_id=property_id)
    if kind == "multi_select":
        return MultiSelectValue(
            names=tuple(option["name"] for option in data.get("multi_select") or []),
            property_id=property_id,
        )
    if kind == "relation":
        return RelationValue(
            page_ids=tuple(item["id"] for item in data.get("relation") or []),
            property_id=property_id,
        )
    if kind == "people":
        return PeopleValue(
            user_ids=tuple(item["id"] for item in data.get("people") or []),
            property_id=property_id,
        )
    if kind == "files":
        return FilesValue(
            names=tuple(item.get("name", "") for item in data.get("files") or []),
            property_id=property_id,
        )

    return UnsupportedValue(kind=kind, raw=data, property_id=property_id)


def _write_rich_text(items: tuple) -> list:
    return [
        {
            "type": "text",
            "text": {
                "content": item.plain_text,
                "link": {"url": item.href} if item.href else None,
            },
        }
        for item in items
    ]


def encode_property(value: WriteValue) -> Dict[str, Any]:
    """
    Convert a property value to the JSON body Notion expects when writing.

    Args:
        value: Property value to write

    Returns:
        Property object for page create/update requests

    Raises:
        ValueError: If the value is of a type Notion does not accept on write
    """
    if isinstance(value, TitleValue):
        return {"title": _write_rich_text(value.title)}
    if isinstance(value, RichTextValue):
        return {"rich_text": _write_rich_text(value.rich_text)}
    if isinstance(value, NumberValue):
        return {"number": value.number}
    if isinstance(value, DateValue):
        if value.date is None:
            return {"date": None}
        return {
            "date": {
                "start": format_date_bound(value.date.start),
                "end": format_date_bound(value.date.end),
            }
        }
    if isinstance(value, CheckboxValue):
        return {"checkbox": value.checkbox}
    if isinstance(value, UrlValue):
        return {"url": value.url}
    if isinstance(value, EmailValue):
        return {"email": value.email}
    if isinstance(value, PhoneNumberValue):
        return {"phone_number": value.phone_number}
    if isinstance(value, SelectValue):
        return {"select": {"name": value.name} if value.name else None}
    if isinstance(value, MultiSelectValue):
        return {"multi_select": [{"name": name} for name in value.names]}
    if isinstance(value, RelationValue):
        return {"relation": [{"id": page_id} for page_id in value.page_ids]}
    if isinstance(value, PeopleValue):
        return {"people": [{"object": "user", "id": user_id} for user_id in value.user_ids]}
    if isinstance(value, FilesValue):
        # Only external files can be written; they are named by their URL
        return {
            "files": [
                {"name": name, "type": "external", "external": {"url": name}}
                for name in value.names
            ]
        }

    raise ValueError(f"Cannot write property of type '{value.kind}'")


def encode_properties(properties: Dict[str, WriteValue]) -> Dict[str, Any]:
    return {name: encode_property(value) for name, value in properties.items()}


def decode_record(page: Dict[str, Any]) -> DestinationRecord:
    """
    Convert a Notion page object to a DestinationRecord.

    Args:
        page: Page object as returned by a database query

    Returns:
        DestinationRecord keyed by the page id
    """
    properties = {
        name: decode_property(data)
        for name, data in page.get("properties", {}).items()
    }
    return DestinationRecord(record_id=page["id"], properties=properties)
