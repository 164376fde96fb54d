"""Compute the minimal patch between candidate and stored property values."""
from processor.errors import UnsupportedPropertyType
from processor.models import (
    CanonicalFields,
    DateValue,
    Patch,
    PropertyValue,
    RichTextValue,
    TitleValue,
    UnsupportedValue,
    WriteValue,
    plain_text,
)


def values_equal(name: str, stored: PropertyValue, candidate: WriteValue) -> bool:
    """
    Compare a stored value with the value that would be written.

    Text is compared on its plain content, since formatting is never
    written. Dates are compared structurally. Every other type is
    compared by value.

    Raises:
        UnsupportedPropertyType: If the two values are not of the same
            property type, or the type is not one the engine handles
    """
    if (
        isinstance(stored, UnsupportedValue)
        or isinstance(candidate, UnsupportedValue)
        or type(stored) is not type(candidate)
    ):
        raise UnsupportedPropertyType(name, stored.kind, candidate.kind)

    if isinstance(stored, TitleValue):
        return plain_text(stored.title) == plain_text(candidate.title)
    if isinstance(stored, RichTextValue):
        return plain_text(stored.rich_text) == plain_text(candidate.rich_text)
    if isinstance(stored, DateValue):
        if stored.date is None or candidate.date is None:
            return stored.date is None and candidate.date is None
        return stored.date.normalized() == candidate.date.normalized()

    # Remaining variants hold plain values; property_id is excluded from eq
    return stored == candidate


def compute_patch(candidate: CanonicalFields, current: dict[str, PropertyValue]) -> Patch:
    """
    Keep only the candidate properties that differ from the stored ones.

    Properties stored on the record but absent from the candidate are
    never part of the patch.

    Args:
        candidate: Properties the sync wants to write
        current: Properties currently stored on the record

    Returns:
        Patch, empty when the record is up to date

    Raises:
        UnsupportedPropertyType: If a managed property has an unexpected type
    """
    patch: Patch = {}
    for name, value in candidate.items():
        stored = current.get(name)
        if stored is None or not values_equal(name, stored, value):
            patch[name] = value
    return patch
