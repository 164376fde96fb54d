"""Join source events and destination records by identifier."""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from processor.errors import DuplicateIdentifier
from processor.models import (
    DestinationRecord,
    RichTextValue,
    SourceEvent,
    TitleValue,
    plain_text,
)

logger = logging.getLogger(__name__)


@dataclass
class RecordIndex:
    """Lookup maps for both snapshots and the ordered union of their ids."""
    source: Dict[str, SourceEvent]
    destination: Dict[str, DestinationRecord]
    identifiers: List[str]


def record_identifier(record: DestinationRecord, id_property: str) -> Optional[str]:
    """
    Extract the sync identifier stored on a destination record.

    Args:
        record: Destination record
        id_property: Name of the identifier property

    Returns:
        Identifier text, or None if the property is missing, empty or
        not a text property
    """
    value = record.properties.get(id_property)
    if isinstance(value, RichTextValue):
        text = plain_text(value.rich_text)
    elif isinstance(value, TitleValue):
        text = plain_text(value.title)
    else:
        return None
    return text or None


def build_index(
    source_events: Iterable[SourceEvent],
    records: Iterable[DestinationRecord],
    id_property: str,
) -> RecordIndex:
    """
    Build id lookups for both snapshots.

    Source duplicates keep the last event seen in feed order. Destination
    duplicates are an error since the store must guarantee uniqueness.

    Args:
        source_events: Normalized feed events, in feed order
        records: Destination records, in query order
        id_property: Name of the identifier property

    Returns:
        RecordIndex with identifiers ordered source-first

    Raises:
        DuplicateIdentifier: If two destination records share an identifier
    """
    source: Dict[str, SourceEvent] = {}
    for event in source_events:
        if event.identifier in source:
            logger.debug(
                f"Event {event.identifier} repeated in feed, keeping the later entry"
            )
        source[event.identifier] = event

    destination: Dict[str, DestinationRecord] = {}
    for record in records:
        identifier = record_identifier(record, id_property)
        if identifier is None:
            logger.warning(
                f"Record {record.record_id} has no usable '{id_property}', ignoring"
            )
            continue
        if identifier in destination:
            raise DuplicateIdentifier(
                identifier, [destination[identifier].record_id, record.record_id]
            )
        destination[identifier] = record

    # dicts preserve insertion order, so this is a stable ordered union
    identifiers = list(dict.fromkeys([*source, *destination]))

    logger.info(
        f"Indexed {len(source)} feed events and {len(destination)} records "
        f"({len(identifiers)} distinct identifiers)"
    )
    return RecordIndex(source=source, destination=destination, identifiers=identifiers)
