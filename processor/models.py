"""Data models for calendar reconciliation."""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union


DateBound = Union[date, datetime]


@dataclass(frozen=True)
class SourceEvent:
    """Normalized event from the calendar feed."""
    identifier: str
    title: str
    start: DateBound
    end: DateBound
    location: Optional[str] = None


@dataclass(frozen=True)
class RichText:
    """A single rich text run; only the plain text is tracked."""
    plain_text: str
    href: Optional[str] = None


def plain_text(items: Tuple[RichText, ...]) -> str:
    """Concatenate the plain text of rich text runs, ignoring formatting."""
    return "".join(item.plain_text for item in items)


def _normalize_bound(bound: Optional[DateBound]):
    if bound is None:
        return None
    if isinstance(bound, datetime):
        if bound.tzinfo is None:
            bound = bound.replace(tzinfo=timezone.utc)
        return ("datetime", bound.astimezone(timezone.utc))
    return ("date", bound)


@dataclass(frozen=True)
class DateRange:
    """Date range with an inclusive end, as stored in the destination."""
    start: DateBound
    end: Optional[DateBound] = None

    def normalized(self) -> Tuple:
        """
        Structural comparison key.

        Date-times are compared as absolute UTC instants; pure dates are
        never equal to date-times.
        """
        return (_normalize_bound(self.start), _normalize_bound(self.end))


def start_date(bound: DateBound) -> date:
    """Return the calendar date of a bound, converting date-times to UTC."""
    if isinstance(bound, datetime):
        if bound.tzinfo is None:
            return bound.date()
        return bound.astimezone(timezone.utc).date()
    return bound


# Property values. The same classes describe both what is stored in the
# destination (property_id set) and what should be written (property_id
# empty); property_id never takes part in equality.

@dataclass(frozen=True)
class TitleValue:
    kind: ClassVar[str] = "title"
    title: Tuple[RichText, ...]
    property_id: str = field(default="", compare=False)

    @classmethod
    def from_text(cls, text: str) -> "TitleValue":
        return cls(title=(RichText(plain_text=text),))


@dataclass(frozen=True)
class RichTextValue:
    kind: ClassVar[str] = "rich_text"
    rich_text: Tuple[RichText, ...]
    property_id: str = field(default="", compare=False)

    @classmethod
    def from_text(cls, text: str) -> "RichTextValue":
        return cls(rich_text=(RichText(plain_text=text),))


@dataclass(frozen=True)
class NumberValue:
    kind: ClassVar[str] = "number"
    number: Optional[float]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class DateValue:
    kind: ClassVar[str] = "date"
    date: Optional[DateRange]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class CheckboxValue:
    kind: ClassVar[str] = "checkbox"
    checkbox: bool
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class UrlValue:
    kind: ClassVar[str] = "url"
    url: Optional[str]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class EmailValue:
    kind: ClassVar[str] = "email"
    email: Optional[str]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class PhoneNumberValue:
    kind: ClassVar[str] = "phone_number"
    phone_number: Optional[str]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class SelectValue:
    kind: ClassVar[str] = "select"
    name: Optional[str]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class MultiSelectValue:
    kind: ClassVar[str] = "multi_select"
    names: Tuple[str, ...]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class RelationValue:
    kind: ClassVar[str] = "relation"
    page_ids: Tuple[str, ...]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class PeopleValue:
    kind: ClassVar[str] = "people"
    user_ids: Tuple[str, ...]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class FilesValue:
    kind: ClassVar[str] = "files"
    names: Tuple[str, ...]
    property_id: str = field(default="", compare=False)


@dataclass(frozen=True)
class UnsupportedValue:
    """A stored property of a type this engine never writes (formula, rollup...)."""
    kind: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    property_id: str = field(default="", compare=False)


PropertyValue = Union[
    TitleValue,
    RichTextValue,
    NumberValue,
    DateValue,
    CheckboxValue,
    UrlValue,
    EmailValue,
    PhoneNumberValue,
    SelectValue,
    MultiSelectValue,
    RelationValue,
    PeopleValue,
    FilesValue,
    UnsupportedValue,
]

# A value to be written: same shape, no property_id.
WriteValue = PropertyValue

CanonicalFields = Dict[str, WriteValue]
Patch = Dict[str, WriteValue]


@dataclass(frozen=True)
class DestinationRecord:
    """Page of the destination database."""
    record_id: str
    properties: Dict[str, PropertyValue] = field(hash=False)


@dataclass(frozen=True)
class PropertyNames:
    """Names of the destination properties managed by the sync."""
    title: str
    identifier: str
    date: str
    location: Optional[str] = None


@dataclass(frozen=True)
class RetentionWindow:
    """Inclusive range of start dates eligible for creation."""
    earliest: date
    latest: date

    @classmethod
    def from_days(cls, days_past: int, days_future: int, today: date) -> "RetentionWindow":
        """
        Build a window relative to today.

        Args:
            days_past: Number of days before today still accepted
            days_future: Number of days after today still accepted
            today: Reference date, fixed at run start

        Returns:
            RetentionWindow covering [today - days_past, today + days_future]
        """
        return cls(
            earliest=today - timedelta(days=days_past),
            latest=today + timedelta(days=days_future),
        )

    def excludes(self, start: Optional[DateBound]) -> bool:
        if start is None:
            return False
        day = start_date(start)
        return day < self.earliest or day > self.latest


@dataclass(frozen=True)
class CreateRequest:
    """Full property set for a new destination record."""
    identifier: str
    title: str
    properties: CanonicalFields = field(hash=False)


@dataclass(frozen=True)
class UpdateRequest:
    """Minimal patch for an existing destination record."""
    identifier: str
    title: str
    record_id: str
    patch: Patch = field(hash=False)


@dataclass
class ReconciliationPlan:
    """Requests computed by one reconciliation run."""
    creations: List[CreateRequest] = field(default_factory=list)
    updates: List[UpdateRequest] = field(default_factory=list)
    orphaned: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Result of executing a reconciliation plan."""
    created: int
    updated: int
    orphaned: int
    skipped: int
    dry_run: bool
    errors: list[str]
