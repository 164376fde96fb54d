"""Error taxonomy for calendar synchronization."""


class SyncError(Exception):
    """Base class for all synchronization errors."""


class PerEventError(SyncError):
    """Error scoped to a single event; the event is skipped, the run continues."""


class MissingIdentifier(PerEventError):
    """Source event has no UID."""


class MissingDateRange(PerEventError):
    """Source event lacks a start or an end."""


class InvalidDateRange(PerEventError):
    """Date range cannot be represented in the destination."""


class UnsupportedPropertyType(PerEventError):
    """Stored and candidate property values cannot be compared."""

    def __init__(self, property_name: str, stored_kind: str, candidate_kind: str):
        self.property_name = property_name
        self.stored_kind = stored_kind
        self.candidate_kind = candidate_kind
        super().__init__(
            f"Cannot compare property '{property_name}': "
            f"stored {stored_kind} against candidate {candidate_kind}"
        )


class RunError(SyncError):
    """Error that aborts the whole run before any request is issued."""


class DuplicateIdentifier(RunError):
    """Two destination records share the same identifier."""

    def __init__(self, identifier: str, record_ids: list[str]):
        self.identifier = identifier
        self.record_ids = record_ids
        super().__init__(
            f"Identifier '{identifier}' is shared by records "
            f"{', '.join(record_ids)}"
        )


class FeedError(RunError):
    """Calendar feed could not be fetched or parsed."""


class StoreError(RunError):
    """Destination store could not be read."""
