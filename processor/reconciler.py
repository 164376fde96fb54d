"""Reconcile feed events against destination records."""
import logging
from typing import Iterable, Optional

from processor.diff_engine import compute_patch
from processor.errors import PerEventError
from processor.field_translator import FieldTranslator
from processor.models import (
    CreateRequest,
    DestinationRecord,
    ReconciliationPlan,
    RetentionWindow,
    SourceEvent,
    UpdateRequest,
)
from processor.record_index import build_index

logger = logging.getLogger(__name__)


class Reconciler:
    """Decides, for every identifier, whether to create, update or leave alone."""

    def __init__(self, translator: FieldTranslator, window: Optional[RetentionWindow] = None):
        """
        Initialize the reconciler.

        Args:
            translator: Translator configured with the destination property names
            window: Optional window restricting which new events are created
        """
        self.translator = translator
        self.window = window

    def reconcile(
        self,
        source_events: Iterable[SourceEvent],
        records: Iterable[DestinationRecord],
    ) -> ReconciliationPlan:
        """
        Compute the requests that bring the destination in line with the feed.

        The plan is computed in full; executing it (or not, in dry-run) is
        up to the caller.

        Args:
            source_events: Normalized feed events, in feed order
            records: Destination records carrying an identifier

        Returns:
            ReconciliationPlan with creations and updates in identifier order

        Raises:
            DuplicateIdentifier: If two destination records share an identifier
        """
        index = build_index(source_events, records, self.translator.names.identifier)
        plan = ReconciliationPlan()

        for identifier in index.identifiers:
            event = index.source.get(identifier)
            record = index.destination.get(identifier)

            try:
                if event is not None and record is not None:
                    self._plan_update(plan, event, record)
                elif event is not None:
                    self._plan_creation(plan, event)
                elif record is not None:
                    logger.debug(f"Record {identifier} is in the database but not in the feed")
                    plan.orphaned.append(identifier)
                else:
                    raise AssertionError(f"Identifier {identifier} matches neither snapshot")
            except PerEventError as e:
                logger.warning(f"Skipping event {identifier}: {e}")
                plan.errors.append(f"{identifier}: {e}")

        logger.info(
            f"Sync plan: {len(plan.creations)} to create, "
            f"{len(plan.updates)} to update, "
            f"{len(plan.skipped)} outside window, "
            f"{len(plan.orphaned)} orphaned, "
            f"{len(plan.errors)} errors"
        )
        return plan

    def _plan_update(self, plan: ReconciliationPlan, event: SourceEvent, record: DestinationRecord):
        patch = compute_patch(self.translator.translate(event), record.properties)
        if not patch:
            return
        plan.updates.append(
            UpdateRequest(
                identifier=event.identifier,
                title=event.title,
                record_id=record.record_id,
                patch=patch,
            )
        )

    def _plan_creation(self, plan: ReconciliationPlan, event: SourceEvent):
        if self.window is not None and self.window.excludes(event.start):
            logger.debug(f"Event {event.identifier} starts outside the sync window")
            plan.skipped.append(event.identifier)
            return
        plan.creations.append(
            CreateRequest(
                identifier=event.identifier,
                title=event.title,
                properties=self.translator.translate(event),
            )
        )
