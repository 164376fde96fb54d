"""AWS Lambda handler for ICS to Notion calendar sync."""
import argparse
import json
import logging
import os
import sys
import time
from datetime import date
from typing import Any, Dict, Optional

from feed.ics_feed import IcsFeedFetcher
from processor.errors import DuplicateIdentifier, FeedError, StoreError
from processor.event_processor import EventProcessor
from processor.field_translator import FieldTranslator
from processor.reconciler import Reconciler
from settings import ConfigurationError, load_settings, parse_flag
from storage.notion_store import NotionStore

# Attributes every LogRecord carries; anything else was passed through `extra`
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including fields passed via `extra`."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _error_response(message: str, error: Exception, start_time: float, **extra) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            **extra,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for the calendar sync.

    The whole plan is computed from fresh snapshots of the feed and the
    database before any page is written; any failure up to that point
    aborts the run without side effects.

    Args:
        event: EventBridge event payload; an optional "dry_run" key
            overrides the DRY_RUN setting
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    event = event or {}
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return _error_response('Invalid configuration', e, start_time)

    dry_run = parse_flag(event['dry_run']) if 'dry_run' in event else settings.dry_run

    logger.info(
        "Lambda execution started",
        extra={
            'notion_calendar': settings.notion_calendar,
            'dry_run': dry_run,
            'timeout_seconds': settings.timeout_seconds
        }
    )

    try:
        fetcher = IcsFeedFetcher(settings.ical_url, timeout=settings.timeout_seconds)
        processor = EventProcessor(default_timezone=settings.timezone())
        store = NotionStore(settings.notion_token, timeout=settings.timeout_seconds)

        try:
            logger.info("Fetching events from calendar")
            raw_events = fetcher.fetch_events()
            logger.info(f"Fetched {len(raw_events)} raw events from calendar")
        except FeedError as e:
            logger.error(
                f"Failed to fetch events from calendar after retries: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response('Failed to fetch calendar events', e, start_time)

        logger.info("Processing and validating events")
        source_events = processor.process_events(raw_events)
        logger.info(f"Processed {len(source_events)} valid events")

        try:
            logger.info("Fetching records from Notion")
            database = store.find_database(settings.notion_calendar)
            title_property = store.title_property(database)
            records = store.query_records(database['id'], settings.id_property)
        except StoreError as e:
            logger.error(
                f"Failed to read Notion database: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response('Failed to read Notion database', e, start_time)

        reconciler = Reconciler(
            FieldTranslator(settings.property_names(title_property)),
            window=settings.retention_window(date.today()),
        )

        try:
            logger.info("Reconciling events with Notion")
            plan = reconciler.reconcile(source_events, records)
        except DuplicateIdentifier as e:
            logger.error(f"Reconciliation aborted: {str(e)}")
            return _error_response(
                'Reconciliation aborted', e, start_time,
                note='No Notion pages were modified'
            )

        logger.info("Synchronizing events with Notion")
        sync_result = store.apply_plan(database['id'], plan, dry_run=dry_run)

        duration = time.time() - start_time

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_created': sync_result.created,
                'events_updated': sync_result.updated,
                'events_skipped': sync_result.skipped,
                'orphaned_records': sync_result.orphaned,
                'errors': sync_result.errors
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Sync completed successfully',
                'statistics': {
                    'raw_events_fetched': len(raw_events),
                    'valid_events_processed': len(source_events),
                    'records_fetched': len(records),
                    'events_created': sync_result.created,
                    'events_updated': sync_result.updated,
                    'events_skipped': sync_result.skipped,
                    'orphaned_records': sync_result.orphaned,
                    'dry_run': sync_result.dry_run,
                    'duration_seconds': round(duration, 2)
                },
                'errors': sync_result.errors
            })
        }

    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Sync failed', e, start_time)


def main(argv: Optional[list[str]] = None) -> int:
    """Run a single sync from the command line."""
    parser = argparse.ArgumentParser(description="Sync an ICS calendar feed into a Notion database")
    parser.add_argument("--dry-run", action="store_true", help="Compute requests without modifying Notion")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    if args.log_level:
        os.environ['LOG_LEVEL'] = args.log_level

    event = {'dry_run': True} if args.dry_run else {}
    response = lambda_handler(event, None)
    print(json.dumps(json.loads(response['body']), indent=2))
    return 0 if response['statusCode'] == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
