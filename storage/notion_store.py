"""Notion manager for calendar database operations."""
import logging
from typing import Any, Dict, List, Optional

import requests

from processor.errors import StoreError
from processor.models import DestinationRecord, Patch, ReconciliationPlan, SyncResult, WriteValue
from storage.notion_codec import decode_record, encode_properties

logger = logging.getLogger(__name__)


class NotionStore:
    """Manager for Notion database operations."""

    API_URL = "https://api.notion.com/v1"
    NOTION_VERSION = "2022-06-28"
    PAGE_SIZE = 100  # Notion pagination limit

    def __init__(self, token: str, timeout: int = 30, session: Optional[requests.Session] = None):
        """
        Initialize the Notion API session.

        Args:
            token: Notion integration token
            timeout: HTTP request timeout in seconds (default: 30)
            session: Optional requests session to reuse
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f"Bearer {token}",
            'Notion-Version': self.NOTION_VERSION,
            'Content-Type': 'application/json',
        })

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        response = self.session.request(
            method,
            f"{self.API_URL}{path}",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def find_database(self, name: str) -> Dict[str, Any]:
        """
        Find a database shared with the integration by its name.

        Args:
            name: Database title to search for

        Returns:
            Database object of the first match

        Raises:
            StoreError: If the search fails or finds no database
        """
        logger.info(f"Searching Notion for database: {name}")
        try:
            response = self._request('POST', '/search', {
                'query': name,
                'filter': {'property': 'object', 'value': 'database'},
            })
        except requests.RequestException as e:
            raise StoreError(f"Failed to search Notion databases: {e}") from e

        results = response.get('results', [])
        if not results:
            raise StoreError(f"No Notion database named '{name}' is shared with the integration")
        return results[0]

    @staticmethod
    def title_property(database: Dict[str, Any]) -> str:
        """
        Name of the database's title property.

        Raises:
            StoreError: If the schema has no title property
        """
        for name, config in database.get('properties', {}).items():
            if config.get('type') == 'title':
                return name
        raise StoreError(f"Database {database.get('id')} has no title property")

    def query_records(self, database_id: str, id_property: str) -> List[DestinationRecord]:
        """
        Retrieve all records carrying a non-empty identifier.

        Args:
            database_id: Notion database id
            id_property: Name of the rich text identifier property

        Returns:
            List of DestinationRecord objects, in query order

        Raises:
            StoreError: If a query page cannot be fetched
        """
        logger.info(f"Querying Notion database {database_id} for synced records")
        payload: Dict[str, Any] = {
            'filter': {
                'property': id_property,
                'rich_text': {'is_not_empty': True},
            },
            'page_size': self.PAGE_SIZE,
        }
        pages = []

        try:
            response = self._request('POST', f"/databases/{database_id}/query", payload)
            pages.extend(response.get('results', []))

            # Handle pagination
            while response.get('has_more'):
                payload['start_cursor'] = response['next_cursor']
                response = self._request('POST', f"/databases/{database_id}/query", payload)
                pages.extend(response.get('results', []))

        except requests.RequestException as e:
            logger.error(f"Error querying Notion database: {e}")
            raise StoreError(f"Failed to query Notion database: {e}") from e

        records = [decode_record(page) for page in pages]
        logger.info(f"Retrieved {len(records)} records from Notion")
        return records

    def create(self, database_id: str, properties: Dict[str, WriteValue]) -> str:
        """
        Create a page in the database.

        Returns:
            Id of the new page
        """
        response = self._request('POST', '/pages', {
            'parent': {'database_id': database_id},
            'properties': encode_properties(properties),
        })
        return response['id']

    def update(self, page_id: str, patch: Patch) -> None:
        """Write the patched properties of an existing page."""
        self._request('PATCH', f"/pages/{page_id}", {
            'properties': encode_properties(patch),
        })

    def apply_plan(
        self,
        database_id: str,
        plan: ReconciliationPlan,
        dry_run: bool = False,
    ) -> SyncResult:
        """
        Execute the requests of a reconciliation plan.

        Failed requests are logged and reported; they do not stop the
        remaining ones and are not retried.

        Args:
            database_id: Notion database id
            plan: Plan computed by the reconciler
            dry_run: Log the requests without sending them

        Returns:
            SyncResult with counts of created and updated pages
        """
        errors = list(plan.errors)
        created_count = 0
        updated_count = 0

        logger.info(
            f"Creating {len(plan.creations)} events and updating {len(plan.updates)} events"
            + (" (dry run)" if dry_run else "")
        )

        for request in plan.creations:
            logger.info(f"Creating event {request.title}")
            if dry_run:
                created_count += 1
                continue
            try:
                page_id = self.create(database_id, request.properties)
                logger.debug(f"Created page {page_id} for event {request.identifier}")
                created_count += 1
            except requests.RequestException as e:
                error_msg = f"Error creating event {request.identifier}: {e}"
                logger.error(error_msg)
                errors.append(error_msg)

        for request in plan.updates:
            logger.info(
                f"Updating event {request.title} "
                f"({', '.join(sorted(request.patch))})"
            )
            if dry_run:
                updated_count += 1
                continue
            try:
                self.update(request.record_id, request.patch)
                updated_count += 1
            except requests.RequestException as e:
                error_msg = f"Error updating event {request.identifier}: {e}"
                logger.error(error_msg)
                errors.append(error_msg)

        logger.info(
            f"Sync complete: {created_count} created, {updated_count} updated, "
            f"{len(errors)} errors"
        )

        return SyncResult(
            created=created_count,
            updated=updated_count,
            orphaned=len(plan.orphaned),
            skipped=len(plan.skipped),
            dry_run=dry_run,
            errors=errors,
        )
