"""Fetcher for public iCalendar feeds."""
import logging
import time
from typing import List, Optional

import requests
from icalendar import Calendar, Event

from processor.errors import FeedError

logger = logging.getLogger(__name__)


class IcsFeedFetcher:
    """Downloads and parses an ICS feed."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, url: str, timeout: int = 30, session: Optional[requests.Session] = None):
        """
        Initialize the feed fetcher.

        Args:
            url: URL of the ICS feed
            timeout: HTTP request timeout in seconds (default: 30)
            session: Optional requests session to reuse
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_events(self) -> List[Event]:
        """
        Fetch the VEVENT components of the feed.

        Returns:
            List of VEVENT components, in feed order

        Raises:
            FeedError: If the feed cannot be downloaded or parsed
        """
        logger.info("Fetching calendar feed")

        content = self._fetch_calendar_text()

        try:
            calendar = Calendar.from_ical(content)
        except ValueError as e:
            raise FeedError(f"Failed to parse calendar feed: {e}") from e

        events = list(calendar.walk("VEVENT"))
        logger.info(f"Successfully fetched {len(events)} events")
        return events

    def _fetch_calendar_text(self) -> bytes:
        """
        Fetch the raw feed with retry logic.

        Returns:
            Feed body as bytes

        Raises:
            FeedError: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(f"Fetching calendar feed (attempt {attempt + 1}/{self.MAX_RETRIES})")
                response = self.session.get(self.url, timeout=self.timeout)
                response.raise_for_status()
                return response.content

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    # Calculate exponential backoff delay
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise FeedError(f"Failed to fetch calendar feed: {e}") from e
