"""Google Sheets feed client for the tournament list."""
import json
import logging
from typing import Any, Dict, List, Optional

import requests

from processor.event_processor import EventProcessor
from processor.models import Cell, RawRow, RecordSet

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the feed cannot be retrieved or parsed."""


class SheetFeedClient:
    """Client for a Google Sheets gviz JSON feed."""

    BASE_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq"
    DEFAULT_SHEET_ID = "1FD24EVlWx1oB3BLXLHo-dcznxYqNafbf5xHEFjgnvow"
    DEFAULT_SHEET_NAME = "UPDATED MONTH"

    # Body is "/*O_o*/\ngoogle.visualization.Query.setResponse(" + JSON + ");"
    PREFIX_LENGTH = 47
    SUFFIX_LENGTH = 2

    def __init__(
        self,
        sheet_id: str = DEFAULT_SHEET_ID,
        sheet_name: str = DEFAULT_SHEET_NAME,
        timeout: int = 30,
        processor: Optional[EventProcessor] = None
    ):
        """
        Initialize the feed client.

        Args:
            sheet_id: Spreadsheet ID
            sheet_name: Sheet/tab name to query
            timeout: HTTP request timeout in seconds (default: 30)
            processor: EventProcessor used to normalize rows
        """
        self.sheet_id = sheet_id
        self.sheet_name = sheet_name
        self.timeout = timeout
        self.processor = processor or EventProcessor()

    @property
    def feed_url(self) -> str:
        return self.BASE_URL.format(sheet_id=self.sheet_id)

    def load_records(self) -> RecordSet:
        """
        Fetch the feed and build the working set.

        Returns:
            Tuple of upcoming EventRecord objects sorted by date

        Raises:
            FetchError: If the feed cannot be fetched or parsed
        """
        rows = self.fetch_rows()
        return self.processor.process_rows(rows)

    def fetch_rows(self) -> List[RawRow]:
        """
        Fetch and parse raw feed rows with a single request.

        Returns:
            List of RawRow objects

        Raises:
            FetchError: If the request fails or the body cannot be parsed
        """
        logger.info(f"Fetching tournament feed for sheet '{self.sheet_name}'")
        body = self._fetch_feed_text()
        payload = self._parse_payload(body)

        table = payload.get('table') if isinstance(payload, dict) else None
        if not isinstance(table, dict):
            raise FetchError("Feed response has no table")

        raw_rows = table.get('rows')
        if raw_rows is None:
            raw_rows = []
        elif not isinstance(raw_rows, list):
            raise FetchError("Feed table rows are not a list")

        rows = [self._parse_row(raw_row) for raw_row in raw_rows]
        logger.info(f"Fetched {len(rows)} rows from feed")
        return rows

    def _fetch_feed_text(self) -> str:
        """
        Issue the feed request.

        Returns:
            Response body as string

        Raises:
            FetchError: On transport failure or non-success status
        """
        params = {
            'tqx': 'out:json',
            'sheet': self.sheet_name
        }

        try:
            response = requests.get(
                self.feed_url,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            logger.error(f"Feed request failed: {e}")
            raise FetchError(f"Feed request failed: {e}") from e

    def _parse_payload(self, body: str) -> Dict[str, Any]:
        """
        Strip the gviz framing and decode the JSON payload.

        Args:
            body: Raw response body

        Returns:
            Decoded JSON object

        Raises:
            FetchError: If the payload is not valid JSON
        """
        if len(body) <= self.PREFIX_LENGTH + self.SUFFIX_LENGTH:
            raise FetchError("Feed response is too short")

        payload_text = body[self.PREFIX_LENGTH:-self.SUFFIX_LENGTH]
        try:
            return json.loads(payload_text)
        except ValueError as e:
            raise FetchError(f"Invalid feed payload: {e}") from e

    def _parse_row(self, raw_row: Any) -> RawRow:
        """
        Convert a gviz row ({"c": [cell, ...]}) into a RawRow.

        Args:
            raw_row: Row object from the decoded payload

        Returns:
            RawRow; malformed rows become rows of absent cells
        """
        if not isinstance(raw_row, dict):
            return RawRow()

        cells = tuple(self._parse_cell(cell) for cell in raw_row.get('c') or [])
        return RawRow(cells=cells)

    def _parse_cell(self, cell: Any) -> Cell:
        if not isinstance(cell, dict) or 'v' not in cell:
            return Cell.absent()

        display = cell.get('f')
        return Cell.present(
            cell['v'],
            display if isinstance(display, str) else None
        )
