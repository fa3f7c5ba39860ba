"""Event processor for normalizing and filtering tournament feed rows."""
import logging
import re
from datetime import datetime
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from processor.models import Cell, EventRecord, RawRow, RecordSet

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for turning raw feed rows into the sorted working set."""

    # Column positions in the feed
    DAY_COLUMN = 1
    DATE_COLUMN = 2
    TIME_COLUMN = 3
    COMPLETED_COLUMN = 4
    NAME_COLUMN = 5
    ORGANIZER_COLUMN = 6
    LOCATION_COLUMN = 7
    PROVINCE_COLUMN = 8
    REMARKS_COLUMN = 9
    LINK_COLUMN = 10

    DAY_NAMES = (
        'Sunday', 'Monday', 'Tuesday', 'Wednesday',
        'Thursday', 'Friday', 'Saturday'
    )
    COMPLETED_STRINGS = ('true', 'yes', 'y')

    # Date(year,month,day[,hour,minute,second]) with zero-based month
    GVIZ_DATE_PATTERN = re.compile(
        r'Date\((\d+),(\d+),(\d+)(?:,(\d+),(\d+),(\d+))?\)'
    )

    # Two defaults that differ in year, month and day
    _FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

    def process_rows(self, rows: Iterable[RawRow]) -> RecordSet:
        """
        Normalize raw rows and build the working set.

        Keeps records that are not completed, have a parseable date and
        a non-blank organizer, sorted ascending by date. Ties keep feed order.

        Args:
            rows: Raw rows from the feed

        Returns:
            Tuple of EventRecord objects
        """
        records = []
        total = 0

        for index, row in enumerate(rows):
            total += 1
            try:
                records.append(self.build_record(row))
            except Exception as e:
                logger.warning(f"Failed to normalize row {index}: {e}")
                continue

        kept = [record for record in records if self.is_included(record)]
        kept.sort(key=lambda record: record.date)

        logger.info(
            f"Kept {len(kept)} upcoming tournaments out of {total} feed rows"
        )
        return tuple(kept)

    def build_record(self, row: RawRow) -> EventRecord:
        """
        Build a single EventRecord from a raw row.

        Args:
            row: Raw feed row

        Returns:
            EventRecord with defaults applied to missing or malformed cells
        """
        date_cell = row.cell(self.DATE_COLUMN)
        time_cell = row.cell(self.TIME_COLUMN)

        date = self.parse_date(date_cell.value)
        time_value = self.parse_date(time_cell.value, require_full_date=False)
        day_from_sheet = row.cell(self.DAY_COLUMN).as_string()

        return EventRecord(
            day=day_from_sheet or self.day_name(date),
            date=date,
            date_key=self.date_key(date),
            time=self.format_time(time_value, self._raw_time_text(time_cell)),
            is_completed=self.is_completed_value(
                row.cell(self.COMPLETED_COLUMN).value
            ),
            name=row.cell(self.NAME_COLUMN).as_string(),
            organizer=row.cell(self.ORGANIZER_COLUMN).as_string(),
            location=row.cell(self.LOCATION_COLUMN).as_string(),
            province=row.cell(self.PROVINCE_COLUMN).as_string(),
            remarks=row.cell(self.REMARKS_COLUMN).as_string(),
            link=row.cell(self.LINK_COLUMN).as_string()
        )

    def is_included(self, record: EventRecord) -> bool:
        """Check the working set inclusion rules for a record."""
        if record.is_completed:
            logger.debug(f"Skipping completed tournament '{record.name}'")
            return False

        if record.date is None:
            logger.debug(f"Skipping tournament '{record.name}' without a date")
            return False

        if not record.organizer.strip():
            logger.debug(
                f"Skipping tournament '{record.name}' without an organizer"
            )
            return False

        return True

    def parse_date(
        self,
        value: Any,
        require_full_date: bool = True
    ) -> Optional[datetime]:
        """
        Parse a feed date value.

        Tries the Date(year,month,day[,hour,minute,second]) form first,
        then generic date parsing.

        Args:
            value: Raw cell value
            require_full_date: Reject generic strings missing a year,
                month or day (e.g. "Tuesday", "Oct 28"). Time cells pass
                False so values like "2:30 PM" still parse.

        Returns:
            Naive datetime or None if the value is empty or unparseable
        """
        if not value or not isinstance(value, str):
            return None

        match = self.GVIZ_DATE_PATTERN.search(value)
        if match:
            year, month, day = (int(part) for part in match.group(1, 2, 3))
            hour = int(match.group(4) or 0)
            minute = int(match.group(5) or 0)
            try:
                return datetime(year, month + 1, day, hour, minute)
            except (ValueError, OverflowError):
                logger.debug(f"Out of range date components: {value}")
                return None

        try:
            parsed = [
                date_parser.parse(value, default=default)
                for default in self._FILL_DEFAULTS
            ]
        except (ValueError, OverflowError):
            return None

        first, second = parsed
        if require_full_date and first.date() != second.date():
            logger.debug(f"Incomplete date value: {value}")
            return None

        # Dates are compared as feed-local wall clock values
        return first.replace(tzinfo=None)

    def date_key(self, date: Optional[datetime]) -> str:
        """Canonical key for a date, empty when there is no date."""
        if date is None:
            return ''
        return date.isoformat()

    def day_name(self, date: Optional[datetime]) -> str:
        """Weekday name with Sunday as day 0."""
        if date is None:
            return ''
        return self.DAY_NAMES[(date.weekday() + 1) % 7]

    def format_time(self, value: Optional[datetime], raw: Any = None) -> str:
        """
        Format a time as H:MM AM/PM.

        Args:
            value: Parsed date-time, or None if the cell did not parse
            raw: Fallback text shown when value is None

        Returns:
            Display time string
        """
        if value is not None:
            suffix = 'PM' if value.hour >= 12 else 'AM'
            display_hour = value.hour % 12 or 12
            return f"{display_hour}:{value.minute:02d} {suffix}"

        if raw is None:
            return ''
        return str(raw)

    def is_completed_value(self, value: Any) -> bool:
        """
        Coerce a completion flag.

        Args:
            value: Raw cell value (bool, number, string or None)

        Returns:
            True for True, 1, the exact string '1', or true/yes/y after
            trimming and case-folding
        """
        if isinstance(value, bool):
            return value

        if isinstance(value, (int, float)):
            return value == 1

        if isinstance(value, str):
            if value == '1':
                return True
            return value.strip().lower() in self.COMPLETED_STRINGS

        return False

    def _raw_time_text(self, cell: Cell) -> Any:
        if cell.display:
            return cell.display
        if cell.is_present and cell.value not in (None, ''):
            return cell.value
        return None
