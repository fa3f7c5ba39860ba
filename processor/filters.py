"""Filter projection and dropdown option derivation for the working set."""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from processor.models import EventRecord, FilterState, RecordSet, SelectOption

ALL_PROVINCES_LABEL = 'All Provinces'
ALL_DATES_LABEL = 'All Dates'

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June', 'July',
    'August', 'September', 'October', 'November', 'December'
)


def project(records: Sequence[EventRecord], filter_state: FilterState) -> RecordSet:
    """
    Select the records matching the active filters.

    Province and date key are exact, case-sensitive matches and combine
    with AND. Input order is preserved.

    Args:
        records: Working set, already sorted by date
        filter_state: Active province/date selection

    Returns:
        Tuple of matching records
    """
    filtered: Iterable[EventRecord] = records

    if filter_state.province:
        filtered = [r for r in filtered if r.province == filter_state.province]

    if filter_state.date_key:
        filtered = [r for r in filtered if r.date_key == filter_state.date_key]

    return tuple(filtered)


def format_date_display(date: Optional[datetime]) -> str:
    """Format a date like 'October 28, 2025'."""
    if date is None:
        return ''
    return f"{MONTH_NAMES[date.month - 1]} {date.day}, {date.year}"


def format_date_with_day(date: Optional[datetime], day: str) -> str:
    """Format a date with its day name, e.g. 'October 28, 2025 - Tuesday'."""
    date_str = format_date_display(date)
    if not date_str:
        return ''
    return f"{date_str} - {day}" if day else date_str


def province_options(records: Sequence[EventRecord]) -> List[SelectOption]:
    """Distinct non-empty provinces in lexicographic order, after the 'all' sentinel."""
    provinces = sorted({r.province for r in records if r.province})
    options = [SelectOption(value='', label=ALL_PROVINCES_LABEL)]
    options.extend(SelectOption(value=p, label=p) for p in provinces)
    return options


def date_options(records: Sequence[EventRecord]) -> List[SelectOption]:
    """
    Distinct dates in ascending order, after the 'all' sentinel.

    Duplicate date keys collapse to one entry; the first record seen
    supplies the day name for the label.

    Args:
        records: Working set

    Returns:
        List of SelectOption with date_key values
    """
    first_seen: Dict[str, EventRecord] = {}
    for record in records:
        if record.date_key and record.date_key not in first_seen:
            first_seen[record.date_key] = record

    unique = sorted(first_seen.values(), key=lambda r: r.date)

    options = [SelectOption(value='', label=ALL_DATES_LABEL)]
    options.extend(
        SelectOption(
            value=r.date_key,
            label=format_date_with_day(r.date, r.day)
        )
        for r in unique
    )
    return options


def result_summary(filtered_count: int, total_count: int) -> str:
    """
    Describe how many tournaments are shown.

    Args:
        filtered_count: Number of records after projection
        total_count: Number of records in the working set

    Returns:
        Empty string when nothing is shown, otherwise a 'Showing ...' line
    """
    if filtered_count == 0:
        return ''

    noun = 'tournament' if filtered_count == 1 else 'tournaments'
    if filtered_count == total_count:
        return f"Showing all {filtered_count} {noun}"
    return f"Showing {filtered_count} of {total_count} {noun}"
