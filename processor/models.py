"""Data models for tournament feed processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Cell:
    """Single feed cell: either present (value plus optional display text) or absent."""
    is_present: bool
    value: Any = None
    display: Optional[str] = None

    @classmethod
    def present(cls, value: Any, display: Optional[str] = None) -> 'Cell':
        return cls(is_present=True, value=value, display=display)

    @classmethod
    def absent(cls) -> 'Cell':
        return cls(is_present=False)

    def as_string(self) -> str:
        """Coerce to string, defaulting to empty string when absent."""
        if not self.is_present or self.value is None:
            return ''
        return str(self.value)


@dataclass(frozen=True)
class RawRow:
    """One feed row of column-indexed cells."""
    cells: Tuple[Cell, ...] = field(default_factory=tuple)

    def cell(self, index: int) -> Cell:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return Cell.absent()


@dataclass(frozen=True)
class EventRecord:
    """Normalized tournament record."""
    day: str
    date: Optional[datetime]
    date_key: str
    time: str
    is_completed: bool
    name: str = ''
    organizer: str = ''
    location: str = ''
    province: str = ''
    remarks: str = ''
    link: str = ''


# Immutable snapshot returned by ingestion
RecordSet = Tuple[EventRecord, ...]


@dataclass(frozen=True)
class FilterState:
    """Currently selected province and date key; None means no filter."""
    province: Optional[str] = None
    date_key: Optional[str] = None

    @classmethod
    def from_params(cls, params: Optional[dict]) -> 'FilterState':
        """Build filter state from request query parameters."""
        params = params or {}
        return cls(
            province=params.get('province') or None,
            date_key=params.get('date') or None
        )


@dataclass(frozen=True)
class SelectOption:
    """Dropdown option carrying an exact-match value and a display label."""
    value: str
    label: str
