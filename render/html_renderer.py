"""HTML rendering for the tournament finder page."""
import logging
from typing import Any, List, Protocol, Sequence

from processor.filters import format_date_display
from processor.models import EventRecord, FilterState, SelectOption

logger = logging.getLogger(__name__)

NO_NAME_PLACEHOLDER = 'No Tournament Name'

_HTML_REPLACEMENTS = (
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('"', '&quot;'),
    ("'", '&#039;'),
)


def escape_html(value: Any) -> str:
    """Escape text for safe embedding in markup; falsy values become ''."""
    if not value:
        return ''
    text = str(value)
    for char, entity in _HTML_REPLACEMENTS:
        text = text.replace(char, entity)
    return text


def escape_attr(value: Any) -> str:
    """Escape text for a double-quoted attribute value."""
    return escape_html(value)


class Renderer(Protocol):
    """Presentation collaborator driven by the tournament finder."""

    def render(self, records: Sequence[EventRecord], summary: str = '') -> None:
        ...

    def render_options(
        self,
        provinces: Sequence[SelectOption],
        dates: Sequence[SelectOption],
        selected: FilterState = FilterState()
    ) -> None:
        ...

    def set_loading(self, loading: bool) -> None:
        ...

    def set_error(self, message: str) -> None:
        ...


class HtmlRenderer:
    """Renderer that builds a static HTML page."""

    TITLE = 'Tournament Finder'

    def __init__(self):
        self.loading = False
        self.error = None
        self.records: List[EventRecord] = []
        self.summary = ''
        self.provinces: List[SelectOption] = []
        self.dates: List[SelectOption] = []
        self.selected = FilterState()

    def render(self, records: Sequence[EventRecord], summary: str = '') -> None:
        self.records = list(records)
        self.summary = summary
        logger.debug(f"Rendering {len(self.records)} tournament cards")

    def render_options(
        self,
        provinces: Sequence[SelectOption],
        dates: Sequence[SelectOption],
        selected: FilterState = FilterState()
    ) -> None:
        self.provinces = list(provinces)
        self.dates = list(dates)
        self.selected = selected

    def set_loading(self, loading: bool) -> None:
        self.loading = loading

    def set_error(self, message: str) -> None:
        self.error = message
        self.records = []
        self.summary = ''

    def to_html(self) -> str:
        """Render the full page from the current state."""
        spinner_display = 'flex' if self.loading else 'none'
        results_display = 'none' if self.loading else 'grid'

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{self.TITLE}</title>
</head>
<body>
    <h1>{self.TITLE}</h1>
    <form id="filters" method="get">
{self._render_select('provinceSelect', 'province', self.provinces, self.selected.province)}
{self._render_select('dateSelect', 'date', self.dates, self.selected.date_key)}
        <button type="submit">Apply</button>
        <a id="clearFilters" href="?">Clear Filters</a>
    </form>
    <p id="resultCount">{escape_html(self.summary)}</p>
    <div id="loadingSpinner" style="display: {spinner_display};">Loading...</div>
    <div id="results" style="display: {results_display};">
{self._render_results()}
    </div>
{self._render_no_results()}
</body>
</html>"""

    def _render_select(
        self,
        element_id: str,
        name: str,
        options: Sequence[SelectOption],
        selected_value
    ) -> str:
        option_html = []
        for option in options:
            selected = ' selected' if option.value and option.value == selected_value else ''
            option_html.append(
                f'            <option value="{escape_attr(option.value)}"{selected}>'
                f'{escape_html(option.label)}</option>'
            )
        options_block = '\n'.join(option_html)
        return (
            f'        <select id="{element_id}" name="{name}">\n'
            f'{options_block}\n'
            f'        </select>'
        )

    def _render_results(self) -> str:
        if self.error:
            return (
                '        <div class="error">\n'
                f'            <h3>&#9888;&#65039; {escape_html(self.error)}</h3>\n'
                '        </div>'
            )

        return '\n'.join(
            self._render_card(record, index)
            for index, record in enumerate(self.records)
        )

    def _render_no_results(self) -> str:
        display = 'block' if not self.error and not self.loading and not self.records else 'none'
        return f'    <div id="noResults" style="display: {display};">No tournaments found.</div>'

    def _render_card(self, record: EventRecord, index: int) -> str:
        name = record.name.strip() or NO_NAME_PLACEHOLDER
        parts = [
            f'        <div class="tournament-card" style="animation-delay: {index * 0.05:.2f}s;">',
            f'            <h3>{escape_html(name)}</h3>',
            f'            <p class="date">{escape_html(format_date_display(record.date))}</p>',
            f'            <p class="day">{escape_html(record.day)}</p>',
            f'            <p class="time">{escape_html(record.time)}</p>',
            f'            <p class="organizer"><strong>Organizer: {escape_html(record.organizer)}</strong></p>',
            '            <p><strong>Location:</strong></p>',
            f'            <div class="location">&#128204; {escape_html(record.location)}</div>',
        ]

        if record.remarks:
            parts.append(
                '            <p class="remarks"><strong>Remarks:</strong><br>'
                f'{escape_html(record.remarks)}</p>'
            )

        if record.link:
            parts.append(
                f'            <a href="{escape_attr(record.link)}" target="_blank" '
                'rel="noopener noreferrer">View Event</a>'
            )

        parts.append('        </div>')
        return '\n'.join(parts)
