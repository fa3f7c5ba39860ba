"""AWS Lambda handler for the Tournament Finder page."""
import json
import logging
import os
import time
from typing import Dict, Any, Optional

from scraper.sheet_feed import FetchError, SheetFeedClient
from processor.filters import (
    date_options,
    project,
    province_options,
    result_summary
)
from processor.models import FilterState, RecordSet
from render.html_renderer import HtmlRenderer, Renderer

ERROR_MESSAGE = 'Failed to load tournaments. Please refresh the page.'


# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord('', logging.INFO, '', 0, '', (), None))
) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """Formats records as one JSON object per line, including extra= fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }
        log_data.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        )

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """Route root logging through a single JSON stream handler at log_level."""
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


class TournamentFinder:
    """Holds the current record snapshot and drives the renderer."""

    def __init__(self, renderer: Renderer):
        self.renderer = renderer
        self.records: RecordSet = ()

    def load(self, client: SheetFeedClient) -> bool:
        """
        Load the working set from the feed.

        A successful load replaces the previous snapshot wholly. On failure
        the snapshot is emptied and the renderer shows the error message.

        Returns:
            True if the feed loaded
        """
        logger = logging.getLogger(__name__)
        self.renderer.set_loading(True)

        try:
            self.records = client.load_records()
        except FetchError as e:
            logger.error(
                f"Error loading tournaments: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            self.records = ()
            self.renderer.set_error(ERROR_MESSAGE)
            return False
        finally:
            self.renderer.set_loading(False)

        return True

    def show(self, filter_state: FilterState = FilterState()) -> RecordSet:
        """Populate the filter options and render the projected records."""
        self.renderer.render_options(
            province_options(self.records),
            date_options(self.records),
            filter_state
        )
        filtered = project(self.records, filter_state)
        self.renderer.render(
            filtered,
            result_summary(len(filtered), len(self.records))
        )
        return filtered

    def clear_filters(self) -> RecordSet:
        return self.show(FilterState())


def _html_response(status_code: int, body: str) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'text/html; charset=utf-8'},
        'body': body
    }


def lambda_handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for the Tournament Finder page.

    Args:
        event: API Gateway event payload; queryStringParameters may carry
            'province' and 'date' filter values
        context: Lambda context object

    Returns:
        Response dict with statusCode, headers and the rendered HTML body
    """
    # Read configuration from environment variables
    sheet_id = os.environ.get('SHEET_ID', SheetFeedClient.DEFAULT_SHEET_ID)
    sheet_name = os.environ.get('SHEET_NAME', SheetFeedClient.DEFAULT_SHEET_NAME)
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    filter_state = FilterState.from_params((event or {}).get('queryStringParameters'))
    logger.info(
        "Lambda execution started",
        extra={
            'sheet_name': sheet_name,
            'province': filter_state.province,
            'date': filter_state.date_key
        }
    )

    renderer = HtmlRenderer()
    finder = TournamentFinder(renderer)

    try:
        client = SheetFeedClient(
            sheet_id=sheet_id,
            sheet_name=sheet_name,
            timeout=timeout_seconds
        )

        logger.info("Fetching tournaments from feed")
        if not finder.load(client):
            return _html_response(500, renderer.to_html())

        filtered = finder.show(filter_state)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'total_tournaments': len(finder.records),
                'shown_tournaments': len(filtered)
            }
        )
        return _html_response(200, renderer.to_html())

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        renderer.set_loading(False)
        renderer.set_error(ERROR_MESSAGE)
        return _html_response(500, renderer.to_html())
