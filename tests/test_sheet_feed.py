"""Unit tests for SheetFeedClient."""
import json

import pytest
import responses
from requests.exceptions import Timeout

from processor.models import Cell
from scraper.sheet_feed import FetchError, SheetFeedClient

FEED_URL = "https://docs.google.com/spreadsheets/d/test-sheet/gviz/tq"
PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("


def gviz_body(rows):
    """Wrap rows in the gviz response framing."""
    payload = {
        'version': '0.6',
        'status': 'ok',
        'table': {'cols': [], 'rows': rows}
    }
    return PREFIX + json.dumps(payload) + ");"


def make_row(day, date, time, completed, name, organizer,
             location='', province='', remarks='', link=''):
    values = [None, day, date, time, completed, name, organizer,
              location, province, remarks, link]
    return {'c': [None if v is None else {'v': v} for v in values]}


class TestSheetFeedClient:
    """Test cases for SheetFeedClient class."""

    def test_prefix_length_matches_framing(self):
        """Test that the fixed prefix length covers the gviz wrapper."""
        assert len(PREFIX) == SheetFeedClient.PREFIX_LENGTH

    @responses.activate
    def test_fetch_rows_success(self):
        """Test successful feed fetching and cell parsing."""
        rows = [
            {'c': [
                None,
                {'v': 'Tuesday'},
                {'v': 'Date(2025,9,28)', 'f': '10/28/2025'},
                {'v': 'Date(1899,11,30,14,30,0)', 'f': '2:30 PM'},
                {'v': False},
                {'v': 'Open Chess Cup'},
                {'v': 'Org1'},
            ]}
        ]
        responses.add(responses.GET, FEED_URL, body=gviz_body(rows), status=200)

        client = SheetFeedClient(sheet_id='test-sheet', sheet_name='UPDATED MONTH')
        parsed = client.fetch_rows()

        assert len(parsed) == 1
        row = parsed[0]
        assert row.cell(0) == Cell.absent()
        assert row.cell(1) == Cell.present('Tuesday')
        assert row.cell(2) == Cell.present('Date(2025,9,28)', '10/28/2025')
        assert row.cell(4).value is False
        assert row.cell(10) == Cell.absent()

    @responses.activate
    def test_fetch_rows_sends_sheet_query(self):
        """Test that the sheet name and output format are sent as query parameters."""
        responses.add(responses.GET, FEED_URL, body=gviz_body([]), status=200)

        client = SheetFeedClient(sheet_id='test-sheet', sheet_name='UPDATED MONTH')
        client.fetch_rows()

        assert len(responses.calls) == 1
        request_url = responses.calls[0].request.url
        assert 'tqx=out%3Ajson' in request_url
        assert 'sheet=UPDATED+MONTH' in request_url

    @responses.activate
    def test_fetch_rows_missing_rows_key(self):
        """Test that a table without rows yields no rows."""
        body = PREFIX + json.dumps({'table': {'cols': []}}) + ");"
        responses.add(responses.GET, FEED_URL, body=body, status=200)

        client = SheetFeedClient(sheet_id='test-sheet')

        assert client.fetch_rows() == []

    @responses.activate
    def test_fetch_rows_server_error_no_retry(self):
        """Test that a failed request raises FetchError after one attempt."""
        responses.add(responses.GET, FEED_URL, body="Server Error", status=500)

        client = SheetFeedClient(sheet_id='test-sheet')

        with pytest.raises(FetchError):
            client.fetch_rows()

        assert len(responses.calls) == 1

    @responses.activate
    def test_fetch_rows_timeout(self):
        """Test timeout handling."""
        responses.add(responses.GET, FEED_URL, body=Timeout("Request timed out"))

        client = SheetFeedClient(sheet_id='test-sheet')

        with pytest.raises(FetchError) as exc_info:
            client.fetch_rows()

        assert isinstance(exc_info.value.__cause__, Timeout)
        assert len(responses.calls) == 1

    @responses.activate
    def test_fetch_rows_invalid_payload(self):
        """Test that a body that is not framed JSON raises FetchError."""
        responses.add(
            responses.GET,
            FEED_URL,
            body="<html><body>Sign in to continue to Sheets</body></html>",
            status=200
        )

        client = SheetFeedClient(sheet_id='test-sheet')

        with pytest.raises(FetchError):
            client.fetch_rows()

    @responses.activate
    def test_fetch_rows_missing_table(self):
        """Test that an error response without a table raises FetchError."""
        body = PREFIX + json.dumps({'status': 'error', 'errors': []}) + ");"
        responses.add(responses.GET, FEED_URL, body=body, status=200)

        client = SheetFeedClient(sheet_id='test-sheet')

        with pytest.raises(FetchError):
            client.fetch_rows()

    @pytest.mark.parametrize('payload', [
        {'table': None},
        {'table': []},
        {'table': {'rows': 5}},
        {'table': {'rows': 'abc'}},
        [],
    ])
    @responses.activate
    def test_load_records_malformed_table(self, payload):
        """Test that a malformed table raises FetchError instead of a raw error."""
        body = PREFIX + json.dumps(payload) + ");"
        responses.add(responses.GET, FEED_URL, body=body, status=200)

        client = SheetFeedClient(sheet_id='test-sheet')

        with pytest.raises(FetchError):
            client.load_records()

    @responses.activate
    def test_load_records_filters_and_sorts(self):
        """Test that loading applies inclusion rules and date ordering."""
        rows = [
            make_row('', 'Date(2025,10,5)', 'Date(1899,11,30,9,0,0)', False,
                     'Later Open', 'Org1', province='Metro'),
            make_row('', 'Date(2025,9,28)', 'Date(1899,11,30,14,30,0)', 'no',
                     'Early Open', 'Org2', province='Cebu'),
            make_row('', 'Date(2025,9,1)', '', True, 'Done Open', 'Org3'),
            make_row('', '', '', False, 'Undated Open', 'Org4'),
            make_row('', 'Date(2025,9,2)', '', False, 'Orphan Open', '   '),
        ]
        responses.add(responses.GET, FEED_URL, body=gviz_body(rows), status=200)

        client = SheetFeedClient(sheet_id='test-sheet')
        records = client.load_records()

        assert [r.name for r in records] == ['Early Open', 'Later Open']
        assert records[0].day == 'Tuesday'
        assert records[0].time == '2:30 PM'
        assert records[1].time == '9:00 AM'

    @responses.activate
    def test_parse_row_handles_malformed_cells(self):
        """Test that malformed rows and cells become absent cells."""
        rows = [
            'not-a-row',
            {'c': [None, {'f': 'display only'}, {'v': None}]},
        ]
        responses.add(responses.GET, FEED_URL, body=gviz_body(rows), status=200)

        client = SheetFeedClient(sheet_id='test-sheet')
        parsed = client.fetch_rows()

        assert parsed[0].cells == ()
        assert parsed[1].cell(1) == Cell.absent()
        assert parsed[1].cell(2).is_present
        assert parsed[1].cell(2).as_string() == ''
