"""Unit tests for source adapters."""

import io
from unittest.mock import MagicMock, Mock, patch

import openpyxl
import pytest
import requests

from contact_ingest.adapters import (
    AdapterConfigurationError,
    AdapterError,
    ConnectorAdapter,
    ConnectorTransportError,
    DelimitedTextAdapter,
    HttpContactConnector,
    SourceParseError,
    SpreadsheetAdapter,
    detect_source_kind,
    get_adapter,
    map_platform_record,
)
from contact_ingest.adapters.base import SourceAdapter
from contact_ingest.adapters.spreadsheet import XLS_MAGIC
from contact_ingest.config.models import ConnectorConfig, IngestConfig
from contact_ingest.domain.models import SourceKind


# ============================================================================
# Fixtures
# ============================================================================


def make_xlsx(rows, extra_sheet_rows=None):
    """Build an .xlsx workbook in memory."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    if extra_sheet_rows:
        other = workbook.create_sheet("Other")
        for row in extra_sheet_rows:
            other.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def delimited():
    return DelimitedTextAdapter()


@pytest.fixture
def spreadsheet():
    return SpreadsheetAdapter()


@pytest.fixture
def mock_session():
    """requests.Session stand-in with a real headers dict."""
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


def json_response(payload, status_code=200, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = payload
    return response


class StaticConnector:
    """Connector returning a fixed batch."""

    platform = "salesforce"

    def __init__(self, records):
        self.records = records

    def fetch_records(self):
        return self.records


class AsyncConnector:
    platform = "hubspot"

    def __init__(self, records):
        self.records = records

    async def fetch_records(self):
        return self.records


class UnreachableConnector:
    platform = "sap"

    def fetch_records(self):
        raise ConnectionRefusedError("connection refused")


# ============================================================================
# Base Adapter Tests
# ============================================================================


class TestSourceAdapter:
    """Tests for the SourceAdapter base class."""

    def test_cannot_instantiate_abstract_class(self):
        with pytest.raises(TypeError):
            SourceAdapter()

    def test_negative_limits_rejected(self):
        with pytest.raises(AdapterConfigurationError):
            DelimitedTextAdapter(max_rows=-1)
        with pytest.raises(AdapterConfigurationError):
            DelimitedTextAdapter(max_payload_bytes=-1)

    def test_source_tag(self, delimited):
        assert delimited.source_tag("contacts.csv") == "delimited:contacts.csv"
        assert delimited.source_tag(None) == "delimited"

    def test_all_adapter_errors_share_base(self):
        assert issubclass(SourceParseError, AdapterError)
        assert issubclass(ConnectorTransportError, AdapterError)
        assert issubclass(AdapterConfigurationError, AdapterError)

    @pytest.mark.asyncio
    async def test_reads_path(self, delimited, tmp_path):
        path = tmp_path / "contacts.csv"
        path.write_text("name,email\nAlice,alice@x.com\n", encoding="utf-8")

        rows = await delimited.parse(path)

        assert rows == [{"name": "Alice", "email": "alice@x.com"}]

    @pytest.mark.asyncio
    async def test_reads_binary_file_handle(self, delimited, tmp_path):
        path = tmp_path / "contacts.csv"
        path.write_bytes(b"name\nAlice\n")

        with open(path, "rb") as handle:
            rows = await delimited.parse(handle)

        assert rows == [{"name": "Alice"}]

    @pytest.mark.asyncio
    async def test_reads_text_and_bytesio(self, delimited):
        assert await delimited.parse("name\nBob\n") == [{"name": "Bob"}]
        assert await delimited.parse(io.BytesIO(b"name\nCarol\n")) == [{"name": "Carol"}]

    @pytest.mark.asyncio
    async def test_missing_file_is_parse_error(self, delimited, tmp_path):
        with pytest.raises(SourceParseError):
            await delimited.parse(tmp_path / "missing.csv")

    @pytest.mark.asyncio
    async def test_unsupported_source_type(self, delimited):
        with pytest.raises(AdapterConfigurationError):
            await delimited.parse(12345)

    @pytest.mark.asyncio
    async def test_payload_size_limit(self):
        adapter = DelimitedTextAdapter(max_payload_bytes=10)

        with pytest.raises(SourceParseError, match="byte limit"):
            await adapter.parse(b"name\nAlice Longname\n")


# ============================================================================
# Delimited Text Adapter Tests
# ============================================================================


class TestDelimitedTextAdapter:
    """Tests for DelimitedTextAdapter."""

    def test_header_maps_cells_positionally(self, delimited):
        rows = delimited.parse_text("name,email,phone,tags\nAlice,alice@x.com,555,\"vip,new\"\n")

        assert rows == [{"name": "Alice", "email": "alice@x.com", "phone": "555", "tags": "vip,new"}]

    def test_blank_lines_are_skipped(self, delimited):
        rows = delimited.parse_text("\nname,email\n\nAlice,a@x.com\n  \n\nBob,b@x.com\n")

        assert [row["name"] for row in rows] == ["Alice", "Bob"]

    def test_rows_of_empty_cells_are_kept(self, delimited):
        """A row like "," is data for the normalizer, not an empty line."""
        rows = delimited.parse_text("name,email\nAlice,a@x.com\n,\n")

        assert rows == [{"name": "Alice", "email": "a@x.com"}, {"name": "", "email": ""}]

    def test_empty_cells_before_header_are_skipped(self, delimited):
        rows = delimited.parse_text(",,\nname,email\nAlice,a@x.com\n")

        assert rows == [{"name": "Alice", "email": "a@x.com"}]

    def test_header_names_are_trimmed(self, delimited):
        rows = delimited.parse_text(" Name , Email \nAlice,a@x.com\n")

        assert rows == [{"Name": "Alice", "Email": "a@x.com"}]

    def test_ragged_rows_are_not_parse_errors(self, delimited):
        rows = delimited.parse_text("name,email,phone\nAlice\nBob,b@x.com,555,extra\n")

        assert rows == [{"name": "Alice"}, {"name": "Bob", "email": "b@x.com", "phone": "555"}]

    def test_unnamed_and_repeated_columns_ignored(self, delimited):
        rows = delimited.parse_text("name,,name\nAlice,x,Other\n")

        assert rows == [{"name": "Alice"}]

    def test_quoted_newline_inside_cell(self, delimited):
        rows = delimited.parse_text('name,tags\n"Alice\nSmith",vip\n')

        assert rows == [{"name": "Alice\nSmith", "tags": "vip"}]

    def test_crlf_line_endings(self, delimited):
        rows = delimited.parse_text("name,email\r\nAlice,a@x.com\r\n")

        assert rows == [{"name": "Alice", "email": "a@x.com"}]

    def test_unterminated_quote_is_parse_error(self, delimited):
        payload = 'name,email\nAlice,alice@x.com\nBob,bob@x.com\n"Carol,carol@x.com\n'

        with pytest.raises(SourceParseError) as exc_info:
            delimited.parse_text(payload)

        assert exc_info.value.source_kind == "delimited"
        assert exc_info.value.line_number is not None

    def test_stray_quote_is_parse_error(self, delimited):
        with pytest.raises(SourceParseError):
            delimited.parse_text('name,email\nAlice,"alice"@x.com\n')

    def test_empty_payload_has_no_header(self, delimited):
        with pytest.raises(SourceParseError, match="header"):
            delimited.parse_text("\n\n")

    def test_header_only_yields_no_rows(self, delimited):
        assert delimited.parse_text("name,email\n") == []

    def test_utf8_bom_is_stripped(self, delimited):
        rows = delimited.parse_bytes("\ufeffname\nZoë\n".encode("utf-8"))

        assert rows == [{"name": "Zoë"}]

    def test_invalid_utf8_is_parse_error(self, delimited):
        with pytest.raises(SourceParseError, match="UTF-8"):
            delimited.parse_bytes(b"name\n\xff\xfeAlice\n")

    def test_custom_delimiter(self):
        adapter = DelimitedTextAdapter(delimiter=";")

        assert adapter.parse_text("name;email\nAlice;a@x.com\n") == [{"name": "Alice", "email": "a@x.com"}]

    @pytest.mark.parametrize("delimiter", ["", ";;", '"', "\n"])
    def test_invalid_delimiter(self, delimiter):
        with pytest.raises(AdapterConfigurationError):
            DelimitedTextAdapter(delimiter=delimiter)

    def test_row_limit(self):
        adapter = DelimitedTextAdapter(max_rows=2)

        with pytest.raises(SourceParseError, match="more than 2"):
            adapter.parse_text("name\nA\nB\nC\n")

    def test_zero_row_limit_is_unlimited(self):
        adapter = DelimitedTextAdapter(max_rows=0)

        assert len(adapter.parse_text("name\n" + "A\n" * 50)) == 50


# ============================================================================
# Spreadsheet Adapter Tests
# ============================================================================


class TestSpreadsheetAdapter:
    """Tests for SpreadsheetAdapter."""

    @pytest.mark.asyncio
    async def test_xlsx_first_sheet(self, spreadsheet):
        payload = make_xlsx(
            [["Name", "Email", "Phone", "Tags"], ["Alice", "alice@x.com", 5550100, "vip"]],
            extra_sheet_rows=[["name"], ["Ignored"]],
        )

        rows = await spreadsheet.parse(payload)

        assert rows == [{"Name": "Alice", "Email": "alice@x.com", "Phone": 5550100, "Tags": "vip"}]

    def test_xlsx_skips_empty_rows_and_cells(self, spreadsheet):
        payload = make_xlsx(
            [["name", None, "email"], [None, None, None], ["Bob", "x", None], ["Carol", None, "c@x.com"]]
        )

        rows = spreadsheet.parse_bytes(payload)

        assert rows == [{"name": "Bob"}, {"name": "Carol", "email": "c@x.com"}]

    def test_xlsx_empty_sheet_has_no_header(self, spreadsheet):
        with pytest.raises(SourceParseError, match="header"):
            spreadsheet.parse_bytes(make_xlsx([]))

    def test_xlsx_row_limit(self):
        adapter = SpreadsheetAdapter(max_rows=1)
        payload = make_xlsx([["name"], ["A"], ["B"]])

        with pytest.raises(SourceParseError):
            adapter.parse_bytes(payload)

    def test_unrecognised_container(self, spreadsheet):
        with pytest.raises(SourceParseError, match="recognised"):
            spreadsheet.parse_bytes(b"name,email\nAlice,a@x.com\n")

    def test_corrupt_xlsx_container(self, spreadsheet):
        with pytest.raises(SourceParseError, match="xlsx"):
            spreadsheet.parse_bytes(b"PK\x03\x04" + b"\x00" * 64)

    def test_corrupt_xls_container(self, spreadsheet):
        with pytest.raises(SourceParseError, match="xls"):
            spreadsheet.parse_bytes(XLS_MAGIC + b"\x00" * 64)

    def test_xls_first_sheet(self, spreadsheet):
        """Legacy workbooks are read through xlrd."""
        sheet = MagicMock()
        sheet.nrows = 3
        sheet.row_values.side_effect = [
            ["name", "email", "phone"],
            ["Alice", "alice@x.com", 5550100.0],
            ["", "", ""],
        ]
        book = MagicMock()
        book.nsheets = 2
        book.sheet_by_index.return_value = sheet

        with patch("contact_ingest.adapters.spreadsheet.xlrd.open_workbook", return_value=book) as mock_open:
            rows = spreadsheet.parse_bytes(XLS_MAGIC + b"rest")

        mock_open.assert_called_once_with(file_contents=XLS_MAGIC + b"rest")
        book.sheet_by_index.assert_called_once_with(0)
        book.release_resources.assert_called_once()
        assert rows == [{"name": "Alice", "email": "alice@x.com", "phone": 5550100.0}]


# ============================================================================
# Connector Tests
# ============================================================================


class TestMapPlatformRecord:
    """Tests for platform key mapping."""

    def test_plain_keys(self):
        record = {"name": "Alice", "email": "a@x.com", "phone": "555", "tags": ["vip"]}
        assert map_platform_record(record) == record

    def test_salesforce_keys(self):
        record = {"FirstName": "Ada", "LastName": "Lovelace", "Email": "ada@x.io", "MobilePhone": "555"}

        assert map_platform_record(record) == {"name": "Ada Lovelace", "email": "ada@x.io", "phone": "555"}

    def test_hubspot_properties(self):
        record = {
            "id": "51",
            "email": "old@x.io",
            "properties": {"firstname": "Grace", "lastname": "Hopper", "email": "grace@x.io"},
        }

        assert map_platform_record(record) == {"name": "Grace Hopper", "email": "grace@x.io"}

    def test_full_name_preferred_over_parts(self):
        record = {"full_name": "Alan Turing", "first_name": "A", "last_name": "T"}

        assert map_platform_record(record)["name"] == "Alan Turing"

    def test_values_pass_through_unjudged(self):
        """Bad values are left for the normalizer to reject."""
        assert map_platform_record({"email": "not-an-email"}) == {"email": "not-an-email"}

    def test_non_mapping_becomes_empty_row(self):
        assert map_platform_record("Alice") == {}
        assert map_platform_record(None) == {}


class TestHttpContactConnector:
    """Tests for HttpContactConnector."""

    def test_fetch_records_list(self, mock_session):
        mock_session.get.return_value = json_response([{"name": "Alice"}])
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        assert connector.fetch_records() == [{"name": "Alice"}]
        mock_session.get.assert_called_once_with("https://api.example.com/contacts", timeout=30)

    def test_fetch_records_envelope(self, mock_session):
        mock_session.get.return_value = json_response({"results": [{"name": "Alice"}], "paging": {}})
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        assert connector.fetch_records() == [{"name": "Alice"}]

    def test_fetch_records_empty_batch(self, mock_session):
        mock_session.get.return_value = json_response({"contacts": []})
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        assert connector.fetch_records() == []

    def test_envelope_without_list(self, mock_session):
        mock_session.get.return_value = json_response({"status": "ok"})
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        with pytest.raises(ConnectorTransportError, match="record list"):
            connector.fetch_records()

    def test_headers(self, mock_session):
        HttpContactConnector(
            "https://api.example.com/contacts",
            api_key="secret",
            user_agent="Test/1.0",
            session=mock_session,
        )

        assert mock_session.headers["Authorization"] == "Bearer secret"
        assert mock_session.headers["User-Agent"] == "Test/1.0"

    def test_http_error(self, mock_session):
        mock_session.get.return_value = json_response(None, status_code=503, reason="Service Unavailable")
        connector = HttpContactConnector(
            "https://api.example.com/contacts", platform="hubspot", session=mock_session
        )

        with pytest.raises(ConnectorTransportError) as exc_info:
            connector.fetch_records()

        assert exc_info.value.status_code == 503
        assert exc_info.value.platform == "hubspot"
        assert exc_info.value.url == "https://api.example.com/contacts"

    def test_timeout(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.Timeout("slow")
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        with pytest.raises(ConnectorTransportError, match="timed out"):
            connector.fetch_records()

    def test_connection_error(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.ConnectionError("refused")
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        with pytest.raises(ConnectorTransportError) as exc_info:
            connector.test_connection()

        assert exc_info.value.status_code == 0

    def test_invalid_json(self, mock_session):
        response = json_response(None)
        response.json.side_effect = ValueError("Expecting value")
        mock_session.get.return_value = response
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        with pytest.raises(ConnectorTransportError, match="JSON"):
            connector.fetch_records()

    def test_test_connection_success(self, mock_session):
        mock_session.get.return_value = json_response([])
        connector = HttpContactConnector("https://api.example.com/contacts", session=mock_session)

        assert connector.test_connection() is True

    def test_invalid_construction(self):
        with pytest.raises(AdapterConfigurationError):
            HttpContactConnector("  ")
        with pytest.raises(AdapterConfigurationError):
            HttpContactConnector("https://api.example.com", timeout=1)

    def test_from_config(self):
        config = ConnectorConfig(platform="zapier", endpoint="https://hooks.example.com/c", timeout=10)

        connector = HttpContactConnector.from_config(config, api_key="k")

        assert connector.platform == "zapier"
        assert connector.endpoint == "https://hooks.example.com/c"
        assert connector.timeout == 10

    def test_from_config_without_endpoint(self):
        with pytest.raises(AdapterConfigurationError):
            HttpContactConnector.from_config(ConnectorConfig(platform="salesforce"))


class TestConnectorAdapter:
    """Tests for ConnectorAdapter."""

    @pytest.mark.asyncio
    async def test_sync_connector(self):
        adapter = ConnectorAdapter()

        rows = await adapter.parse(StaticConnector([{"FirstName": "Ada", "Email": "ada@x.io"}]))

        assert rows == [{"name": "Ada", "email": "ada@x.io"}]

    @pytest.mark.asyncio
    async def test_async_connector(self):
        adapter = ConnectorAdapter()

        rows = await adapter.parse(AsyncConnector([{"properties": {"firstname": "Grace"}}]))

        assert rows == [{"name": "Grace"}]

    @pytest.mark.asyncio
    async def test_prefetched_batch(self):
        rows = await ConnectorAdapter().parse([{"name": "Alice"}, "garbage"])

        assert rows == [{"name": "Alice"}, {}]

    @pytest.mark.asyncio
    async def test_connector_without_platform(self):
        """Any object with fetch_records is a connector."""

        class BareConnector:
            def fetch_records(self):
                return [{"name": "Alice"}]

        rows = await ConnectorAdapter().parse(BareConnector())

        assert rows == [{"name": "Alice"}]

    @pytest.mark.asyncio
    async def test_prefetched_generator(self):
        records = (record for record in [{"name": "Alice"}, {"name": "Bob"}])

        rows = await ConnectorAdapter().parse(records)

        assert rows == [{"name": "Alice"}, {"name": "Bob"}]

    @pytest.mark.asyncio
    async def test_connector_returning_generator(self):
        rows = await ConnectorAdapter().parse(StaticConnector(iter([{"name": "Ada"}])))

        assert rows == [{"name": "Ada"}]

    @pytest.mark.asyncio
    async def test_connector_returning_non_iterable(self):
        with pytest.raises(ConnectorTransportError, match="did not return a record batch"):
            await ConnectorAdapter().parse(StaticConnector(42))

    @pytest.mark.asyncio
    async def test_empty_batch_is_not_an_error(self):
        assert await ConnectorAdapter().parse(StaticConnector([])) == []

    @pytest.mark.asyncio
    async def test_unreachable_connector(self):
        with pytest.raises(ConnectorTransportError) as exc_info:
            await ConnectorAdapter().parse(UnreachableConnector())

        assert exc_info.value.platform == "sap"
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_connector_returning_nothing(self):
        with pytest.raises(ConnectorTransportError):
            await ConnectorAdapter().parse(StaticConnector(None))

    @pytest.mark.asyncio
    async def test_unsupported_source(self):
        with pytest.raises(AdapterConfigurationError):
            await ConnectorAdapter().parse(b"name,email")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", ["name,email", {"name": "Alice"}, 42])
    async def test_non_batch_sources_are_rejected(self, source):
        with pytest.raises(AdapterConfigurationError):
            await ConnectorAdapter().parse(source)

    @pytest.mark.asyncio
    async def test_row_limit(self):
        adapter = ConnectorAdapter(max_rows=1)

        with pytest.raises(SourceParseError):
            await adapter.parse([{"name": "A"}, {"name": "B"}])

    def test_source_tag_uses_platform(self):
        assert ConnectorAdapter().source_tag("hubspot") == "connector:hubspot"


# ============================================================================
# Factory Tests
# ============================================================================


class TestGetAdapter:
    """Tests for the get_adapter factory."""

    @pytest.mark.parametrize(
        "kind,adapter_class",
        [
            (SourceKind.DELIMITED, DelimitedTextAdapter),
            (SourceKind.SPREADSHEET, SpreadsheetAdapter),
            (SourceKind.CONNECTOR, ConnectorAdapter),
            ("delimited", DelimitedTextAdapter),
        ],
    )
    def test_returns_adapter_for_kind(self, kind, adapter_class):
        assert isinstance(get_adapter(kind), adapter_class)

    def test_unknown_kind(self):
        with pytest.raises(AdapterConfigurationError, match="Supported kinds"):
            get_adapter("xml")

    def test_applies_ingest_config(self):
        config = IngestConfig(max_rows=5, max_payload_bytes=100, delimiter=";")

        adapter = get_adapter(SourceKind.DELIMITED, config)

        assert adapter.max_rows == 5
        assert adapter.max_payload_bytes == 100
        assert adapter.delimiter == ";"


class TestDetectSourceKind:
    """Tests for the upload type gate."""

    @pytest.mark.parametrize(
        "filename,content_type,expected",
        [
            ("contacts.csv", None, SourceKind.DELIMITED),
            ("CONTACTS.CSV", None, SourceKind.DELIMITED),
            ("contacts.xlsx", None, SourceKind.SPREADSHEET),
            ("legacy.xls", None, SourceKind.SPREADSHEET),
            (None, "text/csv; charset=utf-8", SourceKind.DELIMITED),
            (None, "application/vnd.ms-excel", SourceKind.SPREADSHEET),
            (
                "upload",
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                SourceKind.SPREADSHEET,
            ),
            ("contacts.csv", "application/octet-stream", SourceKind.DELIMITED),
        ],
    )
    def test_accepted_types(self, filename, content_type, expected):
        assert detect_source_kind(filename, content_type) == expected

    @pytest.mark.parametrize(
        "filename,content_type",
        [("contacts.pdf", None), ("notes.txt", "text/plain"), (None, None), ("csv", None)],
    )
    def test_rejected_types(self, filename, content_type):
        with pytest.raises(AdapterConfigurationError, match="CSV or Excel"):
            detect_source_kind(filename, content_type)
