"""Source adapters that turn uploads and connector batches into raw rows.

- Delimited text (CSV): delimited.DelimitedTextAdapter
- Spreadsheets (.xlsx/.xls): spreadsheet.SpreadsheetAdapter
- External connectors: connector.ConnectorAdapter
"""

from .base import SourceAdapter
from .connector import ConnectorAdapter, ContactConnector, HttpContactConnector, map_platform_record
from .delimited import DelimitedTextAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    ConnectorTransportError,
    SourceParseError,
)
from .factory import detect_source_kind, get_adapter
from .spreadsheet import SpreadsheetAdapter

__all__ = [
    "SourceAdapter",
    "DelimitedTextAdapter",
    "SpreadsheetAdapter",
    "ConnectorAdapter",
    "ContactConnector",
    "HttpContactConnector",
    "map_platform_record",
    "get_adapter",
    "detect_source_kind",
    "AdapterError",
    "SourceParseError",
    "ConnectorTransportError",
    "AdapterConfigurationError",
]
