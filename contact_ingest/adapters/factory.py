"""Factory functions for choosing and instantiating source adapters."""

import os
from typing import Optional

from contact_ingest.config.models import IngestConfig
from contact_ingest.domain.models import SourceKind
from contact_ingest.logging import get_logger

from .base import SourceAdapter
from .connector import ConnectorAdapter
from .delimited import DelimitedTextAdapter
from .exceptions import AdapterConfigurationError
from .spreadsheet import SpreadsheetAdapter

logger = get_logger(__name__, component="adapter")

# Upload types accepted from the file picker
CONTENT_TYPE_KINDS = {
    "text/csv": SourceKind.DELIMITED,
    "application/vnd.ms-excel": SourceKind.SPREADSHEET,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": SourceKind.SPREADSHEET,
}
EXTENSION_KINDS = {
    ".csv": SourceKind.DELIMITED,
    ".xls": SourceKind.SPREADSHEET,
    ".xlsx": SourceKind.SPREADSHEET,
}


def detect_source_kind(filename: Optional[str] = None, content_type: Optional[str] = None) -> SourceKind:
    """Decide which adapter an upload belongs to.

    The declared content type wins when it is one of the accepted types;
    otherwise the file extension decides.

    Raises:
        AdapterConfigurationError: If the upload is neither CSV nor an Excel workbook

    Example:
        >>> detect_source_kind("contacts.xlsx")
        <SourceKind.SPREADSHEET: 'spreadsheet'>
    """
    if content_type:
        kind = CONTENT_TYPE_KINDS.get(content_type.split(";")[0].strip().lower())
        if kind is not None:
            return kind

    if filename:
        extension = os.path.splitext(filename.strip())[1].lower()
        kind = EXTENSION_KINDS.get(extension)
        if kind is not None:
            return kind

    raise AdapterConfigurationError(
        f"Unsupported upload type (filename={filename!r}, content_type={content_type!r}). "
        "Please upload a CSV or Excel file."
    )


def get_adapter(kind: SourceKind, ingest_config: Optional[IngestConfig] = None) -> SourceAdapter:
    """Instantiate the adapter for a source kind.

    Args:
        kind: Source kind (or its string value)
        ingest_config: Payload limits and delimiter (defaults when omitted)

    Raises:
        AdapterConfigurationError: If the kind is not supported or the config is invalid
    """
    adapter_map = {
        SourceKind.DELIMITED: DelimitedTextAdapter,
        SourceKind.SPREADSHEET: SpreadsheetAdapter,
        SourceKind.CONNECTOR: ConnectorAdapter,
    }

    try:
        kind = SourceKind(kind)
    except ValueError as e:
        supported = ", ".join(k.value for k in adapter_map)
        raise AdapterConfigurationError(
            f"Unknown source kind: {kind}. Supported kinds: {supported}"
        ) from e

    ingest_config = ingest_config or IngestConfig()
    adapter_class = adapter_map[kind]
    kwargs = {
        "max_rows": ingest_config.max_rows,
        "max_payload_bytes": ingest_config.max_payload_bytes,
    }
    if adapter_class is DelimitedTextAdapter:
        kwargs["delimiter"] = ingest_config.delimiter

    logger.debug(
        "Creating adapter instance",
        extra={
            "event": "adapter.created",
            "source_kind": kind.value,
            "adapter_class": adapter_class.__name__,
        },
    )
    return adapter_class(**kwargs)
