"""Delimited-text (CSV) adapter.

The first non-blank record is the header row; every following record is
keyed by header name. Empty lines are skipped, but a row of empty cells
(",,") is kept so the normalizer can reject it. Ragged rows are tolerated:
missing cells are simply absent from the row and surplus cells are dropped.
"""

import csv
import io
from typing import Any, Dict, List, Optional

from contact_ingest.domain.models import RawRow, SourceKind
from contact_ingest.logging import get_logger

from .base import SourceAdapter
from .exceptions import AdapterConfigurationError, SourceParseError

logger = get_logger(__name__, component="adapter")


class DelimitedTextAdapter(SourceAdapter):
    """Adapter for comma-separated (or otherwise delimited) text uploads."""

    kind = SourceKind.DELIMITED

    def __init__(self, delimiter: str = ",", **kwargs: Any) -> None:
        """Initialize delimited-text adapter.

        Args:
            delimiter: Single-character field separator
            **kwargs: Limits passed to SourceAdapter

        Raises:
            AdapterConfigurationError: If delimiter is not a single usable character
        """
        super().__init__(**kwargs)
        if len(delimiter) != 1 or delimiter in ('"', "\r", "\n"):
            raise AdapterConfigurationError(f"Invalid delimiter: {delimiter!r}")
        self.delimiter = delimiter

    async def parse(self, source: Any) -> List[RawRow]:
        payload = await self._read_payload(source)
        return self.parse_bytes(payload)

    def parse_bytes(self, payload: bytes) -> List[RawRow]:
        """Decode a UTF-8 payload and parse it.

        Raises:
            SourceParseError: If the payload is not valid UTF-8
        """
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise SourceParseError(
                f"Payload is not valid UTF-8 text: {e.reason} at byte {e.start}",
                source_kind=self.kind.value,
            ) from e
        return self.parse_text(text)

    def parse_text(self, text: str) -> List[RawRow]:
        """Parse delimited text into rows.

        Raises:
            SourceParseError: On malformed quoting, a missing header row or
                too many data rows
        """
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter, strict=True)
        header: Optional[List[str]] = None
        rows: List[RawRow] = []
        ragged = 0

        try:
            for record in reader:
                if header is None:
                    if any(cell.strip() for cell in record):
                        header = [cell.strip() for cell in record]
                    continue

                # Only empty lines are skipped; a row of empty cells is data
                if _is_blank_line(record):
                    continue

                if len(record) != len(header):
                    ragged += 1

                rows.append(_zip_row(header, record))
                self._check_row_limit(len(rows))
        except csv.Error as e:
            logger.warning(
                f"Malformed delimited text at line {reader.line_num}",
                extra={
                    "event": "adapter.parse.failed",
                    "source_kind": self.kind.value,
                    "line_number": reader.line_num,
                    "error_type": "csv.Error",
                },
            )
            raise SourceParseError(
                f"Malformed delimited text at line {reader.line_num}: {e}",
                source_kind=self.kind.value,
                line_number=reader.line_num,
            ) from e

        if header is None:
            raise SourceParseError("Payload has no header row", source_kind=self.kind.value)

        if ragged:
            logger.warning(
                f"{ragged} rows do not match the header width",
                extra={"event": "adapter.parse.ragged_rows", "ragged_rows": ragged},
            )

        logger.info(
            f"Parsed {len(rows)} delimited rows",
            extra={
                "event": "adapter.parse.completed",
                "source_kind": self.kind.value,
                "row_count": len(rows),
                "columns": len(header),
            },
        )
        return rows


def _zip_row(header: List[str], record: List[str]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for column, cell in zip(header, record):
        # Unnamed and repeated columns are ignored
        if column and column not in row:
            row[column] = cell
    return row


def _is_blank_line(record: List[str]) -> bool:
    return not record or (len(record) == 1 and not record[0].strip())
