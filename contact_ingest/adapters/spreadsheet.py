"""Spreadsheet adapter for .xlsx (openpyxl) and legacy .xls (xlrd) workbooks.

Only the first worksheet is read. Its first row is the header row.
"""

import asyncio
import io
from typing import Any, Iterable, List, Optional, Sequence

import openpyxl
import xlrd

from contact_ingest.domain.models import RawRow, SourceKind
from contact_ingest.logging import get_logger

from .base import SourceAdapter
from .exceptions import SourceParseError

logger = get_logger(__name__, component="adapter")

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class SpreadsheetAdapter(SourceAdapter):
    """Adapter for workbook uploads."""

    kind = SourceKind.SPREADSHEET

    async def parse(self, source: Any) -> List[RawRow]:
        payload = await self._read_payload(source)
        return await asyncio.to_thread(self.parse_bytes, payload)

    def parse_bytes(self, payload: bytes) -> List[RawRow]:
        """Parse workbook bytes into rows.

        Raises:
            SourceParseError: If the container is unrecognised or unreadable,
                the sheet has no header row, or it has too many data rows
        """
        if payload.startswith(XLSX_MAGIC):
            workbook_format = "xlsx"
            reader = _read_xlsx
        elif payload.startswith(XLS_MAGIC):
            workbook_format = "xls"
            reader = _read_xls
        else:
            raise SourceParseError(
                "Payload is not a recognised spreadsheet container",
                source_kind=self.kind.value,
            )

        try:
            sheet_rows = reader(payload)
        except SourceParseError:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to read {workbook_format} workbook: {e}",
                extra={
                    "event": "adapter.parse.failed",
                    "source_kind": self.kind.value,
                    "format": workbook_format,
                    "error_type": type(e).__name__,
                },
            )
            raise SourceParseError(
                f"Unreadable {workbook_format} workbook: {e}",
                source_kind=self.kind.value,
            ) from e

        rows = self._rows_from_sheet(sheet_rows)
        logger.info(
            f"Parsed {len(rows)} spreadsheet rows",
            extra={
                "event": "adapter.parse.completed",
                "source_kind": self.kind.value,
                "format": workbook_format,
                "row_count": len(rows),
            },
        )
        return rows

    def _rows_from_sheet(self, sheet_rows: Iterable[Sequence[Any]]) -> List[RawRow]:
        header: Optional[List[Optional[str]]] = None
        rows: List[RawRow] = []

        for values in sheet_rows:
            if all(_is_blank(value) for value in values):
                continue

            if header is None:
                header = [None if _is_blank(value) else str(value).strip() for value in values]
                continue

            row: RawRow = {}
            for column, value in zip(header, values):
                if column and column not in row and value is not None:
                    row[column] = value
            rows.append(row)
            self._check_row_limit(len(rows))

        if header is None:
            raise SourceParseError("Worksheet has no header row", source_kind=self.kind.value)
        return rows


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_xlsx(payload: bytes) -> List[Sequence[Any]]:
    workbook = openpyxl.load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            raise SourceParseError("Workbook has no worksheets", source_kind=SourceKind.SPREADSHEET.value)
        return [tuple(row) for row in workbook.worksheets[0].iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls(payload: bytes) -> List[Sequence[Any]]:
    book = xlrd.open_workbook(file_contents=payload)
    try:
        if book.nsheets == 0:
            raise SourceParseError("Workbook has no worksheets", source_kind=SourceKind.SPREADSHEET.value)
        sheet = book.sheet_by_index(0)
        return [sheet.row_values(index) for index in range(sheet.nrows)]
    finally:
        book.release_resources()
