"""Base adapter class shared by all source adapters.

Every adapter turns its native input into a list of RawRow mappings. Reading
the payload is the only place an adapter suspends; parsing itself is plain
synchronous work.
"""

import asyncio
import inspect
import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Optional

from contact_ingest.domain.models import RawRow, SourceKind
from contact_ingest.logging import get_logger

from .exceptions import AdapterConfigurationError, SourceParseError

logger = get_logger(__name__, component="adapter")


class SourceAdapter(ABC):
    """Base class for the delimited-text, spreadsheet and connector adapters.

    Attributes:
        kind: SourceKind handled by the adapter
        max_rows: Maximum data rows accepted from one payload (0 = unlimited)
        max_payload_bytes: Maximum payload size in bytes (0 = unlimited)
    """

    kind: ClassVar[SourceKind]

    def __init__(self, max_rows: int = 10000, max_payload_bytes: int = 5 * 1024 * 1024) -> None:
        """Initialize adapter limits.

        Raises:
            AdapterConfigurationError: If a limit is negative
        """
        if max_rows < 0:
            raise AdapterConfigurationError(f"max_rows cannot be negative, got: {max_rows}")
        if max_payload_bytes < 0:
            raise AdapterConfigurationError(
                f"max_payload_bytes cannot be negative, got: {max_payload_bytes}"
            )

        self.max_rows = max_rows
        self.max_payload_bytes = max_payload_bytes

    @abstractmethod
    async def parse(self, source: Any) -> List[RawRow]:
        """Read the source and return its rows.

        Args:
            source: Adapter-specific input (payload bytes, file handle,
                path, connector or record batch)

        Returns:
            List of RawRow in source order. Rows are not validated here.

        Raises:
            SourceParseError: The payload cannot be parsed at all
            ConnectorTransportError: The connector batch could not be fetched
            AdapterConfigurationError: The source object is of the wrong type
        """

    def source_tag(self, label: Optional[str] = None) -> str:
        """Provenance label for rows read by this adapter.

        Examples:
            "delimited:contacts.csv", "spreadsheet", "connector:hubspot"
        """
        label = (label or "").strip()
        return f"{self.kind.value}:{label}" if label else self.kind.value

    async def _read_payload(self, source: Any) -> bytes:
        """Materialize an upload as bytes.

        Accepts bytes-like objects, str (already-decoded text), path-like
        objects and file handles whose ``read`` is sync or async.

        Raises:
            SourceParseError: The payload could not be read or is too large
            AdapterConfigurationError: The source is of an unsupported type
        """
        try:
            if isinstance(source, (bytes, bytearray, memoryview)):
                payload = bytes(source)
            elif isinstance(source, str):
                payload = source.encode("utf-8")
            elif isinstance(source, os.PathLike):
                payload = await asyncio.to_thread(_read_file, source)
            elif callable(getattr(source, "read", None)):
                if inspect.iscoroutinefunction(source.read):
                    data = await source.read()
                else:
                    data = await asyncio.to_thread(source.read)
                payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
            else:
                raise AdapterConfigurationError(
                    f"{type(self).__name__} cannot read a source of type {type(source).__name__}"
                )
        except OSError as e:
            logger.error(
                "Failed to read payload",
                extra={
                    "event": "adapter.read.failed",
                    "source_kind": self.kind.value,
                    "error_type": type(e).__name__,
                },
            )
            raise SourceParseError(
                f"Failed to read payload: {e}", source_kind=self.kind.value
            ) from e

        self._check_payload_size(len(payload))
        return payload

    def _check_payload_size(self, size: int) -> None:
        if self.max_payload_bytes and size > self.max_payload_bytes:
            raise SourceParseError(
                f"Payload is {size} bytes, larger than the {self.max_payload_bytes} byte limit",
                source_kind=self.kind.value,
            )

    def _check_row_limit(self, row_count: int) -> None:
        if self.max_rows and row_count > self.max_rows:
            raise SourceParseError(
                f"Payload has more than {self.max_rows} data rows",
                source_kind=self.kind.value,
            )


def _read_file(path: "os.PathLike[str]") -> bytes:
    with open(path, "rb") as f:
        return f.read()
