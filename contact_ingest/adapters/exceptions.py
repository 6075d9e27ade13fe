"""Custom exceptions for source adapters."""

from typing import Optional


class AdapterError(Exception):
    """Base exception for all adapter errors.

    Catching this exception catches every failure that aborts an import
    session at the source stage. Row-level problems are never raised; they
    travel with the rows to the normalizer.
    """

    pass


class SourceParseError(AdapterError):
    """The payload is structurally unreadable.

    Raised for malformed delimited text (e.g. an unterminated quote), an
    unreadable spreadsheet container, an undecodable payload, a missing
    header row or a payload over the configured limits. No rows from the
    payload are usable once this is raised.
    """

    def __init__(
        self,
        message: str,
        source_kind: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        """Initialize parse error.

        Args:
            message: Human-readable cause
            source_kind: Kind of source that failed (delimited, spreadsheet, connector)
            line_number: Physical line where parsing stopped, when known
        """
        super().__init__(message)
        self.source_kind = source_kind
        self.line_number = line_number


class ConnectorTransportError(AdapterError):
    """The external connector batch could not be retrieved at all.

    Distinct from a connector that answered with zero records, which is a
    valid, empty import.
    """

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        status_code: int = 0,
        url: Optional[str] = None,
    ) -> None:
        """Initialize transport error.

        Args:
            message: Human-readable cause
            platform: Connector platform (salesforce, hubspot, api, ...)
            status_code: HTTP status if one was received, otherwise 0
            url: Endpoint that failed, when known
        """
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code
        self.url = url


class AdapterConfigurationError(AdapterError):
    """Invalid adapter configuration.

    Indicates an unsupported source kind or upload type, or a source object
    the chosen adapter cannot read.
    """

    pass
