"""Connector adapter for contact batches pulled from external platforms.

A connector delivers a batch of records whose keys follow the platform's
own naming (Salesforce ``FirstName``/``LastName``, HubSpot ``properties``,
plain ``email``/``phone`` APIs). The adapter maps those keys onto the
recognised contact fields and hands the rows on without judging them.
"""

import asyncio
import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import requests

from contact_ingest.domain.models import RawRow, SourceKind
from contact_ingest.logging import get_logger

from .base import SourceAdapter
from .exceptions import AdapterConfigurationError, ConnectorTransportError

logger = get_logger(__name__, component="connector")

NAME_KEYS = ("name", "full_name", "fullname", "contact_name", "display_name")
FIRST_NAME_KEYS = ("firstname", "first_name", "given_name")
LAST_NAME_KEYS = ("lastname", "last_name", "family_name", "surname")
EMAIL_KEYS = ("email", "e-mail", "email_address", "emailaddress", "mail")
PHONE_KEYS = ("phone", "phone_number", "phonenumber", "mobilephone", "mobile_phone", "mobile", "telephone")
TAGS_KEYS = ("tags", "labels", "groups", "lists")

# Keys that may wrap the record list in a JSON envelope
BATCH_ENVELOPE_KEYS = ("contacts", "results", "data", "records")

# Iterables that are never a batch of records
_NOT_A_BATCH = (str, bytes, bytearray, memoryview, Mapping)


@runtime_checkable
class ContactConnector(Protocol):
    """Anything that can hand over one batch of platform records.

    ``fetch_records`` may be a plain or a coroutine function. It returns the
    batch (possibly empty) or raises when the batch cannot be retrieved.
    ``platform`` labels provenance; connectors without one are tagged
    ``connector``.
    """

    platform: str

    def fetch_records(self) -> Sequence[Mapping]:
        ...


class HttpContactConnector:
    """Connector that fetches a JSON batch from an HTTP endpoint.

    Attributes:
        platform: Platform label used in provenance and logs
        endpoint: URL returning the batch
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        endpoint: str,
        platform: str = "api",
        api_key: Optional[str] = None,
        timeout: int = 30,
        user_agent: str = "ContactIngest/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize HTTP connector.

        Raises:
            AdapterConfigurationError: If endpoint is empty or timeout is out of range
        """
        if not endpoint or not endpoint.strip():
            raise AdapterConfigurationError("Connector endpoint cannot be empty")
        if not 5 <= timeout <= 300:
            raise AdapterConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )

        self.platform = platform
        self.endpoint = endpoint.strip()
        self.timeout = timeout

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    @classmethod
    def from_config(cls, connector_config, api_key: Optional[str] = None) -> "HttpContactConnector":
        """Build a connector from a ConnectorConfig section.

        Raises:
            AdapterConfigurationError: If the section has no endpoint
        """
        if not connector_config.endpoint:
            raise AdapterConfigurationError(
                f"Connector platform '{connector_config.platform.value}' has no endpoint configured"
            )
        return cls(
            endpoint=connector_config.endpoint,
            platform=connector_config.platform.value,
            api_key=api_key,
            timeout=connector_config.timeout,
            user_agent=connector_config.user_agent,
        )

    def test_connection(self) -> bool:
        """Check that the endpoint answers with a readable batch.

        Returns:
            True when the endpoint responded successfully

        Raises:
            ConnectorTransportError: If the endpoint cannot be reached or answers with an error
        """
        self._request()
        logger.info(
            f"Connection to {self.platform} succeeded",
            extra={"event": "connector.test.succeeded", "platform": self.platform},
        )
        return True

    def fetch_records(self) -> List[Any]:
        """Fetch the contact batch.

        Returns:
            Records exactly as the platform returned them (possibly empty)

        Raises:
            ConnectorTransportError: On transport failure or an unusable response body
        """
        data = self._request()

        if isinstance(data, Mapping):
            for key in BATCH_ENVELOPE_KEYS:
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
            else:
                raise ConnectorTransportError(
                    f"Response from {self.endpoint} does not contain a record list",
                    platform=self.platform,
                    url=self.endpoint,
                )

        if not isinstance(data, list):
            raise ConnectorTransportError(
                f"Response from {self.endpoint} is not a record list",
                platform=self.platform,
                url=self.endpoint,
            )

        logger.info(
            f"Fetched {len(data)} records from {self.platform}",
            extra={
                "event": "connector.fetch.completed",
                "platform": self.platform,
                "record_count": len(data),
            },
        )
        return data

    def close(self) -> None:
        self._session.close()

    def _request(self) -> Any:
        try:
            logger.debug(
                f"HTTP GET request to {self.endpoint}",
                extra={
                    "event": "connector.fetch.request",
                    "url": self.endpoint,
                    "timeout": self.timeout,
                },
            )
            response = self._session.get(self.endpoint, timeout=self.timeout)

            if response.status_code >= 400:
                is_retryable = response.status_code >= 500
                logger.log(
                    logging.WARNING if is_retryable else logging.ERROR,
                    f"HTTP {response.status_code} error from {self.endpoint}",
                    extra={
                        "event": "connector.fetch.retryable_error" if is_retryable else "connector.fetch.error",
                        "status_code": response.status_code,
                        "url": self.endpoint,
                    },
                )
                raise ConnectorTransportError(
                    f"HTTP {response.status_code}: {response.reason}",
                    platform=self.platform,
                    status_code=response.status_code,
                    url=self.endpoint,
                )

            try:
                return response.json()
            except ValueError as e:
                logger.error(
                    f"Failed to parse JSON response from {self.endpoint}",
                    extra={
                        "event": "connector.fetch.error",
                        "error_type": "JSONDecodeError",
                        "url": self.endpoint,
                    },
                )
                raise ConnectorTransportError(
                    f"Failed to parse JSON response from {self.endpoint}: {e}",
                    platform=self.platform,
                    status_code=response.status_code,
                    url=self.endpoint,
                ) from e

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {self.endpoint} timed out after {self.timeout} seconds",
                extra={
                    "event": "connector.fetch.retryable_error",
                    "error_type": "Timeout",
                    "url": self.endpoint,
                },
            )
            raise ConnectorTransportError(
                f"Request to {self.endpoint} timed out after {self.timeout} seconds",
                platform=self.platform,
                url=self.endpoint,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {self.endpoint} failed: {e}",
                extra={
                    "event": "connector.fetch.error",
                    "error_type": type(e).__name__,
                    "url": self.endpoint,
                },
            )
            raise ConnectorTransportError(
                f"Request to {self.endpoint} failed: {e}",
                platform=self.platform,
                url=self.endpoint,
            ) from e


class ConnectorAdapter(SourceAdapter):
    """Adapter for connector batches.

    The source is either a connector (anything with a ``fetch_records``
    method) or an already-fetched iterable of records. A failed fetch raises
    ConnectorTransportError; an empty batch yields no rows.
    """

    kind = SourceKind.CONNECTOR

    async def parse(self, source: Any) -> List[RawRow]:
        if callable(getattr(source, "fetch_records", None)):
            platform = getattr(source, "platform", None) or "connector"
            records = await self._fetch(source, platform)
        elif isinstance(source, Iterable) and not isinstance(source, _NOT_A_BATCH):
            platform = None
            records = list(source)
        else:
            raise AdapterConfigurationError(
                f"ConnectorAdapter cannot read a source of type {type(source).__name__}"
            )

        self._check_row_limit(len(records))
        rows = [map_platform_record(record) for record in records]

        logger.info(
            f"Mapped {len(rows)} connector records",
            extra={
                "event": "connector.batch.mapped",
                "platform": platform,
                "row_count": len(rows),
            },
        )
        return rows

    async def _fetch(self, connector: Any, platform: str) -> Sequence[Any]:
        try:
            if inspect.iscoroutinefunction(connector.fetch_records):
                records = await connector.fetch_records()
            else:
                records = await asyncio.to_thread(connector.fetch_records)
        except ConnectorTransportError:
            raise
        except Exception as e:
            logger.error(
                f"Connector {platform} failed: {e}",
                extra={
                    "event": "connector.fetch.error",
                    "platform": platform,
                    "error_type": type(e).__name__,
                },
            )
            raise ConnectorTransportError(
                f"Connector {platform} failed: {e}", platform=platform
            ) from e

        if not isinstance(records, Iterable) or isinstance(records, _NOT_A_BATCH):
            raise ConnectorTransportError(
                f"Connector {platform} did not return a record batch", platform=platform
            )
        return list(records)


def map_platform_record(record: Any) -> RawRow:
    """Map one platform record onto the recognised contact fields.

    Values are passed through untouched; a record that is not a mapping
    becomes an empty row so the normalizer rejects it.

    Example:
        >>> map_platform_record({"FirstName": "Ada", "LastName": "Lovelace", "Email": "ada@x.io"})
        {'name': 'Ada Lovelace', 'email': 'ada@x.io'}
    """
    if not isinstance(record, Mapping):
        return {}

    fields: Dict[str, Any] = {}
    properties = record.get("properties")
    sources = [record, properties] if isinstance(properties, Mapping) else [record]
    # HubSpot-style properties take precedence over top-level keys
    for source in reversed(sources):
        for key, value in source.items():
            if isinstance(key, str):
                fields.setdefault(key.strip().lower(), value)

    row: RawRow = {}
    name = _first_present(fields, NAME_KEYS)
    if name is None:
        parts = [
            part.strip()
            for part in (_first_present(fields, FIRST_NAME_KEYS), _first_present(fields, LAST_NAME_KEYS))
            if isinstance(part, str) and part.strip()
        ]
        name = " ".join(parts) if parts else None
    if name is not None:
        row["name"] = name

    for field, keys in (("email", EMAIL_KEYS), ("phone", PHONE_KEYS), ("tags", TAGS_KEYS)):
        value = _first_present(fields, keys)
        if value is not None:
            row[field] = value
    return row


def _first_present(fields: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if fields.get(key) is not None:
            return fields[key]
    return None
