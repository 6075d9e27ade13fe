"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

LARGE_MAX_ROWS = 100000


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    ingest = config_dict.get("ingest", {})
    if isinstance(ingest, dict):
        max_rows = ingest.get("max_rows", 10000)
        if isinstance(max_rows, int) and not isinstance(max_rows, bool):
            if max_rows == 0:
                warning_messages.append(
                    "ingest.max_rows is 0: payloads of any size will be loaded into memory"
                )
            elif max_rows > LARGE_MAX_ROWS:
                warning_messages.append(
                    f"Large ingest.max_rows ({max_rows}) may make imports slow to validate"
                )

    connector = config_dict.get("connector")
    if isinstance(connector, dict):
        platform = str(connector.get("platform", "api")).lower()
        if platform != "webhook" and not connector.get("endpoint"):
            warning_messages.append(
                f"Connector platform '{platform}' has no endpoint; "
                "set connector.endpoint or CONNECTOR_ENDPOINT before importing"
            )

    merge = config_dict.get("merge", {})
    if isinstance(merge, dict) and merge.get("scalar_policy") == "first_wins":
        warning_messages.append(
            "merge.scalar_policy is first_wins: later rows will not update names, emails or phones"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
