"""Test helper utilities for contact ingest tests."""

from .fixture_connector import FixtureConnector, GatedConnector, load_fixture_records

__all__ = ["FixtureConnector", "GatedConnector", "load_fixture_records"]
