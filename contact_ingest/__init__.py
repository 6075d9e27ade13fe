"""Contact ingest: bulk contact import with validation and duplicate merging."""

__version__ = "1.0.0"
