"""Record normalization layer.

This module provides:
- normalize: pure RawRow -> NormalizedCandidate conversion
- canonical_fields: case-insensitive lookup of the recognised columns
- RecordNormalizer: per-source wrapper with batch processing and logging
"""

from .service import RECOGNIZED_FIELDS, RecordNormalizer, canonical_fields, normalize

__all__ = [
    "normalize",
    "canonical_fields",
    "RecordNormalizer",
    "RECOGNIZED_FIELDS",
]
