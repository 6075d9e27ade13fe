"""Dedup & merge engine for normalized contact candidates."""

from .engine import MergePolicy, merge
from .keys import DedupKey, dedup_key, encode_dedup_key

__all__ = [
    "merge",
    "MergePolicy",
    "DedupKey",
    "dedup_key",
    "encode_dedup_key",
]
