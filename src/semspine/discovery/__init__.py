"""Schema discovery and field profiling."""

from .discover import discover, discover_all, guess_type, infer_fields
from .profiling import guess_semantic_type, profile_fields

__all__ = [
    "discover",
    "discover_all",
    "guess_type",
    "infer_fields",
    "guess_semantic_type",
    "profile_fields",
]
