"""Serialization of run results and gathered parameters."""

from .serializers import (
    make_json_safe,
    to_json,
    canonical_json,
    tree_fingerprint,
)

__all__ = [
    "make_json_safe",
    "to_json",
    "canonical_json",
    "tree_fingerprint",
]
