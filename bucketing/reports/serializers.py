"""
JSON output for run results, gathered parameters and parsed trees.

Everything this package hands back to a caller either is a JSON value
already or exposes ``to_dict()`` (nodes, Parameters, ExperimentRun,
ScriptMetadata). numpy scalars can reach a run through its inputs, and
dates through comparisons, so both are converted here as well.
"""

from datetime import date
from typing import Any, Mapping
import hashlib
import json

import numpy as np

from ..tree.nodes import parse_tree


def make_json_safe(obj: Any) -> Any:
    """
    Convert a result object to plain JSON types.

    Parameters
    ----------
    obj : Any
        Run, metadata, node, Parameter or any JSON-shaped value

    Returns
    -------
    Any
        Nested dicts/lists of JSON scalars. Unknown objects are returned
        as-is, so json.dumps reports them.
    """
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return make_json_safe(obj.tolist())
    if isinstance(obj, Mapping):
        return {str(k): make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [make_json_safe(v) for v in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    if callable(getattr(obj, "to_dict", None)):
        return make_json_safe(obj.to_dict())
    return obj


def to_json(obj: Any, indent: int = 2) -> str:
    """Pretty, key-sorted JSON for a result object."""
    return json.dumps(make_json_safe(obj), indent=indent, sort_keys=True)


def canonical_json(obj: Any) -> str:
    """Sorted-key, whitespace-free JSON used for fingerprints."""
    return json.dumps(make_json_safe(obj), sort_keys=True, separators=(",", ":"))


def tree_fingerprint(tree: Any, length: int = 16) -> str:
    """
    Stable short identifier for a compiled script.

    Parsed trees and their JSON form fingerprint identically.

    Parameters
    ----------
    tree : dict or Node
        Compiled script
    length : int
        Number of hex characters to return (default: 16)

    Returns
    -------
    str
        Truncated SHA-256 hex digest of the canonical JSON
    """
    digest = hashlib.sha256(canonical_json(parse_tree(tree)).encode("utf-8")).hexdigest()
    return digest[:length]


__all__ = [
    "make_json_safe",
    "to_json",
    "canonical_json",
    "tree_fingerprint",
]
