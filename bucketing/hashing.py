"""
Deterministic digest of (experiment name, salt).

The salt may be any Value, including nested arrays. Arrays are deep
flattened so that ["user", 3] and [["user"], [3]] hash identically,
then every component is stringified and joined behind the experiment
name with the policy separator.
"""

from typing import Any, Iterator, List, Optional
import hashlib
import json
import math

from .policies import HashPolicy, DEFAULT_HASH_POLICY


def flatten_salt(salt: Any) -> List[Any]:
    """
    Deep-flatten a salt into a flat list of scalar components.

    Parameters
    ----------
    salt : Any
        Scalar or arbitrarily nested list/tuple of scalars

    Returns
    -------
    list
        Flat list of components in depth-first order
    """
    return list(_iter_flat(salt))


def _iter_flat(value: Any) -> Iterator[Any]:
    if isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_flat(item)
    else:
        yield value


def salt_text(value: Any) -> str:
    """
    Stringify one flattened salt component.

    Booleans print as true/false, null as the empty string and integral
    floats without a fractional part, so that the digest input matches
    the canonical textual form of the tree language.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return str(value)


def digest_input(name: str, salt: Any, policy: Optional[HashPolicy] = None) -> str:
    """Build the string that is fed to SHA-1 for (name, salt)."""
    policy = policy or DEFAULT_HASH_POLICY
    parts = [salt_text(part) for part in flatten_salt([name, salt])]
    return policy.separator.join(parts)


def digest_seed(name: str, salt: Any, policy: Optional[HashPolicy] = None) -> int:
    """
    Compute the deterministic hash value for (name, salt).

    Parameters
    ----------
    name : str
        Experiment name, used as a domain separator
    salt : Any
        Scalar or nested array of scalars
    policy : HashPolicy, optional
        Hashing constants (default: 13 hex digits, "." separator)

    Returns
    -------
    int
        Integer in 0 .. policy.max_hash

    Example
    -------
    >>> digest_seed("evalCode", 1)
    3647156450600614
    """
    policy = policy or DEFAULT_HASH_POLICY
    digest = hashlib.sha1(digest_input(name, salt, policy).encode("utf-8")).hexdigest()
    return int(digest[:policy.hex_digits], 16)


__all__ = [
    "flatten_salt",
    "salt_text",
    "digest_input",
    "digest_seed",
]
