"""
Layered variable store used by experiment runs and gather sessions.

An Environment holds a local layer of assignments over an optional
parent lookup. Reads fall through to the parent when a name is not set
locally. Deleting a name writes a tombstone into the local layer, which
masks any value the parent provides for that name.

Writes only ever touch the local layer; the parent is never mutated.
"""

from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union


class _Cleared:
    """Tombstone marking a name explicitly deleted from a layer."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEARED"


CLEARED = _Cleared()

_MISSING = object()

ParentLookup = Union["Environment", Mapping[str, Any], Callable[[str, Any], Any]]


class Environment:
    """
    Ordered, string-keyed overlay store with a fallback parent.

    Parameters
    ----------
    values : mapping, optional
        Initial local assignments
    parent : Environment, mapping or callable, optional
        Fallback consulted for names not set locally. A callable is
        invoked as ``parent(name, default)``.

    Example
    -------
    >>> base = Environment({"user": 42})
    >>> env = base.child()
    >>> env.get("user")
    42
    >>> env.delete("user")
    >>> env.get("user", "none")
    'none'
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        parent: Optional[ParentLookup] = None,
    ):
        self._local: Dict[str, Any] = dict(values) if values else {}
        self._parent = parent

    @property
    def parent(self) -> Optional[ParentLookup]:
        return self._parent

    def child(self) -> "Environment":
        """Create an empty layer that falls back to this environment."""
        return Environment(parent=self)

    def get(self, name: str, default: Any = None) -> Any:
        """
        Look up a name.

        Returns the local value if set and not cleared. A cleared name
        returns ``default`` without consulting the parent. Otherwise the
        parent is consulted, then ``default`` is returned.
        """
        value = self._local.get(name, _MISSING)
        if value is CLEARED:
            return default
        if value is not _MISSING:
            return value
        return self._lookup_parent(name, default)

    def _lookup_parent(self, name: str, default: Any) -> Any:
        parent = self._parent
        if parent is None:
            return default
        if isinstance(parent, Environment):
            return parent.get(name, default)
        if callable(parent) and not isinstance(parent, Mapping):
            return parent(name, default)
        return parent.get(name, default)

    def set(self, name: str, value: Any) -> None:
        """Write a value into the local layer."""
        self._local[name] = value

    def delete(self, name: str) -> None:
        """Mask a name: later reads return the caller's default."""
        self._local[name] = CLEARED

    def __contains__(self, name: str) -> bool:
        return self.get(name, _MISSING) is not _MISSING

    def local_items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate over live (non-cleared) local assignments in order."""
        for name, value in self._local.items():
            if value is not CLEARED:
                yield name, value

    def local_names(self) -> Iterator[str]:
        for name, _ in self.local_items():
            yield name

    def to_dict(self) -> Dict[str, Any]:
        """
        Flatten the visible variables into a plain dict.

        Parent values come first, overridden or masked by the local
        layer. Callable parents cannot be enumerated and contribute
        nothing.
        """
        result: Dict[str, Any] = {}
        parent = self._parent
        if isinstance(parent, Environment):
            result.update(parent.to_dict())
        elif isinstance(parent, Mapping):
            result.update(parent)
        for name, value in self._local.items():
            if value is CLEARED:
                result.pop(name, None)
            else:
                result[name] = value
        return result

    def __repr__(self) -> str:
        return f"Environment({self._local!r}, parent={self._parent!r})"


__all__ = [
    "Environment",
    "CLEARED",
]
