"""
Configuration policies for the bucketing engines.

Policies are plain dataclasses that round-trip through JSON via
to_dict() / from_dict(), following the "policy object" pattern used
for all tunables in this codebase.

HASHING CONSTANTS
-----------------
The default HashPolicy reproduces the canonical digest exactly:
SHA-1 over "<name>.<salt parts...>", first 13 hex digits, which is
a value in 0 .. 2^52 - 1 and therefore exact as a double.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from .errors import InvalidArgument


MAX_HEX_DIGITS = 13


@dataclass(frozen=True)
class HashPolicy:
    """
    Policy controlling how salts are turned into hash values.

    Attributes:
        separator: String placed between the experiment name and each
            flattened salt component. Default ".".
        hex_digits: Number of leading hex digits of the SHA-1 digest
            used as the hash value. Default 13 (52 bits).
    """
    separator: str = "."
    hex_digits: int = MAX_HEX_DIGITS

    @property
    def max_hash(self) -> int:
        """Largest hash value this policy can produce."""
        return 16 ** self.hex_digits - 1

    def validate(self) -> List[str]:
        """Return a list of problems with this policy (empty if valid)."""
        errors = []
        if not isinstance(self.separator, str):
            errors.append(f"separator must be a string, got {type(self.separator).__name__}")
        if isinstance(self.hex_digits, bool) or not isinstance(self.hex_digits, int):
            errors.append(f"hex_digits must be an int, got {type(self.hex_digits).__name__}")
        elif not 1 <= self.hex_digits <= MAX_HEX_DIGITS:
            errors.append(f"hex_digits must be in 1..{MAX_HEX_DIGITS}, got {self.hex_digits}")
        return errors

    def ensure_valid(self) -> "HashPolicy":
        errors = self.validate()
        if errors:
            raise InvalidArgument(f"Invalid HashPolicy: {'; '.join(errors)}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "HashPolicy":
        return HashPolicy(**{k: v for k, v in d.items() if k in HashPolicy.__dataclass_fields__})


DEFAULT_HASH_POLICY = HashPolicy()


__all__ = [
    "HashPolicy",
    "DEFAULT_HASH_POLICY",
    "MAX_HEX_DIGITS",
]
