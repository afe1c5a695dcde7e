"""
Runtime value helpers shared by the interpreter and the gatherer.

A Value is one of: number (int/float, never bool), string, boolean,
None, list of Values, or str-keyed dict of Values. These helpers give
the tree language its numeric and truthiness semantics.
"""

from datetime import date, datetime
from typing import Any
import math


def is_number(value: Any) -> bool:
    """True for int/float values; booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def truthy(value: Any) -> bool:
    """
    Truthiness of a Value.

    None, False, 0, NaN and "" are falsy. Arrays and mappings are
    always truthy, even when empty.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return len(value) > 0
    return True


def round_half_away(value: float) -> float:
    """
    Round to the nearest integer, ties away from zero.

    Non-finite inputs (from division by zero) are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return whole if value >= 0 else -whole


def divide(left: float, right: float) -> float:
    """Division where x/0 is +-inf and 0/0 is NaN."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def remainder(left: float, right: float) -> float:
    """Truncated remainder: the sign follows the dividend; x % 0 is NaN."""
    if right == 0:
        return math.nan
    if isinstance(left, int) and isinstance(right, int):
        result = abs(left) % abs(right)
        return -result if left < 0 else result
    return math.fmod(left, right)


def comparable(left: Any, right: Any) -> bool:
    """Whether two values can be ordered against each other."""
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return True
    if isinstance(left, str) and isinstance(right, str):
        return True
    if isinstance(left, datetime) or isinstance(right, datetime):
        return isinstance(left, datetime) and isinstance(right, datetime)
    if isinstance(left, date) and isinstance(right, date):
        return True
    return False


def same_atomic(left: Any, right: Any) -> bool:
    """
    Strict equality for atomic values.

    Unlike ==, a boolean never equals a number (1 and True differ).
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


__all__ = [
    "is_number",
    "is_array",
    "is_mapping",
    "truthy",
    "round_half_away",
    "divide",
    "remainder",
    "comparable",
    "same_atomic",
]
