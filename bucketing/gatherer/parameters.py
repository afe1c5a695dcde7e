"""
Parameter types: symbolic descriptions of a variable's value space.

A Parameter is one of:

- an atomic value (number, string, boolean): exactly this value
- RangeParameter: any number between min and max ("float" or "integer")
- SelectParameter: one of (or up to ``limit`` of) the listed values
- ArrayParameter: an array whose elements are described by Parameters
- ObjectParameter: a literal mapping
- UnionParameter: exactly one of the variants, depending on which
  branch ran

None means "unknown": the gatherer could not determine a description.
This is a normal outcome, not an error.

MERGE LATTICE
-------------
merge_parameters() combines two descriptions of the same variable:

    None  + P           -> P
    a     + a           -> a
    a     + b           -> Select(1, [a, b])
    a     + Select(1)   -> Select(1, values + [a])
    Range + Range       -> widened Range (same kind only)
    Select(1) + Select(1) -> Select(1, union of values)
    Union + P           -> Union(variants + [P])
    otherwise           -> Union([left, right])

Unions are flattened on construction: a Union never directly contains
another Union.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Union as TypingUnion

from ..values import is_number, round_half_away, same_atomic

RANGE_KINDS = ("float", "integer")


@dataclass
class SelectParameter:
    """One of (or, for sample/filter, up to ``limit`` of) ``values``."""
    limit: int
    values: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "select",
            "limit": self.limit,
            "values": [parameter_to_dict(v) for v in self.values],
        }


@dataclass
class RangeParameter:
    """Any number in [min, max]; ``kind`` is "float" or "integer"."""
    kind: str
    min: float
    max: float

    def __post_init__(self):
        if self.kind not in RANGE_KINDS:
            raise ValueError(f"Range kind must be one of {RANGE_KINDS}, got '{self.kind}'")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "min": self.min, "max": self.max}


@dataclass
class ArrayParameter:
    values: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "array", "values": [parameter_to_dict(v) for v in self.values]}


@dataclass
class ObjectParameter:
    """A literal mapping value."""
    value: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "literal", "value": self.value}


@dataclass
class UnionParameter:
    """Exactly one of ``variants``, depending on which branch ran."""
    variants: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "union", "variants": [parameter_to_dict(v) for v in self.variants]}


STRUCTURED_TYPES = (SelectParameter, RangeParameter, ArrayParameter, ObjectParameter, UnionParameter)

Parameter = TypingUnion[
    None, bool, int, float, str,
    SelectParameter, RangeParameter, ArrayParameter, ObjectParameter, UnionParameter,
]


def boolean_parameter() -> SelectParameter:
    """The two-valued boolean outcome."""
    return SelectParameter(limit=1, values=[False, True])


BOOLEAN_PARAMETER = boolean_parameter()


def is_structured(param: Any) -> bool:
    return isinstance(param, STRUCTURED_TYPES)


def parameters_equal(left: Any, right: Any) -> bool:
    """
    Structural equality of two Parameters.

    Atomics compare strictly by kind, so 1 and True are different.
    """
    if is_structured(left) or is_structured(right):
        if type(left) is not type(right):
            return False
        if isinstance(left, (SelectParameter, ArrayParameter)):
            if isinstance(left, SelectParameter) and left.limit != right.limit:
                return False
            return _lists_equal(left.values, right.values)
        if isinstance(left, UnionParameter):
            return _lists_equal(left.variants, right.variants)
        if isinstance(left, RangeParameter):
            return left.kind == right.kind and left.min == right.min and left.max == right.max
        return left.value == right.value
    return same_atomic(left, right)


def _lists_equal(left: List[Any], right: List[Any]) -> bool:
    return len(left) == len(right) and all(parameters_equal(a, b) for a, b in zip(left, right))


def _unique(values: List[Any]) -> List[Any]:
    result: List[Any] = []
    for value in values:
        if not any(parameters_equal(value, seen) for seen in result):
            result.append(value)
    return result


def make_union(variants: List[Any]) -> Any:
    """
    Build a Union, flattening nested Unions and dropping duplicates.

    Unknown (None) variants are skipped. A single surviving variant is
    returned as itself; no variants at all yields None.
    """
    flat: List[Any] = []
    for variant in variants:
        if variant is None:
            continue
        if isinstance(variant, UnionParameter):
            flat.extend(variant.variants)
        else:
            flat.append(variant)
    flat = _unique(flat)
    if not flat:
        return None
    if len(flat) == 1:
        return flat[0]
    return UnionParameter(variants=flat)


def merge_parameters(left: Any, right: Any) -> Any:
    """
    Merge two descriptions of the same variable.

    Parameters
    ----------
    left : Parameter
        Previously recorded description (None if none)
    right : Parameter
        Newly observed description

    Returns
    -------
    Parameter
        A description covering both inputs
    """
    if left is None:
        return right
    if right is None:
        return left

    if not is_structured(left):
        if not is_structured(right):
            if same_atomic(left, right):
                return left
            return SelectParameter(limit=1, values=[left, right])
        if isinstance(right, SelectParameter) and right.limit == 1:
            return SelectParameter(limit=1, values=_unique([left] + right.values))
    elif not is_structured(right):
        if isinstance(left, SelectParameter) and left.limit == 1:
            return SelectParameter(limit=1, values=_unique(left.values + [right]))
    else:
        if isinstance(left, RangeParameter) and isinstance(right, RangeParameter) and left.kind == right.kind:
            return RangeParameter(
                kind=left.kind,
                min=min(left.min, right.min),
                max=max(left.max, right.max),
            )
        if (
            isinstance(left, SelectParameter)
            and isinstance(right, SelectParameter)
            and left.limit == 1
            and right.limit == 1
        ):
            return SelectParameter(limit=1, values=_unique(left.values + right.values))
        if isinstance(left, UnionParameter):
            return make_union(left.variants + [right])

    return make_union([left, right])


def join_branches(params: List[Any]) -> Any:
    """
    Combine the descriptions a variable received in alternative branches.

    Distinct atomics from different branches become a Union (the value
    depends on which branch ran); everything else joins through
    merge_parameters, so Selects from different branches pool their
    values.
    """
    result = None
    for param in params:
        if (
            result is not None
            and param is not None
            and not is_structured(result)
            and not is_structured(param)
        ):
            result = make_union([result, param])
        else:
            result = merge_parameters(result, param)
    return result


def combine_arithmetic(left: Any, right: Any, fn: Callable[[float, float], float]) -> Any:
    """
    Propagate a binary numeric operator through two Parameters.

    Number (+) Number computes directly, Ranges have the operator applied
    to their bounds and Selects broadcast over their values. Any other
    combination is unknown (None).

    The Range rules assume a monotonic operator; for sign-crossing
    operands the resulting bounds are only approximate.
    """
    if not (is_number(left) or is_structured(left)) or not (is_number(right) or is_structured(right)):
        return None

    if is_number(left):
        if is_number(right):
            return fn(left, right)
        if isinstance(right, RangeParameter):
            return RangeParameter(kind=right.kind, min=fn(left, right.min), max=fn(left, right.max))
        if isinstance(right, SelectParameter):
            return SelectParameter(
                limit=right.limit,
                values=[combine_arithmetic(left, v, fn) for v in right.values],
            )
        return None

    if isinstance(left, RangeParameter):
        if is_number(right):
            return RangeParameter(kind=left.kind, min=fn(left.min, right), max=fn(left.max, right))
        if isinstance(right, RangeParameter):
            kind = "float" if "float" in (left.kind, right.kind) else "integer"
            return RangeParameter(kind=kind, min=fn(left.min, right.min), max=fn(left.max, right.max))
        if isinstance(right, SelectParameter):
            return SelectParameter(
                limit=right.limit,
                values=[combine_arithmetic(left, v, fn) for v in right.values],
            )
        return None

    if isinstance(left, SelectParameter):
        return SelectParameter(
            limit=left.limit,
            values=[combine_arithmetic(v, right, fn) for v in left.values],
        )

    return None


def round_parameter(param: Any) -> Any:
    """Round a Parameter to integers; arrays and objects pass through."""
    if is_number(param):
        return round_half_away(param)
    if isinstance(param, RangeParameter):
        if param.kind == "integer":
            return param
        return RangeParameter(kind="integer", min=round_half_away(param.min), max=round_half_away(param.max))
    if isinstance(param, SelectParameter):
        return SelectParameter(limit=param.limit, values=[round_parameter(v) for v in param.values])
    if isinstance(param, UnionParameter):
        return make_union([round_parameter(v) for v in param.variants])
    return param


def parameter_to_dict(param: Any) -> Any:
    """Serialize a Parameter to its JSON shape; atomics pass through."""
    if is_structured(param):
        return param.to_dict()
    return param


def parameter_from_dict(obj: Any) -> Any:
    """
    Read a Parameter back from its JSON shape.

    Dicts carrying a known "type" become structured Parameters, other
    dicts become ObjectParameters and lists become ArrayParameters.
    """
    if isinstance(obj, list):
        return ArrayParameter(values=[parameter_from_dict(v) for v in obj])
    if not isinstance(obj, dict):
        return obj

    kind = obj.get("type")
    if kind == "select":
        return SelectParameter(limit=obj["limit"], values=[parameter_from_dict(v) for v in obj["values"]])
    if kind in RANGE_KINDS:
        return RangeParameter(kind=kind, min=obj["min"], max=obj["max"])
    if kind == "array":
        return ArrayParameter(values=[parameter_from_dict(v) for v in obj["values"]])
    if kind == "literal":
        return ObjectParameter(value=obj["value"])
    if kind == "union":
        return make_union([parameter_from_dict(v) for v in obj["variants"]])
    return ObjectParameter(value=obj)


__all__ = [
    "SelectParameter",
    "RangeParameter",
    "ArrayParameter",
    "ObjectParameter",
    "UnionParameter",
    "Parameter",
    "BOOLEAN_PARAMETER",
    "boolean_parameter",
    "is_structured",
    "parameters_equal",
    "make_union",
    "merge_parameters",
    "join_branches",
    "combine_arithmetic",
    "round_parameter",
    "parameter_to_dict",
    "parameter_from_dict",
]
