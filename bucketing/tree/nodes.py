"""
Expression tree node definitions, validation and parsing.

This module defines the node types consumed by both the interpreter and
the parameter gatherer, and converts the serialized JSON document
produced by the script compiler into immutable node objects.

TREE FORMAT
-----------
Atomic nodes are bare JSON scalars (number, string, boolean, null).
Compound nodes are objects with an "op" discriminator:

literal:            {"op": "literal", "value": <any value>}
array:              {"op": "array", "values": [<tree>, ...]}
get / set:          {"op": "get", "var": <str>}
                    {"op": "set", "var": <str>, "value": <tree>}
seq:                {"op": "seq", "seq": [<tree>, ...]}
cond:               {"op": "cond", "cond": [{"if": <tree>, "then": <tree>}, ...]}
binary:             {"op": <op>, "left": <tree>, "right": <tree>}
commutative:        {"op": <op>, "values": [<tree>, ...]}
unary:              {"op": <op>, "value": <tree>}
randomFloat/Integer {"op": ..., "min", "max", "unit"}
bernoulliTrial      {"op": ..., "p", "unit"}
bernoulliFilter     {"op": ..., "p", "choices", "unit"}
uniformChoice       {"op": ..., "choices", "unit"}
weightedChoice      {"op": ..., "choices", "weights", "unit"}
sample              {"op": ..., "choices", "draws", "unit"}
index               {"op": "index", "base", "index"}
includes            {"op": "includes", "collection", "value"}

A bare JSON array in node position is read as an "array" node. "-" with
a "value" field is negation; "and"/"or" also accept "left"/"right".
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Set, Tuple, Union
import json

from ..errors import TreeValidationError, UnsupportedOperation


BINARY_OPS: Set[str] = {"equals", ">", "<", ">=", "<=", "%", "/", "-"}

COMMUTATIVE_OPS: Set[str] = {"and", "or", "sum", "product", "min", "max"}

UNARY_OPS: Set[str] = {"return", "not", "round", "negative", "length"}

RANDOM_RANGE_OPS: Set[str] = {"randomFloat", "randomInteger"}

ALL_OPS: Set[str] = (
    {"literal", "array", "get", "set", "seq", "cond", "index", "includes"}
    | BINARY_OPS
    | COMMUTATIVE_OPS
    | UNARY_OPS
    | RANDOM_RANGE_OPS
    | {"bernoulliTrial", "bernoulliFilter", "uniformChoice", "weightedChoice", "sample"}
)


@dataclass(frozen=True)
class Node:
    """Base class for compound tree nodes."""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


Tree = Union[None, bool, int, float, str, Node]


def _wire(tree: Tree) -> Any:
    if isinstance(tree, Node):
        return tree.to_dict()
    return tree


@dataclass(frozen=True)
class LiteralNode(Node):
    """A constant value; the only way to embed a mapping in a tree."""
    value: Any
    op: ClassVar[str] = "literal"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "literal", "value": self.value}


@dataclass(frozen=True)
class ArrayNode(Node):
    values: Tuple[Tree, ...]
    op: ClassVar[str] = "array"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "array", "values": [_wire(v) for v in self.values]}


@dataclass(frozen=True)
class GetNode(Node):
    var: str
    op: ClassVar[str] = "get"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "get", "var": self.var}


@dataclass(frozen=True)
class SetNode(Node):
    var: str
    value: Tree
    op: ClassVar[str] = "set"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "set", "var": self.var, "value": _wire(self.value)}


@dataclass(frozen=True)
class SeqNode(Node):
    """Ordered, side-effecting steps."""
    steps: Tuple[Tree, ...]
    op: ClassVar[str] = "seq"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "seq", "seq": [_wire(s) for s in self.steps]}


@dataclass(frozen=True)
class CondClause:
    condition: Tree
    then: Tree

    def to_dict(self) -> Dict[str, Any]:
        return {"if": _wire(self.condition), "then": _wire(self.then)}


@dataclass(frozen=True)
class CondNode(Node):
    """First-match conditional."""
    clauses: Tuple[CondClause, ...]
    op: ClassVar[str] = "cond"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "cond", "cond": [c.to_dict() for c in self.clauses]}


@dataclass(frozen=True)
class BinaryNode(Node):
    op: str
    left: Tree
    right: Tree

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "left": _wire(self.left), "right": _wire(self.right)}


@dataclass(frozen=True)
class CommutativeNode(Node):
    op: str
    values: Tuple[Tree, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "values": [_wire(v) for v in self.values]}


@dataclass(frozen=True)
class UnaryNode(Node):
    op: str
    value: Tree

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "value": _wire(self.value)}


@dataclass(frozen=True)
class RandomRangeNode(Node):
    op: str
    min: Tree
    max: Tree
    unit: Tree = None

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "min": _wire(self.min), "max": _wire(self.max), "unit": _wire(self.unit)}


@dataclass(frozen=True)
class BernoulliTrialNode(Node):
    p: Tree
    unit: Tree = None
    op: ClassVar[str] = "bernoulliTrial"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "p": _wire(self.p), "unit": _wire(self.unit)}


@dataclass(frozen=True)
class BernoulliFilterNode(Node):
    p: Tree
    choices: Tree
    unit: Tree = None
    op: ClassVar[str] = "bernoulliFilter"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "p": _wire(self.p), "choices": _wire(self.choices), "unit": _wire(self.unit)}


@dataclass(frozen=True)
class UniformChoiceNode(Node):
    choices: Tree
    unit: Tree = None
    op: ClassVar[str] = "uniformChoice"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "choices": _wire(self.choices), "unit": _wire(self.unit)}


@dataclass(frozen=True)
class WeightedChoiceNode(Node):
    choices: Tree
    weights: Tree
    unit: Tree = None
    op: ClassVar[str] = "weightedChoice"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op": self.op,
            "choices": _wire(self.choices),
            "weights": _wire(self.weights),
            "unit": _wire(self.unit),
        }


@dataclass(frozen=True)
class SampleNode(Node):
    """Sample without replacement; draws=None means all elements."""
    choices: Tree
    draws: Tree = None
    unit: Tree = None
    op: ClassVar[str] = "sample"

    def to_dict(self) -> Dict[str, Any]:
        d = {"op": self.op, "choices": _wire(self.choices), "unit": _wire(self.unit)}
        if self.draws is not None:
            d["draws"] = _wire(self.draws)
        return d


@dataclass(frozen=True)
class IndexNode(Node):
    base: Tree
    index: Tree
    op: ClassVar[str] = "index"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "index", "base": _wire(self.base), "index": _wire(self.index)}


@dataclass(frozen=True)
class IncludesNode(Node):
    collection: Tree
    value: Tree
    op: ClassVar[str] = "includes"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "includes", "collection": _wire(self.collection), "value": _wire(self.value)}


# Sub-tree fields per op: (required, optional)
_TREE_FIELDS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "set": (("value",), ()),
    "index": (("base", "index"), ()),
    "includes": (("collection", "value"), ()),
    "randomFloat": (("min", "max"), ("unit",)),
    "randomInteger": (("min", "max"), ("unit",)),
    "bernoulliTrial": (("p",), ("unit",)),
    "bernoulliFilter": (("p", "choices"), ("unit",)),
    "uniformChoice": (("choices",), ("unit",)),
    "weightedChoice": (("choices", "weights"), ("unit",)),
    "sample": (("choices",), ("draws", "unit")),
}
for _op in UNARY_OPS:
    _TREE_FIELDS[_op] = (("value",), ())


def _is_atomic(obj: Any) -> bool:
    return obj is None or isinstance(obj, (bool, int, float, str))


def _validate_list(
    node: Dict[str, Any],
    key: str,
    path: str,
    errors: List[str],
    unsupported: List[Tuple[str, str]],
) -> None:
    items = node.get(key)
    if not isinstance(items, list):
        errors.append(f"{path}: '{node['op']}' node needs a list in '{key}', got {type(items).__name__}")
        return
    for i, item in enumerate(items):
        _validate_node(item, f"{path}.{key}[{i}]", errors, unsupported)


def _validate_node(
    node: Any,
    path: str,
    errors: List[str],
    unsupported: List[Tuple[str, str]],
) -> None:
    """
    Validate a serialized node recursively.

    Appends path-qualified messages to ``errors``; unknown op tags are
    additionally recorded as (op, path) in ``unsupported``.
    """
    if _is_atomic(node):
        return

    if isinstance(node, list):
        for i, item in enumerate(node):
            _validate_node(item, f"{path}[{i}]", errors, unsupported)
        return

    if not isinstance(node, dict):
        errors.append(f"{path}: node must be a scalar, list or dict, got {type(node).__name__}")
        return

    op = node.get("op")
    if op is None:
        errors.append(f"{path}: node missing 'op' field")
        return
    if not isinstance(op, str) or op not in ALL_OPS:
        errors.append(f"{path}: unsupported op '{op}'")
        unsupported.append((op, path))
        return

    if op == "literal":
        if "value" not in node:
            errors.append(f"{path}: literal node missing 'value' field")

    elif op in ("get", "set"):
        name = node.get("var")
        if name is None:
            errors.append(f"{path}: {op} node missing 'var' field")
        elif not isinstance(name, str):
            errors.append(f"{path}: {op} var must be a string, got {type(name).__name__}")

    elif op == "array":
        _validate_list(node, "values", path, errors, unsupported)

    elif op == "seq":
        _validate_list(node, "seq", path, errors, unsupported)

    elif op == "cond":
        clauses = node.get("cond")
        if not isinstance(clauses, list):
            errors.append(f"{path}: cond node needs a list in 'cond', got {type(clauses).__name__}")
        else:
            for i, clause in enumerate(clauses):
                clause_path = f"{path}.cond[{i}]"
                if not isinstance(clause, dict):
                    errors.append(f"{clause_path}: clause must be a dict, got {type(clause).__name__}")
                    continue
                for key in ("if", "then"):
                    if key not in clause:
                        errors.append(f"{clause_path}: clause missing '{key}' field")
                    else:
                        _validate_node(clause[key], f"{clause_path}.{key}", errors, unsupported)

    elif op in COMMUTATIVE_OPS and "values" in node:
        _validate_list(node, "values", path, errors, unsupported)

    elif op in COMMUTATIVE_OPS and op not in ("and", "or"):
        errors.append(f"{path}: '{op}' node missing 'values' field")

    elif op == "-" and "value" in node and "left" not in node:
        _validate_node(node["value"], f"{path}.value", errors, unsupported)

    elif op in BINARY_OPS or op in ("and", "or"):
        for key in ("left", "right"):
            if key not in node:
                errors.append(f"{path}: '{op}' node missing '{key}' field")
            else:
                _validate_node(node[key], f"{path}.{key}", errors, unsupported)

    if op in _TREE_FIELDS:
        required, optional = _TREE_FIELDS[op]
        for key in required:
            if key not in node:
                errors.append(f"{path}: '{op}' node missing '{key}' field")
            else:
                _validate_node(node[key], f"{path}.{key}", errors, unsupported)
        for key in optional:
            if key in node:
                _validate_node(node[key], f"{path}.{key}", errors, unsupported)


def validate_tree(tree: Any) -> List[str]:
    """
    Validate a serialized tree.

    Parameters
    ----------
    tree : Any
        JSON-shaped tree (as returned by json.loads)

    Returns
    -------
    list of str
        Validation error messages (empty if valid)
    """
    errors: List[str] = []
    _validate_node(tree, "root", errors, [])
    return errors


def parse_tree(tree: Any) -> Tree:
    """
    Parse a serialized tree into immutable node objects.

    Already-parsed trees are returned unchanged.

    Raises
    ------
    UnsupportedOperation
        If any node carries an unknown op tag
    TreeValidationError
        If any node is missing fields or has the wrong shape
    """
    if isinstance(tree, Node):
        return tree

    errors: List[str] = []
    unsupported: List[Tuple[str, str]] = []
    _validate_node(tree, "root", errors, unsupported)
    if unsupported:
        op, path = unsupported[0]
        raise UnsupportedOperation(op, path)
    if errors:
        raise TreeValidationError(f"Tree validation failed: {'; '.join(errors)}")

    return _parse_node(tree)


def _parse_node(node: Any) -> Tree:
    """Build a node from an already validated serialized node."""
    if _is_atomic(node):
        return node

    if isinstance(node, list):
        return ArrayNode(values=tuple(_parse_node(v) for v in node))

    op = node["op"]
    sub = lambda key: _parse_node(node.get(key))
    many = lambda key: tuple(_parse_node(v) for v in node[key])

    if op == "literal":
        return LiteralNode(value=node["value"])
    if op == "array":
        return ArrayNode(values=many("values"))
    if op == "get":
        return GetNode(var=node["var"])
    if op == "set":
        return SetNode(var=node["var"], value=sub("value"))
    if op == "seq":
        return SeqNode(steps=many("seq"))
    if op == "cond":
        return CondNode(clauses=tuple(
            CondClause(condition=_parse_node(c["if"]), then=_parse_node(c["then"]))
            for c in node["cond"]
        ))
    if op in COMMUTATIVE_OPS:
        if "values" in node:
            return CommutativeNode(op=op, values=many("values"))
        return CommutativeNode(op=op, values=(sub("left"), sub("right")))
    if op == "-" and "value" in node and "left" not in node:
        return UnaryNode(op="negative", value=sub("value"))
    if op in BINARY_OPS:
        return BinaryNode(op=op, left=sub("left"), right=sub("right"))
    if op in UNARY_OPS:
        return UnaryNode(op=op, value=sub("value"))
    if op in RANDOM_RANGE_OPS:
        return RandomRangeNode(op=op, min=sub("min"), max=sub("max"), unit=sub("unit"))
    if op == "bernoulliTrial":
        return BernoulliTrialNode(p=sub("p"), unit=sub("unit"))
    if op == "bernoulliFilter":
        return BernoulliFilterNode(p=sub("p"), choices=sub("choices"), unit=sub("unit"))
    if op == "uniformChoice":
        return UniformChoiceNode(choices=sub("choices"), unit=sub("unit"))
    if op == "weightedChoice":
        return WeightedChoiceNode(choices=sub("choices"), weights=sub("weights"), unit=sub("unit"))
    if op == "sample":
        return SampleNode(choices=sub("choices"), draws=sub("draws"), unit=sub("unit"))
    if op == "index":
        return IndexNode(base=sub("base"), index=sub("index"))
    if op == "includes":
        return IncludesNode(collection=sub("collection"), value=sub("value"))

    raise UnsupportedOperation(op)


def tree_from_json(text: str) -> Tree:
    """Parse a JSON document into a tree."""
    return parse_tree(json.loads(text))


def load_tree(path: Union[str, Path]) -> Tree:
    """
    Load and parse a compiled script from a JSON file.

    Raises
    ------
    TreeValidationError
        If the file does not exist or the tree is malformed
    """
    path = Path(path)
    if not path.exists():
        raise TreeValidationError(f"Tree file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return tree_from_json(f.read())


__all__ = [
    "Node",
    "Tree",
    "LiteralNode",
    "ArrayNode",
    "GetNode",
    "SetNode",
    "SeqNode",
    "CondClause",
    "CondNode",
    "BinaryNode",
    "CommutativeNode",
    "UnaryNode",
    "RandomRangeNode",
    "BernoulliTrialNode",
    "BernoulliFilterNode",
    "UniformChoiceNode",
    "WeightedChoiceNode",
    "SampleNode",
    "IndexNode",
    "IncludesNode",
    "BINARY_OPS",
    "COMMUTATIVE_OPS",
    "UNARY_OPS",
    "RANDOM_RANGE_OPS",
    "ALL_OPS",
    "validate_tree",
    "parse_tree",
    "tree_from_json",
    "load_tree",
]
