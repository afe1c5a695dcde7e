"""
Expression tree subsystem.

Both engines consume the same immutable tree: the interpreter evaluates
it to concrete values, the parameter gatherer to value-space
descriptions. Trees arrive as JSON documents produced by the script
compiler and are validated and parsed here.
"""

from .nodes import (
    Node,
    Tree,
    LiteralNode,
    ArrayNode,
    GetNode,
    SetNode,
    SeqNode,
    CondClause,
    CondNode,
    BinaryNode,
    CommutativeNode,
    UnaryNode,
    RandomRangeNode,
    BernoulliTrialNode,
    BernoulliFilterNode,
    UniformChoiceNode,
    WeightedChoiceNode,
    SampleNode,
    IndexNode,
    IncludesNode,
    ALL_OPS,
    validate_tree,
    parse_tree,
    tree_from_json,
    load_tree,
)

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
    "ALL_OPS",
    "validate_tree",
    "parse_tree",
    "tree_from_json",
    "load_tree",
]
