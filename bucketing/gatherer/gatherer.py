"""
Parameter gatherer: abstract interpretation of experiment scripts.

Walks the same tree as the interpreter but without randomness, and
records for every assigned variable a Parameter describing all values
it could hold after a complete evaluation, across every branch. The
result is used to preview or override experiment outcomes before they
run.

There is no early-return latch here. Which branch returns early is
itself randomness-dependent, so every statement after every ``return``
is still considered reachable.

BRANCHES
--------
Each ``cond`` clause body is gathered in a child symbol table layered
over the current one, so assignments inside a branch still merge with
any earlier value. Afterwards each name assigned by any branch is
written back as the join of the branch results: distinct atomics
become a Union, everything else merges.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import copy
import logging
import operator

from ..environment import Environment
from ..errors import UnsupportedOperation
from ..tree.nodes import (
    Node,
    Tree,
    LiteralNode,
    ArrayNode,
    GetNode,
    SetNode,
    SeqNode,
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
    parse_tree,
)
from ..values import divide, is_number, remainder
from .parameters import (
    ArrayParameter,
    ObjectParameter,
    RangeParameter,
    SelectParameter,
    boolean_parameter,
    combine_arithmetic,
    join_branches,
    merge_parameters,
    parameter_from_dict,
    round_parameter,
)

logger = logging.getLogger(__name__)


ARITHMETIC_FUNCS: Dict[str, Callable[[float, float], float]] = {
    "%": remainder,
    "-": operator.sub,
    "/": divide,
    "sum": operator.add,
    "product": operator.mul,
    "min": min,
    "max": max,
}

BOOLEAN_OPS = ("equals", "<", "<=", ">", ">=", "and", "or", "not", "includes")


def _value_to_parameter(value: Any) -> Any:
    """Describe a concrete literal value as a Parameter."""
    if isinstance(value, dict):
        return ObjectParameter(value=copy.deepcopy(value))
    if isinstance(value, (list, tuple)):
        return ArrayParameter(values=[_value_to_parameter(v) for v in value])
    return value


class ParameterGatherer:
    """
    Computes the value space of every variable a script assigns.

    Parameters
    ----------
    inputs : Environment or mapping, optional
        Base symbol table of known input Parameters. A mapping becomes
        the parent layer; it is never mutated.

    Example
    -------
    >>> gatherer = ParameterGatherer()
    >>> params = gatherer.inspect({
    ...     "op": "set", "var": "color",
    ...     "value": {"op": "uniformChoice", "choices": ["red", "blue"], "unit": 1},
    ... })
    >>> params["color"]
    SelectParameter(limit=1, values=['red', 'blue'])
    """

    def __init__(self, inputs: Optional[Union[Environment, Mapping[str, Any]]] = None):
        if isinstance(inputs, Environment):
            self.environment = inputs.child()
        else:
            self.environment = Environment(parent=inputs)

    def inspect(self, tree: Any) -> Dict[str, Any]:
        """Gather a whole tree and return the flattened Parameter map."""
        self.evaluate(parse_tree(tree))
        return self.environment.to_dict()

    def evaluate(self, node: Tree) -> Any:
        if not isinstance(node, Node):
            return node
        if node.op in BOOLEAN_OPS:
            self._visit_operands(node)
            return boolean_parameter()
        handler = self._HANDLERS.get(node.op)
        if handler is None:
            raise UnsupportedOperation(node.op)
        return handler(self, node)

    def _visit_operands(self, node: Node) -> None:
        # Operands may contain assignments that must still be recorded.
        if isinstance(node, BinaryNode):
            self.evaluate(node.left)
            self.evaluate(node.right)
        elif isinstance(node, CommutativeNode):
            for value in node.values:
                self.evaluate(value)
        elif isinstance(node, UnaryNode):
            self.evaluate(node.value)
        elif isinstance(node, IncludesNode):
            self.evaluate(node.collection)
            self.evaluate(node.value)

    # Core ops

    def _literal(self, node: LiteralNode) -> Any:
        return _value_to_parameter(node.value)

    def _array(self, node: ArrayNode) -> ArrayParameter:
        return ArrayParameter(values=[self.evaluate(v) for v in node.values])

    def _get(self, node: GetNode) -> Any:
        return self.environment.get(node.var, None)

    def _set(self, node: SetNode) -> Any:
        parameter = self.evaluate(node.value)
        merged = merge_parameters(self.environment.get(node.var, None), parameter)
        self.environment.set(node.var, merged)
        logger.debug(f"gathered {node.var} -> {merged!r}")
        return merged

    def _seq(self, node: SeqNode) -> Any:
        result = None
        for step in node.steps:
            result = self.evaluate(step)
        return result

    def _cond(self, node: CondNode) -> None:
        outer = self.environment
        branches: List[Environment] = []
        for clause in node.clauses:
            self.evaluate(clause.condition)
            branch = outer.child()
            self.environment = branch
            try:
                self.evaluate(clause.then)
            finally:
                self.environment = outer
            branches.append(branch)

        assigned: Dict[str, List[Any]] = {}
        for branch in branches:
            for name, param in branch.local_items():
                assigned.setdefault(name, []).append(param)
        for name, params in assigned.items():
            outer.set(name, join_branches(params))
        return None

    def _return(self, node: UnaryNode) -> Any:
        return self.evaluate(node.value)

    # Arithmetic

    def _binary(self, node: BinaryNode) -> Any:
        return combine_arithmetic(
            self.evaluate(node.left),
            self.evaluate(node.right),
            ARITHMETIC_FUNCS[node.op],
        )

    def _commutative(self, node: CommutativeNode) -> Any:
        params = [self.evaluate(v) for v in node.values]
        if not params:
            return None
        fn = ARITHMETIC_FUNCS[node.op]
        result = params[0]
        for param in params[1:]:
            result = combine_arithmetic(result, param, fn)
        return result

    def _negative(self, node: UnaryNode) -> Any:
        return combine_arithmetic(self.evaluate(node.value), -1, operator.mul)

    def _round(self, node: UnaryNode) -> Any:
        return round_parameter(self.evaluate(node.value))

    def _length(self, node: UnaryNode) -> Any:
        param = self.evaluate(node.value)
        if isinstance(param, str):
            return len(param)
        if isinstance(param, ArrayParameter):
            return len(param.values)
        if isinstance(param, SelectParameter):
            return RangeParameter(kind="integer", min=0, max=len(param.values))
        return None

    # Structural

    def _index(self, node: IndexNode) -> Any:
        base = self.evaluate(node.base)
        index = self.evaluate(node.index)
        if isinstance(base, ArrayParameter):
            if is_number(index) and float(index).is_integer() and 0 <= index < len(base.values):
                return base.values[int(index)]
            if not base.values:
                return None
            return SelectParameter(limit=1, values=list(base.values))
        if isinstance(base, ObjectParameter) and isinstance(index, str):
            if index not in base.value:
                return None
            return _value_to_parameter(base.value[index])
        return None

    # Randomization ops

    def _random_range(self, node: RandomRangeNode) -> Any:
        min_val = self.evaluate(node.min)
        max_val = self.evaluate(node.max)
        if is_number(min_val) and is_number(max_val):
            kind = "integer" if node.op == "randomInteger" else "float"
            return RangeParameter(kind=kind, min=min_val, max=max_val)
        return None

    def _bernoulli_trial(self, node: BernoulliTrialNode) -> SelectParameter:
        return SelectParameter(limit=1, values=[0, 1])

    def _bernoulli_filter(self, node: BernoulliFilterNode) -> Any:
        choices = self.evaluate(node.choices)
        if isinstance(choices, ArrayParameter):
            return SelectParameter(limit=len(choices.values), values=list(choices.values))
        return None

    def _choice(self, node: Union[UniformChoiceNode, WeightedChoiceNode]) -> Any:
        choices = self.evaluate(node.choices)
        if isinstance(choices, ArrayParameter):
            return SelectParameter(limit=1, values=list(choices.values))
        return None

    def _sample(self, node: SampleNode) -> Any:
        choices = self.evaluate(node.choices)
        if not isinstance(choices, ArrayParameter):
            return None
        if node.draws is None:
            return SelectParameter(limit=len(choices.values), values=list(choices.values))
        draws = self.evaluate(node.draws)
        if not is_number(draws):
            return None
        return SelectParameter(limit=draws, values=list(choices.values))

    _HANDLERS: Dict[str, Callable[["ParameterGatherer", Any], Any]] = {
        "literal": _literal,
        "array": _array,
        "get": _get,
        "set": _set,
        "seq": _seq,
        "cond": _cond,
        "index": _index,
        "randomFloat": _random_range,
        "randomInteger": _random_range,
        "bernoulliTrial": _bernoulli_trial,
        "bernoulliFilter": _bernoulli_filter,
        "uniformChoice": _choice,
        "weightedChoice": _choice,
        "sample": _sample,
        "return": _return,
        "round": _round,
        "negative": _negative,
        "length": _length,
    }
    _HANDLERS.update(dict.fromkeys(("%", "/", "-"), _binary))
    _HANDLERS.update(dict.fromkeys(("sum", "product", "min", "max"), _commutative))


def gather_inputs(inputs: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a JSON-shaped base symbol table into Parameters."""
    if inputs is None:
        return None
    return {name: parameter_from_dict(value) for name, value in inputs.items()}


__all__ = [
    "ParameterGatherer",
    "gather_inputs",
    "ARITHMETIC_FUNCS",
    "BOOLEAN_OPS",
]
