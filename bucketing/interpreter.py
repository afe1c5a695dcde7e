"""
Interpreter for compiled experiment scripts.

Evaluates an expression tree against one ExperimentRun, producing a
concrete value and side effects on the run's Environment (assignments,
early return, disabling).

EARLY RETURN
------------
The run's ``returned`` latch goes False -> True on a ``return`` node.
Once set, every further evaluation yields None with no side effects,
and ``seq`` stops advancing through its steps. A ``cond`` already in
progress keeps visiting its remaining guards, which evaluate to None.

Errors are never caught here: an operand of the wrong kind aborts the
whole evaluation.
"""

from typing import Any, Callable, Dict, List, Optional
import copy
import logging
import operator

from .errors import InvalidArgument, TypeMismatch, UnsupportedOperation
from .experiment import ExperimentRun
from .tree.nodes import (
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
from .values import (
    comparable,
    divide,
    is_array,
    is_mapping,
    is_number,
    remainder,
    round_half_away,
    truthy,
)

logger = logging.getLogger(__name__)


ARITHMETIC_FUNCS: Dict[str, Callable[[float, float], float]] = {
    "%": remainder,
    "-": operator.sub,
    "/": divide,
}

COMPARISON_FUNCS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class Interpreter:
    """
    Evaluates a tree against a single experiment run.

    Parameters
    ----------
    run : ExperimentRun
        Run whose environment and hashing are used

    Example
    -------
    >>> run = ExperimentRun("evalCode")
    >>> Interpreter(run).execute({"op": "set", "var": "out", "value": 1})
    1
    >>> run.get("out")
    1
    """

    def __init__(self, run: ExperimentRun):
        self.run = run

    @property
    def returned(self) -> bool:
        return self.run.returned

    def execute(self, tree: Any) -> Any:
        """Parse (if needed) and evaluate a whole tree."""
        return self.evaluate(parse_tree(tree))

    def evaluate(self, node: Tree) -> Any:
        """Evaluate one node; None once the run has returned."""
        if self.run.returned:
            return None
        if not isinstance(node, Node):
            return node
        handler = self._HANDLERS.get(node.op)
        if handler is None:
            raise UnsupportedOperation(node.op)
        return handler(self, node)

    # Typed evaluation helpers

    def _eval_number(self, node: Tree, op: str) -> float:
        value = self.evaluate(node)
        if not is_number(value):
            raise TypeMismatch(f"'{op}' expects a number, got {value!r}")
        return value

    def _eval_array(self, node: Tree, op: str) -> List[Any]:
        value = self.evaluate(node)
        if not is_array(value):
            raise TypeMismatch(f"'{op}' expects an array, got {value!r}")
        return list(value)

    def _eval_number_array(self, node: Tree, op: str) -> List[float]:
        values = self._eval_array(node, op)
        if not all(is_number(v) for v in values):
            raise TypeMismatch(f"'{op}' expects an array of only numbers, got {values!r}")
        return values

    def _eval_numbers(self, nodes, op: str) -> List[float]:
        return [self._eval_number(n, op) for n in nodes]

    # Core ops

    def _literal(self, node: LiteralNode) -> Any:
        # Parsed trees are shared between runs; hand out a private copy.
        if isinstance(node.value, (list, dict)):
            return copy.deepcopy(node.value)
        return node.value

    def _array(self, node: ArrayNode) -> List[Any]:
        return [self.evaluate(v) for v in node.values]

    def _get(self, node: GetNode) -> Any:
        return self.run.get(node.var, None)

    def _set(self, node: SetNode) -> Any:
        value = self.evaluate(node.value)
        self.run.set(node.var, value)
        logger.debug(f"{self.run.name}: {node.var} = {value!r}")
        return value

    def _seq(self, node: SeqNode) -> Any:
        result = None
        for step in node.steps:
            if self.run.returned:
                break
            result = self.evaluate(step)
        return result

    def _cond(self, node: CondNode) -> Any:
        for clause in node.clauses:
            if truthy(self.evaluate(clause.condition)):
                return self.evaluate(clause.then)
        return None

    def _return(self, node: UnaryNode) -> Any:
        value = self.evaluate(node.value)
        self.run.mark_returned()
        if value is False:
            self.run.disable()
        return value

    # Operators

    def _binary(self, node: BinaryNode) -> Any:
        op = node.op
        if op == "equals":
            return self.evaluate(node.left) == self.evaluate(node.right)

        if op in ARITHMETIC_FUNCS:
            left = self._eval_number(node.left, op)
            right = self._eval_number(node.right, op)
            return ARITHMETIC_FUNCS[op](left, right)

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        if not comparable(left, right):
            raise TypeMismatch(f"'{op}' cannot compare {left!r} with {right!r}")
        return COMPARISON_FUNCS[op](left, right)

    def _commutative(self, node: CommutativeNode) -> Any:
        op = node.op
        if op == "and":
            for value in node.values:
                if not truthy(self.evaluate(value)):
                    return False
            return True
        if op == "or":
            for value in node.values:
                if truthy(self.evaluate(value)):
                    return True
            return False

        numbers = self._eval_numbers(node.values, op)
        if op == "sum":
            return sum(numbers)
        if op == "product":
            result = 1
            for n in numbers:
                result *= n
            return result
        if not numbers:
            raise InvalidArgument(f"'{op}' needs at least one operand")
        return max(numbers) if op == "max" else min(numbers)

    def _unary(self, node: UnaryNode) -> Any:
        op = node.op
        if op == "return":
            return self._return(node)
        if op == "not":
            return not truthy(self.evaluate(node.value))
        if op == "round":
            return round_half_away(self._eval_number(node.value, op))
        if op == "negative":
            return -self._eval_number(node.value, op)
        if op == "length":
            return len(self._eval_array(node.value, op))
        raise UnsupportedOperation(op)

    def _index(self, node: IndexNode) -> Any:
        base = self.evaluate(node.base)
        index = self.evaluate(node.index)
        if is_array(base):
            if not is_number(index):
                raise TypeMismatch(f"'index' into an array expects a number, got {index!r}")
            if isinstance(index, float) and not index.is_integer():
                return None
            if not 0 <= index < len(base):
                return None
            return base[int(index)]
        if is_mapping(base):
            if not isinstance(index, str):
                raise TypeMismatch(f"'index' into a mapping expects a string key, got {index!r}")
            return base.get(index)
        raise TypeMismatch(f"'index' expects an array or mapping, got {base!r}")

    def _includes(self, node: IncludesNode) -> bool:
        collection = self.evaluate(node.collection)
        value = self.evaluate(node.value)
        if is_array(collection):
            return any(item == value for item in collection)
        if isinstance(collection, str) and isinstance(value, str):
            return value in collection
        raise TypeMismatch(f"'includes' expects an array or string collection, got {collection!r}")

    # Randomization ops

    def _random_range(self, node: RandomRangeNode) -> float:
        min_val = self._eval_number(node.min, node.op)
        max_val = self._eval_number(node.max, node.op)
        unit = self.evaluate(node.unit)
        if node.op == "randomInteger":
            return self.run.random_integer(min_val, max_val, unit)
        return self.run.random_float(min_val, max_val, unit)

    def _bernoulli_trial(self, node: BernoulliTrialNode) -> int:
        p = self._eval_number(node.p, node.op)
        return self.run.bernoulli_trial(p, self.evaluate(node.unit))

    def _bernoulli_filter(self, node: BernoulliFilterNode) -> List[Any]:
        choices = self._eval_array(node.choices, node.op)
        p = self._eval_number(node.p, node.op)
        return self.run.bernoulli_filter(choices, p, self.evaluate(node.unit))

    def _uniform_choice(self, node: UniformChoiceNode) -> Any:
        choices = self._eval_array(node.choices, node.op)
        return self.run.uniform_choice(choices, self.evaluate(node.unit))

    def _weighted_choice(self, node: WeightedChoiceNode) -> Any:
        choices = self._eval_array(node.choices, node.op)
        weights = self._eval_number_array(node.weights, node.op)
        return self.run.weighted_choice(choices, weights, self.evaluate(node.unit))

    def _sample(self, node: SampleNode) -> List[Any]:
        choices = self._eval_array(node.choices, node.op)
        draws: Optional[float] = None
        if node.draws is not None:
            draws = self._eval_number(node.draws, node.op)
        return self.run.sample(choices, draws, self.evaluate(node.unit))

    _HANDLERS: Dict[str, Callable[["Interpreter", Any], Any]] = {
        "literal": _literal,
        "array": _array,
        "get": _get,
        "set": _set,
        "seq": _seq,
        "cond": _cond,
        "index": _index,
        "includes": _includes,
        "randomFloat": _random_range,
        "randomInteger": _random_range,
        "bernoulliTrial": _bernoulli_trial,
        "bernoulliFilter": _bernoulli_filter,
        "uniformChoice": _uniform_choice,
        "weightedChoice": _weighted_choice,
        "sample": _sample,
    }
    _HANDLERS.update(dict.fromkeys(("equals", ">", "<", ">=", "<=", "%", "/", "-"), _binary))
    _HANDLERS.update(dict.fromkeys(("and", "or", "sum", "product", "min", "max"), _commutative))
    _HANDLERS.update(dict.fromkeys(("return", "not", "round", "negative", "length"), _unary))


__all__ = [
    "Interpreter",
    "ARITHMETIC_FUNCS",
    "COMPARISON_FUNCS",
]
