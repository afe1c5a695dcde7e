"""
Entry points: run a script for one subject, or inspect its value space.

    run = execute("button_color", tree, {"userid": 42})
    run.get("color")

    metadata = inspect(tree)
    metadata.parameters["color"]

Neither entry point performs I/O. Trees may be JSON-shaped dicts (as
produced by the script compiler) or already parsed nodes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
import logging

from .environment import Environment
from .experiment import ExperimentRun
from .gatherer.gatherer import ParameterGatherer, gather_inputs
from .gatherer.parameters import parameter_to_dict
from .interpreter import Interpreter
from .policies import HashPolicy
from .tree.nodes import parse_tree

logger = logging.getLogger(__name__)


@dataclass
class ScriptMetadata:
    """Result of inspecting a script: one Parameter per variable."""
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameters": {name: parameter_to_dict(p) for name, p in self.parameters.items()},
        }


def execute(
    name: str,
    tree: Any,
    inputs: Optional[Union[Environment, Mapping[str, Any]]] = None,
    policy: Optional[HashPolicy] = None,
) -> ExperimentRun:
    """
    Evaluate a script for one set of inputs.

    Parameters
    ----------
    name : str
        Experiment name (hash domain separator)
    tree : dict or Node
        Compiled script
    inputs : Environment or mapping, optional
        Input variables, e.g. {"userid": 42}
    policy : HashPolicy, optional
        Hashing constants

    Returns
    -------
    ExperimentRun
        The finished run: environment contents and enabled flag

    Raises
    ------
    UnsupportedOperation, TreeValidationError
        If the tree is malformed
    TypeMismatch, InvalidArgument
        If evaluation hits a bad operand
    """
    parsed = parse_tree(tree)
    run = ExperimentRun(name, inputs, policy=policy)
    logger.debug(f"Executing experiment '{name}'")
    Interpreter(run).evaluate(parsed)
    logger.debug(f"Experiment '{name}' finished (enabled={run.enabled})")
    return run


def inspect(
    tree: Any,
    inputs: Optional[Union[Environment, Mapping[str, Any]]] = None,
) -> ScriptMetadata:
    """
    Compute the value space of every variable a script may assign.

    Parameters
    ----------
    tree : dict or Node
        Compiled script
    inputs : Environment or mapping, optional
        Base symbol table. Mapping values may be Parameters or their
        JSON shapes.

    Returns
    -------
    ScriptMetadata
        Parameters per variable (inputs included)
    """
    parsed = parse_tree(tree)
    if isinstance(inputs, Mapping):
        inputs = gather_inputs(inputs)
    gatherer = ParameterGatherer(inputs)
    parameters = gatherer.inspect(parsed)
    logger.debug(f"Gathered {len(parameters)} parameters")
    return ScriptMetadata(parameters=parameters)


__all__ = [
    "ScriptMetadata",
    "execute",
    "inspect",
]
