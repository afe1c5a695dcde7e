"""
Bucketing - deterministic experiment assignment from compiled scripts.

This package interprets the serialized expression trees produced by the
experiment script compiler. Two engines share the tree model:

Core Components:
    - Interpreter: evaluates a tree for one subject, assigning treatments
      ("buckets") through hash-derived pseudo-randomness
    - ParameterGatherer: walks the same tree without randomness and
      describes the space of values every variable could take
    - ExperimentRun: run state and randomization primitives
    - Environment: layered variable store

Usage:
    from bucketing import execute, inspect

    run = execute("button_color", tree, {"userid": 42})
    print(run.get("color"))

    metadata = inspect(tree)
    print(metadata.to_dict())

Determinism: identical (name, tree, inputs) always produce identical
outcomes; nothing is shared between runs.
"""

from .errors import (
    BucketingError,
    UnsupportedOperation,
    TreeValidationError,
    TypeMismatch,
    InvalidArgument,
)

from .policies import (
    HashPolicy,
    DEFAULT_HASH_POLICY,
)

from .hashing import (
    digest_seed,
    flatten_salt,
)

from .environment import (
    Environment,
)

from .experiment import (
    ExperimentRun,
)

from .tree import (
    Node,
    parse_tree,
    validate_tree,
    tree_from_json,
    load_tree,
)

from .interpreter import (
    Interpreter,
)

from .gatherer import (
    ParameterGatherer,
    SelectParameter,
    RangeParameter,
    ArrayParameter,
    ObjectParameter,
    UnionParameter,
    BOOLEAN_PARAMETER,
    merge_parameters,
)

from .execute import (
    ScriptMetadata,
    execute,
    inspect,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "BucketingError",
    "UnsupportedOperation",
    "TreeValidationError",
    "TypeMismatch",
    "InvalidArgument",
    # Config
    "HashPolicy",
    "DEFAULT_HASH_POLICY",
    # Hashing
    "digest_seed",
    "flatten_salt",
    # State
    "Environment",
    "ExperimentRun",
    # Tree
    "Node",
    "parse_tree",
    "validate_tree",
    "tree_from_json",
    "load_tree",
    # Engines
    "Interpreter",
    "ParameterGatherer",
    "SelectParameter",
    "RangeParameter",
    "ArrayParameter",
    "ObjectParameter",
    "UnionParameter",
    "BOOLEAN_PARAMETER",
    "merge_parameters",
    # Entry points
    "ScriptMetadata",
    "execute",
    "inspect",
]
