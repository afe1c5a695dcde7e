"""
Parameter gatherer subsystem.

Computes, without randomness, a symbolic description of the values every
variable of a script could take, for previewing and overriding
experiment outcomes.
"""

from .parameters import (
    SelectParameter,
    RangeParameter,
    ArrayParameter,
    ObjectParameter,
    UnionParameter,
    Parameter,
    BOOLEAN_PARAMETER,
    boolean_parameter,
    parameters_equal,
    make_union,
    merge_parameters,
    join_branches,
    combine_arithmetic,
    round_parameter,
    parameter_to_dict,
    parameter_from_dict,
)

from .gatherer import (
    ParameterGatherer,
    gather_inputs,
)

__all__ = [
    # Parameters
    "SelectParameter",
    "RangeParameter",
    "ArrayParameter",
    "ObjectParameter",
    "UnionParameter",
    "Parameter",
    "BOOLEAN_PARAMETER",
    "boolean_parameter",
    "parameters_equal",
    "make_union",
    "merge_parameters",
    "join_branches",
    "combine_arithmetic",
    "round_parameter",
    "parameter_to_dict",
    "parameter_from_dict",
    # Gatherer
    "ParameterGatherer",
    "gather_inputs",
]
