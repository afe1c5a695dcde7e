"""Tests for Parameter types, the merge lattice and the arithmetic combinator."""

import math
import operator

import pytest

from bucketing.gatherer.parameters import (
    ArrayParameter,
    ObjectParameter,
    RangeParameter,
    SelectParameter,
    UnionParameter,
    boolean_parameter,
    combine_arithmetic,
    join_branches,
    make_union,
    merge_parameters,
    parameter_from_dict,
    parameter_to_dict,
    parameters_equal,
    round_parameter,
)


class TestMergeParameters:
    """Tests for merge_parameters."""

    def test_unknown_side_is_ignored(self):
        assert merge_parameters(None, 3) == 3
        assert merge_parameters(3, None) == 3
        assert merge_parameters(None, None) is None

    def test_same_atomic(self):
        assert merge_parameters("a", "a") == "a"

    def test_distinct_atomics_become_select(self):
        assert merge_parameters(1, 2) == SelectParameter(limit=1, values=[1, 2])

    def test_boolean_and_number_are_distinct(self):
        merged = merge_parameters(1, True)
        assert isinstance(merged, SelectParameter)
        assert len(merged.values) == 2

    def test_atomic_into_select(self):
        select = SelectParameter(limit=1, values=[1, 2])
        assert merge_parameters(3, select) == SelectParameter(limit=1, values=[3, 1, 2])
        assert merge_parameters(select, 3) == SelectParameter(limit=1, values=[1, 2, 3])

    def test_atomic_already_in_select(self):
        select = SelectParameter(limit=1, values=[1, 2])
        assert merge_parameters(select, 2) == SelectParameter(limit=1, values=[1, 2])

    def test_ranges_widen(self):
        merged = merge_parameters(
            RangeParameter(kind="integer", min=0, max=5),
            RangeParameter(kind="integer", min=3, max=10),
        )
        assert merged == RangeParameter(kind="integer", min=0, max=10)

    def test_ranges_of_different_kind_become_union(self):
        left = RangeParameter(kind="integer", min=0, max=5)
        right = RangeParameter(kind="float", min=0, max=5)
        assert merge_parameters(left, right) == UnionParameter(variants=[left, right])

    def test_single_selects_pool_values(self):
        merged = merge_parameters(
            SelectParameter(limit=1, values=["A", "B"]),
            SelectParameter(limit=1, values=["B", "C"]),
        )
        assert merged == SelectParameter(limit=1, values=["A", "B", "C"])

    def test_multi_selects_become_union(self):
        left = SelectParameter(limit=2, values=["A", "B", "C"])
        right = SelectParameter(limit=3, values=["A", "B", "C"])
        assert merge_parameters(left, right) == UnionParameter(variants=[left, right])

    def test_union_absorbs(self):
        union = UnionParameter(variants=[1, 2])
        assert merge_parameters(union, 3) == UnionParameter(variants=[1, 2, 3])

    def test_mismatched_kinds_become_union(self):
        array = ArrayParameter(values=[1])
        merged = merge_parameters(array, 5)
        assert merged == UnionParameter(variants=[array, 5])


class TestMakeUnion:
    """Tests for Union construction."""

    def test_flattens_nested_unions(self):
        union = make_union([UnionParameter(variants=[1, 2]), 3])
        assert union == UnionParameter(variants=[1, 2, 3])

    def test_drops_duplicates(self):
        assert make_union([1, 2, 1]) == UnionParameter(variants=[1, 2])

    def test_single_variant_collapses(self):
        assert make_union([None, 7]) == 7
        assert make_union([4, 4]) == 4

    def test_empty_is_unknown(self):
        assert make_union([]) is None
        assert make_union([None]) is None


class TestJoinBranches:
    """Tests for joining the results of alternative branches."""

    def test_distinct_atomics_become_union(self):
        assert join_branches([1, 2]) == UnionParameter(variants=[1, 2])

    def test_identical_atomics_collapse(self):
        assert join_branches([1, 1]) == 1

    def test_selects_pool(self):
        joined = join_branches([
            SelectParameter(limit=1, values=[1, 2]),
            SelectParameter(limit=1, values=[1, 2, 3, 4]),
        ])
        assert joined == SelectParameter(limit=1, values=[1, 2, 3, 4])

    def test_unknown_branch_ignored(self):
        assert join_branches([None, "x"]) == "x"


class TestCombineArithmetic:
    """Tests for propagating operators through Parameters."""

    def test_numbers(self):
        assert combine_arithmetic(2, 3, operator.add) == 5

    def test_range_with_number(self):
        result = combine_arithmetic(RangeParameter(kind="integer", min=0, max=10), 2, operator.mul)
        assert result == RangeParameter(kind="integer", min=0, max=20)

    def test_number_with_range(self):
        result = combine_arithmetic(1, RangeParameter(kind="float", min=0, max=1), operator.add)
        assert result == RangeParameter(kind="float", min=1, max=2)

    def test_mixed_range_kinds_become_float(self):
        result = combine_arithmetic(
            RangeParameter(kind="integer", min=0, max=2),
            RangeParameter(kind="float", min=0.5, max=1.5),
            operator.add,
        )
        assert result == RangeParameter(kind="float", min=0.5, max=3.5)

    def test_select_broadcasts(self):
        select = SelectParameter(limit=1, values=[1, 2, 3, 4])
        assert combine_arithmetic(select, 2, operator.mul) == SelectParameter(limit=1, values=[2, 4, 6, 8])
        assert combine_arithmetic(2, select, operator.mul) == SelectParameter(limit=1, values=[2, 4, 6, 8])

    def test_select_with_range(self):
        result = combine_arithmetic(
            SelectParameter(limit=1, values=[1, 2]),
            RangeParameter(kind="float", min=0, max=1),
            operator.add,
        )
        assert result == SelectParameter(limit=1, values=[
            RangeParameter(kind="float", min=1, max=2),
            RangeParameter(kind="float", min=2, max=3),
        ])

    def test_non_numeric_is_unknown(self):
        assert combine_arithmetic("a", 1, operator.add) is None
        assert combine_arithmetic(True, 1, operator.add) is None
        assert combine_arithmetic(ArrayParameter(values=[1]), 1, operator.add) is None
        assert combine_arithmetic(None, 1, operator.add) is None


class TestRoundParameter:
    """Tests for round_parameter."""

    def test_number(self):
        assert round_parameter(2.5) == 3

    def test_infinite_bound_kept(self):
        result = round_parameter(RangeParameter(kind="float", min=0.6, max=math.inf))
        assert result == RangeParameter(kind="integer", min=1, max=math.inf)

    def test_float_range_becomes_integer(self):
        result = round_parameter(RangeParameter(kind="float", min=0.4, max=2.6))
        assert result == RangeParameter(kind="integer", min=0, max=3)

    def test_select_rounds_each_value(self):
        result = round_parameter(SelectParameter(limit=1, values=[1.5, 2.4]))
        assert result == SelectParameter(limit=1, values=[2, 2])

    def test_union_collapses_after_rounding(self):
        assert round_parameter(UnionParameter(variants=[1.4, 1.2])) == 1

    def test_other_kinds_pass_through(self):
        array = ArrayParameter(values=[1.5])
        assert round_parameter(array) is array
        assert round_parameter("x") == "x"


class TestSerialization:
    """Tests for Parameter JSON shapes."""

    def test_select_to_dict(self):
        assert SelectParameter(limit=1, values=["a", "b"]).to_dict() == {
            "type": "select", "limit": 1, "values": ["a", "b"],
        }

    def test_range_to_dict_uses_kind(self):
        assert RangeParameter(kind="integer", min=0, max=3).to_dict() == {
            "type": "integer", "min": 0, "max": 3,
        }

    def test_nested_to_dict(self):
        union = UnionParameter(variants=[1, SelectParameter(limit=2, values=["A"])])
        assert parameter_to_dict(union) == {
            "type": "union",
            "variants": [1, {"type": "select", "limit": 2, "values": ["A"]}],
        }

    def test_boolean_parameter(self):
        assert boolean_parameter().to_dict() == {"type": "select", "limit": 1, "values": [False, True]}

    def test_from_dict(self):
        assert parameter_from_dict({"type": "float", "min": 0, "max": 1}) == RangeParameter(kind="float", min=0, max=1)
        assert parameter_from_dict({"type": "select", "limit": 1, "values": [1, 2]}) == SelectParameter(limit=1, values=[1, 2])
        assert parameter_from_dict([1, 2]) == ArrayParameter(values=[1, 2])
        assert parameter_from_dict({"k": "v"}) == ObjectParameter(value={"k": "v"})
        assert parameter_from_dict(5) == 5

    def test_from_dict_union_collapses(self):
        assert parameter_from_dict({"type": "union", "variants": [3]}) == 3

    def test_round_trip_nested(self):
        union = UnionParameter(variants=[
            SelectParameter(limit=2, values=["A", "B"]),
            RangeParameter(kind="integer", min=0, max=4),
        ])
        assert parameter_from_dict(union.to_dict()) == union

    def test_invalid_range_kind(self):
        with pytest.raises(ValueError):
            RangeParameter(kind="decimal", min=0, max=1)


class TestParametersEqual:
    """Tests for strict structural equality."""

    def test_atomics(self):
        assert parameters_equal(1, 1)
        assert not parameters_equal(1, True)
        assert not parameters_equal(0, False)

    def test_structured(self):
        assert parameters_equal(SelectParameter(limit=1, values=[1]), SelectParameter(limit=1, values=[1]))
        assert not parameters_equal(SelectParameter(limit=1, values=[1]), SelectParameter(limit=2, values=[1]))
        assert not parameters_equal(SelectParameter(limit=1, values=[1]), ArrayParameter(values=[1]))
