"""Tests for ExperimentRun randomization primitives."""

import math

import pytest
from scipy import stats

from bucketing.experiment import ExperimentRun
from bucketing.errors import InvalidArgument


class TestZeroToOne:
    """Tests for zero_to_one."""

    def test_bounds(self):
        run = ExperimentRun("zeroToOne")
        for i in range(1000):
            value = run.zero_to_one(f"salt-{i}")
            assert 0 <= value <= 1

    def test_known_value(self):
        run = ExperimentRun("evalCode")
        assert run.zero_to_one(1) == 3647156450600614 / (2 ** 52 - 1)


class TestRandomInteger:
    """Tests for random_integer."""

    @pytest.mark.parametrize("low,high", [(0, 10000), (-1000, 1000), (5, 5)])
    def test_range_law(self, low, high):
        run = ExperimentRun("randomInteger")
        for i in range(500):
            value = run.random_integer(low, high, i)
            assert low <= value <= high
            assert value == int(value)

    def test_both_ends_reachable(self):
        run = ExperimentRun("randomInteger")
        seen = {run.random_integer(0, 2, i) for i in range(200)}
        assert seen == {0, 1, 2}

    def test_max_below_min_rejected(self):
        run = ExperimentRun("randomInteger")
        with pytest.raises(InvalidArgument):
            run.random_integer(5, 4, "salt")


class TestRandomFloat:
    """Tests for random_float."""

    def test_range_law(self):
        run = ExperimentRun("randomFloat")
        for i in range(1000):
            value = run.random_float(-3.5, 1000.0, i)
            assert -3.5 <= value <= 1000.0

    def test_values_differ_across_salts(self):
        run = ExperimentRun("randomFloat")
        assert len({run.random_float(0, 1, i) for i in range(100)}) == 100


class TestChoices:
    """Tests for uniform and weighted choice."""

    def test_uniform_choice_known_values(self):
        run = ExperimentRun("evalCode")
        assert run.uniform_choice(["a", "b"], 1) == "a"
        assert run.uniform_choice(["aaa", "bbb"], 4) == "bbb"

    def test_uniform_choice_empty_rejected(self):
        with pytest.raises(InvalidArgument):
            ExperimentRun("x").uniform_choice([], "salt")

    def test_weighted_choice_known_values(self):
        run = ExperimentRun("evalCode")
        assert run.weighted_choice(["a", "b"], [1, 5], 111) == "a"
        assert run.weighted_choice(["aaa", "bbb"], [2, 1], 4) == "aaa"

    def test_weighted_choice_zero_weight_never_chosen(self):
        run = ExperimentRun("weighted")
        for i in range(300):
            assert run.weighted_choice(["never", "always"], [0, 1], i) == "always"

    def test_weighted_choice_length_mismatch(self):
        with pytest.raises(InvalidArgument):
            ExperimentRun("x").weighted_choice(["a", "b"], [1], "salt")

    def test_weighted_choice_empty_rejected(self):
        with pytest.raises(InvalidArgument):
            ExperimentRun("x").weighted_choice([], [], "salt")

    def test_weighted_choice_frequencies(self):
        run = ExperimentRun("weightedFrequencies")
        weights = [1, 2, 7]
        choices = ["a", "b", "c"]
        draws = 6000
        counts = {c: 0 for c in choices}
        for i in range(draws):
            counts[run.weighted_choice(choices, weights, i)] += 1

        expected = [draws * w / sum(weights) for w in weights]
        observed = [counts[c] for c in choices]
        _, p_value = stats.chisquare(observed, expected)
        assert p_value > 0.001


class TestSample:
    """Tests for partial Fisher-Yates sampling."""

    @pytest.mark.parametrize("draws", [0, 1, 3, 5, 8])
    def test_length_and_membership(self, draws):
        run = ExperimentRun("sample")
        choices = ["a", "b", "c", "d", "e"]
        for i in range(50):
            result = run.sample(choices, draws, i)
            assert len(result) == min(draws, len(choices))
            assert len(set(result)) == len(result)
            assert set(result) <= set(choices)

    def test_full_draw_is_permutation(self):
        run = ExperimentRun("sample")
        choices = list(range(10))
        result = run.sample(choices, len(choices), "user")
        assert sorted(result) == choices

    def test_default_draws_shuffles_everything(self):
        run = ExperimentRun("sample")
        choices = list(range(10))
        assert run.sample(choices, salt="user") == run.sample(choices, 10, "user")

    def test_input_not_mutated(self):
        choices = [1, 2, 3, 4]
        ExperimentRun("sample").sample(choices, 2, "salt")
        assert choices == [1, 2, 3, 4]

    def test_deterministic(self):
        first = ExperimentRun("sample").sample(list("abcdefgh"), 3, "user-9")
        second = ExperimentRun("sample").sample(list("abcdefgh"), 3, "user-9")
        assert first == second

    def test_infinite_draws(self):
        run = ExperimentRun("sample")
        choices = list(range(6))
        assert run.sample(choices, math.inf, "user") == run.sample(choices, None, "user")
        assert run.sample(choices, -math.inf, "user") == []

    def test_nan_draws_rejected(self):
        with pytest.raises(InvalidArgument):
            ExperimentRun("sample").sample([1, 2, 3], math.nan, "user")


class TestBernoulli:
    """Tests for bernoulli_trial and bernoulli_filter."""

    def test_trial_extremes(self):
        run = ExperimentRun("bernoulli")
        for i in range(100):
            assert run.bernoulli_trial(0, i) == 0
            assert run.bernoulli_trial(1, i) == 1

    def test_trial_rate(self):
        run = ExperimentRun("bernoulli")
        hits = sum(run.bernoulli_trial(0.3, i) for i in range(5000))
        assert 0.25 < hits / 5000 < 0.35

    @pytest.mark.parametrize("p", [-0.1, 1.5])
    def test_trial_invalid_probability(self, p):
        with pytest.raises(InvalidArgument):
            ExperimentRun("x").bernoulli_trial(p, "salt")

    def test_filter_extremes(self):
        run = ExperimentRun("filter")
        choices = list(range(20))
        assert run.bernoulli_filter(choices, 0, "s") == []
        assert run.bernoulli_filter(choices, 1, "s") == choices

    def test_filter_preserves_order(self):
        run = ExperimentRun("filter")
        choices = list(range(50))
        result = run.bernoulli_filter(choices, 0.5, "user")
        assert result == sorted(result)
        assert set(result) <= set(choices)

    def test_filter_invalid_inputs(self):
        run = ExperimentRun("filter")
        with pytest.raises(InvalidArgument):
            run.bernoulli_filter([1, 2], 2, "s")
        with pytest.raises(InvalidArgument):
            run.bernoulli_filter([], 0.5, "s")


class TestDisabledRun:
    """Tests for the disabled collapse."""

    def test_hash_is_zero(self):
        run = ExperimentRun("disabled")
        run.disable()
        for salt in ["a", 1, ["x", 2], None]:
            assert run.hash(salt) == 0
            assert run.zero_to_one(salt) == 0

    def test_random_integer_returns_min(self):
        run = ExperimentRun("disabled")
        run.disable()
        assert run.random_integer(3, 9, "salt") == 3

    def test_bernoulli_trial_is_one_iff_p_positive(self):
        run = ExperimentRun("disabled")
        run.disable()
        assert run.bernoulli_trial(0.01, "salt") == 1
        assert run.bernoulli_trial(0, "salt") == 0

    def test_uniform_choice_returns_first(self):
        run = ExperimentRun("disabled")
        run.disable()
        assert run.uniform_choice(["first", "second"], "salt") == "first"

    def test_disable_is_one_way(self):
        run = ExperimentRun("disabled")
        run.disable()
        run.disable()
        assert run.enabled is False


class TestRunState:
    """Tests for run state and environment access."""

    def test_inputs_are_not_mutated(self):
        inputs = {"userid": 1}
        run = ExperimentRun("state", inputs)
        run.set("userid", 2)
        assert inputs == {"userid": 1}
        assert run.get("userid") == 2

    def test_delete_masks_input(self):
        run = ExperimentRun("state", {"userid": 1})
        run.delete("userid")
        assert run.get("userid", "none") == "none"

    def test_to_dict(self):
        run = ExperimentRun("state", {"userid": 1})
        run.set("color", "red")
        assert run.to_dict() == {
            "name": "state",
            "enabled": True,
            "params": {"userid": 1, "color": "red"},
        }

    def test_policy_is_validated(self):
        from bucketing.policies import HashPolicy

        with pytest.raises(InvalidArgument):
            ExperimentRun("state", policy=HashPolicy(hex_digits=20))
