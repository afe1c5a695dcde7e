"""
Experiment run state and deterministic randomization primitives.

An ExperimentRun owns the name used as the hash domain separator, the
Environment the interpreter reads and writes, and two latches:

- enabled: True -> False only. A disabled run hashes every salt to 0,
  so all randomization collapses to its "first" outcome.
- returned: False -> True only. Set by the interpreter on ``return``.

All randomization methods are pure functions of (run state, inputs).
Independent runs share no state and may be used from different threads.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import logging
import math

import numpy as np

from .environment import Environment
from .errors import InvalidArgument
from .hashing import digest_seed
from .policies import HashPolicy, DEFAULT_HASH_POLICY

logger = logging.getLogger(__name__)


class ExperimentRun:
    """
    A single evaluation of an experiment for one set of inputs.

    Parameters
    ----------
    name : str
        Experiment name, mixed into every hash
    inputs : Environment or mapping, optional
        Input variables. A mapping becomes the parent layer of a fresh
        Environment so that assignments never mutate the caller's data.
    policy : HashPolicy, optional
        Hashing constants

    Example
    -------
    >>> run = ExperimentRun("button_color", {"userid": 7})
    >>> run.uniform_choice(["red", "blue"], run.get("userid"))
    'red'
    """

    def __init__(
        self,
        name: str,
        inputs: Optional[Union[Environment, Mapping[str, Any]]] = None,
        policy: Optional[HashPolicy] = None,
    ):
        self.name = name
        if isinstance(inputs, Environment):
            self.environment = inputs
        else:
            self.environment = Environment(parent=inputs)
        self.policy = (policy or DEFAULT_HASH_POLICY).ensure_valid()
        self._enabled = True
        self._returned = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def returned(self) -> bool:
        return self._returned

    def disable(self) -> None:
        """Mark the run as disabled; all later hashes are 0."""
        if self._enabled:
            logger.info(f"Experiment '{self.name}' disabled")
        self._enabled = False

    def mark_returned(self) -> None:
        self._returned = True

    # Environment access

    def get(self, name: str, default: Any = None) -> Any:
        return self.environment.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.environment.set(name, value)

    def delete(self, name: str) -> None:
        self.environment.delete(name)

    # Hashing

    def hash(self, salt: Any) -> int:
        """
        Integer in 0 .. policy.max_hash derived from (name, salt).

        Always 0 once the run is disabled.
        """
        if not self._enabled:
            return 0
        return digest_seed(self.name, salt, self.policy)

    def zero_to_one(self, salt: Any) -> float:
        """A number in [0, 1]; 0 for a disabled run."""
        return self.hash(salt) / self.policy.max_hash

    def random_integer(self, min_val: float, max_val: float, salt: Any) -> float:
        """
        Integer between min_val and max_val, inclusive on both ends.

        Raises
        ------
        InvalidArgument
            If max_val < min_val
        """
        if max_val < min_val:
            raise InvalidArgument(f"randomInteger requires max >= min, got min={min_val}, max={max_val}")
        return min_val + (self.hash(salt) % (max_val - min_val + 1))

    def random_float(self, min_val: float, max_val: float, salt: Any) -> float:
        """Float between min_val and max_val."""
        return min_val + self.zero_to_one(salt) * (max_val - min_val)

    def uniform_choice(self, choices: Sequence[Any], salt: Any) -> Any:
        """Pick one element of choices with equal probability."""
        if len(choices) == 0:
            raise InvalidArgument("uniformChoice requires a non-empty choices list")
        return choices[int(self.random_integer(0, len(choices) - 1, salt))]

    def weighted_choice(self, choices: Sequence[Any], weights: Sequence[float], salt: Any) -> Any:
        """
        Pick one element of choices with probability proportional to its weight.

        Parameters
        ----------
        choices : sequence
            Options to pick from
        weights : sequence of float
            One weight per option
        salt : Any
            Salt for this draw

        Returns
        -------
        Any
            The first choice whose cumulative weight reaches the target
        """
        if len(choices) == 0:
            raise InvalidArgument("weightedChoice requires a non-empty choices list")
        if len(weights) != len(choices):
            raise InvalidArgument(
                f"weightedChoice needs one weight per choice, got {len(weights)} weights "
                f"for {len(choices)} choices"
            )
        cumulative = np.cumsum(np.asarray(weights, dtype=float))
        target = self.random_float(0, float(cumulative[-1]), salt)
        for choice, reached in zip(choices, cumulative):
            if reached >= target:
                return choice
        return choices[-1]

    def sample(self, choices: Sequence[Any], num_draws: Optional[int] = None, salt: Any = None) -> List[Any]:
        """
        Draw num_draws distinct elements via a partial Fisher-Yates shuffle.

        When num_draws is None or >= len(choices) every element is
        returned in a deterministically shuffled order. An infinite
        num_draws counts as "all" (or "none" when negative).

        Raises
        ------
        InvalidArgument
            If num_draws is NaN
        """
        array = list(choices)
        length = len(array)
        if num_draws is None:
            num_draws = length
        elif math.isnan(num_draws):
            raise InvalidArgument("sample requires a numeric draws count, got NaN")
        elif math.isinf(num_draws):
            num_draws = length if num_draws > 0 else 0
        stop = max(0, length - int(num_draws))
        for i in range(length - 1, stop, -1):
            j = int(self.random_integer(0, i - 1, [salt, i]))
            array[i], array[j] = array[j], array[i]
        return array[stop:length]

    def bernoulli_filter(self, choices: Sequence[Any], p: float, salt: Any) -> List[Any]:
        """Keep each element independently with probability p."""
        _check_probability(p)
        if len(choices) == 0:
            raise InvalidArgument("bernoulliFilter requires a non-empty choices list")
        return [choice for index, choice in enumerate(choices) if self.zero_to_one([salt, index]) < p]

    def bernoulli_trial(self, p: float, salt: Any) -> int:
        """1 with probability p, otherwise 0."""
        _check_probability(p)
        return 1 if self.zero_to_one(salt) < p else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self._enabled,
            "params": self.environment.to_dict(),
        }

    def __repr__(self) -> str:
        return f"ExperimentRun(name={self.name!r}, enabled={self._enabled}, returned={self._returned})"


def _check_probability(p: float) -> None:
    if not 0 <= p <= 1:
        raise InvalidArgument(f"Probability must be in [0, 1], got {p}")


__all__ = [
    "ExperimentRun",
]
