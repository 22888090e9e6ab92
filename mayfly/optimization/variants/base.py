# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Variant strategies plug into the main loop through hooks called at fixed points
of each iteration. The default implementation of every hook leaves the standard
algorithm unchanged, so that a strategy only overrides what it enhances.
"""

import numpy as np
import mayfly.common.typing as tp
from mayfly.common import errors
from mayfly.common import tools
from mayfly.common.decorators import Registry
from ..base import Agent
from ..base import Problem
from ..base import RunState
from ..mutations import Mutator


MALE = "male"
FEMALE = "female"


class Proposal(tp.NamedTuple):
    """New position proposed by a strategy for an agent, replacing the default movement.
    The cost is provided when the strategy already evaluated the position.
    """

    position: np.ndarray
    cost: tp.Optional[float] = None


class Strategy:
    """Base class for the variant strategies, which does not change anything to the algorithm.

    Parameters
    ----------
    config: VariantConfig
        the parameters of the variant
    """

    def __init__(self, config: tp.Optional["VariantConfig"] = None) -> None:
        self.config = config

    def initialize(self, state: RunState) -> None:
        """Called once the initial population is evaluated"""

    def begin_iteration(self, state: RunState) -> None:
        """Called before moving the agents"""

    # pylint: disable=unused-argument
    def propose(self, state: RunState, agent: Agent, role: str, index: int) -> tp.Optional[Proposal]:
        """Returns a position replacing the default movement of the agent,
        or None to apply the default movement.
        """
        return None

    def male_inertia(self, state: RunState) -> tp.Optional[float]:
        """Gravity coefficient of the males for this iteration (None for the damped one)"""
        return None

    def extra_velocity(self, state: RunState, male: Agent) -> tp.Optional[np.ndarray]:
        """Additional attraction term for a male"""
        return None

    def after_movement(self, state: RunState) -> None:
        """Called after the population has moved and was sorted"""

    def perturb_offspring(self, state: RunState, position: np.ndarray) -> np.ndarray:
        """Modifies an offspring or mutant position before its evaluation"""
        return position

    def mutate(self, state: RunState, mutator: Mutator, parent: np.ndarray) -> np.ndarray:
        return mutator.gaussian_mutation(parent, state.config.mutation_rate)

    def after_selection(self, state: RunState) -> None:
        """Called after the offspring were merged into the population"""

    def end_iteration(self, state: RunState) -> None:
        """Called after the history was recorded"""

    def pareto_front(self) -> tp.List[tp.Any]:
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config!r})"


registry: Registry[tp.Type["VariantConfig"]] = Registry()
V = tp.TypeVar("V", bound=tp.Type["VariantConfig"])


def register(name: str, *aliases: str) -> tp.Callable[[V], V]:
    """Decorator registering a variant configuration class under a name (and aliases)"""

    def _register(cls: V) -> V:
        cls.name = name
        registry.register_name(name, cls, aliases=aliases)
        return cls

    return _register


class VariantConfig:
    """Base class for the parameters of a variant strategy.
    Subclasses must pass :code:`locals()` of their constructor so that the parameters can be
    exported (see :code:`params`), and implement :code:`build`.
    """

    name: tp.ClassVar[str] = ""
    # name of the boolean flag enabling this variant in flat legacy configurations
    legacy_flag: tp.ClassVar[str] = ""

    def __init__(self, params: tp.Dict[str, tp.Any]) -> None:
        params.pop("self", None)  # self comes from "locals()"
        params.pop("__class__", None)
        self._params = params
        for key, value in params.items():
            setattr(self, key, value)

    def params(self) -> tp.Dict[str, tp.Any]:
        return dict(self._params)

    def check(self, condition: bool, message: str) -> None:
        if not condition:
            raise errors.InvalidConfigError(f"Invalid {self.name} configuration: {message}")

    def validate(self, config: tp.Any) -> None:
        """Checks the parameters, given the main configuration"""

    def build(self, problem: Problem, config: tp.Any) -> Strategy:
        raise NotImplementedError

    def __eq__(self, other: tp.Any) -> bool:
        return isinstance(other, self.__class__) and other.params() == self.params()

    def __repr__(self) -> str:
        diff = tools.different_from_defaults(instance=self, instance_dict=self._params, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        return f"{self.__class__.__name__}({params})"


def get(name: str, **params: tp.Any) -> tp.Optional[VariantConfig]:
    """Instantiates the variant registered under a name, or returns None for the standard algorithm"""
    if name.strip().lower() in ("ma", "standard", "none", ""):
        return None
    if name not in registry:
        raise errors.UnknownVariantError(
            f'Unknown variant "{name}", choose among {["ma"] + sorted(registry)}'
        )
    try:
        return registry[name](**params)
    except TypeError as e:
        raise errors.InvalidConfigError(f'Invalid parameters for variant "{name}": {e}') from e


def num_elites(size: int, ratio: float) -> int:
    """Number of elite agents for a ratio of the population, at least 1"""
    return min(size, max(1, int(size * ratio)))


def greedy(state: RunState, agent: Agent, position: np.ndarray) -> tp.Tuple[Agent, bool]:
    """Evaluates a candidate position, and returns the agent moved there if it is strictly better
    (with the global best updated), or the unchanged agent otherwise.
    """
    position = state.problem.clip(position)
    cost = state.evaluate(position)
    if cost < agent.cost:
        state.consider(position, cost)
        return agent.replace(position=position, cost=cost), True
    return agent, False
