# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Hybrid of the mayfly algorithm with the four hunting phases of the Aquila optimizer,
opposition-based learning, and a Pareto archive of the visited solutions.
"""

import numpy as np
import mayfly.common.typing as tp
from .. import samplers
from ..base import Agent
from ..base import Problem
from ..base import RunState
from ..multiobjective import core as mobj
from .base import FEMALE
from .base import Proposal
from .base import Strategy
from .base import VariantConfig
from .base import register


EXPANDED_EXPLORATION = "expanded_exploration"  # high soar with vertical stoop
NARROWED_EXPLORATION = "narrowed_exploration"  # contour flight with short glide
EXPANDED_EXPLOITATION = "expanded_exploitation"  # low flight with slow descent
NARROWED_EXPLOITATION = "narrowed_exploitation"  # walk and grab


def expanded_exploration(
    rng: np.random.RandomState, best: np.ndarray, mean: np.ndarray, progress: float
) -> np.ndarray:
    return best * (1.0 - progress) + (mean - best * rng.uniform(size=best.size))


def narrowed_exploration(
    rng: np.random.RandomState, best: np.ndarray, peer: np.ndarray, lower: float, upper: float
) -> np.ndarray:
    step = samplers.levy(rng, alpha=1.5)
    y = rng.uniform(lower, upper, size=best.size)
    x = rng.uniform(lower, upper, size=best.size)
    return best * step + peer + (y - x) * rng.uniform(size=best.size)


def expanded_exploitation(
    rng: np.random.RandomState, best: np.ndarray, mean: np.ndarray, progress: float, lower: float, upper: float
) -> np.ndarray:
    alpha = 2.0 * (1.0 - progress)
    delta = 0.1
    exploration = rng.uniform(lower, upper, size=best.size) * delta
    return (best - mean) * alpha - rng.uniform(size=best.size) + exploration


def narrowed_exploitation(
    rng: np.random.RandomState, current: np.ndarray, best: np.ndarray, progress: float
) -> np.ndarray:
    quality = progress ** (2.0 * rng.uniform() - 1.0) if progress > 0 else 1.0
    g1 = 2.0 * rng.uniform() * (1.0 - progress)
    g2 = 2.0 * (1.0 - progress)
    step = samplers.levy(rng, alpha=1.5)
    return quality * best - g1 * current * rng.uniform(size=best.size) - g2 * step + rng.uniform(size=best.size) * g1


class RaptorHybridStrategy(Strategy):
    """Each agent hunts with probability :code:`aquila_weight` instead of its usual movement,
    and all agents are folded into a Pareto archive after selection.
    """

    config: "RaptorHybrid"

    def __init__(self, config: "RaptorHybrid", max_iterations: int) -> None:
        super().__init__(config)
        self.strategy_switch = (
            (2 * max_iterations) // 3 if config.strategy_switch is None else int(config.strategy_switch)
        )
        self.archive = mobj.ParetoArchive(config.archive_size)

    def initialize(self, state: RunState) -> None:
        self.archive = mobj.ParetoArchive(self.config.archive_size)

    def phase(self, state: RunState) -> str:
        explore = state.iteration < self.strategy_switch
        if state.random_state.uniform() < 0.5:
            return EXPANDED_EXPLORATION if explore else EXPANDED_EXPLOITATION
        return NARROWED_EXPLORATION if explore else NARROWED_EXPLOITATION

    def hunt(self, state: RunState, agent: Agent, population: tp.List[Agent]) -> np.ndarray:
        rng = state.random_state
        best = state.global_best.position
        lower, upper = state.problem.lower, state.problem.upper
        phase = self.phase(state)
        if phase == NARROWED_EXPLORATION:
            peer = population[rng.randint(len(population))].position
            position = narrowed_exploration(rng, best, peer, lower, upper)
        elif phase == NARROWED_EXPLOITATION:
            position = narrowed_exploitation(rng, agent.position, best, state.progress)
        else:
            mean = np.mean([a.position for a in population], axis=0)
            if phase == EXPANDED_EXPLORATION:
                position = expanded_exploration(rng, best, mean, state.progress)
            else:
                position = expanded_exploitation(rng, best, mean, state.progress, lower, upper)
        return state.problem.clip(position)

    def propose(self, state: RunState, agent: Agent, role: str, index: int) -> tp.Optional[Proposal]:
        rng = state.random_state
        if rng.uniform() >= self.config.aquila_weight:
            return None
        population = state.females if role == FEMALE else state.males
        position = self.hunt(state, agent, population)
        if rng.uniform() < self.config.opposition_probability:
            opposite = samplers.opposition_point(position, state.problem.lower, state.problem.upper)
            cost = state.evaluate(position)
            opposite_cost = state.evaluate(opposite)
            if opposite_cost < cost:
                return Proposal(opposite, opposite_cost)
            return Proposal(position, cost)
        return Proposal(position)

    def after_selection(self, state: RunState) -> None:
        problem = state.problem
        self.archive.extend((a.position, problem.objective_vector(a.position, a.cost)) for a in state.agents())

    def pareto_front(self) -> tp.List[mobj.Solution]:
        return self.archive.front()


@register("aoblmoa", "raptor_hybrid")
class RaptorHybrid(VariantConfig):
    """Aquila optimizer and opposition-based learning hybrid, with a Pareto archive.

    Parameters
    ----------
    aquila_weight: float
        probability for an agent to hunt instead of its usual movement
    opposition_probability: float
        probability to also evaluate the opposition point of a hunting position,
        keeping the better of both
    archive_size: int
        capacity of the Pareto archive
    strategy_switch: int or None
        iteration at which the hunting phases switch from exploration to exploitation,
        defaults to 2/3 of the iterations
    """

    legacy_flag = "use_aoblmoa"

    # pylint: disable=unused-argument
    def __init__(
        self,
        aquila_weight: float = 0.5,
        opposition_probability: float = 0.3,
        archive_size: int = 100,
        strategy_switch: tp.Optional[int] = None,
    ) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(0 <= self.aquila_weight <= 1, f"aquila_weight should be in [0,1] (got {self.aquila_weight})")
        self.check(
            0 <= self.opposition_probability <= 1,
            f"opposition_probability should be in [0,1] (got {self.opposition_probability})",
        )
        self.check(self.archive_size >= 1, f"archive_size must be positive (got {self.archive_size})")
        self.check(
            self.strategy_switch is None or self.strategy_switch >= 0,
            f"strategy_switch must be non-negative (got {self.strategy_switch})",
        )

    def build(self, problem: Problem, config: tp.Any) -> RaptorHybridStrategy:
        return RaptorHybridStrategy(self, config.max_iterations)
