# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import mayfly.common.typing as tp
from ..base import Agent
from ..base import Problem
from ..base import RunState
from ..chaos import LogisticMap
from .base import Strategy
from .base import VariantConfig
from .base import num_elites
from .base import register


# L4(2^3) orthogonal array: each pair of columns sees the 4 level combinations exactly once.
# Level 0 learns from the personal best, level 1 from the global best.
L4_ARRAY = np.array([[0, 0, 0], [0, 1, 1], [1, 0, 1], [1, 1, 0]])


def orthogonal_candidates(
    random_state: np.random.RandomState,
    position: np.ndarray,
    pbest: np.ndarray,
    gbest: np.ndarray,
    factor: float,
    lower: float,
    upper: float,
) -> np.ndarray:
    """Returns the 4 candidates of the orthogonal design, one per row.
    Variable j uses the column j % 3 of the array to choose its guide.
    """
    levels = L4_ARRAY[:, np.arange(position.size) % 3]
    guides = np.where(levels == 0, pbest[None, :], gbest[None, :])
    candidates = position[None, :] + factor * (guides - position[None, :])
    jitter = random_state.uniform(-1, 1, size=candidates.shape) * factor * 0.1 * (upper - lower)
    return np.clip(candidates + jitter, lower, upper)


class OrthogonalChaosStrategy(Strategy):
    """Orthogonal learning for the elite males after movement, and logistic chaotic
    perturbation of every offspring and mutant.
    """

    config: "OrthogonalChaos"

    def __init__(self, config: "OrthogonalChaos") -> None:
        super().__init__(config)
        self.chaos: tp.Optional[LogisticMap] = None

    def initialize(self, state: RunState) -> None:
        self.chaos = LogisticMap(state.random_state.uniform(), random_state=state.random_state)

    def learn(self, state: RunState, male: Agent) -> Agent:
        """Evaluates the orthogonal candidates of a male and returns the best one if it improves
        on the male, keeping the velocity and personal best history.
        """
        assert male.best is not None
        candidates = orthogonal_candidates(
            state.random_state,
            male.position,
            male.best.position,
            state.global_best.position,
            self.config.orthogonal_factor,
            state.problem.lower,
            state.problem.upper,
        )
        costs = [state.evaluate(c) for c in candidates]
        k = int(np.argmin(costs))
        if costs[k] < male.cost:
            state.consider(candidates[k], costs[k])
            return male.replace(position=candidates[k], cost=costs[k])
        return male

    def after_movement(self, state: RunState) -> None:
        for i in range(num_elites(len(state.males), self.config.elite_ratio)):
            state.males[i] = self.learn(state, state.males[i])
        state.males.sort(key=lambda a: a.cost)

    def perturb_offspring(self, state: RunState, position: np.ndarray) -> np.ndarray:
        assert self.chaos is not None
        values = self.chaos.sequence(position.size)
        return state.problem.clip(position + self.config.chaos_factor * (values - 0.5) * state.problem.span)


@register("olce", "orthogonal_chaos", "olce-ma")
class OrthogonalChaos(VariantConfig):
    """Orthogonal learning and chaotic exploitation.

    Parameters
    ----------
    orthogonal_factor: float
        step toward the guides in the orthogonal design, in [0, 1]
    chaos_factor: float
        amplitude of the chaotic perturbation, as a ratio of the range, in [0, 1]
    elite_ratio: float
        ratio of the males (the best ones) going through orthogonal learning, at least one
    """

    legacy_flag = "use_olce"

    # pylint: disable=unused-argument
    def __init__(self, orthogonal_factor: float = 0.3, chaos_factor: float = 0.1, elite_ratio: float = 0.2) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(
            0 <= self.orthogonal_factor <= 1, f"orthogonal_factor should be in [0,1] (got {self.orthogonal_factor})"
        )
        self.check(0 <= self.chaos_factor <= 1, f"chaos_factor should be in [0,1] (got {self.chaos_factor})")
        self.check(0 < self.elite_ratio <= 1, f"elite_ratio should be in (0,1] (got {self.elite_ratio})")

    def build(self, problem: Problem, config: tp.Any) -> OrthogonalChaosStrategy:
        return OrthogonalChaosStrategy(self)
