# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import mayfly.common.typing as tp
from .. import samplers
from ..base import Agent
from ..base import Problem
from ..base import RunState
from .base import FEMALE
from .base import Proposal
from .base import Strategy
from .base import VariantConfig
from .base import greedy
from .base import register


class BareBonesStrategy(Strategy):
    """Replaces the velocity movement by bare-bones gaussian sampling, with Lévy flights
    for the females, and refines the elite males with opposition points and Lévy jumps.
    """

    config: "BareBones"

    def levy_jump(self, state: RunState, position: np.ndarray) -> np.ndarray:
        steps = samplers.levy(
            state.random_state, alpha=self.config.levy_alpha, scale=self.config.levy_beta, size=position.size
        )
        return state.problem.clip(position + steps * state.problem.span * 0.01)

    def propose(self, state: RunState, agent: Agent, role: str, index: int) -> tp.Optional[Proposal]:
        rng = state.random_state
        lower, upper = state.problem.lower, state.problem.upper
        if role == FEMALE:
            male = state.males[min(index, len(state.males) - 1)]
            if rng.uniform() < 0.5:
                return Proposal(samplers.bare_bones(rng, agent.position, male.position, lower, upper))
            return Proposal(self.levy_jump(state, agent.position))
        assert agent.best is not None
        guide = agent.best.position if rng.uniform() < 0.5 else state.global_best.position
        return Proposal(samplers.bare_bones(rng, agent.position, guide, lower, upper))

    def after_movement(self, state: RunState) -> None:
        rng = state.random_state
        for i in range(min(self.config.elite_opposition_count, len(state.males))):
            if rng.uniform() < self.config.opposition_rate:
                opposite = samplers.opposition_point(state.males[i].position, state.problem.lower, state.problem.upper)
                state.males[i], _ = greedy(state, state.males[i], opposite)
            if rng.uniform() < self.config.levy_rate:
                state.males[i], _ = greedy(state, state.males[i], self.levy_jump(state, state.males[i].position))
        state.males.sort(key=lambda a: a.cost)


@register("eobbma", "bare_bones")
class BareBones(VariantConfig):
    """Elite opposition-based bare bones mayfly algorithm.

    Parameters
    ----------
    levy_alpha: float
        stability index of the Lévy flights, in (0, 2]
    levy_beta: float
        scale of the Lévy steps
    opposition_rate: float
        probability to try the opposition point of an elite male
    elite_opposition_count: int
        number of best males refined after movement
    levy_rate: float
        probability to try a Lévy jump for an elite male
    """

    legacy_flag = "use_eobbma"

    # pylint: disable=unused-argument
    def __init__(
        self,
        levy_alpha: float = 1.5,
        levy_beta: float = 1.0,
        opposition_rate: float = 0.3,
        elite_opposition_count: int = 3,
        levy_rate: float = 0.1,
    ) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(0 < self.levy_alpha <= 2, f"levy_alpha should be in (0,2] (got {self.levy_alpha})")
        self.check(self.levy_beta > 0, f"levy_beta must be positive (got {self.levy_beta})")
        self.check(
            0 <= self.opposition_rate <= 1, f"opposition_rate should be in [0,1] (got {self.opposition_rate})"
        )
        self.check(0 <= self.levy_rate <= 1, f"levy_rate should be in [0,1] (got {self.levy_rate})")
        self.check(
            self.elite_opposition_count >= 0,
            f"elite_opposition_count must be non-negative (got {self.elite_opposition_count})",
        )

    def build(self, problem: Problem, config: tp.Any) -> BareBonesStrategy:
        return BareBonesStrategy(self)
