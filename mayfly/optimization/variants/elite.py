# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import mayfly.common.typing as tp
from ..base import Agent
from ..base import Problem
from ..base import RunState
from .base import Strategy
from .base import VariantConfig
from .base import register


logger = logging.getLogger(__name__)


class EliteSearchStrategy(Strategy):
    """Samples candidates uniformly in a hyper-cube around the global best after each selection.
    The radius of the cube grows while the global best improves and shrinks otherwise,
    like a trust region.
    """

    config: "EliteSearch"

    def __init__(self, config: "EliteSearch", problem: Problem) -> None:
        super().__init__(config)
        self.initial_range = 0.1 * problem.span if config.search_range is None else float(config.search_range)
        self.search_range = self.initial_range
        self.last_cost = float("inf")

    def initialize(self, state: RunState) -> None:
        self.search_range = self.initial_range
        self.last_cost = state.global_best.cost

    def sample(self, state: RunState) -> tp.Optional[tp.Tuple[np.ndarray, float]]:
        """Evaluates the elite candidates and returns the best one (None if there is no candidate)"""
        best: tp.Optional[tp.Tuple[np.ndarray, float]] = None
        center = state.global_best.position
        for _ in range(self.config.elite_count):
            offset = self.search_range * state.random_state.uniform(-1, 1, size=center.size)
            position = state.problem.clip(center + offset)
            cost = state.evaluate(position)
            if best is None or cost < best[1]:
                best = (position, cost)
        return best

    def after_selection(self, state: RunState) -> None:
        if state.global_best.cost < self.last_cost:
            self.search_range *= self.config.enlarge_factor
        else:
            self.search_range *= self.config.reduction_factor
        best = self.sample(state)
        if best is not None and best[1] < state.males[-1].cost:
            state.males[-1] = Agent.male(*best, velocity=state.rest_velocity())
            state.males.sort(key=lambda a: a.cost)
            if state.consider(*best):
                logger.debug("Elite search improved the global best to %s (range %s)", best[1], self.search_range)
        self.last_cost = state.global_best.cost


@register("desma", "elite_search")
class EliteSearch(VariantConfig):
    """Dynamic elite strategy: local search in an adaptive region around the global best.

    Parameters
    ----------
    elite_count: int
        number of candidates sampled at each iteration
    search_range: float or None
        initial radius of the search region, defaults to 10% of the range
    enlarge_factor: float
        radius multiplier after an iteration which improved the global best
    reduction_factor: float
        radius multiplier after an iteration which did not
    """

    legacy_flag = "use_desma"

    # pylint: disable=unused-argument
    def __init__(
        self,
        elite_count: int = 5,
        search_range: tp.Optional[float] = None,
        enlarge_factor: float = 1.05,
        reduction_factor: float = 0.95,
    ) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(self.elite_count >= 0, f"elite_count must be non-negative (got {self.elite_count})")
        self.check(
            self.search_range is None or self.search_range > 0,
            f"search_range must be positive (got {self.search_range})",
        )
        self.check(
            self.enlarge_factor > 0 and self.reduction_factor > 0,
            "enlarge_factor and reduction_factor must be positive",
        )

    def build(self, problem: Problem, config: tp.Any) -> EliteSearchStrategy:
        return EliteSearchStrategy(self, problem)
