# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import mayfly.common.typing as tp
from .. import annealing
from .. import samplers
from ..base import Problem
from ..base import RunState
from ..mutations import Mutator
from .base import Strategy
from .base import VariantConfig
from .base import num_elites
from .base import register


logger = logging.getLogger(__name__)


def golden_sine(
    random_state: np.random.RandomState,
    position: np.ndarray,
    best: np.ndarray,
    factor: float,
    lower: float,
    upper: float,
) -> np.ndarray:
    """Golden sine move :code:`x + factor * r1 * sin(r2) * |r3 * best - x|`
    with r1, r2 uniform in [0, 2pi] and r3 uniform in [0, 2], drawn for each variable.
    """
    draws = random_state.uniform(0.0, 1.0, size=(position.size, 3))
    r1 = 2 * np.pi * draws[:, 0]
    r2 = 2 * np.pi * draws[:, 1]
    r3 = 2 * draws[:, 2]
    return np.clip(position + factor * r1 * np.sin(r2) * np.abs(r3 * best - position), lower, upper)


class GoldenSineAnnealingStrategy(Strategy):
    """Golden sine moves of the elite males accepted with the Metropolis criterion,
    hybrid Cauchy/gaussian mutation, and periodic opposition of the global best.
    """

    config: "GoldenSineAnnealing"

    def __init__(self, config: "GoldenSineAnnealing") -> None:
        super().__init__(config)
        self.scheduler = annealing.AnnealingScheduler(
            config.initial_temperature, config.cooling_rate, config.cooling_schedule
        )
        self._tried = 0
        self._accepted = 0

    def initialize(self, state: RunState) -> None:
        self.scheduler.reset()

    def cauchy_probability(self, progress: float) -> float:
        """Probability to use the Cauchy mutation: mostly exploration early, then the configured rate"""
        if progress < 0.33:
            return 0.7
        if progress < 0.66:
            return 0.5
        return float(self.config.cauchy_mutation_rate)

    def after_movement(self, state: RunState) -> None:
        factor = self.config.golden_factor * (2.0 - state.progress)
        self._tried = self._accepted = 0
        for i in range(num_elites(len(state.males), self.config.elite_ratio)):
            male = state.males[i]
            candidate = golden_sine(
                state.random_state,
                male.position,
                state.global_best.position,
                factor,
                state.problem.lower,
                state.problem.upper,
            )
            cost = state.evaluate(candidate)
            self._tried += 1
            if annealing.metropolis(state.random_state, male.cost, cost, self.scheduler.temperature):
                self._accepted += 1
                state.males[i] = male.replace(position=candidate, cost=cost)
                state.consider(candidate, cost)
        state.males.sort(key=lambda a: a.cost)

    def mutate(self, state: RunState, mutator: Mutator, parent: np.ndarray) -> np.ndarray:
        probability = self.cauchy_probability(state.progress)
        return mutator.hybrid_mutation(parent, state.config.mutation_rate, probability)

    def after_selection(self, state: RunState) -> None:
        if not self.config.apply_obl_to_global_best or state.iteration % self.config.obl_interval:
            return
        opposite = samplers.opposition_point(state.global_best.position, state.problem.lower, state.problem.upper)
        cost = state.evaluate(opposite)
        if state.consider(opposite, cost):
            logger.debug("Opposition of the global best improved it to %s", cost)

    def end_iteration(self, state: RunState) -> None:
        self.scheduler.update()
        if self.config.adaptive_temperature and self._tried:
            self.scheduler.adapt(self._accepted / self._tried)


@register("gsasma", "golden_sine_annealing")
class GoldenSineAnnealing(VariantConfig):
    """Golden sine with simulated annealing, hybrid mutation and opposition-based learning.

    Parameters
    ----------
    golden_factor: float
        base scale of the golden sine moves, doubled at the start of the run
    initial_temperature: float
        starting temperature of the annealing
    cooling_rate: float
        parameter of the cooling schedule, in (0, 1)
    cooling_schedule: str
        "exponential", "linear" or "logarithmic"
    cauchy_mutation_rate: float
        probability of Cauchy mutations at the end of the run
    apply_obl_to_global_best: bool
        whether to periodically try the opposition point of the global best
    obl_interval: int
        number of iterations between two opposition trials
    elite_ratio: float
        ratio of the males (the best ones) performing golden sine moves
    adaptive_temperature: bool
        reheats the temperature when few moves are accepted, and cools it faster
        when most of them are
    """

    legacy_flag = "use_gsasma"

    # pylint: disable=unused-argument,too-many-arguments
    def __init__(
        self,
        golden_factor: float = 1.0,
        initial_temperature: float = 100.0,
        cooling_rate: float = 0.95,
        cooling_schedule: str = "exponential",
        cauchy_mutation_rate: float = 0.3,
        apply_obl_to_global_best: bool = True,
        obl_interval: int = 10,
        elite_ratio: float = 0.2,
        adaptive_temperature: bool = False,
    ) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(self.golden_factor > 0, f"golden_factor must be positive (got {self.golden_factor})")
        self.check(
            self.initial_temperature > 0, f"initial_temperature must be positive (got {self.initial_temperature})"
        )
        self.check(0 < self.cooling_rate < 1, f"cooling_rate should be in (0,1) (got {self.cooling_rate})")
        self.check(
            0 <= self.cauchy_mutation_rate <= 1,
            f"cauchy_mutation_rate should be in [0,1] (got {self.cauchy_mutation_rate})",
        )
        self.check(
            self.cooling_schedule in annealing.SCHEDULES,
            f"cooling_schedule must be one of {annealing.SCHEDULES} (got {self.cooling_schedule!r})",
        )
        self.check(self.obl_interval >= 1, f"obl_interval must be positive (got {self.obl_interval})")
        self.check(0 < self.elite_ratio <= 1, f"elite_ratio should be in (0,1] (got {self.elite_ratio})")

    def build(self, problem: Problem, config: tp.Any) -> GoldenSineAnnealingStrategy:
        return GoldenSineAnnealingStrategy(self)
