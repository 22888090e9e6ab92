# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import numpy as np
from mayfly.common import errors


SCHEDULES = ("exponential", "linear", "logarithmic")
MIN_TEMPERATURE = 1e-10


def acceptance_probability(old_cost: float, new_cost: float, temperature: float) -> float:
    """Metropolis criterion: 1 for a strictly better candidate, exp(-delta / temperature) otherwise.

    Note
    ----
    For a worse candidate the probability lies in (0, 1) mathematically, but :code:`math.exp`
    underflows to exactly 0.0 once delta / temperature exceeds about 745. Such a candidate
    is then never accepted.
    """
    if new_cost < old_cost:
        return 1.0
    return math.exp(-(new_cost - old_cost) / max(temperature, MIN_TEMPERATURE))


def metropolis(random_state: np.random.RandomState, old_cost: float, new_cost: float, temperature: float) -> bool:
    """Draws whether the candidate is accepted"""
    return bool(random_state.uniform() < acceptance_probability(old_cost, new_cost, temperature))


class AnnealingScheduler:
    """Temperature schedule for simulated annealing

    Parameters
    ----------
    initial_temperature: float
        starting temperature
    cooling_rate: float
        multiplicative factor for the exponential schedule, decrement per step for the
        linear schedule, and speed for the logarithmic schedule
    schedule: str
        one of "exponential", "linear" or "logarithmic"
    """

    def __init__(self, initial_temperature: float, cooling_rate: float, schedule: str = "exponential") -> None:
        if schedule not in SCHEDULES:
            raise errors.InvalidConfigError(f'Unknown cooling schedule "{schedule}", choose among {SCHEDULES}')
        if initial_temperature <= 0:
            raise errors.InvalidConfigError(f"Initial temperature must be positive, got {initial_temperature}")
        self.initial_temperature = float(initial_temperature)
        self.cooling_rate = float(cooling_rate)
        self.schedule = schedule
        self.temperature = self.initial_temperature
        self.step = 0

    def update(self) -> float:
        self.step += 1
        if self.schedule == "exponential":
            self.temperature *= self.cooling_rate
        elif self.schedule == "linear":
            self.temperature = max(0.01, self.initial_temperature - self.step * self.cooling_rate)
        else:
            self.temperature = self.initial_temperature / (1.0 + self.cooling_rate * math.log(1.0 + self.step))
        self.temperature = max(self.temperature, MIN_TEMPERATURE)
        return self.temperature

    def adapt(self, acceptance_rate: float, min_rate: float = 0.2, max_rate: float = 0.5) -> None:
        """Reheats when too few candidates get accepted, cools faster when too many do"""
        if acceptance_rate < min_rate:
            self.temperature = min(self.temperature * 1.1, self.initial_temperature)
        elif acceptance_rate > max_rate:
            self.temperature = max(self.temperature * 0.9, MIN_TEMPERATURE)

    def reset(self) -> None:
        self.temperature = self.initial_temperature
        self.step = 0

    def __repr__(self) -> str:
        return f"AnnealingScheduler({self.schedule}, temperature={self.temperature:.4g}, step={self.step})"
