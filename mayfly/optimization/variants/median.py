# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import numpy as np
import mayfly.common.typing as tp
from ..base import Agent
from ..base import Problem
from ..base import RunState
from ..movement import attraction
from .base import Strategy
from .base import VariantConfig
from .base import register


GRAVITY_TYPES = ("linear", "exponential", "sigmoid")


def gravity_coefficient(gravity_type: str, progress: float) -> float:
    """Non-increasing gravity coefficient, from 1 at the start of the run"""
    if gravity_type == "exponential":
        return math.exp(-2.0 * progress)
    if gravity_type == "sigmoid":
        return 1.0 / (1.0 + math.exp(10.0 * (progress - 0.5)))
    return 1.0 - progress


def fitness_weights(costs: tp.ArrayLike) -> np.ndarray:
    """Weights in [0, 1], 1 for the best cost and 0 for the worst (all 1 if the costs are equal)"""
    costs = np.asarray(costs, dtype=float)
    low, high = costs.min(), costs.max()
    if high <= low:
        return np.ones_like(costs)
    return 1.0 - (costs - low) / (high - low)


def weighted_median(values: tp.ArrayLike, weights: tp.Optional[tp.ArrayLike] = None) -> np.ndarray:
    """Per-column median of a (num_points, dimension) array.

    With weights, this is the rank-based weighted median: the smallest value whose cumulated
    weight reaches half of the total weight. When the weights are degenerate (all equal, or a
    non-positive total), the plain median is returned.
    """
    points = np.asarray(values, dtype=float)
    if weights is None:
        return np.median(points, axis=0)
    w = np.asarray(weights, dtype=float)
    if w.sum() <= 0 or np.all(w == w[0]):
        return np.median(points, axis=0)
    order = np.argsort(points, axis=0, kind="stable")
    cumulated = np.cumsum(w[order], axis=0)
    ranks = np.argmax(cumulated >= w.sum() / 2.0, axis=0)
    return np.take_along_axis(points, order, axis=0)[ranks, np.arange(points.shape[1])]


class MedianGravityStrategy(Strategy):
    """Adds an attraction toward the median position of the males, and replaces
    the damped gravity of the males by a time-varying coefficient.
    """

    config: "MedianGravity"

    def __init__(self, config: "MedianGravity") -> None:
        super().__init__(config)
        self.median: tp.Optional[np.ndarray] = None
        self.gravity = 1.0

    def begin_iteration(self, state: RunState) -> None:
        positions = np.array([m.position for m in state.males])
        weights = fitness_weights([m.cost for m in state.males]) if self.config.weighted_median else None
        self.median = weighted_median(positions, weights)
        self.gravity = gravity_coefficient(self.config.gravity_type, state.progress)

    def male_inertia(self, state: RunState) -> tp.Optional[float]:
        return self.gravity

    def extra_velocity(self, state: RunState, male: Agent) -> tp.Optional[np.ndarray]:
        assert self.median is not None
        conf = state.config
        return attraction(self.config.median_weight, conf.beta, self.median, male.position, conf.distance)


@register("mpma", "median_gravity")
class MedianGravity(VariantConfig):
    """Median position-based mayfly algorithm.

    Parameters
    ----------
    median_weight: float
        attraction coefficient toward the median position, in [0, 1]
    gravity_type: str
        "linear" (1 - t), "exponential" (exp(-2t)) or "sigmoid" (logistic S-curve),
        with t the ratio of the run already completed
    weighted_median: bool
        whether the median is weighted by the fitness of the males
    """

    legacy_flag = "use_mpma"

    # pylint: disable=unused-argument
    def __init__(self, median_weight: float = 0.5, gravity_type: str = "linear", weighted_median: bool = False) -> None:
        super().__init__(locals())

    def validate(self, config: tp.Any) -> None:
        self.check(0 <= self.median_weight <= 1, f"median_weight should be in [0,1] (got {self.median_weight})")
        self.check(
            self.gravity_type in GRAVITY_TYPES,
            f"gravity_type must be one of {GRAVITY_TYPES} (got {self.gravity_type!r})",
        )

    def build(self, problem: Problem, config: tp.Any) -> MedianGravityStrategy:
        return MedianGravityStrategy(self)
