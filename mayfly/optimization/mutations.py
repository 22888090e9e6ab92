# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import numpy as np
import mayfly.common.typing as tp
from . import samplers


class Mutator:
    """Class defining the genetic operators on bounded real vectors,
    and holding a random state used for random generation.

    Parameters
    ----------
    random_state: np.random.RandomState
        source of randomness, shared with the rest of the run
    lower: float
        lower bound of each variable
    upper: float
        upper bound of each variable
    """

    def __init__(self, random_state: np.random.RandomState, lower: float, upper: float) -> None:
        self.random_state = random_state
        self.lower = lower
        self.upper = upper

    @property
    def span(self) -> float:
        return self.upper - self.lower

    def _clip(self, x: np.ndarray) -> np.ndarray:
        return np.clip(x, self.lower, self.upper)

    def crossover(
        self, parent: tp.ArrayLike, donor: tp.ArrayLike, weights: tp.Optional[tp.ArrayLike] = None
    ) -> tp.Tuple[np.ndarray, np.ndarray]:
        """Blend crossover producing two complementary offspring
        :code:`L * parent + (1 - L) * donor` and :code:`L * donor + (1 - L) * parent`,
        with one uniform weight L per variable.

        Parameters
        ----------
        parent: array-like
            first parent
        donor: array-like
            second parent
        weights: array-like or None
            the blending weights, drawn uniformly in [0, 1] if not provided
        """
        x1 = np.asarray(parent, dtype=float)
        x2 = np.asarray(donor, dtype=float)
        if weights is None:
            weights = self.random_state.uniform(0.0, 1.0, size=x1.size)
        w = np.broadcast_to(np.asarray(weights, dtype=float), x1.shape)
        off1 = w * x1 + (1 - w) * x2
        off2 = w * x2 + (1 - w) * x1
        return self._clip(off1), self._clip(off2)

    def _selected_dimensions(self, size: int, rate: float) -> np.ndarray:
        num = min(size, int(math.ceil(rate * size)))
        if not num:
            return np.array([], dtype=int)
        return self.random_state.permutation(size)[:num]

    def gaussian_mutation(self, parent: tp.ArrayLike, rate: float) -> np.ndarray:
        """Adds a normal perturbation with standard deviation 10% of the range to
        :code:`ceil(rate * dimension)` variables picked without replacement.
        """
        out = np.array(parent, dtype=float, copy=True)
        indices = self._selected_dimensions(out.size, rate)
        if not indices.size:
            return out
        sigma = 0.1 * self.span
        out[indices] += sigma * self.random_state.normal(0.0, 1.0, size=indices.size)
        return self._clip(out)

    def cauchy_mutation(self, parent: tp.ArrayLike, rate: float) -> np.ndarray:
        """Same as the gaussian mutation, with heavy-tailed Cauchy perturbations of scale 10% of the range.
        Perturbations are limited to 3 times the range.
        """
        out = np.array(parent, dtype=float, copy=True)
        indices = self._selected_dimensions(out.size, rate)
        if not indices.size:
            return out
        limit = 3 * self.span
        for j in indices:
            out[j] += float(np.clip(samplers.cauchy(self.random_state, 0.0, 0.1 * self.span), -limit, limit))
        return self._clip(out)

    def hybrid_mutation(self, parent: tp.ArrayLike, rate: float, cauchy_probability: float) -> np.ndarray:
        """Cauchy mutation with probability :code:`cauchy_probability`, gaussian mutation otherwise"""
        if self.random_state.uniform() < cauchy_probability:
            return self.cauchy_mutation(parent, rate)
        return self.gaussian_mutation(parent, rate)
