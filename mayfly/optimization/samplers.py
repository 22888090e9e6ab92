# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Heavy-tailed deviates and position generators shared by the variants.
Degenerate draws are handled locally so that no non-finite value ever
reaches the population.
"""

import math
import numpy as np
from scipy.special import gamma
import mayfly.common.typing as tp


def cauchy(random_state: np.random.RandomState, x0: float = 0.0, scale: float = 1.0) -> float:
    """Draws a Cauchy deviate centered on :code:`x0`.
    A non-finite result is redrawn once, and replaced by the center :code:`x0` if it still fails.
    """
    for _ in range(2):
        result = x0 + scale * float(random_state.standard_cauchy())
        if math.isfinite(result):
            return result
    return x0


def cauchy_vector(random_state: np.random.RandomState, size: int, x0: float = 0.0, scale: float = 1.0) -> np.ndarray:
    out = x0 + scale * random_state.standard_cauchy(size)
    bad = ~np.isfinite(out)
    if np.any(bad):
        out[bad] = x0 + scale * random_state.standard_cauchy(int(np.sum(bad)))
        out[~np.isfinite(out)] = x0
    return out


def mantegna_sigma(alpha: float) -> float:
    """Standard deviation of the numerator in Mantegna's algorithm"""
    numerator = gamma(1 + alpha) * math.sin(math.pi * alpha / 2)
    denominator = gamma((1 + alpha) / 2) * alpha * 2 ** ((alpha - 1) / 2)
    return float((numerator / denominator) ** (1 / alpha))


def levy(
    random_state: np.random.RandomState,
    alpha: float = 1.5,
    scale: float = 1.0,
    size: tp.Optional[int] = None,
) -> tp.Union[float, np.ndarray]:
    """Lévy flight steps using Mantegna's algorithm.

    Parameters
    ----------
    random_state: np.random.RandomState
        source of randomness
    alpha: float
        stability index, in (0, 2]. Lower values yield heavier tails.
    scale: float
        multiplicative factor applied to the steps
    size: int or None
        number of steps to draw, or None for a single float

    Note
    ----
    Denominators too close to 0 are pushed to 1e-10 (keeping their sign), and any step
    which is still not finite is replaced by a plain normal draw.
    """
    num = 1 if size is None else size
    u = random_state.normal(0.0, mantegna_sigma(alpha), size=num)
    v = random_state.normal(0.0, 1.0, size=num)
    tiny = np.abs(v) < 1e-10
    v[tiny] = np.where(v[tiny] < 0, -1e-10, 1e-10)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        steps = scale * u / np.abs(v) ** (1 / alpha)
    bad = ~np.isfinite(steps)
    if np.any(bad):
        steps[bad] = scale * random_state.normal(0.0, 1.0, size=int(np.sum(bad)))
    return float(steps[0]) if size is None else steps


def opposition_point(position: tp.ArrayLike, lower: float, upper: float) -> np.ndarray:
    """Point symmetric to the position with respect to the center of the bounds"""
    return lower + upper - np.asarray(position, dtype=float)


def bare_bones(
    random_state: np.random.RandomState, current: np.ndarray, best: np.ndarray, lower: float, upper: float
) -> np.ndarray:
    """Parameter-free Gaussian sample centered between the current position and a guide,
    with a standard deviation of half their distance along each axis.
    Axes where both coincide use 1% of the range instead.
    """
    mean = (current + best) / 2.0
    std = np.abs(current - best) / 2.0
    std[std < 1e-10] = 0.01 * (upper - lower)
    return np.clip(mean + std * random_state.normal(0.0, 1.0, size=mean.size), lower, upper)
