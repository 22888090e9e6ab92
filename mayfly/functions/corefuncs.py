# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import mayfly.common.typing as tp
from mayfly.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


@registry.register
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = np.asarray(x, dtype=float)
    assert x.ndim == 1
    return float(x.dot(x))


@registry.register
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function, with a regular grid of local minima."""
    x = np.asarray(x, dtype=float)
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + x.dot(x))


@registry.register
def rosenbrock(x: np.ndarray) -> float:
    """Narrow curved valley, the minimum is at (1, 1, ..., 1)."""
    x = np.asarray(x, dtype=float)
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))


@registry.register
def ackley(x: np.ndarray) -> float:
    x = np.asarray(x, dtype=float)
    dim = x.size
    sum_cos = np.sum(np.cos(2 * np.pi * x))
    return float(-20.0 * np.exp(-0.2 * np.sqrt(x.dot(x) / dim)) - np.exp(sum_cos / dim) + 20 + np.exp(1))


@registry.register
def griewank(x: np.ndarray) -> float:
    """Multimodal function whose local minima get shallower as the dimension grows."""
    x = np.asarray(x, dtype=float)
    part1 = float(x.dot(x))
    part2 = np.prod(np.cos(x / np.sqrt(1 + np.arange(len(x)))))
    return 1 + part1 / 4000 - float(part2)
