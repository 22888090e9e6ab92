# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import mayfly.common.typing as tp


def _sanitize_seed(seed: float) -> float:
    if 0.0 < seed < 1.0:
        return float(seed)
    seed = 0.1 + 0.8 * (seed - int(seed))
    if seed <= 0.0:
        return 0.314159
    if seed >= 1.0:
        return 0.271828
    return seed


class LogisticMap:
    """Chaotic sequence in (0, 1) following :code:`x <- r * x * (1 - x)`, fully chaotic for r=4.

    Parameters
    ----------
    seed: float
        initial value, brought back into (0, 1) if outside
    r: float
        control parameter of the map
    random_state: np.random.RandomState or None
        if provided, used to draw a fresh seed whenever the sequence collapses
        onto a boundary or a fixed point
    """

    def __init__(self, seed: float, r: float = 4.0, random_state: tp.Optional[np.random.RandomState] = None) -> None:
        self.r = r
        self.x = _sanitize_seed(seed)
        self._random_state = random_state

    def reset(self, seed: float) -> None:
        self.x = _sanitize_seed(seed)

    def next(self) -> float:
        previous = self.x
        x = self.r * previous * (1.0 - previous)
        collapsed = x <= 0.0 or x >= 1.0 or abs(x - previous) < 1e-12
        if collapsed and self._random_state is not None:
            x = self._random_state.uniform(0.1, 0.9)
        elif collapsed:
            x = 0.314159 if abs(x - previous) < 1e-12 else min(max(x, 1e-10), 1.0 - 1e-10)
        self.x = x
        return x

    def sequence(self, size: int) -> np.ndarray:
        return np.array([self.next() for _ in range(size)])
