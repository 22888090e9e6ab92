# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import mayfly.common.typing as tp
from mayfly.common import errors
from . import nsga2


logger = logging.getLogger(__name__)


def dominates(first: tp.ArrayLike, second: tp.ArrayLike) -> bool:
    """Pareto dominance for minimization: no worse on every objective and strictly better on at least one"""
    a = np.asarray(first, dtype=float)
    b = np.asarray(second, dtype=float)
    if a.shape != b.shape:
        raise errors.MayflyValueError(f"Cannot compare losses with shapes {a.shape} and {b.shape}")
    return bool(np.all(a <= b) and np.any(a < b))


class Solution(tp.NamedTuple):
    """A position with its vector of objective values"""

    position: np.ndarray
    losses: np.ndarray


class ParetoArchive:
    """Bounded archive of solutions, trimmed with non-dominated ranking and crowding distance
    when its capacity is exceeded.

    Parameters
    ----------
    capacity: int
        maximum number of solutions kept

    Note
    ----
    Dominated solutions are only removed when the archive overflows, so that the
    archive may temporarily hold several fronts. Use :code:`front()` to get the
    non-dominated solutions only.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise errors.InvalidConfigError(f"Archive capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._solutions: tp.List[Solution] = []

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self) -> tp.Iterator[Solution]:
        return iter(self._solutions)

    @property
    def num_objectives(self) -> tp.Optional[int]:
        return None if not self._solutions else self._solutions[0].losses.size

    def _make(self, position: tp.ArrayLike, losses: tp.ArrayLike) -> Solution:
        sol = Solution(np.array(position, dtype=float, copy=True), np.array(losses, dtype=float).ravel())
        if self.num_objectives is not None and sol.losses.size != self.num_objectives:
            raise errors.MayflyValueError(
                f"Expected {self.num_objectives} objectives but got {sol.losses.size} in the archive"
            )
        return sol

    def add(self, position: tp.ArrayLike, losses: tp.ArrayLike) -> None:
        self.extend([(position, losses)])

    def __contains__(self, solution: tp.Any) -> bool:
        return any(
            np.array_equal(s.position, solution.position) and np.array_equal(s.losses, solution.losses)
            for s in self._solutions
        )

    def extend(self, items: tp.Iterable[tp.Tuple[tp.ArrayLike, tp.ArrayLike]]) -> None:
        """Appends all solutions which are not already in the archive (same position and losses),
        then trims the archive once if it overflows
        """
        for position, losses in items:
            sol = self._make(position, losses)
            if sol not in self:
                self._solutions.append(sol)
        if len(self._solutions) > self.capacity:
            kept = nsga2.select(self.losses(), self.capacity)
            logger.debug("Trimming Pareto archive from %s to %s solutions", len(self._solutions), len(kept))
            self._solutions = [self._solutions[i] for i in sorted(kept)]

    def losses(self) -> np.ndarray:
        if not self._solutions:
            return np.zeros((0, 0))
        return np.array([s.losses for s in self._solutions])

    def front(self) -> tp.List[Solution]:
        """Non-dominated solutions of the archive"""
        if not self._solutions:
            return []
        first = nsga2.FastNonDominatedRanking().compute_ranking(self.losses(), k=1)[0]
        return [self._solutions[i] for i in sorted(first)]

    def best(self) -> tp.Optional[Solution]:
        """Solution with the lowest first objective"""
        if not self._solutions:
            return None
        return min(self._solutions, key=lambda s: s.losses[0])
