# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import mayfly.common.typing as tp


def _as_matrix(losses: tp.Any) -> np.ndarray:
    matrix = np.asarray(losses, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix[:, None]
    assert matrix.ndim == 2, f"Expected a (num_solutions, num_objectives) array, got shape {matrix.shape}"
    return matrix


class FastNonDominatedRanking:
    """Non-dominated ranking of NSGA-II proposed by Deb et al., see [Deb2002]"""

    @staticmethod
    def domination_matrix(losses: tp.Any) -> np.ndarray:
        """Returns a boolean matrix whose element (i, j) tells whether solution i dominates solution j"""
        matrix = _as_matrix(losses)
        no_worse = np.all(matrix[:, None, :] <= matrix[None, :, :], axis=-1)
        better = np.any(matrix[:, None, :] < matrix[None, :, :], axis=-1)
        return np.logical_and(no_worse, better)

    def compute_ranking(self, losses: tp.Any, k: tp.Optional[int] = None) -> tp.List[tp.List[int]]:
        """Partitions the solutions into fronts of indices, best front first.

        Parameters
        ----------
        losses: array-like
            losses of the solutions, with shape (num_solutions, num_objectives)
        k: int or None
            stop once the fronts hold at least k solutions
        """
        dominates = self.domination_matrix(losses)
        # dominated_by_cnt[i]: number of solutions dominating the ith solution
        dominated_by_cnt = dominates.sum(axis=0)
        fronts: tp.List[tp.List[int]] = []
        current = [int(i) for i in np.flatnonzero(dominated_by_cnt == 0)]
        count = 0
        while current:
            fronts.append(current)
            count += len(current)
            if k is not None and count >= k:
                break
            following: tp.List[int] = []
            for i in current:
                for j in np.flatnonzero(dominates[i]):
                    dominated_by_cnt[j] -= 1
                    if dominated_by_cnt[j] == 0:
                        following.append(int(j))
            current = sorted(following)
        return fronts


class CrowdingDistance:
    """Crowding distance of NSGA-II: sum over the objectives of the normalized gap
    between the neighbors of each solution. Boundary solutions get an infinite distance.
    """

    def compute_distance(self, losses: tp.Any) -> np.ndarray:
        matrix = _as_matrix(losses)
        size, num_objectives = matrix.shape
        distances = np.zeros(size)
        if size <= 2:
            distances[:] = float("inf")
            return distances
        for i in range(num_objectives):
            order = np.argsort(matrix[:, i], kind="stable")
            values = matrix[order, i]
            spread = max(values[-1] - values[0], 1e-10)
            distances[order[1:-1]] += (values[2:] - values[:-2]) / spread
            distances[order[0]] = float("inf")
            distances[order[-1]] = float("inf")
        return distances

    def sort(self, indices: tp.Sequence[int], distances: np.ndarray) -> tp.List[int]:
        """Sorts indices by decreasing crowding distance (larger means less crowded)"""
        return sorted(indices, key=lambda i: distances[i], reverse=True)


def select(losses: tp.Any, num: int) -> tp.List[int]:
    """Indices of the num solutions to keep: whole fronts first, then the least
    crowded solutions of the first front which does not fit entirely.
    """
    matrix = _as_matrix(losses)
    if num >= matrix.shape[0]:
        return list(range(matrix.shape[0]))
    selected: tp.List[int] = []
    crowding = CrowdingDistance()
    for front in FastNonDominatedRanking().compute_ranking(matrix, k=num):
        if len(selected) + len(front) <= num:
            selected.extend(front)
        else:
            distances = crowding.compute_distance(matrix[front])
            order = crowding.sort(range(len(front)), distances)
            selected.extend(front[i] for i in order[: num - len(selected)])
        if len(selected) >= num:
            break
    return selected
