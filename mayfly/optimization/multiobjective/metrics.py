# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Quality indicators of a Pareto front. They are meant for reporting,
the archive does not use them.
"""

import numpy as np
import mayfly.common.typing as tp


def hypervolume_2d(losses: tp.Any, reference: tp.ArrayLike) -> float:
    """Area dominated by a 2-objective front and bounded by the reference point.
    Points which do not dominate the reference are ignored. Returns 0 if the losses
    do not have exactly 2 objectives.
    """
    points = np.asarray(losses, dtype=float)
    ref = np.asarray(reference, dtype=float)
    if points.ndim != 2 or points.shape[1] != 2 or ref.size != 2:
        return 0.0
    points = points[np.all(points < ref, axis=1)]
    if not points.size:
        return 0.0
    points = points[np.lexsort((points[:, 1], points[:, 0]))]
    volume = 0.0
    current_y = ref[1]
    for x, y in points:
        if y < current_y:
            volume += (ref[0] - x) * (current_y - y)
            current_y = y
    return float(volume)


def igd(losses: tp.Any, reference_front: tp.Any) -> float:
    """Inverted generational distance: mean distance from each point of the reference front
    to its nearest point in the obtained front (lower is better, inf for an empty front).
    """
    points = np.asarray(losses, dtype=float)
    reference = np.asarray(reference_front, dtype=float)
    if not points.size or not reference.size:
        return float("inf")
    if points.ndim == 1:
        points = points[:, None]
    if reference.ndim == 1:
        reference = reference[:, None]
    distances = np.linalg.norm(reference[:, None, :] - points[None, :, :], axis=-1)
    return float(np.mean(np.min(distances, axis=1)))
