# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import mayfly.common.typing as tp
from .base import Agent
from .base import Best
from .base import RunState


def truncate(agents: tp.List[Agent], size: int) -> tp.List[Agent]:
    """Returns the :code:`size` best agents, sorted by ascending cost.
    Ties keep their original order.
    """
    return sorted(agents, key=lambda a: a.cost)[:size]


def merge(state: RunState, offspring: tp.Sequence[Best]) -> None:
    """(mu + lambda) selection: the first half of the evaluated offspring joins the males
    (with themselves as personal best), the second half joins the females, then both
    sub-populations are truncated back to their size.
    """
    split = len(offspring) // 2
    males = [Agent.male(child.position, child.cost, state.rest_velocity()) for child in offspring[:split]]
    females = [Agent(child.position, child.cost, state.rest_velocity()) for child in offspring[split:]]
    state.males = truncate(state.males + males, state.config.popsize)
    state.females = truncate(state.females + females, state.config.popsize_female)
