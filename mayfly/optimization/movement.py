# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Velocity and position updates of the males and the females.

Males are attracted by their personal best and the global best, or perform
a nuptial dance when they are the global best. Females are attracted by the
male of the same rank when he is better, and fly randomly otherwise.
"""

import numpy as np
import mayfly.common.typing as tp
from .base import Agent
from .base import RunState

# below this distance, a male is considered to be the global best
EPS = 1e-12
DISTANCES = ("componentwise", "euclidean")


def attraction(coefficient: float, beta: float, target: np.ndarray, position: np.ndarray, distance: str) -> np.ndarray:
    """Attraction term :code:`coefficient * exp(-beta * r^2) * (target - position)`
    where r is either the gap along each axis ("componentwise") or the Euclidean distance.
    """
    gap = target - position
    if distance == "euclidean":
        r2: tp.Union[float, np.ndarray] = float(gap.dot(gap))
    else:
        r2 = gap ** 2
    return coefficient * np.exp(-beta * r2) * gap


def is_dancing(state: RunState, male: Agent) -> bool:
    return bool(np.linalg.norm(male.position - state.global_best.position) < EPS)


def female_velocity(state: RunState, female: Agent, male: Agent) -> np.ndarray:
    conf = state.config
    if female.cost > male.cost:
        return state.g * female.velocity + attraction(conf.a3, conf.beta, male.position, female.position, conf.distance)
    return state.g * female.velocity + state.fl * state.random_state.normal(0.0, 1.0, size=female.position.size)


def male_velocity(
    state: RunState,
    male: Agent,
    inertia: tp.Optional[float] = None,
    extra: tp.Optional[np.ndarray] = None,
) -> np.ndarray:
    """Computes the new velocity of a male

    Parameters
    ----------
    state: RunState
        state of the run
    male: Agent
        the male to move
    inertia: float or None
        replaces the current gravity coefficient if provided
    extra: np.ndarray or None
        additional attraction term, added unless the male is dancing
    """
    conf = state.config
    g = state.g if inertia is None else inertia
    if is_dancing(state, male):
        return g * male.velocity + state.dance * state.random_state.uniform(-1, 1, size=male.position.size)
    assert male.best is not None
    velocity = (
        g * male.velocity
        + attraction(conf.a1, conf.beta, male.best.position, male.position, conf.distance)
        + attraction(conf.a2, conf.beta, state.global_best.position, male.position, conf.distance)
    )
    if extra is not None:
        velocity = velocity + extra
    return velocity


def step(state: RunState, agent: Agent, velocity: np.ndarray) -> Agent:
    """Clips the velocity, moves the agent, clips the position and evaluates it.
    Returns the new agent (with updated personal best for males) and updates the global best.
    """
    velocity = state.clip_velocity(velocity)
    position = state.problem.clip(agent.position + velocity)
    cost = state.evaluate(position)
    state.consider(position, cost)
    return agent.replace(position=position, cost=cost, velocity=velocity)


def relocate(state: RunState, agent: Agent, position: np.ndarray, cost: tp.Optional[float] = None) -> Agent:
    """Moves an agent to a given position, evaluating it if the cost is not known yet.
    The velocity is kept.
    """
    position = state.problem.clip(position)
    if cost is None:
        cost = state.evaluate(position)
    state.consider(position, cost)
    return agent.replace(position=position, cost=cost)


def damp(state: RunState) -> None:
    """Decays the gravity, dance and random flight coefficients"""
    state.g *= state.config.g_damp
    state.dance *= state.config.dance_damp
    state.fl *= state.config.fl_damp
