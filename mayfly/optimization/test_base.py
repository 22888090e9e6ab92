# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import warnings
import pytest
import numpy as np
from mayfly.common import errors
from mayfly.common import testing
from . import base
from .optimizerlib import ConfMayfly


def _state(function: object = "sphere", dimension: int = 3, **kwargs: object) -> base.RunState:
    problem = base.Problem(function, dimension, -5, 5)  # type: ignore
    return base.RunState(problem, ConfMayfly(**kwargs), np.random.RandomState(12))  # type: ignore


@testing.parametrized(
    zero_dimension=(("sphere", 0, -1, 1), "Dimension"),
    bool_dimension=(("sphere", True, -1, 1), "Dimension"),
    reversed_bounds=(("sphere", 2, 1, -1), "strictly below"),
    equal_bounds=(("sphere", 2, 1, 1), "strictly below"),
    infinite_bound=(("sphere", 2, -np.inf, 1), "finite"),
    unknown_function=(("blublu", 2, -1, 1), "Unknown function"),
    not_callable=((12, 2, -1, 1), "callable"),
)
def test_problem_errors(args: tuple, match: str) -> None:
    with pytest.raises(errors.InvalidConfigError, match=match):
        base.Problem(*args)


def test_problem() -> None:
    problem = base.Problem("rastrigin", 4, -5.12, 5.12)
    assert problem.span == pytest.approx(10.24)
    testing.assert_within_bounds(problem.sample(np.random.RandomState(1)), -5.12, 5.12)
    np.testing.assert_array_equal(problem.clip([-12, 0, 3, 7]), [-5.12, 0, 3, 5.12])
    np.testing.assert_array_equal(problem.objective_vector(np.zeros(4), 3.0), [3.0])
    assert "rastrigin" in repr(problem)
    multi = base.Problem("sphere", 2, -1, 1, objectives=lambda x: [x[0], x[1] ** 2])
    np.testing.assert_array_equal(multi.objective_vector(np.array([0.5, 0.5]), 0.5), [0.5, 0.25])


def test_get_random_state() -> None:
    rng = np.random.RandomState(12)
    assert base.get_random_state(rng) is rng
    assert base.get_random_state(3).uniform() == np.random.RandomState(3).uniform()
    with pytest.raises(errors.MayflyTypeError):
        base.get_random_state("12")  # type: ignore


def test_agent_replace_updates_personal_best() -> None:
    male = base.Agent.male(np.array([1.0, 1.0]), 2.0)
    assert male.tracks_best
    worse = male.replace(position=np.array([2.0, 2.0]), cost=8.0)
    assert worse.best == male.best
    assert worse.cost == 8.0
    better = worse.replace(position=np.array([0.0, 0.5]), cost=0.25)
    assert better.best is not None
    assert better.best.cost == 0.25
    np.testing.assert_array_equal(better.best.position, [0.0, 0.5])
    # the original agent is left untouched
    np.testing.assert_array_equal(male.position, [1.0, 1.0])
    female = base.Agent(np.array([1.0]), 1.0)
    assert not female.tracks_best
    assert female.replace(position=np.array([0.0]), cost=0.0).best is None
    with pytest.raises(errors.MayflyValueError):
        male.replace(position=np.array([0.0, 0.0]))


def test_evaluate_counts_and_clips() -> None:
    values = [float("nan"), 1e30, -1e30, float("inf"), 3.0]
    state = _state(lambda x: values.pop(0))
    with pytest.warns(errors.BadLossWarning):
        assert state.evaluate(np.zeros(3)) == base.MAX_LOSS
    with pytest.warns(errors.LossTooLargeWarning):
        assert state.evaluate(np.zeros(3)) == base.MAX_LOSS
    assert state.evaluate(np.zeros(3)) == -base.MAX_LOSS
    with pytest.warns(errors.BadLossWarning):
        assert state.evaluate(np.zeros(3)) == base.MAX_LOSS
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert state.evaluate(np.zeros(3)) == 3.0
    assert state.evaluations == 5


def test_evaluate_propagates_exceptions() -> None:
    def failing(x: np.ndarray) -> float:
        raise ZeroDivisionError("blublu")

    state = _state(failing)
    with pytest.raises(ZeroDivisionError):
        state.evaluate(np.zeros(3))


def test_consider_is_strict() -> None:
    state = _state()
    assert state.consider(np.ones(3), 3.0)
    assert not state.consider(np.zeros(3), 3.0)
    np.testing.assert_array_equal(state.global_best.position, np.ones(3))
    assert state.consider(np.zeros(3), 0.0)
    assert state.global_best.cost == 0.0


def test_run_state_defaults() -> None:
    state = _state()
    assert state.vel_max == pytest.approx(1.0)
    assert state.vel_min == pytest.approx(-1.0)
    np.testing.assert_array_equal(state.clip_velocity(np.array([-3.0, 0.5, 3.0])), [-1.0, 0.5, 1.0])
    male = state.spawn(np.array([7.0, 0.0, 0.0]), male=True)
    np.testing.assert_array_equal(male.position, [5.0, 0.0, 0.0])
    assert male.cost == 25.0
    assert state.global_best.cost == 25.0
    assert state.evaluations == 1
    state.iteration = 500
    assert state.progress == 0.25


def test_spawned_velocity_is_clipped() -> None:
    state = _state(vel_max=2.0, vel_min=0.5)
    np.testing.assert_array_equal(state.rest_velocity(), [0.5, 0.5, 0.5])
    female = state.spawn(np.zeros(3), male=False)
    np.testing.assert_array_equal(female.velocity, [0.5, 0.5, 0.5])
    male = state.spawn(np.zeros(3), male=True, velocity=np.array([-1.0, 1.0, 3.0]))
    np.testing.assert_array_equal(male.velocity, [0.5, 1.0, 2.0])
    # default bounds contain zero
    np.testing.assert_array_equal(_state().spawn(np.zeros(3), male=True).velocity, np.zeros(3))


def test_result_is_read_only() -> None:
    result = base.Result(base.Best(np.zeros(2), 1.0), [3.0, 2.0, 1.0], evaluations=12, iterations=3, seed=4)
    assert result.cost == 1.0
    assert result.pareto_front == []
    with pytest.raises(ValueError):
        result.cost_history[0] = 12
    with pytest.raises(ValueError):
        result.position[0] = 12
