# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from mayfly.common import testing
from . import samplers
from . import chaos
from . import annealing


def test_cauchy_is_centered_and_finite() -> None:
    rng = np.random.RandomState(12)
    draws = samplers.cauchy_vector(rng, 2001, x0=3.0, scale=0.5)
    assert np.all(np.isfinite(draws))
    np.testing.assert_allclose(np.median(draws), 3.0, atol=0.1)
    # heavy tails: far more outliers than a normal distribution with the same scale
    assert np.sum(np.abs(draws - 3.0) > 5.0) > 10


def test_cauchy_seeded() -> None:
    first = samplers.cauchy_vector(np.random.RandomState(3), 5)
    second = samplers.cauchy_vector(np.random.RandomState(3), 5)
    np.testing.assert_array_equal(first, second)


def test_cauchy_uses_standard_cauchy_draws() -> None:
    expected = 1.0 + 2.0 * np.random.RandomState(5).standard_cauchy(4)
    np.testing.assert_array_equal(samplers.cauchy_vector(np.random.RandomState(5), 4, x0=1.0, scale=2.0), expected)
    rng = np.random.RandomState(5)
    scalars = [samplers.cauchy(rng, 1.0, 2.0) for _ in range(4)]
    np.testing.assert_allclose(scalars, expected)


@testing.parametrized(
    alpha_1_5=(1.5, 0.6966),
    alpha_1=(1.0, 1.0),
)
def test_mantegna_sigma(alpha: float, expected: float) -> None:
    np.testing.assert_allclose(samplers.mantegna_sigma(alpha), expected, rtol=1e-3)


@testing.parametrized(
    standard=(1.5, None),
    heavy=(0.3, 50),
    vector=(1.5, 1000),
    gaussian_like=(2.0, 10),
)
def test_levy_is_finite(alpha: float, size: int) -> None:
    steps = samplers.levy(np.random.RandomState(1), alpha=alpha, scale=0.01, size=size)
    if size is None:
        assert isinstance(steps, float)
    else:
        assert steps.shape == (size,)  # type: ignore
    assert np.all(np.isfinite(steps))


def test_levy_scale() -> None:
    small = samplers.levy(np.random.RandomState(4), scale=1.0, size=20)
    large = samplers.levy(np.random.RandomState(4), scale=10.0, size=20)
    np.testing.assert_allclose(large, 10 * small)  # type: ignore


def test_opposition_point() -> None:
    np.testing.assert_array_equal(samplers.opposition_point([-10, 0, 2.5], -10, 10), [10, 0, -2.5])
    np.testing.assert_array_equal(samplers.opposition_point([1, 4], 0, 5), [4, 1])


def test_bare_bones() -> None:
    rng = np.random.RandomState(0)
    current = np.array([0.0, 2.0, 1.0])
    best = np.array([4.0, 2.0, 1.0])
    draws = np.array([samplers.bare_bones(rng, current, best, -20.0, 20.0) for _ in range(2000)])
    testing.assert_within_bounds(draws, -20.0, 20.0)
    np.testing.assert_allclose(draws.mean(axis=0), [2.0, 2.0, 1.0], atol=0.15)
    np.testing.assert_allclose(draws.std(axis=0), [2.0, 0.4, 0.4], rtol=0.1)


def test_logistic_map_stays_in_unit_interval() -> None:
    lmap = chaos.LogisticMap(0.7)
    values = lmap.sequence(500)
    assert np.all(values > 0) and np.all(values < 1)
    assert len(set(np.round(values, 6))) > 100  # not stuck


@testing.parametrized(
    zero=(0.0,),
    one=(1.0,),
    large=(3.4,),
    negative=(-1.0,),
)
def test_logistic_map_seed_sanitized(seed: float) -> None:
    lmap = chaos.LogisticMap(seed)
    assert 0 < lmap.x < 1


def test_logistic_map_fixed_point_is_reseeded() -> None:
    lmap = chaos.LogisticMap(0.75, random_state=np.random.RandomState(0))
    value = lmap.next()
    assert 0.1 <= value <= 0.9
    assert value != 0.75


def test_logistic_map_reset() -> None:
    lmap = chaos.LogisticMap(0.2)
    first = lmap.sequence(5)
    lmap.reset(0.2)
    np.testing.assert_array_equal(lmap.sequence(5), first)
    np.testing.assert_almost_equal(first[0], 4 * 0.2 * 0.8)


def test_acceptance_probability() -> None:
    assert annealing.acceptance_probability(1.0, 0.5, 10.0) == 1.0
    assert annealing.acceptance_probability(1.0, 0.5, 1e-12) == 1.0
    worse = [annealing.acceptance_probability(1.0, 2.0, t) for t in [100.0, 10.0, 1.0, 0.5]]
    assert all(0 < p < 1 for p in worse)
    assert worse == sorted(worse, reverse=True)
    np.testing.assert_almost_equal(annealing.acceptance_probability(1.0, 2.0, 1.0), np.exp(-1.0))
    assert 0 < annealing.acceptance_probability(1.0, 2.0, 1 / 700) < 1e-300
    # exp underflows to zero for very cold temperatures
    assert annealing.acceptance_probability(1.0, 2.0, 1e-6) == 0.0


def test_metropolis_always_accepts_improvements() -> None:
    rng = np.random.RandomState(0)
    assert all(annealing.metropolis(rng, 1.0, 0.0, 1e-9) for _ in range(100))
    assert not any(annealing.metropolis(rng, 0.0, 1.0, 1e-3) for _ in range(100))


@testing.parametrized(
    exponential=("exponential", 0.5, [50.0, 25.0, 12.5]),
    linear=("linear", 40.0, [60.0, 20.0, 0.01]),
    logarithmic=("logarithmic", 1.0, [100 / (1 + np.log(2)), 100 / (1 + np.log(3)), 100 / (1 + np.log(4))]),
)
def test_schedules(schedule: str, rate: float, expected: list) -> None:
    scheduler = annealing.AnnealingScheduler(100.0, rate, schedule)
    np.testing.assert_allclose([scheduler.update() for _ in range(3)], expected)
    scheduler.reset()
    assert scheduler.temperature == 100.0
    assert scheduler.step == 0


def test_temperature_floor() -> None:
    scheduler = annealing.AnnealingScheduler(1.0, 1e-3)
    for _ in range(10):
        scheduler.update()
    assert scheduler.temperature == annealing.MIN_TEMPERATURE


def test_adapt() -> None:
    scheduler = annealing.AnnealingScheduler(10.0, 0.5)
    scheduler.update()
    scheduler.adapt(0.05)
    np.testing.assert_almost_equal(scheduler.temperature, 5.5)
    scheduler.adapt(0.3)
    np.testing.assert_almost_equal(scheduler.temperature, 5.5)
    scheduler.adapt(0.9)
    np.testing.assert_almost_equal(scheduler.temperature, 4.95)
    for _ in range(20):
        scheduler.adapt(0.0)
    assert scheduler.temperature == 10.0
