# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from mayfly.common import testing
from .mutations import Mutator


def test_crossover_with_given_weights() -> None:
    mutator = Mutator(np.random.RandomState(12), -10, 10)
    off1, off2 = mutator.crossover([1, 2], [3, 4], weights=0.5)
    np.testing.assert_array_equal(off1, [2, 3])
    np.testing.assert_array_equal(off2, [2, 3])


def test_crossover_is_complementary() -> None:
    mutator = Mutator(np.random.RandomState(12), -10, 10)
    parent, donor = np.array([0.1, -3, 7, 2]), np.array([5, 1, -2, 2])
    off1, off2 = mutator.crossover(parent, donor)
    # the weights of both offspring sum to one for each variable
    np.testing.assert_allclose(off1 + off2, parent + donor)
    testing.assert_within_bounds(off1, np.minimum(parent, donor), np.maximum(parent, donor))


def test_crossover_swapping_parents_swaps_offspring() -> None:
    first, second = (Mutator(np.random.RandomState(12), -10, 10) for _ in range(2))
    a, b = np.array([1.0, -2.0, 4.0]), np.array([3.0, 0.5, -6.0])
    off1, off2 = first.crossover(a, b)
    rev1, rev2 = second.crossover(b, a)
    np.testing.assert_array_equal(off1, rev2)
    np.testing.assert_array_equal(off2, rev1)


def test_crossover_seeded() -> None:
    outputs = [Mutator(np.random.RandomState(3), -1, 1).crossover([0.5, 0.2], [-0.5, 0.1])[0] for _ in range(2)]
    np.testing.assert_array_equal(outputs[0], outputs[1])


@testing.parametrized(
    gaussian=("gaussian_mutation",),
    cauchy=("cauchy_mutation",),
)
def test_mutation_rate_zero_is_noop(name: str) -> None:
    parent = np.array([0.1, -0.1, 1.0, -0.2])
    output = getattr(Mutator(np.random.RandomState(12), -2, 2), name)(parent, 0.0)
    np.testing.assert_array_equal(output, parent)
    assert output is not parent


@testing.parametrized(
    small_rate=("gaussian_mutation", 0.1, 1),
    half=("gaussian_mutation", 0.5, 5),
    full=("gaussian_mutation", 1.0, 10),
    cauchy_small_rate=("cauchy_mutation", 0.01, 1),
    cauchy_half=("cauchy_mutation", 0.45, 5),
)
def test_mutation_changes_ceil_of_rate(name: str, rate: float, expected: int) -> None:
    parent = np.zeros(10)
    output = getattr(Mutator(np.random.RandomState(1), -100, 100), name)(parent, rate)
    assert np.sum(output != parent) == expected


def test_mutation_stays_in_bounds() -> None:
    mutator = Mutator(np.random.RandomState(5), -1, 1)
    for _ in range(50):
        testing.assert_within_bounds(mutator.cauchy_mutation(np.full(3, 0.99), 1.0), -1, 1)
        testing.assert_within_bounds(mutator.gaussian_mutation(np.full(3, -0.99), 1.0), -1, 1)


def test_hybrid_mutation_probabilities() -> None:
    parent = np.zeros(4)
    # probability 1: always Cauchy, same draws as a direct Cauchy mutation after the selection draw
    first = Mutator(np.random.RandomState(7), -5, 5)
    second = Mutator(np.random.RandomState(7), -5, 5)
    second.random_state.uniform()
    np.testing.assert_array_equal(first.hybrid_mutation(parent, 0.5, 1.0), second.cauchy_mutation(parent, 0.5))
    first = Mutator(np.random.RandomState(7), -5, 5)
    second = Mutator(np.random.RandomState(7), -5, 5)
    second.random_state.uniform()
    np.testing.assert_array_equal(first.hybrid_mutation(parent, 0.5, 0.0), second.gaussian_mutation(parent, 0.5))
