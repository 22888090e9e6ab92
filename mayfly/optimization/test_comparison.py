# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest
from mayfly.common import errors
from . import base
from . import comparison
from .optimizerlib import ConfMayfly


def _record(cost: float) -> comparison.RunRecord:
    return comparison.RunRecord(cost, 100, 10, None, 0.1)


def test_compute_statistics() -> None:
    records = [_record(c) for c in [1.0, 3.0, 2.0, 10.0]]
    stats = comparison.compute_statistics(records, target=2.0)
    assert stats.mean == 4.0
    assert stats.median == 2.5
    assert stats.best == 1.0
    assert stats.worst == 10.0
    assert stats.success_rate == 0.5
    assert stats.mean_evaluations == 100
    assert stats.std == pytest.approx(np.std([1.0, 3.0, 2.0, 10.0]))
    assert comparison.compute_statistics(records).success_rate is None


def test_comparison_of_records() -> None:
    records = {
        "first": [_record(c) for c in [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]],
        "second": [_record(c) for c in [2.0, 3.0, 4.0, 5.0, 6.0, 7.0]],
        "third": [_record(c) for c in [1.5, 2.5, 3.5, 4.5, 5.5, 6.5]],
    }
    comp = comparison.Comparison(records)
    assert comp.best == "first"
    assert comp.rankings == {"first": 1, "second": 3, "third": 2}
    assert comp.statistics["first"].average_rank == 1.0
    assert comp.statistics["second"].average_rank == 3.0
    test = comp.pairwise[("first", "second")]
    assert test.statistic == 0.0
    assert test.pvalue < 0.05
    assert test.winner == "first"
    assert comp.friedman is not None
    assert comp.friedman.statistic == pytest.approx(12.0)
    assert comp.friedman.significant
    assert comp.friedman.degrees_of_freedom == 2
    summary = comp.summary()
    assert summary.splitlines()[1].startswith("first")
    assert "Friedman" in summary


def test_comparison_of_identical_records() -> None:
    records = {name: [_record(c) for c in [1.0, 2.0, 3.0]] for name in ["first", "second", "third"]}
    comp = comparison.Comparison(records)
    assert not comp.pairwise[("first", "third")].significant
    assert comp.pairwise[("first", "third")].pvalue == 1.0
    assert comp.friedman is not None
    assert not comp.friedman.significant
    assert comparison.Comparison({k: records[k] for k in ["first", "second"]}).friedman is None


def test_compare() -> None:
    problem = base.Problem("sphere", 3, -5, 5)
    sizes = dict(popsize=6, popsize_female=6, offspring=6)
    comp = comparison.compare(problem, ["ma", "mpma", "desma"], num_runs=4, target=1.0, max_iterations=20, **sizes)
    assert comp.names == ["ma", "mpma", "desma"]
    assert all(len(records) == 4 for records in comp.records.values())
    for stats in comp.statistics.values():
        assert stats.success_rate is not None
        assert 0 <= stats.success_rate <= 1
        assert stats.best <= stats.median <= stats.worst
    assert sorted(comp.rankings.values()) == [1, 2, 3]
    assert len(comp.pairwise) == 3
    # the runs are seeded with 0, 1, 2...
    config = ConfMayfly(max_iterations=20, popsize=6, popsize_female=6, offspring=6, variant="mpma")
    assert comp.records["mpma"][2].cost == comparison.run(problem, config, seed=2).cost


def test_compare_configurations() -> None:
    problem = base.Problem("sphere", 2, -5, 5)
    configs = {
        "small": ConfMayfly(max_iterations=5, popsize=4, popsize_female=4, offspring=4),
        "large": ConfMayfly(max_iterations=5, popsize=8, popsize_female=8, offspring=8),
    }
    comp = comparison.compare(problem, configs, num_runs=2, seed=12)
    assert comp.names == ["small", "large"]
    assert comp.friedman is None
    assert comp.statistics["large"].mean_evaluations > comp.statistics["small"].mean_evaluations
    with pytest.raises(errors.InvalidConfigError):
        comparison.compare(problem, ["ma"], num_runs=2)
    with pytest.raises(errors.InvalidConfigError):
        comparison.compare(problem, configs, num_runs=0)
