# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Comparison of several configurations on the same problem, over several seeds.

All configurations are run with the same seeds, so that the runs are paired
and can be compared with the Wilcoxon signed-rank and Friedman tests.
"""

import time
import logging
import numpy as np
from scipy import stats
import mayfly.common.typing as tp
from mayfly.common import errors
from . import base
from .optimizerlib import ConfMayfly
from .optimizerlib import Mayfly


logger = logging.getLogger(__name__)
SIGNIFICANCE = 0.05


class RunRecord(tp.NamedTuple):
    cost: float
    evaluations: int
    iterations: int
    convergence_at: tp.Optional[int]  # first iteration (1-based) reaching the target
    duration: float  # seconds


class Statistics(tp.NamedTuple):
    mean: float
    median: float
    std: float
    best: float
    worst: float
    success_rate: tp.Optional[float]  # ratio of runs reaching the target, None without target
    mean_evaluations: float
    mean_duration: float
    average_rank: float  # mean over the seeds of the rank among the configurations (1 is best)


class PairwiseTest(tp.NamedTuple):
    first: str
    second: str
    statistic: float
    pvalue: float
    significant: bool
    winner: tp.Optional[str]  # name with the lower median cost when significant


class FriedmanTest(tp.NamedTuple):
    statistic: float
    pvalue: float
    significant: bool
    degrees_of_freedom: int


def compute_statistics(
    records: tp.Sequence[RunRecord], target: tp.Optional[float] = None, average_rank: float = float("nan")
) -> Statistics:
    costs = np.array([r.cost for r in records], dtype=float)
    success = None if target is None else float(np.mean(costs <= target))
    return Statistics(
        mean=float(np.mean(costs)),
        median=float(np.median(costs)),
        std=float(np.std(costs)),
        best=float(np.min(costs)),
        worst=float(np.max(costs)),
        success_rate=success,
        mean_evaluations=float(np.mean([r.evaluations for r in records])),
        mean_duration=float(np.mean([r.duration for r in records])),
        average_rank=average_rank,
    )


def wilcoxon(first: str, second: str, costs1: np.ndarray, costs2: np.ndarray) -> PairwiseTest:
    """Wilcoxon signed-rank test on paired costs"""
    if np.all(costs1 == costs2):
        return PairwiseTest(first, second, 0.0, 1.0, False, None)
    statistic, pvalue = stats.wilcoxon(costs1, costs2)
    significant = bool(pvalue < SIGNIFICANCE)
    winner = None
    if significant:
        winner = first if np.median(costs1) <= np.median(costs2) else second
    return PairwiseTest(first, second, float(statistic), float(pvalue), significant, winner)


def friedman(costs: np.ndarray) -> tp.Optional[FriedmanTest]:
    """Friedman test on a (num_configurations, num_runs) array of costs,
    None with fewer than 3 configurations.
    """
    num = costs.shape[0]
    if num < 3:
        return None
    if np.all(costs == costs[:1, :]):  # all ties
        return FriedmanTest(0.0, 1.0, False, num - 1)
    statistic, pvalue = stats.friedmanchisquare(*costs)
    return FriedmanTest(float(statistic), float(pvalue), bool(pvalue < SIGNIFICANCE), num - 1)


class Comparison:
    """Results of a comparison

    Attributes
    ----------
    names: list of str
        names of the compared configurations
    records: dict
        run records of each configuration, in the order of the seeds
    statistics: dict
        descriptive statistics of each configuration
    rankings: dict
        rank of each configuration by mean cost (1 is best)
    pairwise: dict
        Wilcoxon tests for each pair of configurations
    friedman: FriedmanTest or None
        Friedman test over all configurations (requires at least 3 of them)
    """

    def __init__(self, records: tp.Dict[str, tp.List[RunRecord]], target: tp.Optional[float] = None) -> None:
        self.names = list(records)
        self.records = records
        costs = np.array([[r.cost for r in records[name]] for name in self.names], dtype=float)
        # rank of each configuration for each seed (ties get the average rank)
        average_ranks = np.mean(stats.rankdata(costs, axis=0), axis=1)
        self.statistics = {
            name: compute_statistics(records[name], target, float(rank))
            for name, rank in zip(self.names, average_ranks)
        }
        order = sorted(self.names, key=lambda n: self.statistics[n].mean)
        self.rankings = {name: order.index(name) + 1 for name in self.names}
        self.pairwise = {
            (n1, n2): wilcoxon(n1, n2, costs[i], costs[j])
            for i, n1 in enumerate(self.names)
            for j, n2 in enumerate(self.names)
            if i < j
        }
        self.friedman = friedman(costs)

    @property
    def best(self) -> str:
        """Name of the configuration with the lowest mean cost"""
        return min(self.names, key=lambda n: self.rankings[n])

    def summary(self) -> str:
        lines = [f"{'name':<20} {'mean':>12} {'std':>12} {'best':>12} {'median':>12} {'rank':>6}"]
        for name in sorted(self.names, key=lambda n: self.rankings[n]):
            s = self.statistics[name]
            lines.append(
                f"{name:<20} {s.mean:>12.4e} {s.std:>12.4e} {s.best:>12.4e} {s.median:>12.4e} {s.average_rank:>6.2f}"
            )
        if self.friedman is not None:
            lines.append(
                f"Friedman: chi2={self.friedman.statistic:.4f}, p={self.friedman.pvalue:.4g}"
                + (" (significant)" if self.friedman.significant else "")
            )
        return "\n".join(lines)

    def to_dataframe(self) -> tp.Any:  # no typing here since pandas is not a hard requirement
        """Returns one row per run, with the name of the configuration and the seed index"""
        # pylint: disable=import-outside-toplevel
        try:
            import pandas as pd
        except ImportError as e:
            raise ImportError(
                f"{self.__class__.__name__}.to_dataframe requires pandas which is not installed by default "
                "(pip install mayfly[benchmark])"
            ) from e
        rows = [
            dict(name=name, run=k, **record._asdict())
            for name in self.names
            for k, record in enumerate(self.records[name])
        ]
        return pd.DataFrame(rows)

    def __repr__(self) -> str:
        return f"Comparison({self.names}, best={self.best!r})"


def run(
    problem: base.Problem, config: ConfMayfly, seed: int, target: tp.Optional[float] = None
) -> RunRecord:
    start = time.perf_counter()
    result = Mayfly(problem, config, seed=seed).minimize()
    duration = time.perf_counter() - start
    convergence_at = None
    if target is not None:
        reached = np.flatnonzero(result.cost_history <= target)
        convergence_at = int(reached[0]) + 1 if reached.size else None
    return RunRecord(result.cost, result.evaluations, result.iterations, convergence_at, duration)


def compare(
    problem: base.Problem,
    configs: tp.Union[tp.Sequence[str], tp.Dict[str, ConfMayfly]] = ("ma", "desma", "olce", "eobbma", "gsasma", "mpma"),
    num_runs: int = 10,
    seed: int = 0,
    target: tp.Optional[float] = None,
    **kwargs: tp.Any,
) -> Comparison:
    """Runs several configurations on a problem with the seeds :code:`seed, seed + 1, ...`
    and compares their final costs.

    Parameters
    ----------
    problem: Problem
        the problem to minimize
    configs: sequence of variant names, or dict of named configurations
        the configurations to compare
    num_runs: int
        number of runs (seeds) per configuration
    seed: int
        first seed
    target: float or None
        cost below which a run counts as a success
    **kwargs:
        parameters of :code:`ConfMayfly` applied to the configurations built from variant names
        (eg: :code:`max_iterations`)
    """
    if num_runs < 1:
        raise errors.InvalidConfigError(f"num_runs must be positive (got {num_runs})")
    if isinstance(configs, dict):
        named = dict(configs)
    else:
        named = {name: ConfMayfly(variant=name, **kwargs) for name in configs}
    if len(named) < 2:
        raise errors.InvalidConfigError("At least 2 configurations are needed for a comparison")
    records: tp.Dict[str, tp.List[RunRecord]] = {}
    for name, config in named.items():
        logger.info("Running %s (%s runs) on %s", name, num_runs, problem)
        records[name] = [run(problem, config, seed + k, target) for k in range(num_runs)]
    return Comparison(records, target=target)
