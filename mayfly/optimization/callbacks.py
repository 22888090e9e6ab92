# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import logging
from pathlib import Path
import numpy as np
import mayfly.common.typing as tp
from . import base

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class OptimizationPrinter:
    """Printer to register as callback in an optimizer, for printing
    best cost regularly.

    Parameters
    ----------
    print_interval_iterations: int
        max number of iterations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_iterations: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_iterations > 0
        assert print_interval_seconds > 0
        self._print_interval_iterations = int(print_interval_iterations)
        self._print_interval_seconds = print_interval_seconds
        self._next_iteration = 0
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, optimizer: tp.Any, state: base.RunState) -> None:
        if time.time() >= self._next_time or state.iteration >= self._next_iteration:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_iteration = state.iteration + self._print_interval_iterations
            print(
                f"Iteration {state.iteration + 1}/{state.max_iterations}: best cost {state.global_best.cost:.6e} "
                f"({state.evaluations} evaluations)"
            )


# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to register as callback in an optimizer, for logging
    best cost regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        number of iterations between two logs
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
    ) -> None:
        assert log_interval_iterations > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_iterations = int(log_interval_iterations)

    def __call__(self, optimizer: tp.Any, state: base.RunState) -> None:
        last = state.iteration == state.max_iterations - 1
        if (state.iteration + 1) % self._log_interval_iterations and not last:
            return
        self._logger.log(
            self._log_level,
            "After %s iterations (%s evaluations), best cost is %s",
            state.iteration + 1,
            state.evaluations,
            state.global_best.cost,
        )


# -------------------------------------------------------------------------------------


class HistoryRecorder:
    """Records the state of the population at each iteration, in memory
    and optionally as json lines into a file.

    Parameters
    ----------
    filepath: str, Path or None
        the path to dump data to (nothing is written if None)
    append: bool
        whether to append the file (otherwise it replaces it)
    positions: bool
        whether to also record the global best position

    Example
    -------

    .. code-block:: python

        recorder = HistoryRecorder(filepath)
        optimizer.register_callback("iteration", recorder)
        optimizer.minimize()
        list_of_dict_of_data = recorder.load()
    """

    def __init__(
        self, filepath: tp.Optional[tp.PathLike] = None, append: bool = True, positions: bool = False
    ) -> None:
        self._filepath = None if filepath is None else Path(filepath)
        self._positions = positions
        self.records: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath is not None:
            if self._filepath.exists() and not append:
                self._filepath.unlink()
            self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: tp.Any, state: base.RunState) -> None:
        data: tp.Dict[str, tp.Any] = {
            "#optimizer": optimizer.name,
            "#iteration": state.iteration,
            "#evaluations": state.evaluations,
            "#best-cost": state.global_best.cost,
            "#best-male-cost": state.males[0].cost if state.males else None,
            "#best-female-cost": state.females[0].cost if state.females else None,
            "#mean-male-cost": float(np.mean([m.cost for m in state.males])) if state.males else None,
            "#g": state.g,
            "#dance": state.dance,
            "#fl": state.fl,
        }
        if self._positions:
            data["position"] = state.global_best.position.tolist()
        self.records.append(data)
        if self._filepath is not None:
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file (or the in-memory records if no file is used)"""
        if self._filepath is None:
            return list(self.records)
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data

    def costs(self) -> np.ndarray:
        return np.array([r["#best-cost"] for r in self.records], dtype=float)
