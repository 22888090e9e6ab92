# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
from pathlib import Path
import numpy as np
import mayfly.common.typing as tp
from . import base
from . import callbacks
from .optimizerlib import ConfMayfly
from .optimizerlib import Mayfly


def _optimizer(max_iterations: int = 10, variant: str = "ma") -> Mayfly:
    problem = base.Problem("sphere", 3, -5, 5)
    config = ConfMayfly(max_iterations=max_iterations, popsize=6, popsize_female=6, offspring=6, variant=variant)
    return Mayfly(problem, config, seed=12)


def test_history_recorder(tmp_path: Path) -> None:
    filepath = tmp_path / "logs" / "history.txt"
    optimizer = _optimizer(variant="mpma")
    recorder = callbacks.HistoryRecorder(filepath, append=False, positions=True)
    optimizer.register_callback("iteration", recorder)
    result = optimizer.minimize()
    np.testing.assert_array_equal(recorder.costs(), result.cost_history)
    logs = callbacks.HistoryRecorder(filepath).load()
    assert len(logs) == 10
    assert logs[0]["#optimizer"] == "mpma"
    assert [x["#iteration"] for x in logs] == list(range(10))
    assert logs[-1]["#evaluations"] == result.evaluations
    np.testing.assert_array_equal(logs[-1]["position"], result.position)
    # appending
    optimizer = _optimizer(max_iterations=3)
    optimizer.register_callback("iteration", callbacks.HistoryRecorder(filepath))
    optimizer.minimize()
    assert len(callbacks.HistoryRecorder(filepath).load()) == 13
    # deletion
    assert not callbacks.HistoryRecorder(filepath, append=False).load()


def test_history_recorder_in_memory() -> None:
    optimizer = _optimizer(max_iterations=4)
    recorder = callbacks.HistoryRecorder()
    optimizer.register_callback("iteration", recorder)
    optimizer.minimize()
    records = recorder.load()
    assert len(records) == 4
    assert "position" not in records[0]
    assert records[0]["#best-male-cost"] >= records[0]["#best-cost"]


def test_optimization_logger(caplog: tp.Any) -> None:
    logger = logging.getLogger("mayfly.test")
    optimizer = _optimizer(max_iterations=10)
    optimizer.register_callback("iteration", callbacks.OptimizationLogger(logger=logger, log_interval_iterations=4))
    with caplog.at_level(logging.INFO, logger="mayfly.test"):
        optimizer.minimize()
    messages = [r.getMessage() for r in caplog.records if r.name == "mayfly.test"]
    # iterations 4, 8 and the last one
    assert len(messages) == 3
    assert messages[0].startswith("After 4 iterations")
    assert messages[-1].startswith("After 10 iterations")


def test_optimization_printer(capsys: tp.Any) -> None:
    optimizer = _optimizer(max_iterations=6)
    optimizer.register_callback("iteration", callbacks.OptimizationPrinter(print_interval_iterations=3))
    optimizer.minimize()
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Iteration 1/6: best cost")
    assert lines[1].startswith("Iteration 4/6: best cost")
