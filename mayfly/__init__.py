# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from . import functions as functions
from .optimization import optimizerlib as optimizers
from .optimization import variants as variants
from .optimization import callbacks as callbacks
from .optimization import configio as configio
from .optimization.base import Problem as Problem
from .optimization.base import Result as Result
from .optimization.optimizerlib import ConfMayfly as ConfMayfly
from .optimization.optimizerlib import Mayfly as Mayfly
from .optimization.optimizerlib import minimize as minimize


__all__ = [
    "optimizers",
    "variants",
    "callbacks",
    "configio",
    "functions",
    "errors",
    "typing",
    "Problem",
    "Result",
    "ConfMayfly",
    "Mayfly",
    "minimize",
]


__version__ = "0.1.0"
