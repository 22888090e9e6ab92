# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Problem  # definition of the function to minimize
from .base import Result
from . import optimizerlib
from .optimizerlib import ConfMayfly
from .optimizerlib import Mayfly
from .optimizerlib import presets
