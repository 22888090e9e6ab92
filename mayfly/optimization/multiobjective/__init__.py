# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .core import Solution as Solution
from .core import ParetoArchive as ParetoArchive
from .core import dominates as dominates
from .nsga2 import FastNonDominatedRanking as FastNonDominatedRanking
from .nsga2 import CrowdingDistance as CrowdingDistance
from .metrics import hypervolume_2d as hypervolume_2d
from .metrics import igd as igd
