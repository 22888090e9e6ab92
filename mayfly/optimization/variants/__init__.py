# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import registry as registry
from .base import get as get
from .base import Proposal as Proposal
from .base import Strategy as Strategy
from .base import VariantConfig as VariantConfig
from .elite import EliteSearch as EliteSearch
from .orthogonal import OrthogonalChaos as OrthogonalChaos
from .barebones import BareBones as BareBones
from .goldensine import GoldenSineAnnealing as GoldenSineAnnealing
from .median import MedianGravity as MedianGravity
from .raptor import RaptorHybrid as RaptorHybrid
