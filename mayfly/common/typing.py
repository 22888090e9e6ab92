# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types used across the package.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Generic as Generic
from typing import Type as Type
from typing import ClassVar as ClassVar
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
FloatLoss = float
Loss = Union[float, ArrayLike]
ObjectiveFunction = Callable[[_np.ndarray], float]
MultiObjectiveFunction = Callable[[_np.ndarray], ArrayLike]
RandomLike = Optional[Union[int, _np.random.RandomState]]


class IterationCallback(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, optimizer: Any, state: Any) -> None:
        ...
