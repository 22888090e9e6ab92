# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# base classes


class MayflyError(Exception):
    """Base class for error raised by mayfly"""


class MayflyWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class MayflyRuntimeError(RuntimeError, MayflyError):
    """Runtime error raised by mayfly"""


class MayflyTypeError(TypeError, MayflyError):
    """Type error raised by mayfly"""


class MayflyValueError(ValueError, MayflyError):
    """Value error raised by mayfly"""


class InvalidConfigError(MayflyValueError):
    """Raised before a run starts when the problem or the algorithm configuration is inconsistent"""


class UnknownVariantError(InvalidConfigError):
    """Raised when a variant or preset name is not registered"""


class UsedOptimizerError(MayflyRuntimeError):
    """Raised when minimize is called twice on the same optimizer"""


# warnings


class MayflyRuntimeWarning(RuntimeWarning, MayflyWarning):
    """Runtime warning raised by mayfly"""


class BadLossWarning(MayflyRuntimeWarning):
    """Provided loss is unhelpful"""


class LossTooLargeWarning(BadLossWarning):
    """Sent when Loss is clipped because it is too large"""
