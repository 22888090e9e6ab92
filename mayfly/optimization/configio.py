# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""JSON persistence of the configurations.

The objective function and the random state cannot be serialized: they are
provided again by the caller when building a :code:`Problem` and a :code:`Mayfly`.

Two formats are read:

- the native one, written by :code:`dump`, with a nested :code:`variant` entry
  (:code:`{"name": ..., "params": {...}}`) and an optional :code:`problem` entry;
- a legacy flat one, where the variant is enabled with a :code:`use_<name>` flag and
  the coefficients use short names (:code:`npop`, :code:`npopf`, :code:`nc`, :code:`nm`, :code:`mu`).
  Zero values stand for the default of :code:`vel_max`, :code:`vel_min`, :code:`nm`,
  :code:`search_range` and :code:`strategy_switch`.
"""

import json
import inspect
import logging
from pathlib import Path
import mayfly.common.typing as tp
from mayfly.common import errors
from . import base
from . import variants
from .optimizerlib import ConfMayfly


logger = logging.getLogger(__name__)

# legacy name -> ConfMayfly argument
LEGACY_NAMES = {
    "npop": "popsize",
    "npopf": "popsize_female",
    "nc": "offspring",
    "nm": "mutants",
    "mu": "mutation_rate",
}
# legacy name -> variant argument
LEGACY_VARIANT_NAMES = {"use_weighted_median": "weighted_median"}
# zero means "use the default"
LEGACY_ZERO_IS_DEFAULT = ("vel_max", "vel_min", "mutants", "search_range", "strategy_switch")
PROBLEM_KEYS = ("problem_size", "lower_bound", "upper_bound")


def _arguments(cls: tp.Type[tp.Any]) -> tp.List[str]:
    return [x for x in inspect.signature(cls.__init__).parameters if x != "self"]


def to_dict(config: ConfMayfly, problem: tp.Optional[base.Problem] = None) -> tp.Dict[str, tp.Any]:
    """Converts a configuration (and optionally the dimension and bounds of a problem) to a json-compatible dict"""
    data = config.config()
    variant = data.pop("variant")
    data["variant"] = None if variant is None else {"name": variant.name, "params": variant.params()}
    if problem is not None:
        data["problem"] = {"dimension": problem.dimension, "lower": problem.lower, "upper": problem.upper}
    return data


def from_dict(data: tp.Dict[str, tp.Any]) -> ConfMayfly:
    """Builds a configuration from a dict in the native or the legacy format"""
    if is_legacy(data):
        return _from_legacy(data)
    data = dict(data)
    data.pop("problem", None)
    variant = data.pop("variant", None)
    if isinstance(variant, dict):
        if "name" not in variant:
            raise errors.InvalidConfigError(f"Variant entry needs a name (got {variant})")
        variant = variants.get(variant["name"], **variant.get("params", {}))
    unknown = set(data) - set(_arguments(ConfMayfly))
    if unknown:
        raise errors.InvalidConfigError(f"Unknown configuration parameters: {sorted(unknown)}")
    return ConfMayfly(variant=variant, **data)


def is_legacy(data: tp.Dict[str, tp.Any]) -> bool:
    return any(key.startswith("use_") or key in LEGACY_NAMES or key in PROBLEM_KEYS for key in data)


def _from_legacy(data: tp.Dict[str, tp.Any]) -> ConfMayfly:
    flags = [name for name in variants.registry if data.get(variants.registry[name].legacy_flag, False)]
    if len(flags) > 1:
        raise errors.InvalidConfigError(
            f"Multiple algorithm variants enabled (only one can be active at a time): {flags}"
        )
    renamed = {LEGACY_NAMES.get(key, LEGACY_VARIANT_NAMES.get(key, key)): value for key, value in data.items()}
    for key in LEGACY_ZERO_IS_DEFAULT:
        if renamed.get(key) == 0:
            renamed[key] = None
    if renamed.get("vel_max") is None:
        renamed["vel_min"] = None
    main = {key: renamed[key] for key in _arguments(ConfMayfly) if key in renamed and key != "variant"}
    variant: tp.Optional[variants.VariantConfig] = None
    if flags:
        cls = variants.registry[flags[0]]
        variant = cls(**{key: renamed[key] for key in _arguments(cls) if key in renamed})
    variant_arguments = [] if variant is None else _arguments(type(variant))
    ignored = sorted(set(renamed) - set(main) - set(variant_arguments) - set(PROBLEM_KEYS))
    ignored = [key for key in ignored if not key.startswith("use_")]
    if ignored:
        logger.debug("Ignoring legacy parameters %s", ignored)
    return ConfMayfly(variant=variant, **main)


def dump(config: ConfMayfly, filepath: tp.PathLike, problem: tp.Optional[base.Problem] = None) -> None:
    """Saves a configuration to a json file

    Parameters
    ----------
    config: ConfMayfly
        the configuration to save
    filepath: str or Path
        path of the json file
    problem: Problem or None
        if provided, its dimension and bounds are saved as well (not its objective function)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(exist_ok=True, parents=True)
    with filepath.open("w") as f:
        json.dump(to_dict(config, problem), f, indent=2)


def _read(filepath: tp.PathLike) -> tp.Dict[str, tp.Any]:
    filepath = Path(filepath)
    try:
        with filepath.open("r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise errors.InvalidConfigError(f"Failed to parse config file {filepath}: {e}") from e
    if not isinstance(data, dict):
        raise errors.InvalidConfigError(f"Config file {filepath} must contain a json object")
    return data


def load(filepath: tp.PathLike) -> ConfMayfly:
    """Loads a configuration from a json file (native or legacy format), and validates it"""
    return from_dict(_read(filepath))


def load_problem(
    filepath: tp.PathLike,
    function: tp.Union[str, tp.ObjectiveFunction],
    objectives: tp.Optional[tp.MultiObjectiveFunction] = None,
) -> base.Problem:
    """Builds the problem saved in a json file, with the provided objective function"""
    data = _read(filepath)
    if "problem" in data:
        info = data["problem"]
        return base.Problem(function, info["dimension"], info["lower"], info["upper"], objectives=objectives)
    missing = [key for key in PROBLEM_KEYS if key not in data]
    if missing:
        raise errors.InvalidConfigError(f"Config file {filepath} does not define a problem (missing {missing})")
    return base.Problem(
        function, data["problem_size"], data["lower_bound"], data["upper_bound"], objectives=objectives
    )


def export_template(filepath: tp.PathLike, variant: str = "ma") -> None:
    """Writes a configuration file with all the default parameters of a variant, as a starting point"""
    config = ConfMayfly(variant=variant)
    dump(config, filepath)
    logger.info("Exported %s configuration template to %s", config.name, filepath)
