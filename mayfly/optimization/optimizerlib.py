# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import logging
import numpy as np
import mayfly.common.typing as tp
from mayfly.common import errors
from mayfly.common import tools
from mayfly.common.decorators import Registry
from . import base
from . import movement
from . import selection
from . import variants
from .mutations import Mutator
from .variants.base import FEMALE
from .variants.base import MALE


logger = logging.getLogger(__name__)


class ConfMayfly:
    """`Mayfly algorithm <https://doi.org/10.1016/j.cie.2020.106559>`_ configuration.
    Males are attracted by their personal best and the global best, females by the
    male of the same rank, and the best pairs mate at each iteration, with (mu + lambda)
    selection of the offspring.

    Parameters
    ----------
    max_iterations: int
        number of iterations of a run
    popsize: int
        number of males
    popsize_female: int
        number of females
    g: float
        gravity (inertia) coefficient, in [0, 1]
    g_damp: float
        damping ratio of the gravity coefficient at each iteration
    a1: float
        attraction coefficient toward the personal best
    a2: float
        attraction coefficient toward the global best
    a3: float
        attraction coefficient of the females toward the males
    beta: float
        visibility coefficient, the attraction decays as exp(-beta * r^2)
    dance: float
        amplitude of the nuptial dance of the best male
    dance_damp: float
        damping ratio of the nuptial dance
    fl: float
        amplitude of the random flight of the females
    fl_damp: float
        damping ratio of the random flight
    offspring: int
        number of offspring per iteration (pairs of male and female of the same rank)
    mutants: int or None
        number of mutants per iteration, defaults to 5% of the males
    mutation_rate: float
        ratio of the variables perturbed by a mutation, in [0, 1]
    vel_max: float or None
        maximum velocity, defaults to 10% of the range
    vel_min: float or None
        minimum velocity, defaults to -vel_max
    distance: str
        how the distance r of the attraction terms is measured: "componentwise"
        (separately along each variable) or "euclidean"
    variant: VariantConfig, str or None
        the enhancement strategy to use (see :code:`variants.registry`), None for the standard algorithm
    """

    # pylint: disable=unused-argument,too-many-arguments,too-many-locals
    def __init__(
        self,
        max_iterations: int = 2000,
        popsize: int = 20,
        popsize_female: int = 20,
        g: float = 0.8,
        g_damp: float = 1.0,
        a1: float = 1.0,
        a2: float = 1.5,
        a3: float = 1.5,
        beta: float = 2.0,
        dance: float = 5.0,
        dance_damp: float = 0.8,
        fl: float = 1.0,
        fl_damp: float = 0.99,
        offspring: int = 20,
        mutants: tp.Optional[int] = None,
        mutation_rate: float = 0.01,
        vel_max: tp.Optional[float] = None,
        vel_min: tp.Optional[float] = None,
        distance: str = "componentwise",
        variant: tp.Union[None, str, variants.VariantConfig] = None,
    ) -> None:
        if isinstance(variant, str):
            variant = variants.get(variant)
        self._config = dict(locals())
        self._config.pop("self")
        self._config["variant"] = variant
        self.max_iterations = max_iterations
        self.popsize = popsize
        self.popsize_female = popsize_female
        self.g = g
        self.g_damp = g_damp
        self.a1 = a1
        self.a2 = a2
        self.a3 = a3
        self.beta = beta
        self.dance = dance
        self.dance_damp = dance_damp
        self.fl = fl
        self.fl_damp = fl_damp
        self.offspring = offspring
        self.mutants = mutants
        self.mutation_rate = mutation_rate
        self.vel_max = vel_max
        self.vel_min = vel_min
        self.distance = distance
        self.variant: tp.Optional[variants.VariantConfig] = variant
        self._validate()

    def _validate(self) -> None:
        checks = [
            (self.max_iterations >= 1, f"max_iterations must be positive (got {self.max_iterations})"),
            (self.popsize >= 1, f"popsize must be positive (got {self.popsize})"),
            (self.popsize_female >= 1, f"popsize_female must be positive (got {self.popsize_female})"),
            (0 <= self.g <= 1, f"g (inertia weight) should be in [0,1] (got {self.g})"),
            (self.g_damp > 0, f"g_damp must be positive (got {self.g_damp})"),
            (min(self.a1, self.a2, self.a3) >= 0, "learning coefficients (a1, a2, a3) must be non-negative"),
            (self.beta > 0, f"beta must be positive (got {self.beta})"),
            (self.dance >= 0 and self.fl >= 0, "dance and fl must be non-negative"),
            (self.dance_damp > 0 and self.fl_damp > 0, "dance_damp and fl_damp must be positive"),
            (self.offspring >= 0, f"offspring must be non-negative (got {self.offspring})"),
            (
                self.offspring // 2 <= min(self.popsize, self.popsize_female),
                f"offspring // 2 ({self.offspring // 2}) cannot exceed the size of either population",
            ),
            (self.mutants is None or self.mutants >= 0, f"mutants must be non-negative (got {self.mutants})"),
            (0 <= self.mutation_rate <= 1, f"mutation_rate should be in [0,1] (got {self.mutation_rate})"),
            (self.vel_max is None or self.vel_max > 0, f"vel_max must be positive (got {self.vel_max})"),
            (self.distance in movement.DISTANCES, f"distance must be one of {movement.DISTANCES}"),
            (
                self.variant is None or isinstance(self.variant, variants.VariantConfig),
                f"variant must be a VariantConfig, a registered name or None (got {self.variant!r})",
            ),
        ]
        for condition, message in checks:
            if not condition:
                raise errors.InvalidConfigError(message)
        if self.variant is not None:
            self.variant.validate(self)

    @property
    def num_mutants(self) -> int:
        if self.mutants is None:
            # round half up
            return int(math.floor(0.05 * self.popsize + 0.5))
        return self.mutants

    def velocity_bounds(self, problem: base.Problem) -> tp.Tuple[float, float]:
        """Returns (vel_max, vel_min) for a problem, with defaults based on its range"""
        vel_max = 0.1 * problem.span if self.vel_max is None else float(self.vel_max)
        vel_min = -vel_max if self.vel_min is None else float(self.vel_min)
        if vel_min >= vel_max:
            raise errors.InvalidConfigError(f"vel_min ({vel_min}) must be lower than vel_max ({vel_max})")
        return vel_max, vel_min

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def spawn(self, **changes: tp.Any) -> "ConfMayfly":
        """Returns a new configuration with some updated parameters"""
        config = self.config()
        config.update(changes)
        return ConfMayfly(**config)

    @property
    def name(self) -> str:
        return "ma" if self.variant is None else self.variant.name

    def __call__(self, problem: base.Problem, seed: tp.RandomLike = None) -> "Mayfly":
        return Mayfly(problem, self, seed=seed)

    def __eq__(self, other: tp.Any) -> bool:
        return isinstance(other, ConfMayfly) and other.config() == self.config()

    def __repr__(self) -> str:
        diff = tools.different_from_defaults(instance=self, instance_dict=self._config, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        return f"{self.__class__.__name__}({params})"


class Mayfly:
    """Runs the mayfly algorithm on a problem. An instance can only be used for one run.

    Parameters
    ----------
    problem: Problem
        the function to minimize and its bounds
    config: ConfMayfly or None
        the configuration of the algorithm (defaults to the standard algorithm)
    seed: int, RandomState or None
        seed of the run, for reproducibility

    Example
    -------

    .. code-block:: python

        problem = Problem("sphere", dimension=10, lower=-10, upper=10)
        optimizer = Mayfly(problem, ConfMayfly(max_iterations=500, variant="desma"), seed=12)
        optimizer.register_callback("iteration", callbacks.OptimizationLogger(log_interval=50))
        result = optimizer.minimize()
    """

    def __init__(
        self, problem: base.Problem, config: tp.Optional[ConfMayfly] = None, seed: tp.RandomLike = None
    ) -> None:
        self.problem = problem
        self.config = ConfMayfly() if config is None else config
        self.config.velocity_bounds(problem)  # checks the velocity bounds against the range
        self.seed = int(seed) if isinstance(seed, (int, np.integer)) else None
        self.random_state = base.get_random_state(seed)
        self.mutator = Mutator(self.random_state, problem.lower, problem.upper)
        variant = self.config.variant
        self.strategy = variants.Strategy() if variant is None else variant.build(problem, self.config)
        self.state: tp.Optional[base.RunState] = None
        self._callbacks: tp.Dict[str, tp.List[tp.IterationCallback]] = {}

    @property
    def name(self) -> str:
        return self.config.name

    def register_callback(self, name: str, callback: tp.IterationCallback) -> None:
        """Add a callback method called at the end of each iteration, with the optimizer
        and the state of the run as arguments. This can be useful for custom logging.

        Parameters
        ----------
        name: str
            name of the event to register the callback for (only :code:`iteration` is available)
        callback: callable
            a callable taking the optimizer and the run state
        """
        assert name in ["iteration"], f'Only "iteration" event can have callbacks (not {name})'
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def minimize(self) -> base.Result:
        """Runs all the iterations and returns the result"""
        if self.state is not None:
            raise errors.UsedOptimizerError("This optimizer was already used, create a new one for another run")
        state = base.RunState(self.problem, self.config, self.random_state)
        self.state = state
        logger.info(
            "Starting %s on %s for %s iterations (seed=%s)", self.name, self.problem, state.max_iterations, self.seed
        )
        self._initialize(state)
        self.strategy.initialize(state)
        for iteration in range(state.max_iterations):
            state.iteration = iteration
            self._iterate(state)
        result = base.Result(
            global_best=state.global_best,
            cost_history=state.cost_history,
            evaluations=state.evaluations,
            iterations=len(state.cost_history),
            seed=self.seed,
            pareto_front=self.strategy.pareto_front(),
        )
        logger.info(
            "Finished %s: best cost %s after %s evaluations", self.name, result.cost, result.evaluations
        )
        return result

    def _initialize(self, state: base.RunState) -> None:
        state.males = [state.spawn(self.problem.sample(state.random_state), male=True) for _ in range(self.config.popsize)]
        state.females = [
            state.spawn(self.problem.sample(state.random_state), male=False) for _ in range(self.config.popsize_female)
        ]

    def _move(self, state: base.RunState) -> None:
        strategy = self.strategy
        for i, female in enumerate(state.females):
            proposal = strategy.propose(state, female, FEMALE, i)
            if proposal is None:
                male = state.males[min(i, len(state.males) - 1)]
                state.females[i] = movement.step(state, female, movement.female_velocity(state, female, male))
            else:
                state.females[i] = movement.relocate(state, female, proposal.position, proposal.cost)
        inertia = strategy.male_inertia(state)
        for i, male in enumerate(state.males):
            proposal = strategy.propose(state, male, MALE, i)
            if proposal is None:
                velocity = movement.male_velocity(state, male, inertia, strategy.extra_velocity(state, male))
                state.males[i] = movement.step(state, male, velocity)
            else:
                state.males[i] = movement.relocate(state, male, proposal.position, proposal.cost)

    def _evaluate_child(self, state: base.RunState, position: np.ndarray) -> base.Best:
        position = self.problem.clip(self.strategy.perturb_offspring(state, position))
        cost = state.evaluate(position)
        state.consider(position, cost)
        return base.Best(position, cost)

    def _mate(self, state: base.RunState) -> tp.List[base.Best]:
        offspring: tp.List[base.Best] = []
        for k in range(self.config.offspring // 2):
            children = self.mutator.crossover(state.males[k].position, state.females[k].position)
            for child in children:
                offspring.append(self._evaluate_child(state, child))
        for _ in range(self.config.num_mutants):
            if not offspring:
                break
            parent = offspring[state.random_state.randint(len(offspring))].position
            offspring.append(self._evaluate_child(state, self.strategy.mutate(state, self.mutator, parent)))
        return offspring

    def _iterate(self, state: base.RunState) -> None:
        self.strategy.begin_iteration(state)
        self._move(state)
        state.sort()
        self.strategy.after_movement(state)
        selection.merge(state, self._mate(state))
        self.strategy.after_selection(state)
        state.cost_history.append(state.global_best.cost)
        logger.debug("Iteration %s: best cost %s", state.iteration, state.global_best.cost)
        for callback in self._callbacks.get("iteration", []):
            callback(self, state)
        self.strategy.end_iteration(state)
        movement.damp(state)


# presets

presets: Registry[ConfMayfly] = Registry()
presets.register_name("unimodal", ConfMayfly(), info={"description": "Standard MA - For unimodal problems"})
presets.register_name(
    "multimodal",
    ConfMayfly(variant="desma"),
    info={"description": "DESMA - For multimodal problems with several local optima"},
)
presets.register_name(
    "highly_multimodal",
    ConfMayfly(variant="olce"),
    info={"description": "OLCE-MA - For highly multimodal problems with many local optima"},
)
presets.register_name(
    "deceptive",
    ConfMayfly(variant="eobbma"),
    info={"description": "EOBBMA - For deceptive landscapes with misleading gradients"},
)
presets.register_name(
    "narrow_valley",
    ConfMayfly(variant="mpma"),
    info={"description": "MPMA - For ill-conditioned problems with narrow valleys"},
)
presets.register_name(
    "high_dimensional",
    ConfMayfly(variant="olce", popsize=40, popsize_female=40, max_iterations=1000),
    info={"description": "OLCE-MA - For high-dimensional problems (20D+)"},
)
presets.register_name(
    "fast_convergence",
    ConfMayfly(variant="gsasma", max_iterations=300),
    info={"description": "GSASMA - For problems requiring fast convergence"},
)
presets.register_name(
    "stable_convergence",
    ConfMayfly(variant="mpma"),
    info={"description": "MPMA - For problems requiring stable, robust convergence"},
)
presets.register_name(
    "multi_objective",
    ConfMayfly(variant="aoblmoa"),
    info={"description": "AOBLMOA - For multi-objective optimization"},
)


def get_preset(name: str, **changes: tp.Any) -> ConfMayfly:
    """Returns a new configuration from a preset, with optional updated parameters"""
    if name not in presets:
        raise errors.UnknownVariantError(f'Unknown preset "{name}", choose among {sorted(presets)}')
    return presets[name].spawn(**changes)


def list_presets() -> tp.Dict[str, str]:
    return {name: presets.get_info(name)["description"] for name in presets}


def minimize(
    function: tp.Union[str, tp.ObjectiveFunction],
    dimension: int,
    lower: float,
    upper: float,
    variant: tp.Union[None, str, variants.VariantConfig] = "ma",
    seed: tp.RandomLike = None,
    **kwargs: tp.Any,
) -> base.Result:
    """Minimizes a function with the mayfly algorithm

    Parameters
    ----------
    function: callable or str
        function to minimize, or name of a benchmark function
    dimension: int
        number of variables
    lower: float
        lower bound of the variables
    upper: float
        upper bound of the variables
    variant: str, VariantConfig or None
        enhancement strategy
    seed: int, RandomState or None
        seed of the run
    **kwargs:
        other parameters of :code:`ConfMayfly`
    """
    problem = base.Problem(function, dimension, lower, upper)
    return Mayfly(problem, ConfMayfly(variant=variant, **kwargs), seed=seed).minimize()
