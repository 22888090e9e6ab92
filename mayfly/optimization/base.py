# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import warnings
import numpy as np
import mayfly.common.typing as tp
from mayfly.common import errors
from mayfly.functions import corefuncs


# sys.float_info.max leads to numerical problems when sorting and subtracting costs
MAX_LOSS = 5.0e20


def get_random_state(seed: tp.RandomLike = None) -> np.random.RandomState:
    """Returns the random state to use for a run: a new one seeded by the provided integer,
    the provided random state itself, or an unseeded one if nothing is provided.
    """
    if isinstance(seed, np.random.RandomState):
        return seed
    if seed is not None and not isinstance(seed, (int, np.integer)):
        raise errors.MayflyTypeError(f"Seed must be an int or a RandomState, got {seed!r} (type: {type(seed)})")
    return np.random.RandomState(seed)


class Best(tp.NamedTuple):
    """A position and the cost it was evaluated at"""

    position: np.ndarray
    cost: float


class Agent:
    """One candidate solution of the population.

    Parameters
    ----------
    position: np.ndarray
        the current position, always within the problem bounds
    cost: float
        the objective value at :code:`position`
    velocity: np.ndarray
        the current velocity (zeros if not provided)
    best: Best or None
        the personal best record. Only males keep one, it is :code:`None` for females.

    Note
    ----
    Agents are treated as values: operators build a new agent (see :code:`replace`)
    and put it in place of the old one instead of updating it in place.
    """

    __slots__ = ("position", "cost", "velocity", "best")

    def __init__(
        self,
        position: np.ndarray,
        cost: float,
        velocity: tp.Optional[np.ndarray] = None,
        best: tp.Optional[Best] = None,
    ) -> None:
        self.position = np.array(position, dtype=float, copy=True)
        self.cost = float(cost)
        self.velocity = (
            np.zeros_like(self.position) if velocity is None else np.array(velocity, dtype=float, copy=True)
        )
        self.best = best

    @classmethod
    def male(cls, position: np.ndarray, cost: float, velocity: tp.Optional[np.ndarray] = None) -> "Agent":
        """Creates an agent whose personal best is its starting point"""
        position = np.array(position, dtype=float, copy=True)
        return cls(position, cost, velocity=velocity, best=Best(position.copy(), float(cost)))

    @property
    def tracks_best(self) -> bool:
        return self.best is not None

    def replace(
        self,
        position: tp.Optional[np.ndarray] = None,
        cost: tp.Optional[float] = None,
        velocity: tp.Optional[np.ndarray] = None,
    ) -> "Agent":
        """Returns a new agent with updated position/cost/velocity. If the agent keeps
        a personal best, it is updated when the new cost is strictly lower.
        """
        if (position is None) != (cost is None):
            raise errors.MayflyValueError("Position and cost must be updated together")
        new = Agent(
            self.position if position is None else position,
            self.cost if cost is None else cost,
            velocity=self.velocity if velocity is None else velocity,
            best=self.best,
        )
        if new.best is not None and new.cost < new.best.cost:
            new.best = Best(new.position.copy(), new.cost)
        return new

    def __repr__(self) -> str:
        return f"Agent(cost={self.cost}, position={self.position.tolist()})"


class Problem:
    """Definition of the problem to minimize.

    Parameters
    ----------
    function: callable or str
        objective function taking a 1-D array and returning a float,
        or the name of a function registered in :code:`mayfly.functions.corefuncs`
    dimension: int
        number of variables
    lower: float
        lower bound, applied to every variable
    upper: float
        upper bound, applied to every variable
    objectives: callable or None
        optional function returning the vector of objectives of a position,
        only used to fill the Pareto archive (defaults to the cost alone)
    """

    def __init__(
        self,
        function: tp.Union[str, tp.ObjectiveFunction],
        dimension: int,
        lower: float,
        upper: float,
        objectives: tp.Optional[tp.MultiObjectiveFunction] = None,
    ) -> None:
        if isinstance(function, str):
            if function not in corefuncs.registry:
                raise errors.InvalidConfigError(
                    f'Unknown function "{function}", available: {sorted(corefuncs.registry)}'
                )
            function = corefuncs.registry[function]
        if not callable(function):
            raise errors.InvalidConfigError(f"Objective function must be callable, got {function!r}")
        if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)) or dimension <= 0:
            raise errors.InvalidConfigError(f"Dimension must be a positive integer, got {dimension!r}")
        lower, upper = float(lower), float(upper)
        if not (math.isfinite(lower) and math.isfinite(upper)):
            raise errors.InvalidConfigError(f"Bounds must be finite, got [{lower}, {upper}]")
        if lower >= upper:
            raise errors.InvalidConfigError(f"Lower bound must be strictly below upper bound, got [{lower}, {upper}]")
        self.function = function
        self.dimension = int(dimension)
        self.lower = lower
        self.upper = upper
        self.objectives = objectives

    @property
    def span(self) -> float:
        """Width of the search space along each variable"""
        return self.upper - self.lower

    def clip(self, position: tp.ArrayLike) -> np.ndarray:
        return np.clip(np.asarray(position, dtype=float), self.lower, self.upper)

    def sample(self, random_state: np.random.RandomState) -> np.ndarray:
        """Draws a position uniformly in the bounds"""
        return random_state.uniform(self.lower, self.upper, size=self.dimension)

    def objective_vector(self, position: np.ndarray, cost: float) -> np.ndarray:
        if self.objectives is None:
            return np.array([cost], dtype=float)
        return np.asarray(self.objectives(position), dtype=float).ravel()

    def __repr__(self) -> str:
        name = getattr(self.function, "__name__", self.function.__class__.__name__)
        return f"Problem({name}, dimension={self.dimension}, bounds=[{self.lower}, {self.upper}])"


class Result:
    """Outcome of a run

    Attributes
    ----------
    global_best: Best
        best position found and its cost
    cost_history: np.ndarray
        global best cost at the end of each iteration
    evaluations: int
        exact number of calls to the objective function
    iterations: int
        number of iterations run
    seed: int or None
        the integer seed of the run, if one was provided
    pareto_front: list
        non-dominated solutions of the archive (only filled by the raptor-hybrid variant)
    """

    def __init__(
        self,
        global_best: Best,
        cost_history: tp.Sequence[float],
        evaluations: int,
        iterations: int,
        seed: tp.Optional[int] = None,
        pareto_front: tp.Optional[tp.List[tp.Any]] = None,
    ) -> None:
        self.global_best = Best(np.array(global_best.position, copy=True), float(global_best.cost))
        self.global_best.position.flags.writeable = False
        self.cost_history = np.array(cost_history, dtype=float)
        self.cost_history.flags.writeable = False
        self.evaluations = evaluations
        self.iterations = iterations
        self.seed = seed
        self.pareto_front = list(pareto_front or [])

    @property
    def cost(self) -> float:
        return self.global_best.cost

    @property
    def position(self) -> np.ndarray:
        return self.global_best.position

    def __repr__(self) -> str:
        return (
            f"Result(cost={self.global_best.cost}, iterations={self.iterations}, "
            f"evaluations={self.evaluations})"
        )


class RunState:  # pylint: disable=too-many-instance-attributes
    """Mutable state of one run, owned by the driver and handed to the variant hooks.

    All objective calls must go through :code:`evaluate` so that the evaluation
    count stays exact, and all random draws through :code:`random_state` so that
    seeded runs are reproducible.
    """

    def __init__(
        self,
        problem: Problem,
        config: tp.Any,
        random_state: np.random.RandomState,
    ) -> None:
        self.problem = problem
        self.config = config
        self.random_state = random_state
        self.males: tp.List[Agent] = []
        self.females: tp.List[Agent] = []
        self.global_best = Best(np.zeros(problem.dimension), float("inf"))
        self.iteration = 0
        self.max_iterations = int(config.max_iterations)
        self.evaluations = 0
        self.vel_max, self.vel_min = config.velocity_bounds(problem)
        self.g = float(config.g)
        self.dance = float(config.dance)
        self.fl = float(config.fl)
        self.cost_history: tp.List[float] = []

    @property
    def progress(self) -> float:
        """Ratio of the run already completed, in [0, 1)"""
        return self.iteration / self.max_iterations

    def evaluate(self, position: np.ndarray) -> float:
        """Calls the objective function and sanitizes its output.
        Exceptions raised by the objective function are not caught.
        """
        self.evaluations += 1
        loss = float(self.problem.function(position))
        if math.isnan(loss) or math.isinf(loss):
            warnings.warn(f"Objective function returned {loss} value", errors.BadLossWarning)
        # NaN fails both comparisons so it gets clipped too
        if not loss < MAX_LOSS:  # pylint: disable=unneeded-not
            warnings.warn(
                f"Clipping very high value {loss} (rescale the cost function?).", errors.LossTooLargeWarning
            )
            loss = MAX_LOSS
        elif loss < -MAX_LOSS:
            loss = -MAX_LOSS
        return loss

    def consider(self, position: np.ndarray, cost: float) -> bool:
        """Replaces the global best if the cost is strictly lower, and returns whether it did"""
        if cost < self.global_best.cost:
            self.global_best = Best(np.array(position, dtype=float, copy=True), float(cost))
            return True
        return False

    def clip_velocity(self, velocity: np.ndarray) -> np.ndarray:
        return np.clip(velocity, self.vel_min, self.vel_max)

    def rest_velocity(self) -> np.ndarray:
        """Velocity of new agents: zero, clipped to the velocity bounds when they exclude it"""
        return self.clip_velocity(np.zeros(self.problem.dimension))

    def spawn(self, position: np.ndarray, male: bool, velocity: tp.Optional[np.ndarray] = None) -> Agent:
        """Clips, evaluates and creates a new agent (updating the global best)"""
        velocity = self.rest_velocity() if velocity is None else self.clip_velocity(velocity)
        position = self.problem.clip(position)
        cost = self.evaluate(position)
        self.consider(position, cost)
        if male:
            return Agent.male(position, cost, velocity=velocity)
        return Agent(position, cost, velocity=velocity)

    def sort(self) -> None:
        """Sorts both sub-populations by ascending cost (stable)"""
        self.males.sort(key=lambda a: a.cost)
        self.females.sort(key=lambda a: a.cost)

    def agents(self) -> tp.Iterator[Agent]:
        yield from self.males
        yield from self.females
