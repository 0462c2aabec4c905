"""Genetic Programming engine with optional nonlinear least-squares fitting.

Runs a generational GP with binary tournaments, subtree crossover and
substitution mutation. With ``use_nls_optimization`` enabled (GP-NLS), every
new tree has its constants fitted by nonlinear least squares before its
fitness is measured.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
from typing import Callable
from typing import Iterable
from typing import TypeVar

import numpy as np

from ..config import GP_GENERATIONS
from ..config import GP_INIT_METHOD
from ..config import GP_MAX_DEPTH
from ..config import GP_MAX_SIZE
from ..config import GP_MIN_DEPTH
from ..config import GP_MUTATION_RATE
from ..config import GP_POP_SIZE
from ..config import N_JOBS
from ..config import NLS_MAX_ITER
from ..logging_config import get_logger
from ..types import ConfigurationError
from ..types import NoViableIndividualsError
from .evaluation import evaluate
from .evaluation import fitness
from .expression_tree import Node
from .expression_tree import copy_tree
from .expression_tree import get_pretty_string
from .expression_tree import get_string
from .expression_tree import true_depth
from .expression_tree import true_number_of_nodes
from .initialization import InitMethod
from .initialization import initialize_population
from .lsq_optimization import apply_local_opt
from .node_content import ERC
from .node_content import Const
from .node_content import Func
from .node_content import TerminalSpec
from .node_content import Var
from .node_content import WeightedVar
from .operators import Individual
from .operators import crossover
from .operators import mutate_inplace
from .operators import tournament_selection

logger = get_logger("engine")

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class GPConfig:
    """Configuration for the GP / GP-NLS regressor."""

    min_depth: int = GP_MIN_DEPTH
    max_depth: int = GP_MAX_DEPTH
    max_size: int = GP_MAX_SIZE  # true number of nodes
    pop_size: int = GP_POP_SIZE
    generations: int = GP_GENERATIONS
    mutation_rate: float = GP_MUTATION_RATE
    elitism: bool = False
    verbose: bool = False
    init_method: InitMethod | str = GP_INIT_METHOD

    # Nonlinear least squares (GP-NLS)
    use_nls_optimization: bool = False
    keep_linear_transf_box: bool = False
    nls_max_iter: int = NLS_MAX_ITER

    # Execution
    n_jobs: int = N_JOBS
    seed: int | None = None
    timeout: float | None = None  # seconds, checked between generations

    def validate(self) -> None:
        """Check the configuration, coercing ``init_method`` into an InitMethod.

        Raises:
            ConfigurationError: If any option is out of range
        """
        if self.min_depth < 1:
            raise ConfigurationError(f"min_depth must be >= 1, got {self.min_depth}")
        if self.max_depth < self.min_depth:
            raise ConfigurationError(
                f"max_depth ({self.max_depth}) must be >= min_depth ({self.min_depth})"
            )
        if self.max_size < 1:
            raise ConfigurationError(f"max_size must be >= 1, got {self.max_size}")
        if self.pop_size < 1:
            raise ConfigurationError(f"pop_size must be >= 1, got {self.pop_size}")
        if self.generations < 0:
            raise ConfigurationError(f"generations must be >= 0, got {self.generations}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigurationError(
                f"mutation_rate must be in [0, 1], got {self.mutation_rate}"
            )
        if self.nls_max_iter < 1:
            raise ConfigurationError(f"nls_max_iter must be >= 1, got {self.nls_max_iter}")
        if self.n_jobs < 1:
            raise ConfigurationError(f"n_jobs must be >= 1, got {self.n_jobs}")
        if self.timeout is not None and self.timeout < 0:
            raise ConfigurationError(f"timeout must be >= 0, got {self.timeout}")

        try:
            self.init_method = InitMethod(self.init_method)
        except ValueError:
            valid = ", ".join(m.value for m in InitMethod)
            raise ConfigurationError(
                f"Unknown init method '{self.init_method}' (expected one of: {valid})"
            ) from None


def parallel_map(func: Callable[[T], R], items: Iterable[T], n_jobs: int = 1) -> list[R]:
    """Map ``func`` over ``items``, using a thread pool when ``n_jobs > 1``."""
    if n_jobs <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=n_jobs) as executor:
        return list(executor.map(func, items))


def _finite(individuals: list[Individual]) -> list[Individual]:
    return [ind for ind in individuals if np.isfinite(ind.fitness)]


class GPNLSRegressor:
    """Symbolic regressor evolving expression trees.

    Example:
        >>> import numpy as np
        >>> from gpnls_pkg.symbolic_regression import DEFAULT_ERC_SET
        >>> from gpnls_pkg.symbolic_regression import DEFAULT_FUNCTION_SET
        >>> from gpnls_pkg.symbolic_regression import GPConfig
        >>> from gpnls_pkg.symbolic_regression import GPNLSRegressor
        >>> from gpnls_pkg.symbolic_regression import Var
        >>> X = np.linspace(-1, 1, 50).reshape(-1, 1)
        >>> y = 2.5 * X[:, 0] ** 2 + 1
        >>> fset = DEFAULT_FUNCTION_SET
        >>> tset = [Var("x1", 1), *DEFAULT_ERC_SET]
        >>> model = GPNLSRegressor(GPConfig(use_nls_optimization=True, seed=0))
        >>> model.fit(X, y, fset, tset).get_expression()
    """

    def __init__(self, config: GPConfig | None = None):
        """Initialize the regressor.

        Args:
            config: Configuration object (uses defaults if None)
        """
        self.config = config or GPConfig()
        self.best_individual_: Individual | None = None
        self.history_: list[dict] = []
        self._stop_event = threading.Event()

    @property
    def best_tree_(self) -> Node | None:
        return self.best_individual_.tree if self.best_individual_ else None

    @property
    def best_fitness_(self) -> float:
        return self.best_individual_.fitness if self.best_individual_ else float("inf")

    def request_stop(self) -> None:
        """Ask a running ``fit`` to stop after the current generation.

        Safe to call from another thread. The best tree found so far is kept.
        """
        self._stop_event.set()

    def _check_inputs(
        self,
        X,
        y,
        function_set: list[Func],
        terminal_set: list[TerminalSpec],
    ) -> tuple[np.ndarray, np.ndarray]:
        try:
            X = np.asarray(X, dtype=float)
            y = np.asarray(y, dtype=float)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"X and y must be numeric: {e}") from e

        if X.ndim != 2:
            raise ConfigurationError(f"X must be a 2-D matrix, got {X.ndim} dimension(s)")
        if y.ndim != 1:
            raise ConfigurationError(f"y must be a 1-D vector, got {y.ndim} dimension(s)")
        if X.shape[0] == 0:
            raise ConfigurationError("X has no observations")
        if X.shape[0] != y.shape[0]:
            raise ConfigurationError(
                f"X has {X.shape[0]} observations but y has {y.shape[0]} values"
            )
        if not np.isfinite(X).all():
            raise ConfigurationError("X contains NaN or infinite values")
        if not np.isfinite(y).all():
            raise ConfigurationError("y contains NaN or infinite values")

        if not function_set:
            raise ConfigurationError("The function set is empty")
        if not terminal_set:
            raise ConfigurationError("The terminal set is empty")
        for f in function_set:
            if not isinstance(f, Func):
                raise ConfigurationError(f"Function set entries must be Func, got {f!r}")
        for t in terminal_set:
            if not isinstance(t, (Const, Var, WeightedVar, ERC)):
                raise ConfigurationError(f"Invalid terminal set entry {t!r}")
            if isinstance(t, (Var, WeightedVar)) and t.var_idx > X.shape[1]:
                raise ConfigurationError(
                    f"Variable '{t.var_name}' refers to column {t.var_idx} "
                    f"but X has {X.shape[1]} column(s)"
                )
        return X, y

    def _optimize(self, trees: list[Node], X: np.ndarray, y: np.ndarray) -> list[Node]:
        cfg = self.config
        return parallel_map(
            lambda t: apply_local_opt(t, X, y, cfg.keep_linear_transf_box, cfg.nls_max_iter),
            trees,
            cfg.n_jobs,
        )

    def _evaluate(self, trees: list[Node], X: np.ndarray, y: np.ndarray) -> list[Individual]:
        scores = parallel_map(lambda t: fitness(t, X, y), trees, self.config.n_jobs)
        return [Individual(t, f) for t, f in zip(trees, scores)]

    def _tournaments(
        self, individuals: list[Individual], n: int, rng: np.random.Generator
    ) -> list[Individual]:
        if not individuals:
            raise NoViableIndividualsError(
                "Every individual has a non-finite fitness; nothing left to select"
            )
        size = len(individuals)
        return [
            tournament_selection(
                individuals[rng.integers(size)], individuals[rng.integers(size)]
            )
            for _ in range(n)
        ]

    def _breed(
        self,
        parents: list[Individual],
        function_set: list[Func],
        terminal_set: list[TerminalSpec],
        rng: np.random.Generator,
    ) -> Node:
        """Create one child by crossover of two random parents followed by mutation."""
        cfg = self.config
        parent_a = parents[rng.integers(len(parents))].tree
        parent_b = parents[rng.integers(len(parents))].tree

        # Operators work on the tree inside the box; the box is rebuilt by the
        # optimization step
        if cfg.use_nls_optimization and cfg.keep_linear_transf_box:
            parent_a = parent_a.children[0].children[0]
            parent_b = parent_b.children[0].children[0]

        child = crossover(parent_a, parent_b, cfg.max_depth, cfg.max_size, rng)
        return mutate_inplace(
            child,
            cfg.max_depth,
            cfg.max_size,
            function_set,
            terminal_set,
            cfg.mutation_rate,
            rng,
        )

    def _record_generation(self, generation: int, individuals: list[Individual]) -> dict:
        stats = {
            "generation": generation,
            "best_fitness": min(ind.fitness for ind in individuals),
            "largest_size": max(true_number_of_nodes(ind.tree) for ind in individuals),
            "largest_depth": max(true_depth(ind.tree) for ind in individuals),
        }
        self.history_.append(stats)

        logger.debug(
            "Generation %d: best fitness %.6g, largest size %d, largest depth %d",
            generation,
            stats["best_fitness"],
            stats["largest_size"],
            stats["largest_depth"],
        )
        if self.config.verbose:
            print(
                f"{generation},\t {stats['best_fitness']},\t "
                f"{stats['largest_size']},\t {stats['largest_depth']}"
            )
        return stats

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        function_set: list[Func],
        terminal_set: list[TerminalSpec],
    ) -> GPNLSRegressor:
        """Evolve a population of trees to fit ``y`` from ``X``.

        Args:
            X: Input data of shape (n_samples, n_variables)
            y: Target values of shape (n_samples,)
            function_set: Functions available for internal nodes
            terminal_set: Constants, variables and ERCs available for leaves.
                Variable indices are 1-based columns of ``X``.

        Returns:
            self, with ``best_individual_`` and ``history_`` set

        Raises:
            ConfigurationError: If the configuration or the inputs are invalid
            NoViableIndividualsError: If every individual gets a non-finite
                fitness
        """
        # validate() coerces fields in place
        cfg = replace(self.config)
        cfg.validate()
        X, y = self._check_inputs(X, y, function_set, terminal_set)

        self._stop_event.clear()
        self.history_ = []
        self.best_individual_ = None
        rng = np.random.default_rng(cfg.seed)
        start_time = time.time()

        population = initialize_population(
            cfg.init_method,
            function_set,
            terminal_set,
            cfg.min_depth,
            cfg.max_depth,
            cfg.max_size,
            cfg.pop_size,
            rng,
        )
        if cfg.use_nls_optimization:
            population = self._optimize(population, X, y)
        individuals = self._evaluate(population, X, y)

        if cfg.verbose:
            print("\nGen,\t smallest fitness,\t largest size,\t largest depth")

        for gen in range(1, cfg.generations + 1):
            if self._stop_event.is_set():
                logger.info("Stop requested, ending after %d generation(s)", gen - 1)
                break
            if cfg.timeout is not None and (time.time() - start_time) > cfg.timeout:
                logger.info("Timeout after %d generation(s)", gen - 1)
                break

            individuals = _finite(individuals)
            if not individuals:
                raise NoViableIndividualsError(
                    f"Every individual has a non-finite fitness at generation {gen}"
                )

            elite = None
            if cfg.elitism:
                best = min(individuals, key=lambda ind: ind.fitness)
                elite = Individual(copy_tree(best.tree), best.fitness)

            self._record_generation(gen, individuals)

            parents = self._tournaments(individuals, cfg.pop_size, rng)

            # One generator per child keeps seeded runs independent of n_jobs
            children = parallel_map(
                lambda child_rng: self._breed(parents, function_set, terminal_set, child_rng),
                rng.spawn(cfg.pop_size),
                cfg.n_jobs,
            )
            if cfg.use_nls_optimization:
                children = self._optimize(children, X, y)

            pool = _finite(parents + self._evaluate(children, X, y))
            individuals = self._tournaments(pool, cfg.pop_size, rng)

            if elite is not None:
                individuals.append(elite)

        self.best_individual_ = min(individuals, key=lambda ind: ind.fitness)
        logger.info(
            "Finished in %.2fs, best fitness %.6g: %s",
            time.time() - start_time,
            self.best_individual_.fitness,
            get_string(self.best_individual_.tree),
        )
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Evaluate the best tree on new data.

        Raises:
            ValueError: If the regressor has not been fitted
        """
        if self.best_individual_ is None:
            raise ValueError("The regressor is not fitted yet, call fit() first")
        X = np.asarray(X, dtype=float)
        with np.errstate(all="ignore"):
            return evaluate(self.best_individual_.tree, X)

    def get_expression(self, pretty: bool = False) -> str:
        """Expression of the best tree, in prefix notation or infix if ``pretty``."""
        if self.best_individual_ is None:
            raise ValueError("The regressor is not fitted yet, call fit() first")
        if pretty:
            return get_pretty_string(self.best_individual_.tree)
        return get_string(self.best_individual_.tree)


def gp(
    X: np.ndarray,
    y: np.ndarray,
    function_set: list[Func],
    terminal_set: list[TerminalSpec],
    **options,
) -> Node:
    """Run GP (or GP-NLS) and return the best tree.

    Args:
        X: Input data of shape (n_samples, n_variables)
        y: Target values of shape (n_samples,)
        function_set: Functions available for internal nodes
        terminal_set: Terminals available for leaves
        **options: Any ``GPConfig`` field, e.g. ``use_nls_optimization=True``

    Returns:
        The tree with the smallest fitness in the final population
    """
    valid = {f.name for f in fields(GPConfig)}
    unknown = sorted(set(options) - valid)
    if unknown:
        raise ConfigurationError(f"Unknown GP option(s): {', '.join(unknown)}")

    model = GPNLSRegressor(GPConfig(**options))
    return model.fit(X, y, function_set, terminal_set).best_tree_
