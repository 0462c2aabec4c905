"""Command line interface for gpnls.

Single fit on each dataset:
    gpnls airfoil.csv --nls --generations 100 --seed 1

Repeated experiments, resumable through the results file:
    gpnls airfoil.csv concrete.csv --repetitions 30 --results results.csv
"""

from __future__ import annotations

import argparse
import os
import sys

from ..config import GP_GENERATIONS
from ..config import GP_INIT_METHOD
from ..config import GP_MAX_DEPTH
from ..config import GP_MAX_SIZE
from ..config import GP_MIN_DEPTH
from ..config import GP_MUTATION_RATE
from ..config import GP_POP_SIZE
from ..config import LOG_LEVEL
from ..config import N_JOBS
from ..config import NLS_MAX_ITER
from ..config import TRAIN_SIZE
from ..config import VERSION
from ..experiments.experiment_runner import run_experiments
from ..experiments.experiment_runner import run_single_experiment
from ..experiments.experiment_runner import summarize
from ..logging_config import get_logger
from ..logging_config import setup_logging
from ..symbolic_regression.expression_tree import get_pretty_string
from ..symbolic_regression.genetic_engine import GPConfig
from ..symbolic_regression.initialization import InitMethod
from ..symbolic_regression.node_content import DEFAULT_CONST_SET
from ..symbolic_regression.node_content import DEFAULT_ERC_SET
from ..symbolic_regression.node_content import DEFAULT_FUNCTION_SET
from ..symbolic_regression.node_content import TerminalSpec
from ..symbolic_regression.node_content import variable_terminals
from ..types import GPNLSError
from ..utils.data_loading import load_dataset

_logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpnls",
        description="Symbolic regression with genetic programming and nonlinear least squares",
    )
    parser.add_argument("datasets", nargs="+", help="CSV file(s), target in the last column")
    parser.add_argument("-v", "--version", action="version", version=f"gpnls {VERSION}")

    gp_group = parser.add_argument_group("genetic programming")
    gp_group.add_argument("--min-depth", type=int, default=GP_MIN_DEPTH)
    gp_group.add_argument("--max-depth", type=int, default=GP_MAX_DEPTH)
    gp_group.add_argument(
        "--max-size",
        type=int,
        default=GP_MAX_SIZE,
        help="Maximum number of nodes (weighted variables count as 3)",
    )
    gp_group.add_argument("--pop-size", type=int, default=GP_POP_SIZE)
    gp_group.add_argument("--generations", type=int, default=GP_GENERATIONS)
    gp_group.add_argument("--mutation-rate", type=float, default=GP_MUTATION_RATE)
    gp_group.add_argument("--elitism", action="store_true", help="Keep the best tree of each generation")
    gp_group.add_argument(
        "--init-method",
        type=str,
        choices=[m.value for m in InitMethod],
        default=GP_INIT_METHOD,
    )
    gp_group.add_argument(
        "--terminals",
        type=str,
        choices=["const", "erc", "both"],
        default="const",
        help="Constants added to the variables: fixed constants, ERC or both",
    )
    gp_group.add_argument(
        "--weighted",
        action="store_true",
        help="Use weighted variables (coefficients tuned by least squares)",
    )

    nls_group = parser.add_argument_group("nonlinear least squares")
    nls_group.add_argument("--nls", action="store_true", help="Enable GP-NLS")
    nls_group.add_argument(
        "--keep-box",
        action="store_true",
        help="Keep the fitted scale and offset around the trees",
    )
    nls_group.add_argument("--nls-max-iter", type=int, default=NLS_MAX_ITER)

    run_group = parser.add_argument_group("execution")
    run_group.add_argument("--seed", type=int, default=None)
    run_group.add_argument("--n-jobs", type=int, default=N_JOBS)
    run_group.add_argument("--timeout", type=float, default=None, help="Seconds per fit")
    run_group.add_argument("--train-size", type=float, default=TRAIN_SIZE)
    run_group.add_argument("--verbose", action="store_true", help="Print the generation table")
    run_group.add_argument(
        "--pretty", action="store_true", help="Print the expression in infix notation"
    )
    run_group.add_argument(
        "--repetitions",
        type=int,
        default=None,
        help="Run repeated experiments instead of a single fit",
    )
    run_group.add_argument(
        "--results",
        type=str,
        default="results.csv",
        help="CSV file for experiment results (used with --repetitions)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=LOG_LEVEL,
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    return parser


def _config_from_args(args: argparse.Namespace) -> GPConfig:
    config = GPConfig(
        min_depth=args.min_depth,
        max_depth=args.max_depth,
        max_size=args.max_size,
        pop_size=args.pop_size,
        generations=args.generations,
        mutation_rate=args.mutation_rate,
        elitism=args.elitism,
        verbose=args.verbose,
        init_method=args.init_method,
        use_nls_optimization=args.nls,
        keep_linear_transf_box=args.keep_box,
        nls_max_iter=args.nls_max_iter,
        n_jobs=args.n_jobs,
        seed=args.seed,
        timeout=args.timeout,
    )
    config.validate()
    return config


def _terminal_set_factory(kind: str, weighted: bool):
    def factory(variable_names: list[str]) -> list[TerminalSpec]:
        terminals: list[TerminalSpec] = list(variable_terminals(variable_names, weighted))
        if kind in ("const", "both"):
            terminals += DEFAULT_CONST_SET
        if kind in ("erc", "both"):
            terminals += DEFAULT_ERC_SET
        return terminals

    return factory


def _dataset_name(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``gpnls`` command.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for invalid input or configuration)
    """
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        config = _config_from_args(args)
        factory = _terminal_set_factory(args.terminals, args.weighted)

        if args.repetitions is not None:
            datasets = {_dataset_name(p): p for p in args.datasets}
            results = run_experiments(
                datasets,
                args.results,
                DEFAULT_FUNCTION_SET,
                factory,
                config,
                repetitions=args.repetitions,
                train_size=args.train_size,
            )
            print(summarize(results).to_string())
            return 0

        for path in args.datasets:
            X, y, variable_names = load_dataset(path)
            result = run_single_experiment(
                _dataset_name(path),
                1,
                X,
                y,
                DEFAULT_FUNCTION_SET,
                factory(variable_names),
                config,
                args.train_size,
            )
            expression = result.expression
            if args.pretty:
                expression = get_pretty_string(result.tree)
            print(f"Dataset:         {result.dataset}")
            print(f"RMSE (train):    {result.fitness_train:.6g}")
            print(f"RMSE (test):     {result.fitness_test:.6g}")
            print(f"Number of nodes: {result.number_of_nodes} ({result.number_of_nodes_real} real)")
            print(f"Depth:           {result.depth}")
            print(f"Expression:      {expression}")
        return 0

    except GPNLSError as e:
        _logger.debug("Run aborted", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
