"""Experiment driver for GP / GP-NLS.

Runs a fixed number of independent repetitions of the regressor on each
dataset and stores one row per run in a CSV file. The file is rewritten after
every run, and repetitions already present in it are skipped, so an
interrupted experiment can be resumed by running it again.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from typing import Callable
from typing import Mapping

import numpy as np
import pandas as pd

from ..config import REPETITIONS
from ..config import TRAIN_SIZE
from ..logging_config import get_logger
from ..symbolic_regression.evaluation import fitness
from ..symbolic_regression.expression_tree import Node
from ..symbolic_regression.expression_tree import depth
from ..symbolic_regression.expression_tree import get_string
from ..symbolic_regression.expression_tree import number_of_nodes
from ..symbolic_regression.expression_tree import true_number_of_nodes
from ..symbolic_regression.genetic_engine import GPConfig
from ..symbolic_regression.genetic_engine import GPNLSRegressor
from ..symbolic_regression.node_content import Func
from ..symbolic_regression.node_content import TerminalSpec
from ..utils.data_loading import load_dataset
from ..utils.data_loading import train_test_split_xy

logger = get_logger("experiments")

RESULT_COLUMNS = [
    "Dataset",
    "Execution",
    "Time",
    "Fitness_train",
    "Fitness_test",
    "Number_of_nodes",
    "Number_of_nodes_real",
    "Depth",
    "Expression",
]


@dataclass
class ExperimentResult:
    """Result of a single run.

    Attributes:
        dataset: Name of the dataset
        execution: Repetition id (starting at 1)
        time: Wall time of the fit in seconds
        fitness_train: RMSE on the training partition
        fitness_test: RMSE on the test partition
        number_of_nodes: Size of the best tree, weighted variables as 1 node
        number_of_nodes_real: Size of the best tree, weighted variables as 3 nodes
        depth: Depth of the best tree
        expression: Prefix notation of the best tree
        tree: The best tree itself (not written to the results file)
    """

    dataset: str
    execution: int
    time: float
    fitness_train: float
    fitness_test: float
    number_of_nodes: int
    number_of_nodes_real: int
    depth: int
    expression: str
    tree: Node | None = field(default=None, repr=False, compare=False)

    def to_row(self) -> dict:
        return {
            "Dataset": self.dataset,
            "Execution": self.execution,
            "Time": self.time,
            "Fitness_train": self.fitness_train,
            "Fitness_test": self.fitness_test,
            "Number_of_nodes": self.number_of_nodes,
            "Number_of_nodes_real": self.number_of_nodes_real,
            "Depth": self.depth,
            "Expression": self.expression,
        }


def load_results(results_path: str) -> pd.DataFrame:
    """Read previous results, or an empty table when there are none yet."""
    if os.path.exists(results_path) and os.path.getsize(results_path) > 0:
        return pd.read_csv(results_path)
    return pd.DataFrame(columns=RESULT_COLUMNS)


def run_single_experiment(
    dataset: str,
    execution: int,
    X: np.ndarray,
    y: np.ndarray,
    function_set: list[Func],
    terminal_set: list[TerminalSpec],
    config: GPConfig,
    train_size: float = TRAIN_SIZE,
) -> ExperimentResult:
    """Split the data, fit once and measure the best tree.

    The split and the run are seeded from ``config.seed`` and the execution id,
    so every repetition is different but reproducible.
    """
    seed = (config.seed or 0) + execution
    X_train, X_test, y_train, y_test = train_test_split_xy(X, y, train_size, seed=seed)

    model = GPNLSRegressor(replace(config, seed=seed))
    start_time = time.perf_counter()
    model.fit(X_train, y_train, function_set, terminal_set)
    elapsed = time.perf_counter() - start_time

    best = model.best_tree_
    return ExperimentResult(
        dataset=dataset,
        execution=execution,
        time=elapsed,
        fitness_train=fitness(best, X_train, y_train),
        fitness_test=fitness(best, X_test, y_test),
        number_of_nodes=number_of_nodes(best),
        number_of_nodes_real=true_number_of_nodes(best),
        depth=depth(best),
        expression=get_string(best),
        tree=best,
    )


def run_experiments(
    datasets: Mapping[str, str],
    results_path: str,
    function_set: list[Func],
    terminal_set_factory: Callable[[list[str]], list[TerminalSpec]],
    config: GPConfig | None = None,
    repetitions: int = REPETITIONS,
    train_size: float = TRAIN_SIZE,
) -> pd.DataFrame:
    """Run (or resume) repeated experiments over several datasets.

    Args:
        datasets: Mapping of dataset name to CSV path (target in the last column)
        results_path: CSV file holding one row per finished run
        function_set: Functions available for internal nodes
        terminal_set_factory: Builds the terminal set from the variable names
            of a dataset
        config: Regressor configuration (uses defaults if None)
        repetitions: Number of runs per dataset
        train_size: Fraction of the observations used for training

    Returns:
        Every result in the results file, old and new
    """
    config = config or GPConfig()
    results = load_results(results_path)

    for name, path in datasets.items():
        done = set(results.loc[results["Dataset"] == name, "Execution"].astype(int))
        pending = [i for i in range(1, repetitions + 1) if i not in done]
        if not pending:
            logger.info("Dataset %s already has %d repetition(s), skipping", name, repetitions)
            continue

        X, y, variable_names = load_dataset(path)
        terminal_set = terminal_set_factory(variable_names)
        logger.info("Running %d repetition(s) on dataset %s", len(pending), name)

        for execution in pending:
            result = run_single_experiment(
                name, execution, X, y, function_set, terminal_set, config, train_size
            )
            row = pd.DataFrame([result.to_row()], columns=RESULT_COLUMNS)
            results = row if results.empty else pd.concat([results, row], ignore_index=True)

            # Rewritten after every run so an interruption loses at most one run
            results.to_csv(results_path, index=False)
            logger.info(
                "%s #%d: train %.6g, test %.6g (%.1fs)",
                name,
                execution,
                result.fitness_train,
                result.fitness_test,
                result.time,
            )

        logger.info("Finished dataset %s", name)

    return results


def summarize(results: pd.DataFrame) -> pd.DataFrame:
    """Median fitness, size and time per dataset."""
    columns = [
        "Fitness_train",
        "Fitness_test",
        "Number_of_nodes",
        "Number_of_nodes_real",
        "Depth",
        "Time",
    ]
    return results.groupby("Dataset")[columns].median()
