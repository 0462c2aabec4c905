"""Repeated-run experiments over CSV datasets."""

from .experiment_runner import (
    RESULT_COLUMNS,
    ExperimentResult,
    load_results,
    run_experiments,
    run_single_experiment,
    summarize,
)

__all__ = [
    "RESULT_COLUMNS",
    "ExperimentResult",
    "load_results",
    "run_experiments",
    "run_single_experiment",
    "summarize",
]
