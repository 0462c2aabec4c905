import pandas as pd
import pytest

from gpnls_pkg.experiments.experiment_runner import RESULT_COLUMNS
from gpnls_pkg.experiments.experiment_runner import load_results
from gpnls_pkg.experiments.experiment_runner import run_experiments
from gpnls_pkg.experiments.experiment_runner import summarize
from gpnls_pkg.symbolic_regression.genetic_engine import GPConfig
from gpnls_pkg.symbolic_regression.node_content import DEFAULT_CONST_SET
from gpnls_pkg.symbolic_regression.node_content import DEFAULT_FUNCTION_SET
from gpnls_pkg.symbolic_regression.node_content import variable_terminals


@pytest.fixture
def dataset(tmp_path):
    rows = ["a,b,target"]
    for i in range(1, 31):
        rows.append(f"{i * 0.1},{i * 0.2},{i * 0.1 + 2 * i * 0.2}")
    path = tmp_path / "toy.csv"
    path.write_text("\n".join(rows) + "\n")
    return str(path)


def terminals(names):
    return [*variable_terminals(names), *DEFAULT_CONST_SET]


def test_run_and_resume(tmp_path, dataset):
    results_path = str(tmp_path / "results.csv")
    config = GPConfig(pop_size=10, generations=2, max_depth=3, max_size=10, seed=5)

    results = run_experiments(
        {"toy": dataset}, results_path, DEFAULT_FUNCTION_SET, terminals, config, repetitions=2
    )
    assert list(results.columns) == RESULT_COLUMNS
    assert len(results) == 2

    stored = pd.read_csv(results_path)
    assert sorted(stored["Execution"]) == [1, 2]
    assert (stored["Number_of_nodes_real"] >= stored["Number_of_nodes"]).all()

    # only the missing repetition runs
    results = run_experiments(
        {"toy": dataset}, results_path, DEFAULT_FUNCTION_SET, terminals, config, repetitions=3
    )
    assert sorted(results["Execution"]) == [1, 2, 3]
    assert list(results["Expression"][:2]) == list(stored["Expression"])

    summary = summarize(results)
    assert list(summary.index) == ["toy"]
    assert "Fitness_test" in summary.columns


def test_load_results_without_file(tmp_path):
    results = load_results(str(tmp_path / "none.csv"))
    assert results.empty
    assert list(results.columns) == RESULT_COLUMNS
