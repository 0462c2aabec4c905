import numpy as np

from gpnls_pkg.symbolic_regression.evaluation import evaluate
from gpnls_pkg.symbolic_regression.evaluation import fitness
from gpnls_pkg.symbolic_regression.expression_tree import InternalNode
from gpnls_pkg.symbolic_regression.expression_tree import TerminalNode
from gpnls_pkg.symbolic_regression.node_content import Const
from gpnls_pkg.symbolic_regression.node_content import Func
from gpnls_pkg.symbolic_regression.node_content import Var
from gpnls_pkg.symbolic_regression.node_content import WeightedVar
from gpnls_pkg.symbolic_regression.node_content import mydiv
from gpnls_pkg.symbolic_regression.node_content import mylog


def test_evaluate_toy_dataset(toy_tree, toy_X):
    assert np.array_equal(evaluate(toy_tree, toy_X), [2.0, 4.0, -2.0, -4.0])
    # a single observation still needs a matrix
    assert np.array_equal(evaluate(toy_tree, toy_X[:1, :]), [2.0])


def test_evaluate_terminals(toy_X):
    assert np.array_equal(evaluate(TerminalNode(Const(1.5)), toy_X), [1.5] * 4)
    assert np.array_equal(evaluate(TerminalNode(Var("x1", 1)), toy_X), toy_X[:, 0])
    assert np.array_equal(
        evaluate(TerminalNode(WeightedVar("x2", 2, 3.0)), toy_X), 3.0 * toy_X[:, 1]
    )


def test_fitness_is_rmse(toy_tree, toy_X):
    y = np.array([2.0, 4.0, -2.0, -4.0])
    assert fitness(toy_tree, toy_X, y) == 0.0
    assert np.isclose(fitness(toy_tree, toy_X, y + 1.0), 1.0)


def test_fitness_with_non_finite_targets(toy_tree, toy_X):
    assert fitness(toy_tree, toy_X, np.array([np.nan, 1.0, 1.0, 1.0])) == float("inf")
    assert fitness(toy_tree, toy_X, np.array([1.0, 1.0, np.inf, 1.0])) == float("inf")


def test_fitness_never_raises(toy_X, toy_y):
    div_by_zero = InternalNode(
        Func(mydiv, 2), [TerminalNode(Var("x1", 1)), TerminalNode(Const(0.0))]
    )
    log_of_negative = InternalNode(Func(mylog, 1), [TerminalNode(Var("x1", 1))])

    assert fitness(div_by_zero, toy_X, toy_y) == float("inf")
    assert fitness(log_of_negative, toy_X, toy_y) == float("inf")


def test_fitness_of_failing_function(toy_X, toy_y):
    def broken(a):
        raise ArithmeticError("boom")

    tree = InternalNode(Func(broken, 1), [TerminalNode(Var("x1", 1))])
    assert fitness(tree, toy_X, toy_y) == float("inf")
