import numpy as np
import pytest

from gpnls_pkg.symbolic_regression.expression_tree import InternalNode
from gpnls_pkg.symbolic_regression.expression_tree import TerminalNode
from gpnls_pkg.symbolic_regression.node_content import DEFAULT_CONST_SET
from gpnls_pkg.symbolic_regression.node_content import DEFAULT_ERC_SET
from gpnls_pkg.symbolic_regression.node_content import DEFAULT_FUNCTION_SET
from gpnls_pkg.symbolic_regression.node_content import Const
from gpnls_pkg.symbolic_regression.node_content import Var
from gpnls_pkg.symbolic_regression.node_content import WeightedVar

MINUS = DEFAULT_FUNCTION_SET[1]
PROD = DEFAULT_FUNCTION_SET[2]


@pytest.fixture
def toy_tree():
    """(x1 * 1.0) - (-1.0 * x2)"""
    return InternalNode(
        MINUS,
        [
            InternalNode(PROD, [TerminalNode(Var("x1", 1)), TerminalNode(Const(1.0))]),
            InternalNode(PROD, [TerminalNode(Const(-1.0)), TerminalNode(Var("x2", 2))]),
        ],
    )


@pytest.fixture
def toy_X():
    return np.array(
        [
            [1.0, 1.0],
            [2.0, 2.0],
            [-1.0, -1.0],
            [-2.0, -2.0],
        ]
    )


@pytest.fixture
def toy_y(toy_X):
    return 1.25 * toy_X[:, 0] + 1.25 * toy_X[:, 1]


@pytest.fixture
def function_set():
    return DEFAULT_FUNCTION_SET


@pytest.fixture
def terminal_set():
    return [
        *DEFAULT_CONST_SET,
        *DEFAULT_ERC_SET,
        Var("x1", 1),
        Var("x2", 2),
        WeightedVar("x1", 1),
        WeightedVar("x2", 2),
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(42)
