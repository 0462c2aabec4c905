"""Nonlinear least-squares fitting of the constants of a tree.

The tree is wrapped in a linear transformation box, ``+(myprod(tree, 1.0), 1.0)``,
so that the optimizer can fit a scale and an offset along with the constants
of the tree. The free parameters (theta) are, in pre-order, every Const value
and every WeightedVar weight of the tree, followed by the scale and the offset.

The optimization uses ``scipy.optimize.least_squares`` with a small iteration
budget. A failed optimization is not an error: the unfitted tree is used
instead and the failure is logged at DEBUG level.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from scipy.optimize import least_squares

from ..config import NLS_MAX_ITER
from ..logging_config import get_logger
from .expression_tree import InternalNode
from .expression_tree import Node
from .expression_tree import TerminalNode
from .node_content import Const
from .node_content import Func
from .node_content import Var
from .node_content import WeightedVar
from .node_content import add
from .node_content import myprod

logger = get_logger("lsq")

# Functions used by the linear transformation box
ADAPT_SUM = Func(add, 2, "+", sympy_func=lambda a, b: a + b)
ADAPT_PROD = Func(myprod, 2, sympy_func=lambda a, b: a * b)


def find_const_nodes(node: Node, nodes: list[TerminalNode] | None = None) -> list[TerminalNode]:
    """Collect, in pre-order, the terminal nodes holding a Const or a WeightedVar."""
    if nodes is None:
        nodes = []
    if isinstance(node, TerminalNode):
        if isinstance(node.terminal, (Const, WeightedVar)):
            nodes.append(node)
    else:
        for child in node.children:
            find_const_nodes(child, nodes)
    return nodes


def replace_const_nodes(node: Node, theta: np.ndarray | list[float]) -> Node:
    """Return a new tree with the constants replaced by ``theta``.

    Values are consumed positionally in the order of ``find_const_nodes``:
    a Const gets a new value, a WeightedVar a new weight. The given tree is
    not modified.

    Raises:
        ValueError: If ``theta`` does not hold exactly one value per constant
    """
    expected = len(find_const_nodes(node))
    if len(theta) != expected:
        raise ValueError(f"Expected {expected} values for the tree constants, got {len(theta)}")

    values = iter(float(v) for v in theta)
    return _replace(node, values)


def _replace(node: Node, values) -> Node:
    if isinstance(node, TerminalNode):
        t = node.terminal
        if isinstance(t, WeightedVar):
            return TerminalNode(WeightedVar(t.var_name, t.var_idx, next(values)))
        if isinstance(t, Var):
            return TerminalNode(Var(t.var_name, t.var_idx))
        return TerminalNode(Const(next(values)))
    return InternalNode(node.func, [_replace(c, values) for c in node.children])


def evaluate_replacing_consts(
    node: Node, X: np.ndarray, theta: np.ndarray, c_idx: int = 0
) -> tuple[np.ndarray, int]:
    """Evaluate a tree as if its constants had been replaced by ``theta``.

    Avoids rebuilding the tree on every step of the optimizer.

    Args:
        node: Tree to evaluate
        X: Data matrix of shape (n_samples, n_variables)
        theta: Parameter vector, consumed in pre-order
        c_idx: Index of the next unused value of ``theta``

    Returns:
        Tuple of (predictions, index of the next unused value of ``theta``)
    """
    if isinstance(node, TerminalNode):
        t = node.terminal
        if isinstance(t, WeightedVar):
            return X[:, t.var_idx - 1] * theta[c_idx], c_idx + 1
        if isinstance(t, Var):
            return X[:, t.var_idx - 1], c_idx
        return np.full(X.shape[0], theta[c_idx], dtype=float), c_idx + 1

    args = []
    for child in node.children[: node.func.arity]:
        value, c_idx = evaluate_replacing_consts(child, X, theta, c_idx)
        args.append(value)
    return node.func.func(*args), c_idx


def adaptate_tree(
    node: Node,
) -> tuple[Callable[[np.ndarray, np.ndarray], np.ndarray], np.ndarray, InternalNode]:
    """Wrap a tree in the linear transformation box.

    The box adds four nodes and two levels of depth. The given tree is not
    copied: it becomes the first child of the scaling node.

    Returns:
        Tuple of (``H(X, theta)`` evaluating the adapted tree, initial theta,
        adapted tree)
    """
    with_scaling = InternalNode(ADAPT_PROD, [node, TerminalNode(Const(1.0))])
    with_offset = InternalNode(ADAPT_SUM, [with_scaling, TerminalNode(Const(1.0))])

    theta0 = np.array(
        [
            c.terminal.weight if isinstance(c.terminal, WeightedVar) else c.terminal.value
            for c in find_const_nodes(with_offset)
        ],
        dtype=float,
    )

    def H(X: np.ndarray, theta: np.ndarray) -> np.ndarray:
        return evaluate_replacing_consts(with_offset, X, theta)[0]

    return H, theta0, with_offset


def _strip_box(adapted: InternalNode) -> Node:
    return adapted.children[0].children[0]


def apply_local_opt(
    node: Node,
    X: np.ndarray,
    y: np.ndarray,
    keep_linear_transf_box: bool = False,
    max_iter: int = NLS_MAX_ITER,
) -> Node:
    """Fit the constants of a tree with nonlinear least squares.

    Args:
        node: Tree to optimize (not modified)
        X: Data matrix of shape (n_samples, n_variables)
        y: Target values
        keep_linear_transf_box: Return the tree inside the fitted box instead
            of the inner tree alone
        max_iter: Maximum number of residual evaluations of the solver

    Returns:
        The fitted tree. When the optimization fails, the unfitted tree (with
        or without the box, as requested).
    """
    H, theta0, adapted = adaptate_tree(node)

    def residuals(theta: np.ndarray) -> np.ndarray:
        return H(X, theta) - y

    try:
        with np.errstate(all="ignore"):
            result = least_squares(residuals, theta0, jac="2-point", method="trf", max_nfev=max_iter)
    except Exception as e:
        # Trees whose derivatives are not defined over the data land here
        logger.debug("Least squares failed for %s: %s", adapted, e)
        optimized = adapted
    else:
        if np.all(np.isfinite(result.x)) and np.isfinite(result.cost):
            optimized = replace_const_nodes(adapted, result.x)
        else:
            logger.debug("Least squares produced non-finite parameters for %s", adapted)
            optimized = adapted

    if keep_linear_transf_box:
        return optimized
    return _strip_box(optimized)
