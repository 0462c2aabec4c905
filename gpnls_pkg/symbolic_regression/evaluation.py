"""Vectorized evaluation of expression trees and RMSE fitness."""

from __future__ import annotations

import numpy as np

from .expression_tree import Node
from .expression_tree import TerminalNode
from .node_content import Var
from .node_content import WeightedVar


def evaluate(node: Node, X: np.ndarray) -> np.ndarray:
    """Evaluate a tree for every observation (row) of ``X``.

    Args:
        node: Root of the tree
        X: Data matrix of shape (n_samples, n_variables)

    Returns:
        Array of shape (n_samples,)
    """
    if isinstance(node, TerminalNode):
        t = node.terminal
        if isinstance(t, WeightedVar):
            return X[:, t.var_idx - 1] * t.weight
        if isinstance(t, Var):
            return X[:, t.var_idx - 1]
        return np.full(X.shape[0], t.value, dtype=float)

    args = [evaluate(child, X) for child in node.children[: node.func.arity]]
    return node.func.func(*args)


def fitness(tree: Node, X: np.ndarray, y: np.ndarray) -> float:
    """RMSE of the tree predictions (lower is better).

    Never raises: a tree that fails to evaluate, or whose error is not finite
    (NaN/inf in the predictions or in ``y``), gets infinite fitness. The
    selection then removes it without the need for protected operators.
    """
    try:
        with np.errstate(all="ignore"):
            rmse = float(np.sqrt(np.mean((evaluate(tree, X) - y) ** 2)))
    except Exception:
        return float("inf")
    return rmse if np.isfinite(rmse) else float("inf")
