"""Symbolic Regression Module.

Genetic programming over expression trees, with optional fitting of the tree
constants by nonlinear least squares (GP-NLS).

Main Components:
    - Func, Const, Var, WeightedVar, ERC: contents of tree nodes
    - TerminalNode, InternalNode: tree backbone
    - GPNLSRegressor / gp: the evolutionary algorithm
    - apply_local_opt: least-squares fitting of a single tree

Example:
    >>> import numpy as np
    >>> from gpnls_pkg.symbolic_regression import DEFAULT_FUNCTION_SET, Const, Var, gp, get_string
    >>> X = np.linspace(-2, 2, 40).reshape(-1, 1)
    >>> y = 3 * X[:, 0] ** 2 + 1
    >>> best = gp(X, y, DEFAULT_FUNCTION_SET, [Var("x1", 1), Const(1.0)],
    ...           use_nls_optimization=True, seed=42)
    >>> print(get_string(best))
"""

from .evaluation import evaluate
from .evaluation import fitness
from .expression_tree import InternalNode
from .expression_tree import Node
from .expression_tree import TerminalNode
from .expression_tree import branches_in_limits
from .expression_tree import change_at
from .expression_tree import copy_tree
from .expression_tree import depth
from .expression_tree import get_branch_at
from .expression_tree import get_depth_at
from .expression_tree import get_pretty_string
from .expression_tree import get_string
from .expression_tree import number_of_nodes
from .expression_tree import true_depth
from .expression_tree import true_number_of_nodes
from .genetic_engine import GPConfig
from .genetic_engine import GPNLSRegressor
from .genetic_engine import gp
from .initialization import INITIALIZERS
from .initialization import InitMethod
from .initialization import full
from .initialization import grow
from .initialization import initialize_population
from .initialization import ptc2
from .lsq_optimization import adaptate_tree
from .lsq_optimization import apply_local_opt
from .lsq_optimization import find_const_nodes
from .lsq_optimization import replace_const_nodes
from .node_content import DEFAULT_CONST_SET
from .node_content import DEFAULT_ERC_SET
from .node_content import DEFAULT_FUNCTION_SET
from .node_content import ERC
from .node_content import Const
from .node_content import Func
from .node_content import Var
from .node_content import WeightedVar
from .node_content import variable_terminals
from .operators import Individual
from .operators import crossover
from .operators import mutate_inplace
from .operators import tournament_selection

__all__ = [
    # Node contents
    "Func",
    "Const",
    "Var",
    "WeightedVar",
    "ERC",
    "DEFAULT_FUNCTION_SET",
    "DEFAULT_CONST_SET",
    "DEFAULT_ERC_SET",
    "variable_terminals",
    # Trees
    "Node",
    "TerminalNode",
    "InternalNode",
    "get_string",
    "get_pretty_string",
    "copy_tree",
    "depth",
    "true_depth",
    "number_of_nodes",
    "true_number_of_nodes",
    "get_branch_at",
    "get_depth_at",
    "change_at",
    "branches_in_limits",
    # Initialization
    "InitMethod",
    "INITIALIZERS",
    "grow",
    "full",
    "ptc2",
    "initialize_population",
    # Evaluation and operators
    "evaluate",
    "fitness",
    "Individual",
    "tournament_selection",
    "crossover",
    "mutate_inplace",
    # Nonlinear least squares
    "find_const_nodes",
    "replace_const_nodes",
    "adaptate_tree",
    "apply_local_opt",
    # Main Algorithm
    "GPConfig",
    "GPNLSRegressor",
    "gp",
]
