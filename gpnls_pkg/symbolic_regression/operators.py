"""Genetic operators for expression trees.

Operators:
    - tournament_selection: binary tournament between two individuals
    - crossover: subtree crossover that returns a new tree
    - mutate_inplace: substitution mutation that reuses the given tree

Crossover and mutation keep the trees within the configured maximum depth and
maximum true number of nodes (weighted variables count as three nodes).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .expression_tree import Node
from .expression_tree import branches_in_limits
from .expression_tree import change_at
from .expression_tree import copy_tree
from .expression_tree import get_branch_at
from .expression_tree import get_depth_at
from .expression_tree import number_of_nodes
from .expression_tree import replace_at_inplace
from .expression_tree import true_number_of_nodes
from .initialization import ptc2
from .node_content import Func
from .node_content import TerminalSpec


@dataclass
class Individual:
    """A tree paired with its fitness so it is not recomputed on every selection."""

    tree: Node
    fitness: float = float("inf")


def tournament_selection(ind1: Individual, ind2: Individual) -> Individual:
    """Return the individual with strictly lower fitness; ties go to ``ind2``."""
    return ind1 if ind1.fitness < ind2.fitness else ind2


def crossover(
    parent_a: Node,
    parent_b: Node,
    max_depth: int,
    max_size: int,
    rng: np.random.Generator,
) -> Node:
    """Subtree crossover producing a single child.

    A random point is chosen in a copy of ``parent_a``. Every subtree of
    ``parent_b`` that fits in the size and depth left at that point is a
    candidate, and a copy of one of them is spliced in. Neither parent is
    modified.

    Args:
        parent_a: Tree receiving the branch
        parent_b: Tree donating the branch
        max_depth: Maximum depth of the child
        max_size: Maximum true number of nodes of the child
        rng: Random generator

    Returns:
        The child. When no subtree of ``parent_b`` fits, an unmodified copy of
        ``parent_a``.
    """
    child = copy_tree(parent_a)
    child_point = int(rng.integers(1, number_of_nodes(child) + 1))

    removed = get_branch_at(child_point, parent_a)
    partial_size = true_number_of_nodes(parent_a) - true_number_of_nodes(removed)

    # PTC2 trees may exceed the limits by a few units, so at least a single
    # node is always allowed
    allowed_size = max(max_size - partial_size, 1)
    allowed_depth = max(max_depth - get_depth_at(child_point, parent_a), 1)

    candidates, _ = branches_in_limits(allowed_size, allowed_depth, parent_b)
    if not candidates:
        return child

    branch_point = candidates[rng.integers(len(candidates))]
    branch = copy_tree(get_branch_at(branch_point, parent_b))

    return change_at(child_point, branch, child)


def mutate_inplace(
    node: Node,
    max_depth: int,
    max_size: int,
    f_set: list[Func],
    t_set: list[TerminalSpec],
    mutation_rate: float,
    rng: np.random.Generator,
) -> Node:
    """Substitution mutation, modifying the given tree.

    With probability ``mutation_rate`` a random point is replaced by a new
    PTC2 subtree whose expected size lies between the size of the replaced
    subtree and ``max_size``. Otherwise ``node`` is returned untouched.

    The new subtree is written into the parent's child slot, so the input
    tree is changed. Always use the returned root: when the root itself is
    mutated, the returned tree is a different object.
    """
    if rng.random() >= mutation_rate:
        return node

    point = int(rng.integers(1, number_of_nodes(node) + 1))
    sub_size = true_number_of_nodes(get_branch_at(point, node))

    size_range = max_size - sub_size
    expected_size = int(np.floor(rng.random() * size_range)) + sub_size
    allowed_depth = max_depth - get_depth_at(point, node)

    random_branch = ptc2(f_set, t_set, allowed_depth, expected_size, rng)

    return replace_at_inplace(point, random_branch, node)
