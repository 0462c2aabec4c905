"""Random tree creation and population initialization.

Four strategies are available, selected through ``InitMethod``:

    - grow: Koza's grow, trees of any shape up to a maximum depth
    - full: Koza's full, perfect trees of the maximum depth
    - ramped: ramped half-and-half, mixing full and grow over a depth range
    - PTC2: Luke's Probabilistic Tree Creator 2, bounding depth and size

Only PTC2 respects a size limit; the Koza methods control depth only.
Every function takes an explicit ``numpy.random.Generator``.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np

from ..types import ConfigurationError
from .expression_tree import InternalNode
from .expression_tree import Node
from .expression_tree import TerminalNode
from .expression_tree import true_number_of_nodes
from .node_content import ERC
from .node_content import Func
from .node_content import TerminalSpec


class InitMethod(Enum):
    """Population initialization strategies."""

    GROW = "grow"
    FULL = "full"
    RAMPED = "ramped"
    PTC2 = "PTC2"


def create_random_terminal(t_set: list[TerminalSpec], rng: np.random.Generator) -> TerminalNode:
    """Pick a terminal uniformly; an ERC is replaced by a freshly sampled Const."""
    t = t_set[rng.integers(len(t_set))]
    if isinstance(t, ERC):
        return TerminalNode(t.sample(rng))
    return TerminalNode(t)


def _random_function(f_set: list[Func], rng: np.random.Generator) -> Func:
    return f_set[rng.integers(len(f_set))]


def grow(
    f_set: list[Func], t_set: list[TerminalSpec], max_depth: int, rng: np.random.Generator
) -> Node:
    """Create a tree with the grow method.

    There is no minimum size: a single terminal is a valid result. A
    terminal is chosen when the depth limit is reached or with probability
    ``1 / max_depth``.
    """
    if max_depth <= 1 or rng.random() < 1 / max_depth:
        return create_random_terminal(t_set, rng)

    f = _random_function(f_set, rng)
    return InternalNode(f, [grow(f_set, t_set, max_depth - 1, rng) for _ in range(f.arity)])


def full(
    f_set: list[Func], t_set: list[TerminalSpec], max_depth: int, rng: np.random.Generator
) -> Node:
    """Create a perfect tree of depth ``max_depth`` with the full method."""
    if max_depth <= 1:
        return create_random_terminal(t_set, rng)

    f = _random_function(f_set, rng)
    return InternalNode(f, [full(f_set, t_set, max_depth - 1, rng) for _ in range(f.arity)])


def ptc2(
    f_set: list[Func],
    t_set: list[TerminalSpec],
    max_depth: int,
    expected_size: int,
    rng: np.random.Generator,
) -> Node:
    """Create a tree with the Probabilistic Tree Creator 2.

    Open child slots are kept in a list and filled in random order. While
    the tree plus its open slots is smaller than ``expected_size``, a slot
    receives a new function node (its children become open slots), or a
    terminal when the slot sits at ``max_depth``. The remaining slots are then
    closed with terminals.

    Guarantees ``depth <= max_depth + 1``. The extra level comes from
    terminals placed below slots at ``max_depth``.

    Without WeightedVar terminals the size is also bounded:
    ``true_number_of_nodes <= expected_size + max(f.arity for f in f_set)``.
    A WeightedVar counts three nodes, and the terminals closing the
    remaining slots are not checked against ``expected_size``, so a set with
    weighted variables can exceed that bound.
    """
    if expected_size <= 1 or max_depth <= 1:
        return create_random_terminal(t_set, rng)

    f = _random_function(f_set, rng)
    root = InternalNode(f, [None] * f.arity)
    curr_size = 1

    # Open slots as (parent, child index, depth of the slot)
    slots = [(root, i, 1) for i in range(f.arity)]

    while slots and len(slots) + curr_size < expected_size:
        parent, idx, slot_depth = slots.pop(rng.integers(len(slots)))

        if slot_depth >= max_depth:
            terminal = create_random_terminal(t_set, rng)
            parent.children[idx] = terminal
            curr_size += true_number_of_nodes(terminal)
        else:
            f = _random_function(f_set, rng)
            subtree = InternalNode(f, [None] * f.arity)
            parent.children[idx] = subtree
            slots.extend((subtree, i, slot_depth + 1) for i in range(f.arity))
            curr_size += 1

    while slots:
        parent, idx, _ = slots.pop(rng.integers(len(slots)))
        parent.children[idx] = create_random_terminal(t_set, rng)

    return root


# Population initializers. They all share the same signature so they can be
# dispatched from a table, even if some parameters are unused.
def init_pop_grow(
    f_set: list[Func],
    t_set: list[TerminalSpec],
    min_depth: int,
    max_depth: int,
    expected_size: int,
    pop_size: int,
    rng: np.random.Generator,
) -> list[Node]:
    return [grow(f_set, t_set, max_depth, rng) for _ in range(pop_size)]


def init_pop_full(
    f_set: list[Func],
    t_set: list[TerminalSpec],
    min_depth: int,
    max_depth: int,
    expected_size: int,
    pop_size: int,
    rng: np.random.Generator,
) -> list[Node]:
    return [full(f_set, t_set, max_depth, rng) for _ in range(pop_size)]


def init_pop_ramped(
    f_set: list[Func],
    t_set: list[TerminalSpec],
    min_depth: int,
    max_depth: int,
    expected_size: int,
    pop_size: int,
    rng: np.random.Generator,
) -> list[Node]:
    """Ramped half-and-half over the depths ``min_depth..max_depth``.

    The population is split in equal bands, one per depth. In each band half
    of the trees are created with full and half with grow (grow takes the odd
    one). The last band takes whatever remains of the population.
    """
    if pop_size <= 0:
        return []

    bands = max_depth - min_depth + 1
    n = pop_size // bands
    q, r = n // 2, n % 2

    trees = init_pop_full(f_set, t_set, 1, min_depth, expected_size, q, rng)
    trees += init_pop_grow(f_set, t_set, 1, min_depth, expected_size, q + r, rng)
    trees += init_pop_ramped(f_set, t_set, min_depth + 1, max_depth, expected_size, pop_size - n, rng)
    return trees


def init_pop_ptc2(
    f_set: list[Func],
    t_set: list[TerminalSpec],
    min_depth: int,
    max_depth: int,
    expected_size: int,
    pop_size: int,
    rng: np.random.Generator,
) -> list[Node]:
    """PTC2 population with expected sizes ramped over ``1..expected_size``."""
    per_size = pop_size // expected_size
    trees = [
        ptc2(f_set, t_set, max_depth, size, rng)
        for size in range(1, expected_size + 1)
        for _ in range(per_size)
    ]
    while len(trees) < pop_size:
        size = int(rng.integers(1, expected_size + 1))
        trees.append(ptc2(f_set, t_set, max_depth, size, rng))
    return trees


INITIALIZERS: dict[InitMethod, Callable[..., list[Node]]] = {
    InitMethod.GROW: init_pop_grow,
    InitMethod.FULL: init_pop_full,
    InitMethod.RAMPED: init_pop_ramped,
    InitMethod.PTC2: init_pop_ptc2,
}


def initialize_population(
    method: InitMethod | str,
    f_set: list[Func],
    t_set: list[TerminalSpec],
    min_depth: int,
    max_depth: int,
    expected_size: int,
    pop_size: int,
    rng: np.random.Generator,
) -> list[Node]:
    """Create an initial population with the requested strategy.

    Raises:
        ConfigurationError: On an unknown method, empty sets or invalid limits
    """
    try:
        method = InitMethod(method)
    except ValueError:
        valid = ", ".join(m.value for m in InitMethod)
        raise ConfigurationError(f"Unknown init method '{method}' (expected one of: {valid})") from None

    if not f_set:
        raise ConfigurationError("The function set is empty")
    if not t_set:
        raise ConfigurationError("The terminal set is empty")
    if min_depth < 1 or max_depth < min_depth:
        raise ConfigurationError(
            f"Invalid depth range: min_depth={min_depth}, max_depth={max_depth}"
        )
    if expected_size < 1:
        raise ConfigurationError(f"Expected size must be >= 1, got {expected_size}")

    return INITIALIZERS[method](f_set, t_set, min_depth, max_depth, expected_size, pop_size, rng)
