import numpy as np
import pytest

from gpnls_pkg.symbolic_regression.evaluation import fitness
from gpnls_pkg.symbolic_regression.expression_tree import TerminalNode
from gpnls_pkg.symbolic_regression.expression_tree import depth
from gpnls_pkg.symbolic_regression.expression_tree import get_string
from gpnls_pkg.symbolic_regression.expression_tree import number_of_nodes
from gpnls_pkg.symbolic_regression.expression_tree import true_number_of_nodes
from gpnls_pkg.symbolic_regression.initialization import INITIALIZERS
from gpnls_pkg.symbolic_regression.initialization import InitMethod
from gpnls_pkg.symbolic_regression.initialization import create_random_terminal
from gpnls_pkg.symbolic_regression.initialization import full
from gpnls_pkg.symbolic_regression.initialization import grow
from gpnls_pkg.symbolic_regression.initialization import init_pop_ptc2
from gpnls_pkg.symbolic_regression.initialization import init_pop_ramped
from gpnls_pkg.symbolic_regression.initialization import initialize_population
from gpnls_pkg.symbolic_regression.initialization import ptc2
from gpnls_pkg.symbolic_regression.node_content import ERC
from gpnls_pkg.symbolic_regression.node_content import Const
from gpnls_pkg.symbolic_regression.node_content import Var
from gpnls_pkg.types import ConfigurationError


def test_random_terminal_samples_erc(rng):
    for _ in range(100):
        node = create_random_terminal([ERC(-1.0, 1.0)], rng)
        assert isinstance(node, TerminalNode)
        assert isinstance(node.terminal, Const)
        assert -1.0 <= node.terminal.value < 1.0


def test_grow_and_full_depths(function_set, terminal_set, rng):
    for _ in range(200):
        assert 1 <= depth(grow(function_set, terminal_set, 4, rng)) <= 4
        assert depth(full(function_set, terminal_set, 4, rng)) == 4


def test_ptc2_limits(function_set, terminal_set, rng):
    pop = init_pop_ptc2(function_set, terminal_set, 1, 10, 10, 5000, rng)

    assert len(pop) == 5000
    for tree in pop:
        assert 1 <= depth(tree) <= 10 + 1
        assert 1 <= true_number_of_nodes(tree) <= 52


def test_ptc2_true_size_without_weighted_vars(function_set, rng):
    t_set = [Const(1.0), ERC(-1.0, 1.0), Var("x1", 1), Var("x2", 2)]
    max_arity = max(f.arity for f in function_set)
    for expected_size in [1, 2, 5, 15, 30]:
        for _ in range(200):
            tree = ptc2(function_set, t_set, 6, expected_size, rng)
            assert true_number_of_nodes(tree) <= expected_size + max_arity
            assert depth(tree) <= 6 + 1


def test_ptc2_single_node(function_set, terminal_set, rng):
    assert isinstance(ptc2(function_set, terminal_set, 5, 1, rng), TerminalNode)
    assert isinstance(ptc2(function_set, terminal_set, 1, 10, rng), TerminalNode)


def test_ptc2_population_size_is_exact(function_set, terminal_set, rng):
    assert len(init_pop_ptc2(function_set, terminal_set, 1, 5, 25, 50, rng)) == 50
    assert len(init_pop_ptc2(function_set, terminal_set, 1, 5, 25, 7, rng)) == 7


def test_ramped_population(function_set, terminal_set, toy_X, toy_y, rng):
    pop = init_pop_ramped(function_set, terminal_set, 1, 5, 10, 5000, rng)

    assert len(pop) == 5000
    for tree in pop:
        assert 1 <= depth(tree) <= 5
        assert 1 <= number_of_nodes(tree) <= 2**5
        assert isinstance(fitness(tree, toy_X, toy_y), float)


def test_ramped_uses_every_depth(function_set, terminal_set, rng):
    pop = init_pop_ramped(function_set, terminal_set, 2, 5, 10, 400, rng)
    depths = {depth(t) for t in pop}
    assert {2, 3, 4, 5} <= depths


@pytest.mark.parametrize("method", list(InitMethod))
def test_initialize_population_dispatch(method, function_set, terminal_set, rng):
    assert method in INITIALIZERS
    pop = initialize_population(method, function_set, terminal_set, 1, 4, 10, 20, rng)
    assert len(pop) == 20


def test_initialize_population_accepts_strings(function_set, terminal_set, rng):
    pop = initialize_population("grow", function_set, terminal_set, 1, 4, 10, 5, rng)
    assert len(pop) == 5


def test_initialize_population_errors(function_set, terminal_set, rng):
    with pytest.raises(ConfigurationError):
        initialize_population("bogus", function_set, terminal_set, 1, 4, 10, 5, rng)
    with pytest.raises(ConfigurationError):
        initialize_population("PTC2", [], terminal_set, 1, 4, 10, 5, rng)
    with pytest.raises(ConfigurationError):
        initialize_population("PTC2", function_set, [], 1, 4, 10, 5, rng)
    with pytest.raises(ConfigurationError):
        initialize_population("ramped", function_set, terminal_set, 5, 4, 10, 5, rng)
    with pytest.raises(ConfigurationError):
        initialize_population("full", function_set, terminal_set, 0, 4, 10, 5, rng)


def test_same_seed_same_population(function_set, terminal_set):
    pop_a = init_pop_ptc2(
        function_set, terminal_set, 1, 5, 15, 30, np.random.default_rng(7)
    )
    pop_b = init_pop_ptc2(
        function_set, terminal_set, 1, 5, 15, 30, np.random.default_rng(7)
    )
    assert [get_string(t) for t in pop_a] == [get_string(t) for t in pop_b]
