import numpy as np
import pytest

from gpnls_pkg.symbolic_regression.evaluation import fitness
from gpnls_pkg.symbolic_regression.expression_tree import TerminalNode
from gpnls_pkg.symbolic_regression.expression_tree import copy_tree
from gpnls_pkg.symbolic_regression.expression_tree import depth
from gpnls_pkg.symbolic_regression.expression_tree import get_string
from gpnls_pkg.symbolic_regression.initialization import init_pop_ramped
from gpnls_pkg.symbolic_regression.node_content import Var
from gpnls_pkg.symbolic_regression.node_content import WeightedVar
from gpnls_pkg.symbolic_regression.operators import Individual
from gpnls_pkg.symbolic_regression.operators import crossover
from gpnls_pkg.symbolic_regression.operators import mutate_inplace
from gpnls_pkg.symbolic_regression.operators import tournament_selection


@pytest.fixture
def population(function_set, terminal_set, rng):
    return init_pop_ramped(function_set, terminal_set, 1, 5, 10, 1000, rng)


def test_tournament_selection():
    best = Individual(TerminalNode(Var("x1", 1)), 0.5)
    worst = Individual(TerminalNode(Var("x2", 2)), 2.0)
    tie = Individual(TerminalNode(Var("x2", 2)), 0.5)

    assert tournament_selection(best, worst) is best
    assert tournament_selection(worst, best) is best
    assert tournament_selection(best, tie) is tie
    assert Individual(TerminalNode(Var("x1", 1))).fitness == float("inf")


def test_crossover_limits_and_parents(population, toy_X, toy_y, rng):
    before = [get_string(p) for p in population]

    for _ in range(1000):
        a = population[rng.integers(len(population))]
        b = population[rng.integers(len(population))]
        child = crossover(a, b, 5, 2**5, rng)

        assert 1 <= depth(child) <= 5
        assert isinstance(fitness(child, toy_X, toy_y), float)

    assert [get_string(p) for p in population] == before


def test_crossover_without_candidates_copies_first_parent(rng):
    parent_a = TerminalNode(Var("x1", 1))
    parent_b = TerminalNode(WeightedVar("x2", 2))

    child = crossover(parent_a, parent_b, 5, 1, rng)
    assert get_string(child) == "x1"
    assert child is not parent_a


def test_mutation_rate_zero_returns_input(population, function_set, terminal_set, rng):
    tree = population[0]
    before = get_string(tree)
    assert mutate_inplace(tree, 5, 2**5, function_set, terminal_set, 0.0, rng) is tree
    assert get_string(tree) == before


def test_mutation_limits(population, function_set, terminal_set, toy_X, toy_y, rng):
    originals = [copy_tree(p) for p in population]
    before = [get_string(p) for p in originals]

    children = [
        mutate_inplace(p, 5, 2**5, function_set, terminal_set, 1.0, rng) for p in population
    ]
    for child in children:
        assert 1 <= depth(child) <= 6
        assert isinstance(fitness(child, toy_X, toy_y), float)

    # copies taken before the mutation are not affected
    assert [get_string(p) for p in originals] == before


def test_mutation_changes_trees(population, function_set, terminal_set):
    rng = np.random.default_rng(3)
    trees = [copy_tree(p) for p in population[:200]]
    before = [get_string(t) for t in trees]

    after = [
        get_string(mutate_inplace(t, 5, 2**5, function_set, terminal_set, 1.0, rng))
        for t in trees
    ]
    assert any(a != b for a, b in zip(after, before))
