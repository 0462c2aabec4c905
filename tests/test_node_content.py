import numpy as np
import pytest

from gpnls_pkg.symbolic_regression.node_content import DEFAULT_FUNCTION_SET
from gpnls_pkg.symbolic_regression.node_content import ERC
from gpnls_pkg.symbolic_regression.node_content import Const
from gpnls_pkg.symbolic_regression.node_content import Func
from gpnls_pkg.symbolic_regression.node_content import Var
from gpnls_pkg.symbolic_regression.node_content import WeightedVar
from gpnls_pkg.symbolic_regression.node_content import add
from gpnls_pkg.symbolic_regression.node_content import mycos
from gpnls_pkg.symbolic_regression.node_content import myprod
from gpnls_pkg.symbolic_regression.node_content import mysin
from gpnls_pkg.symbolic_regression.node_content import variable_terminals


def test_default_functions_are_vectorized():
    a = np.array([1.0, 2.0, 3.0])
    for f in DEFAULT_FUNCTION_SET:
        assert isinstance(f, Func)
        out = f.func(*[a for _ in range(f.arity)])
        assert isinstance(out, np.ndarray)
        assert out.shape == a.shape


def test_func_display_name():
    assert Func(myprod, 2).str_rep == "myprod"
    assert Func(add, 2, "+").str_rep == "+"
    assert np.array_equal(Func(add, 2)(np.ones(2), np.ones(2)), [2.0, 2.0])


def test_func_rejects_bad_arity():
    with pytest.raises(ValueError):
        Func(add, 0)
    with pytest.raises(TypeError):
        Func("add", 2)


def test_const_is_displayed_rounded():
    assert Const(3.14159).str_rep == "3.142"
    assert Const(1).str_rep == "1.0"
    assert Const(1).value == 1.0


def test_weighted_var_display():
    assert WeightedVar("x1", 1, 2.0).str_rep == "2.0*x1"
    assert WeightedVar("x1", 1).weight == 1.0
    assert Var("x2", 2).str_rep == "x2"


def test_variable_indices_are_one_based():
    with pytest.raises(ValueError):
        Var("x0", 0)
    with pytest.raises(ValueError):
        WeightedVar("x0", 0)


def test_erc_bounds():
    with pytest.raises(ValueError):
        ERC(1.0, -1.0)

    rng = np.random.default_rng(0)
    for bound in [1.0, 10.0, 100.0]:
        erc = ERC(-bound, bound)
        for _ in range(1000):
            c = erc.sample(rng)
            assert isinstance(c, Const)
            assert -bound <= c.value < bound


def test_variable_terminals():
    assert variable_terminals(["a", "b"]) == [Var("a", 1), Var("b", 2)]
    weighted = variable_terminals(["a", "b"], weighted=True)
    assert all(isinstance(t, WeightedVar) for t in weighted)
    assert [t.var_idx for t in weighted] == [1, 2]


def test_trigonometric_primitives():
    a = np.array([0.0, np.pi / 2])
    assert np.allclose(Func(mysin, 1)(a), [0.0, 1.0])
    assert np.allclose(Func(mycos, 1)(a), [1.0, 0.0])
