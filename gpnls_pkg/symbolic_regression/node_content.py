"""Contents of expression tree nodes.

A tree is built from two kinds of backbone nodes (see ``expression_tree``);
this module defines what those nodes carry:

    - Func: content of an internal node (vectorized function + arity)
    - Const: floating point constant
    - Var: reference to a column of the observation matrix
    - WeightedVar: variable with a tunable coefficient
    - ERC: ephemeral random constant, a sampling range used only while a
      terminal is being created (it never appears inside a built tree)

Functions must work on whole observation vectors and must not use protected
forms: the nonlinear least-squares adapter differentiates the trees, and
branching code makes the derivatives unreliable. Division and log below are
deliberately unprotected; the evaluator turns their failures into infinite
fitness.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable

import numpy as np
import sympy as sp


def _round3(value: float) -> str:
    return str(round(float(value), 3))


@dataclass(frozen=True)
class Func:
    """Content of an internal node.

    Attributes:
        func: Vectorized function receiving ``arity`` arrays of ``n`` values
              and returning one array of ``n`` values
        arity: Number of children of the node
        str_rep: Display name (defaults to ``func.__name__``)
        sympy_func: Optional SymPy counterpart, used only for pretty printing
    """

    func: Callable[..., np.ndarray]
    arity: int
    str_rep: str | None = None
    sympy_func: Callable[..., Any] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not callable(self.func):
            raise TypeError(f"Func expects a callable, got {type(self.func).__name__}")
        if int(self.arity) < 1:
            raise ValueError(f"Function arity must be >= 1, got {self.arity}")
        if self.str_rep is None:
            object.__setattr__(self, "str_rep", getattr(self.func, "__name__", "f"))

    def __call__(self, *args: np.ndarray) -> np.ndarray:
        return self.func(*args)


@dataclass(frozen=True)
class Const:
    """Floating point constant; displayed rounded to 3 decimal places."""

    value: float
    str_rep: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "str_rep", _round3(self.value))


@dataclass(frozen=True)
class Var:
    """Input variable, ``var_idx`` is the 1-based column of the data matrix."""

    var_name: str
    var_idx: int
    str_rep: str = field(init=False)

    def __post_init__(self):
        if int(self.var_idx) < 1:
            raise ValueError(f"Variable index is 1-based, got {self.var_idx}")
        object.__setattr__(self, "str_rep", self.var_name)


@dataclass(frozen=True)
class WeightedVar:
    """Variable multiplied by a coefficient that the least-squares step can tune.

    Conceptually this is the subtree ``weight * variable`` (3 nodes, depth 2),
    but crossover and mutation treat it as a single node so that the weight
    is never separated from its variable. ``true_number_of_nodes`` counts it
    as 3 nodes when enforcing size limits.
    """

    var_name: str
    var_idx: int
    weight: float = 1.0
    str_rep: str = field(init=False)

    def __post_init__(self):
        if int(self.var_idx) < 1:
            raise ValueError(f"Variable index is 1-based, got {self.var_idx}")
        object.__setattr__(self, "weight", float(self.weight))
        object.__setattr__(self, "str_rep", f"{_round3(self.weight)}*{self.var_name}")


@dataclass(frozen=True)
class ERC:
    """Ephemeral random constant: a ``[l_bound, u_bound)`` sampling range."""

    l_bound: float
    u_bound: float

    def __post_init__(self):
        if self.l_bound > self.u_bound:
            raise ValueError(
                f"ERC lower bound {self.l_bound} is above upper bound {self.u_bound}"
            )

    def sample(self, rng: np.random.Generator) -> Const:
        """Draw a new constant uniformly from the range."""
        return Const(rng.random() * (self.u_bound - self.l_bound) + self.l_bound)


Terminal = Const | Var | WeightedVar
TerminalSpec = Const | Var | WeightedVar | ERC


# Vectorized primitives. Names of the non-operator functions are what gets
# printed, so they are kept short and unambiguous.
def add(a, b):
    return a + b


def sub(a, b):
    return a - b


def myprod(a, b):
    return a * b


def mydiv(a, b):
    # Not protected: x/0 yields inf/nan and the individual gets inf fitness
    return a / b


def mysquare(a):
    return a**2


def mysqrt(a):
    return np.sqrt(a)


def myexp(a):
    return np.exp(a)


def mylog(a):
    return np.log(a)


def mysin(a):
    return np.sin(a)


def mycos(a):
    return np.cos(a)


DEFAULT_FUNCTION_SET: list[Func] = [
    Func(add, 2, "+", sympy_func=lambda a, b: a + b),
    Func(sub, 2, "-", sympy_func=lambda a, b: a - b),
    Func(myprod, 2, sympy_func=lambda a, b: a * b),
    Func(mydiv, 2, sympy_func=lambda a, b: a / b),
    Func(mysquare, 1, sympy_func=lambda a: a**2),
    Func(mysqrt, 1, sympy_func=sp.sqrt),
    Func(myexp, 1, sympy_func=sp.exp),
    Func(mylog, 1, sympy_func=sp.log),
]

DEFAULT_CONST_SET: list[Const] = [
    Const(3.1415),
    Const(1.0),
    Const(-1.0),
]

DEFAULT_ERC_SET: list[ERC] = [
    ERC(-1.0, 1.0),
]


def variable_terminals(names: list[str], weighted: bool = False) -> list[Var | WeightedVar]:
    """Create one terminal per data column, in column order.

    Args:
        names: Column names of the observation matrix
        weighted: Create ``WeightedVar`` (weight 1.0) instead of ``Var``

    Returns:
        List of terminals with 1-based column indices
    """
    cls = WeightedVar if weighted else Var
    return [cls(name, i) for i, name in enumerate(names, start=1)]
