"""Exception types shared across the gpnls package."""


class GPNLSError(Exception):
    """Base class for errors raised by gpnls."""


class ConfigurationError(GPNLSError, ValueError):
    """Raised when a run is configured with invalid options or inputs.

    Examples: ``max_depth < min_depth``, an empty function or terminal set,
    an empty dataset, or a variable index outside the observation matrix.
    """


class TreeStructureError(GPNLSError, ValueError):
    """Raised when an expression tree node is built with invalid structure.

    An internal node must have exactly ``func.arity`` children, and a terminal
    node may only hold a ``Const``, ``Var`` or ``WeightedVar``.
    """


class NoViableIndividualsError(GPNLSError, RuntimeError):
    """Raised when every individual of a population has non-finite fitness."""
