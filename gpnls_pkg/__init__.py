"""gpnls package: genetic programming symbolic regression with nonlinear least squares."""

__version__ = "1.0.0"

from . import config, logging_config, symbolic_regression, types
from .symbolic_regression import GPConfig, GPNLSRegressor, gp
from .types import (
    ConfigurationError,
    GPNLSError,
    NoViableIndividualsError,
    TreeStructureError,
)

__all__ = [
    "config",
    "logging_config",
    "symbolic_regression",
    "types",
    "GPConfig",
    "GPNLSRegressor",
    "gp",
    "GPNLSError",
    "ConfigurationError",
    "TreeStructureError",
    "NoViableIndividualsError",
]
