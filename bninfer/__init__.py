"""Exact inference on discrete Bayesian networks."""

from .bayesian_network import BayesianNetwork, Variable
from .exceptions import ConfigurationError, InconsistencyError, InferenceError
from .factor import Factor
from .inference import (
    EnumerationInference,
    LexicographicOrdering,
    MinFillOrdering,
    OperationCounter,
    VariableElimination,
    create_engine,
)

__version__ = "0.1.0"

__all__ = [
    "BayesianNetwork",
    "Variable",
    "Factor",
    "OperationCounter",
    "EnumerationInference",
    "VariableElimination",
    "LexicographicOrdering",
    "MinFillOrdering",
    "create_engine",
    "InferenceError",
    "ConfigurationError",
    "InconsistencyError",
]
