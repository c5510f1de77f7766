"""Exceptions raised by the inference engines."""


class InferenceError(Exception):
    """Base class for all errors raised by bninfer."""


class ConfigurationError(InferenceError, ValueError):
    """
    The network or the query is malformed: wrong CPT length, unknown
    variable or outcome, missing parent value, cyclic structure.
    Not recoverable at the call site.
    """


class InconsistencyError(InferenceError, RuntimeError):
    """An engine reached a state that indicates a defect, not bad input."""
