"""Errors raised by the analysis engine and the tool layer.

Upstream failures are not defined here: the FMP client raises its own
``FMPClientError`` and the engine lets it through untouched.
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Caller-supplied arguments violate a stated precondition."""


class UndefinedMetricError(ArithmeticError):
    """A derived metric cannot be computed from the fetched data.

    Raised for zero denominators (eps, revenue, equity, price), a missing
    latest record, or an aggregation over an empty company set.
    """

    def __init__(self, metric: str, message: str) -> None:
        super().__init__(message)
        self.metric = metric


class ConfigurationError(RuntimeError):
    """A setting the server needs to reach FMP is missing."""
