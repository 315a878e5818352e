"""Exception types raised by the simulator."""

from __future__ import annotations


class RiskSimulatorError(ValueError):
    """Base class for all simulator errors."""


class InvalidAssetError(RiskSimulatorError):
    """An asset has a non-positive price or an out-of-range percentage."""


class InvalidPortfolioError(RiskSimulatorError):
    """A portfolio has no assets, duplicate symbols or a non-positive value."""


class InsufficientDataError(RiskSimulatorError):
    """Statistics were requested for an empty result sequence."""


class DivisionUndefinedError(RiskSimulatorError):
    """A ratio was requested whose denominator is exactly zero."""
