"""Risk statistics computed over a set of simulation trials."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from risk_simulator.errors import DivisionUndefinedError, InsufficientDataError
from risk_simulator.monte_carlo import SimulationResult

logger = logging.getLogger(__name__)

# One-sided 95 % quantile of the standard normal distribution.
VAR_95_Z = 1.96


@dataclass(frozen=True)
class RiskSummary:
    """Immutable container for the summary statistics of one run.

    All dispersion figures are population statistics (divide by N).
    """

    mean_value: float
    standard_deviation: float
    value_at_risk_95: float
    trial_count: int

    @property
    def mean_to_stdev_ratio(self) -> float:
        """
        Mean trial value divided by its standard deviation.

        Often displayed as the "Sharpe ratio", but it is not one: there is
        no risk-free rate or annualisation, and the numerator is a value
        rather than a return.

        Raises:
            DivisionUndefinedError: if the standard deviation is zero.
        """
        if self.standard_deviation == 0:
            raise DivisionUndefinedError(
                "Mean/stdev ratio is undefined: all trial totals are identical"
            )
        return self.mean_value / self.standard_deviation

    # Name kept for consumers that display it as "Sharpe Ratio".
    sharpe_ratio = mean_to_stdev_ratio

    @property
    def ratio_defined(self) -> bool:
        return self.standard_deviation != 0

    def to_dict(self) -> dict:
        """Rounded metrics; an undefined ratio is reported as ``None``."""
        return {
            "Mean_Value": round(self.mean_value, 4),
            "Standard_Deviation": round(self.standard_deviation, 4),
            "VaR_95": round(self.value_at_risk_95, 4),
            "Mean_StdDev_Ratio": (
                round(self.mean_to_stdev_ratio, 4)
                if self.ratio_defined
                else None
            ),
            "Trials": self.trial_count,
        }


class RiskCalculator:
    """Compute summary statistics over the totals of a simulation run."""

    def __init__(
        self,
        results: Sequence[SimulationResult],
        z_score: float = VAR_95_Z,
    ) -> None:
        """
        Args:
            results: Non-empty sequence of SimulationResult.
            z_score: Multiplier of the standard deviation used for VaR.

        Raises:
            InsufficientDataError: if ``results`` is empty.
        """
        if len(results) == 0:
            raise InsufficientDataError("Cannot compute risk statistics for zero trials")
        self.z = z_score
        self._values = np.array([r.total_value for r in results], dtype=float)

    @property
    def values(self) -> np.ndarray:
        """Trial totals in iteration order."""
        return self._values.copy()

    # ------------------------------------------------------------------
    # Moments
    # ------------------------------------------------------------------

    def _is_constant(self) -> bool:
        return bool(np.all(self._values == self._values[0]))

    def mean_value(self) -> float:
        if self._is_constant():
            return float(self._values[0])
        return float(np.mean(self._values))

    def standard_deviation(self) -> float:
        """Population standard deviation of trial totals.

        Exactly 0.0 when every total is identical; summing N equal values
        can otherwise leave a one-ulp residue in the mean.
        """
        if self._is_constant():
            return 0.0
        mean = self.mean_value()
        variance = np.mean((self._values - mean) ** 2)
        return float(np.sqrt(variance))

    # ------------------------------------------------------------------
    # Value at Risk
    # ------------------------------------------------------------------

    def value_at_risk(self) -> float:
        """Parametric VaR: mean - z * stdev. A value level, not a loss."""
        return self.mean_value() - self.z * self.standard_deviation()

    # ------------------------------------------------------------------
    # Ratio
    # ------------------------------------------------------------------

    def value_ratio(self) -> float:
        """Mean / stdev. Raises DivisionUndefinedError when stdev is zero."""
        std = self.standard_deviation()
        if std == 0:
            raise DivisionUndefinedError(
                "Mean/stdev ratio is undefined: all trial totals are identical"
            )
        return self.mean_value() / std

    # ------------------------------------------------------------------
    # Distribution helpers
    # ------------------------------------------------------------------

    def percentile(self, q: float) -> float:
        return float(np.percentile(self._values, q))

    def probability_of_loss(self, initial_value: float) -> float:
        """Fraction of trials ending below ``initial_value``."""
        return float(np.mean(self._values < initial_value))

    # ------------------------------------------------------------------
    # Full summary
    # ------------------------------------------------------------------

    def compute_all(self) -> RiskSummary:
        mean = self.mean_value()
        std = self.standard_deviation()
        summary = RiskSummary(
            mean_value=mean,
            standard_deviation=std,
            value_at_risk_95=mean - self.z * std,
            trial_count=len(self._values),
        )
        logger.debug(
            "Risk summary over %d trials: mean=%.4f std=%.4f",
            summary.trial_count, mean, std,
        )
        return summary


def compute_risk_summary(results: Sequence[SimulationResult]) -> RiskSummary:
    """Reduce a run's results to a RiskSummary."""
    return RiskCalculator(results).compute_all()
