"""
Portfolio Risk Simulator - Monte Carlo risk profile of a multi-asset portfolio.

Re-prices every asset with an independent uniform perturbation per trial and
summarises the simulated portfolio values with mean, standard deviation,
parametric Value at Risk and a mean/stdev ratio.
"""

from risk_simulator.errors import (
    DivisionUndefinedError,
    InsufficientDataError,
    InvalidAssetError,
    InvalidPortfolioError,
    RiskSimulatorError,
)
from risk_simulator.monte_carlo import (
    AssetOutcome,
    MonteCarloEngine,
    SimulationResult,
    run_simulation,
)
from risk_simulator.portfolio import AssetModel, Portfolio, sample_portfolio
from risk_simulator.risk_metrics import RiskCalculator, RiskSummary, compute_risk_summary

__version__ = "1.0.0"
__author__ = "Taofik Bishi"

__all__ = [
    "AssetModel",
    "AssetOutcome",
    "DivisionUndefinedError",
    "InsufficientDataError",
    "InvalidAssetError",
    "InvalidPortfolioError",
    "MonteCarloEngine",
    "Portfolio",
    "RiskCalculator",
    "RiskSimulatorError",
    "RiskSummary",
    "SimulationResult",
    "compute_risk_summary",
    "run_simulation",
    "sample_portfolio",
]
