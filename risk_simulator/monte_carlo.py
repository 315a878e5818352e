"""Monte Carlo re-pricing engine for multi-asset portfolios."""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import numpy as np
import pandas as pd

from risk_simulator.portfolio import Portfolio

logger = logging.getLogger(__name__)

DEFAULT_TRIALS = 100


class RandomSource(Protocol):
    """Anything exposing ``numpy.random.Generator.uniform``."""

    def uniform(self, low: Any = ..., high: Any = ..., size: Any = ...) -> Any:
        ...


@dataclass(frozen=True)
class AssetOutcome:
    """Simulated move of a single asset within one trial."""

    symbol: str
    original_price: float
    new_price: float
    price_change_pct: float
    asset_value: float

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "original_price": self.original_price,
            "new_price": self.new_price,
            "price_change_pct": self.price_change_pct,
            "asset_value": self.asset_value,
        }


@dataclass(frozen=True)
class SimulationResult:
    """Outcome of one trial: every asset re-priced once."""

    iteration: int                      # 1-based
    outcomes: tuple[AssetOutcome, ...]  # same order as the portfolio's assets
    total_value: float

    def outcome(self, symbol: str) -> AssetOutcome:
        for o in self.outcomes:
            if o.symbol == symbol:
                return o
        raise KeyError(symbol)

    def to_dict(self) -> dict:
        return {
            "iteration": self.iteration,
            "total_value": self.total_value,
            "assets": [o.to_dict() for o in self.outcomes],
        }


class MonteCarloEngine:
    """Independent uniform price perturbation simulator.

    Each trial moves every asset's price by a fraction drawn uniformly from
    ``[-volatility_pct / 100, +volatility_pct / 100]``. Draws are independent
    across assets and trials; no correlation or drift is modelled.
    """

    def __init__(
        self,
        portfolio: Portfolio,
        rng: RandomSource | None = None,
        seed: int | None = None,
    ) -> None:
        """
        Args:
            portfolio: Validated Portfolio to re-price.
            rng: Random source with a ``uniform(low, high, size)`` method.
                Defaults to ``numpy.random.default_rng(seed)``.
            seed: Seed for the default generator. Ignored when ``rng`` is given.
        """
        if not isinstance(portfolio, Portfolio):
            raise TypeError(f"Expected a Portfolio, got {type(portfolio).__name__}")
        self.portfolio = portfolio
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Core simulation
    # ------------------------------------------------------------------

    def draw_price_changes(self, trial_count: int) -> np.ndarray:
        """
        Draw the fractional price change of every asset in every trial.

        Returns an array of shape (trial_count, n_assets). Draw order is
        trial-major, so a fixed seed always yields the same matrix.
        """
        bounds = np.array(
            [a.volatility_pct for a in self.portfolio.assets], dtype=float
        ) / 100
        draws = self.rng.uniform(
            -bounds, bounds, size=(trial_count, len(bounds))
        )
        return np.asarray(draws, dtype=float).reshape(trial_count, len(bounds))

    def run(self, trial_count: int = DEFAULT_TRIALS) -> list[SimulationResult]:
        """
        Run ``trial_count`` independent trials.

        Steps, per trial and per asset:
            1. Draw the fractional price change.
            2. new_price = price * (1 + change).
            3. asset_value = nominal_value * (new_price / price), where
               nominal_value = allocation_pct / 100 * total_value.
            4. The trial total is the sum of asset values.

        Returns:
            A list ordered by iteration; empty when ``trial_count`` is 0.
        """
        if (
            not isinstance(trial_count, numbers.Integral)
            or isinstance(trial_count, bool)
            or trial_count < 0
        ):
            raise ValueError(f"trial_count must be a non-negative integer, got {trial_count!r}")
        trial_count = int(trial_count)

        assets = self.portfolio.assets
        logger.info(
            "Running %d trials over %d assets (total value %.2f)",
            trial_count, len(assets), self.portfolio.total_value,
        )
        if trial_count == 0:
            return []

        changes = self.draw_price_changes(trial_count)       # (trials, assets)
        prices = np.array([a.price for a in assets], dtype=float)
        nominal = np.array(
            [(a.allocation_pct / 100) * self.portfolio.total_value for a in assets],
            dtype=float,
        )

        new_prices = prices * (1 + changes)
        asset_values = nominal * (new_prices / prices)
        vols = np.array([a.volatility_pct for a in assets], dtype=float)
        # vol / 100 * 100 can round one ulp past vol
        change_pcts = np.clip(changes * 100, -vols, vols)

        symbols = [a.symbol for a in assets]
        results = []
        for i in range(trial_count):
            values = asset_values[i].tolist()
            outcomes = tuple(
                AssetOutcome(
                    symbol=symbol,
                    original_price=float(price),
                    new_price=float(new_price),
                    price_change_pct=float(pct),
                    asset_value=value,
                )
                for symbol, price, new_price, pct, value in zip(
                    symbols, prices, new_prices[i], change_pcts[i], values
                )
            )
            results.append(
                SimulationResult(
                    iteration=i + 1,
                    outcomes=outcomes,
                    total_value=float(sum(values)),
                )
            )

        logger.debug("Finished %d trials", trial_count)
        return results


# ----------------------------------------------------------------------
# Functional entry points
# ----------------------------------------------------------------------

def run_simulation(
    portfolio: Portfolio,
    trial_count: int = DEFAULT_TRIALS,
    rng: RandomSource | None = None,
    seed: int | None = None,
) -> list[SimulationResult]:
    """Run ``trial_count`` trials over ``portfolio`` with a fresh engine."""
    return MonteCarloEngine(portfolio, rng=rng, seed=seed).run(trial_count)


def results_to_frame(results: Sequence[SimulationResult]) -> pd.DataFrame:
    """Long-form table with one row per (trial, asset)."""
    columns = [
        "iteration", "symbol", "original_price", "new_price",
        "price_change_pct", "asset_value", "total_value",
    ]
    rows = [
        {"iteration": r.iteration, **o.to_dict(), "total_value": r.total_value}
        for r in results
        for o in r.outcomes
    ]
    return pd.DataFrame(rows, columns=columns)


def price_changes(result: SimulationResult) -> pd.Series:
    """Percentage price change per asset for a single trial."""
    return pd.Series(
        [o.price_change_pct for o in result.outcomes],
        index=[o.symbol for o in result.outcomes],
        name="price_change_pct",
    )
