"""Tests for the Monte Carlo simulation module."""

import numpy as np
import pandas as pd
import pytest

from risk_simulator.monte_carlo import (
    DEFAULT_TRIALS,
    MonteCarloEngine,
    SimulationResult,
    price_changes,
    results_to_frame,
    run_simulation,
)
from risk_simulator.portfolio import AssetModel, Portfolio


class _ZeroSource:
    """Random source whose every draw is zero."""

    def uniform(self, low=0.0, high=1.0, size=None):
        return np.zeros(size)


class _UpperBoundSource:
    """Random source that always returns the upper bound."""

    def uniform(self, low=0.0, high=1.0, size=None):
        return np.broadcast_to(np.asarray(high, dtype=float), size).copy()


def _make_portfolio() -> Portfolio:
    return Portfolio(
        (
            AssetModel("BTC", 40, 50, 50000),
            AssetModel("ETH", 30, 40, 3000),
            AssetModel("USDC", 30, 5, 1),
        ),
        total_value=10000,
    )


def test_simulation_output_length():
    results = MonteCarloEngine(_make_portfolio(), seed=42).run(250)

    assert len(results) == 250
    assert all(isinstance(r, SimulationResult) for r in results)
    assert all(len(r.outcomes) == 3 for r in results)


def test_default_trial_count():
    results = MonteCarloEngine(_make_portfolio(), seed=42).run()
    assert len(results) == DEFAULT_TRIALS == 100


def test_iterations_are_one_based_and_ordered():
    results = run_simulation(_make_portfolio(), 20, seed=3)
    assert [r.iteration for r in results] == list(range(1, 21))


def test_outcomes_follow_portfolio_order():
    results = run_simulation(_make_portfolio(), 5, seed=3)
    for r in results:
        assert [o.symbol for o in r.outcomes] == ["BTC", "ETH", "USDC"]
        assert [o.original_price for o in r.outcomes] == [50000.0, 3000.0, 1.0]


def test_simulation_with_seed_reproducible():
    result1 = run_simulation(_make_portfolio(), 50, seed=123)
    result2 = run_simulation(_make_portfolio(), 50, seed=123)

    assert result1 == result2


def test_injected_generator_reproducible():
    result1 = run_simulation(_make_portfolio(), 50, rng=np.random.default_rng(9))
    result2 = run_simulation(_make_portfolio(), 50, rng=np.random.default_rng(9))

    assert [r.total_value for r in result1] == [r.total_value for r in result2]


def test_simulation_different_seeds_differ():
    totals1 = [r.total_value for r in run_simulation(_make_portfolio(), 50, seed=1)]
    totals2 = [r.total_value for r in run_simulation(_make_portfolio(), 50, seed=2)]

    assert not np.allclose(totals1, totals2)


def test_draw_order_is_trial_major():
    portfolio = _make_portfolio()
    draws = MonteCarloEngine(portfolio, rng=np.random.default_rng(5)).draw_price_changes(4)

    rng = np.random.default_rng(5)
    bounds = np.array([0.5, 0.4, 0.05])
    expected = rng.uniform(-bounds, bounds, size=(4, 3))
    np.testing.assert_array_equal(draws, expected)


def test_zero_source_returns_nominal_values():
    results = run_simulation(_make_portfolio(), 1, rng=_ZeroSource())

    assert len(results) == 1
    result = results[0]
    assert result.total_value == 10000.0
    assert [o.asset_value for o in result.outcomes] == [4000.0, 3000.0, 3000.0]
    assert all(o.new_price == o.original_price for o in result.outcomes)
    assert all(o.price_change_pct == 0.0 for o in result.outcomes)


def test_zero_trials_returns_empty_list():
    assert run_simulation(_make_portfolio(), 0, seed=1) == []


@pytest.mark.parametrize("trials", [-1, 2.5, True, "10"])
def test_invalid_trial_count_raises(trials):
    engine = MonteCarloEngine(_make_portfolio(), seed=1)
    with pytest.raises(ValueError, match="trial_count"):
        engine.run(trials)


def test_engine_requires_portfolio():
    with pytest.raises(TypeError):
        MonteCarloEngine([AssetModel("BTC", 100, 10, 1.0)])


def test_zero_volatility_invariance():
    portfolio = Portfolio(
        (
            AssetModel("A", 25, 0, 12.5),
            AssetModel("B", 35, 0, 7.0),
            AssetModel("C", 15, 0, 300.0),
        ),
        total_value=7321.5,
    )
    expected = sum((a.allocation_pct / 100) * portfolio.total_value for a in portfolio)

    results = run_simulation(portfolio, 200, seed=11)

    assert all(r.total_value == expected for r in results)


def test_single_asset_zero_volatility_totals():
    portfolio = Portfolio((AssetModel("X", 100, 0, 100),), total_value=100)
    results = run_simulation(portfolio, 50, seed=0)

    assert len(results) == 50
    assert all(r.total_value == 100.0 for r in results)


def test_bounded_perturbation():
    portfolio = _make_portfolio()
    results = run_simulation(portfolio, 1000, seed=42)

    for r in results:
        for asset, o in zip(portfolio.assets, r.outcomes):
            assert abs(o.price_change_pct) <= asset.volatility_pct


def test_upper_bound_draw():
    results = run_simulation(_make_portfolio(), 2, rng=_UpperBoundSource())
    btc = results[0].outcome("BTC")

    assert btc.new_price == pytest.approx(75000.0)
    assert btc.price_change_pct == pytest.approx(50.0)
    assert btc.asset_value == pytest.approx(6000.0)
    assert results[0].total_value == pytest.approx(6000.0 + 4200.0 + 3150.0)


def test_asset_value_uses_price_ratio():
    portfolio = _make_portfolio()
    results = run_simulation(portfolio, 100, seed=8)

    for r in results:
        for asset, o in zip(portfolio.assets, r.outcomes):
            nominal = (asset.allocation_pct / 100) * portfolio.total_value
            assert o.new_price == pytest.approx(o.original_price * (1 + o.price_change_pct / 100))
            assert o.asset_value == pytest.approx(nominal * (o.new_price / o.original_price))


def test_total_is_sum_of_asset_values():
    for r in run_simulation(_make_portfolio(), 100, seed=8):
        assert r.total_value == sum(o.asset_value for o in r.outcomes)


def test_reference_price_magnitude_cancels():
    cheap = Portfolio((AssetModel("A", 100, 30, 1.0),), total_value=1000)
    dear = Portfolio((AssetModel("A", 100, 30, 1e6),), total_value=1000)

    totals_cheap = [r.total_value for r in run_simulation(cheap, 100, seed=4)]
    totals_dear = [r.total_value for r in run_simulation(dear, 100, seed=4)]

    np.testing.assert_allclose(totals_cheap, totals_dear, rtol=1e-12)


def test_outcome_lookup():
    result = run_simulation(_make_portfolio(), 1, seed=1)[0]
    assert result.outcome("ETH").symbol == "ETH"
    with pytest.raises(KeyError):
        result.outcome("DOGE")


def test_results_to_frame():
    results = run_simulation(_make_portfolio(), 10, seed=1)
    df = results_to_frame(results)

    assert isinstance(df, pd.DataFrame)
    assert len(df) == 30
    assert list(df.columns) == [
        "iteration", "symbol", "original_price", "new_price",
        "price_change_pct", "asset_value", "total_value",
    ]
    grouped = df.groupby("iteration")["asset_value"].sum()
    np.testing.assert_allclose(grouped.values, [r.total_value for r in results])


def test_results_to_frame_empty():
    df = results_to_frame([])
    assert df.empty
    assert "total_value" in df.columns


def test_price_changes_series():
    result = run_simulation(_make_portfolio(), 1, seed=1)[0]
    changes = price_changes(result)

    assert list(changes.index) == ["BTC", "ETH", "USDC"]
    assert changes["USDC"] == result.outcome("USDC").price_change_pct


def test_result_to_dict():
    d = run_simulation(_make_portfolio(), 1, rng=_ZeroSource())[0].to_dict()
    assert d["iteration"] == 1
    assert d["total_value"] == 10000.0
    assert d["assets"][0]["symbol"] == "BTC"


class _LowerBoundSource:
    """Random source that always returns the lower bound."""

    def uniform(self, low=0.0, high=1.0, size=None):
        return np.broadcast_to(np.asarray(low, dtype=float), size).copy()


@pytest.mark.parametrize("source", [_UpperBoundSource(), _LowerBoundSource()])
def test_boundary_draw_never_exceeds_volatility(source):
    vols = [7, 0.1, 13.3, 29, 57, 99.9]
    portfolio = Portfolio(
        tuple(AssetModel(f"A{i}", 10, v, 1.0) for i, v in enumerate(vols)),
        total_value=1000,
    )
    result = run_simulation(portfolio, 1, rng=source)[0]

    for asset, o in zip(portfolio.assets, result.outcomes):
        assert abs(o.price_change_pct) <= asset.volatility_pct
        assert abs(o.price_change_pct) == pytest.approx(asset.volatility_pct)
