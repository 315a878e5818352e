"""Assemble simulation output into a JSON-serialisable report."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Sequence

from risk_simulator.monte_carlo import SimulationResult, price_changes
from risk_simulator.portfolio import Portfolio
from risk_simulator.risk_metrics import RiskSummary

DEFAULT_DETAIL_TRIALS = 10


def build_report_data(
    portfolio: Portfolio,
    summary: RiskSummary,
    results: Sequence[SimulationResult],
    details: int = DEFAULT_DETAIL_TRIALS,
) -> dict:
    """Assemble all analysis data into a single dictionary.

    ``details`` limits how many trials are listed individually.
    """
    first_trial = (
        {k: round(v, 4) for k, v in price_changes(results[0]).items()}
        if results
        else {}
    )
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "portfolio": portfolio.summary(),
        "risk_metrics": summary.to_dict(),
        "simulation": {
            "n_trials": len(results),
            "first_trial_price_changes_pct": first_trial,
            "trials": [
                {
                    "iteration": r.iteration,
                    "total_value": round(r.total_value, 2),
                    "assets": {
                        o.symbol: {
                            "asset_value": round(o.asset_value, 2),
                            "price_change_pct": round(o.price_change_pct, 2),
                        }
                        for o in r.outcomes
                    },
                }
                for r in results[: max(details, 0)]
            ],
        },
    }


def render_json(data: dict) -> str:
    return json.dumps(data, indent=2)
