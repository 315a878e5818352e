"""Load portfolio definitions from CSV files."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from risk_simulator.errors import InvalidAssetError
from risk_simulator.portfolio import Portfolio

REQUIRED_COLUMNS = ("symbol", "allocation_pct", "volatility_pct", "price")


def load_portfolio(path: str | Path, total_value: float) -> Portfolio:
    """
    Build a Portfolio from a CSV file.

    Args:
        path: CSV with columns [symbol, allocation_pct, volatility_pct, price],
            one row per asset in portfolio order.
        total_value: Capital distributed across the assets.

    Returns:
        A validated Portfolio instance.
    """
    df = load_assets(path)
    return Portfolio.from_records(df.to_dict("records"), total_value=total_value)


def load_assets(path: str | Path) -> pd.DataFrame:
    """Load an asset CSV into a DataFrame with typed columns."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Asset CSV not found: {path}")
    df = pd.read_csv(path)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidAssetError(f"Asset CSV missing columns: {missing}")

    df = df[list(REQUIRED_COLUMNS)].copy()
    df["symbol"] = df["symbol"].astype(str).str.strip()
    numeric = ["allocation_pct", "volatility_pct", "price"]
    try:
        df[numeric] = df[numeric].astype(float)
    except ValueError as exc:
        raise InvalidAssetError(f"Asset CSV has non-numeric values: {exc}") from exc
    return df
