"""Portfolio and asset definitions used as simulation inputs."""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

import pandas as pd

from risk_simulator.errors import InvalidAssetError, InvalidPortfolioError

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass(frozen=True)
class AssetModel:
    """One holding: symbol, allocation, volatility and reference price.

    ``volatility_pct`` is the largest percentage move a single trial can
    apply to the asset's price, not a standard deviation of returns.
    """

    symbol: str
    allocation_pct: float
    volatility_pct: float
    price: float

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise InvalidAssetError(f"Asset symbol must be a non-empty string: {self.symbol!r}")
        for name in ("allocation_pct", "volatility_pct"):
            value = getattr(self, name)
            if not _is_number(value) or not 0 <= value <= 100:
                raise InvalidAssetError(
                    f"{self.symbol}: {name} must be within [0, 100], got {value!r}"
                )
        if not _is_number(self.price) or self.price <= 0:
            raise InvalidAssetError(f"{self.symbol}: price must be positive, got {self.price!r}")

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "allocation_pct": self.allocation_pct,
            "volatility_pct": self.volatility_pct,
            "price": self.price,
        }


@dataclass(frozen=True)
class Portfolio:
    """An ordered set of assets plus the capital distributed across them.

    Portfolios are immutable. Use :meth:`with_allocation`,
    :meth:`with_volatility` or :meth:`with_total_value` to derive the
    inputs for the next run.

    Allocations are not required to sum to 100; a warning is logged when
    they do not.
    """

    assets: tuple[AssetModel, ...]
    total_value: float
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        assets = tuple(self.assets)
        object.__setattr__(self, "assets", assets)

        if not _is_number(self.total_value) or self.total_value <= 0:
            raise InvalidPortfolioError(
                f"Portfolio total value must be positive, got {self.total_value!r}"
            )
        if not assets:
            raise InvalidPortfolioError("Portfolio has no assets")
        for asset in assets:
            if not isinstance(asset, AssetModel):
                raise InvalidPortfolioError(f"Not an AssetModel: {asset!r}")

        symbols = [a.symbol for a in assets]
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise InvalidPortfolioError(f"Duplicate asset symbols: {duplicates}")
        object.__setattr__(self, "_index", {s: i for i, s in enumerate(symbols)})

        if not math.isclose(self.allocation_total, 100.0):
            logger.warning(
                "Allocations sum to %.2f%%, not 100%%; simulated values will not "
                "add up to the portfolio total",
                self.allocation_total,
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.assets)

    def __iter__(self) -> Iterator[AssetModel]:
        return iter(self.assets)

    def __getitem__(self, symbol: str) -> AssetModel:
        try:
            return self.assets[self._index[symbol]]
        except KeyError:
            raise InvalidPortfolioError(f"Unknown asset symbol: {symbol!r}") from None

    @property
    def symbols(self) -> list[str]:
        return [a.symbol for a in self.assets]

    @property
    def allocation_total(self) -> float:
        """Sum of all allocation percentages."""
        return float(sum(a.allocation_pct for a in self.assets))

    @property
    def nominal_values(self) -> pd.Series:
        """Capital assigned to each asset before any price move."""
        return pd.Series(
            [(a.allocation_pct / 100) * self.total_value for a in self.assets],
            index=self.symbols,
            name="nominal_value",
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per asset, including its nominal value."""
        df = pd.DataFrame([a.to_dict() for a in self.assets])
        df["nominal_value"] = self.nominal_values.values
        return df

    # ------------------------------------------------------------------
    # Derived portfolios
    # ------------------------------------------------------------------

    def _replace_asset(self, symbol: str, **changes: float) -> Portfolio:
        target = self[symbol]
        assets = tuple(
            replace(a, **changes) if a is target else a for a in self.assets
        )
        return Portfolio(assets=assets, total_value=self.total_value)

    def with_allocation(self, symbol: str, allocation_pct: float) -> Portfolio:
        return self._replace_asset(symbol, allocation_pct=allocation_pct)

    def with_volatility(self, symbol: str, volatility_pct: float) -> Portfolio:
        return self._replace_asset(symbol, volatility_pct=volatility_pct)

    def with_total_value(self, total_value: float) -> Portfolio:
        return Portfolio(assets=self.assets, total_value=total_value)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        """Return a summary dictionary of the portfolio."""
        return {
            "symbols": self.symbols,
            "allocations": {a.symbol: a.allocation_pct for a in self.assets},
            "volatilities": {a.symbol: a.volatility_pct for a in self.assets},
            "nominal_values": {
                k: round(v, 2) for k, v in self.nominal_values.items()
            },
            "total_value": round(self.total_value, 2),
            "allocation_total": round(self.allocation_total, 4),
        }

    @classmethod
    def from_records(
        cls,
        records: Iterable[dict],
        total_value: float,
    ) -> Portfolio:
        """Build a portfolio from mappings with AssetModel field names."""
        assets = []
        for rec in records:
            try:
                assets.append(
                    AssetModel(
                        symbol=rec["symbol"],
                        allocation_pct=rec["allocation_pct"],
                        volatility_pct=rec["volatility_pct"],
                        price=rec["price"],
                    )
                )
            except KeyError as exc:
                raise InvalidAssetError(f"Asset record missing field {exc}") from None
        return cls(assets=tuple(assets), total_value=total_value)


def sample_portfolio() -> Portfolio:
    """BTC/ETH/USDC portfolio worth 10,000."""
    return Portfolio(
        assets=(
            AssetModel("BTC", 40, 50, 50000),
            AssetModel("ETH", 30, 40, 3000),
            AssetModel("USDC", 30, 5, 1),
        ),
        total_value=10000,
    )
