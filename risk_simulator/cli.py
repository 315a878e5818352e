"""Command-line interface for the portfolio risk simulator."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from risk_simulator.data_loader import load_portfolio
from risk_simulator.errors import RiskSimulatorError
from risk_simulator.monte_carlo import DEFAULT_TRIALS, MonteCarloEngine, price_changes
from risk_simulator.portfolio import Portfolio, sample_portfolio
from risk_simulator.report import DEFAULT_DETAIL_TRIALS, build_report_data, render_json
from risk_simulator.risk_metrics import RiskCalculator

logger = logging.getLogger(__name__)

console = Console()


def _symbol_pct(text: str) -> tuple[str, float]:
    symbol, sep, value = text.partition("=")
    if not sep or not symbol.strip():
        raise argparse.ArgumentTypeError(f"expected SYMBOL=PCT, got {text!r}")
    try:
        return symbol.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="risk-simulator",
        description="Monte Carlo risk profile of a multi-asset portfolio.",
    )

    parser.add_argument(
        "--portfolio", "-p",
        type=str,
        default=None,
        help="CSV with columns symbol,allocation_pct,volatility_pct,price "
             "(default: built-in BTC/ETH/USDC sample)",
    )
    parser.add_argument(
        "--total-value",
        type=float,
        default=None,
        help="Total portfolio value (default: 10,000)",
    )
    parser.add_argument(
        "--trials", "-n",
        type=int,
        default=DEFAULT_TRIALS,
        help=f"Number of trials (default: {DEFAULT_TRIALS})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--allocation",
        type=_symbol_pct,
        action="append",
        default=[],
        metavar="SYMBOL=PCT",
        help="Override an asset's allocation percentage (repeatable)",
    )
    parser.add_argument(
        "--volatility",
        type=_symbol_pct,
        action="append",
        default=[],
        metavar="SYMBOL=PCT",
        help="Override an asset's volatility percentage (repeatable)",
    )
    parser.add_argument(
        "--details",
        type=int,
        default=DEFAULT_DETAIL_TRIALS,
        help=f"Number of individual trials to list (default: {DEFAULT_DETAIL_TRIALS})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON instead of tables",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Shortcut for --log-level INFO",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def build_portfolio(args: argparse.Namespace) -> Portfolio:
    """Load or construct the portfolio and apply command-line overrides."""
    if args.portfolio:
        total = args.total_value if args.total_value is not None else 10_000.0
        portfolio = load_portfolio(args.portfolio, total_value=total)
    else:
        portfolio = sample_portfolio()
        if args.total_value is not None:
            portfolio = portfolio.with_total_value(args.total_value)

    for symbol, pct in args.allocation:
        portfolio = portfolio.with_allocation(symbol, pct)
    for symbol, pct in args.volatility:
        portfolio = portfolio.with_volatility(symbol, pct)
    return portfolio


def run(args: argparse.Namespace) -> None:
    """Execute the simulation and print the results."""
    try:
        portfolio = build_portfolio(args)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Error loading portfolio:[/red] {exc}")
        sys.exit(1)

    engine = MonteCarloEngine(portfolio, seed=args.seed)
    try:
        results = engine.run(args.trials)
        summary = RiskCalculator(results).compute_all()
    except RiskSimulatorError as exc:
        console.print(f"[red]Simulation failed:[/red] {exc}")
        sys.exit(1)
    except ValueError as exc:
        console.print(f"[red]Invalid arguments:[/red] {exc}")
        sys.exit(2)

    if args.json:
        data = build_report_data(portfolio, summary, results, details=args.details)
        console.print_json(render_json(data))
        return

    console.print(Panel.fit(
        "[bold blue]Portfolio Risk Simulator[/bold blue]\n"
        "Uniform price perturbation Monte Carlo",
        border_style="blue",
    ))

    # -------------------------------------------------------------- Portfolio table
    holdings = Table(title="Portfolio Composition")
    holdings.add_column("Symbol", style="cyan")
    holdings.add_column("Allocation", justify="right")
    holdings.add_column("Volatility", justify="right")
    holdings.add_column("Price", justify="right")
    holdings.add_column("Nominal Value", justify="right")
    for asset, nominal in zip(portfolio.assets, portfolio.nominal_values):
        holdings.add_row(
            asset.symbol,
            f"{asset.allocation_pct:g}%",
            f"{asset.volatility_pct:g}%",
            f"${asset.price:,.2f}",
            f"${nominal:,.2f}",
        )
    console.print(holdings)
    console.print(f"  Total portfolio value: ${portfolio.total_value:,.2f}")

    # ---------------------------------------------------------------- Risk metrics
    metrics = Table(title=f"Risk Metrics ({summary.trial_count:,} trials)")
    metrics.add_column("Metric", style="cyan")
    metrics.add_column("Value", justify="right")
    metrics.add_row("Mean Value", f"${summary.mean_value:,.2f}")
    metrics.add_row("Standard Deviation", f"${summary.standard_deviation:,.2f}")
    metrics.add_row("Value at Risk (95%)", f"${summary.value_at_risk_95:,.2f}")
    ratio = (
        f"{summary.mean_to_stdev_ratio:.2f}"
        if summary.ratio_defined
        else "undefined (zero deviation)"
    )
    metrics.add_row("Mean / Std Dev (\"Sharpe\")", ratio)
    console.print(metrics)

    # ------------------------------------------------------------- Trial details
    if results and args.details > 0:
        changes = Table(title="Trial 1 Price Changes")
        changes.add_column("Symbol", style="cyan")
        changes.add_column("Change", justify="right")
        for symbol, pct in price_changes(results[0]).items():
            changes.add_row(symbol, f"{pct:+.2f}%")
        console.print(changes)

        details = Table(title="Simulation Details")
        details.add_column("Trial", justify="right")
        details.add_column("Total Value", justify="right")
        for asset in portfolio.assets:
            details.add_column(asset.symbol, justify="right")
        for r in results[: args.details]:
            details.add_row(
                str(r.iteration),
                f"${r.total_value:,.2f}",
                *(
                    f"${o.asset_value:,.2f} ({o.price_change_pct:+.2f}%)"
                    for o in r.outcomes
                ),
            )
        console.print(details)


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("INFO" if args.verbose else args.log_level)
    logger.debug("Arguments: %s", vars(args))
    run(args)


if __name__ == "__main__":
    main()
