"""Command-line entry point.

Usage:
    python -m options_analytics.main greeks --spot 100 --strike 100 --days 91 --vol 0.30 --type call
    python -m options_analytics.main iv --spot 100 --strike 100 --days 91 --price 6.57 --type call
    python -m options_analytics.main scenarios --spot 100 --strike 100 --days 30 --vol 0.30 --type put
    python -m options_analytics.main scan --chain chain.csv --underlying AAPL --spot 230 --profile scalping

Environment variables:
    RISK_FREE_RATE          Annualized risk-free rate (default: 0.05)
    FALLBACK_VOLATILITY     Volatility used when a contract has no IV (default: 0.30)
    IV_TOLERANCE            IV solver price tolerance (default: 1e-4)
    IV_MAX_ITERATIONS       IV solver iteration cap (default: 100)
    SCALP_PASS_THRESHOLD    Qualifying scalp score (default: 80)
    LOG_LEVEL               Logging level (default: WARNING)
"""

import argparse
import logging
import os
import sys
from datetime import date
from typing import List, Optional

import pandas as pd

from options_analytics.config import EngineConfig
from options_analytics.data.chain import contracts_from_frame
from options_analytics.data.models import OptionContract
from options_analytics.errors import AnalyticsError, NonConvergentError
from options_analytics.pricing.greeks import GreeksCalculator
from options_analytics.pricing.implied_vol import ImpliedVolatilitySolver
from options_analytics.scenarios.engine import ScenarioEngine
from options_analytics.signals.profiles import BUILTIN_PROFILES, get_profile, scan_time_profile
from options_analytics.signals.scanner import OpportunityScanner

logger = logging.getLogger(__name__)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def build_config() -> EngineConfig:
    """Build EngineConfig from environment variables.

    Only overrides EngineConfig defaults when the env var is explicitly set.
    All defaults live in config.py as the single source of truth.
    """
    overrides = {}

    if os.getenv("RISK_FREE_RATE"):
        overrides["risk_free_rate"] = _env_float("RISK_FREE_RATE", 0.05)
    if os.getenv("FALLBACK_VOLATILITY"):
        overrides["fallback_volatility"] = _env_float("FALLBACK_VOLATILITY", 0.30)
    if os.getenv("IV_TOLERANCE"):
        overrides["iv_tolerance"] = _env_float("IV_TOLERANCE", 1e-4)
    if os.getenv("IV_MAX_ITERATIONS"):
        overrides["iv_max_iterations"] = _env_int("IV_MAX_ITERATIONS", 100)
    if os.getenv("SCALP_PASS_THRESHOLD"):
        overrides["scalp_pass_threshold"] = _env_float("SCALP_PASS_THRESHOLD", 80.0)

    return EngineConfig(**overrides)


def _contract_from_args(args: argparse.Namespace) -> OptionContract:
    return OptionContract(
        underlying=args.underlying,
        contract_type=args.type,
        strike=args.strike,
        dte=args.days,
        bid=args.bid,
        ask=args.ask,
        last=args.last,
        implied_volatility=getattr(args, "vol", None),
    )


def _resolve_profile(name: str):
    if name.lower() in BUILTIN_PROFILES:
        return get_profile(name)
    return scan_time_profile(name)


def cmd_greeks(args: argparse.Namespace, config: EngineConfig) -> int:
    greeks = GreeksCalculator(config).compute(
        spot=args.spot,
        strike=args.strike,
        days_to_expiry=args.days,
        volatility=args.vol,
        rate=config.risk_free_rate,
        option_type=args.type,
    )
    for key, value in greeks.as_dict().items():
        print(f"{key:<18} {value}")
    return 0


def cmd_iv(args: argparse.Namespace, config: EngineConfig) -> int:
    solver = ImpliedVolatilitySolver(config)
    try:
        iv = solver.solve(
            spot=args.spot,
            strike=args.strike,
            days_to_expiry=args.days,
            rate=config.risk_free_rate,
            observed_price=args.price,
            option_type=args.type,
        )
    except NonConvergentError as e:
        estimate = f"{e.best_estimate:.4f}" if e.best_estimate is not None else "n/a"
        print(f"IV did not converge: {e} (best estimate {estimate})")
        return 2
    print(f"implied_volatility {iv:.4f}")
    return 0


def cmd_scenarios(args: argparse.Namespace, config: EngineConfig) -> int:
    contract = _contract_from_args(args)
    market = config.make_market(args.spot)
    matrix = ScenarioEngine(config).generate_matrix(contract, market)

    print("=" * 60)
    print(f"Scenarios: {contract} | base value {matrix.base_price:.2f}")
    print("=" * 60)
    print("\nPrice shocks")
    print(matrix.price_frame()[["new_spot", "new_price", "profit_loss", "delta", "delta_change"]].to_string())
    print("\nTime decay")
    print(matrix.decay_frame().to_string())
    print("\nCombined P/L (price change x days elapsed)")
    print(matrix.combined_pivot().to_string())

    metrics = matrix.risk_metrics
    if metrics is not None:
        ratio = f"{metrics.risk_reward_ratio:.2f}" if metrics.risk_reward_ratio is not None else "n/a"
        print(
            f"\nMax profit {metrics.max_profit:.2f} | Max loss {metrics.max_loss:.2f} | "
            f"R/R {ratio} | Breakeven ~{metrics.breakeven_change:+g}% (grid estimate)"
        )
    return 0


def load_chain(path: str, underlying: str, as_of: date) -> List[OptionContract]:
    """Read a chain CSV with 'type' and 'expiration' columns plus yfinance quote columns."""
    frame = pd.read_csv(path)
    missing = {"type", "expiration", "strike"} - set(frame.columns)
    if missing:
        raise AnalyticsError(f"Chain file {path} is missing columns: {sorted(missing)}")

    contracts: List[OptionContract] = []
    for (kind, expiration), group in frame.groupby(["type", "expiration"], sort=True):
        contracts.extend(contracts_from_frame(group, underlying, kind, expiration, as_of))
    return contracts


def cmd_scan(args: argparse.Namespace, config: EngineConfig) -> int:
    as_of = pd.Timestamp(args.as_of).date() if args.as_of else date.today()
    contracts = load_chain(args.chain, args.underlying, as_of)
    market = config.make_market(args.spot)
    profile = _resolve_profile(args.profile)
    scanner = OpportunityScanner(config, solve_missing_iv=args.solve_iv)

    if profile.name == "scalping":
        results = scanner.find_scalps(contracts, market, profile, limit=args.limit)
    else:
        results = scanner.find_opportunities(contracts, market, profile, limit=args.limit)

    print(f"{len(contracts)} contracts scanned with profile '{profile.name}': {len(results)} results")
    for opp in results:
        line = str(opp)
        if opp.scalp_plan is not None:
            plan = opp.scalp_plan
            line += f" | entry {plan.entry_price:.2f} target +{plan.target_profit:.2f} ({plan.timeframe})"
        print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="options_analytics", description="Options analytics engine")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_contract_args(p: argparse.ArgumentParser, with_vol: bool = True) -> None:
        p.add_argument("--spot", type=float, required=True)
        p.add_argument("--strike", type=float, required=True)
        p.add_argument("--days", type=int, required=True)
        p.add_argument("--type", choices=["call", "put"], default="call")
        if with_vol:
            p.add_argument("--vol", type=float, required=True)

    p = sub.add_parser("greeks", help="Theoretical price and Greeks")
    add_contract_args(p)
    p.set_defaults(func=cmd_greeks)

    p = sub.add_parser("iv", help="Implied volatility from a market price")
    add_contract_args(p, with_vol=False)
    p.add_argument("--price", type=float, required=True)
    p.set_defaults(func=cmd_iv)

    p = sub.add_parser("scenarios", help="Price/time scenario matrix")
    add_contract_args(p)
    p.add_argument("--underlying", default="")
    p.add_argument("--bid", type=float, default=0.0)
    p.add_argument("--ask", type=float, default=0.0)
    p.add_argument("--last", type=float, default=0.0)
    p.set_defaults(func=cmd_scenarios)

    p = sub.add_parser("scan", help="Score an option chain CSV")
    p.add_argument("--chain", required=True)
    p.add_argument("--underlying", required=True)
    p.add_argument("--spot", type=float, required=True)
    p.add_argument("--profile", default="general")
    p.add_argument("--as-of", dest="as_of", default=None)
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--solve-iv", dest="solve_iv", action="store_true")
    p.set_defaults(func=cmd_scan)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    config = build_config()
    try:
        return args.func(args, config)
    except AnalyticsError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
