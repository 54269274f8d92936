"""Converts already-fetched option chain tables into OptionContract records."""

import logging
import math
from datetime import date, datetime
from typing import List, Optional, Union

import pandas as pd

from options_analytics.data.models import OptionContract, OptionType
from options_analytics.errors import InvalidInputError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _safe_float(val, default: float = 0.0) -> float:
    """Convert to float, mapping None/NaN/inf/garbage to default."""
    if val is None:
        return default
    try:
        f = float(val)
    except (ValueError, TypeError):
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def _safe_int(val, default: int = 0) -> int:
    return int(_safe_float(val, float(default)))


def days_to_expiration(expiration: DateLike, as_of: DateLike) -> int:
    """Whole calendar days from as_of to expiration, floored at 0."""
    return max(0, (_to_date(expiration) - _to_date(as_of)).days)


def historical_volatility_proxy(
    fifty_two_week_high: Optional[float],
    fifty_two_week_low: Optional[float],
    price: float,
    default: float = 0.30,
) -> float:
    """
    Rough volatility estimate from the 52-week range: (high - low) / price.

    Falls back to default when the range is missing or degenerate.
    """
    high = _safe_float(fifty_two_week_high, default=math.nan)
    low = _safe_float(fifty_two_week_low, default=math.nan)
    if math.isnan(high) or math.isnan(low) or price <= 0 or high <= low:
        return default
    return (high - low) / price


def contracts_from_frame(
    df: pd.DataFrame,
    underlying: str,
    contract_type: Union[str, OptionType],
    expiration: DateLike,
    as_of: DateLike,
) -> List[OptionContract]:
    """
    Build contracts from a yfinance-style chain table.

    Expected columns: strike, bid, ask, lastPrice, volume, openInterest,
    impliedVolatility and optionally contractSymbol. Missing or NaN numeric
    values become 0; a missing or non-positive IV becomes None. Rows that
    fail validation (e.g. crossed quotes) are skipped.
    """
    kind = OptionType.parse(contract_type)
    exp = _to_date(expiration)
    dte = days_to_expiration(exp, as_of)

    contracts: List[OptionContract] = []
    for _, row in df.iterrows():
        iv = _safe_float(row.get("impliedVolatility"), default=0.0)
        contract_symbol = row.get("contractSymbol")
        try:
            contracts.append(
                OptionContract(
                    underlying=underlying,
                    contract_type=kind,
                    strike=_safe_float(row.get("strike")),
                    dte=dte,
                    bid=_safe_float(row.get("bid")),
                    ask=_safe_float(row.get("ask")),
                    last=_safe_float(row.get("lastPrice")),
                    volume=_safe_int(row.get("volume")),
                    open_interest=_safe_int(row.get("openInterest")),
                    implied_volatility=iv if iv > 0 else None,
                    expiration=exp,
                    symbol=contract_symbol if isinstance(contract_symbol, str) else "",
                )
            )
        except InvalidInputError as e:
            logger.warning("Skipping %s row (strike=%s): %s", underlying, row.get("strike"), e)

    return contracts
