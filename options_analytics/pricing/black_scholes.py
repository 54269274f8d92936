"""European option valuation (Black-Scholes, no dividends)."""

import math
from typing import Tuple, Union

import numpy as np

from options_analytics.data.models import OptionType
from options_analytics.errors import InvalidInputError
from options_analytics.pricing.normal import norm_cdf


def validate_inputs(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
) -> None:
    """
    Reject inputs the closed form cannot take.

    Raises:
        InvalidInputError: non-finite values, spot/strike <= 0, negative time,
            or volatility <= 0.
    """
    for name, value in (
        ("spot", spot),
        ("strike", strike),
        ("time_to_expiry", time_to_expiry),
        ("rate", rate),
        ("volatility", volatility),
    ):
        if value is None or not np.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number, got {value!r}")

    if spot <= 0:
        raise InvalidInputError(f"Spot price must be positive, got {spot}")
    if strike <= 0:
        raise InvalidInputError(f"Strike price must be positive, got {strike}")
    if time_to_expiry < 0:
        raise InvalidInputError(f"Time to expiry must be >= 0, got {time_to_expiry}")
    if volatility <= 0:
        raise InvalidInputError(f"Volatility must be positive, got {volatility}")


def intrinsic_value(spot: float, strike: float, option_type: Union[str, OptionType]) -> float:
    """Exercise value: max(0, S - K) for calls, max(0, K - S) for puts."""
    if OptionType.parse(option_type) is OptionType.CALL:
        return max(0.0, spot - strike)
    return max(0.0, strike - spot)


def d1_d2(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
) -> Tuple[float, float]:
    """Normalized moneyness terms. Requires time_to_expiry > 0."""
    vol_sqrt_t = volatility * math.sqrt(time_to_expiry)
    d1 = (math.log(spot / strike) + (rate + volatility * volatility / 2) * time_to_expiry) / vol_sqrt_t
    return d1, d1 - vol_sqrt_t


def raw_price(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
    option_type: OptionType,
) -> float:
    """Price without input validation; callers validate first."""
    if time_to_expiry <= 0:
        return intrinsic_value(spot, strike, option_type)

    d1, d2 = d1_d2(spot, strike, time_to_expiry, rate, volatility)
    discounted_strike = strike * math.exp(-rate * time_to_expiry)

    if option_type is OptionType.CALL:
        return spot * norm_cdf(d1) - discounted_strike * norm_cdf(d2)
    return discounted_strike * norm_cdf(-d2) - spot * norm_cdf(-d1)


def price(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
    option_type: Union[str, OptionType],
) -> float:
    """
    Theoretical European option price.

    Args:
        spot: Underlying price (> 0)
        strike: Strike price (> 0)
        time_to_expiry: Years to expiration (>= 0); 0 returns intrinsic value
        rate: Annualized risk-free rate (continuous compounding)
        volatility: Annualized volatility (> 0)
        option_type: 'call' or 'put'

    Returns:
        Unrounded option value

    Raises:
        InvalidInputError: see validate_inputs
    """
    kind = OptionType.parse(option_type)
    validate_inputs(spot, strike, time_to_expiry, rate, volatility)
    return raw_price(spot, strike, time_to_expiry, rate, volatility, kind)
