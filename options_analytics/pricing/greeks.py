"""Analytic Black-Scholes Greeks on top of the pricing model."""

import math
from typing import TYPE_CHECKING, Dict, Optional, Union

from options_analytics.data.models import GreeksResult, MarketContext, OptionContract, OptionType
from options_analytics.errors import InvalidInputError
from options_analytics.pricing.black_scholes import (
    d1_d2,
    intrinsic_value,
    raw_price,
    validate_inputs,
)
from options_analytics.pricing.normal import norm_cdf, norm_pdf

if TYPE_CHECKING:
    from options_analytics.config import EngineConfig

DAYS_PER_YEAR = 365


def vega_per_unit(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
) -> float:
    """dPrice/dVolatility for a 1.00 (100 point) volatility move. 0 at expiry."""
    if time_to_expiry <= 0:
        return 0.0
    d1, _ = d1_d2(spot, strike, time_to_expiry, rate, volatility)
    return spot * norm_pdf(d1) * math.sqrt(time_to_expiry)


def raw_greeks(
    spot: float,
    strike: float,
    time_to_expiry: float,
    rate: float,
    volatility: float,
    option_type: OptionType,
    days_per_year: int = DAYS_PER_YEAR,
) -> Dict[str, float]:
    """
    Unrounded price and Greeks. Inputs must already be validated.

    At expiry delta is a step function of moneyness and gamma, theta and
    vega are 0.
    """
    is_call = option_type is OptionType.CALL
    value = raw_price(spot, strike, time_to_expiry, rate, volatility, option_type)

    if time_to_expiry <= 0:
        if is_call:
            delta = 1.0 if spot > strike else 0.0
        else:
            delta = -1.0 if spot < strike else 0.0
        return {"price": value, "delta": delta, "gamma": 0.0, "theta": 0.0, "vega": 0.0}

    sqrt_t = math.sqrt(time_to_expiry)
    d1, d2 = d1_d2(spot, strike, time_to_expiry, rate, volatility)
    pdf_d1 = norm_pdf(d1)
    discounted_strike = strike * math.exp(-rate * time_to_expiry)

    decay = -(spot * pdf_d1 * volatility) / (2 * sqrt_t)
    if is_call:
        delta = norm_cdf(d1)
        theta = decay - rate * discounted_strike * norm_cdf(d2)
    else:
        delta = norm_cdf(d1) - 1
        theta = decay + rate * discounted_strike * norm_cdf(-d2)

    return {
        "price": value,
        "delta": delta,
        "gamma": pdf_d1 / (spot * volatility * sqrt_t),
        "theta": theta / days_per_year,
        "vega": spot * pdf_d1 * sqrt_t / 100,
    }


def calculate_greeks(
    spot: float,
    strike: float,
    days_to_expiry: float,
    volatility: float,
    rate: float = 0.05,
    option_type: Union[str, OptionType] = OptionType.CALL,
    days_per_year: int = DAYS_PER_YEAR,
) -> GreeksResult:
    """
    Price, Greeks and intrinsic/time value decomposition for one option.

    days_to_expiry is converted to years once and reused for the price and
    every Greek.

    Raises:
        InvalidInputError: spot/strike <= 0, negative days, volatility <= 0
    """
    kind = OptionType.parse(option_type)
    if days_to_expiry is None:
        raise InvalidInputError("days_to_expiry is required")
    t = days_to_expiry / days_per_year
    validate_inputs(spot, strike, t, rate, volatility)

    g = raw_greeks(spot, strike, t, rate, volatility, kind, days_per_year)
    theoretical = round(g["price"], 2)
    intrinsic = round(intrinsic_value(spot, strike, kind), 2)

    # time value comes from the rounded figures so the parts sum to the price
    return GreeksResult(
        delta=round(g["delta"], 4),
        gamma=round(g["gamma"], 4),
        theta=round(g["theta"], 4),
        vega=round(g["vega"], 4),
        theoretical_price=theoretical,
        intrinsic_value=intrinsic,
        time_value=round(max(0.0, theoretical - intrinsic), 2),
    )


class GreeksCalculator:
    """
    Computes Greeks for contracts against a market context.
    Used wherever a contract needs a fresh valuation (scenarios, scoring).
    """

    def __init__(self, config: Optional["EngineConfig"] = None) -> None:
        self.days_per_year = config.days_per_year if config is not None else DAYS_PER_YEAR

    def compute(
        self,
        spot: float,
        strike: float,
        days_to_expiry: float,
        volatility: float,
        rate: float,
        option_type: Union[str, OptionType],
    ) -> GreeksResult:
        return calculate_greeks(
            spot, strike, days_to_expiry, volatility, rate, option_type, self.days_per_year
        )

    def for_contract(
        self,
        contract: OptionContract,
        market: MarketContext,
        spot: Optional[float] = None,
        days_to_expiry: Optional[float] = None,
    ) -> GreeksResult:
        """
        Greeks for a contract using its IV (or the market fallback) and the market rate.

        spot and days_to_expiry override the market spot and the contract DTE,
        which is how scenarios re-price a contract.
        """
        return self.compute(
            spot=market.spot if spot is None else spot,
            strike=contract.strike,
            days_to_expiry=contract.dte if days_to_expiry is None else days_to_expiry,
            volatility=market.volatility_for(contract),
            rate=market.risk_free_rate,
            option_type=contract.contract_type,
        )
