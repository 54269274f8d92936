"""Implied volatility via Newton-Raphson on the pricing model."""

import logging
import math
from typing import TYPE_CHECKING, Optional, Union

import numpy as np

from options_analytics.data.models import MarketContext, OptionContract, OptionType
from options_analytics.errors import InvalidInputError, NonConvergentError
from options_analytics.pricing.black_scholes import raw_price, validate_inputs
from options_analytics.pricing.greeks import DAYS_PER_YEAR, vega_per_unit

if TYPE_CHECKING:
    from options_analytics.config import EngineConfig

logger = logging.getLogger(__name__)

IV_INITIAL_GUESS = 0.30
IV_TOLERANCE = 1e-4
IV_MAX_ITERATIONS = 100
IV_MIN = 0.01
IV_MAX = 5.0
IV_MIN_VEGA = 1e-8
IV_ACCEPT_RESIDUAL = 0.01  # best estimate must reprice within a cent


def solve_iv(
    spot: float,
    strike: float,
    days_to_expiry: float,
    rate: float,
    observed_price: float,
    option_type: Union[str, OptionType],
    initial_guess: float = IV_INITIAL_GUESS,
    tolerance: float = IV_TOLERANCE,
    max_iterations: int = IV_MAX_ITERATIONS,
    min_vol: float = IV_MIN,
    max_vol: float = IV_MAX,
    min_vega: float = IV_MIN_VEGA,
    accept_residual: float = IV_ACCEPT_RESIDUAL,
    days_per_year: int = DAYS_PER_YEAR,
) -> float:
    """
    Find the volatility whose theoretical price matches observed_price.

    Each step moves the guess by (observed - theoretical) / vega and clamps it
    into [min_vol, max_vol]. Iteration stops once the price residual is below
    tolerance.

    When vega collapses (deep ITM/OTM, or nearly expired) the step is not
    taken: the best guess so far is returned if some iteration improved on
    the starting residual and that guess reprices within accept_residual.
    Otherwise NonConvergentError is raised, carrying the best guess.

    Raises:
        InvalidInputError: bad spot/strike/rate, negative days, observed_price <= 0
        NonConvergentError: budget exhausted, iteration stalled at a bound,
            no time value left, or vega collapsed before any improvement
    """
    kind = OptionType.parse(option_type)
    if observed_price is None or not np.isfinite(observed_price) or observed_price <= 0:
        raise InvalidInputError(f"Observed price must be positive, got {observed_price!r}")
    if days_to_expiry is None:
        raise InvalidInputError("days_to_expiry is required")

    t = days_to_expiry / days_per_year
    validate_inputs(spot, strike, t, rate, initial_guess)
    if t == 0:
        raise NonConvergentError("Option has expired; price carries no volatility information")

    sigma = min(max(initial_guess, min_vol), max_vol)
    best_sigma: Optional[float] = None
    best_residual = math.inf
    start_residual: Optional[float] = None

    for iteration in range(1, max_iterations + 1):
        diff = observed_price - raw_price(spot, strike, t, rate, sigma, kind)
        residual = abs(diff)
        if start_residual is None:
            start_residual = residual
        if residual < best_residual:
            best_sigma, best_residual = sigma, residual

        if residual < tolerance:
            logger.debug("IV converged to %.6f after %d iterations", sigma, iteration)
            return sigma

        vega = vega_per_unit(spot, strike, t, rate, sigma)
        if vega < min_vega:
            if best_residual < start_residual and best_residual <= accept_residual:
                logger.debug(
                    "IV vega collapsed at iteration %d, returning best estimate %.6f (residual %.6f)",
                    iteration, best_sigma, best_residual,
                )
                return best_sigma
            if best_residual < start_residual:
                message = (
                    f"Vega vanished at sigma={sigma:.4f} with residual {best_residual:.6f} "
                    f"still above {accept_residual}"
                )
            else:
                message = f"Vega vanished at sigma={sigma:.4f} before the residual improved"
            raise NonConvergentError(
                message,
                best_estimate=best_sigma,
                residual=best_residual,
                iterations=iteration,
            )

        next_sigma = min(max(sigma + diff / vega, min_vol), max_vol)
        if next_sigma == sigma:
            raise NonConvergentError(
                f"IV iteration stalled at bound {sigma:.4f} (residual {residual:.6f})",
                best_estimate=best_sigma,
                residual=best_residual,
                iterations=iteration,
            )
        sigma = next_sigma

    raise NonConvergentError(
        f"IV did not converge within {max_iterations} iterations (residual {best_residual:.6f})",
        best_estimate=best_sigma,
        residual=best_residual,
        iterations=max_iterations,
    )


class ImpliedVolatilitySolver:
    """
    Solves IV with the configured guard rails.
    """

    def __init__(self, config: Optional["EngineConfig"] = None) -> None:
        self.config = config

    def _settings(self) -> dict:
        c = self.config
        if c is None:
            return {}
        return {
            "initial_guess": c.iv_initial_guess,
            "tolerance": c.iv_tolerance,
            "max_iterations": c.iv_max_iterations,
            "min_vol": c.iv_min,
            "max_vol": c.iv_max,
            "min_vega": c.iv_min_vega,
            "accept_residual": c.iv_accept_residual,
            "days_per_year": c.days_per_year,
        }

    def solve(
        self,
        spot: float,
        strike: float,
        days_to_expiry: float,
        rate: float,
        observed_price: float,
        option_type: Union[str, OptionType],
    ) -> float:
        return solve_iv(
            spot, strike, days_to_expiry, rate, observed_price, option_type, **self._settings()
        )

    def solve_for_contract(
        self,
        contract: OptionContract,
        market: MarketContext,
        observed_price: Optional[float] = None,
    ) -> float:
        """Solve IV for a contract, priced at its mid unless observed_price is given."""
        return self.solve(
            spot=market.spot,
            strike=contract.strike,
            days_to_expiry=contract.dte,
            rate=market.risk_free_rate,
            observed_price=contract.mid if observed_price is None else observed_price,
            option_type=contract.contract_type,
        )

    def compute_iv(self, contract: OptionContract, market: MarketContext) -> Optional[float]:
        """Mid-price IV for a contract. Returns None when it cannot be solved."""
        try:
            return self.solve_for_contract(contract, market)
        except (InvalidInputError, NonConvergentError) as e:
            logger.debug("IV unavailable for %s: %s", contract, e)
            return None
