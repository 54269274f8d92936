"""Scenario engine: price shocks, time decay and their cross-product."""

from __future__ import annotations

from typing import List, Optional, Sequence

from options_analytics.config import EngineConfig
from options_analytics.data.models import GreeksResult, MarketContext, OptionContract
from options_analytics.errors import InvalidInputError
from options_analytics.pricing.black_scholes import price
from options_analytics.pricing.greeks import GreeksCalculator
from options_analytics.scenarios.models import (
    CombinedScenarioPoint,
    PriceShockPoint,
    RiskMetrics,
    ScenarioMatrix,
    TimeDecayPoint,
)


def _pct(change: float, base: float) -> Optional[float]:
    if base <= 0:
        return None
    return round(change / base * 100, 2)


def _remaining_days(dte: int, elapsed: int) -> int:
    if elapsed < 0:
        raise InvalidInputError(f"Elapsed days must be >= 0, got {elapsed}")
    # an expired contract stays expired; otherwise keep a day of time value
    if elapsed == 0 or dte <= 0:
        return dte
    return max(1, dte - elapsed)


class ScenarioEngine:
    """
    Re-values a contract under hypothetical spot moves and elapsed time.

    Every method is a pure function of its inputs. The base valuation is
    computed once per request and shared by all cells of a grid.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        self.greeks_calc = GreeksCalculator(self.config)

    # ──────────────────────────────────────────────
    # Valuation helpers
    # ──────────────────────────────────────────────

    def _value(
        self,
        contract: OptionContract,
        market: MarketContext,
        spot: float,
        days_to_expiry: float,
    ) -> float:
        """Unrounded model value at a shifted spot / remaining days."""
        return price(
            spot,
            contract.strike,
            days_to_expiry / self.config.days_per_year,
            market.risk_free_rate,
            market.volatility_for(contract),
            contract.contract_type,
        )

    def base_price(self, contract: OptionContract, market: MarketContext) -> float:
        """Unrounded model value at the current spot and days to expiry."""
        return self._value(contract, market, market.spot, contract.dte)

    def _shifted_spot(self, market: MarketContext, percent_change: float) -> float:
        new_spot = market.spot * (1 + percent_change / 100)
        if new_spot <= 0:
            raise InvalidInputError(f"Price change {percent_change}% leaves a non-positive spot")
        return new_spot

    # ──────────────────────────────────────────────
    # Price shocks
    # ──────────────────────────────────────────────

    def price_shock(
        self,
        contract: OptionContract,
        market: MarketContext,
        percent_change: float,
        greeks: Optional[GreeksResult] = None,
        base_price: Optional[float] = None,
    ) -> PriceShockPoint:
        """
        Re-price and re-compute Greeks at spot * (1 + percent_change / 100).

        P/L is measured against the unshifted model value, so a 0% shock
        yields a P/L of exactly 0.
        """
        if greeks is None:
            greeks = self.greeks_calc.for_contract(contract, market)
        if base_price is None:
            base_price = self.base_price(contract, market)

        new_spot = self._shifted_spot(market, percent_change)
        new_value = self._value(contract, market, new_spot, contract.dte)
        new_greeks = self.greeks_calc.for_contract(contract, market, spot=new_spot)
        profit_loss = new_value - base_price

        return PriceShockPoint(
            price_change=percent_change,
            new_spot=round(new_spot, 2),
            new_price=round(new_value, 2),
            profit_loss=round(profit_loss, 2),
            profit_loss_percent=_pct(profit_loss, base_price),
            greeks=new_greeks,
            delta_change=round(new_greeks.delta - greeks.delta, 4),
            gamma_change=round(new_greeks.gamma - greeks.gamma, 4),
            theta_change=round(new_greeks.theta - greeks.theta, 4),
            vega_change=round(new_greeks.vega - greeks.vega, 4),
        )

    def price_shocks(
        self,
        contract: OptionContract,
        market: MarketContext,
        percent_changes: Optional[Sequence[float]] = None,
        greeks: Optional[GreeksResult] = None,
    ) -> List[PriceShockPoint]:
        """Price-shock grid; defaults to the configured canonical grid."""
        if percent_changes is None:
            percent_changes = self.config.price_shock_grid
        if greeks is None:
            greeks = self.greeks_calc.for_contract(contract, market)
        base = self.base_price(contract, market)
        return [
            self.price_shock(contract, market, change, greeks=greeks, base_price=base)
            for change in percent_changes
        ]

    # ──────────────────────────────────────────────
    # Time decay
    # ──────────────────────────────────────────────

    def time_decay(
        self,
        contract: OptionContract,
        market: MarketContext,
        days_forward: int,
        greeks: Optional[GreeksResult] = None,
        base_price: Optional[float] = None,
    ) -> List[TimeDecayPoint]:
        """
        Day-by-day re-valuation with spot and volatility held fixed.

        Produces one point per day in 1..days_forward and stops once no
        calendar day of life would remain.
        """
        if days_forward < 0:
            raise InvalidInputError(f"days_forward must be >= 0, got {days_forward}")
        if greeks is None:
            greeks = self.greeks_calc.for_contract(contract, market)
        if base_price is None:
            base_price = self.base_price(contract, market)

        reference = contract.reference_price
        points: List[TimeDecayPoint] = []
        for day in range(1, days_forward + 1):
            if contract.dte - day <= 0:
                break
            remaining = max(1, contract.dte - day)
            value = self._value(contract, market, market.spot, remaining)
            decay = greeks.theta * day

            points.append(
                TimeDecayPoint(
                    day=day,
                    days_to_expiry=remaining,
                    estimated_price=round(value, 2),
                    theta_decay=round(decay, 4),
                    value_change=round(value - base_price, 2),
                    percent_of_price=_pct(decay, reference),
                )
            )
        return points

    # ──────────────────────────────────────────────
    # Combined grid
    # ──────────────────────────────────────────────

    def combined_matrix(
        self,
        contract: OptionContract,
        market: MarketContext,
        percent_changes: Optional[Sequence[float]] = None,
        day_offsets: Optional[Sequence[int]] = None,
        base_price: Optional[float] = None,
    ) -> List[CombinedScenarioPoint]:
        """One point per (percent change, elapsed days) pair, price-major order."""
        if percent_changes is None:
            percent_changes = self.config.combined_price_changes
        if day_offsets is None:
            day_offsets = self.config.combined_day_offsets
        if base_price is None:
            base_price = self.base_price(contract, market)

        points: List[CombinedScenarioPoint] = []
        for change in percent_changes:
            new_spot = self._shifted_spot(market, change)
            for elapsed in day_offsets:
                remaining = _remaining_days(contract.dte, elapsed)
                value = self._value(contract, market, new_spot, remaining)
                profit_loss = value - base_price
                points.append(
                    CombinedScenarioPoint(
                        price_change=change,
                        days_elapsed=elapsed,
                        days_to_expiry=remaining,
                        new_spot=round(new_spot, 2),
                        new_price=round(value, 2),
                        profit_loss=round(profit_loss, 2),
                        profit_loss_percent=_pct(profit_loss, base_price),
                    )
                )
        return points

    # ──────────────────────────────────────────────
    # Risk metrics
    # ──────────────────────────────────────────────

    @staticmethod
    def risk_metrics(points: Sequence[PriceShockPoint]) -> RiskMetrics:
        """
        Max profit / max loss over a price-shock grid and an approximate breakeven.

        The breakeven is the grid point with the smallest |P/L| (first one on
        ties), so it is only as fine as the grid that was supplied.
        """
        if not points:
            raise InvalidInputError("risk_metrics needs at least one price-shock point")

        pnl = [p.profit_loss for p in points]
        max_profit = max(pnl)
        max_loss = min(pnl)
        ratio = round(abs(max_profit / max_loss), 2) if max_loss != 0 else None
        breakeven = min(points, key=lambda p: abs(p.profit_loss))

        return RiskMetrics(
            max_profit=max_profit,
            max_loss=max_loss,
            risk_reward_ratio=ratio,
            breakeven_change=breakeven.price_change,
            breakeven_price=breakeven.new_spot,
        )

    def generate_matrix(
        self,
        contract: OptionContract,
        market: MarketContext,
        greeks: Optional[GreeksResult] = None,
    ) -> ScenarioMatrix:
        """Canonical price grid, decay horizon, combined grid and risk metrics."""
        if greeks is None:
            greeks = self.greeks_calc.for_contract(contract, market)
        base = self.base_price(contract, market)

        shocks = [
            self.price_shock(contract, market, change, greeks=greeks, base_price=base)
            for change in self.config.price_shock_grid
        ]
        decay = self.time_decay(
            contract, market, self.config.decay_horizon, greeks=greeks, base_price=base
        )
        combined = self.combined_matrix(contract, market, base_price=base)

        return ScenarioMatrix(
            contract=contract,
            market=market,
            base_price=round(base, 2),
            base_greeks=greeks,
            price_scenarios=shocks,
            decay_scenarios=decay,
            combined_scenarios=combined,
            risk_metrics=self.risk_metrics(shocks) if shocks else None,
        )
