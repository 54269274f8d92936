"""Scenario grid records."""

from dataclasses import asdict, dataclass, field
from typing import List, Optional

import pandas as pd

from options_analytics.data.models import GreeksResult, MarketContext, OptionContract


@dataclass(frozen=True)
class PriceShockPoint:
    """Re-valuation after an instantaneous underlying move, same days to expiry."""

    price_change: float  # percent
    new_spot: float
    new_price: float
    profit_loss: float
    profit_loss_percent: Optional[float]  # None when the base value is 0
    greeks: GreeksResult
    delta_change: float
    gamma_change: float
    theta_change: float
    vega_change: float

    def as_row(self) -> dict:
        row = {
            "price_change": self.price_change,
            "new_spot": self.new_spot,
            "new_price": self.new_price,
            "profit_loss": self.profit_loss,
            "profit_loss_percent": self.profit_loss_percent,
        }
        row.update({k: v for k, v in self.greeks.as_dict().items() if k in ("delta", "gamma", "theta", "vega")})
        row.update(
            delta_change=self.delta_change,
            gamma_change=self.gamma_change,
            theta_change=self.theta_change,
            vega_change=self.vega_change,
        )
        return row


@dataclass(frozen=True)
class TimeDecayPoint:
    """Value after `day` calendar days pass with spot and volatility held fixed."""

    day: int
    days_to_expiry: int
    estimated_price: float
    theta_decay: float  # cumulative theta-implied decay (theta * day)
    value_change: float  # re-priced value minus base value
    percent_of_price: Optional[float]  # theta_decay vs the contract's reference price


@dataclass(frozen=True)
class CombinedScenarioPoint:
    """One (price change, elapsed days) cell of the combined grid."""

    price_change: float
    days_elapsed: int
    days_to_expiry: int
    new_spot: float
    new_price: float
    profit_loss: float
    profit_loss_percent: Optional[float]


@dataclass(frozen=True)
class RiskMetrics:
    """
    Risk summary over a price-shock grid.

    breakeven_change is the grid point with the smallest |P/L|, so its
    accuracy is limited by the grid spacing. It is not a root-find.
    """

    max_profit: float
    max_loss: float
    risk_reward_ratio: Optional[float]  # None when max_loss is 0
    breakeven_change: float
    breakeven_price: float


@dataclass(frozen=True)
class ScenarioMatrix:
    """Full scenario analysis for one contract."""

    contract: OptionContract
    market: MarketContext
    base_price: float
    base_greeks: GreeksResult
    price_scenarios: List[PriceShockPoint] = field(default_factory=list)
    decay_scenarios: List[TimeDecayPoint] = field(default_factory=list)
    combined_scenarios: List[CombinedScenarioPoint] = field(default_factory=list)
    risk_metrics: Optional[RiskMetrics] = None

    def price_frame(self) -> pd.DataFrame:
        """Price-shock grid, one row per percent change."""
        rows = [p.as_row() for p in self.price_scenarios]
        return pd.DataFrame(rows).set_index("price_change") if rows else pd.DataFrame()

    def decay_frame(self) -> pd.DataFrame:
        rows = [asdict(p) for p in self.decay_scenarios]
        return pd.DataFrame(rows).set_index("day") if rows else pd.DataFrame()

    def combined_pivot(self, values: str = "profit_loss") -> pd.DataFrame:
        """Combined grid pivoted to price_change rows x days_elapsed columns."""
        if not self.combined_scenarios:
            return pd.DataFrame()
        frame = pd.DataFrame([asdict(p) for p in self.combined_scenarios])
        return frame.pivot(index="price_change", columns="days_elapsed", values=values)
