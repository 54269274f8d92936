"""Central configuration for the options analytics engine."""

from dataclasses import dataclass, field
from typing import List, Optional

from options_analytics.data.models import MarketContext


@dataclass
class EngineConfig:
    """Central configuration for pricing, scenarios and scoring. All parameters in one place."""

    # ==================== PRICING ====================
    risk_free_rate: float = 0.05
    fallback_volatility: float = 0.30  # used when a contract carries no IV
    days_per_year: int = 365

    # ==================== IMPLIED VOLATILITY SOLVER ====================
    iv_initial_guess: float = 0.30
    iv_tolerance: float = 1e-4
    iv_max_iterations: int = 100
    iv_min: float = 0.01  # 1% annualized
    iv_max: float = 5.0  # 500% annualized
    iv_min_vega: float = 1e-8  # below this the Newton step is abandoned
    iv_accept_residual: float = 0.01  # max repricing error for a best-effort IV

    # ==================== SCENARIO GRIDS ====================
    price_shock_grid: List[float] = field(default_factory=lambda: [-10, -5, -2, 0, 2, 5, 10])
    decay_horizons: List[int] = field(default_factory=lambda: [1, 7, 14, 30])
    combined_price_changes: List[float] = field(default_factory=lambda: [-5, 0, 5])
    combined_day_offsets: List[int] = field(default_factory=lambda: [7, 14, 30])

    # ==================== SCORING & SCANNING ====================
    scalp_pass_threshold: float = 80.0
    max_scalps_per_symbol: int = 10
    max_opportunities_per_symbol: int = 3
    scan_limit: int = 20

    @property
    def decay_horizon(self) -> int:
        """Longest time-decay horizon; shorter horizons are prefixes of it."""
        return max(self.decay_horizons) if self.decay_horizons else 0

    def make_market(self, spot: float, fallback_volatility: Optional[float] = None) -> MarketContext:
        """Build a MarketContext using the configured rate and fallback volatility."""
        return MarketContext(
            spot=spot,
            risk_free_rate=self.risk_free_rate,
            fallback_volatility=fallback_volatility or self.fallback_volatility,
        )
