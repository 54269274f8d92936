"""Criteria profiles for opportunity scoring."""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from options_analytics.errors import InvalidInputError

OPTION_TYPE_FILTERS = ("call", "put", "both")

# Every scored criterion, in evaluation order.
ALL_CRITERIA = (
    "gamma", "delta", "vega", "theta", "volume", "open_interest", "spread", "price", "iv",
)


@dataclass(frozen=True)
class CriteriaProfile:
    """
    Named set of inclusive thresholds. A threshold left as None always
    passes but still counts toward the scorer's total.

    max_theta is a floor on theta (theta >= max_theta), since theta is usually
    negative. max_spread_pct is in percent of mid price.

    option_type, min_dte and max_dte are pre-filters applied by the scanner;
    they are not part of the score.
    """

    name: str
    min_delta: Optional[float] = None  # applied to |delta|
    max_delta: Optional[float] = None
    min_gamma: Optional[float] = None
    max_theta: Optional[float] = None
    min_vega: Optional[float] = None
    min_volume: Optional[int] = None
    min_open_interest: Optional[int] = None
    max_spread_pct: Optional[float] = None
    min_price: Optional[float] = None  # mid price
    max_price: Optional[float] = None
    min_iv: Optional[float] = None
    max_iv: Optional[float] = None

    option_type: str = "both"
    min_dte: Optional[int] = None
    max_dte: Optional[int] = None

    def __post_init__(self) -> None:
        if self.option_type not in OPTION_TYPE_FILTERS:
            raise InvalidInputError(
                f"option_type must be one of {OPTION_TYPE_FILTERS}, got {self.option_type!r}"
            )
        for low, high in (
            ("min_delta", "max_delta"),
            ("min_price", "max_price"),
            ("min_iv", "max_iv"),
            ("min_dte", "max_dte"),
        ):
            lo, hi = getattr(self, low), getattr(self, high)
            if lo is not None and hi is not None and lo > hi:
                raise InvalidInputError(f"{self.name}: {low}={lo} exceeds {high}={hi}")

    @property
    def criteria(self) -> List[str]:
        """Names of the criteria this profile enables, in evaluation order."""
        enabled = []
        if self.min_gamma is not None:
            enabled.append("gamma")
        if self.min_delta is not None or self.max_delta is not None:
            enabled.append("delta")
        if self.min_vega is not None:
            enabled.append("vega")
        if self.max_theta is not None:
            enabled.append("theta")
        if self.min_volume is not None:
            enabled.append("volume")
        if self.min_open_interest is not None:
            enabled.append("open_interest")
        if self.max_spread_pct is not None:
            enabled.append("spread")
        if self.min_price is not None or self.max_price is not None:
            enabled.append("price")
        if self.min_iv is not None or self.max_iv is not None:
            enabled.append("iv")
        return enabled

    def with_overrides(self, **overrides) -> "CriteriaProfile":
        return replace(self, **overrides)


# Liquidity-relaxed screen for directional opportunities.
GENERAL_PROFILE = CriteriaProfile(
    name="general",
    option_type="call",
    min_delta=0.30,
    max_delta=0.70,
    min_gamma=0.01,
    max_theta=-0.50,
    min_volume=100,
    min_open_interest=500,
)

# High gamma, tight spreads, liquid contracts 1-6 weeks out.
SCALPING_PROFILE = CriteriaProfile(
    name="scalping",
    min_delta=0.40,
    max_delta=0.70,
    min_gamma=0.05,
    max_theta=-0.50,
    min_vega=0.10,
    min_volume=500,
    min_open_interest=1000,
    max_spread_pct=15.0,
    min_price=0.50,
    max_price=15.00,
    min_iv=0.20,
    max_iv=1.50,
    min_dte=7,
    max_dte=45,
)

BUILTIN_PROFILES: Dict[str, CriteriaProfile] = {
    GENERAL_PROFILE.name: GENERAL_PROFILE,
    SCALPING_PROFILE.name: SCALPING_PROFILE,
}

# Adjustments applied on top of the midday baseline (|delta| >= 0.40).
_SCAN_TIME_OVERRIDES: Dict[str, dict] = {
    "morning": {"min_delta": 0.30, "min_volume": 50},
    "midday": {},
    "preclose": {"min_delta": 0.50, "min_volume": 200},
    "afterhours": {"min_volume": 500, "min_open_interest": 1000},
}

SCALPING_WATCHLIST: List[str] = [
    # Tech
    "AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "META", "TSLA", "AMD", "NFLX",
    # Finance
    "JPM", "BAC", "WFC", "GS", "V", "MA",
    # Index ETFs
    "SPY", "QQQ", "IWM",
    # High retail volume
    "COIN", "PLTR", "RIVN", "LCID", "F", "AAL", "CCL",
]


def get_profile(name: str) -> CriteriaProfile:
    """Look up a built-in profile by name."""
    try:
        return BUILTIN_PROFILES[name.lower()]
    except KeyError:
        raise InvalidInputError(
            f"Unknown profile {name!r}, expected one of {sorted(BUILTIN_PROFILES)}"
        ) from None


def scan_time_profile(scan_time: str) -> CriteriaProfile:
    """
    General profile tuned for a point in the trading day.

    morning widens the delta band and volume floor, preclose demands higher
    delta and volume, afterhours demands more liquidity.
    """
    key = scan_time.lower()
    if key not in _SCAN_TIME_OVERRIDES:
        raise InvalidInputError(
            f"Unknown scan time {scan_time!r}, expected one of {sorted(_SCAN_TIME_OVERRIDES)}"
        )
    baseline = GENERAL_PROFILE.with_overrides(name=key, min_delta=0.40, option_type="both")
    return baseline.with_overrides(**_SCAN_TIME_OVERRIDES[key])
