"""Data model dataclasses for the options analytics engine."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

import numpy as np

from options_analytics.errors import InvalidInputError


class OptionType(str, Enum):
    """Contract type of an option."""

    CALL = "call"
    PUT = "put"

    @classmethod
    def parse(cls, value: Union[str, "OptionType"]) -> "OptionType":
        """Accept an OptionType or its string value ('call' / 'put')."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInputError(f"Unknown option type {value!r}, expected 'call' or 'put'") from None


def _require_finite(name: str, value: float) -> None:
    if value is None or not np.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number, got {value!r}")


@dataclass(frozen=True)
class OptionContract:
    """
    Represents a single option instrument as delivered by the market-data layer.
    Immutable once constructed.
    """

    underlying: str
    contract_type: OptionType
    strike: float
    dte: int
    bid: float
    ask: float
    last: float = 0.0
    volume: int = 0
    open_interest: int = 0
    implied_volatility: Optional[float] = None
    expiration: Optional[date] = None
    symbol: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "contract_type", OptionType.parse(self.contract_type))

        for name in ("strike", "bid", "ask", "last"):
            _require_finite(name, getattr(self, name))
        if self.strike <= 0:
            raise InvalidInputError(f"Strike must be positive, got {self.strike}")
        if self.bid < 0 or self.ask < 0 or self.last < 0:
            raise InvalidInputError(
                f"Prices must be non-negative (bid={self.bid}, ask={self.ask}, last={self.last})"
            )
        if self.bid > self.ask:
            raise InvalidInputError(f"Bid {self.bid} exceeds ask {self.ask}")
        if self.dte < 0:
            raise InvalidInputError(f"Days to expiration must be >= 0, got {self.dte}")
        if self.volume < 0 or self.open_interest < 0:
            raise InvalidInputError(
                f"Volume and open interest must be non-negative "
                f"(volume={self.volume}, open_interest={self.open_interest})"
            )
        if self.implied_volatility is not None:
            _require_finite("implied_volatility", self.implied_volatility)
            if self.implied_volatility <= 0:
                raise InvalidInputError(
                    f"Implied volatility must be positive, got {self.implied_volatility}"
                )

    @property
    def is_call(self) -> bool:
        return self.contract_type is OptionType.CALL

    @property
    def mid(self) -> float:
        """Midpoint of bid and ask."""
        return (self.bid + self.ask) / 2

    @property
    def spread(self) -> float:
        return self.ask - self.bid

    @property
    def spread_pct(self) -> Optional[float]:
        """Bid-ask spread as a percentage of mid. None when mid is zero."""
        if self.mid <= 0:
            return None
        return self.spread / self.mid * 100

    @property
    def reference_price(self) -> float:
        """Last trade price, falling back to mid when the contract has not traded."""
        return self.last if self.last > 0 else self.mid

    def __str__(self) -> str:
        label = self.symbol or f"{self.underlying} {self.strike:g}{self.contract_type.value[0].upper()}"
        return f"{label} | {self.dte}d | bid={self.bid:.2f} ask={self.ask:.2f}"


@dataclass(frozen=True)
class MarketContext:
    """
    Shared pricing inputs not owned by a single contract.
    Supplied per call; never mutated.
    """

    spot: float
    risk_free_rate: float = 0.05
    fallback_volatility: float = 0.30

    def __post_init__(self) -> None:
        _require_finite("spot", self.spot)
        _require_finite("risk_free_rate", self.risk_free_rate)
        _require_finite("fallback_volatility", self.fallback_volatility)
        if self.spot <= 0:
            raise InvalidInputError(f"Spot price must be positive, got {self.spot}")
        if self.fallback_volatility <= 0:
            raise InvalidInputError(
                f"Fallback volatility must be positive, got {self.fallback_volatility}"
            )

    def volatility_for(self, contract: OptionContract) -> float:
        """Contract IV when present, otherwise the fallback estimate."""
        if contract.implied_volatility is not None:
            return contract.implied_volatility
        return self.fallback_volatility


@dataclass(frozen=True)
class GreeksResult:
    """
    Greeks and value decomposition for one option.

    Greeks are rounded to 4 decimals, prices to 2. theta is per calendar day,
    vega per 1 percentage-point volatility move.
    """

    delta: float
    gamma: float
    theta: float
    vega: float
    theoretical_price: float
    intrinsic_value: float
    time_value: float

    @property
    def delta_abs(self) -> float:
        return abs(self.delta)

    def as_dict(self) -> dict:
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
            "theoretical_price": self.theoretical_price,
            "intrinsic_value": self.intrinsic_value,
            "time_value": self.time_value,
        }
