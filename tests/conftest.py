"""Shared fixtures and factory functions for analytics engine tests."""

from datetime import date, timedelta

import pandas as pd
import pytest

from options_analytics.config import EngineConfig
from options_analytics.data.models import GreeksResult, MarketContext, OptionContract


# ─── Configuration Fixtures ─────────────────────────────────────────


@pytest.fixture
def config():
    """Default EngineConfig."""
    return EngineConfig()


@pytest.fixture
def market():
    """Spot 120, 5% rate, 30% fallback vol."""
    return make_market()


# ─── Factory Functions ──────────────────────────────────────────────


def make_option_contract(**overrides) -> OptionContract:
    """
    Factory for OptionContract with sensible defaults.

    Defaults describe a liquid, 3-week ATM call on a 120 underlying at 25% IV
    that passes every check of the general and scalping profiles.
    """
    defaults = dict(
        underlying="AAPL",
        contract_type="call",
        strike=120.0,
        dte=21,
        bid=2.90,
        ask=3.10,
        last=3.00,
        volume=1000,
        open_interest=2000,
        implied_volatility=0.25,
        expiration=date.today() + timedelta(days=21),
        symbol="",
    )
    defaults.update(overrides)
    return OptionContract(**defaults)


def make_market(**overrides) -> MarketContext:
    """Factory for MarketContext."""
    defaults = dict(spot=120.0, risk_free_rate=0.05, fallback_volatility=0.30)
    defaults.update(overrides)
    return MarketContext(**defaults)


def make_greeks(**overrides) -> GreeksResult:
    """Factory for GreeksResult, for scorer tests that bypass the pricing model."""
    defaults = dict(
        delta=0.55,
        gamma=0.06,
        theta=-0.08,
        vega=0.12,
        theoretical_price=3.00,
        intrinsic_value=0.0,
        time_value=3.00,
    )
    defaults.update(overrides)
    return GreeksResult(**defaults)


def make_chain_frame(rows=None) -> pd.DataFrame:
    """yfinance-style option chain table."""
    if rows is None:
        rows = [
            dict(contractSymbol="AAPL260320C00115000", strike=115.0, lastPrice=7.10,
                 bid=7.00, ask=7.30, volume=800, openInterest=3000, impliedVolatility=0.27),
            dict(contractSymbol="AAPL260320C00120000", strike=120.0, lastPrice=3.00,
                 bid=2.90, ask=3.10, volume=1500, openInterest=5000, impliedVolatility=0.25),
            dict(contractSymbol="AAPL260320C00125000", strike=125.0, lastPrice=1.05,
                 bid=1.00, ask=1.10, volume=float("nan"), openInterest=900, impliedVolatility=0.0),
        ]
    return pd.DataFrame(rows)
