"""Unit tests for EngineConfig and the data records."""

import math

import pytest

from options_analytics.config import EngineConfig
from options_analytics.data.models import MarketContext, OptionType
from options_analytics.errors import InvalidInputError

from tests.conftest import make_market, make_option_contract


class TestDefaults:
    def test_pricing_defaults(self, config):
        assert config.risk_free_rate == 0.05
        assert config.fallback_volatility == 0.30
        assert config.days_per_year == 365

    def test_iv_defaults(self, config):
        assert config.iv_tolerance == 1e-4
        assert config.iv_max_iterations == 100
        assert (config.iv_min, config.iv_max) == (0.01, 5.0)

    def test_scenario_grids(self, config):
        assert config.price_shock_grid == [-10, -5, -2, 0, 2, 5, 10]
        assert config.decay_horizon == 30
        assert config.combined_day_offsets == [7, 14, 30]

    def test_grids_not_shared_between_instances(self):
        a, b = EngineConfig(), EngineConfig()
        a.price_shock_grid.append(20)
        assert 20 not in b.price_shock_grid

    def test_empty_decay_horizons(self):
        assert EngineConfig(decay_horizons=[]).decay_horizon == 0


class TestMakeMarket:
    def test_uses_configured_rate(self):
        market = EngineConfig(risk_free_rate=0.04).make_market(230.0)
        assert market == MarketContext(spot=230.0, risk_free_rate=0.04, fallback_volatility=0.30)

    def test_fallback_override(self, config):
        assert config.make_market(100.0, fallback_volatility=0.5).fallback_volatility == 0.5

    def test_rejects_bad_spot(self, config):
        with pytest.raises(InvalidInputError):
            config.make_market(0.0)


# ── records ─────────────────────────────────────────────────────


class TestOptionContract:
    def test_type_coerced(self):
        assert make_option_contract(contract_type="PUT").contract_type is OptionType.PUT

    def test_quote_properties(self):
        c = make_option_contract(bid=2.90, ask=3.10, last=0.0)
        assert c.mid == pytest.approx(3.00)
        assert c.spread == pytest.approx(0.20)
        assert c.spread_pct == pytest.approx(6.6667, abs=1e-4)
        assert c.reference_price == pytest.approx(3.00)

    def test_spread_pct_undefined_at_zero_mid(self):
        assert make_option_contract(bid=0.0, ask=0.0).spread_pct is None

    @pytest.mark.parametrize("overrides", [
        dict(strike=0.0),
        dict(bid=3.5, ask=3.0),
        dict(bid=-0.1),
        dict(dte=-1),
        dict(volume=-5),
        dict(implied_volatility=0.0),
        dict(ask=math.inf),
        dict(contract_type="straddle"),
    ])
    def test_rejects_invalid(self, overrides):
        with pytest.raises(InvalidInputError):
            make_option_contract(**overrides)

    def test_str(self):
        assert str(make_option_contract()) == "AAPL 120C | 21d | bid=2.90 ask=3.10"


class TestMarketContext:
    def test_volatility_for(self):
        market = make_market(fallback_volatility=0.35)
        assert market.volatility_for(make_option_contract()) == 0.25
        assert market.volatility_for(make_option_contract(implied_volatility=None)) == 0.35

    def test_rejects_non_positive_fallback(self):
        with pytest.raises(InvalidInputError):
            make_market(fallback_volatility=0.0)
