"""Unit tests for the ScenarioEngine."""

import pytest

from options_analytics.config import EngineConfig
from options_analytics.errors import InvalidInputError
from options_analytics.pricing.black_scholes import price
from options_analytics.scenarios.engine import ScenarioEngine
from options_analytics.scenarios.models import PriceShockPoint, RiskMetrics

from tests.conftest import make_greeks, make_market, make_option_contract


@pytest.fixture
def engine():
    return ScenarioEngine(EngineConfig())


def make_shock_point(price_change, profit_loss, new_spot=100.0) -> PriceShockPoint:
    return PriceShockPoint(
        price_change=price_change,
        new_spot=new_spot,
        new_price=0.0,
        profit_loss=profit_loss,
        profit_loss_percent=None,
        greeks=make_greeks(),
        delta_change=0.0,
        gamma_change=0.0,
        theta_change=0.0,
        vega_change=0.0,
    )


# ── price shocks ────────────────────────────────────────────────


class TestPriceShock:
    def test_zero_shock_has_zero_pnl(self, engine):
        point = engine.price_shock(make_option_contract(), make_market(), 0)
        assert point.profit_loss == 0.0
        assert point.profit_loss_percent == 0.0
        assert point.delta_change == 0.0
        assert point.new_spot == 120.0

    def test_call_gains_on_rally(self, engine):
        point = engine.price_shock(make_option_contract(), make_market(), 5)
        assert point.new_spot == 126.0
        assert point.profit_loss > 0
        assert point.delta_change > 0

    def test_put_gains_on_selloff(self, engine):
        point = engine.price_shock(make_option_contract(contract_type="put"), make_market(), -5)
        assert point.profit_loss > 0

    def test_new_price_matches_model(self, engine):
        point = engine.price_shock(make_option_contract(), make_market(), -10)
        expected = price(108.0, 120.0, 21 / 365, 0.05, 0.25, "call")
        assert point.new_price == round(expected, 2)

    def test_default_grid(self, engine):
        points = engine.price_shocks(make_option_contract(), make_market())
        assert [p.price_change for p in points] == [-10, -5, -2, 0, 2, 5, 10]
        pnl = [p.profit_loss for p in points]
        assert pnl == sorted(pnl)

    def test_wipeout_shock_rejected(self, engine):
        with pytest.raises(InvalidInputError):
            engine.price_shock(make_option_contract(), make_market(), -100)


# ── time decay ──────────────────────────────────────────────────


class TestTimeDecay:
    def test_stops_before_expiry(self, engine):
        points = engine.time_decay(make_option_contract(dte=5), make_market(), 30)
        assert [p.day for p in points] == [1, 2, 3, 4]
        assert [p.days_to_expiry for p in points] == [4, 3, 2, 1]

    def test_full_horizon_when_life_remains(self, engine):
        points = engine.time_decay(make_option_contract(dte=45), make_market(), 7)
        assert len(points) == 7

    def test_value_erodes(self, engine):
        points = engine.time_decay(make_option_contract(), make_market(), 14)
        values = [p.estimated_price for p in points]
        assert values == sorted(values, reverse=True)
        assert all(p.value_change <= 0 for p in points)

    def test_theta_decay_is_cumulative(self, engine):
        contract = make_option_contract()
        market = make_market()
        greeks = engine.greeks_calc.for_contract(contract, market)
        points = engine.time_decay(contract, market, 3, greeks=greeks)
        assert points[2].theta_decay == pytest.approx(greeks.theta * 3, abs=1e-4)
        assert points[0].percent_of_price == pytest.approx(greeks.theta / 3.00 * 100, abs=0.01)

    def test_expired_contract_has_no_points(self, engine):
        assert engine.time_decay(make_option_contract(dte=0), make_market(), 7) == []

    def test_negative_horizon_rejected(self, engine):
        with pytest.raises(InvalidInputError):
            engine.time_decay(make_option_contract(), make_market(), -1)


# ── combined grid ───────────────────────────────────────────────


class TestCombinedMatrix:
    def test_cell_count_and_order(self, engine):
        points = engine.combined_matrix(make_option_contract(), make_market())
        assert len(points) == 9
        assert [(p.price_change, p.days_elapsed) for p in points[:3]] == [(-5, 7), (-5, 14), (-5, 30)]

    def test_remaining_days_floor(self, engine):
        points = engine.combined_matrix(
            make_option_contract(dte=10), make_market(), percent_changes=[0], day_offsets=[0, 7, 30]
        )
        assert [p.days_to_expiry for p in points] == [10, 3, 1]

    def test_expired_contract_stays_at_intrinsic(self, engine):
        expired = make_option_contract(strike=110.0, dte=0)
        points = engine.combined_matrix(
            expired, make_market(), percent_changes=[0, 5], day_offsets=[0, 7, 30]
        )
        assert [p.days_to_expiry for p in points] == [0] * 6
        assert [p.profit_loss for p in points] == [0.0, 0.0, 0.0, 6.0, 6.0, 6.0]

    def test_origin_cell_is_zero(self, engine):
        points = engine.combined_matrix(
            make_option_contract(), make_market(), percent_changes=[0], day_offsets=[0]
        )
        assert points[0].profit_loss == 0.0

    def test_negative_offset_rejected(self, engine):
        with pytest.raises(InvalidInputError):
            engine.combined_matrix(make_option_contract(), make_market(), day_offsets=[-1])


# ── risk metrics ────────────────────────────────────────────────


class TestRiskMetrics:
    def test_extremes_and_ratio(self):
        points = [
            make_shock_point(-5, -2.0, 95.0),
            make_shock_point(0, 0.5, 100.0),
            make_shock_point(5, 4.0, 105.0),
        ]
        metrics = ScenarioEngine.risk_metrics(points)
        assert metrics == RiskMetrics(
            max_profit=4.0,
            max_loss=-2.0,
            risk_reward_ratio=2.0,
            breakeven_change=0,
            breakeven_price=100.0,
        )

    def test_ratio_undefined_without_loss(self):
        metrics = ScenarioEngine.risk_metrics([make_shock_point(0, 0.0), make_shock_point(5, 1.0)])
        assert metrics.risk_reward_ratio is None

    def test_breakeven_first_on_ties(self):
        points = [make_shock_point(-2, -1.0), make_shock_point(2, 1.0)]
        assert ScenarioEngine.risk_metrics(points).breakeven_change == -2

    def test_empty_rejected(self):
        with pytest.raises(InvalidInputError):
            ScenarioEngine.risk_metrics([])


# ── full matrix ─────────────────────────────────────────────────


class TestGenerateMatrix:
    def test_bundles_all_grids(self, engine):
        matrix = engine.generate_matrix(make_option_contract(), make_market())
        assert len(matrix.price_scenarios) == 7
        assert len(matrix.decay_scenarios) == 20  # dte 21 stops at day 20
        assert len(matrix.combined_scenarios) == 9
        assert matrix.risk_metrics is not None
        assert matrix.risk_metrics.breakeven_change == 0

    def test_frames(self, engine):
        matrix = engine.generate_matrix(make_option_contract(), make_market())
        price_frame = matrix.price_frame()
        assert list(price_frame.index) == [-10, -5, -2, 0, 2, 5, 10]
        assert price_frame.loc[0, "profit_loss"] == 0.0
        assert "delta_change" in price_frame.columns

        assert matrix.decay_frame().index[0] == 1

        pivot = matrix.combined_pivot()
        assert pivot.shape == (3, 3)
        assert list(pivot.columns) == [7, 14, 30]

    def test_empty_grids_give_empty_frames(self):
        engine = ScenarioEngine(EngineConfig(price_shock_grid=[], decay_horizons=[], combined_price_changes=[]))
        matrix = engine.generate_matrix(make_option_contract(), make_market())
        assert matrix.risk_metrics is None
        assert matrix.price_frame().empty
        assert matrix.decay_frame().empty
        assert matrix.combined_pivot().empty

    def test_base_price(self, engine):
        matrix = engine.generate_matrix(make_option_contract(), make_market())
        assert matrix.base_price == round(price(120, 120, 21 / 365, 0.05, 0.25, "call"), 2)
