"""Unit tests for OpportunityScorer."""

import pytest

from options_analytics.signals.profiles import GENERAL_PROFILE, SCALPING_PROFILE, CriteriaProfile
from options_analytics.signals.scorer import OpportunityScorer

from tests.conftest import make_greeks, make_option_contract


@pytest.fixture
def scorer():
    return OpportunityScorer()


# ── passing contract ────────────────────────────────────────────


class TestPassingContract:
    def test_all_scalping_checks_pass(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(), SCALPING_PROFILE)
        assert result.passed == result.total == 9
        assert result.score == 100.0
        assert result.qualified
        assert result.failure_reasons == []
        assert not result.degenerate

    def test_general_profile_enables_five_checks(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(), GENERAL_PROFILE)
        assert result.passed == result.total == 9
        assert set(result.checks) == {"gamma", "delta", "theta", "volume", "open_interest"}

    def test_str(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(), SCALPING_PROFILE)
        assert str(result).startswith("PASS")
        assert "9/9" in str(result)


# ── individual checks ───────────────────────────────────────────


class TestChecks:
    def test_low_gamma_fails_one_check(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(gamma=0.02), SCALPING_PROFILE)
        assert result.checks["gamma"] is False
        assert result.passed == 8
        assert result.score == pytest.approx(88.89)
        assert result.qualified  # 88.89 >= 80
        assert any("Gamma" in r for r in result.failure_reasons)

    def test_put_delta_uses_absolute_value(self, scorer):
        contract = make_option_contract(contract_type="put")
        result = scorer.score(contract, make_greeks(delta=-0.55), SCALPING_PROFILE)
        assert result.checks["delta"] is True

    def test_wide_spread_fails(self, scorer):
        contract = make_option_contract(bid=2.00, ask=3.00)  # 40% of mid
        result = scorer.score(contract, make_greeks(), SCALPING_PROFILE)
        assert result.checks["spread"] is False

    def test_spread_under_cap_passes(self, scorer):
        contract = make_option_contract(bid=0.93, ask=1.07)  # 14% of mid, under the 15% cap
        result = scorer.score(contract, make_greeks(), SCALPING_PROFILE)
        assert result.checks["spread"] is True

    def test_theta_floor(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(theta=-0.75), SCALPING_PROFILE)
        assert result.checks["theta"] is False

    def test_missing_iv_fails_iv_check(self, scorer):
        contract = make_option_contract(implied_volatility=None)
        result = scorer.score(contract, make_greeks(), SCALPING_PROFILE)
        assert result.checks["iv"] is False
        assert "IV unavailable" in result.failure_reasons

    def test_volatility_argument_overrides_contract_iv(self, scorer):
        contract = make_option_contract(implied_volatility=None)
        result = scorer.score(contract, make_greeks(), SCALPING_PROFILE, volatility=0.30)
        assert result.checks["iv"] is True

    def test_threshold_override(self, scorer):
        result = scorer.score(
            make_option_contract(), make_greeks(gamma=0.02), SCALPING_PROFILE, threshold=100.0
        )
        assert not result.qualified


# ── degenerate cases ────────────────────────────────────────────


class TestDegenerate:
    def test_profile_without_criteria(self, scorer):
        result = scorer.score(make_option_contract(), make_greeks(), CriteriaProfile(name="empty"))
        assert result.degenerate
        assert result.score == 0.0
        assert result.checks == {}
        assert not result.qualified

    def test_zero_mid(self, scorer):
        contract = make_option_contract(bid=0.0, ask=0.0)
        result = scorer.score(contract, make_greeks(), GENERAL_PROFILE)
        assert result.degenerate
        assert result.score == 0.0
        assert not result.qualified

    def test_zero_mid_with_zero_threshold_still_not_qualified(self, scorer):
        contract = make_option_contract(bid=0.0, ask=0.0)
        result = scorer.score(contract, make_greeks(), GENERAL_PROFILE, threshold=0.0)
        assert not result.qualified


# ── monotonicity ────────────────────────────────────────────────


class TestMonotonicity:
    @pytest.mark.parametrize("field,values", [
        ("min_volume", [0, 500, 1000, 1500]),
        ("min_open_interest", [0, 2000, 5000]),
        ("min_gamma", [0.0, 0.05, 0.07]),
        ("min_delta", [0.1, 0.5, 0.6]),
        ("max_spread_pct", [50.0, 10.0, 5.0]),
        ("max_theta", [-1.0, -0.08, -0.01]),
    ])
    def test_tightening_never_raises_score(self, scorer, field, values):
        contract = make_option_contract()
        greeks = make_greeks()
        scores = [
            scorer.score(contract, greeks, SCALPING_PROFILE.with_overrides(**{field: v})).score
            for v in values
        ]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("field,values", [
        ("min_volume", [None, 0, 500, 1500]),
        ("min_vega", [None, 0.0, 0.12, 0.20]),
        ("max_spread_pct", [None, 50.0, 5.0]),
        ("min_iv", [None, 0.10, 0.30]),
    ])
    def test_enabling_a_threshold_never_raises_score(self, scorer, field, values):
        contract = make_option_contract()
        greeks = make_greeks(gamma=0.02)  # one check already failing
        scores = [
            scorer.score(contract, greeks, SCALPING_PROFILE.with_overrides(**{field: v})).score
            for v in values
        ]
        assert scores == sorted(scores, reverse=True)

    def test_disabled_threshold_counts_as_pass(self, scorer):
        contract = make_option_contract()
        greeks = make_greeks(gamma=0.02)
        disabled = scorer.score(contract, greeks, SCALPING_PROFILE.with_overrides(min_volume=None))
        always_passing = scorer.score(contract, greeks, SCALPING_PROFILE.with_overrides(min_volume=0))
        assert disabled.total == always_passing.total == 9
        assert disabled.score == always_passing.score
        assert "volume" not in disabled.checks
