"""Scores a contract's Greeks and liquidity against a criteria profile."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from options_analytics.data.models import GreeksResult, OptionContract
from options_analytics.signals.profiles import ALL_CRITERIA, CriteriaProfile

DEFAULT_PASS_THRESHOLD = 80.0


@dataclass
class ScoreResult:
    """
    Result of scoring a single contract against a profile.
    """

    contract: OptionContract
    profile: str
    passed: int
    total: int
    score: float  # 0-100
    qualified: bool
    checks: Dict[str, bool] = field(default_factory=dict)
    failure_reasons: List[str] = field(default_factory=list)
    degenerate: bool = False

    def __str__(self) -> str:
        status = "PASS" if self.qualified else "FAIL"
        return (
            f"{status} {self.contract} | {self.profile} "
            f"{self.passed}/{self.total} = {self.score:.1f}"
        )


class OpportunityScorer:
    """
    Evaluates each threshold of a profile as an independent check.

    Checks (a threshold the profile leaves as None passes automatically):
    1. gamma >= min_gamma
    2. |delta| within [min_delta, max_delta]
    3. vega >= min_vega
    4. theta >= max_theta
    5. volume >= min_volume
    6. open interest >= min_open_interest
    7. bid-ask spread % of mid <= max_spread_pct
    8. mid price within [min_price, max_price]
    9. IV within [min_iv, max_iv]

    Score: passed / total * 100, where total is always every criterion above,
    so enabling or tightening a threshold can only lower the score. A profile
    that enables nothing, or a contract with a zero mid price, is degenerate:
    score 0 and never qualified.
    """

    def __init__(self, threshold: float = DEFAULT_PASS_THRESHOLD) -> None:
        self.threshold = threshold

    @staticmethod
    def _in_range(value: float, low: Optional[float], high: Optional[float]) -> bool:
        return (low is None or value >= low) and (high is None or value <= high)

    def score(
        self,
        contract: OptionContract,
        greeks: GreeksResult,
        profile: CriteriaProfile,
        threshold: Optional[float] = None,
        volatility: Optional[float] = None,
    ) -> ScoreResult:
        """
        Score one contract.

        Args:
            contract: Contract supplying liquidity and quote data
            greeks: Greeks already computed for the contract
            profile: Thresholds to check against
            threshold: Qualification score (defaults to the scorer's threshold)
            volatility: IV to check; defaults to the contract's own IV

        Returns:
            ScoreResult with per-check breakdown
        """
        if threshold is None:
            threshold = self.threshold

        checks: Dict[str, bool] = {}
        reasons: List[str] = []
        delta_abs = abs(greeks.delta)
        mid = contract.mid
        iv = volatility if volatility is not None else contract.implied_volatility

        for name in profile.criteria:
            if name == "gamma":
                ok = greeks.gamma >= profile.min_gamma
                if not ok:
                    reasons.append(f"Gamma {greeks.gamma:.4f} < {profile.min_gamma}")
            elif name == "delta":
                ok = self._in_range(delta_abs, profile.min_delta, profile.max_delta)
                if not ok:
                    reasons.append(
                        f"Delta {delta_abs:.3f} outside [{profile.min_delta}, {profile.max_delta}]"
                    )
            elif name == "vega":
                ok = greeks.vega >= profile.min_vega
                if not ok:
                    reasons.append(f"Vega {greeks.vega:.4f} < {profile.min_vega}")
            elif name == "theta":
                ok = greeks.theta >= profile.max_theta
                if not ok:
                    reasons.append(f"Theta {greeks.theta:.4f} < {profile.max_theta}")
            elif name == "volume":
                ok = contract.volume >= profile.min_volume
                if not ok:
                    reasons.append(f"Volume {contract.volume} < {profile.min_volume}")
            elif name == "open_interest":
                ok = contract.open_interest >= profile.min_open_interest
                if not ok:
                    reasons.append(
                        f"Open interest {contract.open_interest} < {profile.min_open_interest}"
                    )
            elif name == "spread":
                spread_pct = contract.spread_pct
                if spread_pct is None:
                    ok = False
                    reasons.append("Spread undefined (mid price is 0)")
                else:
                    ok = spread_pct <= profile.max_spread_pct
                    if not ok:
                        reasons.append(f"Spread {spread_pct:.2f}% > {profile.max_spread_pct}%")
            elif name == "price":
                ok = self._in_range(mid, profile.min_price, profile.max_price)
                if not ok:
                    reasons.append(
                        f"Mid {mid:.2f} outside [{profile.min_price}, {profile.max_price}]"
                    )
            else:  # iv
                if iv is None:
                    ok = False
                    reasons.append("IV unavailable")
                else:
                    ok = self._in_range(iv, profile.min_iv, profile.max_iv)
                    if not ok:
                        reasons.append(f"IV {iv:.2%} outside [{profile.min_iv}, {profile.max_iv}]")
            checks[name] = ok

        total = len(ALL_CRITERIA)
        passed = (total - len(checks)) + sum(1 for ok in checks.values() if ok)

        degenerate = False
        if not checks:
            degenerate = True
            reasons.append(f"Profile {profile.name!r} defines no criteria")
        elif mid <= 0:
            degenerate = True
            reasons.append("Mid price is 0")

        score = 0.0 if degenerate else round(passed / total * 100, 2)

        return ScoreResult(
            contract=contract,
            profile=profile.name,
            passed=passed,
            total=total,
            score=score,
            qualified=not degenerate and score >= threshold,
            checks=checks,
            failure_reasons=reasons,
            degenerate=degenerate,
        )
