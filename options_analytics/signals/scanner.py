"""Opportunity scanner: Greeks + scoring over option chains."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Sequence, Tuple

from options_analytics.config import EngineConfig
from options_analytics.data.models import GreeksResult, MarketContext, OptionContract
from options_analytics.errors import AnalyticsError
from options_analytics.pricing.greeks import GreeksCalculator
from options_analytics.pricing.implied_vol import ImpliedVolatilitySolver
from options_analytics.signals.profiles import GENERAL_PROFILE, SCALPING_PROFILE, CriteriaProfile
from options_analytics.signals.scorer import OpportunityScorer, ScoreResult

logger = logging.getLogger(__name__)

SCALP_TARGET_PCT = 0.20
SCALP_STOP_PCT = 0.10


@dataclass(frozen=True)
class ScalpPlan:
    """Entry/exit levels for a scalp, per share of the option."""

    entry_price: float
    target_profit: float
    stop_loss: float
    expected_move: Optional[float]  # underlying move needed to hit the target
    timeframe: str

    @classmethod
    def from_contract(cls, contract: OptionContract, greeks: GreeksResult) -> "ScalpPlan":
        entry = contract.ask  # always pay the ask
        target = entry * SCALP_TARGET_PCT
        delta_abs = abs(greeks.delta)

        theta_abs = abs(greeks.theta)
        if theta_abs < 0.10:
            timeframe = "1-2 days"
        elif theta_abs < 0.30:
            timeframe = "4-8 hours"
        else:
            timeframe = "Intraday"

        return cls(
            entry_price=round(entry, 2),
            target_profit=round(target, 2),
            stop_loss=round(entry * SCALP_STOP_PCT, 2),
            expected_move=round(target / delta_abs, 2) if delta_abs > 0 else None,
            timeframe=timeframe,
        )


@dataclass
class Opportunity:
    """A scored contract with the inputs that produced the score."""

    contract: OptionContract
    market: MarketContext
    greeks: GreeksResult
    result: ScoreResult
    volatility: float
    scalp_plan: Optional[ScalpPlan] = None

    @property
    def symbol(self) -> str:
        return self.contract.underlying

    @property
    def delta_abs(self) -> float:
        return abs(self.greeks.delta)

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def high_conviction(self) -> bool:
        """Strong directional exposure on an actively traded contract."""
        return self.delta_abs > 0.6 and self.contract.volume > 500

    def __str__(self) -> str:
        return f"{self.result} | delta={self.greeks.delta:+.3f}"


ChainMap = Mapping[str, Tuple[MarketContext, Sequence[OptionContract]]]


class OpportunityScanner:
    """
    Scores option chains against criteria profiles.

    Opportunities: contracts passing every criterion, ranked by |delta|.
    Scalps: contracts scoring at or above the scalp threshold, ranked by
    score with |delta| as tie-break, each with a ScalpPlan.

    Contracts that raise AnalyticsError are logged and skipped.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        greeks_calc: Optional[GreeksCalculator] = None,
        scorer: Optional[OpportunityScorer] = None,
        iv_solver: Optional[ImpliedVolatilitySolver] = None,
        solve_missing_iv: bool = False,
    ) -> None:
        self.config = config or EngineConfig()
        self.greeks_calc = greeks_calc or GreeksCalculator(self.config)
        self.scorer = scorer or OpportunityScorer(self.config.scalp_pass_threshold)
        self.iv_solver = iv_solver or ImpliedVolatilitySolver(self.config)
        self.solve_missing_iv = solve_missing_iv

    def _ensure_iv(self, contract: OptionContract, market: MarketContext) -> OptionContract:
        """Fill a missing IV from the mid price when enabled; otherwise the market fallback applies."""
        if not self.solve_missing_iv or contract.implied_volatility is not None:
            return contract
        iv = self.iv_solver.compute_iv(contract, market)
        if iv is None:
            return contract
        return replace(contract, implied_volatility=iv)

    @staticmethod
    def passes_prefilter(contract: OptionContract, profile: CriteriaProfile) -> bool:
        """Option type and DTE window checks that gate scoring."""
        if profile.option_type != "both" and contract.contract_type.value != profile.option_type:
            return False
        if profile.min_dte is not None and contract.dte < profile.min_dte:
            return False
        if profile.max_dte is not None and contract.dte > profile.max_dte:
            return False
        return True

    def evaluate(
        self,
        contract: OptionContract,
        market: MarketContext,
        profile: CriteriaProfile,
        threshold: Optional[float] = None,
    ) -> Opportunity:
        """Compute Greeks and score a single contract. Raises AnalyticsError on bad input."""
        contract = self._ensure_iv(contract, market)
        volatility = market.volatility_for(contract)
        greeks = self.greeks_calc.for_contract(contract, market)
        result = self.scorer.score(
            contract, greeks, profile, threshold=threshold, volatility=volatility
        )
        return Opportunity(
            contract=contract,
            market=market,
            greeks=greeks,
            result=result,
            volatility=volatility,
        )

    def _evaluate_all(
        self,
        contracts: Sequence[OptionContract],
        market: MarketContext,
        profile: CriteriaProfile,
        threshold: float,
    ) -> List[Opportunity]:
        evaluated: List[Opportunity] = []
        for contract in contracts:
            if not self.passes_prefilter(contract, profile):
                continue
            try:
                evaluated.append(self.evaluate(contract, market, profile, threshold))
            except AnalyticsError as e:
                logger.warning("Skipping %s: %s", contract, e)
        return evaluated

    def find_opportunities(
        self,
        contracts: Sequence[OptionContract],
        market: MarketContext,
        profile: CriteriaProfile = GENERAL_PROFILE,
        threshold: float = 100.0,
        limit: Optional[int] = None,
    ) -> List[Opportunity]:
        """
        Contracts meeting the profile, ranked by |delta| descending.

        The default threshold of 100 means every criterion must pass. The sort
        is stable, so equal |delta| keeps chain order.
        """
        qualified = [
            o for o in self._evaluate_all(contracts, market, profile, threshold)
            if o.result.qualified
        ]
        qualified.sort(key=lambda o: o.delta_abs, reverse=True)
        return qualified[:limit] if limit is not None else qualified

    def find_scalps(
        self,
        contracts: Sequence[OptionContract],
        market: MarketContext,
        profile: CriteriaProfile = SCALPING_PROFILE,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[Opportunity]:
        """Scalp candidates ranked by score, then |delta|, each with a trade plan."""
        if threshold is None:
            threshold = self.config.scalp_pass_threshold
        if limit is None:
            limit = self.config.max_scalps_per_symbol

        scalps = []
        for opp in self._evaluate_all(contracts, market, profile, threshold):
            if opp.result.qualified:
                opp.scalp_plan = ScalpPlan.from_contract(opp.contract, opp.greeks)
                scalps.append(opp)

        scalps.sort(key=lambda o: (o.score, o.delta_abs), reverse=True)
        return scalps[:limit]

    def scan_universe(
        self,
        chains: ChainMap,
        profile: Optional[CriteriaProfile] = None,
        scalping: bool = False,
        per_symbol: Optional[int] = None,
        limit: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> List[Opportunity]:
        """
        Scan many symbols and merge the results.

        Args:
            chains: symbol -> (market context, contracts)
            profile: Defaults to the scalping or general profile
            scalping: Use find_scalps instead of find_opportunities
            per_symbol: Max results kept per symbol
            limit: Max results overall (defaults to config.scan_limit)
            max_workers: Evaluate symbols on a bounded thread pool when set

        Returns:
            Merged results; ordering does not depend on max_workers
        """
        if profile is None:
            profile = SCALPING_PROFILE if scalping else GENERAL_PROFILE
        if per_symbol is None:
            per_symbol = (
                self.config.max_scalps_per_symbol if scalping
                else self.config.max_opportunities_per_symbol
            )
        if limit is None:
            limit = self.config.scan_limit

        def scan_one(symbol: str) -> List[Opportunity]:
            market, contracts = chains[symbol]
            if scalping:
                return self.find_scalps(contracts, market, profile, limit=per_symbol)
            return self.find_opportunities(contracts, market, profile, limit=per_symbol)

        symbols = list(chains)
        if max_workers:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                per_symbol_results = list(pool.map(scan_one, symbols))
        else:
            per_symbol_results = [scan_one(s) for s in symbols]

        merged = [opp for results in per_symbol_results for opp in results]
        if scalping:
            merged.sort(key=lambda o: (o.score, o.delta_abs), reverse=True)
        else:
            merged.sort(key=lambda o: o.delta_abs, reverse=True)

        logger.info(
            "Scanned %d symbols with profile %r: %d results", len(symbols), profile.name, len(merged)
        )
        return merged[:limit]
