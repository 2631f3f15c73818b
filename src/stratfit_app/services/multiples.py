from __future__ import annotations

from typing import Dict, List, Tuple

from ..core.logging import get_logger
from ..models.common import BaselineInputs, FundingStage, ValuationMethod
from ..models.valuation import SaneBounds, ValuationEstimate, ValuationMultiple

logger = get_logger(__name__)

# (lower bound inclusive, value), highest tier first
GROWTH_TIERS: List[Tuple[float, float]] = [(100, 15.0), (75, 12.0), (50, 9.0), (30, 7.0)]
GROWTH_FLOOR = 5.0

NRR_TIERS: List[Tuple[float, float]] = [(130, 1.30), (120, 1.20), (110, 1.10)]
NRR_PENALTY_BELOW = (100, 0.80)

MARGIN_TIERS: List[Tuple[float, float]] = [(80, 1.15), (70, 1.05)]
MARGIN_PENALTY_BELOW = (60, 0.85)

RULE40_TIERS: List[Tuple[float, float]] = [(60, 1.25), (40, 1.10)]
RULE40_PENALTY_BELOW = (20, 0.80)

STAGE_MULTIPLIERS: Dict[FundingStage, float] = {
    FundingStage.PRE_SEED: 0.70,
    FundingStage.SEED: 0.85,
    FundingStage.SERIES_A: 1.00,
    FundingStage.SERIES_B: 1.10,
    FundingStage.GROWTH: 1.15,
}

METHOD_MODIFIERS: Dict[ValuationMethod, float] = {
    ValuationMethod.STRATFIT: 1.0,
    ValuationMethod.DCF: 0.92,
    ValuationMethod.REVENUE_MULTIPLE: 1.05,
    ValuationMethod.COMPARABLES: 0.97,
}

ESTIMATE_LOW_FACTOR = 0.8
ESTIMATE_HIGH_FACTOR = 1.25


def _tiered(value: float, tiers: List[Tuple[float, float]], floor: float) -> float:
    for bound, result in tiers:
        if value >= bound:
            return result
    return floor


def _adjustment(value: float, tiers: List[Tuple[float, float]], penalty: Tuple[float, float]) -> float:
    below, factor = penalty
    return _tiered(value, tiers, factor if value < below else 1.0)


class MultipleCalculator:
    """ARR multiple from growth, retention, margin, rule-of-40 and stage."""

    def calculate(self, baseline: BaselineInputs, method: ValuationMethod = ValuationMethod.STRATFIT) -> ValuationMultiple:
        base = _tiered(baseline.growth_pct, GROWTH_TIERS, GROWTH_FLOOR)
        nrr = _adjustment(baseline.nrr_pct, NRR_TIERS, NRR_PENALTY_BELOW)
        margin = _adjustment(baseline.gross_margin_pct, MARGIN_TIERS, MARGIN_PENALTY_BELOW)
        rule40 = _adjustment(baseline.rule40, RULE40_TIERS, RULE40_PENALTY_BELOW)
        stage = STAGE_MULTIPLIERS.get(baseline.stage, 1.0)
        method_mod = METHOD_MODIFIERS.get(method, 1.0)

        raw = base * nrr * margin * rule40 * stage * method_mod
        bounds = self.sane_bounds(baseline.stage)
        final = min(bounds.max_arr_multiple, max(bounds.min_arr_multiple, raw))
        if final != raw:
            logger.warning(
                "Multiple %.2f clamped to %.2f for stage %s", raw, final, baseline.stage.value
            )
        logger.debug(
            "Multiple %s/%s: base=%s nrr=%s margin=%s rule40=%s stage=%s method=%s -> %.3f",
            baseline.stage.value,
            method.value,
            base,
            nrr,
            margin,
            rule40,
            stage,
            method_mod,
            final,
        )
        return ValuationMultiple(
            method=method,
            stage=baseline.stage,
            base_multiple=base,
            nrr_multiplier=nrr,
            margin_multiplier=margin,
            rule40_multiplier=rule40,
            stage_multiplier=stage,
            method_modifier=method_mod,
            raw_multiple=raw,
            final_multiple=final,
            min_multiple=bounds.min_arr_multiple,
            max_multiple=bounds.max_arr_multiple,
        )

    def estimate(self, baseline: BaselineInputs, multiple: ValuationMultiple) -> ValuationEstimate:
        enterprise_value = baseline.arr * multiple.final_multiple
        return ValuationEstimate(
            arr=baseline.arr,
            multiple=multiple.final_multiple,
            enterprise_value=enterprise_value,
            low=enterprise_value * ESTIMATE_LOW_FACTOR,
            high=enterprise_value * ESTIMATE_HIGH_FACTOR,
        )

    @staticmethod
    def sane_bounds(stage: FundingStage) -> SaneBounds:
        """Public sanity bands for a stage.

        ``calculate`` clamps to the ARR-multiple band. The revenue-multiple,
        terminal-growth and discount-rate bands are for callers that check
        their own DCF or revenue-multiple inputs against the same limits.
        Mature stages get tighter bands.
        """
        early = stage.is_early
        return SaneBounds(
            max_arr_multiple=50.0 if early else 30.0,
            min_arr_multiple=1.0,
            max_revenue_multiple=40.0 if early else 20.0,
            min_revenue_multiple=0.5,
            max_dcf_terminal_growth_pct=5.0,
            min_discount_rate_pct=8.0,
            max_discount_rate_pct=25.0,
        )
