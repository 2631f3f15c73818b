from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..models.common import FinancialSummary, finite_or, round_half_up
from ..models.impact import (
    Achievement,
    DangerZone,
    Effort,
    ImpactReport,
    LeverCategory,
    LeverDirection,
    LeverImpact,
    Quadrant,
    Severity,
)

logger = get_logger(__name__)

DEFAULT_LEVER_VALUE = 50.0
DEFAULT_RUNWAY_MONTHS = 12.0


@dataclass(frozen=True)
class LeverSpec:
    id: str
    name: str
    impact_score: float
    arr_rate: float
    direction: LeverDirection
    effort: Effort
    category: LeverCategory
    insight: str


@dataclass(frozen=True)
class DangerRule:
    lever_id: str
    threshold: float
    consequence: str
    time_to_impact: str


@dataclass(frozen=True)
class Milestone:
    name: str
    requirement_expression: str
    # (reading, target) pairs; every reading must reach its target
    requirements: Callable[[Dict[str, float], FinancialSummary], List[Tuple[float, float]]]
    reward: str
    reward_value: str


# Declaration order breaks impact_score ties.
LEVER_CATALOGUE: List[LeverSpec] = [
    LeverSpec("demandStrength", "Demand Strength", 92, 0.028, LeverDirection.GROWTH, Effort.HIGH, LeverCategory.GROWTH,
              "Your highest-leverage growth driver. Each point = new customers."),
    LeverSpec("pricingPower", "Pricing Power", 85, 0.032, LeverDirection.GROWTH, Effort.LOW, LeverCategory.GROWTH,
              "Fastest path to profitability. Increase without losing customers."),
    LeverSpec("costDiscipline", "Cost Discipline", 78, 0.018, LeverDirection.GROWTH, Effort.MEDIUM, LeverCategory.OPERATIONAL,
              "Every dollar saved = dollar available for growth or runway."),
    LeverSpec("expansionVelocity", "Expansion Velocity", 72, 0.022, LeverDirection.GROWTH, Effort.MEDIUM, LeverCategory.GROWTH,
              "Net revenue retention. Grow revenue from existing customers."),
    LeverSpec("hiringIntensity", "Hiring Intensity", 65, -0.015, LeverDirection.RISK, Effort.HIGH, LeverCategory.OPERATIONAL,
              "More hires = more burn. Only hire for clear revenue drivers."),
    LeverSpec("marketVolatility", "Market Volatility", 58, -0.025, LeverDirection.RISK, Effort.LOW, LeverCategory.RISK,
              "External factor. Build buffers and diversify revenue streams."),
    LeverSpec("executionRisk", "Execution Risk", 52, -0.012, LeverDirection.RISK, Effort.MEDIUM, LeverCategory.RISK,
              "Team and process risk. Invest in systems and talent."),
    LeverSpec("operatingDrag", "Operating Drag", 45, -0.008, LeverDirection.RISK, Effort.MEDIUM, LeverCategory.OPERATIONAL,
              "Hidden inefficiencies. Audit processes quarterly."),
]
LEVER_NAMES = {spec.id: spec.name for spec in LEVER_CATALOGUE}

DANGER_RULES: List[DangerRule] = [
    DangerRule("hiringIntensity", 75, "Burn rate exceeds growth, unit economics deteriorate", "4-6 months"),
    DangerRule("marketVolatility", 75, "Customer churn accelerates, pipeline becomes unpredictable", "2-4 months"),
    DangerRule("executionRisk", 70, "Key milestones missed, investor confidence drops", "1-3 months"),
]

MILESTONES: List[Milestone] = [
    Milestone(
        "Series A Ready",
        "demandStrength >= 70",
        lambda levers, summary: [(levers["demandStrength"], 70)],
        "Unlocks institutional investor interest",
        "$2-5M raise potential",
    ),
    Milestone(
        "Default Alive",
        "costDiscipline >= 65 and median_runway >= 18",
        lambda levers, summary: [
            (levers["costDiscipline"], 65),
            (summary.runway_or(DEFAULT_RUNWAY_MONTHS), 18),
        ],
        "Survive without additional funding",
        "Infinite runway optionality",
    ),
    Milestone(
        "Pricing Champion",
        "pricingPower >= 75",
        lambda levers, summary: [(levers["pricingPower"], 75)],
        "Premium positioning, margin expansion",
        "+15-25% gross margin",
    ),
    Milestone(
        "Growth Machine",
        "expansionVelocity >= 70",
        lambda levers, summary: [(levers["expansionVelocity"], 70)],
        "Net Revenue Retention > 120%",
        "Compound growth unlocked",
    ),
]


def normalize_levers(levers: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """Catalogue lever values clamped to 0-100; missing or non-finite values read as 50."""
    levers = levers or {}
    unknown = set(levers) - set(LEVER_NAMES)
    if unknown:
        logger.debug("Ignoring unknown levers: %s", sorted(unknown))
    return {
        spec.id: min(100.0, max(0.0, finite_or(levers.get(spec.id), DEFAULT_LEVER_VALUE)))
        for spec in LEVER_CATALOGUE
    }


class ImpactScorer:
    """Ranks strategic levers and flags danger zones and milestones.

    Pure: every method derives its output from the arguments and the injected
    settings only.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config or default_settings

    def score(self, levers: Mapping[str, float], summary: FinancialSummary | None = None) -> ImpactReport:
        summary = summary or FinancialSummary()
        ranked = self.rank_levers(levers, summary)
        return ImpactReport(
            levers=ranked,
            top_priority=ranked[0] if ranked else None,
            focus_score=self.focus_score(ranked),
            quadrants=self.bucket(ranked),
            danger_zones=self.danger_zones(levers),
            achievements=self.achievements(levers, summary),
        )

    def rank_levers(self, levers: Mapping[str, float], summary: FinancialSummary | None = None) -> List[LeverImpact]:
        values = normalize_levers(levers)
        base_arr = (summary or FinancialSummary()).base_arr(self.settings.DEFAULT_BASE_ARR)
        impacts = [
            LeverImpact(
                id=spec.id,
                name=spec.name,
                current_value=values[spec.id],
                impact_score=spec.impact_score,
                dollar_impact=round_half_up(base_arr * spec.arr_rate),
                direction=spec.direction,
                effort=spec.effort,
                category=spec.category,
                insight=spec.insight,
            )
            for spec in LEVER_CATALOGUE
        ]
        # sorted() is stable, so equal scores keep catalogue order
        return sorted(impacts, key=lambda impact: impact.impact_score, reverse=True)

    @staticmethod
    def focus_score(ranked: List[LeverImpact]) -> int:
        """0-100 reward for pushing the top three levers while holding back the bottom three."""
        if not ranked:
            return 0
        top = ranked[:3]
        bottom = ranked[-3:]
        avg_top = sum(lever.current_value for lever in top) / len(top)
        avg_bottom = sum(lever.current_value for lever in bottom) / len(bottom)
        score = round_half_up((avg_top / 100) * 70 + (1 - avg_bottom / 100) * 30)
        return int(min(100, max(0, score + 20)))

    def quadrant(self, lever: LeverImpact) -> Quadrant:
        high_impact = lever.impact_score >= self.settings.HIGH_IMPACT_THRESHOLD
        low_effort = lever.effort.value in self.settings.LOW_EFFORT_LEVELS
        if high_impact and low_effort:
            return Quadrant.QUICK_WINS
        if high_impact:
            return Quadrant.STRATEGIC_BETS
        if low_effort:
            return Quadrant.FILL_INS
        return Quadrant.MONEY_PITS

    def bucket(self, ranked: List[LeverImpact]) -> Dict[Quadrant, List[str]]:
        buckets: Dict[Quadrant, List[str]] = {quadrant: [] for quadrant in Quadrant}
        for lever in ranked:
            buckets[self.quadrant(lever)].append(lever.id)
        return buckets

    def danger_zones(self, levers: Mapping[str, float]) -> List[DangerZone]:
        values = normalize_levers(levers)
        zones: List[DangerZone] = []
        for rule in DANGER_RULES:
            current = values[rule.lever_id]
            if current < rule.threshold * self.settings.DANGER_PROXIMITY:
                continue
            severity = Severity.CRITICAL if current >= rule.threshold else Severity.WARNING
            zones.append(
                DangerZone(
                    lever_id=rule.lever_id,
                    lever_name=LEVER_NAMES[rule.lever_id],
                    current_value=current,
                    threshold=rule.threshold,
                    severity=severity,
                    consequence=rule.consequence,
                    time_to_impact=rule.time_to_impact,
                )
            )
        if zones:
            logger.info("%d lever(s) in danger zones", len(zones))
        return zones

    def achievements(self, levers: Mapping[str, float], summary: FinancialSummary | None = None) -> List[Achievement]:
        values = normalize_levers(levers)
        summary = summary or FinancialSummary()
        results: List[Achievement] = []
        for milestone in MILESTONES:
            readings = milestone.requirements(values, summary)
            unlocked = all(reading >= target for reading, target in readings)
            if unlocked:
                progress = 100
            else:
                ratio = min(max(0.0, reading) / target for reading, target in readings)
                progress = min(99, int(math.floor(ratio * 100)))
            results.append(
                Achievement(
                    name=milestone.name,
                    requirement_expression=milestone.requirement_expression,
                    progress=progress,
                    unlocked=unlocked,
                    reward=milestone.reward,
                    reward_value=milestone.reward_value,
                )
            )
        return results
