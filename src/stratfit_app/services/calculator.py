from __future__ import annotations

from datetime import date
from typing import Dict, List, Mapping

from dateutil.relativedelta import relativedelta

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..models.common import BaselineInputs, FinancialSummary, FundingStage, round_half_up
from ..models.distribution import DistributionSummary
from ..models.impact import ImpactReport
from ..models.results import ValuationReport
from ..models.scenario import ValuationScenario
from ..models.valuation import (
    ComparableCompany,
    DriverCategory,
    ExitScenario,
    ExitType,
    Trend,
    ValuationDriver,
    ValuationEstimate,
    ValuationMultiple,
    ValuationProjection,
    Volatility,
)
from .distribution import DistributionSummarizer
from .impact import ImpactScorer, normalize_levers
from .multiples import MultipleCalculator

logger = get_logger(__name__)

DEFAULT_COMPARABLES: List[ComparableCompany] = [
    ComparableCompany(id="comp1", name="FastGrow SaaS", sector="B2B SaaS", stage=FundingStage.SERIES_B,
                      arr_multiple=18, revenue_multiple=12, last_valuation=180_000_000, last_arr=10_000_000, growth_rate=120),
    ComparableCompany(id="comp2", name="ScaleUp Inc", sector="B2B SaaS", stage=FundingStage.SERIES_B,
                      arr_multiple=15, revenue_multiple=10, last_valuation=150_000_000, last_arr=10_000_000, growth_rate=80),
    ComparableCompany(id="comp3", name="CloudFirst", sector="B2B SaaS", stage=FundingStage.SERIES_A,
                      arr_multiple=22, revenue_multiple=14, last_valuation=88_000_000, last_arr=4_000_000, growth_rate=150),
    ComparableCompany(id="comp4", name="DataFlow", sector="B2B SaaS", stage=FundingStage.SERIES_B,
                      arr_multiple=12, revenue_multiple=8, last_valuation=120_000_000, last_arr=10_000_000, growth_rate=60),
    ComparableCompany(id="comp5", name="APIStack", sector="Developer Tools", stage=FundingStage.SERIES_A,
                      arr_multiple=25, revenue_multiple=16, last_valuation=100_000_000, last_arr=4_000_000, growth_rate=200),
]

DRIVER_WEIGHTS: Dict[DriverCategory, float] = {
    DriverCategory.GROWTH: 0.35,
    DriverCategory.EFFICIENCY: 0.25,
    DriverCategory.MARKET: 0.25,
    DriverCategory.TEAM: 0.15,
}

MULTIPLE_DECAY_OVER_HORIZON = 0.15
IPO_ARR_THRESHOLD = 50_000_000


class ValuationCalculator:
    def __init__(
        self,
        config: Settings | None = None,
        comparables: List[ComparableCompany] | None = None,
    ) -> None:
        self.settings = config or default_settings
        self.comparables = comparables if comparables is not None else DEFAULT_COMPARABLES
        self.multiples = MultipleCalculator()
        self.summarizer = DistributionSummarizer(self.settings)
        self.scorer = ImpactScorer(self.settings)

    def run(self, scenario: ValuationScenario) -> ValuationReport:
        baseline = scenario.baseline
        multiple = self.multiples.calculate(baseline, scenario.method)
        estimate = self.multiples.estimate(baseline, multiple)
        distribution = self.summarizer.summarize(
            samples=scenario.samples,
            percentiles=scenario.percentiles,
            point_estimate=estimate.enterprise_value,
        )
        drivers = self._compute_drivers(scenario.levers)
        overall_score = round_half_up(sum(driver.score * driver.weight for driver in drivers))
        logger.info(
            "Valuation %s/%s: multiple=%.2f ev=%.0f source=%s",
            baseline.stage.value,
            scenario.method.value,
            multiple.final_multiple,
            estimate.enterprise_value,
            distribution.source.value,
        )
        return ValuationReport(
            as_of=scenario.as_of,
            baseline=baseline,
            multiple=multiple,
            estimate=estimate,
            distribution=distribution,
            drivers=drivers,
            overall_score=overall_score,
            percentile_rank=self._compute_percentile_rank(multiple),
            projections=self._compute_projections(baseline, multiple, scenario.as_of),
            exit_scenarios=self._compute_exit_scenarios(estimate, overall_score),
            confidence=self._compute_confidence(baseline, scenario.summary),
            volatility=self._compute_volatility(distribution, estimate),
        )

    def impact(self, levers: Mapping[str, float], summary: FinancialSummary | None = None) -> ImpactReport:
        return self.scorer.score(levers, summary)

    def _compute_drivers(self, levers: Mapping[str, float]) -> List[ValuationDriver]:
        values = normalize_levers(levers)
        scores = {
            DriverCategory.GROWTH: (values["demandStrength"] + values["expansionVelocity"]) / 2,
            DriverCategory.EFFICIENCY: (values["costDiscipline"] + (100 - values["operatingDrag"])) / 2,
            DriverCategory.MARKET: ((100 - values["marketVolatility"]) + values["pricingPower"]) / 2,
            DriverCategory.TEAM: ((100 - values["executionRisk"]) + values["hiringIntensity"]) / 2,
        }
        labels = {
            DriverCategory.GROWTH: ("Growth Velocity", "Revenue growth rate and market expansion pace"),
            DriverCategory.EFFICIENCY: ("Capital Efficiency", "Burn rate efficiency and path to profitability"),
            DriverCategory.MARKET: ("Market Position", "Market opportunity size and competitive moat"),
            DriverCategory.TEAM: ("Team Strength", "Execution capability and talent density"),
        }
        drivers = []
        for category, raw in scores.items():
            score = round_half_up(raw)
            name, description = labels[category]
            drivers.append(
                ValuationDriver(
                    id=category.value,
                    name=name,
                    category=category,
                    score=score,
                    weight=DRIVER_WEIGHTS[category],
                    trend=Trend.UP if score > 60 else Trend.DOWN if score < 40 else Trend.FLAT,
                    description=description,
                )
            )
        return drivers

    def _compute_percentile_rank(self, multiple: ValuationMultiple) -> float:
        if not self.comparables:
            return 50.0
        average = sum(comp.arr_multiple for comp in self.comparables) / len(self.comparables)
        rank = 50 + ((multiple.final_multiple - average) / average) * 50
        return min(100.0, max(0.0, rank))

    def _compute_projections(
        self,
        baseline: BaselineInputs,
        multiple: ValuationMultiple,
        as_of: date,
    ) -> List[ValuationProjection]:
        horizon = self.settings.PROJECTION_HORIZON_MONTHS
        step = self.settings.PROJECTION_STEP_MONTHS
        projections = []
        for month in range(0, horizon + 1, step):
            arr = baseline.arr * (1 + baseline.growth_pct / 100) ** (month / 12)
            # multiples compress as the company matures
            decay = 1 - (month / horizon) * MULTIPLE_DECAY_OVER_HORIZON if horizon else 1.0
            mid = arr * multiple.final_multiple * decay
            projections.append(
                ValuationProjection(
                    month=month,
                    period_start=as_of + relativedelta(months=month),
                    arr=arr,
                    low=mid * 0.8,
                    mid=mid,
                    high=mid * 1.25,
                )
            )
        return projections

    def _compute_exit_scenarios(self, estimate: ValuationEstimate, overall_score: int) -> List[ExitScenario]:
        if overall_score > 70:
            acquisition_probability = 0.4
        elif overall_score > 50:
            acquisition_probability = 0.3
        else:
            acquisition_probability = 0.2
        return [
            ExitScenario(
                type=ExitType.ACQUISITION,
                probability=acquisition_probability,
                low=estimate.enterprise_value * 0.8,
                high=estimate.high * 1.2,
                timeframe_months=24,
            ),
            ExitScenario(
                type=ExitType.IPO,
                probability=0.2 if estimate.arr > IPO_ARR_THRESHOLD else 0.05,
                low=estimate.high,
                high=estimate.high * 2,
                timeframe_months=48,
            ),
            ExitScenario(
                type=ExitType.SECONDARY,
                probability=0.3,
                low=estimate.low,
                high=estimate.enterprise_value,
                timeframe_months=12,
            ),
        ]

    @staticmethod
    def _compute_confidence(baseline: BaselineInputs, summary: FinancialSummary | None) -> int:
        confidence = 60
        if summary is not None:
            confidence += 15
            if (summary.survival_rate or 0.0) > 0.5:
                confidence += 10
        if baseline.nrr_pct >= 110:
            confidence += 5
        if baseline.gross_margin_pct >= 70:
            confidence += 5
        return min(95, confidence)

    @staticmethod
    def _compute_volatility(distribution: DistributionSummary, estimate: ValuationEstimate) -> Volatility:
        if not distribution.insufficient:
            spread = (distribution.p90 - distribution.p10) / distribution.p50
        elif estimate.enterprise_value > 0:
            spread = (estimate.high - estimate.low) / estimate.enterprise_value
        else:
            return Volatility.HIGH
        if spread > 0.5:
            return Volatility.HIGH
        if spread > 0.35:
            return Volatility.MEDIUM
        return Volatility.LOW
