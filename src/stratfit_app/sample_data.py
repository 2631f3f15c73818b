from __future__ import annotations

from datetime import date
from typing import Dict

from .models.common import BaselineInputs, FinancialSummary, FundingStage, ValuationMethod
from .models.scenario import ValuationScenario


def build_sample_baseline() -> BaselineInputs:
    return BaselineInputs(
        arr=4_000_000,
        growth_pct=45,
        nrr_pct=115,
        gross_margin_pct=75,
        rule40=50,
        stage=FundingStage.SEED,
    )


def build_sample_levers() -> Dict[str, float]:
    return {
        "demandStrength": 72,
        "pricingPower": 60,
        "costDiscipline": 55,
        "expansionVelocity": 48,
        "hiringIntensity": 66,
        "marketVolatility": 40,
        "executionRisk": 35,
        "operatingDrag": 30,
    }


def build_sample_summary() -> FinancialSummary:
    return FinancialSummary(
        survival_rate=0.72,
        median_runway=20,
        median_arr=5_200_000,
        overall_score=64,
    )


def build_sample_scenario() -> ValuationScenario:
    return ValuationScenario(
        baseline=build_sample_baseline(),
        method=ValuationMethod.STRATFIT,
        levers=build_sample_levers(),
        summary=build_sample_summary(),
        as_of=date(2025, 1, 31),
    )
