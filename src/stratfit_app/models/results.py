from __future__ import annotations

from datetime import date
from typing import List

from .common import BaselineInputs, ValueObject
from .distribution import DistributionSummary
from .valuation import (
    ExitScenario,
    ValuationDriver,
    ValuationEstimate,
    ValuationMultiple,
    ValuationProjection,
    Volatility,
)


class ValuationReport(ValueObject):
    as_of: date
    baseline: BaselineInputs
    multiple: ValuationMultiple
    estimate: ValuationEstimate
    distribution: DistributionSummary
    drivers: List[ValuationDriver]
    overall_score: int
    percentile_rank: float
    projections: List[ValuationProjection]
    exit_scenarios: List[ExitScenario]
    confidence: int
    volatility: Volatility
