from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models.common import BaselineInputs, FinancialSummary, ValuationMethod
from .models.distribution import DistributionSummary, PercentileInput
from .models.impact import ImpactReport
from .models.results import ValuationReport
from .models.scenario import ValuationScenario


class BaselineCreateRequest(BaseModel):
    baseline_id: str
    baseline: BaselineInputs


class BaselineCreateResponse(BaseModel):
    baseline_id: str


class BaselineListResponse(BaseModel):
    baselines: List[str]


class ValuationRunRequest(BaseModel):
    baseline_id: Optional[str] = None
    scenario: Optional[ValuationScenario] = None
    method: Optional[ValuationMethod] = Field(default=None, description="Overrides the scenario method")


class ValuationRunResponse(BaseModel):
    report: ValuationReport


class BaselineCompareResponse(BaseModel):
    baseline_ids: List[str]
    enterprise_value: List[float]
    final_multiple: List[float]


class DistributionRequest(BaseModel):
    samples: Optional[List[float]] = None
    percentiles: Optional[PercentileInput] = None
    point_estimate: Optional[float] = None
    uncertainty: Optional[float] = Field(default=None, description="Only used for point estimates")


class DistributionResponse(BaseModel):
    summary: DistributionSummary


class ImpactRequest(BaseModel):
    levers: Dict[str, float] = Field(default_factory=dict)
    summary: Optional[FinancialSummary] = None


class ImpactResponse(BaseModel):
    report: ImpactReport
