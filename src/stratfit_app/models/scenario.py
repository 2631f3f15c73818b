from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .common import BaselineInputs, FinancialSummary, ValuationMethod
from .distribution import PercentileInput


class ValuationScenario(BaseModel):
    """Everything one valuation run needs.

    Distribution data is optional and used in priority order: ``samples``,
    then ``percentiles``, then the point estimate derived from the baseline.
    """

    baseline: BaselineInputs
    method: ValuationMethod = ValuationMethod.STRATFIT
    levers: Dict[str, float] = Field(default_factory=dict, description="Lever id to 0-100 value")
    summary: Optional[FinancialSummary] = Field(default=None, description="Latest simulation summary, if any")
    samples: Optional[List[float]] = Field(default=None, description="Monte Carlo enterprise value draws")
    percentiles: Optional[PercentileInput] = None
    as_of: date = Field(default_factory=date.today)
