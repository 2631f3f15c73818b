from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import Field, computed_field

from .common import FundingStage, ValuationMethod, ValueObject


class DriverCategory(str, Enum):
    GROWTH = "growth"
    EFFICIENCY = "efficiency"
    MARKET = "market"
    TEAM = "team"


class Trend(str, Enum):
    UP = "up"
    FLAT = "flat"
    DOWN = "down"


class ExitType(str, Enum):
    ACQUISITION = "acquisition"
    IPO = "ipo"
    SECONDARY = "secondary"


class Volatility(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class SaneBounds(ValueObject):
    """Per-stage limits returned by ``MultipleCalculator.sane_bounds``."""

    max_arr_multiple: float
    min_arr_multiple: float
    max_revenue_multiple: float
    min_revenue_multiple: float
    max_dcf_terminal_growth_pct: float
    min_discount_rate_pct: float
    max_discount_rate_pct: float


class ValuationMultiple(ValueObject):
    method: ValuationMethod
    stage: FundingStage
    base_multiple: float
    nrr_multiplier: float
    margin_multiplier: float
    rule40_multiplier: float
    stage_multiplier: float
    method_modifier: float
    raw_multiple: float = Field(..., description="Product of all components before clamping")
    final_multiple: float
    min_multiple: float
    max_multiple: float

    @computed_field
    @property
    def clamped(self) -> bool:
        return self.final_multiple != self.raw_multiple


class ValuationEstimate(ValueObject):
    arr: float
    multiple: float
    enterprise_value: float
    low: float
    high: float


class ValuationDriver(ValueObject):
    id: str
    name: str
    category: DriverCategory
    score: int = Field(..., description="0-100")
    weight: float
    trend: Trend
    description: str


class ValuationProjection(ValueObject):
    month: int
    period_start: date
    arr: float
    low: float
    mid: float
    high: float


class ExitScenario(ValueObject):
    type: ExitType
    probability: float
    low: float
    high: float
    timeframe_months: int


class ComparableCompany(ValueObject):
    id: str
    name: str
    sector: str
    stage: FundingStage
    arr_multiple: float
    revenue_multiple: float
    last_valuation: float
    last_arr: float
    growth_rate: float
