from __future__ import annotations

import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.logging import get_logger

logger = get_logger(__name__)


class FundingStage(str, Enum):
    PRE_SEED = "pre-seed"
    SEED = "seed"
    SERIES_A = "series-a"
    SERIES_B = "series-b"
    SERIES_C = "series-c"
    SERIES_D = "series-d"
    GROWTH = "growth"

    @property
    def is_early(self) -> bool:
        return self in (FundingStage.PRE_SEED, FundingStage.SEED)


class ValuationMethod(str, Enum):
    STRATFIT = "stratfit"
    DCF = "dcf"
    REVENUE_MULTIPLE = "revenue-multiple"
    COMPARABLES = "comparables"


def finite_or(value: Any, default: float) -> float:
    """Coerce ``value`` to a finite float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class BaselineInputs(ValueObject):
    """Point-in-time company financials feeding the multiple calculation.

    Percent fields are whole percentages (``nrr_pct=115`` means 115%).
    """

    arr: float = Field(0.0, description="Annual recurring revenue in USD")
    growth_pct: float = Field(0.0, description="Year-over-year ARR growth, %")
    nrr_pct: float = Field(100.0, description="Net revenue retention, %")
    gross_margin_pct: float = Field(0.0, description="Gross margin, %")
    rule40: float = Field(0.0, description="Growth % plus profit margin %; may be negative")
    stage: FundingStage = FundingStage.SEED

    @field_validator("arr", "growth_pct", "gross_margin_pct", mode="before")
    @classmethod
    def non_negative(cls, v):
        return max(0.0, finite_or(v, 0.0))

    @field_validator("nrr_pct", mode="before")
    @classmethod
    def coerce_nrr(cls, v):
        return max(0.0, finite_or(v, 100.0))

    @field_validator("rule40", mode="before")
    @classmethod
    def coerce_rule40(cls, v):
        return finite_or(v, 0.0)

    @field_validator("stage", mode="before")
    @classmethod
    def coerce_stage(cls, v):
        if isinstance(v, FundingStage):
            return v
        if isinstance(v, str):
            try:
                return FundingStage(v.strip().lower())
            except ValueError:
                pass
        if v is not None:
            logger.warning("Unknown funding stage %r; valuing as %s", v, FundingStage.SEED.value)
        return FundingStage.SEED


class FinancialSummary(ValueObject):
    """Headline numbers from the latest simulation run, if one exists."""

    survival_rate: Optional[float] = Field(None, description="Share of runs that survive, 0-1")
    median_runway: Optional[float] = Field(None, description="Median runway in months")
    median_arr: Optional[float] = Field(None, description="Median simulated ARR in USD")
    overall_score: Optional[float] = Field(None, description="Composite simulation score, 0-100")

    @field_validator("survival_rate", "median_runway", "median_arr", "overall_score", mode="before")
    @classmethod
    def drop_non_finite(cls, v):
        if v is None:
            return None
        number = finite_or(v, math.nan)
        return None if math.isnan(number) else number

    def base_arr(self, default: float) -> float:
        if self.median_arr is None or self.median_arr <= 0:
            return default
        return self.median_arr

    def runway_or(self, default: float) -> float:
        return default if self.median_runway is None else self.median_runway


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
