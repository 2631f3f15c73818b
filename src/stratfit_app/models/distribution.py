from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional

from pydantic import Field, computed_field, field_validator

from .common import ValueObject, finite_or


class DistributionSource(str, Enum):
    SAMPLES = "samples"
    PERCENTILES = "percentiles"
    POINT_ESTIMATE = "point_estimate"
    NONE = "none"


class ProbabilityDirection(str, Enum):
    GE = "ge"
    LE = "le"


class PercentileInput(ValueObject):
    """Pre-computed percentiles, e.g. from a persisted assessment payload.

    Only p10, p50 and p90 are required. Missing p25/p75 are filled in by the
    summarizer as midpoints, which is a display approximation and not a
    quantile estimate.
    """

    p5: Optional[float] = None
    p10: float
    p25: Optional[float] = None
    p50: float
    p75: Optional[float] = None
    p90: float
    p95: Optional[float] = None

    @field_validator("p10", "p50", "p90", mode="before")
    @classmethod
    def required_finite(cls, v):
        return finite_or(v, 0.0)

    @field_validator("p5", "p25", "p75", "p95", mode="before")
    @classmethod
    def optional_finite(cls, v):
        if v is None:
            return None
        number = finite_or(v, float("nan"))
        return None if math.isnan(number) else number


class ProbabilityThreshold(ValueObject):
    label: str
    value: float
    probability: float = Field(..., description="0-1")
    direction: ProbabilityDirection


class DistributionSummary(ValueObject):
    p10: float
    p25: float
    p50: float = Field(..., description="Headline enterprise value")
    p75: float
    p90: float
    winsor_low: float
    winsor_high: float
    probabilities: List[ProbabilityThreshold] = Field(default_factory=list)
    sample_count: int = 0
    is_from_real_distribution: bool = False
    winsorisation_applied: bool = False
    p25_p75_interpolated: bool = False
    source: DistributionSource = DistributionSource.NONE
    display_unit: str = "USD"

    @computed_field
    @property
    def insufficient(self) -> bool:
        """True when the summary cannot back a chart; show a placeholder instead."""
        return self.p50 <= 0

    def as_tuple(self) -> tuple:
        return (self.p10, self.p25, self.p50, self.p75, self.p90)
