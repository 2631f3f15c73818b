"""
config.py - Engine settings

Every tunable of the valuation, distribution and impact services lives here.
Values load from `STRATFIT_*` environment variables or a `.env` file in the
working directory. Services take a `Settings` instance in their constructor;
the module-level `settings` object is only the default.
"""

from __future__ import annotations

from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LOG_LEVEL: str = Field("INFO", description="Root log level for the API process")

    # Distribution summarization
    MIN_SAMPLE_COUNT: int = Field(
        100,
        description="Minimum finite Monte Carlo draws before samples are trusted over percentiles",
    )
    WINSORIZE: bool = Field(True, description="Compute display clipping bounds for distributions")
    WINSOR_LOW_PCT: float = Field(5.0, description="Lower display clipping percentile")
    WINSOR_HIGH_PCT: float = Field(95.0, description="Upper display clipping percentile")
    POINT_ESTIMATE_UNCERTAINTY: float = Field(
        0.20,
        description="Fractional p10/p90 spread synthesized around a single EV estimate",
    )

    # Lever scoring
    HIGH_IMPACT_THRESHOLD: float = Field(65.0, description="impact_score at or above which a lever is high impact")
    LOW_EFFORT_LEVELS: List[str] = Field(
        default_factory=lambda: ["low", "medium"],
        description="Effort levels that count as low effort in the effort/impact matrix",
    )
    DANGER_PROXIMITY: float = Field(0.85, description="Fraction of a danger threshold that triggers a warning")
    DEFAULT_BASE_ARR: float = Field(2_000_000.0, description="ARR used for dollar impact when no simulation ran")

    # Projections
    PROJECTION_HORIZON_MONTHS: int = Field(24, description="Length of the valuation projection")
    PROJECTION_STEP_MONTHS: int = Field(3, description="Spacing between projection points")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v or "INFO"

    @field_validator("POINT_ESTIMATE_UNCERTAINTY")
    @classmethod
    def bound_uncertainty(cls, v: float) -> float:
        return min(1.0, max(0.0, v))

    @model_validator(mode="after")
    def check_winsor_order(self) -> "Settings":
        if not 0 <= self.WINSOR_LOW_PCT < self.WINSOR_HIGH_PCT <= 100:
            raise ValueError(
                f"Winsor percentiles must satisfy 0 <= low < high <= 100, got "
                f"{self.WINSOR_LOW_PCT} and {self.WINSOR_HIGH_PCT}"
            )
        if self.PROJECTION_STEP_MONTHS < 1:
            raise ValueError("PROJECTION_STEP_MONTHS must be at least 1")
        return self

    model_config = SettingsConfigDict(
        env_prefix="STRATFIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
