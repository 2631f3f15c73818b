from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..models.common import finite_or
from ..models.distribution import (
    DistributionSource,
    DistributionSummary,
    PercentileInput,
    ProbabilityDirection,
    ProbabilityThreshold,
)

logger = get_logger(__name__)

SUMMARY_PERCENTILES = [10, 25, 50, 75, 90]
IQR_TO_SIGMA = 1.35
TAIL_SIGMAS = 2.5
FLAT_SIGMA_FRACTION = 0.2
GE_THRESHOLD_FACTORS = (0.8, 1.0, 1.3)
LE_THRESHOLD_FACTORS = (0.6, 0.4)


def fmt_compact(value: float) -> str:
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.0f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def clean_thresholds(median: float, factors: Sequence[float]) -> List[float]:
    """Round ``median * factor`` to the median's order of magnitude, dropping non-positive values."""
    magnitude = 10 ** math.floor(math.log10(max(median, 1.0)))
    rounded = [math.floor(median * factor / magnitude + 0.5) * magnitude for factor in factors]
    return [float(value) for value in rounded if value > 0]


def _normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


class DistributionSummarizer:
    """Canonical p10/p25/p50/p75/p90 summaries from samples, percentiles or a point estimate.

    Winsor bounds are display clipping bounds only. The reported percentiles
    and probabilities are always computed on the unclipped data.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config or default_settings

    def summarize(
        self,
        samples: Optional[Sequence[float]] = None,
        percentiles: Optional[PercentileInput] = None,
        point_estimate: Optional[float] = None,
    ) -> DistributionSummary:
        if samples is not None:
            usable = self._finite(samples)
            if usable.size >= self.settings.MIN_SAMPLE_COUNT:
                return self.from_samples(usable)
            logger.info(
                "Only %d usable samples (need %d); falling back to lower-quality data",
                usable.size,
                self.settings.MIN_SAMPLE_COUNT,
            )
        if percentiles is not None:
            return self.from_percentiles(percentiles)
        if point_estimate is not None:
            return self.from_point_estimate(point_estimate)
        if samples is not None:
            return self._empty(int(usable.size), DistributionSource.SAMPLES)
        return self._empty(0, DistributionSource.NONE)

    def from_samples(self, samples: Iterable[float]) -> DistributionSummary:
        values = self._finite(samples)
        if values.size < self.settings.MIN_SAMPLE_COUNT:
            return self._empty(int(values.size), DistributionSource.SAMPLES)

        p10, p25, p50, p75, p90 = (float(v) for v in np.percentile(values, SUMMARY_PERCENTILES))
        if self.settings.WINSORIZE:
            low, high = (
                float(v)
                for v in np.percentile(values, [self.settings.WINSOR_LOW_PCT, self.settings.WINSOR_HIGH_PCT])
            )
        else:
            low, high = float(values.min()), float(values.max())

        probabilities = [
            self._threshold(t, float(np.mean(values >= t)), ProbabilityDirection.GE)
            for t in clean_thresholds(p50, GE_THRESHOLD_FACTORS)
        ] + [
            self._threshold(t, float(np.mean(values <= t)), ProbabilityDirection.LE)
            for t in clean_thresholds(p50, LE_THRESHOLD_FACTORS)
        ]
        logger.debug("Summarized %d samples: p10=%.0f p50=%.0f p90=%.0f", values.size, p10, p50, p90)
        return DistributionSummary(
            p10=p10,
            p25=p25,
            p50=p50,
            p75=p75,
            p90=p90,
            winsor_low=low,
            winsor_high=high,
            probabilities=probabilities,
            sample_count=int(values.size),
            is_from_real_distribution=True,
            winsorisation_applied=self.settings.WINSORIZE,
            source=DistributionSource.SAMPLES,
        )

    def from_percentiles(self, payload: PercentileInput) -> DistributionSummary:
        # Midpoint fill-ins are indicative only, not quartile estimates.
        interpolated = payload.p25 is None or payload.p75 is None
        p25 = payload.p25 if payload.p25 is not None else (payload.p10 + payload.p50) / 2
        p75 = payload.p75 if payload.p75 is not None else (payload.p50 + payload.p90) / 2

        raw = np.array([payload.p10, p25, payload.p50, p75, payload.p90], dtype=float)
        ordered = np.maximum.accumulate(raw)
        if not np.array_equal(raw, ordered):
            logger.warning("Percentile payload out of order %s; repaired to %s", raw.tolist(), ordered.tolist())
        p10, p25, p50, p75, p90 = (float(v) for v in ordered)

        mu = p50
        iqr = p75 - p25
        sigma = iqr / IQR_TO_SIGMA if iqr > 0 else abs(mu) * FLAT_SIGMA_FRACTION
        tail_low = payload.p5 if payload.p5 is not None else mu - TAIL_SIGMAS * sigma
        tail_high = payload.p95 if payload.p95 is not None else mu + TAIL_SIGMAS * sigma
        tail_low, tail_high = min(tail_low, p10), max(tail_high, p90)
        if p10 >= 0:
            tail_low = max(0.0, tail_low)
        # probabilities always use the tails; the toggle only changes display bounds
        low, high = (tail_low, tail_high) if self.settings.WINSORIZE else (p10, p90)

        probabilities = [
            self._threshold(t, self._normal_ge(t, mu, sigma, tail_low, tail_high), ProbabilityDirection.GE)
            for t in clean_thresholds(mu, GE_THRESHOLD_FACTORS)
        ] + [
            self._threshold(t, 1.0 - self._normal_ge(t, mu, sigma, tail_low, tail_high, strict=True), ProbabilityDirection.LE)
            for t in clean_thresholds(mu, LE_THRESHOLD_FACTORS)
        ]
        return DistributionSummary(
            p10=p10,
            p25=p25,
            p50=p50,
            p75=p75,
            p90=p90,
            winsor_low=low,
            winsor_high=high,
            probabilities=probabilities,
            sample_count=0,
            is_from_real_distribution=False,
            winsorisation_applied=self.settings.WINSORIZE,
            p25_p75_interpolated=interpolated,
            source=DistributionSource.PERCENTILES,
        )

    def from_point_estimate(self, enterprise_value: float, uncertainty: Optional[float] = None) -> DistributionSummary:
        ev = finite_or(enterprise_value, 0.0)
        if ev <= 0:
            return self._empty(0, DistributionSource.POINT_ESTIMATE)
        u = self.settings.POINT_ESTIMATE_UNCERTAINTY if uncertainty is None else uncertainty
        u = min(1.0, max(0.0, finite_or(u, self.settings.POINT_ESTIMATE_UNCERTAINTY)))
        synthetic = PercentileInput(
            p5=ev * (1 - 1.25 * u),
            p10=ev * (1 - u),
            p25=ev * (1 - u / 2),
            p50=ev,
            p75=ev * (1 + u / 2),
            p90=ev * (1 + u),
            p95=ev * (1 + 1.25 * u),
        )
        summary = self.from_percentiles(synthetic)
        return summary.model_copy(update={"source": DistributionSource.POINT_ESTIMATE})

    @staticmethod
    def percentile_rank(samples: Iterable[float], value: float) -> float:
        """Percentage of finite samples at or below ``value``."""
        values = DistributionSummarizer._finite(samples)
        if values.size == 0:
            return 0.0
        return float(np.mean(values <= value) * 100.0)

    @staticmethod
    def clip_for_display(values: Iterable[float], summary: DistributionSummary) -> List[float]:
        data = np.asarray(list(values), dtype=float)
        if not summary.winsorisation_applied:
            return data.tolist()
        return np.clip(data, summary.winsor_low, summary.winsor_high).tolist()

    @staticmethod
    def _finite(samples: Iterable[float]) -> np.ndarray:
        data = np.asarray(list(samples), dtype=float)
        finite = data[np.isfinite(data)]
        if finite.size != data.size:
            logger.warning("Discarded %d non-finite samples", data.size - finite.size)
        return finite

    @staticmethod
    def _normal_ge(
        threshold: float,
        mu: float,
        sigma: float,
        low: float,
        high: float,
        strict: bool = False,
    ) -> float:
        """P(X >= t) (or P(X > t) when ``strict``) for a normal clamped to [low, high]."""
        if threshold < low or (threshold == low and not strict):
            return 1.0
        if threshold > high or (threshold == high and strict):
            return 0.0
        if sigma <= 0:
            return 1.0 if (mu > threshold if strict else mu >= threshold) else 0.0
        return 1.0 - _normal_cdf((threshold - mu) / sigma)

    @staticmethod
    def _threshold(value: float, probability: float, direction: ProbabilityDirection) -> ProbabilityThreshold:
        symbol = ">=" if direction == ProbabilityDirection.GE else "<="
        return ProbabilityThreshold(
            label=f"EV {symbol} {fmt_compact(value)}",
            value=value,
            probability=min(1.0, max(0.0, probability)),
            direction=direction,
        )

    @staticmethod
    def _empty(sample_count: int, source: DistributionSource) -> DistributionSummary:
        return DistributionSummary(
            p10=0.0,
            p25=0.0,
            p50=0.0,
            p75=0.0,
            p90=0.0,
            winsor_low=0.0,
            winsor_high=0.0,
            sample_count=sample_count,
            source=source,
        )
