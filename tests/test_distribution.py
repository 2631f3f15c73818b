from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from stratfit_app.core.config import Settings
from stratfit_app.models.distribution import DistributionSource, PercentileInput, ProbabilityDirection
from stratfit_app.services.distribution import DistributionSummarizer, clean_thresholds, fmt_compact

SAMPLES = [float(v) for v in np.arange(1, 1001) * 1000]


def _ordered(summary) -> bool:
    p10, p25, p50, p75, p90 = summary.as_tuple()
    return p10 <= p25 <= p50 <= p75 <= p90


def test_summary_from_samples():
    summary = DistributionSummarizer().from_samples(SAMPLES)

    assert summary.source == DistributionSource.SAMPLES
    assert summary.is_from_real_distribution
    assert summary.sample_count == 1000
    assert summary.p50 == pytest.approx(500_500)
    assert summary.winsor_low == pytest.approx(50_950)
    assert summary.winsor_high == pytest.approx(950_050)
    assert summary.winsorisation_applied
    assert not summary.insufficient
    assert _ordered(summary)


def test_sample_percentiles_round_trip():
    summarizer = DistributionSummarizer()
    summary = summarizer.from_samples(SAMPLES)
    ranks = [summarizer.percentile_rank(SAMPLES, value) for value in summary.as_tuple()]
    assert ranks == pytest.approx([10, 25, 50, 75, 90], abs=1.0)


def test_sample_probabilities_are_empirical():
    summary = DistributionSummarizer().from_samples(SAMPLES)
    ge = {p.value: p.probability for p in summary.probabilities if p.direction == ProbabilityDirection.GE}
    assert sorted(ge) == [400_000, 500_000, 700_000]
    assert ge[500_000] == pytest.approx(0.501)
    assert all(0.0 <= p.probability <= 1.0 for p in summary.probabilities)


def test_winsorization_leaves_percentiles_untouched():
    samples = SAMPLES + [1e12, 2e12]
    clipped = DistributionSummarizer(Settings(WINSORIZE=True)).from_samples(samples)
    unclipped = DistributionSummarizer(Settings(WINSORIZE=False)).from_samples(samples)

    assert clipped.as_tuple() == unclipped.as_tuple()
    assert not unclipped.winsorisation_applied
    assert unclipped.winsor_high == 2e12
    assert clipped.winsor_high < 1e12


def test_too_few_samples_is_insufficient():
    summary = DistributionSummarizer().from_samples(SAMPLES[:50])
    assert summary.insufficient
    assert summary.sample_count == 50
    assert summary.p50 == 0.0
    assert not summary.is_from_real_distribution


def test_non_finite_samples_are_dropped():
    summary = DistributionSummarizer().from_samples(SAMPLES[:150] + [math.nan, math.inf, -math.inf])
    assert summary.sample_count == 150


def test_summarize_prefers_samples_then_percentiles_then_point():
    summarizer = DistributionSummarizer()
    pctls = PercentileInput(p10=10e6, p50=20e6, p90=40e6)

    assert summarizer.summarize(samples=SAMPLES, percentiles=pctls, point_estimate=1e6).source == DistributionSource.SAMPLES
    assert summarizer.summarize(samples=SAMPLES[:20], percentiles=pctls, point_estimate=1e6).source == DistributionSource.PERCENTILES
    assert summarizer.summarize(samples=SAMPLES[:20], point_estimate=1e6).source == DistributionSource.POINT_ESTIMATE
    assert summarizer.summarize(samples=SAMPLES[:20]).source == DistributionSource.SAMPLES
    assert summarizer.summarize().insufficient


def test_percentile_payload_interpolates_quartiles():
    summary = DistributionSummarizer().from_percentiles(PercentileInput(p10=10, p50=20, p90=40))

    assert (summary.p25, summary.p75) == (15, 30)
    assert summary.p25_p75_interpolated
    assert summary.sample_count == 0
    assert not summary.is_from_real_distribution
    assert summary.winsor_low <= summary.p10
    assert summary.winsor_high >= summary.p90


def test_percentile_payload_keeps_given_quartiles():
    summary = DistributionSummarizer().from_percentiles(PercentileInput(p10=10, p25=12, p50=20, p75=33, p90=40))
    assert (summary.p25, summary.p75) == (12, 33)
    assert not summary.p25_p75_interpolated


def test_out_of_order_payload_is_repaired():
    summary = DistributionSummarizer().from_percentiles(PercentileInput(p10=30, p50=20, p90=40))
    assert _ordered(summary)


def test_point_estimate_spread():
    ev = 4_000_000 * 9.2
    summary = DistributionSummarizer().from_point_estimate(ev)

    assert summary.source == DistributionSource.POINT_ESTIMATE
    assert summary.p10 == pytest.approx(29_440_000)
    assert summary.p50 == pytest.approx(36_800_000)
    assert summary.p90 == pytest.approx(44_160_000)
    assert not summary.is_from_real_distribution
    assert _ordered(summary)


def test_point_estimate_probabilities_respect_display_bounds():
    summary = DistributionSummarizer().from_point_estimate(36_800_000)
    ge = {p.value: p.probability for p in summary.probabilities if p.direction == ProbabilityDirection.GE}
    le = {p.value: p.probability for p in summary.probabilities if p.direction == ProbabilityDirection.LE}

    assert ge[50_000_000] == 0.0
    assert 0.5 < ge[30_000_000] < 1.0
    assert le[20_000_000] == 0.0


def test_non_positive_point_estimate_is_insufficient():
    summarizer = DistributionSummarizer()
    assert summarizer.from_point_estimate(0).insufficient
    assert summarizer.from_point_estimate(-5e6).insufficient
    assert summarizer.from_point_estimate(math.nan).insufficient


def test_clip_for_display():
    summarizer = DistributionSummarizer()
    summary = summarizer.from_samples(SAMPLES)
    clipped = summarizer.clip_for_display([0, 500_000, 5e9], summary)
    assert clipped == [summary.winsor_low, 500_000, summary.winsor_high]


def test_threshold_helpers():
    assert clean_thresholds(36_800_000, (0.8, 1.0, 1.3)) == [30_000_000, 40_000_000, 50_000_000]
    assert clean_thresholds(0, (0.6,)) == []
    assert fmt_compact(2_500_000_000) == "$2.5B"
    assert fmt_compact(40_000_000) == "$40M"
    assert fmt_compact(12_000) == "$12K"


def test_percentile_payload_coerces_bad_numbers():
    payload = PercentileInput(p5=math.nan, p10="10", p25=math.inf, p50=20, p75="abc", p90=40, p95=-math.inf)

    assert (payload.p5, payload.p25, payload.p75, payload.p95) == (None, None, None, None)
    assert payload.p10 == 10.0
    assert DistributionSummarizer().from_percentiles(payload).p25_p75_interpolated


def test_non_finite_median_is_insufficient():
    payload = PercentileInput(p10=None, p50=math.nan, p90="n/a")
    assert (payload.p10, payload.p50, payload.p90) == (0.0, 0.0, 0.0)
    assert DistributionSummarizer().from_percentiles(payload).insufficient


def test_percentile_display_bounds_follow_winsorize_toggle():
    payload = PercentileInput(p10=10, p50=20, p90=40)
    clipped = DistributionSummarizer(Settings(WINSORIZE=True)).from_percentiles(payload)
    unclipped = DistributionSummarizer(Settings(WINSORIZE=False)).from_percentiles(payload)

    assert clipped.winsor_low == 0.0
    assert clipped.winsor_high == pytest.approx(20 + 2.5 * 15 / 1.35)
    assert (unclipped.winsor_low, unclipped.winsor_high) == (10, 40)
    assert not unclipped.winsorisation_applied
    assert clipped.probabilities == unclipped.probabilities
    assert clipped.as_tuple() == unclipped.as_tuple()


def test_too_few_samples_without_fallback_filters_once(caplog):
    with caplog.at_level(logging.WARNING, logger="stratfit_app.services.distribution"):
        summary = DistributionSummarizer().summarize(samples=SAMPLES[:20] + [math.nan, math.inf])

    assert summary.source == DistributionSource.SAMPLES
    assert summary.sample_count == 20
    assert summary.insufficient
    assert caplog.text.count("Discarded 2 non-finite samples") == 1
