from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from stratfit_app.core.config import Settings
from stratfit_app.models.distribution import DistributionSource, PercentileInput
from stratfit_app.models.valuation import ExitType, Trend, Volatility
from stratfit_app.sample_data import build_sample_scenario
from stratfit_app.services.calculator import ValuationCalculator


def test_sample_scenario_generates_results():
    scenario = build_sample_scenario()
    calculator = ValuationCalculator()
    report = calculator.run(scenario)

    assert report.multiple.final_multiple == pytest.approx(7.559475)
    assert report.estimate.enterprise_value == pytest.approx(30_237_900)
    assert report.distribution.source == DistributionSource.POINT_ESTIMATE
    assert report.distribution.p50 == pytest.approx(report.estimate.enterprise_value)
    assert report.confidence == 95
    assert report.volatility == Volatility.MEDIUM
    assert report.percentile_rank == pytest.approx(50 + (7.559475 - 18.4) / 18.4 * 50)


def test_drivers_and_overall_score():
    report = ValuationCalculator().run(build_sample_scenario())
    drivers = {driver.id: driver for driver in report.drivers}

    assert drivers["growth"].score == 60
    assert drivers["growth"].trend == Trend.FLAT
    assert drivers["efficiency"].score == 63
    assert drivers["market"].score == 60
    assert drivers["team"].score == 66
    assert drivers["team"].trend == Trend.UP
    assert sum(driver.weight for driver in report.drivers) == pytest.approx(1.0)
    assert report.overall_score == 62


def test_projections_are_dated_monthly_offsets():
    report = ValuationCalculator().run(build_sample_scenario())
    projections = report.projections

    assert [p.month for p in projections] == [0, 3, 6, 9, 12, 15, 18, 21, 24]
    assert projections[0].period_start == date(2025, 1, 31)
    assert projections[1].period_start == date(2025, 4, 30)
    assert projections[-1].period_start == date(2027, 1, 31)
    assert projections[0].mid == pytest.approx(report.estimate.enterprise_value)
    assert projections[4].arr == pytest.approx(4_000_000 * 1.45)
    assert projections[-1].mid == pytest.approx(4_000_000 * 1.45 ** 2 * 7.559475 * 0.85)


def test_projection_horizon_is_configurable():
    calculator = ValuationCalculator(Settings(PROJECTION_HORIZON_MONTHS=12, PROJECTION_STEP_MONTHS=6))
    report = calculator.run(build_sample_scenario())
    assert [p.month for p in report.projections] == [0, 6, 12]


def test_exit_scenarios_follow_overall_score():
    report = ValuationCalculator().run(build_sample_scenario())
    exits = {scenario.type: scenario for scenario in report.exit_scenarios}

    assert exits[ExitType.ACQUISITION].probability == 0.3
    assert exits[ExitType.IPO].probability == 0.05
    assert exits[ExitType.SECONDARY].high == pytest.approx(report.estimate.enterprise_value)


def test_samples_take_priority_over_point_estimate():
    samples = list(np.linspace(20e6, 40e6, 500))
    scenario = build_sample_scenario().model_copy(update={"samples": samples})
    report = ValuationCalculator().run(scenario)

    assert report.distribution.source == DistributionSource.SAMPLES
    assert report.distribution.sample_count == 500
    assert report.distribution.p50 == pytest.approx(30e6)


def test_percentile_payload_used_without_samples():
    scenario = build_sample_scenario().model_copy(
        update={"percentiles": PercentileInput(p10=10e6, p50=20e6, p90=40e6)}
    )
    report = ValuationCalculator().run(scenario)

    assert report.distribution.source == DistributionSource.PERCENTILES
    assert report.distribution.p25_p75_interpolated


def test_zero_arr_reports_insufficient_distribution():
    scenario = build_sample_scenario()
    scenario = scenario.model_copy(update={"baseline": scenario.baseline.model_copy(update={"arr": 0.0})})
    report = ValuationCalculator().run(scenario)

    assert report.estimate.enterprise_value == 0.0
    assert report.distribution.insufficient
    assert report.volatility == Volatility.HIGH


def test_confidence_without_simulation():
    scenario = build_sample_scenario().model_copy(update={"summary": None})
    assert ValuationCalculator().run(scenario).confidence == 70


def test_impact_delegates_to_scorer():
    scenario = build_sample_scenario()
    report = ValuationCalculator().impact(scenario.levers, scenario.summary)
    assert report.top_priority.id == "demandStrength"
