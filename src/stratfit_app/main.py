from __future__ import annotations

from typing import Dict

from fastapi import FastAPI, HTTPException

from .core.config import settings
from .core.logging import configure_logging, get_logger
from .models.common import BaselineInputs
from .models.scenario import ValuationScenario
from .schemas import (
    BaselineCompareResponse,
    BaselineCreateRequest,
    BaselineCreateResponse,
    BaselineListResponse,
    DistributionRequest,
    DistributionResponse,
    ImpactRequest,
    ImpactResponse,
    ValuationRunRequest,
    ValuationRunResponse,
)
from .services.calculator import ValuationCalculator

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(title="STRATFIT Valuation Engine", version="0.1.0")

BASELINES: Dict[str, BaselineInputs] = {}
calculator = ValuationCalculator(settings)


@app.post("/baselines", response_model=BaselineCreateResponse)
def create_baseline(payload: BaselineCreateRequest) -> BaselineCreateResponse:
    BASELINES[payload.baseline_id] = payload.baseline
    logger.info("Stored baseline %s", payload.baseline_id)
    return BaselineCreateResponse(baseline_id=payload.baseline_id)


@app.get("/baselines", response_model=BaselineListResponse)
def list_baselines() -> BaselineListResponse:
    return BaselineListResponse(baselines=list(BASELINES.keys()))


@app.post("/valuation", response_model=ValuationRunResponse)
def run_valuation(payload: ValuationRunRequest) -> ValuationRunResponse:
    scenario: ValuationScenario | None = None
    if payload.scenario is not None:
        scenario = payload.scenario
    elif payload.baseline_id:
        baseline = BASELINES.get(payload.baseline_id)
        if baseline is not None:
            scenario = ValuationScenario(baseline=baseline)
    if scenario is None:
        raise HTTPException(status_code=404, detail="Baseline not found")
    if payload.method is not None:
        scenario = scenario.model_copy(update={"method": payload.method})
    return ValuationRunResponse(report=calculator.run(scenario))


@app.get("/baselines/{baseline_id}/valuation", response_model=ValuationRunResponse)
def get_baseline_valuation(baseline_id: str) -> ValuationRunResponse:
    baseline = BASELINES.get(baseline_id)
    if baseline is None:
        raise HTTPException(status_code=404, detail="Baseline not found")
    return ValuationRunResponse(report=calculator.run(ValuationScenario(baseline=baseline)))


@app.get("/baselines/{baseline_id}/compare", response_model=BaselineCompareResponse)
def compare_baselines(baseline_id: str, ids: str) -> BaselineCompareResponse:
    base_ids = [baseline_id] + [part for part in ids.split(",") if part]
    values = []
    multiples = []
    for _id in base_ids:
        baseline = BASELINES.get(_id)
        if baseline is None:
            raise HTTPException(status_code=404, detail=f"Baseline {_id} not found")
        report = calculator.run(ValuationScenario(baseline=baseline))
        values.append(report.estimate.enterprise_value)
        multiples.append(report.multiple.final_multiple)
    return BaselineCompareResponse(baseline_ids=base_ids, enterprise_value=values, final_multiple=multiples)


@app.post("/distribution", response_model=DistributionResponse)
def summarize_distribution(payload: DistributionRequest) -> DistributionResponse:
    summarizer = calculator.summarizer
    if payload.samples is None and payload.percentiles is None and payload.point_estimate is not None:
        summary = summarizer.from_point_estimate(payload.point_estimate, payload.uncertainty)
    else:
        summary = summarizer.summarize(
            samples=payload.samples,
            percentiles=payload.percentiles,
            point_estimate=payload.point_estimate,
        )
    return DistributionResponse(summary=summary)


@app.post("/impact", response_model=ImpactResponse)
def score_impact(payload: ImpactRequest) -> ImpactResponse:
    return ImpactResponse(report=calculator.impact(payload.levers, payload.summary))


@app.get("/health")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}
