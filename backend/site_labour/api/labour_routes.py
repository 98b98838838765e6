"""
Labour Tracking API Routes

L1: POST /api/v1/labour/analysis            — full labour analysis for a job
L2: POST /api/v1/labour/metrics             — labour metrics snapshot + alerts
L3: POST /api/v1/labour/team-size           — crew size needed for a deadline
L4: POST /api/v1/labour/tomorrow-plan       — next-day priorities and targets
L5: POST /api/v1/labour/cost-implications   — projected vs original labour cost
L6: POST /api/v1/labour/bottlenecks         — products holding the job back
L7: POST /api/v1/labour/predict-completion  — completion prediction from hours logged

All endpoints are stateless: the caller posts the job's progress records.
"""
import datetime as dt
import logging
from typing import List, Optional, Union

from fastapi import APIRouter
from pydantic import Field

from site_labour.models.labour_schema import (
    CamelModel,
    CompletionPrediction,
    CostImplications,
    DailyProgressSummary,
    LabourAllocation,
    LabourAnalysis,
    LabourEstimate,
    LabourMetrics,
    ProductProgress,
    TeamRecommendation,
    TomorrowPlan,
)
from site_labour.services.labour_analysis import build_labour_analysis, order_history
from site_labour.services.labour_calculator import labour_calculator
from site_labour.services.labour_logic import predict_job_completion

router = APIRouter(prefix="/api/v1/labour", tags=["Labour Tracking"])
logger = logging.getLogger("site-labour.routes")


# ── Pydantic Models ─────────────────────────────────────────────────────────

class ProductsRequest(CamelModel):
    products: List[ProductProgress] = Field(default_factory=list)


class AnalysisRequest(ProductsRequest):
    daily_progress: List[DailyProgressSummary] = Field(default_factory=list)
    target_completion_date: Optional[Union[dt.datetime, dt.date]] = None
    labour_allocation: Optional[LabourAllocation] = None


class MetricsRequest(ProductsRequest):
    daily_progress: List[DailyProgressSummary] = Field(default_factory=list)
    target_completion_date: Union[dt.datetime, dt.date]


class TeamSizeRequest(CamelModel):
    remaining_hours: float
    days_available: float
    current_efficiency: Optional[float] = None


class TomorrowPlanRequest(ProductsRequest):
    team_size: Optional[int] = Field(None, ge=1)


class CostImplicationsRequest(ProductsRequest):
    original_estimate: LabourEstimate
    hourly_rate: Optional[float] = Field(None, ge=0)


class CompletionPredictionRequest(CamelModel):
    completed_hours: float = 0.0
    remaining_hours: float = 0.0
    days_worked: float = 0.0
    average_hours_per_day: float = 0.0


# ── Routes ──────────────────────────────────────────────────────────────────

@router.post("/analysis", response_model=LabourAnalysis)
async def labour_analysis(req: AnalysisRequest):
    """
    Metrics, crew recommendation, top bottlenecks, tomorrow's plan, cost
    position and daily trends.  Daily history may be posted in any order
    when each entry carries its date.
    """
    return build_labour_analysis(
        req.products,
        req.daily_progress,
        target_completion_date=req.target_completion_date,
        labour_allocation=req.labour_allocation,
    )


@router.post("/metrics", response_model=LabourMetrics)
async def labour_metrics(req: MetricsRequest):
    return labour_calculator.calculate_labour_metrics(
        req.products,
        order_history(req.daily_progress),
        req.target_completion_date,
    )


@router.post("/team-size", response_model=TeamRecommendation)
async def team_size(req: TeamSizeRequest):
    if req.current_efficiency is None:
        return labour_calculator.calculate_required_team_size(req.remaining_hours, req.days_available)
    return labour_calculator.calculate_required_team_size(
        req.remaining_hours, req.days_available, req.current_efficiency
    )


@router.post("/tomorrow-plan", response_model=TomorrowPlan)
async def tomorrow_plan(req: TomorrowPlanRequest):
    return labour_calculator.generate_tomorrow_plan(req.products, req.team_size)


@router.post("/cost-implications", response_model=CostImplications)
async def cost_implications(req: CostImplicationsRequest):
    return labour_calculator.calculate_cost_implications(
        req.original_estimate, req.products, req.hourly_rate
    )


@router.post("/bottlenecks", response_model=List[ProductProgress])
async def bottlenecks(req: ProductsRequest):
    return labour_calculator.identify_bottlenecks(req.products)


@router.post("/predict-completion", response_model=CompletionPrediction)
async def predict_completion(req: CompletionPredictionRequest):
    return predict_job_completion(
        req.completed_hours,
        req.remaining_hours,
        req.days_worked,
        req.average_hours_per_day,
    )
