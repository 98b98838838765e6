"""
Quote-to-job conversion routes.

Q1: POST /api/v1/quotes/labour-estimate — labour estimate, validation, build
    order, daily crew allocation and job-ready product lines for a quote.
"""
import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import Field

from site_labour import config
from site_labour.models.labour_schema import (
    CamelModel,
    DailyCrewAllocation,
    EstimateValidation,
    LabourEstimate,
    ProductLabourBreakdown,
    QuoteCalculationResults,
    QuoteDetails,
    QuotedProduct,
)
from site_labour.services.labour_logic import (
    calculate_optimal_crew_allocation,
    convert_quote_to_labour_estimate,
    optimize_build_order,
    sanitize_products_for_job,
    validate_labour_estimate,
)

router = APIRouter(prefix="/api/v1/quotes", tags=["Quote Conversion"])
logger = logging.getLogger("site-labour.quote-routes")


class QuoteConversionRequest(CamelModel):
    results: QuoteCalculationResults
    products: List[QuotedProduct] = Field(default_factory=list)
    details: QuoteDetails = Field(default_factory=QuoteDetails)
    preferred_start_date: Optional[dt.date] = None
    max_van_crews: int = Field(config.MAX_VAN_CREWS, ge=0)
    max_foot_crews: int = Field(config.MAX_FOOT_CREWS, ge=0)
    max_supervisors: int = Field(config.MAX_SUPERVISORS, ge=0)
    work_days_per_week: int = Field(config.WORK_DAYS_PER_WEEK, ge=1, le=7)


class QuoteConversionResponse(CamelModel):
    estimate: LabourEstimate
    validation: EstimateValidation
    build_order: List[ProductLabourBreakdown]
    crew_allocation: List[DailyCrewAllocation]
    job_products: List[Dict[str, Any]]


@router.post("/labour-estimate", response_model=QuoteConversionResponse)
async def quote_labour_estimate(req: QuoteConversionRequest):
    """Everything needed to turn an accepted quote into a tracked job."""
    estimate = convert_quote_to_labour_estimate(req.results, req.products, req.details)
    validation = validate_labour_estimate(estimate)
    if not validation.is_valid:
        logger.warning(f"Quote conversion produced an invalid estimate: {validation.errors}")

    allocation = calculate_optimal_crew_allocation(
        estimate,
        max_van_crews=req.max_van_crews,
        max_foot_crews=req.max_foot_crews,
        max_supervisors=req.max_supervisors,
        preferred_start_date=req.preferred_start_date,
        work_days_per_week=req.work_days_per_week,
    )

    return QuoteConversionResponse(
        estimate=estimate,
        validation=validation,
        build_order=optimize_build_order(estimate.products),
        crew_allocation=allocation,
        job_products=sanitize_products_for_job(req.products),
    )
