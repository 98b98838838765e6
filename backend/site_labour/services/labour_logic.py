"""
labour_logic.py — Quote-to-job labour conversion.

Turns a calculated quote into the labour estimate a job is tracked against:
  - Quote results → LabourEstimate with a light-before-heavy build order
  - Product sanitisation (drop pricing, keep what the site team needs)
  - Daily crew allocation (van / foot crews, supervisors, uplift days)
  - Estimate validation against business rules
  - Completion prediction from recorded progress
"""

import functools
import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from site_labour import config
from site_labour.models.labour_schema import (
    CompletionPrediction,
    DailyCrewAllocation,
    EstimateValidation,
    LabourEstimate,
    ProductLabourBreakdown,
    QuoteCalculationResults,
    QuoteDetails,
    QuotedProduct,
)
from site_labour.services.safe_math import add_days, ceil_days, safe_divide

logger = logging.getLogger("site-labour.logic")

# Quote-line fields copied onto a job (no pricing)
_JOB_PRODUCT_FIELDS = (
    "product_code",
    "description",
    "raw_description",
    "clean_description",
    "quantity",
    "time_per_unit",
    "total_time",
    "is_heavy",
    "source",
    "line_number",
)


def _build_order_key(product: ProductLabourBreakdown):
    # Heavy items last, then most complex (hours per unit) first
    return (product.is_heavy, -product.hours_per_unit)


def _renumber(products: List[ProductLabourBreakdown]) -> List[ProductLabourBreakdown]:
    return [
        p.model_copy(update={"build_priority": index + 1})
        for index, p in enumerate(products)
    ]


def convert_quote_to_labour_estimate(
    results: QuoteCalculationResults,
    products: Sequence[QuotedProduct],
    details: Optional[QuoteDetails] = None,
) -> LabourEstimate:
    """
    Convert quote calculation results into the job's labour estimate.

    Uplift days come from the quote's extended-uplift override; the rest of
    the project days are installation.  Product lines are re-ordered so heavy
    items are built last and complex items first.
    """
    details = details or QuoteDetails()
    uplift_days = details.custom_extended_uplift_days or 0.0
    installation_days = results.crew.total_project_days - uplift_days

    breakdown = [
        ProductLabourBreakdown(
            product_code=p.product_code,
            description=p.description or p.clean_description,
            quantity=p.quantity,
            hours_per_unit=p.time_per_unit,
            total_hours=p.total_time,
            is_heavy=p.is_heavy,
            build_priority=index + 1,
        )
        for index, p in enumerate(products)
    ]
    breakdown.sort(key=_build_order_key)

    return LabourEstimate(
        total_days=results.crew.total_project_days,
        total_hours=results.labour.buffered_hours,
        crew_size=results.crew.crew_size,
        installation_days=installation_days,
        uplift_days=uplift_days,
        products=_renumber(breakdown),
    )


def sanitize_products_for_job(quote_products: Sequence[QuotedProduct]) -> List[Dict[str, Any]]:
    """Strip quote-only fields (pricing) from quote lines before job creation."""
    sanitized = []
    for product in quote_products:
        row = product.model_dump(include=set(_JOB_PRODUCT_FIELDS))
        row["description"] = product.description or product.clean_description
        sanitized.append(row)
    return sanitized


def _next_work_day(day: date, work_days_per_week: int) -> date:
    if work_days_per_week == 5:
        while day.weekday() >= 5:
            day += timedelta(days=1)
    return day


def calculate_optimal_crew_allocation(
    labour_estimate: LabourEstimate,
    max_van_crews: int = config.MAX_VAN_CREWS,
    max_foot_crews: int = config.MAX_FOOT_CREWS,
    max_supervisors: int = config.MAX_SUPERVISORS,
    preferred_start_date: Optional[date] = None,
    work_days_per_week: int = config.WORK_DAYS_PER_WEEK,
) -> List[DailyCrewAllocation]:
    """
    Day-by-day crew plan for a job.

    Roughly 40 % of the crew travels as van crews, the rest on foot; a
    supervisor joins crews larger than four.  Installation days are placed
    on working days (Saturday and Sunday are skipped in a 5-day week),
    followed by any uplift days with a reduced crew.
    """
    if isinstance(preferred_start_date, datetime):
        preferred_start_date = preferred_start_date.date()
    start = preferred_start_date or date.today()

    crew_size = max(0, min(labour_estimate.crew_size, max_van_crews + max_foot_crews))
    van_crews = min(max_van_crews, ceil_days(crew_size * config.VAN_CREW_SHARE))
    foot_crews = max(0, min(max_foot_crews, crew_size - van_crews))
    supervisors = min(max_supervisors, 1 if crew_size > config.SUPERVISOR_CREW_THRESHOLD else 0)

    allocations: List[DailyCrewAllocation] = []
    working_days = max(0, ceil_days(labour_estimate.installation_days))
    day = start
    for n in range(working_days):
        day = _next_work_day(day, work_days_per_week)
        allocations.append(DailyCrewAllocation(
            work_date=day.isoformat(),
            van_crews=van_crews,
            foot_crews=foot_crews,
            supervisors=supervisors,
            hours_allocated=(van_crews + foot_crews) * config.HOURS_PER_DAY,
            crew_mode="mixed" if van_crews > 0 else "foot",
            notes=f"Day {n + 1} - Installation work",
        ))
        day += timedelta(days=1)

    uplift_days = max(0, ceil_days(labour_estimate.uplift_days))
    if uplift_days:
        uplift_crew = min(config.UPLIFT_MAX_CREW, foot_crews)
        for n in range(uplift_days):
            day = _next_work_day(day, work_days_per_week)
            allocations.append(DailyCrewAllocation(
                work_date=day.isoformat(),
                van_crews=1,
                foot_crews=max(0, uplift_crew - 1),
                supervisors=0,
                hours_allocated=uplift_crew * config.HOURS_PER_DAY,
                crew_mode="mixed",
                notes=f"Uplift day {n + 1}",
            ))
            day += timedelta(days=1)

    logger.debug(
        "crew allocation built: %d installation + %d uplift days", working_days, uplift_days
    )
    return allocations


def validate_labour_estimate(estimate: LabourEstimate) -> EstimateValidation:
    """Check an estimate against hours, crew, duration and product rules."""
    warnings: List[str] = []
    errors: List[str] = []

    if estimate.total_hours <= 0:
        errors.append("Total hours must be greater than zero")
    if estimate.total_hours > config.ESTIMATE_MAX_HOURS:
        warnings.append("Total hours exceeds 2000 - consider breaking into multiple jobs")

    if estimate.crew_size > config.ESTIMATE_MAX_CREW:
        warnings.append("Crew size exceeds 8 - may impact productivity")
    if estimate.crew_size == 0:
        errors.append("Crew size cannot be zero")

    if estimate.total_days > config.ESTIMATE_MAX_DAYS:
        warnings.append("Job duration exceeds 60 days - consider project phasing")

    if not estimate.products:
        errors.append("Job must contain at least one product")

    product_hours = sum(p.total_hours for p in estimate.products)
    if abs(product_hours - estimate.total_hours) > config.ESTIMATE_HOURS_TOLERANCE:
        warnings.append("Product hours do not match estimate total")

    return EstimateValidation(is_valid=not errors, warnings=warnings, errors=errors)


def predict_job_completion(
    completed_hours: float,
    remaining_hours: float,
    days_worked: float,
    average_hours_per_day: float,
    now: Optional[datetime] = None,
) -> CompletionPrediction:
    """
    Predict when a job finishes from hours logged so far.

    Confidence grows with the number of days recorded and the share of work
    already done.
    """
    now = now or datetime.now()
    total_hours = completed_hours + remaining_hours
    completion_pct = safe_divide(completed_hours, total_hours) * 100

    rate = average_hours_per_day if average_hours_per_day > 0 else config.FALLBACK_HOURS_PER_DAY
    days_needed = safe_divide(max(0.0, remaining_hours), rate, default=math.inf)
    days_remaining = ceil_days(min(days_needed, config.MAX_PROJECTION_DAYS))

    if days_worked >= 5 and completion_pct > 20:
        confidence = "high"
    elif days_worked < 2 or completion_pct < 10:
        confidence = "low"
    else:
        confidence = "medium"

    actions: List[str] = []
    if average_hours_per_day < 20:
        actions.append("Consider increasing crew size for faster completion")
    if completion_pct < 50 and days_worked > 10:
        actions.append("Review project scope and potential delays")
    if days_remaining > 30:
        actions.append("Consider breaking remaining work into phases")

    return CompletionPrediction(
        predicted_completion_date=add_days(now, days_remaining),
        days_remaining=days_remaining,
        confidence_level=confidence,
        suggested_actions=actions,
    )


def _compare_build_order(a: ProductLabourBreakdown, b: ProductLabourBreakdown) -> float:
    if a.is_heavy and not b.is_heavy:
        return 1
    if b.is_heavy and not a.is_heavy:
        return -1
    complexity = b.hours_per_unit - a.hours_per_unit
    if abs(complexity) > 0.1:
        return complexity
    return b.total_hours - a.total_hours


def optimize_build_order(products: Sequence[ProductLabourBreakdown]) -> List[ProductLabourBreakdown]:
    """
    New build order: light before heavy, complex before simple, and larger
    lines first when complexity is within 0.1 h/unit.
    """
    ordered = sorted(products, key=functools.cmp_to_key(_compare_build_order))
    return _renumber(ordered)
