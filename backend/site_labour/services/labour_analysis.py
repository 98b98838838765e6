"""
Composed labour analysis for a job: metrics, crew recommendation,
bottlenecks, tomorrow's plan, cost position and recent daily trends.
"""
import logging
import time
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from site_labour import config
from site_labour.models.labour_schema import (
    AnalysisMetadata,
    DailyProgressSummary,
    DailyTrends,
    LabourAllocation,
    LabourAnalysis,
    LabourEstimate,
)
from site_labour.services.labour_calculator import (
    DailyInput,
    LabourCalculator,
    ProductInput,
    as_daily_progress,
    as_datetime,
    as_products,
    days_between,
    labour_calculator,
)
from site_labour.services.perf_monitor import timed, tracker
from site_labour.services.progress_updates import summarize_progress
from site_labour.services.safe_math import safe_divide

logger = logging.getLogger("site-labour.analysis")


def order_history(days: List[DailyProgressSummary]) -> List[DailyProgressSummary]:
    """
    Oldest-first copy of a daily history.  Histories where any entry lacks a
    date are returned in the order given.
    """
    if any(d.date is None for d in days):
        return list(days)
    return sorted(days, key=lambda d: d.date)


def summarize_trends(history: List[DailyProgressSummary]) -> DailyTrends:
    """Trends over the most recent week of an oldest-first history."""
    recent = history[-config.TREND_WINDOW_DAYS:]
    if not history:
        return DailyTrends(
            last_7_days=[],
            average_efficiency=config.NO_DATA_EFFICIENCY_PCT,
            average_workers_on_site=float(config.STANDARD_CREW_SIZE),
        )
    return DailyTrends(
        last_7_days=list(reversed(recent)),
        average_efficiency=safe_divide(sum(d.efficiency for d in history), len(history)),
        average_workers_on_site=safe_divide(sum(d.workers_on_site for d in history), len(history)),
    )


@timed
def build_labour_analysis(
    products: Iterable[ProductInput],
    daily_progress: Iterable[DailyInput],
    target_completion_date: Optional[Union[datetime, date]] = None,
    labour_allocation: Optional[LabourAllocation] = None,
    now: Optional[datetime] = None,
    calculator: Optional[LabourCalculator] = None,
) -> LabourAnalysis:
    """
    Full labour analysis for one job.

    Without a target date the job is assumed due ``DEFAULT_TARGET_DAYS``
    from now.  Cost analysis is included only when a labour allocation with
    planned man-hours is supplied.
    """
    started = time.perf_counter()
    calc = calculator or labour_calculator
    products = as_products(products)
    history = order_history(as_daily_progress(daily_progress))

    if now is None:
        now = datetime.now(getattr(target_completion_date, "tzinfo", None))
    if target_completion_date is None:
        target = now + timedelta(days=config.DEFAULT_TARGET_DAYS)
    else:
        target = as_datetime(target_completion_date, like=now)

    metrics = calc.calculate_labour_metrics(products, history, target, now=now)
    team = calc.calculate_required_team_size(
        metrics.hours_remaining, days_between(target, now), metrics.efficiency
    )
    bottlenecks = calc.identify_bottlenecks(products)
    plan = calc.generate_tomorrow_plan(products)

    cost_analysis = None
    if labour_allocation is not None and labour_allocation.total_man_hours > 0:
        estimate = LabourEstimate(
            total_days=labour_allocation.planned_days,
            total_hours=labour_allocation.total_man_hours,
            crew_size=labour_allocation.planned_team_size,
            installation_days=labour_allocation.planned_days,
        )
        cost_analysis = calc.calculate_cost_implications(
            estimate, products, labour_allocation.hourly_rate or calc.hourly_rate
        )

    analysis = LabourAnalysis(
        hours_remaining=metrics.hours_remaining,
        required_team_size=team.recommended,
        projected_completion=metrics.projected_completion,
        efficiency=metrics.efficiency,
        burn_rate=metrics.burn_rate,
        days_ahead=metrics.days_ahead,
        overall_progress=summarize_progress(products),
        team_recommendation=team,
        bottlenecks=bottlenecks[:config.ANALYSIS_TOP_BOTTLENECKS],
        tomorrow_plan=plan,
        alerts=metrics.alerts,
        cost_analysis=cost_analysis,
        daily_trends=summarize_trends(history),
        metadata=AnalysisMetadata(
            calculated_at=now,
            products_analyzed=len(products),
            days_of_data_analyzed=len(history),
        ),
    )

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    tracker.record_analysis_complete(duration_ms)
    logger.info(
        "labour analysis built",
        extra={
            "job_id": products[0].job_id if products else None,
            "duration_ms": duration_ms,
            "alert_count": len(analysis.alerts),
        },
    )
    return analysis
