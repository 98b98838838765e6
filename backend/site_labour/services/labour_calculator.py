"""
labour_calculator.py — Real-time labour & progress engine for site jobs.

Covers:
  - Progress aggregation: remaining hours, planned-vs-actual efficiency, burn rate
  - Projection: completion date from burn rate, crew size to hit a deadline
  - Alerts: behind-schedule, efficiency, burn-rate and deadline warnings
  - Bottleneck detection and next-day work plans
  - Cost implications of current progress against the original estimate

Every operation is a pure computation over caller-owned records: inputs are
never mutated and malformed numbers (negative quantities, zero rates, past
deadlines) are clamped or replaced by defaults instead of raising.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from site_labour import config
from site_labour.models.labour_schema import (
    CostImplications,
    DailyProgressSummary,
    LabourAlert,
    LabourEstimate,
    LabourMetrics,
    ProductProgress,
    TeamRecommendation,
    TomorrowPlan,
)
from site_labour.services.safe_math import add_days, ceil_days, clamp, safe_divide

logger = logging.getLogger("site-labour.calculator")

ProductInput = Union[ProductProgress, Mapping[str, Any]]
DailyInput = Union[DailyProgressSummary, Mapping[str, Any]]

_SECONDS_PER_DAY = 86400.0


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def as_products(products: Optional[Iterable[ProductInput]]) -> List[ProductProgress]:
    """Coerce plain mappings into ProductProgress records; models pass through."""
    return [
        p if isinstance(p, ProductProgress) else ProductProgress.model_validate(p)
        for p in (products or [])
    ]


def _daily_target(product: ProductProgress, days: float) -> int:
    remaining = product.total_quantity - product.completed_units
    if remaining <= 0:
        return 0
    return max(config.MIN_DAILY_TARGET_UNITS, ceil_days(remaining / days))


def as_daily_progress(days: Optional[Iterable[DailyInput]]) -> List[DailyProgressSummary]:
    return [
        d if isinstance(d, DailyProgressSummary) else DailyProgressSummary.model_validate(d)
        for d in (days or [])
    ]


def as_datetime(value: Union[datetime, date], like: Optional[datetime] = None) -> datetime:
    """Promote a date to midnight and align tz-awareness with ``like``."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if like is not None:
        if value.tzinfo is None and like.tzinfo is not None:
            value = value.replace(tzinfo=like.tzinfo)
        elif value.tzinfo is not None and like.tzinfo is None:
            value = value.replace(tzinfo=None)
    return value


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, rounded up (negative when past)."""
    return ceil_days((later - earlier).total_seconds() / _SECONDS_PER_DAY)


def _remaining_units(product: ProductProgress) -> float:
    return max(0.0, product.total_quantity - product.completed_units)


# ---------------------------------------------------------------------------
# LabourCalculator
# ---------------------------------------------------------------------------

class LabourCalculator:
    """
    Labour and progress calculator for construction site jobs.

    Holds only its tuning constants; ``config_overrides`` replaces any of them with
    lower-case keys, e.g. ``LabourCalculator({"hours_per_day": 10})``.
    """

    def __init__(self, config_overrides: Optional[Dict[str, Any]] = None) -> None:
        cfg = config_overrides or {}

        self.hours_per_day: float = float(cfg.get("hours_per_day", config.HOURS_PER_DAY))
        self.standard_crew_size: int = int(cfg.get("standard_crew_size", config.STANDARD_CREW_SIZE))
        self.max_crew_size: int = int(cfg.get("max_crew_size", config.MAX_CREW_SIZE))
        self.target_efficiency_pct: float = float(
            cfg.get("target_efficiency_pct", config.TARGET_EFFICIENCY_PCT)
        )
        self.medium_tier_cost: float = float(
            cfg.get("medium_tier_cost_per_worker", config.MEDIUM_TIER_COST_PER_WORKER)
        )
        self.high_tier_cost: float = float(
            cfg.get("high_tier_cost_per_worker", config.HIGH_TIER_COST_PER_WORKER)
        )
        self.burn_rate_window_days: int = int(
            cfg.get("burn_rate_window_days", config.BURN_RATE_WINDOW_DAYS)
        )
        self.work_days_per_week: int = int(cfg.get("work_days_per_week", config.WORK_DAYS_PER_WEEK))
        self.hourly_rate: float = float(cfg.get("hourly_rate", config.DEFAULT_HOURLY_RATE))

    @property
    def standard_burn_rate(self) -> float:
        """Hours per day delivered by the standard crew."""
        return self.standard_crew_size * self.hours_per_day

    # -----------------------------------------------------------------------
    # 1. Progress aggregation
    # -----------------------------------------------------------------------

    def calculate_remaining_hours(self, products: Iterable[ProductInput]) -> float:
        """
        Sum of ``max(0, total - completed) * hours_per_unit`` across products.
        Never negative, even for negative quantities or hours-per-unit.
        """
        total = 0.0
        for product in as_products(products):
            total += _remaining_units(product) * product.estimated_hours_per_unit
        return max(0.0, total)

    def calculate_efficiency(self, products: Iterable[ProductInput]) -> float:
        """
        Planned hours for the completed units over actual hours, as a percentage.

        Returns 100 until both hours and completed units have been logged.
        The result is bounded to ``[0, 999]``; values above 100 mean the crew
        is beating the estimate.
        """
        planned_hours = 0.0
        actual_hours = 0.0
        completed_units = 0.0

        for product in as_products(products):
            planned_hours += product.completed_units * product.estimated_hours_per_unit
            actual_hours += product.actual_hours_spent
            completed_units += product.completed_units

        if actual_hours == 0 or completed_units == 0:
            return config.NO_DATA_EFFICIENCY_PCT

        efficiency = safe_divide(planned_hours, actual_hours, default=0.0) * 100
        return clamp(efficiency, config.EFFICIENCY_FLOOR_PCT, config.EFFICIENCY_CEILING_PCT)

    def calculate_burn_rate(
        self,
        daily_progress: Iterable[DailyInput],
        window_days: Optional[int] = None,
    ) -> float:
        """
        Average hours worked per day over the most recent ``window_days`` entries.

        ``daily_progress`` must be ordered oldest first; the window is taken
        from the end of the sequence.
        """
        days = as_daily_progress(daily_progress)
        if not days:
            return 0.0

        window = self.burn_rate_window_days if window_days is None else int(window_days)
        recent = days[-window:] if window > 0 else days
        total_hours = sum(day.hours_worked for day in recent)
        return safe_divide(total_hours, len(recent))

    # -----------------------------------------------------------------------
    # 2. Projection
    # -----------------------------------------------------------------------

    def calculate_required_team_size(
        self,
        remaining_hours: float,
        days_available: float,
        current_efficiency: float = config.DEFAULT_TEAM_SIZING_EFFICIENCY_PCT,
    ) -> TeamRecommendation:
        """
        Crew needed to burn ``remaining_hours`` within ``days_available``.

        Hours are inflated by the efficiency shortfall, converted to
        man-days, then spread over the available days.  A deadline today or
        already past counts as one day; a non-positive efficiency falls back
        to the planning target.
        Cost is priced on at most one worker past the crew ceiling.
        """
        if days_available <= 0:
            logger.debug("days_available=%s not positive, planning against 1 day", days_available)
            days_available = 1
        if current_efficiency <= 0:
            current_efficiency = self.target_efficiency_pct

        if remaining_hours > 0:
            effective_hours = safe_divide(remaining_hours, current_efficiency / 100, default=math.inf)
            man_days = safe_divide(effective_hours, self.hours_per_day, default=math.inf)
            crew_needed = safe_divide(man_days, days_available, default=math.inf)
        else:
            crew_needed = 0.0
        # an overflowing workload is costed one worker past the top of the range
        ceiling = max(self.max_crew_size, config.MEDIUM_TIER_MAX_CREW) + 1
        required = min(ceil_days(crew_needed), ceiling) if math.isfinite(crew_needed) else ceiling

        if required <= config.LOW_TIER_MAX_CREW:
            reasoning = "Standard team size suitable for timeline"
            urgency = "low"
            cost_impact = 0.0
        elif required <= config.MEDIUM_TIER_MAX_CREW:
            reasoning = "Larger team needed to meet deadline"
            urgency = "medium"
            cost_impact = (required - self.standard_crew_size) * self.medium_tier_cost
        else:
            reasoning = "Critical: Very large team or overtime required"
            urgency = "high"
            cost_impact = (required - self.standard_crew_size) * self.high_tier_cost

        recommended = int(clamp(required, config.MIN_CREW_SIZE, self.max_crew_size))

        return TeamRecommendation(
            current=self.standard_crew_size,
            recommended=recommended,
            reasoning=reasoning,
            urgency=urgency,
            cost_impact=max(0.0, cost_impact),
        )

    def project_completion_date(
        self,
        remaining_hours: float,
        burn_rate: float,
        work_days_per_week: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> datetime:
        """
        Projected finish: working days at the current burn rate, stretched to
        calendar days by ``7 / work_days_per_week``.

        The stretch is a uniform approximation, not a weekend-aware walk, so
        the date can be off by a day near week boundaries.  A zero burn rate
        is replaced by the standard crew rate (4 × 8 h).
        Projections stop at ``MAX_PROJECTION_DAYS`` calendar days out.
        """
        now = now or datetime.now()
        week = work_days_per_week or self.work_days_per_week
        if week <= 0 or week > 7:
            week = self.work_days_per_week

        if burn_rate <= 0:
            logger.debug("burn rate %s not positive, using standard rate %s h/day",
                         burn_rate, self.standard_burn_rate)
            burn_rate = self.standard_burn_rate

        work_days_needed = safe_divide(max(0.0, remaining_hours), burn_rate, default=math.inf)
        if math.isfinite(work_days_needed):
            work_days_needed = ceil_days(work_days_needed)
        calendar_days = min(work_days_needed * (7 / week), config.MAX_PROJECTION_DAYS)
        return add_days(now, ceil_days(calendar_days))

    # -----------------------------------------------------------------------
    # 3. Metrics & alerts
    # -----------------------------------------------------------------------

    def calculate_labour_metrics(
        self,
        products: Iterable[ProductInput],
        daily_progress: Iterable[DailyInput],
        target_completion_date: Union[datetime, date],
        now: Optional[datetime] = None,
    ) -> LabourMetrics:
        """Full labour snapshot for a job against its target completion date."""
        products = as_products(products)
        if now is None:
            tz = getattr(target_completion_date, "tzinfo", None)
            now = datetime.now(tz)
        target = as_datetime(target_completion_date, like=now)

        remaining_hours = self.calculate_remaining_hours(products)
        efficiency = self.calculate_efficiency(products)
        burn_rate = self.calculate_burn_rate(daily_progress)

        days_until_deadline = days_between(target, now)
        projected_completion = self.project_completion_date(remaining_hours, burn_rate, now=now)
        team = self.calculate_required_team_size(remaining_hours, days_until_deadline, efficiency)
        days_ahead = days_between(target, projected_completion)

        alerts = self.generate_alerts(
            remaining_hours, efficiency, days_until_deadline, burn_rate, team
        )

        return LabourMetrics(
            hours_remaining=remaining_hours,
            required_team_size=team.recommended,
            projected_completion=projected_completion,
            efficiency=efficiency,
            burn_rate=burn_rate,
            days_ahead=days_ahead,
            alerts=alerts,
        )

    def generate_alerts(
        self,
        remaining_hours: float,
        efficiency: float,
        days_until_deadline: int,
        burn_rate: float,
        team_recommendation: TeamRecommendation,
    ) -> List[LabourAlert]:
        """
        Alerts in a fixed order: schedule, efficiency, burn rate, deadline.
        Every matching rule fires.
        """
        alerts: List[LabourAlert] = []

        if team_recommendation.urgency == "high":
            alerts.append(LabourAlert(
                type="error",
                message="Critical: Project significantly behind schedule",
                action=f"Increase team to {team_recommendation.recommended} workers immediately",
                priority="critical",
            ))
        elif team_recommendation.urgency == "medium":
            alerts.append(LabourAlert(
                type="warning",
                message="Project behind schedule",
                action=f"Consider increasing team to {team_recommendation.recommended} workers",
                priority="high",
            ))

        if efficiency < config.LOW_EFFICIENCY_ALERT_PCT:
            alerts.append(LabourAlert(
                type="warning",
                message=f"Efficiency at {efficiency:.1f}% - below target",
                action="Review work processes and identify bottlenecks",
                priority="medium",
            ))
        elif efficiency > config.HIGH_EFFICIENCY_ALERT_PCT:
            alerts.append(LabourAlert(
                type="info",
                message=f"Excellent efficiency at {efficiency:.1f}%",
                priority="low",
            ))

        if burn_rate < config.LOW_BURN_RATE_ALERT_HOURS:
            alerts.append(LabourAlert(
                type="warning",
                message="Low daily progress rate",
                action="Check team attendance and work allocation",
                priority="medium",
            ))

        if (
            days_until_deadline <= config.DEADLINE_ALERT_DAYS
            and remaining_hours > config.DEADLINE_ALERT_MIN_HOURS
        ):
            alerts.append(LabourAlert(
                type="error",
                message="Deadline approaching with significant work remaining",
                action="Consider overtime or additional resources",
                priority="critical",
            ))

        return alerts

    # -----------------------------------------------------------------------
    # 4. Daily planning
    # -----------------------------------------------------------------------

    def calculate_daily_targets(
        self,
        products: Iterable[ProductInput],
        days_remaining: float,
        current_team_size: Optional[int] = None,
    ) -> Dict[str, int]:
        """
        Units per day per product type needed to finish in ``days_remaining``.
        Lines sharing a type add up; a record listed twice counts once.
        """
        days = days_remaining if days_remaining > 0 else 1
        targets: Dict[str, int] = {}
        seen = set()
        for product in as_products(products):
            if id(product) in seen:
                continue
            seen.add(id(product))
            daily = _daily_target(product, days)
            if daily:
                targets[product.product_type] = targets.get(product.product_type, 0) + daily
        return targets

    def identify_bottlenecks(self, products: Iterable[ProductInput]) -> List[ProductProgress]:
        """
        Products under half complete whose hours are running over estimate,
        largest remaining workload first.
        """
        bottlenecks: List[ProductProgress] = []
        for product in as_products(products):
            completion_rate = safe_divide(product.completed_units, product.total_quantity, default=1.0)
            if product.estimated_hours_per_unit > 0:
                ratio = safe_divide(
                    product.completed_units * product.estimated_hours_per_unit,
                    max(config.BOTTLENECK_MIN_ACTUAL_HOURS, product.actual_hours_spent),
                    default=1.0,
                )
            else:
                ratio = 1.0

            if (
                completion_rate < config.BOTTLENECK_COMPLETION_RATE
                and ratio < config.BOTTLENECK_EFFICIENCY_RATIO
            ):
                bottlenecks.append(product)

        bottlenecks.sort(
            key=lambda p: (p.total_quantity - p.completed_units) * p.estimated_hours_per_unit,
            reverse=True,
        )
        return bottlenecks

    def generate_tomorrow_plan(
        self,
        products: Iterable[ProductInput],
        team_size: Optional[int] = None,
    ) -> TomorrowPlan:
        """
        Next-day plan: top bottlenecks, then in-progress lines, then one
        line not yet started, with one-day unit targets for each.
        """
        products = as_products(products)
        team_size = self.standard_crew_size if team_size is None else team_size

        bottlenecks = self.identify_bottlenecks(products)
        in_progress = [
            p for p in products
            if p.status == "in_progress" and not any(p is b for b in bottlenecks)
        ]
        not_started = [p for p in products if p.status == "not_started"]

        priority = (
            bottlenecks[:config.PLAN_MAX_BOTTLENECKS]
            + in_progress[:config.PLAN_MAX_IN_PROGRESS]
            + not_started[:config.PLAN_MAX_NOT_STARTED]
        )

        targets = self.calculate_daily_targets(priority, 1, team_size)
        estimated_hours = sum(
            (_daily_target(p, 1) or config.MIN_DAILY_TARGET_UNITS) * p.estimated_hours_per_unit
            for p in priority
        )

        notes: List[str] = []
        if bottlenecks:
            notes.append(f"Focus on {bottlenecks[0].product_name} - behind schedule")
        if estimated_hours > team_size * self.hours_per_day:
            notes.append("Ambitious target - consider overtime or additional crew")

        return TomorrowPlan(
            priority=priority,
            targets=targets,
            estimated_hours=estimated_hours,
            notes=notes,
        )

    # -----------------------------------------------------------------------
    # 5. Cost implications
    # -----------------------------------------------------------------------

    def calculate_cost_implications(
        self,
        original_estimate: Union[LabourEstimate, Mapping[str, Any]],
        current_progress: Iterable[ProductInput],
        hourly_rate: Optional[float] = None,
    ) -> CostImplications:
        """Original labour cost against actual-plus-remaining hours at ``hourly_rate``."""
        if not isinstance(original_estimate, LabourEstimate):
            original_estimate = LabourEstimate.model_validate(original_estimate)
        rate = self.hourly_rate if hourly_rate is None else float(hourly_rate)
        products = as_products(current_progress)

        original_cost = original_estimate.total_hours * rate
        actual_hours = sum(p.actual_hours_spent for p in products)
        projected_total_hours = actual_hours + self.calculate_remaining_hours(products)
        projected_cost = projected_total_hours * rate
        variance = projected_cost - original_cost

        if original_cost == 0:
            logger.debug("original cost is zero, variance percentage reported as 0")
        variance_pct = safe_divide(variance, original_cost) * 100

        return CostImplications(
            original_cost=original_cost,
            projected_cost=projected_cost,
            variance=variance,
            variance_percentage=variance_pct,
        )


# Shared default instance; the calculator carries no mutable state.
labour_calculator = LabourCalculator()

calculate_remaining_hours = labour_calculator.calculate_remaining_hours
calculate_efficiency = labour_calculator.calculate_efficiency
calculate_burn_rate = labour_calculator.calculate_burn_rate
calculate_required_team_size = labour_calculator.calculate_required_team_size
project_completion_date = labour_calculator.project_completion_date
calculate_labour_metrics = labour_calculator.calculate_labour_metrics
calculate_daily_targets = labour_calculator.calculate_daily_targets
identify_bottlenecks = labour_calculator.identify_bottlenecks
generate_tomorrow_plan = labour_calculator.generate_tomorrow_plan
calculate_cost_implications = labour_calculator.calculate_cost_implications
