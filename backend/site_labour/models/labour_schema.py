"""
Typed records for labour tracking.

Progress records (ProductProgress) keep the snake_case column names of the
product_progress table.  Everything the dashboards consume (daily summaries,
metrics, alerts, plans, quote estimates) serialises with camelCase aliases,
and accepts either spelling on input.
"""
import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

ProductStatus = Literal["not_started", "in_progress", "completed", "on_hold", "blocked"]
AlertType = Literal["info", "warning", "error"]
AlertPriority = Literal["low", "medium", "high", "critical"]
Urgency = Literal["low", "medium", "high"]
ConfidenceLevel = Literal["high", "medium", "low"]
CrewMode = Literal["van", "foot", "mixed"]
SyncOperation = Literal["product_update", "bulk_update"]

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class CamelModel(BaseModel):
    model_config = _CAMEL


# ── Progress inputs ──────────────────────────────────────────────────────────

class ProductProgress(BaseModel):
    """One tracked product line within a job."""
    id: str = ""
    job_id: str = ""
    product_type: str = ""
    product_name: str = ""
    total_quantity: float = 0
    completed_units: float = 0
    in_progress_units: float = 0
    status: ProductStatus = "not_started"
    estimated_hours_per_unit: float = 0.0
    actual_hours_spent: float = 0.0
    last_updated: Optional[dt.datetime] = None
    notes: Optional[str] = None

    model_config = {"coerce_numbers_to_str": True}


class DailyProgressSummary(CamelModel):
    """One day of recorded site activity. Sequences are ordered oldest first."""
    date: Optional[dt.date] = None
    units_completed: float = 0
    hours_worked: float = 0.0
    workers_on_site: float = 0
    efficiency: float = 100.0
    cumulative_progress: float = 0.0
    target_progress: float = 0.0
    variance: float = 0.0


# ── Calculator outputs ───────────────────────────────────────────────────────

class LabourAlert(CamelModel):
    type: AlertType
    message: str
    action: Optional[str] = None
    priority: AlertPriority


class TeamRecommendation(CamelModel):
    current: int
    recommended: int
    reasoning: str
    urgency: Urgency
    cost_impact: float = 0.0


class LabourMetrics(CamelModel):
    hours_remaining: float
    required_team_size: int
    projected_completion: dt.datetime
    efficiency: float
    burn_rate: float
    days_ahead: int
    alerts: List[LabourAlert] = Field(default_factory=list)


class TomorrowPlan(CamelModel):
    priority: List[ProductProgress] = Field(default_factory=list)
    targets: Dict[str, int] = Field(default_factory=dict)
    estimated_hours: float = 0.0
    notes: List[str] = Field(default_factory=list)


class CostImplications(CamelModel):
    original_cost: float
    projected_cost: float
    variance: float
    variance_percentage: float


# ── Quote → job labour ───────────────────────────────────────────────────────

class ProductLabourBreakdown(CamelModel):
    product_code: str
    description: str = ""
    quantity: float = 0
    hours_per_unit: float = 0.0
    total_hours: float = 0.0
    is_heavy: bool = False
    build_priority: int = 0

    model_config = {**_CAMEL, "coerce_numbers_to_str": True}


class LabourEstimate(CamelModel):
    total_days: float = 0.0
    total_hours: float = 0.0
    crew_size: int = 0
    installation_days: float = 0.0
    uplift_days: float = 0.0
    products: List[ProductLabourBreakdown] = Field(default_factory=list)


class QuotedProduct(CamelModel):
    """A calculated quote line as produced by the quoting tool."""
    product_code: str
    description: Optional[str] = None
    raw_description: str = ""
    clean_description: str = ""
    quantity: float = 0
    time_per_unit: float = 0.0
    total_time: float = 0.0
    is_heavy: bool = False
    source: Optional[str] = None
    line_number: Optional[int] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None

    model_config = {**_CAMEL, "coerce_numbers_to_str": True}


class QuoteCrewSummary(CamelModel):
    total_project_days: float = 0.0
    crew_size: int = 0


class QuoteLabourSummary(CamelModel):
    buffered_hours: float = 0.0


class QuoteCalculationResults(CamelModel):
    crew: QuoteCrewSummary = Field(default_factory=QuoteCrewSummary)
    labour: QuoteLabourSummary = Field(default_factory=QuoteLabourSummary)


class QuoteDetails(CamelModel):
    client: str = ""
    project: str = ""
    delivery_address: str = ""
    custom_extended_uplift_days: Optional[float] = None


class DailyCrewAllocation(CamelModel):
    work_date: str
    van_crews: int
    foot_crews: int
    supervisors: int
    hours_allocated: float
    crew_mode: CrewMode
    notes: Optional[str] = None


class EstimateValidation(CamelModel):
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class CompletionPrediction(CamelModel):
    predicted_completion_date: dt.datetime
    days_remaining: int
    confidence_level: ConfidenceLevel
    suggested_actions: List[str] = Field(default_factory=list)


# ── Progress updates & offline sync ──────────────────────────────────────────

class QuickUpdateRequest(BaseModel):
    completed: Optional[float] = None
    status: Optional[ProductStatus] = None
    hours_spent: Optional[float] = None
    notes: Optional[str] = None


class SyncUpdate(BaseModel):
    """A change queued on a device while offline."""
    id: str
    operation: SyncOperation = "product_update"
    record_id: Optional[str] = None
    job_id: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: dt.datetime
    retry_count: int = 0

    model_config = {"coerce_numbers_to_str": True}


class SyncResult(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    applied_timestamp: Optional[dt.datetime] = None


class SyncIssue(BaseModel):
    id: str
    reason: str


class SyncBatchResult(BaseModel):
    synced: int = 0
    failed: int = 0
    conflicts: List[SyncIssue] = Field(default_factory=list)
    errors: List[SyncIssue] = Field(default_factory=list)
    records: List[ProductProgress] = Field(default_factory=list)


class ProgressSummary(BaseModel):
    completed: float = 0
    total: float = 0
    percentage: float = 0.0


# ── Composed analysis ────────────────────────────────────────────────────────

class LabourAllocation(CamelModel):
    """Planned labour for a job, as agreed when the quote was converted."""
    total_man_hours: float = 0.0
    planned_team_size: int = 0
    planned_days: float = 0.0
    hourly_rate: Optional[float] = None


class DailyTrends(CamelModel):
    last_7_days: List[DailyProgressSummary] = Field(default_factory=list)
    average_efficiency: float = 100.0
    average_workers_on_site: float = 0.0


class AnalysisMetadata(CamelModel):
    calculated_at: dt.datetime
    products_analyzed: int
    days_of_data_analyzed: int


class LabourAnalysis(CamelModel):
    hours_remaining: float
    required_team_size: int
    projected_completion: dt.datetime
    efficiency: float
    burn_rate: float
    days_ahead: int
    overall_progress: ProgressSummary
    team_recommendation: TeamRecommendation
    bottlenecks: List[ProductProgress] = Field(default_factory=list)
    tomorrow_plan: TomorrowPlan
    alerts: List[LabourAlert] = Field(default_factory=list)
    cost_analysis: Optional[CostImplications] = None
    daily_trends: DailyTrends
    metadata: AnalysisMetadata
