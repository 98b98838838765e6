"""
Labour tracking configuration — single source of truth for crew baselines,
cost tiers, alert thresholds and scheduling defaults.

Import from here in the calculator, the quote conversion helpers and the API
routes rather than hardcoding values.  Each tunable can be overridden per
deployment through the environment variable named next to it.
"""
from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, float(default)))


# ── Crew & working day ────────────────────────────────────────────────────────

# Standard productive hours per worker per day
HOURS_PER_DAY: float = _env_float("LABOUR_HOURS_PER_DAY", 8.0)

# Organisational baseline crew; reported as the "current" team everywhere
STANDARD_CREW_SIZE: int = _env_int("LABOUR_STANDARD_CREW_SIZE", 4)

# Hard operational ceiling on any crew recommendation
MAX_CREW_SIZE: int = _env_int("LABOUR_MAX_CREW_SIZE", 12)
MIN_CREW_SIZE: int = 1

WORK_DAYS_PER_WEEK: int = 5


# ── Efficiency ───────────────────────────────────────────────────────────────

# Planning efficiency used when a caller supplies a non-positive efficiency
TARGET_EFFICIENCY_PCT: float = _env_float("LABOUR_TARGET_EFFICIENCY_PCT", 85.0)

# Team sizing without an efficiency figure assumes estimates are met exactly
DEFAULT_TEAM_SIZING_EFFICIENCY_PCT: float = 100.0

# Efficiency reported before any work is logged
NO_DATA_EFFICIENCY_PCT: float = 100.0

EFFICIENCY_FLOOR_PCT: float = 0.0
EFFICIENCY_CEILING_PCT: float = 999.0


# ── Crew cost tiers (currency per extra worker above the standard crew) ──────

LOW_TIER_MAX_CREW: int = 4
MEDIUM_TIER_MAX_CREW: int = 8
MEDIUM_TIER_COST_PER_WORKER: float = _env_float("LABOUR_MEDIUM_TIER_COST", 500.0)
HIGH_TIER_COST_PER_WORKER: float = _env_float("LABOUR_HIGH_TIER_COST", 800.0)


# ── Burn rate & cost ─────────────────────────────────────────────────────────

BURN_RATE_WINDOW_DAYS: int = _env_int("LABOUR_BURN_RATE_WINDOW", 7)
DEFAULT_HOURLY_RATE: float = _env_float("LABOUR_HOURLY_RATE", 45.0)


# ── Alert thresholds ─────────────────────────────────────────────────────────

LOW_EFFICIENCY_ALERT_PCT: float = 70.0
HIGH_EFFICIENCY_ALERT_PCT: float = 120.0
LOW_BURN_RATE_ALERT_HOURS: float = 20.0
DEADLINE_ALERT_DAYS: int = 5
DEADLINE_ALERT_MIN_HOURS: float = 40.0


# ── Bottlenecks & daily planning ─────────────────────────────────────────────

BOTTLENECK_COMPLETION_RATE: float = 0.5
BOTTLENECK_EFFICIENCY_RATIO: float = 0.8
BOTTLENECK_MIN_ACTUAL_HOURS: float = 0.1

PLAN_MAX_BOTTLENECKS: int = 2
PLAN_MAX_IN_PROGRESS: int = 2
PLAN_MAX_NOT_STARTED: int = 1
MIN_DAILY_TARGET_UNITS: int = 1


# ── Quote conversion & completion prediction ────────────────────────────────

MAX_VAN_CREWS: int = 2
MAX_FOOT_CREWS: int = 6
MAX_SUPERVISORS: int = 2
VAN_CREW_SHARE: float = 0.4
SUPERVISOR_CREW_THRESHOLD: int = 4
UPLIFT_MAX_CREW: int = 4

# 3 crew × 8 h, used when no daily average has been recorded yet
FALLBACK_HOURS_PER_DAY: float = 24.0

# Projected and predicted finish dates never land further out than this
MAX_PROJECTION_DAYS: int = _env_int("LABOUR_MAX_PROJECTION_DAYS", 3650)

ESTIMATE_MAX_HOURS: float = 2000.0
ESTIMATE_MAX_CREW: int = 8
ESTIMATE_MAX_DAYS: float = 60.0
ESTIMATE_HOURS_TOLERANCE: float = 1.0


# ── Analysis report ──────────────────────────────────────────────────────────

DEFAULT_TARGET_DAYS: int = _env_int("DEFAULT_TARGET_DAYS", 30)
ANALYSIS_TOP_BOTTLENECKS: int = 3
TREND_WINDOW_DAYS: int = 7
