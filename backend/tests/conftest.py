"""
conftest.py — Shared pytest fixtures for the Site Labour Tracker test suite.

No database or external service fixtures are defined here.  The calculator,
quote conversion and sync helpers are pure computations over in-memory
records; route tests drive the FastAPI app through ``TestClient``.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``site_labour.*`` imports resolve correctly regardless of where pytest is
    invoked.
"""

import sys
import os
from datetime import date, datetime, timedelta, timezone

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any site_labour imports.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# LabourCalculator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def labour_calculator():
    """
    LabourCalculator with all defaults (no overrides).

    Defaults:
      8 h/day, crew of 4 (cap 12), 85% planning efficiency,
      500 / 800 per extra worker, 7-day burn window, 45 per hour.
    """
    from site_labour.services.labour_calculator import LabourCalculator
    return LabourCalculator()


@pytest.fixture(scope="session")
def long_day_calculator():
    """LabourCalculator on 10-hour days with a crew of 6, for override checks."""
    from site_labour.services.labour_calculator import LabourCalculator
    return LabourCalculator({"hours_per_day": 10, "standard_crew_size": 6})


@pytest.fixture
def now():
    """Fixed clock: Monday 2 March 2026, 09:00 (naive)."""
    return datetime(2026, 3, 2, 9, 0)


# ---------------------------------------------------------------------------
# Shared sample job data
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_products():
    """
    Three product lines on one job:

      FLX_6P  10 units, 5 done, 1.5 h/unit, 8.0 h spent  → 7.5 h left
      FLX_4P   8 units, 8 done, 1.2 h/unit, 10.0 h spent → 0 h left
      CHAIR   20 units, 0 done, 0.3 h/unit, nothing spent → 6.0 h left

    Remaining = 13.5 h.  Planned for completed units = 7.5 + 9.6 = 17.1 h
    against 18.0 h actual → efficiency 95%.
    """
    from site_labour.models.labour_schema import ProductProgress
    return [
        ProductProgress(
            id="p-1", job_id="job-42", product_type="FLX_6P",
            product_name="Flexi 6-person workstation",
            total_quantity=10, completed_units=5, status="in_progress",
            estimated_hours_per_unit=1.5, actual_hours_spent=8.0,
        ),
        ProductProgress(
            id="p-2", job_id="job-42", product_type="FLX_4P",
            product_name="Flexi 4-person workstation",
            total_quantity=8, completed_units=8, status="completed",
            estimated_hours_per_unit=1.2, actual_hours_spent=10.0,
        ),
        ProductProgress(
            id="p-3", job_id="job-42", product_type="CHAIR",
            product_name="Task chair",
            total_quantity=20, completed_units=0, status="not_started",
            estimated_hours_per_unit=0.3, actual_hours_spent=0.0,
        ),
    ]


@pytest.fixture
def sample_daily_progress():
    """Three dated working days, oldest first: 8 h, 6 h, 7 h (burn rate 7)."""
    from site_labour.models.labour_schema import DailyProgressSummary
    start = date(2026, 2, 25)
    return [
        DailyProgressSummary(
            date=start + timedelta(days=i), hours_worked=hours,
            workers_on_site=workers, efficiency=eff, units_completed=units,
        )
        for i, (hours, workers, eff, units) in enumerate([
            (8.0, 2, 90.0, 4),
            (6.0, 2, 100.0, 5),
            (7.0, 3, 110.0, 4),
        ])
    ]


@pytest.fixture
def stamped_records():
    """Two records last written on the server at 10:00 UTC and 14:00 UTC."""
    from site_labour.models.labour_schema import ProductProgress
    return [
        ProductProgress(
            id="p-1", job_id="job-42", product_type="FLX_6P", product_name="Flexi 6",
            total_quantity=10, completed_units=5, status="in_progress",
            estimated_hours_per_unit=1.5,
            last_updated=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
        ),
        ProductProgress(
            id="p-2", job_id="job-42", product_type="CHAIR", product_name="Task chair",
            total_quantity=20, completed_units=0, status="not_started",
            estimated_hours_per_unit=0.3,
            last_updated=datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc),
        ),
    ]


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def client():
    """TestClient over the full application (middleware and routers)."""
    from fastapi.testclient import TestClient
    from site_labour.main import app
    return TestClient(app)
