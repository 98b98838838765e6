"""
Site progress routes.

P1: POST /api/v1/progress/quick-update — apply a tablet update to one product
    and return the labour impact on the job.
P2: POST /api/v1/progress/sync-batch   — merge changes queued offline
    (last-write-wins on last_updated).
"""
import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from site_labour.models.labour_schema import (
    CamelModel,
    ProductProgress,
    ProgressSummary,
    QuickUpdateRequest,
    SyncBatchResult,
    SyncUpdate,
)
from site_labour.services.labour_calculator import labour_calculator
from site_labour.services.progress_updates import (
    apply_quick_update,
    process_sync_batch,
    summarize_progress,
)

router = APIRouter(prefix="/api/v1/progress", tags=["Site Progress"])
logger = logging.getLogger("site-labour.progress-routes")


class QuickUpdatePayload(BaseModel):
    product_id: str
    update: QuickUpdateRequest
    products: List[ProductProgress] = Field(default_factory=list)

    model_config = {"coerce_numbers_to_str": True}


class LabourImpact(CamelModel):
    remaining_hours: float
    efficiency: float
    projected_completion: dt.datetime
    overall_progress: ProgressSummary


class QuickUpdateResponse(BaseModel):
    success: bool = True
    product: ProductProgress
    labour_impact: LabourImpact


class SyncBatchRequest(BaseModel):
    records: List[ProductProgress] = Field(default_factory=list)
    updates: List[SyncUpdate] = Field(default_factory=list)
    device_id: Optional[str] = None


@router.post("/quick-update", response_model=QuickUpdateResponse)
async def quick_update(req: QuickUpdatePayload):
    """
    Apply a quick update to ``product_id`` within the posted job products.
    The labour impact is recalculated over the updated job.
    """
    current = next((p for p in req.products if p.id == req.product_id), None)
    if current is None:
        raise HTTPException(status_code=404, detail="Product not found")

    updated = apply_quick_update(current, req.update)
    job_products = [updated if p is current else p for p in req.products]

    remaining = labour_calculator.calculate_remaining_hours(job_products)
    impact = LabourImpact(
        remaining_hours=remaining,
        efficiency=labour_calculator.calculate_efficiency(job_products),
        projected_completion=labour_calculator.project_completion_date(remaining, 0),
        overall_progress=summarize_progress(job_products),
    )
    logger.info(
        f"Product {updated.id} updated: {updated.completed_units}/{updated.total_quantity} "
        f"({updated.status})",
        extra={"job_id": updated.job_id},
    )
    return QuickUpdateResponse(product=updated, labour_impact=impact)


@router.post("/sync-batch", response_model=SyncBatchResult)
async def sync_batch(req: SyncBatchRequest):
    if not req.updates:
        raise HTTPException(status_code=400, detail="Updates array is required")
    return process_sync_batch(req.records, req.updates)
