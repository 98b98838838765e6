"""
Site progress updates and offline sync resolution.

Quick updates from the site tablet clamp the completed count to the product
quantity and re-derive the product status.  Changes queued while a device
was offline are merged with last-write-wins on ``last_updated``: a queued
change older than the stored record is reported as a conflict and dropped.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from site_labour.models.labour_schema import (
    ProductProgress,
    ProgressSummary,
    QuickUpdateRequest,
    SyncBatchResult,
    SyncIssue,
    SyncResult,
    SyncUpdate,
)
from site_labour.services.labour_calculator import ProductInput, as_products
from site_labour.services.safe_math import safe_divide

logger = logging.getLogger("site-labour.progress")

_UTC = timezone.utc


def derive_status(completed_units: float, total_quantity: float) -> str:
    """Status implied by a completed count."""
    if completed_units <= 0:
        return "not_started"
    if completed_units >= total_quantity:
        return "completed"
    return "in_progress"


def apply_quick_update(
    product: ProductProgress,
    update: QuickUpdateRequest,
    now: Optional[datetime] = None,
) -> ProductProgress:
    """Return a copy of ``product`` with ``update`` applied."""
    changes: Dict[str, object] = {"last_updated": now or datetime.now(_UTC)}

    if update.completed is not None:
        completed = max(0.0, min(update.completed, product.total_quantity))
        changes["completed_units"] = completed
        changes["status"] = derive_status(completed, product.total_quantity)

    if update.status is not None:
        changes["status"] = update.status

    if update.hours_spent is not None:
        changes["actual_hours_spent"] = max(0.0, update.hours_spent)

    if update.notes is not None:
        changes["notes"] = update.notes

    return product.model_copy(update=changes)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=_UTC)
    return value


def resolve_sync_update(
    current_last_updated: Optional[datetime],
    update: SyncUpdate,
) -> SyncResult:
    """
    Last-write-wins check for one queued change.

    The change loses only when the stored record is strictly newer; a record
    that has never been stamped always accepts it.
    """
    if current_last_updated is not None and _as_utc(current_last_updated) > _as_utc(update.timestamp):
        return SyncResult(
            accepted=False,
            reason="Conflict: Record was updated more recently on server",
        )
    return SyncResult(accepted=True, applied_timestamp=update.timestamp)


def _apply_sync_data(record: ProductProgress, update: SyncUpdate, data: Dict[str, object]) -> ProductProgress:
    merged = {**record.model_dump(), **data, "last_updated": update.timestamp}
    return ProductProgress.model_validate(merged)


def process_sync_batch(
    records: Iterable[ProductInput],
    updates: Iterable[SyncUpdate],
) -> SyncBatchResult:
    """
    Apply a device's queued changes, in order, to the current product records.

    ``product_update`` changes one record (``record_id``) after the
    last-write-wins check.  ``bulk_update`` applies ``data["updates"]`` to
    every id in ``data["affected_products"]``.  Records are returned in their
    original order with all accepted changes applied.
    """
    state: Dict[str, ProductProgress] = {}
    order: List[str] = []
    for record in as_products(records):
        if record.id not in state:
            order.append(record.id)
        state[record.id] = record

    result = SyncBatchResult()

    for update in updates:
        try:
            if update.operation == "product_update":
                if not update.record_id:
                    raise ValueError("Product update requires record_id")
                current = state.get(update.record_id)
                if current is None:
                    raise ValueError("Record not found")
                decision = resolve_sync_update(current.last_updated, update)
                if not decision.accepted:
                    result.conflicts.append(SyncIssue(id=update.id, reason=decision.reason or ""))
                    continue
                state[current.id] = _apply_sync_data(current, update, update.data)
            else:
                bulk_changes = update.data.get("updates") or {}
                affected = update.data.get("affected_products") or []
                if not isinstance(bulk_changes, dict) or not isinstance(affected, list):
                    raise ValueError("Bulk update requires updates and affected_products")
                for product_id in affected:
                    current = state.get(str(product_id))
                    if current is not None:
                        state[current.id] = _apply_sync_data(current, update, bulk_changes)
            result.synced += 1
        except (ValueError, ValidationError) as e:
            result.failed += 1
            result.errors.append(SyncIssue(id=update.id, reason=str(e)))
            logger.warning("sync update %s failed: %s", update.id, e)

    result.records = [state[record_id] for record_id in order]
    logger.info(
        "sync batch processed",
        extra={"synced": result.synced, "failed": result.failed, "conflicts": len(result.conflicts)},
    )
    return result


def summarize_progress(products: Iterable[ProductInput]) -> ProgressSummary:
    """Completed vs total units across a job."""
    products = as_products(products)
    completed = sum(p.completed_units for p in products)
    total = sum(p.total_quantity for p in products)
    return ProgressSummary(
        completed=completed,
        total=total,
        percentage=safe_divide(completed, total) * 100 if total > 0 else 0.0,
    )
