from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from cafeops import repositories
from cafeops.models import ActivityLogEntry, InventoryRecord
from cafeops.services import ValidationError, utc_timestamp
from cafeops.services import activity_log
from cafeops.stock_status import StockStatus
from cafeops.utils.values import as_text, split_names


DELETE_REASONS = ("Spoilage", "Theft", "Obsolete", "Other")


@dataclass
class InventoryStats:
    total_items: int
    in_stock: int
    low_stock: int
    total_value: Decimal


def new_product_id() -> str:
    return f"P{int(time.time() * 1000)}"


def list_inventory() -> list[InventoryRecord]:
    return repositories.inventory.all()


def get_item(product_id: str) -> InventoryRecord | None:
    return repositories.inventory.get(product_id)


def search_inventory(query: str) -> list[InventoryRecord]:
    query = (query or "").strip()
    if not query:
        return []
    return repositories.inventory.search_by_name(query)


def filter_inventory(
    records: Iterable[InventoryRecord],
    *,
    search: str = "",
    category: str = "",
    status: str = "",
) -> list[InventoryRecord]:
    needle = (search or "").strip().lower()
    results = []
    for record in records:
        if needle and needle not in record.product_name.lower():
            continue
        if category and record.category != category:
            continue
        if status and record.status != status:
            continue
        results.append(record)
    return results


def filter_choices(records: Iterable[InventoryRecord]) -> tuple[list[str], list[str]]:
    categories: list[str] = []
    statuses: list[str] = []
    for record in records:
        if record.category and record.category not in categories:
            categories.append(record.category)
        if record.status not in statuses:
            statuses.append(record.status)
    return categories, statuses


def inventory_stats(records: Iterable[InventoryRecord]) -> InventoryStats:
    records = list(records)
    return InventoryStats(
        total_items=len(records),
        in_stock=sum(1 for record in records if record.status in StockStatus.IN_STOCK_STATES),
        low_stock=sum(1 for record in records if record.status == StockStatus.LOW),
        total_value=sum((record.stock_value for record in records), Decimal("0.00")),
    )


def low_stock_alerts(records: Iterable[InventoryRecord]) -> list[InventoryRecord]:
    return [
        record
        for record in records
        if record.current_stock <= record.min_level
        and record.status in StockStatus.REORDER_STATES
    ]


def _ensure_known_vendors(names: list[str], already_listed: Iterable[str] = ()) -> None:
    """Reject vendor names missing from the Vendors sheet.

    Names in ``already_listed`` were on the record before this write and are
    not re-checked, so older rows that list a retired vendor stay editable.
    """
    if not names:
        raise ValidationError("List at least one vendor for the item.")
    listed = set(already_listed)
    added = [name for name in names if name not in listed]
    if not added:
        return
    known = {vendor.name for vendor in repositories.vendors.all()}
    unknown = [name for name in added if name not in known]
    if unknown:
        raise ValidationError(
            f"Unknown vendor(s): {', '.join(unknown)}. Add them on the Vendors page first."
        )


def _normalize_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    normalized = dict(updates)
    if "vendors" in normalized:
        names = split_names(normalized["vendors"])
        normalized["vendors"] = ", ".join(names)
        normalized.setdefault("Primary_Vendor", names[0] if names else "")
    return normalized


def create_item(record: InventoryRecord, *, actor: str) -> InventoryRecord:
    _ensure_known_vendors(record.vendors)
    if not record.product_id:
        record.product_id = new_product_id()
    record.primary_vendor = record.vendors[0]
    record.last_updated = utc_timestamp()

    repositories.inventory.create(record)
    activity_log.record_activity(
        ActivityLogEntry(
            product_id=record.product_id,
            product_name=record.product_name,
            action_type=ActivityLogEntry.ACTION_CREATE,
            details=f"Item created with stock of {record.current_stock}",
            staff_member=actor,
        )
    )
    return record


def update_item(
    original: InventoryRecord,
    updates: Mapping[str, Any],
    *,
    actor: str,
    reason: str | None = None,
    notes: str | None = None,
) -> None:
    """Patch an inventory record and write the matching activity-log entry.

    ``updates`` is keyed by sheet column. A ``Current_Stock`` change that
    carries a ``reason`` is logged as a stock adjustment; anything else is
    logged as a list of changed fields. ``Last_Updated`` is stamped on the
    write but never reported as a change.
    """

    updates = _normalize_updates(updates)
    if "vendors" in updates:
        _ensure_known_vendors(split_names(updates["vendors"]), original.vendors)

    if updates:
        payload = dict(updates)
        payload.setdefault("Last_Updated", utc_timestamp())
        repositories.inventory.update(original.product_id, payload)

    activity_log.record_inventory_update(
        original,
        updates,
        actor=actor,
        reason=reason,
        notes=notes,
    )


def adjust_stock(
    record: InventoryRecord,
    *,
    adjustment: int,
    reason: str,
    notes: str,
    actor: str,
) -> int:
    if reason not in activity_log.ADJUSTMENT_REASONS:
        raise ValidationError("Choose a reason for the adjustment.")
    if adjustment == 0:
        raise ValidationError("Quantity must be positive.")

    new_stock = record.current_stock + adjustment
    if new_stock < 0:
        raise ValidationError(
            f"Cannot record usage of {-adjustment}; only {record.current_stock} on hand."
        )

    update_item(
        record,
        {"Current_Stock": new_stock},
        actor=actor,
        reason=reason,
        notes=notes,
    )
    return new_stock


def delete_item(record: InventoryRecord, *, reason: str, notes: str, actor: str) -> None:
    if reason not in DELETE_REASONS:
        raise ValidationError("Select a reason for deleting the item.")

    # Log first so the deletion is on record even if the delete call fails.
    activity_log.record_activity(
        ActivityLogEntry(
            product_id=record.product_id,
            product_name=record.product_name,
            action_type=ActivityLogEntry.ACTION_DELETE,
            reason=reason,
            details="Item deleted from inventory",
            notes=as_text(notes),
            staff_member=actor,
        )
    )
    repositories.inventory.delete(record.product_id)


def export_rows() -> list[dict[str, Any]]:
    rows = []
    for row in repositories.inventory.raw_rows():
        row = dict(row)
        if isinstance(row.get("vendors"), list):
            row["vendors"] = ", ".join(str(name) for name in row["vendors"])
        rows.append(row)
    return rows
