"""Best-effort audit trail for inventory changes."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from cafeops import repositories
from cafeops.models import ActivityLogEntry, InventoryRecord, UsageRecord
from cafeops.services import utc_timestamp
from cafeops.sheetdb import RecordStoreError
from cafeops.utils.values import as_text, parse_int


logger = logging.getLogger(__name__)

USAGE_REASON = "Record Usage"
RECEIVE_REASON = "Receive Stock"
ADJUSTMENT_REASONS = (USAGE_REASON, RECEIVE_REASON)

_USED_QUANTITY = re.compile(r"-(\d+)")


def describe_stock_adjustment(old_stock: int, new_stock: int) -> str:
    adjustment = new_stock - old_stock
    sign = "+" if adjustment > 0 else ""
    return f"Stock changed from {old_stock} to {new_stock} ({sign}{adjustment})"


def describe_field_changes(
    original: Mapping[str, Any],
    updates: Mapping[str, Any],
    *,
    identity_field: str = InventoryRecord.IDENTITY_FIELD,
) -> str:
    """Return ``"<field> changed from '<old>' to '<new>'"`` phrases for changed fields."""

    phrases = []
    for key, new_value in updates.items():
        if key == identity_field:
            continue
        old_text = as_text(original.get(key))
        new_text = as_text(new_value)
        if old_text == new_text:
            continue
        label = key.replace("_", " ")
        phrases.append(f"{label} changed from '{old_text}' to '{new_text}'")
    return ", ".join(phrases)


def describe_update(
    original: InventoryRecord,
    updates: Mapping[str, Any],
    reason: str | None = None,
) -> tuple[str, str]:
    """Pick the log mode for an update and return ``(action_type, details)``."""

    if "Current_Stock" in updates and reason:
        new_stock = parse_int(updates["Current_Stock"])
        return (
            ActivityLogEntry.ACTION_UPDATE_STOCK,
            describe_stock_adjustment(original.current_stock, new_stock),
        )
    return (
        ActivityLogEntry.ACTION_UPDATE_ITEM,
        describe_field_changes(original.to_row(), updates),
    )


def record_activity(entry: ActivityLogEntry) -> bool:
    """Append ``entry`` to the log; failures are reported and never raised."""

    if not entry.timestamp:
        entry.timestamp = utc_timestamp()
    try:
        repositories.activity_log.append(entry)
    except RecordStoreError:
        logger.exception(
            "Failed to log activity for %s (%s)", entry.product_id, entry.action_type
        )
        return False
    return True


def record_inventory_update(
    original: InventoryRecord,
    updates: Mapping[str, Any],
    *,
    actor: str,
    reason: str | None = None,
    notes: str | None = None,
) -> ActivityLogEntry | None:
    action_type, details = describe_update(original, updates, reason)
    if not details:
        return None

    entry = ActivityLogEntry(
        product_id=original.product_id,
        product_name=as_text(updates.get("Product_Name")) or original.product_name,
        action_type=action_type,
        reason=reason or "",
        details=details,
        notes=notes or "",
        staff_member=actor,
    )
    record_activity(entry)
    return entry


def usage_records(entries: list[ActivityLogEntry] | None = None) -> list[UsageRecord]:
    if entries is None:
        entries = repositories.activity_log.all()

    records = []
    for entry in entries:
        if entry.action_type != ActivityLogEntry.ACTION_UPDATE_STOCK:
            continue
        if entry.reason != USAGE_REASON:
            continue
        match = _USED_QUANTITY.search(entry.details or "")
        records.append(
            UsageRecord(
                product_id=entry.product_id,
                product_name=entry.product_name,
                quantity_used=int(match.group(1)) if match else 0,
                staff_member=entry.staff_member,
                timestamp=entry.timestamp,
            )
        )
    return records


def top_usage(records: list[UsageRecord], limit: int = 5) -> list[tuple[str, int]]:
    totals: dict[str, int] = {}
    for record in records:
        totals[record.product_name] = totals.get(record.product_name, 0) + record.quantity_used
    ranked = sorted(totals.items(), key=lambda pair: (-pair[1], pair[0]))
    return ranked[:limit]
