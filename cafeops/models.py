"""Typed records for the rows kept in the hosted spreadsheet.

Each class knows how to read itself from a sheet row (every cell arrives as
text) and how to write itself back using the sheet's column names.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from cafeops.stock_status import StockStatus, derive_status
from cafeops.utils.values import (
    as_bool,
    as_text,
    format_money,
    parse_int,
    parse_money,
    split_names,
)


INVENTORY_CATEGORIES = ("Coffee", "Tea", "Pastries", "Syrups", "Other")


@dataclass
class InventoryRecord:
    IDENTITY_FIELD = "Product_ID"

    product_id: str
    product_name: str = ""
    category: str = ""
    unit_size: str = ""
    current_stock: int = 0
    min_level: int = 0
    max_level: int = 0
    storage_location: str = ""
    primary_vendor: str = ""
    cost_per_unit: str = ""
    purchase_cost: str = ""
    last_updated: str = ""
    vendors: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return derive_status(self.current_stock, self.min_level)

    @property
    def unit_cost(self) -> Decimal:
        return parse_money(self.cost_per_unit)

    @property
    def stock_value(self) -> Decimal:
        return self.unit_cost * self.current_stock

    def supplied_by(self, vendor_name: str) -> bool:
        return vendor_name in self.vendors

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InventoryRecord":
        vendors = split_names(row.get("vendors"))
        primary = as_text(row.get("Primary_Vendor")).strip()
        if not vendors and primary:
            vendors = [primary]
        return cls(
            product_id=as_text(row.get("Product_ID")),
            product_name=as_text(row.get("Product_Name")),
            category=as_text(row.get("Category")),
            unit_size=as_text(row.get("Unit_Size")),
            current_stock=parse_int(row.get("Current_Stock")),
            min_level=parse_int(row.get("Min_Level")),
            max_level=parse_int(row.get("Max_Level")),
            storage_location=as_text(row.get("Storage_Location")),
            primary_vendor=primary,
            cost_per_unit=as_text(row.get("Cost_Per_Unit")),
            purchase_cost=as_text(row.get("Purchase_Cost")),
            last_updated=as_text(row.get("Last_Updated")),
            vendors=vendors,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "Product_ID": self.product_id,
            "Category": self.category,
            "Product_Name": self.product_name,
            "Unit_Size": self.unit_size,
            "Current_Stock": self.current_stock,
            "Min_Level": self.min_level,
            "Max_Level": self.max_level,
            "Storage_Location": self.storage_location,
            "Primary_Vendor": self.primary_vendor,
            "Cost_Per_Unit": self.cost_per_unit,
            "Purchase_Cost": self.purchase_cost,
            "Last_Updated": self.last_updated,
            "vendors": ", ".join(self.vendors),
        }


@dataclass
class ActivityLogEntry:
    ACTION_CREATE = "CREATE"
    ACTION_UPDATE_ITEM = "UPDATE_ITEM"
    ACTION_UPDATE_STOCK = "UPDATE_STOCK"
    ACTION_DELETE = "DELETE"

    product_id: str
    product_name: str
    action_type: str
    details: str
    staff_member: str
    reason: str = ""
    notes: str = ""
    timestamp: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ActivityLogEntry":
        return cls(
            product_id=as_text(row.get("Product_ID")),
            product_name=as_text(row.get("Product_Name")),
            action_type=as_text(row.get("Action_Type")),
            details=as_text(row.get("Details")),
            staff_member=as_text(row.get("Staff_Member")),
            reason=as_text(row.get("Reason")),
            notes=as_text(row.get("Notes")),
            timestamp=as_text(row.get("Timestamp")),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "Product_ID": self.product_id,
            "Product_Name": self.product_name,
            "Action_Type": self.action_type,
            "Reason": self.reason,
            "Details": self.details,
            "Notes": self.notes,
            "Staff_Member": self.staff_member,
            "Timestamp": self.timestamp,
        }


@dataclass
class UsageRecord:
    product_id: str
    product_name: str
    quantity_used: int
    staff_member: str
    timestamp: str


@dataclass
class Vendor:
    name: str
    moq: int | None = None
    contact_name: str = ""
    contact_info: str = ""
    notes: str = ""
    plugin_key: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Vendor":
        raw_moq = as_text(row.get("moq")).strip()
        return cls(
            name=as_text(row.get("name")).strip(),
            moq=parse_int(raw_moq, default=0) if raw_moq else None,
            contact_name=as_text(row.get("contactName")),
            contact_info=as_text(row.get("contactInfo")),
            notes=as_text(row.get("notes")),
            plugin_key=as_text(row.get("pluginKey")),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "moq": "" if self.moq is None else self.moq,
            "contactName": self.contact_name,
            "contactInfo": self.contact_info,
            "notes": self.notes,
            "pluginKey": self.plugin_key,
        }


class OrderStatus:
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_PROCESS = "in_process"
    FULFILLMENT = "fulfillment"
    FULFILLED = "fulfilled"
    COMPLETE = "complete"
    REJECTED = "rejected"

    LIVE_STATES = (SUBMITTED, IN_PROCESS, FULFILLMENT)
    HISTORY_STATES = (COMPLETE, REJECTED)
    TAB_ORDER = [SUBMITTED, IN_PROCESS, FULFILLMENT, COMPLETE, REJECTED]
    LABELS = {
        DRAFT: "Draft",
        SUBMITTED: "Submitted",
        IN_PROCESS: "In Process",
        FULFILLMENT: "Fulfillment",
        FULFILLED: "Fulfilled",
        COMPLETE: "Complete",
        REJECTED: "Rejected",
    }


@dataclass
class OrderLine:
    product_id: str
    name: str
    quantity: int
    unit: str
    current_stock: int
    price_per_unit: Decimal
    vendor_options: list[str] = field(default_factory=list)
    selected_vendor: str = ""
    selected: bool = True
    is_suggested_padding: bool = False

    @property
    def line_total(self) -> Decimal:
        return self.price_per_unit * self.quantity

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderLine":
        return cls(
            product_id=as_text(data.get("productId")),
            name=as_text(data.get("name")),
            quantity=parse_int(data.get("quantity")),
            unit=as_text(data.get("unit")) or "unit",
            current_stock=parse_int(data.get("currentStock")),
            price_per_unit=parse_money(data.get("pricePerUnit")),
            vendor_options=split_names(data.get("vendorOptions")),
            selected_vendor=as_text(data.get("selectedVendor")),
            selected=as_bool(data.get("selected"), default=True),
            is_suggested_padding=as_bool(data.get("isSuggestedPadding")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "currentStock": self.current_stock,
            "pricePerUnit": format_money(self.price_per_unit),
            "isSuggestedPadding": self.is_suggested_padding,
            "vendorOptions": list(self.vendor_options),
            "selectedVendor": self.selected_vendor,
            "selected": self.selected,
        }


def _load_lines(raw: Any) -> list[OrderLine]:
    if isinstance(raw, list):
        payload = raw
    else:
        try:
            payload = json.loads(raw) if raw else []
        except (TypeError, ValueError):
            payload = []
    if not isinstance(payload, list):
        return []
    return [OrderLine.from_dict(item) for item in payload if isinstance(item, Mapping)]


@dataclass
class Order:
    id: str
    vendor_id: str
    vendor_name: str
    items: list[OrderLine]
    status: str
    created_at: str = ""
    updated_at: str = ""
    submitted_at: str = ""
    submitted_by: str = ""
    updated_by: str = ""
    in_process: bool = False
    rejected: bool = False
    moq_met: bool = True
    notes: str = ""
    # JSON text of the per-line receipt snapshot; only used while in fulfillment.
    received_items: str | None = None

    @property
    def selected_items(self) -> list[OrderLine]:
        return [line for line in self.items if line.selected]

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.selected_items), Decimal("0.00"))

    @property
    def status_label(self) -> str:
        return OrderStatus.LABELS.get(self.status, self.status.replace("_", " ").title())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Order":
        received = row.get("receivedItems")
        return cls(
            id=as_text(row.get("id")),
            vendor_id=as_text(row.get("vendorId")),
            vendor_name=as_text(row.get("vendorName")),
            items=_load_lines(row.get("items")),
            status=as_text(row.get("status")).strip().lower(),
            created_at=as_text(row.get("createdAt")),
            updated_at=as_text(row.get("updatedAt")),
            submitted_at=as_text(row.get("submittedAt")),
            submitted_by=as_text(row.get("submittedBy")),
            updated_by=as_text(row.get("updatedBy")),
            in_process=as_bool(row.get("inProcess")),
            rejected=as_bool(row.get("rejected")),
            moq_met=as_bool(row.get("moqMet"), default=True),
            notes=as_text(row.get("notes")),
            received_items=as_text(received) if received not in (None, "") else None,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "vendorId": self.vendor_id,
            "vendorName": self.vendor_name,
            "items": json.dumps([line.to_dict() for line in self.items]),
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "submittedAt": self.submitted_at,
            "submittedBy": self.submitted_by,
            "updatedBy": self.updated_by,
            "inProcess": self.in_process,
            "rejected": self.rejected,
            "moqMet": self.moq_met,
            "notes": self.notes,
            "receivedItems": self.received_items or "",
        }


@dataclass
class UserPreference:
    user_email: str
    email_notifications_enabled: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserPreference":
        return cls(
            user_email=as_text(row.get("user_email")).strip(),
            email_notifications_enabled=as_text(
                row.get("email_notifications_enabled")
            ).strip().upper()
            == "TRUE",
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "user_email": self.user_email,
            "email_notifications_enabled": self.email_notifications_enabled,
        }


__all__ = [
    "ActivityLogEntry",
    "INVENTORY_CATEGORIES",
    "InventoryRecord",
    "Order",
    "OrderLine",
    "OrderStatus",
    "StockStatus",
    "UsageRecord",
    "UserPreference",
    "Vendor",
]
