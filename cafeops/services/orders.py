"""Purchase order drafting, the order status flow, and fulfillment receipts."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from cafeops import repositories
from cafeops.models import InventoryRecord, Order, OrderLine, OrderStatus, Vendor
from cafeops.services import ValidationError, utc_timestamp
from cafeops.services import activity_log
from cafeops.services import inventory as inventory_service
from cafeops.stock_status import StockStatus
from cafeops.utils.values import MONEY_QUANT, as_text, format_money, parse_int


logger = logging.getLogger(__name__)


class OrderTransitionError(ValueError):
    """Raised when an order is asked to move to a status it cannot reach."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        current_label = OrderStatus.LABELS.get(current, current)
        target_label = OrderStatus.LABELS.get(target, target)
        super().__init__(f"An order that is {current_label} cannot move to {target_label}.")


ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.SUBMITTED: frozenset({OrderStatus.IN_PROCESS, OrderStatus.REJECTED}),
    OrderStatus.IN_PROCESS: frozenset({OrderStatus.FULFILLMENT, OrderStatus.REJECTED}),
    # A partial receipt can be resumed any number of times before it completes.
    OrderStatus.FULFILLMENT: frozenset({OrderStatus.FULFILLMENT, OrderStatus.COMPLETE}),
    OrderStatus.COMPLETE: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise OrderTransitionError(current, target)


def available_actions(order: Order) -> list[str]:
    """Actions the manage page offers for ``order``: ``process``, ``reject``, ``fulfill``."""

    actions = []
    if can_transition(order.status, OrderStatus.IN_PROCESS):
        actions.append("process")
    if can_transition(order.status, OrderStatus.FULFILLMENT):
        actions.append("fulfill")
    if can_transition(order.status, OrderStatus.REJECTED):
        actions.append("reject")
    return actions


def new_order_id() -> str:
    return f"order_{int(time.time() * 1000)}"


# Drafting ---------------------------------------------------------------------


def orderable_vendors(records: Iterable[InventoryRecord]) -> list[str]:
    names = {name for record in records for name in record.vendors}
    return sorted(names, key=str.lower)


def to_order_line(record: InventoryRecord, vendor_name: str, *, selected: bool = False) -> OrderLine:
    return OrderLine(
        product_id=record.product_id,
        name=record.product_name,
        quantity=max(record.min_level - record.current_stock, 1),
        unit=record.unit_size or "unit",
        current_stock=record.current_stock,
        price_per_unit=record.unit_cost,
        vendor_options=list(record.vendors),
        selected_vendor=vendor_name,
        selected=selected,
    )


def suggested_lines(records: Iterable[InventoryRecord], vendor_name: str) -> list[OrderLine]:
    return [
        to_order_line(record, vendor_name)
        for record in records
        if record.supplied_by(vendor_name) and record.status in StockStatus.REORDER_STATES
    ]


def additional_lines(
    records: Iterable[InventoryRecord], vendor_name: str, exclude: Iterable[str] = ()
) -> list[OrderLine]:
    """Lines for the vendor's other items, offered under "add more items"."""

    skipped = set(exclude)
    return [
        to_order_line(record, vendor_name)
        for record in records
        if record.supplied_by(vendor_name)
        and record.status not in StockStatus.REORDER_STATES
        and record.product_id not in skipped
    ]


def draft_lines(records: Iterable[InventoryRecord], vendor_name: str) -> tuple[list[OrderLine], list[OrderLine]]:
    records = list(records)
    suggested = suggested_lines(records, vendor_name)
    extra = additional_lines(records, vendor_name, [line.product_id for line in suggested])
    return suggested, extra


def parse_draft_form(
    form, records: Iterable[InventoryRecord], vendor_name: str
) -> list[OrderLine]:
    """Read the draft form back into the selected order lines.

    The form posts every offered ``product_id`` with a ``qty_<id>`` input and
    a ``select_<id>`` checkbox. Unselected rows are dropped.
    """

    by_id = {record.product_id: record for record in records}
    errors = []
    lines = []
    for product_id in form.getlist("product_id"):
        if f"select_{product_id}" not in form:
            continue
        record = by_id.get(product_id)
        if record is None:
            errors.append(f"Item {product_id} is no longer in inventory.")
            continue
        line = to_order_line(record, vendor_name, selected=True)
        raw_quantity = as_text(form.get(f"qty_{product_id}")).strip()
        if not raw_quantity.isdigit() or int(raw_quantity) < 1:
            errors.append(f"Quantity for {record.product_name} must be at least 1.")
            continue
        line.quantity = int(raw_quantity)
        lines.append(line)

    if not lines and not errors:
        errors.append("Select at least one item to order.")
    if errors:
        raise ValidationError(errors)
    return lines


def subtotal(lines: Iterable[OrderLine]) -> Decimal:
    return sum((line.line_total for line in lines if line.selected), Decimal("0.00"))


def moq_met(vendor: Vendor | None, lines: Iterable[OrderLine]) -> bool:
    if vendor is None or not vendor.moq:
        return True
    units = sum(line.quantity for line in lines if line.selected)
    return units >= vendor.moq


def build_order(
    vendor_name: str,
    lines: list[OrderLine],
    *,
    actor: str,
    notes: str = "",
    vendor: Vendor | None = None,
) -> Order:
    selected = [line for line in lines if line.selected]
    errors = []
    if not selected:
        errors.append("Select at least one item to order.")
    for line in selected:
        if line.quantity < 1:
            errors.append(f"Quantity for {line.name} must be at least 1.")
    if errors:
        raise ValidationError(errors)

    now = utc_timestamp()
    return Order(
        id=new_order_id(),
        vendor_id=vendor_name,
        vendor_name=vendor_name,
        items=selected,
        status=OrderStatus.SUBMITTED,
        created_at=now,
        updated_at=now,
        submitted_at=now,
        submitted_by=actor,
        updated_by=actor,
        in_process=False,
        rejected=False,
        moq_met=moq_met(vendor, selected),
        notes=(notes or "").strip(),
    )


def submit_order(
    vendor_name: str, lines: list[OrderLine], *, actor: str, notes: str = ""
) -> Order:
    vendor = repositories.vendors.get(vendor_name)
    order = build_order(vendor_name, lines, actor=actor, notes=notes, vendor=vendor)
    repositories.orders.create(order)
    logger.info("Order %s submitted to %s by %s", order.id, vendor_name, actor)
    return order


# Status flow ------------------------------------------------------------------


def list_orders(status: str) -> list[Order]:
    if status in OrderStatus.HISTORY_STATES:
        source = repositories.order_history.all()
    else:
        source = repositories.orders.all()
    orders = [order for order in source if order.status == status]
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def get_order(order_id: str) -> Order | None:
    order = repositories.orders.get(order_id)
    if order is None:
        order = repositories.order_history.get(order_id)
    return order


def start_processing(order: Order, *, actor: str) -> None:
    ensure_transition(order.status, OrderStatus.IN_PROCESS)
    now = utc_timestamp()
    repositories.orders.update(
        order.id,
        {
            "status": OrderStatus.IN_PROCESS,
            "inProcess": True,
            "rejected": False,
            "updatedAt": now,
            "updatedBy": actor,
        },
    )
    order.status = OrderStatus.IN_PROCESS
    order.in_process = True
    order.updated_at = now
    order.updated_by = actor


def _move_to_history(order: Order) -> None:
    # Two separate writes: a failure between them can leave the order in both sheets.
    repositories.order_history.create(order)
    repositories.orders.delete(order.id)


def reject_order(order: Order, *, actor: str) -> None:
    ensure_transition(order.status, OrderStatus.REJECTED)
    order.status = OrderStatus.REJECTED
    order.rejected = True
    order.in_process = False
    order.updated_at = utc_timestamp()
    order.updated_by = actor
    _move_to_history(order)
    logger.info("Order %s rejected by %s", order.id, actor)


# Fulfillment ------------------------------------------------------------------


@dataclass
class FulfillmentEntry:
    line: OrderLine
    previously_received: int
    received: int
    cost_per_unit: Decimal
    purchase_cost: Decimal

    @property
    def stock_increment(self) -> int:
        return self.received - self.previously_received

    @property
    def fully_received(self) -> bool:
        return self.received >= self.line.quantity

    def snapshot(self) -> dict[str, Any]:
        payload = self.line.to_dict()
        payload.update(
            {
                "receivedQty": self.received,
                "costPerUnit": format_money(self.cost_per_unit),
                "purchaseCost": format_money(self.purchase_cost),
            }
        )
        return payload


@dataclass
class FulfillmentOutcome:
    all_fulfilled: bool
    snapshot: list[dict[str, Any]]
    stock_increments: dict[str, int] = field(default_factory=dict)

    @property
    def snapshot_json(self) -> str:
        return json.dumps(self.snapshot)


def parse_received_snapshot(order: Order) -> list[int]:
    """Previously received quantity for each line, by position.

    A missing or unreadable snapshot counts as nothing received yet.
    """

    received = [0] * len(order.items)
    if not order.received_items:
        return received
    try:
        payload = json.loads(order.received_items)
    except (TypeError, ValueError):
        logger.warning("Order %s has an unreadable received snapshot", order.id)
        return received
    if not isinstance(payload, list):
        return received

    for index, entry in enumerate(payload[: len(received)]):
        if isinstance(entry, Mapping):
            received[index] = max(parse_int(entry.get("receivedQty")), 0)
    return received


def fulfillment_defaults(order: Order) -> list[FulfillmentEntry]:
    previous = parse_received_snapshot(order)
    return [
        FulfillmentEntry(
            line=line,
            previously_received=previous[index],
            received=previous[index],
            cost_per_unit=line.price_per_unit,
            purchase_cost=(line.price_per_unit * line.quantity).quantize(MONEY_QUANT),
        )
        for index, line in enumerate(order.items)
    ]


def _parse_amount(raw_value, field_label: str, errors: list[str]) -> Decimal | None:
    text = as_text(raw_value).strip().lstrip("$").replace(",", "")
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        errors.append(f"{field_label} must be a valid amount.")
        return None
    if value < 0:
        errors.append(f"{field_label} cannot be negative.")
        return None
    return value.quantize(MONEY_QUANT)


def parse_fulfillment_form(order: Order, form: Mapping[str, Any]) -> list[FulfillmentEntry]:
    entries = fulfillment_defaults(order)
    errors: list[str] = []
    for index, entry in enumerate(entries):
        name = entry.line.name or entry.line.product_id
        raw_received = as_text(form.get(f"received_{index}")).strip()
        if not raw_received.isdigit():
            errors.append(f"Received quantity for {name} must be a whole number.")
        else:
            received = int(raw_received)
            if received < entry.previously_received:
                errors.append(
                    f"Received quantity for {name} cannot be less than the "
                    f"{entry.previously_received} already received."
                )
            entry.received = received

        cost = _parse_amount(form.get(f"cost_per_unit_{index}"), f"Cost per unit for {name}", errors)
        if cost is not None:
            entry.cost_per_unit = cost
        purchase = _parse_amount(
            form.get(f"purchase_cost_{index}"), f"Purchase cost for {name}", errors
        )
        if purchase is not None:
            entry.purchase_cost = purchase

    if errors:
        raise ValidationError(errors)
    return entries


def reconcile_fulfillment(entries: list[FulfillmentEntry]) -> FulfillmentOutcome:
    """Merge one receiving session into the order's receipt state.

    Entered quantities are cumulative per line, so inventory only gains the
    difference from the previous session. The order is fulfilled once every
    line has received at least what was ordered.
    """

    increments: dict[str, int] = {}
    for entry in entries:
        if entry.stock_increment:
            product_id = entry.line.product_id
            increments[product_id] = increments.get(product_id, 0) + entry.stock_increment
    return FulfillmentOutcome(
        all_fulfilled=all(entry.fully_received for entry in entries),
        snapshot=[entry.snapshot() for entry in entries],
        stock_increments=increments,
    )


def _apply_receipt(entries: list[FulfillmentEntry], order: Order, actor: str) -> None:
    records = {record.product_id: record for record in repositories.inventory.all()}
    for entry in entries:
        record = records.get(entry.line.product_id)
        if record is None:
            logger.info(
                "Order %s line %s has no inventory record; skipping stock update",
                order.id,
                entry.line.product_id,
            )
            continue

        updates: dict[str, Any] = {
            "Cost_Per_Unit": format_money(entry.cost_per_unit),
            "Purchase_Cost": format_money(entry.purchase_cost),
        }
        reason = None
        if entry.stock_increment:
            updates["Current_Stock"] = record.current_stock + entry.stock_increment
            reason = activity_log.RECEIVE_REASON

        inventory_service.update_item(
            record,
            updates,
            actor=actor,
            reason=reason,
            notes=f"Received against order {order.id}",
        )
        if "Current_Stock" in updates:
            record.current_stock = updates["Current_Stock"]
        record.cost_per_unit = updates["Cost_Per_Unit"]
        record.purchase_cost = updates["Purchase_Cost"]


def submit_fulfillment(order: Order, entries: list[FulfillmentEntry], *, actor: str) -> FulfillmentOutcome:
    """Record a receiving session against ``order`` and advance its status.

    Stock and cost updates are written first. A fully received order then
    moves to history as complete; otherwise it stays live in fulfillment with
    the merged snapshot so the next session resumes from it.
    """

    ensure_transition(order.status, OrderStatus.FULFILLMENT)
    outcome = reconcile_fulfillment(entries)
    _apply_receipt(entries, order, actor)

    now = utc_timestamp()
    order.updated_at = now
    order.updated_by = actor
    order.in_process = False
    order.received_items = outcome.snapshot_json

    if outcome.all_fulfilled:
        order.status = OrderStatus.COMPLETE
        _move_to_history(order)
        logger.info("Order %s completed by %s", order.id, actor)
    else:
        order.status = OrderStatus.FULFILLMENT
        repositories.orders.update(
            order.id,
            {
                "status": OrderStatus.FULFILLMENT,
                "inProcess": False,
                "updatedAt": now,
                "updatedBy": actor,
                "receivedItems": order.received_items,
            },
        )
    return outcome
