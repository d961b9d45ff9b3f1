from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from cafeops.auth import actor_name, staff_required
from cafeops.models import Order, OrderStatus
from cafeops.services import ValidationError
from cafeops.services import inventory as inventory_service
from cafeops.services import orders as order_service
from cafeops.services import vendors as vendor_service
from cafeops.services.orders import OrderTransitionError
from cafeops.sheetdb import RecordStoreError


bp = Blueprint("orders", __name__, url_prefix="/orders")

bp.before_request(staff_required)


def _load_order(order_id: str) -> Order:
    try:
        order = order_service.get_order(order_id)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load order %s", order_id)
        flash(str(exc), "danger")
        abort(503)
    if order is None:
        abort(404)
    return order


@bp.route("/")
def draft_home():
    records = []
    try:
        records = inventory_service.list_inventory()
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load inventory for ordering")
        flash(str(exc), "danger")

    vendor_names = order_service.orderable_vendors(records)
    selected_vendor = request.args.get("vendor") or (vendor_names[0] if vendor_names else "")
    if selected_vendor and selected_vendor not in vendor_names:
        abort(404)

    suggested, extra = [], []
    vendor = None
    if selected_vendor:
        suggested, extra = order_service.draft_lines(records, selected_vendor)
        try:
            vendor = vendor_service.get_vendor(selected_vendor)
        except RecordStoreError:
            current_app.logger.exception("Failed to load vendor %s", selected_vendor)

    return render_template(
        "orders/draft.html",
        vendor_names=vendor_names,
        selected_vendor=selected_vendor,
        vendor=vendor,
        suggested=suggested,
        extra=extra,
    )


@bp.route("/submit", methods=["POST"])
def submit_order():
    vendor_name = (request.form.get("vendor") or "").strip()
    if not vendor_name:
        abort(400)

    try:
        records = inventory_service.list_inventory()
        lines = order_service.parse_draft_form(request.form, records, vendor_name)
        order = order_service.submit_order(
            vendor_name,
            lines,
            actor=actor_name(),
            notes=request.form.get("notes") or "",
        )
    except ValidationError as exc:
        for message in exc.messages:
            flash(message, "danger")
        return redirect(url_for("orders.draft_home", vendor=vendor_name))
    except RecordStoreError:
        current_app.logger.exception("Failed to submit order to %s", vendor_name)
        flash("Failed to submit order.", "danger")
        return redirect(url_for("orders.draft_home", vendor=vendor_name))

    flash(f"Order {order.id} submitted to {vendor_name}", "success")
    if not order.moq_met:
        flash(
            f"This order is below the minimum order quantity for {vendor_name}.",
            "warning",
        )
    return redirect(url_for("orders.order_detail", order_id=order.id))


@bp.route("/manage")
def manage_orders():
    status = request.args.get("status", OrderStatus.SUBMITTED)
    if status not in OrderStatus.TAB_ORDER:
        status = OrderStatus.SUBMITTED

    orders: list[Order] = []
    try:
        orders = order_service.list_orders(status)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load %s orders", status)
        flash(str(exc), "danger")

    return render_template(
        "orders/manage.html",
        orders=orders,
        status=status,
        tabs=OrderStatus.TAB_ORDER,
    )


@bp.route("/manage/<order_id>")
def order_detail(order_id):
    order = _load_order(order_id)
    return render_template(
        "orders/detail.html",
        order=order,
        actions=order_service.available_actions(order),
        received=order_service.parse_received_snapshot(order),
    )


@bp.route("/manage/<order_id>/process", methods=["POST"])
def process_order(order_id):
    order = _load_order(order_id)
    try:
        order_service.start_processing(order, actor=actor_name())
    except OrderTransitionError as exc:
        flash(str(exc), "warning")
    except RecordStoreError:
        current_app.logger.exception("Failed to update order %s", order_id)
        flash("Failed to update order status.", "danger")
    else:
        flash("Order marked as in process", "success")
    return redirect(url_for("orders.order_detail", order_id=order_id))


@bp.route("/manage/<order_id>/reject", methods=["POST"])
def reject_order(order_id):
    order = _load_order(order_id)
    try:
        order_service.reject_order(order, actor=actor_name())
    except OrderTransitionError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("orders.order_detail", order_id=order_id))
    except RecordStoreError:
        current_app.logger.exception("Failed to reject order %s", order_id)
        flash("Failed to update order status.", "danger")
        return redirect(url_for("orders.order_detail", order_id=order_id))

    flash("Order rejected", "success")
    return redirect(url_for("orders.manage_orders", status=OrderStatus.REJECTED))


@bp.route("/manage/<order_id>/fulfill", methods=["GET", "POST"])
def fulfill_order(order_id):
    order = _load_order(order_id)
    if not order_service.can_transition(order.status, OrderStatus.FULFILLMENT):
        flash(str(OrderTransitionError(order.status, OrderStatus.FULFILLMENT)), "warning")
        return redirect(url_for("orders.order_detail", order_id=order_id))

    entries = order_service.fulfillment_defaults(order)
    form_values = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            entries = order_service.parse_fulfillment_form(order, request.form)
            outcome = order_service.submit_fulfillment(order, entries, actor=actor_name())
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError:
            current_app.logger.exception("Failed to fulfill order %s", order_id)
            flash("Failed to fulfill order.", "danger")
            return redirect(url_for("orders.order_detail", order_id=order_id))
        else:
            if outcome.all_fulfilled:
                flash("Order fully received and completed", "success")
                return redirect(url_for("orders.manage_orders", status=OrderStatus.COMPLETE))
            flash("Partial receipt saved; the order stays in fulfillment", "info")
            return redirect(url_for("orders.manage_orders", status=OrderStatus.FULFILLMENT))

    return render_template(
        "orders/fulfill.html", order=order, entries=entries, form_values=form_values
    )
