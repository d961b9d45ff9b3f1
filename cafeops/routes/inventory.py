from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from cafeops.auth import actor_name, staff_required
from cafeops.models import INVENTORY_CATEGORIES, InventoryRecord
from cafeops.services import ValidationError
from cafeops.services import activity_log
from cafeops.services import inventory as inventory_service
from cafeops.sheetdb import RecordStoreError
from cafeops.stock_status import StockStatus
from cafeops.utils.values import split_names


bp = Blueprint("inventory", __name__, url_prefix="/inventory")

bp.before_request(staff_required)

VIEW_MODES = ("table", "cards")


def _parse_non_negative_int(raw_value, field_label, errors):
    text = (raw_value or "").strip()
    if not text:
        return 0
    try:
        value = int(text)
    except ValueError:
        errors.append(f"{field_label} must be a whole number.")
        return None
    if value < 0:
        errors.append(f"{field_label} cannot be negative.")
        return None
    return value


def _parse_item_form(form) -> dict:
    """Validate the item form and return sheet columns ready to write."""

    errors: list[str] = []

    name = (form.get("product_name") or "").strip()
    if not name:
        errors.append("Product name is required.")

    category = (form.get("category") or "").strip()
    if category not in INVENTORY_CATEGORIES:
        errors.append("Choose a category.")

    current_stock = _parse_non_negative_int(form.get("current_stock"), "Current stock", errors)
    min_level = _parse_non_negative_int(form.get("min_level"), "Minimum level", errors)
    max_level = _parse_non_negative_int(form.get("max_level"), "Maximum level", errors)

    vendors = split_names(form.get("vendors"))
    if not vendors:
        errors.append("List at least one vendor for the item.")

    if errors:
        raise ValidationError(errors)

    return {
        "Product_Name": name,
        "Category": category,
        "Unit_Size": (form.get("unit_size") or "").strip(),
        "Current_Stock": current_stock,
        "Min_Level": min_level,
        "Max_Level": max_level,
        "Storage_Location": (form.get("storage_location") or "").strip(),
        "Cost_Per_Unit": (form.get("cost_per_unit") or "").strip(),
        "vendors": ", ".join(vendors),
    }


def _load_record(product_id: str) -> InventoryRecord:
    try:
        record = inventory_service.get_item(product_id)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load inventory item %s", product_id)
        flash(str(exc), "danger")
        abort(503)
    if record is None:
        abort(404)
    return record


@bp.route("/")
def inventory_home():
    search = (request.args.get("search") or "").strip()
    category = (request.args.get("category") or "").strip()
    status = (request.args.get("status") or "").strip()
    view_mode = request.args.get("view", "table")
    if view_mode not in VIEW_MODES:
        view_mode = "table"

    records: list[InventoryRecord] = []
    try:
        records = inventory_service.list_inventory()
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load inventory")
        flash(str(exc), "danger")

    categories, statuses = inventory_service.filter_choices(records)
    filtered = inventory_service.filter_inventory(
        records, search=search, category=category, status=status
    )

    return render_template(
        "inventory/home.html",
        records=filtered,
        total_count=len(records),
        stats=inventory_service.inventory_stats(records),
        search=search,
        category=category,
        status=status,
        categories=categories,
        statuses=[value for value in StockStatus.ALL_STATUSES if value in statuses],
        view_mode=view_mode,
    )


@bp.route("/search.json")
def search_items():
    query = (request.args.get("q") or "").strip()
    try:
        records = inventory_service.search_inventory(query)
    except RecordStoreError as exc:
        current_app.logger.exception("Inventory search failed")
        return jsonify({"error": str(exc)}), 502

    return jsonify(
        [
            {
                "product_id": record.product_id,
                "product_name": record.product_name,
                "category": record.category,
                "current_stock": record.current_stock,
                "status": record.status,
            }
            for record in records
        ]
    )


@bp.route("/new", methods=["GET", "POST"])
def new_item():
    form_values = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            fields = _parse_item_form(request.form)
            record = InventoryRecord.from_row({"Product_ID": "", **fields})
            inventory_service.create_item(record, actor=actor_name())
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to create inventory item")
            flash(str(exc), "danger")
        else:
            flash(f"Added {record.product_name}", "success")
            return redirect(url_for("inventory.inventory_home"))

    return render_template(
        "inventory/form.html",
        record=None,
        form_values=form_values,
        categories=INVENTORY_CATEGORIES,
    )


@bp.route("/<product_id>/edit", methods=["GET", "POST"])
def edit_item(product_id):
    record = _load_record(product_id)
    form_values = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            updates = _parse_item_form(request.form)
            inventory_service.update_item(record, updates, actor=actor_name())
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to update inventory item %s", product_id)
            flash(str(exc), "danger")
        else:
            flash(f"Updated {updates['Product_Name']}", "success")
            return redirect(url_for("inventory.inventory_home"))

    return render_template(
        "inventory/form.html",
        record=record,
        form_values=form_values,
        categories=INVENTORY_CATEGORIES,
    )


@bp.route("/<product_id>/adjust", methods=["GET", "POST"])
def adjust_stock(product_id):
    record = _load_record(product_id)

    if request.method == "POST":
        reason = (request.form.get("reason") or "").strip()
        notes = (request.form.get("notes") or "").strip()
        raw_quantity = (request.form.get("quantity") or "").strip()
        try:
            if not raw_quantity.isdigit() or int(raw_quantity) <= 0:
                raise ValidationError("Quantity must be a whole number greater than zero.")
            quantity = int(raw_quantity)
            adjustment = -quantity if reason == activity_log.USAGE_REASON else quantity
            new_stock = inventory_service.adjust_stock(
                record,
                adjustment=adjustment,
                reason=reason,
                notes=notes,
                actor=actor_name(),
            )
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to adjust stock for %s", product_id)
            flash(str(exc), "danger")
        else:
            flash(f"{record.product_name} stock is now {new_stock}", "success")
            return redirect(url_for("inventory.inventory_home"))

    return render_template(
        "inventory/adjust.html",
        record=record,
        reasons=activity_log.ADJUSTMENT_REASONS,
    )


@bp.route("/<product_id>/delete", methods=["GET", "POST"])
def delete_item(product_id):
    record = _load_record(product_id)

    if request.method == "POST":
        try:
            inventory_service.delete_item(
                record,
                reason=(request.form.get("reason") or "").strip(),
                notes=(request.form.get("notes") or "").strip(),
                actor=actor_name(),
            )
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to delete inventory item %s", product_id)
            flash(str(exc), "danger")
        else:
            flash(f"Deleted {record.product_name}", "success")
            return redirect(url_for("inventory.inventory_home"))

    return render_template(
        "inventory/delete.html",
        record=record,
        reasons=inventory_service.DELETE_REASONS,
    )
