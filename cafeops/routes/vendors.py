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
from cafeops.models import Vendor
from cafeops.services import ValidationError
from cafeops.services import vendors as vendor_service
from cafeops.services.vendors import VendorInUseError
from cafeops.sheetdb import RecordStoreError


bp = Blueprint("vendors", __name__, url_prefix="/vendors")

bp.before_request(staff_required)


def _load_vendor(vendor_name: str) -> Vendor:
    try:
        vendor = vendor_service.get_vendor(vendor_name)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load vendor %s", vendor_name)
        flash(str(exc), "danger")
        abort(503)
    if vendor is None:
        abort(404)
    return vendor


@bp.route("/")
def vendors_home():
    vendors: list[Vendor] = []
    item_counts: dict[str, int] = {}
    try:
        vendors = vendor_service.list_vendors()
        records = vendor_service.vendor_inventory_index()
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load vendors")
        flash(str(exc), "danger")
    else:
        item_counts = {name: len(items) for name, items in records.items()}

    return render_template("vendors/home.html", vendors=vendors, item_counts=item_counts)


@bp.route("/new", methods=["GET", "POST"])
def new_vendor():
    form_values = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            vendor = vendor_service.create_vendor(vendor_service.parse_vendor_form(request.form))
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to add vendor")
            flash(str(exc), "danger")
        else:
            flash(f"Added vendor {vendor.name}", "success")
            return redirect(url_for("vendors.vendor_detail", vendor_name=vendor.name))

    return render_template("vendors/form.html", vendor=None, form_values=form_values)


@bp.route("/<vendor_name>")
def vendor_detail(vendor_name):
    vendor = _load_vendor(vendor_name)
    records = []
    try:
        records = vendor_service.vendor_inventory(vendor.name)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load inventory for vendor %s", vendor_name)
        flash(str(exc), "danger")
    return render_template("vendors/detail.html", vendor=vendor, records=records)


@bp.route("/<vendor_name>/edit", methods=["GET", "POST"])
def edit_vendor(vendor_name):
    original = _load_vendor(vendor_name)
    form_values = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            vendor = vendor_service.update_vendor(
                original,
                vendor_service.parse_vendor_form(request.form),
                actor=actor_name(),
            )
        except ValidationError as exc:
            for message in exc.messages:
                flash(message, "danger")
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to update vendor %s", vendor_name)
            flash(str(exc), "danger")
        else:
            flash(f"Saved vendor {vendor.name}", "success")
            return redirect(url_for("vendors.vendor_detail", vendor_name=vendor.name))

    return render_template("vendors/form.html", vendor=original, form_values=form_values)


@bp.route("/<vendor_name>/delete", methods=["POST"])
def delete_vendor(vendor_name):
    vendor = _load_vendor(vendor_name)
    try:
        vendor_service.delete_vendor(vendor)
    except VendorInUseError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("vendors.vendor_detail", vendor_name=vendor.name))
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to delete vendor %s", vendor_name)
        flash(str(exc), "danger")
        return redirect(url_for("vendors.vendor_detail", vendor_name=vendor.name))

    flash(f"Deleted vendor {vendor.name}", "success")
    return redirect(url_for("vendors.vendors_home"))
