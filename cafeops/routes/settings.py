from __future__ import annotations

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user

from cafeops import repositories
from cafeops.auth import staff_required
from cafeops.services import inventory as inventory_service
from cafeops.services import preferences as preference_service
from cafeops.sheetdb import RecordStoreError
from cafeops.utils.csv_export import export_records_to_csv


bp = Blueprint("settings", __name__, url_prefix="/settings")

bp.before_request(staff_required)


@bp.route("/")
def settings_home():
    preference = None
    try:
        preference = preference_service.get_or_create(current_user.email)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to load preferences for %s", current_user.email)
        flash(str(exc), "danger")

    return render_template(
        "settings/home.html",
        preference=preference,
        smtp_configured=bool(current_app.config.get("SMTP_HOST")),
        summary_hour=current_app.config.get("SUMMARY_EMAIL_HOUR", 7),
    )


@bp.route("/notifications", methods=["POST"])
def update_notifications():
    enabled = request.form.get("email_notifications_enabled") == "on"
    try:
        preference_service.set_email_notifications(current_user.email, enabled)
    except RecordStoreError as exc:
        current_app.logger.exception("Failed to update preferences for %s", current_user.email)
        flash(str(exc), "danger")
    else:
        state = "enabled" if enabled else "disabled"
        flash(f"Email notifications {state}", "success")
    return redirect(url_for("settings.settings_home"))


def _export(loader, filename: str):
    try:
        rows = loader()
    except RecordStoreError as exc:
        current_app.logger.exception("Export of %s failed", filename)
        flash(str(exc), "danger")
        return redirect(url_for("settings.settings_home"))

    try:
        return export_records_to_csv(rows, filename)
    except ValueError as exc:
        flash(str(exc), "warning")
        return redirect(url_for("settings.settings_home"))


@bp.route("/export/inventory")
def export_inventory():
    return _export(inventory_service.export_rows, "inventory_export")


@bp.route("/export/activity-log")
def export_activity_log():
    return _export(repositories.activity_log.raw_rows, "activity_log_export")
