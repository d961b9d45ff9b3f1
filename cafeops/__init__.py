from flask import Flask, current_app, flash, render_template

from config import Config

from .auth import load_staff_user, staff_required
from .cli import register_cli
from .extensions import login_manager, oauth, record_store
from .models import OrderStatus
from .routes import auth, errors, inventory, orders, settings, vendors
from .services import activity_log as activity_log_service
from .services import inventory as inventory_service
from .services.summary_email import initialize_summary_scheduler
from .sheetdb import RecordStoreError
from .stock_status import StockStatus
from .utils.logging import assign_request_id, configure_logging
from .utils.values import format_money


NAVIGATION_PAGES: tuple[tuple[str, str], ...] = (
    ("home", "Dashboard"),
    ("inventory.inventory_home", "Inventory"),
    ("vendors.vendors_home", "Vendors"),
    ("orders.draft_home", "Orders"),
    ("orders.manage_orders", "Manage Orders"),
    ("settings.settings_home", "Settings"),
)


def _check_record_store_settings(app: Flask) -> None:
    missing = [
        key for key in ("SHEETDB_API_ID", "SHEETDB_API_KEY") if not app.config.get(key)
    ]
    if missing:
        app.config["RECORD_STORE_AVAILABLE"] = False
        app.config["RECORD_STORE_ERROR"] = (
            "The spreadsheet connection is not configured. Set "
            f"{' and '.join(missing)} in the environment, then restart the console."
        )
        app.logger.error("Record store disabled; missing settings: %s", ", ".join(missing))
    else:
        app.config["RECORD_STORE_AVAILABLE"] = True
        app.config["RECORD_STORE_ERROR"] = None


def create_app(config_override=None):
    app = Flask(__name__)

    # load configuration from environment variables
    app.config.from_object(Config)
    if config_override:
        app.config.update(config_override)

    configure_logging(app)
    app.before_request(assign_request_id)

    record_store.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Please sign in to continue."
    login_manager.login_message_category = "warning"
    login_manager.user_loader(load_staff_user)

    oauth.init_app(app)
    oauth.register(
        name="google",
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )

    _check_record_store_settings(app)

    @app.template_filter("money")
    def money_filter(value):
        return f"${format_money(value)}"

    @app.context_processor
    def inject_console_state():
        return {
            "navigation_links": NAVIGATION_PAGES,
            "record_store_online": current_app.config.get("RECORD_STORE_AVAILABLE", True),
            "record_store_error": current_app.config.get("RECORD_STORE_ERROR"),
            "refresh_seconds": current_app.config.get("INVENTORY_REFRESH_SECONDS", 30),
            "status_labels": StockStatus.LABELS,
            "order_status_labels": OrderStatus.LABELS,
        }

    # register blueprints
    app.register_blueprint(auth.bp)
    app.register_blueprint(inventory.bp)
    app.register_blueprint(vendors.bp)
    app.register_blueprint(orders.bp)
    app.register_blueprint(settings.bp)
    app.register_blueprint(errors.bp)

    @app.route("/")
    def home():
        guard_response = staff_required()
        if guard_response is not None:
            return guard_response

        if not current_app.config.get("RECORD_STORE_AVAILABLE", True):
            return render_template("dashboard.html", stats=None, alerts=[], top_usage=[])

        try:
            records = inventory_service.list_inventory()
        except RecordStoreError as exc:
            current_app.logger.exception("Failed to load dashboard inventory")
            flash(str(exc), "danger")
            return render_template("dashboard.html", stats=None, alerts=[], top_usage=[])

        try:
            top_usage = activity_log_service.top_usage(activity_log_service.usage_records())
        except RecordStoreError:
            current_app.logger.exception("Failed to load usage history")
            top_usage = []

        return render_template(
            "dashboard.html",
            stats=inventory_service.inventory_stats(records),
            alerts=inventory_service.low_stock_alerts(records),
            top_usage=top_usage,
        )

    register_cli(app)
    initialize_summary_scheduler(app)

    return app
