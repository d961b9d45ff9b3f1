import logging
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.extensions import record_store
from cafeops.utils.logging import RequestIdFilter, assign_request_id
from sheetdb_fake import TEST_CONFIG, install, inventory_row, sign_in


def test_missing_credentials_disable_record_store():
    app = create_app({**TEST_CONFIG, "SHEETDB_API_ID": "", "SHEETDB_API_KEY": ""})

    assert app.config["RECORD_STORE_AVAILABLE"] is False
    assert "SHEETDB_API_ID and SHEETDB_API_KEY" in app.config["RECORD_STORE_ERROR"]

    client = app.test_client()
    sign_in(client)
    response = client.get("/")

    assert response.status_code == 200
    assert b"Spreadsheet unavailable." in response.data


def test_configured_app_reports_store_online():
    app = create_app(TEST_CONFIG)
    assert app.config["RECORD_STORE_AVAILABLE"] is True
    assert app.config["RECORD_STORE_ERROR"] is None


@pytest.fixture
def client():
    app = create_app(TEST_CONFIG)
    store = install(record_store)
    store.seed(
        "Master_Inventory",
        [
            inventory_row("P1", "House Blend", stock=20, min_level=5),
            inventory_row("P2", "Oat Milk", stock=1, min_level=6),
            inventory_row("P3", "Chai", stock=0, min_level=2),
        ],
    )
    store.seed(
        "Activity_Log",
        [
            {
                "Product_ID": "P1",
                "Product_Name": "House Blend",
                "Action_Type": "UPDATE_STOCK",
                "Reason": "Record Usage",
                "Details": "Stock changed from 23 to 20 (-3)",
                "Staff_Member": "Bea Barista",
            }
        ],
    )
    client = app.test_client()
    sign_in(client)
    return client


def test_dashboard_shows_stats_and_alerts(client):
    response = client.get("/")
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert 'id="stat-total">3<' in body
    assert 'id="stat-in-stock">1<' in body
    assert 'id="stat-low">1<' in body
    assert 'id="stat-value">$52.50<' in body
    assert "Oat Milk" in body
    assert "Chai" in body
    assert '<meta http-equiv="refresh" content="30">' in body
    assert "Manage Orders" in body


def test_dashboard_lists_top_usage(client):
    body = client.get("/").get_data(as_text=True)
    assert "<tr><td>House Blend</td><td class=\"text-end\">3</td></tr>" in body


def test_request_id_is_attached_to_log_records():
    app = create_app(TEST_CONFIG)
    with app.test_request_context("/", headers={"X-Request-ID": "abc123"}):
        assign_request_id()
        record = logging.LogRecord("cafeops", logging.INFO, __file__, 1, "hello", None, None)
        assert RequestIdFilter().filter(record)
        assert record.request_id == "abc123"

    record = logging.LogRecord("cafeops", logging.INFO, __file__, 1, "hello", None, None)
    RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_check_record_store_command_reports_each_sheet():
    app = create_app(TEST_CONFIG)
    store = install(record_store)
    store.seed("Master_Inventory", [inventory_row("P1", "House Blend", stock=5, min_level=2)])
    store.fail_on.add(("GET", "Order_History"))

    result = app.test_cli_runner().invoke(args=["check-record-store"])

    assert result.exit_code == 1
    assert "Master_Inventory: 1 row(s)" in result.output
    assert "Vendors: 0 row(s)" in result.output
    assert "Order_History: FAILED" in result.output


def test_send_stock_summary_command_without_recipients():
    app = create_app(TEST_CONFIG)
    install(record_store)

    result = app.test_cli_runner().invoke(args=["send-stock-summary"])

    assert result.exit_code == 0
    assert "Stock summary sent to 0 recipient(s)." in result.output
