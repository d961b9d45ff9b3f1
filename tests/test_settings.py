import csv
import io
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.extensions import record_store
from cafeops.services import preferences as preference_service
from sheetdb_fake import STAFF_EMAIL, TEST_CONFIG, install, inventory_row, sign_in


@pytest.fixture
def app():
    return create_app(TEST_CONFIG)


@pytest.fixture
def store(app):
    fake = install(record_store)
    fake.seed("Vendors", [{"name": "Bean Co"}])
    fake.seed(
        "Master_Inventory",
        [
            inventory_row("P1", "House Blend", stock=12, min_level=4),
            inventory_row("P2", "Oat Milk", stock=3, min_level=6, vendors="Bean Co", Storage_Location="Fridge, top"),
        ],
    )
    return fake


@pytest.fixture
def client(app, store):
    client = app.test_client()
    sign_in(client)
    return client


def test_first_visit_creates_default_preference(client, store):
    response = client.get("/settings/")

    assert response.status_code == 200
    assert store.rows("User_Preferences") == [
        {"user_email": STAFF_EMAIL, "email_notifications_enabled": "FALSE"}
    ]

    client.get("/settings/")
    assert len(store.rows("User_Preferences")) == 1


def test_toggle_email_notifications(client, store):
    response = client.post(
        "/settings/notifications",
        data={"email_notifications_enabled": "on"},
        follow_redirects=True,
    )
    assert b"Email notifications enabled" in response.data
    assert store.rows("User_Preferences")[0]["email_notifications_enabled"] == "TRUE"

    response = client.post("/settings/notifications", data={}, follow_redirects=True)
    assert b"Email notifications disabled" in response.data
    assert store.rows("User_Preferences")[0]["email_notifications_enabled"] == "FALSE"


def test_notification_recipients_only_include_opted_in(store):
    store.seed(
        "User_Preferences",
        [
            {"user_email": "a@cafe.test", "email_notifications_enabled": "TRUE"},
            {"user_email": "b@cafe.test", "email_notifications_enabled": "FALSE"},
            {"user_email": "c@cafe.test", "email_notifications_enabled": "true"},
        ],
    )
    assert preference_service.notification_recipients() == ["a@cafe.test", "c@cafe.test"]


def test_inventory_export_streams_csv(client):
    response = client.get("/settings/export/inventory")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert response.headers["Content-Disposition"] == "attachment; filename=inventory_export.csv"

    rows = list(csv.DictReader(io.StringIO(response.get_data(as_text=True))))
    assert [row["Product_ID"] for row in rows] == ["P1", "P2"]
    assert rows[1]["Storage_Location"] == "Fridge, top"


def test_empty_activity_log_export_warns(client):
    response = client.get("/settings/export/activity-log", follow_redirects=True)

    assert response.status_code == 200
    assert b"No data available to download." in response.data


def test_export_failure_is_reported(client, store):
    store.fail_on.add(("GET", "Activity_Log"))

    response = client.get("/settings/export/activity-log", follow_redirects=True)

    assert b"Failed to fetch activity log data for export" in response.data
