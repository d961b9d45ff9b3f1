import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.extensions import record_store
from sheetdb_fake import TEST_CONFIG, install, inventory_row, sign_in


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)

    @app.route("/boom")
    def boom():
        raise RuntimeError("kaboom")

    return app


@pytest.fixture
def store(app):
    fake = install(record_store)
    fake.seed("Master_Inventory", [inventory_row("P1", "House Blend", stock=5, min_level=2)])
    return fake


@pytest.fixture
def client(app, store):
    client = app.test_client()
    sign_in(client)
    return client


def test_unhandled_exception_renders_error_page(client):
    response = client.get("/boom")

    assert response.status_code == 500
    assert b"Something went wrong" in response.data
    assert b"kaboom" in response.data
    assert b"/boom" in response.data


def test_not_found_passes_through(client):
    assert client.get("/no-such-page").status_code == 404
    assert client.get("/inventory/P404/edit").status_code == 404


def test_store_outage_on_record_page_is_service_unavailable(client, store):
    store.fail_on.add(("GET", "Master_Inventory"))
    assert client.get("/inventory/P1/edit").status_code == 503


def test_store_outage_on_listing_keeps_page_up(client, store):
    store.fail_on.add(("GET", "Master_Inventory"))

    response = client.get("/inventory/")

    assert response.status_code == 200
    assert b"Failed to fetch inventory data" in response.data
