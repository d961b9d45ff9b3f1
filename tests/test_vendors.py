import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.extensions import record_store
from cafeops.models import Vendor
from cafeops.services import ValidationError
from cafeops.services import vendors as vendor_service
from cafeops.services.vendors import VendorInUseError
from sheetdb_fake import STAFF_NAME, TEST_CONFIG, install, inventory_row, sign_in


@pytest.fixture
def app():
    return create_app(TEST_CONFIG)


@pytest.fixture
def store(app):
    fake = install(record_store)
    fake.seed(
        "Vendors",
        [
            {"name": "Bean Co", "moq": "10", "contactName": "Rosa", "contactInfo": "rosa@bean.test"},
            {"name": "Milk Bros", "moq": ""},
            {"name": "Idle Supply", "moq": ""},
        ],
    )
    fake.seed(
        "Master_Inventory",
        [
            inventory_row("P1", "House Blend", stock=20, min_level=5),
            inventory_row("P2", "Chai", stock=3, min_level=5, vendors="Milk Bros, Bean Co", Primary_Vendor="Milk Bros"),
        ],
    )
    return fake


@pytest.fixture
def client(app, store):
    client = app.test_client()
    sign_in(client)
    return client


def test_vendor_rows_are_typed(store):
    vendors = vendor_service.list_vendors()
    assert [vendor.name for vendor in vendors] == ["Bean Co", "Idle Supply", "Milk Bros"]
    assert vendors[0].moq == 10
    assert vendors[2].moq is None


def test_vendor_inventory(store):
    assert [r.product_id for r in vendor_service.vendor_inventory("Bean Co")] == ["P1", "P2"]
    assert [r.product_id for r in vendor_service.vendor_inventory("Milk Bros")] == ["P2"]


def test_create_vendor_requires_unique_name(store):
    with pytest.raises(ValidationError, match="already exists"):
        vendor_service.create_vendor(Vendor(name="Bean Co"))


def test_parse_vendor_form_validates_moq():
    with pytest.raises(ValidationError) as excinfo:
        vendor_service.parse_vendor_form({"name": "", "moq": "ten"})
    assert excinfo.value.messages == [
        "Vendor name is required.",
        "Minimum order quantity must be a whole number.",
    ]


def test_rename_cascades_to_inventory(store):
    original = vendor_service.get_vendor("Bean Co")
    renamed = Vendor(name="Bean Collective", moq=12, contact_name="Rosa")

    vendor_service.update_vendor(original, renamed, actor=STAFF_NAME)

    names = [row["name"] for row in store.rows("Vendors")]
    assert "Bean Collective" in names and "Bean Co" not in names

    rows = {row["Product_ID"]: row for row in store.rows("Master_Inventory")}
    assert rows["P1"]["vendors"] == "Bean Collective"
    assert rows["P1"]["Primary_Vendor"] == "Bean Collective"
    assert rows["P2"]["vendors"] == "Milk Bros, Bean Collective"
    assert rows["P2"]["Primary_Vendor"] == "Milk Bros"

    details = [row["Details"] for row in store.rows("Activity_Log")]
    assert "vendors changed from 'Bean Co' to 'Bean Collective'" in details[0]


def test_rename_reaches_records_listing_a_retired_vendor(store):
    store.seed(
        "Master_Inventory",
        [
            inventory_row("P3", "Dirty Chai", stock=4, min_level=2, vendors="Bean Co, Gone Supply"),
            inventory_row("P4", "Espresso Roast", stock=9, min_level=3),
        ],
    )
    original = vendor_service.get_vendor("Bean Co")

    vendor_service.update_vendor(original, Vendor(name="Bean Collective"), actor=STAFF_NAME)

    rows = {row["Product_ID"]: row["vendors"] for row in store.rows("Master_Inventory")}
    assert rows == {
        "P1": "Bean Collective",
        "P2": "Milk Bros, Bean Collective",
        "P3": "Bean Collective, Gone Supply",
        "P4": "Bean Collective",
    }


def test_delete_vendor_in_use_is_refused(store):
    with pytest.raises(VendorInUseError) as excinfo:
        vendor_service.delete_vendor(vendor_service.get_vendor("Milk Bros"))
    assert [record.product_id for record in excinfo.value.records] == ["P2"]
    assert store.calls_for("DELETE", "Vendors") == []


def test_delete_unused_vendor(store):
    vendor_service.delete_vendor(vendor_service.get_vendor("Idle Supply"))
    assert [row["name"] for row in store.rows("Vendors")] == ["Bean Co", "Milk Bros"]


def test_vendor_pages(client):
    listing = client.get("/vendors/")
    assert listing.status_code == 200
    assert b"Bean Co" in listing.data

    detail = client.get("/vendors/Bean%20Co")
    assert detail.status_code == 200
    assert b"rosa@bean.test" in detail.data
    assert b"Chai" in detail.data


def test_new_vendor_route(client, store):
    response = client.post(
        "/vendors/new",
        data={"name": "Crumb Bakery", "moq": "24", "contact_name": "Ade"},
        follow_redirects=True,
    )
    assert response.status_code == 200
    assert b"Added vendor Crumb Bakery" in response.data
    row = next(row for row in store.rows("Vendors") if row["name"] == "Crumb Bakery")
    assert row["moq"] == "24"
    assert row["contactName"] == "Ade"


def test_delete_vendor_route_warns_when_in_use(client, store):
    response = client.post("/vendors/Milk%20Bros/delete", follow_redirects=True)
    assert response.status_code == 200
    assert b"Milk Bros is still listed on: Chai" in response.data
    assert any(row["name"] == "Milk Bros" for row in store.rows("Vendors"))


def test_missing_vendor_is_404(client):
    assert client.get("/vendors/Nobody").status_code == 404
