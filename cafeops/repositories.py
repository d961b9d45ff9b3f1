"""One repository per record type, hiding sheet names and key columns."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from cafeops.extensions import record_store
from cafeops.models import (
    ActivityLogEntry,
    InventoryRecord,
    Order,
    UserPreference,
    Vendor,
)
from cafeops.sheetdb import RecordStore, RecordStoreError


class SheetRepository:
    sheet: str = ""
    key_column: str | None = None

    def __init__(self, store: RecordStore, sheet: str | None = None) -> None:
        self.store = store
        if sheet is not None:
            self.sheet = sheet

    @contextmanager
    def _failure(self, message: str) -> Iterator[None]:
        try:
            yield
        except RecordStoreError as exc:
            raise RecordStoreError(
                message,
                sheet=exc.sheet or self.sheet,
                operation=exc.operation,
                status_code=exc.status_code,
            ) from exc

    def _rows(self, message: str) -> list[dict[str, Any]]:
        with self._failure(message):
            return self.store.fetch_all(self.sheet)

    def _create(self, row: Mapping[str, Any], message: str) -> None:
        with self._failure(message):
            self.store.create(self.sheet, row)

    def _update(self, key: str, fields: Mapping[str, Any], message: str) -> None:
        with self._failure(message):
            self.store.update(self.sheet, self.key_column, key, fields)

    def _delete(self, key: str, message: str) -> None:
        with self._failure(message):
            self.store.delete(self.sheet, self.key_column, key)


class InventoryRepository(SheetRepository):
    sheet = "Master_Inventory"
    key_column = "Product_ID"

    def raw_rows(self) -> list[dict[str, Any]]:
        return self._rows("Failed to fetch raw inventory data for export")

    def all(self) -> list[InventoryRecord]:
        return [
            InventoryRecord.from_row(row)
            for row in self._rows("Failed to fetch inventory data")
        ]

    def get(self, product_id: str) -> InventoryRecord | None:
        for record in self.all():
            if record.product_id == product_id:
                return record
        return None

    def search_by_name(self, query: str) -> list[InventoryRecord]:
        with self._failure("Failed to search inventory"):
            rows = self.store.search(self.sheet, {"Product_Name": f"*{query}*"})
        return [InventoryRecord.from_row(row) for row in rows]

    def create(self, record: InventoryRecord) -> None:
        self._create(record.to_row(), "Failed to create inventory item")

    def update(self, product_id: str, fields: Mapping[str, Any]) -> None:
        self._update(product_id, fields, "Failed to update inventory item")

    def delete(self, product_id: str) -> None:
        self._delete(product_id, "Failed to delete inventory item")


class ActivityLogRepository(SheetRepository):
    sheet = "Activity_Log"

    def raw_rows(self) -> list[dict[str, Any]]:
        return self._rows("Failed to fetch activity log data for export")

    def all(self) -> list[ActivityLogEntry]:
        return [
            ActivityLogEntry.from_row(row)
            for row in self._rows("Failed to fetch activity log")
        ]

    def append(self, entry: ActivityLogEntry) -> None:
        self._create(entry.to_row(), "Failed to log activity")


class VendorRepository(SheetRepository):
    sheet = "Vendors"
    key_column = "name"

    def all(self) -> list[Vendor]:
        vendors = [Vendor.from_row(row) for row in self._rows("Failed to fetch vendors")]
        return [vendor for vendor in vendors if vendor.name]

    def get(self, name: str) -> Vendor | None:
        for vendor in self.all():
            if vendor.name == name:
                return vendor
        return None

    def create(self, vendor: Vendor) -> None:
        self._create(vendor.to_row(), "Failed to add vendor")

    def update(self, name: str, vendor: Vendor) -> None:
        self._update(name, vendor.to_row(), "Failed to update vendor")

    def delete(self, name: str) -> None:
        self._delete(name, "Failed to delete vendor")


class OrderRepository(SheetRepository):
    key_column = "id"

    def all(self) -> list[Order]:
        return [Order.from_row(row) for row in self._rows("Failed to fetch orders")]

    def get(self, order_id: str) -> Order | None:
        for order in self.all():
            if order.id == order_id:
                return order
        return None

    def create(self, order: Order) -> None:
        self._create(order.to_row(), "Failed to save order")

    def update(self, order_id: str, fields: Mapping[str, Any]) -> None:
        self._update(order_id, fields, "Failed to update order")

    def delete(self, order_id: str) -> None:
        self._delete(order_id, "Failed to delete order")


class PreferenceRepository(SheetRepository):
    sheet = "User_Preferences"
    key_column = "user_email"

    def all(self) -> list[UserPreference]:
        return [
            UserPreference.from_row(row)
            for row in self._rows("Failed to fetch user preferences")
        ]

    def get(self, email: str) -> UserPreference | None:
        with self._failure("Failed to fetch user preferences"):
            rows = self.store.search(self.sheet, {"user_email": email})
        for row in rows:
            preference = UserPreference.from_row(row)
            if preference.user_email.lower() == email.lower():
                return preference
        return None

    def create(self, preference: UserPreference) -> None:
        self._create(preference.to_row(), "Failed to create user preferences")

    def update(self, preference: UserPreference) -> None:
        self._update(
            preference.user_email,
            {"email_notifications_enabled": preference.email_notifications_enabled},
            "Failed to update user preferences",
        )


inventory = InventoryRepository(record_store)
activity_log = ActivityLogRepository(record_store)
vendors = VendorRepository(record_store)
orders = OrderRepository(record_store, sheet="Orders")
order_history = OrderRepository(record_store, sheet="Order_History")
preferences = PreferenceRepository(record_store)
