from __future__ import annotations

from typing import Mapping

from cafeops import repositories
from cafeops.models import InventoryRecord, Vendor
from cafeops.services import ValidationError
from cafeops.services import inventory as inventory_service
from cafeops.utils.values import as_text, parse_int


class VendorInUseError(ValueError):
    """Raised when a vendor cannot be deleted because inventory still lists it."""

    def __init__(self, vendor_name: str, records: list[InventoryRecord]) -> None:
        self.vendor_name = vendor_name
        self.records = records
        names = ", ".join(record.product_name or record.product_id for record in records)
        super().__init__(f"{vendor_name} is still listed on: {names}")


def list_vendors() -> list[Vendor]:
    return sorted(repositories.vendors.all(), key=lambda vendor: vendor.name.lower())


def get_vendor(name: str) -> Vendor | None:
    return repositories.vendors.get(name)


def vendor_inventory(
    vendor_name: str, records: list[InventoryRecord] | None = None
) -> list[InventoryRecord]:
    if records is None:
        records = repositories.inventory.all()
    return [record for record in records if record.supplied_by(vendor_name)]


def vendor_inventory_index() -> dict[str, list[InventoryRecord]]:
    index: dict[str, list[InventoryRecord]] = {}
    for record in repositories.inventory.all():
        for name in record.vendors:
            index.setdefault(name, []).append(record)
    return index


def parse_vendor_form(form: Mapping[str, str]) -> Vendor:
    errors = []
    name = as_text(form.get("name")).strip()
    if not name:
        errors.append("Vendor name is required.")

    raw_moq = as_text(form.get("moq")).strip()
    moq = None
    if raw_moq:
        if not raw_moq.isdigit():
            errors.append("Minimum order quantity must be a whole number.")
        else:
            moq = parse_int(raw_moq)

    if errors:
        raise ValidationError(errors)

    return Vendor(
        name=name,
        moq=moq,
        contact_name=as_text(form.get("contact_name")).strip(),
        contact_info=as_text(form.get("contact_info")).strip(),
        notes=as_text(form.get("notes")).strip(),
        plugin_key=as_text(form.get("plugin_key")).strip(),
    )


def create_vendor(vendor: Vendor) -> Vendor:
    if repositories.vendors.get(vendor.name) is not None:
        raise ValidationError(f"A vendor named {vendor.name} already exists.")
    repositories.vendors.create(vendor)
    return vendor


def update_vendor(original: Vendor, vendor: Vendor, *, actor: str) -> Vendor:
    """Save ``vendor`` over ``original``; a rename is carried onto inventory."""

    renamed = vendor.name != original.name
    if renamed and repositories.vendors.get(vendor.name) is not None:
        raise ValidationError(f"A vendor named {vendor.name} already exists.")

    # Rewrites are worked out before the vendor row changes; only the new
    # name is checked when each record is saved.
    rewrites = []
    if renamed:
        for record in vendor_inventory(original.name):
            names = [vendor.name if name == original.name else name for name in record.vendors]
            rewrites.append((record, ", ".join(names)))

    repositories.vendors.update(original.name, vendor)

    for record, names in rewrites:
        inventory_service.update_item(record, {"vendors": names}, actor=actor)
    return vendor


def delete_vendor(vendor: Vendor) -> None:
    in_use = vendor_inventory(vendor.name)
    if in_use:
        raise VendorInUseError(vendor.name, in_use)
    repositories.vendors.delete(vendor.name)
