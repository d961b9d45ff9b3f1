"""Stock-health classification for inventory records."""

from __future__ import annotations


class StockStatus:
    GOOD = "GOOD"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    OUT_OF_STOCK = "OUT_OF_STOCK"

    ALL_STATUSES = [GOOD, MEDIUM, LOW, OUT_OF_STOCK]
    IN_STOCK_STATES = {GOOD, MEDIUM}
    REORDER_STATES = {LOW, OUT_OF_STOCK}
    LABELS = {
        GOOD: "Good",
        MEDIUM: "Medium",
        LOW: "Low Stock",
        OUT_OF_STOCK: "Out of Stock",
    }


def derive_status(current_stock: int, min_level: int) -> str:
    """Classify stock against its minimum level.

    Zero stock is always out of stock. Up to the minimum is low, up to one
    and a half times the minimum is medium, and anything above is good. A
    minimum of zero leaves only the out-of-stock and good bands.
    """

    if current_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= min_level:
        return StockStatus.LOW
    if current_stock <= min_level * 1.5:
        return StockStatus.MEDIUM
    return StockStatus.GOOD
