import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops.models import InventoryRecord
from cafeops.stock_status import StockStatus, derive_status


@pytest.mark.parametrize("min_level", [0, 1, 10, 250])
def test_zero_stock_is_always_out_of_stock(min_level):
    assert derive_status(0, min_level) == StockStatus.OUT_OF_STOCK


@pytest.mark.parametrize(
    "stock, expected",
    [
        (1, StockStatus.LOW),
        (5, StockStatus.LOW),
        (10, StockStatus.LOW),
        (11, StockStatus.MEDIUM),
        (12, StockStatus.MEDIUM),
        (15, StockStatus.MEDIUM),
        (16, StockStatus.GOOD),
        (20, StockStatus.GOOD),
    ],
)
def test_bands_around_minimum_of_ten(stock, expected):
    assert derive_status(stock, 10) == expected


def test_zero_minimum_collapses_low_and_medium_bands():
    assert derive_status(1, 0) == StockStatus.GOOD
    assert derive_status(500, 0) == StockStatus.GOOD


def test_record_status_is_derived_from_sheet_text():
    record = InventoryRecord.from_row(
        {"Product_ID": "P1", "Current_Stock": "3", "Min_Level": "4 bags"}
    )
    assert record.current_stock == 3
    assert record.min_level == 4
    assert record.status == StockStatus.LOW


def test_blank_or_garbage_quantities_read_as_zero():
    record = InventoryRecord.from_row(
        {"Product_ID": "P1", "Current_Stock": "", "Min_Level": "n/a"}
    )
    assert record.current_stock == 0
    assert record.min_level == 0
    assert record.status == StockStatus.OUT_OF_STOCK
