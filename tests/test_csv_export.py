import os
import sys
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.utils.csv_export import encode_csv, export_records_to_csv
from sheetdb_fake import TEST_CONFIG


def test_fields_with_commas_are_quoted():
    text = encode_csv([{"a": 1, "b": "x,y"}])
    assert text.splitlines() == ["a,b", '1,"x,y"']


def test_quotes_and_newlines_are_escaped():
    text = encode_csv([{"note": 'said "hi"', "multi": "line1\nline2"}])
    assert text == 'note,multi\n"said ""hi""","line1\nline2"\n'


def test_values_are_serialized_for_the_sheet():
    text = encode_csv([{"flag": True, "cost": Decimal("2.50"), "vendors": ["A", "B"], "empty": None}])
    assert text.splitlines()[1] == 'TRUE,2.50,"A, B",'


def test_empty_collection_encodes_to_nothing():
    assert encode_csv([]) == ""


def test_export_response_is_an_attachment():
    app = create_app(TEST_CONFIG)
    with app.test_request_context():
        response = export_records_to_csv([{"a": 1}], "inventory_export")
        assert response.mimetype == "text/csv"
        assert response.headers["Content-Disposition"] == "attachment; filename=inventory_export.csv"
        assert response.get_data(as_text=True) == "a\n1\n"


def test_export_refuses_empty_collection():
    app = create_app(TEST_CONFIG)
    with app.test_request_context():
        with pytest.raises(ValueError, match="No data available to download."):
            export_records_to_csv([], "inventory_export")
