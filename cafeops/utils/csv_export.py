"""CSV export utilities."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, Mapping, Sequence

from flask import Response, stream_with_context


def _serialize_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (list, tuple)):
        return ", ".join(_serialize_value(part) for part in value)
    return str(value)


def _iter_csv_lines(records: Sequence[Mapping[str, object]]) -> Iterator[str]:
    # Column order follows the first record, the way the spreadsheet reports it.
    headers = list(records[0].keys())

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(headers)
    yield output.getvalue()
    output.seek(0)
    output.truncate(0)

    for record in records:
        writer.writerow([_serialize_value(record.get(field)) for field in headers])
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)


def encode_csv(records: Sequence[Mapping[str, object]]) -> str:
    """Return ``records`` as CSV text; fields with commas, quotes or newlines are quoted."""

    if not records:
        return ""
    return "".join(_iter_csv_lines(records))


def export_records_to_csv(
    records: Sequence[Mapping[str, object]],
    filename: str,
) -> Response:
    records = list(records)
    if not records:
        raise ValueError("No data available to download.")

    response = Response(
        stream_with_context(_iter_csv_lines(records)),
        mimetype="text/csv",
    )
    response.headers["Content-Disposition"] = f"attachment; filename={filename}.csv"
    return response
