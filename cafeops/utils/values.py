"""Lenient converters for values read back from the spreadsheet."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_NON_NUMERIC = re.compile(r"[^0-9.]")

MONEY_QUANT = Decimal("0.01")


def parse_int(value, default: int = 0) -> int:
    """Read an integer the way a spreadsheet cell is read: leading digits or ``default``."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def parse_money(value) -> Decimal:
    """Strip currency symbols and separators, returning ``0.00`` when nothing numeric is left."""

    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value.quantize(MONEY_QUANT)
    text = _NON_NUMERIC.sub("", str(value))
    # "1.2.3" style garbage keeps only the first decimal point.
    if text.count(".") > 1:
        head, _, tail = text.partition(".")
        text = f"{head}.{tail.replace('.', '')}"
    try:
        return Decimal(text).quantize(MONEY_QUANT)
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


def format_money(value: Decimal) -> str:
    return f"{Decimal(value).quantize(MONEY_QUANT):.2f}"


def as_bool(value: object, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (list, tuple)):
        return ", ".join(as_text(part) for part in value)
    return str(value)


def split_names(value: object) -> list[str]:
    """Turn ``"A, B,,C"`` (or a list) into ``["A", "B", "C"]`` keeping first-seen order."""

    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(part) for part in value]
    else:
        parts = str(value).split(",")
    names: list[str] = []
    for part in parts:
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return names
