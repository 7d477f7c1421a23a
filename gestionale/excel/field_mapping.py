from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

"""Header-alias lookup and cell coercion for imported spreadsheet rows.

Spreadsheets filled by hand or exported from other tools spell the same
column in several ways ("ID Cliente", "id_cliente", "idCliente", ...).
Each target field therefore declares an ordered alias list; the first alias
holding a non-blank value wins and its value goes through the field's
converter.
"""

__all__ = [
    "FieldSpec",
    "get_field_value",
    "extract_fields",
    "is_blank",
    "to_string",
    "to_number",
    "to_boolean",
    "to_date_string",
    "is_valid_uuid",
]

_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
# Excel serial day 1 is 1900-01-01, with the 1900 leap-year bug folded in
_EXCEL_EPOCH = datetime(1899, 12, 30)

Converter = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldSpec:
    """Target field name, accepted header aliases (priority order) and converter."""
    name: str
    aliases: tuple[str, ...]
    converter: Converter

    @property
    def template_header(self) -> str:
        return self.aliases[0]


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and strings that are empty after trimming."""
    if value is None:
        return True
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return True
    return str(value).strip() == ""


def get_field_value(row: Mapping[str, Any], aliases: Sequence[str], converter: Converter) -> Any:
    """Return converter(value) for the first alias present in row, else None.

    Aliases are matched exactly (case-sensitive) against the row keys.
    """
    for key in aliases:
        value = row.get(key)
        if not is_blank(value):
            return converter(value)
    return None


def extract_fields(row: Mapping[str, Any], fields: Sequence[FieldSpec]) -> dict[str, Any]:
    return {spec.name: get_field_value(row, spec.aliases, spec.converter) for spec in fields}


def to_string(value: Any) -> str:
    """Trimmed string form of a cell.

    Whole floats (Excel stores every number as float) lose the trailing .0,
    so a phone number or CAP read as 20121.0 comes back as "20121".
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if pd.isna(number):
        return None
    return int(number) if number.is_integer() else number


def to_boolean(value: Any) -> bool | None:
    """true/1 -> True, false/0 -> False (case-insensitive), anything else None."""
    if isinstance(value, bool):
        return value
    s = to_string(value).lower()
    if s in ("true", "1"):
        return True
    if s in ("false", "0"):
        return False
    return None


def to_date_string(value: Any) -> str | None:
    """YYYY-MM-DD from a date cell, an Excel serial number or a date string."""
    if is_blank(value):
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 1:
            return None
        try:
            return (_EXCEL_EPOCH + timedelta(days=float(value))).strftime("%Y-%m-%d")
        except (OverflowError, ValueError):
            # e.g. 19800115 typed as a number: past datetime.max
            return None
    parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.strftime("%Y-%m-%d")


def is_valid_uuid(value: Any) -> bool:
    """8-4-4-4-12 hexadecimal grouping, case-insensitive."""
    return isinstance(value, str) and _UUID_RE.match(value.strip()) is not None
