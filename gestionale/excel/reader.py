from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader for the import pipeline.

Sheets are read raw (no header) and normalised afterwards: the configured
header row gives the column labels, every following non-blank row becomes a
dict keyed by those labels. The import templates put the header on row 1.
"""


class SheetHeaderError(Exception):
    """Raised when the header row is missing or invalid."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # header label -> cell value
    row_numbers: list[int] = field(default_factory=list)  # 1-based spreadsheet row per entry of rows


def read_excel_file(
    path: Path, target_sheets: Iterable[str] | None = None, keep_na_strings: list[str] | None = None
) -> dict[str, pd.DataFrame]:
    """Read a workbook returning raw DataFrames keyed by sheet name.

    Parameters
    ----------
    path: workbook path
    target_sheets: sheets to load (None = all)
    keep_na_strings: strings pandas must not turn into NaN (e.g. ['NA'] for a province code)
    """
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        na_values = list(parsers.STR_NA_VALUES - set(keep_na_strings))
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True

    targets = set(target_sheets) if target_sheets is not None else None
    dfs: dict[str, pd.DataFrame] = {}
    with pd.ExcelFile(path) as xls:
        for name in xls.sheet_names:
            if targets is not None and str(name) not in targets:
                continue
            df = xls.parse(name, header=None, keep_default_na=keep_default_na, na_values=na_values)
            dfs[str(name)] = df
    return dfs


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    header_row: int = 1,
    null_sentinels: set[str] | None = None,
) -> SheetData:
    """Normalize a raw DataFrame using header_row (1-based) as header.

    Steps:
    1. Validate the header row exists
    2. Extract column labels from it (blank header cells are dropped)
    3. Rows after the header become data rows; fully blank rows are skipped
    4. String cells matching a null sentinel (case-insensitive) become None
    """
    if header_row < 1 or df.shape[0] < header_row:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row}")
    header_series = df.iloc[header_row - 1]
    columns: list[str] = []
    positions: list[int] = []
    for pos, label in enumerate(header_series.tolist()):
        if pd.isna(label) or str(label).strip() == "":
            continue
        columns.append(str(label).strip())
        positions.append(pos)
    if not columns:
        raise SheetHeaderError(f"sheet '{sheet_name}' header row {header_row} is empty")

    rows: list[dict[str, Any]] = []
    row_numbers: list[int] = []
    data_part = df.iloc[header_row:]
    for offset, (_, raw) in enumerate(data_part.iterrows()):
        cells = raw.tolist()
        row_dict: dict[str, Any] = {}
        for col, pos in zip(columns, positions, strict=False):
            val = cells[pos] if pos < len(cells) else None
            if val is not None and pd.isna(val):
                val = None
            elif isinstance(val, str):
                stripped = val.strip()
                if stripped == "" or (null_sentinels and stripped.upper() in null_sentinels):
                    val = None
            row_dict[col] = val
        if all(v is None for v in row_dict.values()):
            continue
        rows.append(row_dict)
        row_numbers.append(header_row + offset + 1)

    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows, row_numbers=row_numbers)
