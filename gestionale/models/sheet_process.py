from __future__ import annotations

from dataclasses import dataclass

from .config_models import SheetMappingConfig
from .row_data import RowData

"""SheetProcess model for the spreadsheet import pipeline.

SheetProcess represents the processing unit for a single sheet.
"""

__all__ = [
    "SheetProcess",
]


@dataclass(frozen=True)
class SheetProcess:
    """Processing unit for a single sheet.

    Holds the configuration reference, the mapped rows (dropped once
    persisted) and the row counters that feed the SUMMARY line.
    """
    sheet_name: str
    table_name: str
    mapping: SheetMappingConfig
    rows: list[RowData] | None = None
    inserted_rows: int = 0  # Successfully persisted record count
    rejected_rows: int = 0  # Rows rejected by the row mapper
    error: str | None = None  # Sheet-level error message
