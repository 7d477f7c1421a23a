from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RowData model for the spreadsheet import pipeline.

RowData represents a single spreadsheet row after it went through the row
mapper: either the canonical column values or the rejection message.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single mapped row.

    row_number refers to the 1-based spreadsheet row, so that error records
    point the operator at the line to fix.
    """
    row_number: int  # Spreadsheet row number (1-based, header included)
    values: dict[str, Any]  # Column name -> canonical value (empty when invalid)
    raw_values: dict[str, Any] | None = None  # Original cells keyed by header label
    invalid: bool = False  # Rejected by the row mapper
    error: str | None = None  # Rejection message when invalid
