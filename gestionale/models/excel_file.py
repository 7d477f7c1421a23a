from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .sheet_process import SheetProcess

"""ExcelFile domain model and FileStatus enum for the import pipeline.

An ExcelFile tracks one workbook through the import lifecycle, from
discovery to success/failed.
"""


class FileStatus(Enum):
    """Status enum for ExcelFile processing lifecycle.

    State transitions: pending -> processing -> (success | failed)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExcelFile:
    """Processing context for a single workbook.

    One workbook is one transaction: when any mapped sheet fails the whole
    workbook is rolled back and reported as failed.
    """
    path: Path
    name: str
    sheets: list[SheetProcess]
    start_time: datetime | None = None  # Processing start (UTC)
    end_time: datetime | None = None  # Processing end (UTC)
    status: FileStatus = FileStatus.PENDING
    total_rows: int = 0  # Persisted records across sheets
    rejected_rows: int = 0  # Rows rejected by the row mapper
    skipped_sheets: int = 0  # Configured sheets missing from the workbook
    error: str | None = None  # Failure reason summary
