from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.batch_insert import BatchInsertError, insert_records
from ..db.lookup import make_code_resolver
from ..excel.mappers import CodeResolver, RowMappingError, map_row
from ..excel.reader import SheetData, SheetHeaderError, normalize_sheet, read_excel_file
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig, SheetMappingConfig
from ..models.error_record import FILE_LEVEL_SHEET, ErrorRecord
from ..models.excel_file import ExcelFile, FileStatus
from ..models.processing_result import BatchStatsAccumulator, FileStat, ProcessingResult
from ..models.row_data import RowData
from ..models.sheet_process import SheetProcess
from .progress import ProgressTracker, SheetProgressIndicator

"""Service orchestration for the spreadsheet import.

Scans the source directory, imports each workbook inside its own
transaction, maps every row of the configured sheets through the entity row
mapper, records rejected rows in the error log and aggregates the metrics
for the SUMMARY line.
"""

logger = logging.getLogger(__name__)

ROW_VALIDATION_ERROR = "ROW_VALIDATION_ERROR"


class ProcessingError(Exception):
    """Base exception for processing errors."""


class RowRejectedError(ProcessingError):
    """Raised to abort a sheet on the first rejected row (on_row_error: abort)."""


def scan_excel_files(directory: Path) -> list[Path]:
    """Scan directory for .xlsx files (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(
            (p for p in directory.iterdir() if p.is_file() and p.suffix == ".xlsx"),
            key=lambda p: p.name,
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def map_sheet_rows(
    sheet_data: SheetData, entity: str, resolver: CodeResolver | None = None
) -> list[RowData]:
    """Map every normalized row of a sheet; rejected rows come back invalid."""
    mapped: list[RowData] = []
    row_numbers = sheet_data.row_numbers or list(range(1, len(sheet_data.rows) + 1))
    for row_number, raw in zip(row_numbers, sheet_data.rows, strict=False):
        try:
            record = map_row(entity, raw, resolver)
        except RowMappingError as e:
            mapped.append(
                RowData(row_number=row_number, values={}, raw_values=raw, invalid=True, error=str(e))
            )
            continue
        mapped.append(RowData(row_number=row_number, values=record.to_row(), raw_values=raw))
    return mapped


def process_all(config: ImportConfig, cursor: Any = None) -> ProcessingResult:
    """Import all workbooks in the configured directory.

    Args:
        config: Import configuration with directory and mappings
        cursor: Database cursor for transactions (None = mock mode)

    Returns:
        ProcessingResult with aggregated metrics and file stats

    Raises:
        ProcessingError: For fatal errors that prevent processing
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer()

    file_paths = scan_excel_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0
    total_rejected = 0
    total_skipped_sheets = 0

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.start_file(file_path)

            batch_stats = BatchStatsAccumulator()
            file_start = datetime.now(UTC)
            file_result = _process_single_file(file_path, config, cursor, error_log, batch_stats)
            file_elapsed = (datetime.now(UTC) - file_start).total_seconds()

            if file_result.status == FileStatus.SUCCESS:
                success_count += 1
                total_rows += file_result.total_rows
            else:
                failed_count += 1
                logger.warning("file=%s failed: %s", file_path.name, file_result.error)
            total_rejected += file_result.rejected_rows
            total_skipped_sheets += file_result.skipped_sheets

            progress.set_postfix(
                success=success_count, failed=failed_count, rows=total_rows, rejected=total_rejected
            )
            progress.finish_file(success=(file_result.status == FileStatus.SUCCESS))

            total_batches, avg_batch, p95_batch = batch_stats.get_stats()
            file_stats.append(
                FileStat(
                    file_name=file_path.name,
                    status=file_result.status.value,
                    inserted_rows=file_result.total_rows if file_result.status == FileStatus.SUCCESS else 0,
                    rejected_rows=file_result.rejected_rows,
                    elapsed_seconds=file_elapsed,
                    total_batches=total_batches,
                    avg_batch_seconds=avg_batch,
                    p95_batch_seconds=p95_batch,
                )
            )

    error_path = error_log.flush()
    if error_path is not None:
        logger.info("error log written: %s", error_path)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_inserted_rows=total_rows,
        rejected_rows=total_rejected,
        skipped_sheets=total_skipped_sheets,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )


def _rollback(cursor: Any, file_name: str, error_log: ErrorLogBuffer) -> None:
    if cursor is None:
        return
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        error_log.append(
            ErrorRecord.create(file_name, FILE_LEVEL_SHEET, -1, "TRANSACTION_ROLLBACK_ERROR", str(e))
        )


def _failed_file(
    file_path: Path,
    start_time: datetime,
    error: str,
    sheets: list[SheetProcess] | None = None,
    rejected_rows: int = 0,
    skipped_sheets: int = 0,
) -> ExcelFile:
    return ExcelFile(
        path=file_path,
        name=file_path.name,
        sheets=sheets or [],
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.FAILED,
        total_rows=0,
        rejected_rows=rejected_rows,
        skipped_sheets=skipped_sheets,
        error=error,
    )


def _process_single_file(
    file_path: Path,
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer,
    batch_stats: BatchStatsAccumulator,
) -> ExcelFile:
    """Import one workbook inside one transaction.

    On success the transaction is committed; on any sheet failure it is
    rolled back and the workbook reported as failed, so a workbook is never
    half imported.
    """
    start_time = datetime.now(UTC)

    if cursor is not None:
        try:
            cursor.execute("BEGIN")
        except Exception as e:
            error_log.append(
                ErrorRecord.create(file_path.name, FILE_LEVEL_SHEET, -1, "TRANSACTION_BEGIN_ERROR", str(e))
            )
            return _failed_file(file_path, start_time, f"Failed to begin transaction: {e}")

    try:
        raw_sheets = read_excel_file(file_path, target_sheets=set(config.sheet_mappings.keys()))
        # manual codes resolve against the database only in live mode
        resolver = make_code_resolver(cursor) if cursor is not None else None

        total_inserted = 0
        total_rejected = 0
        skipped_sheets = 0
        sheet_processes: list[SheetProcess] = []

        present = [name for name in config.sheet_mappings if name in raw_sheets]
        sheet_progress = SheetProgressIndicator(file_name=file_path.name, total_sheets=len(present))

        # config (dict insertion) order
        for sheet_name, sheet_mapping in config.sheet_mappings.items():
            if sheet_name not in raw_sheets:
                skipped_sheets += 1
                continue
            sheet_progress.start_sheet(sheet_name)
            sheet_result = _process_single_sheet(
                raw_sheets[sheet_name],
                sheet_mapping,
                config,
                cursor,
                error_log,
                file_path.name,
                batch_stats,
                resolver,
            )
            sheet_processes.append(sheet_result)
            total_inserted += sheet_result.inserted_rows
            total_rejected += sheet_result.rejected_rows
            sheet_progress.finish_sheet(
                success=sheet_result.error is None,
                rows_processed=sheet_result.inserted_rows,
                rows_rejected=sheet_result.rejected_rows,
            )

            if sheet_result.error is not None:
                _rollback(cursor, file_path.name, error_log)
                return _failed_file(
                    file_path,
                    start_time,
                    f"sheet '{sheet_name}' failed: {sheet_result.error}",
                    sheets=sheet_processes,
                    rejected_rows=total_rejected,
                    skipped_sheets=skipped_sheets,
                )

        if cursor is not None:
            try:
                cursor.execute("COMMIT")
            except Exception as e:
                _rollback(cursor, file_path.name, error_log)
                error_log.append(
                    ErrorRecord.create(file_path.name, FILE_LEVEL_SHEET, -1, "TRANSACTION_COMMIT_ERROR", str(e))
                )
                return _failed_file(
                    file_path,
                    start_time,
                    f"commit failed: {e}",
                    sheets=sheet_processes,
                    rejected_rows=total_rejected,
                    skipped_sheets=skipped_sheets,
                )

        return ExcelFile(
            path=file_path,
            name=file_path.name,
            sheets=sheet_processes,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.SUCCESS,
            total_rows=total_inserted,
            rejected_rows=total_rejected,
            skipped_sheets=skipped_sheets,
            error=None,
        )

    except Exception as e:
        _rollback(cursor, file_path.name, error_log)
        error_log.append(
            ErrorRecord.create(file_path.name, FILE_LEVEL_SHEET, -1, "PROCESSING_ERROR", str(e))
        )
        return _failed_file(file_path, start_time, str(e))


def _process_single_sheet(
    df: Any,  # pandas DataFrame
    sheet_mapping: SheetMappingConfig,
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer,
    file_name: str,
    batch_stats: BatchStatsAccumulator,
    resolver: CodeResolver | None = None,
) -> SheetProcess:
    """Normalize, map and persist one sheet."""
    sheet_name = sheet_mapping.sheet_name
    table_name = sheet_mapping.table_name
    try:
        sheet_data = normalize_sheet(
            df,
            sheet_name,
            header_row=config.header_row,
            null_sentinels=sheet_mapping.null_sentinels,
        )
        mapped = map_sheet_rows(sheet_data, sheet_mapping.entity, resolver)

        valid = [r for r in mapped if not r.invalid]
        rejected = [r for r in mapped if r.invalid]
        for row in rejected:
            error_log.append(
                ErrorRecord.create(file_name, sheet_name, row.row_number, ROW_VALIDATION_ERROR, row.error or "")
            )
            logger.debug("sheet=%s row=%d rejected: %s", sheet_name, row.row_number, row.error)

        if rejected and config.aborts_on_row_error:
            first = rejected[0]
            raise RowRejectedError(f"row {first.row_number}: {first.error}")

        logger.debug(
            "sheet=%s entity=%s table=%s valid=%d rejected=%d",
            sheet_name,
            sheet_mapping.entity,
            table_name,
            len(valid),
            len(rejected),
        )

        if cursor is not None:
            result = insert_records(
                cursor,
                table=table_name,
                records=[r.values for r in valid],
                metrics_callback=lambda m: batch_stats.add_batch_time(m.elapsed_seconds),
            )
            inserted_rows = result.inserted_rows
        else:
            # Mock mode - every valid record counts as persisted
            inserted_rows = len(valid)
            logger.debug("sheet=%s mock mode inserted_rows=%d", sheet_name, inserted_rows)

        return SheetProcess(
            sheet_name=sheet_name,
            table_name=table_name,
            mapping=sheet_mapping,
            rows=None,  # row data is not kept once persisted
            inserted_rows=inserted_rows,
            rejected_rows=len(rejected),
            error=None,
        )

    except RowRejectedError as e:
        return SheetProcess(
            sheet_name=sheet_name,
            table_name=table_name,
            mapping=sheet_mapping,
            rejected_rows=len(rejected),
            error=str(e),
        )

    except SheetHeaderError as e:
        error_log.append(ErrorRecord.create(file_name, sheet_name, -1, "SHEET_VALIDATION_ERROR", str(e)))
        return SheetProcess(sheet_name=sheet_name, table_name=table_name, mapping=sheet_mapping, error=str(e))

    except BatchInsertError as e:
        error_log.append(ErrorRecord.create(file_name, sheet_name, -1, "DATABASE_INSERT_ERROR", str(e)))
        return SheetProcess(
            sheet_name=sheet_name,
            table_name=table_name,
            mapping=sheet_mapping,
            rejected_rows=len(rejected),
            error=str(e),
        )

    except Exception as e:
        error_log.append(ErrorRecord.create(file_name, sheet_name, -1, "UNEXPECTED_ERROR", str(e)))
        return SheetProcess(sheet_name=sheet_name, table_name=table_name, mapping=sheet_mapping, error=str(e))
