from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""DB batch insert of canonical records.

Records are inserted with psycopg2.extras.execute_values. Table names come
from the validated config (identifier pattern enforced by the schema) and
column names from the record dataclasses, so both are quoted, not bound.
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single batch insert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # time.time()
    end_time: float  # time.time()


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier)
    columns: insert columns
    rows: row value sequences, in columns order
    page_size: execute_values page_size
    metrics_callback: receives BatchMetrics after the call; not invoked for
        an empty rows iterable (the function returns early).

        Example usage for accumulating batch statistics:
            accumulator = BatchStatsAccumulator()
            batch_insert(cursor, table, columns, rows,
                         metrics_callback=lambda m: accumulator.add_batch_time(m.elapsed_seconds))
            total, avg, p95 = accumulator.get_stats()
    """
    if execute_values is None:
        raise BatchInsertError("psycopg2 not available")

    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    base_sql = f'INSERT INTO "{table}" ({cols_sql}) VALUES %s'

    start_time = time.time()
    try:
        execute_values(cursor, base_sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows_list))


def insert_records(
    cursor: Any,
    table: str,
    records: Iterable[Mapping[str, Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert column->value dicts, one execute_values call per distinct column set.

    Records may omit columns that have a database default (e.g. attivo), so
    rows are grouped by their key tuple, keeping first-seen order.
    """
    groups: dict[tuple[str, ...], list[list[Any]]] = {}
    for record in records:
        columns = tuple(record.keys())
        groups.setdefault(columns, []).append([record[c] for c in columns])

    inserted = 0
    for columns, rows in groups.items():
        result = batch_insert(
            cursor,
            table=table,
            columns=columns,
            rows=rows,
            page_size=page_size,
            metrics_callback=metrics_callback,
        )
        inserted += result.inserted_rows
    return InsertResult(inserted_rows=inserted)
