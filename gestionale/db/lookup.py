from __future__ import annotations

from typing import Any

"""Manual-code lookups for rows that reference a parent by code instead of id.

Service points may name their client by codice_cliente_custom and their
supplier by codice_cliente_associato. The lookup runs on the import cursor,
so it sees parents inserted earlier in the same workbook transaction.
"""

__all__ = [
    "make_code_resolver",
]


def make_code_resolver(cursor: Any):
    """Return a resolver(table, column, code) -> id | None bound to cursor.

    A code resolves only when exactly one row matches. Hits are cached for
    the lifetime of the resolver (one workbook); misses are not, since a
    later sheet of the same workbook may insert the parent.
    """
    cache: dict[tuple[str, str, str], str] = {}

    def resolve(table: str, column: str, code: str) -> str | None:
        key = (table, column, code)
        if key in cache:
            return cache[key]
        cursor.execute(f'SELECT "id" FROM "{table}" WHERE "{column}" = %s LIMIT 2', (code,))
        rows = cursor.fetchall()
        if len(rows) != 1:
            return None
        cache[key] = str(rows[0][0])
        return cache[key]

    return resolve
