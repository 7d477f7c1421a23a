from __future__ import annotations

from gestionale.db.lookup import make_code_resolver

CLIENT_UUID = "123e4567-e89b-12d3-a456-426614174000"


class LookupCursor:
    def __init__(self, results: dict[str, list[tuple]]) -> None:
        self.results = results
        self.calls: list[tuple[str, tuple]] = []
        self._last: list[tuple] = []

    def execute(self, sql: str, params: tuple = ()) -> None:
        self.calls.append((sql, params))
        self._last = self.results.get(params[0], [])

    def fetchall(self) -> list[tuple]:
        return self._last


def test_single_match_resolves():
    cur = LookupCursor({"C-01": [(CLIENT_UUID,)]})
    resolve = make_code_resolver(cur)

    assert resolve("clienti", "codice_cliente_custom", "C-01") == CLIENT_UUID
    assert cur.calls == [
        ('SELECT "id" FROM "clienti" WHERE "codice_cliente_custom" = %s LIMIT 2', ("C-01",)),
    ]


def test_no_match_or_ambiguous_code():
    cur = LookupCursor({"DUP": [("a",), ("b",)]})
    resolve = make_code_resolver(cur)

    assert resolve("clienti", "codice_cliente_custom", "MISSING") is None
    assert resolve("clienti", "codice_cliente_custom", "DUP") is None


def test_hits_are_cached_misses_are_not():
    cur = LookupCursor({"C-01": [(CLIENT_UUID,)]})
    resolve = make_code_resolver(cur)

    resolve("clienti", "codice_cliente_custom", "C-01")
    resolve("clienti", "codice_cliente_custom", "C-01")
    resolve("fornitori", "codice_cliente_associato", "F-07")
    resolve("fornitori", "codice_cliente_associato", "F-07")

    assert [params for _, params in cur.calls] == [("C-01",), ("F-07",), ("F-07",)]


def test_ids_come_back_as_strings():
    import uuid

    cur = LookupCursor({"C-01": [(uuid.UUID(CLIENT_UUID),)]})
    assert make_code_resolver(cur)("clienti", "codice_cliente_custom", "C-01") == CLIENT_UUID
