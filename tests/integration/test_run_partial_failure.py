from __future__ import annotations

import json
import re
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch

import pytest

from gestionale.cli import main as cli_main
from gestionale.db.batch_insert import BatchInsertError, InsertResult

"""Integration test: partial failure rollback.

One workbook violates a database constraint and is rolled back while the
other one commits. The run exits with code 2, the SUMMARY line reports the
split and the error log carries the database message.
"""


class FakeCursor:
    def __init__(self) -> None:
        self.statements: list[str] = []

    def execute(self, sql: str) -> None:
        self.statements.append(sql)


@pytest.fixture
def live_run(temp_workdir: Path, write_config: Path, make_workbook, monkeypatch):
    data = temp_workdir / "data"
    make_workbook(
        data / "a_ok.xlsx",
        {"Operatori": [["Nome", "Cognome"], ["Mario", "Rossi"], ["Anna", "Bianchi"]]},
    )
    make_workbook(
        data / "b_duplicate.xlsx",
        {
            "Operatori": [["Nome", "Cognome"], ["Luca", "Verdi"]],
            "Clienti": [["Ragione Sociale"], ["Banca Alfa"], ["Banca Alfa"]],
        },
    )
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)

    cursor = FakeCursor()
    inserted: dict[str, list[dict]] = {}

    def fake_insert_records(cursor, table, records, metrics_callback=None):
        records = list(records)
        names = [r.get("ragione_sociale") for r in records]
        if table == "clienti" and len(names) != len(set(names)):
            raise BatchInsertError('duplicate key value violates unique constraint "clienti_ragione_sociale_key"')
        inserted.setdefault(table, []).extend(records)
        return InsertResult(inserted_rows=len(records))

    @contextmanager
    def fake_connection(cfg):
        yield cursor

    with patch("gestionale.cli.__main__._db_connection", fake_connection), \
         patch("gestionale.services.orchestrator.insert_records", fake_insert_records):
        yield {"cursor": cursor, "inserted": inserted, "logs": temp_workdir / "logs"}


def test_partial_failure_exit_code_and_summary(live_run, clean_logging, capsys):
    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 2
    assert "WARN file=b_duplicate.xlsx failed:" in out
    assert "INFO mode=live total_rows=2 rejected_rows=0" in out
    assert re.search(r"^SUMMARY files=2/2 success=1 failed=1 rows=2 rejected=0 skipped_sheets=1 ", out, re.M)


def test_partial_failure_transactions(live_run, clean_logging, capsys):
    cli_main([])

    # one transaction per workbook: first commits, second rolls back
    assert live_run["cursor"].statements == ["BEGIN", "COMMIT", "BEGIN", "ROLLBACK"]


def test_partial_failure_error_log(live_run, clean_logging, capsys):
    cli_main([])

    log_files = list(live_run["logs"].glob("errors-*.log"))
    assert len(log_files) == 1
    records = [json.loads(line) for line in log_files[0].read_text(encoding="utf-8").splitlines()]
    assert [(r["file"], r["sheet"], r["row"], r["error_type"]) for r in records] == [
        ("b_duplicate.xlsx", "Clienti", -1, "DATABASE_INSERT_ERROR"),
    ]
    assert "clienti_ragione_sociale_key" in records[0]["message"]
