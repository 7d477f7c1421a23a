from __future__ import annotations

import re
from pathlib import Path

import pytest

from gestionale.cli import main as cli_main

"""Exit code contract tests: 0 all success, 2 partial failure, 1 fatal."""

HEADER = ["Nome", "Cognome", "ID Cliente"]


@pytest.fixture(autouse=True)
def _mock_db(monkeypatch, clean_logging):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # no config/import.yml -> exit 1
    code = cli_main([])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_invalid_config(write_config: Path, capsys):
    write_config.write_text("source_directory: ./data\n", encoding="utf-8")
    code = cli_main([])
    assert code == 1
    assert "config validation failed" in capsys.readouterr().out


def test_exit_code_all_success(write_config: Path, temp_workdir: Path, make_workbook, capsys):
    data = temp_workdir / "data"
    make_workbook(data / "a.xlsx", {"Operatori": [HEADER, ["Mario", "Rossi", None]]})
    make_workbook(data / "b.xlsx", {"Clienti": [["Ragione Sociale"], ["Banca Alfa"]]})

    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY files=2/2 success=2 failed=0" in out


def test_rejected_rows_alone_do_not_fail_the_run(write_config: Path, temp_workdir: Path, make_workbook, capsys):
    make_workbook(
        temp_workdir / "data" / "a.xlsx",
        {"Operatori": [HEADER, ["Mario", "Rossi", None], ["Anna", None, None]]},
    )
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "rejected=1" in out


def test_exit_code_partial_failure(write_config: Path, temp_workdir: Path, make_workbook, capsys):
    data = temp_workdir / "data"
    make_workbook(data / "success.xlsx", {"Operatori": [HEADER, ["Mario", "Rossi", None]]})
    (data / "failure.xlsx").write_bytes(b"")

    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY files=2/2" in out
    match = re.search(r"failed=(\d+)", out)
    assert match is not None, f"No 'failed=' found in output: {out}"
    assert int(match.group(1)) == 1
