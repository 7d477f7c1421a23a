from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from gestionale.config.loader import ConfigError, load_config
from gestionale.excel.mappers import MAPPERS, UnknownEntityError
from gestionale.excel.templates import write_template
from gestionale.logging.init import log_summary, set_debug, setup_logging
from gestionale.models.config_models import ImportConfig
from gestionale.services.orchestrator import ProcessingError, process_all
from gestionale.services.summary import render_summary_line

"""CLI entrypoint for the spreadsheet import.

Flow:
- Load .env (overrides the process environment) and config/import.yml
- Optionally write an import template or inspect the workbooks and exit
- Import every workbook in the source directory, live or mock
- Print the SUMMARY line and exit with the contract code
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string: DATABASE_URL / PGDSN, then PG* variables, then the YAML database section."""
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper; tested via integration)
    """Provide a psycopg2 cursor; the orchestrator drives BEGIN/COMMIT per workbook."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = True  # explicit BEGIN/COMMIT issued by the orchestrator
    try:
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gestionale", description="Spreadsheet import for the gestionale anagrafiche")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the import YAML config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    p.add_argument(
        "--template",
        metavar="ENTITY",
        choices=sorted(MAPPERS),
        help="Write an empty import template for ENTITY into the current directory and exit",
    )
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig) -> int:
    from gestionale.excel.reader import normalize_sheet, read_excel_file

    directory = Path(cfg.source_directory)
    excel_files = sorted(p for p in directory.iterdir() if p.suffix == ".xlsx")
    if not excel_files:
        print("inspect: no .xlsx files")
        return EXIT_SUCCESS_ALL
    for f in excel_files:
        print(f"FILE: {f.name}")
        try:
            raw = read_excel_file(f, target_sheets=None)
        except Exception as e:
            print(f"  read_error: {e}")
            continue
        for sname, df in raw.items():
            try:
                sd = normalize_sheet(df, sname, header_row=cfg.header_row)
            except Exception as e:
                print(f"  SHEET: {sname} error={e}")
                continue
            mapping = cfg.sheet_mappings.get(sname)
            entity = mapping.entity if mapping else "-"
            print(f"  SHEET: {sname} entity={entity} cols={sd.columns}")
            # datetimes are not JSON friendly: isoformat them
            safe_rows = [
                {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in r.items()} for r in sd.rows[:3]
            ]
            print("    sample_rows=", safe_rows)
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # An explicit [] (tests) must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.template:
        try:
            path = write_template(args.template, Path.cwd())
        except UnknownEntityError as e:
            logger.error(f"template: {e}")
            return EXIT_FATAL
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS_ALL

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"Processing files from: {directory}")

    if args.inspect_data:
        return _inspect_data(cfg)

    db_mode = "mock"
    try:
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
            result = process_all(cfg, cursor=None)
        else:
            try:
                with _db_connection(cfg) as cur:
                    db_mode = "live"
                    result = process_all(cfg, cursor=cur)
            except psycopg2.Error as db_e:
                logger.info(f"DB connection failed -> fallback to mock mode: {db_e}")
                db_mode = "mock"
                result = process_all(cfg, cursor=None)
    except ProcessingError as e:
        logger.error(f"processing({db_mode}): {e}")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} total_rows={result.total_inserted_rows} rejected_rows={result.rejected_rows}")

    summary_line = render_summary_line(result.total_files, result)
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
