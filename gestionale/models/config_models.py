from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the spreadsheet import pipeline.

The loader in gestionale.config.loader validates the YAML file against the
bundled JSON schema and builds these objects; services only ever see the
typed form.
"""

ROW_ERROR_SKIP = "skip"
ROW_ERROR_ABORT = "abort"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class SheetMappingConfig:
    """Configuration for mapping a single spreadsheet sheet to an entity table.

    The entity selects the row mapper (operatori_network, clienti, ...);
    table is where the canonical records end up.
    """
    sheet_name: str  # Sheet name (key in sheet_mappings dict)
    table_name: str  # Target database table name
    entity: str  # Row mapper key
    null_sentinels: set[str] | None = None  # Upper-cased strings read as NULL


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    source_directory: str  # Directory to scan for workbooks
    sheet_mappings: dict[str, SheetMappingConfig]  # Sheet name -> configuration mapping
    header_row: int = 1  # 1-based row holding the header labels
    on_row_error: str = ROW_ERROR_SKIP  # skip | abort
    timezone: str = "UTC"
    database: DatabaseConfig = DatabaseConfig()
    null_sentinels: set[str] | None = None  # Global NULL sanitize strings

    @property
    def aborts_on_row_error(self) -> bool:
        return self.on_row_error == ROW_ERROR_ABORT
