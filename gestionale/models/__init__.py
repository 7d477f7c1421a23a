"""Domain models for the gestionale core.

This package contains the configuration, import-processing and canonical
record models shared by the import pipeline and the alarm form engine.
"""

from .alarm_form import AlarmFormState
from .config_models import DatabaseConfig, ImportConfig, SheetMappingConfig
from .records import (
    ClienteRecord,
    FornitoreRecord,
    OperatoreNetworkRecord,
    PersonaleRecord,
    PuntoServizioRecord,
    RubricaClientiRecord,
    RubricaFornitoriRecord,
)
from .row_data import RowData
from .sheet_process import SheetProcess

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "SheetMappingConfig",
    # Processing models
    "RowData",
    "SheetProcess",
    # Canonical records
    "ClienteRecord",
    "FornitoreRecord",
    "OperatoreNetworkRecord",
    "PersonaleRecord",
    "PuntoServizioRecord",
    "RubricaClientiRecord",
    "RubricaFornitoriRecord",
    # Form state
    "AlarmFormState",
]
