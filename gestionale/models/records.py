from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

"""Canonical records produced by the row mappers.

One record per successfully mapped spreadsheet row. Records are transient:
they are handed to the persistence step and discarded.
"""

__all__ = [
    "ClienteRecord",
    "OperatoreNetworkRecord",
    "PersonaleRecord",
    "RubricaClientiRecord",
    "FornitoreRecord",
    "RubricaFornitoriRecord",
    "PuntoServizioRecord",
]


def _without_unset(values: dict[str, Any], *optional_defaults: str) -> dict[str, Any]:
    # Columns with a NOT NULL database default are left out when unset
    return {k: v for k, v in values.items() if not (k in optional_defaults and v is None)}


@dataclass(frozen=True)
class OperatoreNetworkRecord:
    """Network operator (operatori_network).

    nome and cognome are always non-empty; cliente_id is either a valid UUID
    string or None.
    """
    nome: str
    cognome: str
    cliente_id: str | None = None
    telefono: str | None = None
    email: str | None = None
    note: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClienteRecord:
    """Client master record (clienti)."""
    ragione_sociale: str
    codice_fiscale: str | None = None
    partita_iva: str | None = None
    indirizzo: str | None = None
    citta: str | None = None
    cap: str | None = None
    provincia: str | None = None
    telefono: str | None = None
    email: str | None = None
    pec: str | None = None
    sdi: str | None = None
    attivo: bool | None = None
    note: str | None = None
    codice_cliente_custom: str | None = None

    def to_row(self) -> dict[str, Any]:
        return _without_unset(asdict(self), "attivo")


@dataclass(frozen=True)
class PersonaleRecord:
    """Staff member (personale). Dates are YYYY-MM-DD strings."""
    nome: str
    cognome: str
    codice_fiscale: str | None = None
    ruolo: str | None = None
    telefono: str | None = None
    email: str | None = None
    data_nascita: str | None = None
    luogo_nascita: str | None = None
    indirizzo: str | None = None
    cap: str | None = None
    citta: str | None = None
    provincia: str | None = None
    data_assunzione: str | None = None
    data_cessazione: str | None = None
    attivo: bool | None = None
    note: str | None = None

    def to_row(self) -> dict[str, Any]:
        return _without_unset(asdict(self), "attivo")


@dataclass(frozen=True)
class RubricaClientiRecord:
    """Client contact-book entry (rubrica_clienti)."""
    client_id: str
    tipo_recapito: str
    nome_persona: str | None = None
    telefono_fisso: str | None = None
    telefono_cellulare: str | None = None
    email_recapito: str | None = None
    note: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FornitoreRecord:
    """Supplier master record (fornitori)."""
    ragione_sociale: str
    codice_fiscale: str | None = None
    partita_iva: str | None = None
    indirizzo: str | None = None
    citta: str | None = None
    cap: str | None = None
    provincia: str | None = None
    telefono: str | None = None
    email: str | None = None
    pec: str | None = None
    tipo_servizio: str | None = None
    attivo: bool | None = None
    note: str | None = None
    codice_cliente_associato: str | None = None

    def to_row(self) -> dict[str, Any]:
        return _without_unset(asdict(self), "attivo")


@dataclass(frozen=True)
class RubricaFornitoriRecord:
    """Supplier contact-book entry (rubrica_fornitori)."""
    fornitore_id: str
    tipo_recapito: str
    nome_persona: str | None = None
    telefono_fisso: str | None = None
    telefono_cellulare: str | None = None
    email_recapito: str | None = None
    note: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PuntoServizioRecord:
    """Service point (punti_servizio): a guarded site of a client.

    id_cliente and fornitore_id are valid UUID strings or None; latitude and
    longitude are plain numbers.
    """
    nome_punto_servizio: str
    id_cliente: str | None = None
    indirizzo: str | None = None
    citta: str | None = None
    cap: str | None = None
    provincia: str | None = None
    referente: str | None = None
    telefono_referente: str | None = None
    telefono: str | None = None
    email: str | None = None
    note: str | None = None
    tempo_intervento: str | None = None
    fornitore_id: str | None = None
    codice_cliente: str | None = None
    codice_sicep: str | None = None
    codice_fatturazione: str | None = None
    latitude: int | float | None = None
    longitude: int | float | None = None
    nome_procedura: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)
