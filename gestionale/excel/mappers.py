from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ..models.records import (
    ClienteRecord,
    FornitoreRecord,
    OperatoreNetworkRecord,
    PersonaleRecord,
    PuntoServizioRecord,
    RubricaClientiRecord,
    RubricaFornitoriRecord,
)
from .field_mapping import (
    FieldSpec,
    extract_fields,
    is_blank,
    is_valid_uuid,
    to_boolean,
    to_date_string,
    to_number,
    to_string,
)

"""Row mappers: one raw spreadsheet row -> one canonical record.

Missing identity fields reject the row with RowMappingError; the batch
caller decides whether to skip it or abort. Association ids that are not
well-formed UUIDs are dropped to None instead (an operator without a client
is still a valid operator).

Service points may name their client or supplier by manual code instead of
UUID. Such codes are resolved through a CodeResolver (a database lookup in
live mode); without one the row is rejected.
"""

__all__ = [
    "RowMappingError",
    "UnknownEntityError",
    "ENTITY_FIELDS",
    "MAPPERS",
    "map_operatore_network_row",
    "map_cliente_row",
    "map_personale_row",
    "map_rubrica_clienti_row",
    "map_fornitore_row",
    "map_rubrica_fornitori_row",
    "map_punto_servizio_row",
    "CodeResolver",
    "map_row",
    "template_headers",
]


class RowMappingError(ValueError):
    """Raised when a row cannot become a canonical record."""


class UnknownEntityError(KeyError):
    """Raised for an entity name without a registered mapper."""

    def __str__(self) -> str:
        return f"unknown entity: {self.args[0]!r}"


# (table, column, code) -> id of the single matching row, or None
CodeResolver = Callable[[str, str, str], str | None]


_NOTE = FieldSpec("note", ("Note", "note"), to_string)
_TELEFONO = FieldSpec("telefono", ("Telefono", "telefono"), to_string)
_EMAIL = FieldSpec("email", ("Email", "email"), to_string)
_ATTIVO = FieldSpec("attivo", ("Attivo", "attivo", "Attivo (TRUE/FALSE)"), to_boolean)

OPERATORE_NETWORK_FIELDS = (
    FieldSpec("nome", ("Nome", "nome"), to_string),
    FieldSpec("cognome", ("Cognome", "cognome"), to_string),
    FieldSpec("cliente_id", ("ID Cliente", "id_cliente", "idCliente", "ID Cliente (UUID)"), to_string),
    _TELEFONO,
    _EMAIL,
    _NOTE,
)

CLIENTE_FIELDS = (
    FieldSpec("ragione_sociale", ("Ragione Sociale", "ragione_sociale", "ragioneSociale"), to_string),
    FieldSpec("codice_fiscale", ("Codice Fiscale", "codice_fiscale", "codiceFiscale"), to_string),
    FieldSpec("partita_iva", ("Partita IVA", "partita_iva", "partitaIva"), to_string),
    FieldSpec("indirizzo", ("Indirizzo", "indirizzo"), to_string),
    FieldSpec("citta", ("Città", "citta"), to_string),
    FieldSpec("cap", ("CAP", "cap"), to_string),
    FieldSpec("provincia", ("Provincia", "provincia"), to_string),
    _TELEFONO,
    _EMAIL,
    FieldSpec("pec", ("PEC", "pec"), to_string),
    FieldSpec("sdi", ("SDI", "sdi"), to_string),
    _ATTIVO,
    _NOTE,
    FieldSpec(
        "codice_cliente_custom",
        ("Codice Cliente Manuale", "codice_cliente_custom", "codiceClienteCustom"),
        to_string,
    ),
)

PERSONALE_FIELDS = (
    FieldSpec("nome", ("Nome", "nome"), to_string),
    FieldSpec("cognome", ("Cognome", "cognome"), to_string),
    FieldSpec("codice_fiscale", ("Codice Fiscale", "codice_fiscale", "codiceFiscale"), to_string),
    FieldSpec("ruolo", ("Ruolo", "ruolo"), to_string),
    _TELEFONO,
    _EMAIL,
    FieldSpec(
        "data_nascita",
        ("Data Nascita", "data_nascita", "dataNascita", "Data Nascita (YYYY-MM-DD)"),
        to_date_string,
    ),
    FieldSpec("luogo_nascita", ("Luogo Nascita", "luogo_nascita", "luogoNascita"), to_string),
    FieldSpec("indirizzo", ("Indirizzo", "indirizzo"), to_string),
    FieldSpec("cap", ("CAP", "cap"), to_string),
    FieldSpec("citta", ("Città", "citta"), to_string),
    FieldSpec("provincia", ("Provincia", "provincia"), to_string),
    FieldSpec(
        "data_assunzione",
        ("Data Assunzione", "data_assunzione", "dataAssunzione", "Data Assunzione (YYYY-MM-DD)"),
        to_date_string,
    ),
    FieldSpec(
        "data_cessazione",
        ("Data Cessazione", "data_cessazione", "dataCessazione", "Data Cessazione (YYYY-MM-DD)"),
        to_date_string,
    ),
    _ATTIVO,
    _NOTE,
)

RUBRICA_CLIENTI_FIELDS = (
    FieldSpec("client_id", ("ID Cliente", "client_id", "clientId", "ID Cliente (UUID)"), to_string),
    FieldSpec("tipo_recapito", ("Tipo Recapito", "tipo_recapito", "tipoRecapito"), to_string),
    FieldSpec("nome_persona", ("Nome Persona", "nome_persona", "nomePersona"), to_string),
    FieldSpec("telefono_fisso", ("Telefono Fisso", "telefono_fisso", "telefonoFisso"), to_string),
    FieldSpec(
        "telefono_cellulare",
        ("Telefono Cellulare", "telefono_cellulare", "telefonoCellulare"),
        to_string,
    ),
    FieldSpec("email_recapito", ("Email Recapito", "email_recapito", "emailRecapito"), to_string),
    _NOTE,
)


FORNITORE_FIELDS = (
    FieldSpec("ragione_sociale", ("Ragione Sociale", "ragione_sociale", "ragioneSociale"), to_string),
    FieldSpec("codice_fiscale", ("Codice Fiscale", "codice_fiscale", "codiceFiscale"), to_string),
    FieldSpec("partita_iva", ("Partita IVA", "partita_iva", "partitaIva"), to_string),
    FieldSpec("indirizzo", ("Indirizzo", "indirizzo"), to_string),
    FieldSpec("citta", ("Città", "citta"), to_string),
    FieldSpec("cap", ("CAP", "cap"), to_string),
    FieldSpec("provincia", ("Provincia", "provincia"), to_string),
    _TELEFONO,
    _EMAIL,
    FieldSpec("pec", ("PEC", "pec"), to_string),
    FieldSpec("tipo_servizio", ("Tipo Servizio", "tipo_servizio", "tipoServizio"), to_string),
    _ATTIVO,
    _NOTE,
    FieldSpec(
        "codice_cliente_associato",
        ("Codice Fornitore Manuale", "codice_cliente_associato", "codiceClienteAssociato"),
        to_string,
    ),
)

RUBRICA_FORNITORI_FIELDS = (
    FieldSpec("fornitore_id", ("ID Fornitore", "fornitore_id", "fornitoreId", "ID Fornitore (UUID)"), to_string),
    FieldSpec("tipo_recapito", ("Tipo Recapito", "tipo_recapito", "tipoRecapito"), to_string),
    FieldSpec("nome_persona", ("Nome Persona", "nome_persona", "nomePersona"), to_string),
    FieldSpec("telefono_fisso", ("Telefono Fisso", "telefono_fisso", "telefonoFisso"), to_string),
    FieldSpec(
        "telefono_cellulare",
        ("Telefono Cellulare", "telefono_cellulare", "telefonoCellulare"),
        to_string,
    ),
    FieldSpec("email_recapito", ("Email Recapito", "email_recapito", "emailRecapito"), to_string),
    _NOTE,
)

# codice_cliente_manuale / codice_fornitore_manuale only drive the id lookup;
# they are not columns of punti_servizio
PUNTO_SERVIZIO_FIELDS = (
    FieldSpec(
        "nome_punto_servizio",
        ("Nome Punto Servizio", "nome_punto_servizio", "nomePuntoServizio"),
        to_string,
    ),
    FieldSpec("id_cliente", ("ID Cliente", "id_cliente", "idCliente", "ID Cliente (UUID)"), to_string),
    FieldSpec(
        "codice_cliente_manuale",
        ("Codice Cliente Manuale", "codice_cliente_custom", "codiceClienteCustom"),
        to_string,
    ),
    FieldSpec("indirizzo", ("Indirizzo", "indirizzo"), to_string),
    FieldSpec("citta", ("Città", "citta"), to_string),
    FieldSpec("cap", ("CAP", "cap"), to_string),
    FieldSpec("provincia", ("Provincia", "provincia"), to_string),
    FieldSpec("referente", ("Referente", "referente"), to_string),
    FieldSpec(
        "telefono_referente",
        ("Telefono Referente", "telefono_referente", "telefonoReferente"),
        to_string,
    ),
    _TELEFONO,
    _EMAIL,
    _NOTE,
    FieldSpec("tempo_intervento", ("Tempo Intervento", "tempo_intervento", "tempoIntervento"), to_string),
    FieldSpec("fornitore_id", ("ID Fornitore", "fornitore_id", "fornitoreId", "ID Fornitore (UUID)"), to_string),
    FieldSpec(
        "codice_fornitore_manuale",
        ("Codice Fornitore Manuale", "codice_cliente_associato", "codiceClienteAssociato"),
        to_string,
    ),
    FieldSpec("codice_cliente", ("Codice Cliente", "codice_cliente", "codiceCliente"), to_string),
    FieldSpec("codice_sicep", ("Codice SICEP", "codice_sicep", "codiceSicep"), to_string),
    FieldSpec(
        "codice_fatturazione",
        ("Codice Fatturazione", "codice_fatturazione", "codiceFatturazione"),
        to_string,
    ),
    FieldSpec("latitude", ("Latitudine", "latitude"), to_number),
    FieldSpec("longitude", ("Longitudine", "longitude"), to_number),
    FieldSpec("nome_procedura", ("Nome Procedura", "nome_procedura", "nomeProcedura"), to_string),
)


def _uuid_or_none(value: str | None) -> str | None:
    return value if value and is_valid_uuid(value) else None


def _first_present(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if not is_blank(row.get(key)):
            return row[key]
    return None


def map_operatore_network_row(row: Mapping[str, Any]) -> OperatoreNetworkRecord:
    values = extract_fields(row, OPERATORE_NETWORK_FIELDS)
    if not values["nome"] or not values["cognome"]:
        raise RowMappingError("Nome and Cognome are required and cannot be empty.")
    values["cliente_id"] = _uuid_or_none(values["cliente_id"])
    return OperatoreNetworkRecord(**values)


def map_cliente_row(row: Mapping[str, Any]) -> ClienteRecord:
    values = extract_fields(row, CLIENTE_FIELDS)
    if not values["ragione_sociale"]:
        raise RowMappingError("Ragione Sociale is required.")
    return ClienteRecord(**values)


def map_personale_row(row: Mapping[str, Any]) -> PersonaleRecord:
    values = extract_fields(row, PERSONALE_FIELDS)
    if not values["nome"] or not values["cognome"]:
        raise RowMappingError("Nome and Cognome are required.")
    return PersonaleRecord(**values)


def map_rubrica_clienti_row(row: Mapping[str, Any]) -> RubricaClientiRecord:
    values = extract_fields(row, RUBRICA_CLIENTI_FIELDS)
    if not values["tipo_recapito"]:
        raise RowMappingError("Tipo Recapito is required and cannot be empty.")
    # the contact book entry hangs off its client: here the UUID is mandatory
    values["client_id"] = _uuid_or_none(values["client_id"])
    if values["client_id"] is None:
        raise RowMappingError("ID Cliente is required and must be a valid UUID.")
    return RubricaClientiRecord(**values)


def map_fornitore_row(row: Mapping[str, Any]) -> FornitoreRecord:
    values = extract_fields(row, FORNITORE_FIELDS)
    if not values["ragione_sociale"]:
        raise RowMappingError("Ragione Sociale is required.")
    return FornitoreRecord(**values)


def map_rubrica_fornitori_row(row: Mapping[str, Any]) -> RubricaFornitoriRecord:
    values = extract_fields(row, RUBRICA_FORNITORI_FIELDS)
    if not values["tipo_recapito"]:
        raise RowMappingError("Tipo Recapito is required and cannot be empty.")
    values["fornitore_id"] = _uuid_or_none(values["fornitore_id"])
    if values["fornitore_id"] is None:
        raise RowMappingError("ID Fornitore is required and must be a valid UUID.")
    return RubricaFornitoriRecord(**values)


_CODE_LABELS = {
    "clienti": "Codice Cliente Manuale",
    "fornitori": "Codice Fornitore Manuale",
}


def _resolve_code(
    resolver: CodeResolver | None, table: str, column: str, code: str, label: str
) -> str:
    resolved = resolver(table, column, code) if resolver is not None else None
    if not resolved:
        raise RowMappingError(f"{label} con {_CODE_LABELS[table]} '{code}' non trovato.")
    return resolved


def map_punto_servizio_row(
    row: Mapping[str, Any], resolver: CodeResolver | None = None
) -> PuntoServizioRecord:
    """Map a service point row.

    A missing or malformed client/supplier UUID is looked up by manual code
    when one is given; a code that does not resolve rejects the row.
    Coordinates shifted one column right (latitude under Note, longitude
    under fornitore_id) are moved back when both are plausible.
    """
    values = extract_fields(row, PUNTO_SERVIZIO_FIELDS)
    if not values["nome_punto_servizio"]:
        raise RowMappingError("Nome Punto Servizio is required and cannot be empty.")

    codice_cliente_manuale = values.pop("codice_cliente_manuale")
    values["id_cliente"] = _uuid_or_none(values["id_cliente"])
    if values["id_cliente"] is None and codice_cliente_manuale:
        values["id_cliente"] = _resolve_code(
            resolver, "clienti", "codice_cliente_custom", codice_cliente_manuale, "Cliente"
        )

    codice_fornitore_manuale = values.pop("codice_fornitore_manuale")
    values["fornitore_id"] = _uuid_or_none(values["fornitore_id"])
    if values["fornitore_id"] is None and codice_fornitore_manuale:
        values["fornitore_id"] = _resolve_code(
            resolver, "fornitori", "codice_cliente_associato", codice_fornitore_manuale, "Fornitore"
        )

    if values["latitude"] is None and values["longitude"] is None:
        shifted_lat = to_number(_first_present(row, "Note", "note"))
        shifted_lon = to_number(_first_present(row, "fornitore_id", "fornitoreId"))
        if (
            shifted_lat is not None
            and shifted_lon is not None
            and abs(shifted_lat) <= 90
            and abs(shifted_lon) <= 180
        ):
            values["latitude"] = shifted_lat
            values["longitude"] = shifted_lon
            values["note"] = None

    return PuntoServizioRecord(**values)


ENTITY_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    "operatori_network": OPERATORE_NETWORK_FIELDS,
    "clienti": CLIENTE_FIELDS,
    "personale": PERSONALE_FIELDS,
    "rubrica_clienti": RUBRICA_CLIENTI_FIELDS,
    "fornitori": FORNITORE_FIELDS,
    "rubrica_fornitori": RUBRICA_FORNITORI_FIELDS,
    "punti_servizio": PUNTO_SERVIZIO_FIELDS,
}

MAPPERS: dict[str, Callable[..., Any]] = {
    "operatori_network": map_operatore_network_row,
    "clienti": map_cliente_row,
    "personale": map_personale_row,
    "rubrica_clienti": map_rubrica_clienti_row,
    "fornitori": map_fornitore_row,
    "rubrica_fornitori": map_rubrica_fornitori_row,
    "punti_servizio": map_punto_servizio_row,
}

# mappers taking a CodeResolver as second argument
RESOLVING_ENTITIES = frozenset({"punti_servizio"})


def map_row(entity: str, row: Mapping[str, Any], resolver: CodeResolver | None = None) -> Any:
    """Map row with the mapper registered for entity."""
    try:
        mapper = MAPPERS[entity]
    except KeyError:
        raise UnknownEntityError(entity) from None
    if entity in RESOLVING_ENTITIES:
        return mapper(row, resolver)
    return mapper(row)


def template_headers(entity: str) -> list[str]:
    """Canonical header labels (first alias of each field) for entity."""
    try:
        fields = ENTITY_FIELDS[entity]
    except KeyError:
        raise UnknownEntityError(entity) from None
    return [spec.template_header for spec in fields]
