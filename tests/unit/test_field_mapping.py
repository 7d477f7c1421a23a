from __future__ import annotations

from datetime import date, datetime

import pytest

from gestionale.excel.field_mapping import (
    get_field_value,
    is_blank,
    is_valid_uuid,
    to_boolean,
    to_date_string,
    to_number,
    to_string,
)

ALIASES = ["ID Cliente", "id_cliente", "idCliente", "ID Cliente (UUID)"]


def test_first_present_alias_wins():
    row = {"idCliente": "b", "id_cliente": "a"}
    assert get_field_value(row, ALIASES, to_string) == "a"


def test_alias_match_is_case_sensitive():
    assert get_field_value({"id cliente": "x"}, ALIASES, to_string) is None
    assert get_field_value({"ID CLIENTE": "x"}, ALIASES, to_string) is None


def test_blank_alias_falls_through_to_next():
    row = {"ID Cliente": "   ", "id_cliente": None, "ID Cliente (UUID)": "z"}
    assert get_field_value(row, ALIASES, to_string) == "z"


def test_nan_counts_as_absent():
    assert get_field_value({"Nome": float("nan")}, ["Nome"], to_string) is None


def test_no_alias_present():
    assert get_field_value({"Altro": 1}, ALIASES, to_string) is None


@pytest.mark.parametrize("value", [None, "", "  ", float("nan")])
def test_is_blank(value):
    assert is_blank(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  Mario ", "Mario"),
        (3331234567, "3331234567"),
        (20121.0, "20121"),
        (1.5, "1.5"),
        (date(2024, 1, 2), "2024-01-02"),
    ],
)
def test_to_string(value, expected):
    assert to_string(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(12, 12), ("12", 12), (" 3.5 ", 3.5), ("abc", None), (True, 1), ("nan", None)],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        ("TRUE", True),
        ("1", True),
        (1, True),
        (1.0, True),
        ("false", False),
        (0, False),
        ("si", None),
    ],
)
def test_to_boolean(value, expected):
    assert to_boolean(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (datetime(1980, 3, 15, 10, 30), "1980-03-15"),
        (date(1980, 3, 15), "1980-03-15"),
        (45292, "2024-01-01"),
        ("2024-02-29", "2024-02-29"),
        ("not a date", None),
        (None, None),
        (0, None),
        (19800115, None),
        (float("inf"), None),
    ],
)
def test_to_date_string(value, expected):
    assert to_date_string(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "123e4567-e89b-12d3-a456-426614174000",
        "123E4567-E89B-12D3-A456-426614174000",
        " 123e4567-e89b-12d3-a456-426614174000 ",
    ],
)
def test_valid_uuid(value):
    assert is_valid_uuid(value)


@pytest.mark.parametrize(
    "value",
    [
        "not-a-uuid",
        "123e4567e89b12d3a456426614174000",
        "{123e4567-e89b-12d3-a456-426614174000}",
        "123e4567-e89b-12d3-a456-42661417400g",
        None,
        12345,
    ],
)
def test_invalid_uuid(value):
    assert not is_valid_uuid(value)
