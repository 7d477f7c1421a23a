from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError

"""Alarm registration form state.

A minimal form-state provider for the centrale operativa alarm entry form:
get/set of field values, dirty tracking, per-field validation and
change-notification subscriptions. The derived-field engine in
gestionale.services.auto_delay only talks to this contract.
"""

__all__ = [
    "AlarmFormState",
    "FIELD_SCHEMAS",
]

_TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

FIELD_SCHEMAS: dict[str, dict[str, Any]] = {
    "intervention_due_by": {"type": ["integer", "null"], "minimum": 0},
    "delay_minutes": {"type": ["integer", "null"], "minimum": 0},
    "request_time_co": {"type": ["string", "null"], "pattern": _TIME_PATTERN},
    "intervention_start_time": {"type": ["string", "null"], "pattern": _TIME_PATTERN},
    "intervention_end_time": {"type": ["string", "null"], "pattern": _TIME_PATTERN},
}

Watcher = Callable[["AlarmFormState"], None]


class AlarmFormState:
    """Live values of one alarm entry form.

    Watchers registered with watch() are called after set() stores a value
    that differs from the previous one for a field they observe.
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        field_schemas: Mapping[str, dict[str, Any]] | None = None,
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._schemas = dict(FIELD_SCHEMAS if field_schemas is None else field_schemas)
        self._dirty: set[str] = set()
        self.errors: dict[str, str] = {}
        self._watchers: list[tuple[frozenset[str], Watcher]] = []

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    @property
    def dirty_fields(self) -> frozenset[str]:
        return frozenset(self._dirty)

    @property
    def is_dirty(self) -> bool:
        return bool(self._dirty)

    def get(self, name: str) -> Any:
        return self._values.get(name)

    def set(self, name: str, value: Any, *, validate: bool = False, mark_dirty: bool = False) -> None:
        changed = name not in self._values or self._values[name] != value
        self._values[name] = value
        if mark_dirty:
            self._dirty.add(name)
        if validate:
            self.validate_field(name)
        if changed:
            self._notify(name)

    def validate_field(self, name: str) -> bool:
        """Validate one field, recording or clearing its error message."""
        schema = self._schemas.get(name)
        if schema is None:
            self.errors.pop(name, None)
            return True
        try:
            jsonschema.validate(self._values.get(name), schema)
        except ValidationError as e:
            self.errors[name] = e.message
            return False
        self.errors.pop(name, None)
        return True

    def watch(self, fields: Iterable[str], callback: Watcher) -> Callable[[], None]:
        """Subscribe callback to changes of fields; returns the unsubscribe function."""
        entry = (frozenset(fields), callback)
        self._watchers.append(entry)

        def unsubscribe() -> None:
            if entry in self._watchers:
                self._watchers.remove(entry)

        return unsubscribe

    def _notify(self, name: str) -> None:
        for fields, callback in list(self._watchers):
            if name in fields:
                callback(self)
