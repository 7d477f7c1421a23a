from __future__ import annotations

from gestionale.models.alarm_form import AlarmFormState


def test_get_missing_field_is_none():
    form = AlarmFormState()
    assert form.get("delay_minutes") is None
    assert form.values == {}


def test_set_without_flags_is_not_dirty():
    form = AlarmFormState()
    form.set("anomalies_found", "vetro rotto")
    assert form.get("anomalies_found") == "vetro rotto"
    assert not form.is_dirty


def test_mark_dirty():
    form = AlarmFormState({"delay_minutes": 0})
    form.set("delay_minutes", 5, mark_dirty=True)
    assert form.dirty_fields == {"delay_minutes"}


def test_validate_records_and_clears_errors():
    form = AlarmFormState()
    form.set("delay_minutes", -3, validate=True)
    assert "delay_minutes" in form.errors

    form.set("delay_minutes", 3, validate=True)
    assert "delay_minutes" not in form.errors


def test_validate_time_pattern():
    form = AlarmFormState()
    form.set("intervention_start_time", "24:10", validate=True)
    assert "intervention_start_time" in form.errors

    form.set("intervention_start_time", "23:59", validate=True)
    assert form.errors == {}


def test_validate_field_without_schema_is_valid():
    form = AlarmFormState({"anomalies_found": 42})
    assert form.validate_field("anomalies_found") is True


def test_values_is_a_copy():
    form = AlarmFormState({"a": 1})
    form.values["a"] = 2
    assert form.get("a") == 1


def test_watchers_fire_only_on_change_of_watched_fields():
    form = AlarmFormState({"intervention_due_by": 15})
    calls = []
    form.watch(["intervention_due_by"], lambda f: calls.append(f.get("intervention_due_by")))

    form.set("intervention_due_by", 15)  # unchanged
    form.set("delay_minutes", 4)  # not watched
    form.set("intervention_due_by", 30)

    assert calls == [30]


def test_unsubscribe():
    form = AlarmFormState()
    calls = []
    unsubscribe = form.watch(["x"], lambda f: calls.append(1))
    unsubscribe()
    unsubscribe()  # second call is a no-op
    form.set("x", 1)
    assert calls == []
