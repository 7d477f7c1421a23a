from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

from ..models.alarm_form import AlarmFormState

"""Automatic delay computation for the alarm entry form.

delay_minutes is the shortfall, in whole minutes, between the contractual
response budget (intervention_due_by) and the time elapsed from the alarm
registration to the intervention start. It is re-derived whenever one of the
watched timing fields changes and written back only when the value changes.

Every abort path is silent: a partially filled form is the normal state
during data entry, so the engine simply leaves delay_minutes untouched.
"""

__all__ = [
    "WATCHED_FIELDS",
    "DELAY_FIELD",
    "compute_delay_minutes",
    "apply_auto_delay",
    "bind_auto_delay",
]

logger = logging.getLogger(__name__)

WATCHED_FIELDS = (
    "registration_date",
    "intervention_start_time",
    "intervention_start_full_timestamp",
    "intervention_due_by",
)
DELAY_FIELD = "delay_minutes"


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _parse_hh_mm(value: Any) -> tuple[int, int] | None:
    parts = str(value).split(":")
    if len(parts) < 2:
        return None
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return None


def _to_minutes_budget(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _resolve_start(registration: datetime, start_full: Any, start_time: Any) -> datetime | None:
    if start_full:
        return _to_datetime(start_full)
    overlay = _parse_hh_mm(start_time)
    if overlay is None:
        return registration
    hours, minutes = overlay
    midnight = registration.replace(hour=0, minute=0, second=0, microsecond=0)
    # timedelta rolls 25:00 over to the next day
    return midnight + timedelta(hours=hours, minutes=minutes)


def compute_delay_minutes(
    registration_date: Any,
    intervention_due_by: Any,
    intervention_start_full_timestamp: Any = None,
    intervention_start_time: Any = None,
) -> int | float | None:
    """Compute the intervention delay in minutes.

    Returns None when the inputs are not complete or not parseable, which
    callers treat as "leave the current value alone".

    Examples:
        >>> from datetime import datetime
        >>> compute_delay_minutes(datetime(2024, 7, 10, 8, 0), 15, intervention_start_time="08:30")
        15
        >>> compute_delay_minutes(datetime(2024, 7, 10, 8, 0), 15,
        ...                       intervention_start_full_timestamp=datetime(2024, 7, 10, 7, 50))
        0
    """
    if not registration_date:
        return None
    if intervention_start_full_timestamp is None and not intervention_start_time:
        return None
    if intervention_due_by is None:
        return None

    registration = _to_datetime(registration_date)
    if registration is None:
        return None
    start = _resolve_start(registration, intervention_start_full_timestamp, intervention_start_time)
    if start is None:
        return None

    try:
        diff_ms = (start - registration).total_seconds() * 1000
    except TypeError:
        # naive vs aware timestamps
        return None
    elapsed = max(0, math.floor(diff_ms / 60000 + 0.5))

    due = _to_minutes_budget(intervention_due_by)
    if due is None:
        return None

    delay = max(0, elapsed - due)
    if float(delay).is_integer():
        return int(delay)
    return delay


def apply_auto_delay(form: AlarmFormState) -> bool:
    """Recompute delay_minutes on form and write it back if it changed.

    Returns True when a write happened.
    """
    delay = compute_delay_minutes(
        form.get("registration_date"),
        form.get("intervention_due_by"),
        intervention_start_full_timestamp=form.get("intervention_start_full_timestamp"),
        intervention_start_time=form.get("intervention_start_time"),
    )
    if delay is None:
        logger.debug("auto-delay skipped: incomplete or unparseable timing fields")
        return False

    current = form.get(DELAY_FIELD)
    if isinstance(current, (int, float)) and not isinstance(current, bool) and current == delay:
        return False

    logger.debug("auto-delay %s -> %s", current, delay)
    form.set(DELAY_FIELD, delay, validate=True, mark_dirty=True)
    return True


def bind_auto_delay(form: AlarmFormState) -> Callable[[], None]:
    """Keep delay_minutes derived on form; returns the unsubscribe function.

    The derivation runs once immediately and then on every change of the
    watched timing fields.
    """
    apply_auto_delay(form)
    return form.watch(WATCHED_FIELDS, apply_auto_delay)
