"""
Derivación del estado de dosis y exámenes

El estado se recalcula en cada lectura a partir de (hora programada, estado
explícito, ahora). El único dato persistido es el estado explícito; cuando es
terminal manda sobre cualquier cálculo.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Union
import enum
import math

from dosetrack.core.civil_time import CivilTimePolicy, DateTimeLike, get_civil_time_policy
from dosetrack.core.config import get_settings
from dosetrack.models.medical_test import TestStatus


class EntryStatus(str, enum.Enum):
    """Estados del ciclo de vida de una dosis o examen"""
    SCHEDULED = "scheduled"
    TODAY = "today"
    OVERDUE = "overdue"
    TAKEN = "taken"
    MISSED = "missed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset({
    EntryStatus.TAKEN,
    EntryStatus.MISSED,
    EntryStatus.CANCELLED,
    EntryStatus.COMPLETED,
})


@dataclass(frozen=True)
class Stored:
    """Estado terminal escrito explícitamente"""
    status: EntryStatus


@dataclass(frozen=True)
class Derived:
    """Sin estado terminal: se calcula contra la hora actual"""


StatusSource = Union[Stored, Derived]


def _status_value(explicit_status: Any) -> Optional[str]:
    if explicit_status is None:
        return None
    return getattr(explicit_status, "value", explicit_status)


def status_source(explicit_status: Any) -> StatusSource:
    """Clasificar el estado explícito de un registro"""
    value = _status_value(explicit_status)
    try:
        status = EntryStatus(value)
    except ValueError:
        # "pending", "scheduled" o None
        return Derived()
    if status in TERMINAL_STATUSES:
        return Stored(status)
    return Derived()


def get_tolerance() -> timedelta:
    return timedelta(minutes=get_settings().DOSE_TOLERANCE_MINUTES)


def derive_status_at(
        scheduled: Optional[DateTimeLike],
        explicit_status: Any,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None,
        tolerance: Optional[timedelta] = None
) -> EntryStatus:
    """Estado de un registro a partir de sus datos crudos"""
    source = status_source(explicit_status)
    if isinstance(source, Stored):
        return source.status

    policy = policy or get_civil_time_policy()
    tolerance = get_tolerance() if tolerance is None else tolerance

    # localize() rechaza None o texto inválido con InvalidScheduleError
    scheduled_at = policy.localize(scheduled)
    current = policy.localize(now)

    scheduled_day = scheduled_at.date()
    today = current.date()

    if scheduled_day > today:
        return EntryStatus.SCHEDULED
    if scheduled_day == today:
        if current <= scheduled_at + tolerance:
            return EntryStatus.TODAY
        return EntryStatus.OVERDUE
    return EntryStatus.MISSED


def derive_status(
        entry: Any,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None,
        tolerance: Optional[timedelta] = None
) -> EntryStatus:
    """
    Estado actual de una dosis o examen.

    El registro debe exponer `scheduled_date_time` y `explicit_status`.
    Lanza InvalidScheduleError si la hora programada falta o no se puede
    interpretar (salvo que el estado explícito sea terminal).
    """
    return derive_status_at(
        getattr(entry, "scheduled_date_time", None),
        getattr(entry, "explicit_status", None),
        now,
        policy=policy,
        tolerance=tolerance,
    )


def is_taken(entry: Any) -> bool:
    return _status_value(getattr(entry, "explicit_status", None)) == EntryStatus.TAKEN.value


def compute_delay_minutes(
        scheduled: DateTimeLike,
        actual: DateTimeLike,
        policy: Optional[CivilTimePolicy] = None
) -> int:
    """Minutos enteros de diferencia real - programada (redondeo hacia abajo)"""
    policy = policy or get_civil_time_policy()
    delta = policy.localize(actual) - policy.localize(scheduled)
    return math.floor(delta.total_seconds() / 60)


def overdue_minutes(
        entry: Any,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
) -> int:
    """Minutos transcurridos desde la hora programada (0 si aún no llegó)"""
    policy = policy or get_civil_time_policy()
    minutes = compute_delay_minutes(entry.scheduled_date_time, now, policy)
    return max(0, minutes)


def rearm_on_reschedule(
        explicit_status: Any,
        new_date: DateTimeLike,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
):
    """
    Estado explícito de un examen tras editar su fecha.

    Un examen completado o cancelado que se mueve al futuro vuelve a
    "scheduled" para que la derivación lo recalcule. Si la nueva fecha no es
    futura se conserva el estado terminal.
    """
    policy = policy or get_civil_time_policy()
    value = _status_value(explicit_status)

    if value not in (TestStatus.COMPLETED.value, TestStatus.CANCELLED.value):
        return explicit_status

    if policy.localize(new_date) > policy.localize(now):
        return TestStatus.SCHEDULED
    return explicit_status
