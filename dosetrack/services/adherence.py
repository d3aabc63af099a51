"""
Agregación de adherencia sobre un conjunto de dosis ya filtrado
"""
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, Iterable, Optional
import logging
import math

from dosetrack.core.civil_time import CivilTimePolicy, get_civil_time_policy
from dosetrack.core.exceptions import InvalidScheduleError
from dosetrack.schemas.report import AdherenceStats
from dosetrack.services.period import dated_entries
from dosetrack.services.status import EntryStatus, compute_delay_minutes, derive_status, is_taken

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Redondeo al entero más cercano, .5 hacia arriba (también en negativos)"""
    return int(math.floor(value + 0.5))


def percentage(part: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(part / total * 100)


def _delay_of(entry: Any, policy: CivilTimePolicy) -> Optional[int]:
    actual = getattr(entry, "actual_date_time", None)
    if actual is None:
        # tomada sin hora real registrada: se considera puntual
        return 0
    try:
        return compute_delay_minutes(entry.scheduled_date_time, actual, policy)
    except InvalidScheduleError as e:
        logger.warning(f"Dosis {getattr(entry, 'id', '?')} sin hora real válida: {e}")
        return None


def compute_adherence(
        entries: Iterable[Any],
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
) -> AdherenceStats:
    """
    Resumen de adherencia.

    - rate: tomadas / total, 0 si no hay registros
    - missed: no incluye registros del día actual, aunque estén atrasados
    - early/on_time/delayed: solo dosis marcadas como tomadas
    - average_delay: promedio solo sobre las dosis atrasadas
    """
    policy = policy or get_civil_time_policy()
    dated, skipped = dated_entries(entries, policy)
    today = policy.today(now)

    total = len(dated)
    taken = 0
    missed = 0
    early = 0
    on_time = 0
    delayed = 0
    total_delay = 0

    for entry, day in dated:
        if is_taken(entry):
            taken += 1
            delay = _delay_of(entry, policy)
            if delay is None:
                continue
            if delay < 0:
                early += 1
            elif delay == 0:
                on_time += 1
            else:
                delayed += 1
                total_delay += delay
            continue

        if day == today:
            continue
        if derive_status(entry, now, policy) == EntryStatus.MISSED:
            missed += 1

    return AdherenceStats(
        total=total,
        taken=taken,
        missed=missed,
        rate=percentage(taken, total),
        early=early,
        on_time=on_time,
        delayed=delayed,
        average_delay=total_delay / delayed if delayed else 0.0,
        skipped=skipped,
    )


def compute_adherence_by_medication(
        entries: Iterable[Any],
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
) -> Dict[int, AdherenceStats]:
    """Adherencia agrupada por medication_id, en orden de aparición"""
    groups = OrderedDict()
    for entry in entries:
        groups.setdefault(getattr(entry, "medication_id", None), []).append(entry)

    return OrderedDict(
        (medication_id, compute_adherence(group, now, policy))
        for medication_id, group in groups.items()
    )
