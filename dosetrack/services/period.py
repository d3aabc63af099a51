"""
Selección de registros por período de reporte
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional, Tuple, Union
import logging

from dosetrack.core.civil_time import CivilTimePolicy, get_civil_time_policy
from dosetrack.core.exceptions import InvalidPeriodError, InvalidScheduleError

logger = logging.getLogger(__name__)

ROLLING_PERIODS = {"7d": 7, "30d": 30, "90d": 90}


@dataclass(frozen=True)
class RollingWindow:
    """Últimos N días contados desde hoy"""
    days: int

    def __post_init__(self):
        if self.days < 1:
            raise InvalidPeriodError(f"El período debe tener al menos un día: {self.days}")

    def bounds(self, today: date) -> Tuple[date, date]:
        return today - timedelta(days=self.days), today


@dataclass(frozen=True)
class CustomRange:
    """Rango de fechas calendario, ambos extremos inclusive"""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidPeriodError(
                f"La fecha final ({self.end}) no puede ser anterior a la inicial ({self.start})"
            )

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end

    def bounds(self, today: date) -> Tuple[date, date]:
        return self.start, self.end

    def days(self) -> List[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]


WindowSpec = Union[RollingWindow, CustomRange]


def _parse_date(value: Union[date, str, None], name: str) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise InvalidPeriodError(f"Falta {name} para el período personalizado")
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidPeriodError(f"{name} inválida: {value!r}, se espera YYYY-MM-DD")


def parse_period(
        period: str,
        start_date: Union[date, str, None] = None,
        end_date: Union[date, str, None] = None
) -> WindowSpec:
    """Convertir los parámetros de reporte (7d, 30d, 90d, custom) en un período"""
    if period == "custom":
        return CustomRange(_parse_date(start_date, "start_date"), _parse_date(end_date, "end_date"))

    days = ROLLING_PERIODS.get(period)
    if days is None:
        raise InvalidPeriodError(f"Período no soportado: {period!r}")
    return RollingWindow(days)


def dated_entries(
        entries: Iterable[Any],
        policy: Optional[CivilTimePolicy] = None
) -> Tuple[List[Tuple[Any, date]], int]:
    """
    Emparejar cada registro con su fecha civil.

    Los registros sin hora programada válida se descartan; se devuelve
    cuántos fueron descartados para que el llamador pueda avisar.
    """
    policy = policy or get_civil_time_policy()
    result = []
    skipped = 0

    for entry in entries:
        try:
            day = policy.civil_date(getattr(entry, "scheduled_date_time", None))
        except InvalidScheduleError as e:
            skipped += 1
            logger.warning(f"Registro {getattr(entry, 'id', '?')} descartado: {e}")
            continue
        result.append((entry, day))

    return result, skipped


def filter_by_period(
        entries: Iterable[Any],
        window: WindowSpec,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
) -> List[Any]:
    """Registros cuya fecha civil programada cae dentro del período"""
    policy = policy or get_civil_time_policy()
    start, end = window.bounds(policy.today(now))

    dated, _ = dated_entries(entries, policy)
    return [entry for entry, day in dated if start <= day <= end]
