"""
Política de horario civil fijo

Todo el sistema asume un único desfase civil (por defecto UTC-3) para todos
los pacientes. Las comparaciones de "día" se hacen siempre sobre la fecha
civil, nunca sobre instantes crudos.
"""
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Union

from dosetrack.core.config import get_settings
from dosetrack.core.exceptions import InvalidScheduleError

DateTimeLike = Union[datetime, str]


class CivilTimePolicy:
    """Conversión de instantes y horas de pared al desfase civil configurado"""

    def __init__(self, utc_offset_hours: int = -3):
        self.utc_offset_hours = utc_offset_hours
        self.tz = timezone(timedelta(hours=utc_offset_hours))

    def __repr__(self):
        return f"<CivilTimePolicy(UTC{self.utc_offset_hours:+d})>"

    def localize(self, value: DateTimeLike) -> datetime:
        """
        Llevar un valor a datetime con el desfase civil.

        - datetime sin zona: se interpreta como hora de pared civil
        - datetime con zona: se convierte al desfase civil
        - str ISO-8601: se interpreta y se aplica lo anterior
        """
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                raise InvalidScheduleError(value, "fecha/hora no interpretable")

        # date sin hora no identifica una dosis
        if not isinstance(value, datetime):
            raise InvalidScheduleError(value, "fecha/hora ausente")

        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def civil_date(self, value: DateTimeLike) -> date:
        """Fecha calendario (YYYY-MM-DD) bajo el desfase civil"""
        return self.localize(value).date()

    def today(self, now: datetime) -> date:
        return self.civil_date(now)

    def combine(self, day: date, at: time) -> datetime:
        """Hora de pared civil (sin zona) de un día y hora dados, tal como se persiste"""
        return datetime.combine(day, at.replace(tzinfo=None))

    def to_wall_time(self, value: DateTimeLike) -> datetime:
        """Hora de pared civil sin zona, formato de almacenamiento"""
        return self.localize(value).replace(tzinfo=None)


@lru_cache()
def get_civil_time_policy() -> CivilTimePolicy:
    """Política configurada en settings"""
    return CivilTimePolicy(get_settings().CIVIL_UTC_OFFSET_HOURS)
