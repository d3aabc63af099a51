"""
Tendencia semanal de adherencia
"""
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from dosetrack.core.civil_time import CivilTimePolicy, get_civil_time_policy
from dosetrack.schemas.report import WeeklyTrend
from dosetrack.services.adherence import percentage, round_half_up
from dosetrack.services.period import CustomRange, WindowSpec, dated_entries, filter_by_period
from dosetrack.services.status import is_taken


def sunday_based_weekday(day: date) -> int:
    """Día de la semana con domingo=0 .. sábado=6"""
    return (day.weekday() + 1) % 7


def most_recent_weekday(today: date, weekday: int) -> date:
    """Fecha más reciente (hoy inclusive) que cae en el día de la semana dado"""
    days_back = (sunday_based_weekday(today) - weekday) % 7
    return today - timedelta(days=days_back)


def half_week_trend(weekly_data: List[int]) -> int:
    """Promedio de jueves-sábado menos promedio de domingo-martes"""
    first_half = weekly_data[0:3]
    second_half = weekly_data[4:7]
    if not first_half or not second_half:
        return 0
    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)
    return round_half_up(second_avg - first_avg)


def _count_by_day(dated) -> Dict[date, List[int]]:
    counts = {}
    for entry, day in dated:
        taken_total = counts.setdefault(day, [0, 0])
        taken_total[1] += 1
        if is_taken(entry):
            taken_total[0] += 1
    return counts


def compute_weekly_trend(
        entries: Iterable[Any],
        window: WindowSpec,
        now: datetime,
        policy: Optional[CivilTimePolicy] = None
) -> WeeklyTrend:
    """
    Adherencia por día de la semana, porcentaje global y tendencia.

    Para un período móvil cada posición corresponde a la fecha más reciente
    con ese día de la semana. Para un rango personalizado no hay contexto
    semanal y las siete posiciones repiten el porcentaje del rango.
    """
    policy = policy or get_civil_time_policy()
    selected = filter_by_period(entries, window, now, policy)
    if not selected:
        return WeeklyTrend()

    dated, _ = dated_entries(selected, policy)
    counts = _count_by_day(dated)

    if isinstance(window, CustomRange):
        if window.is_single_day:
            taken, total = counts.get(window.start, [0, 0])
        else:
            taken = total = 0
            for day in window.days():
                day_taken, day_total = counts.get(day, [0, 0])
                taken += day_taken
                total += day_total
        rate = percentage(taken, total)
        return WeeklyTrend(weekly_data=[rate] * 7, overall_percentage=rate, trend=0)

    today = policy.today(now)
    weekly_data = []
    for weekday in range(7):
        taken, total = counts.get(most_recent_weekday(today, weekday), [0, 0])
        weekly_data.append(percentage(taken, total))

    overall = percentage(sum(1 for entry, _ in dated if is_taken(entry)), len(dated))

    return WeeklyTrend(
        weekly_data=weekly_data,
        overall_percentage=overall,
        trend=half_week_trend(weekly_data),
    )
