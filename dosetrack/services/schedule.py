"""
Expansión de la frecuencia de un medicamento en horarios diarios
"""
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple, Union

from dosetrack.core.civil_time import CivilTimePolicy, get_civil_time_policy
from dosetrack.core.exceptions import InvalidFrequencyError, InvalidScheduleError
from dosetrack.models.medication import Frequency

# Desplazamientos en horas desde la hora de inicio, módulo 24h
FREQUENCY_OFFSETS: Dict[Frequency, Tuple[int, ...]] = {
    Frequency.DAILY: (),
    Frequency.TWICE_DAILY: (12,),
    Frequency.THREE_TIMES_DAILY: (8, 16),
    Frequency.FOUR_TIMES_DAILY: (6, 12, 18),
    Frequency.EVERY_6H: (6, 12, 18),
    Frequency.EVERY_8H: (8, 16),
    Frequency.EVERY_12H: (12,),
}

_missing = set(Frequency) - set(FREQUENCY_OFFSETS)
if _missing:
    raise RuntimeError(f"Frecuencias sin desplazamientos definidos: {sorted(f.value for f in _missing)}")


def parse_frequency(frequency: Union[Frequency, str]) -> Frequency:
    """Convertir a Frequency, sin valor por defecto"""
    if isinstance(frequency, Frequency):
        return frequency
    try:
        return Frequency(frequency)
    except ValueError:
        raise InvalidFrequencyError(frequency)


def parse_start_time(start_time: Union[time, str]) -> time:
    """Validar hora de inicio (datetime.time o "HH:MM")"""
    if isinstance(start_time, time):
        return start_time.replace(second=0, microsecond=0, tzinfo=None)
    try:
        parsed = datetime.strptime(str(start_time).strip(), "%H:%M")
    except ValueError:
        raise InvalidScheduleError(start_time, "hora de inicio inválida, se espera HH:MM")
    return parsed.time()


def expand_schedule(start_time: Union[time, str], frequency: Union[Frequency, str]) -> List[time]:
    """
    Horarios de un día civil para una frecuencia.

    La lista empieza por la hora de inicio y sigue el orden de los
    desplazamientos (ej: 20:00 dos veces al día -> [20:00, 08:00]).
    """
    frequency = parse_frequency(frequency)
    start = parse_start_time(start_time)

    offsets = FREQUENCY_OFFSETS.get(frequency)
    if offsets is None:
        raise InvalidFrequencyError(frequency)

    times = [start]
    for offset in offsets:
        times.append(start.replace(hour=(start.hour + offset) % 24))
    return times


def format_times(times: List[time]) -> List[str]:
    return [t.strftime("%H:%M") for t in times]


def schedule_for_day(
        start_time: Union[time, str],
        frequency: Union[Frequency, str],
        day: date,
        policy: Optional[CivilTimePolicy] = None
) -> List[datetime]:
    """Horas de pared civil de todas las tomas de un día, en orden cronológico"""
    policy = policy or get_civil_time_policy()
    times = sorted(expand_schedule(start_time, frequency))
    return [policy.combine(day, t) for t in times]
