"""
Fuente de "ahora" inyectable
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Interfaz de reloj. Siempre devuelve instantes con zona horaria."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Reloj del sistema en UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Reloj detenido en un instante, para pruebas y reportes reproducibles"""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock requiere un datetime con zona horaria")
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def __repr__(self):
        return f"<FixedClock({self.instant.isoformat()})>"


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency de FastAPI para obtener el reloj"""
    return _system_clock
