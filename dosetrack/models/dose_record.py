"""
Modelo de Registro de Dosis
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from typing import Optional
import enum

from dosetrack.core.database import Base


class DoseStatus(str, enum.Enum):
    """Estados explícitos de dosis"""
    TAKEN = "taken"
    MISSED = "missed"
    PENDING = "pending"


class DoseRecord(Base):
    """Una toma programada de un medicamento"""
    __tablename__ = "dose_records"

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False, index=True)

    # Hora de pared civil, inmutable una vez generada
    scheduled_date_time = Column(DateTime, nullable=False, index=True)
    # Se escribe una sola vez al confirmar
    actual_date_time = Column(DateTime, nullable=True)

    explicit_status = Column(Enum(DoseStatus), default=DoseStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relaciones
    medication = relationship("Medication", back_populates="dose_records")

    def __repr__(self):
        return (
            f"<DoseRecord(id={self.id}, medication_id={self.medication_id}, "
            f"scheduled='{self.scheduled_date_time}', status='{self.explicit_status}')>"
        )

    @property
    def delay_minutes(self) -> Optional[int]:
        """Minutos entre la hora real y la programada (negativo = adelantada)"""
        from dosetrack.services.status import compute_delay_minutes

        if self.actual_date_time is None or self.scheduled_date_time is None:
            return None
        return compute_delay_minutes(self.scheduled_date_time, self.actual_date_time)

    @property
    def is_confirmed(self) -> bool:
        return self.actual_date_time is not None
