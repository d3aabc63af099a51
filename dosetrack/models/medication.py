"""
Modelo de Medicamento
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Boolean, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import date
import enum

from dosetrack.core.database import Base


class Frequency(str, enum.Enum):
    """Frecuencias de toma soportadas"""
    DAILY = "daily"
    TWICE_DAILY = "twice_daily"
    THREE_TIMES_DAILY = "three_times_daily"
    FOUR_TIMES_DAILY = "four_times_daily"
    EVERY_6H = "every_6h"
    EVERY_8H = "every_8h"
    EVERY_12H = "every_12h"


class Medication(Base):
    """Definición de un medicamento del paciente"""
    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)

    # Información básica
    name = Column(String(255), nullable=False, index=True)
    dosage = Column(String(100), nullable=False)  # ej: "500mg", "1 comprimido"
    instructions = Column(Text, nullable=True)

    # Esquema de tomas: entradas del expansor de horarios
    frequency = Column(Enum(Frequency), nullable=False)
    start_time = Column(String(5), nullable=False)  # Formato HH:MM (ej: "08:30")

    # Vigencia
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Metadatos
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relaciones
    dose_records = relationship(
        "DoseRecord",
        back_populates="medication",
        cascade="all, delete-orphan",
        order_by="DoseRecord.scheduled_date_time",
    )

    def __repr__(self):
        return f"<Medication(id={self.id}, name='{self.name}', frequency='{self.frequency}')>"

    @property
    def full_name(self) -> str:
        """Nombre completo del medicamento"""
        return f"{self.name} {self.dosage}"

    def is_scheduled_on(self, day: date) -> bool:
        """Verificar si el medicamento tiene tomas en una fecha"""
        if not self.is_active:
            return False
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date
