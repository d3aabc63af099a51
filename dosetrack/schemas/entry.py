"""
Esquemas Pydantic para registros de dosis y exámenes
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from dosetrack.models.dose_record import DoseStatus
from dosetrack.models.medical_test import TestStatus
from dosetrack.services.status import EntryStatus


class DoseResponse(BaseModel):
    """Dosis con su estado derivado en el momento de la lectura"""
    id: int
    medication_id: int
    medication_name: Optional[str] = None
    scheduled_date_time: datetime
    actual_date_time: Optional[datetime] = None
    explicit_status: DoseStatus
    status: EntryStatus
    delay_minutes: Optional[int] = Field(None, description="Real - programada, negativo = adelantada")
    overdue_minutes: int = Field(0, description="Minutos transcurridos desde la hora programada")
    notes: Optional[str] = None


class DoseConfirm(BaseModel):
    """Confirmación de toma"""
    actual_date_time: Optional[datetime] = Field(None, description="Hora real de la toma; ahora si se omite")
    notes: Optional[str] = Field(None, max_length=1000)
    correlation_id: Optional[str] = Field(None, max_length=64)


class TestBase(BaseModel):
    """Base para esquemas de examen"""
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=100)
    test_date: datetime = Field(..., description="Fecha y hora civil del examen")
    location: Optional[str] = Field(None, max_length=255)


class TestCreate(TestBase):
    """Esquema para programar examen"""


class TestUpdate(BaseModel):
    """Esquema para editar examen"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    test_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    results: Optional[str] = None
    correlation_id: Optional[str] = Field(None, max_length=64)


class TestStatusUpdate(BaseModel):
    """Escritura explícita de estado de examen"""
    status: TestStatus
    correlation_id: Optional[str] = Field(None, max_length=64)


class TestResponse(TestBase):
    """Examen con su estado derivado"""
    id: int
    results: Optional[str] = None
    explicit_status: TestStatus
    status: EntryStatus
