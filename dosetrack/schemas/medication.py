"""
Esquemas Pydantic para Medicamentos
"""
from pydantic import BaseModel, validator, Field
from typing import Optional, List
from datetime import date, datetime

from dosetrack.models.medication import Frequency


def _validate_time(v: str) -> str:
    try:
        datetime.strptime(v, "%H:%M")
    except ValueError:
        raise ValueError('La hora de inicio debe estar en formato HH:MM')
    return v


# Esquemas base
class MedicationBase(BaseModel):
    """Base para esquemas de medicamento"""
    name: str = Field(..., min_length=1, max_length=255, description="Nombre del medicamento")
    dosage: str = Field(..., min_length=1, max_length=100, description="Dosis (ej: 500mg, 1 comprimido)")
    frequency: Frequency = Field(..., description="Frecuencia de tomas")
    start_time: str = Field(..., description="Hora de la primera toma (HH:MM)")
    start_date: date = Field(..., description="Fecha de inicio")
    end_date: Optional[date] = Field(None, description="Fecha de fin (opcional)")
    instructions: Optional[str] = Field(None, max_length=1000, description="Instrucciones de uso")

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('El nombre del medicamento es requerido')
        return v.strip()

    @validator('dosage')
    def validate_dosage(cls, v):
        if not v or not v.strip():
            raise ValueError('La dosis es requerida')
        return v.strip()

    @validator('start_time')
    def validate_start_time(cls, v):
        return _validate_time(v)

    @validator('end_date')
    def validate_end_date(cls, v, values):
        if v is not None and 'start_date' in values and v < values['start_date']:
            raise ValueError('La fecha de fin no puede ser anterior a la fecha de inicio')
        return v


class MedicationCreate(MedicationBase):
    """Esquema para crear medicamento"""
    is_active: bool = True


class MedicationUpdate(BaseModel):
    """Esquema para actualizar medicamento"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[Frequency] = None
    start_time: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructions: Optional[str] = Field(None, max_length=1000)

    @validator('name', 'dosage', 'frequency', 'start_time', 'start_date')
    def reject_null(cls, v):
        # end_date e instructions sí se pueden borrar con null
        if v is None:
            raise ValueError('El campo es requerido y no puede ser nulo')
        return v

    @validator('name', 'dosage')
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError('El valor no puede estar vacío')
        return v.strip()

    @validator('start_time')
    def validate_start_time(cls, v):
        return _validate_time(v)

    @validator('end_date')
    def validate_end_date(cls, v, values):
        if v is not None and values.get('start_date') and v < values['start_date']:
            raise ValueError('La fecha de fin no puede ser anterior a la fecha de inicio')
        return v


class MedicationResponse(MedicationBase):
    """Esquema de respuesta de medicamento"""
    id: int
    is_active: bool
    schedule: List[str] = Field(default_factory=list, description="Horarios diarios (HH:MM)")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MedicationSchedule(BaseModel):
    """Horarios diarios de un medicamento"""
    medication_id: int
    frequency: Frequency
    start_time: str
    times: List[str]
