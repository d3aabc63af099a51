"""
Esquemas Pydantic para reportes de adherencia
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date


class AdherenceStats(BaseModel):
    """Resumen de adherencia de un conjunto de dosis"""
    total: int = 0
    taken: int = 0
    missed: int = Field(0, description="Dosis perdidas, sin contar las del día actual")
    rate: int = Field(0, ge=0, le=100, description="Porcentaje de dosis tomadas")
    early: int = 0
    on_time: int = 0
    delayed: int = 0
    average_delay: float = Field(0.0, description="Promedio de minutos de atraso de las dosis atrasadas")
    skipped: int = Field(0, description="Registros descartados por horario inválido")


class WeeklyTrend(BaseModel):
    """Adherencia por día de la semana (domingo=0 .. sábado=6)"""
    weekly_data: List[int] = Field(default_factory=lambda: [0] * 7, min_length=7, max_length=7)
    overall_percentage: int = 0
    trend: int = 0


class MedicationAdherence(BaseModel):
    """Adherencia de un medicamento en el período"""
    medication_id: int
    medication_name: Optional[str] = None
    dosage: Optional[str] = None
    stats: AdherenceStats


class ReportPeriod(BaseModel):
    """Período efectivo de un reporte"""
    period: str
    start_date: date
    end_date: date


class AdherenceReport(BaseModel):
    period: ReportPeriod
    stats: AdherenceStats


class WeeklyTrendReport(BaseModel):
    period: ReportPeriod
    trend: WeeklyTrend


class MedicationAdherenceReport(BaseModel):
    period: ReportPeriod
    medications: List[MedicationAdherence]
