"""
Dependencias globales de la aplicación
"""
from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from dosetrack.core.clock import Clock, get_clock
from dosetrack.core.config import get_settings
from dosetrack.core.database import get_db
from dosetrack.core.exceptions import InvalidPeriodError
from dosetrack.services.entry_store import EntryStore
from dosetrack.services.medication_service import MedicationService
from dosetrack.services.period import WindowSpec, parse_period

settings = get_settings()


def get_entry_store(
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock)
) -> EntryStore:
    """
    Almacén de registros ligado a la sesión de la request
    """
    return EntryStore(db, clock=clock)


def get_medication_service(
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock)
) -> MedicationService:
    """
    Servicio de medicamentos ligado a la sesión de la request
    """
    return MedicationService(db, clock=clock)


class ReportPeriodParams:
    """
    Parámetros de período de reporte (7d, 30d, 90d o custom con fechas)
    """

    def __init__(
            self,
            period: str,
            start_date: Optional[str] = None,
            end_date: Optional[str] = None,
            medication_id: Optional[int] = None
    ):
        self.period = period
        self.medication_id = medication_id

        try:
            self.window: WindowSpec = parse_period(period, start_date, end_date)
        except InvalidPeriodError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )


def get_report_period_params(
        period: str = Query(settings.DEFAULT_REPORT_PERIOD, description="Período: 7d, 30d, 90d, custom"),
        start_date: Optional[str] = Query(None, description="Inicio (YYYY-MM-DD) para period=custom"),
        end_date: Optional[str] = Query(None, description="Fin (YYYY-MM-DD) para period=custom"),
        medication_id: Optional[int] = Query(None, description="Filtrar por medicamento")
) -> ReportPeriodParams:
    """
    Parámetros de período de reporte
    """
    return ReportPeriodParams(
        period=period,
        start_date=start_date,
        end_date=end_date,
        medication_id=medication_id
    )


def get_correlation_id(
        x_correlation_id: Optional[str] = Header(None, max_length=64)
) -> Optional[str]:
    """
    ID de correlación enviado por el cliente, si existe
    """
    return x_correlation_id
