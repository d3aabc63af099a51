"""
Endpoints de registros de dosis
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional
from datetime import datetime

from dosetrack.core.clock import Clock, get_clock
from dosetrack.core.dependencies import get_correlation_id, get_entry_store, get_medication_service
from dosetrack.core.exceptions import DoseAlreadyConfirmedError, EntryNotFoundError
from dosetrack.models.dose_record import DoseRecord
from dosetrack.schemas.entry import DoseConfirm, DoseResponse
from dosetrack.services.entry_store import EntryStore
from dosetrack.services.medication_service import MedicationService
from dosetrack.services.status import EntryStatus, derive_status, overdue_minutes

router = APIRouter()


def to_dose_response(dose: DoseRecord, now: datetime, derived: Optional[EntryStatus] = None) -> DoseResponse:
    """Construir respuesta con el estado derivado en `now`"""
    derived = derived or derive_status(dose, now)
    return DoseResponse(
        id=dose.id,
        medication_id=dose.medication_id,
        medication_name=dose.medication.name if dose.medication else None,
        scheduled_date_time=dose.scheduled_date_time,
        actual_date_time=dose.actual_date_time,
        explicit_status=dose.explicit_status,
        status=derived,
        delay_minutes=dose.delay_minutes,
        overdue_minutes=overdue_minutes(dose, now) if derived == EntryStatus.OVERDUE else 0,
        notes=dose.notes
    )


@router.get("/", response_model=List[DoseResponse])
async def list_doses(
        medication_id: Optional[int] = Query(None, description="Filtrar por medicamento"),
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """
    Listar registros de dosis con su estado actual
    """
    now = clock.now()
    return [to_dose_response(dose, now) for dose in store.list_dose_entries(medication_id)]


@router.get("/today", response_model=List[DoseResponse])
async def list_todays_doses(
        medication_service: MedicationService = Depends(get_medication_service),
        clock: Clock = Depends(get_clock)
):
    """
    Dosis de hoy (pendientes, atrasadas y tomadas)
    """
    now = clock.now()
    return [to_dose_response(dose, now, derived) for dose, derived in medication_service.todays_doses()]


@router.post("/{dose_id}/confirm", response_model=DoseResponse)
async def confirm_dose(
        dose_id: int,
        confirmation: DoseConfirm,
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock),
        correlation_id: Optional[str] = Depends(get_correlation_id)
):
    """
    Confirmar la toma de una dosis
    """
    now = clock.now()
    try:
        dose = store.confirm_dose(
            dose_id,
            confirmation.actual_date_time or now,
            correlation_id=confirmation.correlation_id or correlation_id,
            notes=confirmation.notes
        )
    except EntryNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dosis no encontrada"
        )
    except DoseAlreadyConfirmedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    return to_dose_response(dose, now)


@router.post("/{dose_id}/miss", response_model=DoseResponse)
async def mark_dose_missed(
        dose_id: int,
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock),
        correlation_id: Optional[str] = Depends(get_correlation_id)
):
    """
    Marcar una dosis como perdida
    """
    try:
        dose = store.mark_dose_missed(dose_id, correlation_id=correlation_id)
    except EntryNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dosis no encontrada"
        )
    except DoseAlreadyConfirmedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    return to_dose_response(dose, clock.now())
