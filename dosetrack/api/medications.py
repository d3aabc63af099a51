"""
Endpoints de medicamentos
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List

from dosetrack.core.dependencies import get_medication_service
from dosetrack.core.exceptions import InvalidFrequencyError, InvalidScheduleError
from dosetrack.models.medication import Medication
from dosetrack.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    MedicationResponse,
    MedicationSchedule
)
from dosetrack.services.medication_service import MedicationService

router = APIRouter()


def _to_response(medication: Medication, medication_service: MedicationService) -> MedicationResponse:
    response = MedicationResponse.model_validate(medication)
    response.schedule = medication_service.get_schedule(medication)
    return response


def _get_or_404(medication_service: MedicationService, medication_id: int) -> Medication:
    medication = medication_service.get_medication_by_id(medication_id)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return medication


@router.get("/", response_model=List[MedicationResponse])
async def list_medications(
        active_only: bool = Query(False, description="Solo medicamentos activos"),
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Listar medicamentos del paciente
    """
    medications = medication_service.get_medications(active_only=active_only)
    return [_to_response(m, medication_service) for m in medications]


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
        medication_data: MedicationCreate,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Crear medicamento y generar sus dosis de hoy
    """
    try:
        medication = medication_service.create_medication(medication_data)
    except (InvalidFrequencyError, InvalidScheduleError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return _to_response(medication, medication_service)


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
        medication_id: int,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Obtener un medicamento
    """
    medication = _get_or_404(medication_service, medication_id)
    return _to_response(medication, medication_service)


@router.get("/{medication_id}/schedule", response_model=MedicationSchedule)
async def get_medication_schedule(
        medication_id: int,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Horarios diarios del medicamento
    """
    medication = _get_or_404(medication_service, medication_id)
    return MedicationSchedule(
        medication_id=medication.id,
        frequency=medication.frequency,
        start_time=medication.start_time,
        times=medication_service.get_schedule(medication)
    )


@router.put("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
        medication_id: int,
        medication_update: MedicationUpdate,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Actualizar medicamento
    """
    _get_or_404(medication_service, medication_id)

    try:
        medication = medication_service.update_medication(
            medication_id=medication_id,
            medication_update=medication_update
        )
    except (InvalidFrequencyError, InvalidScheduleError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return _to_response(medication, medication_service)


@router.post("/{medication_id}/deactivate")
async def deactivate_medication(
        medication_id: int,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Desactivar medicamento
    """
    if not medication_service.deactivate_medication(medication_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return {"message": "Medicamento desactivado exitosamente"}


@router.post("/{medication_id}/reactivate")
async def reactivate_medication(
        medication_id: int,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Reactivar medicamento y recrear sus dosis de hoy
    """
    if not medication_service.reactivate_medication(medication_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return {"message": "Medicamento reactivado exitosamente"}


@router.delete("/{medication_id}")
async def delete_medication(
        medication_id: int,
        medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Eliminar medicamento y su historial de dosis
    """
    if not medication_service.delete_medication(medication_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return {"message": "Medicamento eliminado exitosamente"}
