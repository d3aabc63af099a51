"""
Endpoints de exámenes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional
from datetime import datetime

from dosetrack.core.clock import Clock, get_clock
from dosetrack.core.dependencies import get_correlation_id, get_entry_store
from dosetrack.core.exceptions import EntryNotFoundError
from dosetrack.models.medical_test import MedicalTest
from dosetrack.schemas.entry import TestCreate, TestResponse, TestStatusUpdate, TestUpdate
from dosetrack.services.entry_store import EntryStore
from dosetrack.services.status import derive_status

router = APIRouter()


def to_test_response(test: MedicalTest, now: datetime) -> TestResponse:
    """Construir respuesta con el estado derivado en `now`"""
    return TestResponse(
        id=test.id,
        name=test.name,
        type=test.type,
        test_date=test.test_date,
        location=test.location,
        results=test.results,
        explicit_status=test.explicit_status,
        status=derive_status(test, now)
    )


def _not_found():
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Examen no encontrado"
    )


@router.get("/", response_model=List[TestResponse])
async def list_tests(
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """
    Listar exámenes con su estado actual
    """
    now = clock.now()
    return [to_test_response(test, now) for test in store.list_test_entries()]


@router.post("/", response_model=TestResponse, status_code=status.HTTP_201_CREATED)
async def create_test(
        test_data: TestCreate,
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """
    Programar examen
    """
    test = store.create_test(test_data.dict())
    return to_test_response(test, clock.now())


@router.put("/{test_id}", response_model=TestResponse)
async def update_test(
        test_id: int,
        test_update: TestUpdate,
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock),
        correlation_id: Optional[str] = Depends(get_correlation_id)
):
    """
    Editar examen. Mover un examen completado o cancelado al futuro lo vuelve a programar.
    """
    changes = test_update.dict(exclude_unset=True, exclude={"correlation_id"})
    try:
        test = store.update_test(
            test_id,
            changes,
            correlation_id=test_update.correlation_id or correlation_id
        )
    except EntryNotFoundError:
        raise _not_found()
    return to_test_response(test, clock.now())


@router.post("/{test_id}/status", response_model=TestResponse)
async def set_test_status(
        test_id: int,
        status_update: TestStatusUpdate,
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock),
        correlation_id: Optional[str] = Depends(get_correlation_id)
):
    """
    Confirmar, cancelar o marcar como perdido un examen
    """
    try:
        test = store.set_test_status(
            test_id,
            status_update.status,
            correlation_id=status_update.correlation_id or correlation_id
        )
    except EntryNotFoundError:
        raise _not_found()
    return to_test_response(test, clock.now())


@router.delete("/{test_id}")
async def delete_test(
        test_id: int,
        store: EntryStore = Depends(get_entry_store)
):
    """
    Eliminar examen
    """
    try:
        store.delete_test(test_id)
    except EntryNotFoundError:
        raise _not_found()
    return {"message": "Examen eliminado exitosamente"}
