"""
Almacén de registros de dosis y exámenes

Único punto de escritura de estados explícitos. Cada escritura deja una
transición en la auditoría con los estados derivados antes y después.
"""
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Union
import logging
import time

from dosetrack.core.civil_time import CivilTimePolicy, DateTimeLike, get_civil_time_policy
from dosetrack.core.clock import Clock, SystemClock
from dosetrack.core.exceptions import DoseAlreadyConfirmedError, EntryNotFoundError
from dosetrack.models.dose_record import DoseRecord, DoseStatus
from dosetrack.models.medical_test import MedicalTest, TestStatus
from dosetrack.services.audit_service import AuditRecorder
from dosetrack.services.status import derive_status, rearm_on_reschedule

logger = logging.getLogger(__name__)


class EntryStore:
    """Lecturas y escrituras de registros de dosis y exámenes"""

    def __init__(
            self,
            db: Session,
            clock: Optional[Clock] = None,
            recorder: Optional[AuditRecorder] = None,
            policy: Optional[CivilTimePolicy] = None
    ):
        self.db = db
        self.clock = clock or SystemClock()
        self.recorder = recorder or AuditRecorder(db)
        self.policy = policy or get_civil_time_policy()

    # ==== LECTURAS ====

    def list_dose_entries(self, medication_id: Optional[int] = None) -> List[DoseRecord]:
        """Obtener registros de dosis, opcionalmente de un medicamento"""
        query = self.db.query(DoseRecord)
        if medication_id is not None:
            query = query.filter(DoseRecord.medication_id == medication_id)
        return query.order_by(DoseRecord.scheduled_date_time, DoseRecord.id).all()

    def list_test_entries(self) -> List[MedicalTest]:
        """Obtener exámenes ordenados por fecha"""
        return self.db.query(MedicalTest).order_by(MedicalTest.test_date, MedicalTest.id).all()

    def get_dose(self, dose_id: int) -> DoseRecord:
        # populate_existing: relee la fila aunque la sesión ya tenga una copia
        dose = self.db.query(DoseRecord).populate_existing().filter(DoseRecord.id == dose_id).first()
        if not dose:
            raise EntryNotFoundError("dose", dose_id)
        return dose

    def get_test(self, test_id: int) -> MedicalTest:
        test = self.db.query(MedicalTest).filter(MedicalTest.id == test_id).first()
        if not test:
            raise EntryNotFoundError("test", test_id)
        return test

    # ==== DOSIS ====

    def confirm_dose(
            self,
            dose_id: int,
            actual_date_time: DateTimeLike,
            correlation_id: Optional[str] = None,
            notes: Optional[str] = None
    ) -> DoseRecord:
        """Registrar la toma de una dosis (una sola vez)"""
        started = time.perf_counter()
        dose = self.get_dose(dose_id)

        if dose.is_confirmed or dose.explicit_status == DoseStatus.TAKEN:
            raise DoseAlreadyConfirmedError(dose_id)

        actual = self.policy.to_wall_time(actual_date_time)

        def apply():
            values = {
                DoseRecord.actual_date_time: actual,
                DoseRecord.explicit_status: DoseStatus.TAKEN,
            }
            if notes:
                values[DoseRecord.notes] = notes

            # UPDATE condicionado: otra sesión pudo confirmar entre la lectura y la escritura
            updated = self.db.query(DoseRecord).filter(
                DoseRecord.id == dose_id,
                DoseRecord.actual_date_time.is_(None),
                DoseRecord.explicit_status != DoseStatus.TAKEN,
            ).update(values, synchronize_session="fetch")
            if updated == 0:
                raise DoseAlreadyConfirmedError(dose_id)

        self._write("dose", dose, apply, correlation_id, started)
        logger.info(f"Dosis {dose_id} confirmada con {dose.delay_minutes} min de diferencia")
        return dose

    def mark_dose_missed(self, dose_id: int, correlation_id: Optional[str] = None) -> DoseRecord:
        """Marcar explícitamente una dosis como perdida"""
        started = time.perf_counter()
        dose = self.get_dose(dose_id)

        if dose.is_confirmed:
            raise DoseAlreadyConfirmedError(dose_id)

        def apply():
            dose.explicit_status = DoseStatus.MISSED

        self._write("dose", dose, apply, correlation_id, started)
        logger.info(f"Dosis {dose_id} marcada como perdida")
        return dose

    # ==== EXÁMENES ====

    def create_test(self, data: Dict[str, Any]) -> MedicalTest:
        """Programar un nuevo examen"""
        test = MedicalTest(
            name=data["name"],
            type=data["type"],
            test_date=self.policy.to_wall_time(data["test_date"]),
            location=data.get("location"),
            results=data.get("results"),
            explicit_status=TestStatus.SCHEDULED,
        )
        try:
            self.db.add(test)
            self.db.commit()
            self.db.refresh(test)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creando examen: {e}")
            raise

        logger.info(f"Examen creado: {test.name} (ID: {test.id})")
        return test

    def set_test_status(
            self,
            test_id: int,
            status: Union[TestStatus, str],
            correlation_id: Optional[str] = None
    ) -> MedicalTest:
        """Escribir el estado explícito de un examen (completado, cancelado...)"""
        started = time.perf_counter()
        status = TestStatus(status)
        test = self.get_test(test_id)

        def apply():
            test.explicit_status = status

        self._write("test", test, apply, correlation_id, started)
        logger.info(f"Examen {test_id} con estado explícito {status.value}")
        return test

    def reschedule_test(
            self,
            test_id: int,
            new_date: DateTimeLike,
            correlation_id: Optional[str] = None
    ) -> MedicalTest:
        """Cambiar la fecha de un examen, rearmando su estado si pasa al futuro"""
        return self.update_test(test_id, {"test_date": new_date}, correlation_id=correlation_id)

    def update_test(
            self,
            test_id: int,
            changes: Dict[str, Any],
            correlation_id: Optional[str] = None
    ) -> MedicalTest:
        """Editar un examen. La fecha pasa por la regla de rearmado."""
        started = time.perf_counter()
        test = self.get_test(test_id)
        now = self.clock.now()

        def apply():
            for field in ("name", "type", "location", "results"):
                if changes.get(field) is not None:
                    setattr(test, field, changes[field])

            if changes.get("test_date") is not None:
                new_date = self.policy.to_wall_time(changes["test_date"])
                test.explicit_status = rearm_on_reschedule(test.explicit_status, new_date, now, self.policy)
                test.test_date = new_date

        self._write("test", test, apply, correlation_id, started, only_on_change=True)
        logger.info(f"Examen {test_id} actualizado")
        return test

    def delete_test(self, test_id: int) -> None:
        test = self.get_test(test_id)
        try:
            self.db.delete(test)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error eliminando examen {test_id}: {e}")
            raise
        logger.info(f"Examen eliminado: {test_id}")

    # ==== INTERNOS ====

    def _write(
            self,
            entity_type: str,
            entry,
            apply,
            correlation_id: Optional[str],
            started: float,
            only_on_change: bool = False
    ):
        """Aplicar un cambio, auditar la transición y confirmar la transacción"""
        now = self.clock.now()
        before = derive_status(entry, now, self.policy)
        try:
            apply()
            after = derive_status(entry, now, self.policy)
            if before != after or not only_on_change:
                self.recorder.record_transition(
                    entity_type,
                    entry.id,
                    before,
                    after,
                    correlation_id=correlation_id,
                    processing_time_ms=round((time.perf_counter() - started) * 1000, 3),
                )
            self.db.commit()
            self.db.refresh(entry)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error escribiendo {entity_type} {entry.id}: {e}")
            raise
