"""
Servicio de gestión de medicamentos y generación de dosis diarias
"""
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional, Tuple
from datetime import date, datetime, time, timedelta
import logging

from dosetrack.core.civil_time import CivilTimePolicy, get_civil_time_policy
from dosetrack.core.clock import Clock, SystemClock
from dosetrack.core.exceptions import InvalidScheduleError
from dosetrack.models.medication import Medication
from dosetrack.models.dose_record import DoseRecord, DoseStatus
from dosetrack.schemas.medication import MedicationCreate, MedicationUpdate
from dosetrack.services.schedule import expand_schedule, format_times, schedule_for_day
from dosetrack.services.status import EntryStatus, derive_status

logger = logging.getLogger(__name__)

# Cambios que invalidan los horarios ya generados
SCHEDULE_FIELDS = ("frequency", "start_time")


class MedicationService:
    """Servicio para gestión de medicamentos"""

    def __init__(
            self,
            db: Session,
            clock: Optional[Clock] = None,
            policy: Optional[CivilTimePolicy] = None
    ):
        self.db = db
        self.clock = clock or SystemClock()
        self.policy = policy or get_civil_time_policy()

    def today(self) -> date:
        return self.policy.today(self.clock.now())

    def get_medications(self, active_only: bool = False) -> List[Medication]:
        """Obtener medicamentos"""
        query = self.db.query(Medication)
        if active_only:
            query = query.filter(Medication.is_active.is_(True))
        return query.order_by(Medication.name).all()

    def get_medication_by_id(self, medication_id: int) -> Optional[Medication]:
        """Obtener medicamento por ID"""
        return self.db.query(Medication).filter(Medication.id == medication_id).first()

    def get_schedule(self, medication: Medication) -> List[str]:
        """Horarios diarios (HH:MM) en el orden de expansión"""
        return format_times(expand_schedule(medication.start_time, medication.frequency))

    def create_medication(self, medication_data: MedicationCreate) -> Medication:
        """Crear medicamento y generar las dosis de hoy"""

        # Falla antes de persistir si la frecuencia no es válida
        expand_schedule(medication_data.start_time, medication_data.frequency)

        db_medication = Medication(
            name=medication_data.name,
            dosage=medication_data.dosage,
            frequency=medication_data.frequency,
            start_time=medication_data.start_time,
            start_date=medication_data.start_date,
            end_date=medication_data.end_date,
            instructions=medication_data.instructions,
            is_active=medication_data.is_active,
        )

        try:
            self.db.add(db_medication)
            self.db.flush()
            created = self.generate_daily_entries(db_medication, self.today())
            self.db.commit()
            self.db.refresh(db_medication)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creando medicamento: {e}")
            raise

        logger.info(
            f"Medicamento creado: {db_medication.full_name} (ID: {db_medication.id}), "
            f"{len(created)} dosis generadas para hoy"
        )
        return db_medication

    def update_medication(
            self,
            medication_id: int,
            medication_update: MedicationUpdate
    ) -> Optional[Medication]:
        """Actualizar medicamento. Si cambia el esquema, se regeneran las dosis pendientes de hoy."""

        medication = self.get_medication_by_id(medication_id)
        if not medication:
            return None

        update_data = medication_update.dict(exclude_unset=True)
        new_frequency = update_data.get("frequency", medication.frequency)
        new_start_time = update_data.get("start_time", medication.start_time)
        expand_schedule(new_start_time, new_frequency)

        # La actualización puede traer solo una de las dos fechas
        new_start_date = update_data.get("start_date", medication.start_date)
        new_end_date = update_data.get("end_date", medication.end_date)
        if new_end_date is not None and new_end_date < new_start_date:
            raise InvalidScheduleError(
                new_end_date, "la fecha de fin no puede ser anterior a la fecha de inicio"
            )

        schedule_changed = any(
            field in update_data and update_data[field] != getattr(medication, field)
            for field in SCHEDULE_FIELDS
        )

        try:
            for field, value in update_data.items():
                if hasattr(medication, field):
                    setattr(medication, field, value)

            if schedule_changed:
                removed = self._remove_pending_entries(medication, self.today())
                created = self.generate_daily_entries(medication, self.today())
                logger.info(
                    f"Esquema de {medication.name} modificado: "
                    f"{removed} dosis pendientes eliminadas, {len(created)} generadas"
                )

            self.db.commit()
            self.db.refresh(medication)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error actualizando medicamento {medication_id}: {e}")
            raise

        logger.info(f"Medicamento actualizado: {medication.full_name} (ID: {medication.id})")
        return medication

    def deactivate_medication(self, medication_id: int) -> bool:
        """Desactivar medicamento (las dosis tomadas se conservan)"""

        medication = self.get_medication_by_id(medication_id)
        if not medication:
            return False

        medication.is_active = False
        self.db.commit()

        logger.info(f"Medicamento desactivado: {medication.full_name} (ID: {medication.id})")
        return True

    def reactivate_medication(self, medication_id: int) -> bool:
        """Reactivar medicamento y recrear las dosis de hoy"""

        medication = self.get_medication_by_id(medication_id)
        if not medication:
            return False

        try:
            medication.is_active = True
            created = self.generate_daily_entries(medication, self.today())
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reactivando medicamento {medication_id}: {e}")
            raise

        logger.info(
            f"Medicamento reactivado: {medication.full_name} (ID: {medication.id}), "
            f"{len(created)} dosis generadas para hoy"
        )
        return True

    def delete_medication(self, medication_id: int) -> bool:
        """Eliminar medicamento y, en cascada, sus dosis"""

        medication = self.get_medication_by_id(medication_id)
        if not medication:
            return False

        full_name = medication.full_name
        self.db.delete(medication)
        self.db.commit()

        logger.info(f"Medicamento eliminado: {full_name} (ID: {medication_id})")
        return True

    def generate_daily_entries(self, medication: Medication, day: date) -> List[DoseRecord]:
        """
        Crear las dosis de un día que aún no existan.

        Idempotente: un horario ya presente para ese día no se duplica.
        No hace commit.
        """
        if not medication.is_scheduled_on(day):
            return []

        existing = {
            dose.scheduled_date_time
            for dose in self._entries_on(medication.id, day)
        }

        created = []
        for scheduled in schedule_for_day(medication.start_time, medication.frequency, day, self.policy):
            if scheduled in existing:
                continue
            dose = DoseRecord(
                medication_id=medication.id,
                scheduled_date_time=scheduled,
                explicit_status=DoseStatus.PENDING,
            )
            self.db.add(dose)
            created.append(dose)

        self.db.flush()
        return created

    def generate_entries_for_all(self, day: Optional[date] = None) -> int:
        """Generar las dosis de un día para todos los medicamentos activos"""
        day = day or self.today()
        total = 0
        try:
            for medication in self.get_medications(active_only=True):
                total += len(self.generate_daily_entries(medication, day))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error generando dosis del día {day}: {e}")
            raise

        if total:
            logger.info(f"{total} dosis generadas para {day}")
        return total

    def todays_doses(self) -> List[Tuple[DoseRecord, EntryStatus]]:
        """
        Dosis de hoy con su estado derivado.

        Antes de leer se generan las dosis del día que falten para los
        medicamentos activos. Las dosis ya tomadas se muestran siempre; las
        pendientes o atrasadas solo si el medicamento sigue activo.
        """
        now = self.clock.now()
        day = self.policy.today(now)
        self.generate_entries_for_all(day)

        start, end = self._day_bounds(day)

        doses = self.db.query(DoseRecord).options(
            joinedload(DoseRecord.medication)
        ).filter(
            DoseRecord.scheduled_date_time >= start,
            DoseRecord.scheduled_date_time < end
        ).order_by(DoseRecord.scheduled_date_time, DoseRecord.id).all()

        result = []
        for dose in doses:
            status = derive_status(dose, now, self.policy)
            if status != EntryStatus.TAKEN and not dose.medication.is_active:
                continue
            result.append((dose, status))
        return result

    # ==== INTERNOS ====

    def _day_bounds(self, day: date) -> Tuple[datetime, datetime]:
        start = self.policy.combine(day, time.min)
        return start, start + timedelta(days=1)

    def _entries_on(self, medication_id: int, day: date) -> List[DoseRecord]:
        start, end = self._day_bounds(day)
        return self.db.query(DoseRecord).filter(
            DoseRecord.medication_id == medication_id,
            DoseRecord.scheduled_date_time >= start,
            DoseRecord.scheduled_date_time < end
        ).all()

    def _remove_pending_entries(self, medication: Medication, day: date) -> int:
        """Eliminar las dosis del día que no tienen confirmación ni estado terminal"""
        removed = 0
        for dose in self._entries_on(medication.id, day):
            if dose.actual_date_time is None and dose.explicit_status == DoseStatus.PENDING:
                self.db.delete(dose)
                removed += 1
        self.db.flush()
        return removed
