from datetime import date, datetime

import pytest

from conftest import civil

from dosetrack.core.exceptions import InvalidFrequencyError, InvalidScheduleError
from dosetrack.models.dose_record import DoseRecord
from dosetrack.models.medication import Frequency, Medication
from dosetrack.schemas.medication import MedicationCreate, MedicationUpdate
from dosetrack.services.entry_store import EntryStore
from dosetrack.services.medication_service import MedicationService
from dosetrack.services.status import EntryStatus


@pytest.fixture
def service(db, clock, policy):
    return MedicationService(db, clock, policy)


def new_medication(**overrides):
    data = dict(
        name="Metformina",
        dosage="500mg",
        frequency="twice_daily",
        start_time="08:00",
        start_date=date(2025, 7, 1),
    )
    data.update(overrides)
    return MedicationCreate(**data)


def scheduled_times(db, medication_id):
    doses = db.query(DoseRecord).filter(DoseRecord.medication_id == medication_id).all()
    return sorted(dose.scheduled_date_time for dose in doses)


def test_create_generates_todays_doses(service, db):
    medication = service.create_medication(new_medication())

    assert medication.id is not None
    assert medication.frequency == Frequency.TWICE_DAILY
    assert scheduled_times(db, medication.id) == [
        datetime(2025, 7, 10, 8, 0),
        datetime(2025, 7, 10, 20, 0),
    ]
    assert service.get_schedule(medication) == ["08:00", "20:00"]


def test_generation_is_idempotent(service, db):
    medication = service.create_medication(new_medication())

    assert service.generate_daily_entries(medication, date(2025, 7, 10)) == []
    assert len(scheduled_times(db, medication.id)) == 2


@pytest.mark.parametrize("overrides", [
    {"start_date": date(2025, 7, 20)},
    {"start_date": date(2025, 7, 1), "end_date": date(2025, 7, 5)},
    {"is_active": False},
])
def test_no_doses_outside_validity(service, db, overrides):
    medication = service.create_medication(new_medication(**overrides))
    assert scheduled_times(db, medication.id) == []


def test_unknown_frequency_is_rejected_before_persisting(service, db):
    data = MedicationCreate.model_construct(
        name="Ibuprofeno",
        dosage="400mg",
        frequency="hourly",
        start_time="08:00",
        start_date=date(2025, 7, 1),
        end_date=None,
        instructions=None,
        is_active=True,
    )
    with pytest.raises(InvalidFrequencyError):
        service.create_medication(data)

    assert db.query(Medication).count() == 0


def test_schedule_change_regenerates_pending_doses(service, db, clock, policy):
    medication = service.create_medication(new_medication())
    morning = scheduled_times(db, medication.id)[0]
    morning_dose = db.query(DoseRecord).filter(DoseRecord.scheduled_date_time == morning).one()
    EntryStore(db, clock, policy=policy).confirm_dose(morning_dose.id, datetime(2025, 7, 10, 8, 5))

    service.update_medication(medication.id, MedicationUpdate(frequency=Frequency.THREE_TIMES_DAILY))

    # 08:00 tomada se conserva, 20:00 pendiente se reemplaza por 16:00 y 00:00
    assert scheduled_times(db, medication.id) == [
        datetime(2025, 7, 10, 0, 0),
        datetime(2025, 7, 10, 8, 0),
        datetime(2025, 7, 10, 16, 0),
    ]


def test_update_without_schedule_change_keeps_doses(service, db):
    medication = service.create_medication(new_medication())
    before = scheduled_times(db, medication.id)

    updated = service.update_medication(medication.id, MedicationUpdate(instructions="Con comida"))

    assert updated.instructions == "Con comida"
    assert scheduled_times(db, medication.id) == before
    assert service.update_medication(999, MedicationUpdate(name="X")) is None


def test_inactive_medication_shows_only_taken_doses(service, db, clock, policy):
    medication = service.create_medication(new_medication())
    morning_dose = db.query(DoseRecord).order_by(DoseRecord.scheduled_date_time).first()
    EntryStore(db, clock, policy=policy).confirm_dose(morning_dose.id, datetime(2025, 7, 10, 8, 0))

    assert [status for _, status in service.todays_doses()] == [EntryStatus.TAKEN, EntryStatus.TODAY]

    assert service.deactivate_medication(medication.id)
    assert [(dose.id, status) for dose, status in service.todays_doses()] == [
        (morning_dose.id, EntryStatus.TAKEN),
    ]

    assert service.reactivate_medication(medication.id)
    assert len(service.todays_doses()) == 2
    assert len(scheduled_times(db, medication.id)) == 2


def test_todays_doses_derive_overdue(service):
    service.create_medication(new_medication())
    # a las 12:00 la toma de 08:00 está atrasada
    assert [status for _, status in service.todays_doses()] == [EntryStatus.OVERDUE, EntryStatus.TODAY]


def test_generate_entries_for_all(service, db):
    active = service.create_medication(new_medication())
    inactive = service.create_medication(new_medication(name="Losartán", frequency="daily", is_active=False))

    assert service.generate_entries_for_all(date(2025, 7, 11)) == 2
    assert len(scheduled_times(db, active.id)) == 4
    assert scheduled_times(db, inactive.id) == []


def test_delete_removes_doses(service, db):
    medication_id = service.create_medication(new_medication()).id

    assert service.delete_medication(medication_id)
    assert db.query(DoseRecord).count() == 0
    assert not service.delete_medication(medication_id)


def test_list_active_medications(service):
    service.create_medication(new_medication(name="Losartán"))
    service.create_medication(new_medication(name="Aspirina", is_active=False))

    assert [m.name for m in service.get_medications()] == ["Aspirina", "Losartán"]
    assert [m.name for m in service.get_medications(active_only=True)] == ["Losartán"]


def test_todays_doses_generates_the_new_day(service, db, clock):
    active = service.create_medication(new_medication())
    inactive = service.create_medication(new_medication(name="Losartán", frequency="daily"))
    service.deactivate_medication(inactive.id)

    clock.instant = civil(2025, 7, 11, 9, 0)
    doses = service.todays_doses()

    assert [dose.scheduled_date_time for dose, _ in doses] == [
        datetime(2025, 7, 11, 8, 0),
        datetime(2025, 7, 11, 20, 0),
    ]
    assert len(scheduled_times(db, active.id)) == 4
    assert scheduled_times(db, inactive.id) == [datetime(2025, 7, 10, 8, 0)]


def test_update_rejects_end_date_before_stored_start(service, db):
    medication = service.create_medication(new_medication())

    with pytest.raises(InvalidScheduleError):
        service.update_medication(medication.id, MedicationUpdate(end_date=date(2025, 6, 1)))

    db.refresh(medication)
    assert medication.end_date is None


@pytest.mark.parametrize("changes", [
    {"name": None},
    {"start_date": None},
    {"start_date": date(2025, 7, 10), "end_date": date(2025, 7, 1)},
])
def test_update_schema_rejects_invalid_changes(changes):
    with pytest.raises(ValueError):
        MedicationUpdate(**changes)


def test_update_schema_allows_clearing_optional_fields():
    update = MedicationUpdate(end_date=None, instructions=None)
    assert update.dict(exclude_unset=True) == {"end_date": None, "instructions": None}
