# dosetrack/api/reports.py
"""
Endpoints de reportes de adherencia
"""
from fastapi import APIRouter, Depends
from datetime import datetime

from dosetrack.core.civil_time import get_civil_time_policy
from dosetrack.core.clock import Clock, get_clock
from dosetrack.core.dependencies import ReportPeriodParams, get_entry_store, get_report_period_params
from dosetrack.schemas.report import (
    AdherenceReport,
    MedicationAdherence,
    MedicationAdherenceReport,
    ReportPeriod,
    WeeklyTrendReport
)
from dosetrack.services.adherence import compute_adherence, compute_adherence_by_medication
from dosetrack.services.entry_store import EntryStore
from dosetrack.services.period import filter_by_period
from dosetrack.services.trend import compute_weekly_trend

router = APIRouter()


def _report_period(params: ReportPeriodParams, now: datetime) -> ReportPeriod:
    start, end = params.window.bounds(get_civil_time_policy().today(now))
    return ReportPeriod(period=params.period, start_date=start, end_date=end)


@router.get("/adherence", response_model=AdherenceReport)
async def get_adherence(
        params: ReportPeriodParams = Depends(get_report_period_params),
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """Estadísticas de adherencia y puntualidad del período"""
    now = clock.now()
    entries = filter_by_period(store.list_dose_entries(params.medication_id), params.window, now)

    return AdherenceReport(
        period=_report_period(params, now),
        stats=compute_adherence(entries, now)
    )


@router.get("/weekly-trend", response_model=WeeklyTrendReport)
async def get_weekly_trend(
        params: ReportPeriodParams = Depends(get_report_period_params),
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """Adherencia por día de la semana y tendencia"""
    now = clock.now()
    entries = store.list_dose_entries(params.medication_id)

    return WeeklyTrendReport(
        period=_report_period(params, now),
        trend=compute_weekly_trend(entries, params.window, now)
    )


@router.get("/medications", response_model=MedicationAdherenceReport)
async def get_medication_adherence(
        params: ReportPeriodParams = Depends(get_report_period_params),
        store: EntryStore = Depends(get_entry_store),
        clock: Clock = Depends(get_clock)
):
    """Adherencia de cada medicamento en el período"""
    now = clock.now()
    entries = filter_by_period(store.list_dose_entries(params.medication_id), params.window, now)
    medications = {entry.medication_id: entry.medication for entry in entries}

    return MedicationAdherenceReport(
        period=_report_period(params, now),
        medications=[
            MedicationAdherence(
                medication_id=medication_id,
                medication_name=medications[medication_id].name if medications[medication_id] else None,
                dosage=medications[medication_id].dosage if medications[medication_id] else None,
                stats=stats
            )
            for medication_id, stats in compute_adherence_by_medication(entries, now).items()
        ]
    )
