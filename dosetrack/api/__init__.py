# dosetrack/api/__init__.py
"""
Router principal de la API
"""
from fastapi import APIRouter

from dosetrack.core.config import get_settings
from . import medications, doses, exams, reports

settings = get_settings()

# Router principal de la API
api_router = APIRouter()

api_router.include_router(
    medications.router,
    prefix="/medications",
    tags=["medications"]
)

api_router.include_router(
    doses.router,
    prefix="/doses",
    tags=["doses"]
)

api_router.include_router(
    exams.router,
    prefix="/tests",
    tags=["tests"]
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["reports"]
)


@api_router.get("/health")
async def api_health():
    """Health check específico de la API"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION
    }


@api_router.get("/info")
async def api_info():
    """Información de la API"""
    return {
        "api": {
            "version": settings.VERSION,
            "available_endpoints": [
                "/medications",
                "/doses",
                "/tests",
                "/reports"
            ]
        },
        "adherence": {
            "civil_utc_offset_hours": settings.CIVIL_UTC_OFFSET_HOURS,
            "dose_tolerance_minutes": settings.DOSE_TOLERANCE_MINUTES,
            "report_periods": ["7d", "30d", "90d", "custom"]
        }
    }
