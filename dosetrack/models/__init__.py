# dosetrack/models/__init__.py

from .medication import Medication, Frequency
from .dose_record import DoseRecord, DoseStatus
from .medical_test import MedicalTest, TestStatus
from .audit import StatusTransitionLog

__all__ = [
    "Medication",
    "Frequency",
    "DoseRecord",
    "DoseStatus",
    "MedicalTest",
    "TestStatus",
    "StatusTransitionLog",
]
