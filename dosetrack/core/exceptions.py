"""
Excepciones del dominio de adherencia
"""


class DoseTrackError(Exception):
    """Error base de la aplicación"""


class InvalidFrequencyError(DoseTrackError, ValueError):
    """Frecuencia de medicamento no reconocida"""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Frecuencia no reconocida: {frequency!r}")


class InvalidScheduleError(DoseTrackError, ValueError):
    """Horario programado ausente o imposible de interpretar"""

    def __init__(self, value, reason: str = "horario inválido"):
        self.value = value
        super().__init__(f"{reason}: {value!r}")


class InvalidPeriodError(DoseTrackError, ValueError):
    """Período de reporte mal formado"""


class EntryNotFoundError(DoseTrackError, LookupError):
    """Registro inexistente en el almacén"""

    def __init__(self, entity_type: str, entity_id: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} no encontrado")


class DoseAlreadyConfirmedError(DoseTrackError):
    """La dosis ya tiene una confirmación registrada"""

    def __init__(self, dose_id: int):
        self.dose_id = dose_id
        super().__init__(f"La dosis {dose_id} ya fue confirmada")
