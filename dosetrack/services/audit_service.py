"""
Servicio de auditoría de transiciones de estado
"""
from sqlalchemy.orm import Session
from typing import List, Optional, Union
import logging
import secrets
import time

from dosetrack.models.audit import StatusTransitionLog

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    """ID de correlación: corr_<epoch ms>_<aleatorio>"""
    return f"corr_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def _state_name(state) -> Optional[str]:
    if state is None:
        return None
    return getattr(state, "value", state)


class AuditRecorder:
    """Persiste el estado antes/después de cada escritura explícita"""

    def __init__(self, db: Session):
        self.db = db

    def record_transition(
            self,
            entity_type: str,
            entity_id: int,
            before_state: Union[str, None],
            after_state: str,
            correlation_id: Optional[str] = None,
            processing_time_ms: Optional[float] = None
    ) -> StatusTransitionLog:
        """Registrar una transición. No hace commit: viaja en la transacción del llamador."""
        entry = StatusTransitionLog(
            entity_type=entity_type,
            entity_id=entity_id,
            before_state=_state_name(before_state),
            after_state=_state_name(after_state),
            correlation_id=correlation_id or generate_correlation_id(),
            processing_time_ms=processing_time_ms,
        )
        self.db.add(entry)

        logger.info(
            f"Auditoría: {entity_type} {entity_id} {entry.before_state} -> {entry.after_state} "
            f"({entry.correlation_id})"
        )
        return entry

    def get_transitions(self, entity_type: str, entity_id: int) -> List[StatusTransitionLog]:
        """Historial de transiciones de un registro"""
        return self.db.query(StatusTransitionLog).filter(
            StatusTransitionLog.entity_type == entity_type,
            StatusTransitionLog.entity_id == entity_id
        ).order_by(StatusTransitionLog.id).all()
