"""
Modelo de auditoría de transiciones de estado
"""
from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.sql import func

from dosetrack.core.database import Base


class StatusTransitionLog(Base):
    """Estado antes/después de cada escritura explícita de estado"""
    __tablename__ = "status_transition_logs"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String(20), nullable=False)  # "dose" | "test"
    entity_id = Column(Integer, nullable=False, index=True)
    before_state = Column(String(20), nullable=True)
    after_state = Column(String(20), nullable=False)
    correlation_id = Column(String(64), nullable=False, index=True)
    processing_time_ms = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return (
            f"<StatusTransitionLog({self.entity_type} {self.entity_id}: "
            f"{self.before_state} -> {self.after_state})>"
        )
