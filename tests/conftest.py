"""
Fixtures compartidas: base SQLite en memoria, reloj fijo y cliente HTTP
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dosetrack.core.civil_time import CivilTimePolicy
from dosetrack.core.clock import FixedClock, get_clock
from dosetrack.core.database import create_tables, drop_tables, get_db

POLICY = CivilTimePolicy(-3)


def civil(year, month, day, hour=0, minute=0, second=0) -> datetime:
    """Instante con zona horaria en el horario civil (UTC-3)"""
    return datetime(year, month, day, hour, minute, second, tzinfo=POLICY.tz)


@pytest.fixture
def policy():
    return POLICY


@pytest.fixture
def now():
    # jueves 10/07/2025 al mediodía
    return civil(2025, 7, 10, 12, 0)


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def make_dose():
    """Dosis en memoria para probar el motor sin base de datos"""
    counter = {"id": 0}

    def factory(scheduled, status="pending", actual=None, medication_id=1):
        counter["id"] += 1
        return SimpleNamespace(
            id=counter["id"],
            medication_id=medication_id,
            scheduled_date_time=scheduled,
            actual_date_time=actual,
            explicit_status=status,
        )

    return factory


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    drop_tables(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db, clock):
    from dosetrack.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
